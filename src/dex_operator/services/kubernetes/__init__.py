"""Kubernetes API access for the Dex Operator."""

from .client import KubernetesClient, ObjectRef

__all__ = ["KubernetesClient", "ObjectRef"]
