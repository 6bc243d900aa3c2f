"""Builders for the Dex service account and its cluster-wide permissions."""

from __future__ import annotations

from typing import Any

from ..constants import (
    KIND_CLUSTER_ROLE,
    KIND_CLUSTER_ROLE_BINDING,
    KIND_SERVICE_ACCOUNT,
    SERVICE_ACCOUNT_NAME,
)
from ..models import DexServerInstance
from .labels import app_labels, owner_labels

RBAC_API_GROUP = "rbac.authorization.k8s.io"
RBAC_API_VERSION = f"{RBAC_API_GROUP}/v1"


def cluster_role_binding_name(instance: DexServerInstance) -> str:
    return f"{SERVICE_ACCOUNT_NAME}-{instance.namespace}"


def build_service_account(instance: DexServerInstance) -> dict[str, Any]:
    return {
        "apiVersion": "v1",
        "kind": KIND_SERVICE_ACCOUNT,
        "metadata": {
            "name": SERVICE_ACCOUNT_NAME,
            "namespace": instance.namespace,
            "labels": app_labels(instance),
        },
    }


def build_cluster_role(instance: DexServerInstance) -> dict[str, Any]:
    """Build the cluster role Dex needs for its kubernetes storage backend.

    Dex keeps its state in ``dex.coreos.com`` custom resources and creates
    their definitions on first start.
    """
    return {
        "apiVersion": RBAC_API_VERSION,
        "kind": KIND_CLUSTER_ROLE,
        "metadata": {
            "name": SERVICE_ACCOUNT_NAME,
            "labels": owner_labels(instance),
        },
        "rules": [
            {
                "apiGroups": ["dex.coreos.com"],
                "resources": ["*"],
                "verbs": ["*"],
            },
            {
                "apiGroups": ["apiextensions.k8s.io"],
                "resources": ["customresourcedefinitions"],
                "verbs": ["create"],
            },
        ],
    }


def build_cluster_role_binding(instance: DexServerInstance) -> dict[str, Any]:
    return {
        "apiVersion": RBAC_API_VERSION,
        "kind": KIND_CLUSTER_ROLE_BINDING,
        "metadata": {
            "name": cluster_role_binding_name(instance),
            "labels": owner_labels(instance),
        },
        "roleRef": {
            "apiGroup": RBAC_API_GROUP,
            "kind": KIND_CLUSTER_ROLE,
            "name": SERVICE_ACCOUNT_NAME,
        },
        "subjects": [
            {
                "kind": KIND_SERVICE_ACCOUNT,
                "name": SERVICE_ACCOUNT_NAME,
                "namespace": instance.namespace,
            }
        ],
    }
