"""Utilities for reading and writing Kubernetes secrets."""

from __future__ import annotations

import base64
import binascii
import threading
from typing import Any

from kubernetes import client

from ..constants import KIND_SECRET
from ..models import SecretRef
from ..services.kubernetes.client import KubernetesClient, ObjectRef
from .errors import SecretKeyNotFoundError, SecretNotFoundError


def _decode(value: str | bytes) -> str:
    """Decode a secret data value.

    The Kubernetes client returns base64 strings; some callers hand over raw
    bytes instead.
    """
    if isinstance(value, bytes):
        return value.decode("utf-8")
    try:
        return base64.b64decode(value, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return value


def resolve_secret_ref(
    kube: KubernetesClient,
    ref: SecretRef,
    default_namespace: str,
    cancel: threading.Event | None = None,
) -> str:
    """Resolve one field of a referenced secret with a single fetch.

    Args:
        kube: Kubernetes client
        ref: Secret reference from a connector declaration
        default_namespace: Namespace used when the reference has none
        cancel: Optional cancellation signal

    Returns:
        Decoded field value

    Raises:
        SecretNotFoundError: If the secret does not exist
        SecretKeyNotFoundError: If the secret lacks the field
        client.exceptions.ApiException: For any other API error
    """
    namespace = ref.namespace or default_namespace
    try:
        secret = kube.get(ObjectRef(KIND_SECRET, ref.name, namespace), cancel)
    except client.exceptions.ApiException as e:
        if e.status == 404:
            raise SecretNotFoundError(
                f"Secret '{ref.name}' not found in namespace '{namespace}'"
            ) from e
        raise

    data = secret.data or {}
    if ref.key not in data:
        raise SecretKeyNotFoundError(
            f"Key '{ref.key}' not found in secret '{ref.name}' in namespace '{namespace}'"
        )
    return _decode(data[ref.key])


def encode_secret_data(data: dict[str, str]) -> dict[str, str]:
    """Base64 encode secret values for the ``data`` field of a Secret."""
    return {k: base64.b64encode(v.encode("utf-8")).decode("utf-8") for k, v in data.items()}


def secret_manifest(
    name: str,
    namespace: str,
    data: dict[str, str],
    labels: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Build an Opaque Secret manifest from plain string values."""
    return {
        "apiVersion": "v1",
        "kind": KIND_SECRET,
        "metadata": {
            "name": name,
            "namespace": namespace,
            "labels": dict(labels or {}),
        },
        "type": "Opaque",
        "data": encode_secret_data(data),
    }
