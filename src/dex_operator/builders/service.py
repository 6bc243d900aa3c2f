"""Builders for the Dex web and gRPC services."""

from __future__ import annotations

from typing import Any

from ..constants import (
    ANNOTATION_SERVING_CERT_SECRET,
    GRPC_PORT,
    GRPC_PORT_NAME,
    GRPC_SERVICE_NAME,
    KIND_SERVICE,
    SECRET_WEB_TLS_SUFFIX,
    WEB_PORT,
    WEB_PORT_NAME,
)
from ..models import DexServerInstance
from .labels import app_labels


def web_tls_secret_name(instance: DexServerInstance) -> str:
    """Name of the serving certificate secret OpenShift generates for the web service."""
    return f"{instance.name}{SECRET_WEB_TLS_SUFFIX}"


def _service(
    name: str,
    instance: DexServerInstance,
    port: int,
    port_name: str,
    annotations: dict[str, str] | None = None,
) -> dict[str, Any]:
    metadata: dict[str, Any] = {
        "name": name,
        "namespace": instance.namespace,
        "labels": app_labels(instance),
    }
    if annotations:
        metadata["annotations"] = annotations
    return {
        "apiVersion": "v1",
        "kind": KIND_SERVICE,
        "metadata": metadata,
        "spec": {
            "type": "ClusterIP",
            "ports": [{"port": port, "protocol": "TCP", "name": port_name}],
            "selector": app_labels(instance),
        },
    }


def build_web_service(instance: DexServerInstance) -> dict[str, Any]:
    """Build the primary service exposing Dex's HTTPS listener.

    The serving-cert annotation makes OpenShift issue the web TLS secret
    mounted by the deployment.
    """
    return _service(
        instance.name,
        instance,
        WEB_PORT,
        WEB_PORT_NAME,
        annotations={ANNOTATION_SERVING_CERT_SECRET: web_tls_secret_name(instance)},
    )


def build_grpc_service(instance: DexServerInstance) -> dict[str, Any]:
    """Build the service exposing Dex's gRPC management API."""
    return _service(GRPC_SERVICE_NAME, instance, GRPC_PORT, GRPC_PORT_NAME)
