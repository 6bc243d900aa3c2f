"""Builder for the Dex deployment."""

from __future__ import annotations

import os
from typing import Any

from ..constants import (
    CONFIG_KEY,
    CONFIG_MOUNT_PATH,
    DEX_BINARY,
    DEX_IMAGE_ENV_NAME,
    GRPC_PORT,
    KIND_DEPLOYMENT,
    MTLS_MOUNT_PATH,
    SECRET_MTLS_NAME,
    SERVICE_ACCOUNT_NAME,
    TLS_MOUNT_PATH,
    WEB_PORT,
)
from ..models import DexServerInstance
from ..utils.errors import MissingImageError
from .labels import dex_server_labels
from .service import web_tls_secret_name


def get_dex_image() -> str:
    """Read the Dex image pull spec from the environment.

    Raises:
        MissingImageError: If RELATED_IMAGE_DEX is empty or not set
    """
    image = os.getenv(DEX_IMAGE_ENV_NAME, "").strip()
    if not image:
        raise MissingImageError(
            f"Required environment variable {DEX_IMAGE_ENV_NAME} is empty or not set"
        )
    return image


def build_deployment(instance: DexServerInstance, image: str) -> dict[str, Any]:
    """Build the single-replica Dex deployment.

    The container mounts the generated config, the OpenShift-issued web TLS
    secret and the gRPC mTLS secret at the paths config.yaml refers to.

    Args:
        instance: DexServer being reconciled
        image: Dex container image

    Returns:
        Deployment manifest

    Raises:
        MissingImageError: If image is empty
    """
    if not image:
        raise MissingImageError(f"No Dex image given for {instance.namespace}/{instance.name}")

    labels = dex_server_labels(instance)
    container = {
        "name": instance.name,
        "image": image,
        "imagePullPolicy": "Always",
        "command": [DEX_BINARY, "serve", f"{CONFIG_MOUNT_PATH}/{CONFIG_KEY}"],
        "env": [
            # Dex's kubernetes storage needs the namespace and cannot read it from the token
            {"name": "KUBERNETES_POD_NAMESPACE", "value": instance.namespace},
        ],
        "ports": [
            {"containerPort": WEB_PORT, "name": "https"},
            {"containerPort": GRPC_PORT, "name": "grpc"},
        ],
        "resources": {},
        "volumeMounts": [
            {"name": "config", "mountPath": CONFIG_MOUNT_PATH},
            {"name": "tls", "mountPath": TLS_MOUNT_PATH},
            {"name": "mtls", "mountPath": MTLS_MOUNT_PATH},
        ],
    }
    volumes = [
        {
            "name": "config",
            "configMap": {
                "name": instance.name,
                "items": [{"key": CONFIG_KEY, "path": CONFIG_KEY}],
            },
        },
        {"name": "tls", "secret": {"secretName": web_tls_secret_name(instance)}},
        {"name": "mtls", "secret": {"secretName": SECRET_MTLS_NAME}},
    ]

    return {
        "apiVersion": "apps/v1",
        "kind": KIND_DEPLOYMENT,
        "metadata": {
            "name": instance.name,
            "namespace": instance.namespace,
            "labels": labels,
        },
        "spec": {
            "replicas": 1,
            "selector": {"matchLabels": labels},
            "template": {
                "metadata": {"labels": labels},
                "spec": {
                    "serviceAccountName": SERVICE_ACCOUNT_NAME,
                    "containers": [container],
                    "volumes": volumes,
                },
            },
        },
    }
