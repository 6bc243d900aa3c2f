"""Builder for the gRPC mutual-TLS secret."""

from __future__ import annotations

from typing import Any

from ..constants import SECRET_MTLS_NAME
from ..models import DexServerInstance
from ..utils.certificates import MTLSBundle
from ..utils.secrets import secret_manifest
from .labels import app_labels


def build_mtls_secret(instance: DexServerInstance, bundle: MTLSBundle) -> dict[str, Any]:
    """Build the secret mounted by the Dex pod for its gRPC listener.

    The client certificate and key are stored alongside the server material
    so that gRPC clients of Dex can load them from the same secret.

    Args:
        instance: DexServer being reconciled
        bundle: Freshly generated mTLS material

    Returns:
        Secret manifest
    """
    return secret_manifest(
        SECRET_MTLS_NAME,
        instance.namespace,
        bundle.as_secret_data(),
        labels=app_labels(instance),
    )
