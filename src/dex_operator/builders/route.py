"""Builder for the public OpenShift route."""

from __future__ import annotations

from typing import Any
from urllib.parse import urlparse

from ..constants import KIND_ROUTE, ROUTE_GROUP, ROUTE_VERSION, WEB_PORT_NAME
from ..models import DexServerInstance
from ..utils.errors import InvalidIssuerError
from .labels import dex_server_labels


def issuer_host(issuer: str) -> str:
    """Extract the host name from the issuer URL. Any port is dropped.

    Raises:
        InvalidIssuerError: If the issuer is not an absolute URL with a host
    """
    try:
        parsed = urlparse(issuer.strip())
        # Accessing .port validates it
        parsed.port
    except ValueError as e:
        raise InvalidIssuerError(f"issuer '{issuer}' is not a valid URL: {e}") from e
    if not parsed.scheme or not parsed.netloc or not parsed.hostname:
        raise InvalidIssuerError(f"issuer '{issuer}' has no scheme or host")
    return parsed.hostname


def build_route(instance: DexServerInstance) -> dict[str, Any]:
    """Build the route publishing Dex's web listener at the issuer host.

    TLS is re-encrypted at the router and plain HTTP is redirected.
    """
    return {
        "apiVersion": f"{ROUTE_GROUP}/{ROUTE_VERSION}",
        "kind": KIND_ROUTE,
        "metadata": {
            "name": instance.name,
            "namespace": instance.namespace,
            "labels": dex_server_labels(instance),
        },
        "spec": {
            "host": issuer_host(instance.issuer),
            "tls": {
                "termination": "reencrypt",
                "insecureEdgeTerminationPolicy": "Redirect",
            },
            "to": {"kind": "Service", "name": instance.name},
            "port": {"targetPort": WEB_PORT_NAME},
            "wildcardPolicy": "None",
        },
    }
