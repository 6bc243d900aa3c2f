"""Watches on objects created for a DexServer.

Deleting one of them re-runs the bootstrap for the DexServer that owns it,
so the missing object is created again without waiting for the next resume.
"""

from __future__ import annotations

from typing import Any

import kopf

from ..constants import (
    API_GROUP_VERSION,
    KIND_DEX_SERVER,
    LABEL_OWNER_NAME,
    LABEL_OWNER_NAMESPACE,
    ROUTE_GROUP,
    ROUTE_PLURAL,
    ROUTE_VERSION,
)
from .dexserver import _handler as dexserver_handler

OWNED_RESOURCES: list[tuple[str, ...]] = [
    ("v1", "secrets"),
    ("v1", "configmaps"),
    ("v1", "services"),
    ("v1", "serviceaccounts"),
    ("apps", "v1", "deployments"),
    ("rbac.authorization.k8s.io", "v1", "clusterroles"),
    ("rbac.authorization.k8s.io", "v1", "clusterrolebindings"),
    (ROUTE_GROUP, ROUTE_VERSION, ROUTE_PLURAL),
]


def owning_dex_server(meta: dict[str, Any]) -> tuple[str, str] | None:
    """Return ``(namespace, name)`` of the DexServer that owns an object.

    Namespaced objects carry an owner reference. Cluster-scoped ones cannot,
    so they are matched on the owner labels instead.
    """
    for ref in meta.get("ownerReferences") or []:
        if ref.get("apiVersion") == API_GROUP_VERSION and ref.get("kind") == KIND_DEX_SERVER:
            namespace = meta.get("namespace")
            if namespace:
                return namespace, ref["name"]

    labels = meta.get("labels") or {}
    namespace = labels.get(LABEL_OWNER_NAMESPACE)
    name = labels.get(LABEL_OWNER_NAME)
    if namespace and name:
        return namespace, name
    return None


def is_owned_by_dex_server(meta: dict[str, Any], **_: Any) -> bool:
    return owning_dex_server(meta) is not None


def handle_owned_deleted(meta: dict[str, Any], resource: Any, **kwargs: Any) -> None:
    """Restore the owning DexServer's objects after one of them was deleted."""
    owner = owning_dex_server(meta)
    if owner is None:
        return
    namespace, name = owner
    trigger = f"{resource.plural} {meta.get('name')}"
    dexserver_handler.reconcile_with_metrics(lambda: dexserver_handler.restore(namespace, name, trigger))


for _resource in OWNED_RESOURCES:
    kopf.on.delete(*_resource, optional=True, when=is_owned_by_dex_server)(handle_owned_deleted)
