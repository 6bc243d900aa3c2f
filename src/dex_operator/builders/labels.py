"""Label sets shared by the Dex object builders."""

from __future__ import annotations

from ..constants import (
    LABEL_APP,
    LABEL_DEXCONFIG_NAME,
    LABEL_DEXCONFIG_NAMESPACE,
    LABEL_OWNER_NAME,
    LABEL_OWNER_NAMESPACE,
)
from ..models import DexServerInstance


def app_labels(instance: DexServerInstance) -> dict[str, str]:
    return {LABEL_APP: instance.name}


def dex_server_labels(instance: DexServerInstance) -> dict[str, str]:
    """Labels selecting the Dex pods of one DexServer."""
    return {
        LABEL_APP: instance.name,
        LABEL_DEXCONFIG_NAME: instance.name,
        LABEL_DEXCONFIG_NAMESPACE: instance.namespace,
    }


def owner_labels(instance: DexServerInstance) -> dict[str, str]:
    """Labels naming the owning DexServer on cluster-scoped objects.

    Cluster-scoped objects cannot carry an owner reference to a namespaced
    DexServer, so ownership is recorded here instead.
    """
    return {
        LABEL_OWNER_NAME: instance.name,
        LABEL_OWNER_NAMESPACE: instance.namespace,
    }
