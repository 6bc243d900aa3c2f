"""Utilities for emitting Kubernetes events."""

from __future__ import annotations

from typing import Any

import kopf

from ..constants import (
    EVENT_REASON_BOOTSTRAP_COMPLETE,
    EVENT_REASON_CONFIGURATION_INVALID,
    EVENT_REASON_OBJECT_CREATED,
    EVENT_REASON_RECONCILE_FAILED,
    EVENT_REASON_RECONCILE_STARTED,
)


def emit_event(
    body: dict[str, Any],
    reason: str,
    message: str,
    type_: str = "Normal",
) -> None:
    """Emit a Kubernetes event.

    Args:
        body: Resource body (or metadata-bearing object) the event refers to
        reason: Event reason
        message: Event message
        type_: Event type (Normal or Warning)
    """
    kopf.event(
        body,
        reason=reason,
        message=message,
        type=type_,
    )


def emit_reconcile_started(body: dict[str, Any]) -> None:
    """Emit reconcile started event."""
    emit_event(body, EVENT_REASON_RECONCILE_STARTED, "Reconciliation started")


def emit_reconcile_failed(body: dict[str, Any], message: str) -> None:
    """Emit reconcile failed event."""
    emit_event(body, EVENT_REASON_RECONCILE_FAILED, message, type_="Warning")


def emit_configuration_invalid(body: dict[str, Any], message: str) -> None:
    """Emit configuration invalid event."""
    emit_event(body, EVENT_REASON_CONFIGURATION_INVALID, message, type_="Warning")


def emit_object_created(body: dict[str, Any], kind: str, name: str) -> None:
    """Emit object created event."""
    emit_event(body, EVENT_REASON_OBJECT_CREATED, f"{kind} {name} created")


def emit_bootstrap_complete(body: dict[str, Any]) -> None:
    """Emit bootstrap complete event."""
    emit_event(body, EVENT_REASON_BOOTSTRAP_COMPLETE, "All Dex objects exist")
