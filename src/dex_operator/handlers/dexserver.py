"""Handler for DexServer CRD."""

from __future__ import annotations

import os
import threading
from typing import Any

import kopf
from kubernetes import client

from ..constants import API_GROUP, API_VERSION, KIND_DEX_SERVER, PLURAL_DEX_SERVER
from ..models import DexServerInstance
from ..reconciler import BootstrapReconciler, ReconcileOutcome
from ..services.kubernetes.client import KubernetesClient, ObjectRef
from ..tracing import add_span_attribute, trace_span
from ..utils.errors import ConfigurationError, ReconcileCancelledError, sanitize_exception
from ..utils.events import (
    emit_bootstrap_complete,
    emit_configuration_invalid,
    emit_object_created,
    emit_reconcile_failed,
    emit_reconcile_started,
)
from .base import BaseHandler

REQUEUE_DELAY_SECONDS = float(os.getenv("REQUEUE_DELAY_SECONDS", "1"))


class DexServerHandler(BaseHandler):
    """Handler for DexServer resources."""

    def __init__(self, reconciler: BootstrapReconciler | None = None):
        """Initialize DexServer handler.

        Args:
            reconciler: Bootstrap reconciler; built from the environment on first use if omitted
        """
        super().__init__(KIND_DEX_SERVER)
        self._reconciler = reconciler
        self._lock = threading.Lock()

    @property
    def reconciler(self) -> BootstrapReconciler:
        with self._lock:
            if self._reconciler is None:
                self._reconciler = BootstrapReconciler(KubernetesClient.from_environment())
            return self._reconciler

    def reconcile(
        self,
        body: dict[str, Any],
        spec: dict[str, Any],
        meta: dict[str, Any],
        retry: int = 0,
    ) -> None:
        """Run one bootstrap pass for a DexServer.

        kopf hands change handlers no stop signal, so a pass is only cut
        short by a Kubernetes request timeout.

        Raises:
            kopf.TemporaryError: When objects were created and another pass is
                needed, or when a request timed out
            kopf.PermanentError: When the DexServer or operator configuration
                cannot be turned into the next object
            client.exceptions.ApiException: For API errors, retried by kopf
        """
        name = meta.get("name", "unknown")

        with trace_span("reconcile_dexserver", kind=KIND_DEX_SERVER, attributes={"dexserver.name": name}):
            outcome = self._run_pass(body, spec, meta, retry)

            if outcome.requeue:
                raise kopf.TemporaryError(
                    f"Bootstrap step {outcome.step} done, continuing", delay=REQUEUE_DELAY_SECONDS
                )

            if retry > 0:
                emit_bootstrap_complete(body)
            self.log_info(meta, "All Dex objects exist", event="steady", reason="BootstrapComplete")

    def restore(self, namespace: str, name: str, trigger: str) -> None:
        """Bring a DexServer back to a complete set of objects after one was deleted.

        Runs passes back to back until every object exists again. A DexServer
        that is gone or being deleted is left alone.

        Args:
            namespace: Namespace of the owning DexServer
            name: Name of the owning DexServer
            trigger: Description of the deleted object, for logs
        """
        ref = ObjectRef(KIND_DEX_SERVER, name, namespace)
        try:
            body = self.reconciler.kube.get(ref)
        except client.exceptions.ApiException as e:
            if e.status == 404:
                self.log_info(
                    {"name": name, "namespace": namespace},
                    f"{trigger} was deleted along with its DexServer",
                    event="skipped",
                    reason="OwnerGone",
                )
                return
            raise

        meta = body.get("metadata") or {}
        if meta.get("deletionTimestamp"):
            return

        self.log_info(meta, f"{trigger} was deleted, restoring", event="restore", reason="OwnedObjectDeleted")
        with trace_span("restore_dexserver", kind=KIND_DEX_SERVER, attributes={"dexserver.name": name}):
            for attempt in range(len(self.reconciler.steps) + 1):
                if not self._run_pass(body, body.get("spec") or {}, meta, retry=attempt).requeue:
                    break

    def _run_pass(
        self,
        body: dict[str, Any],
        spec: dict[str, Any],
        meta: dict[str, Any],
        retry: int = 0,
    ) -> ReconcileOutcome:
        try:
            instance = DexServerInstance.from_resource(spec, meta)
            outcome = self.reconciler.reconcile(instance)
        except ConfigurationError as e:
            message = sanitize_exception(e)
            self.log_error(meta, f"Invalid configuration: {message}", error=e, reason="ConfigurationInvalid")
            emit_configuration_invalid(body, message)
            raise kopf.PermanentError(message) from e
        except ReconcileCancelledError as e:
            self.log_warning(meta, f"Reconcile interrupted: {e}", reason="Cancelled")
            raise kopf.TemporaryError(str(e), delay=REQUEUE_DELAY_SECONDS) from e
        except client.exceptions.ApiException as e:
            message = f"Kubernetes API error: {e.status} {e.reason}"
            self.log_error(meta, message, error=e, reason="ApiError")
            emit_reconcile_failed(body, message)
            raise

        add_span_attribute("dexserver.step", outcome.step or "none")
        if outcome.requeue and retry == 0:
            emit_reconcile_started(body)

        for ref in outcome.created:
            self.log_info(meta, f"Created {ref}", event="created", reason="ObjectCreated", step=outcome.step)
            emit_object_created(body, ref.kind, ref.name)
        for ref in outcome.already_existed:
            self.log_info(
                meta, f"{ref} was created concurrently", event="conflict", reason="AlreadyExists", step=outcome.step
            )
        return outcome


# Global handler instance
_handler = DexServerHandler()


@kopf.on.create(API_GROUP, API_VERSION, PLURAL_DEX_SERVER)
@kopf.on.update(API_GROUP, API_VERSION, PLURAL_DEX_SERVER)
@kopf.on.resume(API_GROUP, API_VERSION, PLURAL_DEX_SERVER)
def handle_dexserver(
    body: kopf.Body,
    spec: dict[str, Any],
    meta: dict[str, Any],
    retry: int,
    **kwargs: Any,
) -> None:
    """Handle DexServer resource reconciliation."""
    _handler.reconcile_with_metrics(lambda: _handler.reconcile(body, spec, meta, retry))
