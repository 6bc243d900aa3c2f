"""Ordered bootstrap of the objects backing a DexServer.

Each pass walks a fixed table of steps, creates the objects of the first step
that has any missing, and asks to be called again. When every object exists
the pass is a no-op. Existing objects are never compared or updated.
"""

from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable

import kopf

from .builders.config import build_config_map, translate_config
from .builders.deployment import build_deployment, get_dex_image
from .builders.rbac import (
    build_cluster_role,
    build_cluster_role_binding,
    build_service_account,
    cluster_role_binding_name,
)
from .builders.route import build_route
from .builders.secret import build_mtls_secret
from .builders.service import build_grpc_service, build_web_service
from .constants import (
    GRPC_SERVICE_NAME,
    KIND_CLUSTER_ROLE,
    KIND_CLUSTER_ROLE_BINDING,
    KIND_CONFIG_MAP,
    KIND_DEPLOYMENT,
    KIND_ROUTE,
    KIND_SECRET,
    KIND_SERVICE,
    KIND_SERVICE_ACCOUNT,
    SECRET_MTLS_NAME,
    SERVICE_ACCOUNT_NAME,
)
from .models import DexServerInstance, SecretRef
from .services.kubernetes.client import KubernetesClient, ObjectRef
from .tracing import trace_span
from .utils.certificates import generate_mtls_bundle
from .utils.secrets import resolve_secret_ref

logger = logging.getLogger(__name__)


class ReconcileResult(enum.Enum):
    DONE = "done"
    REQUEUE = "requeue"


@dataclass
class ReconcileOutcome:
    """What a single pass did."""

    result: ReconcileResult
    step: str | None = None
    created: list[ObjectRef] = field(default_factory=list)
    already_existed: list[ObjectRef] = field(default_factory=list)

    @property
    def requeue(self) -> bool:
        return self.result is ReconcileResult.REQUEUE


@dataclass(frozen=True)
class BuildContext:
    """Inputs available to step builders during one pass."""

    instance: DexServerInstance
    resolve_secret: Callable[[SecretRef], str]


@dataclass(frozen=True)
class Step:
    """One entry of the bootstrap table.

    ``targets`` names the objects the step is responsible for; ``build``
    returns their manifests in the same order.
    """

    name: str
    targets: Callable[[DexServerInstance], list[ObjectRef]]
    build: Callable[[BuildContext], list[dict[str, Any]]]


def _build_mtls_secret(ctx: BuildContext) -> list[dict[str, Any]]:
    bundle = generate_mtls_bundle(ctx.instance.namespace)
    return [build_mtls_secret(ctx.instance, bundle)]


def _build_config_map(ctx: BuildContext) -> list[dict[str, Any]]:
    config_yaml = translate_config(ctx.instance, ctx.resolve_secret)
    return [build_config_map(ctx.instance, config_yaml)]


def _build_deployment(ctx: BuildContext) -> list[dict[str, Any]]:
    return [build_deployment(ctx.instance, get_dex_image())]


STEPS: list[Step] = [
    Step(
        "mtls-secret",
        lambda i: [ObjectRef(KIND_SECRET, SECRET_MTLS_NAME, i.namespace)],
        _build_mtls_secret,
    ),
    Step(
        "config",
        lambda i: [ObjectRef(KIND_CONFIG_MAP, i.name, i.namespace)],
        _build_config_map,
    ),
    Step(
        "services",
        lambda i: [
            ObjectRef(KIND_SERVICE, i.name, i.namespace),
            ObjectRef(KIND_SERVICE, GRPC_SERVICE_NAME, i.namespace),
        ],
        lambda ctx: [build_web_service(ctx.instance), build_grpc_service(ctx.instance)],
    ),
    Step(
        "service-account",
        lambda i: [ObjectRef(KIND_SERVICE_ACCOUNT, SERVICE_ACCOUNT_NAME, i.namespace)],
        lambda ctx: [build_service_account(ctx.instance)],
    ),
    Step(
        "cluster-role",
        lambda i: [ObjectRef(KIND_CLUSTER_ROLE, SERVICE_ACCOUNT_NAME)],
        lambda ctx: [build_cluster_role(ctx.instance)],
    ),
    Step(
        "cluster-role-binding",
        lambda i: [ObjectRef(KIND_CLUSTER_ROLE_BINDING, cluster_role_binding_name(i))],
        lambda ctx: [build_cluster_role_binding(ctx.instance)],
    ),
    Step(
        "deployment",
        lambda i: [ObjectRef(KIND_DEPLOYMENT, i.name, i.namespace)],
        _build_deployment,
    ),
    Step(
        "route",
        lambda i: [ObjectRef(KIND_ROUTE, i.name, i.namespace)],
        lambda ctx: [build_route(ctx.instance)],
    ),
]


class BootstrapReconciler:
    """Creates the first missing group of objects for a DexServer per pass."""

    def __init__(self, kube: KubernetesClient, steps: list[Step] | None = None) -> None:
        self.kube = kube
        self.steps = STEPS if steps is None else steps

    def missing_objects(
        self,
        step: Step,
        instance: DexServerInstance,
        cancel: threading.Event | None = None,
    ) -> list[ObjectRef]:
        """Return the step's targets that do not exist yet."""
        return [ref for ref in step.targets(instance) if not self.kube.exists(ref, cancel)]

    def reconcile(
        self,
        instance: DexServerInstance,
        cancel: threading.Event | None = None,
    ) -> ReconcileOutcome:
        """Run one bootstrap pass.

        Args:
            instance: DexServer being reconciled
            cancel: Optional cancellation signal checked before each API call

        Returns:
            REQUEUE outcome after creating the first missing step's objects,
            DONE when all objects already exist

        Raises:
            ConfigurationError: If the step's builder cannot produce its objects
            ReconcileCancelledError: If cancelled or an API request timed out
            client.exceptions.ApiException: For API errors other than 404 on
                reads and 409 on creates
        """
        for step in self.steps:
            with trace_span("check_step", attributes={"step": step.name}):
                missing = self.missing_objects(step, instance, cancel)
            if not missing:
                continue

            logger.info(
                f"Step {step.name} of {instance.namespace}/{instance.name} is missing "
                f"{', '.join(str(ref) for ref in missing)}"
            )
            with trace_span("run_step", attributes={"step": step.name}):
                return self._run_step(step, instance, missing, cancel)

        return ReconcileOutcome(ReconcileResult.DONE)

    def _run_step(
        self,
        step: Step,
        instance: DexServerInstance,
        missing: list[ObjectRef],
        cancel: threading.Event | None,
    ) -> ReconcileOutcome:
        ctx = BuildContext(
            instance=instance,
            resolve_secret=lambda ref: resolve_secret_ref(self.kube, ref, instance.namespace, cancel),
        )
        # Builder failures propagate before anything is created.
        manifests = [
            manifest
            for manifest in step.build(ctx)
            if ObjectRef.from_manifest(manifest) in missing
        ]

        outcome = ReconcileOutcome(ReconcileResult.REQUEUE, step=step.name)
        for manifest in manifests:
            self._stamp_owner(manifest, instance)
            ref = ObjectRef.from_manifest(manifest)
            if self.kube.create(manifest, cancel):
                logger.info(f"Created {ref}")
                outcome.created.append(ref)
            else:
                outcome.already_existed.append(ref)
        return outcome

    @staticmethod
    def _stamp_owner(manifest: dict[str, Any], instance: DexServerInstance) -> None:
        # Cluster-scoped objects cannot be owned by a namespaced DexServer.
        if manifest["metadata"].get("namespace"):
            kopf.append_owner_reference(manifest, owner=instance.owner_body())
