"""Kubernetes API access: fetch-by-identity, existence checks and create."""

from __future__ import annotations

import logging
import os
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

from kubernetes import client, config
from urllib3.exceptions import MaxRetryError, TimeoutError as Urllib3TimeoutError

from ... import metrics
from ...constants import (
    API_GROUP,
    API_VERSION,
    FIELD_MANAGER,
    KIND_CLUSTER_ROLE,
    KIND_CLUSTER_ROLE_BINDING,
    KIND_CONFIG_MAP,
    KIND_DEPLOYMENT,
    KIND_DEX_SERVER,
    KIND_ROUTE,
    KIND_SECRET,
    KIND_SERVICE,
    KIND_SERVICE_ACCOUNT,
    PLURAL_DEX_SERVER,
    ROUTE_GROUP,
    ROUTE_PLURAL,
    ROUTE_VERSION,
)
from ...utils.errors import ReconcileCancelledError
from ...utils.rate_limit import rate_limit_k8s

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ObjectRef:
    """Identity of a downstream object. ``namespace`` is None for cluster scope."""

    kind: str
    name: str
    namespace: str | None = None

    @classmethod
    def from_manifest(cls, manifest: dict[str, Any]) -> ObjectRef:
        metadata = manifest["metadata"]
        return cls(kind=manifest["kind"], name=metadata["name"], namespace=metadata.get("namespace"))

    def __str__(self) -> str:
        if self.namespace:
            return f"{self.kind} {self.namespace}/{self.name}"
        return f"{self.kind} {self.name}"


class KubernetesClient:
    """Thin per-kind dispatcher over the Kubernetes API clients."""

    def __init__(
        self,
        core_api: client.CoreV1Api | None = None,
        apps_api: client.AppsV1Api | None = None,
        rbac_api: client.RbacAuthorizationV1Api | None = None,
        custom_api: client.CustomObjectsApi | None = None,
        request_timeout: float | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            core_api: CoreV1Api instance
            apps_api: AppsV1Api instance
            rbac_api: RbacAuthorizationV1Api instance
            custom_api: CustomObjectsApi instance (OpenShift routes)
            request_timeout: Per-request timeout in seconds
        """
        self.core_api = core_api or client.CoreV1Api()
        self.apps_api = apps_api or client.AppsV1Api()
        self.rbac_api = rbac_api or client.RbacAuthorizationV1Api()
        self.custom_api = custom_api or client.CustomObjectsApi()
        if request_timeout is None:
            request_timeout = float(os.getenv("K8S_REQUEST_TIMEOUT_SECONDS", "30"))
        self.request_timeout = request_timeout

    @classmethod
    def from_environment(cls) -> KubernetesClient:
        """Load in-cluster config, falling back to the local kubeconfig."""
        try:
            config.load_incluster_config()
        except config.ConfigException:
            config.load_kube_config()
        return cls()

    def _readers(self) -> dict[str, Callable[[ObjectRef], Any]]:
        return {
            KIND_SECRET: lambda ref: self.core_api.read_namespaced_secret(
                name=ref.name, namespace=ref.namespace, _request_timeout=self.request_timeout
            ),
            KIND_CONFIG_MAP: lambda ref: self.core_api.read_namespaced_config_map(
                name=ref.name, namespace=ref.namespace, _request_timeout=self.request_timeout
            ),
            KIND_SERVICE: lambda ref: self.core_api.read_namespaced_service(
                name=ref.name, namespace=ref.namespace, _request_timeout=self.request_timeout
            ),
            KIND_SERVICE_ACCOUNT: lambda ref: self.core_api.read_namespaced_service_account(
                name=ref.name, namespace=ref.namespace, _request_timeout=self.request_timeout
            ),
            KIND_CLUSTER_ROLE: lambda ref: self.rbac_api.read_cluster_role(
                name=ref.name, _request_timeout=self.request_timeout
            ),
            KIND_CLUSTER_ROLE_BINDING: lambda ref: self.rbac_api.read_cluster_role_binding(
                name=ref.name, _request_timeout=self.request_timeout
            ),
            KIND_DEPLOYMENT: lambda ref: self.apps_api.read_namespaced_deployment(
                name=ref.name, namespace=ref.namespace, _request_timeout=self.request_timeout
            ),
            KIND_ROUTE: lambda ref: self.custom_api.get_namespaced_custom_object(
                group=ROUTE_GROUP,
                version=ROUTE_VERSION,
                namespace=ref.namespace,
                plural=ROUTE_PLURAL,
                name=ref.name,
                _request_timeout=self.request_timeout,
            ),
            KIND_DEX_SERVER: lambda ref: self.custom_api.get_namespaced_custom_object(
                group=API_GROUP,
                version=API_VERSION,
                namespace=ref.namespace,
                plural=PLURAL_DEX_SERVER,
                name=ref.name,
                _request_timeout=self.request_timeout,
            ),
        }

    def _creators(self) -> dict[str, Callable[[dict[str, Any]], Any]]:
        def namespace(body: dict[str, Any]) -> str:
            return body["metadata"]["namespace"]

        return {
            KIND_SECRET: lambda body: self.core_api.create_namespaced_secret(
                namespace=namespace(body), body=body,
                field_manager=FIELD_MANAGER, _request_timeout=self.request_timeout,
            ),
            KIND_CONFIG_MAP: lambda body: self.core_api.create_namespaced_config_map(
                namespace=namespace(body), body=body,
                field_manager=FIELD_MANAGER, _request_timeout=self.request_timeout,
            ),
            KIND_SERVICE: lambda body: self.core_api.create_namespaced_service(
                namespace=namespace(body), body=body,
                field_manager=FIELD_MANAGER, _request_timeout=self.request_timeout,
            ),
            KIND_SERVICE_ACCOUNT: lambda body: self.core_api.create_namespaced_service_account(
                namespace=namespace(body), body=body,
                field_manager=FIELD_MANAGER, _request_timeout=self.request_timeout,
            ),
            KIND_CLUSTER_ROLE: lambda body: self.rbac_api.create_cluster_role(
                body=body, field_manager=FIELD_MANAGER, _request_timeout=self.request_timeout,
            ),
            KIND_CLUSTER_ROLE_BINDING: lambda body: self.rbac_api.create_cluster_role_binding(
                body=body, field_manager=FIELD_MANAGER, _request_timeout=self.request_timeout,
            ),
            KIND_DEPLOYMENT: lambda body: self.apps_api.create_namespaced_deployment(
                namespace=namespace(body), body=body,
                field_manager=FIELD_MANAGER, _request_timeout=self.request_timeout,
            ),
            KIND_ROUTE: lambda body: self.custom_api.create_namespaced_custom_object(
                group=ROUTE_GROUP,
                version=ROUTE_VERSION,
                namespace=namespace(body),
                plural=ROUTE_PLURAL,
                body=body,
                field_manager=FIELD_MANAGER,
                _request_timeout=self.request_timeout,
            ),
        }

    def _call(
        self,
        operation: str,
        fn: Callable[[], Any],
        cancel: threading.Event | None,
    ) -> Any:
        if cancel is not None and cancel.is_set():
            raise ReconcileCancelledError(f"{operation} cancelled before it was sent")

        start_time = time.time()
        try:
            result = rate_limit_k8s(fn)()
            metrics.api_call_total.labels(api_type="k8s", operation=operation, result="success").inc()
            return result
        except client.exceptions.ApiException as e:
            result = "not_found" if e.status == 404 else "conflict" if e.status == 409 else "error"
            metrics.api_call_total.labels(api_type="k8s", operation=operation, result=result).inc()
            raise
        except (MaxRetryError, Urllib3TimeoutError) as e:
            metrics.api_call_total.labels(api_type="k8s", operation=operation, result="timeout").inc()
            raise ReconcileCancelledError(f"{operation} timed out: {e}") from e
        finally:
            duration = time.time() - start_time
            metrics.api_call_duration_seconds.labels(api_type="k8s", operation=operation).observe(duration)

    def get(self, ref: ObjectRef, cancel: threading.Event | None = None) -> Any:
        """Fetch an object by identity.

        Raises:
            client.exceptions.ApiException: 404 if missing, or any other API error
            ReconcileCancelledError: If cancelled or the request timed out
        """
        reader = self._readers()[ref.kind]
        return self._call(f"get_{ref.kind.lower()}", lambda: reader(ref), cancel)

    def exists(self, ref: ObjectRef, cancel: threading.Event | None = None) -> bool:
        """Return whether the object exists. Errors other than 404 propagate."""
        try:
            self.get(ref, cancel)
        except client.exceptions.ApiException as e:
            if e.status == 404:
                return False
            raise
        return True

    def create(self, manifest: dict[str, Any], cancel: threading.Event | None = None) -> bool:
        """Create an object from its manifest.

        Returns:
            True if created, False if it already existed (lost a create race)

        Raises:
            client.exceptions.ApiException: For any error other than 409
            ReconcileCancelledError: If cancelled or the request timed out
        """
        kind = manifest["kind"]
        creator = self._creators()[kind]
        try:
            self._call(f"create_{kind.lower()}", lambda: creator(manifest), cancel)
        except client.exceptions.ApiException as e:
            if e.status == 409:
                logger.info(f"{ObjectRef.from_manifest(manifest)} already exists, created concurrently")
                metrics.create_conflicts_total.labels(object_kind=kind).inc()
                return False
            raise
        metrics.objects_created_total.labels(object_kind=kind).inc()
        return True
