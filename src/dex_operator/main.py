"""Main entry point for the Dex Operator.

Run with ``kopf run -m dex_operator.main`` or the ``dex-operator`` script.
"""

from __future__ import annotations

import logging
import os
from typing import Any

import kopf

from . import handlers  # noqa: F401
from . import health
from . import logging as structured_logging
from .tracing import initialize_tracing

logger = logging.getLogger(__name__)


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, **_: Any) -> None:
    """Configure the operator."""
    structured_logging.setup_structured_logging()
    initialize_tracing()

    # Annotations avoid conflicts with the DexServer status subresource
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage(prefix="auth.identitatem.io")
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage(prefix="auth.identitatem.io")

    settings.posting.level = logging.INFO
    settings.networking.request_timeout = float(os.getenv("K8S_REQUEST_TIMEOUT_SECONDS", "30"))
    settings.execution.max_workers = int(os.getenv("MAX_WORKERS", "4"))

    # Metrics and health endpoints
    metrics_port = int(os.getenv("METRICS_PORT", "8080"))
    health.start_http_server(metrics_port)
    logger.info(f"Serving metrics and health checks on port {metrics_port}")


def main() -> None:
    """Run the operator in all namespaces."""
    kopf.run(clusterwide=True)


if __name__ == "__main__":
    main()
