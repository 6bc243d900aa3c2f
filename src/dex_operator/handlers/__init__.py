"""Handler modules for CRD resources."""

# Import handlers to register them - handlers register themselves via @kopf decorators
from . import dexserver  # noqa: F401
from . import owned  # noqa: F401
