"""Error types and sanitization utilities for the Dex Operator."""

import re
from typing import Any


class ConfigurationError(ValueError):
    """A DexServer or operator input that cannot be turned into an object.

    Terminal for the current reconcile pass: nothing is created and the
    failure is reported instead of producing an empty object.
    """


class MissingImageError(ConfigurationError):
    """The Dex container image environment variable is empty or unset."""


class InvalidIssuerError(ConfigurationError):
    """The issuer URL has no usable host."""


class UnknownConnectorKindError(ConfigurationError):
    """A connector declares a type the operator cannot translate."""


class SecretNotFoundError(ConfigurationError):
    """A connector secret reference points at a secret that does not exist."""


class SecretKeyNotFoundError(ConfigurationError):
    """A referenced secret exists but lacks the requested field."""


class ReconcileCancelledError(Exception):
    """The reconcile pass was cancelled or a request timed out; retry later."""


# Patterns that might expose sensitive information
SENSITIVE_PATTERNS = [
    r"client[_\s]?secret[:\s=]+([^\s,;\)]+)",
    r"bind[_\s]?pw[:\s=]+([^\s,;\)]+)",
    r"-----BEGIN [A-Z ]*PRIVATE KEY-----[\s\S]*?-----END [A-Z ]*PRIVATE KEY-----",
]

# Fields to redact completely
SENSITIVE_FIELDS = {
    "clientsecret",
    "bindpw",
    "password",
    "secret",
    "token",
    "key",
}


def sanitize_error_message(message: str) -> str:
    """Sanitize error message to remove sensitive information.

    Args:
        message: Original error message

    Returns:
        Sanitized error message with sensitive data redacted
    """
    sanitized = message

    for pattern in SENSITIVE_PATTERNS:
        sanitized = re.sub(pattern, "[REDACTED]", sanitized, flags=re.IGNORECASE)

    return sanitized


def sanitize_exception(error: Exception) -> str:
    """Sanitize exception message.

    Args:
        error: Exception object

    Returns:
        Sanitized error message
    """
    return sanitize_error_message(str(error))


def sanitize_dict(data: dict[str, Any], sensitive_keys: set[str] | None = None) -> dict[str, Any]:
    """Sanitize dictionary by redacting sensitive fields.

    Args:
        data: Dictionary to sanitize
        sensitive_keys: Additional keys to redact (merged with SENSITIVE_FIELDS)

    Returns:
        Sanitized dictionary with sensitive values redacted
    """
    all_sensitive = SENSITIVE_FIELDS | {k.lower() for k in (sensitive_keys or set())}
    sanitized: dict[str, Any] = {}

    for key, value in data.items():
        key_lower = key.lower()
        if any(sensitive in key_lower for sensitive in all_sensitive):
            sanitized[key] = "[REDACTED]"
        elif isinstance(value, dict):
            sanitized[key] = sanitize_dict(value, sensitive_keys)
        elif isinstance(value, str):
            sanitized[key] = sanitize_error_message(value)
        else:
            sanitized[key] = value

    return sanitized
