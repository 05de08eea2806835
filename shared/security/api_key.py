"""
Internal service-to-service key.

Every route that writes orders or sends vendor notifications sits behind this
key, so only the checkout engine (a trusted server process) can trigger a
vendor push; a browser cannot forge one.

Missing configuration falls back to an insecure default with a loud warning so
local development still works, while production misconfiguration is surfaced.
"""
import os
import secrets
import warnings

_INTERNAL_API_KEY: str = os.getenv("INTERNAL_API_KEY", "")

if not _INTERNAL_API_KEY:
    warnings.warn(
        "INTERNAL_API_KEY is not set. Using an insecure empty default. "
        "Set this env var in production!",
        stacklevel=2,
    )
    _INTERNAL_API_KEY = "insecure-default-change-me"

INTERNAL_API_KEY: str = _INTERNAL_API_KEY

INTERNAL_API_HEADER_NAME = "X-Internal-API-Key"

# Sent on every outgoing call from the checkout engine to sibling services
INTERNAL_API_HEADERS = {INTERNAL_API_HEADER_NAME: INTERNAL_API_KEY}


def verify_api_key(provided_key: str | None) -> bool:
    """Verify an API key using constant-time comparison to prevent timing attacks."""
    if not provided_key:
        return False
    return secrets.compare_digest(str(provided_key), str(INTERNAL_API_KEY))
