"""Redaction module to mask secrets in outputs and logs."""
import re
from typing import Any, Dict

REDACTED = "[REDACTED]"

# Query parameters that carry credentials or the access token
_SECRET_PARAMS = ("Id", "Secret", "token")

_SECRET_KEYS = ("siaet_id", "siaet_secret", "secret", "token", "id")


def redact_string(text: str) -> str:
    """Redact credentials and tokens from a string (URLs, error messages)."""
    if not text:
        return text

    result = text
    for name in _SECRET_PARAMS:
        result = re.sub(
            rf"([?&]{name}=)([^&\s\"']+)",
            rf"\g<1>{REDACTED}",
            result,
            flags=re.IGNORECASE,
        )
    return result


def redact_params(params: Dict[str, Any]) -> Dict[str, Any]:
    """Mask secret query parameters, keep the rest for diagnostics."""
    return {
        key: (REDACTED if key.lower() in (p.lower() for p in _SECRET_PARAMS) else value)
        for key, value in params.items()
    }


def redact_settings(data: Dict[str, Any]) -> Dict[str, Any]:
    """Mask credential fields of a settings mapping before logging it."""
    redacted = {}
    for key, value in data.items():
        if key.lower() in _SECRET_KEYS and value:
            redacted[key] = REDACTED
        else:
            redacted[key] = value
    return redacted
