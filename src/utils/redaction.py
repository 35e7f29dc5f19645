"""Secret redaction utility for safe logging and error responses.

Provides centralized redaction to prevent credential leakage in logs,
error messages, and API error responses. Two complementary strategies:

- key-based: dict values whose key looks sensitive are replaced
  (case-insensitive substring matching, nested dicts and lists handled);
- value-based: every occurrence of a known secret (the carrier API
  password) is replaced in free text.
"""

import json
from pprint import pformat
from typing import Any

from src.services.ontime_constants import PASSWORD_PLACEHOLDER

# Substring patterns matched case-insensitively against dict keys
_DEFAULT_SENSITIVE_PATTERNS = frozenset({
    "secret", "token", "authorization", "api_key", "password",
    "pswd", "credential",
})

_REDACTED = PASSWORD_PLACEHOLDER


def _is_sensitive_key(key: str, sensitive_patterns: frozenset[str]) -> bool:
    """Check if a key matches any sensitive pattern (case-insensitive substring).

    Args:
        key: Dict key to check.
        sensitive_patterns: Patterns to match against.

    Returns:
        True if the key matches any sensitive pattern.
    """
    key_lower = key.lower()
    return any(pattern in key_lower for pattern in sensitive_patterns)


def redact_for_logging(
    obj: dict,
    sensitive_patterns: frozenset[str] = _DEFAULT_SENSITIVE_PATTERNS,
) -> dict:
    """Redact sensitive values from a dict for safe logging/error responses.

    Args:
        obj: Dict to redact (not mutated, a copy is returned).
        sensitive_patterns: Substring patterns whose matching keys' values
            should be replaced. Matching is case-insensitive.

    Returns:
        New dict with sensitive values replaced by the placeholder.
        Handles nested dicts and lists of dicts recursively.
    """
    result = {}
    for key, value in obj.items():
        if _is_sensitive_key(str(key), sensitive_patterns):
            result[key] = _REDACTED
        elif isinstance(value, dict):
            result[key] = redact_for_logging(value, sensitive_patterns)
        elif isinstance(value, list):
            result[key] = [
                redact_for_logging(item, sensitive_patterns) if isinstance(item, dict) else item
                for item in value
            ]
        else:
            result[key] = value
    return result


def _secret_forms(secret: str) -> list[str]:
    """Return the raw secret and its escaped forms, longest first."""
    forms = {
        secret,
        json.dumps(secret)[1:-1],
        json.dumps(secret, ensure_ascii=False)[1:-1],
        repr(secret)[1:-1],
    }
    return sorted(forms, key=len, reverse=True)


def hide_secret(text: str, secret: str | None) -> str:
    """Replace every occurrence of ``secret`` in ``text`` with the placeholder.

    Besides the raw value, the escaped forms ``json.dumps`` and ``repr``
    produce are replaced too, so dumps of payloads holding the secret are
    covered. An empty secret leaves the text untouched (``str.replace`` with
    an empty needle would otherwise insert the placeholder between every
    character).

    Args:
        text: Free text such as an error message or debug dump.
        secret: The secret to remove, typically the carrier API password.

    Returns:
        Text without the secret.
    """
    if not secret:
        return text
    for form in _secret_forms(secret):
        text = text.replace(form, _REDACTED)
    return text


def debug_dump(data: Any, name: str = "", secret: str | None = None) -> str:
    """Render any value as a readable multi-line string for diagnostics.

    Args:
        data: Value to dump (dicts, lists, strings, objects).
        name: Optional label; the dump is wrapped as ``name=[...]``.
        secret: Secret to hide from the rendered text.

    Returns:
        Dump with the secret replaced.
    """
    result = pformat(data, width=100, sort_dicts=False).strip()
    if name:
        result = f"{name}=[{result}]"
    return hide_secret(result, secret)
