"""HTTP Basic auth middleware for the shipping-method endpoint.

Picqer calls the custom shipping method URL with the Basic credentials
configured in its shipping method settings. Every path except the public
health check must present the credentials from the ``auth`` config
section. With an empty user and password, auth is disabled. Rejected
requests get an audit entry like answered ones.
"""

from __future__ import annotations

import base64
import binascii
import hmac
import logging
import os
import threading
import time

from fastapi import Request
from fastapi.responses import JSONResponse, Response

from src.errors import NotAuthorizedError, OnTimeError, RateLimitedError
from src.services.audit_log import write_audit_entry
from src.services.ontime_models import RequestTrace
from src.services.shipping_method import ShippingMethodOutcome

logger = logging.getLogger(__name__)

_PUBLIC_PATH_PREFIXES = (
    "/health",
    "/docs",
    "/redoc",
    "/openapi.json",
)

AUTH_REALM = "picqer-ontime"

# --- Rate limiting for auth failures ---
_AUTH_FAIL_MAX = 10  # Max failures per IP in the time window
_AUTH_FAIL_WINDOW_SECONDS = 300  # 5-minute sliding window
_auth_failures: dict[str, list[float]] = {}
_auth_lock = threading.Lock()  # Protects _auth_failures

# When PICQER_ONTIME_TRUST_PROXY is "1" or "true", X-Forwarded-For is used
# for client IP extraction. Otherwise only request.client.host is used.
_TRUST_PROXY = os.environ.get("PICQER_ONTIME_TRUST_PROXY", "").strip().lower() in ("1", "true")


def get_client_ip(request: Request) -> str:
    """Extract client IP from request.

    Only uses X-Forwarded-For when PICQER_ONTIME_TRUST_PROXY is enabled,
    preventing IP spoofing when not behind a trusted reverse proxy.
    """
    if _TRUST_PROXY:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def _is_rate_limited(client_ip: str) -> bool:
    """Check if the client IP has exceeded the auth failure rate limit.

    Args:
        client_ip: Client IP address.

    Returns:
        True if the client should be blocked.
    """
    with _auth_lock:
        now = time.monotonic()
        timestamps = _auth_failures.get(client_ip, [])
        # Prune expired entries
        timestamps = [t for t in timestamps if now - t < _AUTH_FAIL_WINDOW_SECONDS]
        _auth_failures[client_ip] = timestamps
        return len(timestamps) >= _AUTH_FAIL_MAX


def _record_auth_failure(client_ip: str) -> None:
    """Record an auth failure for the given client IP."""
    with _auth_lock:
        _auth_failures.setdefault(client_ip, []).append(time.monotonic())


def reset_rate_limiter() -> None:
    """Reset the rate limiter state. Used by tests."""
    with _auth_lock:
        _auth_failures.clear()


def parse_basic_auth(header: str | None) -> tuple[str, str] | None:
    """Decode an ``Authorization: Basic ...`` header.

    Args:
        header: Raw Authorization header value.

    Returns:
        (user, password) tuple, or None when absent or malformed.
    """
    if not header:
        return None
    scheme, _, param = header.partition(" ")
    if scheme.lower() != "basic" or not param.strip():
        return None
    try:
        decoded = base64.b64decode(param.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    user, sep, password = decoded.partition(":")
    if not sep:
        return None
    return user, password


def credentials_match(supplied: tuple[str, str] | None, user: str, password: str) -> bool:
    """Compare supplied credentials in constant time."""
    if supplied is None:
        return False
    supplied_user, supplied_password = supplied
    user_ok = hmac.compare_digest(supplied_user.encode(), user.encode())
    password_ok = hmac.compare_digest(supplied_password.encode(), password.encode())
    return user_ok and password_ok


def _is_public_path(path: str) -> bool:
    return path.startswith(_PUBLIC_PATH_PREFIXES)


def _reject(request: Request, client_ip: str, error: OnTimeError) -> JSONResponse:
    """Audit a rejected request and answer with its error body."""
    outcome = ShippingMethodOutcome(
        body={"error": error.message},
        status_code=error.http_status,
        trace=RequestTrace(),
        error=error,
    )
    write_audit_entry(
        request.app.state.config.server.log_file,
        client_ip,
        outcome,
        secret=request.app.state.service.secret,
    )
    headers = {"Cache-Control": "no-cache"}
    if isinstance(error, NotAuthorizedError):
        headers["WWW-Authenticate"] = f'Basic realm="{AUTH_REALM}"'
    return JSONResponse(
        status_code=outcome.status_code,
        content=outcome.body,
        headers=headers,
    )


async def require_basic_auth(request: Request, call_next) -> Response:
    """FastAPI middleware entrypoint for Basic auth.

    Blocks client IPs that exceed _AUTH_FAIL_MAX failures within
    _AUTH_FAIL_WINDOW_SECONDS.
    """
    auth = request.app.state.config.auth
    if (not auth.user and not auth.password) or _is_public_path(request.url.path):
        return await call_next(request)

    client_ip = get_client_ip(request)

    if _is_rate_limited(client_ip):
        logger.warning("Auth rate limit exceeded for IP %s", client_ip)
        return _reject(request, client_ip, RateLimitedError())

    supplied = parse_basic_auth(request.headers.get("Authorization"))
    if not credentials_match(supplied, auth.user, auth.password):
        _record_auth_failure(client_ip)
        logger.warning("Rejected unauthorized request from %s", client_ip)
        return _reject(request, client_ip, NotAuthorizedError())
    return await call_next(request)
