"""Typed exceptions for the shipping-method pipeline.

Each stage of the carrier exchange raises its own subclass so callers
can tell an unreachable carrier from a rejected shipment. All of them
carry an E-XXXX code from the registry and the HTTP status the front
door should answer with.

Usage:
    # In the client
    raise RemoteStatusError(f"{status} {remarks}")

    # In the service
    try:
        result = client.query(envelope, "opdrachten", trace)
    except OnTimeError as e:
        return {"error": e.message}, e.http_status
"""

from src.errors.registry import get_error

BAD_REQUEST = 400


class OnTimeError(Exception):
    """Base exception for all shipping-method errors. Maps to HTTP 400."""

    code = "E-3004"

    def __init__(self, message: str, http_status: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        # A carrier status other than 200 is preserved, anything else becomes 400
        if http_status is None or http_status == 200 or http_status < 100:
            http_status = BAD_REQUEST
        self.http_status = http_status

    @property
    def title(self) -> str:
        """Registry title for this error's code."""
        error_def = get_error(self.code)
        return error_def.title if error_def else "Unknown Error"

    @property
    def summary(self) -> str:
        """First line of the message, used in log lines."""
        return self.message.split("\n", 1)[0]


class InputDecodeError(OnTimeError):
    """Inbound webhook body is not a shipment object."""

    code = "E-1001"


class UnknownOperationError(OnTimeError):
    """Requested method is not one of the supported operations."""

    code = "E-1002"


class EncodeError(OnTimeError):
    """Carrier envelope could not be serialized to JSON."""

    code = "E-2001"


class NoProductTierError(OnTimeError):
    """Shipment weight exceeds every configured product tier."""

    code = "E-2002"


class TransportError(OnTimeError):
    """HTTP client failure talking to the carrier (connect, timeout, ...)."""

    code = "E-3001"


class ResponseDecodeError(OnTimeError):
    """Carrier response body is not a JSON object."""

    code = "E-3002"


class MissingStatusError(OnTimeError):
    """Carrier response has no ``status`` field."""

    code = "E-3003"


class RemoteStatusError(OnTimeError):
    """Carrier response ``status`` is not SUCCESS."""

    code = "E-3004"


class MissingResultKeyError(OnTimeError):
    """Carrier reported SUCCESS without the expected result collection."""

    code = "E-3005"


class OrderCountError(OnTimeError):
    """CREATE returned zero or several orders instead of exactly one."""

    code = "E-3006"


class LabelFetchError(OnTimeError):
    """Label PDF could not be downloaded from the carrier."""

    code = "E-3007"


class NotAuthorizedError(OnTimeError):
    """Basic auth credentials did not match. Maps to HTTP 401."""

    code = "E-5001"

    def __init__(self, message: str = "Not authorized!") -> None:
        super().__init__(message, http_status=401)


class RateLimitedError(OnTimeError):
    """Too many auth failures from one client IP. Maps to HTTP 429."""

    code = "E-5002"

    def __init__(self, message: str = "Too many authentication failures. Try again later.") -> None:
        super().__init__(message, http_status=429)
