"""Error handling framework for picqer-ontime.

This package provides:
- Error code registry with E-XXXX format codes
- Typed exceptions for every stage of the carrier exchange

Error categories:
- E-1xxx: Inbound webhook data errors
- E-2xxx: Request building errors
- E-3xxx: On-Time API errors
- E-5xxx: Authentication errors
"""

from src.errors.carrier import (
    EncodeError,
    InputDecodeError,
    LabelFetchError,
    MissingResultKeyError,
    MissingStatusError,
    NoProductTierError,
    NotAuthorizedError,
    OnTimeError,
    OrderCountError,
    RateLimitedError,
    RemoteStatusError,
    ResponseDecodeError,
    TransportError,
    UnknownOperationError,
)
from src.errors.registry import (
    ERROR_REGISTRY,
    ErrorCategory,
    ErrorCode,
    get_error,
    get_errors_by_category,
)

__all__ = [
    # Registry
    "ErrorCode",
    "ErrorCategory",
    "ERROR_REGISTRY",
    "get_error",
    "get_errors_by_category",
    # Exceptions
    "OnTimeError",
    "InputDecodeError",
    "UnknownOperationError",
    "EncodeError",
    "NoProductTierError",
    "TransportError",
    "ResponseDecodeError",
    "MissingStatusError",
    "RemoteStatusError",
    "MissingResultKeyError",
    "OrderCountError",
    "LabelFetchError",
    "NotAuthorizedError",
    "RateLimitedError",
]
