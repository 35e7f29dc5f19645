"""Error code registry with E-XXXX format codes.

This module defines the error code system for picqer-ontime, organizing
errors into categories:
- E-1xxx: Inbound webhook data errors
- E-2xxx: Request building errors
- E-3xxx: On-Time API errors
- E-5xxx: Authentication errors

Each error includes a code, title, and remediation steps. The outward
message itself is built by the raising code, since it embeds carrier
remarks and diagnostic dumps.
"""

from dataclasses import dataclass
from enum import Enum


class ErrorCategory(str, Enum):
    """Categories for error codes."""

    DATA = "data"  # E-1xxx: Inbound webhook data errors
    REQUEST = "request"  # E-2xxx: Request building errors
    CARRIER_API = "carrier_api"  # E-3xxx: On-Time API errors
    AUTH = "auth"  # E-5xxx: Authentication errors


@dataclass
class ErrorCode:
    """Definition of an error code with metadata.

    Attributes:
        code: Error code in E-XXXX format.
        category: Error category for grouping.
        title: Short title for display and log lines.
        remediation: Action the operator should take to resolve.
        is_retryable: Whether the operation can be retried without user action.
    """

    code: str
    category: ErrorCategory
    title: str
    remediation: str
    is_retryable: bool = False


ERROR_REGISTRY: dict[str, ErrorCode] = {
    # Data errors (E-1xxx)
    "E-1001": ErrorCode(
        code="E-1001",
        category=ErrorCategory.DATA,
        title="Invalid Webhook Input",
        remediation="Picqer sent a body that is not a shipment object. Check the shipping method URL.",
    ),
    "E-1002": ErrorCode(
        code="E-1002",
        category=ErrorCategory.DATA,
        title="Unknown Method",
        remediation="Use method=process, method=producten or method=landen.",
    ),
    # Request errors (E-2xxx)
    "E-2001": ErrorCode(
        code="E-2001",
        category=ErrorCategory.REQUEST,
        title="Request Encoding Failed",
        remediation="The carrier request could not be serialized to JSON. Inspect the dumped payload.",
    ),
    "E-2002": ErrorCode(
        code="E-2002",
        category=ErrorCategory.REQUEST,
        title="No Product For Weight",
        remediation="Add a product tier whose limit covers this weight to carrier.producten.",
    ),
    # Carrier API errors (E-3xxx)
    "E-3001": ErrorCode(
        code="E-3001",
        category=ErrorCategory.CARRIER_API,
        title="On-Time Unreachable",
        remediation="Wait a few minutes and retry. Check carrier.apiurl if the issue persists.",
        is_retryable=True,
    ),
    "E-3002": ErrorCode(
        code="E-3002",
        category=ErrorCategory.CARRIER_API,
        title="On-Time Response Not JSON",
        remediation="The carrier answered with a non-JSON body. Read the cleaned excerpt in the error.",
        is_retryable=True,
    ),
    "E-3003": ErrorCode(
        code="E-3003",
        category=ErrorCategory.CARRIER_API,
        title="On-Time Response Without Status",
        remediation="The carrier response lacks a status field. Contact On-Time with the dumped response.",
    ),
    "E-3004": ErrorCode(
        code="E-3004",
        category=ErrorCategory.CARRIER_API,
        title="On-Time Rejected Request",
        remediation="Correct the shipment according to the carrier remarks and retry.",
    ),
    "E-3005": ErrorCode(
        code="E-3005",
        category=ErrorCategory.CARRIER_API,
        title="On-Time Result Missing",
        remediation="The carrier reported success without the expected result. Contact On-Time.",
    ),
    "E-3006": ErrorCode(
        code="E-3006",
        category=ErrorCategory.CARRIER_API,
        title="Unexpected Order Count",
        remediation="Exactly one order must be created per shipment. Check the carrier portal for duplicates.",
    ),
    "E-3007": ErrorCode(
        code="E-3007",
        category=ErrorCategory.CARRIER_API,
        title="Label Download Failed",
        remediation="The order was created but its label could not be fetched. Download it from the carrier portal.",
        is_retryable=True,
    ),
    # Auth errors (E-5xxx)
    "E-5001": ErrorCode(
        code="E-5001",
        category=ErrorCategory.AUTH,
        title="Not Authorized",
        remediation="Configure the same Basic auth user and password in Picqer and in auth settings.",
    ),
    "E-5002": ErrorCode(
        code="E-5002",
        category=ErrorCategory.AUTH,
        title="Too Many Auth Failures",
        remediation="The client IP is blocked after repeated auth failures. Fix the credentials and wait five minutes.",
        is_retryable=True,
    ),
}


def get_error(code: str) -> ErrorCode | None:
    """Get error definition by code.

    Args:
        code: Error code in E-XXXX format.

    Returns:
        ErrorCode if found, None otherwise.
    """
    return ERROR_REGISTRY.get(code)


def get_errors_by_category(category: ErrorCategory) -> list[ErrorCode]:
    """Get all errors in a category.

    Args:
        category: The error category to filter by.

    Returns:
        List of ErrorCode objects in the specified category.
    """
    return [e for e in ERROR_REGISTRY.values() if e.category == category]
