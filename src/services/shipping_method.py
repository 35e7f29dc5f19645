"""Picqer custom shipping method service.

Runs one webhook operation end to end: validate the inbound data, build
the carrier envelope, query On-Time, and assemble the outward response.
Every pipeline error is recovered here into ``{"error": message}`` with
the HTTP status the front door should answer with.

Supported operations form a closed set (``Operation``); each maps to one
handler method.

Example:
    service = ShippingMethodService(config)
    outcome = service.handle(Operation.PROCESS, data_in, is_test=False)
    return JSONResponse(outcome.body, status_code=outcome.status_code)
"""

import base64
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx
from pydantic import ValidationError

from src.cli.config import PicqerOnTimeConfig
from src.errors import (
    InputDecodeError,
    OnTimeError,
    OrderCountError,
    UnknownOperationError,
)
from src.services.ontime_client import OnTimeClient
from src.services.ontime_constants import RESULT_KEYS, Verwerking
from src.services.ontime_models import (
    CarrierResult,
    LabelResponse,
    RequestTrace,
    ShipmentRequest,
)
from src.services.ontime_payload_builder import build_create_request, build_verwerking
from src.utils.redaction import debug_dump, hide_secret

logger = logging.getLogger(__name__)


class Operation(str, Enum):
    """Operations selectable through the ``method`` parameter."""

    PROCESS = "process"
    PRODUCTEN = "producten"
    LANDEN = "landen"


def resolve_operation(name: str | None) -> Operation:
    """Map an external method name to an operation.

    Args:
        name: Method name from the query string or CLI. Empty means process.

    Returns:
        The matching Operation.

    Raises:
        UnknownOperationError: If the name is not a supported operation.
    """
    if not name:
        return Operation.PROCESS
    try:
        return Operation(name.strip().lower())
    except ValueError:
        supported = ", ".join(op.value for op in Operation)
        raise UnknownOperationError(
            f"Unknown method '{name}'! Supported methods: {supported}."
        ) from None


@dataclass
class ShippingMethodOutcome:
    """Result of one operation.

    Attributes:
        body: JSON-serializable response body.
        status_code: HTTP status for the response.
        trace: Diagnostic context of the call.
        error: The recovered error, if any.
    """

    body: dict[str, Any]
    status_code: int
    trace: RequestTrace
    error: OnTimeError | None = None

    @property
    def summary(self) -> str:
        """One-line description for log lines: error summary or tracking code."""
        if self.error is not None:
            return self.error.summary
        return str(self.body.get("identifier", "OK"))


def _order_field(order: dict[str, Any], key: str) -> str:
    """Read an optional order field as a string."""
    value = order.get(key)
    return "" if value is None else str(value)


def build_label_response(
    result: CarrierResult,
    client: OnTimeClient,
    trace: RequestTrace,
) -> LabelResponse:
    """Turn the CREATE result into the label response for Picqer.

    Args:
        result: Successful carrier result of a CREATE call.
        client: Open client, used to download the label document.
        trace: Per-call diagnostic context.

    Returns:
        LabelResponse with the base64-encoded label PDF.

    Raises:
        OrderCountError: If the result does not hold exactly one order.
        LabelFetchError: If the label cannot be downloaded.
    """
    orders = result.rows()
    if len(orders) != 1:
        raise OrderCountError(f"Error {len(orders)} orders found!\n{result.remarks}")

    order = orders[0] if isinstance(orders[0], dict) else {}
    identifier = _order_field(order, "nummer")
    trackingurl = _order_field(order, "track")
    labelurl = _order_field(order, "label")

    label_pdf = client.fetch_label(labelurl, trace)

    return LabelResponse(
        identifier=identifier,
        trackingurl=trackingurl,
        label_contents_pdf=base64.b64encode(label_pdf).decode("ascii"),
    )


def build_listing_response(result: CarrierResult) -> dict[str, Any]:
    """Pass a listing result through as ``{remarks, <key>: rows}``."""
    return {
        "remarks": result.remarks,
        result.result_key: result.rows(),
    }


class ShippingMethodService:
    """Executes shipping-method operations against On-Time.

    Stateless apart from read-only configuration, so one instance can serve
    concurrent requests; per-call state lives in each ``RequestTrace``.
    """

    def __init__(
        self,
        config: PicqerOnTimeConfig,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize with loaded configuration.

        Args:
            config: PicqerOnTimeConfig instance.
            transport: Optional httpx transport, used by tests to fake On-Time.
        """
        self._config = config
        self._transport = transport
        self._handlers: dict[Operation, Callable[[Any, bool, RequestTrace], dict[str, Any]]] = {
            Operation.PROCESS: self.process,
            Operation.PRODUCTEN: self.producten,
            Operation.LANDEN: self.landen,
        }

    @property
    def secret(self) -> str:
        """The carrier API password, hidden from every output."""
        return self._config.carrier.apipswd

    def _client(self) -> OnTimeClient:
        return OnTimeClient(self._config.carrier, transport=self._transport)

    def handle(
        self,
        operation: Operation | str | None,
        data_in: Any = None,
        is_test: bool = False,
    ) -> ShippingMethodOutcome:
        """Run one operation and recover any pipeline error.

        Args:
            operation: Operation to run, or its external method name.
            data_in: Decoded webhook body (only used by PROCESS).
            is_test: Target the carrier's TEST environment.

        Returns:
            ShippingMethodOutcome with body, status code and trace.
        """
        trace = RequestTrace(data_in=data_in)
        try:
            if not isinstance(operation, Operation):
                operation = resolve_operation(operation)
            body = self._handlers[operation](data_in, is_test, trace)
        except OnTimeError as e:
            e.message = hide_secret(e.message, self.secret)
            logger.warning(
                "%s failed with %s (%s): %s",
                getattr(operation, "value", operation),
                e.code,
                e.title,
                e.summary,
            )
            return ShippingMethodOutcome(
                body={"error": e.message},
                status_code=e.http_status,
                trace=trace,
                error=e,
            )
        return ShippingMethodOutcome(body=body, status_code=200, trace=trace)

    def process(self, data_in: Any, is_test: bool, trace: RequestTrace) -> dict[str, Any]:
        """Create an On-Time order for a Picqer shipment and return its label.

        Raises:
            InputDecodeError: If the webhook body is not a valid shipment.
            OnTimeError: From building, querying or assembling.
        """
        if not isinstance(data_in, dict):
            raise InputDecodeError("Input error! " + debug_dump(data_in, secret=self.secret))
        try:
            shipment = ShipmentRequest.model_validate(data_in)
        except ValidationError as e:
            raise InputDecodeError(f"Input error! {e}") from e

        envelope = build_create_request(shipment, self._config.carrier, is_test)
        with self._client() as client:
            result = client.query(envelope, RESULT_KEYS[Verwerking.CREATE], trace)
            label = build_label_response(result, client, trace)

        logger.info(
            "Created On-Time order %s for reference %r",
            label.identifier,
            shipment.reference,
        )
        return label.model_dump()

    def producten(self, data_in: Any, is_test: bool, trace: RequestTrace) -> dict[str, Any]:
        """List the On-Time products available to this account."""
        return self._listing(Verwerking.PRODUCT, is_test, trace)

    def landen(self, data_in: Any, is_test: bool, trace: RequestTrace) -> dict[str, Any]:
        """List the countries On-Time delivers to."""
        return self._listing(Verwerking.LANDEN, is_test, trace)

    def _listing(self, verwerking: Verwerking, is_test: bool, trace: RequestTrace) -> dict[str, Any]:
        envelope = build_verwerking(verwerking, self._config.carrier, is_test)
        with self._client() as client:
            result = client.query(envelope, RESULT_KEYS[verwerking], trace)
        return build_listing_response(result)
