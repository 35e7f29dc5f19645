"""Data contracts for the Picqer webhook and the On-Time API.

Pydantic models validate the inbound webhook and shape the outbound
carrier envelope and outward responses. Internal per-call state
(``CarrierResult``, ``RequestTrace``) uses plain dataclasses.

Carrier field names are Dutch; models expose English attribute names and
serialize with the carrier's names via ``serialization_alias``.
"""

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.services.ontime_constants import (
    GOODS_QUANTITY,
    ONTIME_CARRIER_KEY,
    RESULT_UNWRAP_KEYS,
)
from src.utils.redaction import debug_dump


# ---------------------------------------------------------------------------
# Inbound: Picqer custom shipping method webhook
# ---------------------------------------------------------------------------


class _WebhookBlock(BaseModel):
    """Base for webhook sub-objects: immutable, unknown fields ignored."""

    model_config = ConfigDict(frozen=True, extra="ignore")


class RequesterBlock(_WebhookBlock):
    """Picqer user who requested the shipment."""

    firstname: str | None = None
    lastname: str | None = None


class SenderBlock(_WebhookBlock):
    """Pickup address (the warehouse)."""

    name: str | None = None
    contactname: str | None = None
    address: str | None = None
    address2: str | None = None
    zipcode: str | None = None
    city: str | None = None
    country: str | None = None


class PicklistBlock(_WebhookBlock):
    """Delivery address and contact details from the picklist."""

    deliveryname: str | None = None
    deliverycontact: str | None = None
    deliveryaddress: str | None = None
    deliveryaddress2: str | None = None
    deliveryzipcode: str | None = None
    deliverycity: str | None = None
    deliverycountry: str | None = None
    telephone: str | None = None
    emailaddress: str | None = None


class ShipmentRequest(_WebhookBlock):
    """Decoded Picqer shipment request. Weight is in grams."""

    user: RequesterBlock = RequesterBlock()
    reference: str | None = None
    sender: SenderBlock = SenderBlock()
    picklist: PicklistBlock = PicklistBlock()
    weight: int = Field(..., ge=0)

    @field_validator("user", "sender", "picklist", mode="before")
    @classmethod
    def null_block_is_empty(cls, value: Any) -> Any:
        """Treat a null block like an absent one."""
        return {} if value is None else value


# ---------------------------------------------------------------------------
# Outbound: On-Time envelope
# ---------------------------------------------------------------------------


class ContactRecord(BaseModel):
    """Carrier contact sub-record used for pickup and delivery."""

    company: str = Field("", serialization_alias="bedrijf")
    contact: str = Field("", serialization_alias="contact")
    street: str = Field("", serialization_alias="straat")
    house_number: str = Field("", serialization_alias="huisnr")
    address2: str = Field("", serialization_alias="adres2")
    postcode: str = Field("", serialization_alias="postcode")
    city: str = Field("", serialization_alias="gemeente")
    country: str = Field("", serialization_alias="land")
    phone: str = Field("", serialization_alias="tel")
    track_email: str | None = Field(None, serialization_alias="track_email")


class SenderRecord(BaseModel):
    """The ``verzender`` block: who places the order at the carrier."""

    contact: str = ""
    email: str = ""
    reference: str = Field("", serialization_alias="referentie")
    phone: str = Field("", serialization_alias="tel")


class GoodsLine(BaseModel):
    """One ``goed`` entry of the ``goederen`` list."""

    product: str
    quantity: int = Field(GOODS_QUANTITY, serialization_alias="aantal")
    weight_kg: float = Field(..., serialization_alias="gewicht")


class CarrierEnvelope(BaseModel):
    """Full request body sent to the On-Time API.

    Listing operations only carry the credential fields; CREATE adds the
    shipment payload.
    """

    verwerking: str
    gebruiker: str
    klantnr: str
    apipswd: str
    omgeving: str
    verzender: SenderRecord | None = None
    opdracht: dict[str, Any] | None = None
    ophalen: ContactRecord | None = None
    leveren: ContactRecord | None = None
    goederen: list[GoodsLine] | None = None

    def to_payload(self) -> dict[str, Any]:
        """Serialize with carrier field names, omitting absent blocks."""
        payload = self.model_dump(
            by_alias=True, exclude_none=True, exclude={"goederen"}
        )
        if self.goederen is not None:
            payload["goederen"] = [
                {"goed": line.model_dump(by_alias=True)} for line in self.goederen
            ]
        return payload


# ---------------------------------------------------------------------------
# Carrier result and per-call trace
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CarrierResult:
    """Successful carrier answer.

    Attributes:
        status: Carrier status value (always SUCCESS here).
        remarks: Remark lines joined with newlines.
        result_key: Name of the expected result collection.
        raw: The decoded response object, unmodified.
    """

    status: str
    remarks: str
    result_key: str
    raw: dict[str, Any]

    def rows(self) -> list[Any]:
        """Return the result collection, unwrapping per-row wrappers."""
        unwrap_key = RESULT_UNWRAP_KEYS.get(self.result_key)
        collection = self.raw.get(self.result_key) or []
        if isinstance(collection, dict):
            collection = list(collection.values())
        elif not isinstance(collection, list):
            # A scalar in place of the collection holds no rows
            collection = []
        if unwrap_key is None:
            return list(collection)
        return [
            row.get(unwrap_key, row) if isinstance(row, dict) else row
            for row in collection
        ]


@dataclass
class RequestTrace:
    """Diagnostic context of one invocation.

    Created per call and returned alongside the response, so concurrent
    invocations never share it.
    """

    data_in: Any = None
    data_out: dict[str, Any] | None = None
    json_in: str = ""
    json_out: str | None = None
    carrier_status: int | None = None
    label_url: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    def dump(self, secret: str | None = None) -> str:
        """Render the trace for error details and the audit log."""
        sections = [
            debug_dump(self.json_in, "json_in", secret),
            debug_dump(self.json_out, "json_out", secret),
            debug_dump(self.data_in, "data_in", secret),
            debug_dump(self.data_out, "data_out", secret),
        ]
        return "\n\n".join(sections)


# ---------------------------------------------------------------------------
# Outward responses
# ---------------------------------------------------------------------------


class LabelResponse(BaseModel):
    """Successful shipment answer returned to Picqer."""

    identifier: str
    trackingurl: str
    carrier_key: str = ONTIME_CARRIER_KEY
    label_contents_pdf: str


class ErrorResponse(BaseModel):
    """Error answer returned to Picqer."""

    error: str
