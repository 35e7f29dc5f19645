"""On-Time payload builder for shipment requests.

Transforms a decoded Picqer shipment request into the On-Time DISTRI
``CREATE`` envelope, and builds the bare envelopes for the listing
operations. Also holds the field normalizers the carrier needs: address
splitting, country aliases, phone digits and weight-tier products.

Example:
    from src.services.ontime_payload_builder import build_create_request

    shipment = ShipmentRequest.model_validate(data_in)
    envelope = build_create_request(shipment, config.carrier, is_test=False)
    result = client.query(envelope, "opdrachten", trace)
"""

import re
from collections.abc import Iterable
from typing import Any

from src.cli.config import CarrierConfig
from src.errors import NoProductTierError
from src.services.ontime_constants import (
    COUNTRY_ALIASES_FOLDED,
    DEFAULT_PRODUCT_TIERS,
    GOODS_QUANTITY,
    GRAMS_PER_KG,
    Omgeving,
    Verwerking,
)
from src.services.ontime_models import (
    CarrierEnvelope,
    ContactRecord,
    GoodsLine,
    SenderRecord,
    ShipmentRequest,
)

_STREET_FIRST = re.compile(r"^(\D+)\s+(\d+.*)$")
_NUMBER_FIRST = re.compile(r"^(\d+\S*)\s+(.*)$")
_ADDRESS_TRIM = " \n\r\t\v\x00,"


def clean(value: Any) -> str:
    """Trim a webhook value; None becomes an empty string."""
    if value is None:
        return ""
    return str(value).strip()


def split_address(address: str | None) -> tuple[str, str]:
    """Split a free-text address into street and house number.

    Accepts both the street-first form ("Kattendijkdok 5A") and the
    number-first form ("5A, Kattendijkdok"). When no number is found the
    whole string is the street.

    Args:
        address: Raw address line.

    Returns:
        Tuple of (street, number), both trimmed of whitespace and commas.
    """
    street = clean(address)
    number = ""
    if match := _STREET_FIRST.match(street):
        street, number = match.group(1), match.group(2)
    elif match := _NUMBER_FIRST.match(street):
        number, street = match.group(1), match.group(2)
    return street.strip(_ADDRESS_TRIM), number.strip(_ADDRESS_TRIM)


def format_country(country: str | None) -> str:
    """Change a full country name into its ISO alpha-2 code.

    Only the Benelux names the warehouse deals with are known, in the local
    languages and English. Anything else (including codes) is returned
    trimmed but unchanged, the carrier accepts those as well.

    Args:
        country: Country name such as "Belgium" or "belgie".

    Returns:
        "BE", "LU", "NL", or the input.
    """
    country = clean(country)
    return COUNTRY_ALIASES_FOLDED.get(country.casefold(), country)


def format_telephone(tel: str | None) -> str:
    """Format a telephone number with only digits, a leading plus becomes 00.

    Args:
        tel: Raw phone number ("+32 475 12 34 56").

    Returns:
        Digits-only number ("0032475123456"). No length validation.
    """
    tel = clean(tel)
    if tel.startswith("+"):
        tel = "00" + tel[1:]
    return re.sub(r"\D", "", tel)


def product_name(
    grams: int,
    tiers: Iterable[tuple[int, str]] = DEFAULT_PRODUCT_TIERS,
) -> str:
    """Get the On-Time product name for a weight in grams.

    Args:
        grams: Shipment weight in grams.
        tiers: (limit in kg, product name) pairs, scanned in order.

    Returns:
        Name of the first tier whose limit covers the rounded weight in kg,
        or an empty string when the weight exceeds every tier.
    """
    kilo = round(grams / GRAMS_PER_KG)
    for limit, name in tiers:
        if kilo <= limit:
            return name
    return ""


def build_contact(
    name: str | None,
    contact: str | None,
    address: str | None,
    address2: str | None,
    zipcode: str | None,
    city: str | None,
    country: str | None,
    tel: str | None,
) -> ContactRecord:
    """Build an On-Time contact record from raw address fields."""
    street, number = split_address(address)
    return ContactRecord(
        company=clean(name),
        contact=clean(contact),
        street=street,
        house_number=number,
        address2=clean(address2),
        postcode=clean(zipcode),
        city=clean(city),
        country=format_country(country),
        phone=format_telephone(tel),
    )


def build_verwerking(
    verwerking: Verwerking,
    carrier: CarrierConfig,
    is_test: bool = False,
) -> CarrierEnvelope:
    """Build the credential part of an envelope for an operation.

    Used as-is for the PRODUCT and LANDEN listing calls.

    Args:
        verwerking: Carrier operation.
        carrier: Carrier configuration (credentials).
        is_test: Target the carrier's TEST environment instead of LIVE.

    Returns:
        Envelope without payload.
    """
    omgeving = Omgeving.TEST if is_test or carrier.test else Omgeving.LIVE
    return CarrierEnvelope(
        verwerking=verwerking.value,
        gebruiker=carrier.gebruiker,
        klantnr=carrier.klantnr,
        apipswd=carrier.apipswd,
        omgeving=omgeving.value,
    )


def build_sender(shipment: ShipmentRequest, carrier: CarrierConfig) -> SenderRecord:
    """Build the ``verzender`` block from the requester and configured contact data."""
    requester = f"{clean(shipment.user.firstname)} {clean(shipment.user.lastname)}"
    return SenderRecord(
        contact=requester.strip(),
        email=clean(carrier.sender_emailaddress),
        reference=clean(shipment.reference),
        phone=format_telephone(carrier.sender_telephone),
    )


def build_goods(shipment: ShipmentRequest, carrier: CarrierConfig) -> list[GoodsLine]:
    """Build the single goods line for a shipment.

    Raises:
        NoProductTierError: If the weight exceeds every product tier.
    """
    product = product_name(shipment.weight, carrier.product_tiers())
    if not product:
        raise NoProductTierError(
            f"ERROR no On-Time product for weight {shipment.weight / GRAMS_PER_KG:g} kg! "
            f"Heaviest product tier covers {carrier.max_tier_kg()} kg."
        )
    return [
        GoodsLine(
            product=product,
            quantity=GOODS_QUANTITY,
            weight_kg=shipment.weight / GRAMS_PER_KG,
        )
    ]


def build_create_request(
    shipment: ShipmentRequest,
    carrier: CarrierConfig,
    is_test: bool = False,
) -> CarrierEnvelope:
    """Build the full CREATE envelope for a Picqer shipment.

    Pickup data comes from the webhook's sender block with the configured
    sender phone; delivery data comes from the picklist, including the
    e-mail address the carrier sends track & trace messages to.

    Args:
        shipment: Validated webhook data.
        carrier: Carrier configuration (credentials, sender contact, tiers).
        is_test: Target the carrier's TEST environment.

    Returns:
        Complete CREATE envelope.

    Raises:
        NoProductTierError: If the weight exceeds every product tier.
    """
    sender = shipment.sender
    picklist = shipment.picklist

    ophalen = build_contact(
        sender.name,
        sender.contactname,
        sender.address,
        sender.address2,
        sender.zipcode,
        sender.city,
        sender.country,
        carrier.sender_telephone,
    )

    leveren = build_contact(
        picklist.deliveryname,
        picklist.deliverycontact,
        picklist.deliveryaddress,
        picklist.deliveryaddress2,
        picklist.deliveryzipcode,
        picklist.deliverycity,
        picklist.deliverycountry,
        picklist.telephone,
    )
    leveren.track_email = clean(picklist.emailaddress)

    envelope = build_verwerking(Verwerking.CREATE, carrier, is_test)
    return envelope.model_copy(
        update={
            "verzender": build_sender(shipment, carrier),
            "opdracht": {"neutraal": 0},
            "ophalen": ophalen,
            "leveren": leveren,
            "goederen": build_goods(shipment, carrier),
        }
    )
