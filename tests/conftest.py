"""Root-level pytest fixtures for all tests.

Provides shared fixtures:
- Carrier and application configuration with a known API password
- A complete Picqer webhook body
- A mock On-Time carrier
"""

import copy
from typing import Any

import pytest

from src.cli.config import AuthConfig, CarrierConfig, PicqerOnTimeConfig
from tests.helpers.mock_ontime import API_PASSWORD, PICQER_AUTH, MockOnTime


SHIPMENT: dict[str, Any] = {
    "user": {"firstname": "Jan", "lastname": "Janssens"},
    "reference": "PICK-20221104-0042",
    "sender": {
        "name": "Telartis Warehouse",
        "contactname": "Expeditie",
        "address": "Kattendijkdok 5A",
        "address2": None,
        "zipcode": "2000",
        "city": "Antwerpen",
        "country": "België",
    },
    "picklist": {
        "deliveryname": "Bakkerij De Vos",
        "deliverycontact": " Els De Vos ",
        "deliveryaddress": "12, Grote Markt",
        "deliveryaddress2": "bus 3",
        "deliveryzipcode": "9000",
        "deliverycity": "Gent",
        "deliverycountry": "Belgium",
        "telephone": "+32 475 12 34 56",
        "emailaddress": "els@devos.example ",
    },
    "weight": 500,
}


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests requiring external services"
    )


@pytest.fixture
def carrier_config() -> CarrierConfig:
    """Carrier configuration with a recognizable API password."""
    return CarrierConfig(
        apiurl="https://api.ontime.example/DISTRI/",
        gebruiker="warehouse@example.com",
        klantnr="12345",
        apipswd=API_PASSWORD,
        sender_emailaddress="shipping@example.com",
        sender_telephone="+32 3 123 45 67",
    )


@pytest.fixture
def app_config(carrier_config: CarrierConfig) -> PicqerOnTimeConfig:
    """Full configuration with Basic auth enabled."""
    return PicqerOnTimeConfig(
        carrier=carrier_config,
        auth=AuthConfig(user=PICQER_AUTH[0], password=PICQER_AUTH[1]),
    )


@pytest.fixture
def shipment_data() -> dict[str, Any]:
    """A complete Picqer webhook body (fresh copy per test)."""
    return copy.deepcopy(SHIPMENT)


@pytest.fixture
def mock_ontime() -> MockOnTime:
    """Mock carrier answering with one created order by default."""
    return MockOnTime()
