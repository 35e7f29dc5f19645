"""Test helper utilities."""

from tests.helpers.mock_ontime import (
    API_PASSWORD,
    PICQER_AUTH,
    CarrierCall,
    MockOnTime,
    error_response,
    order_response,
)

__all__ = [
    "API_PASSWORD",
    "PICQER_AUTH",
    "CarrierCall",
    "MockOnTime",
    "error_response",
    "order_response",
]
