"""Tests for the shipping-method service.

Covers the end-to-end operations against the mock carrier and the uniform
error recovery into ``{"error": message}`` answers.
"""

import base64

import httpx
import pytest

from src.errors import (
    InputDecodeError,
    LabelFetchError,
    NoProductTierError,
    OrderCountError,
    RemoteStatusError,
    UnknownOperationError,
)
from src.services.shipping_method import (
    Operation,
    ShippingMethodService,
    resolve_operation,
)
from tests.helpers.mock_ontime import (
    API_PASSWORD,
    DEFAULT_LABEL_PDF,
    MockOnTime,
    error_response,
    order_response,
)


@pytest.fixture
def service(app_config, mock_ontime) -> ShippingMethodService:
    """Service wired to the mock carrier."""
    return ShippingMethodService(app_config, transport=mock_ontime.transport)


class TestResolveOperation:
    """Tests for method name resolution."""

    def test_empty_means_process(self):
        assert resolve_operation(None) is Operation.PROCESS
        assert resolve_operation("") is Operation.PROCESS

    def test_names_are_case_insensitive(self):
        assert resolve_operation("PRODUCTEN") is Operation.PRODUCTEN
        assert resolve_operation(" landen ") is Operation.LANDEN

    def test_unknown_name(self):
        with pytest.raises(UnknownOperationError) as exc_info:
            resolve_operation("delete")
        assert exc_info.value.message == (
            "Unknown method 'delete'! Supported methods: process, producten, landen."
        )


class TestProcess:
    """Tests for shipment creation."""

    def test_creates_shipment_and_returns_label(self, service, mock_ontime, shipment_data):
        outcome = service.handle(Operation.PROCESS, shipment_data)

        assert outcome.status_code == 200
        assert outcome.error is None
        assert outcome.body["identifier"] == "X123"
        assert outcome.body["trackingurl"] == "https://track.example/X123"
        assert outcome.body["carrier_key"] == "ontime"
        assert base64.b64decode(outcome.body["label_contents_pdf"]) == DEFAULT_LABEL_PDF
        assert mock_ontime.gets[0].url == "https://label.example/X123.pdf"
        assert outcome.trace.label_url == "https://label.example/X123.pdf"
        assert outcome.summary == "X123"

    def test_sends_create_envelope(self, service, mock_ontime, shipment_data):
        service.handle("process", shipment_data)
        payload = mock_ontime.sent_payload()
        assert payload["verwerking"] == "CREATE"
        assert payload["omgeving"] == "LIVE"
        assert payload["leveren"]["land"] == "BE"

    def test_missing_method_defaults_to_process(self, service, mock_ontime, shipment_data):
        outcome = service.handle(None, shipment_data)
        assert outcome.status_code == 200
        assert mock_ontime.sent_payload()["verwerking"] == "CREATE"

    def test_test_flag(self, service, mock_ontime, shipment_data):
        service.handle(Operation.PROCESS, shipment_data, is_test=True)
        assert mock_ontime.sent_payload()["omgeving"] == "TEST"

    def test_carrier_rejection(self, service, mock_ontime, shipment_data):
        mock_ontime.configure_response(error_response(remarks=["invalid address"]))

        outcome = service.handle(Operation.PROCESS, shipment_data)

        assert outcome.status_code == 400
        assert outcome.body == {"error": "ERROR invalid address"}
        assert isinstance(outcome.error, RemoteStatusError)
        assert mock_ontime.gets == []

    def test_no_orders(self, service, mock_ontime, shipment_data):
        response = order_response()
        response["opdrachten"] = []
        mock_ontime.configure_response(response)

        outcome = service.handle(Operation.PROCESS, shipment_data)

        assert outcome.body == {"error": "Error 0 orders found!\nOK"}
        assert isinstance(outcome.error, OrderCountError)

    def test_several_orders(self, service, mock_ontime, shipment_data):
        response = order_response()
        response["opdrachten"].append({"opdracht": {"nummer": "X124"}})
        mock_ontime.configure_response(response)

        outcome = service.handle(Operation.PROCESS, shipment_data)

        assert outcome.body["error"].startswith("Error 2 orders found!")
        assert mock_ontime.gets == []

    @pytest.mark.parametrize("collection", [5, True])
    def test_scalar_orders_collection(self, service, mock_ontime, shipment_data, collection):
        response = order_response()
        response["opdrachten"] = collection
        mock_ontime.configure_response(response)

        outcome = service.handle(Operation.PROCESS, shipment_data)

        assert outcome.body == {"error": "Error 0 orders found!\nOK"}
        assert isinstance(outcome.error, OrderCountError)

    def test_order_without_label_url(self, service, mock_ontime, shipment_data):
        mock_ontime.configure_response(order_response(label=""))
        outcome = service.handle(Operation.PROCESS, shipment_data)
        assert isinstance(outcome.error, LabelFetchError)
        assert outcome.status_code == 400

    def test_label_download_failure_keeps_status(self, service, mock_ontime, shipment_data):
        mock_ontime.configure_label(b"", status_code=404)
        outcome = service.handle(Operation.PROCESS, shipment_data)
        assert isinstance(outcome.error, LabelFetchError)
        assert outcome.status_code == 404

    def test_overweight_shipment(self, service, mock_ontime, shipment_data):
        shipment_data["weight"] = 1250000
        outcome = service.handle(Operation.PROCESS, shipment_data)
        assert isinstance(outcome.error, NoProductTierError)
        assert mock_ontime.calls == []

    def test_transport_failure(self, service, mock_ontime, shipment_data):
        mock_ontime.configure_failure(httpx.ConnectError)
        outcome = service.handle(Operation.PROCESS, shipment_data)
        assert outcome.status_code == 400
        assert outcome.body["error"].startswith("ERROR ontime transport!")


class TestInputErrors:
    """Tests for webhook bodies that are not shipments."""

    @pytest.mark.parametrize("data_in", [None, "not json", [1, 2], 42])
    def test_not_an_object(self, service, mock_ontime, data_in):
        outcome = service.handle(Operation.PROCESS, data_in)
        assert outcome.status_code == 400
        assert outcome.body["error"].startswith("Input error! ")
        assert isinstance(outcome.error, InputDecodeError)
        assert mock_ontime.calls == []

    def test_missing_weight(self, service, mock_ontime, shipment_data):
        del shipment_data["weight"]
        outcome = service.handle(Operation.PROCESS, shipment_data)
        assert outcome.body["error"].startswith("Input error! ")
        assert "weight" in outcome.body["error"]

    def test_negative_weight(self, service, shipment_data):
        shipment_data["weight"] = -5
        outcome = service.handle(Operation.PROCESS, shipment_data)
        assert isinstance(outcome.error, InputDecodeError)

    @pytest.mark.parametrize("block", ["user", "sender", "picklist"])
    def test_null_block_treated_as_empty(self, service, mock_ontime, shipment_data, block):
        shipment_data[block] = None
        outcome = service.handle(Operation.PROCESS, shipment_data)
        assert outcome.status_code == 200
        assert outcome.error is None
        assert len(mock_ontime.posts) == 1

    def test_unknown_method(self, service, mock_ontime, shipment_data):
        outcome = service.handle("delete", shipment_data)
        assert outcome.status_code == 400
        assert outcome.error.code == "E-1002"
        assert outcome.body["error"].startswith("Unknown method 'delete'!")
        assert mock_ontime.calls == []


class TestListings:
    """Tests for the producten and landen operations."""

    def test_producten_passes_rows_through(self, app_config):
        rows = [{"product": {"naam": "COLLI 30-60kg - 0.4 - 0 - 60"}}]
        mock = MockOnTime({"status": "SUCCESS", "remarks": [{"remark": "2 found"}], "producten": rows})
        service = ShippingMethodService(app_config, transport=mock.transport)

        outcome = service.handle("producten")

        assert outcome.status_code == 200
        assert outcome.body == {"remarks": "2 found", "producten": rows}
        payload = mock.sent_payload()
        assert payload["verwerking"] == "PRODUCT"
        assert "goederen" not in payload
        assert mock.gets == []

    def test_landen_ignores_body(self, app_config):
        mock = MockOnTime({"status": "SUCCESS", "remarks": [], "landen": [{"land": "BE"}]})
        service = ShippingMethodService(app_config, transport=mock.transport)

        outcome = service.handle(Operation.LANDEN, {"anything": "goes"}, is_test=True)

        assert outcome.body == {"remarks": "", "landen": [{"land": "BE"}]}
        assert mock.sent_payload()["verwerking"] == "LANDEN"
        assert mock.sent_payload()["omgeving"] == "TEST"

    def test_listing_without_result_key(self, app_config):
        mock = MockOnTime({"status": "SUCCESS", "remarks": []})
        service = ShippingMethodService(app_config, transport=mock.transport)
        outcome = service.handle(Operation.PRODUCTEN)
        assert outcome.body["error"].startswith("ERROR ontime result does not have an producten-key!")


class TestSecretRedaction:
    """The carrier API password never leaves the service."""

    def test_echoed_password_in_remarks(self, service, mock_ontime, shipment_data):
        mock_ontime.configure_response(
            error_response(remarks=[f"login {API_PASSWORD} refused"])
        )
        outcome = service.handle(Operation.PROCESS, shipment_data)
        assert API_PASSWORD not in outcome.body["error"]
        assert API_PASSWORD not in outcome.trace.dump()

    def test_password_in_html_error(self, service, mock_ontime, shipment_data):
        mock_ontime.configure_text(f"<body>bad key {API_PASSWORD}</body>", status_code=500)
        outcome = service.handle(Operation.PROCESS, shipment_data)
        assert outcome.status_code == 500
        assert API_PASSWORD not in outcome.body["error"]
        assert API_PASSWORD not in outcome.trace.dump()

    def test_password_in_webhook_body(self, service, shipment_data):
        """Even an input error dump hides the password."""
        outcome = service.handle(Operation.PROCESS, f"garbage {API_PASSWORD}")
        assert API_PASSWORD not in outcome.body["error"]

    def test_successful_trace(self, service, shipment_data):
        outcome = service.handle(Operation.PROCESS, shipment_data)
        assert API_PASSWORD not in outcome.trace.dump()
        assert outcome.trace.data_out["apipswd"] == "***"
