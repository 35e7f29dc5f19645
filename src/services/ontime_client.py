"""On-Time DISTRI API client.

Synchronous httpx client that posts carrier envelopes and classifies the
answer. Every stage of the exchange fails with its own exception type:

    encode    -> EncodeError
    transport -> TransportError
    decode    -> ResponseDecodeError
    status    -> MissingStatusError / RemoteStatusError
    result    -> MissingResultKeyError

The configured API password never appears in an error message. Each call
records what was sent and received in the caller's ``RequestTrace``.

Example:
    with OnTimeClient(config.carrier) as client:
        trace = RequestTrace()
        result = client.query(envelope, "opdrachten", trace)
        orders = result.rows()
"""

import json
import logging
import platform
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _pkg_version
from typing import Any

import httpx

from src.cli.config import CarrierConfig
from src.errors import (
    EncodeError,
    LabelFetchError,
    MissingResultKeyError,
    MissingStatusError,
    RemoteStatusError,
    ResponseDecodeError,
    TransportError,
)
from src.services.ontime_constants import STATUS_SUCCESS
from src.services.ontime_models import CarrierEnvelope, CarrierResult, RequestTrace
from src.utils.html_text import clean_html
from src.utils.redaction import debug_dump, hide_secret, redact_for_logging

logger = logging.getLogger(__name__)


def _user_agent() -> str:
    """Describe this client, its runtime and platform to the carrier."""
    try:
        own_version = _pkg_version("picqer-ontime")
    except PackageNotFoundError:
        own_version = "dev"
    return (
        f"Mozilla/5.0 (compatible; picqer-ontime/{own_version} API Client"
        f"; {platform.system()}; Python/{platform.python_version()}"
        f"; httpx/{httpx.__version__})"
    )


def format_remarks(result: dict[str, Any], secret: str | None = None) -> str:
    """Join the ``remarks[].remark`` strings of a carrier result.

    Args:
        result: Decoded carrier response.
        secret: Secret to hide from the fallback dumps.

    Returns:
        Remarks separated by newlines, or a description of what is wrong
        with the remarks field.
    """
    remarks = result.get("remarks")
    if remarks is None:
        return "result[remarks] key not set! " + debug_dump(result, secret=secret)
    if not isinstance(remarks, list):
        return "result[remarks] is not an array! " + debug_dump(result, secret=secret)
    lines = []
    for row in remarks:
        if isinstance(row, dict):
            lines.append(str(row.get("remark", "")))
        else:
            lines.append(str(row))
    return "\n".join(lines)


class OnTimeClient:
    """Client for the On-Time DISTRI JSON endpoint.

    Use as a context manager; the underlying ``httpx.Client`` is opened on
    enter and closed on exit.

    Attributes:
        _carrier: Carrier configuration (endpoint, password, timeout).
        _transport: Optional httpx transport, used by tests to fake the carrier.
    """

    def __init__(
        self,
        carrier: CarrierConfig,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize with carrier configuration.

        Args:
            carrier: Carrier configuration with apiurl, apipswd and timeout.
            transport: Optional httpx transport override.
        """
        self._carrier = carrier
        self._transport = transport
        self._client: httpx.Client | None = None

    def __enter__(self) -> "OnTimeClient":
        """Open the HTTP client."""
        self._client = httpx.Client(
            timeout=self._carrier.timeout,
            headers={
                "User-Agent": _user_agent(),
                "Cache-Control": "no-cache",
            },
            transport=self._transport,
            follow_redirects=True,
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Close the HTTP client."""
        if self._client:
            self._client.close()
            self._client = None

    @property
    def _secret(self) -> str:
        return self._carrier.apipswd

    def _http(self) -> httpx.Client:
        if self._client is None:
            raise RuntimeError("OnTimeClient used outside of its 'with' block")
        return self._client

    def encode(self, envelope: CarrierEnvelope | dict[str, Any], trace: RequestTrace) -> str:
        """Serialize an envelope to the JSON request body.

        Raises:
            EncodeError: If the payload is not JSON-serializable.
        """
        payload = envelope.to_payload() if isinstance(envelope, CarrierEnvelope) else envelope
        trace.data_out = redact_for_logging(payload)
        try:
            json_in = json.dumps(payload, indent=4, ensure_ascii=False, allow_nan=False)
        except (TypeError, ValueError) as e:
            raise EncodeError(
                f"ERROR JSON input! {e}\n\n" + debug_dump(trace.data_out, secret=self._secret)
            ) from e
        # Diagnostics are rendered from the key-redacted copy, never from the wire body
        trace.json_in = hide_secret(
            json.dumps(trace.data_out, indent=4, ensure_ascii=False), self._secret
        )
        return json_in

    def query(
        self,
        envelope: CarrierEnvelope | dict[str, Any],
        result_key: str,
        trace: RequestTrace,
    ) -> CarrierResult:
        """Send an envelope and return the carrier's successful result.

        Args:
            envelope: Carrier envelope (or an already built payload dict).
            result_key: Collection expected back: opdrachten, producten or landen.
            trace: Per-call diagnostic context, filled in place.

        Returns:
            CarrierResult wrapping the unmodified decoded response.

        Raises:
            OnTimeError: One subclass per failed stage, see module docstring.
        """
        json_in = self.encode(envelope, trace)
        secret = self._secret
        url = self._carrier.apiurl

        logger.debug("POST %s expecting %s", url, result_key)
        try:
            response = self._http().post(
                url,
                content=json_in.encode("utf-8"),
                headers={"Content-Type": "application/json"},
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise TransportError(
                f"ERROR ontime transport! {e} ({type(e).__name__})\n\n"
                + trace.json_in
            ) from e

        status_code = response.status_code
        trace.carrier_status = status_code
        trace.json_out = hide_secret(response.text, secret)
        logger.debug("On-Time answered HTTP %d (%d bytes)", status_code, len(response.content))

        try:
            result = json.loads(response.text)
        except ValueError:
            result = None

        if not isinstance(result, dict):
            msg = clean_html(response.text) or "empty response."
            raise ResponseDecodeError(
                hide_secret(
                    f"ERROR ontime result! {msg}\n\n{trace.json_in}",
                    secret,
                ),
                http_status=status_code,
            )

        if result.get("status") is None:
            raise MissingStatusError(
                "ERROR ontime result does not have a status-key! "
                + debug_dump(result, secret=secret),
                http_status=status_code,
            )

        status = str(result["status"])
        if status != STATUS_SUCCESS:
            raise RemoteStatusError(
                hide_secret(f"{status} {format_remarks(result, secret)}", secret),
                http_status=status_code,
            )

        remarks = format_remarks(result, secret)
        if result.get(result_key) is None:
            raise MissingResultKeyError(
                f"ERROR ontime result does not have an {result_key}-key! "
                + debug_dump(result, secret=secret)
                + "\n\n"
                + hide_secret(remarks, secret),
                http_status=status_code,
            )

        return CarrierResult(
            status=status,
            remarks=hide_secret(remarks, secret),
            result_key=result_key,
            raw=result,
        )

    def fetch_label(self, url: str, trace: RequestTrace) -> bytes:
        """Download a label document.

        Args:
            url: Label URL from the created order.
            trace: Per-call diagnostic context.

        Returns:
            Raw PDF bytes.

        Raises:
            LabelFetchError: If the URL is empty, unreachable, or not 2xx.
        """
        trace.label_url = url
        if not url:
            raise LabelFetchError("ERROR ontime order does not have a label url!")

        try:
            response = self._http().get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise LabelFetchError(
                hide_secret(f"ERROR ontime label download! {e} ({type(e).__name__})", self._secret)
            ) from e

        if not response.is_success:
            raise LabelFetchError(
                f"ERROR ontime label download! HTTP {response.status_code} for {url}",
                http_status=response.status_code,
            )
        return response.content
