"""File-based audit log of webhook exchanges.

Each request appends one entry: a separator line, a tab-separated header
(timestamp, client address, HTTP status, first line of the error or the
tracking identifier) and the redacted details of the exchange.

Quick read of the headers only:
    egrep '^[0-9]{4}-' /var/log/picqer-ontime.log
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from src.services.shipping_method import ShippingMethodOutcome
from src.utils.redaction import debug_dump, hide_secret

logger = logging.getLogger(__name__)

SEPARATOR = "=" * 80


def _loggable_body(body: dict[str, Any]) -> dict[str, Any]:
    """Replace the base64 label with its size to keep entries readable."""
    if "label_contents_pdf" not in body:
        return body
    loggable = dict(body)
    loggable["label_contents_pdf"] = f"<{len(body['label_contents_pdf'])} base64 chars>"
    return loggable


def format_audit_entry(
    client_ip: str,
    outcome: ShippingMethodOutcome,
    secret: str | None = None,
    now: datetime | None = None,
) -> str:
    """Render one audit entry.

    Args:
        client_ip: Address of the caller.
        outcome: ShippingMethodOutcome of the request.
        secret: Secret to hide from the entry.
        now: Timestamp override (tests).

    Returns:
        Entry text ending with a newline.
    """
    now = now or datetime.now()
    header = "\t".join([
        now.strftime("%Y-%m-%d %H:%M:%S"),
        client_ip,
        str(outcome.status_code),
        outcome.summary,
    ])
    if outcome.error is not None:
        details = outcome.body["error"]
    else:
        details = debug_dump(_loggable_body(outcome.body), "response")
    details = f"{details}\n\n{outcome.trace.dump()}"
    return hide_secret(f"{SEPARATOR}\n{header}\n{details}\n", secret)


def write_audit_entry(
    log_file: str | None,
    client_ip: str,
    outcome: ShippingMethodOutcome,
    secret: str | None = None,
) -> bool:
    """Append an audit entry to ``log_file``.

    A failing write is logged and never fails the request.

    Args:
        log_file: Path of the audit log; None or empty disables auditing.
        client_ip: Address of the caller.
        outcome: ShippingMethodOutcome of the request.
        secret: Secret to hide from the entry.

    Returns:
        True if an entry was written.
    """
    if not log_file:
        return False
    entry = format_audit_entry(client_ip, outcome, secret)
    try:
        path = Path(log_file).expanduser()
        with path.open("a", encoding="utf-8") as f:
            f.write(entry)
    except OSError as e:
        logger.error("Could not write audit log %s: %s", log_file, e)
        return False
    return True
