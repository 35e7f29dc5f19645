"""FastAPI routes for the Picqer custom shipping method.

Picqer posts the shipment to the configured URL; ``method`` selects the
operation (``process`` creates a shipment, ``producten`` and ``landen``
list carrier data) and ``test`` targets the carrier's TEST environment.
"""

import asyncio
import json
import logging
from typing import Any

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from src.api.middleware.auth import get_client_ip
from src.services.audit_log import write_audit_entry

logger = logging.getLogger(__name__)

router = APIRouter(tags=["shipping-method"])

NO_CACHE_HEADERS = {"Cache-Control": "no-cache"}

_TRUE_FLAGS = frozenset({"1", "true", "on", "yes"})


def parse_flag(value: str | None) -> bool:
    """Read a query flag leniently: 1, true, on and yes are true, anything else false."""
    return value is not None and value.strip().lower() in _TRUE_FLAGS


def decode_body(raw: bytes) -> Any:
    """Decode the raw webhook body.

    Undecodable bodies are passed on as text so the input error shows
    what Picqer actually sent.
    """
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return raw.decode("utf-8", errors="replace")


@router.api_route("/", methods=["GET", "POST"])
@router.api_route("/shipments", methods=["GET", "POST"])
async def shipping_method(
    request: Request,
    method: str | None = Query(None, description="process, producten or landen"),
    test: str | None = Query(None, description="Use the carrier's TEST environment"),
) -> JSONResponse:
    """Run a shipping-method operation and answer with its JSON result.

    Args:
        request: Incoming request; its body is the Picqer shipment.
        method: Operation name. Defaults to process.
        test: Target the carrier's TEST environment when it reads as true.

    Returns:
        JSONResponse with the label, listing or ``{"error": ...}`` body.
    """
    service = request.app.state.service
    config = request.app.state.config

    data_in = decode_body(await request.body())

    # The carrier client is synchronous
    outcome = await asyncio.to_thread(service.handle, method, data_in, parse_flag(test))

    write_audit_entry(
        config.server.log_file,
        get_client_ip(request),
        outcome,
        secret=service.secret,
    )

    return JSONResponse(
        content=outcome.body,
        status_code=outcome.status_code,
        headers=NO_CACHE_HEADERS,
    )
