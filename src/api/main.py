"""FastAPI application for the picqer-ontime webhook.

Provides the application factory with the shipping-method router, Basic
auth middleware and a public health endpoint. Run with:

    uvicorn --factory src.api.main:create_app
"""

import logging
import sys
import time as _time
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _pkg_version

import httpx
from fastapi import FastAPI

from src.api.middleware.auth import require_basic_auth
from src.api.routes import shipping_method
from src.cli.config import PicqerOnTimeConfig, load_config
from src.services.shipping_method import ShippingMethodService

logger = logging.getLogger(__name__)


def configure_logging(level: str = "info") -> None:
    """Configure logging to stdout for uvicorn to capture."""
    logging.basicConfig(
        level=level.upper(),
        format="%(levelname)s:%(name)s:%(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    # Ensure our application loggers are captured
    logging.getLogger("src").setLevel(level.upper())


def _app_version() -> str:
    try:
        return _pkg_version("picqer-ontime")
    except PackageNotFoundError:
        return "dev"


def create_app(
    config: PicqerOnTimeConfig | None = None,
    transport: httpx.BaseTransport | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        config: Loaded configuration; loaded from the standard locations if None.
        transport: Optional httpx transport for the carrier client (tests).

    Returns:
        Configured FastAPI instance.
    """
    if config is None:
        config = load_config()
        configure_logging(config.server.log_level)

    app = FastAPI(
        title="picqer-ontime",
        description="Picqer custom shipping method for On-Time",
        version=_app_version(),
    )
    app.state.config = config
    app.state.service = ShippingMethodService(config, transport=transport)
    app.state.started_at = _time.monotonic()

    if not config.auth.user and not config.auth.password:
        logger.warning("No auth.user/auth.password configured; Basic auth is disabled.")
    if not config.carrier.apipswd:
        logger.warning("carrier.apipswd is empty; On-Time will reject every request.")

    app.middleware("http")(require_basic_auth)
    app.include_router(shipping_method.router)

    @app.get("/health")
    def health() -> dict:
        """Liveness probe."""
        return {
            "status": "ok",
            "version": app.version,
            "uptime_seconds": round(_time.monotonic() - app.state.started_at, 1),
        }

    return app
