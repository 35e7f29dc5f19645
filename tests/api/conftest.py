"""Pytest fixtures for API tests.

Provides an application wired to the mock carrier and a TestClient for
the webhook endpoint.
"""

from collections.abc import Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.api.main import create_app
from src.api.middleware.auth import reset_rate_limiter
from src.cli.config import PicqerOnTimeConfig
from tests.helpers.mock_ontime import MockOnTime


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Reset rate limiter state between tests."""
    reset_rate_limiter()
    yield
    reset_rate_limiter()


@pytest.fixture
def audit_log(tmp_path) -> str:
    """Path of a fresh audit log file."""
    return str(tmp_path / "picqer-ontime.log")


@pytest.fixture
def app(app_config: PicqerOnTimeConfig, mock_ontime: MockOnTime, audit_log: str) -> FastAPI:
    """Application using the mock carrier and a temporary audit log."""
    config = app_config.model_copy(
        update={"server": app_config.server.model_copy(update={"log_file": audit_log})}
    )
    return create_app(config=config, transport=mock_ontime.transport)


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """TestClient sending no credentials by default."""
    with TestClient(app) as test_client:
        yield test_client
