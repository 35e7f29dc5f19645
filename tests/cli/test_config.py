"""Tests for CLI configuration loading and validation."""

import os

import pytest
import yaml
from pydantic import ValidationError

from src.cli.config import (
    CarrierConfig,
    PicqerOnTimeConfig,
    ProductTier,
    ServerConfig,
    load_config,
    resolve_env_vars,
)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    """Keep real config files and PICQER_ONTIME_* variables out of the tests."""
    for key in list(os.environ):
        if key.startswith("PICQER_ONTIME_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))


def _write(path, data) -> str:
    path.write_text(yaml.safe_dump(data, allow_unicode=True))
    return str(path)


class TestCarrierConfig:
    """Tests for carrier defaults and validation."""

    def test_defaults(self):
        cfg = CarrierConfig()
        assert cfg.apiurl == "https://api.asx.be/DISTRI/"
        assert cfg.apipswd == ""
        assert cfg.test is False
        assert cfg.timeout == 30.0
        assert cfg.product_tiers() == [
            (60, "COLLI 30-60kg - 0.4 - 0 - 60"),
            (90, "minipallet 60-90 kg - 0.6 - 0 - 90"),
            (300, "PALLET >90 kg - 1 - 0 - 300"),
        ]
        assert cfg.max_tier_kg() == 300

    def test_numbers_become_strings(self):
        """YAML ints for klantnr and phone are accepted as strings."""
        cfg = CarrierConfig(klantnr=12345, sender_telephone=3212345678)
        assert cfg.klantnr == "12345"
        assert cfg.sender_telephone == "3212345678"

    def test_empty_tiers_rejected(self):
        with pytest.raises(ValidationError, match="at least one product tier"):
            CarrierConfig(producten=[])

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            CarrierConfig(timeout=0)

    def test_tier_needs_name(self):
        with pytest.raises(ValidationError):
            ProductTier(limit=10, name="")


class TestServerConfig:
    """Tests for server defaults."""

    def test_defaults(self):
        cfg = ServerConfig()
        assert cfg.host == "127.0.0.1"
        assert cfg.port == 8000
        assert cfg.log_level == "info"
        assert cfg.log_file is None


class TestResolveEnvVars:
    """Tests for ${VAR} resolution."""

    def test_resolves(self, monkeypatch):
        monkeypatch.setenv("ONTIME_PASS", "from-env")
        assert resolve_env_vars("${ONTIME_PASS}") == "from-env"

    def test_missing_var_is_empty(self, monkeypatch):
        monkeypatch.delenv("NOPE_NOT_SET", raising=False)
        assert resolve_env_vars("x${NOPE_NOT_SET}y") == "xy"


class TestLoadConfig:
    """Tests for load_config."""

    def test_defaults_without_file(self):
        assert load_config() == PicqerOnTimeConfig()

    def test_explicit_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "missing.yaml"))

    def test_loads_yaml(self, tmp_path):
        path = _write(
            tmp_path / "custom.yaml",
            {
                "carrier": {
                    "gebruiker": "warehouse@example.com",
                    "klantnr": 4242,
                    "apipswd": "pw",
                    "producten": [{"limit": 30, "name": "SMALL"}],
                },
                "auth": {"user": "picqer", "password": "hunter2"},
                "server": {"port": 9000, "log_file": "/tmp/audit.log"},
            },
        )
        cfg = load_config(path)
        assert cfg.carrier.klantnr == "4242"
        assert cfg.carrier.product_tiers() == [(30, "SMALL")]
        assert cfg.auth.user == "picqer"
        assert cfg.server.port == 9000
        assert cfg.server.log_file == "/tmp/audit.log"

    def test_env_var_references(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ONTIME_PASS", "from-env")
        path = _write(tmp_path / "custom.yaml", {"carrier": {"apipswd": "${ONTIME_PASS}"}})
        assert load_config(path).carrier.apipswd == "from-env"

    def test_env_overrides(self, tmp_path, monkeypatch):
        path = _write(tmp_path / "custom.yaml", {"carrier": {"apipswd": "from-yaml"}})
        monkeypatch.setenv("PICQER_ONTIME_CARRIER_APIPSWD", "from-override")
        monkeypatch.setenv("PICQER_ONTIME_CARRIER_TEST", "true")
        monkeypatch.setenv("PICQER_ONTIME_SERVER_PORT", "8081")
        cfg = load_config(path)
        assert cfg.carrier.apipswd == "from-override"
        assert cfg.carrier.test is True
        assert cfg.server.port == 8081

    def test_config_path_env(self, tmp_path, monkeypatch):
        path = _write(tmp_path / "elsewhere.yaml", {"auth": {"user": "u", "password": "p"}})
        monkeypatch.setenv("PICQER_ONTIME_CONFIG_PATH", path)
        assert load_config().auth.user == "u"

    def test_finds_file_in_working_directory(self, tmp_path):
        _write(tmp_path / "picqer-ontime.yaml", {"carrier": {"klantnr": "777"}})
        assert load_config().carrier.klantnr == "777"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(str(path)) == PicqerOnTimeConfig()
