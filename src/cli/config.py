"""YAML configuration loader with env var resolution and Pydantic validation.

Loads config from (priority order):
1. --config <path> CLI flag (or PICQER_ONTIME_CONFIG_PATH)
2. ./picqer-ontime.yaml (working directory)
3. ~/.picqer-ontime/config.yaml (user home)

Environment variables override YAML: PICQER_ONTIME_<SECTION>_<KEY>.
${VAR} references in YAML values resolve from environment at load time.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.services.ontime_constants import (
    DEFAULT_API_URL,
    DEFAULT_PRODUCT_TIERS,
    DEFAULT_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)

ENV_PREFIX = "PICQER_ONTIME_"
CONFIG_PATH_ENV = "PICQER_ONTIME_CONFIG_PATH"

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


def resolve_env_vars(value: str) -> str:
    """Resolve ${VAR} references in a string from environment variables.

    Args:
        value: String potentially containing ${VAR} references.

    Returns:
        String with all ${VAR} references replaced by their env values.
        Missing env vars resolve to empty string.
    """
    def _replace(match: re.Match) -> str:
        return os.environ.get(match.group(1), "")

    return _ENV_VAR_PATTERN.sub(_replace, value)


def _resolve_env_vars_recursive(data: Any) -> Any:
    """Recursively resolve ${VAR} references in a nested data structure.

    Args:
        data: Dict, list, or scalar value to process.

    Returns:
        Same structure with all string values resolved.
    """
    if isinstance(data, str):
        return resolve_env_vars(data)
    elif isinstance(data, dict):
        return {k: _resolve_env_vars_recursive(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_resolve_env_vars_recursive(item) for item in data]
    return data


class ProductTier(BaseModel):
    """One weight tier: shipments up to ``limit`` kg use product ``name``."""

    limit: int = Field(..., ge=0)
    name: str = Field(..., min_length=1)


class CarrierConfig(BaseModel):
    """On-Time API account and sender contact data."""

    # YAML turns klantnr and phone numbers into ints
    model_config = ConfigDict(coerce_numbers_to_str=True)

    apiurl: str = DEFAULT_API_URL
    gebruiker: str = "user@example.com"
    klantnr: str = "12345"
    apipswd: str = ""
    sender_emailaddress: str = "user@example.com"
    sender_telephone: str = "003212345678"
    producten: list[ProductTier] = [
        ProductTier(limit=limit, name=name) for limit, name in DEFAULT_PRODUCT_TIERS
    ]
    test: bool = False
    timeout: float = Field(DEFAULT_TIMEOUT_SECONDS, gt=0)

    @field_validator("producten")
    @classmethod
    def tiers_not_empty(cls, value: list[ProductTier]) -> list[ProductTier]:
        """Require at least one product tier."""
        if not value:
            raise ValueError("carrier.producten needs at least one product tier")
        return value

    def product_tiers(self) -> list[tuple[int, str]]:
        """Return the tiers as (limit, name) pairs in configured order."""
        return [(tier.limit, tier.name) for tier in self.producten]

    def max_tier_kg(self) -> int:
        """Return the highest configured weight limit in kg."""
        return max(tier.limit for tier in self.producten)


class AuthConfig(BaseModel):
    """HTTP Basic credentials Picqer must present."""

    user: str = ""
    password: str = ""


class ServerConfig(BaseModel):
    """Configuration for the webhook HTTP server process."""

    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "info"
    log_file: str | None = None


class PicqerOnTimeConfig(BaseModel):
    """Top-level configuration for the picqer-ontime adapter."""

    carrier: CarrierConfig = CarrierConfig()
    auth: AuthConfig = AuthConfig()
    server: ServerConfig = ServerConfig()


def _find_config_file() -> Path | None:
    """Search for config file in standard locations.

    Returns:
        Path to config file if found, None otherwise.
    """
    candidates = [
        Path.cwd() / "picqer-ontime.yaml",
        Path.cwd() / "picqer-ontime.yml",
        Path.home() / ".picqer-ontime" / "config.yaml",
        Path.home() / ".picqer-ontime" / "config.yml",
    ]
    for candidate in candidates:
        if candidate.exists():
            return candidate
    return None


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Apply PICQER_ONTIME_<SECTION>_<KEY> env var overrides to config data.

    For example, ``PICQER_ONTIME_CARRIER_APIPSWD`` maps to section
    ``carrier``, field ``apipswd``. Values stay strings; Pydantic coerces
    them to the field type.

    Args:
        data: Parsed YAML config dict.

    Returns:
        Config dict with env var overrides applied.
    """
    known_sections = sorted(
        PicqerOnTimeConfig.model_fields.keys(), key=len, reverse=True
    )
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX) or key == CONFIG_PATH_ENV:
            continue
        suffix = key[len(ENV_PREFIX):].lower()  # e.g. "carrier_apipswd"
        matched_section = None
        matched_field = None
        for section in known_sections:
            section_prefix = section + "_"
            if suffix.startswith(section_prefix):
                matched_section = section
                matched_field = suffix[len(section_prefix):]
                break
        if matched_section is None or not matched_field:
            continue
        if matched_section not in data or data[matched_section] is None:
            data[matched_section] = {}
        if isinstance(data[matched_section], dict):
            data[matched_section][matched_field] = value
    return data


def load_config(config_path: str | None = None) -> PicqerOnTimeConfig:
    """Load configuration from YAML file with env var resolution.

    Args:
        config_path: Explicit path to config file. If None, uses
            PICQER_ONTIME_CONFIG_PATH or searches standard locations.

    Returns:
        Parsed and validated config. Defaults (plus env overrides) when
        no file is found.

    Raises:
        FileNotFoundError: If an explicit config path does not exist.
    """
    config_path = config_path or os.environ.get(CONFIG_PATH_ENV)
    if config_path:
        path: Path | None = Path(config_path).expanduser()
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        path = _find_config_file()

    raw_data: dict[str, Any] = {}
    if path is not None:
        logger.info("Loading config from %s", path)
        with open(path) as f:
            raw_data = yaml.safe_load(f) or {}

    data = _resolve_env_vars_recursive(raw_data)
    data = _apply_env_overrides(data)
    return PicqerOnTimeConfig(**data)
