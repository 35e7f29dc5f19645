"""Canonical On-Time payload constants.

Single source of truth for carrier operations, result keys, country aliases
and default product tiers. All payload-building modules import from here
instead of using inline magic strings.

Follows the same pattern as the rest of the service layer (Enum + parallel
lookups).
"""

from enum import Enum


# ---------------------------------------------------------------------------
# Carrier identity
# ---------------------------------------------------------------------------

ONTIME_CARRIER_KEY = "ontime"
DEFAULT_API_URL = "https://api.asx.be/DISTRI/"
DEFAULT_TIMEOUT_SECONDS = 30.0

STATUS_SUCCESS = "SUCCESS"
PASSWORD_PLACEHOLDER = "***"


# ---------------------------------------------------------------------------
# Operations (verwerking) and their result collections
# ---------------------------------------------------------------------------


class Verwerking(str, Enum):
    """Carrier operation names sent as the envelope's ``verwerking``."""

    CREATE = "CREATE"
    PRODUCT = "PRODUCT"
    LANDEN = "LANDEN"


class Omgeving(str, Enum):
    """Carrier environment flag."""

    TEST = "TEST"
    LIVE = "LIVE"


RESULT_KEYS: dict[Verwerking, str] = {
    Verwerking.CREATE: "opdrachten",
    Verwerking.PRODUCT: "producten",
    Verwerking.LANDEN: "landen",
}

# Per-row wrapper key to unwrap for each result collection (None = pass through)
RESULT_UNWRAP_KEYS: dict[str, str | None] = {
    "opdrachten": "opdracht",
    "producten": None,
    "landen": None,
}


# ---------------------------------------------------------------------------
# Country aliases (local language and English) -> ISO alpha-2
# ---------------------------------------------------------------------------

COUNTRY_ALIASES: dict[str, str] = {
    "België": "BE",
    "Belgie": "BE",
    "Belgium": "BE",
    "Lëtzebuerg": "LU",
    "Luxemburg": "LU",
    "Luxembourg": "LU",
    "Nederland": "NL",
    "Netherlands": "NL",
    "The Netherlands": "NL",
}

# Case-insensitive lookup table
COUNTRY_ALIASES_FOLDED: dict[str, str] = {
    alias.casefold(): code for alias, code in COUNTRY_ALIASES.items()
}


# ---------------------------------------------------------------------------
# Product tiers: (weight limit in kg, carrier product name), ascending
# ---------------------------------------------------------------------------

DEFAULT_PRODUCT_TIERS: tuple[tuple[int, str], ...] = (
    (60, "COLLI 30-60kg - 0.4 - 0 - 60"),
    (90, "minipallet 60-90 kg - 0.6 - 0 - 90"),
    (300, "PALLET >90 kg - 1 - 0 - 300"),
)

GRAMS_PER_KG = 1000
GOODS_QUANTITY = 1
