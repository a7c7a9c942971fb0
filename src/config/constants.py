"""
Application constants and algorithm configuration.

These are values that don't change based on environment but may need
to be tuned or referenced across the codebase.
"""

from dataclasses import dataclass
from typing import Tuple


# =============================================================================
# Advice Scoring
# =============================================================================

@dataclass(frozen=True)
class AdviceScoringConfig:
    """Points awarded per matching attribute of an advice entry's ``for`` list."""

    GENDER: int = 10
    HEIGHT: int = 8
    WEIGHT: int = 15
    SKIN_TONE: int = 12
    STYLE: int = 5

    # Entries with fewer attributes are never scored
    MIN_ATTRIBUTES: int = 5

    # Defaults used when the profile lacks a value
    DEFAULT_HEIGHT: str = "short"
    DEFAULT_SKIN_TONE: str = "fair"
    DEFAULT_GENDER: str = "male"


DEFAULT_ADVICE_SCORING = AdviceScoringConfig()


# =============================================================================
# Profile Buckets
# =============================================================================

@dataclass(frozen=True)
class HeightBuckets:
    """Centimetre thresholds for height buckets (inclusive upper bound on average)."""

    SHORT_BELOW_CM: float = 165.0
    AVERAGE_UP_TO_CM: float = 180.0


DEFAULT_HEIGHT_BUCKETS = HeightBuckets()

DEFAULT_GENDER = "male"
VALID_GENDERS = ("male", "female")


# =============================================================================
# AI Gateway
# =============================================================================

# Provider answers that mean "try again" even though the call succeeded
BUSY_PHRASES: Tuple[str, ...] = (
    "overloaded",
    "temporarily unavailable",
    "high system demand",
    "high demand",
    "rate limit",
    "service busy",
    "service unavailable",
    "try again later",
)

# Busy notices are short apologies; longer answers are treated as content
BUSY_RESPONSE_MAX_CHARS = 400

# Substrings of provider exception messages treated as transient overload
BUSY_ERROR_MARKERS: Tuple[str, ...] = ("503", "overloaded", "429")

# Image references accepted from clients. Local paths are never read.
IMAGE_REF_PREFIXES: Tuple[str, ...] = ("http://", "https://", "data:image/")


# =============================================================================
# Gender Consistency
# =============================================================================

# Words that should not appear in outfits for the given target gender
CROSS_GENDER_MARKERS = {
    "male": ("dress", "skirt", "heels", "blouse", "feminine", "women"),
    "female": ("tie", "masculine", "men's"),
}


# =============================================================================
# Response Parsing Defaults
# =============================================================================

@dataclass(frozen=True)
class OutfitDefaults:
    """Safe values substituted for missing or malformed outfit fields."""

    PRICE_RANGE: str = "budget/mid-range/premium"
    SEASON: str = "all-season"
    ITEMS: Tuple[str, ...] = ("Versatile top", "Comfortable bottom", "Stylish shoes")
    COLORS: Tuple[str, ...] = ("Neutral tones", "Classic colors", "Versatile shades")
    TITLE: str = "Curated Outfit"


DEFAULT_OUTFIT_VALUES = OutfitDefaults()

# Keys an AI may wrap its outfit list in
OUTFIT_LIST_KEYS: Tuple[str, ...] = ("outfits", "recommendations", "suggestions")

DEFAULT_OUTFIT_COUNT = 5


# =============================================================================
# Location Defaults
# =============================================================================

DEFAULT_LATITUDE = 28.6139
DEFAULT_LONGITUDE = 77.2090
DEFAULT_CITY = "Delhi"
COORDINATE_PRECISION = 4
