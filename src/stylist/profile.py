"""
Profile normalization.

Maps free-form user attributes onto the canonical buckets the advice
dataset, prompt builder and fallback tables are keyed by. All functions
are pure; the only side effect is a warning log when a gender value has
to be defaulted.
"""

from typing import Any, Optional

from config.constants import DEFAULT_GENDER, DEFAULT_HEIGHT_BUCKETS, VALID_GENDERS
from core.logging import get_logger
from stylist.models import NormalizedProfile, UserProfile

logger = get_logger(__name__)


# ── Synonym tables ────────────────────────────────────────────────

# Advice dataset weight buckets. Athletic builds share the "average" bucket.
_BODY_TYPE_BUCKETS = {
    "slim": "slim", "thin": "slim", "skinny": "slim",
    "athletic": "average", "muscular": "average", "fit": "average",
    "heavy": "heavy", "chubby": "heavy", "plus": "heavy",
    "obese": "obese",
}
_DEFAULT_BODY_BUCKET = "slim"

# Prompt phrasing for body types
_BODY_TYPE_DESCRIPTIONS = {
    "slim": "slim build",
    "athletic": "athletic build",
    "heavy": "fuller figure",
    "obese": "plus size",
}
_DEFAULT_BODY_DESCRIPTION = "average build"

# Ordered: the first group whose keyword appears wins
_SKIN_TONE_KEYWORDS = (
    ("Fair", ("fair", "light", "pale", "white")),
    ("Wheatish", ("wheatish", "wheat", "medium", "olive", "yellow")),
    ("Dusky", ("dusky", "brown", "tan", "caramel")),
    ("Dark", ("dark", "deep", "rich", "black")),
)
DEFAULT_SKIN_TONE = "Fair"

_MALE_BODY_BUCKETS = (
    ("Athletic", ("athletic", "muscular", "fit", "inverted triangle")),
    ("Slim", ("slim", "lean", "thin", "skinny")),
    ("Heavy", ("heavy", "large", "broad", "chubby", "plus", "obese", "oval", "apple")),
    ("Average", ("average", "normal", "medium", "rectangle", "triangle", "pear")),
)
_FEMALE_BODY_BUCKETS = (
    ("Hourglass", ("hourglass", "curvy")),
    ("Pear", ("pear", "bottom-heavy")),
    ("Apple", ("apple", "top-heavy")),
    ("Inverted Triangle", ("inverted triangle", "broad shoulder")),
    ("Rectangle", ("rectangle", "straight", "athletic")),
)
DEFAULT_MALE_BODY = "Average"
DEFAULT_FEMALE_BODY = "Rectangle"

# Shapes a body photo is classified into, with a one-line definition each
BODY_SHAPES = {
    "male": (
        ("Rectangle", "Shoulders and waist are similar width, minimal waist definition, straight silhouette"),
        ("Triangle", "Hips wider than shoulders, defined waist, fuller lower body (also called Pear)"),
        ("Inverted Triangle", "Shoulders wider than hips, athletic build, broader chest and shoulders"),
        ("Oval", "Fuller midsection, broader torso, less defined waist (also called Apple)"),
    ),
    "female": (
        ("Hourglass", "Balanced bust and hips with defined waist, curvy silhouette"),
        ("Pear", "Hips wider than bust, defined waist, fuller lower body"),
        ("Apple", "Fuller midsection, broader shoulders than hips, less defined waist"),
        ("Rectangle", "Similar bust and hip width, minimal waist definition, straight silhouette"),
        ("Inverted Triangle", "Shoulders and bust wider than hips, athletic build, broader shoulders"),
    ),
    "unknown": (
        ("Rectangle", "Shoulders and waist are similar width, straight silhouette"),
        ("Pear", "Hips wider than shoulders, fuller lower body"),
        ("Apple", "Fuller midsection, broader torso"),
        ("Hourglass", "Balanced proportions with defined waist"),
        ("Triangle", "Lower body wider than upper body"),
        ("Inverted Triangle", "Upper body wider than lower body"),
    ),
}
DEFAULT_BODY_SHAPE = "Rectangle"


# ── Pure helpers (no I/O, easily testable) ───────────────────────

def _to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def normalize_height(height: Any) -> str:
    """
    Bucket a height in centimetres.

    ``< 165`` is short, ``165..180`` (inclusive) average, ``> 180`` tall.
    Non-numeric input yields ``""``.
    """
    cm = _to_float(height)
    if cm is None or cm != cm:  # NaN
        return ""
    if cm < DEFAULT_HEIGHT_BUCKETS.SHORT_BELOW_CM:
        return "short"
    if cm <= DEFAULT_HEIGHT_BUCKETS.AVERAGE_UP_TO_CM:
        return "average"
    return "tall"


def normalize_body_type(body_type: Optional[str]) -> str:
    """Map a free-text body type onto slim / average / heavy / obese (default slim)."""
    if not body_type or not isinstance(body_type, str):
        return _DEFAULT_BODY_BUCKET
    return _BODY_TYPE_BUCKETS.get(body_type.strip().lower(), _DEFAULT_BODY_BUCKET)


def normalize_gender(gender: Optional[str]) -> str:
    """Return ``"male"`` or ``"female"``; anything else defaults to male."""
    value = gender.strip().lower() if isinstance(gender, str) else ""
    if value in VALID_GENDERS:
        return value
    logger.warning("Unrecognized gender, defaulting", gender=gender, default=DEFAULT_GENDER)
    return DEFAULT_GENDER


def normalize_skin_tone(skin_tone: Optional[str]) -> str:
    """Map free-text skin tone onto Fair / Wheatish / Dusky / Dark."""
    if not skin_tone or not isinstance(skin_tone, str):
        return DEFAULT_SKIN_TONE
    tone = skin_tone.lower()
    for bucket, keywords in _SKIN_TONE_KEYWORDS:
        if any(k in tone for k in keywords):
            return bucket
    return DEFAULT_SKIN_TONE


def describe_body_type(body_type: Optional[str]) -> str:
    key = body_type.strip().lower() if isinstance(body_type, str) else ""
    return _BODY_TYPE_DESCRIPTIONS.get(key, _DEFAULT_BODY_DESCRIPTION)


def describe_height(height: Any) -> str:
    bucket = normalize_height(height)
    if bucket == "short":
        return "shorter stature"
    if bucket == "tall":
        return "tall stature"
    return "average height"


def fallback_body_bucket(body_type: Optional[str], gender: str) -> str:
    """
    Map a body type onto the fallback tables' body-shape buckets.

    Male: Athletic / Slim / Heavy / Average. Female: Hourglass / Pear /
    Apple / Inverted Triangle / Rectangle.
    """
    text = body_type.lower() if isinstance(body_type, str) else ""
    if gender == "female":
        groups, default = _FEMALE_BODY_BUCKETS, DEFAULT_FEMALE_BODY
    else:
        groups, default = _MALE_BODY_BUCKETS, DEFAULT_MALE_BODY
    for bucket, keywords in groups:
        if any(k in text for k in keywords):
            return bucket
    return default


def normalize_profile(
    profile: Optional[UserProfile],
    gender_override: Optional[str] = None,
) -> NormalizedProfile:
    """
    Build the canonical profile.

    ``gender_override`` is the gender already resolved by a
    :class:`~stylist.models.GenderPolicy`; without it the profile's own
    gender is normalized.
    """
    profile = profile or UserProfile()
    gender = gender_override if gender_override in VALID_GENDERS else normalize_gender(profile.gender)
    return NormalizedProfile(
        gender=gender,
        height_bucket=normalize_height(profile.height),
        body_type_bucket=normalize_body_type(profile.body_type),
        skin_tone=normalize_skin_tone(profile.skin_tone),
        height_cm=_to_float(profile.height),
        weight_kg=_to_float(profile.weight),
        body_type_raw=(profile.body_type or "").strip(),
        city=profile.city,
    )


def is_profile_complete(profile: Optional[UserProfile]) -> bool:
    """True when every attribute the stylist relies on has been provided."""
    if profile is None:
        return False
    return all([
        _to_float(profile.height) is not None,
        _to_float(profile.weight) is not None,
        bool(profile.body_type and profile.body_type.strip()),
        bool(profile.skin_tone and profile.skin_tone.strip()),
        bool(profile.gender and profile.gender.strip()),
    ])
