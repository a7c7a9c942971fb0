"""
Category slug rules.

Everything the stylist needs to know about a category (target gender,
style archetype, the advice dataset's category name and a sentence of
context for the prompt) is derived purely from its slug, e.g.
``"female-street-style"`` or ``"gym-wear"``.
"""

from typing import Optional

from core.logging import get_logger
from stylist.models import CategoryContext, GenderPolicy
from stylist.profile import normalize_gender

logger = get_logger(__name__)


# Substring -> style archetype, first match wins
_STYLE_RULES = (
    ("street", "street"),
    ("formal", "formal"),
    ("ethnic", "ethnic"),
    ("party", "party"),
    ("gym", "gym"),
    ("office", "formal"),
    ("elegant", "elegant"),
)
DEFAULT_STYLE = "casual"

# Substring -> advice dataset category name, first match wins
_DB_CATEGORY_RULES = (
    ("street", "street style"),
    ("formal", "formal wear"),
    ("ethnic", "ethnic wear"),
    ("party", "party wear"),
    ("gym", "gym wear"),
    ("office", "office wear"),
    ("elegant", "elegant wear"),
)

_GYM = "Athletic wear for workouts, sports activities, and fitness routines. Focus on breathable, flexible, moisture-wicking fabrics."
_FORMAL = "Professional and formal occasions like business meetings, interviews, formal events, and corporate settings."
_STREET = "Urban casual fashion for everyday wear, social outings, and trendy casual occasions."
_ETHNIC = "Traditional and cultural clothing for festivals, cultural events, and traditional occasions."
_PARTY = "Festive and celebratory outfits for parties, celebrations, and social gatherings."
_OFFICE = "Professional workplace attire that is comfortable for daily office work."
_ELEGANT = "Sophisticated and refined clothing for upscale events and elegant occasions."
_DATE = "Romantic and attractive outfits perfect for dates and special occasions with a partner."
_OLD_MONEY = "Timeless, sophisticated, and understated luxury fashion with classic elegance."
_DAILY = "Today's outfit for the actual weather and plans of the day, practical and comfortable from morning to evening."

# Ordered: the first key contained in the slug wins
CATEGORY_CONTEXTS = (
    ("gym", _GYM),
    ("gym-wear", _GYM),
    ("formal", _FORMAL),
    ("formal-wear", _FORMAL),
    ("street", _STREET),
    ("street-style", _STREET),
    ("ethnic", _ETHNIC),
    ("ethnic-wear", _ETHNIC),
    ("party", _PARTY),
    ("party-wear", _PARTY),
    ("office", _OFFICE),
    ("office-wear", _OFFICE),
    ("elegant", _ELEGANT),
    ("elegant-wear", _ELEGANT),
    ("date", _DATE),
    ("date-night", _DATE),
    ("old-money", _OLD_MONEY),
    ("daily", _DAILY),
)


def extract_gender_from_category_slug(slug: Optional[str]) -> Optional[str]:
    """
    Read the gender prefix of a slug.

    ``female`` is tested first because ``"female-"`` contains ``"male-"``.
    """
    value = (slug or "").lower()
    if "female-" in value or value.startswith("female"):
        return "female"
    if "male-" in value or value.startswith("male"):
        return "male"
    return None


def strip_gender_prefix(slug: str) -> str:
    """``"female-street-style"`` -> ``"street-style"``."""
    value = slug.lower()
    for prefix in ("female-", "male-"):
        value = value.replace(prefix, "")
    return value


def map_category_to_style(slug: Optional[str]) -> str:
    value = (slug or "").lower()
    for needle, style in _STYLE_RULES:
        if needle in value:
            return style
    return DEFAULT_STYLE


def map_category_slug_to_db_category(slug: Optional[str]) -> str:
    value = (slug or "").lower()
    for needle, db_name in _DB_CATEGORY_RULES:
        if needle in value:
            return db_name
    return value


def get_category_context(slug: Optional[str]) -> str:
    value = (slug or "").lower()
    for key, sentence in CATEGORY_CONTEXTS:
        if key in value:
            return sentence
    return f"Clothing appropriate for {slug} occasions and activities."


def is_twinning_category(slug: Optional[str]) -> bool:
    return "twinning" in (slug or "").lower()


def build_category_context(slug: str) -> CategoryContext:
    return CategoryContext(
        slug=slug,
        derived_gender=extract_gender_from_category_slug(slug),
        style_archetype=map_category_to_style(slug),
        db_category_name=map_category_slug_to_db_category(slug),
        free_text_context=get_category_context(slug),
    )


def resolve_gender(
    profile_gender: Optional[str],
    slug: Optional[str],
    policy: GenderPolicy = GenderPolicy.PROFILE_FIRST,
) -> str:
    """
    Decide the target gender for a request.

    PROFILE_FIRST: the profile's gender always wins (outfit generation).
    CATEGORY_FIRST: a gender prefix in the slug wins (advice filtering).
    Either way the result is exactly ``"male"`` or ``"female"``.
    """
    slug_gender = extract_gender_from_category_slug(slug)
    if policy == GenderPolicy.CATEGORY_FIRST and slug_gender:
        return slug_gender

    if not profile_gender and policy == GenderPolicy.PROFILE_FIRST and slug_gender:
        # Nothing on the profile to prefer
        return slug_gender

    resolved = normalize_gender(profile_gender)
    if slug_gender and slug_gender != resolved:
        logger.info(
            "Category gender differs from resolved gender",
            category_slug=slug,
            slug_gender=slug_gender,
            resolved_gender=resolved,
            policy=policy.value,
        )
    return resolved
