"""
Style check: rate an outfit photo.

Pipeline:

  outfit photo (+ optional venue photo) -> vision call -> JSON rating
    -> validated StyleCheckResult on success
    -> curated fallback rating on any AI error or unusable JSON
  -> shopping URLs rebuilt server-side, body-type tips and a skin-tone
     palette attached, cross-gender suggestions flagged

The rating tables below also serve the profile screen on their own.
"""

from typing import List, Optional, Sequence

from pydantic import ValidationError

from config.constants import CROSS_GENDER_MARKERS
from core.logging import get_logger
from core.utils import contains_word
from stylist.exceptions import AIServiceError
from stylist.gateway import AIGateway
from stylist.links import platform_search_url
from stylist.models import NormalizedProfile, StyleCheckResult, StyleShoppingCategory, UserProfile
from stylist.parser import extract_json_payload
from stylist.profile import normalize_profile
from stylist.prompts import build_style_check_prompt

logger = get_logger(__name__)


# ── Tip and palette tables ────────────────────────────────────────

BODY_TYPE_TIPS = {
    "hourglass": ["Emphasize your waist with belts and fitted styles", "Choose clothes that follow your natural silhouette"],
    "pear": ["Draw attention upward with statement tops", "Choose A-line skirts and wide-leg pants"],
    "apple": ["Create vertical lines with long cardigans", "Choose empire waist dresses and tops"],
    "rectangle": ["Create curves with peplum tops and belts", "Add volume with ruffles and textures"],
    "athletic": ["Soften your silhouette with flowing fabrics", "Balance a strong frame with relaxed layers"],
}

SKIN_TONE_TIPS = {
    "fair": ["Cool blues and soft pinks complement your skin", "Avoid colors that wash you out"],
    "wheatish": ["Warm earth tones and jewel colors look great", "Golden yellows and rich browns enhance your glow"],
    "dusky": ["Bold colors and deep jewel tones are perfect", "Rich purples and emerald greens are stunning"],
    "dark": ["Bright colors and metallics look amazing", "Pure whites and vibrant hues create beautiful contrast"],
}

COLOR_PALETTES = {
    "fair": ["#E8F4FD", "#B8E6B8", "#FFB6C1", "#E6E6FA", "#F0F8FF"],
    "wheatish": ["#DEB887", "#CD853F", "#DAA520", "#B8860B", "#F4A460"],
    "dusky": ["#8B4513", "#A0522D", "#CD853F", "#D2691E", "#BC8F8F"],
    "dark": ["#FFFFFF", "#FFD700", "#FF6347", "#00CED1", "#9370DB"],
}


def get_style_tips(body_type: Optional[str], skin_tone: Optional[str]) -> List[str]:
    """Body-type tips followed by skin-tone tips; unknown values add nothing."""
    body = (body_type or "").strip().lower()
    tone = (skin_tone or "").strip().lower()
    return list(BODY_TYPE_TIPS.get(body, [])) + list(SKIN_TONE_TIPS.get(tone, []))


def generate_color_palette(skin_tone: Optional[str]) -> List[str]:
    """Five hex colors for a skin tone (fair palette when unknown)."""
    return list(COLOR_PALETTES.get((skin_tone or "").strip().lower(), COLOR_PALETTES["fair"]))


# ── Result shaping ────────────────────────────────────────────────

_FALLBACK_RATING = {
    "overallRating": 75,
    "analysis": {
        "strengths": [
            "Good basic outfit foundation",
            "Colors complement your skin tone",
            "Appropriate fit for your body type",
            "Well-coordinated overall look",
        ],
        "improvements": [
            "Consider adding statement accessories",
            "Experiment with different textures",
            "Try layering for more visual interest",
        ],
        "recommendations": [
            "Add a structured layer for polish",
            "Include a statement watch or jewelry piece",
            "Consider shoes that complement the outfit color",
            "Try a belt to define your waist",
            "Add a pop of color with accessories",
            "Experiment with different silhouettes",
        ],
        "missingItems": ["Statement accessory", "Structured outerwear", "Complementary footwear"],
        "colorSuggestions": [
            "Deep blues for sophistication",
            "Warm earth tones for your skin",
            "Classic neutrals for versatility",
            "Jewel tones for special occasions",
        ],
    },
    "venueMatch": {
        "score": 75,
        "feedback": "Your outfit has good versatility and can work for various occasions with minor adjustments.",
        "suggestions": [
            "Add formal accessories for business settings",
            "Include casual elements for relaxed environments",
            "Consider the venue dress code and atmosphere",
        ],
    },
}

_FALLBACK_SHOPPING = {
    "male": [
        ("Accessories", [("Classic Watch", "Amazon"), ("Leather Belt", "Amazon")]),
        ("Outerwear", [("Structured Blazer", "Zara"), ("Cardigan", "H&M")]),
    ],
    "female": [
        ("Accessories", [("Statement Necklace", "Amazon"), ("Classic Watch", "Amazon")]),
        ("Outerwear", [("Structured Blazer", "Zara"), ("Cardigan", "H&M")]),
    ],
}


def with_shopping_urls(categories: Sequence[StyleShoppingCategory]) -> List[StyleShoppingCategory]:
    """Replace provider-supplied URLs with platform search URLs built from item names."""
    return [
        category.model_copy(update={
            "items": [
                item.model_copy(update={"url": platform_search_url(item.name, item.platform)})
                for item in category.items
            ],
        })
        for category in categories
    ]


def cross_gender_suggestions(result: StyleCheckResult, gender: str) -> List[str]:
    """Suggestions that name another gender's wardrobe."""
    markers = CROSS_GENDER_MARKERS.get(gender, ())
    texts = (
        result.analysis.recommendations
        + result.analysis.missing_items
        + [item.name for category in result.shopping_links for item in category.items]
    )
    return [
        f"Suggestion '{text}' mentions {marker} for a {gender} target"
        for text in texts
        for marker in markers
        if contains_word(text, marker, allow_plural=True)
    ]


def parse_style_check_response(text: str) -> Optional[StyleCheckResult]:
    """Validated rating from provider text, or None when it is unusable."""
    payload, _ = extract_json_payload(text)
    if not isinstance(payload, dict):
        return None
    try:
        return StyleCheckResult.model_validate(payload)
    except ValidationError as e:
        logger.warning("Style check response failed validation", errors=e.error_count())
        return None


def fallback_style_check(gender: str) -> StyleCheckResult:
    shopping = [
        {"category": name, "items": [{"name": item, "platform": platform} for item, platform in items]}
        for name, items in _FALLBACK_SHOPPING["female" if gender == "female" else "male"]
    ]
    return StyleCheckResult.model_validate({**_FALLBACK_RATING, "shoppingLinks": shopping, "is_fallback": True})


# ── Checker ───────────────────────────────────────────────────────

class StyleChecker:
    """Rates outfit photos through the AI gateway; never raises for AI failures."""

    def __init__(self, gateway: AIGateway):
        self.gateway = gateway

    def check(
        self,
        outfit_image: str,
        profile: Optional[UserProfile] = None,
        venue_image: Optional[str] = None,
    ) -> StyleCheckResult:
        normalized = normalize_profile(profile)
        result = self._rate(outfit_image, venue_image, normalized)

        warnings = cross_gender_suggestions(result, normalized.gender)
        if warnings:
            logger.warning("Style check suggested cross-gender items", gender=normalized.gender, count=len(warnings))

        logger.info(
            "Style check complete",
            overall_rating=result.overall_rating,
            has_venue=bool(venue_image),
            is_fallback=result.is_fallback,
        )
        return result.model_copy(update={
            "shopping_links": with_shopping_urls(result.shopping_links),
            "style_tips": get_style_tips(normalized.body_type_raw, normalized.skin_tone),
            "color_palette": generate_color_palette(normalized.skin_tone),
            "warnings": warnings,
        })

    def _rate(
        self, outfit_image: str, venue_image: Optional[str], profile: NormalizedProfile,
    ) -> StyleCheckResult:
        if not self.gateway.enabled:
            return fallback_style_check(profile.gender)

        images = [outfit_image] + ([venue_image] if venue_image else [])
        try:
            text = self.gateway.analyze_images(images, build_style_check_prompt(profile, bool(venue_image)))
        except AIServiceError as e:
            logger.warning("Style check failed, using fallback rating", error=str(e))
            return fallback_style_check(profile.gender)

        parsed = parse_style_check_response(text)
        if parsed is None:
            logger.warning("Style check response unusable, using fallback rating", response_chars=len(text))
            return fallback_style_check(profile.gender)
        return parsed
