"""
Twinning Analyzer.

Coordinated outfits for two people at one venue, built on the same
gateway / parse / fallback pipeline as single-user recommendations:

  person photos -> per-person analysis (vision)
  group photo   -> relationship dynamic (optional)
  venue photo   -> place analysis (vision)
  all of it     -> comprehensive prompt -> reasoning text
  body / skin-tone tables -> two coordinated outfits per person

Each AI step degrades to its own fallback. The only hard failure is an
invalid request (missing photos or names).
"""

import re
from typing import Any, Dict, List, Optional

from config.constants import DEFAULT_GENDER, VALID_GENDERS
from core.logging import get_logger
from core.utils import contains_word, first_non_empty
from stylist.exceptions import AIServiceError, InvalidTwinningRequestError
from stylist.fallback import (
    accessories_for,
    alternative_items,
    colors_for_skin_tone,
    items_for_body_type,
    style_tips_for_body_type,
)
from stylist.gateway import AIGateway
from stylist.links import coordinated_shopping_links
from stylist.models import (
    CoordinatedOutfit,
    CoordinationTips,
    GroupAnalysis,
    PersonAnalysis,
    PlaceAnalysis,
    RelationshipAnalysis,
    TwinningAnalysis,
    TwinningRequest,
)
from stylist.parser import extract_json_payload
from stylist.profile import DEFAULT_FEMALE_BODY, DEFAULT_MALE_BODY, fallback_body_bucket, normalize_skin_tone
from stylist.prompts import (
    build_group_analysis_prompt,
    build_person_analysis_prompt,
    build_twinning_prompt,
    build_venue_analysis_prompt,
)

logger = get_logger(__name__)


# ── Defaults ──────────────────────────────────────────────────────

_DEFAULT_STYLE = {"male": "Smart-casual and confident", "female": "Chic and contemporary"}
_DEFAULT_TRAITS = ["Confident", "Stylish", "Modern", "Approachable"]
_FALLBACK_TRAITS = ["Confident", "Stylish", "Modern"]
_DEFAULT_FEATURES = ["Natural features", "Good proportions", "Confident presence"]
_FALLBACK_FEATURES = ["Natural build", "Good proportions", "Confident presence"]
_DEFAULT_CONFIDENCE = 85
_FALLBACK_CONFIDENCE = 75

_DEFAULT_VENUE_COLORS = ["Neutral", "Warm", "Modern", "Elegant"]
_FALLBACK_VENUE_COLORS = ["Neutral", "Warm", "Modern"]
_COLOR_WORDS = (
    "red", "blue", "green", "yellow", "orange", "purple", "pink", "brown", "black",
    "white", "gray", "beige", "gold", "silver", "cream", "navy", "maroon",
)

_CATEGORY_DRESS_CODES = {
    "business": "Business professional",
    "wedding": "Formal/Semi-formal",
    "party": "Party chic",
    "casual": "Smart casual",
    "date": "Smart casual",
    "festival": "Cultural/Traditional",
    "workout": "Athletic wear",
    "brunch": "Chic casual",
    "travel": "Comfortable chic",
}
_DEFAULT_DRESS_CODE = "Smart casual"

_DEFAULT_REASONING = "Based on comprehensive analysis."

_GENDER_LINE = "Gender:"


# ── Text extraction (pure) ────────────────────────────────────────

def _field(text: str, label: str, allow_commas: bool = False) -> Optional[str]:
    """Value after ``label:`` up to the end of the clause or line."""
    stop = r"[^.!\n]" if allow_commas else r"[^.!,\n]"
    match = re.search(label + r"[:\s]*(" + stop + r"+)", text, re.IGNORECASE)
    if not match:
        return None
    value = match.group(1).strip()
    return value or None


def _split_list(value: str, limit: int) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()][:limit]


def has_gender_line(text: str) -> bool:
    return _GENDER_LINE.lower() in (text or "").lower()


def extract_gender(text: str) -> Optional[str]:
    value = _field(text, "gender")
    if value:
        value = value.lower()
        if "female" in value:
            return "female"
        if "male" in value:
            return "male"

    if any(contains_word(text, w) for w in ("she", "her", "woman")):
        return "female"
    if any(contains_word(text, w) for w in ("he", "his", "man")):
        return "male"
    return None


def extract_body_type(text: str, gender: str) -> str:
    value = _field(text, "body type")
    if value is None:
        match = re.search(
            r"(athletic|slim|heavy|average|hourglass|pear|apple|rectangle|inverted triangle)",
            text or "",
            re.IGNORECASE,
        )
        value = match.group(1) if match else ""
    return fallback_body_bucket(value, gender)


def extract_skin_tone(text: str) -> str:
    value = _field(text, "skin tone")
    if value is None:
        match = re.search(
            r"(fair|light|pale|wheatish|wheat|medium|olive|dusky|brown|tan|dark|deep|rich)"
            r"\s*(?:skin|tone|complexion)",
            text or "",
            re.IGNORECASE,
        )
        value = match.group(1) if match else ""
    return normalize_skin_tone(value)


def extract_style(text: str, gender: str) -> str:
    # Line-anchored so "Body Type" / "Style Assessment" headings do not match
    match = re.search(r"^\s*style[:\s]*([^.!\n]+)", text or "", re.IGNORECASE | re.MULTILINE)
    if match and match.group(1).strip():
        return match.group(1).strip()
    return _DEFAULT_STYLE[gender]


def extract_traits(text: str) -> List[str]:
    value = _field(text, "traits", allow_commas=True)
    traits = _split_list(value, 4) if value else []
    return traits or list(_DEFAULT_TRAITS)


def extract_confidence(text: str) -> int:
    match = re.search(r"confidence[:\s]*(\d+)", text or "", re.IGNORECASE)
    if not match:
        return _DEFAULT_CONFIDENCE
    return max(0, min(100, int(match.group(1))))


def extract_physical_features(text: str) -> List[str]:
    lowered = (text or "").lower()
    rules = (
        (("tall", "height"), "Tall stature"),
        (("athletic", "fit"), "Athletic build"),
        (("elegant", "graceful"), "Elegant posture"),
        (("confident", "strong"), "Confident presence"),
        (("slim", "lean"), "Lean build"),
        (("balanced", "proportioned"), "Well-proportioned"),
    )
    features = [label for needles, label in rules if any(n in lowered for n in needles)]
    return features or list(_DEFAULT_FEATURES)


def _first_keyword(text: str, rules, default: str) -> str:
    lowered = (text or "").lower()
    for needles, label in rules:
        if any(n in lowered for n in needles):
            return label
    return default


def extract_group_analysis(text: str) -> GroupAnalysis:
    lowered = (text or "").lower()
    recommendations = [
        label for needles, label in (
            (("color",), "Coordinate colors for better harmony"),
            (("style",), "Balance different style preferences"),
            (("formal",), "Match formality levels"),
            (("accessory", "accessories"), "Coordinate accessories"),
        )
        if any(n in lowered for n in needles)
    ]
    return GroupAnalysis(
        dynamic=_first_keyword(text, (
            (("couple", "romantic"), "Romantic couple dynamic"),
            (("friends", "friendly"), "Close friends dynamic"),
            (("family", "sibling"), "Family dynamic"),
            (("professional", "business"), "Professional partnership"),
        ), "Complementary personalities with natural chemistry"),
        chemistry=_first_keyword(text, (
            (("great chemistry", "perfect match"), "Excellent visual chemistry"),
            (("complement", "balance"), "Balanced and complementary"),
            (("contrast", "different"), "Beautiful contrast that works well"),
        ), "Natural coordination and harmony"),
        coordination_style=_first_keyword(text, (
            (("formal", "elegant"), "Elegant and sophisticated"),
            (("casual", "relaxed"), "Relaxed and comfortable"),
            (("trendy", "modern"), "Modern and stylish"),
        ), "Balanced and harmonious"),
        visual_harmony=_first_keyword(text, (
            (("perfect harmony", "excellent balance"), "Perfect visual harmony"),
            (("complement", "work well"), "Complementary and balanced"),
        ), "Harmonious pairing with good balance"),
        recommendations=recommendations or [
            "Focus on color coordination", "Balance individual styles", "Maintain personal identity",
        ],
    )


def extract_dominant_colors(text: str) -> List[str]:
    value = _field(text, "dominant colors", allow_commas=True)
    if value:
        colors = _split_list(value, 4)
        if colors:
            return colors
    found = [c.capitalize() for c in _COLOR_WORDS if contains_word(text, c)]
    return found[:4] or list(_DEFAULT_VENUE_COLORS)


def extract_place_analysis(text: str, category: str, time_of_day: str) -> PlaceAnalysis:
    lighting = _field(text, "lighting") or _first_keyword(text, (
        (("natural light", "daylight"), "Natural daylight"),
        (("warm light", "golden"), "Warm ambient lighting"),
        (("cool light", "bright"), "Cool bright lighting"),
        (("dim", "soft"), "Soft dim lighting"),
    ), "Balanced natural lighting")

    lowered = (text or "").lower()
    recommendations = [
        label for needles, label in (
            (("formal",), "Dress appropriately for formal setting"),
            (("color",), "Match venue color scheme"),
            (("lighting",), "Consider lighting for fabric choices"),
            (("weather", "outdoor"), "Consider weather conditions"),
        )
        if any(n in lowered for n in needles)
    ]

    return PlaceAnalysis(
        venue=_field(text, "venue type") or _first_keyword(text, (
            (("restaurant", "dining"), "Restaurant/Dining venue"),
            (("park", "outdoor"), "Outdoor/Park setting"),
            (("mall", "shopping"), "Shopping/Mall venue"),
            (("home", "house"), "Home/Private setting"),
            (("office", "business"), "Business/Office venue"),
            (("hotel", "resort"), "Hotel/Resort venue"),
        ), "Modern venue"),
        atmosphere=_field(text, "atmosphere") or _first_keyword(text, (
            (("romantic", "intimate"), "Romantic and intimate"),
            (("casual", "relaxed"), "Casual and relaxed"),
            (("formal", "elegant"), "Formal and elegant"),
            (("fun", "lively"), "Fun and energetic"),
        ), "Welcoming and stylish"),
        lighting=lighting,
        dominant_colors=extract_dominant_colors(text),
        style=_first_keyword(text, (
            (("modern", "contemporary"), "Modern"),
            (("classic", "traditional"), "Classic"),
            (("rustic", "vintage"), "Rustic"),
            (("elegant", "luxury"), "Elegant"),
            (("minimalist", "simple"), "Minimalist"),
        ), "Contemporary"),
        dress_code=_field(text, "dress code") or _first_keyword(text, (
            (("formal", "dress up"), "Formal"),
            (("business", "professional"), "Business casual"),
            (("casual", "relaxed"), "Smart casual"),
            (("party", "celebration"), "Party attire"),
        ), category_dress_code(category)),
        ambiance=_first_keyword(text, (
            (("cozy", "comfortable"), "Cozy and comfortable"),
            (("sophisticated", "upscale"), "Sophisticated and upscale"),
            (("vibrant", "energetic"), "Vibrant and energetic"),
            (("peaceful", "serene"), "Peaceful and serene"),
        ), "Welcoming and stylish"),
        recommendations=recommendations or [
            "Match venue formality", "Coordinate with environment", "Consider comfort and style",
        ],
        weather_considerations=lighting,
        time_of_day=time_of_day,
        occasion=category,
    )


def category_dress_code(category: str) -> str:
    return _CATEGORY_DRESS_CODES.get((category or "").lower(), _DEFAULT_DRESS_CODE)


def extract_reasoning(text: str) -> Optional[str]:
    """``reasoning`` of the first recommendation in a tolerant-JSON answer."""
    payload, _ = extract_json_payload(text)
    if isinstance(payload, dict):
        payload = payload.get("recommendations")
    if isinstance(payload, list) and payload and isinstance(payload[0], dict):
        reasoning = payload[0].get("reasoning")
        if isinstance(reasoning, str) and reasoning.strip():
            return reasoning.strip()
    return None


def parse_person_analysis(text: str, name: str, provided_gender: Optional[str]) -> PersonAnalysis:
    gender = provided_gender or extract_gender(text) or _default_gender(name)
    return PersonAnalysis(
        name=name,
        gender=gender,
        skin_tone=extract_skin_tone(text),
        body_type=extract_body_type(text, gender),
        style=extract_style(text, gender),
        personality_traits=extract_traits(text),
        color_preferences=colors_for_skin_tone(extract_skin_tone(text)),
        physical_features=extract_physical_features(text),
        confidence=extract_confidence(text),
    )


def _default_gender(name: str) -> str:
    logger.warning("Gender not provided or detected, defaulting", person=name, default=DEFAULT_GENDER)
    return DEFAULT_GENDER


def _valid_gender(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip().lower() in VALID_GENDERS:
        return value.strip().lower()
    return None


# ── Fallbacks ─────────────────────────────────────────────────────

def fallback_person_analysis(name: str, provided_gender: Optional[str]) -> PersonAnalysis:
    gender = provided_gender or _default_gender(name)
    return PersonAnalysis(
        name=name,
        gender=gender,
        skin_tone="Fair",
        body_type=DEFAULT_FEMALE_BODY if gender == "female" else DEFAULT_MALE_BODY,
        style=_DEFAULT_STYLE[gender],
        personality_traits=list(_FALLBACK_TRAITS),
        color_preferences=colors_for_skin_tone("Fair"),
        physical_features=list(_FALLBACK_FEATURES),
        confidence=_FALLBACK_CONFIDENCE,
        is_fallback=True,
    )


def fallback_place_analysis(category: str, context: Dict[str, Any], time_of_day: str) -> PlaceAnalysis:
    return PlaceAnalysis(
        venue=first_non_empty(context.get("venue"), context.get("location")) or "Modern venue",
        atmosphere=first_non_empty(context.get("atmosphere")) or "Stylish and welcoming",
        lighting="Natural lighting",
        dominant_colors=list(_FALLBACK_VENUE_COLORS),
        style="Contemporary",
        dress_code=category_dress_code(category),
        ambiance="Comfortable and stylish",
        recommendations=["Match occasion formality", "Consider venue style", "Coordinate colors"],
        weather_considerations="Natural lighting",
        time_of_day=time_of_day,
        occasion=category,
    )


def default_group_analysis(person1: PersonAnalysis, person2: PersonAnalysis) -> GroupAnalysis:
    """Used when no photo of the pair was supplied."""
    return GroupAnalysis(
        dynamic=f"{person1.style or 'Personal'} and {person2.style or 'individual'} styles complement each other",
        chemistry="Natural coordination between different personalities",
        coordination_style="Balanced and harmonious",
        visual_harmony="Complementary body types and skin tones",
        recommendations=["Focus on color coordination", "Balance different styles", "Maintain individual identity"],
    )


def fallback_group_analysis() -> GroupAnalysis:
    return GroupAnalysis(
        dynamic="Complementary personalities with great potential",
        chemistry="Natural coordination and balance",
        coordination_style="Harmonious and balanced approach",
        visual_harmony="Perfect pairing with individual flair",
        recommendations=[
            "Focus on color coordination", "Balance different styles beautifully", "Maintain your unique identities",
        ],
    )


# ── Outfit assembly ───────────────────────────────────────────────

def coordinated_outfits(
    person: PersonAnalysis,
    place: PlaceAnalysis,
    category: str,
    reasoning: Optional[str] = None,
) -> List[CoordinatedOutfit]:
    """A primary and an alternative outfit for one person."""
    gender = person.gender
    base_colors = colors_for_skin_tone(person.skin_tone)
    venue_colors = place.dominant_colors
    label = (category or "casual").title()

    primary_items = items_for_body_type(person.body_type, gender)
    primary_colors = base_colors[:2] + venue_colors[:1]
    alt_items = alternative_items(person.body_type, gender)
    alt_colors = base_colors[1:3] + venue_colors[1:2]
    first_trait = person.personality_traits[0] if person.personality_traits else "your"

    return [
        CoordinatedOutfit(
            category=f"{label} Perfect",
            items=primary_items,
            colors=primary_colors,
            accessories=accessories_for(gender),
            styling_tips=style_tips_for_body_type(person.body_type, gender) + [
                f"Perfect for {place.atmosphere or 'this'} atmosphere",
                f"Coordinates with {place.venue or 'the'} setting",
            ],
            why_this_works=(
                f"Tailored for {person.body_type or 'your'} body type, {person.skin_tone or 'your'} skin tone, "
                f"and {place.venue or 'this'} venue. {reasoning or _DEFAULT_REASONING}"
            ),
            shopping_links=coordinated_shopping_links(primary_items, primary_colors, gender, venue_colors),
        ),
        CoordinatedOutfit(
            category=f"Alternative {label}",
            items=alt_items,
            colors=alt_colors,
            accessories=accessories_for(gender, alternative=True),
            styling_tips=[
                f"Emphasize {first_trait} personality",
                f"Work with {place.lighting or 'natural'} lighting",
                f"Complement {place.style or 'the'} venue style",
            ],
            why_this_works=(
                "Alternative option that maintains coordination while expressing individual "
                f"{person.style or 'personal'} style in {place.venue or 'this'} setting."
            ),
            shopping_links=coordinated_shopping_links(alt_items, alt_colors, gender, venue_colors),
        ),
    ]


def coordination_tips(person1: PersonAnalysis, person2: PersonAnalysis, place: PlaceAnalysis) -> CoordinationTips:
    colors = place.dominant_colors or list(_FALLBACK_VENUE_COLORS)
    return CoordinationTips(
        color_harmony=[
            f"Use {' and '.join(colors)} from the venue",
            f"{person1.skin_tone} and {person2.skin_tone} skin tones work beautifully together",
        ],
        style_balance=[
            f"Balance {person1.body_type} and {person2.body_type} silhouettes",
            f"Coordinate {person1.style} with {person2.style}",
        ],
        proportion_tips=[
            f"Consider {place.lighting} for fabric choices",
            f"Match {place.dress_code} requirements",
        ],
        accessory_coordination=[
            f"Complement the {place.style} venue style",
            f"Use {colors[0]} as accent color",
        ],
        overall_theme=f"{place.atmosphere} coordination highlighting both personalities",
    )


# =============================================================================
# Analyzer
# =============================================================================

class TwinningAnalyzer:
    """Runs the twinning pipeline against an :class:`AIGateway`."""

    def __init__(self, gateway: AIGateway):
        self.gateway = gateway

    @staticmethod
    def validate(request: TwinningRequest) -> None:
        photos = request.photos
        missing = [
            label for label, value in (
                ("person1 photo", photos.person1),
                ("person2 photo", photos.person2),
                ("place photo", photos.place),
                ("person1 name", request.person1_name),
                ("person2 name", request.person2_name),
            )
            if not (value and value.strip())
        ]
        if missing:
            raise InvalidTwinningRequestError(f"Missing required fields: {', '.join(missing)}")

    def analyze(self, request: TwinningRequest) -> TwinningAnalysis:
        """
        Build the coordinated analysis for a validated request.

        Raises:
            InvalidTwinningRequestError: required photos or names missing
        """
        self.validate(request)

        context = dict(request.context or {})
        category = request.category or "casual"
        time_of_day = first_non_empty(context.get("timeOfDay"), context.get("time_of_day")) or "Day"
        name1, name2 = request.person1_name.strip(), request.person2_name.strip()
        gender1 = _valid_gender(request.person1_gender)
        gender2 = _valid_gender(request.person2_gender) or _valid_gender(context.get("friendGender"))

        logger.info(
            "Starting twinning analysis",
            category=category,
            has_group_photo=bool(request.photos.together),
            ai_enabled=self.gateway.enabled,
        )

        person1 = self.analyze_person(request.photos.person1, name1, gender1)
        person2 = self.analyze_person(request.photos.person2, name2, gender2)
        group, group_fallback = self.analyze_group(request.photos.together, person1, person2)
        place = self.analyze_place(request.photos.place, category, context, time_of_day)

        reasoning = self.recommendation_reasoning(
            build_twinning_prompt(person1, person2, group, place, category, request.occasion, context)
        )

        is_fallback = person1.is_fallback and person2.is_fallback and group_fallback and reasoning is None
        analysis = TwinningAnalysis(
            person1=person1,
            person2=person2,
            place=place,
            relationship=RelationshipAnalysis(
                dynamic=group.dynamic,
                compatibility=group.chemistry,
                contrast=group.visual_harmony,
                recommendations=list(group.recommendations),
            ),
            person1_outfits=coordinated_outfits(person1, place, category, reasoning),
            person2_outfits=coordinated_outfits(person2, place, category, reasoning),
            coordination=coordination_tips(person1, person2, place),
            group=group,
            is_fallback=is_fallback,
        )
        logger.info(
            "Twinning analysis complete",
            category=category,
            person1_fallback=person1.is_fallback,
            person2_fallback=person2.is_fallback,
            is_fallback=is_fallback,
        )
        return analysis

    def analyze_person(self, image_ref: str, name: str, provided_gender: Optional[str]) -> PersonAnalysis:
        if not self.gateway.enabled:
            return fallback_person_analysis(name, provided_gender)
        try:
            text = self.gateway.analyze_image(
                image_ref, build_person_analysis_prompt(name), accept=has_gender_line,
            )
        except AIServiceError as e:
            logger.warning("Person analysis failed, using fallback", person=name, error=str(e))
            return fallback_person_analysis(name, provided_gender)
        return parse_person_analysis(text, name, provided_gender)

    def analyze_group(
        self, image_ref: Optional[str], person1: PersonAnalysis, person2: PersonAnalysis,
    ):
        """Returns ``(group, used_fallback)``."""
        if not image_ref:
            return default_group_analysis(person1, person2), True
        if not self.gateway.enabled:
            return fallback_group_analysis(), True
        try:
            text = self.gateway.analyze_image(image_ref, build_group_analysis_prompt(person1, person2))
        except AIServiceError as e:
            logger.warning("Group analysis failed, using fallback", error=str(e))
            return fallback_group_analysis(), True
        return extract_group_analysis(text), False

    def analyze_place(
        self, image_ref: str, category: str, context: Dict[str, Any], time_of_day: str,
    ) -> PlaceAnalysis:
        if not self.gateway.enabled:
            return fallback_place_analysis(category, context, time_of_day)
        try:
            text = self.gateway.analyze_image(image_ref, build_venue_analysis_prompt(category, context))
        except AIServiceError as e:
            logger.warning("Venue analysis failed, using fallback", category=category, error=str(e))
            return fallback_place_analysis(category, context, time_of_day)
        return extract_place_analysis(text, category, time_of_day)

    def recommendation_reasoning(self, prompt: str) -> Optional[str]:
        if not self.gateway.enabled:
            return None
        try:
            text = self.gateway.generate_text(prompt)
        except AIServiceError as e:
            logger.warning("Twinning recommendations failed, using table reasoning", error=str(e))
            return None
        return extract_reasoning(text)
