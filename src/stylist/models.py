"""
Typed records shared by the stylist components.

Pydantic models are used for anything that crosses the HTTP boundary or
is validated against AI / dataset payloads. Context records built per
request are plain dataclasses.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.utils import is_remote_image_ref


def check_image_ref(value: Optional[str]) -> Optional[str]:
    """
    Field validator for client-supplied photos.

    Blank values pass through so required-photo checks can name what is
    missing; anything else must be an http(s) URL or image data URI.
    """
    if value is None or not value.strip():
        return value
    if not is_remote_image_ref(value):
        raise ValueError("photo must be an http(s) URL or a data:image URI")
    return value.strip()


# =============================================================================
# Profile
# =============================================================================

class UserProfile(BaseModel):
    """Body profile as stored for a user (free-form, pre-normalization)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    height: Optional[Union[float, str]] = Field(default=None, description="Height in cm")
    weight: Optional[Union[float, str]] = Field(default=None, description="Weight in kg")
    body_type: Optional[str] = Field(default=None, alias="bodyType")
    skin_tone: Optional[str] = Field(default=None, alias="skinTone")
    gender: Optional[str] = None
    city: Optional[str] = None


@dataclass(frozen=True)
class NormalizedProfile:
    """Canonical buckets consumed by every downstream component."""
    gender: str                        # always "male" or "female"
    height_bucket: str                 # "short" | "average" | "tall" | ""
    body_type_bucket: str              # "slim" | "average" | "heavy" | "obese"
    skin_tone: str                     # "Fair" | "Wheatish" | "Dusky" | "Dark"
    height_cm: Optional[float] = None
    weight_kg: Optional[float] = None
    body_type_raw: str = ""
    city: Optional[str] = None


class GenderPolicy(str, Enum):
    """Which source decides the target gender when slug and profile disagree."""
    PROFILE_FIRST = "profile_first"
    CATEGORY_FIRST = "category_first"


# =============================================================================
# Category Context
# =============================================================================

@dataclass(frozen=True)
class CategoryContext:
    """Everything derived from a category slug. Recomputed per request."""
    slug: str
    derived_gender: Optional[str]
    style_archetype: str
    db_category_name: str
    free_text_context: str


# =============================================================================
# Outfits
# =============================================================================

class LinkEntry(BaseModel):
    """A shopping or reference link attached to an outfit."""

    model_config = ConfigDict(frozen=True)

    platform: str
    url: str
    description: str
    icon: str


class OutfitSuggestion(BaseModel):
    """
    One outfit recommendation.

    Core fields are required so that schema validation of AI output
    reports exactly which ones are missing; the parser fills those with
    safe defaults.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    title: str
    description: str
    items: List[str] = Field(min_length=1)
    occasion: str
    season: str
    colors: List[str] = Field(min_length=1)
    price_range: str
    style_tips: List[str]
    image_description: str
    shopping_links: List[LinkEntry] = Field(default_factory=list)
    reference_links: List[LinkEntry] = Field(default_factory=list)
    is_fallback: bool = False


class AdviceEntry(BaseModel):
    """One row of the static advice dataset."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    category: str
    for_: List[str] = Field(default_factory=list, alias="for")
    advice: List[str] = Field(default_factory=list)
    source: List[str] = Field(default_factory=list)


@dataclass
class AdviceMatch:
    entry: AdviceEntry
    score: int
    gender: str
    category: str
    match_details: Dict[str, bool] = field(default_factory=dict)


# =============================================================================
# Parsing / Orchestration Results
# =============================================================================

@dataclass(frozen=True)
class ParseWarning:
    code: str                          # "default_applied", "cross_gender_marker", ...
    message: str
    outfit_id: Optional[str] = None


@dataclass
class ParseResult:
    outfits: List[OutfitSuggestion] = field(default_factory=list)
    warnings: List[ParseWarning] = field(default_factory=list)
    degraded: bool = False             # bracket extraction was needed


@dataclass(frozen=True)
class SceneSummary:
    """What the provider saw in an inspiration photo."""
    venue: str = ""
    ambiance: str = ""
    dominant_colors: List[str] = field(default_factory=list)
    tips: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class WardrobeSummary:
    """Inventory of the garments shown in wardrobe photos."""
    total_items: int = 0
    categories: List[str] = field(default_factory=list)
    missing_categories: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)


@dataclass
class RecommendationResult:
    outfits: List[OutfitSuggestion]
    source: str                        # "ai" | "fallback" | "skipped"
    gender: str
    category_slug: str
    warnings: List[ParseWarning] = field(default_factory=list)
    sequence: int = 0
    is_stale: bool = False
    scene: Optional[SceneSummary] = None
    wardrobe: Optional[WardrobeSummary] = None
    raw_text: str = field(default="", repr=False)   # provider answer behind "ai" results


# =============================================================================
# Weather / Topography
# =============================================================================

@dataclass(frozen=True)
class ForecastSlot:
    temp: int
    condition: str


@dataclass(frozen=True)
class WeatherData:
    temperature: int
    condition: str
    description: str
    humidity: int
    wind_speed: int
    location: str
    icon: str
    forecast: Dict[str, ForecastSlot]
    is_estimated: bool = False


@dataclass(frozen=True)
class TopographyData:
    location: str
    region: str
    climate: str
    terrain: str
    cultural_style: str
    seasonal_considerations: str
    local_fashion_trends: List[str]
    latitude: float
    longitude: float


@dataclass(frozen=True)
class SituationalContext:
    """Optional weather/location signal folded into the outfit prompt."""
    weather: Optional[WeatherData] = None
    topography: Optional[TopographyData] = None


# =============================================================================
# Twinning
# =============================================================================

@dataclass
class PersonAnalysis:
    name: str
    gender: str
    skin_tone: str
    body_type: str
    height: str = "Average"
    style: str = "Contemporary"
    personality_traits: List[str] = field(default_factory=list)
    color_preferences: List[str] = field(default_factory=list)
    physical_features: List[str] = field(default_factory=list)
    confidence: int = 85
    is_fallback: bool = False


@dataclass
class PlaceAnalysis:
    venue: str
    atmosphere: str
    lighting: str
    dominant_colors: List[str]
    style: str
    dress_code: str
    ambiance: str
    recommendations: List[str] = field(default_factory=list)
    weather_considerations: str = "Indoor venue"
    time_of_day: str = "Evening"
    occasion: str = ""


@dataclass
class GroupAnalysis:
    dynamic: str
    chemistry: str
    coordination_style: str
    visual_harmony: str
    recommendations: List[str] = field(default_factory=list)


@dataclass
class RelationshipAnalysis:
    dynamic: str
    compatibility: str
    contrast: str
    recommendations: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ShoppingSearchLink:
    platform: str
    search_term: str
    url: str
    icon: str


@dataclass
class CoordinatedOutfit:
    category: str
    items: List[str]
    colors: List[str]
    accessories: List[str]
    styling_tips: List[str]
    why_this_works: str
    shopping_links: List[ShoppingSearchLink] = field(default_factory=list)


@dataclass
class CoordinationTips:
    color_harmony: List[str]
    style_balance: List[str]
    proportion_tips: List[str]
    accessory_coordination: List[str]
    overall_theme: str


@dataclass
class TwinningAnalysis:
    person1: PersonAnalysis
    person2: PersonAnalysis
    place: PlaceAnalysis
    relationship: RelationshipAnalysis
    person1_outfits: List[CoordinatedOutfit]
    person2_outfits: List[CoordinatedOutfit]
    coordination: CoordinationTips
    group: Optional[GroupAnalysis] = None
    is_fallback: bool = False


class TwinningPhotos(BaseModel):
    """Photo references: http(s) URLs or ``data:image/...`` URIs."""

    person1: Optional[str] = None
    person2: Optional[str] = None
    place: Optional[str] = None
    together: Optional[str] = None

    @field_validator("person1", "person2", "place", "together")
    @classmethod
    def remote_refs_only(cls, value: Optional[str]) -> Optional[str]:
        return check_image_ref(value)


class TwinningRequest(BaseModel):
    photos: TwinningPhotos
    person1_name: str = ""
    person2_name: str = ""
    category: str = "casual"
    occasion: Optional[str] = None
    person1_gender: Optional[str] = None
    person2_gender: Optional[str] = None
    context: Dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# Body Type Analysis
# =============================================================================

@dataclass(frozen=True)
class BodyTypeAnalysis:
    body_type: str                     # one of the shapes offered for ``gender``
    confidence: int                    # 0 when a default shape was applied
    analysis: str
    gender: str                        # "male" | "female" | "unknown"
    is_fallback: bool = False


# =============================================================================
# Style Check
# =============================================================================

def clamp_rating(value: Any, default: int) -> int:
    """Coerce a 0-100 score; junk becomes ``default``."""
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, str):
        value = value.strip().rstrip("%")
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if number != number:  # NaN
        return default
    return int(round(min(100.0, max(0.0, number))))


def string_list(value: Any) -> List[str]:
    """Accept a list or a comma-separated string; drop blanks and non-text."""
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, list):
        return []
    return [str(v).strip() for v in value if isinstance(v, (str, int, float)) and str(v).strip()]


class CategoryRatings(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    color_harmony: int = Field(default=70, alias="colorHarmony")
    fit_and_silhouette: int = Field(default=80, alias="fitAndSilhouette")
    occasion_appropriate: int = Field(default=75, alias="occasionAppropriate")
    accessories_balance: int = Field(default=70, alias="accessoriesBalance")
    style_coherence: int = Field(default=75, alias="styleCoherence")

    @field_validator("*", mode="before")
    @classmethod
    def clamp(cls, value: Any, info) -> int:
        return clamp_rating(value, cls.model_fields[info.field_name].default)


class StyleNotes(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    missing_items: List[str] = Field(default_factory=list, alias="missingItems")
    color_suggestions: List[str] = Field(default_factory=list, alias="colorSuggestions")

    @field_validator("*", mode="before")
    @classmethod
    def as_list(cls, value: Any) -> List[str]:
        return string_list(value)


class VenueMatch(BaseModel):
    model_config = ConfigDict(extra="ignore")

    score: int = 75
    feedback: str = ""
    suggestions: List[str] = Field(default_factory=list)

    @field_validator("score", mode="before")
    @classmethod
    def clamp_score(cls, value: Any) -> int:
        return clamp_rating(value, 75)

    @field_validator("suggestions", mode="before")
    @classmethod
    def as_list(cls, value: Any) -> List[str]:
        return string_list(value)


class StyleShoppingItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str
    platform: str = "Google Shopping"
    url: str = ""
    price_range: Optional[str] = Field(default=None, alias="priceRange")


class StyleShoppingCategory(BaseModel):
    model_config = ConfigDict(extra="ignore")

    category: str
    items: List[StyleShoppingItem] = Field(default_factory=list)


class StyleCheckResult(BaseModel):
    """
    Rating of one outfit photo, optionally against a venue photo.

    Validated from the provider's camelCase JSON; ``style_tips``,
    ``color_palette``, ``warnings`` and ``is_fallback`` are set by the
    server.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    overall_rating: int = Field(default=75, alias="overallRating")
    category_ratings: CategoryRatings = Field(default_factory=CategoryRatings, alias="categoryRatings")
    analysis: StyleNotes = Field(default_factory=StyleNotes)
    venue_match: VenueMatch = Field(default_factory=VenueMatch, alias="venueMatch")
    shopping_links: List[StyleShoppingCategory] = Field(default_factory=list, alias="shoppingLinks")
    style_tips: List[str] = Field(default_factory=list)
    color_palette: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    is_fallback: bool = False

    @field_validator("overall_rating", mode="before")
    @classmethod
    def clamp_overall(cls, value: Any) -> int:
        return clamp_rating(value, 75)
