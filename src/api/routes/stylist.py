"""
Stylist Routes.

Outfit recommendations (by category, from a photo, from wardrobe photos
and for today's weather), style advice, situational context, body type
and style checks from photos, twinning and AI request metrics. Recommendation endpoints never fail because of
the AI provider: they answer with curated fallbacks instead.

Service calls that may reach the AI provider or other network backends
run in the threadpool so they do not block the event loop.
"""

from dataclasses import asdict
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.logging import get_logger
from stylist.categories import build_category_context
from stylist.exceptions import AdviceUnavailableError, InvalidTwinningRequestError
from stylist.models import (
    AdviceMatch,
    BodyTypeAnalysis,
    GenderPolicy,
    RecommendationResult,
    StyleCheckResult,
    TopographyData,
    TwinningAnalysis,
    TwinningRequest,
    UserProfile,
    WeatherData,
    check_image_ref,
)
from stylist.profile import is_profile_complete
from stylist.service import RefreshResult, get_stylist_service
from stylist.style_check import generate_color_palette, get_style_tips

logger = get_logger(__name__)

router = APIRouter(prefix="/api/stylist", tags=["Stylist"])


# =============================================================================
# Request Models
# =============================================================================

def required_photo(value: str) -> str:
    if not value or not value.strip():
        raise ValueError("photo is required")
    return check_image_ref(value)


class OutfitRequest(BaseModel):
    """Request outfit suggestions for a category."""
    category_slug: str = Field(..., min_length=1, description="Category slug, e.g. 'male-street-style'")
    user_id: Optional[str] = Field(default=None, description="Load the stored profile for this user")
    profile: Optional[UserProfile] = Field(default=None, description="Profile to use instead of the stored one")
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    gender_policy: GenderPolicy = Field(default=GenderPolicy.PROFILE_FIRST)
    strict: bool = Field(default=False, description="Drop outfits with cross-gender items")


class AdviceRequest(BaseModel):
    """Request the best advice entry for a category."""
    category_slug: str = Field(..., min_length=1)
    user_id: Optional[str] = None
    profile: Optional[UserProfile] = None
    gender_policy: GenderPolicy = Field(default=GenderPolicy.CATEGORY_FIRST)


class RefreshRequest(BaseModel):
    """Reload profile, advice and outfits for a category screen."""
    user_id: str = Field(..., min_length=1)
    category_slug: str = Field(..., min_length=1)
    known_profile: Optional[UserProfile] = None


class ImageOutfitRequest(BaseModel):
    """Outfits inspired by a venue or aesthetic photo."""
    image: str = Field(..., description="http(s) URL or data:image URI")
    brief: str = Field(default="", max_length=500, description="What the user is dressing for")
    category_slug: str = Field(default="casual-wear", min_length=1)
    user_id: Optional[str] = None
    profile: Optional[UserProfile] = None
    gender_policy: GenderPolicy = Field(default=GenderPolicy.PROFILE_FIRST)
    strict: bool = False

    @field_validator("image")
    @classmethod
    def remote_image_only(cls, value):
        return required_photo(value)


class WardrobeOutfitRequest(BaseModel):
    """Outfits assembled from photos of the user's own clothes."""
    images: List[str] = Field(..., min_length=1, max_length=10)
    category_slug: str = Field(default="casual-wear", min_length=1)
    user_id: Optional[str] = None
    profile: Optional[UserProfile] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    gender_policy: GenderPolicy = Field(default=GenderPolicy.PROFILE_FIRST)
    strict: bool = False

    @field_validator("images")
    @classmethod
    def remote_images_only(cls, value):
        return [required_photo(ref) for ref in value]


class TodaysOutfitRequest(BaseModel):
    user_id: Optional[str] = None
    profile: Optional[UserProfile] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)


class BodyTypeRequest(BaseModel):
    """Detect a body shape from a full-length photo."""
    image: str = Field(..., description="http(s) URL or data:image URI")
    gender: Optional[str] = Field(default=None, description="Narrows the shapes offered; stored profile otherwise")
    user_id: Optional[str] = None
    save: bool = Field(default=False, description="Store a confident result as the user's body type")

    @field_validator("image")
    @classmethod
    def remote_image_only(cls, value):
        return required_photo(value)


class StyleCheckRequest(BaseModel):
    """Rate an outfit photo, optionally against a venue photo."""
    outfit_image: str = Field(..., alias="outfitImage")
    venue_image: Optional[str] = Field(default=None, alias="venueImage")
    user_id: Optional[str] = None
    profile: Optional[UserProfile] = None

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("outfit_image")
    @classmethod
    def outfit_photo(cls, value):
        return required_photo(value)

    @field_validator("venue_image")
    @classmethod
    def venue_photo(cls, value):
        return check_image_ref(value)


# =============================================================================
# Response Formatting
# =============================================================================

def format_recommendation(result: RecommendationResult) -> Dict[str, Any]:
    data = {
        "outfits": [o.model_dump() for o in result.outfits],
        "source": result.source,
        "gender": result.gender,
        "category_slug": result.category_slug,
        "warnings": [asdict(w) for w in result.warnings],
        "sequence": result.sequence,
        "is_stale": result.is_stale,
    }
    if result.scene is not None:
        data["scene"] = asdict(result.scene)
    if result.wardrobe is not None:
        data["wardrobe"] = asdict(result.wardrobe)
    return data


def format_body_type(analysis: BodyTypeAnalysis) -> Dict[str, Any]:
    return asdict(analysis)


def format_style_check(result: StyleCheckResult) -> Dict[str, Any]:
    return result.model_dump(by_alias=True)


def format_advice(match: Optional[AdviceMatch], status: str = "") -> Dict[str, Any]:
    if match is None:
        return {"status": status or "no_match", "advice": None}
    return {
        "status": "matched",
        "advice": {
            "category": match.category,
            "for": match.entry.for_,
            "advice": match.entry.advice,
            "source": match.entry.source,
        },
        "score": match.score,
        "gender": match.gender,
        "match_details": match.match_details,
    }


def format_weather(weather: WeatherData) -> Dict[str, Any]:
    return asdict(weather)


def format_topography(topography: TopographyData) -> Dict[str, Any]:
    data = asdict(topography)
    data["coordinates"] = {
        "latitude": data.pop("latitude"),
        "longitude": data.pop("longitude"),
    }
    return data


def format_twinning(analysis: TwinningAnalysis) -> Dict[str, Any]:
    return {
        "person1": asdict(analysis.person1),
        "person2": asdict(analysis.person2),
        "place": asdict(analysis.place),
        "relationship": asdict(analysis.relationship),
        "group": asdict(analysis.group) if analysis.group else None,
        "outfit_suggestions": {
            "person1": [asdict(o) for o in analysis.person1_outfits],
            "person2": [asdict(o) for o in analysis.person2_outfits],
            "coordination": asdict(analysis.coordination),
        },
        "is_fallback": analysis.is_fallback,
    }


def format_refresh(result: RefreshResult) -> Dict[str, Any]:
    return {
        "profile": result.profile.model_dump(by_alias=True) if result.profile else None,
        "profile_complete": is_profile_complete(result.profile),
        "advice": format_advice(result.advice, result.advice_status),
        "outfits": format_recommendation(result.outfits) if result.outfits else None,
        "errors": result.errors,
    }


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/categories/{slug}", summary="Describe a category slug")
async def get_category(slug: str) -> Dict[str, Any]:
    return asdict(build_category_context(slug))


@router.get("/profile/{user_id}", summary="Get a user's body profile")
async def get_profile(user_id: str) -> Dict[str, Any]:
    service = get_stylist_service()
    profile = await run_in_threadpool(service.get_profile, user_id)
    if profile is None:
        raise HTTPException(status_code=404, detail=f"No profile for user {user_id}")
    return {
        "user_id": user_id,
        "profile": profile.model_dump(by_alias=True),
        "complete": is_profile_complete(profile),
    }


@router.patch("/profile/{user_id}", summary="Update a user's body profile")
async def update_profile(user_id: str, update: UserProfile) -> Dict[str, Any]:
    service = get_stylist_service()
    changes = update.model_dump(exclude_unset=True)
    updated = await run_in_threadpool(service.update_profile, user_id, changes)
    if not updated:
        raise HTTPException(status_code=503, detail="Profile store unavailable")
    return {"user_id": user_id, "updated": sorted(changes)}


@router.post("/outfits", summary="Generate outfit suggestions")
async def get_outfits(request: OutfitRequest) -> Dict[str, Any]:
    """
    Outfit suggestions for a category.

    ``source`` is ``"ai"`` when the provider answered usefully,
    ``"fallback"`` for curated outfits and ``"skipped"`` for twinning
    categories.
    """
    service = get_stylist_service()
    result = await run_in_threadpool(
        lambda: service.get_outfits(
            request.category_slug,
            user_id=request.user_id,
            profile=request.profile,
            latitude=request.latitude,
            longitude=request.longitude,
            policy=request.gender_policy,
            strict=request.strict,
        )
    )
    return format_recommendation(result)


@router.post("/outfits/from-image", summary="Outfits inspired by a venue or aesthetic photo")
async def get_image_outfits(request: ImageOutfitRequest) -> Dict[str, Any]:
    """Outfits plus a ``scene`` description when the provider answered."""
    service = get_stylist_service()
    result = await run_in_threadpool(
        lambda: service.get_image_outfits(
            request.image,
            brief=request.brief,
            category_slug=request.category_slug,
            user_id=request.user_id,
            profile=request.profile,
            policy=request.gender_policy,
            strict=request.strict,
        )
    )
    return format_recommendation(result)


@router.post("/outfits/from-wardrobe", summary="Outfits from the user's own clothes")
async def get_wardrobe_outfits(request: WardrobeOutfitRequest) -> Dict[str, Any]:
    """Outfits plus a ``wardrobe`` inventory when the provider answered."""
    service = get_stylist_service()
    result = await run_in_threadpool(
        lambda: service.get_wardrobe_outfits(
            request.images,
            category_slug=request.category_slug,
            user_id=request.user_id,
            profile=request.profile,
            latitude=request.latitude,
            longitude=request.longitude,
            policy=request.gender_policy,
            strict=request.strict,
        )
    )
    return format_recommendation(result)


@router.post("/outfits/today", summary="One outfit for today's weather")
async def get_todays_outfit(request: TodaysOutfitRequest) -> Dict[str, Any]:
    service = get_stylist_service()
    result = await run_in_threadpool(
        lambda: service.get_todays_outfit(
            user_id=request.user_id,
            profile=request.profile,
            latitude=request.latitude,
            longitude=request.longitude,
        )
    )
    return format_recommendation(result)


@router.post("/body-type", summary="Detect body shape from a photo")
async def analyze_body_type(request: BodyTypeRequest) -> Dict[str, Any]:
    """
    ``confidence`` is 0 when the photo could not be analyzed; the default
    shape is returned with an explanation and nothing is saved.
    """
    service = get_stylist_service()
    analysis = await run_in_threadpool(
        lambda: service.analyze_body_type(
            request.image,
            gender=request.gender,
            user_id=request.user_id,
            save=request.save,
        )
    )
    return format_body_type(analysis)


@router.post("/style-check", summary="Rate an outfit photo")
async def style_check(request: StyleCheckRequest) -> Dict[str, Any]:
    service = get_stylist_service()
    result = await run_in_threadpool(
        lambda: service.style_check(
            request.outfit_image,
            venue_image=request.venue_image,
            user_id=request.user_id,
            profile=request.profile,
        )
    )
    return format_style_check(result)


@router.get("/style-tips", summary="Styling tips and colour palette")
async def style_tips(
    body_type: Optional[str] = Query(default=None, max_length=50),
    skin_tone: Optional[str] = Query(default=None, max_length=50),
) -> Dict[str, Any]:
    return {
        "tips": get_style_tips(body_type, skin_tone),
        "color_palette": generate_color_palette(skin_tone),
    }


@router.post("/advice", summary="Best style advice for a category")
async def get_advice(request: AdviceRequest) -> Dict[str, Any]:
    service = get_stylist_service()
    try:
        match = await run_in_threadpool(
            lambda: service.get_advice(
                request.category_slug,
                user_id=request.user_id,
                profile=request.profile,
                policy=request.gender_policy,
            )
        )
    except AdviceUnavailableError as e:
        logger.warning("Advice unavailable", category_slug=request.category_slug, error=str(e))
        return {"status": "unavailable", "advice": None, "error": str(e)}
    return format_advice(match)


@router.post("/refresh", summary="Reload profile, advice and outfits")
async def refresh(request: RefreshRequest) -> Dict[str, Any]:
    service = get_stylist_service()
    result = await run_in_threadpool(
        service.refresh, request.user_id, request.category_slug, request.known_profile,
    )
    return format_refresh(result)


@router.get("/context/weather", summary="Weather for coordinates")
async def get_weather(
    lat: Optional[float] = Query(default=None, ge=-90, le=90),
    lon: Optional[float] = Query(default=None, ge=-180, le=180),
) -> Dict[str, Any]:
    service = get_stylist_service()
    weather = await run_in_threadpool(service.get_weather, lat, lon)
    return format_weather(weather)


@router.get("/context/topography", summary="Regional styling context for coordinates")
async def get_topography(
    lat: Optional[float] = Query(default=None, ge=-90, le=90),
    lon: Optional[float] = Query(default=None, ge=-180, le=180),
) -> Dict[str, Any]:
    service = get_stylist_service()
    topography = await run_in_threadpool(service.get_topography, lat, lon)
    return {
        "topography": format_topography(topography),
        "styling": service.get_topography_styling(topography),
    }


@router.post("/twinning", summary="Coordinated outfits for two people")
async def analyze_twinning(
    request: TwinningRequest,
    user_id: Optional[str] = Query(default=None, description="Supplies person1's gender from the stored profile"),
) -> Dict[str, Any]:
    service = get_stylist_service()
    try:
        analysis = await run_in_threadpool(service.analyze_twinning, request, user_id)
    except InvalidTwinningRequestError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return format_twinning(analysis)


@router.get("/analytics/ai-requests", summary="AI provider request metrics")
async def ai_request_metrics() -> Dict[str, Any]:
    return get_stylist_service().ai_request_metrics()
