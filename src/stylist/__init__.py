"""
Stylist module.

AI outfit recommendation orchestration: profile normalization, category
and situational context, prompt building, the AI gateway, response
parsing, curated fallbacks, link enrichment, advice scoring, body type
and style checks from photos, and twinning analysis.
"""

from stylist.exceptions import (
    AIServiceBusyError,
    AIServiceError,
    AdviceUnavailableError,
    InvalidTwinningRequestError,
    RateLimitExceededError,
    StylistError,
)
from stylist.models import (
    BodyTypeAnalysis,
    GenderPolicy,
    OutfitSuggestion,
    RecommendationResult,
    StyleCheckResult,
    UserProfile,
)
from stylist.service import RefreshResult, StylistService, get_stylist_service

__all__ = [
    "AIServiceBusyError",
    "AIServiceError",
    "AdviceUnavailableError",
    "BodyTypeAnalysis",
    "GenderPolicy",
    "InvalidTwinningRequestError",
    "OutfitSuggestion",
    "RateLimitExceededError",
    "RecommendationResult",
    "RefreshResult",
    "StyleCheckResult",
    "StylistError",
    "StylistService",
    "UserProfile",
    "get_stylist_service",
]
