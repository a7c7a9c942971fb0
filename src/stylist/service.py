"""
Stylist service facade.

Wires settings into the gateway, recommender, advice repository,
context resolver, profile store and twinning analyzer, and exposes the
operations the HTTP layer calls. Everything here is synchronous; the
refresh fan-out uses a thread pool.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from config.settings import Settings, get_settings
from core.logging import get_logger
from stylist.advice import AdviceRepository, filter_advice
from stylist.analytics import RequestCounter
from stylist.body_analysis import BodyTypeAnalyzer
from stylist.context_resolver import ContextResolver, topography_styling
from stylist.exceptions import AdviceUnavailableError
from stylist.fallback import with_weather_tips
from stylist.gateway import AIGateway, OpenAIProvider, RateLimiter
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
)
from stylist.profile_store import InMemoryProfileStore, ProfileStore, SupabaseProfileStore
from stylist.recommender import OutfitRecommender
from stylist.sequencing import ResponseSequencer
from stylist.style_check import StyleChecker
from stylist.twinning import TwinningAnalyzer

logger = get_logger(__name__)


@dataclass
class RefreshResult:
    profile: Optional[UserProfile] = None
    advice: Optional[AdviceMatch] = None
    advice_status: str = "no_match"        # "matched" | "no_match" | "unavailable"
    outfits: Optional[RecommendationResult] = None
    errors: Dict[str, str] = field(default_factory=dict)


def build_gateway(settings: Settings, counter: RequestCounter) -> AIGateway:
    provider = None
    if settings.ai_available:
        provider = OpenAIProvider(
            api_key=settings.openai_api_key,
            text_model=settings.stylist_model,
            vision_model=settings.vision_model,
            timeout=settings.ai_request_timeout_seconds,
        )
    else:
        logger.info("AI provider disabled, outfits will use curated fallbacks")

    return AIGateway(
        provider,
        max_retries=settings.ai_max_retries,
        retry_delay_seconds=settings.ai_retry_delay_seconds,
        rate_limiter=RateLimiter(settings.ai_rate_limit_calls, settings.ai_rate_limit_window_seconds),
        on_request=counter.record,
    )


def build_profile_store(settings: Settings) -> ProfileStore:
    if settings.supabase_configured:
        from config.database import get_supabase_client_optional
        client = get_supabase_client_optional()
        if client is not None:
            return SupabaseProfileStore(client, settings.profiles_table)
        logger.warning("Supabase client unavailable, using in-memory profile store")
    return InMemoryProfileStore()


class StylistService:
    """
    Facade over every stylist component.

    Collaborators can be injected; anything omitted is built from
    ``settings``.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        profile_store: Optional[ProfileStore] = None,
        gateway: Optional[AIGateway] = None,
        advice_repository: Optional[AdviceRepository] = None,
        context_resolver: Optional[ContextResolver] = None,
        request_counter: Optional[RequestCounter] = None,
    ):
        self.settings = settings or get_settings()
        self.request_counter = request_counter or RequestCounter()
        self.gateway = gateway or build_gateway(self.settings, self.request_counter)
        self.profile_store = profile_store or build_profile_store(self.settings)
        self.advice_repository = advice_repository or AdviceRepository(
            self.settings.advice_data_url, self.settings.advice_request_timeout_seconds,
        )
        self.context_resolver = context_resolver or ContextResolver.from_settings(self.settings)
        self.sequencer = ResponseSequencer()
        self.recommender = OutfitRecommender(self.gateway, self.sequencer)
        self.twinning = TwinningAnalyzer(self.gateway)
        self.body_analyzer = BodyTypeAnalyzer(self.gateway)
        self.style_checker = StyleChecker(self.gateway)

    # ── Profiles ──────────────────────────────────────────────────

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        return self.profile_store.get_profile(user_id)

    def update_profile(self, user_id: str, partial: Dict[str, Any]) -> bool:
        updated = self.profile_store.update_profile(user_id, partial)
        logger.info("Profile updated", user_id=user_id, fields=sorted(partial or {}), updated=updated)
        return updated

    def _profile_for(self, user_id: Optional[str], profile: Optional[UserProfile]) -> Optional[UserProfile]:
        if profile is not None or not user_id:
            return profile
        stored = self._stored_profile(user_id)
        if stored is None:
            logger.info("No stored profile, using defaults", user_id=user_id)
        return stored

    def _stored_profile(self, user_id: str) -> Optional[UserProfile]:
        """Stored profile, or None when the store is unreachable."""
        try:
            return self.profile_store.get_profile(user_id)
        except Exception as e:
            logger.warning(
                "Profile store unavailable, using defaults",
                user_id=user_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

    # ── Outfits ───────────────────────────────────────────────────

    def get_outfits(
        self,
        category_slug: str,
        *,
        user_id: Optional[str] = None,
        profile: Optional[UserProfile] = None,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        policy: GenderPolicy = GenderPolicy.PROFILE_FIRST,
        strict: bool = False,
    ) -> RecommendationResult:
        resolved = self._profile_for(user_id, profile)

        weather = topography = None
        if latitude is not None and longitude is not None:
            weather = self.context_resolver.get_weather(latitude, longitude)
            topography = self.context_resolver.get_topography(latitude, longitude)

        return self.recommender.recommend(
            resolved,
            category_slug,
            owner=user_id,
            weather=weather,
            topography=topography,
            policy=policy,
            strict=strict,
        )

    def get_image_outfits(
        self,
        image_ref: str,
        *,
        brief: str = "",
        category_slug: str = "casual-wear",
        user_id: Optional[str] = None,
        profile: Optional[UserProfile] = None,
        policy: GenderPolicy = GenderPolicy.PROFILE_FIRST,
        strict: bool = False,
    ) -> RecommendationResult:
        resolved = self._profile_for(user_id, profile)
        return self.recommender.recommend_from_image(
            resolved,
            image_ref,
            brief=brief,
            category_slug=category_slug,
            owner=user_id,
            policy=policy,
            strict=strict,
        )

    def get_wardrobe_outfits(
        self,
        image_refs: List[str],
        *,
        category_slug: str = "casual-wear",
        user_id: Optional[str] = None,
        profile: Optional[UserProfile] = None,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        policy: GenderPolicy = GenderPolicy.PROFILE_FIRST,
        strict: bool = False,
    ) -> RecommendationResult:
        resolved = self._profile_for(user_id, profile)
        weather = topography = None
        if latitude is not None and longitude is not None:
            weather = self.context_resolver.get_weather(latitude, longitude)
            topography = self.context_resolver.get_topography(latitude, longitude)
        return self.recommender.recommend_from_wardrobe(
            resolved,
            image_refs,
            category_slug=category_slug,
            owner=user_id,
            weather=weather,
            topography=topography,
            policy=policy,
            strict=strict,
        )

    def get_todays_outfit(
        self,
        *,
        user_id: Optional[str] = None,
        profile: Optional[UserProfile] = None,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
    ) -> RecommendationResult:
        """
        One outfit for today's weather.

        Without coordinates the weather is the resolver's estimate. Curated
        outfits get dressing tips for the day's temperatures and conditions.
        """
        resolved = self._profile_for(user_id, profile)
        weather = self.context_resolver.get_weather(latitude, longitude)
        topography = None
        if latitude is not None and longitude is not None:
            topography = self.context_resolver.get_topography(latitude, longitude)

        result = self.recommender.recommend(
            resolved,
            "daily-wear",
            owner=user_id,
            weather=weather,
            topography=topography,
            count=1,
        )
        if result.source == "fallback":
            result.outfits = with_weather_tips(result.outfits, weather)
        return result

    # ── Photo analysis ────────────────────────────────────────────

    def analyze_body_type(
        self,
        image_ref: str,
        *,
        gender: Optional[str] = None,
        user_id: Optional[str] = None,
        save: bool = False,
    ) -> BodyTypeAnalysis:
        """
        Classify a body photo; with ``save`` a confident result is stored
        as the user's ``body_type``.
        """
        if not gender and user_id:
            stored = self._stored_profile(user_id)
            gender = stored.gender if stored is not None else None

        result = self.body_analyzer.analyze(image_ref, gender)
        if save and user_id and result.confidence > 0:
            try:
                self.profile_store.update_profile(user_id, {"body_type": result.body_type})
            except Exception as e:
                logger.warning(
                    "Could not save detected body type",
                    user_id=user_id,
                    error=str(e),
                    error_type=type(e).__name__,
                )
        return result

    def style_check(
        self,
        outfit_image: str,
        *,
        venue_image: Optional[str] = None,
        user_id: Optional[str] = None,
        profile: Optional[UserProfile] = None,
    ) -> StyleCheckResult:
        resolved = self._profile_for(user_id, profile)
        return self.style_checker.check(outfit_image, resolved, venue_image)

    # ── Advice ────────────────────────────────────────────────────

    def get_advice(
        self,
        category_slug: str,
        *,
        user_id: Optional[str] = None,
        profile: Optional[UserProfile] = None,
        policy: GenderPolicy = GenderPolicy.CATEGORY_FIRST,
    ) -> Optional[AdviceMatch]:
        """
        Raises:
            AdviceUnavailableError: the advice dataset could not be loaded
        """
        resolved = self._profile_for(user_id, profile)
        return filter_advice(self.advice_repository.get_entries(), resolved, category_slug, policy)

    # ── Context ───────────────────────────────────────────────────

    def get_weather(self, latitude: Optional[float] = None, longitude: Optional[float] = None) -> WeatherData:
        return self.context_resolver.get_weather(latitude, longitude)

    def get_topography(
        self, latitude: Optional[float] = None, longitude: Optional[float] = None,
    ) -> TopographyData:
        return self.context_resolver.get_topography(latitude, longitude)

    def get_topography_styling(self, topography: TopographyData) -> Dict[str, Any]:
        return topography_styling(topography)

    # ── Twinning ──────────────────────────────────────────────────

    def analyze_twinning(self, request: TwinningRequest, user_id: Optional[str] = None) -> TwinningAnalysis:
        """
        Raises:
            InvalidTwinningRequestError: required photos or names missing
        """
        if not request.person1_gender and user_id:
            stored = self._stored_profile(user_id)
            if stored is not None and stored.gender:
                request = request.model_copy(update={"person1_gender": stored.gender})
        return self.twinning.analyze(request)

    # ── Refresh ───────────────────────────────────────────────────

    def refresh(
        self,
        user_id: str,
        category_slug: str,
        known_profile: Optional[UserProfile] = None,
    ) -> RefreshResult:
        """
        Reload profile, advice and outfits for a category screen.

        With ``known_profile`` all three branches run concurrently.
        Otherwise the profile and the advice dataset load concurrently
        and outfits follow once the profile is known. A failing branch
        is reported in ``errors`` and leaves the others intact.
        """
        result = RefreshResult()

        with ThreadPoolExecutor(max_workers=3, thread_name_prefix="stylist-refresh") as pool:
            profile_future = pool.submit(self.profile_store.get_profile, user_id)

            if known_profile is not None:
                dataset_future = pool.submit(self.advice_repository.get_entries)
                outfits_future = pool.submit(
                    self.recommender.recommend, known_profile, category_slug, owner=user_id,
                )
                result.profile = self._branch(result, "profile", profile_future.result) or known_profile
                self._apply_advice(result, dataset_future.result, known_profile, category_slug)
                result.outfits = self._branch(result, "outfits", outfits_future.result)
            else:
                dataset_future = pool.submit(self.advice_repository.get_entries)
                result.profile = self._branch(result, "profile", profile_future.result)
                self._apply_advice(result, dataset_future.result, result.profile, category_slug)
                result.outfits = self._branch(
                    result,
                    "outfits",
                    lambda: self.recommender.recommend(result.profile, category_slug, owner=user_id),
                )

        logger.info(
            "Refresh complete",
            user_id=user_id,
            category_slug=category_slug,
            advice_status=result.advice_status,
            outfit_source=result.outfits.source if result.outfits else None,
            failed_branches=sorted(result.errors),
        )
        return result

    def _apply_advice(self, result: RefreshResult, load_entries, profile, category_slug: str) -> None:
        try:
            entries = load_entries()
        except AdviceUnavailableError as e:
            result.advice_status = "unavailable"
            result.errors["advice"] = str(e)
            return
        result.advice = self._branch(result, "advice", lambda: filter_advice(entries, profile, category_slug))
        if result.advice is not None:
            result.advice_status = "matched"

    @staticmethod
    def _branch(result: RefreshResult, name: str, call):
        try:
            return call()
        except Exception as e:
            logger.warning("Refresh branch failed", branch=name, error=str(e), error_type=type(e).__name__)
            result.errors[name] = str(e)
            return None

    # ── Analytics ─────────────────────────────────────────────────

    def ai_request_metrics(self) -> Dict[str, Any]:
        return self.request_counter.snapshot()


# =============================================================================
# Singleton
# =============================================================================

_service: Optional[StylistService] = None
_service_lock = threading.Lock()


def get_stylist_service() -> StylistService:
    """Get or create the StylistService singleton (thread-safe)."""
    global _service
    if _service is None:
        with _service_lock:
            if _service is None:
                _service = StylistService()
    return _service
