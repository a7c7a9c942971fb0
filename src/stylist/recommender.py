"""
Outfit recommendation orchestrator.

Control flow for one request:

  profile -> gender policy -> category context -> prompt -> AI gateway
    -> parser (outfits)   on success
    -> fallback synthesizer on any AI error or an empty parse
  -> link enricher -> caller

The same flow serves three inputs: a category alone, a venue or aesthetic
photo (the answer also describes the scene), and wardrobe photos (the
answer also inventories the wardrobe). Every AI failure degrades to
curated outfits; nothing here raises for provider problems.
"""

from typing import Callable, List, Optional, Sequence

from config.constants import DEFAULT_OUTFIT_COUNT
from core.logging import get_logger
from stylist.categories import build_category_context, is_twinning_category, resolve_gender
from stylist.exceptions import AIServiceBusyError, AIServiceError, RateLimitExceededError
from stylist.fallback import synthesize_fallback_outfits
from stylist.gateway import AIGateway
from stylist.links import enrich_outfits
from stylist.models import (
    GenderPolicy,
    NormalizedProfile,
    ParseWarning,
    RecommendationResult,
    SituationalContext,
    TopographyData,
    UserProfile,
    WeatherData,
)
from stylist.parser import parse_outfit_response, parse_scene_summary, parse_wardrobe_summary
from stylist.profile import normalize_profile
from stylist.prompts import build_image_outfit_prompt, build_outfit_prompt, build_wardrobe_outfit_prompt
from stylist.sequencing import ResponseSequencer

logger = get_logger(__name__)

DEFAULT_PHOTO_OUTFIT_COUNT = 3


def _situational(
    weather: Optional[WeatherData], topography: Optional[TopographyData],
) -> Optional[SituationalContext]:
    if weather is None and topography is None:
        return None
    return SituationalContext(weather=weather, topography=topography)


class OutfitRecommender:
    """
    Args:
        gateway: AI gateway; a disabled gateway sends every request to the fallback.
        sequencer: Issues per-owner sequence numbers for stale detection.
        outfit_count: Number of outfits requested from the provider.
    """

    def __init__(
        self,
        gateway: AIGateway,
        sequencer: Optional[ResponseSequencer] = None,
        outfit_count: int = DEFAULT_OUTFIT_COUNT,
    ):
        self.gateway = gateway
        self.sequencer = sequencer or ResponseSequencer()
        self.outfit_count = outfit_count

    def recommend(
        self,
        profile: Optional[UserProfile],
        category_slug: str,
        *,
        owner: Optional[str] = None,
        weather: Optional[WeatherData] = None,
        topography: Optional[TopographyData] = None,
        policy: GenderPolicy = GenderPolicy.PROFILE_FIRST,
        strict: bool = False,
        count: Optional[int] = None,
    ) -> RecommendationResult:
        """
        Produce enriched outfits for ``profile`` in ``category_slug``.

        Args:
            profile: Stored profile (may be partial or None)
            category_slug: Category slug, possibly gender-prefixed
            owner: Sequencing key (user id or screen id)
            weather / topography: Optional situational signal
            policy: Gender priority when slug and profile disagree
            strict: Drop AI outfits that carry cross-gender markers
            count: Outfits to return (defaults to ``outfit_count``)
        """
        count = count or self.outfit_count
        situational = _situational(weather, topography)

        def ask(normalized: NormalizedProfile) -> str:
            context = build_category_context(category_slug)
            return self.gateway.generate_text(
                build_outfit_prompt(normalized, context, situational=situational, count=count)
            )

        return self._orchestrate(
            profile, category_slug, ask,
            owner=owner, policy=policy, strict=strict, count=count, skip_twinning=True,
        )

    def recommend_from_image(
        self,
        profile: Optional[UserProfile],
        image_ref: str,
        *,
        brief: str = "",
        category_slug: str = "casual-wear",
        owner: Optional[str] = None,
        policy: GenderPolicy = GenderPolicy.PROFILE_FIRST,
        strict: bool = False,
        count: int = DEFAULT_PHOTO_OUTFIT_COUNT,
    ) -> RecommendationResult:
        """Outfits that suit the place or aesthetic in a photo, plus a description of the scene."""

        def ask(normalized: NormalizedProfile) -> str:
            context = build_category_context(category_slug)
            return self.gateway.analyze_image(
                image_ref, build_image_outfit_prompt(normalized, context, brief=brief, count=count)
            )

        result = self._orchestrate(
            profile, category_slug, ask, owner=owner, policy=policy, strict=strict, count=count,
        )
        if result.source == "ai":
            result.scene = parse_scene_summary(result.raw_text)
        return result

    def recommend_from_wardrobe(
        self,
        profile: Optional[UserProfile],
        image_refs: Sequence[str],
        *,
        category_slug: str = "casual-wear",
        owner: Optional[str] = None,
        weather: Optional[WeatherData] = None,
        topography: Optional[TopographyData] = None,
        policy: GenderPolicy = GenderPolicy.PROFILE_FIRST,
        strict: bool = False,
        count: int = DEFAULT_PHOTO_OUTFIT_COUNT,
    ) -> RecommendationResult:
        """Outfits built from garments visible in wardrobe photos, plus an inventory."""
        refs = list(image_refs)
        situational = _situational(weather, topography)

        def ask(normalized: NormalizedProfile) -> str:
            context = build_category_context(category_slug)
            return self.gateway.analyze_images(
                refs,
                build_wardrobe_outfit_prompt(normalized, context, situational=situational, count=count),
            )

        result = self._orchestrate(
            profile, category_slug, ask, owner=owner, policy=policy, strict=strict, count=count,
        )
        if result.source == "ai":
            result.wardrobe = parse_wardrobe_summary(result.raw_text)
        return result

    def _orchestrate(
        self,
        profile: Optional[UserProfile],
        category_slug: str,
        ask: Callable[[NormalizedProfile], str],
        *,
        owner: Optional[str],
        policy: GenderPolicy,
        strict: bool,
        count: int,
        skip_twinning: bool = False,
    ) -> RecommendationResult:
        owner_key = owner or "anonymous"
        sequence = self.sequencer.next(owner_key)
        gender = resolve_gender(profile.gender if profile else None, category_slug, policy)

        if skip_twinning and is_twinning_category(category_slug):
            logger.info("Skipping outfit generation for twinning category", category_slug=category_slug)
            return RecommendationResult(
                outfits=[],
                source="skipped",
                gender=gender,
                category_slug=category_slug,
                sequence=sequence,
                is_stale=not self.sequencer.is_current(owner_key, sequence),
            )

        normalized = normalize_profile(profile, gender_override=gender)
        outfits, warnings, source, text = self._generate(normalized, category_slug, ask, strict)
        enriched = enrich_outfits(outfits[:count], gender, category_slug)

        is_stale = not self.sequencer.is_current(owner_key, sequence)
        if is_stale:
            logger.info(
                "Recommendation superseded by newer request",
                owner=owner_key,
                sequence=sequence,
                latest=self.sequencer.latest(owner_key),
            )

        logger.info(
            "Recommendation complete",
            category_slug=category_slug,
            gender=gender,
            source=source,
            outfits=len(enriched),
            warnings=len(warnings),
        )
        return RecommendationResult(
            outfits=enriched,
            source=source,
            gender=gender,
            category_slug=category_slug,
            warnings=warnings,
            sequence=sequence,
            is_stale=is_stale,
            raw_text=text,
        )

    def _generate(
        self,
        profile: NormalizedProfile,
        category_slug: str,
        ask: Callable[[NormalizedProfile], str],
        strict: bool,
    ):
        warnings: List[ParseWarning] = []

        if self.gateway.enabled:
            try:
                text = ask(profile)
            except RateLimitExceededError as e:
                logger.warning(
                    "AI rate limit reached, using fallback",
                    category_slug=category_slug,
                    retry_after_seconds=e.retry_after_seconds,
                )
            except AIServiceBusyError as e:
                logger.warning("AI busy, using fallback", category_slug=category_slug, attempts=e.attempts)
            except AIServiceError as e:
                logger.warning("AI call failed, using fallback", category_slug=category_slug, error=str(e))
            else:
                parsed = parse_outfit_response(text, profile.gender, category_slug, strict=strict)
                warnings.extend(parsed.warnings)
                if parsed.outfits:
                    return parsed.outfits, warnings, "ai", text
                logger.warning(
                    "AI response yielded no outfits, using fallback",
                    category_slug=category_slug,
                    warnings=len(parsed.warnings),
                )

        return synthesize_fallback_outfits(profile, category_slug), warnings, "fallback", ""
