"""
Response Parser / Validator.

Turns raw AI text into typed :class:`OutfitSuggestion` objects:

1. Strip markdown fences, parse the whole text as JSON.
2. On failure, degrade to the largest bracket-delimited substring.
3. Schema-validate each candidate; fields that fail validation are
   replaced by safe defaults and reported as warnings.
4. Scan each outfit for cross-gender markers. Hits are warnings, not
   rejections, unless ``strict`` is set.

An empty result is a normal outcome; the caller falls back.
"""

import json
import re
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from config.constants import CROSS_GENDER_MARKERS, DEFAULT_OUTFIT_VALUES, OUTFIT_LIST_KEYS
from core.logging import get_logger
from core.utils import contains_word
from stylist.models import (
    OutfitSuggestion,
    ParseResult,
    ParseWarning,
    SceneSummary,
    WardrobeSummary,
    string_list,
)

logger = get_logger(__name__)

_FENCE = re.compile(r"```(?:json|JSON)?")

# Set by enrichment/fallback, never accepted from the provider
_SERVER_ONLY_FIELDS = ("shopping_links", "reference_links", "is_fallback")

_STRING_FIELDS = ("id", "title", "description", "occasion", "season", "price_range", "image_description")
_LIST_FIELDS = ("items", "colors", "style_tips")


# ── Pure helpers (no I/O, easily testable) ───────────────────────

def strip_code_fences(text: str) -> str:
    return _FENCE.sub("", text or "").strip()


def _try_json(text: str) -> Optional[Any]:
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return None


def extract_json_payload(text: str) -> Tuple[Optional[Any], bool]:
    """
    Returns ``(payload, degraded)``.

    ``degraded`` is True when the whole text was not JSON and a
    bracket-delimited substring had to be extracted.
    """
    cleaned = strip_code_fences(text)
    if not cleaned:
        return None, False

    payload = _try_json(cleaned)
    if payload is not None:
        return payload, False

    spans = []
    for open_ch, close_ch in (("[", "]"), ("{", "}")):
        start, end = cleaned.find(open_ch), cleaned.rfind(close_ch)
        if start != -1 and end > start:
            spans.append(cleaned[start:end + 1])
    for span in sorted(spans, key=len, reverse=True):
        payload = _try_json(span)
        if payload is not None:
            return payload, True
    return None, True


def _candidates(payload: Any) -> List[Any]:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in OUTFIT_LIST_KEYS:
            if isinstance(payload.get(key), list):
                return payload[key]
        return [payload]
    return []


def _repair_list(value: Any) -> List[str]:
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, list):
        return []
    return [str(v).strip() for v in value if isinstance(v, (str, int, float)) and str(v).strip()]


def _default_for(field: str, index: int, gender: str, slug: str) -> Any:
    if field == "id":
        return f"{slug}_{gender}_{index}"
    if field == "title":
        return f"{DEFAULT_OUTFIT_VALUES.TITLE} {index}"
    if field == "price_range":
        return DEFAULT_OUTFIT_VALUES.PRICE_RANGE
    if field == "season":
        return DEFAULT_OUTFIT_VALUES.SEASON
    if field == "items":
        return list(DEFAULT_OUTFIT_VALUES.ITEMS)
    if field == "colors":
        return list(DEFAULT_OUTFIT_VALUES.COLORS)
    if field in _LIST_FIELDS:
        return []
    return ""


def _repair_field(field: str, value: Any, index: int, gender: str, slug: str) -> Any:
    if field in _STRING_FIELDS and isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    if field in _LIST_FIELDS:
        repaired = _repair_list(value)
        if repaired:
            return repaired
    return _default_for(field, index, gender, slug)


def coerce_outfit(
    raw: Dict[str, Any], index: int, gender: str, slug: str,
) -> Tuple[OutfitSuggestion, List[ParseWarning]]:
    """Validate one candidate, substituting defaults for invalid fields."""
    data = {k: v for k, v in raw.items() if k not in _SERVER_ONLY_FIELDS}
    try:
        return OutfitSuggestion.model_validate(data), []
    except ValidationError as e:
        bad_fields = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})

    warnings: List[ParseWarning] = []
    for field in bad_fields:
        data[field] = _repair_field(field, data.get(field), index, gender, slug)
        warnings.append(ParseWarning(
            code="default_applied",
            message=f"Field '{field}' missing or invalid, default applied",
            outfit_id=str(data.get("id") or ""),
        ))
    return OutfitSuggestion.model_validate(data), warnings


def find_cross_gender_markers(outfit: OutfitSuggestion, gender: str) -> List[str]:
    """Markers of the opposite gender's wardrobe present in an outfit."""
    markers = CROSS_GENDER_MARKERS.get(gender, ())
    text = json.dumps(
        outfit.model_dump(exclude={"shopping_links", "reference_links", "is_fallback"})
    )
    return [m for m in markers if contains_word(text, m, allow_plural=True)]


# ── Entry point ───────────────────────────────────────────────────

def parse_outfit_response(
    text: str,
    gender: str,
    category_slug: str,
    strict: bool = False,
) -> ParseResult:
    """
    Parse AI text into outfits plus warnings.

    Args:
        text: Raw provider output
        gender: Final target gender used for the prompt
        category_slug: Used for default ids
        strict: Drop outfits that carry cross-gender markers
    """
    result = ParseResult()
    payload, degraded = extract_json_payload(text)
    result.degraded = degraded

    if payload is None:
        logger.warning(
            "AI response contained no parsable JSON",
            category_slug=category_slug,
            response_chars=len(text or ""),
        )
        result.warnings.append(ParseWarning(code="unparsable", message="No JSON found in AI response"))
        return result

    for index, candidate in enumerate(_candidates(payload), start=1):
        if not isinstance(candidate, dict):
            result.warnings.append(ParseWarning(
                code="skipped_candidate",
                message=f"Candidate {index} is {type(candidate).__name__}, expected object",
            ))
            continue

        outfit, field_warnings = coerce_outfit(candidate, index, gender, category_slug)
        result.warnings.extend(field_warnings)

        markers = find_cross_gender_markers(outfit, gender)
        if markers:
            logger.warning(
                "Potential cross-gender item detected",
                outfit_id=outfit.id,
                target_gender=gender,
                markers=markers,
                strict=strict,
            )
            result.warnings.append(ParseWarning(
                code="cross_gender_marker",
                message=f"Outfit mentions {', '.join(markers)} for a {gender} target",
                outfit_id=outfit.id,
            ))
            if strict:
                continue

        result.outfits.append(outfit)

    if degraded:
        logger.info(
            "AI response needed bracket extraction",
            category_slug=category_slug,
            outfits=len(result.outfits),
        )
    return result


# ── Scene and wardrobe summaries ──────────────────────────────────

def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def parse_scene_summary(text: str) -> Optional[SceneSummary]:
    """Venue notes that accompany image-inspired outfits, or None when absent."""
    payload, _ = extract_json_payload(text)
    if not isinstance(payload, dict):
        return None
    scene = SceneSummary(
        venue=_text(payload.get("venue")),
        ambiance=_text(payload.get("ambiance")),
        dominant_colors=string_list(payload.get("dominantColors", payload.get("dominant_colors"))),
        tips=string_list(payload.get("tips")),
    )
    if not (scene.venue or scene.ambiance or scene.dominant_colors or scene.tips):
        return None
    return scene


def parse_wardrobe_summary(text: str) -> Optional[WardrobeSummary]:
    """Inventory notes that accompany wardrobe outfits, or None when absent."""
    payload, _ = extract_json_payload(text)
    if not isinstance(payload, dict):
        return None
    inventory = payload.get("wardrobe")
    if not isinstance(inventory, dict):
        inventory = {}
    total = inventory.get("totalItems", inventory.get("total_items"))
    categories = string_list(inventory.get("categories"))
    summary = WardrobeSummary(
        total_items=total if isinstance(total, int) and not isinstance(total, bool) and total >= 0 else len(categories),
        categories=categories,
        missing_categories=string_list(inventory.get("missingCategories", inventory.get("missing_categories"))),
        suggestions=string_list(payload.get("suggestions")),
    )
    if not (summary.total_items or summary.categories or summary.missing_categories or summary.suggestions):
        return None
    return summary
