"""
Advice Filter / Scorer.

Selects the single best entry of the static advice dataset for a user
and a category:

1. Category cascade against the slug's DB category name: exact match,
   then substring, then keyword overlap.
2. Weighted attribute scoring over each entry's ``for`` tuple
   ``[gender, height, weight, skin_tone, style]``.

The dataset itself is fetched once per process by :class:`AdviceRepository`.
"""

import threading
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

import requests
from pydantic import ValidationError

from config.constants import DEFAULT_ADVICE_SCORING, AdviceScoringConfig
from core.logging import get_logger
from stylist.categories import map_category_slug_to_db_category, map_category_to_style, resolve_gender
from stylist.exceptions import AdviceUnavailableError
from stylist.models import AdviceEntry, AdviceMatch, GenderPolicy, UserProfile
from stylist.profile import normalize_body_type, normalize_height

logger = get_logger(__name__)


# =============================================================================
# Dataset
# =============================================================================

def parse_advice_entries(payload: Any) -> List[AdviceEntry]:
    """Validate raw dataset rows; rows without a usable category are dropped."""
    if not isinstance(payload, list):
        raise ValueError(f"Advice dataset must be a JSON array, got {type(payload).__name__}")

    entries: List[AdviceEntry] = []
    skipped = 0
    for row in payload:
        if isinstance(row, AdviceEntry):
            entries.append(row)
            continue
        try:
            entry = AdviceEntry.model_validate(row)
        except ValidationError:
            skipped += 1
            continue
        if entry.category:
            entries.append(entry)
        else:
            skipped += 1

    if skipped:
        logger.warning("Skipped invalid advice rows", skipped=skipped, kept=len(entries))
    return entries


class AdviceRepository:
    """
    Loads the advice dataset once and keeps it for the process lifetime.

    Args:
        url: Location of the JSON array.
        timeout: Request timeout in seconds.
    """

    def __init__(self, url: str, timeout: float = 10.0):
        self._url = url
        self._timeout = timeout
        self._entries: Optional[List[AdviceEntry]] = None
        self._lock = threading.Lock()

    @property
    def loaded(self) -> bool:
        return self._entries is not None

    def get_entries(self) -> List[AdviceEntry]:
        """
        Return the dataset, fetching it on first use.

        Raises:
            AdviceUnavailableError: the dataset could not be fetched or parsed.
        """
        if self._entries is None:
            with self._lock:
                if self._entries is None:
                    self._entries = self._fetch()
        return self._entries

    def refresh(self) -> List[AdviceEntry]:
        """Force a reload. The previous dataset is kept if the reload fails."""
        with self._lock:
            self._entries = self._fetch()
            return self._entries

    def _fetch(self) -> List[AdviceEntry]:
        if not self._url:
            raise AdviceUnavailableError("Advice dataset URL is not configured")

        try:
            resp = requests.get(self._url, timeout=self._timeout)
            resp.raise_for_status()
            entries = parse_advice_entries(resp.json())
        except (requests.RequestException, ValueError) as e:
            logger.warning("Advice dataset fetch failed", url=self._url, error=str(e))
            raise AdviceUnavailableError(f"Advice dataset unavailable: {e}") from e

        logger.info("Advice dataset loaded", entries=len(entries))
        return entries


# =============================================================================
# Filtering
# =============================================================================

def _category_of(entry: AdviceEntry) -> str:
    return (entry.category or "").lower()


def category_matches(entries: Sequence[AdviceEntry], db_category: str) -> List[AdviceEntry]:
    """Exact, then substring, then keyword-overlap matches (first non-empty tier)."""
    target = db_category.lower()
    usable = [e for e in entries if e.category]

    exact = [e for e in usable if _category_of(e) == target]
    if exact:
        return exact

    partial = [e for e in usable if target and target in _category_of(e)]
    if partial:
        return partial

    keywords = [k for k in target.split() if k]
    return [e for e in usable if any(k in _category_of(e) for k in keywords)]


def user_attributes(
    profile: Optional[UserProfile], category_slug: str, gender: str,
) -> Dict[str, str]:
    """The five values compared against an entry's ``for`` tuple."""
    profile = profile or UserProfile()
    height_present = profile.height is not None and str(profile.height).strip() != ""
    return {
        "gender": gender,
        "height": normalize_height(profile.height) if height_present else DEFAULT_ADVICE_SCORING.DEFAULT_HEIGHT,
        "weight": normalize_body_type(profile.body_type),
        "skin_tone": (profile.skin_tone or DEFAULT_ADVICE_SCORING.DEFAULT_SKIN_TONE).lower(),
        "style": map_category_to_style(category_slug),
    }


def score_entry(
    entry: AdviceEntry,
    attributes: Dict[str, str],
    weights: AdviceScoringConfig = DEFAULT_ADVICE_SCORING,
) -> AdviceMatch:
    for_fields = [str(f).lower() for f in entry.for_]
    details: Dict[str, bool] = {}
    score = 0

    if len(for_fields) >= weights.MIN_ATTRIBUTES:
        checks = (
            ("gender", 0, weights.GENDER),
            ("height", 1, weights.HEIGHT),
            ("weight", 2, weights.WEIGHT),
            ("skin_tone", 3, weights.SKIN_TONE),
            ("style", 4, weights.STYLE),
        )
        for name, position, points in checks:
            matched = for_fields[position] == attributes[name]
            details[name] = matched
            if matched:
                score += points

    return AdviceMatch(
        entry=entry,
        score=score,
        gender=attributes["gender"],
        category=entry.category,
        match_details=details,
    )


def filter_advice(
    entries: Iterable[Union[AdviceEntry, Dict[str, Any]]],
    profile: Optional[UserProfile],
    category_slug: str,
    policy: GenderPolicy = GenderPolicy.CATEGORY_FIRST,
    weights: AdviceScoringConfig = DEFAULT_ADVICE_SCORING,
) -> Optional[AdviceMatch]:
    """
    Best advice entry for ``profile`` in ``category_slug``, or None.

    Ties keep the earliest entry. When nothing scores above zero, the
    first category match is returned with score 0.
    """
    try:
        dataset = parse_advice_entries(list(entries or []))
    except ValueError:
        dataset = []

    db_category = map_category_slug_to_db_category(category_slug)
    candidates = category_matches(dataset, db_category)
    if not candidates:
        logger.info("No advice entries for category", category_slug=category_slug, db_category=db_category)
        return None

    gender = resolve_gender(profile.gender if profile else None, category_slug, policy)
    attributes = user_attributes(profile, category_slug, gender)

    # Strict ">" keeps the earliest entry on ties, including the all-zero case
    best = score_entry(candidates[0], attributes, weights)
    for entry in candidates[1:]:
        match = score_entry(entry, attributes, weights)
        if match.score > best.score:
            best = match

    logger.info(
        "Advice selected",
        category_slug=category_slug,
        db_category=db_category,
        category=best.category,
        score=best.score,
        candidates=len(candidates),
        gender=gender,
    )
    return best
