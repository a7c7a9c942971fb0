"""
Body type detection from a photo.

The provider classifies the photo into one of the shapes offered for the
user's gender and answers in a three-line format:

    BODY_TYPE: Inverted Triangle
    CONFIDENCE: 88%
    ANALYSIS: Broad shoulders carry structured jackets well.

The shape is stored as the profile's ``body_type`` and flows through the
profile normalizer like a manually chosen one. Any AI failure yields the
default shape with confidence 0 and an explanation for the user.
"""

import re
from typing import Optional

from config.constants import VALID_GENDERS
from core.logging import get_logger
from stylist.exceptions import AIServiceBusyError, AIServiceError, RateLimitExceededError
from stylist.gateway import AIGateway
from stylist.models import BodyTypeAnalysis
from stylist.profile import BODY_SHAPES, DEFAULT_BODY_SHAPE
from stylist.prompts import build_body_type_prompt

logger = get_logger(__name__)

_BODY_TYPE_LINE = re.compile(r"BODY_TYPE:\s*([^\n]+)", re.IGNORECASE)
_CONFIDENCE_LINE = re.compile(r"CONFIDENCE:\s*(\d+)\s*%", re.IGNORECASE)
_ANALYSIS_LINE = re.compile(r"ANALYSIS:\s*([^\n]+)", re.IGNORECASE)

DEFAULT_CONFIDENCE = 85
_DEFAULT_ANALYSIS = "Body type analysis completed with styling recommendations."

_BUSY_MESSAGE = (
    "I'm currently experiencing high demand and can't analyze your photo right now. "
    "I've set a default body type for now - you can change this manually or try photo analysis again later!"
)
_RATE_LIMIT_MESSAGE = (
    "I need a moment to process! I've set a default body type for now - "
    "please try photo analysis again in a few seconds or select manually."
)
_ERROR_MESSAGE = (
    "I had trouble analyzing your photo. I've set a default body type for now - "
    "you can change this manually or try uploading a different photo."
)


def analysis_gender(gender: Optional[str]) -> str:
    value = gender.strip().lower() if isinstance(gender, str) else ""
    return value if value in VALID_GENDERS else "unknown"


def has_body_type_line(text: str) -> bool:
    return _BODY_TYPE_LINE.search(text or "") is not None


def match_body_shape(value: str, gender: str) -> Optional[str]:
    """
    The offered shape named in ``value``, longest name first so
    ``"Inverted Triangle"`` is not read as ``"Triangle"``.
    """
    text = (value or "").lower()
    names = sorted((name for name, _ in BODY_SHAPES[gender]), key=len, reverse=True)
    for name in names:
        if name.lower() in text:
            return name
    return None


def parse_body_type_response(text: str, gender: Optional[str]) -> BodyTypeAnalysis:
    """Read the three-line answer; unknown shapes become the default shape."""
    key = analysis_gender(gender)

    body_match = _BODY_TYPE_LINE.search(text or "")
    shape = match_body_shape(body_match.group(1), key) if body_match else None
    if shape is None:
        logger.warning(
            "Body type not recognized, using default",
            gender=key,
            answer=body_match.group(1).strip() if body_match else None,
        )
        shape = DEFAULT_BODY_SHAPE

    confidence_match = _CONFIDENCE_LINE.search(text or "")
    confidence = int(confidence_match.group(1)) if confidence_match else DEFAULT_CONFIDENCE
    analysis_match = _ANALYSIS_LINE.search(text or "")

    return BodyTypeAnalysis(
        body_type=shape,
        confidence=min(100, confidence),
        analysis=analysis_match.group(1).strip() if analysis_match else _DEFAULT_ANALYSIS,
        gender=key,
    )


def fallback_body_type(gender: Optional[str], error: Optional[Exception] = None) -> BodyTypeAnalysis:
    if isinstance(error, AIServiceBusyError):
        message = _BUSY_MESSAGE
    elif isinstance(error, RateLimitExceededError):
        message = _RATE_LIMIT_MESSAGE
    else:
        message = _ERROR_MESSAGE
    return BodyTypeAnalysis(
        body_type=DEFAULT_BODY_SHAPE,
        confidence=0,
        analysis=message,
        gender=analysis_gender(gender),
        is_fallback=True,
    )


class BodyTypeAnalyzer:
    """Classifies a body photo through the AI gateway; never raises for AI failures."""

    def __init__(self, gateway: AIGateway):
        self.gateway = gateway

    def analyze(self, image_ref: str, gender: Optional[str] = None) -> BodyTypeAnalysis:
        key = analysis_gender(gender)
        if not self.gateway.enabled:
            return fallback_body_type(key)
        try:
            text = self.gateway.analyze_image(
                image_ref, build_body_type_prompt(key), accept=has_body_type_line,
            )
        except AIServiceError as e:
            logger.warning("Body type analysis failed, using default", gender=key, error=str(e))
            return fallback_body_type(key, e)

        result = parse_body_type_response(text, key)
        logger.info(
            "Body type analysis complete",
            gender=key,
            body_type=result.body_type,
            confidence=result.confidence,
        )
        return result
