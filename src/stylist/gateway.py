"""
AI Gateway.

Wraps a generative provider (prompt in, text out; optionally with
images) with:

- a client-side sliding-window rate limit,
- bounded retry when the provider answers "service busy", either as an
  exception (503 / 429 / overloaded) or as a *successful* response whose
  text is an apology rather than content,
- a request counter hook invoked on every provider attempt.

Malformed but non-busy output is returned as-is; parsing failures are
the parser's concern and are never retried here.
"""

import threading
import time
from collections import deque
from typing import Callable, Deque, Optional, Protocol, Sequence

from config.constants import BUSY_ERROR_MARKERS, BUSY_PHRASES, BUSY_RESPONSE_MAX_CHARS
from core.logging import get_logger
from core.utils import is_remote_image_ref
from stylist.exceptions import AIServiceBusyError, AIServiceError, RateLimitExceededError
from stylist.parser import extract_json_payload

logger = get_logger(__name__)


class GenerativeProvider(Protocol):
    def generate_text(self, prompt: str) -> str: ...

    def analyze_image(self, image_ref: str, prompt: str) -> str: ...

    def analyze_images(self, image_refs: Sequence[str], prompt: str) -> str: ...


def is_busy_response(text: str) -> bool:
    """
    True when a provider answer is an overload notice instead of content.

    Only short answers without a JSON payload qualify, so an outfit that
    mentions "high demand" in its description is still content.
    """
    lowered = (text or "").lower()
    if len(lowered) > BUSY_RESPONSE_MAX_CHARS:
        return False
    if not any(phrase in lowered for phrase in BUSY_PHRASES):
        return False
    payload, _ = extract_json_payload(text)
    return not isinstance(payload, (dict, list))


def is_busy_error(error: BaseException) -> bool:
    status = getattr(error, "status_code", None)
    if status in (429, 503):
        return True
    message = str(error).lower()
    return any(marker in message for marker in BUSY_ERROR_MARKERS)


# =============================================================================
# Rate Limiter
# =============================================================================

class RateLimiter:
    """At most ``max_calls`` acquisitions per sliding ``window_seconds``."""

    def __init__(
        self,
        max_calls: int = 15,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max_calls = max_calls
        self._window = window_seconds
        self._clock = clock
        self._calls: Deque[float] = deque()
        self._lock = threading.Lock()

    def try_acquire(self) -> bool:
        now = self._clock()
        with self._lock:
            self._trim(now)
            if len(self._calls) >= self._max_calls:
                return False
            self._calls.append(now)
            return True

    def seconds_until_available(self) -> float:
        now = self._clock()
        with self._lock:
            self._trim(now)
            if len(self._calls) < self._max_calls:
                return 0.0
            return max(0.0, self._window - (now - self._calls[0]))

    def acquire(self) -> None:
        if not self.try_acquire():
            raise RateLimitExceededError(self.seconds_until_available())

    def _trim(self, now: float) -> None:
        while self._calls and now - self._calls[0] >= self._window:
            self._calls.popleft()


# =============================================================================
# OpenAI Provider
# =============================================================================

def _image_url(image_ref: str) -> str:
    """
    Image reference as sent to the provider.

    Raises:
        ValueError: anything other than an http(s) URL or image data URI
    """
    if not is_remote_image_ref(image_ref):
        raise ValueError("Unsupported image reference, expected an http(s) URL or image data URI")
    return image_ref.strip()


class OpenAIProvider:
    """Chat-completions backed provider with a lazily created client."""

    def __init__(
        self,
        api_key: str,
        text_model: str,
        vision_model: str,
        timeout: float,
        temperature: float = 0.7,
    ) -> None:
        self._api_key = api_key
        self._text_model = text_model
        self._vision_model = vision_model
        self._timeout = timeout
        self._temperature = temperature
        self._client = None
        self._client_lock = threading.Lock()

    @property
    def client(self):
        """Lazy-load OpenAI client."""
        if self._client is None:
            with self._client_lock:
                if self._client is None:
                    from openai import OpenAI
                    self._client = OpenAI(
                        api_key=self._api_key,
                        timeout=self._timeout,
                        max_retries=0,
                    )
        return self._client

    def generate_text(self, prompt: str) -> str:
        response = self.client.chat.completions.create(
            model=self._text_model,
            messages=[{"role": "user", "content": prompt}],
            temperature=self._temperature,
        )
        return response.choices[0].message.content or ""

    def analyze_image(self, image_ref: str, prompt: str) -> str:
        return self.analyze_images([image_ref], prompt)

    def analyze_images(self, image_refs: Sequence[str], prompt: str) -> str:
        content = [{"type": "text", "text": prompt}]
        content.extend(
            {"type": "image_url", "image_url": {"url": _image_url(ref)}} for ref in image_refs
        )
        response = self.client.chat.completions.create(
            model=self._vision_model,
            messages=[{"role": "user", "content": content}],
            temperature=self._temperature,
        )
        return response.choices[0].message.content or ""


# =============================================================================
# Gateway
# =============================================================================

class AIGateway:
    """
    Single entry point for provider calls.

    Args:
        provider: The generative provider, or None when AI is not configured
            (every call then raises :class:`AIServiceError`).
        max_retries: Retries after a busy answer (attempts = retries + 1).
        retry_delay_seconds: Fixed delay between busy retries.
        rate_limiter: Optional client-side call budget.
        on_request: Called with the call kind (``"text"`` / ``"image"``)
            on every provider attempt.
        sleep: Injected for tests.
    """

    def __init__(
        self,
        provider: Optional[GenerativeProvider],
        max_retries: int = 2,
        retry_delay_seconds: float = 2.0,
        rate_limiter: Optional[RateLimiter] = None,
        on_request: Optional[Callable[[str], None]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._provider = provider
        self._max_retries = max(0, max_retries)
        self._retry_delay = retry_delay_seconds
        self._rate_limiter = rate_limiter
        self._on_request = on_request
        self._sleep = sleep

    @property
    def enabled(self) -> bool:
        return self._provider is not None

    def generate_text(
        self, prompt: str, accept: Optional[Callable[[str], bool]] = None,
    ) -> str:
        """
        Send a text prompt.

        ``accept`` lets a caller treat structurally useless answers (e.g.
        a person analysis without a ``Gender:`` line) as transient too.

        Raises:
            AIServiceBusyError: still busy after all retries
            RateLimitExceededError: client-side budget spent
            AIServiceError: provider missing or failed
        """
        return self._call("text", lambda p: p.generate_text(prompt), accept)

    def analyze_image(
        self,
        image_ref: str,
        prompt: str,
        accept: Optional[Callable[[str], bool]] = None,
    ) -> str:
        return self._call("image", lambda p: p.analyze_image(image_ref, prompt), accept)

    def analyze_images(
        self,
        image_refs: Sequence[str],
        prompt: str,
        accept: Optional[Callable[[str], bool]] = None,
    ) -> str:
        """Several images in one vision call (an outfit and its venue, a wardrobe)."""
        refs = list(image_refs)
        if len(refs) == 1:
            return self.analyze_image(refs[0], prompt, accept)
        return self._call("image", lambda p: p.analyze_images(refs, prompt), accept)

    def _call(
        self,
        kind: str,
        invoke: Callable[[GenerativeProvider], str],
        accept: Optional[Callable[[str], bool]],
    ) -> str:
        if self._provider is None:
            raise AIServiceError("AI provider not configured")

        attempts = self._max_retries + 1
        reason = ""
        for attempt in range(1, attempts + 1):
            if self._rate_limiter is not None:
                self._rate_limiter.acquire()
            if self._on_request is not None:
                self._on_request(kind)

            t_start = time.time()
            try:
                text = invoke(self._provider) or ""
            except Exception as e:
                latency_ms = int((time.time() - t_start) * 1000)
                if not is_busy_error(e):
                    logger.warning(
                        "AI provider call failed",
                        kind=kind,
                        attempt=attempt,
                        error=str(e),
                        error_type=type(e).__name__,
                        latency_ms=latency_ms,
                    )
                    raise AIServiceError(f"AI provider call failed: {e}") from e
                reason = str(e)
            else:
                latency_ms = int((time.time() - t_start) * 1000)
                if not is_busy_response(text) and (accept is None or accept(text)):
                    logger.info(
                        "AI provider call succeeded",
                        kind=kind,
                        attempt=attempt,
                        latency_ms=latency_ms,
                        response_chars=len(text),
                    )
                    return text
                reason = text[:120]

            if attempt < attempts:
                logger.warning(
                    "AI provider busy, retrying",
                    kind=kind,
                    attempt=attempt,
                    max_attempts=attempts,
                    delay_seconds=self._retry_delay,
                    reason=reason,
                )
                self._sleep(self._retry_delay)

        logger.warning("AI provider still busy after retries", kind=kind, attempts=attempts)
        raise AIServiceBusyError(f"AI provider busy: {reason}", attempts=attempts)
