"""
Cascading completion over an ordered list of provider descriptors.

One loop walks providers in tier order and, inside each provider, its
(credential, model) attempts in declared order:

- transient failure (rate limited, quota, model not found): next attempt
- any other failure: skip the rest of that credential's attempts
- provider exhausted: next provider
- everything exhausted: ChainExhausted

Nothing is kept between calls, so concurrent requests never share state.
"""

import logging
from typing import Sequence

import httpx

from aura.core.exceptions import (
    ChainExhausted,
    HardProviderError,
    ProviderError,
    TransientProviderError,
)
from aura.services.providers import Completion, CompletionRequest, ProviderDescriptor

logger = logging.getLogger(__name__)

TRANSIENT_STATUS_CODES = {404, 429}
TRANSIENT_SIGNALS = (
    "not found",
    "not_found",
    "rate limit",
    "rate_limit",
    "quota",
    "resource_exhausted",
    "too many requests",
)
MAX_ERROR_TEXT = 200


def _status_code(exc: Exception) -> int | None:
    # openai.APIStatusError
    status = getattr(exc, "status_code", None)
    if isinstance(status, int):
        return status
    # google.genai.errors.APIError
    code = getattr(exc, "code", None)
    if isinstance(code, int):
        return code
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code
    return None


def _summarize(exc: Exception) -> str:
    text = " ".join(str(exc).split()) or exc.__class__.__name__
    if len(text) > MAX_ERROR_TEXT:
        return text[: MAX_ERROR_TEXT - 3] + "..."
    return text


def classify_provider_error(exc: Exception, provider: str = "", model: str = "") -> ProviderError:
    """Map any adapter exception to a TransientProviderError or a HardProviderError.

    A status code, when the exception carries one, decides on its own. Message
    signals only classify errors without a status (SDK wrappers, plain text).
    """
    if isinstance(exc, ProviderError):
        return exc

    message = _summarize(exc)
    status = _status_code(exc)
    if status is not None:
        transient = status in TRANSIENT_STATUS_CODES
    else:
        lowered = message.lower()
        transient = any(signal in lowered for signal in TRANSIENT_SIGNALS)
    if transient:
        return TransientProviderError(message, provider=provider, model=model)
    return HardProviderError(message, provider=provider, model=model)


async def complete(providers: Sequence[ProviderDescriptor], request: CompletionRequest) -> Completion:
    """
    Return the first non-empty completion from the chain.

    Args:
        providers: Provider tiers in priority order
        request: Instruction, prompt and optional media

    Returns:
        Completion with the raw text and the provider/model that produced it

    Raises:
        ChainExhausted: every eligible attempt failed, or no provider can serve the request
    """
    failures: list[str] = []

    for provider in providers:
        if not provider.can_serve(request):
            continue

        abandoned_slots: set[int] = set()
        for attempt in provider.attempts:
            if attempt.slot in abandoned_slots:
                continue

            label = f"{provider.name}/{attempt.model} (key #{attempt.slot})"
            try:
                text = await provider.call(attempt, request)
                if not text or not text.strip():
                    raise HardProviderError("Empty completion", provider=provider.name, model=attempt.model)
            except Exception as e:
                error = classify_provider_error(e, provider=provider.name, model=attempt.model)
                failures.append(f"{label}: {error.message}")
                if isinstance(error, TransientProviderError):
                    logger.warning(f"[CHAIN] {label} unavailable, trying next model: {error.message}")
                else:
                    logger.warning(f"[CHAIN] {label} failed, dropping key #{attempt.slot}: {error.message}")
                    abandoned_slots.add(attempt.slot)
                continue

            logger.info(f"[CHAIN] Completion from {label}")
            return Completion(text=text, provider=provider.name, model=attempt.model)

        logger.warning(f"[CHAIN] Provider {provider.name} exhausted")

    logger.error(f"[CHAIN] All providers failed ({len(failures)} attempts)")
    raise ChainExhausted(failures)
