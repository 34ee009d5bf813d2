"""
Completion providers and the ordered chains built from configuration.

A provider is described by data: a name, an ordered tuple of (credential,
model) attempts and an async adapter that performs one attempt. Chains for
text, audio and image requests are plain tuples of descriptors, so adding or
removing a tier is a one-line change in build_provider_chains().
"""

import base64
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, Sequence

from google import genai
from google.genai import types
from openai import AsyncOpenAI

from aura.core.config import Settings
from aura.core.prompts import render_schema_hint
from aura.schemas.goal import GOAL_RESPONSE_SCHEMA

logger = logging.getLogger(__name__)

# OpenRouter's input_audio part wants a format name, not a MIME type
AUDIO_FORMATS = {
    "mpeg": "mp3",
    "mp3": "mp3",
    "x-wav": "wav",
    "wav": "wav",
    "wave": "wav",
    "webm": "webm",
    "ogg": "ogg",
    "mp4": "m4a",
    "x-m4a": "m4a",
    "flac": "flac",
    "aac": "aac",
}


@dataclass(frozen=True)
class MediaPayload:
    """Raw audio or image bytes sent alongside the prompt."""
    data: bytes = field(repr=False)
    mime_type: str

    @property
    def base_mime_type(self) -> str:
        """MIME type without parameters: "audio/webm;codecs=opus" -> "audio/webm"."""
        return self.mime_type.split(";", 1)[0].strip().lower()

    @property
    def kind(self) -> str:
        return self.base_mime_type.split("/", 1)[0]

    def as_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")


@dataclass(frozen=True)
class CompletionRequest:
    system_instruction: str
    prompt: str
    json_mode: bool = True
    media: Optional[MediaPayload] = None


@dataclass(frozen=True)
class Attempt:
    """One (credential, model) pair. `slot` identifies the credential without exposing it."""
    slot: int
    model: str
    credential: str = field(repr=False)


@dataclass(frozen=True)
class Completion:
    text: str
    provider: str
    model: str


ProviderCall = Callable[[Attempt, CompletionRequest], Awaitable[str]]


@dataclass(frozen=True)
class ProviderDescriptor:
    name: str
    attempts: tuple[Attempt, ...]
    call: ProviderCall = field(repr=False)
    multimodal: bool = False
    supports_schema: bool = False

    def can_serve(self, request: CompletionRequest) -> bool:
        return request.media is None or self.multimodal


@dataclass(frozen=True)
class ProviderChains:
    """Ordered provider tiers per request modality."""
    text: tuple[ProviderDescriptor, ...] = ()
    audio: tuple[ProviderDescriptor, ...] = ()
    image: tuple[ProviderDescriptor, ...] = ()

    def describe(self) -> dict:
        """Provider names and attempt counts per modality. Never includes keys."""
        return {
            modality: [
                {
                    "provider": p.name,
                    "attempts": len(p.attempts),
                    "models": sorted({a.model for a in p.attempts}),
                    "structured_output": p.supports_schema,
                }
                for p in chain
            ]
            for modality, chain in (("text", self.text), ("audio", self.audio), ("image", self.image))
        }


def plan_attempts(credentials: Sequence[str], models: Sequence[str]) -> tuple[Attempt, ...]:
    """Credential outer, model inner: key 1 with every model, then key 2, ..."""
    return tuple(
        Attempt(slot=slot, model=model, credential=credential)
        for slot, credential in enumerate(credentials, start=1)
        for model in models
    )


# =============================================================================
# ADAPTERS
# =============================================================================

async def call_gemini(attempt: Attempt, request: CompletionRequest) -> str:
    """Gemini generate_content; native audio/image parts and enforced JSON schema."""
    config_kwargs = {"system_instruction": request.system_instruction}
    if request.json_mode:
        config_kwargs["response_mime_type"] = "application/json"
        config_kwargs["response_json_schema"] = GOAL_RESPONSE_SCHEMA
    else:
        config_kwargs["response_mime_type"] = "text/plain"

    contents: list = [request.prompt]
    if request.media is not None:
        contents.insert(0, types.Part.from_bytes(data=request.media.data, mime_type=request.media.base_mime_type))

    # One client per attempt; the async context closes its connection pool
    async with genai.Client(api_key=attempt.credential).aio as client:
        response = await client.models.generate_content(
            model=attempt.model,
            contents=contents,
            config=types.GenerateContentConfig(**config_kwargs),
        )
    return response.text or ""


def _user_content(request: CompletionRequest):
    """Chat-completions user content; a parts list when media is attached."""
    if request.media is None:
        return request.prompt

    media = request.media
    if media.kind == "image":
        media_part = {
            "type": "image_url",
            "image_url": {"url": f"data:{media.base_mime_type};base64,{media.as_base64()}"},
        }
    else:
        subtype = media.base_mime_type.split("/", 1)[-1]
        media_part = {
            "type": "input_audio",
            "input_audio": {"data": media.as_base64(), "format": AUDIO_FORMATS.get(subtype, subtype)},
        }
    return [{"type": "text", "text": request.prompt}, media_part]


def openai_compatible_call(base_url: str, extra_headers: Optional[dict] = None) -> ProviderCall:
    """Adapter for any OpenAI-compatible chat completions endpoint (DeepSeek, OpenRouter)."""

    async def call(attempt: Attempt, request: CompletionRequest) -> str:
        system_prompt = request.system_instruction
        if request.json_mode:
            system_prompt += render_schema_hint()

        # max_retries=0: the chain owns every retry decision
        async with AsyncOpenAI(
            api_key=attempt.credential,
            base_url=base_url,
            max_retries=0,
            default_headers=extra_headers,
        ) as client:
            response = await client.chat.completions.create(
                model=attempt.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": _user_content(request)},
                ],
                temperature=0.1 if request.json_mode else 0.7,
            )

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    return call


# =============================================================================
# CHAIN CONSTRUCTION
# =============================================================================

OPENROUTER_HEADERS = {"X-Title": "AURA"}


def build_provider_chains(settings: Settings) -> ProviderChains:
    """
    Build the provider tiers from configuration.

    A provider with no credential is left out of every chain rather than
    failing startup.
    """
    gemini = None
    if settings.gemini_api_keys and settings.GEMINI_MODELS:
        gemini = ProviderDescriptor(
            name="gemini",
            attempts=plan_attempts(settings.gemini_api_keys, settings.GEMINI_MODELS),
            call=call_gemini,
            multimodal=True,
            supports_schema=True,
        )

    deepseek = None
    if settings.deepseek_api_keys:
        deepseek = ProviderDescriptor(
            name="deepseek",
            attempts=plan_attempts(settings.deepseek_api_keys, [settings.DEEPSEEK_MODEL]),
            call=openai_compatible_call(settings.DEEPSEEK_BASE_URL),
        )

    openrouter = openrouter_audio = openrouter_vision = None
    if settings.openrouter_api_keys:
        openrouter_call = openai_compatible_call(settings.OPENROUTER_BASE_URL, OPENROUTER_HEADERS)
        openrouter = ProviderDescriptor(
            name="openrouter",
            attempts=plan_attempts(settings.openrouter_api_keys, [settings.OPENROUTER_MODEL]),
            call=openrouter_call,
        )
        openrouter_audio = ProviderDescriptor(
            name="openrouter-audio",
            attempts=plan_attempts(settings.openrouter_api_keys, [settings.OPENROUTER_AUDIO_MODEL]),
            call=openrouter_call,
            multimodal=True,
        )
        openrouter_vision = ProviderDescriptor(
            name="openrouter-vision",
            attempts=plan_attempts(settings.openrouter_api_keys, [settings.OPENROUTER_VISION_MODEL]),
            call=openrouter_call,
            multimodal=True,
        )

    chains = ProviderChains(
        text=_present(gemini, deepseek, openrouter),
        audio=_present(gemini, openrouter_audio),
        image=_present(gemini, openrouter_vision),
    )
    logger.info(f"[CHAIN] Configured text={[p.name for p in chains.text]} "
                f"audio={[p.name for p in chains.audio]} image={[p.name for p in chains.image]}")
    return chains


def _present(*providers: Optional[ProviderDescriptor]) -> tuple[ProviderDescriptor, ...]:
    return tuple(p for p in providers if p is not None)
