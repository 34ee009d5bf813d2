"""
Completion Broker - the four operations the client calls.

Each operation builds its own instruction and prompt, runs the provider
chain for its modality, normalizes the answer and applies its own failure
policy:

- text extraction: caller's goals unchanged
- audio extraction: no goals plus an explanatory transcription
- image extraction: raises
- chat: fixed fallback reply
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional, Sequence

from aura.core.config import Settings
from aura.core.exceptions import ChainExhausted, ParseFailure
from aura.core.prompts import (
    build_audio_extraction_prompt,
    build_chat_prompt,
    build_image_extraction_prompt,
    build_system_instruction,
    build_text_extraction_prompt,
)
from aura.schemas.goal import (
    ChatMessage,
    ChatSessionMode,
    ExtractionResult,
    Goal,
    GoalCategory,
    NeuralPattern,
    UserProfile,
)
from aura.services.provider_chain import complete
from aura.services.providers import (
    CompletionRequest,
    MediaPayload,
    ProviderChains,
    ProviderDescriptor,
    build_provider_chains,
)
from aura.services.result_normalizer import IdFactory, new_id, normalize_extraction

logger = logging.getLogger(__name__)

FALLBACK_REPLY = "I am unable to process that signal right now. Please try again in a moment."
AUDIO_FAILURE_TRANSCRIPTION = "Error processing audio: the recording could not be analyzed. Please try again or type your goal."

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CompletionBroker:
    """Goal extraction and dialogue over the cascading provider chains.

    Holds only immutable configuration (provider chains, clock, id source),
    so one instance can serve concurrent requests.
    """

    def __init__(
        self,
        chains: ProviderChains,
        clock: Clock = utc_now,
        id_factory: IdFactory = new_id,
        history_window: int = 8,
    ):
        self.chains = chains
        self.clock = clock
        self.id_factory = id_factory
        self.history_window = history_window

    @classmethod
    def from_settings(cls, settings: Settings) -> "CompletionBroker":
        return cls(build_provider_chains(settings), history_window=settings.CHAT_HISTORY_WINDOW)

    async def _extract(
        self,
        providers: Sequence[ProviderDescriptor],
        prompt: str,
        patterns: Optional[NeuralPattern],
        profile: Optional[UserProfile],
        category: Optional[GoalCategory],
        media: Optional[MediaPayload] = None,
    ) -> ExtractionResult:
        now = self.clock()
        request = CompletionRequest(
            system_instruction=build_system_instruction(now, patterns, profile, structured_mode=True),
            prompt=prompt,
            json_mode=True,
            media=media,
        )
        completion = await complete(providers, request)
        result = normalize_extraction(
            completion.text,
            now=now,
            id_factory=self.id_factory,
            category=category,
        )
        logger.info(f"[EXTRACT] {len(result.goals)} goal(s) via {completion.provider}/{completion.model}")
        return result

    async def extract_from_text(
        self,
        prompt: str,
        existing_goals: list[Goal],
        patterns: Optional[NeuralPattern] = None,
        profile: Optional[UserProfile] = None,
        category: Optional[GoalCategory] = None,
    ) -> list[Goal]:
        """
        Extract goals from typed or browser-transcribed text.

        Returns:
            The newly extracted goals, or `existing_goals` itself on any failure
        """
        try:
            result = await self._extract(
                self.chains.text,
                build_text_extraction_prompt(prompt, existing_goals, category),
                patterns,
                profile,
                category,
            )
        except ChainExhausted as e:
            logger.error(f"[EXTRACT] Text extraction failed, keeping registry: {e.message}")
            return existing_goals
        except ParseFailure as e:
            logger.error(f"[EXTRACT] Unparseable text extraction, keeping registry: {e.message}")
            return existing_goals
        return result.goals

    async def extract_from_audio(
        self,
        audio_bytes: bytes,
        mime_type: str,
        existing_goals: list[Goal],
        patterns: Optional[NeuralPattern] = None,
        profile: Optional[UserProfile] = None,
        category: Optional[GoalCategory] = None,
    ) -> ExtractionResult:
        """Transcribe a recording and extract goals. Never raises for provider or parse failures."""
        try:
            return await self._extract(
                self.chains.audio,
                build_audio_extraction_prompt(existing_goals, category),
                patterns,
                profile,
                category,
                media=MediaPayload(data=audio_bytes, mime_type=mime_type),
            )
        except (ChainExhausted, ParseFailure) as e:
            logger.error(f"[EXTRACT] Audio extraction failed: {e.message}")
            return ExtractionResult(goals=[], transcription=AUDIO_FAILURE_TRANSCRIPTION)

    async def extract_from_image(
        self,
        image_bytes: bytes,
        mime_type: str,
        existing_goals: list[Goal],
        patterns: Optional[NeuralPattern] = None,
        profile: Optional[UserProfile] = None,
        category: Optional[GoalCategory] = None,
    ) -> list[Goal]:
        """
        Extract goals from a photo, screenshot or vision board.

        Raises:
            ChainExhausted: no provider could read the image
            ParseFailure: the answer was not an extraction payload
        """
        result = await self._extract(
            self.chains.image,
            build_image_extraction_prompt(existing_goals, category),
            patterns,
            profile,
            category,
            media=MediaPayload(data=image_bytes, mime_type=mime_type),
        )
        return result.goals

    async def converse(
        self,
        message: str,
        history: Sequence[ChatMessage],
        existing_goals: Sequence[Goal],
        patterns: Optional[NeuralPattern] = None,
        profile: Optional[UserProfile] = None,
        mode: ChatSessionMode = ChatSessionMode.INSIGHT,
    ) -> str:
        """Short free-text reply. Returns FALLBACK_REPLY instead of raising."""
        request = CompletionRequest(
            system_instruction=build_system_instruction(self.clock(), patterns, profile, structured_mode=False),
            prompt=build_chat_prompt(message, history, existing_goals, mode, self.history_window),
            json_mode=False,
        )
        try:
            completion = await complete(self.chains.text, request)
        except ChainExhausted as e:
            logger.error(f"[CHAT] No provider answered: {e.message}")
            return FALLBACK_REPLY
        return completion.text.strip()
