"""
Assistant prompts and instructions.

This file contains every prompt the completion broker sends to providers.
Keeping prompt text apart from the provider and parsing code allows prompt
iteration without touching service logic.

Two system instruction modes:
1. Extraction - strict JSON output matching GOAL_RESPONSE_SCHEMA
2. Dialogue - short natural-language replies

Builders here are pure: the current time is always passed in.
"""

import json
from datetime import datetime
from typing import Iterable, Optional, Sequence

from aura.schemas.goal import (
    ChatMessage,
    ChatSessionMode,
    Goal,
    GoalCategory,
    GOAL_RESPONSE_SCHEMA,
    NeuralPattern,
    UserProfile,
)


# =============================================================================
# SYSTEM INSTRUCTION: SHARED PREAMBLE
# =============================================================================

PERSONA_PROMPT = """You are AURA (Autonomous Universal Reasoning Assistant), a personal productivity companion.
CURRENT_TIME: {now_iso} ({weekday}, {clock})
USER: {user_name} | CONTEXT: {focus_area}

COGNITIVE PROTOCOLS:
1. DISCERNMENT: You are a companion, not just a list-maker. Distinguish casual venting, idle thoughts and debate from explicit intent. Do NOT record goals unless they are clearly articulated intentions.
2. CONTEXT: A conversation can run for minutes before a goal is mentioned. When a goal is mentioned, relate it to the goals already in the registry.
3. TIME: Resolve relative dates ("next Friday", "tomorrow") against CURRENT_TIME.
"""

PATTERNS_PROMPT = """
LEARNED PATTERNS:
- Frequent topics: {labels}
- Preferred language: {language}
- Last action: {last_action}
- Average goal complexity: {complexity:.1f} steps
Match the user's language and keep decomposition close to their usual complexity.
"""


# =============================================================================
# SYSTEM INSTRUCTION: EXTRACTION MODE
# =============================================================================

STRUCTURE_MANDATE_PROMPT = """
[STRUCTURE MANDATE]:
- Return valid JSON only. No prose, no markdown.
- If no goals are detected (casual chat, venting), return an empty goals array but still include a faithful transcription.
- For verified goals, automatically decompose into 3-5 logical, high-impact sub-steps.
- Always provide a transcription of the user's spoken or written words.
"""


# =============================================================================
# SYSTEM INSTRUCTION: DIALOGUE MODE
# =============================================================================

DIALOGUE_MANDATE_PROMPT = """
[DIALOGUE MANDATE]:
- Be brief and direct. MAX 2-3 sentences per response.
- No verbose introductions, elaborate metaphors or ornate vocabulary.
- Use simple, clear language. Be supportive but concise.
- Only suggest adding a goal if it is truly helpful for the user's stated focus on {focus_area}.

EXAMPLES OF GOOD RESPONSES:
User: "I'm feeling overwhelmed with work"
BAD: "Greetings. I sense an overload of concurrent operational threads competing for processing bandwidth..."
GOOD: "That sounds tough. Want to break your tasks into smaller pieces? I can help organize them."

User: "Should I exercise today?"
BAD: "The synchronization of your physical vessel with kinetic motion is essential..."
GOOD: "Yes! Even 15 minutes helps. Want me to add it to your registry?"
"""

SCHEMA_HINT_PROMPT = """
Respond with a single JSON object that validates against this JSON Schema:
{schema}
"""


# =============================================================================
# USER PROMPTS
# =============================================================================

TEXT_EXTRACTION_PROMPT = """USER_SIGNAL: {prompt}
Current Registry: {registry}
{category_hint}"""

AUDIO_EXTRACTION_PROMPT = """Listen to this audio and extract any clear goals or tasks mentioned.
Current Registry: {registry}
{category_hint}
IMPORTANT: Provide a transcription and extract ONLY explicit goals. If the user is just chatting or venting, return an empty goals array."""

IMAGE_EXTRACTION_PROMPT = """Extract any tasks, goals, or to-do items from this image.
Current Registry: {registry}
{category_hint}
Use the transcription field for the legible text in the image."""

CHAT_PROMPT = """[MODE: {mode}]
Input: "{message}"
History: {history}
Current Registry: {registry}
Goal: Respond as AURA. Discern whether they want to chat or to change their registry."""

NEW_YEAR_HINT = """CATEGORY: NEW YEAR. These are yearly resolutions. Phrase each goal as an outcome for the year and make the steps milestones spread across the year."""


def build_system_instruction(
    now: datetime,
    patterns: Optional[NeuralPattern] = None,
    profile: Optional[UserProfile] = None,
    structured_mode: bool = True,
) -> str:
    """
    Build the system instruction for one request.

    Args:
        now: Wall-clock time the instruction refers to as "today"
        patterns: Learned behavioral patterns, if the client has any
        profile: User profile, if onboarding has happened
        structured_mode: True for JSON extraction, False for dialogue

    Returns:
        The instruction text
    """
    focus_area = (profile.focus_area if profile else "") or "General Productivity"
    instruction = PERSONA_PROMPT.format(
        now_iso=now.isoformat(),
        weekday=now.strftime("%A"),
        clock=now.strftime("%H:%M"),
        user_name=(profile.name if profile else "") or "User",
        focus_area=focus_area,
    )

    if patterns is not None:
        instruction += PATTERNS_PROMPT.format(
            labels=", ".join(patterns.frequent_labels) or "none yet",
            language=patterns.preferred_language or "en",
            last_action=patterns.last_action_type or "none",
            complexity=patterns.average_task_complexity,
        )

    if structured_mode:
        instruction += STRUCTURE_MANDATE_PROMPT
    else:
        focus = (profile.focus_area if profile else "") or "their goals"
        instruction += DIALOGUE_MANDATE_PROMPT.format(focus_area=focus)

    return instruction


def render_schema_hint() -> str:
    """Schema as text, for providers that cannot enforce a response schema."""
    return SCHEMA_HINT_PROMPT.format(schema=json.dumps(GOAL_RESPONSE_SCHEMA, indent=2))


def format_registry(goals: Iterable[Goal]) -> str:
    return json.dumps([goal.title for goal in goals], ensure_ascii=False)


def _category_hint(category: Optional[GoalCategory]) -> str:
    return NEW_YEAR_HINT if category == GoalCategory.NEW_YEAR else ""


def build_text_extraction_prompt(
    prompt: str,
    existing_goals: Sequence[Goal],
    category: Optional[GoalCategory] = None,
) -> str:
    return TEXT_EXTRACTION_PROMPT.format(
        prompt=prompt,
        registry=format_registry(existing_goals),
        category_hint=_category_hint(category),
    ).rstrip()


def build_audio_extraction_prompt(existing_goals: Sequence[Goal], category: Optional[GoalCategory] = None) -> str:
    return AUDIO_EXTRACTION_PROMPT.format(
        registry=format_registry(existing_goals),
        category_hint=_category_hint(category),
    )


def build_image_extraction_prompt(existing_goals: Sequence[Goal], category: Optional[GoalCategory] = None) -> str:
    return IMAGE_EXTRACTION_PROMPT.format(
        registry=format_registry(existing_goals),
        category_hint=_category_hint(category),
    )


def build_chat_prompt(
    message: str,
    history: Sequence[ChatMessage],
    existing_goals: Sequence[Goal],
    mode: ChatSessionMode = ChatSessionMode.INSIGHT,
    history_window: int = 8,
) -> str:
    """Chat prompt with the trailing history window and the current registry."""
    recent = list(history)[-history_window:] if history_window else []
    return CHAT_PROMPT.format(
        mode=ChatSessionMode(mode).value.upper(),
        message=message,
        history=json.dumps(
            [{"role": m.role, "content": m.content} for m in recent],
            ensure_ascii=False,
        ),
        registry=format_registry(existing_goals),
    )
