"""Pydantic schemas for goals and request/response validation."""
from aura.schemas.goal import (
    Priority,
    GoalCategory,
    ChatSessionMode,
    Step,
    Goal,
    ExtractionResult,
    NeuralPattern,
    UserProfile,
    ChatMessage,
    GOAL_RESPONSE_SCHEMA,
)
from aura.schemas.api import (
    ApiResponse,
    TextExtractionRequest,
    MediaExtractionRequest,
    ChatRequest,
    ChatReply,
)

__all__ = [
    "Priority",
    "GoalCategory",
    "ChatSessionMode",
    "Step",
    "Goal",
    "ExtractionResult",
    "NeuralPattern",
    "UserProfile",
    "ChatMessage",
    "GOAL_RESPONSE_SCHEMA",
    "ApiResponse",
    "TextExtractionRequest",
    "MediaExtractionRequest",
    "ChatRequest",
    "ChatReply",
]
