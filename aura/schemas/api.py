"""Request and response bodies for the HTTP surface."""
from typing import Optional, Any, List
from pydantic import Base64Bytes, BaseModel, Field
from aura.schemas.goal import (
    CamelModel,
    ChatMessage,
    ChatSessionMode,
    Goal,
    GoalCategory,
    NeuralPattern,
    UserProfile,
)


class ApiResponse(BaseModel):
    success: bool
    message: str
    data: Optional[Any] = None


class TextExtractionRequest(CamelModel):
    prompt: str = Field(..., min_length=1, description="Typed or browser-transcribed input")
    existing_goals: List[Goal] = Field(default_factory=list, description="Caller's current registry")
    patterns: Optional[NeuralPattern] = None
    profile: Optional[UserProfile] = None
    category: Optional[GoalCategory] = None


class MediaExtractionRequest(CamelModel):
    data: Base64Bytes = Field(..., description="Base64-encoded audio or image bytes")
    mime_type: str = Field(..., pattern=r"^[\w.+-]+/[\w.+-]+(;.*)?$", description="e.g. audio/webm, image/jpeg")
    existing_goals: List[Goal] = Field(default_factory=list)
    patterns: Optional[NeuralPattern] = None
    profile: Optional[UserProfile] = None
    category: Optional[GoalCategory] = None


class ChatRequest(CamelModel):
    message: str = Field(..., min_length=1)
    history: List[ChatMessage] = Field(default_factory=list)
    existing_goals: List[Goal] = Field(default_factory=list)
    patterns: Optional[NeuralPattern] = None
    profile: Optional[UserProfile] = None
    mode: ChatSessionMode = ChatSessionMode.INSIGHT


class ChatReply(CamelModel):
    reply: str
    goals: Optional[List[Goal]] = Field(default=None, description="Updated goals, only in override mode")
