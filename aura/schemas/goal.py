"""Pydantic schemas for goals, steps and the caller-supplied context."""
from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class GoalCategory(str, Enum):
    """Registry a goal belongs to: day-to-day tasks or yearly resolutions."""
    DAILY = "daily"
    NEW_YEAR = "new-year"


class ChatSessionMode(str, Enum):
    """Insight only talks; override also updates the registry from the message."""
    INSIGHT = "insight"
    OVERRIDE = "override"


class CamelModel(BaseModel):
    """Base model that reads and writes the browser's camelCase field names."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Step(CamelModel):
    """A sub-task belonging to a goal."""
    id: str = Field(..., description="Opaque step identifier")
    text: str = Field(..., min_length=1, description="What to do")
    completed: bool = Field(default=False, description="Whether this step is done")


class Goal(CamelModel):
    """A structured actionable intent extracted from free-form input."""
    id: str = Field(..., description="Opaque goal identifier")
    title: str = Field(..., min_length=1, alias="goal", description="The main task or goal")
    description: Optional[str] = Field(default=None, description="Additional details about the goal")
    priority: Priority = Field(default=Priority.MEDIUM, description="Priority level of the goal")
    completed: bool = Field(default=False, description="Whether the goal is completed")
    due_date: Optional[str] = Field(default=None, description="Due date (ISO-8601)")
    steps: List[Step] = Field(default_factory=list, description="Ordered sub-steps")
    created_at: str = Field(..., description="Creation timestamp (ISO-8601)")
    category: Optional[GoalCategory] = Field(default=None, description="Registry the goal was captured for")


class ExtractionResult(CamelModel):
    """Goals found in one input plus the transcription of that input."""
    goals: List[Goal] = Field(default_factory=list)
    transcription: str = Field(default="", description="Verbatim echo of the spoken or written input")


class NeuralPattern(CamelModel):
    """Behavioral bias learned by the client and fed into prompts. Never mutated here."""
    frequent_labels: List[str] = Field(default_factory=list, description="Topics the user returns to")
    preferred_language: str = Field(default="en", description="Language the user writes in")
    last_action_type: str = Field(default="", description="Most recent kind of action the user took")
    average_task_complexity: float = Field(default=0.0, description="Average number of steps per goal")


class UserProfile(CamelModel):
    name: str = Field(default="", description="Display name")
    email: str = Field(default="", description="Contact identifier")
    focus_area: str = Field(default="", description="Stated focus, e.g. 'Fitness' or 'Career growth'")


class ChatMessage(CamelModel):
    role: str = Field(..., pattern="^(user|model)$")
    content: str
    timestamp: Optional[str] = None


# Structured-output contract handed to providers that support constrained generation.
GOAL_RESPONSE_SCHEMA = {
    "type": "object",
    "properties": {
        "goals": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "goal": {"type": "string", "description": "The main task or goal (REQUIRED)"},
                    "description": {"type": "string", "description": "Additional details about the goal"},
                    "priority": {
                        "type": "string",
                        "enum": ["low", "medium", "high"],
                        "description": "Priority level of the goal"
                    },
                    "completed": {"type": "boolean", "description": "Whether the goal is completed"},
                    "dueDate": {"type": "string", "description": "Optional due date (ISO format)"},
                    "steps": {
                        "type": "array",
                        "description": "Sub-steps to accomplish the goal",
                        "items": {
                            "type": "object",
                            "properties": {
                                "text": {"type": "string", "description": "The step description"},
                                "completed": {"type": "boolean", "description": "Whether this step is done"}
                            },
                            "required": ["text", "completed"]
                        }
                    }
                },
                "required": ["goal", "priority", "completed"]
            }
        },
        "transcription": {
            "type": "string",
            "description": "Exact transcription of the user's spoken or written words (REQUIRED)"
        }
    },
    "required": ["goals", "transcription"]
}
