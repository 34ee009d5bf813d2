from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from typing import Annotated, Literal, Optional
import json


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    ENVIRONMENT: Literal["dev", "prod"] = Field(default="dev", description="Application environment")
    FRONTEND_URL: str = Field(default="http://localhost:5173", description="Frontend URL for CORS")
    LOG_LEVEL: str = Field(default="INFO", description="Root log level for the API process")

    # Gemini (primary, multimodal). Up to three credential slots.
    GEMINI_API_KEY: str | None = Field(default=None, description="Primary Gemini API key")
    GEMINI_API_KEY_2: str | None = Field(default=None, description="Second Gemini API key slot")
    GEMINI_API_KEY_3: str | None = Field(default=None, description="Third Gemini API key slot")
    GEMINI_MODELS: Annotated[list[str], NoDecode] = Field(
        default=["gemini-3-flash-preview", "gemini-2.5-flash", "gemini-2.5-pro"],
        description="Gemini model ids, tried in order under each key"
    )

    # DeepSeek (secondary, text only)
    DEEPSEEK_API_KEY: str | None = Field(default=None, description="DeepSeek API key")
    DEEPSEEK_BASE_URL: str = Field(default="https://api.deepseek.com", description="DeepSeek OpenAI-compatible endpoint")
    DEEPSEEK_MODEL: str = Field(default="deepseek-chat", description="DeepSeek chat model id")

    # OpenRouter (tertiary text, plus multimodal fallbacks for audio and image)
    OPENROUTER_API_KEY_1: str | None = Field(default=None, description="First OpenRouter API key")
    OPENROUTER_API_KEY_2: str | None = Field(default=None, description="Second OpenRouter API key")
    OPENROUTER_BASE_URL: str = Field(default="https://openrouter.ai/api/v1", description="OpenRouter endpoint")
    OPENROUTER_MODEL: str = Field(
        default="meta-llama/llama-3.3-70b-instruct:free",
        description="Free/low-cost text model routed through OpenRouter"
    )
    OPENROUTER_AUDIO_MODEL: str = Field(default="google/gemini-2.5-flash", description="Audio-capable OpenRouter model")
    OPENROUTER_VISION_MODEL: str = Field(default="google/gemini-2.5-flash", description="Vision-capable OpenRouter model")

    CHAT_HISTORY_WINDOW: int = Field(default=8, description="Number of trailing chat messages echoed into chat prompts")
    REQUEST_TIMEOUT_SECONDS: Optional[float] = Field(
        default=60.0,
        description="Upper bound for one API request to the broker (None disables it)"
    )

    @field_validator("GEMINI_MODELS", mode="before")
    @classmethod
    def split_model_list(cls, v):
        # Accept "a,b,c" in addition to a JSON list
        if isinstance(v, str):
            if v.strip().startswith("["):
                return json.loads(v)
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @field_validator("CHAT_HISTORY_WINDOW")
    @classmethod
    def validate_history_window(cls, v: int) -> int:
        if v < 0:
            raise ValueError("CHAT_HISTORY_WINDOW must not be negative")
        return v

    @property
    def gemini_api_keys(self) -> list[str]:
        return _present(self.GEMINI_API_KEY, self.GEMINI_API_KEY_2, self.GEMINI_API_KEY_3)

    @property
    def deepseek_api_keys(self) -> list[str]:
        return _present(self.DEEPSEEK_API_KEY)

    @property
    def openrouter_api_keys(self) -> list[str]:
        return _present(self.OPENROUTER_API_KEY_1, self.OPENROUTER_API_KEY_2)


def _present(*keys: str | None) -> list[str]:
    """Drop unset or blank credential slots, keeping slot order."""
    return [key.strip() for key in keys if key and key.strip()]


settings = Settings()
