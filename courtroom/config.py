"""Application configuration from environment variables."""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ModelProvider(str, Enum):
    """LLM provider types."""

    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    OPENROUTER = "openrouter"


class ModelType(str, Enum):
    """Available LLM model types."""

    # Anthropic models
    CLAUDE_SONNET = "claude-sonnet-4-20250514"
    CLAUDE_HAIKU = "claude-haiku-3-5-20241022"

    # OpenAI models
    GPT_4O = "gpt-4o"

    # OpenRouter models (provider prefix required)
    GEMINI_2_5_PRO = "google/gemini-2.5-pro"
    LLAMA_70B = "meta-llama/llama-3.3-70b-instruct"


class ModelConfig(BaseModel):
    """Configuration for a model assignment."""

    provider: ModelProvider
    model_id: str


# =============================================================================
# Model Assignments
# =============================================================================

MODEL_ASSIGNMENTS: dict[str, ModelConfig] = {
    # Opposing counsel and judge share one conversation-level model
    "courtroom": ModelConfig(
        provider=ModelProvider.OPENROUTER,
        model_id=ModelType.GEMINI_2_5_PRO.value,
    ),
}


# =============================================================================
# Settings
# =============================================================================


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # API Keys
    anthropic_api_key: str = Field(default="", description="Anthropic API key")
    openai_api_key: str = Field(default="", description="OpenAI API key")
    openrouter_api_key: str = Field(default="", description="OpenRouter API key")

    # Application settings
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")
    host: str = Field(default="127.0.0.1", description="Bind address")
    port: int = Field(default=8001, description="Bind port")

    # Gateway settings
    courtroom_model: str = Field(
        default="",
        description="Override for the courtroom model assignment",
    )
    llm_max_tokens: int = Field(default=1024, description="Max tokens per turn")
    llm_temperature: float = Field(default=0.7, description="Sampling temperature")
    gateway_timeout_seconds: float | None = Field(
        default=None,
        description="Abandon a gateway call after this many seconds (None disables)",
    )

    # Presentation settings
    reaction_probability: float = Field(
        default=0.4,
        ge=0.0,
        le=1.0,
        description="Chance of an ambient reaction when counsel takes the floor",
    )
    speech_language: str = Field(default="en-IN", description="Recognition language")
    sse_heartbeat_seconds: float = Field(default=15.0, description="SSE heartbeat interval")

    # Catalog
    scenario_file: Path | None = Field(
        default=None, description="Optional JSON scenario catalog"
    )

    @field_validator("scenario_file", mode="before")
    @classmethod
    def ensure_path(cls, v: str | Path | None) -> Path | None:
        """Convert string to Path."""
        if v in (None, ""):
            return None
        return Path(v) if isinstance(v, str) else v

    @property
    def has_anthropic_key(self) -> bool:
        """Check if Anthropic API key is configured."""
        return bool(
            self.anthropic_api_key and self.anthropic_api_key != "sk-ant-..."
        )

    @property
    def has_openai_key(self) -> bool:
        """Check if OpenAI API key is configured."""
        return bool(self.openai_api_key and self.openai_api_key != "sk-...")

    @property
    def has_openrouter_key(self) -> bool:
        """Check if OpenRouter API key is configured."""
        return bool(
            self.openrouter_api_key and self.openrouter_api_key != "sk-or-..."
        )

    @property
    def has_any_key(self) -> bool:
        return self.has_anthropic_key or self.has_openai_key or self.has_openrouter_key

    def get_model_provider(self, model: str) -> ModelProvider:
        """Determine which provider to use for a given model."""
        # OpenRouter format: provider/model
        if "/" in model:
            return ModelProvider.OPENROUTER

        if model.startswith("gpt-"):
            return ModelProvider.OPENAI

        if model.startswith("claude-"):
            return ModelProvider.ANTHROPIC

        # Default to OpenRouter for unknown models
        return ModelProvider.OPENROUTER

    def model_for(self, role: str) -> str:
        """Resolve the model id for an assignment key, honoring overrides."""
        if role == "courtroom" and self.courtroom_model:
            return self.courtroom_model
        config = MODEL_ASSIGNMENTS.get(role)
        if not config:
            raise ValueError(f"Unknown model assignment: {role}")
        return config.model_id


# =============================================================================
# Singleton
# =============================================================================


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (for testing)."""
    global _settings
    _settings = None
