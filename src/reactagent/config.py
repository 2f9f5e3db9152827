"""Configuration settings for reactagent."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import AliasChoices, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from reactagent.errors import ConfigurationError


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or overrides."""

    model_config = SettingsConfigDict(
        env_prefix="", case_sensitive=False, populate_by_name=True, extra="ignore"
    )

    api_key: str | None = Field(
        default=None, validation_alias=AliasChoices("OPENAI_API_KEY", "CLAUDE_API_KEY")
    )
    model: str = Field(
        default="gpt-4o-mini",
        min_length=1,
        validation_alias=AliasChoices(
            "MODEL_NAME", "OPENAI_MODEL", "OPENAI_MODEL_NAME", "CLAUDE_MODEL"
        ),
    )
    base_url: str = Field(
        default="https://api.openai.com/v1",
        min_length=1,
        validation_alias=AliasChoices("OPENAI_BASE_URL", "BASE_URL", "CLAUDE_BASE_URL"),
    )
    temperature: float = Field(
        default=0.2,
        ge=0,
        le=1,
        validation_alias=AliasChoices("OPENAI_TEMPERATURE", "CLAUDE_TEMPERATURE"),
    )
    max_tokens: int = Field(
        default=1024,
        gt=0,
        validation_alias=AliasChoices("OPENAI_MAX_TOKENS", "CLAUDE_MAX_TOKENS"),
    )
    max_steps: int = Field(
        default=5, gt=0, le=10, validation_alias=AliasChoices("AGENT_MAX_STEPS")
    )
    top_p: float = Field(
        default=0.95,
        ge=0,
        le=1,
        validation_alias=AliasChoices("OPENAI_TOP_P", "CLAUDE_TOP_P"),
    )
    top_k: int | None = Field(
        default=None,
        gt=0,
        validation_alias=AliasChoices("OPENAI_TOP_K", "CLAUDE_TOP_K"),
    )
    stream: bool = Field(default=True, validation_alias=AliasChoices("AGENT_STREAM"))
    timeout_seconds: float = Field(
        default=60,
        gt=0,
        validation_alias=AliasChoices("OPENAI_TIMEOUT_SECONDS"),
    )


@dataclass(frozen=True)
class AgentConfig:
    """Resolved settings handed to the agent and evaluator."""

    api_key: str
    model: str
    base_url: str
    temperature: float
    max_tokens: int
    max_steps: int
    top_p: float
    top_k: int | None = None
    stream: bool = True
    timeout_seconds: float = 60


def load_settings(env_file: str | None = None, **overrides: object) -> Settings:
    """Read settings from the environment, an optional .env file and overrides."""
    try:
        settings = Settings(_env_file=env_file) if env_file else Settings()
        if not overrides:
            return settings
        return Settings.model_validate({**settings.model_dump(), **overrides})
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid settings: {exc}") from exc


def build_agent_config(settings: Settings) -> AgentConfig:
    if not settings.api_key:
        raise ConfigurationError("OPENAI_API_KEY (or CLAUDE_API_KEY) is required")
    return AgentConfig(
        api_key=settings.api_key,
        model=settings.model,
        base_url=settings.base_url,
        temperature=settings.temperature,
        max_tokens=settings.max_tokens,
        max_steps=settings.max_steps,
        top_p=settings.top_p,
        top_k=settings.top_k,
        stream=settings.stream,
        timeout_seconds=settings.timeout_seconds,
    )
