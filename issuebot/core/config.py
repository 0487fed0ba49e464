"""
Configuration management using Pydantic Settings.
Loads settings from environment variables and .env files.

Settings are frozen and built once at startup; components receive the
instance (or one of its sub-settings) through their constructors.
"""

from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GitHubSettings(BaseSettings):
    """GitHub App configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="GITHUB_",
        env_file=".env",
        extra="ignore",
        frozen=True,
    )

    app_id: int = Field(..., description="GitHub App ID")
    app_private_key: str = Field(
        ...,
        description="GitHub App private key (base64-encoded or raw PEM)",
        repr=False,
    )
    app_name: str = Field(..., description="GitHub App slug, used as the @mention")
    webhook_secret: str = Field(..., description="Webhook signing secret", repr=False)

    api_url: str = Field(default="https://api.github.com", description="REST API base URL")
    web_url: str = Field(default="https://github.com", description="Host used for git clone/push")
    timeout: int = Field(default=30, description="REST request timeout in seconds")

    @field_validator("app_name")
    @classmethod
    def validate_app_name(cls, v: str) -> str:
        v = v.strip().lstrip("@")
        if not v:
            raise ValueError("app_name must not be empty")
        return v

    @property
    def mention(self) -> str:
        """The exact token a comment must start with to address the bot."""
        return f"@{self.app_name}"

    @property
    def bot_login(self) -> str:
        """Login GitHub uses for comments posted by this App."""
        return f"{self.app_name}[bot]"


class GeminiSettings(BaseSettings):
    """Gemini text-generation backend settings."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    api_key: str = Field(
        ...,
        validation_alias=AliasChoices("GOOGLE_API_KEY", "GEMINI_API_KEY", "api_key"),
        description="Google AI Studio API key",
        repr=False,
    )
    model: str = Field(default="gemini-1.5-flash", description="Model used for all prompts")
    base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Generative Language API base URL",
    )
    timeout: int = Field(default=120, description="Request timeout in seconds")


class WorkflowSettings(BaseSettings):
    """Dispatcher and feature workflow settings."""

    model_config = SettingsConfigDict(
        env_prefix="WORKFLOW_",
        env_file=".env",
        extra="ignore",
        frozen=True,
    )

    max_concurrent_tasks: int = Field(default=4, ge=1, description="Task pool size")
    command_timeout: int = Field(default=600, description="Timeout for git and agent processes")
    patch_agent_command: str = Field(default="gemini", description="Patch agent executable")
    patch_agent_args: list[str] = Field(
        default=["-y", "-a"],
        description="Flags passed to the patch agent after the instruction",
    )
    workspace_root: Optional[str] = Field(
        default=None,
        description="Parent directory for temporary workspaces (system temp dir if unset)",
    )
    enable_label_triggers: bool = Field(
        default=False,
        description="Treat issue labels named after a command as triggers",
    )
    shutdown_timeout: int = Field(default=30, description="Seconds to wait for running tasks")


class Settings(BaseSettings):
    """Main application settings aggregating all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Application
    app_name: str = Field(default="issuebot", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/staging/production)")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Logging level")

    # Server
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, description="Server port")

    # Sub-settings
    github: GitHubSettings = Field(default_factory=GitHubSettings)
    gemini: GeminiSettings = Field(default_factory=GeminiSettings)
    workflow: WorkflowSettings = Field(default_factory=WorkflowSettings)

    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, v: str) -> str:
        allowed = {"development", "staging", "production"}
        if v.lower() not in allowed:
            raise ValueError(f"app_env must be one of {allowed}")
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return v.upper()

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == "development"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Raises pydantic's ValidationError when required variables are missing;
    callers at process start treat that as fatal.
    """
    return Settings()
