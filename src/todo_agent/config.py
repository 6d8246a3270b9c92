"""Configuration management for the todo agent using Pydantic settings.

This module handles all configuration for the agent, loading from
environment variables and .env files with sensible defaults.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Main configuration settings for the todo agent.

    Settings are loaded from environment variables and .env files.
    Environment variables take precedence over .env file values.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # LLM provider selection
    llm_provider: Literal["ollama", "gemini"] = Field(
        default="ollama",
        description="Which LLM backend drives the agent",
    )

    # Ollama Configuration
    ollama_host: str = Field(
        default="http://localhost:11434",
        description="Ollama server URL",
    )
    ollama_model: str = Field(
        default="qwen3:30b-a3b",
        description="Ollama model used for planning and tool selection",
    )
    ollama_timeout: int = Field(
        default=120,
        description="Timeout for Ollama API calls in seconds",
        ge=10,
        le=600,
    )
    ollama_temperature: float = Field(
        default=0.0,
        description="Temperature for LLM generation",
        ge=0.0,
        le=2.0,
    )

    # Gemini Configuration
    gemini_api_key: str | None = Field(
        default=None,
        description="API key for the Gemini generative language API",
    )
    gemini_model: str = Field(
        default="gemini-2.5-flash",
        description="Gemini model name",
    )
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Base URL of the Gemini REST API",
    )
    gemini_timeout: int = Field(
        default=60,
        description="Timeout for Gemini API calls in seconds",
        ge=5,
        le=600,
    )

    # Application Settings
    todo_log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING",
        description="Logging level for the application",
    )
    todo_log_file: Path | None = Field(
        default=None,
        description="Optional file path to write logs (defaults to console only)",
    )
    todo_data_dir: Path = Field(
        default=Path("./data"),
        description="Base directory for local data storage",
    )

    # Database Configuration
    todo_db_path: Path | None = Field(
        default=None,
        description="Path to the SQLite todo database (auto-generated in data_dir if not set)",
    )

    # Agent Settings
    agent_max_iterations: int = Field(
        default=50,
        description="Maximum number of model round-trips per user turn",
        ge=1,
        le=200,
    )
    agent_verbose: bool = Field(
        default=False,
        description="Show plans and tool calls while the agent works",
    )

    @field_validator("todo_data_dir", "todo_log_file", "todo_db_path", mode="before")
    @classmethod
    def expand_paths(cls, v: str | Path | None) -> Path | None:
        """Expand relative paths to absolute paths."""
        if v is None:
            return None
        path = Path(v)
        return path.expanduser().resolve()

    @field_validator("todo_db_path", mode="after")
    @classmethod
    def set_default_db_path(cls, v: Path | None, info) -> Path:
        """Set default database path if not specified."""
        if v is None:
            data_dir = info.data.get("todo_data_dir", Path("./data"))
            return data_dir / "todos.db"
        return v

    def ensure_directories(self) -> None:
        """Create all required directories if they don't exist."""
        directories = [
            self.todo_data_dir,
            self.todo_db_path.parent,
        ]

        for directory in directories:
            directory.mkdir(parents=True, exist_ok=True)

    @property
    def ollama_base_url(self) -> str:
        """Get the base URL for Ollama API (without /api suffix)."""
        return self.ollama_host.rstrip("/")

    @property
    def active_model(self) -> str:
        """Name of the model used by the selected provider."""
        if self.llm_provider == "gemini":
            return self.gemini_model
        return self.ollama_model

    def model_dump_safe(self) -> dict[str, str]:
        """Dump settings as a dictionary with safe string representations.

        Useful for logging configuration without exposing sensitive data.
        """
        return {
            "llm_provider": self.llm_provider,
            "model": self.active_model,
            "ollama_host": self.ollama_host,
            "gemini_api_key": "***" if self.gemini_api_key else "(not set)",
            "log_level": self.todo_log_level,
            "data_dir": str(self.todo_data_dir),
            "db_path": str(self.todo_db_path),
            "max_iterations": str(self.agent_max_iterations),
        }


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance.

    Creates and caches the settings on first call.
    Ensures all required directories exist.

    Returns:
        Settings: The global settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()
        _settings.ensure_directories()
    return _settings


def reload_settings() -> Settings:
    """Reload settings from environment/files.

    Useful for testing or when configuration changes at runtime.

    Returns:
        Settings: The newly loaded settings instance
    """
    global _settings
    _settings = Settings()
    _settings.ensure_directories()
    return _settings
