"""Tests for configuration management."""

import pytest
from pydantic import ValidationError

from todo_agent.config import Settings, get_settings, reload_settings


class TestSettings:
    """Test the Settings class."""

    def test_default_settings(self, temp_data_dir, monkeypatch):
        """Test that default settings are created correctly."""
        for var in ("LLM_PROVIDER", "OLLAMA_HOST", "OLLAMA_MODEL", "AGENT_MAX_ITERATIONS", "TODO_LOG_LEVEL"):
            monkeypatch.delenv(var, raising=False)
        monkeypatch.setattr("todo_agent.config.Settings.model_config", {
            **Settings.model_config,
            "env_file": None,
        })

        settings = Settings(todo_data_dir=temp_data_dir)

        assert settings.llm_provider == "ollama"
        assert settings.ollama_host == "http://localhost:11434"
        assert settings.ollama_model == "qwen3:30b-a3b"
        assert settings.ollama_temperature == 0.0
        assert settings.todo_log_level == "WARNING"
        assert settings.agent_max_iterations == 50

    def test_custom_settings(self, temp_data_dir):
        """Test custom settings override defaults."""
        settings = Settings(
            todo_data_dir=temp_data_dir,
            llm_provider="gemini",
            gemini_api_key="secret",
            agent_max_iterations=5,
        )

        assert settings.llm_provider == "gemini"
        assert settings.active_model == settings.gemini_model
        assert settings.agent_max_iterations == 5

    def test_default_db_path(self, temp_data_dir):
        """Test that the database lives in the data directory by default."""
        settings = Settings(todo_data_dir=temp_data_dir)

        assert settings.todo_db_path == temp_data_dir.resolve() / "todos.db"
        assert settings.todo_db_path.is_absolute()

    def test_explicit_db_path(self, temp_data_dir):
        """Test that an explicit database path wins."""
        settings = Settings(todo_data_dir=temp_data_dir, todo_db_path=temp_data_dir / "other.db")

        assert settings.todo_db_path.name == "other.db"

    def test_ollama_base_url_strips_trailing_slash(self, temp_data_dir):
        """Test the Ollama base URL normalization."""
        settings = Settings(todo_data_dir=temp_data_dir, ollama_host="http://example:11434/")

        assert settings.ollama_base_url == "http://example:11434"

    def test_max_iterations_bounds(self, temp_data_dir):
        """Test that the iteration budget must be at least 1."""
        with pytest.raises(ValidationError):
            Settings(todo_data_dir=temp_data_dir, agent_max_iterations=0)

    def test_invalid_provider(self, temp_data_dir):
        """Test that unknown providers are rejected."""
        with pytest.raises(ValidationError):
            Settings(todo_data_dir=temp_data_dir, llm_provider="openai")

    def test_ensure_directories(self, temp_data_dir):
        """Test that ensure_directories creates the data directory."""
        data_dir = temp_data_dir / "nested" / "data"
        settings = Settings(todo_data_dir=data_dir)

        settings.ensure_directories()

        assert data_dir.exists()

    def test_model_dump_safe_masks_api_key(self, temp_data_dir):
        """Test that the safe dump never shows the API key."""
        settings = Settings(todo_data_dir=temp_data_dir, gemini_api_key="super-secret")

        dumped = settings.model_dump_safe()

        assert "super-secret" not in dumped.values()
        assert all(isinstance(value, str) for value in dumped.values())


class TestGlobalSettings:
    """Test the global settings accessors."""

    def test_get_settings_is_cached(self, temp_data_dir, monkeypatch):
        """Test that get_settings returns the same instance."""
        monkeypatch.setenv("TODO_DATA_DIR", str(temp_data_dir))
        first = reload_settings()

        assert get_settings() is first

    def test_reload_settings_picks_up_env(self, temp_data_dir, monkeypatch):
        """Test that reload_settings reads the environment again."""
        monkeypatch.setenv("TODO_DATA_DIR", str(temp_data_dir))
        monkeypatch.setenv("AGENT_MAX_ITERATIONS", "7")

        settings = reload_settings()

        assert settings.agent_max_iterations == 7
