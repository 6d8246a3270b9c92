"""Gateway selection from settings."""

from todo_agent.config import Settings, get_settings
from todo_agent.llm.base import ModelGateway, ProviderConfigurationError
from todo_agent.llm.gemini import GeminiGateway
from todo_agent.llm.ollama import OllamaGateway


def create_gateway(settings: Settings | None = None) -> ModelGateway:
    """Build the gateway named by ``settings.llm_provider``.

    Raises:
        ProviderConfigurationError: If the provider is unknown or misconfigured
    """
    settings = settings or get_settings()

    if settings.llm_provider == "ollama":
        return OllamaGateway(settings=settings)
    if settings.llm_provider == "gemini":
        return GeminiGateway(settings=settings)

    raise ProviderConfigurationError(f"Unknown LLM provider: {settings.llm_provider}")
