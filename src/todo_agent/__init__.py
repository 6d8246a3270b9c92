"""todo-agent - a conversational assistant for a persisted todo list.

An LLM plans, picks one of six todo operations, reads the result and
phrases the reply.
"""

__version__ = "0.1.0"

from todo_agent.config import Settings, get_settings, reload_settings

__all__ = ["Settings", "get_settings", "reload_settings", "__version__"]
