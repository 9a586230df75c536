"""Agent provider abstraction module."""

from frontdesk.providers.base import AgentProvider, QueryOptions
from frontdesk.providers.litellm_provider import LiteLLMProvider

__all__ = ["AgentProvider", "QueryOptions", "LiteLLMProvider"]
