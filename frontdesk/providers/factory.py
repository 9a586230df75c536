"""Provider and service factory to keep wiring isolated from CLI logic."""

from __future__ import annotations

from frontdesk.agent.invoker import AgentInvoker
from frontdesk.agent.personas import PersonaLookup, PersonaStore
from frontdesk.agent.receptionist import ReceptionistService
from frontdesk.config.schema import Config
from frontdesk.logging import get_logger
from frontdesk.providers.litellm_provider import LiteLLMProvider
from frontdesk.session.history import HistoryStore

logger = get_logger(__name__)


def create_provider(config: Config) -> LiteLLMProvider:
    """Create the hosted model provider from config."""
    p = config.provider
    return LiteLLMProvider(
        api_key=p.resolved_api_key or None,
        api_base=p.api_base,
        extra_headers=p.extra_headers,
        request_timeout=p.request_timeout,
        langfuse_config=config.observability.langfuse,
    )


def create_service(
    config: Config,
    personas: PersonaStore | PersonaLookup | None = None,
    provider: LiteLLMProvider | None = None,
) -> ReceptionistService:
    """Wire a ReceptionistService with its own history store."""
    agent = config.agent
    invoker = AgentInvoker(provider or create_provider(config), model=agent.model, timeout=agent.timeout)
    logger.debug("service_created", model=agent.model, max_history=agent.max_history)
    return ReceptionistService(
        personas,
        invoker,
        history=HistoryStore(agent.max_history),
        fallback_text=agent.fallback_text,
        preview_chars=agent.preview_chars,
    )
