"""Agent core module."""

from frontdesk.agent.actions import extract_action
from frontdesk.agent.content import normalize_content
from frontdesk.agent.invoker import AgentInvocationError, AgentInvoker
from frontdesk.agent.personas import AgentPersona, InMemoryPersonaStore
from frontdesk.agent.prompt import build_conversation_prompt
from frontdesk.agent.receptionist import FALLBACK_TEXT, AgentReply, ReceptionistService

__all__ = [
    "AgentInvocationError",
    "AgentInvoker",
    "AgentPersona",
    "AgentReply",
    "FALLBACK_TEXT",
    "InMemoryPersonaStore",
    "ReceptionistService",
    "build_conversation_prompt",
    "extract_action",
    "normalize_content",
]
