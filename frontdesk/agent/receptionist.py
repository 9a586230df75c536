"""Per-message session orchestration between an external channel and the agent."""

from __future__ import annotations

import datetime
import enum
from dataclasses import dataclass

import structlog

from frontdesk.agent.actions import ActionDirective, extract_action
from frontdesk.agent.content import MessageContent, normalize_content
from frontdesk.agent.invoker import AgentInvoker
from frontdesk.agent.personas import PersonaLookup, PersonaStore, build_system_prompt, resolve_persona
from frontdesk.agent.prompt import build_conversation_prompt
from frontdesk.logging import ObservabilitySink, StructlogSink, get_logger
from frontdesk.session.history import MAX_HISTORY, HistoryStore, Turn

logger = get_logger(__name__)

FALLBACK_TEXT = "Desculpe, tive um problema técnico. Pode repetir?"
LOG_TAG = "receptionist"
DEFAULT_PREVIEW_CHARS = 80


@dataclass(frozen=True)
class AgentReply:
    """What the caller gets back for one inbound message."""

    clean_text: str
    action: ActionDirective | None = None


class TurnState(str, enum.Enum):
    """Last step a turn reached; reported when the turn fails."""

    START = "start"
    NORMALIZING = "normalizing"
    USER_RECORDED = "user_recorded"
    INVOKING = "invoking"
    SUCCEEDED = "succeeded"
    ACTION_EXTRACTED = "action_extracted"


@dataclass
class ReceptionistStats:
    turns_succeeded: int = 0
    turns_failed: int = 0
    last_processed_at: str | None = None
    last_failure_state: str | None = None

    def as_dict(self) -> dict[str, object]:
        return {
            "turns_succeeded": self.turns_succeeded,
            "turns_failed": self.turns_failed,
            "last_processed_at": self.last_processed_at,
            "last_failure_state": self.last_failure_state,
        }


class ReceptionistService:
    """
    Mediates between an external chat channel and one agent call per turn.

    A turn either completes fully (user and assistant turns recorded) or
    fails with only the user turn recorded and a fixed apology returned.
    Turns for the same conversation id are serialized; different ids run
    independently.
    """

    def __init__(
        self,
        personas: PersonaStore | PersonaLookup | None,
        invoker: AgentInvoker,
        history: HistoryStore | None = None,
        sink: ObservabilitySink | None = None,
        *,
        fallback_text: str = FALLBACK_TEXT,
        preview_chars: int = DEFAULT_PREVIEW_CHARS,
    ) -> None:
        self.personas = personas
        self.invoker = invoker
        self.history_store = history if history is not None else HistoryStore(MAX_HISTORY)
        self.sink: ObservabilitySink = sink if sink is not None else StructlogSink()
        self.fallback_text = fallback_text
        self.preview_chars = preview_chars
        self.stats = ReceptionistStats()

    async def handle_message(
        self,
        agent_id: str,
        conversation_id: str,
        content: MessageContent,
    ) -> AgentReply:
        """Process one inbound message and return the reply for the contact."""
        structlog.contextvars.bind_contextvars(agent_id=agent_id, conversation_id=conversation_id)
        try:
            async with self.history_store.exclusive(conversation_id):
                return await self._run_turn(agent_id, conversation_id, content)
        finally:
            structlog.contextvars.unbind_contextvars("agent_id", "conversation_id")

    async def _run_turn(
        self,
        agent_id: str,
        conversation_id: str,
        content: MessageContent,
    ) -> AgentReply:
        state = TurnState.START
        try:
            persona = await resolve_persona(self.personas, agent_id)
            system_prompt = build_system_prompt(persona)

            state = TurnState.NORMALIZING
            user_text = normalize_content(content)
            generation = self.history_store.generation(conversation_id)
            self.history_store.append(conversation_id, Turn("user", user_text))
            state = TurnState.USER_RECORDED

            prompt = build_conversation_prompt(self.history_store.get(conversation_id), user_text)
            state = TurnState.INVOKING
            raw_text = await self.invoker.invoke(prompt, system_prompt)
            state = TurnState.SUCCEEDED

            clean_text, action = extract_action(raw_text)
            state = TurnState.ACTION_EXTRACTED

            if self.history_store.generation(conversation_id) == generation:
                self.history_store.append(conversation_id, Turn("assistant", raw_text))
            else:
                # Reset landed mid-turn; the reply is still delivered.
                logger.info("assistant_turn_dropped_after_reset", conversation_id=conversation_id)
        except Exception as e:
            self._record_failure(conversation_id, state, e)
            return AgentReply(clean_text=self.fallback_text, action=None)

        self._record_success(conversation_id, clean_text, action)
        return AgentReply(clean_text=clean_text, action=action)

    def _record_success(self, conversation_id: str, clean_text: str, action: ActionDirective | None) -> None:
        self.stats.turns_succeeded += 1
        self.stats.last_processed_at = datetime.datetime.now(datetime.timezone.utc).isoformat()
        action_name = action["action"] if action else "none"
        self._notify(
            "info",
            f"Receptionist [{conversation_id}]: {clean_text[:self.preview_chars]}... action={action_name}",
            LOG_TAG,
            conversation_id=conversation_id,
            action=action_name,
        )

    def _record_failure(self, conversation_id: str, failed_at: TurnState, error: Exception) -> None:
        self.stats.turns_failed += 1
        self.stats.last_failure_state = failed_at.value
        self._notify(
            "error",
            f"Receptionist error: {error}",
            LOG_TAG,
            conversation_id=conversation_id,
            failed_at=failed_at.value,
            error_type=type(error).__name__,
        )

    def _notify(self, level: str, message: str, tag: str, **fields: object) -> None:
        try:
            getattr(self.sink, level)(message, tag, **fields)
        except Exception:
            logger.warning("observability_sink_failed", level=level, tag=tag, exc_info=True)

    def clear_conversation(self, conversation_id: str) -> None:
        """Drop all history for *conversation_id*; the next message starts fresh."""
        self.history_store.clear(conversation_id)
        logger.info("conversation_cleared", conversation_id=conversation_id)

    def history(self, conversation_id: str) -> tuple[Turn, ...]:
        return self.history_store.get(conversation_id)

    def status(self) -> dict[str, object]:
        return {"conversations": len(self.history_store), **self.stats.as_dict()}
