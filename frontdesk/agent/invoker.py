"""Drive one streaming agent call to its terminal result."""

from __future__ import annotations

import asyncio
from typing import Any

from frontdesk.logging import get_logger
from frontdesk.providers.base import AgentProvider, QueryOptions
from frontdesk.providers.events import EVENT_RESULT, RESULT_SUCCESS

logger = get_logger(__name__)

DEFAULT_MODEL = "anthropic/claude-haiku-4-5-20251001"


class AgentInvocationError(RuntimeError):
    """The agent call failed, produced no usable result, or the transport raised."""


class AgentInvoker:
    """
    Issue a single streaming call per turn and return the final text.

    No retries happen here; callers decide what to do with a failure.
    """

    def __init__(
        self,
        provider: AgentProvider,
        model: str = DEFAULT_MODEL,
        timeout: float | None = None,
    ) -> None:
        self.provider = provider
        self.model = model
        self.timeout = timeout

    def options_for(self, system_prompt: str) -> QueryOptions:
        return QueryOptions(model=self.model, system_prompt=system_prompt, allowed_tools=[])

    async def invoke(self, prompt: str, system_prompt: str) -> str:
        """
        Run the agent on *prompt* and return its final reply text.

        Raises:
            AgentInvocationError: on a terminal failure event, a stream that
                ends without a non-empty successful result, a timeout, or any
                exception raised while consuming the stream.
        """
        try:
            if self.timeout is None:
                return await self._consume(prompt, system_prompt)
            return await asyncio.wait_for(self._consume(prompt, system_prompt), timeout=self.timeout)
        except AgentInvocationError:
            raise
        except asyncio.TimeoutError as e:
            raise AgentInvocationError(f"agent invocation timed out after {self.timeout}s") from e
        except Exception as e:
            raise AgentInvocationError(f"agent stream failed: {e}") from e

    async def _consume(self, prompt: str, system_prompt: str) -> str:
        stream = self.provider.query(prompt, self.options_for(system_prompt))
        deltas = 0
        try:
            async for event in stream:
                if event.get("type") != EVENT_RESULT:
                    deltas += 1
                    continue
                text = self._terminal_text(event)
                if text:
                    logger.debug("agent_result", model=self.model, deltas=deltas, chars=len(text))
                    return text
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()
        raise AgentInvocationError("no result produced")

    @staticmethod
    def _terminal_text(event: Any) -> str | None:
        if event.get("subtype") == RESULT_SUCCESS and event.get("result"):
            return event["result"]
        errors = event.get("errors") or []
        if errors:
            raise AgentInvocationError("; ".join(str(e) for e in errors))
        return None
