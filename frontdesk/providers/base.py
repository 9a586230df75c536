"""Base interface for hosted agent providers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import AsyncIterator, Protocol

from frontdesk.providers.events import StreamEvent

PERMISSION_MODE_BYPASS = "bypassPermissions"


@dataclass(frozen=True)
class QueryOptions:
    """Fixed parameters for one agent call."""

    model: str
    system_prompt: str
    allowed_tools: list[str] = field(default_factory=list)
    # Nobody is around to confirm anything mid-call.
    permission_mode: str = PERMISSION_MODE_BYPASS


class AgentProvider(Protocol):
    """
    A hosted model that answers one prompt as a stream of typed events.

    Implementations end every stream with a single ``result`` event.
    """

    def query(self, prompt: str, options: QueryOptions) -> AsyncIterator[StreamEvent]: ...
