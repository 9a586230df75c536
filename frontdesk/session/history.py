"""Bounded in-memory conversation history, one log per external contact."""

from __future__ import annotations

import asyncio
from collections import deque
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Literal, TypeAlias

from frontdesk.logging import get_logger

logger = get_logger(__name__)

MAX_HISTORY = 20

Role: TypeAlias = Literal["user", "assistant"]


@dataclass(frozen=True)
class Turn:
    """One message in a conversation."""

    role: Role
    text: str


class ConversationHistory:
    """
    Ordered turns for a single conversation.

    Appending past ``max_turns`` evicts the oldest turns first.
    """

    def __init__(self, key: str, max_turns: int = MAX_HISTORY) -> None:
        if max_turns < 1:
            raise ValueError("max_turns must be at least 1")
        self.key = key
        self.max_turns = max_turns
        self._turns: deque[Turn] = deque()

    def append(self, turn: Turn) -> None:
        self._turns.append(turn)
        while len(self._turns) > self.max_turns:
            self._turns.popleft()

    def turns(self) -> tuple[Turn, ...]:
        return tuple(self._turns)

    def __len__(self) -> int:
        return len(self._turns)


class HistoryStore:
    """
    Registry of conversation histories keyed by conversation id.

    Histories are created lazily and live as long as the store. Each
    conversation id also owns an ``asyncio.Lock`` so that turns for the same
    contact run one at a time while unrelated contacts never wait on each
    other.
    """

    def __init__(self, max_turns: int = MAX_HISTORY) -> None:
        self.max_turns = max_turns
        self._histories: dict[str, ConversationHistory] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}
        self._generations: dict[str, int] = {}

    def _get_or_create(self, conversation_id: str) -> ConversationHistory:
        history = self._histories.get(conversation_id)
        if history is None:
            history = ConversationHistory(conversation_id, self.max_turns)
            self._histories[conversation_id] = history
        return history

    def append(self, conversation_id: str, turn: Turn) -> None:
        """Add a turn at the tail, trimming the head down to the cap."""
        self._get_or_create(conversation_id).append(turn)

    def get(self, conversation_id: str) -> tuple[Turn, ...]:
        """Return the current turns, oldest first. Never fails."""
        return self._get_or_create(conversation_id).turns()

    def clear(self, conversation_id: str) -> None:
        """Forget every turn recorded for *conversation_id*."""
        removed = self._histories.pop(conversation_id, None)
        self._generations[conversation_id] = self.generation(conversation_id) + 1
        logger.debug(
            "history_cleared",
            conversation_id=conversation_id,
            removed_turns=len(removed) if removed is not None else 0,
        )

    def generation(self, conversation_id: str) -> int:
        """Count of resets applied to *conversation_id*; bumped by every ``clear``."""
        return self._generations.get(conversation_id, 0)

    @asynccontextmanager
    async def exclusive(self, conversation_id: str) -> AsyncIterator[None]:
        """Hold the per-conversation lock for the duration of the block.

        The lock entry is dropped once its last holder or waiter leaves.
        """
        lock = self._locks.get(conversation_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[conversation_id] = lock
        self._lock_users[conversation_id] = self._lock_users.get(conversation_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            remaining = self._lock_users[conversation_id] - 1
            if remaining:
                self._lock_users[conversation_id] = remaining
            else:
                del self._lock_users[conversation_id]
                del self._locks[conversation_id]

    def is_busy(self, conversation_id: str) -> bool:
        return conversation_id in self._lock_users

    def conversation_ids(self) -> list[str]:
        return list(self._histories)

    def __len__(self) -> int:
        return len(self._histories)
