"""Session management module."""

from frontdesk.session.history import MAX_HISTORY, ConversationHistory, HistoryStore, Turn

__all__ = ["MAX_HISTORY", "ConversationHistory", "HistoryStore", "Turn"]
