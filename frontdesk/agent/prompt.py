"""Prompt assembly: prior conversation plus the message to answer now."""

from __future__ import annotations

from typing import Sequence

from frontdesk.session.history import Turn

PRIOR_HEADER = "## Conversa anterior:"
CURRENT_HEADER = "## Mensagem atual do usuário:"
ANSWER_INSTRUCTION = (
    "\nResponda diretamente à mensagem atual, considerando o contexto da conversa anterior."
)

_ROLE_LABELS = {"user": "Usuário", "assistant": "Você"}


def build_conversation_prompt(history: Sequence[Turn], current_message: str) -> str:
    """
    Build the user prompt for one turn.

    The last entry of *history* is the current message (already recorded), so
    only the turns before it are listed as prior context. History and the
    current message go in separate sections so the model does not re-answer
    an old question.
    """
    parts: list[str] = []

    prior = history[:-1]
    if prior:
        parts.append(PRIOR_HEADER)
        for turn in prior:
            parts.append(f"{_ROLE_LABELS.get(turn.role, turn.role)}: {turn.text}")
        parts.append("")

    parts.append(f"{CURRENT_HEADER}\n{current_message}")
    parts.append(ANSWER_INSTRUCTION)

    return "\n".join(parts)
