"""Typed stream events produced by agent providers."""

from __future__ import annotations

from typing import Literal, TypeAlias, TypedDict

EVENT_TEXT_DELTA = "text_delta"
EVENT_RESULT = "result"

RESULT_SUCCESS = "success"
RESULT_ERROR = "error"


class TextDeltaEvent(TypedDict):
    type: Literal["text_delta"]
    delta: str


class ResultEvent(TypedDict):
    """Terminal event; every stream ends with exactly one."""

    type: Literal["result"]
    subtype: Literal["success", "error"]
    result: str | None
    errors: list[str]


StreamEvent: TypeAlias = TextDeltaEvent | ResultEvent


def text_delta(delta: str) -> TextDeltaEvent:
    return {"type": EVENT_TEXT_DELTA, "delta": delta}


def success_result(text: str | None) -> ResultEvent:
    return {"type": EVENT_RESULT, "subtype": RESULT_SUCCESS, "result": text, "errors": []}


def error_result(*errors: str) -> ResultEvent:
    return {"type": EVENT_RESULT, "subtype": RESULT_ERROR, "result": None, "errors": list(errors)}
