"""Flatten inbound multimodal content into text for a text-only model call."""

from __future__ import annotations

from typing import Any, Literal, TypeAlias, TypedDict

IMAGE_PLACEHOLDER = "[Usuário enviou uma imagem]"
MEDIA_PLACEHOLDER = "[Mídia recebida]"


class TextBlock(TypedDict):
    type: Literal["text"]
    text: str


class ImageSource(TypedDict):
    type: Literal["base64"]
    media_type: str
    data: str


class ImageBlock(TypedDict):
    type: Literal["image"]
    source: ImageSource


ContentBlock: TypeAlias = TextBlock | ImageBlock
MessageContent: TypeAlias = str | list[ContentBlock]


class InvalidContent(ValueError):
    """Inbound content that cannot be turned into text.

    ``normalize_content`` is total and does not raise this; it exists for
    callers that validate payloads before handing them over.
    """


def _block_to_text(block: Any) -> str:
    if not isinstance(block, dict):
        return MEDIA_PLACEHOLDER
    kind = block.get("type")
    if kind == "text" and isinstance(block.get("text"), str):
        return block["text"]
    if kind == "image":
        return IMAGE_PLACEHOLDER
    return MEDIA_PLACEHOLDER


def normalize_content(content: MessageContent) -> str:
    """
    Convert a message body into a single string.

    Strings pass through untouched. For a block list, text blocks keep their
    text, images become a placeholder (the model cannot see pixels) and any
    other kind becomes a generic media placeholder. Blocks are joined by
    newlines in their original order.
    """
    if isinstance(content, str):
        return content
    return "\n".join(_block_to_text(block) for block in content)
