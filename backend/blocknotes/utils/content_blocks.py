"""Validation of submitted note content.

A note body is a flat, ordered list of blocks. Each block is either

- ``{"type": "text", "content": "<string>"}`` or
- ``{"type": "image", "src": "<opaque reference>"}`` (optionally with the
  ``url``/``fileKey`` object-storage fields).

``parse_content`` is pure: it never touches storage and never interprets
image bytes.
"""
from __future__ import annotations

from typing import Any

from pydantic import TypeAdapter, ValidationError

from blocknotes.errors import InvalidContent
from blocknotes.models.notes import ContentBlock, ImageBlock, TextBlock

_block_adapter = TypeAdapter(ContentBlock)


def _is_blank(block: ContentBlock) -> bool:
    return isinstance(block, TextBlock) and not block.content.strip()


def parse_content(value: Any) -> list[ContentBlock]:
    """Validate a decoded JSON value and return typed blocks in submission order.

    Raises InvalidContent when the value is not a list, is empty, holds a
    block that is neither a text nor an image block, or holds nothing but
    blank text blocks.
    """
    if not isinstance(value, list):
        raise InvalidContent("Note content must be a list of blocks")
    if not value:
        raise InvalidContent("Note content cannot be empty")

    blocks: list[ContentBlock] = []
    for index, raw in enumerate(value):
        try:
            blocks.append(_block_adapter.validate_python(raw))
        except ValidationError:
            raise InvalidContent(f"Invalid content block at position {index}")

    if all(_is_blank(b) for b in blocks):
        raise InvalidContent("Note content cannot be empty")
    return blocks


def dump_blocks(blocks: list[ContentBlock]) -> list[dict[str, Any]]:
    """Serialize blocks for the JSON column, using the wire field names."""
    out: list[dict[str, Any]] = []
    for block in blocks:
        if isinstance(block, ImageBlock):
            out.append(block.model_dump(by_alias=True, exclude_none=True))
        else:
            out.append(block.model_dump())
    return out
