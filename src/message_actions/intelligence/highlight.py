"""Locate detected items inside the original message text."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from message_actions.core.models import (
    CompletedTodo,
    DetectedTodo,
    HighlightRange,
    HighlightType,
    MessageAnalysisResult,
    TodoUpdate,
)

LOGGER = logging.getLogger(__name__)

DetectedItem = DetectedTodo | TodoUpdate | CompletedTodo


def get_highlighted_ranges(
    result: MessageAnalysisResult, message_content: str
) -> list[HighlightRange]:
    """Return ranges for every detection whose source text appears verbatim.

    Detections whose ``source_text`` is empty or cannot be found are left
    out. Ranges are ordered by ``start``; ties keep collection order.
    """
    ranges: list[HighlightRange] = []
    ranges.extend(_locate(result.new_todos, "new-todo", message_content))
    ranges.extend(_locate(result.todo_updates, "update", message_content))
    ranges.extend(_locate(result.completed_todos, "completion", message_content))
    ranges.sort(key=lambda item: item.start)
    return ranges


def resolve_item(
    result: MessageAnalysisResult, highlight: HighlightRange
) -> DetectedItem:
    """Return the detection a highlight range was built from."""
    if highlight.type == "new-todo":
        return result.new_todos[highlight.index]
    if highlight.type == "update":
        return result.todo_updates[highlight.index]
    return result.completed_todos[highlight.index]


def _locate(
    items: Sequence[DetectedItem], kind: HighlightType, message_content: str
) -> list[HighlightRange]:
    located: list[HighlightRange] = []
    for index, item in enumerate(items):
        source_text = item.source_text
        if not source_text:
            continue
        start = message_content.find(source_text)
        if start < 0:
            LOGGER.debug("Source text for %s #%d not found in message", kind, index)
            continue
        located.append(
            HighlightRange(
                start=start,
                end=start + len(source_text),
                type=kind,
                index=index,
                content=source_text,
            )
        )
    return located


__all__ = ["DetectedItem", "get_highlighted_ranges", "resolve_item"]
