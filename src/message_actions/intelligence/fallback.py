"""Deterministic heuristics used when the analysis service is unavailable."""

from __future__ import annotations

import re
from dataclasses import dataclass

from message_actions.core.models import (
    AnalysisContext,
    DetectedTodo,
    MessageAnalysisResult,
    Priority,
    VendorContext,
)

FALLBACK_CONFIDENCE = 0.6
FALLBACK_PROVIDER = "deterministic"

_SENTENCE_BREAK = re.compile(r"[.!?\n]")


@dataclass(slots=True, frozen=True)
class _IntentRule:
    pattern: re.Pattern[str]
    title: str
    description: str
    priority: Priority
    confidence: float


_INTENT_RULES = (
    _IntentRule(
        pattern=re.compile(r"schedule|book|meeting", re.IGNORECASE),
        title="Schedule {category} consultation",
        description="Follow up with {vendor} about scheduling",
        priority="medium",
        confidence=0.7,
    ),
    _IntentRule(
        pattern=re.compile(r"quote|pricing|cost", re.IGNORECASE),
        title="Get {category} pricing",
        description="Request quote from {vendor}",
        priority="high",
        confidence=0.8,
    ),
)


def analyze_fallback(context: AnalysisContext) -> MessageAnalysisResult:
    """Detect scheduling and pricing requests with keyword matching."""
    message = context.message_content or ""
    vendor_context = VendorContext.from_context(context)

    new_todos: list[DetectedTodo] = []
    for rule in _INTENT_RULES:
        match = rule.pattern.search(message)
        if match is None:
            continue
        new_todos.append(
            DetectedTodo(
                title=rule.title.format(category=context.vendor_category),
                description=rule.description.format(vendor=context.vendor_name),
                category=context.vendor_category,
                priority=rule.priority,
                suggested_deadline=None,
                vendor_context=vendor_context,
                source_text=_enclosing_sentence(message, match.start(), match.end()),
                confidence=rule.confidence,
            )
        )

    return MessageAnalysisResult(
        new_todos=tuple(new_todos),
        todo_updates=(),
        completed_todos=(),
        confidence=FALLBACK_CONFIDENCE,
        analysis_type="new_message",
        provider=FALLBACK_PROVIDER,
        used_fallback=True,
    )


def _enclosing_sentence(message: str, start: int, end: int) -> str:
    """Return the verbatim sentence of ``message`` around ``start:end``."""
    sentence_start = 0
    for boundary in _SENTENCE_BREAK.finditer(message, 0, start):
        sentence_start = boundary.end()
    boundary = _SENTENCE_BREAK.search(message, end)
    sentence_end = boundary.end() if boundary else len(message)

    snippet = message[sentence_start:sentence_end]
    stripped = snippet.strip()
    return stripped or message[start:end]


__all__ = ["analyze_fallback", "FALLBACK_CONFIDENCE", "FALLBACK_PROVIDER"]
