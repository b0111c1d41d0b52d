"""Primary analyzer backed by the external text-understanding service."""

from __future__ import annotations

import logging

import pydantic

from message_actions.core.datetime_utils import parse_deadline
from message_actions.core.interfaces import AnalysisTransport, ValidationError
from message_actions.core.models import (
    AnalysisContext,
    CompletedTodo,
    DetectedTodo,
    MessageAnalysisResult,
    TodoUpdate,
    VendorContext,
)

from .client import build_request_payload
from .schemas import ServiceNewTodo, ServiceResponse

LOGGER = logging.getLogger(__name__)

SERVICE_PROVIDER = "service"


class PrimaryAnalyzer:
    """Call the analysis service and normalise its answer."""

    def __init__(self, transport: AnalysisTransport) -> None:
        self._transport = transport

    async def analyze(self, context: AnalysisContext) -> MessageAnalysisResult:
        """Analyse ``context``; raises ``ServiceError`` or ``ValidationError``."""
        payload = build_request_payload(context)
        raw = await self._transport.analyze(payload)
        return parse_service_response(raw, context)


def parse_service_response(
    raw: dict[str, object], context: AnalysisContext
) -> MessageAnalysisResult:
    """Validate a service body and convert it into a result for ``context``."""
    try:
        response = ServiceResponse.model_validate(raw)
    except pydantic.ValidationError as exc:
        raise ValidationError(
            f"Analysis response failed validation: {exc.error_count()} error(s)"
        ) from exc

    vendor_context = VendorContext.from_context(context)
    new_todos = tuple(
        _to_detected_todo(item, vendor_context) for item in response.new_todos
    )
    todo_updates = tuple(
        TodoUpdate(
            todo_id=item.todo_id,
            todo_title=item.todo_title,
            update_type=item.update_type,
            content=item.content,
            source_text=item.source_text,
            confidence=item.confidence,
        )
        for item in response.todo_updates
    )
    completed_todos = tuple(
        CompletedTodo(
            todo_id=item.todo_id,
            todo_title=item.todo_title,
            completion_reason=item.completion_reason,
            source_text=item.source_text,
            confidence=item.confidence,
        )
        for item in response.completed_todos
    )

    LOGGER.debug(
        "Service detected %d new, %d updated, %d completed for contact %s",
        len(new_todos),
        len(todo_updates),
        len(completed_todos),
        context.contact_id,
    )
    return MessageAnalysisResult(
        new_todos=new_todos,
        todo_updates=todo_updates,
        completed_todos=completed_todos,
        confidence=response.confidence,
        analysis_type=response.analysis_type,
        provider=SERVICE_PROVIDER,
        used_fallback=False,
    )


def _to_detected_todo(
    item: ServiceNewTodo, vendor_context: VendorContext
) -> DetectedTodo:
    try:
        deadline = parse_deadline(item.suggested_deadline)
    except ValueError as exc:
        raise ValidationError(
            f"Invalid suggestedDeadline {item.suggested_deadline!r}"
        ) from exc

    return DetectedTodo(
        title=item.title.strip(),
        description=item.description.strip(),
        category=item.category,
        priority=item.priority,
        suggested_deadline=deadline,
        vendor_context=vendor_context,
        source_text=item.source_text,
        confidence=item.confidence,
        suggested_list=item.suggested_list,
    )


__all__ = ["PrimaryAnalyzer", "parse_service_response", "SERVICE_PROVIDER"]
