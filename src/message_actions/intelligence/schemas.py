"""Wire models for the analysis service and the HTTP API."""

from __future__ import annotations

from datetime import date
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from message_actions.core.models import (
    AnalysisContext,
    ExistingTodo,
    WeddingContext,
)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _ServiceModel(_CamelModel):
    model_config = ConfigDict(strict=True)


class ServiceNewTodo(_ServiceModel):
    """A new task as returned by the analysis service."""

    title: str = Field(min_length=1)
    description: str
    category: str
    priority: Literal["low", "medium", "high"]
    suggested_deadline: str | None = Field(
        default=None, description="ISO date (YYYY-MM-DD) or datetime"
    )
    suggested_list: str | None = None
    source_text: str
    confidence: float = Field(ge=0.0, le=1.0)


class ServiceTodoUpdate(_ServiceModel):
    """An update to an existing task as returned by the analysis service."""

    todo_id: str | None = None
    todo_title: str | None = None
    update_type: Literal["note", "status_change", "deadline_update", "category_change"]
    content: str
    source_text: str
    confidence: float = Field(ge=0.0, le=1.0)


class ServiceCompletedTodo(_ServiceModel):
    """A completed task as returned by the analysis service."""

    todo_id: str | None = None
    todo_title: str | None = None
    completion_reason: str
    source_text: str
    confidence: float = Field(ge=0.0, le=1.0)


class ServiceResponse(_ServiceModel):
    """Body answered by the analysis service."""

    new_todos: list[ServiceNewTodo] = Field(default_factory=list)
    todo_updates: list[ServiceTodoUpdate] = Field(default_factory=list)
    completed_todos: list[ServiceCompletedTodo] = Field(default_factory=list)
    confidence: float = Field(default=0.8, ge=0.0, le=1.0)
    analysis_type: Literal["new_message", "reply", "ongoing_conversation"] = (
        "new_message"
    )


class ExistingTodoPayload(_CamelModel):
    """Existing task supplied by API callers."""

    id: str
    title: str
    category: str = ""
    is_completed: bool = False


class WeddingContextPayload(_CamelModel):
    """Wedding timeline supplied by API callers."""

    wedding_date: date
    planning_stage: str
    days_until_wedding: int


class AnalyzeMessageRequest(_CamelModel):
    """Body accepted by ``POST /api/messages/analyze``."""

    message_content: str
    vendor_category: str
    vendor_name: str
    contact_id: str = Field(min_length=1)
    conversation_history: list[str] = Field(default_factory=list)
    existing_todos: list[ExistingTodoPayload] = Field(default_factory=list)
    wedding_context: WeddingContextPayload | None = None
    user_id: str | None = None

    def to_context(self) -> AnalysisContext:
        """Convert the request body into an :class:`AnalysisContext`."""
        wedding = None
        if self.wedding_context is not None:
            wedding = WeddingContext(
                wedding_date=self.wedding_context.wedding_date,
                planning_stage=self.wedding_context.planning_stage,
                days_until_wedding=self.wedding_context.days_until_wedding,
            )
        return AnalysisContext(
            message_content=self.message_content,
            vendor_category=self.vendor_category,
            vendor_name=self.vendor_name,
            contact_id=self.contact_id,
            conversation_history=tuple(self.conversation_history),
            existing_todos=tuple(
                ExistingTodo(
                    id=todo.id,
                    title=todo.title,
                    category=todo.category,
                    is_completed=todo.is_completed,
                )
                for todo in self.existing_todos
            ),
            wedding_context=wedding,
            user_id=self.user_id,
        )


__all__ = [
    "AnalyzeMessageRequest",
    "ServiceCompletedTodo",
    "ServiceNewTodo",
    "ServiceResponse",
    "ServiceTodoUpdate",
]
