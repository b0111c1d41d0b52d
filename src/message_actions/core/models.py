"""Core domain models used across the application."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Literal

Priority = Literal["low", "medium", "high"]
UpdateType = Literal["note", "status_change", "deadline_update", "category_change"]
AnalysisType = Literal["new_message", "reply", "ongoing_conversation"]
HighlightType = Literal["new-todo", "update", "completion"]


@dataclass(slots=True, frozen=True)
class ExistingTodo:
    """A planning task already stored for the couple."""

    id: str
    title: str
    category: str
    is_completed: bool = False


@dataclass(slots=True, frozen=True)
class WeddingContext:
    """Planning timeline details used to suggest deadlines."""

    wedding_date: date
    planning_stage: str
    days_until_wedding: int


# pylint: disable=too-many-instance-attributes
@dataclass(slots=True, frozen=True)
class AnalysisContext:
    """Input bundle describing a vendor message and its planning context."""

    message_content: str
    vendor_category: str
    vendor_name: str
    contact_id: str
    conversation_history: tuple[str, ...] = ()
    existing_todos: tuple[ExistingTodo, ...] = ()
    wedding_context: WeddingContext | None = None
    user_id: str | None = None


@dataclass(slots=True, frozen=True)
class VendorContext:
    """Vendor the detection originated from."""

    vendor_name: str
    vendor_category: str
    contact_id: str

    @classmethod
    def from_context(cls, context: AnalysisContext) -> VendorContext:
        return cls(
            vendor_name=context.vendor_name,
            vendor_category=context.vendor_category,
            contact_id=context.contact_id,
        )


# pylint: disable=too-many-instance-attributes
@dataclass(slots=True, frozen=True)
class DetectedTodo:
    """A new planning task suggested by a vendor message."""

    title: str
    description: str
    category: str
    priority: Priority
    suggested_deadline: date | None
    vendor_context: VendorContext
    source_text: str
    confidence: float
    suggested_list: str | None = None


@dataclass(slots=True, frozen=True)
class TodoUpdate:
    """A change to an existing task mentioned in a message."""

    update_type: UpdateType
    content: str
    source_text: str
    confidence: float
    todo_id: str | None = None
    todo_title: str | None = None


@dataclass(slots=True, frozen=True)
class CompletedTodo:
    """An existing task that a message reports as done."""

    completion_reason: str
    source_text: str
    confidence: float
    todo_id: str | None = None
    todo_title: str | None = None


@dataclass(slots=True, frozen=True)
class MessageAnalysisResult:
    """Structured actions extracted from a single message."""

    new_todos: tuple[DetectedTodo, ...]
    todo_updates: tuple[TodoUpdate, ...]
    completed_todos: tuple[CompletedTodo, ...]
    confidence: float
    analysis_type: AnalysisType
    provider: str
    used_fallback: bool

    @property
    def total_items(self) -> int:
        return len(self.new_todos) + len(self.todo_updates) + len(self.completed_todos)


@dataclass(slots=True, frozen=True)
class HighlightRange:
    """Location of a detection's source text within the message."""

    start: int
    end: int
    type: HighlightType
    index: int
    content: str


@dataclass(slots=True, frozen=True)
class AnalysisSummary:
    """Counts describing the most recent analysis."""

    has_new_todos: bool
    has_updates: bool
    has_completions: bool
    total_items: int
    analysis_type: AnalysisType


__all__ = [
    "AnalysisContext",
    "AnalysisSummary",
    "AnalysisType",
    "CompletedTodo",
    "DetectedTodo",
    "ExistingTodo",
    "HighlightRange",
    "HighlightType",
    "MessageAnalysisResult",
    "Priority",
    "TodoUpdate",
    "UpdateType",
    "VendorContext",
    "WeddingContext",
]
