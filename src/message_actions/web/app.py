"""FastAPI web application exposing the message analysis engine."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from fastapi import FastAPI

from message_actions.core import AppSettings, load_app_settings
from message_actions.core.datetime_utils import serialize_date
from message_actions.core.models import (
    AnalysisSummary,
    CompletedTodo,
    DetectedTodo,
    HighlightRange,
    MessageAnalysisResult,
    TodoUpdate,
)
from message_actions.intelligence import (
    AnalysisEngine,
    AnalysisSession,
    build_analysis_engine,
)
from message_actions.intelligence.schemas import AnalyzeMessageRequest

LOGGER = logging.getLogger(__name__)


def create_app(
    settings: AppSettings | None = None, engine: AnalysisEngine | None = None
) -> FastAPI:
    """Create and configure the FastAPI application."""
    app_settings = settings or load_app_settings(env_file=_resolve_env_file())
    analysis_engine = engine or build_analysis_engine(app_settings)
    app = FastAPI(title="Message Actions")
    app.state.engine = analysis_engine

    @app.post("/api/messages/analyze")
    async def analyze_message(body: AnalyzeMessageRequest) -> dict[str, Any]:
        """Analyse a vendor message and return detected planning actions."""
        context = body.to_context()
        session = AnalysisSession(analysis_engine)
        result = await session.analyze_message(context)
        if result is None:
            return {"success": False, "error": session.error}
        summary = session.get_analysis_summary()
        return {
            "success": True,
            "analysis": _serialize_result(result),
            "summary": _serialize_summary(summary) if summary else None,
            "highlights": [
                _serialize_highlight(highlight)
                for highlight in session.get_highlighted_ranges(context.message_content)
            ],
        }

    @app.delete("/api/cache/contacts/{contact_id}")
    async def clear_contact_cache(contact_id: str) -> dict[str, Any]:
        """Drop cached analyses for one vendor contact."""
        removed = analysis_engine.clear_contact_cache(contact_id)
        return {"success": True, "removed": removed}

    @app.delete("/api/cache")
    async def clear_cache() -> dict[str, Any]:
        """Drop every cached analysis."""
        removed = analysis_engine.clear_all_cache()
        return {"success": True, "removed": removed}

    @app.get("/api/cache/status")
    async def cache_status() -> dict[str, Any]:
        """Report cache occupancy and analysis metrics."""
        cache = analysis_engine.cache
        expired = cache.cleanup_expired()
        return {
            "success": True,
            "cache": {
                "size": cache.size(),
                "expiredRemoved": expired,
                "ttlSeconds": cache.ttl_seconds,
                "maxEntries": cache.max_entries,
            },
            "metrics": analysis_engine.metrics.get_summary(),
        }

    LOGGER.debug("Message Actions app created")
    return app


def _serialize_result(result: MessageAnalysisResult) -> dict[str, Any]:
    return {
        "newTodos": [_serialize_new_todo(todo) for todo in result.new_todos],
        "todoUpdates": [_serialize_update(update) for update in result.todo_updates],
        "completedTodos": [
            _serialize_completion(item) for item in result.completed_todos
        ],
        "confidence": result.confidence,
        "analysisType": result.analysis_type,
        "provider": result.provider,
        "usedFallback": result.used_fallback,
    }


def _serialize_new_todo(todo: DetectedTodo) -> dict[str, Any]:
    return {
        "title": todo.title,
        "description": todo.description,
        "category": todo.category,
        "priority": todo.priority,
        "suggestedDeadline": serialize_date(todo.suggested_deadline),
        "suggestedList": todo.suggested_list,
        "vendorContext": {
            "vendorName": todo.vendor_context.vendor_name,
            "vendorCategory": todo.vendor_context.vendor_category,
            "contactId": todo.vendor_context.contact_id,
        },
        "sourceText": todo.source_text,
        "confidence": todo.confidence,
    }


def _serialize_update(update: TodoUpdate) -> dict[str, Any]:
    return {
        "todoId": update.todo_id,
        "todoTitle": update.todo_title,
        "updateType": update.update_type,
        "content": update.content,
        "sourceText": update.source_text,
        "confidence": update.confidence,
    }


def _serialize_completion(item: CompletedTodo) -> dict[str, Any]:
    return {
        "todoId": item.todo_id,
        "todoTitle": item.todo_title,
        "completionReason": item.completion_reason,
        "sourceText": item.source_text,
        "confidence": item.confidence,
    }


def _serialize_summary(summary: AnalysisSummary) -> dict[str, Any]:
    return {
        "hasNewTodos": summary.has_new_todos,
        "hasUpdates": summary.has_updates,
        "hasCompletions": summary.has_completions,
        "totalItems": summary.total_items,
        "analysisType": summary.analysis_type,
    }


def _serialize_highlight(highlight: HighlightRange) -> dict[str, Any]:
    return {
        "start": highlight.start,
        "end": highlight.end,
        "type": highlight.type,
        "index": highlight.index,
        "content": highlight.content,
    }


def _resolve_env_file() -> Path:
    override = os.getenv("MESSAGE_ACTIONS_ENV_FILE")
    if override:
        return Path(override)
    return Path(".env")


__all__ = ["create_app"]
