"""Per-session analysis state consumed by the UI layer."""

from __future__ import annotations

import asyncio
import logging

from message_actions.core.models import (
    AnalysisContext,
    AnalysisSummary,
    HighlightRange,
    MessageAnalysisResult,
)

from .engine import AnalysisEngine
from .highlight import DetectedItem, get_highlighted_ranges, resolve_item

LOGGER = logging.getLogger(__name__)

ANALYSIS_FAILED_MESSAGE = "Failed to analyze message. Please try again."


class AnalysisSession:
    """Hold the latest analysis for one consumer of an :class:`AnalysisEngine`.

    Only the most recent :meth:`analyze_message` call may update the state;
    an older call that finishes later returns its result without storing it.
    After :meth:`close` the pending call is cancelled and nothing is stored.
    """

    def __init__(self, engine: AnalysisEngine) -> None:
        self._engine = engine
        self.is_analyzing = False
        self.last_analysis: MessageAnalysisResult | None = None
        self.error: str | None = None
        self._request_seq = 0
        self._pending: asyncio.Task[MessageAnalysisResult] | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def analyze_message(
        self, context: AnalysisContext
    ) -> MessageAnalysisResult | None:
        """Analyse ``context`` and store the result as ``last_analysis``."""
        if self._closed:
            return None
        self._request_seq += 1
        request_id = self._request_seq
        self.is_analyzing = True
        self.error = None

        task = asyncio.ensure_future(self._engine.analyze_message(context))
        self._pending = task
        try:
            result = await task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if self._closed and (current is None or not current.cancelling()):
                LOGGER.debug("Discarded analysis for closed session")
                return None
            raise
        except Exception:  # noqa: BLE001 - surfaced through ``error``
            LOGGER.exception("Message analysis failed for contact %s", context.contact_id)
            if self._is_current(request_id):
                self.error = ANALYSIS_FAILED_MESSAGE
            return None
        finally:
            if self._is_current(request_id):
                self.is_analyzing = False
                self._pending = None

        if self._is_current(request_id):
            self.last_analysis = result
        return result

    def clear_analysis(self) -> None:
        """Forget the last analysis and error, e.g. when the message changes."""
        self._request_seq += 1
        self.last_analysis = None
        self.error = None
        self.is_analyzing = False

    def clear_contact_cache(self, contact_id: str) -> int:
        """Drop the engine's cached analyses for ``contact_id``."""
        return self._engine.clear_contact_cache(contact_id)

    def get_analysis_summary(self) -> AnalysisSummary | None:
        """Summarise ``last_analysis``; ``None`` before any analysis ran."""
        result = self.last_analysis
        if result is None:
            return None
        return AnalysisSummary(
            has_new_todos=bool(result.new_todos),
            has_updates=bool(result.todo_updates),
            has_completions=bool(result.completed_todos),
            total_items=result.total_items,
            analysis_type=result.analysis_type,
        )

    def get_highlighted_ranges(self, message_content: str) -> list[HighlightRange]:
        """Return highlight ranges of ``last_analysis`` within ``message_content``."""
        if self.last_analysis is None:
            return []
        return get_highlighted_ranges(self.last_analysis, message_content)

    def find_item_at(self, message_content: str, offset: int) -> DetectedItem | None:
        """Return the detection whose highlighted text covers ``offset``."""
        if self.last_analysis is None:
            return None
        for highlight in self.get_highlighted_ranges(message_content):
            if highlight.start <= offset < highlight.end:
                return resolve_item(self.last_analysis, highlight)
        return None

    def close(self) -> None:
        """Detach the session; late results are discarded."""
        self._closed = True
        self._request_seq += 1
        self.is_analyzing = False
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    def _is_current(self, request_id: int) -> bool:
        return not self._closed and request_id == self._request_seq


__all__ = ["ANALYSIS_FAILED_MESSAGE", "AnalysisSession"]
