"""Analysis engine combining the service analyzer with deterministic fallbacks."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from collections.abc import Callable
from datetime import datetime
from functools import partial
from typing import TYPE_CHECKING

from message_actions.core.interfaces import AnalysisError, MessageAnalyzer
from message_actions.core.models import (
    AnalysisContext,
    MessageAnalysisResult,
    VendorContext,
)

from .cache import AnalysisCache
from .client import AnalysisServiceClient
from .fallback import analyze_fallback
from .primary import PrimaryAnalyzer

if TYPE_CHECKING:
    import httpx

    from message_actions.core import AppSettings

LOGGER = logging.getLogger(__name__)


class AnalysisMetrics:
    """Counters describing how analyses were produced."""

    def __init__(self) -> None:
        self.primary_calls = 0
        self.primary_failures = 0
        self.fallbacks = 0
        self.stale_reuses = 0
        self.cache_hits = 0
        self.cache_misses = 0
        self.coalesced = 0
        self.start_time = datetime.now()

    def record_primary_call(self) -> None:
        self.primary_calls += 1

    def record_primary_failure(self) -> None:
        self.primary_failures += 1

    def record_fallback(self) -> None:
        self.fallbacks += 1

    def record_stale_reuse(self) -> None:
        self.stale_reuses += 1

    def record_cache_hit(self) -> None:
        self.cache_hits += 1

    def record_cache_miss(self) -> None:
        self.cache_misses += 1

    def record_coalesced(self) -> None:
        """Record a call that joined an identical in-flight analysis."""
        self.coalesced += 1

    def get_summary(self) -> dict[str, str | int]:
        """Get metrics summary."""
        elapsed = (datetime.now() - self.start_time).total_seconds()
        cache_total = self.cache_hits + self.cache_misses

        return {
            "primary_calls": self.primary_calls,
            "primary_failures": self.primary_failures,
            "fallbacks": self.fallbacks,
            "stale_reuses": self.stale_reuses,
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
            "coalesced": self.coalesced,
            "cache_hit_rate": (
                f"{self.cache_hits / cache_total * 100:.1f}%"
                if cache_total > 0
                else "N/A"
            ),
            "elapsed_seconds": f"{elapsed:.1f}",
        }


class AnalysisEngine:
    """Turn vendor messages into planning actions.

    Lookups go through the cache first. On a miss the primary analyzer is
    tried once; any failure falls through to the rule-based analyzer, so
    :meth:`analyze_message` always resolves to a result. Identical requests
    that overlap share a single in-flight analysis.
    """

    def __init__(
        self,
        primary: MessageAnalyzer | None,
        cache: AnalysisCache | None = None,
        *,
        stale_grace_seconds: float = 0,
        metrics: AnalysisMetrics | None = None,
        fallback: Callable[[AnalysisContext], MessageAnalysisResult] = analyze_fallback,
    ) -> None:
        """Prepare the engine with an optional primary analyzer."""
        self._primary = primary
        self._cache = cache if cache is not None else AnalysisCache()
        self._stale_grace_seconds = stale_grace_seconds
        self._fallback = fallback
        self.metrics = metrics or AnalysisMetrics()
        self._in_flight: dict[str, asyncio.Task[MessageAnalysisResult]] = {}

    @property
    def cache(self) -> AnalysisCache:
        return self._cache

    async def analyze_message(self, context: AnalysisContext) -> MessageAnalysisResult:
        """Return the analysis for ``context``, reusing cached or pending work."""
        key = AnalysisCache.make_key(
            context.contact_id, context.message_content, context.vendor_category
        )
        entry = self._cache.get(key)
        if entry is not None:
            self.metrics.record_cache_hit()
            return entry.result

        task = self._in_flight.get(key)
        if task is None:
            self.metrics.record_cache_miss()
            task = asyncio.create_task(self._derive(key, context))
            self._in_flight[key] = task
            task.add_done_callback(partial(self._release, key))
        else:
            self.metrics.record_coalesced()

        # Cancelling one waiter must not cancel the analysis other waiters share.
        return await asyncio.shield(task)

    def clear_contact_cache(self, contact_id: str) -> int:
        """Drop cached and pending analyses for ``contact_id``."""
        prefix = AnalysisCache.contact_prefix(contact_id)
        for key in [key for key in self._in_flight if key.startswith(prefix)]:
            del self._in_flight[key]
        return self._cache.invalidate_by_prefix(prefix)

    def clear_all_cache(self) -> int:
        """Drop every cached and pending analysis."""
        self._in_flight.clear()
        return self._cache.clear_all()

    async def _derive(self, key: str, context: AnalysisContext) -> MessageAnalysisResult:
        result = await self._run_primary(context)
        if result is None:
            stale = self._stale_result(key)
            if stale is not None:
                return stale
            self.metrics.record_fallback()
            result = self._fallback(context)

        result = _attach_vendor_context(result, context)
        if self._in_flight.get(key) is asyncio.current_task():
            self._cache.set(key, result)
        else:
            LOGGER.debug("Discarding analysis for cleared key %r", key)
        return result

    async def _run_primary(
        self, context: AnalysisContext
    ) -> MessageAnalysisResult | None:
        if self._primary is None:
            return None
        self.metrics.record_primary_call()
        try:
            return await self._primary.analyze(context)
        except AnalysisError as exc:
            self.metrics.record_primary_failure()
            LOGGER.warning(
                "Primary analysis failed for contact %s: %s", context.contact_id, exc
            )
        except Exception:  # noqa: BLE001 - fallback is the terminal step
            self.metrics.record_primary_failure()
            LOGGER.exception(
                "Unexpected primary analysis error for contact %s", context.contact_id
            )
        return None

    def _stale_result(self, key: str) -> MessageAnalysisResult | None:
        if self._stale_grace_seconds <= 0:
            return None
        entry = self._cache.get_stale(key, self._stale_grace_seconds)
        if entry is None:
            return None
        self.metrics.record_stale_reuse()
        LOGGER.info("Using expired analysis for key %r after primary failure", key)
        return entry.result

    def _release(self, key: str, task: asyncio.Task[MessageAnalysisResult]) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]


def _attach_vendor_context(
    result: MessageAnalysisResult, context: AnalysisContext
) -> MessageAnalysisResult:
    vendor_context = VendorContext.from_context(context)
    if all(todo.vendor_context == vendor_context for todo in result.new_todos):
        return result
    return dataclasses.replace(
        result,
        new_todos=tuple(
            dataclasses.replace(todo, vendor_context=vendor_context)
            for todo in result.new_todos
        ),
    )


def build_analysis_engine(
    settings: AppSettings, *, http_client: httpx.AsyncClient | None = None
) -> AnalysisEngine:
    """Wire an :class:`AnalysisEngine` from application settings."""
    primary = None
    if settings.service.enabled and settings.service.base_url:
        client = AnalysisServiceClient(settings.service, http_client=http_client)
        primary = PrimaryAnalyzer(client)
    else:
        LOGGER.info("Analysis service disabled; using rule-based analysis only")
    cache = AnalysisCache(
        ttl_seconds=settings.cache.ttl_seconds,
        max_entries=settings.cache.max_entries,
    )
    return AnalysisEngine(
        primary,
        cache,
        stale_grace_seconds=settings.cache.stale_grace_seconds,
    )


__all__ = ["AnalysisEngine", "AnalysisMetrics", "build_analysis_engine"]
