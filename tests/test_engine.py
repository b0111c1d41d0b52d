"""Tests for the analysis engine orchestration."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from message_actions.core.config import AppSettings, ServiceSettings
from message_actions.core.interfaces import ServiceError, ValidationError
from message_actions.core.models import (
    AnalysisContext,
    DetectedTodo,
    MessageAnalysisResult,
    VendorContext,
)
from message_actions.intelligence.cache import AnalysisCache
from message_actions.intelligence.engine import AnalysisEngine, build_analysis_engine
from message_actions.intelligence.fallback import analyze_fallback

MESSAGE = "Can we schedule a call for pricing next week?"


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class StubAnalyzer:
    """Primary analyzer stub returning a canned result or raising."""

    def __init__(
        self,
        *,
        error: Exception | None = None,
        gate: asyncio.Event | None = None,
        vendor_context: VendorContext | None = None,
    ) -> None:
        self.error = error
        self.gate = gate
        self.vendor_context = vendor_context
        self.calls = 0

    async def analyze(self, context: AnalysisContext) -> MessageAnalysisResult:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        vendor = self.vendor_context or VendorContext.from_context(context)
        return MessageAnalysisResult(
            new_todos=(
                DetectedTodo(
                    title="Book discovery call",
                    description="",
                    category=context.vendor_category,
                    priority="medium",
                    suggested_deadline=None,
                    vendor_context=vendor,
                    source_text="schedule a call",
                    confidence=0.95,
                ),
            ),
            todo_updates=(),
            completed_todos=(),
            confidence=0.9,
            analysis_type="new_message",
            provider="service",
            used_fallback=False,
        )


def _context(contact_id: str = "contact-1", message: str = MESSAGE) -> AnalysisContext:
    return AnalysisContext(
        message_content=message,
        vendor_category="Photographer",
        vendor_name="Golden Hour Photography",
        contact_id=contact_id,
    )


@pytest.mark.asyncio
async def test_primary_result_is_returned_and_cached() -> None:
    analyzer = StubAnalyzer()
    engine = AnalysisEngine(analyzer)

    first = await engine.analyze_message(_context())
    second = await engine.analyze_message(_context())

    assert first.provider == "service"
    assert second is first
    assert analyzer.calls == 1
    assert engine.metrics.cache_hits == 1
    assert engine.cache.size() == 1


@pytest.mark.asyncio
async def test_cache_expires_after_ttl() -> None:
    clock = FakeClock()
    analyzer = StubAnalyzer()
    engine = AnalysisEngine(analyzer, AnalysisCache(ttl_seconds=300, clock=clock))

    await engine.analyze_message(_context())
    clock.now = 299
    await engine.analyze_message(_context())
    assert analyzer.calls == 1

    clock.now = 301
    await engine.analyze_message(_context())
    assert analyzer.calls == 2


@pytest.mark.parametrize(
    "error",
    [
        ServiceError("HTTP 500", status_code=500),
        ValidationError("bad shape"),
        RuntimeError("unexpected"),
    ],
)
@pytest.mark.asyncio
async def test_primary_failure_matches_fallback(error: Exception) -> None:
    engine = AnalysisEngine(StubAnalyzer(error=error))

    result = await engine.analyze_message(_context())

    assert result == analyze_fallback(_context())
    assert engine.metrics.primary_failures == 1
    assert engine.metrics.fallbacks == 1
    assert engine.cache.size() == 1


@pytest.mark.asyncio
async def test_service_failure_over_http_matches_fallback() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(503))
    settings = AppSettings(service=ServiceSettings(base_url="https://svc.example.com"))
    async with httpx.AsyncClient(transport=transport) as http_client:
        engine = build_analysis_engine(settings, http_client=http_client)

        result = await engine.analyze_message(_context())

    assert result == analyze_fallback(_context())


@pytest.mark.asyncio
async def test_disabled_service_uses_fallback_only() -> None:
    settings = AppSettings(service=ServiceSettings(enabled=False))
    engine = build_analysis_engine(settings)

    result = await engine.analyze_message(_context())

    assert result.used_fallback
    assert engine.metrics.primary_calls == 0


@pytest.mark.asyncio
async def test_results_have_valid_confidences() -> None:
    for analyzer in (StubAnalyzer(), StubAnalyzer(error=ServiceError("down"))):
        engine = AnalysisEngine(analyzer)
        result = await engine.analyze_message(_context())
        confidences = [result.confidence] + [t.confidence for t in result.new_todos]
        assert all(0.0 <= value <= 1.0 for value in confidences)


@pytest.mark.asyncio
async def test_vendor_context_is_taken_from_calling_context() -> None:
    wrong = VendorContext(vendor_name="Other", vendor_category="Cake", contact_id="x")
    engine = AnalysisEngine(StubAnalyzer(vendor_context=wrong))

    result = await engine.analyze_message(_context())

    (todo,) = result.new_todos
    assert todo.vendor_context == VendorContext(
        vendor_name="Golden Hour Photography",
        vendor_category="Photographer",
        contact_id="contact-1",
    )


@pytest.mark.asyncio
async def test_clear_contact_cache_only_affects_that_contact() -> None:
    analyzer = StubAnalyzer()
    engine = AnalysisEngine(analyzer)
    await engine.analyze_message(_context("alice"))
    await engine.analyze_message(_context("bob"))
    assert analyzer.calls == 2

    assert engine.clear_contact_cache("alice") == 1

    await engine.analyze_message(_context("bob"))
    assert analyzer.calls == 2
    await engine.analyze_message(_context("alice"))
    assert analyzer.calls == 3


@pytest.mark.asyncio
async def test_clear_all_cache() -> None:
    analyzer = StubAnalyzer()
    engine = AnalysisEngine(analyzer)
    await engine.analyze_message(_context("alice"))
    await engine.analyze_message(_context("bob"))

    assert engine.clear_all_cache() == 2

    await engine.analyze_message(_context("bob"))
    assert analyzer.calls == 3


@pytest.mark.asyncio
async def test_concurrent_identical_calls_share_one_request() -> None:
    gate = asyncio.Event()
    analyzer = StubAnalyzer(gate=gate)
    engine = AnalysisEngine(analyzer)

    first = asyncio.create_task(engine.analyze_message(_context()))
    second = asyncio.create_task(engine.analyze_message(_context()))
    await asyncio.sleep(0)
    gate.set()
    results = await asyncio.gather(first, second)

    assert analyzer.calls == 1
    assert results[0] is results[1]
    assert engine.metrics.coalesced == 1


@pytest.mark.asyncio
async def test_cancelled_waiter_does_not_cancel_shared_analysis() -> None:
    gate = asyncio.Event()
    analyzer = StubAnalyzer(gate=gate)
    engine = AnalysisEngine(analyzer)

    first = asyncio.create_task(engine.analyze_message(_context()))
    second = asyncio.create_task(engine.analyze_message(_context()))
    await asyncio.sleep(0)
    first.cancel()
    gate.set()

    result = await second
    with pytest.raises(asyncio.CancelledError):
        await first

    assert result.provider == "service"
    assert engine.cache.size() == 1


@pytest.mark.asyncio
async def test_results_finishing_after_clear_are_not_cached() -> None:
    gate = asyncio.Event()
    engine = AnalysisEngine(StubAnalyzer(gate=gate))

    pending = asyncio.create_task(engine.analyze_message(_context()))
    await asyncio.sleep(0)
    engine.clear_contact_cache("contact-1")
    gate.set()
    result = await pending

    assert result.provider == "service"
    assert engine.cache.size() == 0


@pytest.mark.asyncio
async def test_stale_entry_reused_within_grace_window() -> None:
    clock = FakeClock()
    analyzer = StubAnalyzer()
    engine = AnalysisEngine(
        analyzer,
        AnalysisCache(ttl_seconds=300, clock=clock),
        stale_grace_seconds=1800,
    )
    fresh = await engine.analyze_message(_context())

    clock.now = 600
    analyzer.error = ServiceError("down")
    reused = await engine.analyze_message(_context())

    assert reused is fresh
    assert engine.metrics.stale_reuses == 1
    assert engine.metrics.fallbacks == 0
