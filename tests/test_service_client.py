"""Tests for the analysis service HTTP client."""

from __future__ import annotations

import json
from datetime import date

import httpx
import pytest

from message_actions.core.config import ServiceSettings
from message_actions.core.interfaces import ServiceError, ValidationError
from message_actions.core.models import AnalysisContext, ExistingTodo, WeddingContext
from message_actions.intelligence.client import (
    AnalysisServiceClient,
    build_request_payload,
)


def _context() -> AnalysisContext:
    return AnalysisContext(
        message_content="The deposit is due Friday.",
        vendor_category="Venue",
        vendor_name="Grand Ballroom Events",
        contact_id="contact-9",
        existing_todos=(
            ExistingTodo(
                id="todo-1", title="Tour venues", category="Venue", is_completed=True
            ),
        ),
        wedding_context=WeddingContext(
            wedding_date=date(2026, 6, 15),
            planning_stage="booking",
            days_until_wedding=239,
        ),
        user_id="user-1",
    )


def _client(handler) -> AnalysisServiceClient:
    settings = ServiceSettings(
        base_url="https://analysis.example.com/", api_key="secret-token"
    )
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return AnalysisServiceClient(settings, http_client=http_client)


def test_request_payload_uses_wire_names() -> None:
    payload = build_request_payload(_context())

    assert payload == {
        "messageContent": "The deposit is due Friday.",
        "vendorCategory": "Venue",
        "vendorName": "Grand Ballroom Events",
        "existingTodos": [
            {
                "id": "todo-1",
                "title": "Tour venues",
                "category": "Venue",
                "isCompleted": True,
            }
        ],
        "weddingContext": {
            "weddingDate": "2026-06-15",
            "planningStage": "booking",
            "daysUntilWedding": 239,
        },
        "userId": "user-1",
    }


def test_request_payload_omits_absent_context() -> None:
    context = AnalysisContext(
        message_content="Hi",
        vendor_category="Florist",
        vendor_name="Petals",
        contact_id="c",
    )

    assert set(build_request_payload(context)) == {
        "messageContent",
        "vendorCategory",
        "vendorName",
    }


@pytest.mark.asyncio
async def test_posts_payload_and_returns_body() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"newTodos": []})

    client = _client(handler)

    data = await client.analyze({"messageContent": "Hi"})

    assert data == {"newTodos": []}
    assert seen["url"] == "https://analysis.example.com/api/analyze-message"
    assert seen["auth"] == "Bearer secret-token"
    assert seen["body"] == {"messageContent": "Hi"}


@pytest.mark.asyncio
async def test_error_status_raises_service_error() -> None:
    client = _client(lambda request: httpx.Response(500, json={"error": "boom"}))

    with pytest.raises(ServiceError) as excinfo:
        await client.analyze({})

    assert excinfo.value.status_code == 500


@pytest.mark.asyncio
async def test_transport_failure_raises_service_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    client = _client(handler)

    with pytest.raises(ServiceError) as excinfo:
        await client.analyze({})

    assert excinfo.value.status_code is None


@pytest.mark.asyncio
async def test_malformed_body_raises_validation_error() -> None:
    client = _client(lambda request: httpx.Response(200, text="<html>oops</html>"))

    with pytest.raises(ValidationError):
        await client.analyze({})


@pytest.mark.asyncio
async def test_non_object_body_raises_validation_error() -> None:
    client = _client(lambda request: httpx.Response(200, json=[1, 2, 3]))

    with pytest.raises(ValidationError):
        await client.analyze({})


@pytest.mark.asyncio
async def test_undecodable_body_raises_validation_error() -> None:
    client = _client(lambda request: httpx.Response(200, content=b'{"a":"\xff\xfe"}'))

    with pytest.raises(ValidationError):
        await client.analyze({})
