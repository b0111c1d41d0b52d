"""HTTP client for the external text-understanding service."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from urllib.parse import urljoin

import httpx

from message_actions.core.config import ServiceSettings
from message_actions.core.datetime_utils import serialize_date
from message_actions.core.interfaces import ServiceError, ValidationError
from message_actions.core.models import AnalysisContext


@dataclass(slots=True)
class AnalysisServiceClient:
    """Thin asynchronous client for the analyze-message endpoint.

    Pass ``http_client`` to share a connection pool (or a mock transport);
    otherwise a short-lived client is opened per request.
    """

    settings: ServiceSettings
    http_client: httpx.AsyncClient | None = None

    async def analyze(self, payload: dict[str, Any]) -> dict[str, Any]:
        """POST ``payload`` and return the decoded JSON object."""
        endpoint = _resolve_endpoint(self.settings.base_url, self.settings.endpoint)
        headers = {"Content-Type": "application/json"}
        if self.settings.api_key:
            headers["Authorization"] = f"Bearer {self.settings.api_key}"

        try:
            if self.http_client is not None:
                response = await self.http_client.post(
                    endpoint,
                    json=payload,
                    headers=headers,
                    timeout=self.settings.timeout_seconds,
                )
            else:
                async with httpx.AsyncClient(
                    timeout=self.settings.timeout_seconds
                ) as client:
                    response = await client.post(endpoint, json=payload, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ServiceError(
                f"Analysis service answered {exc.response.status_code}",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise ServiceError(f"Analysis service request failed: {exc}") from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise ValidationError("Analysis service returned invalid JSON") from exc

        if not isinstance(data, dict):
            raise ValidationError("Analysis service response must be a JSON object")
        return data


def build_request_payload(context: AnalysisContext) -> dict[str, Any]:
    """Serialise ``context`` into the analysis service request body."""
    payload: dict[str, Any] = {
        "messageContent": context.message_content,
        "vendorCategory": context.vendor_category,
        "vendorName": context.vendor_name,
    }
    if context.existing_todos:
        payload["existingTodos"] = [
            {
                "id": todo.id,
                "title": todo.title,
                "category": todo.category,
                "isCompleted": todo.is_completed,
            }
            for todo in context.existing_todos
        ]
    if context.wedding_context is not None:
        payload["weddingContext"] = {
            "weddingDate": serialize_date(context.wedding_context.wedding_date),
            "planningStage": context.wedding_context.planning_stage,
            "daysUntilWedding": context.wedding_context.days_until_wedding,
        }
    if context.user_id:
        payload["userId"] = context.user_id
    return payload


def _resolve_endpoint(base_url: str, path: str) -> str:
    trimmed = base_url.rstrip("/") + "/"
    return urljoin(trimmed, path.lstrip("/"))


__all__ = ["AnalysisServiceClient", "build_request_payload"]
