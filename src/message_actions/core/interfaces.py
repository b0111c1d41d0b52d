"""Error taxonomy and protocol interfaces for decoupling components."""

from __future__ import annotations

from typing import Any, Protocol

from .models import AnalysisContext, MessageAnalysisResult


class AnalysisError(RuntimeError):
    """Base class for failures of the primary analysis path."""


class ServiceError(AnalysisError):
    """Raised when the analysis service does not answer successfully."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ValidationError(AnalysisError):
    """Raised when the analysis service response does not match the contract."""


class AnalysisTransport(Protocol):
    """Sends a request payload to the analysis service."""

    async def analyze(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Return the decoded JSON object answered by the service."""
        raise NotImplementedError


class MessageAnalyzer(Protocol):
    """Produces a :class:`MessageAnalysisResult` for a message."""

    async def analyze(self, context: AnalysisContext) -> MessageAnalysisResult:
        """Analyse ``context``; may raise :class:`AnalysisError`."""
        raise NotImplementedError


__all__ = [
    "AnalysisError",
    "AnalysisTransport",
    "MessageAnalyzer",
    "ServiceError",
    "ValidationError",
]
