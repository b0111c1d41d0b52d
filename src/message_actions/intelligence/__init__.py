"""Message analysis services."""

from message_actions.core.interfaces import AnalysisError, ServiceError, ValidationError

from .cache import AnalysisCache, CacheEntry
from .client import AnalysisServiceClient, build_request_payload
from .engine import AnalysisEngine, AnalysisMetrics, build_analysis_engine
from .fallback import analyze_fallback
from .highlight import get_highlighted_ranges, resolve_item
from .primary import PrimaryAnalyzer
from .session import AnalysisSession

__all__ = [
    "AnalysisCache",
    "AnalysisEngine",
    "AnalysisError",
    "AnalysisMetrics",
    "AnalysisServiceClient",
    "AnalysisSession",
    "CacheEntry",
    "PrimaryAnalyzer",
    "ServiceError",
    "ValidationError",
    "analyze_fallback",
    "build_analysis_engine",
    "build_request_payload",
    "get_highlighted_ranges",
    "resolve_item",
]
