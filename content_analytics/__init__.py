"""Public API for the content_analytics package."""

from .ai import InsightReport, InsightSummarizer, build_insight_payload
from .config import AISummaryConfig, AnalysisSettings, FIELD_SPECS
from .data_loader import IngestionResult, ingest_text, normalize_row, split_table
from .errors import ContentAnalyticsError, FeedFetchError, InsightServiceError
from .filters import available_categories, filter_records
from .metrics import compute_aggregates, leaderboard, topic_breakdown
from .pipeline import ContentAnalysisPipeline
from .records import ContentRecord
from .segments import pick_leaders, score_segments
from .timeline import build_time_series, summarize_series

__all__ = [
    "AISummaryConfig",
    "AnalysisSettings",
    "ContentAnalysisPipeline",
    "ContentAnalyticsError",
    "ContentRecord",
    "FIELD_SPECS",
    "FeedFetchError",
    "IngestionResult",
    "InsightReport",
    "InsightServiceError",
    "InsightSummarizer",
    "available_categories",
    "build_insight_payload",
    "build_time_series",
    "compute_aggregates",
    "filter_records",
    "ingest_text",
    "leaderboard",
    "normalize_row",
    "pick_leaders",
    "score_segments",
    "split_table",
    "summarize_series",
    "topic_breakdown",
]
