"""Reporting helpers for the content analytics pipeline."""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional, Sequence

import pandas as pd

from content_analytics.ai import InsightReport
from content_analytics.config import AnalysisSettings
from content_analytics.metrics import AggregateSummary
from content_analytics.segments import SegmentLeaders, SegmentScore
from content_analytics.timeline import SeriesStats, TimeBucket


def _frame_to_json_records(df: pd.DataFrame) -> list[dict[str, object]]:
    if df.empty:
        return []
    return json.loads(df.to_json(orient="records", date_format="iso", force_ascii=False))


def dataframe_to_csv(df: pd.DataFrame, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    if df.empty:
        path.write_text("", encoding="utf-8")
    else:
        df.to_csv(path, index=False)


def dataframe_to_markdown(df: pd.DataFrame) -> str:
    if df.empty:
        return "_No data available._"
    return df.to_markdown(index=False)


_LEADER_ATTR = {
    "Top relative index": "relative_index",
    "Top depth index": "depth_index",
    "Top efficiency": "efficiency_score",
}


def _leader_name(score: Optional[SegmentScore]) -> Optional[str]:
    return score.name if score else None


def build_summary_payload(
    *,
    settings: AnalysisSettings,
    ingested_rows: int,
    aggregates: AggregateSummary,
    series: Sequence[TimeBucket],
    series_stats: SeriesStats,
    segments: Sequence[SegmentScore],
    leaders: SegmentLeaders,
    topics: pd.DataFrame,
    top_content: pd.DataFrame,
    insight: Optional[InsightReport] = None,
    insight_error: Optional[str] = None,
) -> Dict[str, object]:
    payload: Dict[str, object] = {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "source": settings.source_label(),
        "filters": {
            "category": settings.category,
            "start_date": settings.start_date.isoformat() if settings.start_date else None,
            "end_date": settings.end_date.isoformat() if settings.end_date else None,
        },
        "rows_ingested": ingested_rows,
        "rows_analyzed": aggregates.record_count,
        "granularity": settings.granularity,
        "aggregates": aggregates.to_dict(),
        "timeline_stats": asdict(series_stats),
        "timeline": [
            {
                "label": bucket.label,
                "start": bucket.start.isoformat(),
                "timestamp": bucket.start_timestamp,
                "total_views_k": bucket.total_views_k,
                "record_count": bucket.record_count,
                "per_topic_views_k": bucket.per_topic_views_k,
                "per_topic_record_count": bucket.per_topic_record_count,
            }
            for bucket in series
        ],
        "segments": [score.to_dict() for score in segments],
        "segment_leaders": {
            "relative_index": _leader_name(leaders.top_relative),
            "depth_index": _leader_name(leaders.top_depth),
            "efficiency_score": _leader_name(leaders.top_efficiency),
        },
        "topics": _frame_to_json_records(topics),
        "top_content": _frame_to_json_records(top_content),
        "report_version": "content-analytics/1.0",
    }
    if insight is not None:
        payload["ai_insights"] = insight.to_dict()
    if insight_error:
        payload["ai_insights_error"] = insight_error
    return payload


def build_markdown_report(
    *,
    settings: AnalysisSettings,
    aggregates: AggregateSummary,
    series_stats: SeriesStats,
    segments_table: pd.DataFrame,
    leaders: SegmentLeaders,
    topics: pd.DataFrame,
    top_content: pd.DataFrame,
    timeline_table: pd.DataFrame,
    insight: Optional[InsightReport] = None,
) -> str:
    lines = [
        "# Content Performance Summary",
        "",
        f"**Source:** `{settings.source_label()}`",
        f"**Records analyzed:** {aggregates.record_count}",
        "",
        "## Key Metrics",
    ]
    if aggregates.is_empty:
        lines.append("_No records match the current filters._")
    else:
        lines.extend(
            [
                f"- **Page views:** {aggregates['page_views'].sum:,.0f}",
                f"- **Total plays:** {aggregates['total_plays'].sum:,.0f}",
                f"- **Consumption rate (avg):** {aggregates['consumption_rate'].average:.1%}",
                f"- **Plays per user (avg):** {aggregates['plays_per_user'].average:.2f}",
                f"- **Watch time per user (avg):** {aggregates['watch_time_per_user'].average:.1f}s",
            ]
        )

    lines.extend(["", f"## Timeline ({settings.granularity})", ""])
    lines.extend(
        [
            f"- **Median bucket (K views):** {series_stats.median:,.2f}",
            f"- **Peak bucket (K views):** {series_stats.max:,.2f}",
            f"- **Trend start -> end:** {series_stats.trend_pct:+.1f}%",
            f"- **Views per record:** {series_stats.avg_views_per_record:,.0f}",
            "",
        ]
    )
    lines.append(dataframe_to_markdown(timeline_table))

    lines.extend(["", "## User need efficiency", ""])
    for label, leader in [
        ("Top relative index", leaders.top_relative),
        ("Top depth index", leaders.top_depth),
        ("Top efficiency", leaders.top_efficiency),
    ]:
        if leader is not None:
            lines.append(f"- **{label}:** {leader.name} ({getattr(leader, _LEADER_ATTR[label]):.2f})")
    lines.extend(["", dataframe_to_markdown(segments_table.round(2) if not segments_table.empty else segments_table)])

    lines.extend(["", "## Topics", "", dataframe_to_markdown(topics)])
    lines.extend(["", "## Top content", "", dataframe_to_markdown(top_content)])

    if insight is not None:
        lines.extend(["", "## AI-generated insights", "", insight.to_markdown()])

    return "\n".join(lines)
