"""High-level pipeline orchestration."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Dict, Optional, Sequence

import requests

from content_analytics.ai import ArticleInsight, InsightReport, InsightSummarizer
from content_analytics.config import AnalysisSettings, settings_from_dict
from content_analytics.data_loader import IngestionResult, ingest_text
from content_analytics.errors import InsightServiceError
from content_analytics.feed import load_feed_text
from content_analytics.filters import available_categories, filter_records
from content_analytics.metrics import ContentBaseline, compute_aggregates, leaderboard, leaderboard_frame, topic_breakdown
from content_analytics.records import ContentRecord
from content_analytics.reporting import (
    build_markdown_report,
    build_summary_payload,
    dataframe_to_csv,
)
from content_analytics.segments import pick_leaders, score_segments, segments_frame
from content_analytics.timeline import build_time_series, series_frame, summarize_series

logger = logging.getLogger(__name__)


class ContentAnalysisPipeline:
    """Run ingestion, filtering, scoring and reporting for one feed refresh."""

    def __init__(self, settings: AnalysisSettings, *, session: requests.Session | None = None) -> None:
        self.settings = settings
        self.session = session
        self.settings.resolve_paths()
        if self.settings.write_outputs:
            self.settings.ensure_output_tree()

    @classmethod
    def from_config_file(cls, path: Path) -> "ContentAnalysisPipeline":
        payload = json.loads(path.read_text(encoding="utf-8"))
        settings = settings_from_dict(payload, base_path=path.parent)
        return cls(settings)

    def ingest(self, text: Optional[str] = None) -> IngestionResult:
        raw = text if text is not None else load_feed_text(self.settings, session=self.session)
        return ingest_text(raw)

    def _generate_insight(self, aggregates, records) -> tuple[Optional[InsightReport], Optional[str]]:
        config = self.settings.ai_summary
        if not config.is_enabled():
            return None, None
        summarizer = InsightSummarizer(config)
        try:
            report = summarizer.generate_report(aggregates, records, sample_size=self.settings.sample_size)
        except InsightServiceError as exc:
            logger.warning("AI insight generation failed: %s", exc)
            return None, str(exc)
        return report, None

    def article_insight(self, records: Sequence[ContentRecord], record_id: str) -> ArticleInsight:
        """Ask the insight collaborator about the record whose id matches ``record_id``."""

        wanted = str(record_id).strip()
        for record in records:
            if str(record.id) == wanted:
                return InsightSummarizer(self.settings.ai_summary).generate_article_insight(record)
        raise ValueError(f"No record with id '{wanted}' in the analysed set")

    def run(self, text: Optional[str] = None) -> Dict[str, object]:
        ingested = self.ingest(text)
        settings = self.settings

        records = filter_records(
            ingested.records,
            category=settings.category,
            start_date=settings.start_date,
            end_date=settings.end_date,
        )
        logger.info("%d of %d records pass the current filters", len(records), ingested.record_count)

        aggregates = compute_aggregates(records)
        series = build_time_series(records, settings.granularity)
        series_stats = summarize_series(series)
        segments = score_segments(records)
        leaders = pick_leaders(segments)
        topics = topic_breakdown(records)
        board = leaderboard(records, top_n=settings.top_n)
        baseline = ContentBaseline.from_records(records)
        top_content = leaderboard_frame(board.top, baseline)
        more_content = leaderboard_frame(board.rest, baseline, start_rank=len(board.top) + 1)

        insight, insight_error = self._generate_insight(aggregates, records)

        results: Dict[str, object] = {
            "settings": self._settings_snapshot(),
            "ingested": ingested,
            "categories": available_categories(ingested.records),
            "records": records,
            "aggregates": aggregates,
            "timeline": series,
            "timeline_stats": series_stats,
            "segments": segments,
            "segment_leaders": leaders,
            "topics": topics,
            "leaderboard": board,
            "ai_insights": insight,
            "ai_insights_error": insight_error,
            "summary_path": None,
            "report_path": None,
        }
        if not settings.write_outputs:
            return results

        output_dir = settings.output_dir
        segments_table = segments_frame(segments)
        timeline_table = series_frame(series)

        summary_payload = build_summary_payload(
            settings=settings,
            ingested_rows=ingested.record_count,
            aggregates=aggregates,
            series=series,
            series_stats=series_stats,
            segments=segments,
            leaders=leaders,
            topics=topics,
            top_content=top_content,
            insight=insight,
            insight_error=insight_error,
        )
        report_text = build_markdown_report(
            settings=settings,
            aggregates=aggregates,
            series_stats=series_stats,
            segments_table=segments_table,
            leaders=leaders,
            topics=topics,
            top_content=top_content,
            timeline_table=timeline_table[["label", "total_views_k", "record_count"]]
            if not timeline_table.empty
            else timeline_table,
            insight=insight,
        )

        summary_path = output_dir / "metrics_summary.json"
        summary_path.write_text(json.dumps(summary_payload, indent=2, ensure_ascii=False), encoding="utf-8")
        report_path = output_dir / "content_analysis_report.md"
        report_path.write_text(report_text, encoding="utf-8")

        dataframe_to_csv(segments_table, output_dir / "segment_scores.csv")
        dataframe_to_csv(timeline_table, output_dir / "timeline.csv")
        dataframe_to_csv(topics, output_dir / "topic_breakdown.csv")
        dataframe_to_csv(top_content, output_dir / "top_content.csv")
        dataframe_to_csv(more_content, output_dir / "more_content.csv")
        logger.info("Wrote report artifacts to %s", output_dir)

        results["summary_path"] = summary_path
        results["report_path"] = report_path
        return results

    def _settings_snapshot(self) -> Dict[str, object]:
        snapshot = asdict(self.settings)
        snapshot["data_path"] = str(self.settings.data_path) if self.settings.data_path else None
        snapshot["output_dir"] = str(self.settings.output_dir)
        for key in ("start_date", "end_date"):
            value = snapshot.get(key)
            snapshot[key] = value.isoformat() if value else None
        snapshot["ai_summary"].pop("prompt_template", None)
        snapshot["ai_summary"].pop("article_prompt_template", None)
        return snapshot
