"""Command-line runner for the content analytics pipeline."""

from __future__ import annotations

import argparse
from datetime import date
from pathlib import Path
from typing import Dict

from content_analytics import AISummaryConfig, AnalysisSettings, ContentAnalysisPipeline
from content_analytics.ai import ArticleInsight
from content_analytics.errors import ContentAnalyticsError
from content_analytics.logging_utils import configure_logging
from content_analytics.metrics import top_by_views


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Score a content performance feed and write report artifacts.")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--data", type=Path, help="Local TSV export of the feed.")
    source.add_argument("--url", help="Feed URL (defaults to $CONTENT_FEED_URL).")
    source.add_argument("--config", type=Path, help="Path to a JSON configuration file.")
    parser.add_argument("--output-dir", type=Path, default=Path("reports"), help="Directory for report artifacts.")
    parser.add_argument(
        "--granularity",
        choices=["daily", "weekly", "monthly"],
        default="daily",
        help="Bucket width for the timeline.",
    )
    parser.add_argument("--category", help="Only analyse this category (default: all).")
    parser.add_argument("--start-date", type=date.fromisoformat, help="Inclusive start date (YYYY-MM-DD).")
    parser.add_argument("--end-date", type=date.fromisoformat, help="Inclusive end date (YYYY-MM-DD).")
    parser.add_argument("--top-n", type=int, default=10, help="Rows in the top-content leaderboard.")

    parser.add_argument("--enable-ai", action="store_true", help="Generate an AI insight report (requires API key).")
    parser.add_argument("--ai-provider", choices=["openai", "anthropic"], help="LLM provider for AI insights.")
    parser.add_argument("--ai-model", help="Model identifier for the chosen provider.")
    parser.add_argument("--ai-api-key-env", help="Environment variable that stores the provider API key.")
    parser.add_argument("--ai-sample-size", type=int, default=60, help="Records sampled into the AI prompt.")
    parser.add_argument("--article-insight", metavar="ID", help="Also print an AI insight for the record with this id.")
    parser.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, WARNING...).")
    parser.add_argument("--log-file", type=Path, help="Optional JSON-lines log file.")
    return parser.parse_args(argv)


def _build_ai_config(args: argparse.Namespace) -> AISummaryConfig:
    ai_config = AISummaryConfig()
    if args.enable_ai or args.ai_provider or args.ai_model:
        ai_config.enabled = True
    if args.ai_provider:
        ai_config.provider = args.ai_provider
        if args.ai_provider == "anthropic" and not args.ai_api_key_env:
            ai_config.api_key_env = "ANTHROPIC_API_KEY"
    if args.ai_model:
        ai_config.model = args.ai_model
    if args.ai_api_key_env:
        ai_config.api_key_env = args.ai_api_key_env
    return ai_config


def build_settings(args: argparse.Namespace) -> AnalysisSettings:
    return AnalysisSettings(
        data_path=args.data,
        data_url=args.url,
        output_dir=args.output_dir,
        granularity=args.granularity,
        category=args.category,
        start_date=args.start_date,
        end_date=args.end_date,
        sample_size=args.ai_sample_size,
        top_n=args.top_n,
        ai_summary=_build_ai_config(args),
    )


def display_console_summary(results: Dict[str, object]) -> None:
    aggregates = results["aggregates"]
    stats = results["timeline_stats"]
    leaders = results["segment_leaders"]

    print("\nContent analytics run completed.\n")
    print(f"  {'Records':24s} {aggregates.record_count:,}")
    if not aggregates.is_empty:
        print(f"  {'Page views':24s} {aggregates['page_views'].sum:,.0f}")
        print(f"  {'Total plays':24s} {aggregates['total_plays'].sum:,.0f}")
        print(f"  {'Consumption rate (avg)':24s} {aggregates['consumption_rate'].average:.1%}")
    print(f"  {'Timeline trend':24s} {stats.trend_pct:+.1f}%")
    if leaders.top_efficiency is not None:
        print(f"  {'Most efficient need':24s} {leaders.top_efficiency.name} ({leaders.top_efficiency.efficiency_score:.2f})")
    top_articles = top_by_views(results["records"], n=3)
    if top_articles:
        print("\n  Top articles by views:")
        for position, record in enumerate(top_articles, start=1):
            print(f"    {position}. {record.title} ({record.page_views:,.0f} views)")
    if results.get("ai_insights_error"):
        print(f"  AI insights skipped: {results['ai_insights_error']}")

    if results.get("report_path"):
        print("\nArtifacts:")
        print(f"  Markdown report: {results['report_path']}")
        print(f"  Metrics summary: {results['summary_path']}")


def display_article_insight(record_id: str, insight: ArticleInsight) -> None:
    print(f"\nArticle insight for {record_id}:")
    print(f"  {'Performance':20s} {insight.performance_score}")
    print(f"  {'Audience':20s} {insight.audience_persona}")
    print(f"  {'Growth opportunity':20s} {insight.growth_opportunity}")
    print(f"  {'Takeaway':20s} {insight.strategic_takeaway}")


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    configure_logging(args.log_level.upper(), args.log_file)

    try:
        if args.config:
            pipeline = ContentAnalysisPipeline.from_config_file(args.config)
        else:
            pipeline = ContentAnalysisPipeline(build_settings(args))
        results = pipeline.run()
        insight = pipeline.article_insight(results["records"], args.article_insight) if args.article_insight else None
    except (ContentAnalyticsError, ValueError, FileNotFoundError) as exc:
        raise SystemExit(f"Run failed: {exc}") from exc
    display_console_summary(results)
    if insight is not None:
        display_article_insight(args.article_insight, insight)


if __name__ == "__main__":
    main()
