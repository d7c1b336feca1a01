from __future__ import annotations

import pandas as pd
import pytest

from content_analytics.data_loader import ingest_text
from content_analytics.timeline import (
    SeriesStats,
    build_time_series,
    bucket_label,
    series_frame,
    step_days,
    summarize_series,
)


def test_daily_buckets_over_sample_feed(sample_feed: str) -> None:
    records = ingest_text(sample_feed).records
    series = build_time_series(records, "daily")

    assert [bucket.label for bucket in series] == ["1/3", "2/3", "3/3"]
    assert [bucket.total_views_k for bucket in series] == pytest.approx([1.0, 3.0, 2.0])
    assert [bucket.record_count for bucket in series] == [1, 1, 1]
    assert series[0].start == pd.Timestamp("2025-03-01")
    assert series[-1].end == pd.Timestamp("2025-03-04")


def test_every_bucket_carries_every_topic(sample_feed: str) -> None:
    records = ingest_text(sample_feed).records
    series = build_time_series(records, "daily")
    for bucket in series:
        assert set(bucket.per_topic_views_k) == {"Politics", "Economy"}
        assert set(bucket.per_topic_record_count) == {"Politics", "Economy"}
    assert series[0].per_topic_views_k == {"Politics": 1.0, "Economy": 0.0}
    assert series[1].per_topic_record_count == {"Politics": 0, "Economy": 1}


def test_bucket_sums_match_dated_records(sample_feed: str) -> None:
    records = ingest_text(sample_feed).records
    series = build_time_series(records, "weekly")
    dated = [r for r in records if r.published_at is not None]
    assert sum(bucket.record_count for bucket in series) == len(dated)
    assert sum(bucket.total_views_k for bucket in series) == pytest.approx(
        sum(r.page_views for r in dated) / 1000
    )


def test_weekly_buckets_are_half_open(make_record) -> None:
    records = [
        make_record(publish_time_raw="2025-03-01 12:00", page_views=100),
        make_record(publish_time_raw="2025-03-08", page_views=200),
    ]
    series = build_time_series(records, "weekly")
    assert [bucket.label for bucket in series] == ["1/3", "8/3"]
    assert [bucket.record_count for bucket in series] == [1, 1]
    assert series[1].total_views_k == pytest.approx(0.2)


def test_monthly_label_and_fixed_width(make_record) -> None:
    records = [
        make_record(publish_time_raw="2025-03-01"),
        make_record(publish_time_raw="2025-04-15"),
    ]
    series = build_time_series(records, "monthly")
    assert series[0].label == "Mar 25"
    assert series[1].start == pd.Timestamp("2025-03-31")
    assert bucket_label(pd.Timestamp("2024-12-05"), "monthly") == "Dec 24"


def test_undated_records_are_left_out(make_record) -> None:
    records = [make_record(publish_time_raw="N/A"), make_record(publish_time_raw="garbage")]
    assert build_time_series(records) == []
    assert build_time_series([]) == []


def test_invalid_granularity() -> None:
    with pytest.raises(ValueError):
        step_days("hourly")
    with pytest.raises(ValueError):
        build_time_series([], "yearly")
    assert step_days(" Weekly ") == 7


def test_series_stats(make_record) -> None:
    records = [
        make_record(publish_time_raw="2025-03-01", page_views=1000),
        make_record(publish_time_raw="2025-03-02", page_views=2000),
        make_record(publish_time_raw="2025-03-03", page_views=3000),
        make_record(publish_time_raw="2025-03-04", page_views=10000),
    ]
    stats = summarize_series(build_time_series(records))
    assert stats.median == pytest.approx(2.5)
    assert stats.start == pytest.approx(1.0)
    assert stats.end == pytest.approx(10.0)
    assert stats.max == pytest.approx(10.0)
    assert stats.trend_pct == pytest.approx(900.0)
    assert stats.total_records == 4
    assert stats.avg_views_per_record == pytest.approx(4000.0)


def test_zero_start_gives_flat_trend(make_record) -> None:
    records = [
        make_record(publish_time_raw="2025-03-01", page_views=0),
        make_record(publish_time_raw="2025-03-02", page_views=500),
    ]
    stats = summarize_series(build_time_series(records))
    assert stats.start == 0
    assert stats.trend_pct == 0


def test_empty_series_stats() -> None:
    assert summarize_series([]) == SeriesStats()


def test_series_frame_columns(sample_feed: str) -> None:
    frame = series_frame(build_time_series(ingest_text(sample_feed).records))
    assert {"label", "timestamp", "total_views_k", "Politics", "Politics_count", "Economy_count"} <= set(frame.columns)
    assert frame["timestamp"].iloc[0] == int(pd.Timestamp("2025-03-01").value // 1_000_000)


def test_clock_time_only_record_adds_no_bucket(make_record) -> None:
    records = [
        make_record(publish_time_raw="2025-03-01", page_views=100),
        make_record(publish_time_raw="10:30", page_views=900),
    ]
    series = build_time_series(records, "daily")
    assert len(series) == 1
    assert series[0].record_count == 1
    assert series[0].total_views_k == pytest.approx(0.1)
