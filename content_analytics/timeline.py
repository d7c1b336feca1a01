"""Time-bucketed view trends over a filtered record set."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Sequence

import numpy as np
import pandas as pd

from content_analytics.config import GRANULARITY_DAYS
from content_analytics.records import ContentRecord


@dataclass(frozen=True)
class TimeBucket:
    label: str
    start: pd.Timestamp
    end: pd.Timestamp
    total_views_k: float
    record_count: int
    per_topic_views_k: Dict[str, float] = field(default_factory=dict)
    per_topic_record_count: Dict[str, int] = field(default_factory=dict)

    @property
    def start_timestamp(self) -> int:
        """Bucket start as epoch milliseconds."""
        return int(self.start.value // 1_000_000)


@dataclass(frozen=True)
class SeriesStats:
    median: float = 0.0
    start: float = 0.0
    end: float = 0.0
    max: float = 0.0
    trend_pct: float = 0.0
    total_records: int = 0
    avg_views_per_record: float = 0.0


def step_days(granularity: str) -> int:
    key = granularity.strip().lower()
    if key not in GRANULARITY_DAYS:
        raise ValueError(f"Unsupported granularity '{granularity}'; expected one of {sorted(GRANULARITY_DAYS)}")
    return GRANULARITY_DAYS[key]


def bucket_label(start: pd.Timestamp, granularity: str) -> str:
    if granularity.strip().lower() == "monthly":
        return start.strftime("%b %y")
    return f"{start.day}/{start.month}"


def build_time_series(records: Sequence[ContentRecord], granularity: str = "daily") -> List[TimeBucket]:
    """Partition records into fixed-width, half-open date buckets.

    Buckets run from midnight of the earliest publish date through the end of the
    latest one. Every bucket carries the same topic keys (all topics seen in
    ``records``), with zeros where a topic has no records in that bucket.
    Monthly buckets are a fixed 30 days, not calendar months.
    """

    days = step_days(granularity)
    dated = [(record, record.published_at) for record in records]
    dated = [(record, published) for record, published in dated if published is not None]
    if not dated:
        return []

    topics: List[str] = list(dict.fromkeys(record.topic for record in records))
    first = min(published for _, published in dated).normalize()
    last = max(published for _, published in dated).normalize() + pd.Timedelta(days=1)
    step = pd.Timedelta(days=days)

    starts: List[pd.Timestamp] = []
    current = first
    while current < last:
        starts.append(current)
        current = current + step

    edges = np.array([start.value for start in starts] + [(starts[-1] + step).value], dtype=np.int64)
    views: Dict[str, np.ndarray] = {topic: np.zeros(len(starts)) for topic in topics}
    counts: Dict[str, np.ndarray] = {topic: np.zeros(len(starts), dtype=np.int64) for topic in topics}
    for record, published in dated:
        position = int(np.searchsorted(edges, published.value, side="right")) - 1
        if 0 <= position < len(starts):
            views[record.topic][position] += record.page_views
            counts[record.topic][position] += 1

    series: List[TimeBucket] = []
    for position, start in enumerate(starts):
        per_topic_views = {topic: float(views[topic][position]) / 1000 for topic in topics}
        per_topic_counts = {topic: int(counts[topic][position]) for topic in topics}
        series.append(
            TimeBucket(
                label=bucket_label(start, granularity),
                start=start,
                end=start + step,
                total_views_k=float(sum(per_topic_views.values())),
                record_count=int(sum(per_topic_counts.values())),
                per_topic_views_k=per_topic_views,
                per_topic_record_count=per_topic_counts,
            )
        )
    return series


def summarize_series(series: Sequence[TimeBucket]) -> SeriesStats:
    if not series:
        return SeriesStats()
    totals = np.array([bucket.total_views_k for bucket in series], dtype=float)
    start = float(totals[0])
    end = float(totals[-1])
    total_records = int(sum(bucket.record_count for bucket in series))
    total_views = float(totals.sum()) * 1000
    return SeriesStats(
        median=float(np.median(totals)),
        start=start,
        end=end,
        max=float(totals.max()),
        trend_pct=((end - start) / start) * 100 if start != 0 else 0.0,
        total_records=total_records,
        avg_views_per_record=total_views / total_records if total_records > 0 else 0.0,
    )


def series_frame(series: Sequence[TimeBucket]) -> pd.DataFrame:
    """Flatten a series into one row per bucket with ``<topic>`` and ``<topic>_count`` columns."""

    rows = []
    for bucket in series:
        row: Dict[str, object] = {
            "label": bucket.label,
            "start": bucket.start,
            "timestamp": bucket.start_timestamp,
            "total_views_k": bucket.total_views_k,
            "record_count": bucket.record_count,
        }
        for topic, value in bucket.per_topic_views_k.items():
            row[topic] = value
            row[f"{topic}_count"] = bucket.per_topic_record_count[topic]
        rows.append(row)
    return pd.DataFrame(rows)
