"""Aggregate statistics, topic breakdowns and content leaderboards."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Literal, Optional, Sequence

import pandas as pd

from content_analytics.config import NUMERIC_FIELDS, UNCLASSIFIED_SEGMENT
from content_analytics.records import ContentRecord, records_frame

ContentClass = Literal["viral", "quality", "clickview", "strategic"]

CLASS_LABELS: Dict[str, str] = {
    "viral": "VIRAL",
    "quality": "CHẤT LƯỢNG",
    "clickview": "CLICK VIEW",
    "strategic": "CHIẾN LƯỢC",
}

QUALITY_LIFT = 1.15
CLICKVIEW_DROP = 0.8


@dataclass(frozen=True)
class AggregateBucket:
    sum: float
    average: float
    distinct_record_count: int


@dataclass(frozen=True)
class AggregateSummary:
    """Per-field aggregates for one record set."""

    record_count: int
    fields: Dict[str, AggregateBucket] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return self.record_count == 0

    def __getitem__(self, name: str) -> AggregateBucket:
        return self.fields[name]

    def to_dict(self) -> Dict[str, Dict[str, float | int]]:
        return {
            name: {
                "sum": bucket.sum,
                "avg": bucket.average,
                "countUniqueArticles": bucket.distinct_record_count,
            }
            for name, bucket in self.fields.items()
        }


def _safe_rate(numerator: float, denominator: float) -> float:
    return float(numerator / denominator) if denominator else 0.0


def compute_aggregates(records: Sequence[ContentRecord], columns: Iterable[str] = NUMERIC_FIELDS) -> AggregateSummary:
    """Sum, average and distinct-id count for each numeric field."""

    columns = list(columns)
    if not records:
        empty = AggregateBucket(sum=0.0, average=0.0, distinct_record_count=0)
        return AggregateSummary(record_count=0, fields={name: empty for name in columns})

    frame = records_frame(records)
    distinct_ids = int(frame["id"].astype(str).nunique())
    buckets: Dict[str, AggregateBucket] = {}
    for name in columns:
        series = pd.to_numeric(frame[name], errors="coerce").dropna()
        total = float(series.sum())
        buckets[name] = AggregateBucket(
            sum=total,
            average=_safe_rate(total, len(series)),
            distinct_record_count=distinct_ids,
        )
    return AggregateSummary(record_count=len(records), fields=buckets)


@dataclass(frozen=True)
class ContentBaseline:
    """Dataset-wide per-record averages used to classify single items."""

    page_views: float
    consumption_rate: float
    users: float

    @classmethod
    def from_records(cls, records: Sequence[ContentRecord]) -> "ContentBaseline":
        if not records:
            return cls(page_views=0.0, consumption_rate=0.0, users=0.0)
        count = len(records)
        return cls(
            page_views=sum(r.page_views for r in records) / count,
            consumption_rate=sum(r.consumption_rate for r in records) / count,
            users=sum(r.users for r in records) / count,
        )


def classify_content(record: ContentRecord, baseline: ContentBaseline) -> ContentClass:
    if record.page_views > baseline.page_views and record.users > baseline.users:
        return "viral"
    if record.consumption_rate > baseline.consumption_rate * QUALITY_LIFT:
        return "quality"
    if record.page_views > baseline.page_views and record.consumption_rate < baseline.consumption_rate * CLICKVIEW_DROP:
        return "clickview"
    return "strategic"


def topic_breakdown(records: Sequence[ContentRecord]) -> pd.DataFrame:
    """Views, average consumption (%) and record count per topic, largest first."""

    columns = ["topic", "page_views", "page_views_m", "avg_consumption_pct", "records"]
    if not records:
        return pd.DataFrame(columns=columns)
    frame = records_frame(records)
    frame["topic"] = frame["topic"].replace("", UNCLASSIFIED_SEGMENT)
    group = frame.groupby("topic", sort=False)
    summary = pd.DataFrame(
        {
            "page_views": group["page_views"].sum().astype(float),
            "avg_consumption_pct": group["consumption_rate"].mean().astype(float) * 100,
            "records": group.size(),
        }
    )
    summary["page_views_m"] = summary["page_views"] / 1_000_000
    summary = summary.reset_index()
    summary = summary.sort_values("page_views", ascending=False, kind="mergesort").reset_index(drop=True)
    return summary[columns]


SORTABLE_FIELDS: tuple[str, ...] = (*NUMERIC_FIELDS, "publish_time_raw")


def _sort_key(sort_field: str) -> Callable[[ContentRecord], float]:
    if sort_field == "publish_time_raw":
        return lambda r: float(r.published_at.value) if r.published_at is not None else 0.0
    return lambda r: getattr(r, sort_field)


def rank_content(
    records: Sequence[ContentRecord],
    *,
    sort_field: str = "page_views",
    descending: bool = True,
    search: Optional[str] = None,
) -> List[ContentRecord]:
    """Search by id/title/topic/publish-time substring and sort (stable).

    ``sort_field`` is a numeric field or ``publish_time_raw``; the latter orders by
    the parsed publish time with undated records treated as the epoch.
    """

    if sort_field not in SORTABLE_FIELDS:
        raise ValueError(f"Cannot rank by field '{sort_field}'; expected one of {list(SORTABLE_FIELDS)}")
    selected = list(records)
    if search:
        needle = search.lower()
        selected = [
            r
            for r in selected
            if any(needle in str(value).lower() for value in (r.id, r.title, r.topic, r.publish_time_raw))
        ]
    return sorted(selected, key=_sort_key(sort_field), reverse=descending)


@dataclass(frozen=True)
class Leaderboard:
    top: List[ContentRecord]
    rest: List[ContentRecord]
    top_avg_page_views: float
    top_avg_consumption: float


def leaderboard(
    records: Sequence[ContentRecord],
    *,
    sort_field: str = "page_views",
    descending: bool = True,
    search: Optional[str] = None,
    top_n: int = 10,
    rest_limit: int = 40,
) -> Leaderboard:
    ranked = rank_content(records, sort_field=sort_field, descending=descending, search=search)
    top = ranked[:top_n]
    rest = ranked[top_n : top_n + rest_limit]
    return Leaderboard(
        top=top,
        rest=rest,
        top_avg_page_views=_safe_rate(sum(r.page_views for r in top), len(top)),
        top_avg_consumption=_safe_rate(sum(r.consumption_rate for r in top), len(top)),
    )


def top_by_views(records: Sequence[ContentRecord], n: int = 10) -> List[ContentRecord]:
    return rank_content(records)[:n]


def leaderboard_frame(
    records: Sequence[ContentRecord],
    baseline: Optional[ContentBaseline] = None,
    *,
    start_rank: int = 1,
) -> pd.DataFrame:
    """Tabular view of ranked records with their content class."""

    columns = ["rank", "id", "title", "category_name", "topic", "page_views", "total_plays",
               "users", "consumption_rate", "content_class"]
    if not records:
        return pd.DataFrame(columns=columns)
    baseline = baseline or ContentBaseline.from_records(records)
    rows = [
        {
            "rank": position,
            "id": record.id,
            "title": record.title,
            "category_name": record.category_name,
            "topic": record.topic,
            "page_views": record.page_views,
            "total_plays": record.total_plays,
            "users": record.users,
            "consumption_rate": record.consumption_rate,
            "content_class": classify_content(record, baseline),
        }
        for position, record in enumerate(records, start=start_rank)
    ]
    return pd.DataFrame(rows, columns=columns)
