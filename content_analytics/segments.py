"""Volume-vs-depth efficiency scoring per user-need segment.

The relative index (RI) compares a segment's average page views, users and plays
to the dataset-wide per-record averages; the depth index (DI) does the same for
consumption rate, plays per user and time per session. Both are the mean of their
three ratios, so ``1.0`` means "exactly average". The efficiency score is the mean
of RI and DI. A ratio whose dataset-wide average is zero contributes ``0``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, List, Optional, Sequence

import pandas as pd

from content_analytics.config import UNCLASSIFIED_SEGMENT
from content_analytics.records import ContentRecord, records_frame

SIGNIFICANT_SHARE = 0.05

VOLUME_COLUMNS = ("page_views", "users", "total_plays")
DEPTH_COLUMNS = ("consumption_rate", "plays_per_user", "time_per_session")


@dataclass(frozen=True)
class SegmentScore:
    name: str
    record_count: int
    share_of_total: float
    relative_index: float
    depth_index: float
    efficiency_score: float
    total_views: float
    avg_consumption_pct: float

    @property
    def total_views_k(self) -> float:
        return self.total_views / 1000

    @property
    def is_significant(self) -> bool:
        return self.share_of_total >= SIGNIFICANT_SHARE

    def to_dict(self) -> Dict[str, object]:
        payload = asdict(self)
        payload["total_views_k"] = self.total_views_k
        return payload


@dataclass(frozen=True)
class SegmentLeaders:
    top_relative: Optional[SegmentScore]
    top_depth: Optional[SegmentScore]
    top_efficiency: Optional[SegmentScore]


def global_baselines(frame: pd.DataFrame) -> Dict[str, float]:
    """Record-weighted means for the six scoring metrics."""

    if frame.empty:
        return {column: 0.0 for column in VOLUME_COLUMNS + DEPTH_COLUMNS}
    return {column: float(frame[column].astype(float).mean()) for column in VOLUME_COLUMNS + DEPTH_COLUMNS}


def _mean_ratio(segment: pd.Series, baseline: Dict[str, float], columns: Sequence[str]) -> float:
    ratios = [
        float(segment[column]) / baseline[column] if baseline[column] > 0 else 0.0
        for column in columns
    ]
    return sum(ratios) / len(ratios)


def score_segments(records: Sequence[ContentRecord]) -> List[SegmentScore]:
    """Score every user-need segment, ordered by total page views (largest first)."""

    if not records:
        return []

    frame = records_frame(records)
    frame["segment"] = frame["user_need"].replace("", UNCLASSIFIED_SEGMENT)
    baseline = global_baselines(frame)
    total_records = len(frame)

    metric_columns = list(VOLUME_COLUMNS + DEPTH_COLUMNS)
    group = frame.groupby("segment", sort=False)
    means = group[metric_columns].mean()
    sizes = group.size()
    views = group["page_views"].sum()

    scores: List[SegmentScore] = []
    for name, segment in means.iterrows():
        relative = _mean_ratio(segment, baseline, VOLUME_COLUMNS)
        depth = _mean_ratio(segment, baseline, DEPTH_COLUMNS)
        count = int(sizes[name])
        scores.append(
            SegmentScore(
                name=str(name),
                record_count=count,
                share_of_total=count / total_records,
                relative_index=relative,
                depth_index=depth,
                efficiency_score=(relative + depth) / 2,
                total_views=float(views[name]),
                avg_consumption_pct=float(segment["consumption_rate"]) * 100,
            )
        )
    # sorted() is stable, so equal-view segments keep first-seen order
    return sorted(scores, key=lambda score: score.total_views, reverse=True)


def significant_segments(scores: Sequence[SegmentScore]) -> List[SegmentScore]:
    return [score for score in scores if score.is_significant]


def _first_max(scores: Sequence[SegmentScore], attribute: str) -> Optional[SegmentScore]:
    best: Optional[SegmentScore] = None
    for score in scores:
        if best is None or getattr(score, attribute) > getattr(best, attribute):
            best = score
    return best


def pick_leaders(scores: Sequence[SegmentScore]) -> SegmentLeaders:
    """Top RI / DI / efficiency among significant segments; ties go to the earlier segment."""

    eligible = significant_segments(scores)
    return SegmentLeaders(
        top_relative=_first_max(eligible, "relative_index"),
        top_depth=_first_max(eligible, "depth_index"),
        top_efficiency=_first_max(eligible, "efficiency_score"),
    )


def segments_frame(scores: Sequence[SegmentScore]) -> pd.DataFrame:
    columns = [
        "name", "record_count", "share_of_total", "relative_index", "depth_index",
        "efficiency_score", "total_views", "total_views_k", "avg_consumption_pct",
    ]
    return pd.DataFrame([score.to_dict() for score in scores], columns=columns)
