"""Canonical record type shared by every pipeline stage."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from functools import cached_property
from typing import Iterable, Optional

import pandas as pd

from content_analytics.coercion import parse_publish_time


@dataclass(frozen=True)
class ContentRecord:
    """One content item after alias resolution, coercion and derivation."""

    id: str | int
    title: str
    category_name: str
    topic: str
    user_need: str
    content_angle: str
    publish_time_raw: str
    page_views: float = 0.0
    total_plays: float = 0.0
    quality_plays: float = 0.0
    users: float = 0.0
    consumption_rate: float = 0.0
    plays_per_user: float = 0.0
    sessions_per_user: float = 0.0
    watch_time_per_user: float = 0.0
    thumbnail_url: Optional[str] = None

    @cached_property
    def published_at(self) -> Optional[pd.Timestamp]:
        return parse_publish_time(self.publish_time_raw)

    @property
    def time_per_session(self) -> float:
        if self.sessions_per_user > 0:
            return self.watch_time_per_user / self.sessions_per_user
        return self.watch_time_per_user

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


RECORD_COLUMNS: list[str] = [f.name for f in fields(ContentRecord)]


def records_frame(records: Iterable[ContentRecord]) -> pd.DataFrame:
    """Build a DataFrame with one row per record plus parsed date and time/session."""

    rows = list(records)
    frame = pd.DataFrame([record.to_dict() for record in rows], columns=RECORD_COLUMNS)
    frame["published_at"] = pd.to_datetime(
        pd.Series([record.published_at for record in rows], dtype="object"),
        errors="coerce",
    )
    frame["time_per_session"] = [record.time_per_session for record in rows]
    frame["time_per_session"] = frame["time_per_session"].astype(float)
    return frame
