"""Category and publish-date filters over canonical records."""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Iterable, List, Optional

import pandas as pd

from content_analytics.config import ALL_CATEGORIES
from content_analytics.records import ContentRecord


def available_categories(records: Iterable[ContentRecord]) -> List[str]:
    distinct = sorted({record.category_name for record in records if record.category_name})
    return [ALL_CATEGORIES, *distinct]


def _day_start(value: date) -> pd.Timestamp:
    return pd.Timestamp(datetime.combine(value, time.min))


def _day_end(value: date) -> pd.Timestamp:
    return pd.Timestamp(datetime.combine(value, time.max))


def filter_records(
    records: Iterable[ContentRecord],
    *,
    category: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> List[ContentRecord]:
    """Keep records in ``category`` published within ``[start_date, end_date]``.

    Both date bounds are inclusive whole days. Once either bound is set, records
    without a parseable publish time are dropped.
    """

    match_all = category is None or category == ALL_CATEGORIES
    lower = _day_start(start_date) if start_date else None
    upper = _day_end(end_date) if end_date else None
    date_filter_active = lower is not None or upper is not None

    selected: List[ContentRecord] = []
    for record in records:
        if not match_all and record.category_name != category:
            continue
        if date_filter_active:
            published = record.published_at
            if published is None:
                continue
            if lower is not None and published < lower:
                continue
            if upper is not None and published > upper:
                continue
        selected.append(record)
    return selected
