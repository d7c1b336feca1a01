"""Utilities for splitting, normalising and ingesting the raw content feed."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import pandas as pd

from content_analytics.coercion import CellValue, as_number, coerce_cell, looks_like_thumbnail
from content_analytics.config import FIELD_SPECS, FieldSpec
from content_analytics.records import ContentRecord

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RawTable:
    """Header row plus body rows of a tab-separated feed."""

    headers: List[str]
    rows: List[List[str]] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)


@dataclass(slots=True)
class IngestionResult:
    """Normalised records plus the publish-date bounds observed while ingesting."""

    records: List[ContentRecord]
    min_publish_date: Optional[pd.Timestamp]
    max_publish_date: Optional[pd.Timestamp]
    headers: List[str] = field(default_factory=list)

    @property
    def record_count(self) -> int:
        return len(self.records)


def split_table(text: str) -> RawTable:
    """Split raw TSV text into a :class:`RawTable`; blank lines are dropped first."""

    lines = [line for line in (text or "").split("\n") if line.strip()]
    if not lines:
        return RawTable(headers=[])
    headers = [header.strip() for header in lines[0].split("\t")]
    rows = [line.split("\t") for line in lines[1:]]
    return RawTable(headers=headers, rows=rows)


def resolve_header(headers: Sequence[str], aliases: Sequence[str]) -> Optional[str]:
    """Return the first header matching any alias (case-insensitive), trying aliases in order."""

    for alias in aliases:
        wanted = alias.lower()
        for header in headers:
            if header.lower() == wanted:
                return header
    return None


def _resolve(headers: Sequence[str], cells: Dict[str, CellValue], spec: FieldSpec) -> Optional[CellValue]:
    header = resolve_header(headers, spec.aliases)
    if header is None:
        return None
    return cells.get(header)


def _text_field(
    headers: Sequence[str], raw_cells: Dict[str, str], spec: FieldSpec
) -> Optional[str]:
    header = resolve_header(headers, spec.aliases)
    if header is None:
        return None
    value = raw_cells.get(header, "").strip()
    return value or None


def _numeric_field(headers: Sequence[str], cells: Dict[str, CellValue], spec: FieldSpec) -> Optional[float]:
    number = as_number(_resolve(headers, cells, spec))
    # zero counts as "not supplied", the same as an empty cell
    return number if number else None


def _identifier(value: Optional[CellValue], row_index: int) -> str | int:
    if isinstance(value, float):
        if value:
            return int(value) if value.is_integer() else value
    elif value:
        return value
    return f"art-{row_index}"


def derive_consumption_rate(explicit: Optional[float], total_plays: float, quality_plays: float) -> float:
    if explicit:
        return explicit
    return quality_plays / total_plays if total_plays > 0 else 0.0


def derive_plays_per_user(explicit: Optional[float], total_plays: float, users: float) -> float:
    if explicit:
        return explicit
    return total_plays / users if users > 0 else 0.0


def normalize_row(headers: Sequence[str], values: Sequence[str], row_index: int) -> ContentRecord:
    """Turn one raw row into a :class:`ContentRecord`."""

    raw_cells: Dict[str, str] = {}
    cells: Dict[str, CellValue] = {}
    detected_thumb: Optional[str] = None
    for position, header in enumerate(headers):
        raw = values[position].strip() if position < len(values) else ""
        if detected_thumb is None and looks_like_thumbnail(raw):
            detected_thumb = raw
        raw_cells[header] = raw
        cells[header] = coerce_cell(raw)

    def text(name: str) -> str:
        spec = FIELD_SPECS[name]
        return _text_field(headers, raw_cells, spec) or str(spec.default)

    def number(name: str) -> float:
        spec = FIELD_SPECS[name]
        value = _numeric_field(headers, cells, spec)
        return value if value is not None else float(spec.default or 0.0)

    total_plays = number("total_plays")
    quality_plays = number("quality_plays")
    users = number("users")

    return ContentRecord(
        id=_identifier(_resolve(headers, cells, FIELD_SPECS["id"]), row_index),
        title=text("title"),
        category_name=text("category_name"),
        topic=text("topic"),
        user_need=text("user_need"),
        content_angle=text("content_angle"),
        publish_time_raw=text("publish_time_raw"),
        page_views=number("page_views"),
        total_plays=total_plays,
        quality_plays=quality_plays,
        users=users,
        consumption_rate=derive_consumption_rate(
            _numeric_field(headers, cells, FIELD_SPECS["consumption_rate"]), total_plays, quality_plays
        ),
        plays_per_user=derive_plays_per_user(
            _numeric_field(headers, cells, FIELD_SPECS["plays_per_user"]), total_plays, users
        ),
        sessions_per_user=number("sessions_per_user"),
        watch_time_per_user=number("watch_time_per_user"),
        thumbnail_url=detected_thumb or _text_field(headers, raw_cells, FIELD_SPECS["thumbnail_url"]),
    )


def ingest_table(table: RawTable) -> IngestionResult:
    records: List[ContentRecord] = []
    min_date: Optional[pd.Timestamp] = None
    max_date: Optional[pd.Timestamp] = None
    unparsed_dates = 0

    for row_index, values in enumerate(table.rows):
        record = normalize_row(table.headers, values, row_index)
        records.append(record)
        published = record.published_at
        if published is None:
            unparsed_dates += 1
            continue
        if min_date is None or published < min_date:
            min_date = published
        if max_date is None or published > max_date:
            max_date = published

    if unparsed_dates:
        logger.debug("%d of %d records have no parseable publish time", unparsed_dates, len(records))
    logger.info("Ingested %d records (%d columns)", len(records), len(table.headers))
    return IngestionResult(
        records=records,
        min_publish_date=min_date,
        max_publish_date=max_date,
        headers=list(table.headers),
    )


def ingest_text(text: str) -> IngestionResult:
    """Split and normalise a raw TSV feed."""

    return ingest_table(split_table(text))
