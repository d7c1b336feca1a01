"""Cell-level coercion rules for raw feed values."""

from __future__ import annotations

import math
import re
import warnings
from typing import Optional

import pandas as pd

CellValue = float | str

_PLAIN_NUMBER = re.compile(r"^-?\d+(\.\d+)?$")
_LEADING_NUMBER = re.compile(r"^\s*[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")
_IMAGE_EXTENSION = re.compile(r"\.(jpeg|jpg|gif|png|webp)", re.IGNORECASE)
_DATE_PARTS_SPLIT = re.compile(r"[/\s:]")
_TIME_ONLY = re.compile(r"^\d{1,2}:\d{2}(:\d{2}(\.\d+)?)?(\s*[ap]\.?m\.?)?$", re.IGNORECASE)

CDN_MARKERS: tuple[str, ...] = ("vnecdn",)
MISSING_DATE_TOKENS = {"", "n/a"}


def _leading_float(text: str) -> Optional[float]:
    match = _LEADING_NUMBER.match(text)
    if not match:
        return None
    number = float(match.group(0))
    return number if math.isfinite(number) else None


def coerce_cell(raw: str) -> CellValue:
    """Turn a raw cell into a percentage, a plain number or a trimmed string.

    Percent cells are divided by 100 (``"12.5%"`` -> ``0.125``). Thousands
    separators are dropped before the numeric check (``"1,000"`` -> ``1000.0``).
    Anything that does not yield a finite number is returned as the trimmed text.
    """

    value = (raw or "").strip()
    if "%" in value:
        number = _leading_float(value.replace("%", "", 1))
        return number / 100 if number is not None else value
    ungrouped = value.replace(",", "")
    if _PLAIN_NUMBER.match(ungrouped):
        number = float(ungrouped)
        return number if math.isfinite(number) else value
    return value


def as_number(value: object) -> Optional[float]:
    """Return ``value`` as a finite float, or ``None`` when it is not numeric."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    return number if math.isfinite(number) else None


def looks_like_thumbnail(cell: str) -> bool:
    value = (cell or "").strip()
    if not value.startswith("http"):
        return False
    return bool(_IMAGE_EXTENSION.search(value)) or any(marker in value for marker in CDN_MARKERS)


def _to_naive_timestamp(text: str) -> Optional[pd.Timestamp]:
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        try:
            parsed = pd.to_datetime(text, errors="coerce")
        except (ValueError, TypeError, OverflowError):
            return None
    if parsed is None or pd.isna(parsed):
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.tz_convert(None)
    return parsed


def parse_publish_time(raw: object) -> Optional[pd.Timestamp]:
    """Parse a publish-time cell permissively.

    ISO and month-first strings go through pandas; otherwise the value is read as
    ``D/M/Y`` (optionally followed by a time). A bare clock time carries no date
    and is rejected. Returns ``None`` when nothing fits.
    """

    if raw is None:
        return None
    text = str(raw).strip()
    if text.lower() in MISSING_DATE_TOKENS:
        return None
    # pandas fills a bare clock time with today's date
    if _TIME_ONLY.match(text):
        return None

    parsed = _to_naive_timestamp(text)
    if parsed is not None:
        return parsed

    parts = _DATE_PARTS_SPLIT.split(text)
    if len(parts) >= 3:
        return _to_naive_timestamp(f"{parts[2]}-{parts[1]}-{parts[0]}")
    return None
