from __future__ import annotations

import pandas as pd
import pytest

from content_analytics.coercion import as_number, coerce_cell, looks_like_thumbnail, parse_publish_time


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("12.5%", 0.125),
        ("100%", 1.0),
        (" 45 % ", 0.45),
        ("-20%", -0.2),
    ],
)
def test_percent_cells_are_divided_by_100(raw: str, expected: float) -> None:
    assert coerce_cell(raw) == pytest.approx(expected)


def test_grouped_numbers_drop_separators() -> None:
    assert coerce_cell("1,000") == 1000.0
    assert coerce_cell("1,234,567.5") == 1234567.5
    assert coerce_cell("-42") == -42.0


def test_non_numeric_cells_stay_trimmed_strings() -> None:
    assert coerce_cell("  Hello  ") == "Hello"
    assert coerce_cell("1.000.000") == "1.000.000"
    assert coerce_cell("N/A%") == "N/A%"
    assert coerce_cell("") == ""


def test_as_number_rejects_non_finite_and_text() -> None:
    assert as_number(3) == 3.0
    assert as_number("2.5") == 2.5
    assert as_number("abc") is None
    assert as_number("inf") is None
    assert as_number(float("nan")) is None
    assert as_number("") is None
    assert as_number(None) is None


def test_thumbnail_detection() -> None:
    assert looks_like_thumbnail("https://cdn.example.com/cover.JPG")
    assert looks_like_thumbnail("https://i1-vnexpress.vnecdn.net/2025/03/01/abc")
    assert looks_like_thumbnail("http://example.com/x.webp?w=300")
    assert not looks_like_thumbnail("cover.jpg")
    assert not looks_like_thumbnail("https://example.com/article.html")


def test_parse_publish_time_iso_and_day_first() -> None:
    assert parse_publish_time("2025-03-01") == pd.Timestamp("2025-03-01")
    assert parse_publish_time("2025-03-01 08:15") == pd.Timestamp("2025-03-01 08:15")
    assert parse_publish_time("25/03/2025 10:30").date() == pd.Timestamp("2025-03-25").date()


def test_parse_publish_time_strips_timezone() -> None:
    parsed = parse_publish_time("2025-03-01T10:00:00Z")
    assert parsed is not None
    assert parsed.tzinfo is None
    assert parsed == pd.Timestamp("2025-03-01 10:00")


@pytest.mark.parametrize("raw", ["", "N/A", "n/a", "not a date", None])
def test_parse_publish_time_unparseable(raw) -> None:
    assert parse_publish_time(raw) is None


@pytest.mark.parametrize("raw", ["10:30", "10:30:15", "9:05 PM"])
def test_clock_time_without_date_is_rejected(raw) -> None:
    assert parse_publish_time(raw) is None
