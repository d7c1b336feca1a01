from __future__ import annotations

import pytest

from content_analytics.segments import (
    pick_leaders,
    score_segments,
    segments_frame,
    significant_segments,
)


@pytest.fixture()
def two_segments(make_record):
    heavy = [make_record(user_need="A", page_views=800, users=80, total_plays=400)]
    light = [make_record(user_need="B", page_views=300, users=30, total_plays=150) for _ in range(4)]
    return heavy + light


def test_relative_and_depth_indices(two_segments) -> None:
    scores = score_segments(two_segments)
    assert [score.name for score in scores] == ["B", "A"]

    light, heavy = scores
    assert heavy.relative_index == pytest.approx(2.0)
    assert heavy.depth_index == pytest.approx(1.0)
    assert heavy.efficiency_score == pytest.approx(1.5)
    assert heavy.share_of_total == pytest.approx(0.2)
    assert heavy.total_views == pytest.approx(800)

    assert light.relative_index == pytest.approx(0.75)
    assert light.record_count == 4
    assert light.total_views_k == pytest.approx(1.2)
    assert light.avg_consumption_pct == pytest.approx(50.0)


def test_leaders_prefer_first_segment_on_ties(two_segments) -> None:
    leaders = pick_leaders(score_segments(two_segments))
    assert leaders.top_relative.name == "A"
    assert leaders.top_efficiency.name == "A"
    # equal depth: the larger segment comes first in view order
    assert leaders.top_depth.name == "B"


def test_significance_threshold(make_record) -> None:
    records = [make_record(user_need="Main") for _ in range(19)] + [make_record(user_need="Edge")]
    edge = next(score for score in score_segments(records) if score.name == "Edge")
    assert edge.share_of_total == pytest.approx(0.05)
    assert edge.is_significant

    records.append(make_record(user_need="Main"))
    edge = next(score for score in score_segments(records) if score.name == "Edge")
    assert not edge.is_significant
    assert [score.name for score in significant_segments(score_segments(records))] == ["Main"]


def test_small_segments_never_lead(make_record) -> None:
    records = [make_record(user_need="Bulk", page_views=10) for _ in range(20)]
    records.append(make_record(user_need="Outlier", page_views=1_000_000, users=1000))
    leaders = pick_leaders(score_segments(records))
    assert leaders.top_relative.name == "Bulk"


def test_zero_baseline_ratio_contributes_zero(make_record) -> None:
    records = [
        make_record(user_need="A", users=0, total_plays=0, plays_per_user=0),
        make_record(user_need="B", users=0, total_plays=0, plays_per_user=0),
    ]
    scores = score_segments(records)
    for score in scores:
        assert score.relative_index == pytest.approx(1 / 3)
        assert score.depth_index == pytest.approx(2 / 3)


def test_empty_user_need_goes_to_unclassified(make_record) -> None:
    scores = score_segments([make_record(user_need=""), make_record(user_need="Update me")])
    assert {score.name for score in scores} == {"Chưa phân loại", "Update me"}


def test_empty_input() -> None:
    assert score_segments([]) == []
    leaders = pick_leaders([])
    assert leaders.top_relative is None
    assert leaders.top_depth is None
    assert leaders.top_efficiency is None
    assert segments_frame([]).empty


def test_segments_frame(two_segments) -> None:
    frame = segments_frame(score_segments(two_segments))
    assert list(frame["name"]) == ["B", "A"]
    assert frame.loc[1, "total_views_k"] == pytest.approx(0.8)
