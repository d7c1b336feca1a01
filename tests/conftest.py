from __future__ import annotations

from typing import Callable

import pytest

from content_analytics.records import ContentRecord

SAMPLE_FEED = "\n".join(
    [
        "\t".join(
            [
                "STT", "Title", "CateName", "Topic_Level_1", "UserNeed", "Public Time", "PVs",
                "Real Plays", "Quality Plays", "User", "Consumption Rate", "Session/User",
                "Time watching/User", "Thumb",
            ]
        ),
        "1\tAlpha\tNews\tPolitics\tUpdate me\t2025-03-01 08:00\t1,000\t200\t100\t100\t\t2\t60\thttps://i.vnecdn.net/a.jpg",
        "",
        "2\tBeta\tNews\tEconomy\tEducate me\t2025-03-02 09:30\t3,000\t0\t0\t500\t\t0\t0\t",
        "3\tGamma\tSports\tPolitics\tUpdate me\t2025-03-03 10:00\t2,000\t400\t300\t200\t80%\t1\t45\t",
        "4\tDelta\tSports\tEconomy\tInspire me\tnot a date\t500\t50\t10\t25\t\t1\t20\t",
        "   ",
    ]
)


@pytest.fixture()
def sample_feed() -> str:
    return SAMPLE_FEED


@pytest.fixture()
def make_record() -> Callable[..., ContentRecord]:
    counter = {"value": 0}

    def _factory(**overrides) -> ContentRecord:
        counter["value"] += 1
        values = {
            "id": f"rec-{counter['value']}",
            "title": f"Story {counter['value']}",
            "category_name": "News",
            "topic": "General",
            "user_need": "Update me",
            "content_angle": "Standard",
            "publish_time_raw": "2025-03-01",
            "page_views": 100.0,
            "total_plays": 10.0,
            "quality_plays": 5.0,
            "users": 10.0,
            "consumption_rate": 0.5,
            "plays_per_user": 1.0,
            "sessions_per_user": 1.0,
            "watch_time_per_user": 30.0,
        }
        values.update(overrides)
        return ContentRecord(**values)

    return _factory


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("OPENAI_API_KEY", "ANTHROPIC_API_KEY", "CONTENT_FEED_URL"):
        monkeypatch.delenv(name, raising=False)
