from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from content_analytics.config import (
    FIELD_SPECS,
    NUMERIC_FIELDS,
    AISummaryConfig,
    AnalysisSettings,
    settings_from_dict,
)


def test_every_numeric_field_has_aliases():
    for name in NUMERIC_FIELDS:
        spec = FIELD_SPECS[name]
        assert spec.numeric
        assert spec.aliases, f"{name} needs at least one header alias"


def test_field_defaults():
    assert FIELD_SPECS["title"].default == "Không có tiêu đề"
    assert FIELD_SPECS["category_name"].default == "Khác"
    assert FIELD_SPECS["topic"].default == "Chung"
    assert FIELD_SPECS["content_angle"].default == "Tiêu chuẩn"
    assert FIELD_SPECS["publish_time_raw"].default == "N/A"
    assert FIELD_SPECS["consumption_rate"].default is None
    assert FIELD_SPECS["topic"].aliases[0] == "Topic_Level_1"
    assert FIELD_SPECS["user_need"].aliases[0] == "UserNeed"


def test_settings_reject_unknown_granularity():
    with pytest.raises(ValueError):
        AnalysisSettings(data_url="https://x.test", granularity="hourly")
    assert AnalysisSettings(data_url="https://x.test", granularity=" Monthly ").granularity == "monthly"


def test_settings_from_dict_resolves_relative_paths(tmp_path: Path):
    settings = settings_from_dict(
        {
            "data_path": "feed.tsv",
            "output_dir": "reports",
            "category": "News",
            "start_date": "2025-03-01",
            "end_date": "2025-03-31",
            "top_n": 5,
            "ai_summary": {"enabled": 1, "provider": "anthropic", "model": "claude-test"},
        },
        base_path=tmp_path,
    )
    assert settings.data_path == (tmp_path / "feed.tsv").resolve()
    assert settings.output_dir == (tmp_path / "reports").resolve()
    assert settings.category == "News"
    assert settings.start_date == date(2025, 3, 1)
    assert settings.end_date == date(2025, 3, 31)
    assert settings.top_n == 5
    assert settings.ai_summary.enabled is True
    assert settings.ai_summary.provider == "anthropic"
    assert settings.ai_summary.max_output_tokens == 1500


def test_settings_from_dict_requires_source(tmp_path: Path):
    with pytest.raises(ValueError, match="data_path"):
        settings_from_dict({"output_dir": "reports"}, base_path=tmp_path)


def test_settings_from_dict_accepts_env_feed_url(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    monkeypatch.setenv("CONTENT_FEED_URL", "https://env.test/feed")
    settings = settings_from_dict({}, base_path=tmp_path)
    assert settings.data_url == "https://env.test/feed"
    assert settings.source_label() == "https://env.test/feed"


def test_settings_from_dict_rejects_bad_dates(tmp_path: Path):
    with pytest.raises(ValueError, match="start_date"):
        settings_from_dict({"data_url": "https://x.test", "start_date": "01/03/2025"}, base_path=tmp_path)


def test_ai_config_credentials(monkeypatch: pytest.MonkeyPatch):
    config = AISummaryConfig(enabled=True)
    assert config.is_enabled()
    assert not config.has_credentials()
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    assert config.has_credentials()
    assert not AISummaryConfig(enabled=True, model="").is_enabled()
