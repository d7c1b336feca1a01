"""Configuration models for the content analytics pipeline."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Mapping, MutableMapping, Optional


FEED_URL_ENV = "CONTENT_FEED_URL"

GRANULARITY_DAYS = {"daily": 1, "weekly": 7, "monthly": 30}

NUMERIC_FIELDS: tuple[str, ...] = (
    "page_views",
    "total_plays",
    "quality_plays",
    "users",
    "consumption_rate",
    "plays_per_user",
    "sessions_per_user",
    "watch_time_per_user",
)


@dataclass(frozen=True)
class FieldSpec:
    """Ordered header aliases and the fallback value for one canonical field."""

    name: str
    aliases: tuple[str, ...]
    default: object = None
    numeric: bool = False


# Alias order matters: the first alias matching a header wins.
FIELD_SPECS: dict[str, FieldSpec] = {
    spec.name: spec
    for spec in (
        FieldSpec("id", ("article_id", "STT", "ID")),
        FieldSpec("title", ("Title", "Tiêu đề"), "Không có tiêu đề"),
        FieldSpec("category_name", ("CateName", "Folder", "Folder Name"), "Khác"),
        FieldSpec("topic", ("Topic_Level_1", "UserNeed", "User Need"), "Chung"),
        FieldSpec("user_need", ("UserNeed", "User Need", "Topic_Level_1"), "Chung"),
        FieldSpec("content_angle", ("Content_Angle", "Angle"), "Tiêu chuẩn"),
        FieldSpec(
            "publish_time_raw",
            ("Public Time", "Public_Time", "Time", "Date", "Ngày xuất bản"),
            "N/A",
        ),
        FieldSpec("page_views", ("PageViews", "PVs", "Views"), 0.0, numeric=True),
        FieldSpec("total_plays", ("Real Plays", "Total Play", "Plays"), 0.0, numeric=True),
        FieldSpec("quality_plays", ("Quality Plays", "Quality Play"), 0.0, numeric=True),
        FieldSpec("users", ("User", "Users", "Unique Users"), 0.0, numeric=True),
        FieldSpec(
            "consumption_rate",
            ("Consumption Rate", "Rate", "Consumption_Rate"),
            None,
            numeric=True,
        ),
        FieldSpec("plays_per_user", ("Play/User", "Plays/User"), None, numeric=True),
        FieldSpec("sessions_per_user", ("Session/User", "Sessions/User"), 0.0, numeric=True),
        FieldSpec(
            "watch_time_per_user",
            ("Time watching/User", "TimeWatching/User", "Duration"),
            0.0,
            numeric=True,
        ),
        FieldSpec("thumbnail_url", ("thumbnail", "image", "thumb", "Avatar", "Poster")),
    )
}

UNCLASSIFIED_SEGMENT = "Chưa phân loại"
ALL_CATEGORIES = "All"


DEFAULT_AI_SYSTEM_PROMPT = (
    "You are a senior data analyst for a media / content platform. "
    "Reply with a single JSON object and nothing else."
)

DEFAULT_AI_PROMPT_TEMPLATE = """
Analyse the content performance data using the aggregate summary and record sample below.

Rules:
1. Do not compare categories against each other.
2. article_id is the unique identifier of a record.
3. Only use the numbers provided; never invent figures.

Aggregate summary:
{aggregates}

Record sample:
{sample}

Return exactly one JSON object with this shape:
{{
  "summary": "strategic summary",
  "kpis": [{{"name": "string", "value": "string", "context": "string"}}],
  "insights": {{
    "highVolumeLowPlay": "segments with many articles but few plays",
    "highConsumptionZeroPlay": "high quality articles without video plays",
    "playVsConsumptionTrend": "relationship between plays and consumption"
  }},
  "recommendations": [{{"priority": "High|Medium|Low", "action": "string", "impact": "string"}}],
  "mappings": {{"<article_id>": {{"topic": "string", "angle": "string"}}}}
}}
"""

DEFAULT_ARTICLE_PROMPT_TEMPLATE = """
Analyse this specific article performance:
Title: {title}
Views: {page_views}
Plays: {total_plays}
Consumption Rate: {consumption_rate}
Avg Time: {watch_time_per_user}s
Topic: {topic}

Return exactly one JSON object:
{{
  "performanceScore": "rating, e.g. Excellent / Strategic / Needs improvement",
  "audiencePersona": "core audience description",
  "growthOpportunity": "how to get more out of this content",
  "strategicTakeaway": "one sentence summary for editors"
}}
"""


@dataclass(slots=True)
class AISummaryConfig:
    """Settings for the optional insight-generation collaborator."""

    enabled: bool = False
    provider: str = "openai"
    model: str = "gpt-4o-mini"
    api_key_env: str = "OPENAI_API_KEY"
    system_prompt: str = DEFAULT_AI_SYSTEM_PROMPT
    prompt_template: str = DEFAULT_AI_PROMPT_TEMPLATE
    article_prompt_template: str = DEFAULT_ARTICLE_PROMPT_TEMPLATE
    temperature: float = 0.2
    max_output_tokens: int = 1500

    def is_enabled(self) -> bool:
        return self.enabled and bool(self.provider and self.model)

    def has_credentials(self) -> bool:
        return bool(os.getenv(self.api_key_env, "").strip())


@dataclass(slots=True)
class AnalysisSettings:
    """Execution parameters for the content analytics pipeline."""

    data_path: Optional[Path] = None
    data_url: Optional[str] = None
    output_dir: Path = Path("reports")
    granularity: str = "daily"
    category: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    sample_size: int = 60
    top_n: int = 10
    write_outputs: bool = True
    ai_summary: AISummaryConfig = field(default_factory=AISummaryConfig)

    def __post_init__(self) -> None:
        self.granularity = self.granularity.strip().lower()
        if self.granularity not in GRANULARITY_DAYS:
            raise ValueError(
                f"Unsupported granularity '{self.granularity}'; expected one of {sorted(GRANULARITY_DAYS)}"
            )
        if self.data_path is None and not self.data_url:
            self.data_url = os.getenv(FEED_URL_ENV, "").strip() or None

    def resolve_paths(self) -> None:
        if self.data_path is not None:
            self.data_path = self.data_path.expanduser().resolve()
        self.output_dir = self.output_dir.expanduser().resolve()

    def ensure_output_tree(self) -> None:
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def source_label(self) -> str:
        if self.data_path is not None:
            return str(self.data_path)
        return self.data_url or "(no source)"


def _parse_date(value: object, key: str) -> Optional[date]:
    if value in (None, ""):
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError as exc:
        raise ValueError(f"`{key}` must be an ISO date (YYYY-MM-DD), got {value!r}") from exc


def settings_from_dict(payload: Mapping[str, object], *, base_path: Path | None = None) -> AnalysisSettings:
    """Create :class:`AnalysisSettings` from a dictionary (e.g., parsed JSON)."""

    if not isinstance(payload, Mapping):
        raise ValueError("Configuration payload must be a JSON object")
    base = base_path or Path.cwd()

    ai_payload = payload.get("ai_summary")
    ai_summary = AISummaryConfig()
    if isinstance(ai_payload, MutableMapping):
        ai_kwargs = {
            key: ai_payload.get(key)
            for key in AISummaryConfig.__dataclass_fields__.keys()
            if key in ai_payload
        }
        if "enabled" in ai_kwargs:
            ai_kwargs["enabled"] = bool(ai_kwargs["enabled"])
        ai_summary = AISummaryConfig(**ai_kwargs)

    data_path_value = payload.get("data_path")
    data_url_value = payload.get("data_url")
    output_dir_value = payload.get("output_dir")

    data_path = Path(str(data_path_value)) if data_path_value else None
    if data_path is not None and not data_path.is_absolute():
        data_path = base / data_path
    output_dir = Path(str(output_dir_value)) if output_dir_value else Path("reports")
    if not output_dir.is_absolute():
        output_dir = base / output_dir

    settings = AnalysisSettings(
        data_path=data_path,
        data_url=str(data_url_value) if data_url_value else None,
        output_dir=output_dir,
        granularity=str(payload.get("granularity", "daily")),
        category=str(payload["category"]) if payload.get("category") else None,
        start_date=_parse_date(payload.get("start_date"), "start_date"),
        end_date=_parse_date(payload.get("end_date"), "end_date"),
        sample_size=int(payload.get("sample_size", 60)),
        top_n=int(payload.get("top_n", 10)),
        write_outputs=bool(payload.get("write_outputs", True)),
        ai_summary=ai_summary,
    )
    if settings.data_path is None and not settings.data_url:
        raise ValueError(f"`data_path` or `data_url` is required (or set {FEED_URL_ENV})")
    settings.resolve_paths()
    return settings
