"""Insight generation through an external language model.

Nothing here feeds back into the core aggregates: a failed or malformed reply
raises :class:`InsightServiceError` (reports) or falls back to a placeholder
(single-article insights), and the pipeline keeps its numbers either way.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import anthropic
from openai import OpenAI

from content_analytics.config import AISummaryConfig
from content_analytics.errors import InsightServiceError
from content_analytics.metrics import AggregateSummary
from content_analytics.records import ContentRecord

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_SIZE = 60


@dataclass(slots=True)
class InsightReport:
    summary: str
    kpis: List[Dict[str, str]] = field(default_factory=list)
    insights: Dict[str, str] = field(default_factory=dict)
    recommendations: List[Dict[str, str]] = field(default_factory=list)
    mappings: Dict[str, Dict[str, str]] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "InsightReport":
        summary = payload.get("summary")
        if not isinstance(summary, str) or not summary.strip():
            raise InsightServiceError("Insight reply is missing a 'summary' string.")
        kpis = payload.get("kpis") or []
        insights = payload.get("insights") or {}
        recommendations = payload.get("recommendations") or []
        mappings = payload.get("mappings") or {}
        return cls(
            summary=summary.strip(),
            kpis=[dict(item) for item in kpis if isinstance(item, dict)],
            insights={str(k): str(v) for k, v in insights.items()} if isinstance(insights, dict) else {},
            recommendations=[dict(item) for item in recommendations if isinstance(item, dict)],
            mappings={
                str(key): dict(value) for key, value in mappings.items() if isinstance(value, dict)
            } if isinstance(mappings, dict) else {},
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_markdown(self) -> str:
        lines = [self.summary, ""]
        if self.kpis:
            lines.append("### KPIs")
            lines.extend(
                f"- **{kpi.get('name', '')}:** {kpi.get('value', '')} ({kpi.get('context', '')})" for kpi in self.kpis
            )
            lines.append("")
        if self.insights:
            lines.append("### Insights")
            lines.extend(f"- **{key}:** {value}" for key, value in self.insights.items())
            lines.append("")
        if self.recommendations:
            lines.append("### Recommendations")
            lines.extend(
                f"- [{item.get('priority', 'Medium')}] {item.get('action', '')} -> {item.get('impact', '')}"
                for item in self.recommendations
            )
        return "\n".join(lines).strip()


@dataclass(slots=True)
class ArticleInsight:
    performance_score: str
    audience_persona: str
    growth_opportunity: str
    strategic_takeaway: str

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "ArticleInsight":
        return cls(
            performance_score=str(payload.get("performanceScore", "")),
            audience_persona=str(payload.get("audiencePersona", "")),
            growth_opportunity=str(payload.get("growthOpportunity", "")),
            strategic_takeaway=str(payload.get("strategicTakeaway", "")),
        )


MISSING_KEY_INSIGHT = ArticleInsight(
    performance_score="API key required",
    audience_persona="Configure an API key to enable article insights",
    growth_opportunity="Check the environment variables of the deployment",
    strategic_takeaway="API key is missing",
)

UNAVAILABLE_INSIGHT = ArticleInsight(
    performance_score="Data unavailable",
    audience_persona="Analysis pending",
    growth_opportunity="Refresh the data",
    strategic_takeaway="Insight is currently unavailable",
)


def sample_records(records: Sequence[ContentRecord], sample_size: int = DEFAULT_SAMPLE_SIZE) -> List[Dict[str, Any]]:
    return [
        {
            "id": str(record.id),
            "title": record.title,
            "cate": record.category_name,
            "pvs": record.page_views,
            "play": record.total_plays,
            "user": record.users,
            "rate": record.consumption_rate,
            "angle": record.content_angle,
        }
        for record in list(records)[:sample_size]
    ]


def build_insight_payload(
    summary: AggregateSummary,
    records: Sequence[ContentRecord],
    *,
    sample_size: int = DEFAULT_SAMPLE_SIZE,
) -> Dict[str, Any]:
    """JSON-serialisable hand-off for the insight collaborator."""

    return {
        "record_count": summary.record_count,
        "aggregates": summary.to_dict(),
        "sample": sample_records(records, sample_size),
    }


def extract_json_block(text: str) -> Optional[str]:
    if not text:
        return None
    text = text.strip()
    if text.startswith("```"):
        lines = text.splitlines()
        text = "\n".join(line for line in lines if not line.strip().startswith("```"))
    depth = 0
    start = None
    for idx, char in enumerate(text):
        if char == "{":
            if depth == 0:
                start = idx
            depth += 1
        elif char == "}":
            if depth:
                depth -= 1
                if depth == 0 and start is not None:
                    return text[start : idx + 1]
    return None


def parse_json_reply(raw: str) -> Dict[str, Any]:
    text = (raw or "").strip()
    if not text:
        raise InsightServiceError("Insight reply was empty.")
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        candidate = extract_json_block(text)
        if not candidate:
            raise InsightServiceError("Insight reply did not contain JSON content.") from None
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError as exc:
            raise InsightServiceError("Failed to parse JSON from insight reply.") from exc
    if not isinstance(parsed, dict):
        raise InsightServiceError("Insight reply JSON was not an object.")
    return parsed


class InsightSummarizer:
    """Ask a configured language model for a JSON insight report."""

    def __init__(self, config: AISummaryConfig) -> None:
        self.config = config

    def _get_api_key(self) -> str:
        api_key = os.getenv(self.config.api_key_env, "").strip()
        if not api_key:
            raise InsightServiceError(
                f"API key not found in environment variable '{self.config.api_key_env}'."
            )
        return api_key

    def _call_openai(self, prompt: str) -> str:
        client = OpenAI(api_key=self._get_api_key())
        response = client.chat.completions.create(
            model=self.config.model,
            messages=[
                {"role": "system", "content": self.config.system_prompt},
                {"role": "user", "content": prompt},
            ],
            temperature=self.config.temperature,
            max_completion_tokens=self.config.max_output_tokens,
            response_format={"type": "json_object"},
        )
        message = response.choices[0].message
        if isinstance(message.content, str):
            return message.content
        return "".join(
            block["text"] if isinstance(block, dict) and "text" in block else str(block)
            for block in message.content or []
        )

    def _call_anthropic(self, prompt: str) -> str:
        client = anthropic.Anthropic(api_key=self._get_api_key())
        response = client.messages.create(
            model=self.config.model,
            system=self.config.system_prompt,
            max_tokens=self.config.max_output_tokens,
            temperature=self.config.temperature,
            messages=[{"role": "user", "content": prompt}],
        )
        text_blocks = [block.text for block in response.content if hasattr(block, "text")]
        return "\n".join(text_blocks).strip()

    def _complete(self, prompt: str) -> Dict[str, Any]:
        try:
            if self.config.provider.lower() == "anthropic":
                text = self._call_anthropic(prompt)
            else:
                text = self._call_openai(prompt)
        except InsightServiceError:
            raise
        except Exception as exc:
            raise InsightServiceError(f"{self.config.provider} request failed: {exc}") from exc
        return parse_json_reply(text)

    def render_report_prompt(self, payload: Dict[str, Any]) -> str:
        return self.config.prompt_template.format(
            aggregates=json.dumps(payload.get("aggregates", {}), ensure_ascii=False),
            sample=json.dumps(payload.get("sample", []), ensure_ascii=False),
        )

    def generate_report(
        self,
        summary: AggregateSummary,
        records: Sequence[ContentRecord],
        *,
        sample_size: int = DEFAULT_SAMPLE_SIZE,
    ) -> InsightReport:
        if summary.is_empty:
            raise InsightServiceError("No records to analyse.")
        payload = build_insight_payload(summary, records, sample_size=sample_size)
        prompt = self.render_report_prompt(payload)
        logger.info(
            "Requesting insight report from %s/%s (%d sampled records)",
            self.config.provider,
            self.config.model,
            len(payload["sample"]),
        )
        return InsightReport.from_payload(self._complete(prompt))

    def generate_article_insight(self, record: ContentRecord) -> ArticleInsight:
        if not self.config.has_credentials():
            return MISSING_KEY_INSIGHT
        prompt = self.config.article_prompt_template.format(
            title=record.title,
            page_views=record.page_views,
            total_plays=record.total_plays,
            consumption_rate=record.consumption_rate,
            watch_time_per_user=record.watch_time_per_user,
            topic=record.topic,
        )
        try:
            return ArticleInsight.from_payload(self._complete(prompt))
        except InsightServiceError as exc:
            logger.warning("Article insight failed for %s: %s", record.id, exc)
            return UNAVAILABLE_INSIGHT
