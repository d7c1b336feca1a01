"""Fetching the raw TSV feed from a URL or a local file."""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

import requests

from content_analytics.config import AnalysisSettings
from content_analytics.errors import FeedFetchError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryConfig:
    max_retries: int = 2
    base_delay_s: float = 0.5
    jitter_s: float = 0.2
    retry_statuses: Iterable[int] = (429, 500, 502, 503, 504)


def _sleep_backoff(attempt: int, retry_cfg: RetryConfig) -> None:
    delay = retry_cfg.base_delay_s * (2**attempt)
    delay += random.random() * retry_cfg.jitter_s
    time.sleep(delay)


def _decode_body(response: requests.Response) -> str:
    content_type = response.headers.get("Content-Type", "")
    if "charset=" in content_type.lower():
        text = response.text
    else:
        # requests assumes ISO-8859-1 for text/* without a charset
        text = response.content.decode("utf-8-sig", errors="replace")
    return text.removeprefix("\ufeff")


def _get_with_retry(session: requests.Session, url: str, retry_cfg: RetryConfig, timeout: float) -> str:
    attempt = 0
    while True:
        try:
            response = session.get(url, timeout=timeout)
        except requests.RequestException as exc:
            if attempt >= retry_cfg.max_retries:
                raise FeedFetchError(url, str(exc)) from exc
            logger.warning("Feed request failed (%s); retrying", exc)
            _sleep_backoff(attempt, retry_cfg)
            attempt += 1
            continue

        if response.status_code in retry_cfg.retry_statuses and attempt < retry_cfg.max_retries:
            logger.warning("Feed returned HTTP %s; retrying", response.status_code)
            _sleep_backoff(attempt, retry_cfg)
            attempt += 1
            continue
        if not response.ok:
            raise FeedFetchError(url, response.reason or "unexpected status", status_code=response.status_code)
        return _decode_body(response)


def fetch_feed(
    url: str,
    *,
    session: requests.Session | None = None,
    retry: RetryConfig | None = None,
    timeout: float = 30,
) -> str:
    """GET ``url`` and return its body as text, retrying transient failures.

    Bodies without a declared charset are read as UTF-8 and a leading BOM is dropped.
    """

    retry_cfg = retry or RetryConfig()
    if session is not None:
        return _get_with_retry(session, url, retry_cfg, timeout)
    with requests.Session() as owned:
        return _get_with_retry(owned, url, retry_cfg, timeout)


def load_feed_text(settings: AnalysisSettings, *, session: requests.Session | None = None) -> str:
    """Read the feed from ``settings.data_path`` when set, else fetch ``settings.data_url``."""

    if settings.data_path is not None:
        path = Path(settings.data_path)
        if not path.exists():
            raise FileNotFoundError(f"Feed file not found: {path}")
        return path.read_text(encoding="utf-8-sig")
    if not settings.data_url:
        raise ValueError("No feed source configured: set data_path or data_url")
    logger.info("Fetching feed from %s", settings.data_url)
    return fetch_feed(settings.data_url, session=session)
