from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from news_analyzer.models import CanonicalItem, DuplicateVerdict, HistoryRecord
from news_analyzer.similarity import similarity

logger = logging.getLogger(__name__)

DEFAULT_PROGRESS_KEYWORDS = (
    "新一轮",
    "再次",
    "继续",
    "进一步",
    "最新",
    "更新",
    "进展",
    "第一季度",
    "第二季度",
    "第三季度",
    "第四季度",
    "A轮",
    "B轮",
    "C轮",
    "D轮",
    "E轮",
    "版本2.0",
    "版本3.0",
    "版本4.0",
    "v2.0",
    "v3.0",
    "v4.0",
    "后续",
    "跟进",
    "追加",
    "扩大",
    "升级",
)

DEFAULT_COMPANIES = (
    "OpenAI",
    "Meta",
    "Google",
    "Microsoft",
    "Apple",
    "Amazon",
    "Tesla",
    "NVIDIA",
    "AMD",
    "Intel",
    "Samsung",
    "SK海力士",
    "日立",
    "甲骨文",
    "Crusoe",
    "Yondr",
    "Vantage",
    "CoreWeave",
    "腾讯",
    "阿里巴巴",
    "百度",
    "字节跳动",
    "华为",
    "小米",
)


@dataclass(frozen=True)
class DuplicateLexicon:
    progress_keywords: Tuple[str, ...] = DEFAULT_PROGRESS_KEYWORDS
    companies: Tuple[str, ...] = DEFAULT_COMPANIES


DEFAULT_LEXICON = DuplicateLexicon()


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def within_window(
    records: Iterable[HistoryRecord], window_days: int, now: Optional[datetime] = None
) -> List[HistoryRecord]:
    cutoff = _as_utc(now or datetime.now(timezone.utc)) - timedelta(days=window_days)
    kept: List[HistoryRecord] = []
    for record in records:
        if record.created_at is None or _as_utc(record.created_at) >= cutoff:
            kept.append(record)
    return kept


class DuplicateDetector:
    """Decides whether a news item repeats something already in the recency window.

    Candidates and history rows only need `title`, `summary`, `industry_type`
    and `news_type` attributes.
    """

    def __init__(
        self,
        lexicon: Optional[DuplicateLexicon] = None,
        fuzzy_threshold: float = 0.8,
        distinct_event_threshold: float = 0.7,
    ):
        self.lexicon = lexicon or DEFAULT_LEXICON
        self.fuzzy_threshold = fuzzy_threshold
        self.distinct_event_threshold = distinct_event_threshold
        self._keywords = [k.lower() for k in self.lexicon.progress_keywords if k]

    def companies_in(self, text: str) -> List[str]:
        return [name for name in self.lexicon.companies if name and name in (text or "")]

    def is_progress_update(self, candidate: Any, history: Sequence[Any]) -> bool:
        text = f"{candidate.title} {candidate.summary}".lower()
        if any(keyword in text for keyword in self._keywords):
            return True

        companies = self.companies_in(candidate.title)
        if not companies:
            return False
        for record in history:
            if not any(name in record.title for name in companies):
                continue
            # Same company, clearly different headline: a separate event.
            if similarity(candidate.title, record.title) < self.distinct_event_threshold:
                return True
        return False

    def check(self, candidate: Any, history: Iterable[Any]) -> DuplicateVerdict:
        rows = list(history)
        for record in rows:
            if record.title == candidate.title and record.summary == candidate.summary:
                logger.info("Exact duplicate: %s", candidate.title)
                return DuplicateVerdict(is_duplicate=True, reason="exact", matched_title=record.title)

        fuzzy_matches = [
            record
            for record in rows
            if record.industry_type == candidate.industry_type
            and record.news_type == candidate.news_type
            and similarity(candidate.title, record.title) >= self.fuzzy_threshold
        ]
        if not fuzzy_matches:
            return DuplicateVerdict(is_duplicate=False)

        matched = fuzzy_matches[0].title
        if self.is_progress_update(candidate, rows):
            logger.info("Progress update kept: %s (similar to %s)", candidate.title, matched)
            return DuplicateVerdict(is_duplicate=False, reason="progress_update", matched_title=matched)

        logger.info("Similar duplicate: %s -> %s", candidate.title, matched)
        return DuplicateVerdict(is_duplicate=True, reason="fuzzy", matched_title=matched)

    def is_duplicate(self, candidate: Any, history: Iterable[Any]) -> bool:
        return self.check(candidate, history).is_duplicate


def is_duplicate(candidate: Any, history_window: Iterable[Any], lexicon: Optional[DuplicateLexicon] = None) -> bool:
    return DuplicateDetector(lexicon=lexicon).is_duplicate(candidate, history_window)


def filter_new_items(
    items: List[CanonicalItem],
    history: Iterable[HistoryRecord],
    detector: Optional[DuplicateDetector] = None,
) -> Tuple[List[CanonicalItem], Dict[str, int]]:
    detector = detector or DuplicateDetector()
    seen: List[HistoryRecord] = list(history)
    kept: List[CanonicalItem] = []
    duplicates_skipped = 0

    for item in items:
        if detector.is_duplicate(item, seen):
            duplicates_skipped += 1
            continue
        kept.append(item)
        seen.append(
            HistoryRecord(
                title=item.title,
                summary=item.summary,
                industry_type=item.industry_type,
                news_type=item.news_type,
            )
        )

    stats = {
        "candidates": len(items),
        "kept": len(kept),
        "duplicates_skipped": duplicates_skipped,
    }
    return kept, stats
