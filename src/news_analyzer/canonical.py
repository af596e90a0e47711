from __future__ import annotations

from typing import List, Optional

from news_analyzer.models import CanonicalItem, CanonicalPayload, RawItem, RawPayload
from news_analyzer.tags import split_tags, unique_sorted

ANALYSIS_COMPLETE = "分析完成"


def _collect_tags(values: Optional[List[str]], joined: Optional[str]) -> List[str]:
    tags: List[str] = []
    for value in values or []:
        tag = str(value or "").strip()
        if tag:
            tags.append(tag)
    tags.extend(split_tags(joined))
    return unique_sorted(tags)


def canonicalize_item(raw: RawItem) -> Optional[CanonicalItem]:
    title = (raw.title or "").strip()
    summary = (raw.summary or "").strip()
    if not title or not summary:
        return None
    return CanonicalItem(
        title=title,
        summary=summary,
        industry_tags=_collect_tags(raw.industries, raw.industry_type),
        type_tags=_collect_tags(raw.types, raw.news_type),
        confidence=raw.confidence,
    )


def canonicalize_payload(raw: RawPayload) -> CanonicalPayload:
    items: List[CanonicalItem] = []
    for raw_item in raw.news_list or []:
        item = canonicalize_item(raw_item)
        if item is not None:
            items.append(item)

    has_news = raw.has_news if raw.has_news is not None else bool(items)
    summary = (raw.analysis_summary or "").strip() or ANALYSIS_COMPLETE
    return CanonicalPayload(has_news=has_news, news_list=items, analysis_summary=summary)


def clamp_confidence(value: Optional[float], default: float = 0.0) -> float:
    if value is None:
        return default
    return min(1.0, max(0.0, float(value)))
