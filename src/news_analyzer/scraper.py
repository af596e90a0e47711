"""Last-resort field scraping for output that no JSON decoder accepts.

Typical input is a truncated reply: the news_list array or its final object
never closes. Fields are pulled out of each item by key pattern, and anything
missing gets a neutral placeholder.
"""

from __future__ import annotations

import json
import logging
import math
import re
from functools import lru_cache
from typing import Iterator, List, Optional

from news_analyzer.models import RawItem, RawPayload
from news_analyzer.recovery import find_matching_close

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "未知标题"
DEFAULT_SUMMARY = "暂无摘要"
DEFAULT_INDUSTRY = "其他"
DEFAULT_NEWS_TYPE = "其他"
DEFAULT_CONFIDENCE = 0.5

SCRAPED_SUMMARY = "部分解析：字段扫描恢复 {count} 条新闻"
SCRAPE_FAILED_SUMMARY = "解析失败，但已尽力提取信息"

_NUMBER_STOP = ",}] \t\r\n"


@lru_cache(maxsize=None)
def _key_pattern(field: str) -> re.Pattern:
    return re.compile(r'"%s"\s*:' % re.escape(field))


def _find_string_end(text: str, start: int) -> Optional[int]:
    escape = False
    for idx in range(start, len(text)):
        ch = text[idx]
        if escape:
            escape = False
        elif ch == "\\":
            escape = True
        elif ch == '"':
            return idx
    return None


def _unescape(raw: str) -> str:
    try:
        return json.loads(f'"{raw}"', strict=False)
    except ValueError:
        return raw.replace('\\"', '"').replace("\\\\", "\\")


def _value_start(span: str, field: str) -> Optional[int]:
    match = _key_pattern(field).search(span)
    if not match:
        return None
    pos = match.end()
    while pos < len(span) and span[pos].isspace():
        pos += 1
    return pos


def extract_string_field(span: str, field: str) -> Optional[str]:
    pos = _value_start(span, field)
    if pos is None or pos >= len(span) or span[pos] != '"':
        return None
    end = _find_string_end(span, pos + 1)
    if end is None:
        return None
    return _unescape(span[pos + 1 : end])


def extract_number_field(span: str, field: str) -> Optional[float]:
    pos = _value_start(span, field)
    if pos is None:
        return None
    end = pos
    while end < len(span) and span[end] not in _NUMBER_STOP:
        end += 1
    token = span[pos:end].strip().strip('"')
    if not token:
        return None
    try:
        value = float(token)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def iter_item_spans(text: str) -> Iterator[str]:
    key = text.find('"news_list"')
    if key == -1:
        return
    array_start = text.find("[", key)
    if array_start == -1:
        return

    array_end = find_matching_close(text, array_start)
    limit = len(text) if array_end is None else array_end
    pos = array_start + 1
    while pos < limit:
        item_start = text.find("{", pos, limit)
        if item_start == -1:
            break
        item_end = find_matching_close(text, item_start)
        if item_end is None:
            # Truncated object: keep whatever made it into the reply.
            yield text[item_start:limit]
            break
        yield text[item_start : item_end + 1]
        pos = item_end + 1


def scrape_item(span: str) -> RawItem:
    confidence = extract_number_field(span, "confidence")
    return RawItem(
        title=extract_string_field(span, "title") or DEFAULT_TITLE,
        summary=extract_string_field(span, "summary") or DEFAULT_SUMMARY,
        industry_type=extract_string_field(span, "industry_type") or DEFAULT_INDUSTRY,
        news_type=extract_string_field(span, "news_type") or DEFAULT_NEWS_TYPE,
        confidence=DEFAULT_CONFIDENCE if confidence is None else confidence,
    )


def scrape_payload(text: str) -> RawPayload:
    items: List[RawItem] = [scrape_item(span) for span in iter_item_spans(text or "")]
    if items:
        summary = SCRAPED_SUMMARY.format(count=len(items))
        logger.warning("Recovered %d news items by field scanning", len(items))
    else:
        summary = SCRAPE_FAILED_SUMMARY
        logger.warning("Field scanning found no news items in %d chars of output", len(text or ""))
    return RawPayload(has_news=bool(items), news_list=items, analysis_summary=summary)
