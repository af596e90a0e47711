from __future__ import annotations

import logging
import random
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional

from news_analyzer.analysis import LlmConfigurationError, NewsAnalyzer
from news_analyzer.config import Settings
from news_analyzer.dedupe import DuplicateDetector, filter_new_items
from news_analyzer.lexicon_loader import load_lexicon
from news_analyzer.models import Article, CanonicalPayload
from news_analyzer.storage import NewsHistoryStorage

logger = logging.getLogger(__name__)


def build_detector(settings: Settings) -> DuplicateDetector:
    return DuplicateDetector(
        lexicon=load_lexicon(Path(settings.lexicon_path)),
        fuzzy_threshold=settings.fuzzy_title_threshold,
        distinct_event_threshold=settings.distinct_event_threshold,
    )


def _inter_item_delay(settings: Settings) -> float:
    low = max(0.0, float(settings.inter_item_delay_min_sec))
    high = max(low, float(settings.inter_item_delay_max_sec))
    return random.uniform(low, high)


def _store_new_items(
    settings: Settings,
    storage: NewsHistoryStorage,
    detector: DuplicateDetector,
    article: Article,
    payload: CanonicalPayload,
) -> Dict[str, int]:
    history = storage.fetch_recent(settings.duplicate_window_days)
    kept, counts = filter_new_items(payload.news_list, history, detector=detector)
    for item in kept:
        storage.insert_analyzed_news(item, article_id=article.article_id, original_url=article.url)
        logger.info("Saved news: %s (industry: %s, type: %s)", item.title, item.industry_type, item.news_type)
    return {"saved": len(kept), "duplicates": counts["duplicates_skipped"]}


def run_analysis(
    settings: Settings,
    storage: NewsHistoryStorage,
    articles: List[Article],
    analyzer: Optional[NewsAnalyzer] = None,
    detector: Optional[DuplicateDetector] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Dict[str, int]:
    analyzer = analyzer or NewsAnalyzer(settings)
    detector = detector or build_detector(settings)
    stats = {"articles": len(articles), "succeeded": 0, "failed": 0, "saved": 0, "duplicates": 0}

    for index, article in enumerate(articles, start=1):
        logger.info("Analyzing article %d/%d: %s", index, len(articles), article.article_id)
        try:
            payload = analyzer.analyze(article.content)
        except LlmConfigurationError:
            raise
        except Exception as exc:
            logger.error("LLM analysis failed for %s: %s", article.article_id, exc)
            stats["failed"] += 1
        else:
            counts = _store_new_items(settings, storage, detector, article, payload)
            stats["saved"] += counts["saved"]
            stats["duplicates"] += counts["duplicates"]
            stats["succeeded"] += 1

        if index < len(articles):
            delay = _inter_item_delay(settings)
            if delay > 0:
                logger.info("Waiting %.0f seconds before the next article", delay)
                sleep(delay)

    logger.info(
        "Analysis finished: %d articles, %d succeeded, %d failed, %d saved, %d duplicates",
        stats["articles"],
        stats["succeeded"],
        stats["failed"],
        stats["saved"],
        stats["duplicates"],
    )
    return stats
