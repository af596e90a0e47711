from datetime import datetime, timedelta, timezone

from news_analyzer.models import CanonicalItem
from news_analyzer.storage import NewsHistoryStorage


def test_fetch_recent_returns_only_window_records(tmp_path) -> None:
    storage = NewsHistoryStorage(tmp_path / "news.db")
    fresh = CanonicalItem(
        title="阿里巴巴发布财报",
        summary="季度营收增长",
        industry_tags=["科技", "零售"],
        type_tags=["财务报告"],
        confidence=1.3,
    )
    stale = CanonicalItem(title="旧闻", summary="很久以前", industry_tags=["其他"], type_tags=["其他"])

    news_id = storage.insert_analyzed_news(fresh, article_id="a1", original_url="https://example.com/a1")
    storage.insert_analyzed_news(stale, created_at=datetime.now(timezone.utc) - timedelta(days=30))

    assert news_id
    assert storage.count() == 2

    records = storage.fetch_recent(15)
    assert len(records) == 1
    record = records[0]
    assert record.title == "阿里巴巴发布财报"
    assert record.industry_type == "科技, 零售"
    assert record.news_type == "财务报告"
    assert record.created_at is not None and record.created_at.tzinfo is not None

    assert len(storage.fetch_recent(60)) == 2
