from __future__ import annotations

import sqlite3
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional

from dateutil import parser as date_parser

from news_analyzer.canonical import clamp_confidence
from news_analyzer.models import CanonicalItem, HistoryRecord


def _parse_timestamp(raw: Optional[str]) -> Optional[datetime]:
    if not raw:
        return None
    try:
        return date_parser.isoparse(raw)
    except (ValueError, TypeError, OverflowError):
        return None


class NewsHistoryStorage:
    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS analyzed_news (
                    id TEXT PRIMARY KEY,
                    article_id TEXT NOT NULL,
                    title TEXT NOT NULL,
                    summary TEXT NOT NULL,
                    industry_type TEXT NOT NULL,
                    news_type TEXT NOT NULL,
                    confidence REAL NOT NULL,
                    original_url TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_analyzed_news_created ON analyzed_news (created_at)")

    def insert_analyzed_news(
        self,
        item: CanonicalItem,
        article_id: str = "",
        original_url: str = "",
        created_at: Optional[datetime] = None,
    ) -> str:
        news_id = str(uuid.uuid4())
        stamp = (created_at or datetime.now(timezone.utc)).astimezone(timezone.utc)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO analyzed_news
                    (id, article_id, title, summary, industry_type, news_type, confidence, original_url, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    news_id,
                    article_id,
                    item.title,
                    item.summary,
                    item.industry_type,
                    item.news_type,
                    clamp_confidence(item.confidence),
                    original_url,
                    stamp.isoformat(timespec="microseconds"),
                ),
            )
        return news_id

    def fetch_recent(self, window_days: int) -> List[HistoryRecord]:
        cutoff = (datetime.now(timezone.utc) - timedelta(days=window_days)).isoformat(timespec="microseconds")
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT title, summary, industry_type, news_type, created_at
                FROM analyzed_news WHERE created_at >= ? ORDER BY created_at DESC
                """,
                (cutoff,),
            ).fetchall()
        return [
            HistoryRecord(
                title=row["title"],
                summary=row["summary"],
                industry_type=row["industry_type"],
                news_type=row["news_type"],
                created_at=_parse_timestamp(row["created_at"]),
            )
            for row in rows
        ]

    def count(self) -> int:
        with self._connect() as conn:
            row = conn.execute("SELECT COUNT(*) FROM analyzed_news").fetchone()
        return int(row[0])
