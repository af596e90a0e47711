from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from news_analyzer.tags import join_tags, split_tags


class RawItem(BaseModel):
    """One news item as the model wrote it. Every field may be missing."""

    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = None
    summary: Optional[str] = None
    industry_type: Optional[str] = None
    news_type: Optional[str] = None
    industries: Optional[List[str]] = None
    types: Optional[List[str]] = None
    confidence: Optional[float] = None

    @field_validator("title", "summary", "industry_type", "news_type", mode="before")
    @classmethod
    def _scalar_to_text(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, (int, float)):
            return str(value)
        if isinstance(value, list):
            return ", ".join(str(x) for x in value if x is not None)
        return value

    @field_validator("industries", "types", mode="before")
    @classmethod
    def _text_to_list(cls, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, str):
            return split_tags(value)
        if isinstance(value, list):
            return [str(x) for x in value if x is not None]
        return value

    @field_validator("confidence", mode="before")
    @classmethod
    def _loose_confidence(cls, value: Any) -> Any:
        if value is None or isinstance(value, bool):
            return None
        try:
            return float(value)
        except (TypeError, ValueError):
            return None


class RawPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    has_news: Optional[bool] = None
    news_list: Optional[List[RawItem]] = None
    analysis_summary: Optional[str] = None

    @field_validator("news_list", mode="before")
    @classmethod
    def _keep_object_rows(cls, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, dict):
            return [value]
        if isinstance(value, list):
            return [row for row in value if isinstance(row, (dict, RawItem))]
        return value


@dataclass
class CanonicalItem:
    title: str
    summary: str
    industry_tags: List[str] = field(default_factory=list)
    type_tags: List[str] = field(default_factory=list)
    confidence: Optional[float] = None

    @property
    def industry_type(self) -> str:
        return join_tags(self.industry_tags)

    @property
    def news_type(self) -> str:
        return join_tags(self.type_tags)


@dataclass
class CanonicalPayload:
    has_news: bool
    news_list: List[CanonicalItem] = field(default_factory=list)
    analysis_summary: str = ""


@dataclass(frozen=True)
class HistoryRecord:
    title: str
    summary: str
    industry_type: str
    news_type: str
    created_at: Optional[datetime] = None


@dataclass
class DuplicateVerdict:
    is_duplicate: bool
    reason: str = "new"
    matched_title: str = ""


@dataclass
class Article:
    article_id: str
    url: str
    content: str
