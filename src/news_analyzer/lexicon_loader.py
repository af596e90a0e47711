from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Tuple

import yaml

from news_analyzer.dedupe import DEFAULT_LEXICON, DuplicateLexicon

logger = logging.getLogger(__name__)


def _string_tuple(value: Any, fallback: Tuple[str, ...]) -> Tuple[str, ...]:
    if not isinstance(value, list):
        return fallback
    return tuple(str(x).strip() for x in value if x is not None and str(x).strip())


def load_lexicon(path: Path) -> DuplicateLexicon:
    if not path.exists():
        logger.info("Lexicon file %s not found, using built-in lists", path)
        return DEFAULT_LEXICON
    with path.open("r", encoding="utf-8") as f:
        try:
            content = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid lexicon file {path}: {exc}") from exc
    if not isinstance(content, dict):
        raise ValueError(f"Invalid lexicon format: {path}")
    return DuplicateLexicon(
        progress_keywords=_string_tuple(content.get("progress_keywords"), DEFAULT_LEXICON.progress_keywords),
        companies=_string_tuple(content.get("companies"), DEFAULT_LEXICON.companies),
    )
