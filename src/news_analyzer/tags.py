from __future__ import annotations

import re
from typing import Iterable, List, Optional

# ASCII comma, full-width comma, ideographic comma, pipes, slashes.
TAG_SEPARATOR = re.compile(r"[,，、|｜/\\]\s*")


def split_tags(text: Optional[str]) -> List[str]:
    if not text:
        return []
    return [token.strip() for token in TAG_SEPARATOR.split(text) if token.strip()]


def unique_sorted(tags: Iterable[str]) -> List[str]:
    return sorted({tag for tag in tags if tag})


def join_tags(tags: Iterable[str]) -> str:
    return ", ".join(tags)
