"""Ordered fallback chain from raw LLM text to a CanonicalPayload.

Tiers run in order (strict JSON, relaxed JSON, field scraping) and each one
either yields a payload or escalates. `parse` never raises on bad input.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from news_analyzer.canonical import canonicalize_payload
from news_analyzer.models import CanonicalPayload
from news_analyzer.recovery import (
    JsonDecodeFailed,
    NoRootJsonFound,
    decode_with_fallback,
    extract_root_json,
    strip_fences,
    unwrap_envelope,
)
from news_analyzer.scraper import scrape_payload

logger = logging.getLogger(__name__)


class ParseTier(str, Enum):
    STRICT = "strict"
    LENIENT = "lenient"
    MANUAL = "manual"


_TIER_BY_STAGE: Dict[str, ParseTier] = {
    "strict": ParseTier.STRICT,
    "relaxed": ParseTier.LENIENT,
}


@dataclass
class ParseResult:
    payload: CanonicalPayload
    tier: ParseTier
    diagnostics: List[str] = field(default_factory=list)


def prepare_content(raw_text: Optional[str]) -> str:
    return strip_fences(unwrap_envelope(raw_text or ""))


def parse_with_diagnostics(raw_text: Optional[str]) -> ParseResult:
    content = prepare_content(raw_text)
    diagnostics: List[str] = []

    try:
        root = extract_root_json(content)
    except NoRootJsonFound as exc:
        diagnostics.append(f"extract: {exc}")
    else:
        try:
            decoded = decode_with_fallback(root)
        except JsonDecodeFailed as exc:
            diagnostics.append(str(exc))
        else:
            diagnostics.extend(decoded.failures)
            return ParseResult(
                payload=canonicalize_payload(decoded.payload),
                tier=_TIER_BY_STAGE[decoded.stage],
                diagnostics=diagnostics,
            )

    logger.warning("Structured decoding failed, falling back to field scanning (%s)", "; ".join(diagnostics))
    payload = canonicalize_payload(scrape_payload(content))
    return ParseResult(payload=payload, tier=ParseTier.MANUAL, diagnostics=diagnostics)


def parse(raw_text: Optional[str]) -> CanonicalPayload:
    return parse_with_diagnostics(raw_text).payload
