"""Stages that turn raw LLM output into a decoded RawPayload.

Each stage is pure. Failures surface as RecoveryError subclasses so the
parser can escalate to the next tier instead of giving up.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Tuple

from pydantic import ValidationError

from news_analyzer.models import RawPayload

logger = logging.getLogger(__name__)

OPENERS = "{["
CLOSERS = "}]"


class RecoveryError(ValueError):
    pass


class NoRootJsonFound(RecoveryError):
    pass


class JsonDecodeFailed(RecoveryError):
    pass


class NoContent(RecoveryError):
    pass


def _envelope_content(text: str) -> str:
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("envelope is not an object")
    choices = data.get("choices")
    if not isinstance(choices, list):
        raise ValueError("envelope has no choices list")
    if not choices:
        raise NoContent("envelope has zero choices")
    first = choices[0]
    message = first.get("message") if isinstance(first, dict) else None
    if not isinstance(message, dict):
        raise ValueError("first choice has no message")

    content = message.get("content")
    if isinstance(content, str) and content.strip():
        return content
    # Some providers put the whole answer into reasoning_content.
    reasoning = message.get("reasoning_content")
    if isinstance(reasoning, str) and reasoning.strip():
        return reasoning
    if isinstance(content, str):
        return content
    raise ValueError("message content is not a string")


def unwrap_envelope(text: str) -> str:
    """Return the message content of a chat-completion envelope, else `text` unchanged."""
    if not text.lstrip().startswith("{") or '"choices"' not in text:
        return text
    try:
        content = _envelope_content(text)
    except NoContent:
        logger.info("Chat-completion envelope has no choices, using raw text")
        return text
    except (ValueError, RecursionError) as exc:
        logger.debug("Not a chat-completion envelope: %s", exc)
        return text
    logger.debug("Unwrapped chat-completion envelope, content length %d", len(content))
    return content


def _strip_fences_once(text: str) -> str:
    cleaned = text.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[len("```json") :]
    elif cleaned.startswith("```"):
        cleaned = cleaned[len("```") :]
    if cleaned.endswith("```"):
        cleaned = cleaned[: -len("```")]
    return cleaned.strip()


def strip_fences(text: str) -> str:
    cleaned = _strip_fences_once(text or "")
    while True:
        again = _strip_fences_once(cleaned)
        if again == cleaned:
            return cleaned
        cleaned = again


def scan_balanced(text: str, start: int = 0) -> Optional[Tuple[int, int]]:
    """Find the first balanced top-level {...} / [...] span at or after `start`.

    Returns (first_index, last_index) inclusive, or None when the structure
    never closes. Brackets inside string literals are ignored; closers seen
    before any opener are skipped.
    """
    in_string = False
    escape = False
    depth = 0
    span_start = -1
    for idx in range(start, len(text)):
        ch = text[idx]
        if in_string:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in OPENERS:
            if depth == 0:
                span_start = idx
            depth += 1
        elif ch in CLOSERS:
            if depth == 0:
                continue
            depth -= 1
            if depth == 0:
                return span_start, idx
    return None


def find_matching_close(text: str, open_index: int) -> Optional[int]:
    found = scan_balanced(text, open_index)
    if found is None:
        return None
    return found[1]


def extract_root_json(text: str) -> str:
    found = scan_balanced(text)
    if found is None:
        raise NoRootJsonFound("no balanced top-level JSON object or array")
    first, last = found
    return text[first : last + 1]


def strip_json_comments(text: str) -> str:
    out = []
    in_string = False
    escape = False
    idx = 0
    size = len(text)
    while idx < size:
        ch = text[idx]
        if in_string:
            out.append(ch)
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
            idx += 1
            continue
        if ch == '"':
            in_string = True
        elif ch == "/" and idx + 1 < size and text[idx + 1] == "/":
            end = text.find("\n", idx + 2)
            idx = size if end == -1 else end
            continue
        elif ch == "/" and idx + 1 < size and text[idx + 1] == "*":
            end = text.find("*/", idx + 2)
            idx = size if end == -1 else end + 2
            continue
        out.append(ch)
        idx += 1
    return "".join(out)


def strip_trailing_commas(text: str) -> str:
    out = []
    in_string = False
    escape = False
    size = len(text)
    for idx, ch in enumerate(text):
        if in_string:
            out.append(ch)
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == ",":
            ahead = idx + 1
            while ahead < size and text[ahead].isspace():
                ahead += 1
            if ahead < size and text[ahead] in CLOSERS:
                continue
        out.append(ch)
    return "".join(out)


def _to_payload(data: Any) -> RawPayload:
    if isinstance(data, list):
        # A bare array only counts as the news list when every row is an item object.
        if not data or not all(isinstance(row, dict) for row in data):
            raise JsonDecodeFailed("root array holds no news objects")
        data = {"news_list": data}
    if not isinstance(data, dict):
        raise JsonDecodeFailed(f"root is {type(data).__name__}, expected object or array")
    try:
        return RawPayload.model_validate(data)
    except ValidationError as exc:
        raise JsonDecodeFailed(f"payload shape mismatch: {exc.error_count()} errors") from exc


def decode_strict(span: str) -> RawPayload:
    try:
        data = json.loads(span)
    except (json.JSONDecodeError, RecursionError) as exc:
        raise JsonDecodeFailed(str(exc)) from exc
    return _to_payload(data)


def decode_relaxed(span: str) -> RawPayload:
    relaxed = strip_trailing_commas(strip_json_comments(span))
    try:
        # strict=False lets raw newlines/tabs through inside strings.
        data = json.loads(relaxed, strict=False)
    except (json.JSONDecodeError, RecursionError) as exc:
        raise JsonDecodeFailed(str(exc)) from exc
    return _to_payload(data)


DECODE_STAGES: List[Tuple[str, Callable[[str], RawPayload]]] = [
    ("strict", decode_strict),
    ("relaxed", decode_relaxed),
]


@dataclass
class DecodeResult:
    payload: RawPayload
    stage: str
    failures: List[str] = field(default_factory=list)


def decode_with_fallback(span: str) -> DecodeResult:
    """Run the decode stages in order and report which one succeeded.

    `failures` holds one "<stage>: <error>" entry per stage that gave up
    before the winner. When every stage fails, JsonDecodeFailed carries all
    of them joined with "; ".
    """
    failures: List[str] = []
    for stage, decode in DECODE_STAGES:
        try:
            payload = decode(span)
        except JsonDecodeFailed as exc:
            failures.append(f"{stage}: {exc}")
            logger.info("JSON decode stage %s failed: %s", stage, exc)
            continue
        return DecodeResult(payload=payload, stage=stage, failures=failures)
    raise JsonDecodeFailed("; ".join(failures))


def decode_payload(span: str) -> RawPayload:
    return decode_with_fallback(span).payload
