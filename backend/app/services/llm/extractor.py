"""
Response Extractor — Best-effort JSON extraction from model output.

WHAT THIS DOES:
Models asked for "JSON only" still wrap it in prose, code fences, smart
quotes and trailing commas. This module finds the JSON object inside the
text and parses it, or returns None. It never raises.

HOW IT WORKS:
1. Unwrap ```json ... ``` fences
2. Collect candidates: every balanced top-level {...} block (last one
   first), then the widest first-"{"-to-last-"}" span as a fallback
3. For each candidate, try json.loads verbatim, then again after
   normalizing line breaks, tabs, smart quotes and trailing commas
4. Return the first candidate that parses to a JSON object

USAGE:
    data = extract_json('Sure! ```json\n{"pro": "Yes", "con": "No",}\n```')
    # {"pro": "Yes", "con": "No"}

    extract_json("no json here")
    # None
"""

import json
import logging
import re
from typing import Any, Optional

logger = logging.getLogger(__name__)

CODE_FENCE_RE = re.compile(r"```[a-zA-Z]*\s*(.*?)```", re.DOTALL)
GREEDY_OBJECT_RE = re.compile(r"\{[\s\S]*\}")
LINE_BREAK_RE = re.compile(r"(\r\n|\n|\r)")
TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")

SMART_QUOTES = str.maketrans({
    "“": '"',
    "”": '"',
    "‘": "'",
    "’": "'",
})


def _unwrap_code_fences(text: str) -> str:
    """Replace each fenced block with its contents."""
    return CODE_FENCE_RE.sub(lambda m: m.group(1), text)


def _balanced_objects(text: str) -> list[str]:
    """
    Find top-level brace-balanced blocks, honouring JSON string escapes.

    Quotes are only tracked inside a block, so apostrophes and stray quotes
    in the surrounding prose don't throw off the scan.
    """
    blocks = []
    depth = 0
    start = 0
    in_string = False
    escaped = False

    for i, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"' and depth > 0:
            in_string = True
        elif ch == "{":
            if depth == 0:
                start = i
            depth += 1
        elif ch == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                blocks.append(text[start:i + 1])

    return blocks


def _normalize(candidate: str) -> str:
    """Repair the malformations models commonly produce."""
    cleaned = LINE_BREAK_RE.sub(" ", candidate)
    cleaned = cleaned.replace("\t", " ")
    cleaned = cleaned.translate(SMART_QUOTES)
    cleaned = TRAILING_COMMA_RE.sub(r"\1", cleaned)
    return cleaned


def _candidates(text: str) -> list[str]:
    found = list(reversed(_balanced_objects(text)))

    greedy = GREEDY_OBJECT_RE.search(text)
    if greedy and greedy.group(0) not in found:
        found.append(greedy.group(0))

    return found


def _try_parse(candidate: str) -> Optional[dict]:
    for attempt in (candidate, _normalize(candidate)):
        try:
            # strict=False accepts raw control characters inside strings
            parsed = json.loads(attempt, strict=False)
        except ValueError:
            continue
        if isinstance(parsed, dict):
            return parsed
    return None


def extract_json(raw_text: Any) -> Optional[dict]:
    """
    Extract the JSON object embedded in model output.

    Args:
        raw_text: Model output expected to contain one JSON object

    Returns:
        The parsed object, or None when nothing parseable is found
    """
    if not raw_text or not isinstance(raw_text, str):
        return None

    try:
        text = _unwrap_code_fences(raw_text)
        for candidate in _candidates(text):
            parsed = _try_parse(candidate)
            if parsed is not None:
                return parsed
    except Exception as e:  # noqa: BLE001 - this boundary must never raise
        logger.warning(f"extract_json failed unexpectedly: {e}")
        return None

    logger.warning(f"extract_json found no parseable object in {len(raw_text)} chars")
    return None


def get_text_field(data: Optional[dict], key: str, default: str = "") -> str:
    """
    Read a text field from extracted JSON, treating anything odd as missing.

    Lists are joined, numbers and booleans stringified, nested objects and
    missing keys fall back to the default.
    """
    if not isinstance(data, dict):
        return default

    value = data.get(key)
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, bool) or isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, list):
        return " ".join(str(item).strip() for item in value if isinstance(item, (str, int, float)))
    return default
