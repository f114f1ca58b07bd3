"""
Response extraction - pull a JSON object or a bare answer out of model output
"""

import json
import logging
import re
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

# A backslash that does not start a valid JSON escape (LaTeX in résumé output
# is the usual offender: "\item", "\section")
_INVALID_ESCAPE = re.compile(r'(?<!\\)\\(?![\\/bfnrtu"])')

_QUOTES = ("'", '"')


def _json_span(text: str) -> Optional[str]:
    """Greedy span from the first '{' to the last '}'"""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    return text[start:end + 1]


def repair_json_escapes(raw: str) -> str:
    """Double every backslash that is not already a recognised JSON escape"""
    return _INVALID_ESCAPE.sub(r"\\\\", raw)


def extract_json(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Extract the JSON object embedded in model output.

    Tries a strict parse of the outermost {...} span, then one repair pass for
    stray backslashes. Returns None instead of raising.
    """
    if not text:
        return None

    span = _json_span(text)
    if span is None:
        return None

    try:
        parsed = json.loads(span)
    except json.JSONDecodeError:
        try:
            parsed = json.loads(repair_json_escapes(span))
        except json.JSONDecodeError as e:
            logger.debug(f"JSON repair failed: {e}")
            return None
        logger.debug("JSON parsed after escape repair")

    if not isinstance(parsed, dict):
        return None
    return parsed


def extract_plain_answer(text: Optional[str]) -> str:
    """Trim and remove one layer of matching surrounding quotes"""
    if not text:
        return ""
    answer = text.strip()
    if len(answer) >= 2 and answer[0] == answer[-1] and answer[0] in _QUOTES:
        answer = answer[1:-1]
    return answer


def trim_to_limit(text: str, char_limit: int) -> str:
    """Cut text to char_limit, backing off to the last word boundary"""
    text = text.strip()
    if char_limit <= 0:
        return ""
    if len(text) <= char_limit:
        return text
    cut = text[:char_limit]
    boundary = cut.rfind(" ")
    if boundary > 0:
        cut = cut[:boundary]
    return cut.rstrip(" ,;:-")
