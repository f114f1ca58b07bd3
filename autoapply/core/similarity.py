"""
String similarity scoring for dropdown option matching

Generic token/character overlap under-weights short canonical answers
("Male", "No", "Black"), so a table of keyword families lifts the score
when both strings express the same answer.
"""

import re
from typing import NamedTuple, Optional, Pattern, Sequence, Tuple

from .config import MIN_TOKEN_LENGTH, OPTION_MATCH_THRESHOLD, PLACEHOLDER_OPTIONS


class OptionMatch(NamedTuple):
    option: str
    score: float


class KeywordFamily(NamedTuple):
    name: str
    pattern: Pattern
    score: float
    exclude: Optional[Pattern] = None

    def matches(self, text: str) -> bool:
        if not self.pattern.search(text):
            return False
        return not (self.exclude and self.exclude.search(text))


# Ceiling for any pair of strings that are not identical after normalizing
NEAR_MATCH_MAX = 0.99

_NEGATION = re.compile(r"\b(no|not|don'?t|do not|none)\b")

KEYWORD_FAMILIES: Tuple[KeywordFamily, ...] = (
    KeywordFamily("male", re.compile(r"\b(male|man)\b"), 0.95),
    KeywordFamily("female", re.compile(r"\b(female|woman)\b"), 0.95),
    KeywordFamily("yes", re.compile(r"^yes\b"), 0.95),
    KeywordFamily("no", re.compile(r"^no\b"), 0.95),
    KeywordFamily("black", re.compile(r"black|african"), 0.95),
    KeywordFamily("white", re.compile(r"white|caucasian"), 0.95),
    KeywordFamily("asian", re.compile(r"asian"), 0.9),
    KeywordFamily("hispanic", re.compile(r"hispanic|latin[oax]"), 0.9),
    KeywordFamily("not_veteran", re.compile(r"not.*veteran|no.*veteran"), 0.95),
    KeywordFamily(
        "veteran",
        re.compile(r"\b(am|yes|identify)\b.*veteran"),
        0.95,
        exclude=_NEGATION,
    ),
    KeywordFamily("no_disability", re.compile(r"\bno\b.*disab|don'?t.*have.*disab|do not have.*disab"), 0.95),
    KeywordFamily(
        "disability",
        re.compile(r"yes.*disab|\bhave\b.*disab"),
        0.95,
        exclude=_NEGATION,
    ),
)


def _tokens(text: str) -> list:
    return [w for w in text.split() if len(w) > MIN_TOKEN_LENGTH]


def family_score(a: str, b: str) -> float:
    """Highest family score shared by both (already normalized) strings, else 0"""
    best = 0.0
    for family in KEYWORD_FAMILIES:
        if family.score > best and family.matches(a) and family.matches(b):
            best = family.score
    return best


def string_similarity(a: str, b: str) -> float:
    """
    Similarity between two strings in [0, 1].

    Case- and surrounding-whitespace-insensitive. Exact match is 1.0,
    containment 0.8, otherwise the better of token overlap and positional
    character overlap. Keyword families only ever raise the result. Only
    identical strings reach 1.0.
    """
    s1 = a.lower().strip()
    s2 = b.lower().strip()

    if s1 == s2:
        return 1.0
    if not s1 or not s2:
        return 0.0

    if s1 in s2 or s2 in s1:
        score = 0.8
    else:
        words1, words2 = _tokens(s1), _tokens(s2)
        shorter, longer = (words1, words2) if len(words1) <= len(words2) else (words2, words1)
        matching = sum(
            1 for w1 in shorter
            if any(w1 in w2 or w2 in w1 for w2 in longer)
        )
        word_score = matching / max(len(shorter), 1)

        shared = min(len(s1), len(s2))
        char_matches = sum(1 for i in range(shared) if s1[i] == s2[i])
        char_score = char_matches / max(len(s1), len(s2))

        score = max(word_score, char_score)

    return min(max(score, family_score(s1, s2)), NEAR_MATCH_MAX)


def is_placeholder_option(option: str) -> bool:
    return option.strip().lower() in PLACEHOLDER_OPTIONS


def find_best_option(
    options: Optional[Sequence[str]],
    target_value: Optional[str],
    threshold: float = OPTION_MATCH_THRESHOLD,
) -> Optional[OptionMatch]:
    """
    Pick the option closest to target_value.

    Placeholder options are skipped. An option equal to the target (ignoring
    case and surrounding whitespace) always wins; otherwise the first option
    wins ties. Returns None when nothing scores at least `threshold`.
    """
    if not options or not target_value:
        return None

    target = target_value.lower().strip()
    if not target:
        return None

    candidates = [o for o in options if not is_placeholder_option(o)]
    for option in candidates:
        if option.lower().strip() == target:
            return OptionMatch(option, 1.0)

    best: Optional[OptionMatch] = None
    for option in candidates:
        normalized = option.lower().strip()
        score = string_similarity(normalized, target)

        if normalized.startswith(target) or target.startswith(normalized):
            score = max(score, 0.9)
        elif target in normalized or normalized in target:
            score = max(score, 0.75)

        if best is None or score > best.score:
            best = OptionMatch(option, score)

    if best is not None and best.score >= threshold:
        return best
    return None


def contains_phrase(haystack: str, needle: str) -> bool:
    """Case-insensitive containment of `needle` as whole words in `haystack`"""
    needle = needle.strip()
    if not needle:
        return False
    pattern = r"(?<!\w)" + re.escape(needle) + r"(?!\w)"
    return re.search(pattern, haystack, re.IGNORECASE) is not None
