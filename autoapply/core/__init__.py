"""
core - Data models, similarity scoring and response extraction
"""

from .models import (
    FieldKind,
    Confidence,
    MatchSource,
    FormField,
    UserProfile,
    MatchResult,
)
from .similarity import string_similarity, find_best_option, OptionMatch
from .extraction import extract_json, extract_plain_answer, trim_to_limit

__all__ = [
    "FieldKind",
    "Confidence",
    "MatchSource",
    "FormField",
    "UserProfile",
    "MatchResult",
    "string_similarity",
    "find_best_option",
    "OptionMatch",
    "extract_json",
    "extract_plain_answer",
    "trim_to_limit",
]
