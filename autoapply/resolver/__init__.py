"""
resolver - Form field value resolution against a candidate profile
"""

from .field_resolver import FieldValueResolver, get_field_resolver, resolve_field
from .rules import FieldRule, RuleContext, HARDCODED_RULES, CATEGORY_RULES
from .question_answerer import answer_option_question, answer_free_text
from .history import get_employment_entry, get_education_entry, parse_date_range
from .profile_loader import ProfileLoadError, load_profile, load_form_fields

__all__ = [
    "FieldValueResolver",
    "get_field_resolver",
    "resolve_field",
    "FieldRule",
    "RuleContext",
    "HARDCODED_RULES",
    "CATEGORY_RULES",
    "answer_option_question",
    "answer_free_text",
    "get_employment_entry",
    "get_education_entry",
    "parse_date_range",
    "ProfileLoadError",
    "load_profile",
    "load_form_fields",
]
