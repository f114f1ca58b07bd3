"""
AutoApply - Tiered value resolution for job application forms

Fills form fields from a candidate profile using hardcoded rules, keyword
categories and, as a last resort, a waterfall of free AI text providers.
Also generates match analyses, essays and tailored résumé content.
"""

__version__ = "1.0.0"

from .core.models import FormField, UserProfile, MatchResult, Confidence, MatchSource
from .resolver import resolve_field, get_field_resolver
from .job_matcher import generate_match_analysis, generate_essay, tailor_resume

__all__ = [
    "FormField",
    "UserProfile",
    "MatchResult",
    "Confidence",
    "MatchSource",
    "resolve_field",
    "get_field_resolver",
    "generate_match_analysis",
    "generate_essay",
    "tailor_resume",
]
