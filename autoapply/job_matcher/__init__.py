"""
job_matcher - Document generation for job applications

Match analysis, essays, résumé tailoring and parsing, and cover letters, all
generated through the primary provider chain with secondary fallbacks.
"""

from .content_generator import ContentGenerator, get_content_generator
from .match_analyzer import MatchAnalysis, generate_match_analysis
from .essay_writer import generate_essay
from .resume_tailor import TailoredResume, tailor_resume
from .resume_parser import ParsedResume, parse_resume
from .cover_letter import generate_cover_letter
from .prompt_config import PromptConfig, PromptConfigManager, get_prompt_config

__all__ = [
    "ContentGenerator",
    "get_content_generator",
    "MatchAnalysis",
    "generate_match_analysis",
    "generate_essay",
    "TailoredResume",
    "tailor_resume",
    "ParsedResume",
    "parse_resume",
    "generate_cover_letter",
    "PromptConfig",
    "PromptConfigManager",
    "get_prompt_config",
]
