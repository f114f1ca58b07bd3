"""
Configuration and constants for core
"""

import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Minimum similarity score for a dropdown option to count as a match
OPTION_MATCH_THRESHOLD = float(os.getenv("OPTION_MATCH_THRESHOLD", "0.5"))

# Options that only prompt the user to pick something (compared lowercased)
PLACEHOLDER_OPTIONS = frozenset({
    "",
    "--",
    "select",
    "select...",
    "select one",
    "choose",
    "choose...",
    "please select",
})

# Only tokens longer than this take part in token-overlap scoring
MIN_TOKEN_LENGTH = 2

# How many dropdown options are listed in a form-field prompt
MAX_PROMPT_OPTIONS = int(os.getenv("MAX_PROMPT_OPTIONS", "15"))

# Token budget for a single form-field answer
FIELD_ANSWER_MAX_TOKENS = int(os.getenv("FIELD_ANSWER_MAX_TOKENS", "100"))

# Résumé text is truncated to this many characters inside prompts
MAX_RESUME_PROMPT_CHARS = int(os.getenv("MAX_RESUME_PROMPT_CHARS", "3000"))

# Job description text is truncated to this many characters inside prompts
MAX_JOB_PROMPT_CHARS = int(os.getenv("MAX_JOB_PROMPT_CHARS", "6000"))

# Default character limit for free-text application answers
DEFAULT_ANSWER_CHAR_LIMIT = int(os.getenv("DEFAULT_ANSWER_CHAR_LIMIT", "200"))

# Default character limit for "why do you want to join" essays
DEFAULT_ESSAY_CHAR_LIMIT = int(os.getenv("DEFAULT_ESSAY_CHAR_LIMIT", "1000"))

# Label text shown to the model for profile facts we do not know
NOT_PROVIDED = "Not provided"

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]
