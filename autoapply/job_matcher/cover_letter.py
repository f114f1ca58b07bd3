"""
Cover Letter - short cover letters grounded in résumé facts
"""

import logging
import re
from typing import Optional

from ..ai.errors import InvalidContentError
from ..core.config import MAX_JOB_PROMPT_CHARS, MAX_RESUME_PROMPT_CHARS
from .content_generator import ContentGenerator, get_content_generator
from .prompt_config import CoverLetterConfig, get_prompt_config

logger = logging.getLogger(__name__)

# "[Company Name]", "[Date]" and similar template leftovers
_PLACEHOLDER = re.compile(r"\[[A-Z][^\]]*\]")


def reject_placeholders(text: str) -> bool:
    """Validator: a letter with unfilled template slots is not usable"""
    found = _PLACEHOLDER.findall(text)
    if found:
        raise InvalidContentError(f"Cover letter contains placeholders: {', '.join(found[:3])}")
    return True


def build_cover_letter_prompt(
    candidate_name: str,
    job_title: str,
    company: str,
    job_description: str,
    resume_text: str,
    config: Optional[CoverLetterConfig] = None,
) -> str:
    config = config or CoverLetterConfig()
    return f"""Write a professional cover letter for {candidate_name or "the candidate"} applying for {job_title} at {company}.

CANDIDATE RESUME:
{resume_text[:MAX_RESUME_PROMPT_CHARS]}

JOB DESCRIPTION:
{job_description[:MAX_JOB_PROMPT_CHARS]}

Requirements:
{config.instructions}

Return only the letter text."""


async def generate_cover_letter(
    candidate_name: str,
    job_title: str,
    company: str,
    job_description: str,
    resume_text: str,
    *,
    generator: Optional[ContentGenerator] = None,
) -> str:
    """
    Generate a cover letter.

    Raises:
        GenerationExhaustedError: every provider chain failed
    """
    config = get_prompt_config().cover_letter
    generator = generator or get_content_generator()

    letter = await generator.generate_text(
        build_cover_letter_prompt(candidate_name, job_title, company, job_description, resume_text, config),
        max_output_tokens=config.parameters.max_tokens,
        operation="cover letter generation",
        validator=reject_placeholders,
    )
    logger.info(f"Cover letter generated for {job_title} at {company} ({len(letter)} chars)")
    return letter
