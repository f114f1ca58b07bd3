"""
Essay Writer - "Why do you want to join us?" answers
"""

import logging
from typing import Optional

from ..core.config import DEFAULT_ESSAY_CHAR_LIMIT, MAX_JOB_PROMPT_CHARS, MAX_RESUME_PROMPT_CHARS
from ..core.extraction import trim_to_limit
from .content_generator import ContentGenerator, get_content_generator
from .prompt_config import EssayConfig, get_prompt_config

logger = logging.getLogger(__name__)

# Rough characters per token, used to size the token cap from char_limit
CHARS_PER_TOKEN = 4


def build_essay_prompt(
    job_description: str,
    resume_text: str,
    char_limit: int,
    company: Optional[str] = None,
    job_title: Optional[str] = None,
    config: Optional[EssayConfig] = None,
) -> str:
    config = config or EssayConfig()
    details = []
    if company:
        details.append(f"Company: {company}")
    if job_title:
        details.append(f"Role: {job_title}")
    details.append(f"Description: {job_description[:MAX_JOB_PROMPT_CHARS]}")
    details_block = "\n".join(details)

    return f"""You are a career advisor helping a job applicant write a compelling "Why do you want to join our company?" response.

CANDIDATE RESUME:
{resume_text[:MAX_RESUME_PROMPT_CHARS] or "No resume provided."}

JOB DETAILS:
{details_block}

INSTRUCTIONS:
- Stay under {char_limit} characters.
{config.instructions}"""


async def generate_essay(
    job_description: str,
    resume_text: str,
    char_limit: int = DEFAULT_ESSAY_CHAR_LIMIT,
    *,
    company: Optional[str] = None,
    job_title: Optional[str] = None,
    generator: Optional[ContentGenerator] = None,
) -> str:
    """
    Write a tailored essay no longer than char_limit characters.

    The answer is cut at a word boundary when the model overshoots.

    Raises:
        GenerationExhaustedError: every provider chain failed
    """
    config = get_prompt_config().essay
    generator = generator or get_content_generator()

    max_tokens = max(config.parameters.max_tokens, char_limit // CHARS_PER_TOKEN)
    essay = await generator.generate_text(
        build_essay_prompt(job_description, resume_text, char_limit, company, job_title, config),
        max_output_tokens=max_tokens,
        operation="essay generation",
    )
    trimmed = trim_to_limit(essay, char_limit)
    logger.info(f"[AI_GEN] Essay generated ({len(trimmed)} chars): {trimmed[:80]!r}")
    return trimmed
