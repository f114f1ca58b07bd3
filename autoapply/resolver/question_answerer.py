"""
Application question answering

Free-standing questions that do not come with a FormField: custom screening
questions with a fixed option list, and short free-text answers.
"""

import asyncio
import logging
from typing import Optional, Sequence

from ..ai.waterfall import ProviderWaterfall
from ..core.config import DEFAULT_ANSWER_CHAR_LIMIT, FIELD_ANSWER_MAX_TOKENS
from ..core.extraction import trim_to_limit
from ..core.models import UserProfile
from ..core.similarity import is_placeholder_option
from .prompts import free_text_question_prompt, option_question_prompt

logger = logging.getLogger(__name__)

FREE_TEXT_MAX_TOKENS = 200


async def answer_option_question(
    waterfall: ProviderWaterfall,
    question: str,
    options: Sequence[str],
    profile: UserProfile,
    cancel_event: Optional[asyncio.Event] = None,
) -> Optional[str]:
    """
    Pick one of `options` for a screening question.

    Returns the exact option text; falls back to the first real option when
    every provider fails. None only when there are no options at all.
    """
    if not options:
        return None

    answer = await waterfall.generate(
        option_question_prompt(question, options, profile),
        FIELD_ANSWER_MAX_TOKENS,
        options_constraint=list(options),
        cancel_event=cancel_event,
    )
    if answer is not None:
        return answer

    logger.warning(f"[AI_QA] No provider answered {question!r}; using first option")
    for option in options:
        if not is_placeholder_option(option):
            return option
    return options[0]


async def answer_free_text(
    waterfall: ProviderWaterfall,
    question: str,
    profile: UserProfile,
    char_limit: int = DEFAULT_ANSWER_CHAR_LIMIT,
    cancel_event: Optional[asyncio.Event] = None,
) -> str:
    """Short first-person answer within char_limit, or "" when every provider fails"""
    answer = await waterfall.generate(
        free_text_question_prompt(question, profile, char_limit),
        FREE_TEXT_MAX_TOKENS,
        cancel_event=cancel_event,
    )
    if answer is None:
        logger.warning(f"[AI_QA] No provider answered {question!r}")
        return ""
    return trim_to_limit(answer, char_limit)
