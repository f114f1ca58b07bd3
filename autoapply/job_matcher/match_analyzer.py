"""
Match Analyzer - score a résumé against a job description

Produces a 0-100 score, evidence-backed pros, realistic cons and the three
résumé skills that best match the job. Accepts the legacy response keys
(matchScore, whyYouWillLoveIt, theCatch, topSkills) some models still emit.
"""

import logging
import re
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from ..core.config import MAX_JOB_PROMPT_CHARS, MAX_RESUME_PROMPT_CHARS
from .content_generator import ContentGenerator, get_content_generator, schema_description
from .prompt_config import MatchAnalysisConfig, get_prompt_config

logger = logging.getLogger(__name__)

_BULLET = re.compile(r"^\s*(?:[•\-\*]|\d+[.)])\s*")
_NUMBER = re.compile(r"-?\d+(?:\.\d+)?")


def _as_list(value: Any) -> List[str]:
    """Lists pass through; a prose string becomes one item per line or bullet"""
    if value is None:
        return []
    if isinstance(value, str):
        items = [_BULLET.sub("", line).strip() for line in value.splitlines()]
        return [item for item in items if item]
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if str(item).strip()]
    return value


class MatchAnalysis(BaseModel):
    """Result of comparing one résumé with one job description"""

    model_config = ConfigDict(populate_by_name=True)

    score: int = Field(
        validation_alias=AliasChoices("score", "matchScore", "match_score"),
        description="Match score from 0 to 100 reflecting technical fit AND eligibility",
    )
    pros: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("pros", "whyYouWillLoveIt"),
        description="Specific reasons the candidate fits, each backed by resume evidence",
    )
    cons: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("cons", "theCatch"),
        description="Realistic warnings, including any date or eligibility mismatch",
    )
    top_skills: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("top_skills", "topSkills"),
        description="Three skills from the resume that match the job",
    )

    @field_validator("score", mode="before")
    @classmethod
    def _coerce_score(cls, value: Any) -> Any:
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            match = _NUMBER.search(value)
            if not match:
                return value
            value = float(match.group())
        if isinstance(value, (int, float)):
            return max(0, min(100, int(round(value))))
        return value

    @field_validator("pros", "cons", mode="before")
    @classmethod
    def _coerce_list(cls, value: Any) -> Any:
        return _as_list(value)

    @field_validator("top_skills", mode="before")
    @classmethod
    def _coerce_skills(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = [part.strip() for part in value.split(",") if part.strip()]
        value = _as_list(value)
        return value[:3] if isinstance(value, list) else value


def build_match_prompt(
    job_description: str,
    resume_text: str,
    graduation: Optional[str] = None,
    config: Optional[MatchAnalysisConfig] = None,
) -> str:
    config = config or MatchAnalysisConfig()
    return f"""Analyze the provided Job Description and Candidate Resume and generate a match analysis.

### RESUME (CANDIDATE DATA):
"{resume_text[:MAX_RESUME_PROMPT_CHARS]}"

Expected Graduation from Resume: {graduation or "Unknown"}

### JOB DESCRIPTION:
"{job_description[:MAX_JOB_PROMPT_CHARS]}"

### ANALYSIS RULES (FOLLOW STRICTLY):
{config.rules}

### OUTPUT FORMAT (JSON ONLY):
{schema_description(MatchAnalysis)}

Example:
{{"score": 72, "pros": ["..."], "cons": ["..."], "top_skills": ["...", "...", "..."]}}

Return ONLY the JSON, no markdown or explanation."""


async def generate_match_analysis(
    job_description: str,
    resume_text: str,
    *,
    graduation: Optional[str] = None,
    generator: Optional[ContentGenerator] = None,
) -> MatchAnalysis:
    """
    Score a résumé against a job description.

    Args:
        job_description: Raw job posting text
        resume_text: Candidate résumé as plain text
        graduation: Expected graduation (year or date range) for the eligibility check
        generator: ContentGenerator to use (default: shared instance)

    Raises:
        GenerationExhaustedError: every provider chain failed
    """
    config = get_prompt_config().match_analysis
    generator = generator or get_content_generator()

    logger.info(f"[AI_LOG] Match analysis: resume {len(resume_text)} chars, job {len(job_description)} chars")
    analysis = await generator.generate_structured(
        build_match_prompt(job_description, resume_text, graduation, config),
        MatchAnalysis,
        max_output_tokens=config.parameters.max_tokens,
        operation="matching",
    )
    logger.info(f"[AI_LOG] Match score {analysis.score}%")
    return analysis
