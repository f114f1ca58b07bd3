"""
Resume Tailor - rewrite résumé content toward one job description

Returns structured, tailored sections; rendering them into a document is the
caller's business.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Union

from pydantic import AliasChoices, BaseModel, Field, field_validator

from ..core.config import MAX_JOB_PROMPT_CHARS
from ..core.models import ResumeData
from .content_generator import ContentGenerator, get_content_generator, schema_description
from .prompt_config import TailorConfig, get_prompt_config

logger = logging.getLogger(__name__)


class TailoredExperience(BaseModel):
    company: str = ""
    role: str = ""
    dates: str = ""
    points: List[str] = Field(default_factory=list, description="Rewritten bullet points")


class TailoredProject(BaseModel):
    title: str = ""
    technologies: str = ""
    points: List[str] = Field(default_factory=list, description="Rewritten bullet points")


class TailoredResume(BaseModel):
    """Résumé sections rewritten and reordered for one job"""
    summary: str = Field(default="", description="Two-sentence professional summary aimed at the job")
    experience: List[TailoredExperience] = Field(
        default_factory=list, description="Experience entries, most relevant first"
    )
    projects: List[TailoredProject] = Field(
        default_factory=list, description="Projects, most relevant first"
    )
    skills: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("skills", "prioritizedSkills"),
        description="Skills from the resume, most relevant to the job first",
    )

    @field_validator("skills", mode="before")
    @classmethod
    def _flatten_skills(cls, value: Any) -> Any:
        # Models often answer with the résumé's {"languages": "a, b", ...} grouping
        if isinstance(value, dict):
            flattened = []
            for group in value.values():
                items = group if isinstance(group, list) else str(group).split(",")
                flattened.extend(str(item).strip() for item in items if str(item).strip())
            return flattened
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value

    @property
    def is_empty(self) -> bool:
        return not (self.experience or self.projects or self.skills)


def build_tailor_prompt(
    resume: ResumeData,
    job_description: str,
    config: Optional[TailorConfig] = None,
) -> str:
    config = config or TailorConfig()
    resume_json = json.dumps(
        resume.model_dump(include={"experience", "projects", "skills", "honors"}),
        indent=2,
        ensure_ascii=False,
    )
    return f"""You are a resume tailoring expert. Given this resume data and job description, optimize the resume content.

### CURRENT RESUME DATA:
{resume_json}

### JOB DESCRIPTION:
"{job_description[:MAX_JOB_PROMPT_CHARS]}"

### RULES:
{config.rules}

### OUTPUT FORMAT:
Return a JSON object with these fields:
{schema_description(TailoredResume)}

Return ONLY valid JSON. Do not include any text before or after the JSON."""


async def tailor_resume(
    resume: Union[ResumeData, Dict[str, Any]],
    job_description: str,
    *,
    generator: Optional[ContentGenerator] = None,
) -> TailoredResume:
    """
    Tailor résumé sections to a job.

    Raises:
        ValueError: the résumé has no experience, projects or skills to tailor
        GenerationExhaustedError: every provider chain failed
    """
    if not isinstance(resume, ResumeData):
        resume = ResumeData.model_validate(resume)
    if not (resume.experience or resume.projects or resume.skills):
        raise ValueError("Resume appears to be empty. Parse or upload a resume first.")

    config = get_prompt_config().tailor
    generator = generator or get_content_generator()

    tailored = await generator.generate_structured(
        build_tailor_prompt(resume, job_description, config),
        TailoredResume,
        max_output_tokens=config.parameters.max_tokens,
        operation="tailoring",
    )
    logger.info(
        f"Tailored resume: {len(tailored.experience)} experience entries, "
        f"{len(tailored.projects)} projects, {len(tailored.skills)} skills"
    )
    return tailored
