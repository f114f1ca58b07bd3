"""
Resume Parser - LLM-based résumé parsing with Pydantic validation

Extracts structured data from plain-text résumés. Answers that do not
validate are rejected inside the waterfall, so the next model gets a turn.
"""

import logging
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator

from ..core.config import MAX_RESUME_PROMPT_CHARS
from ..core.models import EducationRecord, ExperienceRecord, ProjectRecord, ResumeData
from .content_generator import ContentGenerator, get_content_generator
from .prompt_config import get_prompt_config

logger = logging.getLogger(__name__)


class PersonalInfo(BaseModel):
    """Contact information extracted from resume"""
    full_name: str = Field(default="", validation_alias=AliasChoices("full_name", "fullName", "name"))
    phone: str = ""
    email: str = ""
    linkedin: str = ""
    github: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def _none_to_blank(cls, value: Any) -> Any:
        return "" if value is None else value


class ParsedResume(BaseModel):
    """Complete parsed résumé structure"""
    personal_info: PersonalInfo = Field(
        default_factory=PersonalInfo,
        validation_alias=AliasChoices("personal_info", "personalInfo"),
    )
    education: List[EducationRecord] = Field(default_factory=list)
    experience: List[ExperienceRecord] = Field(default_factory=list)
    projects: List[ProjectRecord] = Field(default_factory=list)
    skills: Dict[str, str] = Field(default_factory=dict)
    honors: List[str] = Field(default_factory=list)

    @field_validator("skills", mode="before")
    @classmethod
    def _join_skill_lists(cls, value: Any) -> Any:
        if isinstance(value, list):
            return {"skills": ", ".join(str(v) for v in value)}
        if isinstance(value, dict):
            return {
                key: ", ".join(str(v) for v in group) if isinstance(group, list) else ("" if group is None else str(group))
                for key, group in value.items()
            }
        return value

    def to_resume_data(self, resume_text: Optional[str] = None) -> ResumeData:
        return ResumeData(
            master_resume_text=resume_text,
            experience=self.experience,
            education=self.education,
            projects=self.projects,
            skills=self.skills,
            honors=self.honors,
        )


RESUME_STRUCTURE = """{
  "personalInfo": { "fullName": "", "phone": "", "email": "", "linkedin": "", "github": "" },
  "education": [{ "institution": "", "location": "", "degree": "", "dates": "", "gpa": "", "coursework": "" }],
  "experience": [{ "company": "", "role": "", "location": "", "dates": "", "points": [] }],
  "projects": [{ "title": "", "technologies": "", "date": "", "points": [], "link": "" }],
  "skills": { "languages": "", "frontend": "", "backend": "", "aiMl": "", "tools": "" },
  "honors": []
}"""


def build_parse_prompt(resume_text: str) -> str:
    return f"""You are a resume parsing engine. Extract the details of this resume into the JSON structure below.

### RAW RESUME TEXT:
"{resume_text[:MAX_RESUME_PROMPT_CHARS]}"

### REQUIRED JSON STRUCTURE:
{RESUME_STRUCTURE}

RULES:
1. For fields not present in the resume, use empty string "" or empty array [].
2. Preserve original wording for bullet points.
3. Keep dates in their original format (e.g., "May 2023 - Present").

RETURN ONLY THE JSON. NO PREAMBLE."""


async def parse_resume(
    resume_text: str,
    *,
    generator: Optional[ContentGenerator] = None,
) -> ParsedResume:
    """
    Parse résumé text into structured sections.

    Raises:
        ValueError: resume_text is blank
        GenerationExhaustedError: every provider chain failed
    """
    if not resume_text or not resume_text.strip():
        raise ValueError("Resume text is empty")

    config = get_prompt_config().resume_parser
    generator = generator or get_content_generator()

    parsed = await generator.generate_structured(
        build_parse_prompt(resume_text),
        ParsedResume,
        max_output_tokens=config.parameters.max_tokens,
        operation="resume parsing",
    )
    logger.info(
        f"Parsed resume: {len(parsed.experience)} experience, "
        f"{len(parsed.education)} education, {len(parsed.projects)} projects"
    )
    return parsed
