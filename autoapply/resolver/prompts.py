"""
Prompt builders for form-field and application-question answering
"""

import json
from typing import List, Optional, Sequence, Tuple

from ..core.config import MAX_PROMPT_OPTIONS, MAX_RESUME_PROMPT_CHARS, NOT_PROVIDED
from ..core.models import FormField, UserProfile


def _fact(value: Optional[object]) -> str:
    if value is None or value == "":
        return NOT_PROVIDED
    if isinstance(value, bool):
        return "Yes" if value else "No"
    return str(value)


def profile_facts(profile: UserProfile) -> List[Tuple[str, str]]:
    """Form-relevant profile facts; every missing one is spelled out"""
    p = profile
    return [
        ("Name", _fact(p.identity.full_name)),
        ("Email", _fact(p.contact.email)),
        ("Phone", _fact(p.contact.phone)),
        ("City", _fact(p.contact.city)),
        ("State", _fact(p.contact.state)),
        ("Zip", _fact(p.contact.zip_code)),
        ("Country", _fact(p.contact.country)),
        ("University", _fact(p.education.university)),
        ("Degree", _fact(p.education.degree)),
        ("Graduation Year", _fact(p.education.grad_year)),
        ("Gender", _fact(p.demographics.gender)),
        ("Race", _fact(p.demographics.race)),
        ("Veteran Status", _fact(p.demographics.veteran)),
        ("Disability", _fact(p.demographics.disability)),
        ("Hispanic/Latino", _fact(p.demographics.hispanic_latino)),
        ("Work Authorization", _fact(p.authorization.work_auth)),
        ("Needs Sponsorship", _fact(p.authorization.sponsorship)),
        ("Open to Relocation", _fact(p.authorization.relocation)),
        ("Pronouns", _fact(p.identity.pronouns)),
        ("How did you hear", _fact(p.essays.how_did_you_hear)),
    ]


def _format_facts(profile: UserProfile) -> str:
    return "\n".join(f"- {label}: {value}" for label, value in profile_facts(profile))


def build_field_prompt(field: FormField) -> str:
    """Describe the form field for the model (profile facts appended separately)"""
    lines = [
        f'- Label: "{field.label}"',
        f"- Type: {field.kind.value}",
        f"- Required: {'yes' if field.required else 'no'}",
    ]
    if field.options:
        shown = list(field.options[:MAX_PROMPT_OPTIONS])
        lines.append(f"- Available Options: {json.dumps(shown, ensure_ascii=False)}")
    if field.placeholder:
        lines.append(f'- Placeholder: "{field.placeholder}"')
    return "\n".join(lines)


def field_prompt(field: FormField, profile: UserProfile) -> str:
    """Prompt for the AI tier of field resolution"""
    answer_rule = (
        "Return ONLY the exact text of one of the available options."
        if field.options
        else "Return ONLY the value to type into the field."
    )
    return f"""You are helping fill out a job application form. Given the form field and candidate info, return ONLY the exact value to fill in.

FORM FIELD:
{build_field_prompt(field)}

CANDIDATE INFO (from their profile - use EXACTLY these values):
{_format_facts(profile)}

IMPORTANT: Only use values that are actually provided above. If a value says "{NOT_PROVIDED}", do not guess it.
{answer_rule} No quotes, no explanations."""


def _resume_context(profile: UserProfile) -> str:
    resume = profile.resume.master_resume_text or ""
    education = [record.model_dump() for record in profile.resume.education]
    return (
        f"- Resume: {resume[:MAX_RESUME_PROMPT_CHARS] or NOT_PROVIDED}\n"
        f"- Education: {json.dumps(education, ensure_ascii=False)}"
    )


def option_question_prompt(question: str, options: Sequence[str], profile: UserProfile) -> str:
    """Prompt choosing one option for an application question"""
    return f"""You are an AI assistant helping a candidate fill out a job application.

QUESTION: "{question}"
AVAILABLE OPTIONS: {json.dumps(list(options), ensure_ascii=False)}

CANDIDATE CONTEXT:
{_resume_context(profile)}
{_format_facts(profile)}

INSTRUCTIONS:
- Select the EXACT option from the list that best matches the candidate's profile.
- If the options are Yes/No, decide from the profile data.
- If asked about years of experience, calculate from the resume.
- Return ONLY the exact string from the options list. No quotes, no explanations."""


def free_text_question_prompt(question: str, profile: UserProfile, char_limit: int) -> str:
    """Prompt for a short free-text application answer"""
    experience = [record.model_dump() for record in profile.resume.experience]
    return f"""You are an AI assistant answering a job application question for a candidate.

QUESTION: "{question}"
CHARACTER LIMIT: {char_limit}

CANDIDATE CONTEXT:
{_resume_context(profile)}
- Experience: {json.dumps(experience, ensure_ascii=False)}

INSTRUCTIONS:
- Write a concise, professional answer based strictly on the candidate's data.
- First person ("I have...").
- Do NOT invent facts that are not in the context.
- Keep it under {char_limit} characters.
- Return ONLY the answer text."""
