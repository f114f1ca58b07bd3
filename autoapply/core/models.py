"""
Data models for form fields, candidate profiles and resolution results

Profile attributes default to None, which means "unknown". An empty string
means the candidate explicitly left the answer blank.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from .config import PLACEHOLDER_OPTIONS


class FieldKind(str, Enum):
    INPUT = "input"
    SELECT = "select"
    TEXTAREA = "textarea"
    CHECKBOX = "checkbox"
    RADIO = "radio"


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class MatchSource(str, Enum):
    HARDCODED = "hardcoded"
    SIMILARITY = "similarity"
    FUZZY = "fuzzy"
    AI = "ai"


class FormField(BaseModel):
    """A form field as scraped by the browser automation layer"""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    kind: FieldKind = Field(validation_alias=AliasChoices("kind", "type"))
    label: str = ""
    placeholder: Optional[str] = None
    options: Optional[Tuple[str, ...]] = None
    name: Optional[str] = None
    field_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("id", "field_id"))
    required: bool = Field(default=False, validation_alias=AliasChoices("required", "isRequired"))

    @property
    def has_options(self) -> bool:
        return bool(self.options)

    @property
    def is_choice(self) -> bool:
        """True for fields whose value must be one of their options"""
        return self.kind in (FieldKind.SELECT, FieldKind.RADIO) and self.has_options

    def matching_text(self) -> str:
        """Concatenated label, placeholder, name and id used by the rule tables"""
        parts = [self.label, self.placeholder or "", self.name or "", self.field_id or ""]
        return " ".join(parts).lower()

    def first_real_option(self) -> Optional[str]:
        """First option that is not a "Select..." style placeholder"""
        if not self.options:
            return None
        for option in self.options:
            if option.strip().lower() not in PLACEHOLDER_OPTIONS:
                return option
        return self.options[0]


# =============================================================================
# Profile Models
# =============================================================================

class _ProfileSection(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class IdentityInfo(_ProfileSection):
    full_name: Optional[str] = Field(default=None, description="Legal full name")
    pronouns: Optional[str] = None

    @property
    def first_name(self) -> Optional[str]:
        if self.full_name is None:
            return None
        parts = self.full_name.split()
        return parts[0] if parts else ""

    @property
    def last_name(self) -> Optional[str]:
        if self.full_name is None:
            return None
        return " ".join(self.full_name.split()[1:])


class ContactInfo(_ProfileSection):
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    linkedin: Optional[str] = None
    github: Optional[str] = None
    portfolio: Optional[str] = None


class EducationInfo(_ProfileSection):
    university: Optional[str] = None
    degree: Optional[str] = Field(default=None, description="e.g. 'B.S. in Computer Science'")
    major: Optional[str] = None
    gpa: Optional[str] = None
    grad_year: Optional[str] = None
    grad_month: Optional[str] = None


class Demographics(_ProfileSection):
    """Voluntary self-identification answers. Never defaulted."""
    gender: Optional[str] = None
    race: Optional[str] = None
    veteran: Optional[str] = None
    disability: Optional[str] = None
    hispanic_latino: Optional[str] = None


class WorkAuthorization(_ProfileSection):
    work_auth: Optional[str] = None
    sponsorship: Optional[str] = None
    relocation: Optional[str] = None
    proximity_to_office: Optional[str] = None


class ApplicationAnswers(_ProfileSection):
    former_employee: Optional[str] = None
    can_contact_employer: Optional[str] = None
    can_perform_functions: Optional[str] = None
    accommodation_needs: Optional[str] = None
    certify_truthful: Optional[bool] = None


class EssayAnswers(_ProfileSection):
    how_did_you_hear: Optional[str] = None
    why_excited: Optional[str] = None


class ExperienceRecord(_ProfileSection):
    """Work experience as parsed from the résumé"""
    company: str = ""
    role: str = ""
    location: str = ""
    dates: str = Field(default="", description="Free-form range such as 'May 2023 - Present'")
    points: List[str] = Field(default_factory=list)


class EducationRecord(_ProfileSection):
    institution: str = ""
    location: str = ""
    degree: str = ""
    dates: str = ""
    gpa: str = ""
    coursework: str = ""


class ProjectRecord(_ProfileSection):
    title: str = ""
    technologies: str = ""
    date: str = ""
    points: List[str] = Field(default_factory=list)
    link: Optional[str] = None


class EmploymentEntry(_ProfileSection):
    """Employment history entry in the shape application forms ask for"""
    company: str = ""
    title: str = ""
    start_month: str = ""
    start_year: str = ""
    end_month: str = ""
    end_year: str = ""
    is_current: bool = False


class EducationEntry(_ProfileSection):
    school: str = ""
    degree: str = ""
    field: str = ""
    start_year: str = ""
    end_year: str = ""


class ResumeData(_ProfileSection):
    master_resume_text: Optional[str] = None
    experience: List[ExperienceRecord] = Field(default_factory=list)
    education: List[EducationRecord] = Field(default_factory=list)
    projects: List[ProjectRecord] = Field(default_factory=list)
    skills: Dict[str, str] = Field(default_factory=dict)
    honors: List[str] = Field(default_factory=list)
    employment: List[EmploymentEntry] = Field(default_factory=list)


class UserProfile(_ProfileSection):
    """Read-only candidate profile grouped by domain"""
    identity: IdentityInfo = Field(default_factory=IdentityInfo)
    contact: ContactInfo = Field(default_factory=ContactInfo)
    education: EducationInfo = Field(default_factory=EducationInfo)
    demographics: Demographics = Field(default_factory=Demographics)
    authorization: WorkAuthorization = Field(default_factory=WorkAuthorization)
    application: ApplicationAnswers = Field(default_factory=ApplicationAnswers)
    essays: EssayAnswers = Field(default_factory=EssayAnswers)
    resume: ResumeData = Field(default_factory=ResumeData)


# =============================================================================
# Results
# =============================================================================

@dataclass(frozen=True)
class MatchResult:
    """Value chosen for a form field and where it came from"""
    value: Union[str, bool]
    confidence: Confidence
    source: MatchSource

    def to_dict(self) -> Dict[str, Union[str, bool]]:
        return {
            "value": self.value,
            "confidence": self.confidence.value,
            "source": self.source.value,
        }
