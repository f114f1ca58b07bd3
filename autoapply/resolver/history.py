"""
Employment and education history in the shape application forms ask for

Multi-entry sections ("Employment 1", "Education 2") need month/year fields
split out of the free-form date ranges found on a résumé.
"""

import re
from typing import NamedTuple, Optional

from ..core.config import MONTH_NAMES
from ..core.models import EducationEntry, EmploymentEntry, UserProfile

_SEP = r"\s*(?:-|–|—|to)\s*"
_OPEN_END = r"(present|current|now)"

# "May 2023 - Aug 2023", "May 2023 – Present"
_MONTH_NAME_RANGE = re.compile(
    r"([A-Za-z]+)\.?\s+(\d{4})" + _SEP + r"(?:([A-Za-z]+)\.?\s+(\d{4})|" + _OPEN_END + r")",
    re.IGNORECASE,
)
# "05/2023 - 08/2023"
_SLASH_RANGE = re.compile(
    r"(\d{1,2})/(\d{4})" + _SEP + r"(?:(\d{1,2})/(\d{4})|" + _OPEN_END + r")",
    re.IGNORECASE,
)
# "2023-05 to 2023-08"
_ISO_RANGE = re.compile(
    r"(\d{4})-(\d{1,2})" + _SEP + r"(?:(\d{4})-(\d{1,2})|" + _OPEN_END + r")",
    re.IGNORECASE,
)
# "2019 - 2023", "2021 – Present"
_YEAR_RANGE = re.compile(
    r"(\d{4})" + _SEP + r"(?:[A-Za-z]+\.?\s+)?(?:(\d{4})|" + _OPEN_END + r")", re.IGNORECASE
)

_CURRENT = re.compile(r"present|current", re.IGNORECASE)


class DateRange(NamedTuple):
    start_month: str
    start_year: str
    end_month: str
    end_year: str
    is_current: bool


def month_name(value: Optional[str]) -> str:
    """Full month name from a number ("05") or a name/abbreviation ("Aug")"""
    if not value:
        return ""
    value = value.strip().rstrip(".")
    if value.isdigit():
        number = int(value)
        return MONTH_NAMES[number - 1] if 1 <= number <= 12 else ""
    lowered = value.lower()
    for name in MONTH_NAMES:
        if len(lowered) >= 3 and name.lower().startswith(lowered[:3]):
            return name
    return value


def parse_date_range(text: Optional[str]) -> Optional[DateRange]:
    """Split a résumé date range into month/year parts, None if unrecognized"""
    if not text:
        return None

    is_current = bool(_CURRENT.search(text))

    match = _MONTH_NAME_RANGE.search(text)
    if match:
        start_month, start_year, end_month, end_year, _ = match.groups()
        return DateRange(month_name(start_month), start_year,
                         month_name(end_month), end_year or "", is_current)

    match = _SLASH_RANGE.search(text)
    if match:
        start_month, start_year, end_month, end_year, _ = match.groups()
        return DateRange(month_name(start_month), start_year,
                         month_name(end_month), end_year or "", is_current)

    match = _ISO_RANGE.search(text)
    if match:
        start_year, start_month, end_year, end_month, _ = match.groups()
        return DateRange(month_name(start_month), start_year,
                         month_name(end_month), end_year or "", is_current)

    return None


def get_employment_entry(profile: UserProfile, index: int) -> Optional[EmploymentEntry]:
    """
    Employment entry `index` (0-based).

    Explicit employment entries win; otherwise the entry is derived from the
    parsed résumé experience.
    """
    if index < 0:
        return None

    employment = profile.resume.employment
    if index < len(employment):
        return employment[index]

    experience = profile.resume.experience
    if index >= len(experience):
        return None

    record = experience[index]
    dates = parse_date_range(record.dates)
    if dates is None:
        return EmploymentEntry(
            company=record.company,
            title=record.role,
            is_current=bool(_CURRENT.search(record.dates or "")),
        )
    return EmploymentEntry(
        company=record.company,
        title=record.role,
        start_month=dates.start_month,
        start_year=dates.start_year,
        end_month=dates.end_month,
        end_year=dates.end_year,
        is_current=dates.is_current,
    )


def get_education_entry(profile: UserProfile, index: int) -> Optional[EducationEntry]:
    """Education entry `index` (0-based), falling back to the profile's university for 0"""
    if index < 0:
        return None

    education = profile.education
    records = profile.resume.education

    if index < len(records):
        record = records[index]
        start_year = end_year = ""
        match = _YEAR_RANGE.search(record.dates or "")
        if match:
            start_year, end_year, open_end = match.groups()
            end_year = "" if open_end else (end_year or "")
        elif index == 0:
            end_year = education.grad_year or ""
        degree = record.degree or education.degree or ""
        field = (education.major or "") if index == 0 else ""
        if not field and " in " in degree:
            field = degree.split(" in ", 1)[1].strip()
        return EducationEntry(
            school=record.institution or education.university or "",
            degree=degree,
            field=field,
            start_year=start_year or "",
            end_year=end_year,
        )

    if index == 0 and education.university:
        return EducationEntry(
            school=education.university,
            degree=education.degree or "",
            field=education.major or "",
            end_year=education.grad_year or "",
        )

    return None
