import pytest

from autoapply.core.models import UserProfile
from autoapply.resolver.history import (
    get_education_entry,
    get_employment_entry,
    month_name,
    parse_date_range,
)


@pytest.mark.parametrize("text, expected", [
    ("May 2023 - Aug 2023", ("May", "2023", "August", "2023", False)),
    ("Sept. 2021 – Present", ("September", "2021", "", "", True)),
    ("05/2020 to 12/2021", ("May", "2020", "December", "2021", False)),
    ("2019-01 - current", ("January", "2019", "", "", True)),
])
def test_parse_date_range(text, expected):
    assert tuple(parse_date_range(text)) == expected


def test_parse_date_range_unrecognized():
    assert parse_date_range("Summer internship") is None
    assert parse_date_range("") is None


def test_month_name():
    assert month_name("3") == "March"
    assert month_name("dec") == "December"
    assert month_name("13") == ""
    assert month_name(None) == ""


class TestEmploymentEntry:
    def test_derived_from_experience(self, profile):
        entry = get_employment_entry(profile, 0)
        assert entry.company == "Acme"
        assert entry.title == "Software Engineer Intern"
        assert (entry.start_month, entry.start_year) == ("May", "2024")
        assert (entry.end_month, entry.end_year) == ("August", "2024")
        assert entry.is_current is False

    def test_current_role(self, profile):
        entry = get_employment_entry(profile, 1)
        assert entry.company == "Globex"
        assert entry.is_current is True
        assert entry.end_year == ""

    def test_explicit_employment_wins(self):
        profile = UserProfile.model_validate({
            "resume": {
                "employment": [{"company": "Initech", "title": "Analyst", "start_year": "2020"}],
                "experience": [{"company": "Acme", "role": "Intern", "dates": "2019 - 2020"}],
            }
        })
        assert get_employment_entry(profile, 0).company == "Initech"

    def test_out_of_range(self, profile):
        assert get_employment_entry(profile, 5) is None
        assert get_employment_entry(profile, -1) is None


class TestEducationEntry:
    def test_from_resume_record(self, profile):
        entry = get_education_entry(profile, 0)
        assert entry.school == "University of Texas at Austin"
        assert entry.degree == "B.S. in Computer Science"
        assert entry.field == "Computer Science"
        assert (entry.start_year, entry.end_year) == ("2022", "2026")

    def test_falls_back_to_profile_education(self):
        profile = UserProfile.model_validate({
            "education": {"university": "Rice University", "degree": "B.A.", "grad_year": "2025"}
        })
        entry = get_education_entry(profile, 0)
        assert entry.school == "Rice University"
        assert entry.end_year == "2025"
        assert get_education_entry(profile, 1) is None

    def test_missing(self, empty_profile):
        assert get_education_entry(empty_profile, 0) is None
