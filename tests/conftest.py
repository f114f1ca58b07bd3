"""
Shared fixtures: environment isolation, a recording sleep and sample profiles.
"""

import pytest

from autoapply.ai import clear_provider_cache
from autoapply.core.models import UserProfile

from tests.helpers import RecordingSleep

_PROVIDER_ENV = (
    "OPENROUTER_API_KEY",
    "HF_TOKEN",
    "NVIDIA_API_KEY",
    "GROQ_API_KEY",
    "OPENROUTER_MODELS",
    "HUGGINGFACE_MODELS",
    "NVIDIA_MODELS",
    "GROQ_MODELS",
    "FIELD_REQUEST_TIMEOUT",
    "DOCUMENT_REQUEST_TIMEOUT",
    "RATE_LIMIT_BACKOFF_BASE",
    "RATE_LIMIT_BACKOFF_MAX",
)


# --- Environment Isolation (Autouse) ---
@pytest.fixture(autouse=True)
def isolate_provider_env(monkeypatch, tmp_path):
    """Tests only see the provider environment they set themselves."""
    monkeypatch.setattr("autoapply.ai.settings.load_dotenv", lambda *_a, **_k: False)
    for key in _PROVIDER_ENV:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("AUTOAPPLY_PROVIDERS_FILE", str(tmp_path / "missing-providers.yaml"))
    monkeypatch.setattr(
        "autoapply.job_matcher.prompt_config.get_project_root", lambda: tmp_path
    )
    clear_provider_cache()
    yield
    clear_provider_cache()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def profile() -> UserProfile:
    return UserProfile.model_validate({
        "identity": {"full_name": "Jordan Lee", "pronouns": "they/them"},
        "contact": {
            "email": "a@b.com",
            "phone": "555-0100",
            "city": "Austin",
            "state": "TX",
            "country": "United States",
            "linkedin": "https://linkedin.com/in/jordanlee",
            "github": "https://github.com/jordanlee",
        },
        "education": {
            "university": "University of Texas at Austin",
            "degree": "B.S. in Computer Science",
            "gpa": "3.8",
            "grad_year": "2026",
            "grad_month": "May",
        },
        "demographics": {
            "gender": "Male",
            "race": "Black or African American",
            "veteran": "I am not a protected veteran",
            "disability": "No, I do not have a disability",
        },
        "authorization": {
            "work_auth": "Yes",
            "sponsorship": "No",
            "relocation": "Yes",
        },
        "application": {"certify_truthful": True},
        "resume": {
            "master_resume_text": "Jordan Lee\nSoftware Engineer Intern at Acme",
            "experience": [
                {
                    "company": "Acme",
                    "role": "Software Engineer Intern",
                    "dates": "May 2024 - Aug 2024",
                    "points": ["Built a Flask API"],
                },
                {
                    "company": "Globex",
                    "role": "Teaching Assistant",
                    "dates": "Jan 2023 - Present",
                    "points": [],
                },
            ],
            "education": [
                {
                    "institution": "University of Texas at Austin",
                    "degree": "B.S. in Computer Science",
                    "dates": "Aug 2022 - May 2026",
                }
            ],
            "skills": {"languages": "Python, TypeScript", "tools": "Docker, Git"},
        },
    })


@pytest.fixture
def empty_profile() -> UserProfile:
    return UserProfile()
