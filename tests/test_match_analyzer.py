import pytest
from pydantic import ValidationError

from autoapply.ai.errors import GenerationExhaustedError
from autoapply.job_matcher.match_analyzer import MatchAnalysis, build_match_prompt, generate_match_analysis

from tests.helpers import make_generator


class TestMatchAnalysisModel:
    def test_legacy_keys(self):
        analysis = MatchAnalysis.model_validate({
            "matchScore": 81,
            "whyYouWillLoveIt": ["Built a RAG pipeline"],
            "theCatch": ["Graduates after the start date"],
            "topSkills": ["Python", "SQL", "Docker", "Go"],
        })
        assert analysis.score == 81
        assert analysis.pros == ["Built a RAG pipeline"]
        assert analysis.cons == ["Graduates after the start date"]
        assert analysis.top_skills == ["Python", "SQL", "Docker"]

    @pytest.mark.parametrize("raw, expected", [
        ("85%", 85),
        (72.6, 73),
        (140, 100),
        (-5, 0),
    ])
    def test_score_coercion(self, raw, expected):
        assert MatchAnalysis.model_validate({"score": raw}).score == expected

    def test_score_is_required(self):
        with pytest.raises(ValidationError):
            MatchAnalysis.model_validate({"pros": ["x"]})

    def test_prose_pros_become_items(self):
        analysis = MatchAnalysis.model_validate({
            "score": 50,
            "pros": "- Strong Python\n2. Shipped an API\n",
            "top_skills": "Python, FastAPI",
        })
        assert analysis.pros == ["Strong Python", "Shipped an API"]
        assert analysis.top_skills == ["Python", "FastAPI"]


def test_prompt_carries_inputs():
    prompt = build_match_prompt("Backend role", "Jordan's resume", graduation="May 2026")
    assert "Jordan's resume" in prompt
    assert "Backend role" in prompt
    assert "Expected Graduation from Resume: May 2026" in prompt
    assert "- score: (integer)" in prompt


@pytest.mark.asyncio
async def test_generate_match_analysis():
    generator = make_generator(['```json\n{"score": 64, "pros": ["a"], "cons": [], "top_skills": ["Python"]}\n```'])

    analysis = await generate_match_analysis("job", "resume", generator=generator)

    assert analysis.score == 64
    assert analysis.top_skills == ["Python"]


@pytest.mark.asyncio
async def test_invalid_primary_answer_uses_secondary():
    generator = make_generator(['{"pros": ["no score"]}'], ['{"matchScore": "90"}'])

    analysis = await generate_match_analysis("job", "resume", generator=generator)

    assert analysis.score == 90


@pytest.mark.asyncio
async def test_match_analysis_has_no_fallback():
    generator = make_generator(["I cannot help with that."], [""])

    with pytest.raises(GenerationExhaustedError) as exc_info:
        await generate_match_analysis("job", "resume", generator=generator)
    assert exc_info.value.operation == "matching"
