from typing import List

import pytest
from pydantic import BaseModel

from autoapply.ai.errors import GenerationExhaustedError, ProviderNetworkError
from autoapply.job_matcher.content_generator import ContentGenerator, schema_description

from tests.helpers import FakeProvider, make_waterfall


class Verdict(BaseModel):
    score: int
    reasons: List[str]


def chain(name, script, models=("m0", "m1")):
    provider = FakeProvider(name=name, script=script)
    return provider, make_waterfall(provider, list(models), name=f"document:{name}")


@pytest.mark.asyncio
async def test_structured_result_from_primary():
    primary_provider, primary = chain("primary", {"m0": 'Result: {"score": 80, "reasons": ["fit"]}'})
    secondary_provider, secondary = chain("secondary", {})
    generator = ContentGenerator(primary, [secondary])

    verdict = await generator.generate_structured("p", Verdict)

    assert verdict == Verdict(score=80, reasons=["fit"])
    assert secondary_provider.calls == []


@pytest.mark.asyncio
async def test_schema_mismatch_moves_to_next_model_and_chain():
    _, primary = chain("primary", {
        "m0": '{"score": "high"}',
        "m1": "not json at all",
    })
    secondary_provider, secondary = chain("secondary", {"m0": '{"score": 55, "reasons": []}'})
    generator = ContentGenerator(primary, [secondary])

    verdict = await generator.generate_structured("p", Verdict)

    assert verdict.score == 55
    assert secondary_provider.models_called == ["m0"]


@pytest.mark.asyncio
async def test_exhaustion_raises_with_last_error():
    _, primary = chain("primary", {"m0": ProviderNetworkError("down"), "m1": ProviderNetworkError("down")})
    _, secondary = chain("secondary", {"m0": ProviderNetworkError("still down"), "m1": ""})
    generator = ContentGenerator(primary, [secondary])

    with pytest.raises(GenerationExhaustedError) as exc_info:
        await generator.generate_structured("p", Verdict, operation="matching")

    assert exc_info.value.operation == "matching"
    assert exc_info.value.last_error is not None
    assert exc_info.value.status_code == 500


@pytest.mark.asyncio
async def test_generate_text_falls_through_chains():
    _, primary = chain("primary", {"m0": "", "m1": ""})
    _, secondary = chain("secondary", {"m0": "An essay."})
    generator = ContentGenerator(primary, [secondary])

    assert await generator.generate_text("p") == "An essay."


def test_at_most_three_secondaries():
    chains = [chain(f"c{i}", {})[1] for i in range(5)]
    generator = ContentGenerator(chains[0], chains[1:])
    assert len(generator.chains) == 4


def test_schema_description_lists_fields():
    text = schema_description(Verdict)
    assert "- score: (integer)" in text
    assert "- reasons: (array of string)" in text
