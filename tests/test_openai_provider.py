import asyncio
from unittest.mock import Mock, patch

import aiohttp
import pytest
import requests

from autoapply.ai.errors import (
    InvalidContentError,
    ProviderHTTPError,
    ProviderNetworkError,
    ProviderNotConfiguredError,
    ProviderRateLimitedError,
    ProviderTimeoutError,
)
from autoapply.ai.openai_provider import HuggingFaceProvider, OpenAICompatibleProvider
from autoapply.ai.settings import ProviderSettings


class FakeResponse:
    def __init__(self, status=200, body=None, headers=None, text="", json_error=None):
        self.status = status
        self._body = body
        self.headers = headers or {}
        self._text = text
        self._json_error = json_error

    async def json(self, content_type="application/json"):
        if self._json_error:
            raise self._json_error
        return self._body

    async def text(self):
        return self._text

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class FakeSession:
    """Stands in for aiohttp.ClientSession.post"""

    def __init__(self, response=None, error=None):
        self._response = response
        self._error = error
        self.requests = []

    def post(self, url, headers=None, json=None, timeout=None):
        self.requests.append({"url": url, "headers": headers, "json": json, "timeout": timeout})
        if self._error:
            raise self._error
        return self._response


def openrouter_settings(**overrides):
    data = {
        "name": "openrouter",
        "base_url": "https://openrouter.ai/api/v1/",
        "api_key": "sk-test",
        "models": ["m"],
        "headers": {"X-Title": "AutoApply"},
    }
    data.update(overrides)
    return ProviderSettings(**data)


@pytest.mark.asyncio
async def test_complete_sends_chat_payload():
    session = FakeSession(FakeResponse(body={"choices": [{"message": {"content": "Yes"}}]}))
    provider = OpenAICompatibleProvider(openrouter_settings(), session=session)

    answer = await provider.complete("Over 18?", "model-a", max_tokens=100, temperature=0.2, timeout=5)

    assert answer == "Yes"
    request = session.requests[0]
    assert request["url"] == "https://openrouter.ai/api/v1/chat/completions"
    assert request["headers"]["Authorization"] == "Bearer sk-test"
    assert request["headers"]["X-Title"] == "AutoApply"
    assert request["json"]["model"] == "model-a"
    assert request["json"]["messages"] == [{"role": "user", "content": "Over 18?"}]
    assert request["json"]["max_tokens"] == 100
    assert request["json"]["temperature"] == 0.2
    assert request["timeout"].total == 5


@pytest.mark.asyncio
async def test_rate_limit_maps_to_typed_error():
    session = FakeSession(FakeResponse(status=429, headers={"Retry-After": "7"}))
    provider = OpenAICompatibleProvider(openrouter_settings(), session=session)

    with pytest.raises(ProviderRateLimitedError) as exc_info:
        await provider.complete("p", "m")
    assert exc_info.value.retry_after == 7.0


@pytest.mark.asyncio
async def test_http_error_carries_status():
    session = FakeSession(FakeResponse(status=503, text="overloaded"))
    provider = OpenAICompatibleProvider(openrouter_settings(), session=session)

    with pytest.raises(ProviderHTTPError) as exc_info:
        await provider.complete("p", "m")
    assert exc_info.value.status == 503


@pytest.mark.asyncio
async def test_non_json_body_is_invalid_content():
    session = FakeSession(FakeResponse(json_error=ValueError("bad json")))
    provider = OpenAICompatibleProvider(openrouter_settings(), session=session)

    with pytest.raises(InvalidContentError):
        await provider.complete("p", "m")


@pytest.mark.asyncio
async def test_transport_errors_are_translated():
    provider = OpenAICompatibleProvider(
        openrouter_settings(), session=FakeSession(error=aiohttp.ClientConnectionError("refused"))
    )
    with pytest.raises(ProviderNetworkError):
        await provider.complete("p", "m")

    provider = OpenAICompatibleProvider(
        openrouter_settings(), session=FakeSession(error=asyncio.TimeoutError())
    )
    with pytest.raises(ProviderTimeoutError):
        await provider.complete("p", "m")


@pytest.mark.asyncio
async def test_missing_key_is_not_configured():
    provider = OpenAICompatibleProvider(openrouter_settings(api_key=None, api_key_env="NOPE_KEY"))
    with pytest.raises(ProviderNotConfiguredError):
        await provider.complete("p", "m")


@pytest.mark.asyncio
async def test_empty_choices_give_empty_text():
    session = FakeSession(FakeResponse(body={"choices": []}))
    provider = OpenAICompatibleProvider(openrouter_settings(), session=session)
    assert await provider.complete("p", "m") == ""


class TestHuggingFace:
    def settings(self):
        return ProviderSettings(
            name="huggingface",
            kind="huggingface",
            base_url="https://api-inference.huggingface.co/models",
            api_key="hf-test",
        )

    @pytest.mark.asyncio
    async def test_payload_and_response_shape(self):
        session = FakeSession(FakeResponse(body=[{"generated_text": " No "}]))
        provider = HuggingFaceProvider(self.settings(), session=session)

        answer = await provider.complete("p", "org/model", max_tokens=50)

        assert answer == " No "
        request = session.requests[0]
        assert request["url"] == "https://api-inference.huggingface.co/models/org/model"
        assert request["json"]["inputs"] == "p"
        assert request["json"]["parameters"]["max_new_tokens"] == 50
        assert request["json"]["parameters"]["return_full_text"] is False

    @pytest.mark.asyncio
    async def test_inference_error_is_invalid_content(self):
        session = FakeSession(FakeResponse(body={"error": "Model is loading"}))
        provider = HuggingFaceProvider(self.settings(), session=session)

        with pytest.raises(InvalidContentError):
            await provider.complete("p", "org/model")


class TestConnection:
    def test_lists_models(self):
        response = Mock(status_code=200)
        response.json.return_value = {"data": [{"id": "a"}, {"id": "b"}]}
        provider = OpenAICompatibleProvider(openrouter_settings())

        with patch("autoapply.ai.openai_provider.requests.get", return_value=response) as get:
            result = provider.test_connection()

        assert result.success
        assert result.models == ["a", "b"]
        assert get.call_args[0][0] == "https://openrouter.ai/api/v1/models"

    def test_connection_failure(self):
        provider = OpenAICompatibleProvider(openrouter_settings())

        with patch(
            "autoapply.ai.openai_provider.requests.get",
            side_effect=requests.exceptions.ConnectionError("refused"),
        ):
            result = provider.test_connection()

        assert not result.success
        assert "refused" in result.error

    def test_without_key(self):
        provider = OpenAICompatibleProvider(openrouter_settings(api_key=None, api_key_env="NOPE_KEY"))
        result = provider.test_connection()
        assert not result.success
        assert "NOPE_KEY" in result.error
