"""
OpenAI-Compatible Text Provider

Implements the TextProvider interface for OpenAI-compatible chat APIs.
Works with: OpenRouter, NVIDIA NIM, Groq, OpenAI, llama-server, vLLM, etc.
Also provides the Hugging Face serverless text-generation adapter, which
differs only in endpoint, payload and response shape.
"""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional

import aiohttp
import requests

from .errors import (
    InvalidContentError,
    ProviderHTTPError,
    ProviderNetworkError,
    ProviderNotConfiguredError,
    ProviderRateLimitedError,
    ProviderTimeoutError,
)
from .provider import TextProvider, ConnectionTestResult
from .settings import ProviderSettings

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 500
DEFAULT_TEMPERATURE = 0.1


def _parse_retry_after(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        # HTTP-date form is not used by the supported backends
        return None


class OpenAICompatibleProvider(TextProvider):
    """
    Text provider for OpenAI-compatible APIs (/chat/completions, /models).

    A shared aiohttp session may be injected; otherwise a short-lived session
    is opened per request.
    """

    def __init__(
        self,
        settings: ProviderSettings,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize the provider.

        Args:
            settings: ProviderSettings with base URL, key and extra headers
            session: Optional aiohttp session to reuse across requests
        """
        self._settings = settings
        self._name = settings.name
        self._base_url = settings.base_url.rstrip("/")
        self._api_key = settings.resolve_api_key() or ""
        self._extra_headers = dict(settings.headers or {})
        self._session = session

    @property
    def name(self) -> str:
        return self._name

    @property
    def server_url(self) -> str:
        """Get the base API URL."""
        return self._base_url

    @property
    def models(self) -> List[str]:
        return list(self._settings.models)

    def _get_headers(self) -> Dict[str, str]:
        """Get HTTP headers for API requests."""
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        headers.update(self._extra_headers)
        return headers

    def _endpoint(self, model: str) -> str:
        return f"{self._base_url}/chat/completions"

    def _build_payload(
        self,
        prompt: str,
        model: str,
        max_tokens: Optional[int],
        temperature: Optional[float],
    ) -> Dict[str, Any]:
        return {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature if temperature is not None else DEFAULT_TEMPERATURE,
            "max_tokens": max_tokens or DEFAULT_MAX_TOKENS,
            "stream": False,
        }

    def _parse_response(self, data: Any, model: str) -> str:
        """Normalize choices[0].message.content to a string."""
        if not isinstance(data, dict):
            raise InvalidContentError(
                "Unexpected response shape", provider=self._name, model=model
            )
        choices = data.get("choices") or []
        if not choices:
            return ""
        message = choices[0].get("message") or {}
        return message.get("content") or ""

    async def complete(
        self,
        prompt: str,
        model: str,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        timeout: Optional[float] = None,
    ) -> str:
        """Send one chat completion request and return the message text."""
        if not self._api_key:
            raise ProviderNotConfiguredError(
                f"API key not configured ({self._settings.api_key_env or 'api_key'})",
                provider=self._name,
                model=model,
            )

        payload = self._build_payload(prompt, model, max_tokens, temperature)

        try:
            if self._session is not None:
                return await self._post(self._session, model, payload, timeout)
            async with aiohttp.ClientSession() as session:
                return await self._post(session, model, payload, timeout)
        except asyncio.TimeoutError:
            raise ProviderTimeoutError(
                f"Request timed out after {timeout}s", provider=self._name, model=model
            )
        except aiohttp.ClientError as e:
            raise ProviderNetworkError(
                f"{type(e).__name__}: {e}", provider=self._name, model=model
            ) from e

    async def _post(
        self,
        session: aiohttp.ClientSession,
        model: str,
        payload: Dict[str, Any],
        timeout: Optional[float],
    ) -> str:
        client_timeout = aiohttp.ClientTimeout(total=timeout) if timeout else None
        async with session.post(
            self._endpoint(model),
            headers=self._get_headers(),
            json=payload,
            timeout=client_timeout,
        ) as response:
            if response.status == 429:
                retry_after = _parse_retry_after(response.headers.get("Retry-After"))
                raise ProviderRateLimitedError(
                    "Rate limited (HTTP 429)",
                    retry_after=retry_after,
                    provider=self._name,
                    model=model,
                )
            if response.status != 200:
                error_text = await response.text()
                raise ProviderHTTPError(
                    f"HTTP {response.status}: {error_text[:200]}",
                    status=response.status,
                    provider=self._name,
                    model=model,
                )
            try:
                data = await response.json(content_type=None)
            except ValueError as e:
                raise InvalidContentError(
                    f"Response body is not JSON: {e}", provider=self._name, model=model
                )
            return self._parse_response(data, model)

    def test_connection(self) -> ConnectionTestResult:
        """Probe the /models endpoint with the configured key."""
        if not self._api_key:
            return ConnectionTestResult(
                success=False,
                provider=self._name,
                error=f"{self._settings.api_key_env or 'API key'} not set",
            )

        start = time.monotonic()
        try:
            response = requests.get(
                f"{self._base_url}/models",
                headers=self._get_headers(),
                timeout=10,
            )
        except requests.exceptions.Timeout:
            return ConnectionTestResult(
                success=False, provider=self._name, error="Connection timed out"
            )
        except requests.exceptions.RequestException as e:
            return ConnectionTestResult(
                success=False, provider=self._name, error=f"Connection failed: {e}"
            )

        latency_ms = (time.monotonic() - start) * 1000
        if response.status_code != 200:
            return ConnectionTestResult(
                success=False,
                provider=self._name,
                error=f"API returned status {response.status_code}: {response.text[:200]}",
                latency_ms=latency_ms,
            )

        try:
            data = response.json()
        except ValueError:
            data = {}
        models = [m.get("id", m.get("name", "unknown")) for m in data.get("data", [])]
        return ConnectionTestResult(
            success=True, provider=self._name, models=models, latency_ms=latency_ms
        )


class HuggingFaceProvider(OpenAICompatibleProvider):
    """
    Hugging Face serverless inference (text-generation task).

    POST {base_url}/{model} with {"inputs", "parameters"}; the answer comes
    back as [{"generated_text": ...}].
    """

    def _endpoint(self, model: str) -> str:
        return f"{self._base_url}/{model}"

    def _build_payload(
        self,
        prompt: str,
        model: str,
        max_tokens: Optional[int],
        temperature: Optional[float],
    ) -> Dict[str, Any]:
        return {
            "inputs": prompt,
            "parameters": {
                "max_new_tokens": max_tokens or DEFAULT_MAX_TOKENS,
                "temperature": temperature if temperature is not None else DEFAULT_TEMPERATURE,
                "return_full_text": False,
            },
        }

    def _parse_response(self, data: Any, model: str) -> str:
        if isinstance(data, list):
            data = data[0] if data else {}
        if not isinstance(data, dict):
            raise InvalidContentError(
                "Unexpected response shape", provider=self._name, model=model
            )
        if "error" in data and "generated_text" not in data:
            raise InvalidContentError(
                f"Inference error: {data['error']}", provider=self._name, model=model
            )
        return data.get("generated_text") or ""

    def test_connection(self) -> ConnectionTestResult:
        """Check the token against the whoami endpoint."""
        if not self._api_key:
            return ConnectionTestResult(
                success=False,
                provider=self._name,
                error=f"{self._settings.api_key_env or 'API key'} not set",
            )

        start = time.monotonic()
        try:
            response = requests.get(
                "https://huggingface.co/api/whoami-v2",
                headers=self._get_headers(),
                timeout=10,
            )
        except requests.exceptions.RequestException as e:
            return ConnectionTestResult(
                success=False, provider=self._name, error=f"Connection failed: {e}"
            )

        latency_ms = (time.monotonic() - start) * 1000
        if response.status_code != 200:
            return ConnectionTestResult(
                success=False,
                provider=self._name,
                error=f"API returned status {response.status_code}",
                latency_ms=latency_ms,
            )
        return ConnectionTestResult(
            success=True, provider=self._name, models=self.models, latency_ms=latency_ms
        )
