"""
Abstract Text Provider Interface

Defines the contract every text-generation backend adapter implements.
Adapters return a plain string or raise one of the errors in
`autoapply.ai.errors`; they never retry on their own, retrying across
models and backends is the waterfall's job.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class ConnectionTestResult:
    """Result of testing connection to a provider."""
    success: bool
    provider: str
    models: List[str] = field(default_factory=list)
    error: Optional[str] = None
    latency_ms: Optional[float] = None


class TextProvider(ABC):
    """
    Abstract base class for text-generation backends.

    One instance serves every model of its backend; the model id is chosen
    per request by the waterfall.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name used in descriptors and logs."""
        pass

    @property
    @abstractmethod
    def server_url(self) -> str:
        """Get the server/API URL."""
        pass

    @abstractmethod
    async def complete(
        self,
        prompt: str,
        model: str,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        timeout: Optional[float] = None,
    ) -> str:
        """
        Generate a completion for a single user prompt.

        Args:
            prompt: The prompt to send to the model
            model: Model identifier understood by the backend
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature
            timeout: Per-request timeout in seconds

        Returns:
            The generated text (possibly empty)

        Raises:
            ProviderError subclasses for transport, HTTP and rate-limit failures
        """
        pass

    @abstractmethod
    def test_connection(self) -> ConnectionTestResult:
        """
        Synchronously probe the provider.

        Returns:
            ConnectionTestResult with success status and visible models
        """
        pass

    def describe(self) -> Dict[str, Any]:
        """Short description for CLI listings."""
        return {"name": self.name, "server_url": self.server_url}
