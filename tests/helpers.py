"""
Test doubles: scripted provider fakes and a recording sleep.
"""

import asyncio
from typing import Dict, List, Optional, Sequence, Union

from autoapply.ai.provider import ConnectionTestResult, TextProvider
from autoapply.ai.settings import ProviderDescriptor
from autoapply.ai.waterfall import ProviderWaterfall
from autoapply.job_matcher.content_generator import ContentGenerator

ScriptItem = Union[str, BaseException, None]


class FakeProvider(TextProvider):
    """
    Provider double answering from a script.

    Each script item is returned (str/None) or raised (exception), keyed by
    model id when `script` is a dict, in call order when it is a list.
    Unscripted calls return "".
    """

    def __init__(
        self,
        name: str = "fake",
        script: Union[Sequence[ScriptItem], Dict[str, ScriptItem], None] = None,
        delay: float = 0.0,
    ):
        self._name = name
        self._script = script if script is not None else []
        self._delay = delay
        self.calls: List[Dict[str, object]] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def server_url(self) -> str:
        return f"fake://{self._name}"

    async def complete(
        self,
        prompt: str,
        model: str,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        timeout: Optional[float] = None,
    ) -> str:
        self.calls.append({"prompt": prompt, "model": model, "max_tokens": max_tokens})
        if self._delay:
            await asyncio.sleep(self._delay)

        if isinstance(self._script, dict):
            item = self._script.get(model, "")
        else:
            index = len(self.calls) - 1
            item = self._script[index] if index < len(self._script) else ""

        if isinstance(item, BaseException):
            raise item
        return item

    @property
    def models_called(self) -> List[str]:
        return [call["model"] for call in self.calls]

    def test_connection(self) -> ConnectionTestResult:
        return ConnectionTestResult(success=True, provider=self._name, models=[])


class RecordingSleep:
    """Awaitable sleep replacement that records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def make_descriptors(provider: str, models: Sequence[str], timeout: float = 5.0) -> List[ProviderDescriptor]:
    return [
        ProviderDescriptor(provider, model, tier_rank=index, request_timeout=timeout)
        for index, model in enumerate(models)
    ]


def make_waterfall(provider: FakeProvider, models: Sequence[str], sleep=None, **kwargs) -> ProviderWaterfall:
    return ProviderWaterfall(
        make_descriptors(provider.name, models),
        {provider.name: provider},
        sleep=sleep or RecordingSleep(),
        **kwargs,
    )


def make_generator(*scripts) -> ContentGenerator:
    """ContentGenerator whose chains answer from the given per-model scripts, one model each"""
    chains = []
    for index, script in enumerate(scripts):
        provider = FakeProvider(name=f"chain{index}", script=script)
        chains.append(make_waterfall(provider, ["m0"], name=f"document:chain{index}"))
    return ContentGenerator(chains[0], chains[1:])
