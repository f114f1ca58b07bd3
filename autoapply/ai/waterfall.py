"""
Provider Waterfall

Turns one prompt into one best-effort answer by walking an ordered list of
provider/model descriptors. Each descriptor is attempted at most once per
call, each attempt is bounded by its own timeout, and a rate-limited attempt
delays the next one. The first acceptable answer wins; exhaustion returns None.

Usage:
    waterfall = ProviderWaterfall(descriptors, {"openrouter": client})
    answer = await waterfall.generate(prompt, 100, options_constraint=["Yes", "No"])
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence, Set

from ..core.extraction import extract_json, extract_plain_answer
from ..core.similarity import contains_phrase, is_placeholder_option
from .errors import (
    GenerationCancelledError,
    InvalidContentError,
    ProviderError,
    ProviderHTTPError,
    ProviderNetworkError,
    ProviderRateLimitedError,
    ProviderTimeoutError,
)
from .provider import TextProvider
from .settings import ProviderDescriptor

logger = logging.getLogger(__name__)

Validator = Callable[[Any], bool]
SleepFunc = Callable[[float], Awaitable[Any]]


class AttemptOutcome(str, Enum):
    SUCCESS = "success"
    TIMEOUT = "timeout"
    HTTP_ERROR = "http_error"
    RATE_LIMITED = "rate_limited"
    INVALID_CONTENT = "invalid_content"
    NETWORK_ERROR = "network_error"
    UNEXPECTED_ERROR = "unexpected_error"


@dataclass
class AttemptRecord:
    """One provider attempt within a single waterfall call."""
    provider: ProviderDescriptor
    started_at: float
    outcome: AttemptOutcome
    latency: float
    error: Optional[str] = None


@dataclass(frozen=True)
class GeneratedPayload:
    """Provider-agnostic output before task-specific interpretation."""
    raw_text: str
    extracted_json: Optional[Dict[str, Any]] = None
    provider: Optional[ProviderDescriptor] = None


@dataclass
class WaterfallReport:
    """Everything one call produced: the accepted value and its attempts."""
    value: Optional[str] = None
    payload: Optional[GeneratedPayload] = None
    attempts: List[AttemptRecord] = field(default_factory=list)
    last_error: Optional[BaseException] = None

    @property
    def succeeded(self) -> bool:
        return self.payload is not None


def match_constraint(answer: str, options: Sequence[str]) -> Optional[str]:
    """
    Map an answer onto one of the allowed options.

    Order: case-sensitive exact, case-insensitive exact, an option contained in
    the answer as a whole phrase (longest option first), the answer contained
    in an option as a whole phrase (first option first). Returns the option
    string itself, or None.
    """
    answer = answer.strip()
    if not answer:
        return None

    candidates = [o for o in options if not is_placeholder_option(o)]

    for option in candidates:
        if answer == option:
            return option

    lowered = answer.lower()
    for option in candidates:
        if option.strip().lower() == lowered:
            return option

    contained = [o for o in candidates if contains_phrase(answer, o.strip())]
    if contained:
        return max(contained, key=lambda o: len(o.strip()))

    for option in candidates:
        if contains_phrase(option, answer):
            return option

    return None


class ProviderWaterfall:
    """
    Ordered, sequential provider fallback.

    The instance holds configuration only; all bookkeeping for a call lives in
    that call's WaterfallReport, so one instance can serve concurrent calls.
    """

    def __init__(
        self,
        descriptors: Sequence[ProviderDescriptor],
        clients: Mapping[str, TextProvider],
        backoff_base: float = 2.0,
        backoff_max: float = 10.0,
        temperature: Optional[float] = None,
        sleep: SleepFunc = asyncio.sleep,
        name: str = "waterfall",
    ):
        """
        Args:
            descriptors: Provider/model combinations; sorted by tier_rank (stable)
            clients: Provider adapters keyed by provider_name
            backoff_base: Seconds per attempt index to wait after a rate limit
            backoff_max: Upper bound for one backoff wait
            temperature: Sampling temperature passed to every attempt
            sleep: Awaitable sleep, injectable for tests
            name: Label used in log lines
        """
        self._descriptors = sorted(descriptors, key=lambda d: d.tier_rank)
        self._clients = dict(clients)
        self._backoff_base = backoff_base
        self._backoff_max = backoff_max
        self._temperature = temperature
        self._sleep = sleep
        self.name = name

    @property
    def descriptors(self) -> List[ProviderDescriptor]:
        return list(self._descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)

    def backoff_delay(self, attempt_index: int) -> float:
        """Delay after a rate limit on the attempt_index-th attempt (1-based)."""
        return min(self._backoff_base * attempt_index, self._backoff_max)

    async def generate(
        self,
        prompt: str,
        max_output_tokens: int,
        options_constraint: Optional[Sequence[str]] = None,
        *,
        validator: Optional[Validator] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Optional[str]:
        """
        Return the first acceptable plain answer, or None when every
        descriptor failed. With options_constraint the result is always one
        of the given options.
        """
        report = await self.generate_with_report(
            prompt,
            max_output_tokens,
            options_constraint,
            validator=validator,
            cancel_event=cancel_event,
        )
        return report.value

    async def generate_json(
        self,
        prompt: str,
        max_output_tokens: int,
        *,
        validator: Optional[Validator] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Optional[GeneratedPayload]:
        """Like generate, but only answers carrying a JSON object are accepted."""
        report = await self.generate_with_report(
            prompt,
            max_output_tokens,
            expect_json=True,
            validator=validator,
            cancel_event=cancel_event,
        )
        return report.payload

    async def generate_with_report(
        self,
        prompt: str,
        max_output_tokens: int,
        options_constraint: Optional[Sequence[str]] = None,
        *,
        expect_json: bool = False,
        validator: Optional[Validator] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> WaterfallReport:
        """
        Walk the descriptors once and report the outcome.

        Args:
            prompt: Prompt sent to every attempt
            max_output_tokens: Token cap for each attempt
            options_constraint: Allowed answers; the accepted value is one of them
            expect_json: Require an extractable JSON object
            validator: Extra acceptance check, given the extracted dict when
                expect_json is set and the plain answer otherwise; rejects by
                returning False or raising InvalidContentError
            cancel_event: Checked between attempts

        Raises:
            GenerationCancelledError: cancel_event was set between attempts
        """
        report = WaterfallReport()
        tried: Set[str] = set()
        pending_delay = 0.0

        for descriptor in self._descriptors:
            descriptor_id = descriptor.descriptor_id
            if descriptor_id in tried:
                continue
            tried.add(descriptor_id)

            if descriptor.is_rate_limited:
                logger.info(f"[{self.name}] Skipping {descriptor_id}: marked rate limited")
                continue

            client = self._clients.get(descriptor.provider_name)
            if client is None:
                logger.debug(f"[{self.name}] Skipping {descriptor_id}: no client configured")
                continue

            if pending_delay > 0:
                logger.info(f"[{self.name}] Backing off {pending_delay:.1f}s after rate limit")
                await self._sleep(pending_delay)
                pending_delay = 0.0

            self._check_cancelled(cancel_event)

            attempt_index = len(report.attempts) + 1
            started_at = time.time()
            start = time.monotonic()
            outcome = AttemptOutcome.SUCCESS
            error: Optional[BaseException] = None

            try:
                raw = await asyncio.wait_for(
                    client.complete(
                        prompt,
                        descriptor.model_id,
                        max_tokens=max_output_tokens,
                        temperature=self._temperature,
                        timeout=descriptor.request_timeout,
                    ),
                    timeout=descriptor.request_timeout,
                )
                payload, value = self._accept(
                    raw, descriptor, options_constraint, expect_json, validator
                )
            except asyncio.TimeoutError:
                outcome = AttemptOutcome.TIMEOUT
                error = ProviderTimeoutError(
                    f"No answer within {descriptor.request_timeout}s",
                    provider=descriptor.provider_name,
                    model=descriptor.model_id,
                )
            except ProviderRateLimitedError as e:
                outcome = AttemptOutcome.RATE_LIMITED
                error = e
                pending_delay = self.backoff_delay(attempt_index)
            except ProviderTimeoutError as e:
                outcome = AttemptOutcome.TIMEOUT
                error = e
            except InvalidContentError as e:
                outcome = AttemptOutcome.INVALID_CONTENT
                error = e
            except ProviderHTTPError as e:
                outcome = AttemptOutcome.HTTP_ERROR
                error = e
            except (ProviderNetworkError, ProviderError) as e:
                outcome = AttemptOutcome.NETWORK_ERROR
                error = e
            except Exception as e:
                outcome = AttemptOutcome.UNEXPECTED_ERROR
                error = e

            latency = time.monotonic() - start
            report.attempts.append(AttemptRecord(
                provider=descriptor,
                started_at=started_at,
                outcome=outcome,
                latency=latency,
                error=str(error) if error else None,
            ))

            if error is None:
                logger.info(
                    f"[{self.name}] {descriptor_id} succeeded in {latency * 1000:.0f}ms"
                )
                report.value = value
                report.payload = payload
                return report

            report.last_error = error
            if outcome == AttemptOutcome.UNEXPECTED_ERROR:
                logger.exception(
                    f"[{self.name}] {descriptor_id} raised unexpectedly after "
                    f"{latency * 1000:.0f}ms: {type(error).__name__}: {error}",
                    exc_info=error,
                )
            else:
                logger.warning(
                    f"[{self.name}] {descriptor_id} {outcome.value} after "
                    f"{latency * 1000:.0f}ms: {error}"
                )

        logger.warning(
            f"[{self.name}] All {len(report.attempts)} attempts failed"
            + (f"; last error: {report.last_error}" if report.last_error else "")
        )
        return report

    def _accept(
        self,
        raw: Optional[str],
        descriptor: ProviderDescriptor,
        options_constraint: Optional[Sequence[str]],
        expect_json: bool,
        validator: Optional[Validator],
    ):
        """Validate one raw answer; returns (payload, value) or raises InvalidContentError."""
        answer = extract_plain_answer(raw)
        if not answer:
            raise InvalidContentError(
                "Empty answer", provider=descriptor.provider_name, model=descriptor.model_id
            )

        if options_constraint:
            matched = match_constraint(answer, options_constraint)
            if matched is None:
                raise InvalidContentError(
                    f"Answer {answer[:60]!r} is not one of the allowed options",
                    provider=descriptor.provider_name,
                    model=descriptor.model_id,
                )
            answer = matched

        extracted = None
        if expect_json:
            extracted = extract_json(raw)
            if extracted is None:
                raise InvalidContentError(
                    "No JSON object in answer",
                    provider=descriptor.provider_name,
                    model=descriptor.model_id,
                )

        if validator is not None and not validator(extracted if expect_json else answer):
            raise InvalidContentError(
                "Answer failed validation",
                provider=descriptor.provider_name,
                model=descriptor.model_id,
            )

        payload = GeneratedPayload(raw_text=raw or "", extracted_json=extracted, provider=descriptor)
        return payload, answer

    def _check_cancelled(self, cancel_event: Optional[asyncio.Event]) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise GenerationCancelledError(f"{self.name} cancelled by caller")
