"""
Content Generator - structured and free-text generation across provider chains

Runs a task prompt through the primary waterfall, then through up to three
secondary waterfalls in fixed order. Structured answers are accepted only if
they validate against the task's Pydantic model, so a malformed answer from
one model moves on to the next one instead of reaching the caller.
"""

import asyncio
import logging
import threading
from typing import List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..ai import PURPOSE_DOCUMENT, get_secondary_waterfalls, get_waterfall
from ..ai.errors import GenerationExhaustedError, InvalidContentError
from ..ai.waterfall import ProviderWaterfall, Validator

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

MAX_SECONDARY_CHAINS = 3


def format_validation_error(error: ValidationError) -> str:
    """Format Pydantic validation error for logs and error messages."""
    lines = []
    for err in error.errors():
        loc = " -> ".join(str(x) for x in err["loc"])
        lines.append(f"  - Field '{loc}': {err['msg']}")
    return "\n".join(lines)


def schema_description(model: Type[BaseModel]) -> str:
    """
    Human-readable field list for a response model.

    The model only sees the prompt, so the expected shape is spelled out
    explicitly.
    """
    schema = model.model_json_schema()
    lines = []
    for field_name, field_info in schema.get("properties", {}).items():
        field_type = field_info.get("type", "object")
        description = field_info.get("description", "")
        if field_type == "array":
            items = field_info.get("items", {})
            item_type = "objects" if "$ref" in items else items.get("type", "any")
            lines.append(f"- {field_name}: (array of {item_type}) {description}".rstrip())
        else:
            lines.append(f"- {field_name}: ({field_type}) {description}".rstrip())
    return "\n".join(lines)


class ContentGenerator:
    """
    Primary-then-secondary generation with validation.

    Raises GenerationExhaustedError when every chain fails; there is no
    fabricated fallback content.
    """

    def __init__(
        self,
        primary: ProviderWaterfall,
        secondaries: Sequence[ProviderWaterfall] = (),
    ):
        self.primary = primary
        self.secondaries = list(secondaries)[:MAX_SECONDARY_CHAINS]

    @property
    def chains(self) -> List[ProviderWaterfall]:
        return [self.primary, *self.secondaries]

    async def generate_structured(
        self,
        prompt: str,
        response_model: Type[T],
        *,
        max_output_tokens: int = 1000,
        operation: Optional[str] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> T:
        """
        Generate a JSON answer validated against response_model.

        Args:
            prompt: Task prompt asking for JSON only
            response_model: Pydantic model the extracted object must satisfy
            max_output_tokens: Token cap per attempt
            operation: Name used in logs and in the exhaustion error
            cancel_event: Checked between provider attempts

        Returns:
            Validated response_model instance

        Raises:
            GenerationExhaustedError: no chain produced a valid object
            GenerationCancelledError: cancel_event was set
        """
        operation = operation or response_model.__name__

        def validate(data) -> bool:
            try:
                response_model.model_validate(data)
            except ValidationError as e:
                raise InvalidContentError(
                    f"{response_model.__name__} validation failed:\n{format_validation_error(e)}"
                )
            return True

        last_error: Optional[BaseException] = None
        for index, chain in enumerate(self.chains):
            if index > 0:
                logger.warning(f"[AI_LOG] {operation}: rotating to {chain.name}")
            report = await chain.generate_with_report(
                prompt,
                max_output_tokens,
                expect_json=True,
                validator=validate,
                cancel_event=cancel_event,
            )
            if report.payload is not None:
                logger.info(f"[AI_LOG] {operation} succeeded via {chain.name}")
                return response_model.model_validate(report.payload.extracted_json)
            last_error = report.last_error or last_error

        logger.error(f"[AI_LOG] {operation} failed on all providers. Last error: {last_error}")
        raise GenerationExhaustedError(operation, last_error)

    async def generate_text(
        self,
        prompt: str,
        *,
        max_output_tokens: int = 500,
        operation: str = "text generation",
        validator: Optional[Validator] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> str:
        """
        Generate a plain-text answer, optionally filtered by validator.

        Raises:
            GenerationExhaustedError: no chain produced an acceptable answer
        """
        last_error: Optional[BaseException] = None
        for index, chain in enumerate(self.chains):
            if index > 0:
                logger.warning(f"[AI_LOG] {operation}: rotating to {chain.name}")
            report = await chain.generate_with_report(
                prompt,
                max_output_tokens,
                validator=validator,
                cancel_event=cancel_event,
            )
            if report.value is not None:
                logger.info(f"[AI_LOG] {operation} succeeded via {chain.name}")
                return report.value
            last_error = report.last_error or last_error

        logger.error(f"[AI_LOG] {operation} failed on all providers. Last error: {last_error}")
        raise GenerationExhaustedError(operation, last_error)


# Shared generator, rebuilt when the cached waterfalls change
_generator_lock = threading.Lock()
_generator: Optional[ContentGenerator] = None


def get_content_generator(force_reload: bool = False) -> ContentGenerator:
    """Get the shared generator backed by the cached document waterfalls. Thread-safe."""
    global _generator

    primary = get_waterfall(PURPOSE_DOCUMENT, force_reload=force_reload)
    secondaries = get_secondary_waterfalls(force_reload=force_reload)
    with _generator_lock:
        if (
            _generator is None
            or _generator.primary is not primary
            or _generator.secondaries != secondaries[:MAX_SECONDARY_CHAINS]
        ):
            _generator = ContentGenerator(primary, secondaries)
        return _generator
