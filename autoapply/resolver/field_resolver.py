"""
Field Value Resolver

Decides the value for one application-form field using three escalating
tiers:

1. Hardcoded rules over the field's label, placeholder, name and id
2. Label-category rules with similarity matching against dropdown options
3. The provider waterfall, constrained to the field's options when it has any

When every tier comes up empty the resolver returns a safe default instead of
raising, so the automation layer can always move on to the next field.
"""

import asyncio
import logging
import threading
from datetime import date
from typing import Any, Dict, Optional, Union

from ..ai import PURPOSE_FIELD, get_waterfall
from ..ai.errors import GenerationCancelledError
from ..ai.waterfall import ProviderWaterfall
from ..core.config import FIELD_ANSWER_MAX_TOKENS
from ..core.models import Confidence, FormField, MatchResult, MatchSource, UserProfile
from ..core.similarity import find_best_option
from .prompts import field_prompt
from .rules import RuleContext, category_rule_for, hardcoded_rule_for

logger = logging.getLogger(__name__)


class FieldValueResolver:
    """
    Resolve form fields against a candidate profile.

    Holds no per-call state; one instance can serve concurrent resolutions.
    """

    def __init__(self, waterfall: ProviderWaterfall, today: Optional[date] = None):
        """
        Args:
            waterfall: Waterfall used by the AI tier
            today: Fixed date for signature fields (default: date of each call)
        """
        self.waterfall = waterfall
        self._today = today

    def _context(self, profile: UserProfile) -> RuleContext:
        return RuleContext(profile=profile, today=self._today or date.today())

    async def match_field_value(
        self,
        field: FormField,
        profile: UserProfile,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> MatchResult:
        """
        Resolve one field.

        Never raises for provider failures; cancellation through cancel_event
        propagates as GenerationCancelledError.
        """
        ctx = self._context(profile)

        result = self.try_hardcoded(field, ctx)
        if result is not None:
            return result

        if field.is_choice:
            result = self.try_fuzzy(field, ctx)
            if result is not None:
                return result

        try:
            return await self._try_ai(field, profile, cancel_event)
        except GenerationCancelledError:
            raise
        except Exception as e:
            logger.exception(f"AI tier failed for field {field.label!r}: {e}")
            return self.safe_default(field)

    def try_hardcoded(self, field: FormField, ctx: RuleContext) -> Optional[MatchResult]:
        """Tier 1: first applicable hardcoded rule, if the profile knows the answer"""
        rule = hardcoded_rule_for(field)
        if rule is None:
            return None

        value = rule.accessor(ctx)
        if value is None:
            logger.debug(f"Rule {rule.name} matched {field.label!r} but profile value is unknown")
            return None

        if field.is_choice:
            if not isinstance(value, str) or not value.strip():
                return None
            best = find_best_option(field.options, value)
            if best is None:
                logger.debug(f"Rule {rule.name}: {value!r} matches no option of {field.label!r}")
                return None
            return MatchResult(best.option, Confidence.HIGH, MatchSource.SIMILARITY)

        return MatchResult(value, Confidence.HIGH, MatchSource.HARDCODED)

    def try_fuzzy(self, field: FormField, ctx: RuleContext) -> Optional[MatchResult]:
        """Tier 2: label category to profile attribute to best option"""
        rule = category_rule_for(field)
        if rule is None:
            return None

        value = rule.accessor(ctx)
        if not value or not isinstance(value, str):
            return None

        best = find_best_option(field.options, value)
        if best is None:
            return None
        return MatchResult(best.option, Confidence.MEDIUM, MatchSource.FUZZY)

    async def _try_ai(
        self,
        field: FormField,
        profile: UserProfile,
        cancel_event: Optional[asyncio.Event],
    ) -> MatchResult:
        options = list(field.options) if field.is_choice else None
        answer = await self.waterfall.generate(
            field_prompt(field, profile),
            FIELD_ANSWER_MAX_TOKENS,
            options_constraint=options,
            cancel_event=cancel_event,
        )
        logger.info(f"[AI_FIELD_MATCH] Field {field.label!r} -> {answer!r}")

        if answer is None:
            return self.safe_default(field)

        if field.is_choice:
            best = find_best_option(field.options, answer)
            if best is None:
                return self.safe_default(field)
            return MatchResult(best.option, Confidence.MEDIUM, MatchSource.AI)

        return MatchResult(answer, Confidence.LOW, MatchSource.AI)

    @staticmethod
    def safe_default(field: FormField) -> MatchResult:
        """First real option for option fields, empty string otherwise"""
        if field.has_options:
            return MatchResult(field.first_real_option(), Confidence.LOW, MatchSource.AI)
        return MatchResult("", Confidence.LOW, MatchSource.AI)


# Shared resolver, rebuilt when the field waterfall changes
_resolver_lock = threading.Lock()
_resolver: Optional[FieldValueResolver] = None


def get_field_resolver(force_reload: bool = False) -> FieldValueResolver:
    """Get the shared resolver backed by the cached field waterfall. Thread-safe."""
    global _resolver

    waterfall = get_waterfall(PURPOSE_FIELD, force_reload=force_reload)
    with _resolver_lock:
        if _resolver is None or _resolver.waterfall is not waterfall:
            _resolver = FieldValueResolver(waterfall)
        return _resolver


async def resolve_field(
    field: Union[FormField, Dict[str, Any]],
    profile: Union[UserProfile, Dict[str, Any]],
    cancel_event: Optional[asyncio.Event] = None,
) -> MatchResult:
    """
    Resolve one field with the shared resolver.

    Accepts model instances or the plain dicts produced by the browser layer.
    """
    if not isinstance(field, FormField):
        field = FormField.model_validate(field)
    if not isinstance(profile, UserProfile):
        profile = UserProfile.model_validate(profile)
    return await get_field_resolver().match_field_value(field, profile, cancel_event)
