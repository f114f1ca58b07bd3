"""
Rule tables for deterministic form-field resolution

HARDCODED_RULES map a field's label/placeholder/name/id text to a profile
attribute. CATEGORY_RULES map only the visible label to a profile attribute
for dropdown option matching. Both are ordered: the first rule that applies
wins.

An accessor returns None when the profile does not know the answer. Unknown
demographic and authorization answers are never replaced by a default.
"""

import re
from dataclasses import dataclass, field as dataclass_field
from datetime import date
from typing import Callable, FrozenSet, Optional, Pattern, Sequence, Union

from ..core.models import FieldKind, FormField, UserProfile

RuleValue = Optional[Union[str, bool]]


@dataclass(frozen=True)
class RuleContext:
    """Inputs available to a rule accessor"""
    profile: UserProfile
    today: date = dataclass_field(default_factory=date.today)


@dataclass(frozen=True)
class FieldRule:
    """
    One row of a rule table.

    Attributes:
        name: Identifier used in logs and tests
        pattern: Searched in the lowercased field text
        accessor: Reads the answer from the profile
        exclude: Field text matching this disqualifies the rule
        kinds: Field kinds the rule is limited to (None = all)
    """
    name: str
    pattern: Pattern
    accessor: Callable[[RuleContext], RuleValue]
    exclude: Optional[Pattern] = None
    kinds: Optional[FrozenSet[FieldKind]] = None

    def applies(self, text: str, kind: FieldKind) -> bool:
        if self.kinds is not None and kind not in self.kinds:
            return False
        if not self.pattern.search(text):
            return False
        return not (self.exclude and self.exclude.search(text))


def _rule(name, pattern, accessor, exclude=None, kinds=None) -> FieldRule:
    return FieldRule(
        name=name,
        pattern=re.compile(pattern),
        accessor=accessor,
        exclude=re.compile(exclude) if exclude else None,
        kinds=frozenset(kinds) if kinds else None,
    )


def find_rule(rules: Sequence[FieldRule], text: str, kind: FieldKind) -> Optional[FieldRule]:
    """First rule in table order that applies to the text"""
    for rule in rules:
        if rule.applies(text, kind):
            return rule
    return None


# =============================================================================
# Accessors
# =============================================================================

def _first_of(*values: Optional[str]) -> Optional[str]:
    """First known value; an explicit blank counts only if nothing else is known"""
    blank = None
    for value in values:
        if value:
            return value
        if value is not None and blank is None:
            blank = value
    return blank


def _first_education_record(ctx: RuleContext):
    records = ctx.profile.resume.education
    return records[0] if records else None


def _university(ctx: RuleContext) -> Optional[str]:
    record = _first_education_record(ctx)
    return _first_of(ctx.profile.education.university, record.institution if record else None)


def _degree(ctx: RuleContext) -> Optional[str]:
    record = _first_education_record(ctx)
    return _first_of(ctx.profile.education.degree, record.degree if record else None)


def _gpa(ctx: RuleContext) -> Optional[str]:
    record = _first_education_record(ctx)
    return _first_of(ctx.profile.education.gpa, record.gpa if record else None)


def _major(ctx: RuleContext) -> Optional[str]:
    degree = ctx.profile.education.degree or ""
    from_degree = degree.split(" in ", 1)[1].strip() if " in " in degree else None
    return _first_of(ctx.profile.education.major, from_degree)


def _yes_no(value: Optional[bool]) -> Optional[str]:
    if value is None:
        return None
    return "Yes" if value else "No"


def _policy_reviewed(ctx: RuleContext) -> Optional[str]:
    return "Yes" if ctx.profile.application.certify_truthful else None


def _signature(ctx: RuleContext) -> Optional[str]:
    full_name = ctx.profile.identity.full_name
    if not full_name:
        return None
    today = ctx.today
    return f"{full_name} - {today:%B} {today.day}, {today.year}"


def _checked(ctx: RuleContext) -> bool:
    return True


def _unchecked(ctx: RuleContext) -> bool:
    return False


_CHECKBOX = [FieldKind.CHECKBOX]
_SHORT_ANSWER = [FieldKind.INPUT, FieldKind.SELECT, FieldKind.RADIO]


# =============================================================================
# Hardcoded rules (label + placeholder + name + id)
# =============================================================================

HARDCODED_RULES = (
    # Checkboxes take precedence over the text rules they overlap with
    _rule("consent_checkbox", r"agree|consent|certify|acknowledge|confirm|accept|terms|privacy",
          _checked, kinds=_CHECKBOX),
    _rule("current_role_checkbox", r"current.*role|currently.*work|present",
          _unchecked, kinds=_CHECKBOX),

    # Personal details
    _rule("first_name", r"first.*name|given.*name|forename",
          lambda c: c.profile.identity.first_name),
    _rule("last_name", r"last.*name|family.*name|surname",
          lambda c: c.profile.identity.last_name),
    _rule("full_name", r"full.*name|your.*name|legal.*name",
          lambda c: c.profile.identity.full_name, exclude=r"date|signature"),
    _rule("email", r"email",
          lambda c: c.profile.contact.email),
    _rule("phone", r"phone|mobile|\bcell\b|telephone",
          lambda c: c.profile.contact.phone),
    _rule("address", r"address|street",
          lambda c: c.profile.contact.address, exclude=r"email"),
    _rule("city", r"\bcity\b|location.*city",
          lambda c: c.profile.contact.city),
    _rule("state", r"\bstate\b|province|region",
          lambda c: c.profile.contact.state,
          exclude=r"united states|please state|state\s+(your|the|why|how|what|whether|if|any)\b", kinds=_SHORT_ANSWER),
    _rule("zip_code", r"\bzip\b|postal.*code",
          lambda c: c.profile.contact.zip_code),
    _rule("country", r"\bcountry\b",
          lambda c: c.profile.contact.country),
    _rule("linkedin", r"linkedin",
          lambda c: c.profile.contact.linkedin),
    _rule("github", r"github",
          lambda c: c.profile.contact.github),
    _rule("portfolio", r"portfolio|website|personal.*site",
          lambda c: c.profile.contact.portfolio),

    # Education
    _rule("university", r"university|school|college|institution|alma.*mater", _university),
    _rule("degree", r"\bdegree\b", _degree),
    _rule("gpa", r"gpa|grade.*point", _gpa),
    _rule("major", r"major|field.*study|discipline|concentration", _major),
    _rule("grad_year", r"graduation.*year|grad.*year|expected.*graduation",
          lambda c: c.profile.education.grad_year),
    _rule("grad_month", r"graduation.*month|grad.*month",
          lambda c: c.profile.education.grad_month),

    # Voluntary self-identification
    _rule("gender", r"\bgender\b|\bsex\b",
          lambda c: c.profile.demographics.gender, exclude=r"pronoun"),
    _rule("race", r"\brace\b|ethnicity",
          lambda c: c.profile.demographics.race, exclude=r"hispanic"),
    _rule("veteran", r"veteran",
          lambda c: c.profile.demographics.veteran),
    _rule("disability", r"disabilit",
          lambda c: c.profile.demographics.disability),
    _rule("hispanic_latino", r"hispanic|latino",
          lambda c: c.profile.demographics.hispanic_latino),

    # Work authorization
    _rule("work_auth", r"work.*auth|authorized.*work|legally.*work|eligible.*work|lawfully.*work",
          lambda c: c.profile.authorization.work_auth),
    _rule("sponsorship", r"sponsor",
          lambda c: c.profile.authorization.sponsorship),
    _rule("relocation", r"relocat|willing.*move",
          lambda c: c.profile.authorization.relocation),
    _rule("proximity", r"commut|proximity|reside.*near|live.*near|based.*in",
          lambda c: c.profile.authorization.proximity_to_office),

    # Employment history
    _rule("former_employee",
          r"former.*employee|previously.*employ|worked.*here.*before|employed.*by.*(before|past)",
          lambda c: c.profile.application.former_employee),
    _rule("contact_employer", r"may.*we.*contact|contact.*(current|your).*employer",
          lambda c: c.profile.application.can_contact_employer),

    # Consent and legal
    _rule("essential_functions", r"perform.*essential.*function|can.*you.*perform|able.*to.*perform",
          lambda c: c.profile.application.can_perform_functions),
    _rule("accommodation", r"reasonable.*accommodation|accommodation.*need|need.*accommodation",
          lambda c: c.profile.application.accommodation_needs),
    _rule("policy_reviewed", r"review.*linked.*document|privacy.*policy|reviewed.*policy",
          _policy_reviewed),
    _rule("signature", r"certify|truthful|accurate|attest|acknowledge.*true|electronic.*signature"
          r"|sign.*name|full.*name.*date", _signature),

    _rule("pronouns", r"pronoun",
          lambda c: c.profile.identity.pronouns),

    # Referral and motivation
    _rule("how_did_you_hear", r"how.*hear|\bsource\b|referral|where.*find|discover.*position|(how|where).*learn.*about",
          lambda c: c.profile.essays.how_did_you_hear),
    _rule("why_excited", r"why.*join|why.*excit|why.*interest|why.*want|interest.*in.*position|motivation",
          lambda c: c.profile.essays.why_excited),
)


# =============================================================================
# Category rules (visible label only, dropdown option matching)
# =============================================================================

CATEGORY_RULES = (
    _rule("gender", r"\bgender\b", lambda c: c.profile.demographics.gender, exclude=r"pronoun"),
    _rule("race", r"\brace\b|ethnicity", lambda c: c.profile.demographics.race, exclude=r"hispanic"),
    _rule("veteran", r"veteran", lambda c: c.profile.demographics.veteran),
    _rule("disability", r"disabilit", lambda c: c.profile.demographics.disability),
    _rule("hispanic_latino", r"hispanic|latino", lambda c: c.profile.demographics.hispanic_latino),
    _rule("degree", r"\bdegree\b", lambda c: c.profile.education.degree),
    _rule("university", r"school|university|institution", lambda c: c.profile.education.university),
    _rule("major", r"discipline|major|field.*study", _major),
    _rule("pronouns", r"pronoun", lambda c: c.profile.identity.pronouns),
    _rule("work_auth", r"work.*auth|authorized", lambda c: c.profile.authorization.work_auth),
    _rule("sponsorship", r"sponsor", lambda c: c.profile.authorization.sponsorship),
    _rule("relocation", r"relocat", lambda c: c.profile.authorization.relocation),
    _rule("proximity", r"commut|proximity",
          lambda c: _first_of(c.profile.authorization.proximity_to_office, c.profile.authorization.relocation)),
    _rule("contact_employer", r"may.*contact|contact.*employer",
          lambda c: c.profile.application.can_contact_employer),
    _rule("essential_functions", r"perform.*function|essential.*function",
          lambda c: c.profile.application.can_perform_functions),
    _rule("policy_reviewed", r"review.*document|privacy.*policy",
          lambda c: _yes_no(c.profile.application.certify_truthful)),
    _rule("former_employee", r"employed.*before|worked.*here|former.*employee",
          lambda c: c.profile.application.former_employee),
    _rule("country", r"country", lambda c: c.profile.contact.country),
)


def category_rule_for(field: FormField) -> Optional[FieldRule]:
    """Category rule matching the field's visible label"""
    return find_rule(CATEGORY_RULES, field.label.lower(), field.kind)


def hardcoded_rule_for(field: FormField) -> Optional[FieldRule]:
    """Hardcoded rule matching the field's combined text"""
    return find_rule(HARDCODED_RULES, field.matching_text(), field.kind)
