"""Parsing of free-text fine and jail clauses into numeric ranges.

Fine clauses ("$2,500 - $10,000", "up to $5,000") become a ``ParsedFine`` in
base currency units. Jail clauses ("6 months - 3 years imprisonment") become a
``ParsedJailTime`` in days, with life imprisonment and the death penalty mapped
onto reserved sentinel day counts.

Both parsers evaluate an ordered list of rules and stop at the first match, so
the priority between patterns (range > bounded > single > none) is visible in
the rule tables below. Neither parser raises: text that matches nothing yields
a zero result tagged ``unparsed``, which ``validate`` reports as a warning.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Callable

from .types import (
    DEATH_PENALTY_DAYS,
    DAYS_PER_MONTH,
    DAYS_PER_YEAR,
    LIFE_IMPRISONMENT_DAYS,
    FinePattern,
    ParsedFine,
    ParsedJailTime,
    ParsedPunishment,
    TimeComponent,
    ValidationResult,
)

logger = logging.getLogger(__name__)

DEFAULT_CURRENCY = "USD"
FINE_WARNING_THRESHOLD = 10_000_000

CURRENCY_SYMBOLS: dict[str, str] = {
    "USD": "$",
    "CAD": "CA$",
    "AUD": "A$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "INR": "₹",
}

# Whole digit runs only, at most 15 digits before the decimal point.
_AMOUNT = r"(?<!\d)(\d{1,15}(?!\d)(?:\.\d{1,2})?)"
_NUMBER = r"(?<!\d)(\d{1,15}(?!\d)(?:\.\d+)?)"
_RANGE_SEP = r"(?:[-–—]|\bto\b)"
_UPPER_BOUND = r"\b(?:up to|maximum|max|not more than|not exceeding)\s*(?:of\s+)?"
_LOWER_BOUND = r"\b(?:at least|minimum|min|not less than)\s*(?:of\s+)?"

LIFE_PATTERNS = [
    re.compile(r"life\s+(?:in\s+)?(?:prison|imprisonment|incarceration)"),
    re.compile(r"imprisonment\s+for\s+life"),
    re.compile(r"life\s+sentence"),
    re.compile(r"life\s+without\s+parole"),
    re.compile(r"sentenced?\s+to\s+life"),
]

DEATH_PATTERNS = [
    re.compile(r"death\s+penalty"),
    re.compile(r"capital\s+punishment"),
    re.compile(r"\bexecution\b"),
    re.compile(r"sentenced?\s+to\s+death"),
    re.compile(r"punishable\s+by\s+death"),
]


@dataclass(frozen=True, slots=True)
class FineRule:
    tag: FinePattern
    pattern: re.Pattern[str]
    extract: Callable[[re.Match[str]], tuple[float, float]]


def _range_amounts(match: re.Match[str]) -> tuple[float, float]:
    return float(match.group(1)), float(match.group(2))


def _upper_bound_amount(match: re.Match[str]) -> tuple[float, float]:
    return 0.0, float(match.group(1))


def _lower_bound_amount(match: re.Match[str]) -> tuple[float, float]:
    # Estimation policy: an open-ended minimum is assumed to reach double.
    amount = float(match.group(1))
    return amount, amount * 2


def _single_amount(match: re.Match[str]) -> tuple[float, float]:
    amount = float(match.group(1))
    return amount, amount


def _no_amount(match: re.Match[str]) -> tuple[float, float]:
    return 0.0, 0.0


FINE_RULES: list[FineRule] = [
    FineRule(
        "range",
        re.compile(rf"\$?\s*{_AMOUNT}\s*{_RANGE_SEP}\s*\$?\s*{_AMOUNT}"),
        _range_amounts,
    ),
    FineRule("maximum", re.compile(rf"{_UPPER_BOUND}\$?\s*{_AMOUNT}"), _upper_bound_amount),
    FineRule("minimum", re.compile(rf"{_LOWER_BOUND}\$?\s*{_AMOUNT}"), _lower_bound_amount),
    FineRule("single", re.compile(rf"\$?\s*{_AMOUNT}"), _single_amount),
    FineRule("none", re.compile(r"\b(?:no|without)\s+fine\b"), _no_amount),
]


@dataclass(frozen=True, slots=True)
class DurationRule:
    pattern: re.Pattern[str]
    extract: Callable[[re.Match[str]], TimeComponent]


def _unit_name(raw: str) -> str:
    return raw if raw.endswith("s") else f"{raw}s"


def _mixed_range(match: re.Match[str]) -> TimeComponent:
    return TimeComponent(
        unit=_unit_name(match.group(2)),
        min=float(match.group(1)),
        max=float(match.group(3)),
        pattern="range",
        max_unit=_unit_name(match.group(4)),
    )


def _unit_rules(unit: str) -> list[DurationRule]:
    word = rf"{unit[:-1]}s?\b"

    def unit_range(match: re.Match[str]) -> TimeComponent:
        return TimeComponent(unit, float(match.group(1)), float(match.group(2)), "range")

    def unit_upper(match: re.Match[str]) -> TimeComponent:
        return TimeComponent(unit, 0.0, float(match.group(1)), "maximum")

    # No doubling here, unlike fines: an open-ended jail minimum stays a point value.
    def unit_lower(match: re.Match[str]) -> TimeComponent:
        value = float(match.group(1))
        return TimeComponent(unit, value, value, "minimum")

    def unit_single(match: re.Match[str]) -> TimeComponent:
        value = float(match.group(1))
        return TimeComponent(unit, value, value, "single")

    return [
        DurationRule(re.compile(rf"{_NUMBER}\s*{_RANGE_SEP}\s*{_NUMBER}\s*{word}"), unit_range),
        DurationRule(re.compile(rf"{_UPPER_BOUND}{_NUMBER}\s*{word}"), unit_upper),
        DurationRule(re.compile(rf"{_LOWER_BOUND}{_NUMBER}\s*{word}"), unit_lower),
        DurationRule(re.compile(rf"{_NUMBER}\s*{word}"), unit_single),
    ]


_UNIT_WORD = r"(years?|months?|days?)\b"

DURATION_RULES: list[DurationRule] = [
    DurationRule(
        re.compile(rf"{_NUMBER}\s*{_UNIT_WORD}\s*{_RANGE_SEP}\s*{_NUMBER}\s*{_UNIT_WORD}"),
        _mixed_range,
    ),
    *_unit_rules("years"),
    *_unit_rules("months"),
    *_unit_rules("days"),
]


def _normalize(text: str) -> str:
    return " ".join(text.lower().replace(",", "").split())


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def parse_fine(text: str | None, currency: str = DEFAULT_CURRENCY) -> ParsedFine:
    """Parse a fine clause; the first matching rule in ``FINE_RULES`` wins."""
    if not text or not isinstance(text, str):
        return ParsedFine(original=text or "", currency=currency)

    normalized = _normalize(text)
    for rule in FINE_RULES:
        match = rule.pattern.search(normalized)
        if match:
            low, high = rule.extract(match)
            return ParsedFine(min=low, max=high, pattern=rule.tag, original=text, currency=currency)

    logger.debug(f"No fine pattern recognised in {text!r}")
    return ParsedFine(original=text, currency=currency)


def is_life_imprisonment(text: str) -> bool:
    normalized = _normalize(text)
    return any(pattern.search(normalized) for pattern in LIFE_PATTERNS)


def is_death_penalty(text: str) -> bool:
    normalized = _normalize(text)
    return any(pattern.search(normalized) for pattern in DEATH_PATTERNS)


def extract_time_components(text: str) -> list[TimeComponent]:
    """Collect every duration phrase in ``text``, in rule order."""
    normalized = _normalize(text)
    components: list[TimeComponent] = []
    for rule in DURATION_RULES:
        for match in rule.pattern.finditer(normalized):
            components.append(rule.extract(match))
    return components


def resolve_components(components: list[TimeComponent]) -> tuple[int, int]:
    """Pick the component with the longest converted maximum.

    Components are alternative phrasings of one sentence, so they are never
    summed. The earliest component keeps ties.
    """
    min_days = 0.0
    max_days = 0.0
    for component in components:
        component_max = component.max_days()
        if component_max > max_days:
            min_days = component.min_days()
            max_days = component_max
    return _round_half_up(min_days), _round_half_up(max_days)


def parse_jail_time(text: str | None) -> ParsedJailTime:
    """Parse a jail clause into a day range."""
    if not text or not isinstance(text, str):
        return ParsedJailTime(original=text or "")

    if is_life_imprisonment(text):
        return ParsedJailTime(
            min_days=LIFE_IMPRISONMENT_DAYS,
            max_days=LIFE_IMPRISONMENT_DAYS,
            pattern="life",
            original=text,
        )

    if is_death_penalty(text):
        return ParsedJailTime(
            min_days=DEATH_PENALTY_DAYS,
            max_days=DEATH_PENALTY_DAYS,
            pattern="death",
            original=text,
        )

    components = extract_time_components(text)
    if not components:
        logger.debug(f"No jail duration recognised in {text!r}")
        return ParsedJailTime(original=text)

    min_days, max_days = resolve_components(components)
    return ParsedJailTime(
        min_days=min_days,
        max_days=max_days,
        pattern="parsed",
        components=components,
        original=text,
    )


def parse(
    punishment_text: str | None = "",
    fine_text: str | None = "",
    currency: str = DEFAULT_CURRENCY,
) -> ParsedPunishment:
    """Parse the jail and fine clauses of one offense together."""
    result = ParsedPunishment(fine_text=fine_text or "", jail_text=punishment_text or "")

    if fine_text:
        result.fine = parse_fine(fine_text, currency)
        result.fine_min = result.fine.min
        result.fine_max = result.fine.max

    if punishment_text:
        result.jail = parse_jail_time(punishment_text)
        result.jail_min_days = result.jail.min_days
        result.jail_max_days = result.jail.max_days

    return result


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'' if count == 1 else 's'}"


def format_duration(days: int | float) -> str:
    if days == DEATH_PENALTY_DAYS:
        return "Death Penalty"
    if days >= LIFE_IMPRISONMENT_DAYS:
        return "Life Imprisonment"

    total = max(0, int(days))
    years, remainder = divmod(total, DAYS_PER_YEAR)
    months, remaining_days = divmod(remainder, DAYS_PER_MONTH)

    parts = []
    if years:
        parts.append(_plural(years, "year"))
    if months:
        parts.append(_plural(months, "month"))
    if remaining_days:
        parts.append(_plural(remaining_days, "day"))

    return " ".join(parts) if parts else _plural(0, "day")


def format_currency(amount: float, currency_code: str = DEFAULT_CURRENCY) -> str:
    code = (currency_code or DEFAULT_CURRENCY).upper()
    whole = _round_half_up(abs(amount))
    sign = "-" if amount < 0 and whole else ""
    symbol = CURRENCY_SYMBOLS.get(code)
    if symbol is None:
        return f"{sign}{code} {whole:,}"
    return f"{sign}{symbol}{whole:,}"


def severity_score(parsed: ParsedPunishment) -> int:
    """Synthetic 0-1000 ranking metric; not a measure of legal severity."""
    score = 0.0

    if parsed.fine_max > 0:
        score += min(200.0, parsed.fine_max / 1000)

    if parsed.jail_max_days == DEATH_PENALTY_DAYS:
        score += 1000
    elif parsed.jail_max_days >= LIFE_IMPRISONMENT_DAYS:
        score += 800
    else:
        score += min(800.0, parsed.jail_max_days / 100)

    return min(1000, _round_half_up(score))


def validate(
    parsed: ParsedPunishment,
    fine_threshold: float = FINE_WARNING_THRESHOLD,
) -> ValidationResult:
    issues: list[str] = []
    warnings: list[str] = []

    if parsed.fine_min > parsed.fine_max:
        issues.append("Fine minimum is greater than maximum")
    if parsed.jail_min_days > parsed.jail_max_days:
        issues.append("Jail time minimum is greater than maximum")

    if parsed.fine_max > fine_threshold:
        warnings.append("Fine amount seems unusually high")

    if parsed.jail_max_days > LIFE_IMPRISONMENT_DAYS and parsed.jail_max_days != DEATH_PENALTY_DAYS:
        warnings.append("Jail time exceeds 100 years (consider life imprisonment)")

    explicit_no_fine = parsed.fine is not None and parsed.fine.pattern == "none"
    if parsed.fine_text and parsed.fine_max == 0 and not explicit_no_fine:
        warnings.append("Fine text exists but no amount was parsed")
    if parsed.jail_text and parsed.jail_max_days == 0:
        warnings.append("Jail text exists but no time was parsed")

    return ValidationResult(is_valid=not issues, issues=issues, warnings=warnings)
