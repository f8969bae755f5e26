"""Core types shared by the parser, aggregator and API."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Literal

FinePattern = Literal["range", "maximum", "minimum", "single", "none", "unparsed"]

JailPattern = Literal["life", "death", "parsed", "unparsed"]

ComponentPattern = Literal["range", "maximum", "minimum", "single"]

TimeUnit = Literal["years", "months", "days"]

AggregatorState = Literal["empty", "selecting", "computed"]

# Reserved day counts for qualitative sentences.
LIFE_IMPRISONMENT_DAYS = 36500
DEATH_PENALTY_DAYS = 999999

DAYS_PER_YEAR = 365
DAYS_PER_MONTH = 30

UNIT_DAYS: dict[str, int] = {
    "years": DAYS_PER_YEAR,
    "months": DAYS_PER_MONTH,
    "days": 1,
}


@dataclass(slots=True)
class OffenseRecord:
    offense_id: str
    code: str
    title: str
    punishment_text: str = ""
    fine_text: str = ""
    article_title: str = ""
    language: str = "en"


@dataclass(slots=True)
class ParsedFine:
    min: float = 0.0
    max: float = 0.0
    pattern: FinePattern = "unparsed"
    original: str = ""
    currency: str = "USD"


@dataclass(slots=True)
class TimeComponent:
    """One duration phrase found in a jail clause, before day conversion.

    ``max_unit`` differs from ``unit`` only for mixed-unit ranges such as
    "6 months - 3 years".
    """

    unit: TimeUnit
    min: float
    max: float
    pattern: ComponentPattern = "single"
    max_unit: TimeUnit | None = None

    def min_days(self) -> float:
        return self.min * UNIT_DAYS[self.unit]

    def max_days(self) -> float:
        return self.max * UNIT_DAYS[self.max_unit or self.unit]


@dataclass(slots=True)
class ParsedJailTime:
    min_days: int = 0
    max_days: int = 0
    pattern: JailPattern = "unparsed"
    components: list[TimeComponent] = field(default_factory=list)
    original: str = ""


@dataclass(slots=True)
class ParsedPunishment:
    fine_min: float = 0.0
    fine_max: float = 0.0
    jail_min_days: int = 0
    jail_max_days: int = 0
    fine_text: str = ""
    jail_text: str = ""
    fine: ParsedFine | None = None
    jail: ParsedJailTime | None = None


@dataclass(slots=True)
class ValidationResult:
    is_valid: bool
    issues: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class BreakdownEntry:
    offense_id: str
    code: str
    title: str
    fine_min: float
    fine_max: float
    jail_min_days: int
    jail_max_days: int
    article_title: str = ""
    fine_text: str = ""
    jail_text: str = ""


@dataclass(frozen=True, slots=True)
class AggregatedPenalty:
    selected_offense_ids: tuple[str, ...]
    total_fine_min: float
    total_fine_max: float
    total_jail_min_days: int
    total_jail_max_days: int
    breakdown: tuple[BreakdownEntry, ...] = ()

    @property
    def includes_death_penalty(self) -> bool:
        return any(entry.jail_max_days == DEATH_PENALTY_DAYS for entry in self.breakdown)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["selected_offense_ids"] = list(self.selected_offense_ids)
        data["breakdown"] = [asdict(entry) for entry in self.breakdown]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AggregatedPenalty:
        return cls(
            selected_offense_ids=tuple(data.get("selected_offense_ids") or ()),
            total_fine_min=float(data.get("total_fine_min") or 0),
            total_fine_max=float(data.get("total_fine_max") or 0),
            total_jail_min_days=int(data.get("total_jail_min_days") or 0),
            total_jail_max_days=int(data.get("total_jail_max_days") or 0),
            breakdown=tuple(BreakdownEntry(**entry) for entry in data.get("breakdown") or ()),
        )


@dataclass(slots=True)
class SavedCalculation:
    calculation_id: int
    name: str
    snapshot: AggregatedPenalty
    notes: str = ""
    created_at: str | None = None
