"""Penalty aggregation over a selection of offenses."""

from __future__ import annotations

import logging

from .punishment import DEFAULT_CURRENCY, format_duration, parse
from .types import (
    DEATH_PENALTY_DAYS,
    AggregatedPenalty,
    AggregatorState,
    BreakdownEntry,
    OffenseRecord,
)

logger = logging.getLogger(__name__)


class EmptySelectionError(ValueError):
    """Raised when totals are requested with no offense selected."""

    def __init__(self, message: str = "Select at least one offense to calculate."):
        super().__init__(message)


class PenaltyAggregator:
    """Selection set plus the totals computed from it.

    One instance backs one calculation session. Instances hold plain mutable
    state with no locking; callers serialise access.
    """

    def __init__(self, currency: str = DEFAULT_CURRENCY):
        self.currency = currency
        self._selected: dict[str, OffenseRecord] = {}
        self._snapshot: AggregatedPenalty | None = None

    def __len__(self) -> int:
        return len(self._selected)

    @property
    def state(self) -> AggregatorState:
        if self._snapshot is not None:
            return "computed"
        if self._selected:
            return "selecting"
        return "empty"

    @property
    def selected_ids(self) -> list[str]:
        return list(self._selected)

    @property
    def snapshot(self) -> AggregatedPenalty | None:
        return self._snapshot

    def is_selected(self, offense_id: str) -> bool:
        return offense_id in self._selected

    def toggle_offense(self, offense_id: str, offense: OffenseRecord) -> bool:
        """Select ``offense`` or, when already selected, deselect it.

        Returns True when the offense is selected afterwards.
        """
        self._snapshot = None
        if offense_id in self._selected:
            del self._selected[offense_id]
            return False
        self._selected[offense_id] = offense
        return True

    def remove_offense(self, offense_id: str) -> None:
        if offense_id in self._selected:
            del self._selected[offense_id]
            self._snapshot = None

    def clear(self) -> None:
        self._selected.clear()
        self._snapshot = None

    def compute(self) -> AggregatedPenalty:
        if not self._selected:
            raise EmptySelectionError()

        total_fine_min = 0.0
        total_fine_max = 0.0
        total_jail_min = 0
        total_jail_max = 0
        breakdown: list[BreakdownEntry] = []

        for offense_id, offense in self._selected.items():
            parsed = parse(offense.punishment_text, offense.fine_text, self.currency)

            total_fine_min += parsed.fine_min
            total_fine_max += parsed.fine_max
            total_jail_min += parsed.jail_min_days
            total_jail_max += parsed.jail_max_days

            breakdown.append(
                BreakdownEntry(
                    offense_id=offense_id,
                    code=offense.code,
                    title=offense.title,
                    article_title=offense.article_title,
                    fine_min=parsed.fine_min,
                    fine_max=parsed.fine_max,
                    jail_min_days=parsed.jail_min_days,
                    jail_max_days=parsed.jail_max_days,
                    fine_text=parsed.fine_text,
                    jail_text=parsed.jail_text,
                )
            )

        self._snapshot = AggregatedPenalty(
            selected_offense_ids=tuple(self._selected),
            total_fine_min=total_fine_min,
            total_fine_max=total_fine_max,
            total_jail_min_days=total_jail_min,
            total_jail_max_days=total_jail_max,
            breakdown=tuple(breakdown),
        )
        logger.info(
            f"Computed totals for {len(breakdown)} offenses: "
            f"fine {total_fine_min}-{total_fine_max}, jail {total_jail_min}-{total_jail_max} days"
        )
        return self._snapshot


def aggregate(offenses: list[OffenseRecord], currency: str = DEFAULT_CURRENCY) -> AggregatedPenalty:
    """Select every offense once, in order, and compute totals."""
    aggregator = PenaltyAggregator(currency=currency)
    for offense in offenses:
        if not aggregator.is_selected(offense.offense_id):
            aggregator.toggle_offense(offense.offense_id, offense)
    return aggregator.compute()


def format_jail_total(snapshot: AggregatedPenalty) -> str:
    """Display text for the summed jail range.

    Sentinel sums such as death plus 30 days would otherwise read as life
    imprisonment, so any death sentence in the selection shows as death.
    """
    if snapshot.includes_death_penalty:
        return format_duration(DEATH_PENALTY_DAYS)
    low = format_duration(snapshot.total_jail_min_days)
    high = format_duration(snapshot.total_jail_max_days)
    return low if low == high else f"{low} - {high}"
