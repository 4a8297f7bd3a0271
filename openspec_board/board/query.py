"""Read-only views over the Card Store."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .catalog import EPICS, get_epic
from .models import Card, ColumnId, EpicId, Priority

ALL = "all"


def _filter_value(value: Enum | str | None) -> str | None:
    """Normalize a filter to its wire string, or None for 'no restriction'."""
    if value is None:
        return None
    if isinstance(value, Enum):
        return value.value
    if value in ("", ALL):
        return None
    return value


def matches_search(card: Card, query: str) -> bool:
    """Case-insensitive substring match on title, tags, sub-specs, epic and phase."""
    if not query:
        return True
    q = query.lower()
    if q in card.title.lower():
        return True
    if any(q in tag.lower() for tag in card.tags):
        return True
    if any(q in spec.name.lower() for spec in card.specs):
        return True
    if q in get_epic(card.epic).title.lower():
        return True
    return card.phase is not None and q in card.phase.lower()


def view(
    cards: list[Card],
    search_query: str = "",
    priority_filter: Priority | str = ALL,
    epic_filter: EpicId | str = ALL,
) -> list[Card]:
    """Cards passing search AND priority AND epic filters, in input order."""
    priority = _filter_value(priority_filter)
    epic = _filter_value(epic_filter)
    return [
        c
        for c in cards
        if matches_search(c, search_query)
        and (priority is None or c.priority.value == priority)
        and (epic is None or c.epic.value == epic)
    ]


def column_cards(
    cards: list[Card],
    column_id: ColumnId | str,
    search_query: str = "",
    priority_filter: Priority | str = ALL,
    epic_filter: EpicId | str = ALL,
) -> list[Card]:
    column = ColumnId(column_id)
    return [
        c
        for c in view(cards, search_query, priority_filter, epic_filter)
        if c.column is column
    ]


# --- Dependencies ---


def resolve_dependencies(card: Card, cards: list[Card]) -> list[Card]:
    """Dependency cards that exist in ``cards``; dangling ids are ignored."""
    by_id = {c.id: c for c in cards}
    return [by_id[dep] for dep in card.dependencies if dep in by_id]


def unresolved_dependencies(card: Card, cards: list[Card]) -> list[Card]:
    return [d for d in resolve_dependencies(card, cards) if d.column is not ColumnId.DONE]


def is_blocked(card: Card, cards: list[Card]) -> bool:
    return bool(unresolved_dependencies(card, cards))


# --- Progress summaries ---


@dataclass
class ProgressCounts:
    total: int = 0
    done: int = 0
    in_progress: int = 0
    specced: int = 0

    def add(self, card: Card) -> None:
        self.total += 1
        if card.column is ColumnId.DONE:
            self.done += 1
        elif card.column is ColumnId.IN_PROGRESS:
            self.in_progress += 1
        elif card.column is ColumnId.SPECCED:
            self.specced += 1

    @property
    def percent_done(self) -> int:
        return round(self.done / self.total * 100) if self.total else 0


@dataclass
class EpicProgress:
    epic: EpicId
    title: str
    counts: ProgressCounts


@dataclass
class PhaseProgress:
    phase: str
    counts: ProgressCounts

    @property
    def summary(self) -> str:
        c = self.counts
        parts = []
        if c.done:
            parts.append(f"{c.done}/{c.total} done")
        if c.in_progress:
            parts.append(f"{c.in_progress} active")
        if c.specced:
            parts.append(f"{c.specced} specced")
        if not parts:
            parts.append(f"{c.total} tracked")
        return f"{self.phase}: {', '.join(parts)}"


def epic_progress(cards: list[Card]) -> list[EpicProgress]:
    """Per-epic counts in catalog order, skipping epics with no cards."""
    result = []
    for epic in EPICS:
        counts = ProgressCounts()
        for card in cards:
            if card.epic is epic.id:
                counts.add(card)
        if counts.total:
            result.append(EpicProgress(epic=epic.id, title=epic.title, counts=counts))
    return result


def phase_progress(cards: list[Card]) -> list[PhaseProgress]:
    """Per-phase counts sorted by phase name; cards without a phase are skipped."""
    phases: dict[str, ProgressCounts] = {}
    for card in cards:
        if not card.phase:
            continue
        phases.setdefault(card.phase, ProgressCounts()).add(card)
    return [PhaseProgress(phase=p, counts=phases[p]) for p in sorted(phases)]
