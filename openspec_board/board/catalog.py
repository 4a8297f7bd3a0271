"""Static reference data: board columns, epics and priority colors."""

from __future__ import annotations

from dataclasses import dataclass

from .models import ColumnId, EpicId, Priority


@dataclass(frozen=True)
class Column:
    id: ColumnId
    title: str
    icon: str
    color: str


@dataclass(frozen=True)
class Epic:
    id: EpicId
    title: str
    color: str
    phase: str | None = None


COLUMNS: tuple[Column, ...] = (
    Column(ColumnId.BACKLOG, "Backlog", "◇", "#6b7280"),
    Column(ColumnId.PROPOSED, "Proposed", "◆", "#8b5cf6"),
    Column(ColumnId.DESIGN, "In Design", "△", "#3b82f6"),
    Column(ColumnId.SPECCED, "Spec'd", "⬡", "#06b6d4"),
    Column(ColumnId.IN_PROGRESS, "In Progress", "▶", "#f59e0b"),
    Column(ColumnId.DONE, "Done", "✓", "#10b981"),
)

EPICS: tuple[Epic, ...] = (
    Epic(EpicId.SECURITY_FOUNDATION, "Security Foundation", "#ef4444", "Phase 4"),
    Epic(EpicId.DETECTION_VISIBILITY, "Detection & Visibility", "#f97316", "Phase 5"),
    Epic(EpicId.PLATFORM_INTELLIGENCE, "Platform Intelligence", "#3b82f6"),
    Epic(EpicId.ADVANCED_SECURITY, "Advanced Security", "#8b5cf6"),
    Epic(EpicId.SUPPLY_CHAIN, "Supply Chain Security", "#ec4899"),
    Epic(EpicId.INFRASTRUCTURE, "Infrastructure & Platform", "#06b6d4"),
    Epic(EpicId.GOVERNANCE, "Governance & Compliance", "#10b981"),
    Epic(EpicId.CONNECTORS, "Connectors", "#eab308"),
    Epic(EpicId.REFACTORING, "Refactoring & Cleanup", "#6b7280"),
)

PRIORITY_COLORS: dict[Priority, str] = {
    Priority.CRITICAL: "#ef4444",
    Priority.HIGH: "#f97316",
    Priority.MEDIUM: "#eab308",
    Priority.LOW: "#6b7280",
}

_COLUMNS_BY_ID = {c.id: c for c in COLUMNS}
_EPICS_BY_ID = {e.id: e for e in EPICS}


def get_column(column_id: ColumnId | str) -> Column:
    """Look up a column. Unknown ids raise KeyError."""
    try:
        return _COLUMNS_BY_ID[ColumnId(column_id)]
    except ValueError:
        raise KeyError(f"Column not found: {column_id}") from None


def get_epic(epic_id: EpicId | str) -> Epic:
    """Look up an epic. Unknown ids raise KeyError."""
    try:
        return _EPICS_BY_ID[EpicId(epic_id)]
    except ValueError:
        raise KeyError(f"Epic not found: {epic_id}") from None


def priority_color(priority: Priority | str) -> str:
    return PRIORITY_COLORS[Priority(priority)]
