"""Card Store mutations.

Every operation returns a new list; input cards are never modified in place.
Unknown card ids are a silent no-op.
"""

from __future__ import annotations

from dataclasses import fields, replace
from typing import Any

from .exceptions import InvalidFieldError
from .models import Card, Clock, ColumnId, EpicId, Priority, coerce_enum, utc_now

_CARD_FIELDS = frozenset(f.name for f in fields(Card))

_ENUM_FIELDS: dict[str, type] = {
    "column": ColumnId,
    "priority": Priority,
    "epic": EpicId,
}


def move_card(
    cards: list[Card],
    card_id: str,
    to_column: ColumnId | str,
    clock: Clock = utc_now,
) -> list[Card]:
    """Put a card in ``to_column`` and stamp ``updated_at``.

    Stamps even when the card is already in that column.
    """
    column = coerce_enum(ColumnId, to_column, "column")
    now = clock()
    return [
        replace(c, column=column, updated_at=now) if c.id == card_id else c
        for c in cards
    ]


def update_card(
    cards: list[Card],
    card_id: str,
    updates: dict[str, Any],
    clock: Clock = utc_now,
) -> list[Card]:
    """Shallow-merge ``updates`` into a card and stamp ``updated_at``.

    Which fields a caller may edit is the caller's business; this only
    guarantees the result is still a well-formed card.
    """
    changes: dict[str, Any] = {}
    for key, value in updates.items():
        if key not in _CARD_FIELDS:
            raise InvalidFieldError(key, value, "unknown card field")
        if key == "id" and value != card_id:
            raise InvalidFieldError(key, value, "card id is immutable")
        if key in _ENUM_FIELDS:
            value = coerce_enum(_ENUM_FIELDS[key], value, key)
        elif key == "notes" and not isinstance(value, str):
            raise InvalidFieldError(key, value, "notes must be text")
        changes[key] = value

    now = clock()
    changes["updated_at"] = now
    return [replace(c, **changes) if c.id == card_id else c for c in cards]


def reorder_within_column(
    cards: list[Card],
    column_id: ColumnId | str,
    ordered_ids: list[str],
) -> list[Card]:
    """Place the column's cards in ``ordered_ids`` order, then every other card.

    Ids that are unknown, repeated, or belong to another column are skipped.
    Column cards missing from ``ordered_ids`` are dropped, so callers pass the
    complete column. Neither ``column`` nor ``updated_at`` changes.
    """
    column = coerce_enum(ColumnId, column_id, "column")
    in_column = {c.id: c for c in cards if c.column is column}

    placed: list[Card] = []
    seen: set[str] = set()
    for card_id in ordered_ids:
        card = in_column.get(card_id)
        if card is None or card_id in seen:
            continue
        seen.add(card_id)
        placed.append(card)

    return placed + [c for c in cards if c.column is not column]
