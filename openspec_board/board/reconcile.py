"""Merge the generated source dataset with a persisted board snapshot.

Ownership rule: definition fields (title, tags, dependencies, ...) always come
from the source; user-state fields (column, priority, notes) come from the
snapshot. Output order is source order. Cards missing from the source are
pruned, cards missing from the snapshot enter with their source defaults.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from .models import DEFINITION_FIELDS, BoardState, Card, Clock, utc_now

logger = logging.getLogger(__name__)


def definition_changed(source: Card, persisted: Card) -> bool:
    """True if any definition field differs between the two versions."""
    return any(
        getattr(source, name) != getattr(persisted, name) for name in DEFINITION_FIELDS
    )


def reconcile(
    source: list[Card],
    persisted: BoardState | None,
    clock: Clock = utc_now,
    source_version: int | None = None,
) -> list[Card]:
    """Return the merged Card Store. Pure apart from reading ``clock``."""
    if persisted is None:
        return list(source)

    if source_version is not None and persisted.data_version != source_version:
        logger.info(
            "Source dataset changed since last save (dataVersion %s -> %s)",
            persisted.data_version,
            source_version,
        )

    saved_by_id = {card.id: card for card in persisted.cards}
    merged: list[Card] = []
    now = None

    for card in source:
        saved = saved_by_id.get(card.id)
        if saved is None:
            merged.append(card)
            continue

        if definition_changed(card, saved):
            if now is None:
                now = clock()
            updated_at = now
        else:
            updated_at = saved.updated_at

        merged.append(
            replace(
                card,
                column=saved.column,
                priority=saved.priority,
                notes=saved.notes,
                updated_at=updated_at,
            )
        )

    pruned = len(saved_by_id.keys() - {c.id for c in source})
    if pruned:
        logger.debug("Dropped %d saved cards no longer in the source dataset", pruned)

    return merged
