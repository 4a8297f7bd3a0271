"""The Card Store owned by one running process."""

from __future__ import annotations

import logging
from typing import Any

from . import mutations, query
from .models import BoardState, Card, Clock, ColumnId, EpicId, Priority, SourceDataset, utc_now
from .persistence import SnapshotStore, export_snapshot
from .reconcile import reconcile

logger = logging.getLogger(__name__)


class BoardSession:
    """Single-writer board state: reconcile on open, save after every change.

    Filters are session state so every read goes through the same view.
    """

    def __init__(
        self,
        dataset: SourceDataset,
        store: SnapshotStore | None,
        cards: list[Card],
        clock: Clock = utc_now,
    ):
        self.dataset = dataset
        self.store = store
        self.clock = clock
        self._cards = list(cards)
        self.search_query = ""
        self.priority_filter: Priority | str = query.ALL
        self.epic_filter: EpicId | str = query.ALL

    @classmethod
    def open(
        cls,
        dataset: SourceDataset,
        store: SnapshotStore | None = None,
        clock: Clock = utc_now,
    ) -> BoardSession:
        persisted = store.load() if store is not None else None
        cards = reconcile(dataset.cards, persisted, clock, dataset.data_version)
        session = cls(dataset, store, cards, clock)
        session._save()
        return session

    # -- Reads --

    @property
    def cards(self) -> list[Card]:
        return list(self._cards)

    def get_card(self, card_id: str) -> Card | None:
        for card in self._cards:
            if card.id == card_id:
                return card
        return None

    def visible_cards(self) -> list[Card]:
        return query.view(
            self._cards, self.search_query, self.priority_filter, self.epic_filter
        )

    def column_cards(self, column_id: ColumnId | str) -> list[Card]:
        return query.column_cards(
            self._cards,
            column_id,
            self.search_query,
            self.priority_filter,
            self.epic_filter,
        )

    def blocked_by(self, card_id: str) -> list[Card]:
        card = self.get_card(card_id)
        if card is None:
            return []
        return query.unresolved_dependencies(card, self._cards)

    def clear_filters(self) -> None:
        self.search_query = ""
        self.priority_filter = query.ALL
        self.epic_filter = query.ALL

    # -- Writes --

    def move_card(self, card_id: str, to_column: ColumnId | str) -> None:
        self._replace(mutations.move_card(self._cards, card_id, to_column, self.clock))

    def update_card(self, card_id: str, **fields: Any) -> None:
        self._replace(mutations.update_card(self._cards, card_id, fields, self.clock))

    def reorder_within_column(self, column_id: ColumnId | str, ordered_ids: list[str]) -> None:
        self._replace(mutations.reorder_within_column(self._cards, column_id, ordered_ids))

    def reset(self) -> None:
        """Discard user state and return to the source dataset."""
        self._replace(list(self.dataset.cards))

    def apply_import(self, state: BoardState, merge: bool = False) -> None:
        """Replace the store with an imported snapshot.

        With ``merge`` the snapshot is treated like a saved one and reconciled
        against the source dataset instead of taken verbatim.
        """
        if merge:
            cards = reconcile(
                self.dataset.cards, state, self.clock, self.dataset.data_version
            )
        else:
            cards = list(state.cards)
        self._replace(cards)

    def export(self) -> bytes:
        return export_snapshot(self._cards, self.dataset.data_version, self.clock)

    def _replace(self, cards: list[Card]) -> None:
        self._cards = cards
        self._save()

    def _save(self) -> None:
        if self.store is None:
            return
        try:
            self.store.save(self._cards, self.dataset.data_version, self.clock)
        except OSError as e:
            logger.error("Failed to save board state to %s: %s", self.store.path, e)
