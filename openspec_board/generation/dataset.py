"""Source dataset file format and its content fingerprint."""

from __future__ import annotations

import hashlib
import json
from pathlib import Path

from ..board.exceptions import InvalidCardError
from ..board.models import Card, SourceDataset


def _fingerprint_payload(card: Card) -> dict:
    data = card.to_dict()
    data.pop("updatedAt")
    return data


def compute_data_version(cards: list[Card]) -> int:
    """Six-digit fingerprint of the card list; any content change changes it.

    ``updatedAt`` is excluded so regenerating unchanged proposals on another
    day yields the same version.
    """
    canonical = json.dumps(
        [_fingerprint_payload(c) for c in cards],
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()
    return int(digest[:8], 16) % 1_000_000


def write_dataset(dataset: SourceDataset, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "dataVersion": dataset.data_version,
        "cards": [c.to_dict() for c in dataset.cards],
    }
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


def load_dataset(path: Path) -> SourceDataset:
    """Read a generated dataset file. Raises InvalidCardError on a bad file."""
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise InvalidCardError(None, f"dataset {path} is not valid JSON: {e}") from None
    if not isinstance(payload, dict) or not isinstance(payload.get("cards"), list):
        raise InvalidCardError(None, f"dataset {path} has no cards list")
    cards = [Card.from_dict(c) for c in payload["cards"]]
    return SourceDataset(cards=cards, data_version=int(payload.get("dataVersion", 0)))
