"""Local snapshot storage and JSON export/import of the board."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

from .exceptions import InvalidCardError, SnapshotImportError
from .models import SCHEMA_VERSION, BoardState, Card, Clock, utc_now

logger = logging.getLogger(__name__)

STORAGE_KEY = "openspec-board-state"


def _envelope(cards: list[Card], data_version: int, clock: Clock) -> BoardState:
    return BoardState(
        cards=list(cards),
        data_version=data_version,
        version=SCHEMA_VERSION,
        last_saved=clock(),
    )


class SnapshotStore:
    """Single-slot snapshot file. Each save replaces the previous one."""

    def __init__(self, state_dir: Path | str):
        self.path = Path(state_dir) / f"{STORAGE_KEY}.json"

    def load(self) -> BoardState | None:
        """Return the saved snapshot, or None if absent or unreadable."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read board snapshot %s: %s", self.path, e)
            return None
        if not raw.strip():
            return None

        try:
            return BoardState.from_dict(json.loads(raw))
        except (json.JSONDecodeError, InvalidCardError) as e:
            logger.warning("Ignoring malformed board snapshot %s: %s", self.path, e)
            return None

    def save(self, cards: list[Card], data_version: int, clock: Clock = utc_now) -> None:
        state = _envelope(cards, data_version, clock)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(state.to_dict()), encoding="utf-8")
        logger.debug("Saved %d cards to %s", len(cards), self.path)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


def export_snapshot(
    cards: list[Card], data_version: int, clock: Clock = utc_now
) -> bytes:
    """Pretty-printed envelope, same shape as the stored snapshot."""
    state = _envelope(cards, data_version, clock)
    return json.dumps(state.to_dict(), indent=2, ensure_ascii=False).encode("utf-8")


def export_filename(clock: Clock = utc_now) -> str:
    return f"openspec-board-{clock().strftime('%Y-%m-%d')}.json"


def import_snapshot(data: bytes | str) -> BoardState:
    """Parse an exported envelope. Does not reconcile it against the source."""
    try:
        payload = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise SnapshotImportError("Invalid JSON file") from None
    try:
        return BoardState.from_dict(payload)
    except InvalidCardError as e:
        raise SnapshotImportError(f"Invalid board file: {e}") from e


async def import_file(path: Path | str) -> BoardState:
    """Read and parse an export file without blocking the event loop."""
    try:
        data = await asyncio.to_thread(Path(path).read_bytes)
    except OSError as e:
        raise SnapshotImportError("Failed to read file") from e
    return import_snapshot(data)
