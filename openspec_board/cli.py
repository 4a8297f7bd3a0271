"""CLI entry point for the change-proposal board.

Usage:
  python -m openspec_board generate [--changes-dir PATH] [--dataset PATH]
  python -m openspec_board status
  python -m openspec_board list [--search Q] [--priority P] [--epic E] [--column C]
  python -m openspec_board show <card_id>
  python -m openspec_board move <card_id> <column>
  python -m openspec_board update <card_id> [--priority P] [--notes TEXT] [--column C]
  python -m openspec_board reorder <column> <card_id>...
  python -m openspec_board export [--output PATH]
  python -m openspec_board import <file> [--merge]
  python -m openspec_board reset
  python -m openspec_board board
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from .board import catalog, query
from .board.exceptions import BoardError, GenerationError, SnapshotImportError
from .board.models import ColumnId, EpicId, Priority
from .board.persistence import SnapshotStore, export_filename, import_file
from .board.session import BoardSession
from .config import BoardConfig

_COLUMN_CHOICES = [c.value for c in ColumnId]
_PRIORITY_CHOICES = [p.value for p in Priority]
_EPIC_CHOICES = [e.value for e in EpicId]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Openspec change-proposal board")
    parser.add_argument("--changes-dir", default=None, help="Openspec changes directory")
    parser.add_argument("--dataset", default=None, help="Generated dataset file")
    parser.add_argument("--state-dir", default=None, help="Directory holding the saved board")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("generate", help="Scan change proposals into the dataset file")
    subparsers.add_parser("status", help="Show column, epic and phase progress")

    list_parser = subparsers.add_parser("list", help="List cards matching filters")
    list_parser.add_argument("--search", default="", help="Search title, tags, specs, epic, phase")
    list_parser.add_argument("--priority", default="all", choices=["all", *_PRIORITY_CHOICES])
    list_parser.add_argument("--epic", default="all", choices=["all", *_EPIC_CHOICES])
    list_parser.add_argument("--column", default=None, choices=_COLUMN_CHOICES)

    show_parser = subparsers.add_parser("show", help="Show one card")
    show_parser.add_argument("card_id")

    move_parser = subparsers.add_parser("move", help="Move a card to another column")
    move_parser.add_argument("card_id")
    move_parser.add_argument("column", choices=_COLUMN_CHOICES)

    update_parser = subparsers.add_parser("update", help="Edit a card's priority, notes or column")
    update_parser.add_argument("card_id")
    update_parser.add_argument("--priority", choices=_PRIORITY_CHOICES)
    update_parser.add_argument("--notes")
    update_parser.add_argument("--column", choices=_COLUMN_CHOICES)

    reorder_parser = subparsers.add_parser("reorder", help="Reorder the cards of a column")
    reorder_parser.add_argument("column", choices=_COLUMN_CHOICES)
    reorder_parser.add_argument("card_ids", nargs="+")

    export_parser = subparsers.add_parser("export", help="Export the board as JSON")
    export_parser.add_argument("--output", default=None, help="Output file (default: dated name)")

    import_parser = subparsers.add_parser("import", help="Import an exported board")
    import_parser.add_argument("file")
    import_parser.add_argument(
        "--merge", action="store_true",
        help="Reconcile against the current dataset instead of replacing the board",
    )

    subparsers.add_parser("reset", help="Discard board edits and reload the dataset")
    subparsers.add_parser("board", help="Open the interactive terminal board")
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    config = _config_from_args(args)

    if args.command == "generate":
        _generate_command(config)
        return
    if args.command == "board":
        from board_tui.app import run_board

        run_board(config)
        return

    session = _open_session(config)
    try:
        if args.command == "status":
            _status_command(session)
        elif args.command == "list":
            _list_command(session, args)
        elif args.command == "show":
            _show_command(session, args.card_id)
        elif args.command == "move":
            _require_card(session, args.card_id)
            session.move_card(args.card_id, args.column)
            print(f"{args.card_id} -> {catalog.get_column(args.column).title}")
        elif args.command == "update":
            _update_command(session, args)
        elif args.command == "reorder":
            _reorder_command(session, args.column, args.card_ids)
        elif args.command == "export":
            output = Path(args.output) if args.output else Path(export_filename(session.clock))
            output.write_bytes(session.export())
            print(f"Exported {len(session.cards)} cards to {output}")
        elif args.command == "import":
            asyncio.run(_import_command(session, Path(args.file), args.merge))
        elif args.command == "reset":
            session.reset()
            print(f"Board reset to dataset version {session.dataset.data_version}")
    except BoardError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def _config_from_args(args) -> BoardConfig:
    config = BoardConfig.from_env()
    if args.changes_dir:
        config.changes_dir = Path(args.changes_dir)
    if args.dataset:
        config.dataset_path = Path(args.dataset)
    if args.state_dir:
        config.state_dir = Path(args.state_dir)
    return config


def _open_session(config: BoardConfig) -> BoardSession:
    from .generation import load_dataset

    if not config.dataset_path.exists():
        print(f"Error: Dataset not found: {config.dataset_path}", file=sys.stderr)
        print("Run 'generate' first to scan the change proposals.", file=sys.stderr)
        sys.exit(1)
    try:
        dataset = load_dataset(config.dataset_path)
    except BoardError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    return BoardSession.open(dataset, SnapshotStore(config.state_dir))


def _require_card(session: BoardSession, card_id: str):
    card = session.get_card(card_id)
    if card is None:
        print(f"Card not found: {card_id}", file=sys.stderr)
        sys.exit(1)
    return card


def _generate_command(config: BoardConfig) -> None:
    from .generation import scan_changes, write_dataset

    print(f"Reading openspec directory: {config.changes_dir}")
    try:
        dataset = scan_changes(config.changes_dir)
    except GenerationError as e:
        print(f"\n{e}", file=sys.stderr)
        sys.exit(1)

    write_dataset(dataset, config.dataset_path)
    print(f"\nGenerated {config.dataset_path}")
    print(f"  Cards: {len(dataset.cards)}")
    print(f"  DATA_VERSION: {dataset.data_version}")


def _status_command(session: BoardSession) -> None:
    cards = session.cards
    print(f"{len(cards)} specs tracked (dataset version {session.dataset.data_version})\n")
    for column in catalog.COLUMNS:
        count = len(query.column_cards(cards, column.id))
        print(f"  {column.icon} {column.title:<12} {count}")

    epics = query.epic_progress(cards)
    if epics:
        print("\nEpics:")
        for ep in epics:
            c = ep.counts
            print(f"  {ep.title:<28} {c.done}/{c.total} done ({c.percent_done}%)")

    phases = query.phase_progress(cards)
    if phases:
        print("\n" + "  ·  ".join(p.summary for p in phases))


def _format_card_line(card, cards) -> str:
    blocked = " [blocked]" if query.is_blocked(card, cards) else ""
    return f"  [{card.priority.value:<8}] {card.id:<40} {card.title}{blocked}"


def _list_command(session: BoardSession, args) -> None:
    session.search_query = args.search
    session.priority_filter = args.priority
    session.epic_filter = args.epic

    columns = [catalog.get_column(args.column)] if args.column else list(catalog.COLUMNS)
    all_cards = session.cards
    for column in columns:
        cards = session.column_cards(column.id)
        if not cards and not args.column:
            continue
        print(f"{column.icon} {column.title} ({len(cards)})")
        for card in cards:
            print(_format_card_line(card, all_cards))


def _show_command(session: BoardSession, card_id: str) -> None:
    card = _require_card(session, card_id)
    epic = catalog.get_epic(card.epic)
    print(f"{card.title}  ({card.id})")
    print(f"  Column:   {catalog.get_column(card.column).title}")
    print(f"  Priority: {card.priority.value}")
    print(f"  Epic:     {epic.title}")
    if card.phase:
        print(f"  Phase:    {card.phase}")
    present = [name for name, flag in card.artifacts.to_dict().items() if flag]
    print(f"  Artifacts: {', '.join(present) or 'none'}")
    if card.progress:
        print(f"  Tasks:    {card.progress.done}/{card.progress.total}")
    if card.specs:
        print(f"  Specs:    {', '.join(s.name for s in card.specs)}")
    if card.tags:
        print(f"  Tags:     {', '.join(card.tags)}")
    if card.dependencies:
        blocked_ids = {c.id for c in session.blocked_by(card.id)}
        deps = [f"{d}{' (open)' if d in blocked_ids else ''}" for d in card.dependencies]
        print(f"  Depends on: {', '.join(deps)}")
    if card.notes:
        print(f"  Notes:    {card.notes}")
    print(f"  Updated:  {card.updated_at.isoformat()}")


def _update_command(session: BoardSession, args) -> None:
    _require_card(session, args.card_id)
    fields = {
        key: getattr(args, key)
        for key in ("priority", "notes", "column")
        if getattr(args, key) is not None
    }
    if not fields:
        print("Nothing to update: pass --priority, --notes or --column", file=sys.stderr)
        sys.exit(1)
    session.update_card(args.card_id, **fields)
    print(f"Updated {args.card_id}: {', '.join(sorted(fields))}")


def _reorder_command(session: BoardSession, column: str, card_ids: list[str]) -> None:
    """Move the named cards to the top of the column; the rest keep their order."""
    column_ids = [c.id for c in query.column_cards(session.cards, column)]
    foreign = [card_id for card_id in card_ids if card_id not in column_ids]
    if foreign:
        title = catalog.get_column(column).title
        print(f"Not in {title}: {', '.join(foreign)}", file=sys.stderr)
        sys.exit(1)

    ordered = list(dict.fromkeys(card_ids))
    ordered += [card_id for card_id in column_ids if card_id not in ordered]
    session.reorder_within_column(column, ordered)
    print(f"Reordered {catalog.get_column(column).title}")


async def _import_command(session: BoardSession, path: Path, merge: bool) -> None:
    try:
        state = await import_file(path)
    except SnapshotImportError as e:
        print(f"Import failed: {e}", file=sys.stderr)
        sys.exit(1)
    session.apply_import(state, merge=merge)
    mode = "merged" if merge else "imported"
    print(f"{len(session.cards)} cards {mode} from {path}")
