"""Interactive terminal board over a BoardSession."""

from __future__ import annotations

from pathlib import Path

from rich.markup import escape
from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.message import Message
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.widgets import Footer, Header, Input, OptionList, Static
from textual.widgets.option_list import Option

from openspec_board.board import catalog, query
from openspec_board.board.catalog import COLUMNS, EPICS, Column
from openspec_board.board.exceptions import SnapshotImportError
from openspec_board.board.models import Card, Priority
from openspec_board.board.persistence import SnapshotStore, export_filename, import_file
from openspec_board.board.session import BoardSession
from openspec_board.config import BoardConfig

PRIORITY_CYCLE = [Priority.CRITICAL, Priority.HIGH, Priority.MEDIUM, Priority.LOW]
PRIORITY_FILTERS: list[str] = ["all", *(p.value for p in PRIORITY_CYCLE)]
EPIC_FILTERS: list[str] = ["all", *(e.id.value for e in EPICS)]


def _next_in(values: list, current) -> object:
    try:
        return values[(values.index(current) + 1) % len(values)]
    except ValueError:
        return values[0]


def card_markup(card: Card, blocked: bool) -> str:
    epic = catalog.get_epic(card.epic)
    dot = f"[{catalog.priority_color(card.priority)}]●[/]"
    blocked_badge = " [bold red]blocked[/]" if blocked else ""
    progress = ""
    if card.progress:
        progress = f" [dim]{card.progress.done}/{card.progress.total}[/]"
    return (
        f"{dot} {escape(card.title)}{blocked_badge}{progress}\n"
        f"  [{epic.color}]{epic.title}[/]"
    )


def card_detail(card: Card, session: BoardSession) -> str:
    epic = catalog.get_epic(card.epic)
    lines = [
        f"[bold]{escape(card.title)}[/]",
        f"[dim]{card.id}[/]",
        "",
        f"Column:   {catalog.get_column(card.column).title}",
        f"Priority: [{catalog.priority_color(card.priority)}]{card.priority.value}[/]",
        f"Epic:     [{epic.color}]{epic.title}[/]",
    ]
    if card.phase:
        lines.append(f"Phase:    {escape(card.phase)}")
    present = [name for name, flag in card.artifacts.to_dict().items() if flag]
    lines.append(f"Artifacts: {', '.join(present) or 'none'}")
    if card.specs:
        lines.append("")
        lines.append("[bold]Specs[/]")
        lines.extend(f"  {escape(s.name)}" for s in card.specs)
    if card.tags:
        lines.append("")
        lines.append("Tags: " + escape(", ".join(card.tags)))
    deps = query.resolve_dependencies(card, session.cards)
    if deps:
        open_ids = {c.id for c in session.blocked_by(card.id)}
        lines.append("")
        lines.append("[bold]Depends on[/]")
        for dep in deps:
            mark = "[red]○[/]" if dep.id in open_ids else "[green]✓[/]"
            lines.append(f"  {mark} {escape(dep.title)}")
    lines.append("")
    lines.append("[bold]Notes[/]")
    lines.append(escape(card.notes) if card.notes else "[dim](none)[/]")
    return "\n".join(lines)


class CardSelected(Message):
    def __init__(self, card_id: str) -> None:
        super().__init__()
        self.card_id = card_id


class CardWidget(Static):
    can_focus = True

    def __init__(self, card: Card, blocked: bool, col_index: int, **kwargs) -> None:
        super().__init__(card_markup(card, blocked), **kwargs)
        self.card = card
        self.blocked = blocked
        self.col_index = col_index

    def on_focus(self) -> None:
        self.post_message(CardSelected(self.card.id))


class BoardColumn(VerticalScroll):
    def __init__(self, column: Column, cards: list[Card], all_cards: list[Card],
                 col_index: int, **kwargs) -> None:
        super().__init__(**kwargs)
        self.column = column
        self.cards = cards
        self.all_cards = all_cards
        self.col_index = col_index

    def compose(self) -> ComposeResult:
        yield Static(
            f"[bold {self.column.color}]{self.column.icon} {self.column.title}[/] "
            f"[dim]({len(self.cards)})[/]",
            classes="column-header",
        )
        if not self.cards:
            yield Static("[dim]empty[/]", classes="empty-label")
            return
        for card in self.cards:
            yield CardWidget(
                card,
                blocked=query.is_blocked(card, self.all_cards),
                col_index=self.col_index,
                classes="card",
            )


class DetailPanel(VerticalScroll):
    content_text: reactive[str] = reactive("")
    title_text: reactive[str] = reactive("Details")

    def compose(self) -> ComposeResult:
        yield Static("[dim]Select a card to view details[/]", id="detail-content")

    def watch_content_text(self, value: str) -> None:
        if not value:
            return
        self.query_one("#detail-content", Static).update(value)

    def watch_title_text(self, value: str) -> None:
        self.border_title = value


class MoveScreen(ModalScreen[str | None]):
    CSS = """
    MoveScreen { align: center middle; }
    #move-dialog {
        width: 40; height: auto; max-height: 20;
        border: solid $primary; background: $surface; padding: 1 2;
    }
    #move-title { text-align: center; padding-bottom: 1; }
    """

    BINDINGS = [Binding("escape", "cancel", "Cancel")]

    def __init__(self, card: Card) -> None:
        super().__init__()
        self.card = card

    def compose(self) -> ComposeResult:
        with Vertical(id="move-dialog"):
            yield Static(f"[bold]Move {escape(self.card.title)} to:[/]", id="move-title")
            options = []
            for col in COLUMNS:
                if col.id is self.card.column:
                    options.append(Option(f"{col.title} [dim](current)[/]", id=col.id.value, disabled=True))
                else:
                    options.append(Option(f"{col.icon} {col.title}", id=col.id.value))
            yield OptionList(*options, id="move-options")

    @on(OptionList.OptionSelected, "#move-options")
    def _on_option_selected(self, event: OptionList.OptionSelected) -> None:
        target = event.option.id
        if target is None or target == self.card.column.value:
            return
        self.dismiss(target)

    def action_cancel(self) -> None:
        self.dismiss(None)


class TextPromptModal(ModalScreen[str | None]):
    CSS = """
    TextPromptModal { align: center middle; }
    #prompt-dialog {
        width: 60; height: auto; max-height: 12;
        border: solid $primary; background: $surface; padding: 1 2;
    }
    #prompt-title { text-align: center; padding-bottom: 1; }
    #prompt-input { width: 100%; }
    """

    BINDINGS = [Binding("escape", "cancel", "Cancel")]

    def __init__(self, title: str, value: str = "", placeholder: str = "",
                 allow_empty: bool = False) -> None:
        super().__init__()
        self.prompt_title = title
        self.initial_value = value
        self.placeholder = placeholder
        self.allow_empty = allow_empty

    def compose(self) -> ComposeResult:
        with Vertical(id="prompt-dialog"):
            yield Static(f"[bold]{self.prompt_title}[/]", id="prompt-title")
            yield Input(value=self.initial_value, placeholder=self.placeholder, id="prompt-input")

    @on(Input.Submitted, "#prompt-input")
    def _on_submit(self, event: Input.Submitted) -> None:
        value = event.value.strip()
        if value or self.allow_empty:
            self.dismiss(value)

    def action_cancel(self) -> None:
        self.dismiss(None)


class BoardApp(App):
    TITLE = "OpenSpec Tracker"

    CSS = """
    #search {
        display: none;
    }

    #search.visible {
        display: block;
    }

    #main-layout {
        height: 1fr;
        width: 100%;
    }

    #board {
        width: 1fr;
        height: 100%;
    }

    BoardColumn {
        width: 1fr;
        height: 100%;
        border-right: solid $surface-lighten-2;
        padding: 0;
    }

    BoardColumn.active-col {
        border-right: solid $accent;
        border-left: solid $accent;
    }

    .column-header {
        text-align: center;
        padding: 0;
        background: $surface-lighten-1;
        margin-bottom: 1;
        height: 1;
    }

    .empty-label {
        text-align: center;
        color: $text-muted;
    }

    .card {
        padding: 0 1;
        margin: 0 0 1 0;
    }

    CardWidget:focus {
        background: $surface-lighten-1;
    }

    #detail-panel {
        width: 50;
        height: 100%;
        border-left: solid $primary;
        padding: 1 1;
        display: none;
    }

    #detail-panel.visible {
        display: block;
    }

    #status-bar {
        height: 1;
        color: $text-muted;
        padding: 0 1;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("m", "move_card", "Move"),
        Binding("p", "cycle_priority", "Priority"),
        Binding("n", "edit_notes", "Notes"),
        Binding("slash", "search", "Search"),
        Binding("f", "cycle_priority_filter", "Filter P"),
        Binding("e", "cycle_epic_filter", "Filter Epic"),
        Binding("escape", "clear_filters", "Clear", show=False),
        Binding("x", "export", "Export"),
        Binding("i", "import", "Import"),
        Binding("R", "reset", "Reset", show=False),
        Binding("d", "toggle_detail", "Detail"),
        Binding("left", "col_left", "< Col", show=True),
        Binding("right", "col_right", "Col >", show=True),
        Binding("up", "card_up", "", show=False),
        Binding("down", "card_down", "", show=False),
        Binding("question_mark", "help_screen", "?=Help"),
    ]

    def __init__(self, session: BoardSession, export_dir: Path | None = None) -> None:
        super().__init__()
        self.session = session
        self.export_dir = export_dir or Path.cwd()
        self.active_col_index: int = 0

    def compose(self) -> ComposeResult:
        yield Header()
        yield Input(placeholder="Search title, tags, specs, epic, phase", id="search")
        with Horizontal(id="main-layout"):
            with Horizontal(id="board"):
                yield from self._build_columns()
            yield DetailPanel(id="detail-panel")
        yield Static(self._status_text(), id="status-bar")
        yield Footer()

    def on_mount(self) -> None:
        self.sub_title = f"{len(self.session.cards)} specs tracked"
        self._highlight_active_column()

    def _build_columns(self) -> list[BoardColumn]:
        all_cards = self.session.cards
        return [
            BoardColumn(col, self.session.column_cards(col.id), all_cards, col_index=i)
            for i, col in enumerate(COLUMNS)
        ]

    def _status_text(self) -> str:
        s = self.session
        filters = []
        if s.search_query:
            filters.append(f'search "{s.search_query}"')
        if s.priority_filter != query.ALL:
            filters.append(f"priority {s.priority_filter}")
        if s.epic_filter != query.ALL:
            filters.append(f"epic {catalog.get_epic(s.epic_filter).title}")
        phases = "  ·  ".join(p.summary for p in query.phase_progress(s.cards))
        if filters:
            return f"Filter: {', '.join(filters)}    {phases}"
        return phases or "No phases tracked"

    async def rebuild(self, focus_card_id: str | None = None) -> None:
        board = self.query_one("#board", Horizontal)
        await board.remove_children()
        await board.mount_all(self._build_columns())
        self.query_one("#status-bar", Static).update(self._status_text())
        self._highlight_active_column()
        if focus_card_id:
            self._focus_card(focus_card_id)
            self._show_detail(focus_card_id)

    @on(CardSelected)
    def _on_card_selected(self, event: CardSelected) -> None:
        self._show_detail(event.card_id)

    def _show_detail(self, card_id: str) -> None:
        card = self.session.get_card(card_id)
        if card is None:
            return
        panel = self.query_one("#detail-panel", DetailPanel)
        panel.title_text = card.id
        panel.content_text = card_detail(card, self.session)

    # -- Navigation --

    def _get_column_widgets(self) -> list[BoardColumn]:
        return list(self.query(BoardColumn))

    def _highlight_active_column(self) -> None:
        for i, col in enumerate(self._get_column_widgets()):
            col.set_class(i == self.active_col_index, "active-col")

    def _cards_in_column(self, col_index: int) -> list[CardWidget]:
        cols = self._get_column_widgets()
        if col_index < 0 or col_index >= len(cols):
            return []
        return list(cols[col_index].query(CardWidget))

    def _focus_card(self, card_id: str) -> None:
        for widget in self.query(CardWidget):
            if widget.card.id == card_id:
                self.active_col_index = widget.col_index
                self._highlight_active_column()
                widget.focus()
                return

    def _focus_first_in_active_col(self) -> None:
        cards = self._cards_in_column(self.active_col_index)
        if cards:
            cards[0].focus()

    def action_col_left(self) -> None:
        if self.active_col_index > 0:
            self.active_col_index -= 1
            self._highlight_active_column()
            self._focus_first_in_active_col()

    def action_col_right(self) -> None:
        if self.active_col_index < len(COLUMNS) - 1:
            self.active_col_index += 1
            self._highlight_active_column()
            self._focus_first_in_active_col()

    def action_card_up(self) -> None:
        cards = self._cards_in_column(self.active_col_index)
        if not cards:
            return
        try:
            idx = cards.index(self.focused)
            if idx > 0:
                cards[idx - 1].focus()
        except ValueError:
            cards[-1].focus()

    def action_card_down(self) -> None:
        cards = self._cards_in_column(self.active_col_index)
        if not cards:
            return
        try:
            idx = cards.index(self.focused)
            if idx < len(cards) - 1:
                cards[idx + 1].focus()
        except ValueError:
            cards[0].focus()

    def watch_focused(self, focused) -> None:
        if isinstance(focused, CardWidget):
            self.active_col_index = focused.col_index
            self._highlight_active_column()

    def _focused_card(self) -> Card | None:
        focused = self.focused
        if isinstance(focused, CardWidget):
            return self.session.get_card(focused.card.id)
        return None

    # -- Card edits --

    def action_move_card(self) -> None:
        card = self._focused_card()
        if card is None:
            self.notify("Select a card first", severity="warning")
            return

        def _on_move_result(result: str | None) -> None:
            if result:
                self.session.move_card(card.id, result)
                self.notify(f"Moved to {catalog.get_column(result).title}")
                self.call_later(self.rebuild, card.id)

        self.push_screen(MoveScreen(card), callback=_on_move_result)

    async def action_cycle_priority(self) -> None:
        card = self._focused_card()
        if card is None:
            self.notify("Select a card first", severity="warning")
            return
        priority = _next_in(PRIORITY_CYCLE, card.priority)
        self.session.update_card(card.id, priority=priority)
        await self.rebuild(card.id)

    def action_edit_notes(self) -> None:
        card = self._focused_card()
        if card is None:
            self.notify("Select a card first", severity="warning")
            return

        def _on_notes(notes: str | None) -> None:
            if notes is None:
                return
            self.session.update_card(card.id, notes=notes)
            self.call_later(self.rebuild, card.id)

        self.push_screen(
            TextPromptModal(f"Notes for {escape(card.title)}", value=card.notes, allow_empty=True),
            callback=_on_notes,
        )

    # -- Filters --

    def action_search(self) -> None:
        search = self.query_one("#search", Input)
        search.add_class("visible")
        search.focus()

    @on(Input.Changed, "#search")
    async def _on_search_changed(self, event: Input.Changed) -> None:
        self.session.search_query = event.value
        await self.rebuild()

    @on(Input.Submitted, "#search")
    def _on_search_submitted(self, event: Input.Submitted) -> None:
        self._focus_first_in_active_col()

    async def action_cycle_priority_filter(self) -> None:
        self.session.priority_filter = _next_in(PRIORITY_FILTERS, self.session.priority_filter)
        await self.rebuild()

    async def action_cycle_epic_filter(self) -> None:
        self.session.epic_filter = _next_in(EPIC_FILTERS, self.session.epic_filter)
        await self.rebuild()

    async def action_clear_filters(self) -> None:
        self.session.clear_filters()
        search = self.query_one("#search", Input)
        search.value = ""
        search.remove_class("visible")
        await self.rebuild()

    # -- Board file actions --

    def action_export(self) -> None:
        target = self.export_dir / export_filename(self.session.clock)
        try:
            target.write_bytes(self.session.export())
        except OSError as e:
            self.notify(f"Export failed: {e}", severity="error")
            return
        self.notify(f"Exported to {target}")

    def action_import(self) -> None:
        def _on_path(path: str | None) -> None:
            if path:
                self.run_worker(self._import_from(Path(path).expanduser()), exclusive=True)

        self.push_screen(
            TextPromptModal("Import board file", placeholder="path/to/openspec-board.json"),
            callback=_on_path,
        )

    async def _import_from(self, path: Path) -> None:
        try:
            state = await import_file(path)
        except SnapshotImportError as e:
            self.notify(f"Import failed: {e}", severity="error")
            return
        self.session.apply_import(state)
        self.sub_title = f"{len(self.session.cards)} specs tracked"
        self.notify(f"Imported {len(state.cards)} cards")
        await self.rebuild()

    async def action_reset(self) -> None:
        self.session.reset()
        self.notify("Board reset to generated data")
        await self.rebuild()

    def action_toggle_detail(self) -> None:
        self.query_one("#detail-panel", DetailPanel).toggle_class("visible")

    def action_help_screen(self) -> None:
        self.notify(
            "[bold]Keys:[/] m=move  p=priority  n=notes  /=search  f=priority filter  "
            "e=epic filter  Esc=clear  x=export  i=import  R=reset  d=detail  q=quit",
            timeout=6,
        )


def run_board(config: BoardConfig | None = None) -> None:
    """Entry point for openspec-board-tui."""
    from openspec_board.generation import load_dataset

    config = config or BoardConfig.from_env()
    dataset = load_dataset(config.dataset_path)
    session = BoardSession.open(dataset, SnapshotStore(config.state_dir))
    BoardApp(session).run()
