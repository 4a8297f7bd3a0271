from .catalog import COLUMNS, EPICS, Column, Epic, get_column, get_epic, priority_color
from .exceptions import (
    BoardError,
    FrontmatterError,
    GenerationError,
    InvalidCardError,
    InvalidFieldError,
    SnapshotImportError,
)
from .models import (
    Artifacts,
    BoardState,
    Card,
    ColumnId,
    EpicId,
    Priority,
    SourceDataset,
    SubSpec,
    TaskProgress,
)
from .mutations import move_card, reorder_within_column, update_card
from .persistence import SnapshotStore, export_snapshot, import_file, import_snapshot
from .query import column_cards, view
from .reconcile import reconcile
from .session import BoardSession

__all__ = [
    "Artifacts",
    "BoardError",
    "BoardSession",
    "BoardState",
    "Card",
    "Column",
    "ColumnId",
    "COLUMNS",
    "Epic",
    "EpicId",
    "EPICS",
    "FrontmatterError",
    "GenerationError",
    "InvalidCardError",
    "InvalidFieldError",
    "Priority",
    "SnapshotImportError",
    "SnapshotStore",
    "SourceDataset",
    "SubSpec",
    "TaskProgress",
    "column_cards",
    "export_snapshot",
    "get_column",
    "get_epic",
    "import_file",
    "import_snapshot",
    "move_card",
    "priority_color",
    "reconcile",
    "reorder_within_column",
    "update_card",
    "view",
]
