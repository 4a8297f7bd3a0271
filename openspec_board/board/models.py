"""Domain models for the change-proposal board."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Callable

from .exceptions import InvalidCardError, InvalidFieldError

SCHEMA_VERSION = 1

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ColumnId(Enum):
    BACKLOG = "backlog"
    PROPOSED = "proposed"
    DESIGN = "design"
    SPECCED = "specced"
    IN_PROGRESS = "in-progress"
    DONE = "done"


class Priority(Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class EpicId(Enum):
    SECURITY_FOUNDATION = "security-foundation"
    DETECTION_VISIBILITY = "detection-visibility"
    PLATFORM_INTELLIGENCE = "platform-intelligence"
    ADVANCED_SECURITY = "advanced-security"
    SUPPLY_CHAIN = "supply-chain"
    INFRASTRUCTURE = "infrastructure"
    GOVERNANCE = "governance"
    CONNECTORS = "connectors"
    REFACTORING = "refactoring"


def coerce_enum(enum_cls: type[Enum], value: Any, field_name: str) -> Any:
    """Return ``value`` as a member of ``enum_cls``, accepting wire strings."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise InvalidFieldError(
            field_name, value, f"invalid value {value!r} (expected one of: {allowed})"
        ) from None


def _expect(value: Any, kind: type | tuple[type, ...], field_name: str) -> Any:
    """Return ``value`` unchanged, or raise TypeError if it is not a ``kind``."""
    if not isinstance(value, kind):
        raise TypeError(f"{field_name} has wrong type {type(value).__name__}")
    return value


def _expect_list(data: dict[str, Any], key: str) -> list:
    return _expect(data.get(key) or [], list, key)


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------

def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 timestamp (or date) into an aware UTC datetime."""
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    else:
        raise ValueError(f"not a timestamp: {value!r}")
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_timestamp(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    if dt.microsecond:
        return dt.strftime("%Y-%m-%dT%H:%M:%S.%fZ")
    return dt.strftime("%Y-%m-%dT%H:%M:%SZ")


# ---------------------------------------------------------------------------
# Card
# ---------------------------------------------------------------------------

@dataclass
class Artifacts:
    proposal: bool = False
    design: bool = False
    work_plan: bool = False
    test_spec: bool = False
    tasks: bool = False

    def to_dict(self) -> dict[str, bool]:
        return {
            "proposal": self.proposal,
            "design": self.design,
            "workPlan": self.work_plan,
            "testSpec": self.test_spec,
            "tasks": self.tasks,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Artifacts:
        _expect(data, dict, "artifacts")
        return cls(
            proposal=bool(data.get("proposal", False)),
            design=bool(data.get("design", False)),
            work_plan=bool(data.get("workPlan", False)),
            test_spec=bool(data.get("testSpec", False)),
            tasks=bool(data.get("tasks", False)),
        )


@dataclass
class SubSpec:
    id: str
    name: str
    path: str


def _sub_spec(data: Any) -> SubSpec:
    _expect(data, dict, "specs entry")
    return SubSpec(
        id=_expect(data["id"], str, "specs.id"),
        name=_expect(data["name"], str, "specs.name"),
        path=_expect(data["path"], str, "specs.path"),
    )


@dataclass
class TaskProgress:
    done: int
    total: int


# Fields regenerated from the source dataset on every load.
DEFINITION_FIELDS = (
    "title",
    "slug",
    "epic",
    "phase",
    "dependencies",
    "artifacts",
    "specs",
    "tags",
    "created_at",
    "progress",
)

# Fields owned by the user and preserved across reconciliation.
USER_FIELDS = ("column", "priority", "notes")


@dataclass
class Card:
    """A change proposal tracked on the board."""

    id: str
    title: str
    slug: str
    column: ColumnId
    priority: Priority
    epic: EpicId
    created_at: datetime
    updated_at: datetime
    phase: str | None = None
    dependencies: list[str] = field(default_factory=list)
    artifacts: Artifacts = field(default_factory=Artifacts)
    specs: list[SubSpec] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    notes: str = ""
    progress: TaskProgress | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "column": self.column.value,
            "priority": self.priority.value,
            "epic": self.epic.value,
            "phase": self.phase,
            "dependencies": list(self.dependencies),
            "artifacts": self.artifacts.to_dict(),
            "specs": [{"id": s.id, "name": s.name, "path": s.path} for s in self.specs],
            "tags": list(self.tags),
            "notes": self.notes,
            "progress": (
                {"done": self.progress.done, "total": self.progress.total}
                if self.progress is not None
                else None
            ),
            "createdAt": format_timestamp(self.created_at),
            "updatedAt": format_timestamp(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Card:
        if not isinstance(data, dict):
            raise InvalidCardError(None, f"expected an object, got {type(data).__name__}")
        card_id = data.get("id")
        if not isinstance(card_id, str) or not card_id:
            raise InvalidCardError(None, "missing id")

        try:
            progress = _expect(data.get("progress"), (dict, type(None)), "progress")
            return cls(
                id=card_id,
                title=str(data["title"]),
                slug=str(data.get("slug") or card_id),
                column=coerce_enum(ColumnId, data["column"], "column"),
                priority=coerce_enum(Priority, data["priority"], "priority"),
                epic=coerce_enum(EpicId, data["epic"], "epic"),
                phase=_expect(data.get("phase"), (str, type(None)), "phase"),
                dependencies=[str(d) for d in _expect_list(data, "dependencies")],
                artifacts=Artifacts.from_dict(
                    _expect(data.get("artifacts") or {}, dict, "artifacts")
                ),
                specs=[_sub_spec(s) for s in _expect_list(data, "specs")],
                tags=[str(t) for t in _expect_list(data, "tags")],
                notes=_expect(data.get("notes") or "", str, "notes"),
                progress=(
                    TaskProgress(done=int(progress["done"]), total=int(progress["total"]))
                    if progress
                    else None
                ),
                created_at=parse_timestamp(data["createdAt"]),
                updated_at=parse_timestamp(data["updatedAt"]),
            )
        except KeyError as e:
            raise InvalidCardError(card_id, f"missing field {e.args[0]}") from None
        except (TypeError, ValueError) as e:
            raise InvalidCardError(card_id, str(e)) from None


# ---------------------------------------------------------------------------
# Envelopes
# ---------------------------------------------------------------------------

@dataclass
class SourceDataset:
    """Generated, authoritative card definitions tagged with a fingerprint."""

    cards: list[Card]
    data_version: int


@dataclass
class BoardState:
    """Persisted/exported envelope around a Card Store snapshot."""

    cards: list[Card]
    data_version: int
    version: int = SCHEMA_VERSION
    last_saved: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "cards": [c.to_dict() for c in self.cards],
            "version": self.version,
            "dataVersion": self.data_version,
            "lastSaved": format_timestamp(self.last_saved) if self.last_saved else None,
        }

    @classmethod
    def from_dict(cls, data: Any) -> BoardState:
        if not isinstance(data, dict):
            raise InvalidCardError(None, "board state must be an object")
        raw_cards = data.get("cards")
        if not isinstance(raw_cards, list):
            raise InvalidCardError(None, "board state has no cards list")
        last_saved = data.get("lastSaved")
        try:
            return cls(
                cards=[Card.from_dict(c) for c in raw_cards],
                data_version=int(data.get("dataVersion") or 0),
                version=int(data.get("version") or SCHEMA_VERSION),
                last_saved=parse_timestamp(last_saved) if last_saved else None,
            )
        except InvalidCardError:
            raise
        except (TypeError, ValueError) as e:
            raise InvalidCardError(None, str(e)) from None
