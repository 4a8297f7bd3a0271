"""Scan an openspec changes directory and build the source card dataset.

The filesystem is the source of truth for definitions:
- Directory name = card id and slug
- proposal.md YAML frontmatter = epic, priority, column, phase, dates, tags
- Presence of design.md, tasks.md, ... = artifact flags
- specs/<name>/ sub-directories = sub-specs
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, time, timezone
from pathlib import Path
from typing import Any

import yaml

from ..board.exceptions import FrontmatterError, GenerationError
from ..board.models import (
    Artifacts,
    Card,
    Clock,
    ColumnId,
    EpicId,
    Priority,
    SourceDataset,
    SubSpec,
    TaskProgress,
    utc_now,
)
from .dataset import compute_data_version

logger = logging.getLogger(__name__)

SKIPPED_DIRS = {"archive"}

_TITLE_PREFIX = re.compile(r"^(?:Change|Proposal|RFC|Feature|Enhancement):\s*", re.IGNORECASE)
_SLUG_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}-")
_SLUG_VERB = re.compile(
    r"^(add|remove|update|fix|refactor|extract|integrate|unify|enhance)-"
)
_ACRONYMS = re.compile(r"\b(Ui|Api|Aws|Ai|Ml|Iga|Sod|Mcp|Uba|Scim)\b", re.IGNORECASE)


def parse_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Split a markdown document into (frontmatter dict, body)."""
    match = re.match(r"^---\s*\n(.*?)\n---\s*(?:\n|$)", text, re.DOTALL)
    if not match:
        return {}, text
    data = yaml.safe_load(match.group(1)) or {}
    if not isinstance(data, dict):
        return {}, text[match.end():]
    return data, text[match.end():]


def kebab_to_title(kebab: str) -> str:
    return " ".join(w[:1].upper() + w[1:] for w in kebab.split("-"))


def slug_to_title(slug: str) -> str:
    """Human title from a change slug like '2024-01-02-add-scim-api-sync'."""
    s = _SLUG_DATE.sub("", slug)
    s = _SLUG_VERB.sub("", s)
    s = re.sub(r"\b\w", lambda m: m.group(0).upper(), s.replace("-", " "))
    return _ACRONYMS.sub(lambda m: m.group(0).upper(), s)


def extract_title(body: str) -> str | None:
    match = re.search(r"^#\s+(.+)$", body, re.MULTILINE)
    if not match:
        return None
    return _TITLE_PREFIX.sub("", match.group(1).strip())


def _date_part(value: Any) -> str:
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value).split("T")[0]


def _as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return [str(value)]


def validate_frontmatter(fm: dict[str, Any], change_id: str) -> dict[str, Any]:
    """Check required fields and enum values; raise FrontmatterError listing all problems."""
    problems: list[str] = []

    def _check(key: str, allowed: type) -> None:
        value = fm.get(key)
        if not value or value not in [m.value for m in allowed]:
            problems.append(f'invalid or missing {key}: "{value}"')

    _check("epic", EpicId)
    _check("priority", Priority)
    _check("column", ColumnId)
    if not fm.get("createdAt"):
        problems.append("missing createdAt")

    if problems:
        raise FrontmatterError(change_id, problems)

    phase = fm.get("phase")
    return {
        "epic": EpicId(fm["epic"]),
        "priority": Priority(fm["priority"]),
        "column": ColumnId(fm["column"]),
        "phase": str(phase) if phase is not None else None,
        "dependencies": _as_list(fm.get("dependencies")),
        "tags": _as_list(fm.get("tags")),
        "created_at": _date_part(fm["createdAt"]),
        "notes": str(fm.get("notes") or ""),
    }


def detect_artifacts(change_dir: Path) -> Artifacts:
    def exists(*names: str) -> bool:
        return any((change_dir / n).exists() for n in names)

    return Artifacts(
        proposal=exists("proposal.md"),
        design=exists("design.md"),
        work_plan=exists("work-plan.md", "WORK_PLAN.md"),
        test_spec=exists("test-spec.md", "TEST_SPECIFICATION.md"),
        tasks=exists("tasks.md"),
    )


def list_specs(change_dir: Path) -> list[SubSpec]:
    specs_dir = change_dir / "specs"
    if not specs_dir.is_dir():
        return []
    return [
        SubSpec(id=d.name, name=kebab_to_title(d.name), path=f"specs/{d.name}/spec.md")
        for d in sorted(specs_dir.iterdir(), key=lambda p: p.name)
        if d.is_dir()
    ]


def parse_task_progress(change_dir: Path) -> TaskProgress | None:
    tasks_md = change_dir / "tasks.md"
    if not tasks_md.exists():
        return None
    content = tasks_md.read_text(encoding="utf-8")
    done = len(re.findall(r"- \[x\]", content, re.IGNORECASE))
    todo = len(re.findall(r"- \[ \]", content))
    total = done + todo
    return TaskProgress(done=done, total=total) if total else None


def _midnight(day: str) -> datetime:
    return datetime.combine(date.fromisoformat(day), time(), tzinfo=timezone.utc)


def scan_change(change_dir: Path, clock: Clock = utc_now) -> Card | None:
    """Build one card from a change directory. None if it has no proposal.md."""
    change_id = change_dir.name
    proposal = change_dir / "proposal.md"
    if not proposal.exists():
        logger.warning("%s/ has no proposal.md, skipping", change_id)
        return None

    try:
        fm, body = parse_frontmatter(proposal.read_text(encoding="utf-8"))
    except UnicodeDecodeError as e:
        raise FrontmatterError(change_id, [f"proposal.md is not UTF-8: {e}"]) from e
    except yaml.YAMLError as e:
        raise FrontmatterError(change_id, [f"unparseable YAML: {e}"]) from e
    if not fm:
        raise FrontmatterError(change_id, ["proposal.md has no YAML frontmatter"])

    meta = validate_frontmatter(fm, change_id)
    try:
        created_at = _midnight(meta["created_at"])
    except ValueError:
        raise FrontmatterError(
            change_id, [f'invalid createdAt: "{meta["created_at"]}"']
        ) from None
    try:
        progress = parse_task_progress(change_dir)
    except UnicodeDecodeError as e:
        raise FrontmatterError(change_id, [f"tasks.md is not UTF-8: {e}"]) from e

    return Card(
        id=change_id,
        title=extract_title(body) or kebab_to_title(change_id),
        slug=change_id,
        column=meta["column"],
        priority=meta["priority"],
        epic=meta["epic"],
        phase=meta["phase"],
        dependencies=meta["dependencies"],
        artifacts=detect_artifacts(change_dir),
        specs=list_specs(change_dir),
        tags=meta["tags"],
        notes=meta["notes"],
        progress=progress,
        created_at=created_at,
        updated_at=_midnight(clock().date().isoformat()),
    )


def scan_changes(changes_dir: Path, clock: Clock = utc_now) -> SourceDataset:
    """Scan every change directory. Any invalid change fails the whole run."""
    if not changes_dir.is_dir():
        raise GenerationError([f"openspec path does not exist: {changes_dir}"])

    dirs = sorted(
        d for d in changes_dir.iterdir() if d.is_dir() and d.name not in SKIPPED_DIRS
    )
    logger.info("Found %d spec directories in %s", len(dirs), changes_dir)

    cards: list[Card] = []
    errors: list[str] = []
    for change_dir in dirs:
        try:
            card = scan_change(change_dir, clock)
        except FrontmatterError as e:
            errors.append(str(e))
            continue
        if card is not None:
            cards.append(card)

    if errors:
        raise GenerationError(errors)

    cards.sort(key=lambda c: c.id)
    return SourceDataset(cards=cards, data_version=compute_data_version(cards))
