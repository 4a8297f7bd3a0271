"""Shared test configuration."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from openspec_board.board.models import (
    Artifacts,
    Card,
    ColumnId,
    EpicId,
    Priority,
    SourceDataset,
    SubSpec,
)

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


class TickingClock:
    """Deterministic clock: every call returns a later time than the last."""

    def __init__(self, start: datetime = T0, step: timedelta = timedelta(minutes=1)):
        self.now = start
        self.step = step
        self.calls = 0

    def __call__(self) -> datetime:
        self.now += self.step
        self.calls += 1
        return self.now


def _make_card(card_id: str, **overrides) -> Card:
    card = Card(
        id=card_id,
        title=card_id.replace("-", " ").title(),
        slug=card_id,
        column=ColumnId.BACKLOG,
        priority=Priority.MEDIUM,
        epic=EpicId.INFRASTRUCTURE,
        phase=None,
        dependencies=[],
        artifacts=Artifacts(proposal=True),
        specs=[],
        tags=[],
        notes="",
        created_at=datetime(2025, 12, 1, tzinfo=timezone.utc),
        updated_at=datetime(2025, 12, 2, tzinfo=timezone.utc),
    )
    return replace(card, **overrides)


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def make_card():
    return _make_card


@pytest.fixture
def sample_cards() -> list[Card]:
    """Five cards spanning three epics, four priorities and three columns."""
    return [
        _make_card(
            "add-scim-provisioning",
            title="SCIM Provisioning",
            priority=Priority.HIGH,
            epic=EpicId.SECURITY_FOUNDATION,
            phase="Phase 4",
            tags=["identity", "sync"],
            specs=[SubSpec("scim-api", "Scim Api", "specs/scim-api/spec.md")],
            column=ColumnId.DESIGN,
        ),
        _make_card(
            "add-audit-log-export",
            title="Audit Log Export",
            priority=Priority.CRITICAL,
            epic=EpicId.SECURITY_FOUNDATION,
            phase="Phase 4",
            tags=["compliance"],
            column=ColumnId.DONE,
        ),
        _make_card(
            "add-anomaly-alerts",
            title="Anomaly Alerts",
            priority=Priority.HIGH,
            epic=EpicId.DETECTION_VISIBILITY,
            phase="Phase 5",
            tags=["alerting"],
            dependencies=["add-audit-log-export", "add-scim-provisioning"],
            column=ColumnId.BACKLOG,
        ),
        _make_card(
            "refactor-config-loader",
            title="Config Loader Cleanup",
            priority=Priority.LOW,
            epic=EpicId.REFACTORING,
            column=ColumnId.BACKLOG,
        ),
        _make_card(
            "add-sso-hardening",
            title="SSO Hardening",
            priority=Priority.MEDIUM,
            epic=EpicId.SECURITY_FOUNDATION,
            tags=["identity"],
            dependencies=["missing-change"],
            column=ColumnId.IN_PROGRESS,
        ),
    ]


@pytest.fixture
def dataset(sample_cards) -> SourceDataset:
    return SourceDataset(cards=sample_cards, data_version=123456)
