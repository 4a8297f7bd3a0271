"""Tests for filtered views, dependency resolution and progress summaries."""

import pytest

from openspec_board.board.models import ColumnId, EpicId, Priority
from openspec_board.board.query import (
    column_cards,
    epic_progress,
    is_blocked,
    matches_search,
    phase_progress,
    resolve_dependencies,
    unresolved_dependencies,
    view,
)


def _ids(cards):
    return [c.id for c in cards]


class TestSearch:
    def test_empty_query_matches_everything(self, sample_cards):
        assert all(matches_search(c, "") for c in sample_cards)

    @pytest.mark.parametrize(
        "query,expected",
        [
            ("audit", ["add-audit-log-export"]),            # title
            ("IDENTITY", ["add-scim-provisioning", "add-sso-hardening"]),  # tag, case-insensitive
            ("scim api", ["add-scim-provisioning"]),        # sub-spec name
            ("refactoring &", ["refactor-config-loader"]),  # epic title
            ("phase 5", ["add-anomaly-alerts"]),            # phase
        ],
    )
    def test_matches_each_field(self, sample_cards, query, expected):
        assert _ids(view(sample_cards, query)) == expected

    def test_no_match(self, sample_cards):
        assert view(sample_cards, "zzz") == []


class TestViewFilters:
    def test_all_filters_are_no_restriction(self, sample_cards):
        assert view(sample_cards, "", "all", "all") == sample_cards

    def test_priority_filter(self, sample_cards):
        assert _ids(view(sample_cards, priority_filter="high")) == [
            "add-scim-provisioning", "add-anomaly-alerts",
        ]

    def test_epic_filter_accepts_enum(self, sample_cards):
        assert _ids(view(sample_cards, epic_filter=EpicId.REFACTORING)) == ["refactor-config-loader"]

    def test_conjunction_of_all_three(self, sample_cards):
        result = view(sample_cards, "identity", "high", "security-foundation")
        assert _ids(result) == ["add-scim-provisioning"]

    def test_each_filter_restricts(self, sample_cards):
        # Dropping one predicate at a time widens the result.
        assert _ids(view(sample_cards, "", "high", "security-foundation")) == ["add-scim-provisioning"]
        assert _ids(view(sample_cards, "identity", "all", "security-foundation")) == [
            "add-scim-provisioning", "add-sso-hardening",
        ]
        assert _ids(view(sample_cards, "identity", Priority.HIGH, "all")) == ["add-scim-provisioning"]
        assert _ids(view(sample_cards, "", "all", "security-foundation")) == [
            "add-scim-provisioning", "add-audit-log-export", "add-sso-hardening",
        ]

    def test_preserves_input_order(self, sample_cards):
        reversed_cards = list(reversed(sample_cards))
        assert view(reversed_cards, "", "all", "security-foundation") == [
            c for c in reversed_cards if c.epic is EpicId.SECURITY_FOUNDATION
        ]


class TestColumnCards:
    def test_restricts_to_column(self, sample_cards):
        assert _ids(column_cards(sample_cards, ColumnId.BACKLOG)) == [
            "add-anomaly-alerts", "refactor-config-loader",
        ]

    def test_applies_filters(self, sample_cards):
        assert _ids(column_cards(sample_cards, "backlog", priority_filter="low")) == [
            "refactor-config-loader",
        ]

    def test_empty_column(self, sample_cards):
        assert column_cards(sample_cards, ColumnId.SPECCED) == []


class TestDependencies:
    def test_resolve_skips_dangling(self, sample_cards):
        sso = sample_cards[4]
        assert resolve_dependencies(sso, sample_cards) == []
        assert not is_blocked(sso, sample_cards)

    def test_unresolved_excludes_done(self, sample_cards):
        alerts = sample_cards[2]
        assert _ids(resolve_dependencies(alerts, sample_cards)) == [
            "add-audit-log-export", "add-scim-provisioning",
        ]
        assert _ids(unresolved_dependencies(alerts, sample_cards)) == ["add-scim-provisioning"]
        assert is_blocked(alerts, sample_cards)


class TestProgress:
    def test_epic_progress_in_catalog_order(self, sample_cards):
        result = epic_progress(sample_cards)
        assert [e.epic for e in result] == [
            EpicId.SECURITY_FOUNDATION, EpicId.DETECTION_VISIBILITY, EpicId.REFACTORING,
        ]
        security = result[0].counts
        assert (security.total, security.done, security.in_progress) == (3, 1, 1)
        assert security.percent_done == 33

    def test_phase_progress_summary(self, sample_cards):
        result = phase_progress(sample_cards)
        assert [p.phase for p in result] == ["Phase 4", "Phase 5"]
        assert result[0].summary == "Phase 4: 1/2 done"
        assert result[1].summary == "Phase 5: 1 tracked"

    def test_phase_progress_active_and_specced(self, make_card):
        cards = [
            make_card("a", phase="P", column=ColumnId.IN_PROGRESS),
            make_card("b", phase="P", column=ColumnId.SPECCED),
            make_card("c", phase=None, column=ColumnId.DONE),
        ]
        assert phase_progress(cards)[0].summary == "P: 1 active, 1 specced"
