"""Tests for the command-line interface."""

import json
import sys
from unittest import mock

import pytest

from openspec_board.board.persistence import SnapshotStore
from openspec_board.cli import main
from openspec_board.config import BoardConfig
from openspec_board.generation import write_dataset

PROPOSAL = """---
epic: governance
priority: medium
column: proposed
createdAt: 2025-10-01
---

# Change: Access Reviews
"""


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("OPENSPEC_PATH", "OPENSPEC_BOARD_DATASET", "OPENSPEC_BOARD_STATE_DIR"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def paths(tmp_path, dataset):
    dataset_path = tmp_path / "dataset.json"
    write_dataset(dataset, dataset_path)
    return dataset_path, tmp_path / "state"


def run(paths, *argv):
    dataset_path, state_dir = paths
    main(["--dataset", str(dataset_path), "--state-dir", str(state_dir), *argv])


class TestModule:
    def test_main_module_without_command_exits(self):
        sys.modules.pop("openspec_board.__main__", None)

        with mock.patch("sys.argv", ["openspec-board"]):
            with pytest.raises(SystemExit):
                import runpy

                runpy.run_module("openspec_board", run_name="__main__")

    def test_no_command_prints_help(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 1
        assert "usage" in capsys.readouterr().out


class TestConfig:
    def test_defaults(self):
        config = BoardConfig.from_env({})
        assert str(config.changes_dir) == "openspec/changes"
        assert config.state_dir.name == "openspec-board"

    def test_environment_overrides(self, tmp_path):
        config = BoardConfig.from_env({
            "OPENSPEC_PATH": str(tmp_path / "changes"),
            "OPENSPEC_BOARD_DATASET": str(tmp_path / "d.json"),
            "OPENSPEC_BOARD_STATE_DIR": str(tmp_path / "s"),
        })
        assert config.changes_dir == tmp_path / "changes"
        assert config.dataset_path == tmp_path / "d.json"
        assert config.state_dir == tmp_path / "s"

    def test_empty_values_ignored(self):
        assert BoardConfig.from_env({"OPENSPEC_PATH": ""}).changes_dir == BoardConfig().changes_dir


class TestGenerate:
    def test_writes_dataset(self, tmp_path, capsys):
        change = tmp_path / "changes" / "add-access-reviews"
        change.mkdir(parents=True)
        (change / "proposal.md").write_text(PROPOSAL)
        out = tmp_path / "dataset.json"

        main(["--changes-dir", str(tmp_path / "changes"), "--dataset", str(out), "generate"])

        payload = json.loads(out.read_text())
        assert [c["title"] for c in payload["cards"]] == ["Access Reviews"]
        assert "Cards: 1" in capsys.readouterr().out

    def test_invalid_proposal_fails(self, tmp_path, capsys):
        change = tmp_path / "changes" / "broken"
        change.mkdir(parents=True)
        (change / "proposal.md").write_text("# no frontmatter\n")

        with pytest.raises(SystemExit):
            main(["--changes-dir", str(tmp_path / "changes"), "--dataset", str(tmp_path / "d.json"), "generate"])
        assert "[broken]" in capsys.readouterr().err
        assert not (tmp_path / "d.json").exists()


class TestBoardCommands:
    def test_missing_dataset(self, tmp_path, capsys):
        with pytest.raises(SystemExit):
            main(["--dataset", str(tmp_path / "none.json"), "--state-dir", str(tmp_path), "status"])
        assert "Run 'generate' first" in capsys.readouterr().err

    def test_status(self, paths, capsys):
        run(paths, "status")
        out = capsys.readouterr().out
        assert "5 specs tracked (dataset version 123456)" in out
        assert "Phase 4: 1/2 done" in out

    def test_list_with_filters(self, paths, capsys):
        run(paths, "list", "--search", "identity", "--priority", "high")
        out = capsys.readouterr().out
        assert "add-scim-provisioning" in out
        assert "add-sso-hardening" not in out

    def test_list_marks_blocked(self, paths, capsys):
        run(paths, "list", "--column", "backlog")
        line = next(l for l in capsys.readouterr().out.splitlines() if "add-anomaly-alerts" in l)
        assert line.endswith("[blocked]")

    def test_show(self, paths, capsys):
        run(paths, "show", "add-anomaly-alerts")
        out = capsys.readouterr().out
        assert "Epic:     Detection & Visibility" in out
        assert "add-scim-provisioning (open)" in out

    def test_show_unknown(self, paths, capsys):
        with pytest.raises(SystemExit):
            run(paths, "show", "nope")
        assert "Card not found: nope" in capsys.readouterr().err

    def test_move_persists(self, paths, capsys):
        run(paths, "move", "refactor-config-loader", "done")
        state = SnapshotStore(paths[1]).load()
        card = next(c for c in state.cards if c.id == "refactor-config-loader")
        assert card.column.value == "done"

    def test_update(self, paths, capsys):
        run(paths, "update", "add-sso-hardening", "--notes", "pairing with infra", "--priority", "low")
        assert "Updated add-sso-hardening: notes, priority" in capsys.readouterr().out
        card = next(c for c in SnapshotStore(paths[1]).load().cards if c.id == "add-sso-hardening")
        assert card.notes == "pairing with infra"

    def test_update_nothing(self, paths, capsys):
        with pytest.raises(SystemExit):
            run(paths, "update", "add-sso-hardening")
        assert "Nothing to update" in capsys.readouterr().err

    def test_export_import_reset(self, paths, tmp_path, capsys):
        run(paths, "move", "refactor-config-loader", "done")
        exported = tmp_path / "board.json"
        run(paths, "export", "--output", str(exported))
        run(paths, "reset")
        run(paths, "import", str(exported))

        card = next(c for c in SnapshotStore(paths[1]).load().cards if c.id == "refactor-config-loader")
        assert card.column.value == "done"
        assert "5 cards imported" in capsys.readouterr().out

    def test_import_bad_file(self, paths, tmp_path, capsys):
        bad = tmp_path / "bad.json"
        bad.write_text("{")
        with pytest.raises(SystemExit):
            run(paths, "import", str(bad))
        assert "Import failed: Invalid JSON file" in capsys.readouterr().err

    def test_reorder(self, paths, capsys):
        run(paths, "reorder", "backlog", "refactor-config-loader", "add-anomaly-alerts")
        ids = [c.id for c in SnapshotStore(paths[1]).load().cards]
        assert ids[:2] == ["refactor-config-loader", "add-anomaly-alerts"]

    def test_reorder_partial_list_keeps_other_cards(self, paths, capsys):
        run(paths, "update", "refactor-config-loader", "--notes", "keep me", "--priority", "critical")
        run(paths, "reorder", "backlog", "add-anomaly-alerts")
        run(paths, "status")

        cards = SnapshotStore(paths[1]).load().cards
        assert [c.id for c in cards][:2] == ["add-anomaly-alerts", "refactor-config-loader"]
        card = next(c for c in cards if c.id == "refactor-config-loader")
        assert card.notes == "keep me"
        assert card.priority.value == "critical"

    def test_reorder_rejects_card_from_other_column(self, paths, capsys):
        with pytest.raises(SystemExit):
            run(paths, "reorder", "backlog", "add-audit-log-export")
        assert "Not in Backlog: add-audit-log-export" in capsys.readouterr().err
        assert len(SnapshotStore(paths[1]).load().cards) == 5
