"""Tests for memory CLI commands."""

from pathlib import Path
from unittest.mock import patch

import pytest

from hearth.cli import create_parser, run_cli
from hearth.config import MemoryConfig
from hearth.memory import Memory, MemoryStore

TRANSCRIPT = """User: call me Star
Assistant: Of course, Star.
User: I'm 30 years old.
"""


@pytest.fixture
def config(tmp_path: Path, monkeypatch) -> MemoryConfig:
    """Point the CLI at a temporary database and log directory."""
    monkeypatch.delenv("HEARTH_DB_PATH", raising=False)
    monkeypatch.delenv("GROQ_API_KEY", raising=False)
    config = MemoryConfig(db_path=tmp_path / "memory.db", log_dir=tmp_path / "logs")
    with patch("hearth.cli.load_config", return_value=config):
        yield config


@pytest.fixture
def transcript(tmp_path: Path) -> Path:
    path = tmp_path / "chat.txt"
    path.write_text(TRANSCRIPT)
    return path


def stored(config: MemoryConfig) -> list[Memory]:
    store = MemoryStore(config.db_path)
    try:
        return store.list_all()
    finally:
        store.close()


class TestParser:
    """Tests for argument parsing."""

    def test_no_command_prints_help(self, capsys):
        assert run_cli([]) == 0
        assert "usage" in capsys.readouterr().out

    def test_retrieve_defaults(self):
        args = create_parser().parse_args(["retrieve", "--owner", "u1"])
        assert args.budget == 10
        assert args.persona is None
        assert args.prompt is False

    def test_assistant_name_repeatable(self):
        args = create_parser().parse_args(
            ["import", "chat.txt", "--owner", "u1", "--assistant-name", "Luna", "--assistant-name", "Mistress"]
        )
        assert args.assistant_name == ["Luna", "Mistress"]

    def test_owner_required(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["list"])


class TestImportCommand:
    """Tests for 'hearth import'."""

    def test_import(self, config: MemoryConfig, transcript: Path, capsys):
        result = run_cli(["import", str(transcript), "--owner", "u1", "--persona", "p1"])

        assert result == 0
        assert "Imported 2 new memories" in capsys.readouterr().out
        memories = stored(config)
        assert len(memories) == 2
        assert {m.persona_id for m in memories} == {"p1"}

    def test_import_twice_adds_nothing(self, config: MemoryConfig, transcript: Path, capsys):
        run_cli(["import", str(transcript), "--owner", "u1"])
        run_cli(["import", str(transcript), "--owner", "u1"])

        assert "Imported 0 new memories" in capsys.readouterr().out
        assert len(stored(config)) == 2

    def test_missing_file(self, config: MemoryConfig, tmp_path: Path, capsys):
        result = run_cli(["import", str(tmp_path / "missing.txt"), "--owner", "u1"])

        assert result == 1
        assert "File not found" in capsys.readouterr().out

    def test_env_overrides_db_path(self, config: MemoryConfig, transcript: Path, tmp_path: Path, monkeypatch):
        override = tmp_path / "override.db"
        monkeypatch.setenv("HEARTH_DB_PATH", str(override))

        run_cli(["import", str(transcript), "--owner", "u1"])

        assert override.exists()


class TestReadCommands:
    """Tests for list, retrieve, verify and decay."""

    @pytest.fixture(autouse=True)
    def imported(self, config: MemoryConfig, transcript: Path, capsys):
        run_cli(["import", str(transcript), "--owner", "u1"])
        capsys.readouterr()

    def test_list(self, capsys):
        assert run_cli(["list", "--owner", "u1"]) == 0
        out = capsys.readouterr().out
        assert "Total: 2 memory(ies)" in out
        assert "shared" in out

    def test_list_empty(self, capsys):
        assert run_cli(["list", "--owner", "nobody"]) == 0
        assert "No memories found." in capsys.readouterr().out

    def test_retrieve_table(self, capsys):
        assert run_cli(["retrieve", "--owner", "u1", "--persona", "p1"]) == 0
        assert "Total: 2 memory(ies)" in capsys.readouterr().out

    def test_retrieve_budget(self, capsys):
        assert run_cli(["retrieve", "--owner", "u1", "-n", "1"]) == 0
        assert "Total: 1 memory(ies)" in capsys.readouterr().out

    def test_retrieve_prompt(self, capsys):
        assert run_cli(["retrieve", "--owner", "u1", "--prompt"]) == 0
        out = capsys.readouterr().out
        assert out.startswith("<memory>")
        assert "Star" in out

    def test_verify(self, capsys):
        """Freshly imported records were never accessed, so they are due."""
        assert run_cli(["verify", "--owner", "u1", "-n", "1"]) == 0
        assert "Total: 1 memory(ies) to verify" in capsys.readouterr().out

    def test_verify_empty(self, capsys):
        assert run_cli(["verify", "--owner", "nobody"]) == 0
        assert "Nothing to verify." in capsys.readouterr().out

    def test_decay(self, capsys):
        """Fresh records are inside the grace period."""
        assert run_cli(["decay"]) == 0
        assert "Decayed 0 memory(ies)." in capsys.readouterr().out
