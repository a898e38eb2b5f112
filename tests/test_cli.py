"""Tests for the shared CLI helpers in annotate_callbacks.cli."""

import json
import logging
from pathlib import Path

import pytest
import typer
from rich.console import Console

from annotate_callbacks.batch import BatchResult
from annotate_callbacks.cli import (
    error_exit,
    get_config,
    iter_sources,
    json_print,
    print_batch_summary,
    rel_display_path,
    select_sources,
)
from annotate_callbacks.config import CONFIG_FILENAME, ProjectConfig

# ---------------------------------------------------------------------------
# error_exit() / json_print()
# ---------------------------------------------------------------------------


class TestErrorExit:
    def test_plain_stderr_and_exit(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(typer.Exit) as exc_info:
            error_exit("something broke")
        assert exc_info.value.exit_code == 1
        captured = capsys.readouterr()
        assert "something broke" in captured.err
        assert captured.out == ""

    def test_json_mode_stdout(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(typer.Exit):
            error_exit("bad input", json_mode=True)
        captured = capsys.readouterr()
        assert json.loads(captured.out) == {"error": "bad input"}
        assert captured.err == ""

    def test_custom_exit_code(self) -> None:
        with pytest.raises(typer.Exit) as exc_info:
            error_exit("fatal", code=2)
        assert exc_info.value.exit_code == 2


def test_json_print(capsys: pytest.CaptureFixture[str]) -> None:
    json_print({"status": "ok", "count": 42})
    assert json.loads(capsys.readouterr().out) == {"status": "ok", "count": 42}


# ---------------------------------------------------------------------------
# Config and file selection
# ---------------------------------------------------------------------------


class TestGetConfig:
    def test_no_config_needs_model_dir(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        with pytest.raises(typer.Exit):
            get_config()

    def test_model_dir_without_config(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        cfg = get_config(tmp_path / "models")
        assert cfg.model_dir == tmp_path / "models"
        assert cfg.source_ext == ".rb"

    def test_override_config(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / CONFIG_FILENAME).write_text('[annotate]\nmodel_dir = "lib"\n')
        monkeypatch.chdir(tmp_path)
        assert get_config().model_dir == tmp_path.resolve() / "lib"
        assert get_config(Path("other")).model_dir == Path("other")

    def test_invalid_config_exits(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("[annotate\n")
        monkeypatch.chdir(tmp_path)
        with pytest.raises(typer.Exit):
            get_config()


class TestSources:
    def test_iter_sources_recursive_sorted(self, tmp_path: Path) -> None:
        (tmp_path / "b.rb").write_text("")
        (tmp_path / "ns").mkdir()
        (tmp_path / "ns" / "a.rb").write_text("")
        (tmp_path / "notes.txt").write_text("")
        assert iter_sources(tmp_path) == [tmp_path / "b.rb", tmp_path / "ns" / "a.rb"]

    def test_select_explicit_files_filtered_by_ext(self, tmp_path: Path) -> None:
        cfg = ProjectConfig(root=tmp_path, model_dir=tmp_path / "missing")
        files = [Path("z.rb"), Path("readme.md"), Path("a.rb")]
        assert select_sources(cfg, files) == [Path("a.rb"), Path("z.rb")]

    def test_select_warns_about_dropped_files(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        cfg = ProjectConfig(root=tmp_path, model_dir=tmp_path / "missing")
        with caplog.at_level(logging.WARNING, logger="annotate_callbacks"):
            select_sources(cfg, [Path("readme.md"), Path("a.rb")])
        [message] = [r.getMessage() for r in caplog.records]
        assert message == "readme.md: skipped, extension is not .rb"

    def test_select_missing_model_dir_exits(self, tmp_path: Path) -> None:
        cfg = ProjectConfig(root=tmp_path, model_dir=tmp_path / "missing")
        with pytest.raises(typer.Exit):
            select_sources(cfg, None)


def test_rel_display_path(tmp_path: Path) -> None:
    assert rel_display_path(tmp_path / "app" / "a.rb", tmp_path) == "app/a.rb"
    assert rel_display_path(Path("/elsewhere/a.rb"), tmp_path) == "/elsewhere/a.rb"


# ---------------------------------------------------------------------------
# print_batch_summary()
# ---------------------------------------------------------------------------


def test_print_batch_summary(tmp_path: Path) -> None:
    result = BatchResult()
    result.add("annotated", tmp_path / "app" / "user.rb")
    result.add("skipped", tmp_path / "app" / "plain.rb")
    result.add_error(tmp_path / "app" / "bad.rb", "Permission denied")

    console = Console(record=True, width=120)
    print_batch_summary(result, "annotated", base_dir=tmp_path, console=console)
    out = console.export_text()

    assert "Annotated: 1 file(s)" in out
    assert "app/user.rb" in out
    assert "Errors: 1" in out
    assert "app/bad.rb: Permission denied" in out
    assert "skipped" in out
