"""End-to-end tests for the annotate and remove commands."""

import json
import logging
import shutil
from pathlib import Path

import pytest
from typer.testing import CliRunner

from annotate_callbacks.annotation import ANNOTATION_START
from annotate_callbacks.config import CONFIG_FILENAME
from annotate_callbacks.main import app

runner = CliRunner()

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A project with a config, two models, and a manifest for one of them."""
    model_dir = tmp_path / "app" / "models"
    model_dir.mkdir(parents=True)
    shutil.copy(FIXTURES / "user_model.rb", model_dir / "user.rb")
    shutil.copy(FIXTURES / "plain_model.rb", model_dir / "plain.rb")
    (tmp_path / CONFIG_FILENAME).write_text('[annotate]\nmodel_dir = "app/models"\n')
    (tmp_path / "callbacks.json").write_text(
        json.dumps(
            {
                "files": {
                    "app/models/user.rb": [
                        {"type": "before_save", "name": "encrypt_password"},
                        {"type": "after_create", "name": "send_welcome_email"},
                    ]
                }
            }
        )
    )
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestAnnotateCommand:
    def test_annotates_and_reports(self, project: Path) -> None:
        result = runner.invoke(app, ["annotate"])
        assert result.exit_code == 0, result.output
        assert "Annotated: 1 file(s)" in result.output
        assert "app/models/user.rb" in result.output

        content = (project / "app" / "models" / "user.rb").read_text(encoding="utf-8")
        assert content.startswith(ANNOTATION_START)
        assert ":send_welcome_email" in content
        assert ANNOTATION_START not in (project / "app" / "models" / "plain.rb").read_text()

    def test_second_run_unchanged(self, project: Path) -> None:
        runner.invoke(app, ["annotate"])
        result = runner.invoke(app, ["annotate", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["counts"]["annotated"] == 0
        assert data["counts"]["unchanged"] == 1
        assert data["counts"]["skipped"] == 1

    def test_missing_manifest(self, project: Path) -> None:
        (project / "callbacks.json").unlink()
        result = runner.invoke(app, ["annotate"])
        assert result.exit_code == 1
        assert "Manifest not found" in result.output

    def test_invalid_manifest_json_mode(self, project: Path) -> None:
        (project / "callbacks.json").write_text("[]")
        result = runner.invoke(app, ["annotate", "--json"])
        assert result.exit_code == 1
        assert "files" in json.loads(result.stdout)["error"]

    def test_warns_about_manifest_entries_without_a_file(
        self, project: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        (project / "callbacks.json").write_text(
            json.dumps({"files": {"app/models/gone.rb": [{"type": "before_save", "name": "go"}]}})
        )
        with caplog.at_level(logging.WARNING, logger="annotate_callbacks"):
            result = runner.invoke(app, ["annotate", "--json"])
        assert result.exit_code == 0, result.output
        messages = [r.getMessage() for r in caplog.records]
        assert any(m.endswith("gone.rb: listed in manifest but not found") for m in messages)

    def test_explicit_files(self, project: Path) -> None:
        result = runner.invoke(app, ["annotate", "--files", "app/models/plain.rb", "--json"])
        data = json.loads(result.stdout)
        assert data["total"] == 1
        assert data["counts"]["skipped"] == 1

    def test_model_dir_without_config(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        models = tmp_path / "models"
        models.mkdir()
        shutil.copy(FIXTURES / "user_model.rb", models / "user.rb")
        manifest = tmp_path / "cb.json"
        manifest.write_text(
            json.dumps({"files": {"models/user.rb": [{"type": "before_save", "name": "go"}]}})
        )
        monkeypatch.chdir(tmp_path)

        result = runner.invoke(
            app, ["annotate", "--model-dir", "models", "--manifest", str(manifest), "--json"]
        )

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["counts"]["annotated"] == 1


class TestRemoveCommand:
    def test_round_trip(self, project: Path) -> None:
        user = project / "app" / "models" / "user.rb"
        original = user.read_bytes()
        runner.invoke(app, ["annotate"])

        result = runner.invoke(app, ["remove"])

        assert result.exit_code == 0, result.output
        assert "Removed: 1 file(s)" in result.output
        assert user.read_bytes() == original

    def test_nothing_to_remove(self, project: Path) -> None:
        result = runner.invoke(app, ["remove", "--json"])
        data = json.loads(result.stdout)
        assert data["counts"]["removed"] == 0
        assert data["counts"]["skipped"] == 2

    def test_strict_exit_code_on_error(self, project: Path) -> None:
        (project / "app" / "models" / "broken.rb").mkdir()
        result = runner.invoke(app, ["remove", "--files", "app/models/broken.rb"])
        assert result.exit_code == 0
        assert "Errors: 1" in result.output
        assert "broken.rb" in result.output

        result = runner.invoke(app, ["remove", "--strict", "--files", "app/models/broken.rb"])
        assert result.exit_code == 1

    def test_missing_model_dir(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(app, ["remove", "--model-dir", "nope"])
        assert result.exit_code == 1
        assert "Model directory not found" in result.output


def test_help_lists_commands() -> None:
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "annotate" in result.output
    assert "remove" in result.output
