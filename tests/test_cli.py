"""Tests for the rootdiff command line interface."""

import json
import shutil
from pathlib import Path

import httpx
import pytest
from click.testing import CliRunner

from rootdiff.cli import main
from rootdiff.errors import RemoteServiceError
from rootdiff.packages.models import DiffResult, PackageDiffEntry


def _write(path: Path, text: str) -> str:
    path.write_text(text)
    return str(path)


def test_version():
    result = CliRunner().invoke(main, ["--version"])
    assert result.exit_code == 0


def test_packages_json(tmp_path):
    old = _write(tmp_path / "old.yaml", "foo: 1.2\nbar: 1.0\n")
    new = _write(tmp_path / "new.json", '{"foo": "1.10", "baz": "0.1"}')

    result = CliRunner().invoke(main, ["packages", old, new, "--json"])

    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["Upgraded"] == [{"name": "foo", "oldVersion": "1.2", "newVersion": "1.10"}]
    assert data["Added"] == [{"name": "baz", "oldVersion": "", "newVersion": "0.1"}]
    assert data["Removed"] == [{"name": "bar", "oldVersion": "1.0", "newVersion": ""}]
    assert data["Downgraded"] == []


def test_packages_table(tmp_path):
    old = _write(tmp_path / "old.yaml", "foo: '1.0'\n")
    new = _write(tmp_path / "new.yaml", "foo: '2.0'\n")

    result = CliRunner().invoke(main, ["packages", old, new])

    assert result.exit_code == 0
    assert "upgraded" in result.output
    assert "foo" in result.output


def test_packages_no_changes(tmp_path):
    same = _write(tmp_path / "same.yaml", "foo: '1.0'\n")
    result = CliRunner().invoke(main, ["packages", same, same])
    assert result.exit_code == 0
    assert "No package changes" in result.output


def test_packages_rejects_non_mapping(tmp_path):
    bad = _write(tmp_path / "bad.yaml", "- foo\n- bar\n")
    result = CliRunner().invoke(main, ["packages", bad, bad])
    assert result.exit_code != 0


def test_base_reports_remote_errors(monkeypatch):
    def fail(*args, **kwargs):
        raise RemoteServiceError("Package diff server returned non-OK status 500")

    monkeypatch.setattr("rootdiff.packages.base_image_package_diff", fail)
    result = CliRunner().invoke(main, ["base", "sha256:a", "sha256:b"])

    assert result.exit_code == 1
    assert "non-OK status 500" in result.output


def test_base_json(monkeypatch):
    captured = {}

    def fake(old_digest, new_digest, config, client=None):
        captured["endpoint"] = config.diff_endpoint
        return DiffResult(upgraded=(PackageDiffEntry("bash", "5.1-6", "5.2-1"),))

    monkeypatch.setenv("ROOTDIFF_DIFFER_URL", "https://differ.example.org")
    monkeypatch.setenv("ROOTDIFF_NAME", "vanillaos/core")
    monkeypatch.setattr("rootdiff.packages.base_image_package_diff", fake)

    result = CliRunner().invoke(main, ["base", "a", "b", "--json"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["Upgraded"][0]["name"] == "bash"
    assert captured["endpoint"] == "https://differ.example.org/images/core/diff"


def test_overlay_with_empty_package_list(tmp_path, monkeypatch):
    monkeypatch.setenv("ROOTDIFF_PACKAGES_ADD_FILE", str(tmp_path / "packages.add"))
    monkeypatch.setattr(
        "rootdiff.packages.DpkgVersionResolver.resolve_versions",
        lambda self, names: {name: "" for name in names},
    )
    result = CliRunner().invoke(main, ["overlay"])
    assert result.exit_code == 0, result.output
    assert "No package changes" in result.output


@pytest.mark.skipif(shutil.which("diff") is None or shutil.which("patch") is None,
                    reason="diff and patch must be installed")
def test_diff_and_merge_commands(tmp_path):
    source = _write(tmp_path / "source.conf", "a = 1\nb = 2\nc = 3\n")
    dest = _write(tmp_path / "dest.conf", "a = 1\nb = 20\nc = 3\n")
    runner = CliRunner()

    result = runner.invoke(main, ["diff", source, dest])
    assert result.exit_code == 0
    assert "+b = 20" in result.output

    result = runner.invoke(main, ["diff", source, source])
    assert "identical" in result.output

    result = runner.invoke(main, ["merge", source, dest])
    assert result.exit_code == 0, result.output
    assert Path(dest).read_text() == "a = 1\nb = 20\nc = 3\n"


def test_diff_missing_file(tmp_path):
    result = CliRunner().invoke(main, ["diff", str(tmp_path / "a"), str(tmp_path / "b")])
    assert result.exit_code == 1
    assert "Error" in result.output


def test_packages_table_shows_versions_literally(tmp_path):
    old = _write(tmp_path / "old.yaml", "foo: '1.0[bold]'\n")
    new = _write(tmp_path / "new.yaml", "foo: '2.0'\n")

    result = CliRunner().invoke(main, ["packages", old, new])

    assert result.exit_code == 0, result.output
    assert "1.0[bold]" in result.output
