"""Tests for the overlay package list and the dpkg version resolver."""

import subprocess
import tempfile
from pathlib import Path

import pytest

from rootdiff.errors import ResolutionError
from rootdiff.packages.resolver import DpkgVersionResolver, PackageManager


# --- PackageManager Tests ---


def test_get_add_packages_reads_list():
    with tempfile.TemporaryDirectory() as tmpdir:
        add_file = Path(tmpdir) / "packages.add"
        add_file.write_text("htop\n\n# editors\nvim  \nhtop\nneovim # nightly\n")

        pm = PackageManager(add_file)
        assert pm.get_add_packages() == ["htop", "vim", "neovim"]


def test_get_add_packages_missing_file():
    with tempfile.TemporaryDirectory() as tmpdir:
        pm = PackageManager(Path(tmpdir) / "packages.add")
        assert pm.get_add_packages() == []


def test_get_add_packages_unreadable():
    with tempfile.TemporaryDirectory() as tmpdir:
        # A directory exists but cannot be read as a file
        pm = PackageManager(tmpdir)
        with pytest.raises(ResolutionError):
            pm.get_add_packages()


# --- DpkgVersionResolver Tests ---


def _fake_dpkg(monkeypatch, returncode=0, stdout="", stderr=""):
    calls = []

    def fake_run(cmd, **kwargs):
        calls.append(cmd)
        return subprocess.CompletedProcess(cmd, returncode, stdout=stdout, stderr=stderr)

    monkeypatch.setattr(subprocess, "run", fake_run)
    return calls


def test_resolve_versions_installed_only(monkeypatch):
    stdout = (
        "htop\t3.2.2-2\tii \n"
        "vim\t2:9.0.1378-2\trc \n"
        "neovim\t0.7.2-7\thi \n"
    )
    calls = _fake_dpkg(monkeypatch, returncode=1, stdout=stdout)

    resolver = DpkgVersionResolver()
    versions = resolver.resolve_versions(["htop", "vim", "neovim", "unknown-pkg"])

    assert versions == {
        "htop": "3.2.2-2",
        "vim": "",
        "neovim": "0.7.2-7",
        "unknown-pkg": "",
    }
    assert calls[0][0] == "dpkg-query"
    assert calls[0][-4:] == ["htop", "vim", "neovim", "unknown-pkg"]


def test_resolve_versions_admindir(monkeypatch):
    calls = _fake_dpkg(monkeypatch, stdout="htop\t3.2.2-2\tii \n")
    DpkgVersionResolver(admindir="/tmp/dpkg").resolve_versions(["htop"])
    assert "--admindir=/tmp/dpkg" in calls[0]


def test_resolve_versions_empty_request_skips_dpkg(monkeypatch):
    calls = _fake_dpkg(monkeypatch)
    assert DpkgVersionResolver().resolve_versions([]) == {}
    assert calls == []


def test_resolve_versions_tool_failure(monkeypatch):
    _fake_dpkg(monkeypatch, returncode=2, stderr="dpkg-query: error: database is locked")
    with pytest.raises(ResolutionError) as exc_info:
        DpkgVersionResolver().resolve_versions(["htop"])
    assert exc_info.value.details["exit_code"] == 2


def test_resolve_versions_missing_binary():
    resolver = DpkgVersionResolver(dpkg_query="/nonexistent/dpkg-query")
    with pytest.raises(ResolutionError):
        resolver.resolve_versions(["htop"])
