"""Local package state — the overlay package list and installed versions.

The overlay list is the plain-text file the package manager maintains for
packages the user added on top of the base image. Installed versions are
read from the dpkg database with ``dpkg-query``.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Iterable

from rootdiff.config import DEFAULT_PACKAGES_ADD_FILE
from rootdiff.errors import ResolutionError

logger = logging.getLogger(__name__)


class PackageManager:
    """Reads the list of overlay packages added by the user."""

    def __init__(self, add_file: str | Path = DEFAULT_PACKAGES_ADD_FILE):
        self.add_file = Path(add_file)

    def get_add_packages(self) -> list[str]:
        """Return the overlay package names in file order, without duplicates.

        Blank lines and ``#`` comments are ignored. A missing file means no
        packages have been added.
        """
        if not self.add_file.exists():
            logger.debug("get_add_packages: %s does not exist", self.add_file)
            return []

        try:
            content = self.add_file.read_text()
        except (OSError, UnicodeDecodeError) as e:
            logger.debug("get_add_packages: cannot read %s: %s", self.add_file, e)
            raise ResolutionError(
                f"Cannot read overlay package list {self.add_file}: {e}",
                details={"path": str(self.add_file)},
            ) from e

        packages: list[str] = []
        seen: set[str] = set()
        for line in content.splitlines():
            name = line.split("#", 1)[0].strip()
            if name and name not in seen:
                seen.add(name)
                packages.append(name)
        return packages


class DpkgVersionResolver:
    """Resolves installed package versions through ``dpkg-query``."""

    # dpkg-query exits 1 when some of the requested names are unknown
    _OK_EXIT_CODES = (0, 1)

    def __init__(self, dpkg_query: str = "dpkg-query", admindir: str | None = None):
        self.dpkg_query = dpkg_query
        self.admindir = admindir

    def resolve_versions(self, names: Iterable[str]) -> dict[str, str]:
        """Map every requested name to its installed version.

        Packages that are unknown, or known but not installed, map to ``""``.

        Raises:
            ResolutionError: If dpkg-query cannot be run or fails outright.
        """
        names = list(names)
        versions = {name: "" for name in names}
        if not names:
            return versions

        cmd = [self.dpkg_query]
        if self.admindir:
            cmd.append(f"--admindir={self.admindir}")
        cmd += ["--show", "--showformat=${Package}\\t${Version}\\t${db:Status-Abbrev}\\n", *names]

        logger.debug("resolve_versions: querying %d package(s)", len(names))
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True)
        except OSError as e:
            logger.debug("resolve_versions: could not run %s: %s", self.dpkg_query, e)
            raise ResolutionError(f"Could not run {self.dpkg_query}: {e}") from e

        if proc.returncode not in self._OK_EXIT_CODES:
            stderr = proc.stderr.strip()
            logger.debug("resolve_versions: %s exited with %d: %s", self.dpkg_query, proc.returncode, stderr)
            raise ResolutionError(
                f"{self.dpkg_query} exited with status {proc.returncode}: {stderr}",
                details={"exit_code": proc.returncode, "stderr": stderr},
            )

        for line in proc.stdout.splitlines():
            parts = line.split("\t")
            if len(parts) != 3:
                continue
            package, version, status = parts
            if package in versions and _is_installed(status):
                versions[package] = version.strip()

        return versions


def _is_installed(status_abbrev: str) -> bool:
    # Second column of the abbreviated status is the current state, "i" = installed
    return len(status_abbrev) >= 2 and status_abbrev[1] == "i"
