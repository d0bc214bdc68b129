"""Overlay package diff — compare user-added packages against the repository."""

from __future__ import annotations

import logging
from typing import Iterable, Mapping, Protocol

from rootdiff.packages.differ import diff_packages
from rootdiff.packages.models import DiffResult, PackageInfo

logger = logging.getLogger(__name__)


class OverlayPackageSource(Protocol):
    def get_add_packages(self) -> list[str]: ...


class VersionResolver(Protocol):
    def resolve_versions(self, names: Iterable[str]) -> Mapping[str, str]: ...


class PackageLookup(Protocol):
    def lookup(self, name: str) -> PackageInfo: ...


def overlay_package_diff(
    package_manager: OverlayPackageSource,
    resolver: VersionResolver,
    repository: PackageLookup,
) -> DiffResult:
    """Diff installed overlay packages against their latest repository versions.

    Overlay packages with no installed version are left out of the
    comparison entirely. Repository lookups run in package-name order and
    the first failure aborts the whole diff.

    Raises:
        ResolutionError: If the overlay list or local versions cannot be read.
        RepositoryLookupError: If any repository lookup fails.
    """
    logger.debug("overlay_package_diff: running...")

    added_packages = package_manager.get_add_packages()
    local_versions = resolver.resolve_versions(added_packages)

    local: dict[str, str] = {}
    for name in added_packages:
        version = local_versions.get(name, "")
        if version:
            local[name] = version
        else:
            logger.debug("overlay_package_diff: %s is not installed, skipping", name)

    remote: dict[str, str] = {}
    for name in sorted(local):
        remote[name] = repository.lookup(name).version

    return diff_packages(local, remote)
