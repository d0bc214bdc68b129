"""Package set diffing — classify every package between two version snapshots."""

from __future__ import annotations

import logging
from typing import Mapping

from rootdiff.packages.models import DiffResult, PackageDiffEntry
from rootdiff.packages.version import compare_versions

logger = logging.getLogger(__name__)


def diff_packages(
    old_versions: Mapping[str, str],
    new_versions: Mapping[str, str],
) -> DiffResult:
    """Partition the packages of two snapshots into change sets.

    Args:
        old_versions: Package name -> version before the change.
        new_versions: Package name -> version after the change.

    Returns:
        DiffResult whose four sequences are sorted by package name.
        Packages with identical versions on both sides are omitted.
    """
    added: list[PackageDiffEntry] = []
    upgraded: list[PackageDiffEntry] = []
    downgraded: list[PackageDiffEntry] = []
    removed: list[PackageDiffEntry] = []

    for name in sorted(set(old_versions) | set(new_versions)):
        if name not in old_versions:
            added.append(PackageDiffEntry(name, "", new_versions[name]))
            continue
        if name not in new_versions:
            removed.append(PackageDiffEntry(name, old_versions[name], ""))
            continue

        old, new = old_versions[name], new_versions[name]
        if old == new:
            continue

        entry = PackageDiffEntry(name, old, new)
        if compare_versions(new, old) > 0:
            upgraded.append(entry)
        else:
            downgraded.append(entry)

    logger.debug(
        "diff_packages: %d added, %d upgraded, %d downgraded, %d removed",
        len(added), len(upgraded), len(downgraded), len(removed),
    )
    return DiffResult(
        added=tuple(added),
        upgraded=tuple(upgraded),
        downgraded=tuple(downgraded),
        removed=tuple(removed),
    )
