"""Package set diff engine.

Classifies packages between two version snapshots into added, upgraded,
downgraded and removed sets, and provides the collaborators that build
those snapshots for overlay and base image packages.
"""

from rootdiff.packages.differ import diff_packages
from rootdiff.packages.image_diff import base_image_package_diff
from rootdiff.packages.models import DiffKind, DiffResult, PackageDiffEntry, PackageInfo
from rootdiff.packages.overlay import overlay_package_diff
from rootdiff.packages.repository import RepositoryClient
from rootdiff.packages.resolver import DpkgVersionResolver, PackageManager
from rootdiff.packages.version import DebianVersion, compare_versions, is_newer

__all__ = [
    "DebianVersion",
    "DiffKind",
    "DiffResult",
    "DpkgVersionResolver",
    "PackageDiffEntry",
    "PackageInfo",
    "PackageManager",
    "RepositoryClient",
    "base_image_package_diff",
    "compare_versions",
    "diff_packages",
    "is_newer",
    "overlay_package_diff",
]
