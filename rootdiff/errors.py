"""Error taxonomy for rootdiff.

Every failure raised by the diff engines or their collaborators derives
from ``RootDiffError`` so callers can abort the enclosing transaction with
a single ``except`` clause.
"""

from __future__ import annotations

from typing import Any, Mapping


class RootDiffError(Exception):
    """Base class for all rootdiff errors."""

    def __init__(self, message: str, *, details: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details: dict[str, Any] = dict(details or {})


class ConfigError(RootDiffError):
    """Configuration file or environment could not be loaded."""


class DiffComputationError(RootDiffError):
    """The text diff tool failed to run or exited with an unexpected status."""


class PatchApplyError(RootDiffError):
    """A unified diff did not apply cleanly to its destination."""


class ResolutionError(RootDiffError):
    """Local package versions or the overlay package list could not be resolved."""


class RepositoryLookupError(RootDiffError):
    """Remote package metadata was unreachable or malformed."""


class RemoteServiceError(RootDiffError):
    """The image-diff service call failed or returned bad data."""
