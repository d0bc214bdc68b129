"""Package diff data models.

``PackageDiffEntry`` and ``DiffResult`` are the engine's own immutable
results. The pydantic models below validate the JSON returned by the
repository API and the image-diff service, and convert into the
dataclasses once validated.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictStr, field_validator


class DiffKind:
    ADDED = "added"
    UPGRADED = "upgraded"
    DOWNGRADED = "downgraded"
    REMOVED = "removed"

    ALL = (ADDED, UPGRADED, DOWNGRADED, REMOVED)


@dataclass(frozen=True)
class PackageDiffEntry:
    """One package's classification outcome. Empty versions mean absent."""

    name: str
    old_version: str = ""
    new_version: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "name": self.name,
            "oldVersion": self.old_version,
            "newVersion": self.new_version,
        }


@dataclass(frozen=True)
class DiffResult:
    """The four disjoint change sets produced by a single diff run."""

    added: tuple[PackageDiffEntry, ...] = field(default_factory=tuple)
    upgraded: tuple[PackageDiffEntry, ...] = field(default_factory=tuple)
    downgraded: tuple[PackageDiffEntry, ...] = field(default_factory=tuple)
    removed: tuple[PackageDiffEntry, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.upgraded or self.downgraded or self.removed)

    @property
    def total(self) -> int:
        return len(self.added) + len(self.upgraded) + len(self.downgraded) + len(self.removed)

    def __iter__(self) -> Iterator[tuple[str, PackageDiffEntry]]:
        for kind in DiffKind.ALL:
            for entry in getattr(self, kind):
                yield kind, entry

    def to_dict(self) -> dict[str, list[dict[str, str]]]:
        """Serialize using the image-diff service's JSON shape."""
        return {
            "Added": [e.to_dict() for e in self.added],
            "Upgraded": [e.to_dict() for e in self.upgraded],
            "Downgraded": [e.to_dict() for e in self.downgraded],
            "Removed": [e.to_dict() for e in self.removed],
        }


# ---------------------------------------------------------------------------
# Wire models
# ---------------------------------------------------------------------------


class PackageDiffPayload(BaseModel):
    """A package entry as sent by the image-diff service."""

    name: StrictStr = Field(validation_alias=AliasChoices("name", "Name"))
    old_version: StrictStr = Field(
        default="",
        validation_alias=AliasChoices("oldVersion", "OldVersion", "old_version"),
    )
    new_version: StrictStr = Field(
        default="",
        validation_alias=AliasChoices("newVersion", "NewVersion", "new_version"),
    )

    def to_entry(self) -> PackageDiffEntry:
        return PackageDiffEntry(
            name=self.name,
            old_version=self.old_version,
            new_version=self.new_version,
        )


class ImageDiffResponse(BaseModel):
    """Body of ``GET /images/<name>/diff``."""

    added: list[PackageDiffPayload] = Field(
        default_factory=list, validation_alias=AliasChoices("Added", "added")
    )
    upgraded: list[PackageDiffPayload] = Field(
        default_factory=list, validation_alias=AliasChoices("Upgraded", "upgraded")
    )
    downgraded: list[PackageDiffPayload] = Field(
        default_factory=list, validation_alias=AliasChoices("Downgraded", "downgraded")
    )
    removed: list[PackageDiffPayload] = Field(
        default_factory=list, validation_alias=AliasChoices("Removed", "removed")
    )

    @field_validator("added", "upgraded", "downgraded", "removed", mode="before")
    @classmethod
    def _null_is_empty(cls, value: Any) -> Any:
        # The service encodes empty sets as null
        return [] if value is None else value

    def to_result(self) -> DiffResult:
        return DiffResult(
            added=tuple(p.to_entry() for p in self.added),
            upgraded=tuple(p.to_entry() for p in self.upgraded),
            downgraded=tuple(p.to_entry() for p in self.downgraded),
            removed=tuple(p.to_entry() for p in self.removed),
        )


class PackageInfo(BaseModel):
    """Package metadata returned by the repository API.

    Only ``version`` is required; the remaining fields are kept as extras.
    """

    model_config = ConfigDict(extra="allow")

    version: StrictStr
