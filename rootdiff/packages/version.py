"""Version ordering for distribution package versions.

Package versions are not semantic versions: ``1:2.30-1ubuntu4``,
``5.4~rc1-2`` and ``20230311git`` all appear in the same repository. The
comparator follows the Debian policy algorithm:

1. An optional numeric epoch (``N:``) is compared first.
2. The upstream part and the revision (after the last ``-``) are then
   compared in turn, alternating between non-digit and digit runs.
3. Non-digit runs compare character by character, where ``~`` sorts
   before anything (including the end of the string) and letters sort
   before other symbols.
4. Digit runs compare numerically, so ``1.10`` is newer than ``1.2``.

Distinct strings that the algorithm considers equal (``1.0`` and ``1.00``)
fall back to plain string ordering, so every pair of unequal versions has
a deterministic order.
"""

from __future__ import annotations

import functools
import re
from dataclasses import dataclass

_DIGITS_RE = re.compile(r"^\d*")
_NON_DIGITS_RE = re.compile(r"^\D*")


@dataclass(frozen=True)
class DebianVersion:
    """A version string split into its epoch, upstream and revision parts."""

    epoch: int
    upstream: str
    revision: str
    raw: str

    @classmethod
    def parse(cls, version: str) -> DebianVersion:
        raw = version
        version = version.strip()

        epoch = 0
        head, sep, tail = version.partition(":")
        if sep and head.isdigit():
            epoch = int(head)
            version = tail

        upstream, sep, revision = version.rpartition("-")
        if not sep:
            upstream, revision = version, ""

        return cls(epoch=epoch, upstream=upstream, revision=revision, raw=raw)

    def __lt__(self, other: DebianVersion) -> bool:
        return compare_versions(self.raw, other.raw) < 0

    def __le__(self, other: DebianVersion) -> bool:
        return compare_versions(self.raw, other.raw) <= 0

    def __gt__(self, other: DebianVersion) -> bool:
        return compare_versions(self.raw, other.raw) > 0

    def __ge__(self, other: DebianVersion) -> bool:
        return compare_versions(self.raw, other.raw) >= 0

    def __str__(self) -> str:
        return self.raw


def compare_versions(a: str, b: str) -> int:
    """Compare two version strings.

    Returns:
        -1 if ``a`` is older than ``b``, 0 if they are the same string,
        1 if ``a`` is newer.
    """
    if a == b:
        return 0

    va = DebianVersion.parse(a)
    vb = DebianVersion.parse(b)

    result = _cmp(va.epoch, vb.epoch)
    if result == 0:
        result = _compare_part(va.upstream, vb.upstream)
    if result == 0:
        result = _compare_part(va.revision, vb.revision)
    if result == 0:
        # Equivalent under policy but spelled differently
        result = -1 if a < b else 1
    return result


def is_newer(candidate: str, current: str) -> bool:
    """True when ``candidate`` orders after ``current``."""
    return compare_versions(candidate, current) > 0


version_sort_key = functools.cmp_to_key(compare_versions)


def _compare_part(a: str, b: str) -> int:
    while a or b:
        a_lex = _NON_DIGITS_RE.match(a).group(0)
        b_lex = _NON_DIGITS_RE.match(b).group(0)
        result = _compare_lexical(a_lex, b_lex)
        if result:
            return result
        a = a[len(a_lex):]
        b = b[len(b_lex):]

        a_num = _DIGITS_RE.match(a).group(0)
        b_num = _DIGITS_RE.match(b).group(0)
        result = _cmp(int(a_num or 0), int(b_num or 0))
        if result:
            return result
        a = a[len(a_num):]
        b = b[len(b_num):]
    return 0


def _compare_lexical(a: str, b: str) -> int:
    for i in range(max(len(a), len(b))):
        ac = _order(a[i]) if i < len(a) else 0
        bc = _order(b[i]) if i < len(b) else 0
        if ac != bc:
            return -1 if ac < bc else 1
    return 0


def _order(char: str) -> int:
    if char == "~":
        return -1
    if char.isascii() and char.isalpha():
        return ord(char)
    return ord(char) + 256


def _cmp(a: int, b: int) -> int:
    return (a > b) - (a < b)
