"""Unified diff computation and application.

The diff is produced by ``diff -u`` and consumed by ``patch``. Both tools
report their outcome through exit codes:

- ``diff``: 0 = identical, 1 = differences found, 2+ = tool failure
- ``patch``: 0 = applied, anything else = failure

The patch is applied to a copy of the destination inside a temporary
directory next to it. The copy replaces the destination only when every
hunk applied, so a failed patch never leaves a half-written file behind.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import tempfile
from pathlib import Path

from rootdiff.errors import DiffComputationError, PatchApplyError

logger = logging.getLogger(__name__)

DIFF_IDENTICAL = 0
DIFF_DIFFERENT = 1

# Context must match exactly; fuzzy hunks would silently merge into diverged files.
_PATCH_FLAGS = ["--batch", "--forward", "--silent", "--no-backup-if-mismatch", "--fuzz=0"]


def merge_diff(source: str | Path, dest: str | Path) -> None:
    """Merge the differences between ``source`` and ``dest`` into ``dest``.

    Computes the diff first and applies it second; a failure in either
    step aborts the merge without attempting the other.
    """
    logger.debug("merge_diff: merging %s -> %s", source, dest)
    diff_text = compute_diff(source, dest)
    apply_diff(dest, diff_text)
    logger.debug("merge_diff: merge completed")


def compute_diff(source: str | Path, dest: str | Path) -> bytes:
    """Return the unified diff transforming ``source`` into ``dest``.

    Returns:
        The diff text, or ``b""`` when the files are byte-identical.

    Raises:
        DiffComputationError: If either file is unreadable, ``diff`` is not
            installed, or it exits with a status other than 0 or 1.
    """
    source_path = Path(source)
    dest_path = Path(dest)
    logger.debug("compute_diff: diffing %s -> %s", source_path, dest_path)

    for path in (source_path, dest_path):
        if not path.is_file() or not os.access(path, os.R_OK):
            logger.debug("compute_diff: %s is not a readable file", path)
            raise DiffComputationError(
                f"Cannot diff: {path} is not a readable file",
                details={"path": str(path)},
            )

    try:
        proc = subprocess.run(
            ["diff", "-u", str(source_path), str(dest_path)],
            capture_output=True,
        )
    except OSError as e:
        logger.debug("compute_diff: could not run diff: %s", e)
        raise DiffComputationError(f"Could not run diff: {e}") from e

    if proc.returncode == DIFF_IDENTICAL:
        logger.debug("compute_diff: no diff found")
        return b""

    if proc.returncode == DIFF_DIFFERENT:
        logger.debug("compute_diff: diff found (%d bytes)", len(proc.stdout))
        return proc.stdout

    stderr = proc.stderr.decode(errors="replace").strip()
    logger.debug("compute_diff: diff exited with %d: %s", proc.returncode, stderr)
    raise DiffComputationError(
        f"diff exited with status {proc.returncode}: {stderr or 'no error output'}",
        details={"exit_code": proc.returncode, "stderr": stderr},
    )


def apply_diff(dest: str | Path, diff_text: bytes) -> None:
    """Apply ``diff_text`` to ``dest`` in place.

    An empty diff is a no-op. A diff whose changes are already present in
    ``dest`` is also accepted without touching the file, which makes
    applying the same diff twice harmless. A symlinked ``dest`` is patched
    at its target, keeping the link, owner and mode intact.

    Raises:
        PatchApplyError: If the diff does not apply cleanly. ``dest`` is
            left byte-for-byte unchanged in that case.
    """
    dest_path = Path(dest)
    logger.debug("apply_diff: applying diff to %s", dest_path)

    if not diff_text:
        logger.debug("apply_diff: no changes to apply")
        return

    if not dest_path.is_file():
        raise PatchApplyError(
            f"Cannot patch: {dest_path} is not a file",
            details={"path": str(dest_path)},
        )

    if _is_already_applied(dest_path, diff_text):
        logger.debug("apply_diff: changes already present in %s, nothing to do", dest_path)
        return

    # Symlinked configs are patched at their target so the link itself survives
    dest_path = dest_path.resolve()

    try:
        with tempfile.TemporaryDirectory(prefix=".rootdiff-", dir=dest_path.parent) as workdir:
            work_copy = Path(workdir) / dest_path.name
            shutil.copy2(dest_path, work_copy)

            proc = _run_patch(
                [*_PATCH_FLAGS, f"--reject-file={Path(workdir) / 'rejects.rej'}", str(work_copy)],
                diff_text,
            )
            if proc.returncode == 0:
                _copy_ownership(dest_path, work_copy)
                os.replace(work_copy, dest_path)
                logger.debug("apply_diff: diff applied")
                return
    except OSError as e:
        logger.debug("apply_diff: cannot stage patched copy of %s: %s", dest_path, e)
        raise PatchApplyError(
            f"Cannot write patched copy of {dest_path}: {e}",
            details={"path": str(dest_path)},
        ) from e

    output = (proc.stdout + proc.stderr).decode(errors="replace").strip()
    logger.debug("apply_diff: patch exited with %d: %s", proc.returncode, output)
    raise PatchApplyError(
        f"Patch does not apply cleanly to {dest_path}: {output or 'no error output'}",
        details={"path": str(dest_path), "exit_code": proc.returncode, "output": output},
    )


def _copy_ownership(original: Path, replacement: Path) -> None:
    # copy2 keeps the mode but not uid/gid
    st = original.stat()
    current = replacement.stat()
    if (current.st_uid, current.st_gid) != (st.st_uid, st.st_gid):
        os.chown(replacement, st.st_uid, st.st_gid)


def _is_already_applied(dest_path: Path, diff_text: bytes) -> bool:
    """True when reversing the diff would apply cleanly, i.e. dest already holds its target state."""
    proc = _run_patch(
        ["--dry-run", "--reverse", *_PATCH_FLAGS, str(dest_path)],
        diff_text,
    )
    return proc.returncode == 0


def _run_patch(args: list[str], diff_text: bytes) -> subprocess.CompletedProcess:
    try:
        return subprocess.run(["patch", *args], input=diff_text, capture_output=True)
    except OSError as e:
        logger.debug("apply_diff: could not run patch: %s", e)
        raise PatchApplyError(f"Could not run patch: {e}") from e
