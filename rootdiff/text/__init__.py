"""Text diff/merge engine for reconciling configuration files across transactions.

Computes a unified diff between two file revisions and reapplies it to a
destination file with the system ``diff`` and ``patch`` tools.
"""

from rootdiff.text.merge import apply_diff, compute_diff, merge_diff

__all__ = [
    "apply_diff",
    "compute_diff",
    "merge_diff",
]
