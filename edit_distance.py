"""Levenshtein edit distance."""

from __future__ import annotations

from typing import Sequence


def distance(a: Sequence[str], b: Sequence[str]) -> int:
    """Number of single-character insertions, deletions and substitutions
    needed to turn ``a`` into ``b``.

    Keeps two rows of ``len(b) + 1`` cells, so memory does not grow with ``a``.
    """
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    current = [0] * (len(b) + 1)
    for i, ca in enumerate(a):
        current[0] = i + 1
        for j, cb in enumerate(b):
            cost = 0 if ca == cb else 1
            current[j + 1] = min(
                current[j] + 1,
                previous[j + 1] + 1,
                previous[j] + cost,
            )
        previous, current = current, previous
    return previous[len(b)]
