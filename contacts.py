"""Contact directory snapshot and fuzzy name resolution."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional, Sequence, Tuple

from edit_distance import distance
from interfaces import ContactDirectory
from models import ContactEntry, MatchResult

logger = logging.getLogger(__name__)

DEFAULT_MAX_DISTANCE = 3


class ContactResolver:
    def __init__(self, max_distance: int = DEFAULT_MAX_DISTANCE) -> None:
        self.max_distance = max_distance

    def resolve(self, spoken: str, directory: Sequence[ContactEntry]) -> MatchResult:
        """Return the closest entry by edit distance, or no entry when even the
        closest one is further than ``max_distance``. Ties keep the earlier entry.
        """
        target = spoken.lower()
        best: Optional[ContactEntry] = None
        best_score: Optional[int] = None
        for entry in directory:
            score = distance(target, entry.display_name.lower())
            logger.debug("Comparing %r with %r -> %d", target, entry.display_name, score)
            if best_score is None or score < best_score:
                best_score = score
                best = entry

        if best is None or best_score is None or best_score > self.max_distance:
            return MatchResult(entry=None, score=best_score)
        return MatchResult(entry=best, score=best_score)


class JsonContactDirectory:
    """Contacts exported as a JSON list of ``{"name": ..., "phones": [...]}``."""

    def __init__(self, path: Path) -> None:
        self._path = path

    def load_all(self) -> Tuple[ContactEntry, ...]:
        if not self._path.exists():
            return ()
        # Read errors propagate; load_directory degrades them.
        raw = self._path.read_bytes()
        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            logger.warning("Contacts file %s is not valid UTF-8 JSON", self._path)
            return ()
        if not isinstance(data, list):
            return ()

        entries = []
        for item in data:
            if not isinstance(item, dict):
                continue
            name = str(item.get("name", "")).strip()
            if not name:
                continue
            phones = item.get("phones") or []
            if isinstance(phones, str):
                phones = [phones]
            numbers = tuple(str(p).strip() for p in phones if str(p).strip())
            entries.append(ContactEntry(display_name=name, phone_numbers=numbers))
        return tuple(entries)


def load_directory(directory: ContactDirectory) -> Tuple[ContactEntry, ...]:
    """Load an immutable snapshot; a denied or failed read yields an empty directory."""
    try:
        entries = tuple(directory.load_all())
    except OSError as exc:
        logger.warning("Contacts unavailable: %s", exc)
        return ()
    logger.info("Loaded %d contacts.", len(entries))
    return entries
