"""Turns a classified command into an executor call and a user-visible outcome."""

from __future__ import annotations

import logging
from typing import Sequence
from urllib.parse import quote

from contacts import ContactResolver
from errors import DispatchError
from interfaces import ActionExecutor
from models import (
    CallByName,
    CallByNumber,
    Command,
    ContactEntry,
    DispatchOutcome,
    MatchStatus,
    OpenApp,
    OutcomeKind,
    Search,
)

logger = logging.getLogger(__name__)

SEARCH_URL = "https://www.google.com/search?q={query}"


def search_url(query: str) -> str:
    return SEARCH_URL.format(query=quote(query, safe=""))


class CommandDispatcher:
    def __init__(
        self,
        executor: ActionExecutor,
        directory: Sequence[ContactEntry] = (),
        resolver: ContactResolver | None = None,
    ) -> None:
        self._executor = executor
        self._directory = tuple(directory)
        self._resolver = resolver or ContactResolver()

    @property
    def directory(self) -> Sequence[ContactEntry]:
        return self._directory

    def dispatch(self, command: Command) -> DispatchOutcome:
        """Run the command. Executor exceptions are raised as DispatchError."""
        try:
            return self._dispatch(command)
        except DispatchError:
            raise
        except Exception as exc:
            raise DispatchError(f"{type(command).__name__} failed: {exc}") from exc

    def _dispatch(self, command: Command) -> DispatchOutcome:
        if isinstance(command, Search):
            launched = self._executor.browse(search_url(command.query))
            return DispatchOutcome(OutcomeKind.SEARCH, f"Searching '{command.query}'", launched)

        if isinstance(command, CallByNumber):
            launched = self._executor.dial(command.digits)
            return DispatchOutcome(OutcomeKind.DIAL, f"Calling {command.digits}...", launched)

        if isinstance(command, CallByName):
            return self._call_by_name(command.spoken_name)

        if isinstance(command, OpenApp):
            launched = self._executor.launch_app(command.app_id)
            return DispatchOutcome(OutcomeKind.OPEN_APP, f"Opening {command.app_id}", launched)

        return DispatchOutcome(OutcomeKind.NO_ACTION)

    def _call_by_name(self, spoken_name: str) -> DispatchOutcome:
        match = self._resolver.resolve(spoken_name, self._directory)
        logger.info("Resolved %r -> %s (score=%s)", spoken_name, match.status.value, match.score)

        if match.status == MatchStatus.NOT_FOUND or match.entry is None:
            return DispatchOutcome(OutcomeKind.CONTACT_NOT_FOUND, f"Couldn't find '{spoken_name}'")

        name = match.entry.display_name
        if match.status == MatchStatus.NO_NUMBER or match.phone_number is None:
            return DispatchOutcome(OutcomeKind.CONTACT_NO_NUMBER, f"{name} has no number.")

        launched = self._executor.dial(match.phone_number)
        return DispatchOutcome(OutcomeKind.CALL_CONTACT, f"Calling {name}...", launched)
