from __future__ import annotations

import pytest

from contacts import ContactResolver
from dispatcher import CommandDispatcher, search_url
from errors import DispatchError
from models import (
    CallByName,
    CallByNumber,
    ContactEntry,
    OpenApp,
    OutcomeKind,
    Search,
    Unrecognized,
)

DIRECTORY = (
    ContactEntry("Alice Smith", ("111", "112")),
    ContactEntry("Bob Jones", ("222",)),
    ContactEntry("Carol", ()),
)


class RecordingExecutor:
    def __init__(self, available: bool = True) -> None:
        self.available = available
        self.calls: list[tuple[str, str]] = []

    def dial(self, digits: str) -> bool:
        self.calls.append(("dial", digits))
        return self.available

    def browse(self, url: str) -> bool:
        self.calls.append(("browse", url))
        return self.available

    def launch_app(self, app_id: str) -> bool:
        self.calls.append(("launch_app", app_id))
        return self.available


class BrokenExecutor(RecordingExecutor):
    def dial(self, digits: str) -> bool:
        raise OSError("dialer crashed")


def _dispatcher(executor: RecordingExecutor, directory=DIRECTORY) -> CommandDispatcher:  # noqa: ANN001
    return CommandDispatcher(executor, directory, ContactResolver())


def test_search_url_is_percent_encoded() -> None:
    assert search_url("weather today") == "https://www.google.com/search?q=weather%20today"
    assert search_url("a&b/c") == "https://www.google.com/search?q=a%26b%2Fc"


def test_search_browses() -> None:
    executor = RecordingExecutor()
    outcome = _dispatcher(executor).dispatch(Search("weather today"))

    assert outcome.kind == OutcomeKind.SEARCH
    assert outcome.launched is True
    assert executor.calls == [("browse", "https://www.google.com/search?q=weather%20today")]


def test_call_by_number_dials_digits() -> None:
    executor = RecordingExecutor()
    outcome = _dispatcher(executor).dispatch(CallByNumber("5551234"))

    assert outcome.kind == OutcomeKind.DIAL
    assert executor.calls == [("dial", "5551234")]


def test_call_by_name_dials_first_number() -> None:
    executor = RecordingExecutor()
    outcome = _dispatcher(executor).dispatch(CallByName("alice smyth"))

    assert outcome.kind == OutcomeKind.CALL_CONTACT
    assert outcome.display_text == "Calling Alice Smith..."
    assert executor.calls == [("dial", "111")]


def test_call_by_name_without_number() -> None:
    executor = RecordingExecutor()
    outcome = _dispatcher(executor).dispatch(CallByName("carol"))

    assert outcome.kind == OutcomeKind.CONTACT_NO_NUMBER
    assert outcome.display_text == "Carol has no number."
    assert executor.calls == []


def test_call_by_name_not_found() -> None:
    executor = RecordingExecutor()
    outcome = _dispatcher(executor).dispatch(CallByName("xyz completely different"))

    assert outcome.kind == OutcomeKind.CONTACT_NOT_FOUND
    assert outcome.display_text == "Couldn't find 'xyz completely different'"
    assert executor.calls == []


def test_call_by_name_with_empty_directory_is_not_found() -> None:
    executor = RecordingExecutor()
    outcome = _dispatcher(executor, directory=()).dispatch(CallByName("alice smith"))
    assert outcome.kind == OutcomeKind.CONTACT_NOT_FOUND


def test_open_app_launches() -> None:
    executor = RecordingExecutor()
    outcome = _dispatcher(executor).dispatch(OpenApp("whatsapp"))

    assert outcome.kind == OutcomeKind.OPEN_APP
    assert executor.calls == [("launch_app", "whatsapp")]


def test_unrecognized_does_nothing() -> None:
    executor = RecordingExecutor()
    outcome = _dispatcher(executor).dispatch(Unrecognized())

    assert outcome.kind == OutcomeKind.NO_ACTION
    assert outcome.display_text == ""
    assert executor.calls == []


def test_unavailable_handler_is_not_an_error() -> None:
    executor = RecordingExecutor(available=False)
    outcome = _dispatcher(executor).dispatch(OpenApp("youtube"))

    assert outcome.kind == OutcomeKind.OPEN_APP
    assert outcome.launched is False


def test_executor_exception_becomes_dispatch_error() -> None:
    with pytest.raises(DispatchError, match="dialer crashed"):
        _dispatcher(BrokenExecutor()).dispatch(CallByNumber("5551234"))
