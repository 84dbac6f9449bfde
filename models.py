"""Core data models for the assistant."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Tuple, Union


class ListeningState(str, Enum):
    IDLE = "IDLE"
    AWAITING_WAKE_WORD = "AWAITING_WAKE_WORD"
    TRANSCRIBING = "TRANSCRIBING"
    RECOVERING_WAKE_WORD = "RECOVERING_WAKE_WORD"
    RECOVERING_TRANSCRIBER = "RECOVERING_TRANSCRIBER"
    FATAL_ERROR = "FATAL_ERROR"


class MatchStatus(str, Enum):
    MATCHED = "matched"
    NO_NUMBER = "no_number"
    NOT_FOUND = "not_found"


class OutcomeKind(str, Enum):
    SEARCH = "search"
    DIAL = "dial"
    CALL_CONTACT = "call_contact"
    CONTACT_NO_NUMBER = "contact_no_number"
    CONTACT_NOT_FOUND = "contact_not_found"
    OPEN_APP = "open_app"
    NO_ACTION = "no_action"


@dataclass
class AudioFrame:
    pcm16_bytes: bytes
    sample_rate: int = 16000
    channels: int = 1
    timestamp_ms: int = 0


@dataclass
class TranscriptEvent:
    text: str
    is_final: bool

    @classmethod
    def from_payload(cls, payload: str, is_final: bool) -> "TranscriptEvent":
        """Decode a recognizer payload: ``{"partial": ...}`` or ``{"text": ...}``.

        Raises ValueError when the payload is not a JSON object.
        """
        data = json.loads(payload)
        if not isinstance(data, dict):
            raise ValueError(f"transcript payload is not an object: {payload!r}")
        key = "text" if is_final else "partial"
        return cls(text=str(data.get(key) or "").strip(), is_final=is_final)


@dataclass(frozen=True)
class ContactEntry:
    display_name: str
    phone_numbers: Tuple[str, ...] = ()


@dataclass(frozen=True)
class MatchResult:
    entry: Optional[ContactEntry]
    score: Optional[int]

    @property
    def phone_number(self) -> Optional[str]:
        if self.entry is None or not self.entry.phone_numbers:
            return None
        return self.entry.phone_numbers[0]

    @property
    def status(self) -> MatchStatus:
        if self.entry is None:
            return MatchStatus.NOT_FOUND
        if self.phone_number is None:
            return MatchStatus.NO_NUMBER
        return MatchStatus.MATCHED


@dataclass(frozen=True)
class Search:
    query: str


@dataclass(frozen=True)
class CallByNumber:
    digits: str


@dataclass(frozen=True)
class CallByName:
    spoken_name: str


@dataclass(frozen=True)
class OpenApp:
    app_id: str


@dataclass(frozen=True)
class Unrecognized:
    pass


Command = Union[Search, CallByNumber, CallByName, OpenApp, Unrecognized]


@dataclass
class DispatchOutcome:
    kind: OutcomeKind
    display_text: str = ""
    launched: bool = False


@dataclass(frozen=True)
class StatusUpdate:
    state: ListeningState
    display_text: str = ""
    status_text: str = ""


@dataclass
class Session:
    """Mutable record owned by ListeningStateMachine."""

    state: ListeningState = ListeningState.IDLE
    wake_engine: Any = None
    transcription_engine: Any = None
    speech_session: Any = None
    display_text: str = ""
    status_text: str = "Initializing..."
    last_transcript: str = ""
    fatal_error: Optional[BaseException] = field(default=None, repr=False)

    def snapshot(self) -> StatusUpdate:
        return StatusUpdate(
            state=self.state,
            display_text=self.display_text,
            status_text=self.status_text,
        )
