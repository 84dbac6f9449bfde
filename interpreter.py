"""Transcript classification into commands."""

from __future__ import annotations

import re

from models import CallByName, CallByNumber, Command, OpenApp, Search, Unrecognized

DEFAULT_DIAL_DIGITS_THRESHOLD = 2

SEARCH_PREFIX = "google"
CALL_KEYWORD = "call"

# Checked in order; the whatsapp aliases cover a common misrecognition.
APP_TRIGGERS = (
    ("youtube", ("open youtube",)),
    ("whatsapp", ("open whatsapp", "open what's up")),
)

_NON_DIGITS = re.compile(r"[^0-9]")


class CommandInterpreter:
    def __init__(self, dial_digits_threshold: int = DEFAULT_DIAL_DIGITS_THRESHOLD) -> None:
        # More digits than this means a number to dial rather than a name.
        self.dial_digits_threshold = dial_digits_threshold

    def interpret(self, transcript: str) -> Command:
        text = transcript.lower().strip()
        if not text:
            return Unrecognized()

        if text.startswith(SEARCH_PREFIX):
            query = text[len(SEARCH_PREFIX):].strip()
            return Search(query) if query else Unrecognized()

        if CALL_KEYWORD in text:
            return self._interpret_call(text)

        for app_id, phrases in APP_TRIGGERS:
            if any(phrase in text for phrase in phrases):
                return OpenApp(app_id)

        return Unrecognized()

    def _interpret_call(self, text: str) -> Command:
        raw_target = text.replace(CALL_KEYWORD, "", 1).strip()
        digits = _NON_DIGITS.sub("", raw_target)
        if len(digits) > self.dial_digits_threshold:
            return CallByNumber(digits)
        if raw_target:
            return CallByName(raw_target)
        return Unrecognized()
