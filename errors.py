"""Shared error codes, user-facing messages and exceptions."""

from __future__ import annotations

ENGINE_CONSTRUCTION_FAILED = "ENGINE_CONSTRUCTION_FAILED"
ENGINE_START_FAILED = "ENGINE_START_FAILED"
PERMISSION_DENIED = "PERMISSION_DENIED"
DISPATCH_FAILED = "DISPATCH_FAILED"
TRANSCRIPT_PROTOCOL_ERROR = "TRANSCRIPT_PROTOCOL_ERROR"

ERROR_MESSAGES = {
    ENGINE_CONSTRUCTION_FAILED: "Speech engines could not be loaded.",
    ENGINE_START_FAILED: "Microphone is busy, retrying.",
    PERMISSION_DENIED: "Contacts are not readable, calling by name is disabled.",
    DISPATCH_FAILED: "Command could not be carried out.",
    TRANSCRIPT_PROTOCOL_ERROR: "Transcript payload format is invalid.",
}


class AssistantError(Exception):
    code = ""

    def __init__(self, message: str = "") -> None:
        super().__init__(message or ERROR_MESSAGES.get(self.code, self.code))


class EngineConstructionError(AssistantError):
    """An engine could not be built. Not retried."""

    code = ENGINE_CONSTRUCTION_FAILED


class EngineStartError(AssistantError):
    """An engine failed to start capturing audio. Transient."""

    code = ENGINE_START_FAILED


class DispatchError(AssistantError):
    code = DISPATCH_FAILED
