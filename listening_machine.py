"""State-machine based orchestration of the wake-word and transcription engines."""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Any, Callable, Deque, Optional, Tuple

from dispatcher import CommandDispatcher
from errors import (
    DISPATCH_FAILED,
    ENGINE_START_FAILED,
    TRANSCRIPT_PROTOCOL_ERROR,
    EngineConstructionError,
)
from interfaces import (
    Scheduler,
    SpeechSession,
    TimerHandle,
    TranscriptionEngine,
    WakeCallback,
    WakeWordEngine,
)
from interpreter import CommandInterpreter
from models import ListeningState, Session, StatusUpdate, TranscriptEvent

logger = logging.getLogger(__name__)

WakeEngineFactory = Callable[[WakeCallback], WakeWordEngine]
TranscriptionEngineFactory = Callable[[], TranscriptionEngine]
StatusCallback = Callable[[StatusUpdate], None]
ErrorCallback = Callable[[str, str], None]

WAITING_TEXT = "Waiting for 'Hey Adel'..."


class ThreadingScheduler:
    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(delay_s, callback)
        timer.daemon = True
        timer.start()
        return timer


class ListeningStateMachine:
    """Owns both engines and guarantees that at most one of them captures audio.

    Engine callbacks may arrive on any thread. They are queued and handled one
    at a time, so a wake detection and a transcript never race on the session.
    """

    def __init__(
        self,
        wake_engine_factory: WakeEngineFactory,
        transcription_engine_factory: TranscriptionEngineFactory,
        dispatcher: CommandDispatcher,
        interpreter: Optional[CommandInterpreter] = None,
        scheduler: Optional[Scheduler] = None,
        backoff_s: float = 1.0,
        settle_s: float = 2.0,
        listen_timeout_s: float = 8.0,
        on_status: Optional[StatusCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        self._wake_engine_factory = wake_engine_factory
        self._transcription_engine_factory = transcription_engine_factory
        self._dispatcher = dispatcher
        self._interpreter = interpreter or CommandInterpreter()
        self._scheduler = scheduler or ThreadingScheduler()
        self._backoff_s = backoff_s
        self._settle_s = settle_s
        self._listen_timeout_s = listen_timeout_s
        self._on_status = on_status
        self._on_error = on_error

        self._session = Session()
        self._lock = threading.RLock()
        self._queue_lock = threading.Lock()
        self._events: Deque[Tuple[Callable[..., None], Tuple[Any, ...]]] = deque()
        self._draining = False
        self._drain_owner: Optional[int] = None
        self._stopped = threading.Event()
        self._timer: Optional[TimerHandle] = None
        self._restart_pending = False
        self._closed = False

    @property
    def state(self) -> ListeningState:
        return self._session.state

    @property
    def status(self) -> StatusUpdate:
        return self._session.snapshot()

    @property
    def last_transcript(self) -> str:
        return self._session.last_transcript

    @property
    def fatal_error(self) -> Optional[BaseException]:
        return self._session.fatal_error

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Build both engines and begin listening for the wake word.

        Raises EngineConstructionError if either engine cannot be built; the
        machine is then left in FATAL_ERROR.
        """
        with self._lock:
            if self._session.state != ListeningState.IDLE or self._closed:
                return
            try:
                self._session.status_text = "Loading speech engines..."
                self._emit_status()
                self._session.transcription_engine = self._transcription_engine_factory()
                self._session.wake_engine = self._wake_engine_factory(self._handle_wake_callback)
            except Exception as exc:
                error = exc if isinstance(exc, EngineConstructionError) else EngineConstructionError(str(exc))
                self._session.fatal_error = error
                self._session.status_text = f"Fatal Error: {error}"
                logger.error("Engine construction failed: %s", error)
                self._release_engines()
                self._transition(ListeningState.FATAL_ERROR)
                self._emit_error(error.code, str(error))
                if error is exc:
                    raise
                raise error from exc

        self._post(self._enter_wake_listening)

    def shutdown(self, timeout_s: float = 2.0) -> bool:
        """Cancel pending timers, then release every engine. Safe to repeat.

        Returns False if another thread was mid-transition and did not finish
        the release within ``timeout_s``.
        """
        self._cancel_timer()
        self._post(self._handle_shutdown)
        if self._drain_owner == threading.get_ident():
            return self._stopped.is_set()
        return self._stopped.wait(timeout_s)

    # ------------------------------------------------------------------
    # Engine callbacks (any thread)
    # ------------------------------------------------------------------

    def _handle_wake_callback(self, keyword_index: int) -> None:
        self._post(self._handle_wake_word, keyword_index)

    def _session_callbacks(self, speech_session: SpeechSession) -> Tuple[Callable[[str], None], Callable[[str], None]]:
        def on_partial(payload: str) -> None:
            self._post(self._handle_transcript, speech_session, payload, False)

        def on_result(payload: str) -> None:
            self._post(self._handle_transcript, speech_session, payload, True)

        return on_partial, on_result

    # ------------------------------------------------------------------
    # Event queue
    # ------------------------------------------------------------------

    def _post(self, handler: Callable[..., None], *args: Any) -> None:
        with self._queue_lock:
            self._events.append((handler, args))
            if self._draining:
                return
            self._draining = True
            self._drain_owner = threading.get_ident()
        self._drain()

    def _drain(self) -> None:
        while True:
            with self._queue_lock:
                if not self._events:
                    self._draining = False
                    self._drain_owner = None
                    return
                handler, args = self._events.popleft()
            with self._lock:
                try:
                    handler(*args)
                except Exception:
                    logger.exception("Unhandled error in %s", getattr(handler, "__name__", handler))
                    self._recover_after_unhandled()

    def _recover_after_unhandled(self) -> None:
        """Leave a timer behind so no live state is left without a way back to wake listening."""
        state = self._session.state
        if self._closed or state == ListeningState.FATAL_ERROR or self._session.wake_engine is None:
            return
        try:
            if state == ListeningState.TRANSCRIBING:
                self._post_restart()
            else:
                self._session.status_text = "Recovering..."
                self._transition(ListeningState.RECOVERING_WAKE_WORD)
                self._schedule(self._backoff_s, self._retry_wake_listening)
        except Exception:
            logger.exception("Recovery scheduling failed")

    # ------------------------------------------------------------------
    # Handlers (serialized)
    # ------------------------------------------------------------------

    def _enter_wake_listening(self) -> None:
        if self._closed or self._session.wake_engine is None:
            return
        self._cancel_timer()
        self._restart_pending = False
        self._teardown_speech_session()

        engine = self._session.transcription_engine
        try:
            if engine is not None:
                engine.reset()
        except Exception as exc:
            self._recover_wake_listening(exc)
            return

        self._session.display_text = ""
        self._session.status_text = WAITING_TEXT
        self._transition(ListeningState.AWAITING_WAKE_WORD)

        wake = self._session.wake_engine
        try:
            wake.start()
        except Exception as exc:
            self._recover_wake_listening(exc)

    def _recover_wake_listening(self, exc: BaseException) -> None:
        logger.warning("Wake word listening failed, retrying in %.1fs: %s", self._backoff_s, exc)
        self._session.status_text = f"Microphone unavailable, retrying: {exc}"
        self._transition(ListeningState.RECOVERING_WAKE_WORD)
        self._emit_error(ENGINE_START_FAILED, str(exc))
        self._schedule(self._backoff_s, self._retry_wake_listening)

    def _retry_wake_listening(self) -> None:
        if self._session.state != ListeningState.RECOVERING_WAKE_WORD:
            return
        self._safe_call(self._session.wake_engine, "stop")
        self._enter_wake_listening()

    def _handle_wake_word(self, keyword_index: int) -> None:
        if self._closed or self._session.state != ListeningState.AWAITING_WAKE_WORD:
            return
        logger.info("Wake word %d detected", keyword_index)
        # The microphone is only handed over once the wake engine has let go of it.
        try:
            self._session.wake_engine.stop()
        except Exception as exc:
            self._recover_transcriber(exc)
            return

        self._session.display_text = ""
        self._session.status_text = "Listening..."
        self._transition(ListeningState.TRANSCRIBING)

        engine = self._session.transcription_engine
        try:
            engine.reset()
            speech_session = engine.create_session()
            self._session.speech_session = speech_session
            on_partial, on_result = self._session_callbacks(speech_session)
            speech_session.on_partial(on_partial)
            speech_session.on_result(on_result)
            speech_session.start()
        except Exception as exc:
            self._recover_transcriber(exc)
            return

        if self._listen_timeout_s > 0:
            self._schedule(self._listen_timeout_s, self._handle_listen_timeout)

    def _recover_transcriber(self, exc: BaseException) -> None:
        logger.warning("Transcription start failed: %s", exc)
        self._transition(ListeningState.RECOVERING_TRANSCRIBER)
        self._emit_error(ENGINE_START_FAILED, str(exc))
        self._enter_wake_listening()

    def _handle_listen_timeout(self) -> None:
        if self._session.state != ListeningState.TRANSCRIBING or self._restart_pending:
            return
        logger.info("No command heard within %.1fs", self._listen_timeout_s)
        self._enter_wake_listening()

    def _handle_transcript(self, speech_session: SpeechSession, payload: str, is_final: bool) -> None:
        if (
            self._closed
            or speech_session is not self._session.speech_session
            or self._session.state != ListeningState.TRANSCRIBING
            or self._restart_pending
        ):
            return
        try:
            event = TranscriptEvent.from_payload(payload, is_final)
        except ValueError as exc:
            self._emit_error(TRANSCRIPT_PROTOCOL_ERROR, str(exc))
            return
        if not event.text:
            return

        self._session.display_text = event.text
        if not event.is_final:
            self._emit_status()
            return

        self._session.last_transcript = event.text
        self._session.status_text = f"Processing: {event.text}"
        self._emit_status()
        self._process_command(event.text)

    def _process_command(self, text: str) -> None:
        self._cancel_timer()
        try:
            command = self._interpreter.interpret(text)
            logger.info("Interpreted %r as %s", text, command)
            outcome = self._dispatcher.dispatch(command)
        except Exception as exc:
            logger.error("Command failed: %s", exc)
            self._emit_error(DISPATCH_FAILED, str(exc))
            self._enter_wake_listening()
            return

        if outcome.display_text:
            self._session.display_text = outcome.display_text
            self._emit_status()
        self._post_restart()

    def _post_restart(self) -> None:
        self._restart_pending = True
        self._schedule(self._settle_s, self._enter_wake_listening)

    def _handle_shutdown(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._cancel_timer()
        self._release_engines()
        if self._session.state != ListeningState.FATAL_ERROR:
            self._session.status_text = "Stopped"
            self._transition(ListeningState.IDLE)
        self._stopped.set()

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    def _schedule(self, delay_s: float, handler: Callable[[], None]) -> None:
        self._cancel_timer()
        self._timer = self._scheduler.call_later(delay_s, lambda: self._post(handler))

    def _cancel_timer(self) -> None:
        timer = self._timer
        self._timer = None
        if timer is not None:
            timer.cancel()

    def _teardown_speech_session(self) -> None:
        speech_session = self._session.speech_session
        self._session.speech_session = None
        if speech_session is None:
            return
        self._safe_call(speech_session, "stop")
        self._safe_call(speech_session, "dispose")

    def _release_engines(self) -> None:
        self._teardown_speech_session()
        wake = self._session.wake_engine
        self._session.wake_engine = None
        if wake is not None:
            self._safe_call(wake, "stop")
            self._safe_call(wake, "dispose")
        engine = self._session.transcription_engine
        self._session.transcription_engine = None
        if engine is not None:
            self._safe_call(engine, "dispose")

    def _safe_call(self, target: Any, method: str) -> None:
        if target is None:
            return
        try:
            getattr(target, method)()
        except Exception as exc:
            logger.warning("%s.%s() failed: %s", type(target).__name__, method, exc)

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def _transition(self, to_state: ListeningState) -> None:
        from_state = self._session.state
        if from_state != to_state:
            logger.info("%s -> %s", from_state.value, to_state.value)
        self._session.state = to_state
        self._emit_status()

    def _emit_status(self) -> None:
        if self._on_status:
            self._on_status(self._session.snapshot())

    def _emit_error(self, code: str, message: str) -> None:
        if self._on_error:
            self._on_error(code, message)
