"""Speech input adapter.

Turns a continuous recognition stream into exactly one submitted
argument per listening cycle.
"""

import logging
from enum import Enum
from typing import Any, Awaitable, Callable

from courtroom.lib.exceptions import SpeechRecognitionError, SpeechUnavailableError
from courtroom.lib.streaming import EventType
from courtroom.speech.recognizer import SpeechRecognizer

logger = logging.getLogger(__name__)


class ListeningState(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"


class TranscriptBuffer:
    """Finalized segments plus the current interim hypothesis."""

    def __init__(self) -> None:
        self.finalized: list[str] = []
        self.interim = ""

    def add_interim(self, text: str) -> None:
        # Each interim result supersedes the previous hypothesis
        self.interim = text

    def add_final(self, text: str) -> None:
        if text.strip():
            self.finalized.append(text)
        self.interim = ""

    @property
    def text(self) -> str:
        parts = [s.strip() for s in [*self.finalized, self.interim]]
        return " ".join(p for p in parts if p)

    def clear(self) -> None:
        self.finalized = []
        self.interim = ""


class SpeechInputAdapter:
    """
    Converts recognition events into submitted arguments.

    Only the transcript accumulated when recognition ends is submitted;
    errors and cancellation end the cycle without submitting.
    """

    def __init__(
        self,
        recognizer: SpeechRecognizer,
        on_submit: Callable[[str], Awaitable[None]],
        on_event: Callable[[str, dict[str, Any]], None] | None = None,
        language: str = "en-IN",
    ):
        self.recognizer = recognizer
        self.on_submit = on_submit
        self.on_event = on_event
        self.language = language
        self.state = ListeningState.IDLE
        self.buffer = TranscriptBuffer()
        self._disabled = False
        recognizer.bind(self)

    @property
    def is_listening(self) -> bool:
        return self.state == ListeningState.LISTENING

    @property
    def transcript(self) -> str:
        return self.buffer.text

    @property
    def disabled(self) -> bool:
        return self._disabled

    @property
    def available(self) -> bool:
        return not self._disabled and self.recognizer.available

    def emit(self, event_type: str, data: dict[str, Any]) -> None:
        if self.on_event is not None:
            self.on_event(event_type, data)

    def _disable(self) -> None:
        if self._disabled:
            return
        self._disabled = True
        message = SpeechUnavailableError().message
        logger.warning(message)
        self.emit(EventType.NOTICE, {"message": message, "level": "warning"})

    # =========================================================================
    # Control
    # =========================================================================

    async def start(self) -> bool:
        """
        Begin a listening cycle.

        Returns:
            True when listening, False when speech input is unavailable
        """
        if self._disabled:
            return False
        if self.is_listening:
            return True
        if not self.recognizer.available:
            self._disable()
            return False

        self.buffer.clear()
        self.state = ListeningState.LISTENING
        try:
            await self.recognizer.start(
                self.language, continuous=True, interim_results=True
            )
        except SpeechUnavailableError:
            self.state = ListeningState.IDLE
            self._disable()
            return False

        self.emit(EventType.SPEECH_STARTED, {"language": self.language})
        return True

    async def stop(self) -> None:
        """Ask recognition to finish; the transcript is submitted on end."""
        if self.is_listening:
            await self.recognizer.stop()

    async def cancel(self) -> None:
        """Stop listening and throw the transcript away."""
        if not self.is_listening:
            return
        self.state = ListeningState.IDLE
        self.buffer.clear()
        await self.recognizer.stop()
        self.emit(EventType.SPEECH_STOPPED, {"submitted": False})

    async def reset(self) -> None:
        """Cancel and re-enable for a new session."""
        await self.cancel()
        self._disabled = False

    # =========================================================================
    # Recognition events
    # =========================================================================

    def handle_start(self) -> None:
        if self.is_listening:
            logger.debug("Recognition started")

    def handle_interim_result(self, text: str) -> None:
        if not self.is_listening:
            return
        self.buffer.add_interim(text)
        self.emit(EventType.SPEECH_TRANSCRIPT, {"transcript": self.buffer.text, "final": False})

    def handle_final_result(self, text: str) -> None:
        if not self.is_listening:
            return
        self.buffer.add_final(text)
        self.emit(EventType.SPEECH_TRANSCRIPT, {"transcript": self.buffer.text, "final": True})

    async def handle_end(self) -> None:
        """Finish the cycle and submit whatever was heard."""
        if not self.is_listening:
            return
        text = self.buffer.text.strip()
        self.buffer.clear()
        self.state = ListeningState.IDLE
        self.emit(EventType.SPEECH_STOPPED, {"submitted": bool(text)})
        if text:
            await self.on_submit(text)

    def handle_error(self, code: str) -> None:
        if not self.is_listening:
            return
        error = SpeechRecognitionError(code)
        logger.warning(error.message)
        self.state = ListeningState.IDLE
        self.buffer.clear()
        self.emit(EventType.SPEECH_ERROR, {"code": code, "message": error.message})
