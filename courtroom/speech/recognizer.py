"""Speech recognition capability."""

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from courtroom.lib.exceptions import SpeechUnavailableError
from courtroom.lib.streaming import EventType

if TYPE_CHECKING:
    from courtroom.speech.adapter import SpeechInputAdapter

logger = logging.getLogger(__name__)


class SpeechRecognizer(ABC):
    """
    A continuous speech recognizer.

    Recognition results are delivered to the bound adapter through its
    handle_start / handle_interim_result / handle_final_result /
    handle_end / handle_error methods.
    """

    def __init__(self) -> None:
        self.adapter: "SpeechInputAdapter | None" = None

    def bind(self, adapter: "SpeechInputAdapter") -> None:
        self.adapter = adapter

    @property
    @abstractmethod
    def available(self) -> bool:
        """Whether the host can recognize speech at all."""

    @abstractmethod
    async def start(
        self,
        language: str,
        continuous: bool = True,
        interim_results: bool = True,
    ) -> None:
        """Begin recognition. Raises SpeechUnavailableError when unsupported."""

    @abstractmethod
    async def stop(self) -> None:
        """Ask the recognizer to finish. It answers with handle_end."""


class ClientSpeechRecognizer(SpeechRecognizer):
    """
    Recognition performed by the presentation client.

    The server publishes speech_control commands over SSE; the client
    reports its capability and forwards recognition events back.
    Until the client says otherwise, recognition is assumed available.
    """

    def __init__(self) -> None:
        super().__init__()
        self._available: bool | None = None

    @property
    def available(self) -> bool:
        return self._available is not False

    def set_available(self, available: bool) -> None:
        self._available = available
        logger.info(f"Client speech recognition available: {available}")

    def _send(self, data: dict[str, Any]) -> None:
        if self.adapter is not None:
            self.adapter.emit(EventType.SPEECH_CONTROL, data)

    async def start(
        self,
        language: str,
        continuous: bool = True,
        interim_results: bool = True,
    ) -> None:
        if not self.available:
            raise SpeechUnavailableError()
        self._send(
            {
                "command": "start",
                "language": language,
                "continuous": continuous,
                "interim_results": interim_results,
            }
        )

    async def stop(self) -> None:
        self._send({"command": "stop"})
