"""Courtroom session state machine.

One CourtroomSession hosts one hearing at a time: selection of scenario,
role, theme and input mode, the running deliberation, and the verdict.
Side effects (events, cues, speech) hang off the turn appends.
"""

import logging
from typing import Any

from courtroom.audio.cues import AudioCueDispatcher, EventCuePlayer
from courtroom.config import Settings, get_settings
from courtroom.lib.catalog import ScenarioCatalog, load_catalog
from courtroom.lib.exceptions import SessionStateError, ValidationError
from courtroom.lib.models import (
    COUNSEL_ROLES,
    Actor,
    InputMode,
    SessionState,
    SessionStatus,
    SessionView,
    Speaker,
    Turn,
)
from courtroom.lib.streaming import EventBroadcaster, EventBuilder
from courtroom.orchestrator.arbitration import TurnArbiter, next_actor, should_request_ai_turn
from courtroom.orchestrator.gateway import LLMResponseGateway
from courtroom.speech.adapter import SpeechInputAdapter
from courtroom.speech.recognizer import ClientSpeechRecognizer, SpeechRecognizer

logger = logging.getLogger(__name__)


class CourtroomSession:
    """
    Controller for the single running hearing.

    Lifecycle:
    selection -> role_selection -> theme_selection ->
    input_method_selection -> running -> verdict

    end_session() returns to selection from anywhere. A gateway call that
    is still in flight at that point finishes against the discarded state
    and publishes nothing.
    """

    def __init__(
        self,
        arbiter: TurnArbiter,
        catalog: ScenarioCatalog,
        recognizer: SpeechRecognizer | None = None,
        cues: AudioCueDispatcher | None = None,
        broadcaster: EventBroadcaster | None = None,
        settings: Settings | None = None,
    ):
        self.settings = settings or get_settings()
        self.arbiter = arbiter
        self.catalog = catalog
        self.broadcaster = broadcaster or EventBroadcaster(
            heartbeat_interval=self.settings.sse_heartbeat_seconds
        )

        self.state = SessionState(theme=catalog.default_theme)
        self._events = EventBuilder(self.state)

        self.cues = cues or AudioCueDispatcher(
            EventCuePlayer(self._publish),
            reaction_probability=self.settings.reaction_probability,
        )
        self.speech = SpeechInputAdapter(
            recognizer or ClientSpeechRecognizer(),
            on_submit=self._submit_transcript,
            on_event=self._publish,
            language=self.settings.speech_language,
        )

    # =========================================================================
    # Internals
    # =========================================================================

    def _publish(self, event_type: str, data: dict[str, Any]) -> None:
        self.broadcaster.publish(self._events.build(event_type, data))

    def _require(self, status: SessionStatus) -> None:
        if self.state.status != status:
            raise SessionStateError(
                f"Operation requires status {status.value}, "
                f"session is {self.state.status.value}",
                expected_status=status.value,
                actual_status=self.state.status.value,
            )

    def _set_status(self, status: SessionStatus) -> None:
        previous = self.state.status.value
        self.state.status = status
        self.state.touch()
        logger.info(f"Session {self.state.session_id}: {previous} -> {status.value}")
        self.broadcaster.publish(self._events.status_changed(previous))

    def _announce_turn(self, turn: Turn) -> None:
        self.broadcaster.publish(self._events.turn_appended(turn))
        self.cues.on_turn(turn)

    def _record_turn(self, turn: Turn) -> None:
        self.state.append_turn(turn)
        self._announce_turn(turn)

    async def _advance(self) -> None:
        """Solicit the AI if it holds the floor."""
        state = self.state
        if not should_request_ai_turn(state):
            return

        self.broadcaster.publish(self._events.awaiting_response(True))
        turn = await self.arbiter.take_turn(state)

        if state is not self.state:
            logger.info(f"Discarding turn for ended session {state.session_id}")
            return

        self.broadcaster.publish(self._events.awaiting_response(False))
        self._announce_turn(turn)
        if turn.verdict:
            self.broadcaster.publish(
                self._events.status_changed(SessionStatus.RUNNING.value)
            )
            self.broadcaster.publish(self._events.verdict(turn.reasoning))
            self.cues.on_verdict()

    async def _submit_transcript(self, text: str) -> None:
        if not self.is_user_turn:
            logger.warning("Dropping spoken argument received outside the user's turn")
            return
        await self.submit_argument(text)

    # =========================================================================
    # Selection
    # =========================================================================

    def select_scenario(self, key: str) -> None:
        self._require(SessionStatus.SELECTION)
        self.state.scenario = self.catalog.get_scenario(key)
        self._set_status(SessionStatus.ROLE_SELECTION)

    def select_role(self, role: Speaker) -> None:
        self._require(SessionStatus.ROLE_SELECTION)
        if role not in COUNSEL_ROLES:
            raise ValidationError(
                "The user must play defense or prosecution",
                field="role",
                value=role,
            )
        self.state.user_role = role
        self._set_status(SessionStatus.THEME_SELECTION)

    def select_theme(self, key: str) -> None:
        self._require(SessionStatus.THEME_SELECTION)
        self.state.theme = self.catalog.get_theme(key).key
        self._set_status(SessionStatus.INPUT_METHOD_SELECTION)

    async def select_input_mode(self, mode: InputMode) -> None:
        """
        Open the hearing.

        The scenario's opening statement is read into the record when the
        user does not make it; the AI is solicited at once if it holds
        the floor.
        """
        self._require(SessionStatus.INPUT_METHOD_SELECTION)
        state = self.state
        assert state.scenario is not None and state.user_role is not None

        state.input_mode = InputMode(mode)
        self._set_status(SessionStatus.RUNNING)
        self.cues.initialize()

        opening = state.scenario.opening_statement
        if opening.speaker != state.user_role:
            self._record_turn(Turn(speaker=opening.speaker, dialogue=opening.dialogue))

        await self._advance()

    # =========================================================================
    # Deliberation
    # =========================================================================

    async def submit_argument(self, text: str) -> None:
        """Record the user's argument and let the AI answer."""
        self._require(SessionStatus.RUNNING)
        if not self.is_user_turn:
            raise SessionStateError("It is not the user's turn to speak")
        argument = text.strip()
        if not argument:
            raise ValidationError("Argument must not be empty", field="text", value=text)

        assert self.state.user_role is not None
        if self.speech.is_listening:
            await self.speech.cancel()

        self._record_turn(Turn(speaker=self.state.user_role, dialogue=argument))
        await self._advance()

    async def toggle_listening(self) -> bool:
        """
        Start or stop voice capture.

        Returns:
            True when a listening cycle was started, False when one was
            stopped or speech input is unavailable
        """
        self._require(SessionStatus.RUNNING)
        if self.state.input_mode != InputMode.VOICE:
            raise SessionStateError("Voice input was not selected for this session")

        if self.speech.is_listening:
            await self.speech.stop()
            return False

        if self.state.speech_disabled:
            return False
        if not self.is_user_turn:
            raise SessionStateError("It is not the user's turn to speak")

        listening = await self.speech.start()
        self.state.speech_disabled = self.speech.disabled
        return listening

    def set_muted(self, muted: bool) -> None:
        self.cues.set_muted(muted)

    async def end_session(self) -> None:
        """Abandon the hearing and return to scenario selection."""
        ended = self.state.session_id
        await self.speech.reset()
        self.cues.dispose()

        self.state = SessionState(theme=self.catalog.default_theme)
        self._events = EventBuilder(self.state)
        logger.info(f"Session {ended} ended, new session {self.state.session_id}")
        self.broadcaster.publish(self._events.session_reset())

    # =========================================================================
    # Observers
    # =========================================================================

    @property
    def status(self) -> SessionStatus:
        return self.state.status

    @property
    def active_speaker(self) -> Speaker | None:
        last = self.state.last_turn
        return last.speaker if last else None

    @property
    def current_dialogue(self) -> str:
        last = self.state.last_turn
        return last.dialogue if last else ""

    @property
    def is_loading(self) -> bool:
        return self.state.is_awaiting_response

    @property
    def is_user_turn(self) -> bool:
        state = self.state
        if state.status != SessionStatus.RUNNING or state.is_awaiting_response:
            return False
        if state.scenario is None or state.user_role is None:
            return False
        return (
            next_actor(
                state.history,
                state.user_role,
                state.scenario.opening_statement.speaker,
            )
            == Actor.USER
        )

    @property
    def verdict_reasoning(self) -> str:
        return self.state.verdict_reasoning

    @property
    def is_listening(self) -> bool:
        return self.speech.is_listening

    @property
    def transcript(self) -> str:
        return self.speech.transcript

    def snapshot(self) -> SessionView:
        """Read-only view of the session for the presentation layer."""
        state = self.state
        return SessionView(
            session_id=state.session_id,
            status=state.status,
            scenario=state.scenario,
            user_role=state.user_role,
            theme=state.theme,
            input_mode=state.input_mode,
            history=list(state.history),
            active_speaker=self.active_speaker,
            current_dialogue=self.current_dialogue,
            is_user_turn=self.is_user_turn,
            is_loading=self.is_loading,
            is_verdict=state.status == SessionStatus.VERDICT,
            verdict_reasoning=state.verdict_reasoning,
            is_listening=self.is_listening,
            transcript=self.transcript,
            speech_available=self.speech.available,
            muted=self.cues.muted,
        )

    async def close(self) -> None:
        """Release speech, audio and stream resources."""
        await self.speech.cancel()
        self.cues.dispose()
        self.cues.player.close()
        self.broadcaster.close()


# =============================================================================
# Module-level session
# =============================================================================


_courtroom: CourtroomSession | None = None


def get_courtroom() -> CourtroomSession:
    """Get the process-wide courtroom session."""
    global _courtroom
    if _courtroom is None:
        settings = get_settings()
        arbiter = TurnArbiter(
            LLMResponseGateway(settings=settings),
            timeout=settings.gateway_timeout_seconds,
        )
        _courtroom = CourtroomSession(
            arbiter=arbiter,
            catalog=load_catalog(settings.scenario_file),
            settings=settings,
        )
    return _courtroom


async def close_courtroom() -> None:
    """Close the process-wide courtroom session."""
    global _courtroom
    if _courtroom:
        await _courtroom.close()
        _courtroom = None
