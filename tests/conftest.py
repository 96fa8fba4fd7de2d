"""
Shared fixtures for the courtroom tests.

The AI side is always scripted: no test talks to a real model.
"""

import asyncio
import random
from typing import Any

import pytest

from courtroom.audio.cues import AudioCue, AudioCueDispatcher, CuePlayer
from courtroom.config import Settings
from courtroom.lib.catalog import ScenarioCatalog
from courtroom.lib.models import GatewayReply, Speaker, Turn
from courtroom.lib.streaming import EventBroadcaster
from courtroom.orchestrator.arbitration import TurnArbiter
from courtroom.orchestrator.gateway import ResponseGateway
from courtroom.orchestrator.session import CourtroomSession
from courtroom.speech.recognizer import SpeechRecognizer


class ScriptedGateway(ResponseGateway):
    """Returns queued replies in order; queued exceptions are raised."""

    def __init__(self, *replies: GatewayReply | Exception):
        self.replies = list(replies)
        self.calls: list[dict[str, Any]] = []
        self.release: asyncio.Event | None = None

    def hold(self) -> None:
        """Block every call until release is set."""
        self.release = asyncio.Event()

    async def next_turn(
        self,
        history: list[Turn],
        user_role: Speaker,
        scenario_title: str,
    ) -> GatewayReply:
        self.calls.append(
            {
                "history": list(history),
                "user_role": user_role,
                "scenario_title": scenario_title,
            }
        )
        if self.release is not None:
            await self.release.wait()
        if not self.replies:
            raise AssertionError("Gateway called more often than scripted")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class RecordingCuePlayer(CuePlayer):
    def __init__(self) -> None:
        self.actions: list[tuple[str, AudioCue]] = []
        self.closed = False

    def play(self, cue: AudioCue) -> None:
        self.actions.append(("play", cue))

    def start_loop(self, cue: AudioCue) -> None:
        self.actions.append(("start_loop", cue))

    def stop_loop(self, cue: AudioCue) -> None:
        self.actions.append(("stop_loop", cue))

    def close(self) -> None:
        self.closed = True

    @property
    def played(self) -> list[AudioCue]:
        return [cue for action, cue in self.actions if action == "play"]


class FakeRecognizer(SpeechRecognizer):
    def __init__(self, available: bool = True):
        super().__init__()
        self._available = available
        self.started: list[dict[str, Any]] = []
        self.stops = 0

    @property
    def available(self) -> bool:
        return self._available

    async def start(
        self,
        language: str,
        continuous: bool = True,
        interim_results: bool = True,
    ) -> None:
        self.started.append(
            {
                "language": language,
                "continuous": continuous,
                "interim_results": interim_results,
            }
        )

    async def stop(self) -> None:
        self.stops += 1


def reply(speaker: str, dialogue: str, verdict: bool = False, reasoning: str = "") -> GatewayReply:
    return GatewayReply(
        speaker=Speaker(speaker),
        dialogue=dialogue,
        verdict=verdict,
        reasoning=reasoning,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        anthropic_api_key="",
        openai_api_key="",
        openrouter_api_key="",
        speech_language="en-IN",
    )


@pytest.fixture
def catalog() -> ScenarioCatalog:
    return ScenarioCatalog()


@pytest.fixture
def gateway() -> ScriptedGateway:
    return ScriptedGateway()


@pytest.fixture
def cue_player() -> RecordingCuePlayer:
    return RecordingCuePlayer()


@pytest.fixture
def recognizer() -> FakeRecognizer:
    return FakeRecognizer()


@pytest.fixture
def broadcaster() -> EventBroadcaster:
    return EventBroadcaster(heartbeat_interval=0.05)


@pytest.fixture
def published(broadcaster: EventBroadcaster) -> list:
    events: list = []
    broadcaster.add_listener(events.append)
    return events


@pytest.fixture
def courtroom(
    gateway: ScriptedGateway,
    catalog: ScenarioCatalog,
    recognizer: FakeRecognizer,
    cue_player: RecordingCuePlayer,
    broadcaster: EventBroadcaster,
    settings: Settings,
) -> CourtroomSession:
    cues = AudioCueDispatcher(cue_player, rng=random.Random(7), reaction_probability=0.0)
    return CourtroomSession(
        arbiter=TurnArbiter(gateway),
        catalog=catalog,
        recognizer=recognizer,
        cues=cues,
        broadcaster=broadcaster,
        settings=settings,
    )


async def open_hearing(
    courtroom: CourtroomSession,
    scenario: str = "bail_application",
    role: Speaker = Speaker.DEFENSE,
    mode: str = "text",
) -> None:
    courtroom.select_scenario(scenario)
    courtroom.select_role(role)
    courtroom.select_theme("classic_mahogany")
    await courtroom.select_input_mode(mode)
