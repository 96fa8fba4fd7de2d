"""Audio cue dispatcher.

Maps deliberation events onto courtroom sounds. Playback itself happens
in the presentation layer; the dispatcher only decides which cue plays
and when.
"""

import logging
import random
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict

from courtroom.lib.models import COUNSEL_ROLES, Speaker, Turn
from courtroom.lib.streaming import EventType

logger = logging.getLogger(__name__)


# =============================================================================
# Cues
# =============================================================================


class AudioCue(str, Enum):
    AMBIENCE = "ambience"
    GAVEL = "gavel"
    COUGH = "cough"
    MURMUR = "murmur"


class CueAsset(BaseModel):
    """Playback parameters for a cue."""

    model_config = ConfigDict(frozen=True)

    url: str
    volume: float
    loop: bool = False


CUE_ASSETS: dict[AudioCue, CueAsset] = {
    AudioCue.AMBIENCE: CueAsset(
        url="https://storage.googleapis.com/gemini-ui-params/prompts/webhook/2024-05-24/courtroom_ambience.mp3",
        volume=0.15,
        loop=True,
    ),
    AudioCue.GAVEL: CueAsset(
        url="https://storage.googleapis.com/aistudio-hosting/2024-05-24/2f85d263-d143-41a4-8f19-943e3c834a7d.mp3",
        volume=0.5,
    ),
    AudioCue.COUGH: CueAsset(
        url="https://storage.googleapis.com/gemini-ui-params/prompts/webhook/2024-05-24/cough.mp3",
        volume=0.3,
    ),
    AudioCue.MURMUR: CueAsset(
        url="https://storage.googleapis.com/gemini-ui-params/prompts/webhook/2024-05-24/murmur.mp3",
        volume=0.3,
    ),
}

REACTION_CUES: tuple[AudioCue, ...] = (AudioCue.COUGH, AudioCue.MURMUR)


# =============================================================================
# Players
# =============================================================================


class CuePlayer(ABC):
    """Output side of the dispatcher."""

    @abstractmethod
    def play(self, cue: AudioCue) -> None:
        """Play a one-shot cue."""

    @abstractmethod
    def start_loop(self, cue: AudioCue) -> None:
        """Start (or resume) a looping cue."""

    @abstractmethod
    def stop_loop(self, cue: AudioCue) -> None:
        """Pause a looping cue."""

    def close(self) -> None:
        """Release playback resources."""


class EventCuePlayer(CuePlayer):
    """Publishes cues as audio_cue events for the presentation layer."""

    def __init__(self, emit: Callable[[str, dict[str, Any]], None]):
        self.emit = emit

    def _send(self, action: str, cue: AudioCue) -> None:
        asset = CUE_ASSETS[cue]
        self.emit(
            EventType.AUDIO_CUE,
            {
                "action": action,
                "cue": cue.value,
                "url": asset.url,
                "volume": asset.volume,
                "loop": asset.loop,
            },
        )

    def play(self, cue: AudioCue) -> None:
        self._send("play", cue)

    def start_loop(self, cue: AudioCue) -> None:
        self._send("start_loop", cue)

    def stop_loop(self, cue: AudioCue) -> None:
        self._send("stop_loop", cue)


class NullCuePlayer(CuePlayer):
    """Silent player for headless runs."""

    def play(self, cue: AudioCue) -> None:
        pass

    def start_loop(self, cue: AudioCue) -> None:
        pass

    def stop_loop(self, cue: AudioCue) -> None:
        pass


# =============================================================================
# Dispatcher
# =============================================================================


class AudioCueDispatcher:
    """
    Decides which cues accompany the hearing.

    Rules:
    - The judge's first appearance in a session strikes the gavel once
    - Counsel taking the floor draws an occasional reaction from the gallery
    - A verdict strikes the gavel
    - Nothing plays while muted or before initialize()
    """

    def __init__(
        self,
        player: CuePlayer,
        rng: random.Random | None = None,
        reaction_probability: float = 0.4,
        muted: bool = False,
    ):
        self.player = player
        self.rng = rng or random.Random()
        self.reaction_probability = reaction_probability
        self._muted = muted
        self._initialized = False
        self._judge_has_spoken = False
        self._previous_speaker: Speaker | None = None
        self._gavel_on_last_turn = False

    @property
    def muted(self) -> bool:
        return self._muted

    @property
    def initialized(self) -> bool:
        return self._initialized

    def _can_play(self) -> bool:
        return self._initialized and not self._muted

    def _invoke(self, action: Callable[[AudioCue], None], cue: AudioCue) -> bool:
        try:
            action(cue)
        except Exception:
            logger.exception(f"Audio cue {cue.value} failed")
            return False
        logger.debug(f"Audio cue: {cue.value}")
        return True

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def initialize(self) -> None:
        """Arm the dispatcher and start the ambient loop unless muted."""
        if self._initialized:
            return
        self._initialized = True
        if not self._muted:
            self._invoke(self.player.start_loop, AudioCue.AMBIENCE)

    def set_muted(self, muted: bool) -> None:
        """Mute or unmute. Only the ambient loop reacts immediately."""
        if muted == self._muted:
            return
        self._muted = muted
        if not self._initialized:
            return
        if muted:
            self._invoke(self.player.stop_loop, AudioCue.AMBIENCE)
        else:
            self._invoke(self.player.start_loop, AudioCue.AMBIENCE)

    def trigger(self, cue: AudioCue) -> bool:
        """Play a one-shot cue if allowed. Returns whether it played."""
        if not self._can_play():
            return False
        return self._invoke(self.player.play, cue)

    def dispose(self) -> None:
        """Stop the loop and forget everything about the session."""
        if self._initialized:
            self._invoke(self.player.stop_loop, AudioCue.AMBIENCE)
        self._initialized = False
        self._judge_has_spoken = False
        self._previous_speaker = None
        self._gavel_on_last_turn = False

    # =========================================================================
    # Deliberation events
    # =========================================================================

    def on_turn(self, turn: Turn) -> list[AudioCue]:
        """React to a newly appended turn. Returns the cues played."""
        played: list[AudioCue] = []
        previous = self._previous_speaker
        self._previous_speaker = turn.speaker
        self._gavel_on_last_turn = False

        if not self._can_play():
            return played

        speaker = turn.speaker
        if speaker == Speaker.JUDGE and previous != Speaker.JUDGE and not self._judge_has_spoken:
            if self.trigger(AudioCue.GAVEL):
                played.append(AudioCue.GAVEL)
                self._judge_has_spoken = True
                self._gavel_on_last_turn = True

        if speaker in COUNSEL_ROLES and speaker != previous:
            if self.rng.random() < self.reaction_probability:
                cue = self.rng.choice(REACTION_CUES)
                if self.trigger(cue):
                    played.append(cue)

        return played

    def on_verdict(self) -> list[AudioCue]:
        """
        Strike the gavel for the verdict.

        The gavel is a single audio element that does not restart while it
        is still sounding, so a verdict on the judge's first appearance is
        heard once.
        """
        if self._gavel_on_last_turn:
            return []
        if self.trigger(AudioCue.GAVEL):
            return [AudioCue.GAVEL]
        return []
