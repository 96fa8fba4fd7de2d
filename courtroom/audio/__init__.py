"""Audio package - courtroom sound cues."""

from courtroom.audio.cues import (
    CUE_ASSETS,
    REACTION_CUES,
    AudioCue,
    AudioCueDispatcher,
    CuePlayer,
    EventCuePlayer,
    NullCuePlayer,
)

__all__ = [
    "CUE_ASSETS",
    "REACTION_CUES",
    "AudioCue",
    "AudioCueDispatcher",
    "CuePlayer",
    "EventCuePlayer",
    "NullCuePlayer",
]
