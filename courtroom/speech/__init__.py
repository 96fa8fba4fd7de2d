"""Speech package - voice input for arguments."""

from courtroom.speech.adapter import ListeningState, SpeechInputAdapter, TranscriptBuffer
from courtroom.speech.recognizer import ClientSpeechRecognizer, SpeechRecognizer

__all__ = [
    "ClientSpeechRecognizer",
    "ListeningState",
    "SpeechInputAdapter",
    "SpeechRecognizer",
    "TranscriptBuffer",
]
