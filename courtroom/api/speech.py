"""Speech ingress for client-side recognition."""

from fastapi import APIRouter, Depends

from courtroom.lib.exceptions import SpeechError
from courtroom.lib.models import (
    SessionView,
    SpeechCapabilityRequest,
    SpeechEventRequest,
)
from courtroom.orchestrator.session import CourtroomSession, get_courtroom
from courtroom.speech.recognizer import ClientSpeechRecognizer

router = APIRouter()


def _client_recognizer(courtroom: CourtroomSession) -> ClientSpeechRecognizer:
    recognizer = courtroom.speech.recognizer
    if not isinstance(recognizer, ClientSpeechRecognizer):
        raise SpeechError("Speech recognition is not driven by the client")
    return recognizer


@router.post("/speech/capability", response_model=SessionView)
async def report_capability(
    request: SpeechCapabilityRequest,
    courtroom: CourtroomSession = Depends(get_courtroom),
) -> SessionView:
    """Record whether the client can recognize speech."""
    _client_recognizer(courtroom).set_available(request.available)
    return courtroom.snapshot()


@router.post("/speech/events", response_model=SessionView)
async def speech_event(
    request: SpeechEventRequest,
    courtroom: CourtroomSession = Depends(get_courtroom),
) -> SessionView:
    """
    Forward one recognition event.

    An "end" event submits the accumulated transcript and waits for the
    AI's answer before responding.
    """
    adapter = courtroom.speech

    if request.event == "start":
        adapter.handle_start()
    elif request.event == "interim":
        adapter.handle_interim_result(request.text)
    elif request.event == "final":
        adapter.handle_final_result(request.text)
    elif request.event == "end":
        await adapter.handle_end()
    else:
        adapter.handle_error(request.code or "unknown")

    return courtroom.snapshot()
