"""Speech input tests."""

import pytest

from conftest import FakeRecognizer, open_hearing, reply

from courtroom.lib.exceptions import SessionStateError
from courtroom.lib.models import Speaker
from courtroom.lib.streaming import EventType
from courtroom.speech.adapter import SpeechInputAdapter, TranscriptBuffer
from courtroom.speech.recognizer import ClientSpeechRecognizer


class TestTranscriptBuffer:
    def test_interim_replaces_interim(self):
        buffer = TranscriptBuffer()
        buffer.add_interim("I object")
        buffer.add_interim("I object to this")
        assert buffer.text == "I object to this"

    def test_final_is_kept_and_clears_interim(self):
        buffer = TranscriptBuffer()
        buffer.add_interim("Your")
        buffer.add_final("Your Honor,")
        buffer.add_interim("the evidence")
        assert buffer.finalized == ["Your Honor,"]
        assert buffer.text == "Your Honor, the evidence"

        buffer.clear()
        assert buffer.text == ""


def make_adapter(recognizer=None):
    submitted: list[str] = []
    events: list[tuple[str, dict]] = []

    async def on_submit(text: str) -> None:
        submitted.append(text)

    adapter = SpeechInputAdapter(
        recognizer or FakeRecognizer(),
        on_submit=on_submit,
        on_event=lambda event_type, data: events.append((event_type, data)),
    )
    return adapter, submitted, events


# =============================================================================
# Adapter
# =============================================================================


@pytest.mark.asyncio
async def test_interim_results_alone_submit_nothing_until_end():
    adapter, submitted, _ = make_adapter()
    assert await adapter.start()

    adapter.handle_interim_result("I object")
    adapter.handle_interim_result("I object to this")
    adapter.handle_final_result("I object to this evidence.")
    assert submitted == []

    await adapter.handle_end()

    assert submitted == ["I object to this evidence."]
    assert not adapter.is_listening
    assert adapter.transcript == ""


@pytest.mark.asyncio
async def test_start_requests_continuous_interim_recognition():
    recognizer = FakeRecognizer()
    adapter, _, events = make_adapter(recognizer)

    await adapter.start()

    assert recognizer.started == [
        {"language": "en-IN", "continuous": True, "interim_results": True}
    ]
    assert events[-1] == (EventType.SPEECH_STARTED, {"language": "en-IN"})


@pytest.mark.asyncio
async def test_error_ends_listening_without_submitting():
    adapter, submitted, events = make_adapter()
    await adapter.start()
    adapter.handle_final_result("Objection")

    adapter.handle_error("network")
    await adapter.handle_end()

    assert submitted == []
    assert not adapter.is_listening
    errors = [data for event_type, data in events if event_type == EventType.SPEECH_ERROR]
    assert errors[0]["code"] == "network"


@pytest.mark.asyncio
async def test_empty_transcript_is_not_submitted():
    adapter, submitted, _ = make_adapter()
    await adapter.start()
    adapter.handle_interim_result("   ")
    await adapter.handle_end()
    assert submitted == []


@pytest.mark.asyncio
async def test_events_while_idle_are_ignored():
    adapter, submitted, events = make_adapter()
    adapter.handle_final_result("stray")
    await adapter.handle_end()
    assert submitted == []
    assert events == []


@pytest.mark.asyncio
async def test_cancel_discards_transcript():
    recognizer = FakeRecognizer()
    adapter, submitted, _ = make_adapter(recognizer)
    await adapter.start()
    adapter.handle_final_result("Half a thought")

    await adapter.cancel()
    await adapter.handle_end()

    assert submitted == []
    assert recognizer.stops == 1


@pytest.mark.asyncio
async def test_unavailable_recognition_notifies_once():
    adapter, _, events = make_adapter(FakeRecognizer(available=False))

    assert not await adapter.start()
    assert not await adapter.start()

    notices = [data for event_type, data in events if event_type == EventType.NOTICE]
    assert len(notices) == 1
    assert notices[0]["level"] == "warning"
    assert adapter.disabled


@pytest.mark.asyncio
async def test_client_recognizer_sends_control_events():
    recognizer = ClientSpeechRecognizer()
    adapter, _, events = make_adapter(recognizer)

    await adapter.start()
    await adapter.stop()

    controls = [data["command"] for event_type, data in events if event_type == EventType.SPEECH_CONTROL]
    assert controls == ["start", "stop"]
    assert adapter.is_listening


@pytest.mark.asyncio
async def test_client_recognizer_reported_unavailable():
    recognizer = ClientSpeechRecognizer()
    recognizer.set_available(False)
    adapter, _, _ = make_adapter(recognizer)

    assert not await adapter.start()
    assert adapter.disabled


# =============================================================================
# Through the session
# =============================================================================


@pytest.mark.asyncio
async def test_spoken_argument_becomes_exactly_one_turn(courtroom, gateway):
    gateway.replies.append(reply("defense", "The evidence was lawfully obtained."))
    await open_hearing(courtroom, role=Speaker.PROSECUTION, mode="voice")

    assert await courtroom.toggle_listening()
    adapter = courtroom.speech
    adapter.handle_interim_result("I object")
    adapter.handle_interim_result("I object to this")
    adapter.handle_final_result("I object to this evidence.")
    assert len(courtroom.state.history) == 1

    await courtroom.toggle_listening()
    await adapter.handle_end()

    user_turns = [t for t in courtroom.state.history if t.speaker == Speaker.PROSECUTION]
    assert len(user_turns) == 1
    assert user_turns[0].dialogue == "I object to this evidence."
    assert courtroom.state.last_turn.speaker == Speaker.DEFENSE


@pytest.mark.asyncio
async def test_listening_requires_voice_mode(courtroom):
    await open_hearing(courtroom, mode="text")
    with pytest.raises(SessionStateError):
        await courtroom.toggle_listening()


@pytest.mark.asyncio
async def test_unavailable_speech_leaves_text_input_working(courtroom, recognizer, gateway, published):
    recognizer._available = False
    gateway.replies.append(reply("prosecution", "Noted."))
    await open_hearing(courtroom, mode="voice")

    assert not await courtroom.toggle_listening()
    assert not await courtroom.toggle_listening()
    assert courtroom.state.speech_disabled

    notices = [e for e in published if e.event_type == EventType.NOTICE]
    assert len(notices) == 1

    await courtroom.submit_argument("Typed instead.")
    assert courtroom.state.history[0].dialogue == "Typed instead."


@pytest.mark.asyncio
async def test_end_session_cancels_listening(courtroom, recognizer):
    await open_hearing(courtroom, mode="voice")
    await courtroom.toggle_listening()
    courtroom.speech.handle_final_result("Unfinished")

    await courtroom.end_session()
    await courtroom.speech.handle_end()

    assert not courtroom.is_listening
    assert courtroom.transcript == ""
    assert courtroom.state.history == []
