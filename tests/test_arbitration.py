"""Turn arbitration tests."""

import asyncio

import pytest

from conftest import ScriptedGateway, reply

from courtroom.lib.exceptions import LLMConnectionError, LLMResponseParseError, SessionStateError
from courtroom.lib.models import (
    Actor,
    OpeningStatement,
    Scenario,
    SessionState,
    SessionStatus,
    Speaker,
    Turn,
)
from courtroom.orchestrator.arbitration import (
    FALLBACK_DIALOGUE,
    TurnArbiter,
    fallback_turn,
    next_actor,
    normalize_reply,
    should_request_ai_turn,
)


def make_scenario(opening: Speaker = Speaker.DEFENSE) -> Scenario:
    return Scenario(
        key="test",
        title="Test Hearing",
        opening_statement=OpeningStatement(speaker=opening, dialogue="Opening."),
    )


def running_session(
    user_role: Speaker = Speaker.DEFENSE,
    history: list[Turn] | None = None,
    opening: Speaker = Speaker.DEFENSE,
) -> SessionState:
    return SessionState(
        status=SessionStatus.RUNNING,
        scenario=make_scenario(opening),
        user_role=user_role,
        history=history or [],
    )


# =============================================================================
# next_actor
# =============================================================================


class TestNextActor:
    def test_empty_history_belongs_to_the_opener(self):
        assert next_actor([], Speaker.DEFENSE, Speaker.DEFENSE) == Actor.USER
        assert next_actor([], Speaker.PROSECUTION, Speaker.DEFENSE) == Actor.AI

    def test_user_speaks_after_anyone_else(self):
        history = [Turn(speaker=Speaker.DEFENSE, dialogue="Opening.")]
        assert next_actor(history, Speaker.PROSECUTION, Speaker.DEFENSE) == Actor.USER

        history.append(Turn(speaker=Speaker.JUDGE, dialogue="Continue."))
        assert next_actor(history, Speaker.DEFENSE, Speaker.DEFENSE) == Actor.USER

    def test_ai_speaks_after_the_user(self):
        history = [Turn(speaker=Speaker.PROSECUTION, dialogue="Objection, Your Honor.")]
        assert next_actor(history, Speaker.PROSECUTION, Speaker.DEFENSE) == Actor.AI

    def test_is_idempotent(self):
        history = [Turn(speaker=Speaker.DEFENSE, dialogue="Opening.")]
        first = next_actor(history, Speaker.DEFENSE, Speaker.DEFENSE)
        second = next_actor(history, Speaker.DEFENSE, Speaker.DEFENSE)
        assert first == second == Actor.AI
        assert len(history) == 1


class TestShouldRequestAITurn:
    def test_only_while_running(self):
        session = running_session(user_role=Speaker.PROSECUTION)
        assert should_request_ai_turn(session)

        session.status = SessionStatus.INPUT_METHOD_SELECTION
        assert not should_request_ai_turn(session)

        session.status = SessionStatus.VERDICT
        assert not should_request_ai_turn(session)

    def test_not_while_awaiting(self):
        session = running_session(user_role=Speaker.PROSECUTION)
        session.is_awaiting_response = True
        assert not should_request_ai_turn(session)

    def test_not_on_the_users_turn(self):
        assert not should_request_ai_turn(running_session(user_role=Speaker.DEFENSE))


# =============================================================================
# normalize_reply
# =============================================================================


class TestNormalizeReply:
    def test_opponent_reply_is_kept(self):
        turn = normalize_reply(reply("prosecution", "The accused fled once."), Speaker.DEFENSE)
        assert turn.speaker == Speaker.PROSECUTION

    def test_reply_as_user_goes_to_the_opponent(self):
        turn = normalize_reply(reply("defense", "I agree with myself."), Speaker.DEFENSE)
        assert turn.speaker == Speaker.PROSECUTION

    def test_verdict_always_comes_from_the_judge(self):
        turn = normalize_reply(
            reply("prosecution", "Denied.", verdict=True, reasoning="Risk."),
            Speaker.PROSECUTION,
        )
        assert turn.speaker == Speaker.JUDGE
        assert turn.verdict
        assert turn.reasoning == "Risk."

    def test_reasoning_dropped_without_verdict(self):
        turn = normalize_reply(
            reply("judge", "Overruled.", reasoning="stray"), Speaker.DEFENSE
        )
        assert turn.reasoning == ""


def test_fallback_turn():
    turn = fallback_turn()
    assert turn.speaker == Speaker.JUDGE
    assert turn.dialogue == FALLBACK_DIALOGUE
    assert not turn.verdict


# =============================================================================
# TurnArbiter
# =============================================================================


@pytest.mark.asyncio
async def test_take_turn_appends_reply():
    gateway = ScriptedGateway(reply("prosecution", "He is a flight risk."))
    session = running_session(
        user_role=Speaker.DEFENSE,
        history=[Turn(speaker=Speaker.DEFENSE, dialogue="Grant bail.")],
    )

    turn = await TurnArbiter(gateway).take_turn(session)

    assert turn.speaker == Speaker.PROSECUTION
    assert session.history[-1] == turn
    assert not session.is_awaiting_response
    assert gateway.calls[0]["scenario_title"] == "Test Hearing"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "failure",
    [
        LLMResponseParseError("No JSON found in response", raw_response="hmm"),
        LLMConnectionError("connection reset"),
        ValueError("anything at all"),
    ],
)
async def test_take_turn_falls_back_on_failure(failure):
    session = running_session(user_role=Speaker.PROSECUTION)

    turn = await TurnArbiter(ScriptedGateway(failure)).take_turn(session)

    assert turn.dialogue == FALLBACK_DIALOGUE
    assert session.history == [turn]
    assert session.status == SessionStatus.RUNNING
    assert not session.is_awaiting_response


@pytest.mark.asyncio
async def test_take_turn_times_out_to_fallback():
    gateway = ScriptedGateway(reply("judge", "Never arrives."))
    gateway.hold()
    session = running_session(user_role=Speaker.PROSECUTION)

    turn = await TurnArbiter(gateway, timeout=0.01).take_turn(session)

    assert turn.dialogue == FALLBACK_DIALOGUE
    assert not session.is_awaiting_response


@pytest.mark.asyncio
async def test_take_turn_records_verdict():
    gateway = ScriptedGateway(reply("judge", "Bail granted.", verdict=True, reasoning="Stable job."))
    session = running_session(user_role=Speaker.PROSECUTION)

    await TurnArbiter(gateway).take_turn(session)

    assert session.status == SessionStatus.VERDICT
    assert session.verdict_reasoning == "Stable job."


@pytest.mark.asyncio
async def test_awaiting_flag_spans_the_call():
    gateway = ScriptedGateway(reply("judge", "Proceed."))
    gateway.hold()
    session = running_session(user_role=Speaker.PROSECUTION)
    arbiter = TurnArbiter(gateway)

    task = asyncio.create_task(arbiter.take_turn(session))
    await asyncio.sleep(0)
    assert session.is_awaiting_response

    with pytest.raises(SessionStateError):
        await arbiter.take_turn(session)

    gateway.release.set()
    await task
    assert not session.is_awaiting_response
    assert len(gateway.calls) == 1


@pytest.mark.asyncio
async def test_cancellation_is_not_swallowed():
    gateway = ScriptedGateway(reply("judge", "Proceed."))
    gateway.hold()
    session = running_session(user_role=Speaker.PROSECUTION)

    task = asyncio.create_task(TurnArbiter(gateway).take_turn(session))
    await asyncio.sleep(0)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert not session.is_awaiting_response
    assert session.history == []
