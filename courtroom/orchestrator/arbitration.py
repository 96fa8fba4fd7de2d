"""Turn arbitration.

Decides who speaks next, solicits the AI when it is the AI's turn, and
keeps the session usable whatever the gateway returns.
"""

import asyncio
import logging

from courtroom.lib.exceptions import (
    GatewayTimeoutError,
    LLMResponseParseError,
    SessionStateError,
)
from courtroom.lib.models import (
    Actor,
    GatewayReply,
    SessionState,
    SessionStatus,
    Speaker,
    Turn,
    opponent_of,
)
from courtroom.orchestrator.gateway import ResponseGateway

logger = logging.getLogger(__name__)

FALLBACK_DIALOGUE = (
    "There seems to be a procedural error. Court is in recess for 5 minutes."
)


# =============================================================================
# Rules
# =============================================================================


def next_actor(
    history: list[Turn],
    user_role: Speaker,
    opening_speaker: Speaker,
) -> Actor:
    """
    Determine who must produce the next turn.

    An empty hearing belongs to whoever makes the opening statement.
    Afterwards the user speaks whenever someone else spoke last.
    """
    if not history:
        return Actor.USER if opening_speaker == user_role else Actor.AI
    return Actor.USER if history[-1].speaker != user_role else Actor.AI


def should_request_ai_turn(session: SessionState) -> bool:
    """Whether the AI must be solicited right now."""
    if session.status != SessionStatus.RUNNING:
        return False
    if session.is_awaiting_response:
        return False
    if session.scenario is None or session.user_role is None:
        return False
    return (
        next_actor(
            session.history,
            session.user_role,
            session.scenario.opening_statement.speaker,
        )
        == Actor.AI
    )


def normalize_reply(reply: GatewayReply, user_role: Speaker) -> Turn:
    """
    Convert a gateway reply into a turn the AI is allowed to make.

    Verdicts always come from the bench. Any other reply that claims the
    user's role is attributed to the opposing counsel.
    """
    speaker = reply.speaker
    if reply.verdict:
        speaker = Speaker.JUDGE
    elif speaker == user_role:
        speaker = opponent_of(user_role)

    if speaker != reply.speaker:
        logger.warning(
            f"Gateway replied as {reply.speaker.value}, "
            f"attributing turn to {speaker.value}"
        )

    return Turn(
        speaker=speaker,
        dialogue=reply.dialogue,
        verdict=reply.verdict,
        reasoning=reply.reasoning if reply.verdict else "",
    )


def fallback_turn() -> Turn:
    """The judge's recess announcement used when the AI cannot answer."""
    return Turn(speaker=Speaker.JUDGE, dialogue=FALLBACK_DIALOGUE)


# =============================================================================
# Arbiter
# =============================================================================


class TurnArbiter:
    """
    Produces AI turns for a running session.

    Flow per AI turn:
    1. Mark the session as awaiting a response
    2. Ask the gateway for the next turn
    3. Normalize the reply and append it
    4. On a verdict, record the reasoning and close the hearing
    5. Clear the awaiting flag, whatever happened
    6. Any gateway failure appends the recess turn instead
    """

    def __init__(self, gateway: ResponseGateway, timeout: float | None = None):
        """
        Initialize the arbiter.

        Args:
            gateway: Source of AI replies
            timeout: Seconds before a gateway call is abandoned (None waits forever)
        """
        self.gateway = gateway
        self.timeout = timeout

    async def _request(self, session: SessionState) -> GatewayReply:
        assert session.scenario is not None and session.user_role is not None
        call = self.gateway.next_turn(
            list(session.history),
            session.user_role,
            session.scenario.title,
        )
        if self.timeout is None:
            return await call
        try:
            return await asyncio.wait_for(call, timeout=self.timeout)
        except asyncio.TimeoutError:
            raise GatewayTimeoutError(self.timeout)

    async def take_turn(self, session: SessionState) -> Turn:
        """
        Produce and append the AI's next turn.

        Args:
            session: Running session whose next actor is the AI

        Returns:
            The appended turn (the recess turn on gateway failure)

        Raises:
            SessionStateError: If a response is already awaited or the
                session is not running
        """
        if session.status != SessionStatus.RUNNING:
            raise SessionStateError(
                "AI turns are only taken while the hearing runs",
                expected_status=SessionStatus.RUNNING.value,
                actual_status=session.status.value,
            )
        if session.is_awaiting_response:
            raise SessionStateError("A response is already being awaited")
        assert session.user_role is not None

        session.is_awaiting_response = True
        try:
            try:
                reply = await self._request(session)
                turn = normalize_reply(reply, session.user_role)
            except LLMResponseParseError as e:
                logger.warning(f"Unusable gateway reply: {e.message}")
                logger.debug(f"Raw gateway reply: {e.raw_response}")
                turn = fallback_turn()
            except GatewayTimeoutError as e:
                logger.warning(e.message)
                turn = fallback_turn()
            except Exception:
                logger.exception("Gateway call failed")
                turn = fallback_turn()

            session.append_turn(turn)
            if turn.verdict:
                session.verdict_reasoning = turn.reasoning
                session.status = SessionStatus.VERDICT
                logger.info("Verdict delivered")
            return turn
        finally:
            session.is_awaiting_response = False
