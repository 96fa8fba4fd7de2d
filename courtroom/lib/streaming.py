"""SSE streaming helpers for the courtroom.

Provides event construction with sequencing and a fan-out broadcaster
that feeds every connected presentation client.
"""

import asyncio
import json
import logging
from datetime import datetime
from typing import Any, AsyncIterator, Callable
from uuid import uuid4

from courtroom.lib.models import SessionState, SSEEvent, Turn

logger = logging.getLogger(__name__)


# =============================================================================
# Event Types
# =============================================================================


class EventType:
    """SSE event type constants."""

    # Session lifecycle
    SESSION_RESET = "session_reset"
    STATUS_CHANGED = "status_changed"

    # Deliberation
    TURN_APPENDED = "turn_appended"
    AWAITING_RESPONSE = "awaiting_response"
    VERDICT = "verdict"

    # Speech input
    SPEECH_CONTROL = "speech_control"
    SPEECH_STARTED = "speech_started"
    SPEECH_TRANSCRIPT = "speech_transcript"
    SPEECH_STOPPED = "speech_stopped"
    SPEECH_ERROR = "speech_error"

    # Presentation
    AUDIO_CUE = "audio_cue"
    NOTICE = "notice"
    HEARTBEAT = "heartbeat"


# =============================================================================
# Event Builder
# =============================================================================


class EventBuilder:
    """Builder for SSE events with automatic sequencing."""

    def __init__(self, session: SessionState):
        self.session = session

    def build(self, event_type: str, data: dict[str, Any] | None = None) -> SSEEvent:
        """Build an SSE event with proper sequencing."""
        return SSEEvent(
            event_id=str(uuid4()),
            sequence=self.session.next_sse_sequence(),
            event_type=event_type,
            data=data or {},
            status=self.session.status,
            history_length=len(self.session.history),
            timestamp=datetime.utcnow(),
        )

    def session_reset(self) -> SSEEvent:
        return self.build(
            EventType.SESSION_RESET,
            {"session_id": str(self.session.session_id)},
        )

    def status_changed(self, previous: str) -> SSEEvent:
        return self.build(
            EventType.STATUS_CHANGED,
            {"from": previous, "to": self.session.status.value},
        )

    def turn_appended(self, turn: Turn) -> SSEEvent:
        return self.build(
            EventType.TURN_APPENDED,
            {"index": len(self.session.history) - 1, "turn": turn.model_dump(mode="json")},
        )

    def awaiting_response(self, awaiting: bool) -> SSEEvent:
        return self.build(EventType.AWAITING_RESPONSE, {"awaiting": awaiting})

    def verdict(self, reasoning: str) -> SSEEvent:
        return self.build(EventType.VERDICT, {"reasoning": reasoning})


# =============================================================================
# SSE Formatter
# =============================================================================


def format_sse(event: SSEEvent) -> dict[str, str]:
    """Format an SSEEvent as an sse-starlette message."""
    return {
        "id": str(event.sequence),
        "event": event.event_type,
        "data": json.dumps(event.model_dump(mode="json")),
    }


def format_sse_simple(event_type: str, data: Any) -> dict[str, str]:
    """Format an unsequenced SSE message."""
    return {"event": event_type, "data": json.dumps(data)}


# =============================================================================
# Broadcaster
# =============================================================================


class EventBroadcaster:
    """
    Fan-out of engine events to connected SSE clients.

    Publishing never blocks: every subscriber owns an unbounded queue.
    Engine code calls publish() synchronously from within the event loop.
    """

    def __init__(self, heartbeat_interval: float = 15.0):
        self.heartbeat_interval = heartbeat_interval
        self._subscribers: set[asyncio.Queue[SSEEvent | None]] = set()
        self._listeners: list[Callable[[SSEEvent], None]] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def add_listener(self, listener: Callable[[SSEEvent], None]) -> None:
        """Register an in-process callback invoked for every event."""
        self._listeners.append(listener)

    def publish(self, event: SSEEvent) -> None:
        """Deliver an event to every subscriber."""
        for queue in self._subscribers:
            queue.put_nowait(event)
        for listener in self._listeners:
            listener(event)

    def close(self) -> None:
        """Signal every subscriber to finish."""
        for queue in self._subscribers:
            queue.put_nowait(None)

    async def subscribe(self) -> AsyncIterator[dict[str, str]]:
        """Yield SSE messages until the broadcaster closes.

        Idle streams receive an unsequenced heartbeat every interval.
        """
        queue: asyncio.Queue[SSEEvent | None] = asyncio.Queue()
        self._subscribers.add(queue)
        logger.debug(f"SSE subscriber joined ({len(self._subscribers)} connected)")
        try:
            while True:
                try:
                    event = await asyncio.wait_for(
                        queue.get(), timeout=self.heartbeat_interval
                    )
                except asyncio.TimeoutError:
                    yield format_sse_simple(EventType.HEARTBEAT, {"message": "Waiting..."})
                    continue

                if event is None:
                    break
                yield format_sse(event)
        finally:
            self._subscribers.discard(queue)
            logger.debug(f"SSE subscriber left ({len(self._subscribers)} connected)")
