"""Engine event stream."""

import logging

from fastapi import APIRouter, Depends
from sse_starlette.sse import EventSourceResponse

from courtroom.orchestrator.session import CourtroomSession, get_courtroom

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/events")
async def stream_events(
    courtroom: CourtroomSession = Depends(get_courtroom),
) -> EventSourceResponse:
    """
    Stream session events via SSE.

    Events are live only; clients fetch GET /api/session on connect to
    catch up.
    """
    logger.info("SSE client connected")
    return EventSourceResponse(courtroom.broadcaster.subscribe())
