"""Session control endpoints.

Every mutation answers with the resulting session view; the SSE stream
carries the same changes for clients that prefer to listen.
"""

import logging

from fastapi import APIRouter, Depends

from courtroom.lib.models import (
    MuteRequest,
    SelectInputModeRequest,
    SelectRoleRequest,
    SelectScenarioRequest,
    SelectThemeRequest,
    SessionView,
    SubmitArgumentRequest,
)
from courtroom.orchestrator.session import CourtroomSession, get_courtroom

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/session", response_model=SessionView)
async def get_session(
    courtroom: CourtroomSession = Depends(get_courtroom),
) -> SessionView:
    return courtroom.snapshot()


@router.post("/session/scenario", response_model=SessionView)
async def select_scenario(
    request: SelectScenarioRequest,
    courtroom: CourtroomSession = Depends(get_courtroom),
) -> SessionView:
    courtroom.select_scenario(request.scenario_key)
    return courtroom.snapshot()


@router.post("/session/role", response_model=SessionView)
async def select_role(
    request: SelectRoleRequest,
    courtroom: CourtroomSession = Depends(get_courtroom),
) -> SessionView:
    courtroom.select_role(request.role)
    return courtroom.snapshot()


@router.post("/session/theme", response_model=SessionView)
async def select_theme(
    request: SelectThemeRequest,
    courtroom: CourtroomSession = Depends(get_courtroom),
) -> SessionView:
    courtroom.select_theme(request.theme_key)
    return courtroom.snapshot()


@router.post("/session/input-mode", response_model=SessionView)
async def select_input_mode(
    request: SelectInputModeRequest,
    courtroom: CourtroomSession = Depends(get_courtroom),
) -> SessionView:
    """
    Open the hearing.

    Returns once any AI turn owed at the start has been appended.
    """
    await courtroom.select_input_mode(request.mode)
    return courtroom.snapshot()


@router.post("/session/argument", response_model=SessionView)
async def submit_argument(
    request: SubmitArgumentRequest,
    courtroom: CourtroomSession = Depends(get_courtroom),
) -> SessionView:
    """Submit the user's argument and wait for the AI's answer."""
    await courtroom.submit_argument(request.text)
    return courtroom.snapshot()


@router.post("/session/listening", response_model=SessionView)
async def toggle_listening(
    courtroom: CourtroomSession = Depends(get_courtroom),
) -> SessionView:
    listening = await courtroom.toggle_listening()
    logger.debug(f"Listening toggled, started={listening}")
    return courtroom.snapshot()


@router.post("/session/mute", response_model=SessionView)
async def set_muted(
    request: MuteRequest,
    courtroom: CourtroomSession = Depends(get_courtroom),
) -> SessionView:
    courtroom.set_muted(request.muted)
    return courtroom.snapshot()


@router.post("/session/end", response_model=SessionView)
async def end_session(
    courtroom: CourtroomSession = Depends(get_courtroom),
) -> SessionView:
    await courtroom.end_session()
    return courtroom.snapshot()
