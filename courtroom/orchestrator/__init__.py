"""Orchestrator package - manages the hearing flow."""

from courtroom.orchestrator.arbitration import (
    FALLBACK_DIALOGUE,
    TurnArbiter,
    fallback_turn,
    next_actor,
    normalize_reply,
    should_request_ai_turn,
)
from courtroom.orchestrator.gateway import (
    LLMResponseGateway,
    ResponseGateway,
    build_prompt,
    parse_gateway_reply,
)
from courtroom.orchestrator.session import CourtroomSession, close_courtroom, get_courtroom

__all__ = [
    # Arbitration
    "FALLBACK_DIALOGUE",
    "TurnArbiter",
    "fallback_turn",
    "next_actor",
    "normalize_reply",
    "should_request_ai_turn",
    # Gateway
    "LLMResponseGateway",
    "ResponseGateway",
    "build_prompt",
    "parse_gateway_reply",
    # Session
    "CourtroomSession",
    "close_courtroom",
    "get_courtroom",
]
