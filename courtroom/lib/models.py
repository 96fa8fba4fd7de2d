"""Pydantic models for the courtroom engine."""

from datetime import datetime
from enum import Enum
from typing import Any, Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from courtroom.lib.exceptions import SessionStateError


# =============================================================================
# Enums
# =============================================================================


class Speaker(str, Enum):
    """A speaking role in the courtroom."""

    DEFENSE = "defense"
    PROSECUTION = "prosecution"
    JUDGE = "judge"  # Always AI-controlled


COUNSEL_ROLES: tuple[Speaker, ...] = (Speaker.DEFENSE, Speaker.PROSECUTION)


def opponent_of(role: Speaker) -> Speaker:
    """Return the adversary of a counsel role."""
    if role == Speaker.DEFENSE:
        return Speaker.PROSECUTION
    if role == Speaker.PROSECUTION:
        return Speaker.DEFENSE
    raise ValueError(f"{role.value} has no opponent")


class InputMode(str, Enum):
    """How the human submits arguments."""

    TEXT = "text"
    VOICE = "voice"


class SessionStatus(str, Enum):
    """Session lifecycle status, in traversal order."""

    SELECTION = "selection"
    ROLE_SELECTION = "role_selection"
    THEME_SELECTION = "theme_selection"
    INPUT_METHOD_SELECTION = "input_method_selection"
    RUNNING = "running"
    VERDICT = "verdict"


class Actor(str, Enum):
    """Who must produce the next turn."""

    USER = "user"
    AI = "ai"


# =============================================================================
# Catalog Models
# =============================================================================


class OpeningStatement(BaseModel):
    """The statement a scenario opens with."""

    model_config = ConfigDict(frozen=True)

    speaker: Speaker
    dialogue: str

    @field_validator("speaker")
    @classmethod
    def counsel_only(cls, v: Speaker) -> Speaker:
        if v not in COUNSEL_ROLES:
            raise ValueError("Opening statements are made by counsel")
        return v


class Scenario(BaseModel):
    """A deliberation scenario from the static catalog."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(min_length=1)
    title: str
    description: str = ""
    opening_statement: OpeningStatement


class CourtroomTheme(BaseModel):
    """Presentation theme. Opaque to the engine."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(min_length=1)
    name: str
    description: str = ""


# =============================================================================
# Turns
# =============================================================================


class Turn(BaseModel):
    """A single dialogue contribution. Never mutated once appended."""

    model_config = ConfigDict(frozen=True)

    speaker: Speaker
    dialogue: str
    verdict: bool = False
    reasoning: str = Field(default="", description="Only meaningful on verdict turns")


class GatewayReply(BaseModel):
    """Validated payload returned by the AI response gateway."""

    model_config = ConfigDict(extra="ignore")

    speaker: Speaker
    dialogue: str
    verdict: bool = False
    reasoning: str = ""

    @field_validator("dialogue")
    @classmethod
    def non_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("dialogue must not be empty")
        return v

    @field_validator("reasoning", mode="before")
    @classmethod
    def coerce_reasoning(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("verdict", mode="before")
    @classmethod
    def coerce_verdict(cls, v: Any) -> Any:
        return False if v is None else v


class HistoryEntry(BaseModel):
    """A turn as sent to the gateway."""

    speaker: Speaker
    dialogue: str


class GatewayRequest(BaseModel):
    """Request sent to the AI response gateway."""

    history: list[HistoryEntry] = Field(default_factory=list)
    user_role: Speaker
    scenario_title: str

    @classmethod
    def build(
        cls, history: list[Turn], user_role: Speaker, scenario_title: str
    ) -> "GatewayRequest":
        return cls(
            history=[HistoryEntry(speaker=t.speaker, dialogue=t.dialogue) for t in history],
            user_role=user_role,
            scenario_title=scenario_title,
        )

    @property
    def opponent_role(self) -> Speaker:
        return opponent_of(self.user_role)


# =============================================================================
# Session State
# =============================================================================


DEFAULT_THEME_KEY = "classic_mahogany"


class SessionState(BaseModel):
    """Full state of the one running deliberation session."""

    session_id: UUID = Field(default_factory=uuid4)
    status: SessionStatus = Field(default=SessionStatus.SELECTION)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    # Configuration, populated monotonically during selection
    scenario: Scenario | None = Field(default=None)
    user_role: Speaker | None = Field(default=None)
    theme: str = Field(default=DEFAULT_THEME_KEY)
    input_mode: InputMode | None = Field(default=None)

    # Deliberation
    history: list[Turn] = Field(default_factory=list)
    is_awaiting_response: bool = Field(default=False)
    verdict_reasoning: str = Field(default="")
    speech_disabled: bool = Field(default=False)

    sse_sequence: int = Field(default=0, description="Next SSE sequence number")

    @property
    def last_turn(self) -> Turn | None:
        return self.history[-1] if self.history else None

    def append_turn(self, turn: Turn) -> None:
        """Append to the history. Nothing may follow a verdict."""
        last = self.last_turn
        if last is not None and last.verdict:
            raise SessionStateError(
                "Cannot append a turn after the verdict",
                expected_status=SessionStatus.RUNNING.value,
                actual_status=self.status.value,
            )
        self.history.append(turn)
        self.touch()

    def next_sse_sequence(self) -> int:
        """Get and increment SSE sequence."""
        seq = self.sse_sequence
        self.sse_sequence += 1
        return seq

    def touch(self) -> None:
        """Update the updated_at timestamp."""
        self.updated_at = datetime.utcnow()


class SSEEvent(BaseModel):
    """Server-sent event with sequencing."""

    event_id: str = Field(default_factory=lambda: str(uuid4()))
    sequence: int = Field(description="Monotonic counter within a session")
    event_type: str = Field(description="Event type")
    data: dict[str, Any] = Field(default_factory=dict)
    status: SessionStatus = Field(description="Session status when emitted")
    history_length: int = Field(default=0)
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class SessionView(BaseModel):
    """Read-only projection of the session for the presentation layer."""

    session_id: UUID
    status: SessionStatus
    scenario: Scenario | None
    user_role: Speaker | None
    theme: str
    input_mode: InputMode | None
    history: list[Turn]
    active_speaker: Speaker | None
    current_dialogue: str
    is_user_turn: bool
    is_loading: bool
    is_verdict: bool
    verdict_reasoning: str
    is_listening: bool
    transcript: str
    speech_available: bool
    muted: bool


# =============================================================================
# API Request/Response Models
# =============================================================================


class SelectScenarioRequest(BaseModel):
    scenario_key: str


class SelectRoleRequest(BaseModel):
    role: Speaker


class SelectThemeRequest(BaseModel):
    theme_key: str


class SelectInputModeRequest(BaseModel):
    mode: InputMode


class SubmitArgumentRequest(BaseModel):
    text: str


class MuteRequest(BaseModel):
    muted: bool


class SpeechCapabilityRequest(BaseModel):
    available: bool


class SpeechEventRequest(BaseModel):
    """A recognition event forwarded by the client."""

    event: Literal["start", "interim", "final", "end", "error"]
    text: str = ""
    code: str = ""


class CatalogResponse(BaseModel):
    scenarios: list[Scenario]
    themes: list[CourtroomTheme]
    default_theme: str


class HealthResponse(BaseModel):
    status: str
    version: str
