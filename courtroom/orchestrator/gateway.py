"""AI response gateway.

Given the hearing so far, produces the next scripted turn for the opposing
counsel or the judge. Each call is a single best-effort attempt; recovery
from bad output belongs to the arbitration engine.
"""

import logging
from abc import ABC, abstractmethod

from pydantic import ValidationError as PydanticValidationError

from courtroom.config import Settings, get_settings
from courtroom.lib.exceptions import LLMResponseParseError
from courtroom.lib.llm import LLMClient, get_llm_client
from courtroom.lib.models import GatewayReply, GatewayRequest, Speaker, Turn
from courtroom.lib.utils import extract_json_object

logger = logging.getLogger(__name__)


# =============================================================================
# Prompt
# =============================================================================


COURTROOM_SYSTEM_PROMPT = """You are a sophisticated AI controlling a virtual courtroom simulation for a user practicing law.
You play every role the user does not: the opposing counsel and the Judge.
You always answer with a single raw JSON object and nothing else."""


COURTROOM_PROMPT_TEMPLATE = """The scenario is: "{scenario_title}".
The human user is playing the role of: {user_role}.
You will play the roles of the {opponent_role} and the Judge.
The conversation flow is typically Defense -> Prosecution -> Defense -> Prosecution -> etc., with the Judge interjecting when appropriate to ask questions, rule on objections, or move the proceedings along.
Based on the following chat history, generate the response for the next logical speaker. Your response should be as the character speaking.
After 2-3 exchanges between the lawyers, the Judge MUST give a final verdict and conclude the simulation. The verdict should be the final message.

CURRENT HISTORY:
---
{history}
---

Your response MUST be a single, valid JSON object with the following structure:
{{
  "speaker": "...",
  "dialogue": "...",
  "verdict": false,
  "reasoning": ""
}}

- "speaker" must be either "{opponent_role}" or "judge".
- "dialogue" is the character's words; keep it concise and direct.
- "verdict" is true only for the Judge's final verdict, otherwise false.
- "reasoning": when "verdict" is true, a brief 2-3 sentence summary of the key reasons for the decision based on the arguments; otherwise an empty string.

Do NOT add any other text, explanations, or markdown formatting around the JSON object."""



def build_prompt(request: GatewayRequest) -> str:
    """Render the per-turn prompt for a gateway request."""
    if request.history:
        history = "\n".join(
            f"{entry.speaker.value.upper()}: {entry.dialogue}" for entry in request.history
        )
    else:
        history = (
            f"The hearing has just begun. The user is starting as "
            f"{request.user_role.value}."
        )
    return COURTROOM_PROMPT_TEMPLATE.format(
        scenario_title=request.scenario_title,
        user_role=request.user_role.value,
        opponent_role=request.opponent_role.value,
        history=history,
    )


def parse_gateway_reply(content: str) -> GatewayReply:
    """
    Parse raw model output into a GatewayReply.

    Raises:
        LLMResponseParseError: If the payload is not JSON, names an unknown
            speaker, or carries empty dialogue
    """
    data = extract_json_object(content)
    try:
        return GatewayReply.model_validate(data)
    except PydanticValidationError as e:
        raise LLMResponseParseError(
            f"Invalid courtroom reply: {e.error_count()} validation error(s)",
            raw_response=content,
            details={"errors": [err["msg"] for err in e.errors()]},
        )


# =============================================================================
# Gateways
# =============================================================================


class ResponseGateway(ABC):
    """Source of AI-produced turns."""

    @abstractmethod
    async def next_turn(
        self,
        history: list[Turn],
        user_role: Speaker,
        scenario_title: str,
    ) -> GatewayReply:
        """
        Produce the next turn of the hearing.

        Args:
            history: Ordered transcript so far
            user_role: Role played by the human
            scenario_title: Title of the scenario, used to condition the reply

        Returns:
            The validated reply. May raise on any failure.
        """


class LLMResponseGateway(ResponseGateway):
    """Gateway backed by a chat-completion model."""

    def __init__(
        self,
        llm_client: LLMClient | None = None,
        settings: Settings | None = None,
    ):
        self.settings = settings or get_settings()
        self.llm_client = llm_client
        self.model = self.settings.model_for("courtroom")

    async def _client(self) -> LLMClient:
        if self.llm_client is None:
            self.llm_client = await get_llm_client()
        return self.llm_client

    async def next_turn(
        self,
        history: list[Turn],
        user_role: Speaker,
        scenario_title: str,
    ) -> GatewayReply:
        request = GatewayRequest.build(history, user_role, scenario_title)
        client = await self._client()

        response = await client.complete(
            model=self.model,
            messages=[{"role": "user", "content": build_prompt(request)}],
            system=COURTROOM_SYSTEM_PROMPT,
            max_tokens=self.settings.llm_max_tokens,
            temperature=self.settings.llm_temperature,
            retries=1,
            usage_key="courtroom",
        )
        logger.debug(
            f"Gateway reply from {response.model}: "
            f"{response.token_usage.total_tokens} tokens"
        )
        return parse_gateway_reply(response.content)
