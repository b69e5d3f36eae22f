"""
Inference gateway: one OpenAI chat completion per attempt.

The gateway only knows how to ask the provider and parse the answer. The
deadline race, retry and fallback belong to the executor.
"""

import logging
from typing import Optional

from openai import AsyncOpenAI, OpenAIError

from lead_orchestrator.config import BusinessConfig, ModelConfig, settings
from lead_orchestrator.errors import InferenceUnavailableError
from lead_orchestrator.inference.base import DecisionProvider, DecisionRequest, ModelProfile
from lead_orchestrator.inference.parsing import parse_decision
from lead_orchestrator.prompts.system_prompts import build_decision_messages
from lead_orchestrator.schemas.decision_schema import Decision

logger = logging.getLogger(__name__)


class OpenAIGateway(DecisionProvider):
    """Decision provider backed by the OpenAI chat completions API."""

    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        model_config: Optional[ModelConfig] = None,
        business: Optional[BusinessConfig] = None,
    ) -> None:
        self._config = model_config or settings.model
        self._business = business or settings.business
        self._client = client

    def _get_client(self) -> AsyncOpenAI:
        # Lazy so a missing key fails the first call, not startup.
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self._config.api_key or None,
                max_retries=0,
            )
        return self._client

    async def propose(self, request: DecisionRequest, profile: ModelProfile) -> Decision:
        messages = build_decision_messages(request, self._business)
        logger.debug(
            "OpenAI request: model=%s, messages_count=%d", profile.model, len(messages)
        )
        try:
            completion = await self._get_client().chat.completions.create(
                model=profile.model,
                messages=messages,
                temperature=self._config.llm_temperature,
                response_format={"type": "json_object"},
                timeout=profile.timeout,
            )
        except OpenAIError as exc:
            raise InferenceUnavailableError(
                f"OpenAI request failed ({profile.model}): {exc}"
            ) from exc

        content = ""
        if completion.choices:
            content = completion.choices[0].message.content or ""
        logger.debug("OpenAI content: %s", content[:100] if content else "EMPTY")
        return parse_decision(content)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()
