"""
Resilient decision executor: primary attempt, one degraded retry, local fallback.

    attempt 1: primary model, primary deadline
    attempt 2: (after a short backoff) fallback model, shorter deadline
    otherwise: LexicalFallback, no provider call

Each attempt is raced against its deadline. On expiry the executor stops
waiting but does not cancel the underlying request; its eventual result is
discarded. ``decide`` always resolves to a usable Decision.
"""

import asyncio
import logging
from typing import Optional

from lead_orchestrator.config import ModelConfig, ResilienceConfig, settings
from lead_orchestrator.errors import InferenceError, InferenceTimeoutError
from lead_orchestrator.inference.base import DecisionProvider, DecisionRequest, ModelProfile
from lead_orchestrator.inference.lexical import LexicalFallback
from lead_orchestrator.logging_context import get_lead_logger
from lead_orchestrator.schemas.decision_schema import Decision, DecisionSource
from lead_orchestrator.schemas.lead_schema import Conversation

logger = get_lead_logger(__name__)


def _discard_result(task: "asyncio.Task[Decision]") -> None:
    # Retrieve the outcome of an abandoned call so asyncio does not warn about it.
    if not task.cancelled():
        task.exception()


class ResilientDecisionExecutor:
    """Wraps a DecisionProvider with deadlines, a single retry and a fallback."""

    def __init__(
        self,
        gateway: DecisionProvider,
        fallback: Optional[LexicalFallback] = None,
        resilience: Optional[ResilienceConfig] = None,
        model_config: Optional[ModelConfig] = None,
    ) -> None:
        resilience = resilience or settings.resilience
        model_config = model_config or settings.model
        self._gateway = gateway
        self._fallback = fallback or LexicalFallback()
        self._backoff = resilience.retry_backoff_sec
        self._history_window = resilience.history_window
        self.primary = ModelProfile(model_config.primary_model, resilience.primary_timeout_sec)
        self.retry = ModelProfile(model_config.fallback_model, resilience.retry_timeout_sec)
        self._abandoned: set[asyncio.Task] = set()

    async def decide(self, conversation: Conversation, inbound_text: str) -> Decision:
        request = DecisionRequest.from_conversation(
            conversation, inbound_text, self._history_window
        )

        decision = await self._attempt(request, self.primary, DecisionSource.PRIMARY)
        if decision is not None:
            return decision

        await asyncio.sleep(self._backoff)

        decision = await self._attempt(request, self.retry, DecisionSource.RETRY)
        if decision is not None:
            return decision

        logger.warning("Both inference attempts failed; using lexical fallback")
        return self._fallback.decide(request)

    async def _attempt(
        self, request: DecisionRequest, profile: ModelProfile, source: DecisionSource
    ) -> Optional[Decision]:
        """Run one attempt. Returns None on any soft failure."""
        try:
            decision = await self._call_with_deadline(request, profile)
        except InferenceError as exc:
            logger.warning("Inference attempt '%s' failed: %s", source.value, exc)
            return None
        except Exception:
            logger.exception("Unexpected error in inference attempt '%s'", source.value)
            return None
        return decision.model_copy(update={"source": source})

    async def _call_with_deadline(
        self, request: DecisionRequest, profile: ModelProfile
    ) -> Decision:
        task = asyncio.ensure_future(self._gateway.propose(request, profile))
        try:
            return await asyncio.wait_for(asyncio.shield(task), timeout=profile.timeout)
        except asyncio.TimeoutError:
            self._abandoned.add(task)
            task.add_done_callback(self._abandoned.discard)
            task.add_done_callback(_discard_result)
            raise InferenceTimeoutError(
                f"No answer from {profile.model} within {profile.timeout:.1f}s"
            ) from None

    @property
    def abandoned_calls(self) -> int:
        """Calls that missed their deadline and are still running."""
        return len(self._abandoned)

    async def aclose(self) -> None:
        """Cancel abandoned calls and close the provider."""
        for task in list(self._abandoned):
            task.cancel()
        if self._abandoned:
            await asyncio.gather(*self._abandoned, return_exceptions=True)
        await self._gateway.aclose()
