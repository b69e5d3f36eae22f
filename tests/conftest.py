"""Shared test fixtures and helpers."""

import asyncio
from typing import Optional, Union

import pytest

from lead_orchestrator.config import ModelConfig, ResilienceConfig, StorageConfig, TransportConfig
from lead_orchestrator.conversation.state_machine import LeadStateMachine
from lead_orchestrator.errors import OutboundDeliveryError
from lead_orchestrator.inference.base import DecisionProvider, DecisionRequest, ModelProfile
from lead_orchestrator.inference.executor import ResilientDecisionExecutor
from lead_orchestrator.notifications.outbound import Messenger, OutboundSender
from lead_orchestrator.orchestrator import LeadOrchestrator
from lead_orchestrator.persistence.transcripts import TranscriptWriter
from lead_orchestrator.schemas.decision_schema import Decision, ExtractedFields, HandoffIntent
from lead_orchestrator.schemas.lead_schema import Conversation
from lead_orchestrator.schemas.webhook_schema import InboundMessage

LEAD_ADDRESS = "whatsapp:+5493415551234"
LEAD_ID = "5493415551234"
OPERATOR_ADDRESS = "whatsapp:+5493410000000"

Outcome = Union[Decision, Exception]


class ScriptedProvider(DecisionProvider):
    """Plays back queued decisions (or raises queued exceptions) in order.

    Once the script is exhausted every call returns an empty Decision.
    """

    def __init__(self, *outcomes: Outcome, delay: float = 0.0) -> None:
        self.outcomes = list(outcomes)
        self.delay = delay
        self.calls: list[tuple[DecisionRequest, ModelProfile]] = []
        self.closed = False

    async def propose(self, request: DecisionRequest, profile: ModelProfile) -> Decision:
        self.calls.append((request, profile))
        if self.delay:
            await asyncio.sleep(self.delay)
        outcome = self.outcomes.pop(0) if self.outcomes else Decision()
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def aclose(self) -> None:
        self.closed = True


class RecordingSender(OutboundSender):
    """Collects outbound messages instead of sending them."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sent: list[tuple[str, str]] = []
        self.closed = False

    async def send(self, to: str, body: str) -> None:
        if self.fail:
            raise OutboundDeliveryError("carrier rejected the message")
        self.sent.append((to, body))

    def sent_to(self, address: str) -> list[str]:
        return [body for to, body in self.sent if to == address]

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def lifecycle():
    return LeadStateMachine()


@pytest.fixture
def storage(tmp_path):
    return StorageConfig(
        conversations_dir=str(tmp_path / "conversations"),
        leads_dir=str(tmp_path / "leads"),
    )


@pytest.fixture
def writer(storage):
    return TranscriptWriter(storage)


@pytest.fixture
def live_transport():
    """Sandbox off: every message leaves the process."""
    return make_transport(dev_mode=False)


@pytest.fixture
def sandbox_transport():
    return make_transport(dev_mode=True)


@pytest.fixture
def fast_resilience():
    return ResilienceConfig(
        primary_timeout_sec=0.2,
        retry_timeout_sec=0.1,
        retry_backoff_sec=0.0,
        history_window=10,
    )


@pytest.fixture
def model_config():
    return ModelConfig(
        api_key="",
        primary_model="primary-model",
        fallback_model="retry-model",
        llm_temperature=0.3,
    )


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def messenger(sender, live_transport):
    return Messenger(sender, live_transport)


def make_transport(
    dev_mode: bool = False,
    reply_to_lead_in_dev: bool = False,
    handoff_to: str = OPERATOR_ADDRESS,
    fast_ack: bool = True,
) -> TransportConfig:
    return TransportConfig(
        twilio_account_sid="AC_test",
        twilio_auth_token="secret",
        twilio_from="whatsapp:+14155238886",
        handoff_to=handoff_to,
        dev_mode=dev_mode,
        reply_to_lead_in_dev=reply_to_lead_in_dev,
        fast_ack=fast_ack,
        send_timeout_sec=5.0,
    )


def make_decision(
    reply: str = "",
    handoff_intent: HandoffIntent = HandoffIntent.NONE,
    **extracted: str,
) -> Decision:
    """Helper to create a Decision; keyword args become extracted fields."""
    return Decision(
        reply=reply,
        extracted=ExtractedFields(**extracted),
        handoff_intent=handoff_intent,
    )


def make_conversation(sender_id: str = LEAD_ID, **fields) -> Conversation:
    """Helper to create a Conversation with some fields already populated."""
    return Conversation(sender_id=sender_id, **fields)


def make_inbound(text: str, address: str = LEAD_ADDRESS) -> InboundMessage:
    return InboundMessage.from_twilio_form({"From": address, "Body": text})


def make_orchestrator(
    provider: DecisionProvider,
    sender: RecordingSender,
    writer: TranscriptWriter,
    transport: Optional[TransportConfig] = None,
    resilience: Optional[ResilienceConfig] = None,
    model_config: Optional[ModelConfig] = None,
) -> LeadOrchestrator:
    """Wire a real orchestrator around test doubles."""
    resilience = resilience or ResilienceConfig(
        primary_timeout_sec=0.2,
        retry_timeout_sec=0.1,
        retry_backoff_sec=0.0,
        history_window=10,
    )
    executor = ResilientDecisionExecutor(
        provider,
        resilience=resilience,
        model_config=model_config or ModelConfig(
            api_key="", primary_model="primary-model", fallback_model="retry-model"
        ),
    )
    return LeadOrchestrator(
        executor=executor,
        messenger=Messenger(sender, transport or make_transport()),
        writer=writer,
    )
