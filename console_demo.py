"""
Offline console demo: runs lead conversations without any API keys.

Drives the real orchestrator (serial queue, executor, policy, notifier,
transcripts) with a keyword-based decision provider and a sender that
prints to the terminal instead of calling Twilio. No network calls.

Usage:
    python console_demo.py
    python console_demo.py --scenario visit
    python console_demo.py --scenario outage
"""

import argparse
import asyncio
import re
import tempfile
from dataclasses import replace
from typing import Optional

from lead_orchestrator.config import StorageConfig, settings
from lead_orchestrator.conversation.handoff_policy import HandoffPolicy
from lead_orchestrator.errors import InferenceUnavailableError
from lead_orchestrator.inference.base import DecisionProvider, DecisionRequest, ModelProfile
from lead_orchestrator.inference.executor import ResilientDecisionExecutor
from lead_orchestrator.inference.lexical import detect_intent
from lead_orchestrator.notifications.outbound import Messenger, OutboundSender
from lead_orchestrator.orchestrator import LeadOrchestrator
from lead_orchestrator.persistence.transcripts import TranscriptWriter
from lead_orchestrator.schemas.decision_schema import Decision, ExtractedFields, HandoffIntent
from lead_orchestrator.schemas.webhook_schema import InboundMessage

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

DEMO_SENDER = "whatsapp:+5493415550000"
OPERATOR = "whatsapp:+5493410000000"

NAME_PATTERN = re.compile(r"\b(?:me llamo|soy|mi nombre es)\s+([a-záéíóúñ]+(?:\s+[a-záéíóúñ]+)?)", re.I)
ZONE_PATTERN = re.compile(r"\b(?:vivo en|estoy en|zona|barrio)\s+([a-záéíóúñ0-9 ]+?)(?:[,.]|$)", re.I)
AVAILABILITY_PATTERN = re.compile(
    r"((?:lunes|martes|mi[eé]rcoles|jueves|viernes|s[aá]bado|ma[nñ]ana|tarde)[^,.]*)", re.I
)
PRODUCT_PATTERN = re.compile(r"(roller|blackout|textil\w*|bandas verticales|toldo\w*|cerramiento\w*)", re.I)


class KeywordDecisionProvider(DecisionProvider):
    """Stands in for the model: regex extraction, canned replies."""

    def __init__(self, failing: bool = False) -> None:
        self.failing = failing

    async def propose(self, request: DecisionRequest, profile: ModelProfile) -> Decision:
        if self.failing:
            raise InferenceUnavailableError(f"{profile.model} unreachable (simulated)")

        text = request.inbound_text
        name = _first_group(NAME_PATTERN, text)
        zone = _first_group(ZONE_PATTERN, text)
        availability = _first_group(AVAILABILITY_PATTERN, text)
        product = _first_group(PRODUCT_PATTERN, text)
        intent = detect_intent(text)

        reply = ""
        if intent == HandoffIntent.NONE and request.pending_type is None:
            reply = (
                f"¡Genial! Trabajamos {settings.business.products.lower()}. "
                "¿Querés que te pasemos un presupuesto o coordinar una visita?"
            )
        return Decision(
            reply=reply,
            extracted=ExtractedFields(
                name=name,
                zone=zone,
                intent_summary=product,
                availability=availability,
            ),
            handoff_intent=intent,
        )


def _first_group(pattern: re.Pattern, text: str) -> str:
    match = pattern.search(text or "")
    return match.group(1).strip() if match else ""


class ConsoleSender(OutboundSender):
    """Prints outbound messages instead of sending them."""

    async def send(self, to: str, body: str) -> None:
        if to == OPERATOR:
            print(f"{YELLOW}{BOLD}[Operator inbox]{RESET}")
            for line in body.splitlines():
                print(f"{YELLOW}  {line}{RESET}")
        else:
            print(f"{GREEN}{BOLD}[{settings.business.assistant_name}]{RESET} {GREEN}{body}{RESET}")


class ConsoleSession:
    """One simulated lead talking to the orchestrator in the terminal."""

    SCENARIOS: dict[str, list[str]] = {
        "price": [
            "Hola!",
            "Quería saber cuánto sale una cortina roller",
            "Me llamo ana gómez",
            "Estoy en Fisherton",
            "Gracias, espero el presupuesto",
        ],
        "visit": [
            "Hola, quiero coordinar una visita para medir unas cortinas blackout. "
            "Soy Martín, vivo en Funes, puedo el martes a la tarde",
            "Perfecto, los espero",
        ],
        "outage": [
            "Necesito presupuesto para toldos",
            "Soy Lucía",
        ],
    }

    MAX_INPUT_LENGTH = 500

    def __init__(self, failing: bool = False, transcripts_dir: Optional[str] = None) -> None:
        base = transcripts_dir or tempfile.mkdtemp(prefix="leads_demo_")
        self.transcripts_dir = base
        transport = replace(
            settings.transport, dev_mode=False, handoff_to=OPERATOR
        )
        resilience = replace(
            settings.resilience,
            primary_timeout_sec=2.0,
            retry_timeout_sec=1.0,
            retry_backoff_sec=0.0,
        )
        self.provider = KeywordDecisionProvider(failing=failing)
        self.orchestrator = LeadOrchestrator(
            executor=ResilientDecisionExecutor(self.provider, resilience=resilience),
            messenger=Messenger(ConsoleSender(), transport),
            writer=TranscriptWriter(
                StorageConfig(conversations_dir=f"{base}/conversations", leads_dir=f"{base}/leads")
            ),
            policy=HandoffPolicy(settings.business),
        )

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    async def send(self, text: str) -> None:
        inbound = InboundMessage.from_twilio_form({"From": DEMO_SENDER, "Body": text})
        await self.orchestrator.submit(inbound)
        conversation = self.orchestrator.store.get(inbound.sender_id)
        if conversation is not None:
            fields = ", ".join(f"{k}={v or '-'}" for k, v in conversation.field_snapshot().items())
            self.system_log(f"State: {conversation.state.value} | {fields}")

    def _banner(self, title: str) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  LEAD ORCHESTRATOR - {title}{RESET}")
        print(f"{BOLD}  Business: {settings.business.name}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        print()

    def _summary(self) -> None:
        conversation = self.orchestrator.store.get(_demo_sender_id())
        print(f"\n{BOLD}{'=' * 60}{RESET}")
        if conversation is not None:
            print(f"{DIM}  State trace: {' -> '.join(conversation.lifecycle.get_state_trace())}{RESET}")
            print(f"{DIM}  Handed off: {conversation.handed_off}{RESET}")
        print(f"{DIM}  Transcripts: {self.transcripts_dir}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

    async def run_scenario(self, scenario: str) -> None:
        """Auto-play a pre-scripted scenario."""
        steps = self.SCENARIOS.get(scenario)
        if not steps:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return
        self._banner(f"Scenario: {scenario}")
        for step in steps:
            print(f"\n{BLUE}[Lead] {RESET}{step}")
            await self.send(step)
        self._summary()
        await self.orchestrator.aclose()

    async def run(self) -> None:
        self._banner("Console Demo (type 'quit' to exit)")
        while True:
            user_input = (await asyncio.to_thread(input, f"\n{BLUE}[Lead] {RESET}")).strip()
            if not user_input:
                continue
            if user_input.lower() in ("quit", "exit", "q"):
                break
            if len(user_input) > self.MAX_INPUT_LENGTH:
                self.system_log("Message too long, ignored")
                continue
            await self.send(user_input)
        self._summary()
        await self.orchestrator.aclose()


def _demo_sender_id() -> str:
    return InboundMessage.from_twilio_form({"From": DEMO_SENDER}).sender_id


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Offline console demo")
    parser.add_argument(
        "--scenario",
        choices=sorted(ConsoleSession.SCENARIOS),
        default=None,
        help="Auto-play a pre-scripted scenario instead of interactive mode",
    )
    args = parser.parse_args(argv)

    session = ConsoleSession(failing=args.scenario == "outage")
    if args.scenario:
        asyncio.run(session.run_scenario(args.scenario))
    else:
        asyncio.run(session.run())


if __name__ == "__main__":
    main()
