import asyncio

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse

from lead_orchestrator.api.deps import get_config, get_orchestrator
from lead_orchestrator.config import AppConfig
from lead_orchestrator.logging_context import get_lead_logger
from lead_orchestrator.orchestrator import LeadOrchestrator
from lead_orchestrator.schemas.webhook_schema import InboundMessage
from lead_orchestrator.utils import UNKNOWN_SENDER

logger = get_lead_logger(__name__)

router = APIRouter()


async def parse_inbound(request: Request) -> InboundMessage:
    """Read the Twilio form post. Anything unreadable becomes an empty message
    from the ``unknown`` sender."""
    try:
        form = await request.form()
    except Exception as exc:
        logger.warning("Could not parse webhook form: %s", exc)
        return InboundMessage(sender_id=UNKNOWN_SENDER)
    return InboundMessage.from_twilio_form(form)


@router.post("/whatsapp", response_class=PlainTextResponse)
async def whatsapp_webhook(
    request: Request,
    orchestrator: LeadOrchestrator = Depends(get_orchestrator),
    config: AppConfig = Depends(get_config),
):
    """
    Inbound WhatsApp/SMS webhook.

    Always answers 200 "OK". Processing happens on the sender's queue; with
    fast-ack disabled the response waits for it, but processing failures
    still never reach the carrier.
    """
    inbound = await parse_inbound(request)
    task = orchestrator.submit(inbound)
    if not config.transport.fast_ack:
        await asyncio.wait([task])
    return "OK"
