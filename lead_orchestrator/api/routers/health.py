from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from lead_orchestrator.api.deps import get_config, get_orchestrator
from lead_orchestrator.config import AppConfig
from lead_orchestrator.orchestrator import LeadOrchestrator

router = APIRouter()


@router.get("/", response_class=PlainTextResponse)
async def root():
    return "OK"


@router.get("/health")
async def health(
    orchestrator: LeadOrchestrator = Depends(get_orchestrator),
    config: AppConfig = Depends(get_config),
):
    transport = config.transport
    return {
        "ok": True,
        "dev_mode": transport.dev_mode,
        "fast_ack": transport.fast_ack,
        "reply_to_lead_in_dev": transport.reply_to_lead_in_dev,
        "has_openai_key": bool(config.model.api_key),
        "has_twilio_sid": bool(transport.twilio_account_sid),
        "conversations": len(orchestrator.store),
    }
