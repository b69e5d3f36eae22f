"""Read-only introspection of in-memory leads."""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query

from lead_orchestrator.api.deps import get_orchestrator, require_debug_token
from lead_orchestrator.errors import DebugRequestError
from lead_orchestrator.orchestrator import LeadOrchestrator
from lead_orchestrator.schemas.debug_schema import (
    ConversationDetailResponse,
    LeadListResponse,
    LeadSummary,
)
from lead_orchestrator.utils import normalize_sender

router = APIRouter(prefix="/debug", dependencies=[Depends(require_debug_token)])

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


@router.get("/leads", response_model=LeadListResponse)
async def list_leads(orchestrator: LeadOrchestrator = Depends(get_orchestrator)):
    """All leads, most recent activity first."""
    leads = [LeadSummary.from_conversation(c) for c in orchestrator.store.all()]
    leads.sort(key=lambda lead: lead.last_at or _EPOCH, reverse=True)
    return LeadListResponse(count=len(leads), leads=leads)


@router.get("/conversation", response_model=ConversationDetailResponse)
async def get_conversation(
    phone: Optional[str] = Query(None),
    orchestrator: LeadOrchestrator = Depends(get_orchestrator),
):
    if not phone:
        raise DebugRequestError(400, "missing ?phone=...")
    conversation = orchestrator.store.get(normalize_sender(phone))
    if conversation is None:
        raise DebugRequestError(404, "lead_not_found")
    return ConversationDetailResponse.from_conversation(conversation)
