"""Request dependencies shared by the routers."""

import secrets
from typing import Optional

from fastapi import Header, Query, Request

from lead_orchestrator.config import AppConfig
from lead_orchestrator.errors import DebugRequestError
from lead_orchestrator.orchestrator import LeadOrchestrator


def get_orchestrator(request: Request) -> LeadOrchestrator:
    return request.app.state.orchestrator


def get_config(request: Request) -> AppConfig:
    return request.app.state.config


def _matches(candidate: Optional[str], expected: str) -> bool:
    return candidate is not None and secrets.compare_digest(candidate, expected)


def require_debug_token(
    request: Request,
    token: Optional[str] = Query(None),
    x_debug_token: Optional[str] = Header(None),
) -> None:
    """Guard for debug routes. Open when DEBUG_TOKEN is unset."""
    expected = get_config(request).debug_token
    if not expected:
        return
    if _matches(token, expected) or _matches(x_debug_token, expected):
        return
    raise DebugRequestError(401, "unauthorized")
