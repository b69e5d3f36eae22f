"""Fixed replies that are intentionally not generated by the model.

Confirmations and acknowledgements are deterministic so every lead gets the
same wording at the moments that matter.
"""

from typing import Optional

from lead_orchestrator.config import BusinessConfig, settings
from lead_orchestrator.conversation.qualification import ask_for_field

TECHNICAL_ISSUE_PREFIX = "Perdón, tuve un problema técnico."


def _with_name(name: str) -> str:
    return f", {name}" if name else ""


def greeting(business: Optional[BusinessConfig] = None) -> str:
    biz = business or settings.business
    return (
        f"Hola 👋 Soy {biz.assistant_name}, asistente de {biz.name}. "
        "¿En qué te puedo ayudar?"
    )


def handoff_confirmation(name: str) -> str:
    return (
        f"Perfecto{_with_name(name)}. 🙌 Ya te paso con un asesor.\n"
        "Gracias por escribirnos."
    )


def post_handoff_acknowledgement(name: str) -> str:
    return f"¡Gracias{_with_name(name)}! Ya se lo pasé al asesor 🙌"


def ready_for_handoff(name: str) -> str:
    return f"Ya tengo todo lo necesario{_with_name(name)}. Un asesor va a continuar la conversación."


def technical_issue(
    missing_field: Optional[str], name: str = "", handoff_requested: bool = True
) -> str:
    """Reply used when no model answer is available.

    Asks for at most one missing field. With nothing left to ask it confirms
    readiness when a handoff was requested, or asks the customer to repeat.
    """
    if missing_field is not None:
        question = ask_for_field(missing_field, before_handoff=handoff_requested)
        return f"{TECHNICAL_ISSUE_PREFIX} {question}"
    if handoff_requested:
        return f"{TECHNICAL_ISSUE_PREFIX} {ready_for_handoff(name)}"
    return repeat_please()


def repeat_please() -> str:
    return f"{TECHNICAL_ISSUE_PREFIX} ¿Me repetís tu consulta, por favor?"


def operator_handoff_notice(
    *,
    handoff_type: str,
    name: str,
    zone: str,
    intent_summary: str,
    availability: str,
    phone: str,
    message: str,
    snapshot: str,
) -> str:
    icon = "📅" if handoff_type == "visit" else "🧑‍💼"
    return (
        f"{icon} HANDOFF ({handoff_type})\n"
        f"Nombre: {name or 'sin_nombre'}\n"
        f"Zona: {zone or 'sin_zona'}\n"
        f"Busca: {intent_summary or 'sin_detalle'}\n"
        f"Disponibilidad: {availability or 'sin_disponibilidad'}\n"
        f"Tel: {phone}\n"
        f"Mensaje: {message}\n"
        f"Snapshot: {snapshot}"
    )


def operator_after_handoff_notice(*, name: str, zone: str, phone: str, message: str) -> str:
    return (
        "📩 Mensaje después del handoff\n"
        f"Nombre: {name or 'sin_nombre'}\n"
        f"Zona: {zone or 'sin_zona'}\n"
        f"Tel: {phone}\n"
        f"Mensaje: {message}"
    )
