"""
Instructions and message construction for the inference provider.

The provider gets static business facts, behavioral rules and a strict
JSON output contract. Business-specific values are injected from
configuration, not hardcoded.
"""

from typing import Optional

from lead_orchestrator.config import BusinessConfig, settings
from lead_orchestrator.conversation.qualification import QUALIFICATION_FIELDS
from lead_orchestrator.inference.base import DecisionRequest
from lead_orchestrator.schemas.lead_schema import Origin


def build_business_facts(business: BusinessConfig) -> str:
    return f"""
EMPRESA
- Nombre comercial: {business.name}
- Ubicación / showroom: {business.address}
- Horarios de atención: {business.hours}
- Medios de pago: {business.payment_methods}
- Plazos de entrega: {business.delivery_times}

OFERTA
- Productos/servicios: {business.products}.
- Trabajo 100% a medida.
- Relevamiento/medición a domicilio sin cargo.
- Envíos a todo el país.
"""


OUTPUT_CONTRACT = """
SALIDA
Devolvé SOLO un objeto JSON, sin texto antes ni después:
{"reply": "...", "name": "", "zone": "", "intentSummary": "", "availability": "", "handoff_intent": "none"}
- reply: tu respuesta al cliente.
- name: SOLO el nombre (o nombre y apellido) si aparece explícito en el mensaje actual, si no "".
- zone: SOLO la ubicación (barrio/ciudad/zona) si aparece explícita, si no "".
- intentSummary: resumen breve de qué producto o trabajo busca, si queda claro, si no "".
- availability: días/horarios que propone para una visita, si los dice, si no "".
- handoff_intent: "price" si pide precio/presupuesto/cotización, "visit" si pide
  coordinar visita/medición/relevamiento, si no "none".
"""


def build_system_prompt(business: Optional[BusinessConfig] = None) -> str:
    biz = business or settings.business
    return f"""
Sos {biz.assistant_name}, asistente comercial de {biz.name}.

OBJETIVO (LEAD-GEN)
- Que el cliente se sienta cómodo y avanzar hacia un cierre.
- Resolver consultas generales.
- Recomendar 1 o 2 opciones simples.
- Con señales claras de intención, sugerí medición sin cargo como camino práctico.

REGLAS CLAVE
- Usá SOLO los FACTS. No inventes.
- Nunca des precios, promos, cuotas ni estimaciones.
- NO pidas fotos.
- Si el cliente pide precio o visita y falta algún dato (qué busca, nombre,
  zona y, para visitas, disponibilidad), pedí UN solo dato por mensaje.
- No repitas datos que el cliente ya te dio.

ESTILO
- WhatsApp, cálido, breve.
- 1 pregunta máximo.
- Emojis 0 a 1 y no siempre.

FACTS
{build_business_facts(biz)}
{OUTPUT_CONTRACT}"""


def build_context_block(request: DecisionRequest) -> str:
    """Describe the fields already collected so the model does not ask again."""
    lines = ["Contexto detectado:"]
    for defn in QUALIFICATION_FIELDS:
        value = request.fields.get(defn.name) or "desconocido"
        lines.append(f"- {defn.display_name}: {value}")
    if request.pending_type is not None:
        lines.append(f"- derivación pendiente: {request.pending_type.value}")
    return "\n".join(lines)


def build_decision_messages(
    request: DecisionRequest, business: Optional[BusinessConfig] = None
) -> list[dict[str, str]]:
    """Chat messages for one decision: instructions, context, history, inbound text."""
    messages = [
        {"role": "system", "content": build_system_prompt(business)},
        {"role": "system", "content": build_context_block(request)},
    ]
    for entry in request.history:
        if entry.origin == Origin.SYSTEM:
            continue
        role = "user" if entry.origin == Origin.CUSTOMER else "assistant"
        messages.append({"role": role, "content": entry.text})
    messages.append({"role": "user", "content": request.inbound_text})
    return messages
