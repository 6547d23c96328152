"""
Rutas y endpoints de agenda.
Define los endpoints HTTP de disponibilidad, validación de horarios e intención.
"""
import logging
from datetime import datetime
from typing import Dict, Optional, Tuple

from fastapi import APIRouter, Depends, Query

from app.domain.entities.models import (
    AgentResponse, BookingIntent, ChatRequest, ConversationSession, DayAvailability,
    IntentRequest, ScheduleEntry, ScheduleValidationResult, ValidationError
)
from app.application.services import resolve_booking_policy
from app.application.services.tools.availability_engine import (
    compute_availability, compute_availability_range, compute_weekly_hours, validate_schedule_entry
)
from app.application.services.tools.entity_extraction import extract_booking_intent
from app.application.services.tools.date_utils import parse_date
from app.infrastructure.config.config.settings import (
    DEFAULT_SLOT_DURATION, MIN_SLOT_DURATION, MAX_SLOT_DURATION, MAX_AVAILABILITY_RANGE_DAYS
)
from app.infrastructure.external.agents.agents.appointment_agent import AppointmentAgent, appointment_agent
from app.services.supabase_service import SupabaseService, supabase_service

logger = logging.getLogger(__name__)

# Crear router para los endpoints de agenda
router = APIRouter(prefix="/scheduling", tags=["scheduling"])

def get_scheduling_repository() -> SupabaseService:
    """Colaborador de almacenamiento usado por los endpoints."""
    return supabase_service

def get_appointment_agent() -> AppointmentAgent:
    """Asistente conversacional usado por el endpoint de chat."""
    return appointment_agent

async def _load_inputs(repository: SupabaseService,
                       organization_id: str,
                       start_date: str,
                       end_date: str,
                       doctor_id: Optional[str],
                       service_id: Optional[str],
                       location_id: Optional[str]) -> Tuple[Dict, list, list, list, Optional[float]]:
    """
    Lee del almacenamiento todo lo que necesita el motor de disponibilidad.

    Returns:
        Tupla (doctores, horarios, citas, bloqueos, precio del servicio)
    """
    doctors = await repository.get_doctors(organization_id, doctor_id=doctor_id, service_id=service_id)
    if not doctors:
        logger.info(f"Sin doctores disponibles para la organización {organization_id}")
        return {}, [], [], [], None

    doctor_ids = list(doctors.keys())
    entries = await repository.get_doctor_schedules(organization_id, doctor_ids, location_id=location_id)
    appointments = await repository.get_existing_appointments(
        organization_id, start_date, end_date, doctor_ids=doctor_ids
    )
    blocks = await repository.get_availability_blocks(start_date, end_date, doctor_ids)
    price = await repository.get_service_price(service_id) if service_id else None
    return doctors, entries, appointments, blocks, price

@router.get("/availability", response_model=DayAvailability)
async def get_availability(
    organization_id: str = Query(..., description="ID de la organización"),
    target_date: str = Query(..., alias="date", description="Fecha consultada (YYYY-MM-DD)"),
    doctor_id: Optional[str] = Query(None, description="Restringe a un doctor"),
    service_id: Optional[str] = Query(None, description="Servicio solicitado"),
    location_id: Optional[str] = Query(None, description="Sede solicitada"),
    duration: int = Query(DEFAULT_SLOT_DURATION, ge=MIN_SLOT_DURATION, le=MAX_SLOT_DURATION),
    user_role: str = Query("patient", description="Rol del usuario que consulta"),
    use_standard_rules: bool = Query(False, description="Forzar reglas de paciente"),
    repository: SupabaseService = Depends(get_scheduling_repository)
):
    """
    Slots de una fecha para los doctores de una organización.

    Returns:
        DayAvailability con todos los slots, marcando los no disponibles con su motivo
    """
    day = parse_date(target_date, "date")
    policy = resolve_booking_policy(user_role, use_standard_rules)

    doctors, entries, appointments, blocks, price = await _load_inputs(
        repository, organization_id, day.isoformat(), day.isoformat(), doctor_id, service_id, location_id
    )
    slots = compute_availability(
        entries, day, duration, appointments, policy,
        doctors=doctors, service_id=service_id, location_id=location_id, consultation_fee=price,
        blocks=blocks
    )

    return DayAvailability(
        date=day.isoformat(),
        slots=slots,
        total_slots=len(slots),
        available_slots=sum(1 for slot in slots if slot.available)
    )

@router.get("/availability/range", response_model=Dict[str, DayAvailability])
async def get_availability_range(
    organization_id: str = Query(..., description="ID de la organización"),
    start_date: str = Query(..., description="Primera fecha (YYYY-MM-DD)"),
    end_date: str = Query(..., description="Última fecha (YYYY-MM-DD), incluida"),
    doctor_id: Optional[str] = Query(None, description="Restringe a un doctor"),
    service_id: Optional[str] = Query(None, description="Servicio solicitado"),
    location_id: Optional[str] = Query(None, description="Sede solicitada"),
    duration: int = Query(DEFAULT_SLOT_DURATION, ge=MIN_SLOT_DURATION, le=MAX_SLOT_DURATION),
    user_role: str = Query("patient", description="Rol del usuario que consulta"),
    use_standard_rules: bool = Query(False, description="Forzar reglas de paciente"),
    repository: SupabaseService = Depends(get_scheduling_repository)
):
    """Disponibilidad día a día para un rango de fechas."""
    first = parse_date(start_date, "start_date")
    last = parse_date(end_date, "end_date")
    if first > last:
        raise ValidationError("end_date", "start_date debe ser anterior o igual a end_date")
    if (last - first).days + 1 > MAX_AVAILABILITY_RANGE_DAYS:
        raise ValidationError("end_date", f"El rango no puede superar {MAX_AVAILABILITY_RANGE_DAYS} días")

    policy = resolve_booking_policy(user_role, use_standard_rules)
    doctors, entries, appointments, blocks, price = await _load_inputs(
        repository, organization_id, first.isoformat(), last.isoformat(), doctor_id, service_id, location_id
    )
    return compute_availability_range(
        entries, first, last, duration, appointments, policy,
        doctors=doctors, service_id=service_id, location_id=location_id, consultation_fee=price,
        blocks=blocks
    )

@router.post("/schedules/validate", response_model=ScheduleValidationResult)
async def validate_schedule(
    entry: ScheduleEntry,
    repository: SupabaseService = Depends(get_scheduling_repository)
):
    """
    Valida un horario candidato contra los horarios guardados del doctor,
    incluidos los desactivados.

    Returns:
        Resultado con las horas semanales que tendría el doctor
    """
    existing = await repository.get_doctor_schedules(
        entry.organization_id, [entry.doctor_id], include_inactive=True
    )
    validate_schedule_entry(entry, existing)

    others = [item for item in existing if entry.id is None or item.id != entry.id]
    return ScheduleValidationResult(valid=True, weekly_hours=compute_weekly_hours(others + [entry]))

@router.post("/intent", response_model=BookingIntent)
async def extract_intent(intent_request: IntentRequest):
    """Interpreta un mensaje libre del paciente sin consultar la IA."""
    return extract_booking_intent(intent_request.message)

@router.post("/chat", response_model=AgentResponse)
async def chat(
    chat_request: ChatRequest,
    agent: AppointmentAgent = Depends(get_appointment_agent)
):
    """
    Turno de conversación con el asistente de citas.

    El cliente conserva el historial y la intención acumulada y los reenvía en
    cada turno.
    """
    session = ConversationSession(
        user_id=chat_request.user_id,
        organization_id=chat_request.organization_id,
        history=[message.model_dump() for message in chat_request.history],
        intent=chat_request.intent
    )
    return await agent.process_message(chat_request.message, session)

@router.get("/health")
async def health_check():
    """Endpoint para verificar el estado del servicio de agenda."""
    return {"status": "healthy", "timestamp": datetime.now().isoformat()}
