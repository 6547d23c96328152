"""Servicios de aplicación: motores de disponibilidad y de intención."""
from app.application.services.policy_resolver import resolve_booking_policy, PRIVILEGED_ROLES
from app.application.services.tools.availability_engine import (
    compute_availability,
    compute_availability_range,
    validate_schedule_entry,
    compute_weekly_hours,
    generate_time_slots,
    ensure_slot_is_free
)
from app.application.services.tools.entity_extraction import extract_booking_intent

__all__ = [
    'resolve_booking_policy',
    'PRIVILEGED_ROLES',
    'compute_availability',
    'compute_availability_range',
    'validate_schedule_entry',
    'compute_weekly_hours',
    'generate_time_slots',
    'ensure_slot_is_free',
    'extract_booking_intent'
]
