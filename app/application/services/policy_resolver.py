"""
Resolución de la política de ventana de reserva según el rol del solicitante.
"""
import logging
from typing import Optional

from app.domain.entities.models import BookingPolicy
from app.infrastructure.config.config.settings import ADVANCE_BOOKING_HOURS

logger = logging.getLogger(__name__)

# Roles que pueden reservar el mismo día
PRIVILEGED_ROLES = frozenset({"admin", "staff", "doctor", "superadmin"})

def is_privileged_role(user_role: Optional[str]) -> bool:
    return bool(user_role) and user_role.strip().lower() in PRIVILEGED_ROLES

def resolve_booking_policy(
    user_role: Optional[str],
    use_standard_rules: bool = False,
    advance_booking_hours: int = ADVANCE_BOOKING_HOURS
) -> BookingPolicy:
    """
    Determina la política de reserva que el motor de disponibilidad debe aplicar.

    Args:
        user_role: Rol del usuario que consulta (patient, admin, staff, doctor, superadmin)
        use_standard_rules: Fuerza las reglas de paciente incluso para roles privilegiados
        advance_booking_hours: Antelación mínima exigida con reglas estándar

    Returns:
        BookingPolicy; los roles desconocidos reciben las reglas estándar
    """
    privileged = is_privileged_role(user_role) and not use_standard_rules
    policy = BookingPolicy(
        use_standard_rules=not privileged,
        advance_booking_hours=advance_booking_hours
    )
    logger.debug(f"Política para rol={user_role!r}: estándar={policy.use_standard_rules}")
    return policy
