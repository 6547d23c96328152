"""
Exportación de todos los modelos de dominio.
Este módulo centraliza la exportación de todos los modelos para facilitar su importación.
"""
# Modelos de horarios
from app.domain.entities.models.schedule_models import (
    ScheduleEntry,
    DoctorProfile,
    Appointment,
    BookingPolicy,
    AvailabilityBlock,
    ScheduleValidationResult
)

# Modelos de disponibilidad
from app.domain.entities.models.booking_models import (
    TimeRange,
    AppointmentSlot,
    DayAvailability
)

# Modelos de intención
from app.domain.entities.models.intent_models import (
    IntentType,
    UrgencyLevel,
    DateType,
    TimeType,
    ExtractedDate,
    ExtractedTime,
    ExtractedSpecialty,
    BookingIntent
)

# Modelos del asistente
from app.domain.entities.models.agent_models import (
    IntentRequest,
    ChatMessage,
    ChatRequest,
    ConversationSession,
    AgentResponse
)

# Modelos de errores
from app.domain.entities.models.error_models import (
    ErrorResult,
    SchedulingError,
    ValidationError,
    ConflictError,
    ScheduleConflictError,
    AppointmentConflictError,
    StorageUnavailableError
)

# Exportar todos los modelos para facilitar importación
__all__ = [
    # Horarios
    'ScheduleEntry',
    'DoctorProfile',
    'Appointment',
    'BookingPolicy',
    'AvailabilityBlock',
    'ScheduleValidationResult',

    # Disponibilidad
    'TimeRange',
    'AppointmentSlot',
    'DayAvailability',

    # Intención
    'IntentType',
    'UrgencyLevel',
    'DateType',
    'TimeType',
    'ExtractedDate',
    'ExtractedTime',
    'ExtractedSpecialty',
    'BookingIntent',

    # Asistente
    'IntentRequest',
    'ChatMessage',
    'ChatRequest',
    'ConversationSession',
    'AgentResponse',

    # Errores
    'ErrorResult',
    'SchedulingError',
    'ValidationError',
    'ConflictError',
    'ScheduleConflictError',
    'AppointmentConflictError',
    'StorageUnavailableError'
]
