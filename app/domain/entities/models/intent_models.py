"""
Modelos de la intención de reserva extraída de un mensaje de texto libre.
"""
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field

class IntentType(str, Enum):
    BOOK = "book"
    CANCEL = "cancel"
    RESCHEDULE = "reschedule"
    INQUIRE = "inquire"
    UNKNOWN = "unknown"

class UrgencyLevel(str, Enum):
    URGENT = "urgent"
    ROUTINE = "routine"
    FLEXIBLE = "flexible"

class DateType(str, Enum):
    SPECIFIC = "specific"
    RELATIVE = "relative"
    FLEXIBLE = "flexible"

class TimeType(str, Enum):
    SPECIFIC = "specific"
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    FLEXIBLE = "flexible"

class ExtractedDate(BaseModel):
    """Fecha interpretada a partir del texto"""
    type: DateType = Field(..., description="Tipo de fecha")
    value: str = Field(..., description="Fecha normalizada (YYYY-MM-DD)")
    confidence: float = Field(..., ge=0, le=1, description="Certeza léxica")
    original_text: str = Field("", description="Texto original")

class ExtractedTime(BaseModel):
    """Hora interpretada a partir del texto"""
    type: TimeType = Field(..., description="Tipo de hora")
    value: str = Field(..., description="Hora normalizada (HH:MM)")
    confidence: float = Field(..., ge=0, le=1, description="Certeza léxica")
    original_text: str = Field("", description="Texto original")

class ExtractedSpecialty(BaseModel):
    """Especialidad óptica y servicio asociado"""
    specialty: str = Field(..., description="Especialidad canónica")
    service_type: Optional[str] = Field(None, description="Servicio canónico")
    confidence: float = Field(..., ge=0, le=1, description="Certeza léxica")
    original_text: str = Field("", description="Texto original")

class BookingIntent(BaseModel):
    """Interpretación estructurada de un mensaje de agenda"""
    intent: IntentType = Field(IntentType.UNKNOWN, description="Acción solicitada")
    specialty: Optional[str] = Field(None, description="Especialidad")
    service_type: Optional[str] = Field(None, description="Tipo de servicio")
    preferred_date: Optional[ExtractedDate] = Field(None, description="Fecha preferida")
    preferred_time: Optional[ExtractedTime] = Field(None, description="Hora preferida")
    urgency: UrgencyLevel = Field(UrgencyLevel.ROUTINE, description="Nivel de urgencia")
    patient_concerns: Optional[str] = Field(None, description="Motivo de consulta")
    confidence: float = Field(0.0, ge=0, le=1, description="Confianza global")
    missing_info: List[str] = Field(default_factory=list, description="Campos por solicitar")
