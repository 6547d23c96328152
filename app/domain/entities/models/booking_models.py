"""
Modelos específicos relacionados con reservas y disponibilidad.
Define las estructuras de datos utilizadas en la gestión de slots.
"""
from typing import List, NamedTuple, Optional
from pydantic import BaseModel, Field

class TimeRange(NamedTuple):
    """Intervalo [start_time, end_time) en formato HH:MM"""
    start_time: str
    end_time: str

class AppointmentSlot(BaseModel):
    """Unidad reservable en una fecha concreta"""
    id: str = Field(..., description="ID sintético del slot")
    date: str = Field(..., description="Fecha del slot (YYYY-MM-DD)")
    start_time: str = Field(..., description="Hora de inicio (HH:MM)")
    end_time: str = Field(..., description="Hora de fin (HH:MM)")
    doctor_id: str = Field(..., description="ID del doctor")
    doctor_name: str = Field(..., description="Nombre del doctor")
    specialization: Optional[str] = Field(None, description="Especialidad del doctor")
    consultation_fee: Optional[float] = Field(None, description="Tarifa aplicada")
    available: bool = Field(True, description="Si el slot se puede reservar")
    reason: Optional[str] = Field(None, description="Motivo si no está disponible")
    service_id: Optional[str] = Field(None, description="ID del servicio")
    location_id: Optional[str] = Field(None, description="ID de la sede")
    duration_minutes: int = Field(..., description="Duración en minutos")

class DayAvailability(BaseModel):
    """Disponibilidad de un día dentro de un rango de fechas"""
    date: str = Field(..., description="Fecha (YYYY-MM-DD)")
    slots: List[AppointmentSlot] = Field(default_factory=list, description="Slots del día")
    total_slots: int = Field(0, description="Número total de slots")
    available_slots: int = Field(0, description="Número de slots disponibles")
