"""
Modelos de horarios semanales, citas existentes y política de reserva.
Define las estructuras de entrada del motor de disponibilidad.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

class ScheduleEntry(BaseModel):
    """Ventana semanal recurrente de atención de un doctor"""
    id: Optional[str] = Field(None, description="ID del horario")
    doctor_id: str = Field(..., description="ID del doctor (perfil)")
    organization_id: str = Field(..., description="ID de la organización")
    day_of_week: int = Field(..., description="Día de la semana (0=Domingo, 6=Sábado)")
    start_time: str = Field(..., description="Hora de inicio (HH:MM)")
    end_time: str = Field(..., description="Hora de fin (HH:MM)")
    is_available: bool = Field(True, description="Si el horario está activo")
    notes: Optional[str] = Field(None, description="Notas libres")
    location_id: Optional[str] = Field(None, description="Sede donde atiende")

class DoctorProfile(BaseModel):
    """Datos de presentación de un doctor para los slots"""
    id: str = Field(..., description="ID del doctor (perfil)")
    name: str = Field(..., description="Nombre para mostrar")
    specialization: Optional[str] = Field(None, description="Especialidad")
    consultation_fee: Optional[float] = Field(None, description="Tarifa de consulta")

class Appointment(BaseModel):
    """Cita existente leída del almacenamiento"""
    id: Optional[str] = Field(None, description="ID de la cita")
    doctor_id: str = Field(..., description="ID del doctor (perfil)")
    appointment_date: str = Field(..., description="Fecha de la cita (YYYY-MM-DD)")
    start_time: str = Field(..., description="Hora de inicio (HH:MM)")
    end_time: str = Field(..., description="Hora de fin (HH:MM)")
    status: str = Field("pending", description="Estado de la cita")

    @property
    def is_active(self) -> bool:
        return self.status != "cancelled"

class BookingPolicy(BaseModel):
    """
    Política de ventana de reserva aplicada a los slots.

    Con reglas estándar no se permiten reservas para el mismo día; sin ellas
    (usuarios privilegiados) se permite el mismo día pero no horas ya pasadas.
    """
    use_standard_rules: bool = Field(True, description="Aplicar reglas de paciente")
    advance_booking_hours: int = Field(0, ge=0, description="Horas mínimas de anticipación")

class ScheduleValidationResult(BaseModel):
    """Resultado de validar un horario candidato"""
    valid: bool = Field(..., description="Si el horario se puede guardar")
    weekly_hours: float = Field(..., description="Horas semanales del doctor incluyendo el candidato")

class AvailabilityBlock(BaseModel):
    """
    Bloqueo de agenda de un doctor (vacaciones, incapacidad, capacitación).

    Un bloqueo que abarca varios días deja sin atención los días completos;
    uno dentro de un mismo día solo afecta a los slots que se solapan con él.
    """
    doctor_id: str = Field(..., description="ID del doctor (perfil)")
    start_datetime: datetime = Field(..., description="Inicio del bloqueo (hora local)")
    end_datetime: datetime = Field(..., description="Fin del bloqueo (hora local)")
    reason: Optional[str] = Field(None, description="Motivo mostrado en los slots bloqueados")
    block_type: str = Field("blocked", description="Tipo de bloqueo (vacation, sick, ...)")

    @property
    def is_multi_day(self) -> bool:
        return self.start_datetime.date() != self.end_datetime.date()
