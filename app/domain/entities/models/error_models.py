"""
Modelos específicos relacionados con errores.
Define las excepciones del dominio de agenda y la estructura de error devuelta por la API.
"""
from typing import Any, Optional, TypedDict

class ErrorResult(TypedDict):
    """Modelo para representar un resultado de error"""
    error: str
    details: Optional[str]

class SchedulingError(Exception):
    """Excepción base del dominio de agenda."""

class ValidationError(SchedulingError, ValueError):
    """
    Entrada mal formada: rango horario inválido, día de la semana fuera de rango
    o fecha/hora que no se puede interpretar.

    Attributes:
        field: Nombre del campo que originó el error
    """

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")

class ConflictError(SchedulingError):
    """Colisión con un horario o una cita existente."""

class ScheduleConflictError(ConflictError):
    """El horario candidato se solapa con otro horario del mismo doctor y día."""

    def __init__(self, message: str, conflicting_entry: Any = None):
        self.conflicting_entry = conflicting_entry
        super().__init__(message)

class AppointmentConflictError(ConflictError):
    """El rango solicitado choca con una cita no cancelada."""

    def __init__(self, message: str, conflicting_appointment: Any = None):
        self.conflicting_appointment = conflicting_appointment
        super().__init__(message)

class StorageUnavailableError(SchedulingError):
    """El colaborador de almacenamiento no está disponible o la consulta falló."""
