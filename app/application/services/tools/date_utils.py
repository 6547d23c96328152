"""
Utilidades para el manejo de fechas, horas y zonas horarias.
Este módulo contiene las primitivas de aritmética horaria usadas por los motores
de disponibilidad y de extracción de intención.
"""
import re
import pytz
from datetime import date, datetime, timedelta
from typing import Iterator, Union
from app.infrastructure.config.config.settings import TimeZones, TIMEZONE_MAP, DEFAULT_TIMEZONE
from app.domain.entities.models.error_models import ValidationError

_TIME_PATTERN = re.compile(r"(\d{2}):(\d{2})(?::(\d{2}))?")

def get_timezone_instance(tz: TimeZones = DEFAULT_TIMEZONE) -> pytz.BaseTzInfo:
    """
    Obtiene la instancia de zona horaria basada en la enumeración.

    Args:
        tz: La zona horaria a utilizar (de la enumeración TimeZones)

    Returns:
        Instancia de pytz.timezone para la zona horaria solicitada
    """
    return pytz.timezone(TIMEZONE_MAP[tz])

def now_in_timezone(tz: TimeZones = DEFAULT_TIMEZONE) -> datetime:
    """Fecha y hora actual en la zona horaria indicada."""
    return datetime.now(get_timezone_instance(tz))

def today_in_timezone(tz: TimeZones = DEFAULT_TIMEZONE) -> date:
    """Fecha de hoy en la zona horaria indicada."""
    return now_in_timezone(tz).date()

def time_to_minutes(value: str, field: str = "time") -> int:
    """
    Convierte una hora HH:MM (o HH:MM:SS) a minutos desde la medianoche.

    Args:
        value: Hora a convertir
        field: Nombre del campo, usado en el mensaje de error

    Returns:
        Minutos desde la medianoche (los segundos se descartan)

    Raises:
        ValidationError: Si la hora está mal formada o fuera de rango
    """
    match = _TIME_PATTERN.fullmatch(value) if isinstance(value, str) else None
    if not match:
        raise ValidationError(field, f"Formato de hora inválido: {value!r}. Use HH:MM")

    hours = int(match.group(1))
    minutes = int(match.group(2))
    seconds = int(match.group(3) or 0)
    if hours > 23 or minutes > 59 or seconds > 59:
        raise ValidationError(field, f"Hora fuera de rango: {value!r}")

    return hours * 60 + minutes

def minutes_to_time(minutes: int) -> str:
    """Convierte minutos desde la medianoche a HH:MM con ceros a la izquierda."""
    hours, mins = divmod(minutes, 60)
    return f"{hours:02d}:{mins:02d}"

def normalize_time(value: str, field: str = "time") -> str:
    """Normaliza HH:MM:SS a HH:MM validando el valor."""
    return minutes_to_time(time_to_minutes(value, field))

def parse_date(value: Union[str, date], field: str = "date") -> date:
    """
    Interpreta una fecha en formato YYYY-MM-DD.

    Raises:
        ValidationError: Si la fecha no es una fecha de calendario real
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    try:
        return datetime.strptime(str(value), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(field, f"Formato de fecha inválido: {value!r}. Use YYYY-MM-DD")

def day_of_week(value: Union[str, date]) -> int:
    """Día de la semana con Domingo=0 y Sábado=6."""
    return (parse_date(value).weekday() + 1) % 7

def iterate_dates(start: date, end: date) -> Iterator[date]:
    """Recorre cada fecha del intervalo [start, end], ambos incluidos."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)

def format_date_human_readable(date_obj: date, include_year: bool = True) -> str:
    """
    Formatea una fecha en formato legible en español.

    Args:
        date_obj: Fecha a formatear
        include_year: Si se debe incluir el año en el formato

    Returns:
        Cadena formateada con la fecha en español
    """
    day_names = ["Lunes", "Martes", "Miércoles", "Jueves", "Viernes", "Sábado", "Domingo"]
    month_names = ["", "Enero", "Febrero", "Marzo", "Abril", "Mayo", "Junio",
                    "Julio", "Agosto", "Septiembre", "Octubre", "Noviembre", "Diciembre"]

    day_name = day_names[date_obj.weekday()]
    day = date_obj.day
    month = month_names[date_obj.month]

    if include_year:
        return f"{day_name} {day} de {month} de {date_obj.year}"
    return f"{day_name} {day} de {month}"
