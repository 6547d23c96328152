"""
Motor de disponibilidad de citas.

Convierte los horarios semanales recurrentes de los doctores y las citas ya
existentes en una lista de slots reservables, sin conflictos y filtrada por la
política de ventana de reserva del solicitante.

Todas las funciones son puras: no consultan almacenamiento ni reloj salvo el
valor por defecto de `now`, que el llamador puede fijar para obtener resultados
deterministas.
"""
import logging
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Union

from app.domain.entities.models import (
    Appointment, AppointmentSlot, AvailabilityBlock, BookingPolicy, DayAvailability, DoctorProfile,
    ScheduleEntry, TimeRange, ValidationError, ScheduleConflictError, AppointmentConflictError
)
from app.application.services.tools.date_utils import (
    time_to_minutes, minutes_to_time, parse_date, day_of_week, iterate_dates, now_in_timezone
)

logger = logging.getLogger(__name__)

SAME_DAY_REASON = "Los pacientes deben reservar citas con al menos 24 horas de anticipación"
PAST_TIME_REASON = "Horario ya pasado"
BOOKED_REASON = "Ocupado"

def validate_time_range(start_time: str, end_time: str) -> bool:
    """True si la hora de inicio es estrictamente anterior a la de fin."""
    return time_to_minutes(start_time, "start_time") < time_to_minutes(end_time, "end_time")

def validate_day_of_week(day: int) -> bool:
    return isinstance(day, int) and 0 <= day <= 6

def intervals_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Dos intervalos semiabiertos [s1,e1) y [s2,e2) se solapan si s1 < e2 y s2 < e1."""
    return start_a < end_b and start_b < end_a

def schedules_overlap(first: ScheduleEntry, second: ScheduleEntry) -> bool:
    """
    Indica si dos horarios del mismo doctor y día se solapan.

    La relación es simétrica y nunca es cierta entre días distintos.
    """
    if first.doctor_id != second.doctor_id or first.day_of_week != second.day_of_week:
        return False

    return intervals_overlap(
        time_to_minutes(first.start_time, "start_time"),
        time_to_minutes(first.end_time, "end_time"),
        time_to_minutes(second.start_time, "start_time"),
        time_to_minutes(second.end_time, "end_time"),
    )

def find_schedule_conflict(
    entry: ScheduleEntry,
    existing_entries: Iterable[ScheduleEntry]
) -> Optional[ScheduleEntry]:
    """Devuelve el primer horario existente que choca con el candidato, o None."""
    for existing in existing_entries:
        # Al editar un horario no se compara consigo mismo
        if entry.id is not None and existing.id == entry.id:
            continue
        if schedules_overlap(entry, existing):
            return existing
    return None

def has_schedule_conflict(entry: ScheduleEntry, existing_entries: Iterable[ScheduleEntry]) -> bool:
    return find_schedule_conflict(entry, existing_entries) is not None

def validate_schedule_entry(entry: ScheduleEntry, existing_entries: Iterable[ScheduleEntry]) -> None:
    """
    Valida un horario candidato contra los demás horarios del doctor.

    Args:
        entry: Horario a validar
        existing_entries: Otros horarios del doctor

    Raises:
        ValidationError: Rango horario inválido, hora mal formada o día fuera de 0-6
        ScheduleConflictError: El horario se solapa con otro del mismo doctor y día
    """
    if not validate_day_of_week(entry.day_of_week):
        raise ValidationError("day_of_week", f"Día de la semana fuera de rango: {entry.day_of_week}")

    if not validate_time_range(entry.start_time, entry.end_time):
        raise ValidationError(
            "end_time",
            f"La hora de fin ({entry.end_time}) debe ser posterior a la de inicio ({entry.start_time})"
        )

    conflict = find_schedule_conflict(entry, existing_entries)
    if conflict is not None:
        raise ScheduleConflictError(
            f"El horario {entry.start_time}-{entry.end_time} se solapa con "
            f"{conflict.start_time}-{conflict.end_time} del mismo día",
            conflicting_entry=conflict
        )

def schedule_duration_hours(start_time: str, end_time: str) -> float:
    return (time_to_minutes(end_time, "end_time") - time_to_minutes(start_time, "start_time")) / 60

def compute_weekly_hours(entries: Iterable[ScheduleEntry]) -> float:
    """
    Suma las horas semanales de atención de un doctor.

    Los horarios marcados como no disponibles no cuentan.
    """
    return sum(
        schedule_duration_hours(entry.start_time, entry.end_time)
        for entry in entries
        if entry.is_available
    )

class _TimeSlotSequence:
    """Secuencia perezosa y reiniciable de intervalos de duración fija."""

    def __init__(self, start_minutes: int, end_minutes: int, duration_minutes: int):
        self._start = start_minutes
        self._end = end_minutes
        self._duration = duration_minutes

    def __iter__(self) -> Iterator[TimeRange]:
        current = self._start
        while current + self._duration <= self._end:
            yield TimeRange(minutes_to_time(current), minutes_to_time(current + self._duration))
            current += self._duration

    def __len__(self) -> int:
        if self._end <= self._start:
            return 0
        return (self._end - self._start) // self._duration

def generate_time_slots(start_time: str, end_time: str, duration_minutes: int) -> _TimeSlotSequence:
    """
    Divide la ventana [start_time, end_time) en intervalos de duration_minutes.

    Args:
        start_time: Hora de inicio de la ventana (HH:MM)
        end_time: Hora de fin de la ventana (HH:MM)
        duration_minutes: Duración de cada slot

    Returns:
        Iterable de TimeRange; el último slot solo se emite si cabe completo

    Raises:
        ValidationError: Si las horas están mal formadas o la duración no es positiva
    """
    if not isinstance(duration_minutes, int) or duration_minutes <= 0:
        raise ValidationError("duration_minutes", f"Duración inválida: {duration_minutes!r}")

    return _TimeSlotSequence(
        time_to_minutes(start_time, "start_time"),
        time_to_minutes(end_time, "end_time"),
        duration_minutes,
    )

def find_block_reason(
    start_minutes: int,
    end_minutes: int,
    slot_date: date,
    blocks: Iterable[AvailabilityBlock]
) -> Optional[str]:
    """
    Busca un bloqueo de agenda que afecte al intervalo.

    Un bloqueo de varios días cubre el día completo en cada fecha del rango;
    uno de un solo día bloquea los intervalos que se solapan con sus horas.

    Returns:
        Motivo del bloqueo (o su tipo si no tiene motivo), o None
    """
    for block in blocks:
        if not block.start_datetime.date() <= slot_date <= block.end_datetime.date():
            continue
        if not block.is_multi_day:
            block_start = block.start_datetime.hour * 60 + block.start_datetime.minute
            block_end = block.end_datetime.hour * 60 + block.end_datetime.minute
            if not intervals_overlap(start_minutes, end_minutes, block_start, block_end):
                continue
        return block.reason or block.block_type
    return None

def is_slot_booked(start_minutes: int, end_minutes: int, appointments: Iterable[Appointment]) -> bool:
    """True si el intervalo choca con alguna cita no cancelada."""
    return any(
        appointment.is_active and intervals_overlap(
            start_minutes,
            end_minutes,
            time_to_minutes(appointment.start_time, "start_time"),
            time_to_minutes(appointment.end_time, "end_time"),
        )
        for appointment in appointments
    )

def ensure_slot_is_free(
    doctor_id: str,
    appointment_date: Union[str, date],
    start_time: str,
    end_time: str,
    appointments: Iterable[Appointment]
) -> None:
    """
    Comprueba que un rango solicitado no choque con una cita existente.

    Raises:
        ValidationError: Fecha u horas mal formadas, o rango vacío
        AppointmentConflictError: Existe una cita no cancelada que se solapa
    """
    target_date = parse_date(appointment_date, "appointment_date")
    start = time_to_minutes(start_time, "start_time")
    end = time_to_minutes(end_time, "end_time")
    if start >= end:
        raise ValidationError("end_time", "La hora de fin debe ser posterior a la de inicio")

    for appointment in appointments:
        if appointment.doctor_id != doctor_id or not appointment.is_active:
            continue
        if parse_date(appointment.appointment_date, "appointment_date") != target_date:
            continue
        if intervals_overlap(
            start, end,
            time_to_minutes(appointment.start_time, "start_time"),
            time_to_minutes(appointment.end_time, "end_time"),
        ):
            raise AppointmentConflictError(
                f"El horario {start_time}-{end_time} ya está ocupado "
                f"({appointment.start_time}-{appointment.end_time})",
                conflicting_appointment=appointment
            )

def evaluate_booking_policy(
    policy: BookingPolicy,
    slot_date: date,
    start_minutes: int,
    now: datetime
) -> Optional[str]:
    """
    Aplica la política de ventana de reserva a un slot.

    Returns:
        Motivo del rechazo, o None si el slot se puede reservar
    """
    today = now.date()
    now_minutes = now.hour * 60 + now.minute

    if policy.use_standard_rules:
        if slot_date == today:
            return SAME_DAY_REASON
        if policy.advance_booking_hours > 0:
            slot_start = datetime.combine(slot_date, datetime.min.time()) + timedelta(minutes=start_minutes)
            naive_now = now.replace(tzinfo=None)
            if slot_start - naive_now < timedelta(hours=policy.advance_booking_hours):
                return f"Se requieren al menos {policy.advance_booking_hours} horas de anticipación"
        return None

    if slot_date == today and start_minutes <= now_minutes:
        return PAST_TIME_REASON
    return None

def _doctor_profile(doctor_id: str, doctors: Optional[Mapping[str, DoctorProfile]]) -> DoctorProfile:
    if doctors and doctor_id in doctors:
        return doctors[doctor_id]
    return DoctorProfile(id=doctor_id, name="Doctor")

def compute_availability(
    schedule_entries: Iterable[ScheduleEntry],
    target_date: Union[str, date],
    duration_minutes: int,
    existing_appointments: Iterable[Appointment],
    booking_policy: BookingPolicy,
    *,
    doctors: Optional[Mapping[str, DoctorProfile]] = None,
    service_id: Optional[str] = None,
    location_id: Optional[str] = None,
    consultation_fee: Optional[float] = None,
    blocks: Optional[Sequence[AvailabilityBlock]] = None,
    now: Optional[datetime] = None
) -> List[AppointmentSlot]:
    """
    Calcula los slots de una fecha concreta.

    Cada horario se divide por separado, de modo que un slot nunca cruza de un
    horario a otro. El motivo de un slot no disponible se decide en este orden:
    bloqueo de agenda, cita existente y política de reserva.

    Args:
        schedule_entries: Horarios semanales (uno o varios doctores)
        target_date: Fecha consultada (YYYY-MM-DD)
        duration_minutes: Duración de cada slot
        existing_appointments: Citas existentes de la fecha
        booking_policy: Política de ventana de reserva del solicitante
        doctors: Datos de presentación por doctor_id
        service_id: Servicio solicitado, se copia en cada slot
        location_id: Sede solicitada; filtra los horarios de otras sedes
        consultation_fee: Precio del servicio; sustituye la tarifa del doctor
        blocks: Bloqueos de agenda (vacaciones, incapacidades)
        now: Instante de referencia para la política (por defecto, el reloj configurado)

    Returns:
        Slots ordenados por hora de inicio y nombre del doctor; lista vacía si
        no hay horarios para ese día
    """
    slot_date = parse_date(target_date, "date")
    weekday = day_of_week(slot_date)
    reference = now if now is not None else now_in_timezone()
    date_str = slot_date.isoformat()

    entries_by_doctor: Dict[str, List[ScheduleEntry]] = defaultdict(list)
    for entry in schedule_entries:
        if not entry.is_available or entry.day_of_week != weekday:
            continue
        if location_id and entry.location_id and entry.location_id != location_id:
            continue
        entries_by_doctor[entry.doctor_id].append(entry)

    appointments_by_doctor: Dict[str, List[Appointment]] = defaultdict(list)
    for appointment in existing_appointments:
        if parse_date(appointment.appointment_date, "appointment_date") == slot_date:
            appointments_by_doctor[appointment.doctor_id].append(appointment)

    blocks_by_doctor: Dict[str, List[AvailabilityBlock]] = defaultdict(list)
    for block in blocks or ():
        blocks_by_doctor[block.doctor_id].append(block)

    slots: List[AppointmentSlot] = []
    seen = set()
    for doctor_id, entries in entries_by_doctor.items():
        profile = _doctor_profile(doctor_id, doctors)
        doctor_appointments = appointments_by_doctor.get(doctor_id, [])
        doctor_blocks = blocks_by_doctor.get(doctor_id, [])

        for entry in sorted(entries, key=lambda e: time_to_minutes(e.start_time, "start_time")):
            sequence = generate_time_slots(entry.start_time, entry.end_time, duration_minutes)
            for time_range in sequence:
                # Horarios solapados (inválidos) no duplican slots
                key = (doctor_id, time_range.start_time)
                if key in seen:
                    continue
                seen.add(key)

                start = time_to_minutes(time_range.start_time)
                end = time_to_minutes(time_range.end_time)
                reason = find_block_reason(start, end, slot_date, doctor_blocks)
                if reason is None and is_slot_booked(start, end, doctor_appointments):
                    reason = BOOKED_REASON
                if reason is None:
                    reason = evaluate_booking_policy(booking_policy, slot_date, start, reference)

                slots.append(AppointmentSlot(
                    id=f"{doctor_id}-{date_str}-{time_range.start_time}",
                    date=date_str,
                    start_time=time_range.start_time,
                    end_time=time_range.end_time,
                    doctor_id=doctor_id,
                    doctor_name=profile.name,
                    specialization=profile.specialization,
                    consultation_fee=consultation_fee if consultation_fee is not None else profile.consultation_fee,
                    available=reason is None,
                    reason=reason,
                    service_id=service_id,
                    location_id=location_id or entry.location_id,
                    duration_minutes=duration_minutes,
                ))

    slots.sort(key=lambda slot: (slot.start_time, slot.doctor_name, slot.doctor_id))
    logger.debug(
        f"Disponibilidad {date_str}: {len(slots)} slots "
        f"({sum(1 for s in slots if s.available)} disponibles)"
    )
    return slots

def compute_availability_range(
    schedule_entries: Iterable[ScheduleEntry],
    start_date: Union[str, date],
    end_date: Union[str, date],
    duration_minutes: int,
    existing_appointments: Iterable[Appointment],
    booking_policy: BookingPolicy,
    **options
) -> Dict[str, DayAvailability]:
    """
    Calcula la disponibilidad para cada fecha de [start_date, end_date].

    Raises:
        ValidationError: Fechas mal formadas o start_date posterior a end_date
    """
    first = parse_date(start_date, "start_date")
    last = parse_date(end_date, "end_date")
    if first > last:
        raise ValidationError("end_date", "start_date debe ser anterior o igual a end_date")

    entries = list(schedule_entries)
    appointments = list(existing_appointments)
    result: Dict[str, DayAvailability] = {}
    for current in iterate_dates(first, last):
        slots = compute_availability(
            entries, current, duration_minutes, appointments, booking_policy, **options
        )
        result[current.isoformat()] = DayAvailability(
            date=current.isoformat(),
            slots=slots,
            total_slots=len(slots),
            available_slots=sum(1 for slot in slots if slot.available),
        )
    return result
