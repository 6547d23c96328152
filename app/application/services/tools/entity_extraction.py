"""
Extracción de entidades de mensajes de pacientes en español.

Convierte un mensaje libre ("quiero una cita mañana por la tarde, me duelen
los ojos") en una intención de reserva estructurada con puntuaciones de
confianza. Todas las reglas son tablas ordenadas que se evalúan por prioridad;
la primera regla que produce un valor gana.

El texto se pasa a minúsculas y se eliminan los acentos antes de comparar, de
modo que "mañana" y "manana" son equivalentes. Los fragmentos devueltos en
original_text conservan el texto en minúsculas sin plegar.
"""
import re
import logging
import unicodedata
from datetime import date, timedelta
from typing import Callable, List, NamedTuple, Optional, Tuple
from dateutil.relativedelta import relativedelta

from app.domain.entities.models import (
    BookingIntent, DateType, ExtractedDate, ExtractedSpecialty, ExtractedTime,
    IntentType, TimeType, UrgencyLevel, ValidationError
)
from app.application.services.tools.date_utils import parse_date, today_in_timezone
from app.infrastructure.config.config.settings import INTENT_CONFIDENCE_THRESHOLD

logger = logging.getLogger(__name__)

def _fold_char(char: str) -> str:
    return unicodedata.normalize("NFD", char)[0]

def _prepare(text: str) -> Tuple[str, str]:
    """
    Devuelve (texto en minúsculas, texto en minúsculas sin acentos).

    Ambas cadenas tienen la misma longitud, así que los índices de un match
    sobre la versión plegada sirven para recortar la original.
    """
    lowered = unicodedata.normalize("NFC", (text or "").lower())
    return lowered, "".join(_fold_char(c) for c in lowered)

def _fold(text: str) -> str:
    return _prepare(text)[1]

# ---------------------------------------------------------------------------
# Fechas
# ---------------------------------------------------------------------------

MONTHS = {
    "enero": 1, "febrero": 2, "marzo": 3, "abril": 4, "mayo": 5, "junio": 6,
    "julio": 7, "agosto": 8, "septiembre": 9, "setiembre": 9, "octubre": 10,
    "noviembre": 11, "diciembre": 12,
}

WEEKDAYS = {
    "lunes": 0, "martes": 1, "miercoles": 2, "jueves": 3,
    "viernes": 4, "sabado": 5, "domingo": 6,
}

class _DateRule(NamedTuple):
    pattern: "re.Pattern"
    resolve: Callable[["re.Match", date], Optional[date]]
    type: DateType
    confidence: float

def _offset(days: int) -> Callable[["re.Match", date], date]:
    return lambda match, today: today + timedelta(days=days)

def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None

def _iso_date(match, today):
    return _safe_date(int(match.group(1)), int(match.group(2)), int(match.group(3)))

def _numeric_date(match, today):
    return _safe_date(int(match.group(3)), int(match.group(2)), int(match.group(1)))

def _day_of_month(match, today):
    day, month = int(match.group(1)), MONTHS[match.group(2)]
    candidate = _safe_date(today.year, month, day)
    if candidate is not None and candidate >= today:
        return candidate
    return _safe_date(today.year + 1, month, day)

def _in_days(match, today):
    return today + timedelta(days=int(match.group(1)))

def _in_weeks(match, today):
    return today + timedelta(weeks=int(match.group(1)))

def _next_month(match, today):
    return today + relativedelta(months=1)

def _next_weekday(match, today):
    days_ahead = (WEEKDAYS[match.group(1)] - today.weekday()) % 7
    return today + timedelta(days=days_ahead or 7)

_MONTH_NAMES = "|".join(MONTHS)
_WEEKDAY_NAMES = "|".join(WEEKDAYS)

DATE_RULES: List[_DateRule] = [
    _DateRule(re.compile(r"\bpasado manana\b"), _offset(2), DateType.SPECIFIC, 0.9),
    # "por la mañana" es una franja horaria, no una fecha
    _DateRule(re.compile(r"(?<!la )\bmanana\b"), _offset(1), DateType.SPECIFIC, 0.9),
    _DateRule(re.compile(r"\bhoy\b"), _offset(0), DateType.SPECIFIC, 0.95),
    _DateRule(re.compile(r"\b(\d{4})-(\d{2})-(\d{2})\b"), _iso_date, DateType.SPECIFIC, 0.95),
    _DateRule(re.compile(r"\b(\d{1,2})[/-](\d{1,2})[/-](\d{4})\b"), _numeric_date, DateType.SPECIFIC, 0.9),
    _DateRule(re.compile(rf"\b(\d{{1,2}}) de ({_MONTH_NAMES})\b"), _day_of_month, DateType.SPECIFIC, 0.9),
    _DateRule(re.compile(r"\ben (\d{1,3}) dias?\b"), _in_days, DateType.SPECIFIC, 0.85),
    _DateRule(re.compile(r"\ben (\d{1,2}) semanas?\b"), _in_weeks, DateType.RELATIVE, 0.75),
    _DateRule(re.compile(r"\b(?:proxima|siguiente) semana\b|\bsemana que viene\b"), _offset(7), DateType.RELATIVE, 0.7),
    _DateRule(re.compile(r"\besta semana\b"), _offset(2), DateType.RELATIVE, 0.6),
    _DateRule(re.compile(r"\b(?:proximo|siguiente) mes\b|\bmes que viene\b"), _next_month, DateType.RELATIVE, 0.6),
    _DateRule(re.compile(rf"\b({_WEEKDAY_NAMES})\b"), _next_weekday, DateType.SPECIFIC, 0.85),
    _DateRule(re.compile(r"\bcuando pueda\b|\bcualquier dia\b|\bflexible\b"), _offset(3), DateType.FLEXIBLE, 0.5),
    _DateRule(re.compile(r"\burgente\b|\blo antes posible\b|\bcuanto antes\b"), _offset(1), DateType.SPECIFIC, 0.8),
]

def parse_relative_date(text: str, today: Optional[date] = None) -> Optional[ExtractedDate]:
    """
    Interpreta la fecha mencionada en el mensaje.

    Args:
        text: Mensaje del paciente
        today: Fecha de referencia (por defecto, hoy en la zona horaria configurada)

    Returns:
        ExtractedDate con la fecha en formato YYYY-MM-DD, o None si no se reconoce
    """
    reference = today or today_in_timezone()
    lowered, folded = _prepare(text)

    for rule in DATE_RULES:
        for match in rule.pattern.finditer(folded):
            resolved = rule.resolve(match, reference)
            if resolved is None:
                continue
            return ExtractedDate(
                type=rule.type,
                value=resolved.isoformat(),
                confidence=rule.confidence,
                original_text=lowered[match.start():match.end()]
            )
    return None

# ---------------------------------------------------------------------------
# Horas
# ---------------------------------------------------------------------------

class _TimeRule(NamedTuple):
    pattern: "re.Pattern"
    resolve: Callable[["re.Match"], Optional[str]]
    type: TimeType
    confidence: float

def _fixed(value: str) -> Callable[["re.Match"], str]:
    return lambda match: value

def _twelve_hour(match) -> Optional[str]:
    hour = int(match.group(1))
    minutes = int(match.group(2) or 0)
    if not 1 <= hour <= 12:
        return None
    if match.group(3) == "a":
        hour = 0 if hour == 12 else hour
    else:
        hour = 12 if hour == 12 else hour + 12
    return f"{hour:02d}:{minutes:02d}"

def _twenty_four_hour(match) -> Optional[str]:
    hour, minutes = int(match.group(1)), int(match.group(2))
    if hour > 23:
        return None
    return f"{hour:02d}:{minutes:02d}"

def _hour_of_period(match) -> Optional[str]:
    hour = int(match.group(1))
    minutes = int(match.group(2) or 0)
    period = match.group(3)
    if hour > 23:
        return None
    if period == "noche" and hour == 12:
        hour = 0
    elif period in ("tarde", "noche") and hour < 12:
        hour += 12
    return f"{hour:02d}:{minutes:02d}"

TIME_RULES: List[_TimeRule] = [
    _TimeRule(
        re.compile(r"(?<![\d:])(\d{1,2})(?::([0-5]\d))?\s*([ap])\.?\s?m\b\.?"),
        _twelve_hour, TimeType.SPECIFIC, 0.9
    ),
    _TimeRule(
        re.compile(r"(?<![\d:])(\d{1,2}):([0-5]\d)(?!\d)(?!\s*de la (?:tarde|noche))"),
        _twenty_four_hour, TimeType.SPECIFIC, 0.95
    ),
    _TimeRule(
        re.compile(r"(?<![\d:])(\d{1,2})(?::([0-5]\d))? de la (manana|tarde|noche)\b"),
        _hour_of_period, TimeType.SPECIFIC, 0.85
    ),
    _TimeRule(re.compile(r"\bmedio ?dia\b"), _fixed("12:00"), TimeType.SPECIFIC, 0.8),
    _TimeRule(re.compile(r"\blas? mananas?\b|\bmatutino\b|\btemprano\b"), _fixed("09:00"), TimeType.MORNING, 0.7),
    _TimeRule(re.compile(r"(?<!buenas )\b(?:las? )?tardes?\b|\bvespertino\b"), _fixed("15:00"), TimeType.AFTERNOON, 0.7),
    _TimeRule(re.compile(r"(?<!buenas )\b(?:las? )?noches?\b|\bnocturno\b|\bal final del dia\b"), _fixed("18:00"), TimeType.EVENING, 0.7),
    _TimeRule(re.compile(r"\bcualquier hora\b|\bcuando sea\b|\bflexible\b"), _fixed("10:00"), TimeType.FLEXIBLE, 0.5),
]

def parse_time_expression(text: str) -> Optional[ExtractedTime]:
    """
    Interpreta la hora o franja horaria mencionada en el mensaje.

    Las horas con sufijo AM/PM se evalúan antes que las de 24 horas, por lo
    que "2:30 PM" se normaliza a "14:30".

    Returns:
        ExtractedTime con la hora en formato HH:MM, o None si no se reconoce
    """
    lowered, folded = _prepare(text)

    for rule in TIME_RULES:
        for match in rule.pattern.finditer(folded):
            value = rule.resolve(match)
            if value is None:
                continue
            return ExtractedTime(
                type=rule.type,
                value=value,
                confidence=rule.confidence,
                original_text=lowered[match.start():match.end()]
            )
    return None

# ---------------------------------------------------------------------------
# Especialidades
# ---------------------------------------------------------------------------

class _SpecialtyRule(NamedTuple):
    keywords: Tuple[str, ...]
    specialty: str
    service_type: str
    confidence: float

SPECIALTY_RULES: List[_SpecialtyRule] = [
    _SpecialtyRule(
        ("pediátrica", "niños", "infantil", "terapia visual", "niño", "niña",
         "hijo", "hija", "años", "colegio", "escuela"),
        "Optometría Pediátrica", "Examen Visual Pediátrico", 0.85
    ),
    _SpecialtyRule(
        ("contactología", "lentes de contacto", "lentillas", "adaptación"),
        "Contactología Avanzada", "Adaptación de Lentes de Contacto", 0.9
    ),
    _SpecialtyRule(
        ("optometría clínica", "examen completo", "examen visual completo", "examen visual", "topografía"),
        "Optometría Clínica", "Examen Visual Completo", 0.9
    ),
    _SpecialtyRule(
        ("baja visión", "rehabilitación", "discapacidad visual", "diabetes",
         "problemas de visión", "especializada"),
        "Baja Visión", "Evaluación de Baja Visión", 0.9
    ),
    _SpecialtyRule(
        ("control", "revisión", "chequeo", "rutina", "general"),
        "Optometría General", "Control Visual Rápido", 0.7
    ),
    _SpecialtyRule(
        ("urgente", "emergencia", "dolor", "molestia"),
        "Optometría General", "Examen Visual Completo", 0.8
    ),
]

_GENERIC_SPECIALTY = _SpecialtyRule(
    ("cita", "consulta", "ver"), "Optometría General", "Examen Visual Completo", 0.5
)

def _keyword_pattern(keywords: Tuple[str, ...], whole_word: bool = False) -> "re.Pattern":
    alternatives = "|".join(re.escape(_fold(keyword)) for keyword in keywords)
    return re.compile(rf"\b(?:{alternatives})" + (r"\b" if whole_word else ""))

_SPECIALTY_PATTERNS = [(rule, _keyword_pattern(rule.keywords)) for rule in SPECIALTY_RULES]
_GENERIC_PATTERN = _keyword_pattern(_GENERIC_SPECIALTY.keywords, whole_word=True)

def extract_optical_specialty(text: str) -> Optional[ExtractedSpecialty]:
    """
    Identifica la especialidad óptica y el servicio asociado al mensaje.

    Args:
        text: Mensaje del paciente

    Returns:
        ExtractedSpecialty, o None si el mensaje no menciona nada relacionado
    """
    lowered, folded = _prepare(text)

    candidates = _SPECIALTY_PATTERNS + [(_GENERIC_SPECIALTY, _GENERIC_PATTERN)]
    for rule, pattern in candidates:
        match = pattern.search(folded)
        if match:
            return ExtractedSpecialty(
                specialty=rule.specialty,
                service_type=rule.service_type,
                confidence=rule.confidence,
                original_text=lowered[match.start():match.end()]
            )
    return None

# ---------------------------------------------------------------------------
# Urgencia y motivo de consulta
# ---------------------------------------------------------------------------

URGENT_KEYWORDS = ("urgente", "emergencia", "lo antes posible", "cuanto antes", "dolor", "molestia")
FLEXIBLE_KEYWORDS = ("flexible", "cuando pueda", "cualquier", "no hay prisa")

_URGENT_PATTERN = _keyword_pattern(URGENT_KEYWORDS)
_FLEXIBLE_PATTERN = _keyword_pattern(FLEXIBLE_KEYWORDS)

def extract_urgency(text: str) -> UrgencyLevel:
    """Nivel de urgencia del mensaje; la urgencia tiene prioridad sobre la flexibilidad."""
    folded = _fold(text)
    if _URGENT_PATTERN.search(folded):
        return UrgencyLevel.URGENT
    if _FLEXIBLE_PATTERN.search(folded):
        return UrgencyLevel.FLEXIBLE
    return UrgencyLevel.ROUTINE

# Frase coloquial -> motivo canónico
CONCERN_ALIASES = {
    "veo borroso": "visión borrosa",
    "me duelen los ojos": "dolor de ojos",
    "me arden los ojos": "irritación",
    "me pican los ojos": "picazón",
}

CONCERN_LEXICON = (
    "dolor de cabeza", "visión borrosa", "dolor de ojos", "sequedad", "picazón",
    "enrojecimiento", "fatiga visual", "dificultad para ver", "problemas de visión",
    "molestias", "irritación", "lagrimeo", "sensibilidad a la luz", "visión doble",
    "manchas", "destellos",
)

CONCERN_PATTERNS = [
    re.compile(r"tengo (.+?) en los ojos"),
    re.compile(r"me duele (.+)"),
    re.compile(r"problemas? (?:de|con|para) (.+)"),
    re.compile(r"no (?:puedo|logro) ver (.+)"),
    re.compile(r"siento (.+?) en la vista"),
    re.compile(r"dificultad para ver (.+)"),
]

def extract_patient_concerns(text: str) -> Optional[str]:
    """
    Motivo de consulta descrito por el paciente.

    Returns:
        Etiqueta canónica si el motivo está en el léxico, la frase literal si
        la captura un patrón más laxo, o None
    """
    lowered, folded = _prepare(text)

    for phrase, label in CONCERN_ALIASES.items():
        if _fold(phrase) in folded:
            return label

    for label in CONCERN_LEXICON:
        if _fold(label) in folded:
            return label

    for pattern in CONCERN_PATTERNS:
        match = pattern.search(lowered)
        if match:
            concern = match.group(1).strip(" .,;:!?¡¿")
            if concern:
                return concern
    return None

# ---------------------------------------------------------------------------
# Intención
# ---------------------------------------------------------------------------

INTENT_PATTERNS: List[Tuple[IntentType, List["re.Pattern"]]] = [
    (IntentType.CANCEL, [
        re.compile(r"\b(?:cancelar|anular|eliminar)\b"),
        re.compile(r"\bno (?:voy a poder ir|podre ir|puedo ir|voy a ir|voy)\b"),
    ]),
    (IntentType.RESCHEDULE, [
        re.compile(r"\b(?:cambiar|mover|reagendar|reprogramar|aplazar)\b"),
    ]),
    (IntentType.BOOK, [
        re.compile(
            r"\b(?:quiero|quisiera|necesito|necesita|deseo|me gustaria|puedo|podria|"
            r"agendar|reservar|programar|pedir|solicitar|sacar)\b.*?"
            r"\b(?:cita|consulta|turno|examen|control|revision|chequeo|evaluacion)\b"
        ),
        re.compile(r"\b(?:agendar|reservar|apartar|sacar)\b"),
    ]),
    (IntentType.INQUIRE, [
        re.compile(
            r"\b(?:disponibilidad|horarios?|cuando|que dias|informacion|info|precios?|"
            r"cuanto cuesta|costo|donde|direccion|ubicacion)\b"
        ),
    ]),
]

def _normalize_for_intent(text: str) -> str:
    folded = _fold(text)
    without_punctuation = re.sub(r"[^\w\s]", " ", folded)
    return re.sub(r"\s+", " ", without_punctuation).strip()

def _match_confidence(matched: str) -> float:
    confidence = 0.7
    if len(matched) > 10:
        confidence += 0.1
    if len(matched.split()) > 2:
        confidence += 0.1
    return min(round(confidence, 2), 0.95)

def detect_intent(text: str) -> Tuple[IntentType, float]:
    """
    Acción que el paciente quiere realizar.

    Los grupos se evalúan en orden (cancelar, reprogramar, reservar,
    consultar) y gana el primero que coincide.

    Returns:
        Tupla (intención, confianza); (UNKNOWN, 0.0) si nada coincide
    """
    normalized = _normalize_for_intent(text)

    for intent, patterns in INTENT_PATTERNS:
        matches = [m.group(0) for m in (p.search(normalized) for p in patterns) if m]
        if matches:
            return intent, max(_match_confidence(m) for m in matches)
    return IntentType.UNKNOWN, 0.0

REQUIRED_FIELDS = {
    IntentType.BOOK: ("specialty", "preferred_date", "preferred_time"),
    IntentType.RESCHEDULE: ("preferred_date", "preferred_time"),
    IntentType.INQUIRE: ("specialty",),
    IntentType.CANCEL: (),
    IntentType.UNKNOWN: ("intent",),
}

UNKNOWN_CONFIDENCE_CAP = 0.3

def extract_booking_intent(
    text: str,
    today: Optional[date] = None,
    confidence_threshold: float = INTENT_CONFIDENCE_THRESHOLD
) -> BookingIntent:
    """
    Compone todas las extracciones en una intención de reserva.

    Args:
        text: Mensaje del paciente
        today: Fecha de referencia para las fechas relativas
        confidence_threshold: Confianza mínima para dar un campo por resuelto

    Returns:
        BookingIntent con la confianza global y los campos que faltan por pedir
    """
    intent, intent_confidence = detect_intent(text)
    specialty = extract_optical_specialty(text)
    preferred_date = parse_relative_date(text, today)
    preferred_time = parse_time_expression(text)

    scores = [intent_confidence] + [
        extracted.confidence
        for extracted in (specialty, preferred_date, preferred_time)
        if extracted is not None
    ]
    confidence = sum(scores) / len(scores)
    if intent == IntentType.UNKNOWN:
        confidence = min(confidence, UNKNOWN_CONFIDENCE_CAP)

    resolved = {
        "intent": intent_confidence if intent != IntentType.UNKNOWN else None,
        "specialty": specialty.confidence if specialty else None,
        "preferred_date": preferred_date.confidence if preferred_date else None,
        "preferred_time": preferred_time.confidence if preferred_time else None,
    }
    missing_info = [
        field for field in REQUIRED_FIELDS[intent]
        if resolved[field] is None or resolved[field] < confidence_threshold
    ]

    result = BookingIntent(
        intent=intent,
        specialty=specialty.specialty if specialty else None,
        service_type=specialty.service_type if specialty else None,
        preferred_date=preferred_date,
        preferred_time=preferred_time,
        urgency=extract_urgency(text),
        patient_concerns=extract_patient_concerns(text),
        confidence=round(confidence, 2),
        missing_info=missing_info
    )
    logger.debug(f"Intención extraída: {result.intent.value} ({result.confidence}), faltan {missing_info}")
    return result

# ---------------------------------------------------------------------------
# Validaciones
# ---------------------------------------------------------------------------

_STRICT_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")
_STRICT_TIME = re.compile(r"(?:[01]\d|2[0-3]):[0-5]\d")

def validate_date(value: str, today: Optional[date] = None) -> bool:
    """True si es una fecha de calendario real (YYYY-MM-DD) igual o posterior a hoy."""
    if not isinstance(value, str) or not _STRICT_DATE.fullmatch(value):
        return False
    try:
        parsed = parse_date(value)
    except ValidationError:
        return False
    return parsed >= (today or today_in_timezone())

def validate_time(value: str) -> bool:
    """True si es una hora de 24 horas con formato estricto HH:MM."""
    return isinstance(value, str) and bool(_STRICT_TIME.fullmatch(value))
