import pytest

from app.domain.entities.models import DateType, IntentType, TimeType, UrgencyLevel
from app.application.services.tools.entity_extraction import (
    detect_intent, extract_booking_intent, extract_optical_specialty, extract_patient_concerns,
    extract_urgency, parse_relative_date, parse_time_expression, validate_date, validate_time
)

# ---------------------------------------------------------------------------
# Fechas (hoy es lunes 2 de junio de 2025)
# ---------------------------------------------------------------------------

def test_fecha_manana(today):
    result = parse_relative_date("quiero una cita mañana", today)
    assert result.type == DateType.SPECIFIC
    assert result.value == "2025-06-03"
    assert result.confidence > 0.8
    assert result.original_text == "mañana"

def test_fecha_sin_acentos(today):
    assert parse_relative_date("quiero una cita manana", today).value == "2025-06-03"

def test_pasado_manana_tiene_prioridad(today):
    assert parse_relative_date("pasado mañana", today).value == "2025-06-04"

def test_por_la_manana_no_es_una_fecha(today):
    assert parse_relative_date("por la mañana", today) is None

def test_proxima_semana_es_relativa(today):
    result = parse_relative_date("la próxima semana", today)
    assert result.type == DateType.RELATIVE
    assert result.value == "2025-06-09"

def test_urgente_es_manana(today):
    result = parse_relative_date("necesito algo urgente", today)
    assert result.type == DateType.SPECIFIC
    assert result.value == "2025-06-03"

def test_fecha_flexible(today):
    result = parse_relative_date("cuando pueda", today)
    assert result.type == DateType.FLEXIBLE
    assert result.confidence < 0.7
    assert result.value == "2025-06-05"

def test_sin_fecha(today):
    assert parse_relative_date("no hay fecha aquí", today) is None

@pytest.mark.parametrize("text, expected", [
    ("hoy mismo", "2025-06-02"),
    ("el viernes", "2025-06-06"),
    ("el lunes", "2025-06-09"),
    ("el miércoles", "2025-06-04"),
    ("el 20 de junio", "2025-06-20"),
    ("el 15 de marzo", "2026-03-15"),
    ("en 3 días", "2025-06-05"),
    ("en 2 semanas", "2025-06-16"),
    ("el próximo mes", "2025-07-02"),
    ("el 2025-06-10", "2025-06-10"),
    ("el 10/06/2025", "2025-06-10"),
])
def test_expresiones_de_fecha(today, text, expected):
    assert parse_relative_date(text, today).value == expected

def test_fecha_imposible_se_ignora(today):
    assert parse_relative_date("el 31/02/2025", today) is None

# ---------------------------------------------------------------------------
# Horas
# ---------------------------------------------------------------------------

def test_hora_24():
    result = parse_time_expression("a las 14:30")
    assert result.value == "14:30"
    assert result.type == TimeType.SPECIFIC

def test_hora_12_pm():
    result = parse_time_expression("a las 2:30 PM")
    assert result.value == "14:30"
    assert result.type == TimeType.SPECIFIC

@pytest.mark.parametrize("text, expected", [
    ("a las 12 am", "00:00"),
    ("a las 12 pm", "12:00"),
    ("a las 9 a.m.", "09:00"),
    ("a las 11pm", "23:00"),
    ("a las 3 de la tarde", "15:00"),
    ("a las 9 de la mañana", "09:00"),
    ("al mediodía", "12:00"),
    ("al medio día", "12:00"),
    ("a las 9:00", "09:00"),
])
def test_expresiones_de_hora(text, expected):
    assert parse_time_expression(text).value == expected

def test_sufijo_con_hora_fuera_de_rango():
    assert parse_time_expression("a las 13 pm") is None

def test_numero_seguido_de_palabra_con_a_no_es_hora():
    assert parse_time_expression("voy con 2 amigos") is None

def test_saludo_no_es_franja_horaria():
    assert parse_time_expression("hola, buenas tardes") is None
    assert parse_time_expression("buenas noches") is None
    assert parse_time_expression("buenas tardes, quiero ir por la tarde").value == "15:00"

@pytest.mark.parametrize("text, expected_type, expected_value", [
    ("en la mañana", TimeType.MORNING, "09:00"),
    ("en la tarde", TimeType.AFTERNOON, "15:00"),
    ("por la noche", TimeType.EVENING, "18:00"),
    ("quiero una cita el lunes por las tardes", TimeType.AFTERNOON, "15:00"),
    ("el lunes, tarde si se puede", TimeType.AFTERNOON, "15:00"),
    ("prefiero las mañanas", TimeType.MORNING, "09:00"),
    ("esta noche", TimeType.EVENING, "18:00"),
    ("cualquier hora", TimeType.FLEXIBLE, "10:00"),
])
def test_franjas_horarias(text, expected_type, expected_value):
    result = parse_time_expression(text)
    assert result.type == expected_type
    assert result.value == expected_value

# ---------------------------------------------------------------------------
# Especialidades
# ---------------------------------------------------------------------------

def test_especialidades():
    clinical = extract_optical_specialty("necesito un examen visual completo")
    assert clinical.specialty == "Optometría Clínica"
    assert clinical.service_type == "Examen Visual Completo"

    assert extract_optical_specialty("quiero adaptarme lentes de contacto").specialty == "Contactología Avanzada"
    assert extract_optical_specialty("es para mi niño").specialty == "Optometría Pediátrica"

    general = extract_optical_specialty("necesito una consulta")
    assert general.specialty == "Optometría General"
    assert general.confidence < 0.8

def test_texto_sin_especialidad():
    assert extract_optical_specialty("quiero comprar zapatos") is None

def test_palabras_clave_al_inicio_de_palabra():
    assert extract_optical_specialty("voy con mis hermanos") is None

@pytest.mark.parametrize("text, specialty, service", [
    ("Necesito un examen visual completo con topografía corneal para mañana",
     "Optometría Clínica", "Examen Visual Completo"),
    ("Quiero probar lentes de contacto blandas, soy nuevo en esto",
     "Contactología Avanzada", "Adaptación de Lentes de Contacto"),
    ("Mi hija de 8 años dice que no ve bien la pizarra en el colegio",
     "Optometría Pediátrica", "Examen Visual Pediátrico"),
    ("Tengo problemas de visión por diabetes, necesito evaluación especializada",
     "Baja Visión", "Evaluación de Baja Visión"),
    ("Quiero un control visual de rutina, hace un año que no me reviso",
     "Optometría General", "Control Visual Rápido"),
])
def test_escenarios_de_la_clinica(text, specialty, service):
    result = extract_optical_specialty(text)
    assert result.specialty == specialty
    assert result.service_type == service
    assert result.confidence > 0.5

# ---------------------------------------------------------------------------
# Urgencia y motivo
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("text, expected", [
    ("es urgente", UrgencyLevel.URGENT),
    ("tengo dolor de ojos", UrgencyLevel.URGENT),
    ("lo antes posible", UrgencyLevel.URGENT),
    ("cuando pueda", UrgencyLevel.FLEXIBLE),
    ("no hay prisa", UrgencyLevel.FLEXIBLE),
    ("quiero una cita", UrgencyLevel.ROUTINE),
])
def test_urgencia(text, expected):
    assert extract_urgency(text) == expected

def test_urgencia_tiene_prioridad_sobre_flexibilidad():
    assert extract_urgency("cuando pueda, pero tengo dolor") == UrgencyLevel.URGENT

def test_motivos_del_lexico():
    assert extract_patient_concerns("tengo dolor de cabeza") == "dolor de cabeza"
    assert extract_patient_concerns("veo borroso") == "visión borrosa"
    assert extract_patient_concerns("me duelen los ojos") == "dolor de ojos"
    assert extract_patient_concerns("tengo vision doble") == "visión doble"

def test_motivo_literal():
    assert "ver de lejos" in extract_patient_concerns("tengo problemas para ver de lejos")
    assert extract_patient_concerns("me duele el ojo izquierdo.") == "el ojo izquierdo"

def test_sin_motivo():
    assert extract_patient_concerns("solo quiero un chequeo") is None

# ---------------------------------------------------------------------------
# Intención
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("text, expected", [
    ("Hola, quiero agendar una cita para un examen visual", IntentType.BOOK),
    ("Mi hijo necesita un examen visual pediátrico", IntentType.BOOK),
    ("Quiero información sobre lentes de contacto", IntentType.INQUIRE),
    ("Necesito cancelar mi cita del viernes", IntentType.CANCEL),
    ("Quiero cambiar mi cita para el jueves", IntentType.RESCHEDULE),
    ("¿Qué horarios tienen?", IntentType.INQUIRE),
])
def test_detect_intent(text, expected):
    intent, confidence = detect_intent(text)
    assert intent == expected
    assert 0.7 <= confidence <= 0.95

def test_intencion_desconocida():
    assert detect_intent("hola") == (IntentType.UNKNOWN, 0.0)

def test_intencion_completa(today):
    result = extract_booking_intent(
        "Hola, quiero agendar una cita para un examen visual mañana en la mañana", today
    )
    assert result.intent == IntentType.BOOK
    assert result.specialty == "Optometría Clínica"
    assert result.preferred_date.value == "2025-06-03"
    assert result.preferred_time.type == TimeType.MORNING
    assert result.urgency == UrgencyLevel.ROUTINE
    assert result.missing_info == []
    assert result.confidence == pytest.approx(0.85)

def test_intencion_urgente(today):
    result = extract_booking_intent("Necesito urgente una consulta, tengo dolor de ojos", today)
    assert result.intent == IntentType.BOOK
    assert result.specialty == "Optometría General"
    assert result.urgency == UrgencyLevel.URGENT
    assert result.patient_concerns == "dolor de ojos"
    assert result.missing_info == ["preferred_time"]

def test_campos_debiles_se_piden(today):
    result = extract_booking_intent("Necesito una consulta", today)
    assert result.intent == IntentType.BOOK
    assert result.missing_info == ["specialty", "preferred_date", "preferred_time"]

def test_cancelacion_no_pide_datos(today):
    result = extract_booking_intent("Necesito cancelar mi cita del viernes", today)
    assert result.intent == IntentType.CANCEL
    assert result.missing_info == []
    assert result.preferred_date.value == "2025-06-06"

def test_mensaje_sin_intencion(today):
    result = extract_booking_intent("hola buenas tardes", today)
    assert result.intent == IntentType.UNKNOWN
    assert result.missing_info == ["intent"]
    assert result.confidence <= 0.3

def test_umbral_configurable(today):
    result = extract_booking_intent("Necesito una consulta mañana en la tarde", today, confidence_threshold=0.4)
    assert result.missing_info == []

# ---------------------------------------------------------------------------
# Validaciones
# ---------------------------------------------------------------------------

def test_validate_date(today):
    assert validate_date("2025-06-02", today)
    assert validate_date("2025-06-03", today)
    assert not validate_date("2020-01-01", today)
    assert not validate_date("invalid-date", today)
    assert not validate_date("2025-02-30", today)

def test_validate_date_rechaza_salto_de_linea(today):
    assert not validate_date("2030-01-01\n", today)
    assert not validate_date(" 2030-01-01", today)

def test_validate_date_contra_el_reloj():
    assert not validate_date("2020-01-01")

@pytest.mark.parametrize("value, expected", [
    ("09:00", True),
    ("23:59", True),
    ("00:00", True),
    ("24:00", False),
    ("9:00", False),
    ("invalid", False),
    ("09:00\n", False),
    (" 09:00", False),
])
def test_validate_time(value, expected):
    assert validate_time(value) is expected
