from datetime import date

import pytest

from app.domain.entities.models import ValidationError
from app.application.services.tools.date_utils import (
    day_of_week, format_date_human_readable, iterate_dates, minutes_to_time,
    normalize_time, parse_date, time_to_minutes
)

def test_hora_a_minutos_y_vuelta():
    assert time_to_minutes("14:30") == 870
    assert minutes_to_time(870) == "14:30"
    assert minutes_to_time(time_to_minutes("00:00")) == "00:00"
    assert minutes_to_time(time_to_minutes("23:59")) == "23:59"

def test_acepta_segundos_del_almacenamiento():
    assert time_to_minutes("09:00:00") == 540
    assert normalize_time("17:30:00") == "17:30"

@pytest.mark.parametrize("value", ["24:00", "9:00", "12:60", "abc", "", "12:00:60", "09:00\n", " 09:00"])
def test_hora_mal_formada(value):
    with pytest.raises(ValidationError) as exc_info:
        time_to_minutes(value, "start_time")
    assert exc_info.value.field == "start_time"

def test_minutos_con_ceros_a_la_izquierda():
    assert minutes_to_time(5) == "00:05"
    assert minutes_to_time(545) == "09:05"

def test_parse_date():
    assert parse_date("2025-06-02") == date(2025, 6, 2)
    assert parse_date(date(2025, 6, 2)) == date(2025, 6, 2)

@pytest.mark.parametrize("value", ["2025-02-30", "02/06/2025", "mañana", "2025-06-02\n"])
def test_parse_date_invalida(value):
    with pytest.raises(ValidationError) as exc_info:
        parse_date(value, "appointment_date")
    assert exc_info.value.field == "appointment_date"

def test_dia_de_la_semana_domingo_es_cero():
    assert day_of_week("2025-06-01") == 0
    assert day_of_week("2025-06-02") == 1
    assert day_of_week(date(2025, 6, 7)) == 6

def test_iterate_dates_incluye_ambos_extremos():
    dates = list(iterate_dates(date(2025, 6, 1), date(2025, 6, 7)))
    assert len(dates) == 7
    assert dates[0] == date(2025, 6, 1)
    assert dates[-1] == date(2025, 6, 7)
    assert list(iterate_dates(date(2025, 6, 2), date(2025, 6, 1))) == []

def test_fecha_legible_en_espanol():
    assert format_date_human_readable(date(2025, 6, 2)) == "Lunes 2 de Junio de 2025"
    assert format_date_human_readable(date(2025, 6, 7), include_year=False) == "Sábado 7 de Junio"
