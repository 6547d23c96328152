from datetime import date, datetime

import pytest

from app.domain.entities.models import BookingPolicy, DoctorProfile, ScheduleEntry

# Lunes 2 de junio de 2025, 10:15
TODAY = date(2025, 6, 2)
NOW = datetime(2025, 6, 2, 10, 15)

def make_entry(day, start, end, doctor_id="doc-1", entry_id=None, **extra):
    return ScheduleEntry(
        id=entry_id,
        doctor_id=doctor_id,
        organization_id="org-1",
        day_of_week=day,
        start_time=start,
        end_time=end,
        **extra
    )

@pytest.fixture
def today():
    return TODAY

@pytest.fixture
def now():
    return NOW

@pytest.fixture
def weekly_schedule():
    """Lunes a viernes 09:00-17:00 y sábado 09:00-13:00 (44 horas)."""
    entries = [
        make_entry(day, "09:00", "17:00", entry_id=f"sched-{day}")
        for day in range(1, 6)
    ]
    entries.append(make_entry(6, "09:00", "13:00", entry_id="sched-6"))
    return entries

@pytest.fixture
def doctors():
    return {
        "doc-1": DoctorProfile(id="doc-1", name="Dr. Bruno Zapata", specialization="Optometría Clínica",
                               consultation_fee=80000),
        "doc-2": DoctorProfile(id="doc-2", name="Dr. Ana Alvarez", specialization="Contactología Avanzada",
                               consultation_fee=95000),
    }

@pytest.fixture
def standard_policy():
    return BookingPolicy(use_standard_rules=True)

@pytest.fixture
def privileged_policy():
    return BookingPolicy(use_standard_rules=False)

@pytest.fixture
def entry_factory():
    return make_entry
