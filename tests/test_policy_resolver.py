import pytest

from app.application.services.policy_resolver import resolve_booking_policy

@pytest.mark.parametrize("role", ["admin", "staff", "doctor", "superadmin", "Doctor"])
def test_roles_privilegiados(role):
    policy = resolve_booking_policy(role)
    assert policy.use_standard_rules is False

@pytest.mark.parametrize("role", ["patient", "recepcionista", "", None])
def test_otros_roles_usan_reglas_estandar(role):
    assert resolve_booking_policy(role).use_standard_rules is True

def test_forzar_reglas_estandar():
    assert resolve_booking_policy("admin", use_standard_rules=True).use_standard_rules is True

def test_antelacion_se_propaga():
    assert resolve_booking_policy("patient", advance_booking_hours=24).advance_booking_hours == 24
