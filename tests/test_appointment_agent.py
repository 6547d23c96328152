from types import SimpleNamespace

import pytest

from app.domain.entities.models import ConversationSession, IntentType
from app.infrastructure.external.agents.agents import appointment_agent as agent_module
from app.infrastructure.external.agents.agents.appointment_agent import (
    FOLLOW_UP_QUESTIONS, AIIntentOutput, AppointmentAgent
)

@pytest.fixture
def lexical_agent():
    return AppointmentAgent(api_key=None)

@pytest.fixture
def ai_agent():
    return AppointmentAgent(api_key="sk-test")

@pytest.mark.asyncio
async def test_pide_el_primer_dato_que_falta(lexical_agent, today):
    session = ConversationSession(user_id="user-1", organization_id="org-1")
    result = await lexical_agent.process_message("Quiero agendar un examen visual", session, today=today)

    assert result.intent.intent == IntentType.BOOK
    assert result.intent.missing_info == ["preferred_date", "preferred_time"]
    assert result.response == FOLLOW_UP_QUESTIONS["preferred_date"]
    assert result.used_ai is False
    assert len(session.history) == 2

@pytest.mark.asyncio
async def test_la_sesion_acumula_la_intencion(lexical_agent, today):
    session = ConversationSession()
    await lexical_agent.process_message("Quiero agendar un examen visual", session, today=today)
    result = await lexical_agent.process_message("mañana en la tarde", session, today=today)

    assert result.intent.intent == IntentType.BOOK
    assert result.intent.specialty == "Optometría Clínica"
    assert result.intent.preferred_date.value == "2025-06-03"
    assert result.intent.preferred_time.value == "15:00"
    assert result.intent.missing_info == []
    assert result.response.startswith("Perfecto")
    assert len(result.history) == 4

@pytest.mark.asyncio
async def test_sesiones_independientes(lexical_agent, today):
    first = ConversationSession()
    second = ConversationSession()
    await lexical_agent.process_message("Quiero agendar un examen visual", first, today=today)

    result = await lexical_agent.process_message("mañana en la tarde", second, today=today)
    assert result.intent.intent == IntentType.UNKNOWN
    assert second.history != first.history

@pytest.mark.asyncio
async def test_comando_de_salida(lexical_agent):
    session = ConversationSession()
    result = await lexical_agent.process_message("Adiós", session)

    assert result.finished is True
    assert result.intent is None

@pytest.mark.asyncio
async def test_recurre_a_la_ia_cuando_no_entiende(ai_agent, today, monkeypatch):
    calls = []

    async def fake_run(agent, input_list, **kwargs):
        calls.append(input_list)
        return SimpleNamespace(final_output=AIIntentOutput(
            intent="book",
            specialty="Optometría General",
            preferred_date="2025-06-20",
            preferred_time="10:00",
            urgency="routine",
            patient_concerns=None
        ))

    monkeypatch.setattr(agent_module.Runner, "run", fake_run)
    session = ConversationSession()
    result = await ai_agent.process_message("hola, me gustaría que me atiendan el jueves", session, today=today)

    assert len(calls) == 1
    assert calls[0][-1] == {"role": "user", "content": "hola, me gustaría que me atiendan el jueves"}
    assert result.used_ai is True
    assert result.intent.intent == IntentType.BOOK
    # La fecha léxica tiene prioridad sobre la de la IA
    assert result.intent.preferred_date.value == "2025-06-05"
    assert result.intent.preferred_time.value == "10:00"
    assert result.intent.missing_info == []

@pytest.mark.asyncio
async def test_no_consulta_la_ia_si_la_intencion_es_clara(ai_agent, today, monkeypatch):
    async def fail_run(agent, input_list, **kwargs):
        raise AssertionError("no debería consultarse la IA")

    monkeypatch.setattr(agent_module.Runner, "run", fail_run)
    result = await ai_agent.process_message(
        "Quiero agendar un examen visual mañana a las 10:00", ConversationSession(), today=today
    )

    assert result.used_ai is False
    assert result.intent.missing_info == []

@pytest.mark.asyncio
async def test_fallo_de_la_ia_conserva_la_interpretacion_lexica(ai_agent, today, monkeypatch):
    async def broken_run(agent, input_list, **kwargs):
        raise RuntimeError("timeout")

    monkeypatch.setattr(agent_module.Runner, "run", broken_run)
    result = await ai_agent.process_message("hola", ConversationSession(), today=today)

    assert result.used_ai is False
    assert result.intent.intent == IntentType.UNKNOWN
    assert result.response == FOLLOW_UP_QUESTIONS["intent"]

@pytest.mark.asyncio
async def test_descarta_fechas_invalidas_de_la_ia(ai_agent, today, monkeypatch):
    async def fake_run(agent, input_list, **kwargs):
        return SimpleNamespace(final_output=AIIntentOutput(
            intent="book",
            specialty="Optometría General",
            preferred_date="2020-01-01",
            preferred_time="25:00",
            urgency="routine",
            patient_concerns=None
        ))

    monkeypatch.setattr(agent_module.Runner, "run", fake_run)
    result = await ai_agent.process_message("hola", ConversationSession(), today=today)

    assert result.used_ai is True
    assert result.intent.preferred_date is None
    assert result.intent.preferred_time is None
    assert result.intent.missing_info == ["preferred_date", "preferred_time"]
