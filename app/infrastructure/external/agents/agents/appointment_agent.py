"""
Asistente conversacional de citas.
Este módulo interpreta los mensajes de los pacientes con el motor de extracción
léxica y recurre al servicio de IA solo cuando la interpretación no es confiable.
"""
import logging
import re
from datetime import date
from typing import Dict, Literal, Optional, Set
from pydantic import BaseModel, Field
from agents import Agent, Runner

from app.domain.entities.models import (
    AgentResponse, BookingIntent, ConversationSession, DateType, ExtractedDate,
    ExtractedTime, IntentType, TimeType, UrgencyLevel
)
from app.application.services.tools.entity_extraction import (
    REQUIRED_FIELDS, extract_booking_intent, validate_date, validate_time
)
from app.application.services.tools.date_utils import format_date_human_readable, parse_date, today_in_timezone
from app.infrastructure.config.config.settings import AI_MODEL, OPENAI_API_KEY, INTENT_CONFIDENCE_THRESHOLD

logger = logging.getLogger(__name__)

# Confianza asignada a los campos que aporta la IA
AI_FIELD_CONFIDENCE = 0.75

EXIT_COMMANDS = {'salir', 'exit', 'quit', 'adios', 'adiós', 'hasta luego', 'bye', 'chao', 'gracias, adiós'}

FOLLOW_UP_QUESTIONS: Dict[str, str] = {
    "intent": "No estoy seguro de haber entendido. ¿Desea agendar, cambiar o cancelar una cita?",
    "specialty": "¿Qué tipo de consulta necesita? Por ejemplo: examen visual completo, lentes de contacto o control de rutina.",
    "preferred_date": "¿Para qué día le gustaría la cita?",
    "preferred_time": "¿Prefiere un horario en la mañana, en la tarde o a una hora concreta?",
}

INTENT_FIELDS = ("specialty", "preferred_date", "preferred_time")

class AIIntentOutput(BaseModel):
    """Salida estructurada solicitada al servicio de IA"""
    intent: Literal["book", "cancel", "reschedule", "inquire", "unknown"] = Field(
        ..., description="Acción solicitada por el paciente"
    )
    specialty: Optional[str] = Field(..., description="Especialidad óptica mencionada")
    preferred_date: Optional[str] = Field(..., description="Fecha preferida en formato YYYY-MM-DD")
    preferred_time: Optional[str] = Field(..., description="Hora preferida en formato HH:MM (24 horas)")
    urgency: Literal["urgent", "routine", "flexible"] = Field(..., description="Nivel de urgencia")
    patient_concerns: Optional[str] = Field(..., description="Motivo de consulta descrito por el paciente")

class AppointmentAgent:
    """
    Clase que encapsula el asistente de citas.
    No guarda estado de conversación: el historial y la intención acumulada
    viajan en la ConversationSession que entrega el llamador.
    """

    def __init__(self,
                 model: str = AI_MODEL,
                 api_key: Optional[str] = OPENAI_API_KEY,
                 confidence_threshold: float = INTENT_CONFIDENCE_THRESHOLD):
        """Inicializa el asistente de citas."""
        self.confidence_threshold = confidence_threshold
        self.ai_enabled = bool(api_key)
        self.agent = self._configure_agent(model)

    def _configure_agent(self, model: str) -> Agent:
        """
        Configura el agente de IA con instrucciones y salida estructurada.

        Returns:
            Instancia configurada del agente
        """
        return Agent(
            name="Asistente de Citas de Optometría",
            instructions="""
            Eres el asistente de agenda de una clínica de optometría. Tu única tarea es
            interpretar el último mensaje del paciente, teniendo en cuenta la conversación previa,
            y devolver su intención de forma estructurada.

            ESPECIALIDADES DISPONIBLES:
            • Optometría General
            • Optometría Clínica
            • Optometría Pediátrica
            • Contactología Avanzada
            • Baja Visión

            REGLAS:
            1. intent: "book" para agendar, "cancel" para cancelar, "reschedule" para cambiar una cita,
               "inquire" para preguntas sobre horarios, precios o servicios, "unknown" si no está claro.
            2. preferred_date: solo si el paciente menciona una fecha; usa la fecha de hoy indicada
               en el mensaje de sistema para resolver expresiones relativas. Formato YYYY-MM-DD.
            3. preferred_time: solo si menciona una hora o franja. Formato HH:MM de 24 horas
               (mañana = 09:00, tarde = 15:00, noche = 18:00).
            4. urgency: "urgent" si hay dolor, molestia o prisa; "flexible" si no tiene prisa;
               "routine" en otro caso.
            5. Devuelve null en cualquier campo que el paciente no haya mencionado. No inventes datos.
            """,
            model=model,
            output_type=AIIntentOutput,
        )

    async def _run_ai(self, message: str, session: ConversationSession, today: date) -> Optional[AIIntentOutput]:
        """
        Consulta al servicio de IA.

        Returns:
            Salida estructurada, o None si el servicio falló
        """
        input_list = [{"role": "system", "content": f"Fecha de hoy: {today.isoformat()}"}]
        input_list += session.history + [{"role": "user", "content": message}]

        try:
            result = await Runner.run(self.agent, input_list)
        except Exception as e:
            logger.error(f"Error al consultar el servicio de IA ({session.conversation_id}): {str(e)}")
            return None

        output = result.final_output
        if isinstance(output, AIIntentOutput):
            return output
        logger.warning(f"Salida inesperada del servicio de IA: {type(output).__name__}")
        return None

    def _intent_from_ai(self, output: AIIntentOutput, today: date) -> BookingIntent:
        """Convierte la salida de la IA en una intención, descartando fechas y horas inválidas."""
        preferred_date = None
        if output.preferred_date and validate_date(output.preferred_date, today):
            preferred_date = ExtractedDate(
                type=DateType.SPECIFIC,
                value=output.preferred_date,
                confidence=AI_FIELD_CONFIDENCE
            )

        preferred_time = None
        if output.preferred_time and validate_time(output.preferred_time):
            preferred_time = ExtractedTime(
                type=TimeType.SPECIFIC,
                value=output.preferred_time,
                confidence=AI_FIELD_CONFIDENCE
            )

        intent = IntentType(output.intent)
        return BookingIntent(
            intent=intent,
            specialty=output.specialty,
            preferred_date=preferred_date,
            preferred_time=preferred_time,
            urgency=UrgencyLevel(output.urgency),
            patient_concerns=output.patient_concerns,
            confidence=AI_FIELD_CONFIDENCE if intent != IntentType.UNKNOWN else 0.0
        )

    def combine_intents(self, base: BookingIntent, incoming: BookingIntent) -> BookingIntent:
        """
        Completa una intención con otra más reciente.

        Los valores de incoming reemplazan a los de base salvo cuando son
        débiles (por debajo del umbral) y base ya tenía un valor.

        Args:
            base: Intención acumulada
            incoming: Intención del turno nuevo

        Returns:
            Intención combinada con missing_info recalculado
        """
        weak_incoming: Set[str] = set(incoming.missing_info)
        weak_base: Set[str] = set(base.missing_info)
        values = {}
        taken: Set[str] = set()
        weak: Set[str] = set()

        for field in INTENT_FIELDS:
            new, old = getattr(incoming, field), getattr(base, field)
            take_new = new is not None and (field not in weak_incoming or old is None)
            values[field] = new if take_new else old
            if take_new:
                taken.add(field)
            if (take_new and field in weak_incoming) or (not take_new and field in weak_base):
                weak.add(field)

        service_type = incoming.service_type if "specialty" in taken else base.service_type
        intent = incoming.intent if incoming.intent != IntentType.UNKNOWN else base.intent

        urgency = incoming.urgency if incoming.urgency != UrgencyLevel.ROUTINE else base.urgency
        missing = [
            field for field in REQUIRED_FIELDS[intent]
            if field == "intent" or values[field] is None or field in weak
        ]

        return BookingIntent(
            intent=intent,
            specialty=values["specialty"],
            service_type=service_type,
            preferred_date=values["preferred_date"],
            preferred_time=values["preferred_time"],
            urgency=urgency,
            patient_concerns=incoming.patient_concerns or base.patient_concerns,
            confidence=max(base.confidence, incoming.confidence),
            missing_info=missing
        )

    def _compose_response(self, intent: BookingIntent) -> str:
        """Genera la respuesta en español para la intención interpretada."""
        if intent.missing_info:
            return FOLLOW_UP_QUESTIONS[intent.missing_info[0]]

        when = ""
        if intent.preferred_date:
            when = f" para el {format_date_human_readable(parse_date(intent.preferred_date.value), include_year=False)}"
        if intent.preferred_time:
            when += f" a las {intent.preferred_time.value}"

        if intent.intent == IntentType.BOOK:
            return f"Perfecto. Buscaré disponibilidad de {intent.specialty}{when}."
        if intent.intent == IntentType.RESCHEDULE:
            return f"Entendido. Buscaré un nuevo horario{when} para su cita."
        if intent.intent == IntentType.CANCEL:
            return "Entendido. Procederemos a cancelar su cita. ¿Desea agendar una nueva?"
        return f"Con gusto le doy información sobre {intent.specialty}."

    def _is_exit(self, message: str) -> bool:
        normalized = re.sub(r"[!¡.?¿]", "", message).strip().lower()
        return normalized in EXIT_COMMANDS

    async def process_message(self,
                              message: str,
                              session: ConversationSession,
                              today: Optional[date] = None) -> AgentResponse:
        """
        Procesa un mensaje de paciente y genera una respuesta.

        Args:
            message: Mensaje del usuario
            session: Estado de la conversación; se actualiza con el nuevo turno
            today: Fecha de referencia para las fechas relativas

        Returns:
            AgentResponse con la intención acumulada y la siguiente pregunta
        """
        reference = today or today_in_timezone()

        if self._is_exit(message):
            farewell = "¡Gracias por contactarnos! Cuide mucho su salud visual."
            session.history += [
                {"role": "user", "content": message},
                {"role": "assistant", "content": farewell}
            ]
            return AgentResponse(response=farewell, intent=session.intent, finished=True, history=session.history)

        lexical = extract_booking_intent(message, reference, self.confidence_threshold)
        intent = self.combine_intents(session.intent, lexical) if session.intent else lexical

        used_ai = False
        if self.ai_enabled and (intent.intent == IntentType.UNKNOWN or intent.confidence < self.confidence_threshold):
            logger.info(f"Interpretación léxica insuficiente ({intent.confidence}), consultando IA")
            output = await self._run_ai(message, session, reference)
            if output is not None:
                used_ai = True
                # Lo que ya resolvió el análisis léxico tiene prioridad
                intent = self.combine_intents(self._intent_from_ai(output, reference), intent)

        response = self._compose_response(intent)
        session.intent = intent
        session.history += [
            {"role": "user", "content": message},
            {"role": "assistant", "content": response}
        ]

        logger.info(
            f"Conversación {session.conversation_id}: intención={intent.intent.value} "
            f"confianza={intent.confidence} faltan={intent.missing_info}"
        )
        return AgentResponse(
            response=response,
            intent=intent,
            used_ai=used_ai,
            finished=False,
            history=session.history
        )

# Instancia global del agente
appointment_agent = AppointmentAgent()
