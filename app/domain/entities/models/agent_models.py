"""
Modelos específicos relacionados con el asistente conversacional.
Define las estructuras de datos utilizadas en la interacción con el asistente.
"""
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, Field

from app.domain.entities.models.intent_models import BookingIntent

class IntentRequest(BaseModel):
    """Modelo para solicitudes de extracción de intención"""
    message: str = Field(..., description="Mensaje del paciente")
    organization_id: str = Field(..., description="ID de la organización")
    user_id: Optional[str] = Field(None, description="ID del usuario")

class ChatMessage(BaseModel):
    """Turno previo de la conversación"""
    role: Literal["user", "assistant", "system"] = Field(..., description="Emisor del mensaje")
    content: str = Field(..., description="Contenido del mensaje")

class ChatRequest(IntentRequest):
    """Modelo para solicitudes al asistente con el estado que guarda el cliente"""
    history: List[ChatMessage] = Field(default_factory=list, description="Historial previo")
    intent: Optional[BookingIntent] = Field(None, description="Intención acumulada en turnos anteriores")

class ConversationSession(BaseModel):
    """Estado de una conversación, propiedad del llamador"""
    conversation_id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="ID de la conversación")
    user_id: Optional[str] = Field(None, description="ID del usuario")
    organization_id: Optional[str] = Field(None, description="ID de la organización")
    started_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(),
        description="Inicio de la conversación (UTC)"
    )
    history: List[Dict[str, str]] = Field(default_factory=list, description="Turnos previos")
    intent: Optional[BookingIntent] = Field(None, description="Intención acumulada")

class AgentResponse(BaseModel):
    """Modelo para respuestas del asistente"""
    response: str = Field(..., description="Respuesta del asistente")
    intent: Optional[BookingIntent] = Field(None, description="Intención interpretada")
    used_ai: bool = Field(False, description="Si se consultó el servicio de IA")
    finished: bool = Field(False, description="Si el usuario cerró la conversación")
    history: List[Dict[str, str]] = Field(default_factory=list, description="Historial actualizado")
