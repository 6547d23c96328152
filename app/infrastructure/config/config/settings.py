"""
Configuración centralizada del proyecto.
Este módulo gestiona todas las variables de configuración y entorno.
"""
import os
from dotenv import load_dotenv
from typing import Dict, Any
from enum import Enum, auto

# Carga explícita del archivo .env
load_dotenv(verbose=True)

# Enumeración de zonas horarias soportadas
class TimeZones(Enum):
    """Enumeración de zonas horarias soportadas por las organizaciones"""
    COLOMBIA = auto()
    MEXICO = auto()
    ESPANA = auto()

# Mapa de zonas horarias
TIMEZONE_MAP = {
    TimeZones.COLOMBIA: "America/Bogota",
    TimeZones.MEXICO: "America/Mexico_City",
    TimeZones.ESPANA: "Europe/Madrid",
}

# Configuración por defecto
DEFAULT_TIMEZONE = TimeZones[os.getenv("DEFAULT_TIMEZONE", "COLOMBIA").upper()]

# Configuración de Supabase
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")

# Configuración del servicio de IA (OpenAI Agents SDK)
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
AI_MODEL = os.getenv("AI_MODEL", "gpt-4o-mini")

# Configuración del servidor
WEBHOOK_PORT = int(os.getenv("WEBHOOK_PORT", "8000"))
WEBHOOK_HOST = os.getenv("WEBHOOK_HOST", "0.0.0.0")

# Reglas de agenda (duraciones en minutos)
DEFAULT_SLOT_DURATION = int(os.getenv("DEFAULT_SLOT_DURATION", "30"))
MIN_SLOT_DURATION = int(os.getenv("MIN_SLOT_DURATION", "15"))
MAX_SLOT_DURATION = int(os.getenv("MAX_SLOT_DURATION", "240"))
ADVANCE_BOOKING_HOURS = int(os.getenv("ADVANCE_BOOKING_HOURS", "0"))
MAX_AVAILABILITY_RANGE_DAYS = int(os.getenv("MAX_AVAILABILITY_RANGE_DAYS", "31"))

# Umbral por debajo del cual un campo extraído se considera incompleto
INTENT_CONFIDENCE_THRESHOLD = float(os.getenv("INTENT_CONFIDENCE_THRESHOLD", "0.6"))

# Función para obtener la configuración como diccionario
def get_settings() -> Dict[str, Any]:
    """Retorna la configuración actual como un diccionario."""
    return {
        "supabase": {
            "url": SUPABASE_URL,
            "key": SUPABASE_KEY,
        },
        "ai": {
            "api_key": OPENAI_API_KEY,
            "model": AI_MODEL,
        },
        "server": {
            "port": WEBHOOK_PORT,
            "host": WEBHOOK_HOST,
        },
        "scheduling": {
            "default_slot_duration": DEFAULT_SLOT_DURATION,
            "min_slot_duration": MIN_SLOT_DURATION,
            "max_slot_duration": MAX_SLOT_DURATION,
            "advance_booking_hours": ADVANCE_BOOKING_HOURS,
            "max_availability_range_days": MAX_AVAILABILITY_RANGE_DAYS,
        },
        "intent": {
            "confidence_threshold": INTENT_CONFIDENCE_THRESHOLD,
        },
        "timezone": {
            "default": TIMEZONE_MAP[DEFAULT_TIMEZONE],
        }
    }
