"""
Punto de entrada principal de la aplicación.
Configura y ejecuta el servidor web con FastAPI.
"""
import os
import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.domain.entities.models import (
    ConflictError, ErrorResult, StorageUnavailableError, ValidationError
)
from app.presentation.scheduling.routes import router as scheduling_router

# Configuración de logging con nivel configurable
log_level = os.getenv("LOG_LEVEL", "INFO")
numeric_level = getattr(logging, log_level.upper(), logging.INFO)
handlers = [logging.StreamHandler()]
if os.getenv("LOG_FILE"):
    handlers.append(logging.FileHandler(os.getenv("LOG_FILE")))
logging.basicConfig(
    level=numeric_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=handlers
)

logger = logging.getLogger(__name__)

# Crear la aplicación FastAPI
app = FastAPI(
    title="Clinic Scheduling API",
    description="Disponibilidad de citas e interpretación de mensajes de pacientes",
    version="1.0.0",
    root_path=os.getenv("ROOT_PATH", ""),  # Para configuración de subdominios o rutas base
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {"name": "scheduling", "description": "Disponibilidad, horarios e intención de reserva"},
        {"name": "health", "description": "Verificaciones de estado del sistema"}
    ]
)

# Configurar CORS con orígenes específicos desde variables de entorno
origins = os.getenv("ALLOWED_ORIGINS", "http://localhost:3000").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

# Registrar los routers
app.include_router(scheduling_router)

def _error_response(status_code: int, error: str, details: str) -> JSONResponse:
    content: ErrorResult = {"error": error, "details": details}
    return JSONResponse(status_code=status_code, content=content)

@app.exception_handler(ValidationError)
async def validation_exception_handler(request: Request, exc: ValidationError):
    """Entrada mal formada."""
    logger.info(f"Solicitud inválida en {request.url.path}: {str(exc)}")
    return _error_response(422, "Datos inválidos", str(exc))

@app.exception_handler(ConflictError)
async def conflict_exception_handler(request: Request, exc: ConflictError):
    """Colisión con un horario o una cita existente."""
    logger.info(f"Conflicto en {request.url.path}: {str(exc)}")
    return _error_response(409, "Conflicto de horario", str(exc))

@app.exception_handler(StorageUnavailableError)
async def storage_exception_handler(request: Request, exc: StorageUnavailableError):
    """El almacenamiento no respondió."""
    logger.error(f"Almacenamiento no disponible: {str(exc)}")
    return _error_response(503, "Servicio no disponible", str(exc))

# Manejador global de excepciones
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Manejador global de excepciones."""
    logger.error(f"Error no manejado: {str(exc)}")
    return _error_response(500, "Error interno del servidor", str(exc))

@app.get("/", tags=["health"])
async def root():
    """Endpoint principal para verificar que el servidor está funcionando."""
    return {
        "message": "API de agenda de citas",
        "docs": "/docs",
        "status": "online"
    }

# Esta variable 'app' será utilizada por Gunicorn
