"""
Configuración de Gunicorn para la API de agenda.
Todos los valores se leen de variables de entorno con valores por defecto para producción.
"""
import os
import multiprocessing

# Dirección y puerto (mismas variables que usa la aplicación)
bind = os.getenv("GUNICORN_BIND", f"{os.getenv('WEBHOOK_HOST', '0.0.0.0')}:{os.getenv('WEBHOOK_PORT', '8000')}")

# Workers ASGI para FastAPI
worker_class = "uvicorn.workers.UvicornWorker"
workers = int(os.getenv("GUNICORN_WORKERS", multiprocessing.cpu_count() * 2 + 1))

# Tiempos en segundos
timeout = int(os.getenv("GUNICORN_TIMEOUT", "60"))
graceful_timeout = int(os.getenv("GUNICORN_GRACEFUL_TIMEOUT", "30"))
keepalive = int(os.getenv("GUNICORN_KEEPALIVE", "5"))

# Reciclar workers periódicamente
max_requests = int(os.getenv("GUNICORN_MAX_REQUESTS", "1000"))
max_requests_jitter = 50

# Logs: "-" envía a stdout/stderr
loglevel = os.getenv("GUNICORN_LOG_LEVEL", os.getenv("LOG_LEVEL", "info").lower())
accesslog = os.getenv("GUNICORN_ACCESS_LOG", "-")
errorlog = os.getenv("GUNICORN_ERROR_LOG", "-")

# Recarga automática solo en desarrollo
reload = os.getenv("ENVIRONMENT", "production").lower() == "development"

# Propagar el prefijo de rutas cuando la API está detrás de un proxy
if os.getenv("ROOT_PATH"):
    raw_env = [f"ROOT_PATH={os.getenv('ROOT_PATH')}"]
