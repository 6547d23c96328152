#!/usr/bin/env python
"""
Script para iniciar la API de agenda con Gunicorn.
Carga el entorno, comprueba que la aplicación se puede importar y lanza el servidor.
"""
import os
import sys
import subprocess
import logging
from dotenv import load_dotenv

# Configurar logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger("start_server")

CONFIG_FILE = "gunicorn_config.py"
APP_MODULE = "app.main:app"

def check_environment() -> bool:
    """
    Verifica la configuración mínima antes de arrancar.

    Returns:
        True si el servidor puede arrancar
    """
    if not os.path.exists(CONFIG_FILE):
        logger.error(f"No se encontró {CONFIG_FILE}. Ejecuta el script desde la raíz del proyecto.")
        return False

    if not (os.getenv("SUPABASE_URL") and os.getenv("SUPABASE_KEY")):
        logger.warning("SUPABASE_URL/SUPABASE_KEY no configuradas: los endpoints de disponibilidad responderán 503")
    if not os.getenv("OPENAI_API_KEY"):
        logger.warning("OPENAI_API_KEY no configurada: el asistente solo usará la extracción léxica")

    try:
        from app.main import app  # noqa: F401
        logger.info("Aplicación cargada correctamente")
    except ImportError as e:
        logger.error(f"No se pudo cargar la aplicación: {str(e)}")
        return False

    return True

def main():
    """Función principal para iniciar el servidor Gunicorn."""
    load_dotenv()

    if not check_environment():
        sys.exit(1)

    host = os.getenv("WEBHOOK_HOST", "0.0.0.0")
    port = os.getenv("WEBHOOK_PORT", "8000")
    root_path = os.getenv("ROOT_PATH", "")

    logger.info(f"Iniciando servidor en {host}:{port} (entorno: {os.getenv('ENVIRONMENT', 'development')})")
    logger.info(f"La API estará disponible en: http://{host}:{port}{root_path}/docs")

    try:
        subprocess.run(["gunicorn", "--config", CONFIG_FILE, APP_MODULE], check=True)
    except KeyboardInterrupt:
        logger.info("Servidor detenido manualmente")
    except (OSError, subprocess.CalledProcessError) as e:
        logger.error(f"Error al iniciar el servidor: {str(e)}")
        sys.exit(1)

if __name__ == "__main__":
    main()
