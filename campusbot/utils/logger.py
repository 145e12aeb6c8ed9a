"""
Sistema de logging centralizado y estructurado.

Configura logging con formato estructurado, niveles apropiados
y rotación de archivos para el webhook del chatbot del college.
"""

import logging
import logging.handlers
import sys
import json
import time
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Optional

from starlette.middleware.base import BaseHTTPMiddleware

from .config import get_settings

# Configuración global
_loggers: Dict[str, logging.Logger] = {}
_log_initialized = False

# Campos extra que los formatters añaden cuando están presentes en el record
_EXTRA_FIELDS = (
    "intent",
    "intent_kind",
    "route",
    "message_preview",
    "outcome",
    "service",
    "endpoint",
    "duration_ms",
    "status_code",
    "http_method",
    "http_path",
)


def _message_preview(message: str, limit: int = 50) -> str:
    return message[:limit] + '...' if len(message) > limit else message


class StructuredFormatter(logging.Formatter):
    """
    Formatter que produce logs estructurados en JSON.

    Útil para parsing automático y agregación de logs en producción.
    """

    def format(self, record: logging.LogRecord) -> str:
        """
        Formatea record como JSON estructurado.

        Args:
            record: LogRecord a formatear

        Returns:
            String JSON con información estructurada
        """

        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno
        }

        # Añadir información de excepción si existe
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for field in _EXTRA_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        return json.dumps(log_data, ensure_ascii=False, default=str)


class HumanReadableFormatter(logging.Formatter):
    """
    Formatter readable para desarrollo y debugging.
    """

    def __init__(self):
        super().__init__(
            fmt='%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    def format(self, record: logging.LogRecord) -> str:
        """Formatea record de manera legible."""
        formatted = super().format(record)

        extras = []
        if hasattr(record, 'intent_kind'):
            extras.append(f"intent:{record.intent_kind}")
        if hasattr(record, 'outcome'):
            extras.append(f"outcome:{record.outcome}")
        if hasattr(record, 'duration_ms'):
            extras.append(f"{record.duration_ms:.0f}ms")

        if extras:
            formatted += f" [{', '.join(extras)}]"

        return formatted


def setup_logging():
    """
    Configura sistema de logging global.

    Establece handlers, formatters y niveles apropiados según el entorno.
    """
    global _log_initialized

    if _log_initialized:
        return

    settings = get_settings()

    # Limpiar configuración existente
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    log_level = getattr(logging, settings.LOG_LEVEL, logging.INFO)
    root_logger.setLevel(log_level)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)

    if settings.is_production:
        # JSON estructurado para producción
        console_handler.setFormatter(StructuredFormatter())
    else:
        console_handler.setFormatter(HumanReadableFormatter())

    root_logger.addHandler(console_handler)

    if settings.LOG_TO_FILE:
        log_dir = Path("logs")
        log_dir.mkdir(exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_dir / "campusbot.log",
            maxBytes=10*1024*1024,  # 10MB
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(StructuredFormatter())

        root_logger.addHandler(file_handler)

        error_handler = logging.handlers.RotatingFileHandler(
            log_dir / "errors.log",
            maxBytes=10*1024*1024,  # 10MB
            backupCount=3,
            encoding='utf-8'
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(StructuredFormatter())

        root_logger.addHandler(error_handler)

    _configure_external_loggers()

    _log_initialized = True

    logger = logging.getLogger(__name__)
    logger.info(f"📋 Logging configurado - Nivel: {settings.LOG_LEVEL}, Entorno: {settings.ENVIRONMENT}")


def _configure_external_loggers():
    """Configura loggers de bibliotecas externas para reducir ruido."""

    external_loggers = [
        'httpx',
        'httpcore',
        'asyncio',
    ]

    for logger_name in external_loggers:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Obtiene logger configurado para un módulo.

    Args:
        name: Nombre del módulo (típicamente __name__)

    Returns:
        Logger configurado
    """
    if not _log_initialized:
        setup_logging()

    if name not in _loggers:
        _loggers[name] = logging.getLogger(name)

    return _loggers[name]


def log_intent_dispatch(
    logger: logging.Logger,
    intent: str,
    intent_kind: str,
    route: str,
    user_message: str
):
    """
    Log especializado para el despacho de intents.

    Args:
        logger: Logger a usar
        intent: displayName recibido del agente conversacional
        intent_kind: IntentKind resuelto
        route: Ruta de respuesta elegida (canned, generative, unhandled)
        user_message: Texto del usuario (solo se registra un preview)
    """

    logger.info(
        f"🎯 Intent: {intent or '<vacío>'} -> {route}",
        extra={
            'intent': intent,
            'intent_kind': intent_kind,
            'route': route,
            'message_preview': _message_preview(user_message)
        }
    )


def log_api_call(
    logger: logging.Logger,
    service: str,
    endpoint: str,
    duration_ms: float,
    success: bool,
    status_code: Optional[int] = None,
    error: Optional[str] = None
):
    """
    Log especializado para llamadas API externas.

    Args:
        logger: Logger a usar
        service: Nombre del servicio (Gemini)
        endpoint: Endpoint llamado
        duration_ms: Duración en milisegundos
        success: Si fue exitosa
        status_code: Status HTTP si hubo respuesta
        error: Mensaje de error si falló
    """

    level = logging.INFO if success else logging.ERROR
    message = f"{service} API call {'succeeded' if success else 'failed'}: {endpoint}"

    extra_data = {
        'service': service,
        'endpoint': endpoint,
        'duration_ms': duration_ms,
        'success': success
    }

    if status_code is not None:
        extra_data['status_code'] = status_code
    if error:
        extra_data['error_message'] = error

    logger.log(level, message, extra=extra_data)


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware para logging de requests HTTP en FastAPI.

    Registra método, path, status y duración de cada request.
    """

    def __init__(self, app, logger: logging.Logger):
        super().__init__(app)
        self.logger = logger

    async def dispatch(self, request, call_next):
        """Procesa request y response logging."""

        start_time = time.perf_counter()

        self.logger.debug(
            f"HTTP {request.method} {request.url.path}",
            extra={
                'http_method': request.method,
                'http_path': request.url.path,
                'client_ip': request.client.host if request.client else 'unknown',
            }
        )

        try:
            response = await call_next(request)
        except Exception as e:
            duration = (time.perf_counter() - start_time) * 1000
            self.logger.error(
                f"HTTP request failed - {duration:.2f}ms",
                extra={
                    'http_method': request.method,
                    'http_path': request.url.path,
                    'error_message': str(e),
                    'duration_ms': duration
                },
                exc_info=True
            )
            raise

        duration = (time.perf_counter() - start_time) * 1000
        self.logger.info(
            f"HTTP {request.method} {request.url.path} {response.status_code} - {duration:.2f}ms",
            extra={
                'status_code': response.status_code,
                'duration_ms': duration,
                'http_method': request.method,
                'http_path': request.url.path
            }
        )

        return response
