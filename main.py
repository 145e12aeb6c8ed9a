"""
FastAPI Main Application - College Chatbot Webhook

Aplicación principal que recibe los requests de fulfillment de Dialogflow,
responde los intents conocidos con respuestas fijas y deriva las preguntas
libres a Gemini.
"""

import time
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from campusbot import __version__
from campusbot.agents.webhook_handler import WebhookHandler
from campusbot.models.dialogflow import ReplyResponse, WebhookRequest
from campusbot.services.gemini_service import GeminiService
from campusbot.utils.config import get_settings
from campusbot.utils.logger import get_logger, LoggingMiddleware

SERVICE_NAME = "College Chatbot Webhook"
WEBHOOK_PATH = "/webhook"

# Configuración
settings = get_settings()
logger = get_logger(__name__)

# Servicios globales - inicializados en startup
gemini_service: Optional[GeminiService] = None
webhook_handler: Optional[WebhookHandler] = None

# Estadísticas globales
app_stats = {
    "requests_received": 0,
    "replies_sent": 0,
    "route_errors": 0,
    "uptime_start": time.time(),
    "last_activity": time.time()
}


class HealthResponse(BaseModel):
    """Respuesta del endpoint de health check."""
    status: str
    timestamp: float
    uptime_seconds: float
    services: Dict[str, Any]
    stats: Dict[str, Any]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifecycle manager para la aplicación.

    Inicializa servicios en startup y los limpia en shutdown.
    """
    global gemini_service, webhook_handler

    logger.info(f"🚀 Iniciando {SERVICE_NAME}...")

    gemini_service = GeminiService(settings)
    webhook_handler = WebhookHandler(settings, gemini_service)

    if not settings.gemini_configured:
        logger.warning("⚠️ GEMINI_API_KEY no configurada - el fallback responderá 'contact admin'")

    logger.info(f"✅ Servicios iniciados (modelo: {settings.GEMINI_MODEL})")

    try:
        yield
    finally:
        logger.info("🛑 Cerrando aplicación...")

        if gemini_service:
            await gemini_service.aclose()

        logger.info("✅ Aplicación cerrada correctamente")


# Crear aplicación FastAPI
app = FastAPI(
    title=SERVICE_NAME,
    description="Webhook de Dialogflow con respuestas fijas y fallback generativo (Gemini)",
    version=__version__,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

app.add_middleware(LoggingMiddleware, logger=logger)


@app.post(WEBHOOK_PATH, response_model=ReplyResponse, response_model_exclude_none=True)
async def dialogflow_webhook(webhook_request: WebhookRequest):
    """
    Endpoint de fulfillment para Dialogflow.

    Siempre responde 200 con algún texto; los errores se convierten
    en la disculpa estándar.
    """
    app_stats["requests_received"] += 1
    app_stats["last_activity"] = time.time()

    try:
        if webhook_handler is None:
            raise RuntimeError("Webhook handler no inicializado")

        reply = await webhook_handler.handle(webhook_request.to_intent_request())

    except Exception as e:
        logger.error(f"❌ Error en webhook: {e}", exc_info=True)
        app_stats["route_errors"] += 1
        reply = WebhookHandler.apology_reply()

    app_stats["replies_sent"] += 1
    return reply


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Endpoint de health check para monitoreo.
    """
    uptime = time.time() - app_stats["uptime_start"]

    if webhook_handler:
        handler_health = await webhook_handler.health_check()
    else:
        handler_health = {"status": "not_initialized"}

    return HealthResponse(
        status=handler_health["status"],
        timestamp=time.time(),
        uptime_seconds=uptime,
        services={"webhook_handler": handler_health},
        stats=app_stats
    )


@app.get("/stats")
async def get_stats():
    """
    Endpoint para obtener estadísticas detalladas del sistema.

    Returns:
        Estadísticas de la app, del handler y de Gemini
    """
    stats: Dict[str, Any] = {
        "app_stats": app_stats,
        "uptime_seconds": time.time() - app_stats["uptime_start"],
    }

    if webhook_handler:
        stats["webhook_handler"] = webhook_handler.get_stats()

    if gemini_service:
        stats["gemini_service"] = gemini_service.get_stats()

    return stats


@app.get("/")
async def root():
    """Endpoint raíz para verificar el deploy."""
    return {
        "service": SERVICE_NAME,
        "message": "🚀 College Chatbot Webhook Running Successfully!",
        "version": __version__,
        "status": "running",
        "uptime_seconds": time.time() - app_stats["uptime_start"],
        "endpoints": {
            "webhook": f"POST {WEBHOOK_PATH}",
            "health": "/health",
            "stats": "/stats"
        }
    }


# Error handlers
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """El webhook responde 200 con la disculpa incluso ante un body inválido."""
    if request.url.path == WEBHOOK_PATH:
        logger.warning(f"⚠️ Body de webhook inválido: {exc.errors()}")
        app_stats["requests_received"] += 1
        app_stats["route_errors"] += 1
        return JSONResponse(status_code=200, content=WebhookHandler.apology_reply().to_wire())

    return await request_validation_exception_handler(request, exc)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handler global para excepciones no manejadas."""
    logger.error(f"❌ Excepción global no manejada: {exc}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "message": str(exc) if settings.DEBUG else "An error occurred",
            "timestamp": time.time()
        }
    )


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
        access_log=True
    )
