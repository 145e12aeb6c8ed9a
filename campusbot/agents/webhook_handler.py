"""
Webhook Handler - despacho de intents del chatbot del college

Resuelve el intent recibido de Dialogflow a un IntentKind y construye la
respuesta de fulfillment: respuesta fija para los intents conocidos,
Gemini para el fallback y menú de ayuda para el resto.
"""

import time
from typing import Any, Awaitable, Callable, Dict, Optional

from ..models.answers import AnswerOutcome
from ..models.dialogflow import IntentRequest, ReplyResponse
from ..models.intents import (
    IntentKind, CANNED_REPLIES,
    TOPIC_MENU_CHIPS, HELP_MENU_CHIPS,
    APOLOGY_TEXT, MISSING_API_KEY_TEXT, NOT_SURE_TEXT
)
from ..services.gemini_service import GeminiService
from ..utils.config import Settings
from ..utils.formatters import format_answer
from ..utils.logger import get_logger, log_intent_dispatch

logger = get_logger(__name__)

RouteHandler = Callable[[IntentKind, IntentRequest], Awaitable[ReplyResponse]]


class WebhookHandler:
    """
    Handler principal del webhook.

    Features:
    - Despacho total IntentKind -> ruta (se valida al construir)
    - Respuestas fijas sin llamadas externas
    - Fallback generativo con limpieza y recorte del texto
    - Nunca propaga excepciones: siempre devuelve un ReplyResponse
    """

    def __init__(self, settings: Settings, answer_service: GeminiService):
        self.settings = settings
        self.answer_service = answer_service

        self._routes: Dict[IntentKind, RouteHandler] = {
            IntentKind.FEES_INFO: self._reply_canned,
            IntentKind.ADMISSION_PROCESS: self._reply_canned,
            IntentKind.COLLEGE_CONTACT: self._reply_canned,
            IntentKind.FALLBACK: self._reply_generative,
            IntentKind.UNHANDLED: self._reply_unhandled,
        }

        missing = [kind.name for kind in IntentKind if kind not in self._routes]
        if missing:
            raise ValueError(f"IntentKind sin ruta asignada: {missing}")

        missing_replies = [
            route_kind.name for route_kind, route in self._routes.items()
            if route == self._reply_canned and route_kind not in CANNED_REPLIES
        ]
        if missing_replies:
            raise ValueError(f"IntentKind sin respuesta fija: {missing_replies}")

        self.stats: Dict[str, Any] = {
            "requests_handled": 0,
            "canned_replies": 0,
            "generative_answers": 0,
            "apologies": 0,
            "not_configured": 0,
            "unhandled_intents": 0,
            "average_processing_time_ms": 0.0,
            "intent_distribution": {kind.value: 0 for kind in IntentKind}
        }

    async def handle(self, request: IntentRequest) -> ReplyResponse:
        """
        Construye la respuesta para un request de Dialogflow.

        Args:
            request: Intent y mensaje del usuario

        Returns:
            ReplyResponse listo para serializar; ante cualquier error
            interno, la disculpa estándar con el menú de ayuda
        """

        start_time = time.perf_counter()
        kind = IntentKind.from_display_name(request.intent)
        route = self._routes[kind]

        log_intent_dispatch(
            logger=logger,
            intent=request.intent,
            intent_kind=kind.name,
            route=route.__name__.lstrip("_"),
            user_message=request.user_message
        )

        try:
            reply = await route(kind, request)
        except Exception as e:
            logger.error(f"❌ Error construyendo respuesta para {kind.name}: {e}", exc_info=True)
            self.stats["apologies"] += 1
            reply = self.apology_reply()

        processing_time = (time.perf_counter() - start_time) * 1000
        self._update_stats(kind, processing_time)

        return reply

    async def _reply_canned(self, kind: IntentKind, request: IntentRequest) -> ReplyResponse:
        """Respuesta fija; no hay llamada externa ni posibilidad de fallo."""

        canned = CANNED_REPLIES[kind]
        self.stats["canned_replies"] += 1

        if canned.chips:
            return ReplyResponse.with_segments([canned.text], chips=canned.chips)
        return ReplyResponse.plain(canned.text)

    async def _reply_generative(self, kind: IntentKind, request: IntentRequest) -> ReplyResponse:
        """Consulta a Gemini y envuelve la respuesta con el menú de temas."""

        answer = await self.answer_service.generate_answer(request.user_message)

        if answer.outcome == AnswerOutcome.NOT_CONFIGURED:
            self.stats["not_configured"] += 1
            return ReplyResponse.plain(MISSING_API_KEY_TEXT)

        if not answer.is_answered:
            logger.warning(f"🔄 Sin respuesta generativa ({answer.outcome.value}), enviando disculpa")
            self.stats["apologies"] += 1
            return self.apology_reply()

        segments = format_answer(
            answer.text,
            max_length=self.settings.MAX_REPLY_LENGTH,
            policy=self.settings.REPLY_OVERFLOW_POLICY
        )
        if not segments:
            # Solo quedaban marcadores de énfasis
            self.stats["apologies"] += 1
            return self.apology_reply()

        self.stats["generative_answers"] += 1
        return ReplyResponse.with_segments(segments, chips=TOPIC_MENU_CHIPS)

    async def _reply_unhandled(self, kind: IntentKind, request: IntentRequest) -> ReplyResponse:
        """Intent fuera de la lista: mensaje de duda y menú, sin llamar a Gemini."""

        self.stats["unhandled_intents"] += 1
        return ReplyResponse.with_segments([NOT_SURE_TEXT], chips=HELP_MENU_CHIPS)

    @staticmethod
    def apology_reply() -> ReplyResponse:
        """Disculpa estándar con el menú de ayuda."""
        return ReplyResponse.with_segments([APOLOGY_TEXT], chips=HELP_MENU_CHIPS)

    def _update_stats(self, kind: IntentKind, processing_time: float):
        """Actualiza estadísticas del handler."""

        self.stats["requests_handled"] += 1
        self.stats["intent_distribution"][kind.value] += 1

        total = self.stats["requests_handled"]
        current_avg = self.stats["average_processing_time_ms"]
        self.stats["average_processing_time_ms"] = (
            (current_avg * (total - 1) + processing_time) / total
        )

    def get_stats(self) -> Dict[str, Any]:
        """Obtiene estadísticas del handler."""
        return {
            **self.stats,
            "intent_distribution": dict(self.stats["intent_distribution"]),
            "overflow_policy": self.settings.REPLY_OVERFLOW_POLICY,
            "max_reply_length": self.settings.MAX_REPLY_LENGTH
        }

    async def health_check(self) -> Dict[str, Any]:
        """
        Verifica salud del handler y del servicio generativo.

        Returns:
            Estado de salud y métricas
        """

        answer_health: Optional[Dict[str, Any]] = None
        try:
            answer_health = await self.answer_service.health_check()
        except Exception as e:
            logger.error(f"❌ Health check de Gemini falló: {e}")
            answer_health = {"status": "unhealthy", "error": str(e)}

        # Las respuestas fijas funcionan aunque Gemini no esté disponible
        status = "healthy" if answer_health.get("status") == "healthy" else "degraded"

        return {
            "status": status,
            "routes": {kind.value: route.__name__.lstrip("_") for kind, route in self._routes.items()},
            "gemini": answer_health,
            "stats": self.get_stats()
        }
