"""
Gemini Service - Integración con la API generativa de Google

Servicio para responder preguntas libres del usuario con Gemini
generateContent. Nunca lanza excepciones hacia el caller: todos los
fallos se convierten en un GenerativeAnswer tipado.
"""

import asyncio
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

import httpx

from ..models.answers import AnswerOutcome, GenerativeAnswer, parse_generate_content
from ..utils.config import Settings
from ..utils.logger import get_logger, log_api_call

logger = get_logger(__name__)


@dataclass
class APICallStats:
    """Estadísticas de llamadas a la API."""
    total_calls: int = 0
    successful_calls: int = 0
    failed_calls: int = 0
    empty_answers: int = 0
    skipped_not_configured: int = 0
    average_response_time: float = 0.0
    last_call_time: Optional[datetime] = None
    last_error: Optional[str] = None


class GenerativeServiceError(Exception):
    """Error de transporte o de protocolo al llamar a Gemini."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class GeminiService:
    """
    Cliente de Gemini generateContent.

    Features:
    - API key como query parameter (?key=...)
    - Timeout explícito por llamada, sin reintentos
    - Parsing defensivo del envelope de respuesta
    - Estadísticas de llamadas
    """

    SERVICE_NAME = "Gemini"

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(settings.GEMINI_TIMEOUT_SECONDS)
        )
        self.stats = APICallStats()

    @property
    def is_configured(self) -> bool:
        return self.settings.gemini_configured

    def build_request_body(self, user_message: str) -> Dict[str, Any]:
        """Body de generateContent con el texto del usuario como prompt."""
        body: Dict[str, Any] = {
            "contents": [{"parts": [{"text": user_message}]}]
        }

        if self.settings.GEMINI_SYSTEM_PROMPT:
            body["systemInstruction"] = {
                "parts": [{"text": self.settings.GEMINI_SYSTEM_PROMPT}]
            }

        return body

    async def generate_answer(self, user_message: str) -> GenerativeAnswer:
        """
        Pide a Gemini una respuesta para el mensaje del usuario.

        Args:
            user_message: Texto crudo del usuario

        Returns:
            GenerativeAnswer con outcome ANSWERED, NO_ANSWER, FAILED o
            NOT_CONFIGURED. Nunca lanza.
        """

        if not self.is_configured:
            logger.error("🚨 Falta GEMINI_API_KEY en variables de entorno.")
            self.stats.skipped_not_configured += 1
            return GenerativeAnswer.not_configured()

        if not user_message or not user_message.strip():
            logger.warning("⚠️ Mensaje vacío, no se consulta a Gemini")
            return GenerativeAnswer.no_answer("mensaje vacío")

        start_time = time.perf_counter()

        try:
            payload = await self._post_generate_content(user_message)
        except GenerativeServiceError as e:
            processing_time = (time.perf_counter() - start_time) * 1000
            self._update_stats(processing_time, AnswerOutcome.FAILED, error=e.message)

            log_api_call(
                logger=logger,
                service=self.SERVICE_NAME,
                endpoint=self.settings.GEMINI_MODEL,
                duration_ms=processing_time,
                success=False,
                status_code=e.status_code,
                error=e.message
            )
            return GenerativeAnswer.failed(e.message)

        processing_time = (time.perf_counter() - start_time) * 1000
        answer = parse_generate_content(payload)
        self._update_stats(processing_time, answer.outcome, error=answer.error)

        log_api_call(
            logger=logger,
            service=self.SERVICE_NAME,
            endpoint=self.settings.GEMINI_MODEL,
            duration_ms=processing_time,
            success=True,
            status_code=200
        )

        if not answer.is_answered:
            logger.warning(f"⚠️ Gemini respondió sin texto utilizable: {answer.error}")

        return answer

    async def _post_generate_content(self, user_message: str) -> Any:
        """
        Hace el POST a generateContent y devuelve el JSON decodificado.

        GEMINI_TIMEOUT_SECONDS acota la llamada completa (conexión, envío
        y lectura del body), no cada operación de red por separado.

        Raises:
            GenerativeServiceError: timeout, error de red, status no-2xx o JSON inválido
        """

        try:
            return await asyncio.wait_for(
                self._send_generate_content(user_message),
                timeout=self.settings.GEMINI_TIMEOUT_SECONDS
            )
        except asyncio.TimeoutError as e:
            raise GenerativeServiceError(
                f"Timeout después de {self.settings.GEMINI_TIMEOUT_SECONDS}s"
            ) from e

    async def _send_generate_content(self, user_message: str) -> Any:
        """POST a generateContent; valida status y JSON de la respuesta."""

        try:
            response = await self.client.post(
                self.settings.generate_content_url,
                params={"key": self.settings.GEMINI_API_KEY},
                json=self.build_request_body(user_message),
                headers={"Content-Type": "application/json"},
                timeout=self.settings.GEMINI_TIMEOUT_SECONDS,
            )
        except httpx.TimeoutException as e:
            raise GenerativeServiceError(
                f"Timeout después de {self.settings.GEMINI_TIMEOUT_SECONDS}s"
            ) from e
        except httpx.HTTPError as e:
            raise GenerativeServiceError(f"Error de conexión: {type(e).__name__}") from e

        if not response.is_success:
            raise GenerativeServiceError(
                f"Gemini HTTP {response.status_code}",
                status_code=response.status_code
            )

        try:
            return response.json()
        except ValueError as e:
            raise GenerativeServiceError(
                "Respuesta de Gemini no es JSON válido",
                status_code=response.status_code
            ) from e

    def _update_stats(self, processing_time: float, outcome: AnswerOutcome, error: Optional[str] = None):
        """Actualiza estadísticas de llamadas API."""

        self.stats.total_calls += 1
        self.stats.last_call_time = datetime.now()

        if outcome == AnswerOutcome.FAILED:
            self.stats.failed_calls += 1
            self.stats.last_error = error
            return

        self.stats.successful_calls += 1
        if outcome == AnswerOutcome.NO_ANSWER:
            self.stats.empty_answers += 1

        # Promedio solo sobre llamadas que llegaron a responder
        self.stats.average_response_time = (
            (self.stats.average_response_time * (self.stats.successful_calls - 1) + processing_time)
            / self.stats.successful_calls
        )

    def get_stats(self) -> Dict[str, Any]:
        """Obtiene estadísticas del servicio."""

        success_rate = 0.0
        if self.stats.total_calls > 0:
            success_rate = (self.stats.successful_calls / self.stats.total_calls) * 100

        return {
            "total_calls": self.stats.total_calls,
            "successful_calls": self.stats.successful_calls,
            "failed_calls": self.stats.failed_calls,
            "empty_answers": self.stats.empty_answers,
            "skipped_not_configured": self.stats.skipped_not_configured,
            "success_rate_percent": success_rate,
            "average_response_time_ms": self.stats.average_response_time,
            "last_call_time": self.stats.last_call_time,
            "last_error": self.stats.last_error
        }

    async def health_check(self) -> Dict[str, Any]:
        """
        Estado del servicio sin hacer llamadas de red.

        Returns:
            Estado de salud, configuración y métricas básicas
        """

        if not self.is_configured:
            status = "not_configured"
        elif self.stats.total_calls and self.stats.failed_calls == self.stats.total_calls:
            status = "degraded"
        else:
            status = "healthy"

        return {
            "status": status,
            "model": self.settings.GEMINI_MODEL,
            "config": self.settings.gemini_config,
            "stats": self.get_stats()
        }

    async def aclose(self):
        """Cierra el cliente HTTP si fue creado por el servicio."""
        if self._owns_client:
            await self.client.aclose()
