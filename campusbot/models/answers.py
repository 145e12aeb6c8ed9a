"""
Modelos para la respuesta de la API generativa (Gemini generateContent).

El envelope externo se modela con campos opcionales en todos los niveles
y se interpreta en un único punto, parse_generate_content, que devuelve
siempre un GenerativeAnswer tipado en lugar de lanzar excepciones.
"""

from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class AnswerOutcome(str, Enum):
    """Resultado de una consulta al servicio generativo."""
    ANSWERED = "answered"              # Hay texto utilizable
    NO_ANSWER = "no_answer"            # Respuesta OK pero sin texto
    FAILED = "failed"                  # Red, timeout, status no-2xx, JSON inválido
    NOT_CONFIGURED = "not_configured"  # Falta la API key, no se llamó


class GenerativeAnswer(BaseModel):
    """
    Respuesta tipada del helper generativo.

    Solo ANSWERED lleva texto; el resto de outcomes pueden llevar
    una descripción del error para logging.
    """
    outcome: AnswerOutcome

    text: Optional[str] = None

    error: Optional[str] = None

    @property
    def is_answered(self) -> bool:
        return self.outcome == AnswerOutcome.ANSWERED and bool(self.text and self.text.strip())

    @classmethod
    def answered(cls, text: str) -> "GenerativeAnswer":
        return cls(outcome=AnswerOutcome.ANSWERED, text=text)

    @classmethod
    def no_answer(cls, reason: Optional[str] = None) -> "GenerativeAnswer":
        return cls(outcome=AnswerOutcome.NO_ANSWER, error=reason)

    @classmethod
    def failed(cls, error: str) -> "GenerativeAnswer":
        return cls(outcome=AnswerOutcome.FAILED, error=error)

    @classmethod
    def not_configured(cls) -> "GenerativeAnswer":
        return cls(outcome=AnswerOutcome.NOT_CONFIGURED, error="GEMINI_API_KEY no configurada")


# ================================
# Envelope de Gemini
# ================================

class _LenientModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class GeminiPart(_LenientModel):
    text: Optional[str] = None


class GeminiContent(_LenientModel):
    parts: List[GeminiPart] = Field(default_factory=list)

    role: Optional[str] = None


class GeminiCandidate(_LenientModel):
    content: Optional[GeminiContent] = None

    finish_reason: Optional[str] = Field(default=None, alias="finishReason")


class GenerateContentResponse(_LenientModel):
    """Envelope de generateContent; todos los niveles son opcionales."""

    candidates: List[GeminiCandidate] = Field(default_factory=list)

    def first_text(self) -> Optional[str]:
        """candidates[0].content.parts[0].text, o None si falta algún nivel."""
        if not self.candidates:
            return None

        content = self.candidates[0].content
        if content is None or not content.parts:
            return None

        return content.parts[0].text


def parse_generate_content(payload: Any) -> GenerativeAnswer:
    """
    Interpreta el JSON devuelto por generateContent.

    Args:
        payload: JSON ya decodificado (cualquier forma)

    Returns:
        GenerativeAnswer ANSWERED con el texto, o NO_ANSWER si el campo
        no existe, está vacío o el envelope tiene otra forma
    """
    if not isinstance(payload, dict):
        return GenerativeAnswer.no_answer("respuesta no es un objeto JSON")

    try:
        envelope = GenerateContentResponse.model_validate(payload)
    except ValidationError as e:
        return GenerativeAnswer.no_answer(f"envelope inesperado: {e.error_count()} errores")

    text = envelope.first_text()
    if text is None or not text.strip():
        return GenerativeAnswer.no_answer("sin texto en candidates[0].content.parts[0]")

    return GenerativeAnswer.answered(text)
