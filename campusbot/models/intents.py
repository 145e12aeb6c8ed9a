"""
Intents reconocidos por el webhook y sus respuestas predefinidas.

Este módulo define el conjunto cerrado de intents, la tabla de respuestas
fijas (canned replies) y los menús de chips que acompañan a las respuestas.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class IntentKind(str, Enum):
    """
    Intents soportados por el webhook.

    El valor es el displayName exacto configurado en el agente de Dialogflow.
    UNHANDLED representa cualquier intent fuera de la lista.
    """
    FEES_INFO = "Get Fees Info"                    # Costo anual de la carrera
    ADMISSION_PROCESS = "Get Admission Process"    # Proceso de admisión (CAP)
    COLLEGE_CONTACT = "Get College Contact"        # Contacto con menú de chips
    FALLBACK = "Default Fallback Intent"           # Pregunta libre -> Gemini
    UNHANDLED = "__unhandled__"                    # Intent no reconocido

    @classmethod
    def from_display_name(cls, display_name: Optional[str]) -> "IntentKind":
        """
        Resuelve un displayName al IntentKind correspondiente.

        Coincidencia exacta y sensible a mayúsculas; cualquier otro valor,
        incluido el propio valor de UNHANDLED, es UNHANDLED.
        """
        for kind in cls:
            if kind is not cls.UNHANDLED and kind.value == display_name:
                return kind
        return cls.UNHANDLED


class CannedReply(BaseModel):
    """
    Respuesta fija para un intent reconocido.

    Sin chips se envía como fulfillmentText; con chips, como un segmento
    de texto seguido del menú.
    """
    intent: IntentKind = Field(description="Intent al que responde")

    text: str = Field(description="Texto de la respuesta")

    chips: List[str] = Field(
        default_factory=list,
        description="Menú de sugerencias que acompaña al texto"
    )


# ================================
# Menús de chips
# ================================

CONTACT_CHIPS: List[str] = [
    "📞 Call College",
    "🌐 Visit Website",
    "📍 View Location",
]

# Menú que acompaña a las respuestas de Gemini
TOPIC_MENU_CHIPS: List[str] = [
    "🏫 College Info",
    "💰 Fee Structure",
    "📍 College Location",
    "📞 Contact Details",
    "👨🏼‍💻 College ERP",
    "🎯 College Vision",
    "🕓 College Timing",
]

# Menú corto para disculpas e intents no reconocidos
HELP_MENU_CHIPS: List[str] = [
    "💰 Fees Info",
    "📍 Location",
    "📞 Contact Us",
    "🎓 Admission Process",
]


# ================================
# Textos de respuesta
# ================================

APOLOGY_TEXT = "Sorry 😔, I’m having trouble responding right now. Please try again later."

MISSING_API_KEY_TEXT = "⚠️ Gemini API key not set. Please contact admin."

NOT_SURE_TEXT = "🤔 I'm not sure I understood that. You can explore these topics 👇"


CANNED_REPLIES: Dict[IntentKind, CannedReply] = {
    IntentKind.FEES_INFO: CannedReply(
        intent=IntentKind.FEES_INFO,
        text="💰 The annual fee for B.Tech is around ₹95,000 per year."
    ),

    IntentKind.ADMISSION_PROCESS: CannedReply(
        intent=IntentKind.ADMISSION_PROCESS,
        text=(
            "📝 You can apply for admission through the DTE Maharashtra CAP process. "
            "Visit the official DTE site for details."
        )
    ),

    IntentKind.COLLEGE_CONTACT: CannedReply(
        intent=IntentKind.COLLEGE_CONTACT,
        text="📞 You can contact the college using the information below:",
        chips=CONTACT_CHIPS
    ),
}
