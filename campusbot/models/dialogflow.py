"""
Modelos Pydantic para el formato de webhook de Dialogflow.

Define el request entrante (queryResult con intent y texto del usuario),
la vista interna IntentRequest y la respuesta de fulfillment con
segmentos de texto y chips de sugerencia.
"""

from typing import List, Optional, Any, Dict, Literal

from pydantic import BaseModel, ConfigDict, Field


class _DialogflowModel(BaseModel):
    """Base común: acepta camelCase del wire y snake_case en Python."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ================================
# Request entrante
# ================================

class IntentInfo(_DialogflowModel):
    """Intent detectado por el agente conversacional."""

    display_name: Optional[str] = Field(
        default=None,
        alias="displayName",
        description="Nombre visible del intent (ej: 'Get Fees Info')"
    )

    name: Optional[str] = Field(default=None, description="Resource name del intent")


class QueryResult(_DialogflowModel):
    """Resultado de la detección de intent para una consulta."""

    query_text: Optional[str] = Field(
        default=None,
        alias="queryText",
        description="Texto original escrito por el usuario"
    )

    intent: IntentInfo = Field(default_factory=IntentInfo)

    language_code: Optional[str] = Field(default=None, alias="languageCode")

    parameters: Dict[str, Any] = Field(default_factory=dict)


class WebhookRequest(_DialogflowModel):
    """
    Request de fulfillment enviado por Dialogflow.

    Solo queryResult.intent.displayName y queryResult.queryText se
    interpretan; el resto de campos se aceptan y se ignoran.
    """

    response_id: Optional[str] = Field(default=None, alias="responseId")

    session: Optional[str] = Field(default=None)

    query_result: QueryResult = Field(default_factory=QueryResult, alias="queryResult")

    def to_intent_request(self) -> "IntentRequest":
        """Extrae el par (intent, mensaje) que consume el handler."""
        return IntentRequest(
            intent=self.query_result.intent.display_name or "",
            user_message=self.query_result.query_text or "",
        )


class IntentRequest(BaseModel):
    """
    Vista interna del request: nombre del intent y mensaje del usuario.
    """

    intent: str = Field(default="", description="displayName del intent detectado")

    user_message: str = Field(default="", description="Texto crudo del usuario")


# ================================
# Respuesta de fulfillment
# ================================

class ChipOption(_DialogflowModel):
    """Botón de sugerencia (decorativo, no se procesa en el servidor)."""

    text: str


class ChipsContent(_DialogflowModel):
    type: Literal["chips"] = "chips"

    options: List[ChipOption] = Field(default_factory=list)


class RichContentPayload(_DialogflowModel):
    """Payload de rich content de Dialogflow Messenger."""

    rich_content: List[List[ChipsContent]] = Field(
        default_factory=list,
        alias="richContent"
    )


class TextSegment(_DialogflowModel):
    text: List[str] = Field(default_factory=list)


class FulfillmentMessage(_DialogflowModel):
    """Un segmento de fulfillmentMessages: texto o payload de chips."""

    text: Optional[TextSegment] = None

    payload: Optional[RichContentPayload] = None


class ReplyResponse(_DialogflowModel):
    """
    Respuesta del webhook.

    Se serializa como {"fulfillmentText": ...} o como
    {"fulfillmentMessages": [...]}, nunca ambos.
    """

    fulfillment_text: Optional[str] = Field(default=None, alias="fulfillmentText")

    fulfillment_messages: Optional[List[FulfillmentMessage]] = Field(
        default=None,
        alias="fulfillmentMessages"
    )

    @classmethod
    def plain(cls, text: str) -> "ReplyResponse":
        """Respuesta de un solo campo de texto."""
        return cls(fulfillment_text=text)

    @classmethod
    def with_segments(
        cls,
        texts: List[str],
        chips: Optional[List[str]] = None
    ) -> "ReplyResponse":
        """
        Respuesta con un segmento por texto, seguida opcionalmente
        de un menú de chips.

        Args:
            texts: Textos a mostrar, en orden
            chips: Etiquetas del menú de sugerencias

        Returns:
            ReplyResponse con fulfillmentMessages
        """
        messages = [FulfillmentMessage(text=TextSegment(text=[text])) for text in texts]

        if chips:
            messages.append(
                FulfillmentMessage(
                    payload=RichContentPayload(
                        rich_content=[[
                            ChipsContent(options=[ChipOption(text=label) for label in chips])
                        ]]
                    )
                )
            )

        return cls(fulfillment_messages=messages)

    def to_wire(self) -> Dict[str, Any]:
        """Diccionario JSON con aliases camelCase y sin campos nulos."""
        return self.model_dump(by_alias=True, exclude_none=True)

    @property
    def texts(self) -> List[str]:
        """Todos los textos de la respuesta, en orden."""
        if self.fulfillment_text is not None:
            return [self.fulfillment_text]

        texts: List[str] = []
        for message in self.fulfillment_messages or []:
            if message.text:
                texts.extend(message.text.text)
        return texts

    @property
    def chips(self) -> List[str]:
        """Etiquetas de todos los chips de la respuesta."""
        labels: List[str] = []
        for message in self.fulfillment_messages or []:
            if message.payload:
                for row in message.payload.rich_content:
                    for content in row:
                        labels.extend(option.text for option in content.options)
        return labels
