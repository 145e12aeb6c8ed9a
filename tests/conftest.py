"""
Configuración global para tests pytest.

Define fixtures y configuración común para todos los tests.
"""

import os

# Antes de importar el paquete: sin archivos de log ni key real en tests
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("ENVIRONMENT", "testing")

import json
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from campusbot.utils.config import Settings, set_settings_for_testing


TEST_API_KEY = "test-gemini-key"


@pytest.fixture(scope="session")
def test_settings():
    """Configuración de testing."""
    return Settings(
        GEMINI_API_KEY=TEST_API_KEY,
        GEMINI_MODEL="gemini-test",
        GEMINI_API_BASE="https://gemini.test/v1beta",
        GEMINI_TIMEOUT_SECONDS=1.0,
        MAX_REPLY_LENGTH=1500,
        REPLY_OVERFLOW_POLICY="truncate",
        ENVIRONMENT="testing",
        LOG_LEVEL="DEBUG",
        LOG_TO_FILE=False,
        DEBUG=True,
    )


@pytest.fixture(autouse=True)
def setup_test_settings(test_settings):
    """Auto-setup settings de testing para todos los tests."""
    set_settings_for_testing(test_settings)


@pytest.fixture
def unconfigured_settings(test_settings):
    """Settings sin API key de Gemini."""
    return test_settings.model_copy(update={"GEMINI_API_KEY": None})


@pytest.fixture
def split_settings(test_settings):
    """Settings con política split para respuestas largas."""
    return test_settings.model_copy(update={"REPLY_OVERFLOW_POLICY": "split"})


# Helpers para payloads

def gemini_payload(text: Optional[str]) -> Dict[str, Any]:
    """Envelope de generateContent con un único candidato."""
    return {
        "candidates": [
            {
                "content": {"parts": [{"text": text}], "role": "model"},
                "finishReason": "STOP"
            }
        ],
        "usageMetadata": {"promptTokenCount": 8, "candidatesTokenCount": 9}
    }


def dialogflow_body(intent: Optional[str], query_text: Optional[str]) -> Dict[str, Any]:
    """Request de fulfillment tal como lo envía Dialogflow ES."""
    return {
        "responseId": "response-id-test",
        "session": "projects/college-bot/agent/sessions/test-session",
        "queryResult": {
            "queryText": query_text,
            "parameters": {},
            "allRequiredParamsPresent": True,
            "intent": {
                "name": "projects/college-bot/agent/intents/0000",
                "displayName": intent
            },
            "intentDetectionConfidence": 1,
            "languageCode": "en"
        }
    }


class RecordingTransport:
    """
    Transport mock que registra los requests salientes.

    El handler recibe el httpx.Request y devuelve un httpx.Response o lanza
    una excepción de httpx para simular fallos de red.
    """

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.handler = handler
        self.requests: List[httpx.Request] = []
        self.transport = httpx.MockTransport(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def last_json(self) -> Dict[str, Any]:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def make_transport():
    """Factory de RecordingTransport."""
    return RecordingTransport


@pytest.fixture
def answering_transport():
    """Transport que siempre responde con el mismo texto."""
    def _factory(text: Optional[str]) -> RecordingTransport:
        return RecordingTransport(lambda request: httpx.Response(200, json=gemini_payload(text)))
    return _factory


@pytest.fixture
def make_gemini_client():
    """Construye un AsyncClient sobre un RecordingTransport."""
    def _factory(recording: RecordingTransport) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=recording.transport)
    return _factory


# Pytest configuration

def pytest_configure(config):
    """Configuración global de pytest."""
    config.addinivalue_line("markers", "integration: marca tests de integración")


@pytest.fixture
def make_gemini_payload():
    return gemini_payload


@pytest.fixture
def make_dialogflow_body():
    return dialogflow_body
