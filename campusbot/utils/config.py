"""
Configuración centralizada del webhook usando Pydantic Settings.

Maneja variables de entorno, validación y valores por defecto para
el handler de intents y el servicio de respuestas generativas (Gemini).
"""

from typing import List, Dict, Any, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Configuración centralizada del sistema.

    Carga automáticamente desde variables de entorno y .env file.
    Se construye una sola vez al arrancar el proceso y se pasa
    explícitamente al handler y al servicio Gemini.
    """

    # ================================
    # Gemini Configuration
    # ================================
    GEMINI_API_KEY: Optional[str] = Field(default=None, description="API key de Gemini")
    GEMINI_API_BASE: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="URL base de la API generativa"
    )
    GEMINI_MODEL: str = Field(default="gemini-1.5-flash-latest", description="Modelo Gemini a usar")
    GEMINI_TIMEOUT_SECONDS: float = Field(default=4.5, description="Timeout de la llamada a Gemini")
    GEMINI_SYSTEM_PROMPT: Optional[str] = Field(default=None, description="Instrucción de sistema opcional")

    # ================================
    # Reply Formatting
    # ================================
    MAX_REPLY_LENGTH: int = Field(default=1500, description="Longitud máxima de cada segmento de respuesta")
    REPLY_OVERFLOW_POLICY: str = Field(default="truncate", description="truncate o split")

    # ================================
    # FastAPI Configuration
    # ================================
    PORT: int = Field(default=3000, description="Puerto del servidor")
    HOST: str = Field(default="0.0.0.0", description="Host del servidor")
    CORS_ORIGINS: str = Field(default="*", description="Orígenes CORS permitidos")

    # ================================
    # Environment Configuration
    # ================================
    ENVIRONMENT: str = Field(default="development", description="Entorno: development/staging/production/testing")
    LOG_LEVEL: str = Field(default="INFO", description="Nivel de logging")
    LOG_TO_FILE: bool = Field(default=True, description="Escribir logs rotativos en ./logs")
    DEBUG: bool = Field(default=False, description="Modo debug")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator('GEMINI_API_KEY', 'GEMINI_SYSTEM_PROMPT')
    @classmethod
    def blank_to_none(cls, v):
        """Normaliza strings vacíos a None."""
        if v is None:
            return None
        v = v.strip()
        return v or None

    @field_validator('GEMINI_API_BASE')
    @classmethod
    def strip_trailing_slash(cls, v):
        return v.rstrip("/")

    @field_validator('GEMINI_TIMEOUT_SECONDS')
    @classmethod
    def validate_timeout(cls, v):
        """El timeout debe ser positivo; sin timeout el request queda colgado."""
        if v <= 0:
            raise ValueError('GEMINI_TIMEOUT_SECONDS debe ser mayor que 0')
        return v

    @field_validator('MAX_REPLY_LENGTH')
    @classmethod
    def validate_max_reply_length(cls, v):
        if v < 100:
            raise ValueError('MAX_REPLY_LENGTH debe ser al menos 100')
        return v

    @field_validator('REPLY_OVERFLOW_POLICY')
    @classmethod
    def validate_overflow_policy(cls, v):
        """Valida la política de desborde de respuestas largas."""
        valid_policies = ['truncate', 'split']
        v = v.strip().lower()
        if v not in valid_policies:
            raise ValueError(f'REPLY_OVERFLOW_POLICY debe ser uno de: {valid_policies}')
        return v

    @field_validator('ENVIRONMENT')
    @classmethod
    def validate_environment(cls, v):
        """Valida que el environment sea válido."""
        valid_envs = ['development', 'staging', 'production', 'testing']
        if v not in valid_envs:
            raise ValueError(f'Environment debe ser uno de: {valid_envs}')
        return v

    @field_validator('LOG_LEVEL')
    @classmethod
    def validate_log_level(cls, v):
        """Valida nivel de logging."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'Log level debe ser uno de: {valid_levels}')
        return v.upper()

    # ================================
    # Computed Properties
    # ================================

    @property
    def is_production(self) -> bool:
        """Verifica si está en producción."""
        return self.ENVIRONMENT == "production"

    @property
    def is_development(self) -> bool:
        """Verifica si está en desarrollo."""
        return self.ENVIRONMENT == "development"

    @property
    def cors_origins(self) -> List[str]:
        """Convierte CORS origins de string a lista."""
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def gemini_configured(self) -> bool:
        return self.GEMINI_API_KEY is not None

    @property
    def gemini_config(self) -> Dict[str, Any]:
        """Configuración para el servicio Gemini (sin exponer la key)."""
        return {
            "api_base": self.GEMINI_API_BASE,
            "model": self.GEMINI_MODEL,
            "timeout": self.GEMINI_TIMEOUT_SECONDS,
            "configured": self.gemini_configured,
            "system_prompt": self.GEMINI_SYSTEM_PROMPT is not None,
        }

    @property
    def generate_content_url(self) -> str:
        """Endpoint generateContent del modelo configurado."""
        return f"{self.GEMINI_API_BASE}/models/{self.GEMINI_MODEL}:generateContent"


# Instancia global de configuración
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Obtiene instancia singleton de configuración.

    Returns:
        Settings: Configuración del sistema
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """
    Recarga configuración desde archivos de entorno.

    Útil para testing o cambios dinámicos de configuración.

    Returns:
        Settings: Nueva configuración
    """
    global _settings
    _settings = Settings()
    return _settings


# Para testing - permite inyectar configuración mock
def set_settings_for_testing(test_settings: Settings):
    """
    Establece configuración para testing.

    Args:
        test_settings: Configuración de prueba
    """
    global _settings
    _settings = test_settings
