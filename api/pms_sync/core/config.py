"""
Configuración central de la aplicación.
Gestiona variables de entorno y configuraciones globales del motor de
sincronización PMS.
"""
import json
from typing import List
from pydantic_settings import BaseSettings
from pydantic import Field, computed_field


class Settings(BaseSettings):
    """
    Clase de configuración de la aplicación.
    Lee variables de entorno y proporciona valores por defecto.

    Grupos de configuración:
    - Aplicación / servidor
    - Base de datos (URL completa o por componentes)
    - Open Dental (credenciales y comportamiento del cliente HTTP)
    - Sincronización (scheduler, pool de tenants, lease, paginación)
    """

    # Configuración de la aplicación
    APP_NAME: str = Field(default="PMS Sync Engine")
    APP_VERSION: str = Field(default="1.0.0")
    DEBUG: bool = Field(default=False)
    ENVIRONMENT: str = Field(default="production")

    # Configuración del servidor
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8000)

    # Base de datos - Componentes separados
    DATABASE_HOST: str = Field(default="localhost")
    DATABASE_PORT: int = Field(default=5432)
    DATABASE_USER: str = Field(default="pms_user")
    DATABASE_PASSWORD: str = Field(default="pms_pass")
    DATABASE_NAME: str = Field(default="pms_sync_db")

    # Base de datos - URL completa (override de componentes si se proporciona)
    DATABASE_URL: str = Field(default="")
    DB_POOL_SIZE: int = Field(default=5)
    DB_MAX_OVERFLOW: int = Field(default=10)

    # Open Dental
    OPENDENTAL_BASE_URL: str = Field(default="https://api.opendental.com/api/v1")
    OPENDENTAL_AUTH_SCHEME: str = Field(default="ODFHIR")
    OPENDENTAL_DEV_KEY: str = Field(default="")
    OPENDENTAL_CUSTOMER_KEY: str = Field(default="")
    OPENDENTAL_TIMEOUT_SECONDS: int = Field(default=30)
    OPENDENTAL_MAX_RETRIES: int = Field(default=4)
    OPENDENTAL_PAGE_SIZE: int = Field(default=100)

    # Sincronización
    PMS_SOURCE: str = Field(default="open_dental")
    PMS_SYNC_SCHEDULER_ENABLED: bool = Field(default=True)
    PMS_SYNC_INTERVAL_MINUTES: int = Field(default=10)
    PMS_SYNC_MAX_CONCURRENT_TENANTS: int = Field(default=3)
    PMS_SYNC_LEASE_TTL_SECONDS: int = Field(default=900)
    PMS_MAPPINGS_PAGE_SIZE: int = Field(default=100)
    PMS_MAPPINGS_MAX_PAGE_SIZE: int = Field(default=500)

    # CORS (acepta lista JSON o "*" para todos los orígenes)
    CORS_ORIGINS: str = Field(default="*")

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE: str = Field(default="logs/app.log")

    @computed_field
    @property
    def effective_database_url(self) -> str:
        """
        Retorna la URL de base de datos efectiva.
        Si DATABASE_URL está definida, la usa directamente.
        Si no, construye la URL desde los componentes individuales.
        """
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.DATABASE_USER}:{self.DATABASE_PASSWORD}"
            f"@{self.DATABASE_HOST}:{self.DATABASE_PORT}/{self.DATABASE_NAME}"
        )

    @computed_field
    @property
    def is_development(self) -> bool:
        """Indica si el entorno es de desarrollo."""
        return self.ENVIRONMENT.lower() == "development"

    @computed_field
    @property
    def is_pms_configured(self) -> bool:
        """Open Dental requiere developer key y customer key."""
        return bool(self.OPENDENTAL_DEV_KEY and self.OPENDENTAL_CUSTOMER_KEY)

    class Config:
        """Configuración de Pydantic."""
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


def get_cors_origins(cors_string: str) -> List[str]:
    """
    Parsea la configuración de CORS.
    Acepta "*" para todos los orígenes o una lista JSON.
    """
    if cors_string == "*":
        return ["*"]
    try:
        return json.loads(cors_string)
    except json.JSONDecodeError:
        return [origin.strip() for origin in cors_string.split(",")]


# Instancia global de configuración
settings = Settings()
