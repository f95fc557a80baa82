import secrets
from typing import List, Optional, Union

from pydantic import AnyHttpUrl, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # API
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "OKR Tracking System"
    VERSION: str = "1.0.0"

    # Seguridad JWT
    SECRET_KEY: str = secrets.token_urlsafe(32)
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30  # 30 minutos
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7  # 7 días
    TOKEN_TYPE: str = "Bearer"

    # CORS
    BACKEND_CORS_ORIGINS: List[Union[str, AnyHttpUrl]] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(
        cls, v: Union[str, List[str]]
    ) -> Union[List[str], str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",")]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    # Database
    DATABASE_URL: str = "sqlite:///./okr_tracking.db"

    # Aplicación
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Jerarquía de objetivos
    MAX_HIERARCHY_DEPTH: int = 50  # tope de profundidad para recorridos y cascadas

    # Paginación
    DEFAULT_PAGE_SIZE: int = 100
    MAX_PAGE_SIZE: int = 500

    # Usuario administrador inicial (se omite si no hay contraseña)
    FIRST_ADMIN_EMAIL: str = "admin@okr-tracking.com"
    FIRST_ADMIN_PASSWORD: Optional[str] = None

    class Config:
        case_sensitive = True
        env_file = ".env"


settings = Settings()
