# app/config/settings.py
from pydantic_settings import BaseSettings
from typing import List, Optional
import os

class Settings(BaseSettings):
    # App Info
    app_name: str = "Pedidos B2B API"
    version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # Database - PostgreSQL en producción (postgresql+psycopg://...), SQLite en desarrollo
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./pedidos.db")

    # Security - los tokens los emite el servicio de autenticación externo
    secret_key: str = os.getenv("SECRET_KEY", "change-in-production")
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 10080

    # CORS
    cors_origins: List[str] = ["*"]

    # Reglas de negocio
    preset_discounts: List[int] = [10, 12, 15]
    allow_overpayment: bool = True
    max_discount_percentage: int = 100

    # Server
    host: str = "0.0.0.0"
    port: int = int(os.getenv("PORT", 10000))

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def database_host(self) -> Optional[str]:
        """Host de la base de datos sin credenciales (para logs)"""
        if "@" in self.database_url:
            return self.database_url.split("@")[1]
        return None

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = 'ignore'

settings = Settings()
