from datetime import datetime, timedelta
from typing import Optional
import logging
from jose import jwt, JWTError
from app.config.settings import settings

logger = logging.getLogger(__name__)

class AuthService:
    """Servicio de tokens (la emisión real la hace el servicio de autenticación)"""

    @staticmethod
    def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
        """Crear token de acceso"""
        to_encode = data.copy()

        if expires_delta:
            expire = datetime.utcnow() + expires_delta
        else:
            expire = datetime.utcnow() + timedelta(minutes=settings.access_token_expire_minutes)

        to_encode.update({"exp": expire})

        if "user_id" not in to_encode or "role" not in to_encode:
            raise ValueError("user_id y role son requeridos en el token")

        return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)

    @staticmethod
    def verify_token(token: str) -> Optional[dict]:
        """Verificar y decodificar token"""
        try:
            return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
        except JWTError as e:
            logger.warning(f"Token rechazado: {str(e)}")
            return None
