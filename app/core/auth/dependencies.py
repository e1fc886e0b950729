from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import ValidationError

from app.core.auth.service import AuthService
from app.core.auth.schemas import Actor, TokenPayload, UserRole

security = HTTPBearer()

class AuthenticationError(HTTPException):
    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )

async def get_current_actor(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> Actor:
    """Construir el actor de la petición desde el token"""

    payload = AuthService.verify_token(credentials.credentials)
    if payload is None:
        raise AuthenticationError("Token inválido o expirado")

    try:
        token_data = TokenPayload(**payload)
    except ValidationError:
        raise AuthenticationError("Payload del token inválido")

    try:
        user_role = UserRole.parse(token_data.role)
    except ValueError:
        raise AuthenticationError(f"Rol '{token_data.role}' desconocido")

    return Actor(id=token_data.user_id, role=user_role, email=token_data.email)
