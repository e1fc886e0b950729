# app/core/auth/permissions.py
"""Compuerta de autorización que usan los servicios antes de mutar estado"""

from typing import Iterable
import logging

from app.core.auth.schemas import Actor, UserRole
from app.core.errors import AuthorizationError

logger = logging.getLogger(__name__)

ADMIN_ROLES = (UserRole.ADMIN, UserRole.OWNER)
ALL_ROLES = tuple(UserRole)


def ensure_role(actor: Actor, allowed_roles: Iterable[UserRole], action: str) -> None:
    """Lanza AuthorizationError si el rol del actor no está permitido para la acción"""
    allowed = tuple(allowed_roles)
    if actor.role not in allowed:
        logger.warning(
            f"⛔ Usuario {actor.id} con rol {actor.role.value} intentó '{action}'"
        )
        raise AuthorizationError(
            f"Rol '{actor.role.value}' no autorizado para {action}. "
            f"Roles permitidos: {[r.value for r in allowed]}",
            {"action": action, "role": actor.role.value}
        )


def can_access_client(actor: Actor, client) -> bool:
    """Verificar si el actor puede operar sobre un cliente"""

    # Owner y admin pueden acceder a todo
    if actor.role in ADMIN_ROLES:
        return True

    # Vendedores solo ven su cartera de clientes
    if actor.role == UserRole.VENDEDOR:
        return client.vendor_id == actor.id

    # El cliente solo se ve a sí mismo
    if actor.role == UserRole.CLIENTE:
        return client.user_id == actor.id

    return False


def ensure_client_access(actor: Actor, client, action: str) -> None:
    if not can_access_client(actor, client):
        logger.warning(f"⛔ Usuario {actor.id} sin acceso al cliente {client.id}")
        raise AuthorizationError(
            f"No tienes permisos para {action} del cliente {client.id}",
            {"action": action, "client_id": client.id}
        )
