# app/modules/orders/__init__.py
"""
Módulo de Pedidos

Ciclo de vida del pedido B2B:
- Creación con resolución automática de promociones
- Verificación de cupo de crédito
- Confirmación, completado y cancelación
- Fechas estimadas de llegada para productos agotados

Arquitectura:
- router.py: Endpoints de pedidos
- service.py: Lógica de negocio y vista con totales derivados
- repository.py: Acceso a datos y bloqueo por pedido
- schemas.py: Modelos de request/response
"""

from .router import router
from .service import OrdersService
from .schemas import build_order_response
from .repository import OrdersRepository

__all__ = [
    "router",
    "OrdersService",
    "OrdersRepository",
    "build_order_response"
]
