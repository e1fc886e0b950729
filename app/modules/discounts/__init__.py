# app/modules/discounts/__init__.py
"""
Módulo de Descuentos - Libro de Descuentos por Pedido

- Descuentos predefinidos (10, 12, 15%) y personalizados del administrador
- Descuentos del owner con razón obligatoria
- Revocación conservando el historial
- Un solo descuento activo por pedido

Arquitectura:
- router.py: Endpoints de descuentos (y /owner/discounts)
- service.py: Reglas del libro de descuentos
- repository.py: Acceso a datos de descuentos
- schemas.py: Modelos de request/response
"""

from .router import router, owner_router
from .service import DiscountsService
from .repository import DiscountsRepository

__all__ = [
    "router",
    "owner_router",
    "DiscountsService",
    "DiscountsRepository"
]
