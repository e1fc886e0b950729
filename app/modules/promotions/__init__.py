# app/modules/promotions/__init__.py
"""
Módulo de Promociones

- Administración de promociones PACK y BUY_GET_FREE
- Resolución de promociones sobre el carrito al crear pedidos
- Selección de surtido para promociones BUY_GET_FREE

Arquitectura:
- router.py: Endpoints de promociones y surtido
- service.py: Lógica de negocio
- resolver.py: Aplicación de promociones sobre las líneas del pedido
- repository.py: Acceso a datos
- schemas.py: Modelos de request/response
"""

from .router import router
from .service import PromotionsService
from .resolver import PromotionResolver
from .repository import PromotionsRepository

__all__ = [
    "router",
    "PromotionsService",
    "PromotionResolver",
    "PromotionsRepository"
]
