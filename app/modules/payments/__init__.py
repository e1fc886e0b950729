# app/modules/payments/__init__.py
"""
Módulo de Pagos - Liquidación de Pedidos

- Registro de abonos con descuento opcional por pronto pago
- Anulación de abonos
- Saldo pendiente recalculado desde el libro de pagos

Arquitectura:
- router.py: Endpoints de pagos
- service.py: Reglas de liquidación
- repository.py: Acceso a datos de pagos
- schemas.py: Modelos de request/response
"""

from .router import router
from .service import PaymentsService
from .repository import PaymentsRepository

__all__ = [
    "router",
    "PaymentsService",
    "PaymentsRepository"
]
