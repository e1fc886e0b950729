# app/modules/balances/__init__.py
"""
Módulo de Saldos - Cartera de Clientes

- Saldo agregado por cliente desde pedidos, descuentos y pagos
- Cupo de crédito y verificación al crear pedidos
- Saldo inicial de una sola vez

Arquitectura:
- router.py: Endpoints de saldos
- service.py: Agregación y reglas de crédito
- repository.py: Acceso a datos de saldos
- schemas.py: Modelos de response
"""

from .router import router
from .service import BalancesService
from .repository import BalancesRepository

__all__ = [
    "router",
    "BalancesService",
    "BalancesRepository"
]
