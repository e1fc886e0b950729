# app/shared/schemas/enums.py
from enum import Enum

class PromotionType(str, Enum):
    """Tipos de promoción"""
    PACK = "PACK"                   # Regalos fijos definidos en la promoción
    BUY_GET_FREE = "BUY_GET_FREE"   # Surtido: cantidad libre a elegir después

class OrderStatus(str, Enum):
    """Estados del pedido"""
    PENDIENTE = "PENDIENTE"
    PENDING_PROMOTION_COMPLETION = "PENDING_PROMOTION_COMPLETION"
    CONFIRMADO = "CONFIRMADO"
    COMPLETADO = "COMPLETADO"
    CANCELADO = "CANCELADO"

class DiscountType(str, Enum):
    PRESET_10 = "PRESET_10"
    PRESET_12 = "PRESET_12"
    PRESET_15 = "PRESET_15"
    CUSTOM = "CUSTOM"
    OWNER_ADDED = "OWNER_ADDED"

    @classmethod
    def preset_percentages(cls):
        return [int(t.value.split("_")[1]) for t in cls if t.value.startswith("PRESET_")]

    @classmethod
    def preset(cls, percentage: int) -> "DiscountType":
        return cls(f"PRESET_{percentage}")

class DiscountStatus(str, Enum):
    APPLIED = "APPLIED"
    REVOKED = "REVOKED"

# Estados en los que el pedido ya no admite cambios en su liquidación
CLOSED_ORDER_STATUSES = (OrderStatus.CANCELADO, OrderStatus.COMPLETADO)
