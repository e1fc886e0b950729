# app/core/errors.py
"""
Errores de dominio del motor de promociones y liquidación.

Los servicios lanzan estas excepciones; la capa HTTP las traduce a
respuestas con `app.core.middleware.setup_exception_handlers`.

Taxonomía:
- ValidationError (400): entrada mal formada o fuera de rango
- ConflictError (409): la operación viola una regla de negocio del estado actual
- NotFoundError (404): entidad inexistente
- AuthorizationError (403): rol no autorizado para la operación
"""

from typing import Any, Dict, Optional


class EngineError(Exception):
    """Base de todos los errores de dominio"""
    status_code = 500
    error_code = "engine_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": False,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details
        }


# ==================== CATEGORÍAS ====================

class ValidationError(EngineError):
    status_code = 400
    error_code = "validation_error"


class ConflictError(EngineError):
    status_code = 409
    error_code = "conflict"


class NotFoundError(EngineError):
    status_code = 404
    error_code = "not_found"

    def __init__(self, entity: str, entity_id: Any, message: Optional[str] = None):
        super().__init__(
            message or f"{entity} {entity_id} no encontrado",
            {"entity": entity, "id": entity_id}
        )
        self.entity = entity
        self.entity_id = entity_id


class AuthorizationError(EngineError):
    status_code = 403
    error_code = "forbidden"


# ==================== VALIDACIÓN ====================

class InvalidAmountError(ValidationError):
    error_code = "invalid_amount"


class InvalidPercentageError(ValidationError):
    error_code = "invalid_percentage"


class AssortmentQuantityMismatchError(ValidationError):
    error_code = "assortment_quantity_mismatch"


class InsufficientStockError(ValidationError):
    error_code = "insufficient_stock"


# ==================== CONFLICTOS ====================

class DiscountAlreadyAppliedError(ConflictError):
    error_code = "discount_already_applied"


class PromotionStackingViolationError(ConflictError):
    error_code = "promotion_stacking_violation"


class AlreadySetError(ConflictError):
    error_code = "already_set"


class InvalidStateError(ConflictError):
    error_code = "invalid_state"


class CreditLimitExceededError(ConflictError):
    error_code = "credit_limit_exceeded"


# ==================== NO ENCONTRADO ====================

class DiscountNotFoundError(NotFoundError):
    error_code = "discount_not_found"

    def __init__(self, discount_id: Any):
        super().__init__("Descuento", discount_id)
