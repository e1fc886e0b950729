# app/api/v1/router.py
from fastapi import APIRouter
from app.modules.orders.router import router as orders_router
from app.modules.promotions.router import router as promotions_router
from app.modules.discounts.router import router as discounts_router
from app.modules.discounts.router import owner_router as owner_discounts_router
from app.modules.payments.router import router as payments_router
from app.modules.balances.router import router as balances_router

# Crear router principal de la API v1
api_router = APIRouter()

api_router.include_router(
    orders_router,
    prefix="/orders",
    tags=["Orders"]
)

api_router.include_router(
    promotions_router,
    prefix="/promotions",
    tags=["Promotions"]
)

api_router.include_router(
    discounts_router,
    prefix="/discounts",
    tags=["Discounts"]
)

api_router.include_router(
    owner_discounts_router,
    prefix="/owner/discounts",
    tags=["Discounts"]
)

api_router.include_router(
    payments_router,
    prefix="/payments",
    tags=["Payments"]
)

api_router.include_router(
    balances_router,
    prefix="/balances",
    tags=["Balances"]
)

@api_router.get("/")
async def api_root():
    """Root endpoint de la API"""
    return {
        "message": "Pedidos B2B API v1",
        "status": "active",
        "docs": "/docs",
        "available_endpoints": {
            "orders": "/api/v1/orders",
            "promotions": "/api/v1/promotions",
            "discounts": "/api/v1/discounts",
            "owner_discounts": "/api/v1/owner/discounts",
            "payments": "/api/v1/payments",
            "balances": "/api/v1/balances"
        }
    }

@api_router.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "service": "Pedidos B2B API",
        "architecture": "modular_monolith",
        "modules": {
            "orders": {"status": "active", "features": ["Creación con promociones", "Transiciones de estado"]},
            "promotions": {"status": "active", "features": ["PACK", "BUY_GET_FREE", "Surtido"]},
            "discounts": {"status": "active", "features": ["Predefinidos", "Personalizados", "Owner", "Revocación"]},
            "payments": {"status": "active", "features": ["Abonos", "Descuento por pago", "Anulación"]},
            "balances": {"status": "active", "features": ["Saldo por cliente", "Cupo de crédito", "Saldo inicial"]}
        }
    }
