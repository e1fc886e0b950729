from typing import Dict, Iterable, List, Tuple
from sqlalchemy.orm import Session
import logging

from app.core.errors import NotFoundError, ValidationError, InsufficientStockError
from app.shared.database.models import Product

logger = logging.getLogger(__name__)

class InventoryService:
    """Consultas de catálogo y stock que comparten pedidos y promociones"""

    @staticmethod
    def get_products(db: Session, product_ids: Iterable[int]) -> Dict[int, Product]:
        ids = set(product_ids)
        if not ids:
            return {}
        products = db.query(Product).filter(Product.id.in_(ids)).all()
        return {product.id: product for product in products}

    @staticmethod
    def require_active_products(db: Session, product_ids: Iterable[int]) -> Dict[int, Product]:
        """
        Obtener productos validando que todos existan y estén activos.

        Raises:
            NotFoundError: si algún producto no existe
            ValidationError: si algún producto está inactivo
        """
        ids = list(dict.fromkeys(product_ids))
        products = InventoryService.get_products(db, ids)

        missing = [product_id for product_id in ids if product_id not in products]
        if missing:
            raise NotFoundError("Producto", missing[0] if len(missing) == 1 else missing)

        inactive = [product_id for product_id in ids if not products[product_id].active]
        if inactive:
            raise ValidationError(
                f"Productos inactivos: {inactive}",
                {"inactive_product_ids": inactive}
            )

        return products

    @staticmethod
    def validate_stock(
        products: Dict[int, Product],
        requested: List[Tuple[int, int]]
    ) -> None:
        """
        Validar que cada producto tenga stock para la cantidad pedida.

        Las cantidades del mismo producto se acumulan antes de comparar.
        Todas las líneas se revisan antes de fallar para reportarlas juntas.
        """
        totals: Dict[int, int] = {}
        for product_id, quantity in requested:
            totals[product_id] = totals.get(product_id, 0) + quantity

        unavailable = []
        for product_id, quantity in totals.items():
            product = products[product_id]
            if quantity > (product.stock or 0):
                unavailable.append({
                    "product_id": product_id,
                    "product_name": product.name,
                    "requested": quantity,
                    "available": product.stock or 0
                })

        if unavailable:
            logger.warning(f"Stock insuficiente: {unavailable}")
            names = ", ".join(
                f"{line['product_name']} (pedido {line['requested']}, disponible {line['available']})"
                for line in unavailable
            )
            raise InsufficientStockError(
                f"Stock insuficiente: {names}",
                {"lines": unavailable}
            )
