from sqlalchemy.orm import Session, selectinload
from sqlalchemy import desc
from typing import List, Optional
import logging

from app.shared.database.models import Order, Client

logger = logging.getLogger(__name__)

class OrdersRepository:
    def __init__(self, db: Session):
        self.db = db

    def _with_ledgers(self, query):
        return query.options(
            selectinload(Order.items),
            selectinload(Order.discounts),
            selectinload(Order.payments)
        )

    def get_order_by_id(self, order_id: int) -> Optional[Order]:
        return self._with_ledgers(self.db.query(Order)).filter(Order.id == order_id).first()

    def get_order_for_update(self, order_id: int) -> Optional[Order]:
        """
        Obtener pedido con bloqueo exclusivo de fila.

        Todas las mutaciones del pedido (descuentos, pagos, surtido, estado)
        pasan por aquí antes de leer-modificar-escribir.
        """
        return self._with_ledgers(self.db.query(Order)).filter(
            Order.id == order_id
        ).populate_existing().with_for_update().first()  # ⚠️ LOCK por pedido

    def list_orders(
        self,
        client_ids: Optional[List[int]] = None,
        status: Optional[str] = None,
        limit: int = 100
    ) -> List[Order]:
        query = self._with_ledgers(self.db.query(Order))
        if client_ids is not None:
            query = query.filter(Order.client_id.in_(client_ids))
        if status:
            query = query.filter(Order.status == status)
        return query.order_by(desc(Order.order_date), desc(Order.id)).limit(limit).all()

    def get_client_orders(self, client_id: int) -> List[Order]:
        return self._with_ledgers(self.db.query(Order)).filter(
            Order.client_id == client_id
        ).order_by(Order.order_date, Order.id).all()

    def create_order(self, order: Order) -> Order:
        self.db.add(order)
        self.db.flush()
        return order

    def touch(self, order: Order) -> None:
        """Marcar una mutación del pedido incrementando su revisión"""
        order.revision = (order.revision or 0) + 1

    # ===== CLIENTES =====

    def get_client(self, client_id: int) -> Optional[Client]:
        return self.db.query(Client).filter(Client.id == client_id).first()

    def get_client_ids_for_actor(self, vendor_id: Optional[int] = None, user_id: Optional[int] = None) -> List[int]:
        query = self.db.query(Client.id)
        if vendor_id is not None:
            query = query.filter(Client.vendor_id == vendor_id)
        if user_id is not None:
            query = query.filter(Client.user_id == user_id)
        return [row.id for row in query.all()]
