from sqlalchemy.orm import Session, selectinload
from typing import List, Optional

from app.shared.database.models import Client, ClientBalance, Order

class BalancesRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_client(self, client_id: int) -> Optional[Client]:
        return self.db.query(Client).filter(Client.id == client_id).first()

    def get_clients(self, vendor_id: Optional[int] = None) -> List[Client]:
        query = self.db.query(Client).filter(Client.active == True)
        if vendor_id is not None:
            query = query.filter(Client.vendor_id == vendor_id)
        return query.order_by(Client.name, Client.id).all()

    def get_balance(self, client_id: int) -> Optional[ClientBalance]:
        return self.db.query(ClientBalance).filter(ClientBalance.client_id == client_id).first()

    def get_balance_for_update(self, client_id: int) -> ClientBalance:
        """Fila de saldo bloqueada; se crea si el cliente aún no tiene"""
        balance = self.db.query(ClientBalance).filter(
            ClientBalance.client_id == client_id
        ).populate_existing().with_for_update().first()

        if balance is None:
            balance = ClientBalance(client_id=client_id, initial_balance=0, initial_balance_set=False)
            self.db.add(balance)
            self.db.flush()
        return balance

    def get_client_orders(self, client_id: int) -> List[Order]:
        """Pedidos del cliente con sus libros de descuentos y pagos"""
        return self.db.query(Order).options(
            selectinload(Order.discounts),
            selectinload(Order.payments)
        ).filter(Order.client_id == client_id).order_by(Order.order_date, Order.id).all()
