from sqlalchemy.orm import Session
from typing import Optional
from datetime import datetime

from app.shared.database.models import Order, Payment

class PaymentsRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_payment_by_id(self, payment_id: int) -> Optional[Payment]:
        return self.db.query(Payment).filter(Payment.id == payment_id).first()

    def create_payment(self, order: Order, payment_data: dict, registered_by: int) -> Payment:
        payment = Payment(
            payment_date=datetime.now(),
            registered_by=registered_by,
            **payment_data
        )
        order.payments.append(payment)
        self.db.flush()
        return payment

    def delete_payment(self, order: Order, payment: Payment) -> None:
        order.payments.remove(payment)
        self.db.flush()
