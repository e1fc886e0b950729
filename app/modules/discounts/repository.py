from sqlalchemy.orm import Session
from typing import Optional
from datetime import datetime

from app.shared.database.models import Discount, Order
from app.shared.schemas.enums import DiscountStatus

class DiscountsRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_discount_by_id(self, discount_id: int) -> Optional[Discount]:
        return self.db.query(Discount).filter(Discount.id == discount_id).first()

    def create_discount(
        self,
        order: Order,
        percentage,
        discount_type: str,
        applied_by: int,
        reason: Optional[str] = None
    ) -> Discount:
        discount = Discount(
            percentage=percentage,
            type=discount_type,
            status=DiscountStatus.APPLIED.value,
            reason=reason,
            applied_by=applied_by,
            applied_at=datetime.now()
        )
        order.discounts.append(discount)
        self.db.flush()
        return discount

    def revoke_discount(self, discount: Discount, revoked_by: int) -> Discount:
        discount.status = DiscountStatus.REVOKED.value
        discount.revoked_by = revoked_by
        discount.revoked_at = datetime.now()
        self.db.flush()
        return discount
