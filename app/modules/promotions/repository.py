from sqlalchemy.orm import Session, selectinload
from sqlalchemy import and_, or_, desc
from typing import List, Optional
from datetime import datetime

from app.shared.database.models import Promotion, PromotionGiftItem, OrderItem

class PromotionsRepository:
    def __init__(self, db: Session):
        self.db = db

    # ===== PROMOCIONES =====

    def get_promotion_by_id(self, promotion_id: int) -> Optional[Promotion]:
        return self.db.query(Promotion).options(
            selectinload(Promotion.gift_items).selectinload(PromotionGiftItem.product),
            selectinload(Promotion.main_product)
        ).filter(Promotion.id == promotion_id).first()

    def get_all_promotions(self) -> List[Promotion]:
        return self.db.query(Promotion).options(
            selectinload(Promotion.gift_items).selectinload(PromotionGiftItem.product),
            selectinload(Promotion.main_product)
        ).order_by(desc(Promotion.created_at), desc(Promotion.id)).all()

    def get_valid_promotions(self, now: datetime) -> List[Promotion]:
        """Promociones activas cuya vigencia (inclusiva) contiene `now`"""
        return self.db.query(Promotion).options(
            selectinload(Promotion.gift_items).selectinload(PromotionGiftItem.product),
            selectinload(Promotion.main_product)
        ).filter(
            and_(
                Promotion.active == True,
                or_(Promotion.valid_from.is_(None), Promotion.valid_from <= now),
                or_(Promotion.valid_until.is_(None), Promotion.valid_until >= now)
            )
        ).order_by(Promotion.id).all()

    def create_promotion(self, promotion_data: dict, gift_items: List[dict]) -> Promotion:
        """Crear promoción con sus regalos (sin commit)"""
        promotion = Promotion(**promotion_data)
        for position, gift in enumerate(gift_items):
            promotion.gift_items.append(PromotionGiftItem(
                product_id=gift['product_id'],
                quantity=gift['quantity'],
                position=position
            ))
        self.db.add(promotion)
        self.db.flush()
        return promotion

    def replace_promotion(self, promotion: Promotion, promotion_data: dict, gift_items: List[dict]) -> Promotion:
        for key, value in promotion_data.items():
            setattr(promotion, key, value)
        promotion.gift_items.clear()
        self.db.flush()
        for position, gift in enumerate(gift_items):
            promotion.gift_items.append(PromotionGiftItem(
                product_id=gift['product_id'],
                quantity=gift['quantity'],
                position=position
            ))
        self.db.flush()
        return promotion

    def delete_promotion(self, promotion: Promotion) -> None:
        self.db.delete(promotion)
        self.db.flush()

    def is_promotion_in_use(self, promotion_id: int) -> bool:
        return self.db.query(OrderItem.id).filter(
            OrderItem.promotion_id == promotion_id
        ).first() is not None

