# app/shared/database/models.py
from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Date, Text,
    Numeric, ForeignKey, CheckConstraint, func
)
from sqlalchemy.orm import relationship

from app.config.database import Base

# =====================================================
# MIXIN PARA TIMESTAMPS
# =====================================================
class TimestampMixin:
    """Mixin que agrega campos created_at y updated_at"""
    created_at = Column(DateTime, nullable=False, server_default=func.current_timestamp())
    updated_at = Column(DateTime, nullable=False, server_default=func.current_timestamp(), onupdate=func.current_timestamp())


# =====================================================
# CATÁLOGO Y CLIENTES (proyección de servicios externos)
# =====================================================

class Product(Base, TimestampMixin):
    """Producto del catálogo"""
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    price = Column(Numeric(12, 2), nullable=False, default=0)
    stock = Column(Integer, nullable=False, default=0)
    active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint('stock >= 0', name='ck_products_stock_non_negative'),
    )


class Client(Base, TimestampMixin):
    """Cliente B2B"""
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    # Vendedor dueño de la cuenta
    vendor_id = Column(Integer, nullable=True, index=True)
    # Usuario con rol CLIENTE asociado a la cuenta
    user_id = Column(Integer, nullable=True, index=True)
    active = Column(Boolean, nullable=False, default=True)

    orders = relationship("Order", back_populates="client")
    balance = relationship("ClientBalance", back_populates="client", uselist=False)


# =====================================================
# PROMOCIONES
# =====================================================

class Promotion(Base, TimestampMixin):
    """Promoción PACK (regalos fijos) o BUY_GET_FREE (surtido variable)"""
    __tablename__ = "promotions"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    type = Column(String(20), nullable=False)
    buy_quantity = Column(Integer, nullable=False)
    main_product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    free_quantity = Column(Integer, nullable=False, default=0)
    pack_price = Column(Numeric(12, 2))
    allow_stack_with_discounts = Column(Boolean, nullable=False, default=False)
    active = Column(Boolean, nullable=False, default=True)
    valid_from = Column(DateTime)
    valid_until = Column(DateTime)
    created_by_user_id = Column(Integer)

    __table_args__ = (
        CheckConstraint("type IN ('PACK', 'BUY_GET_FREE')", name='ck_promotions_type'),
        CheckConstraint('buy_quantity > 0', name='ck_promotions_buy_quantity'),
    )

    main_product = relationship("Product")
    gift_items = relationship(
        "PromotionGiftItem",
        back_populates="promotion",
        cascade="all, delete-orphan",
        order_by="PromotionGiftItem.position"
    )

    @property
    def requires_assortment_selection(self) -> bool:
        return self.type == "BUY_GET_FREE"


class PromotionGiftItem(Base):
    """Regalo fijo de una promoción PACK"""
    __tablename__ = "promotion_gift_items"

    id = Column(Integer, primary_key=True, index=True)
    promotion_id = Column(Integer, ForeignKey("promotions.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    position = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint('quantity > 0', name='ck_gift_items_quantity'),
    )

    promotion = relationship("Promotion", back_populates="gift_items")
    product = relationship("Product")


# =====================================================
# PEDIDOS
# =====================================================

class Order(Base, TimestampMixin):
    """Pedido de un cliente"""
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    vendor_id = Column(Integer, index=True)
    order_date = Column(DateTime, nullable=False, server_default=func.current_timestamp())
    status = Column(String(40), nullable=False, default='PENDIENTE', index=True)
    total = Column(Numeric(12, 2), nullable=False, default=0)
    notes = Column(Text)
    # Se incrementa en cada mutación del pedido, sus descuentos o sus pagos
    revision = Column(Integer, nullable=False, default=0)

    client = relationship("Client", back_populates="orders")
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.position"
    )
    discounts = relationship(
        "Discount",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="Discount.id"
    )
    payments = relationship(
        "Payment",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="Payment.id"
    )


class OrderItem(Base):
    """Línea de pedido"""
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    # NULL para el marcador de surtido pendiente
    product_id = Column(Integer, ForeignKey("products.id"))
    product_name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False, default=0)
    subtotal = Column(Numeric(12, 2), nullable=False, default=0)
    out_of_stock = Column(Boolean, nullable=False, default=False)
    is_promotion_item = Column(Boolean, nullable=False, default=False)
    is_free_item = Column(Boolean, nullable=False, default=False)
    assortment_completed = Column(Boolean, nullable=False, default=True)
    promotion_id = Column(Integer, ForeignKey("promotions.id"), index=True)
    estimated_arrival_date = Column(Date)
    estimated_arrival_note = Column(Text)

    order = relationship("Order", back_populates="items")
    promotion = relationship("Promotion")

    @property
    def is_pending_assortment(self) -> bool:
        return self.is_promotion_item and not self.assortment_completed


# =====================================================
# LIBRO DE DESCUENTOS Y PAGOS
# =====================================================

class Discount(Base):
    """Evento de descuento sobre un pedido (nunca se reactiva)"""
    __tablename__ = "discounts"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    percentage = Column(Numeric(5, 2), nullable=False)
    type = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False, default='APPLIED')
    reason = Column(Text)
    applied_by = Column(Integer, nullable=False)
    applied_at = Column(DateTime, nullable=False, server_default=func.current_timestamp())
    revoked_by = Column(Integer)
    revoked_at = Column(DateTime)

    __table_args__ = (
        CheckConstraint('percentage > 0 AND percentage <= 100', name='ck_discounts_percentage'),
        CheckConstraint("status IN ('APPLIED', 'REVOKED')", name='ck_discounts_status'),
    )

    order = relationship("Order", back_populates="discounts")


class Payment(Base):
    """Abono registrado contra un pedido"""
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    payment_date = Column(DateTime, nullable=False, server_default=func.current_timestamp())
    within_deadline = Column(Boolean, nullable=False, default=True)
    # Porcentaje local al pago, no toca el libro de descuentos
    discount_applied = Column(Numeric(5, 2))
    notes = Column(Text)
    registered_by = Column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint('amount > 0', name='ck_payments_amount_positive'),
    )

    order = relationship("Order", back_populates="payments")


# =====================================================
# SALDOS DE CLIENTE
# =====================================================

class ClientBalance(Base, TimestampMixin):
    """Campos del saldo que el owner puede fijar; el resto se deriva"""
    __tablename__ = "client_balances"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, unique=True)
    credit_limit = Column(Numeric(12, 2))
    initial_balance = Column(Numeric(12, 2), nullable=False, default=0)
    initial_balance_set = Column(Boolean, nullable=False, default=False)
    initial_balance_set_by = Column(Integer)
    initial_balance_set_at = Column(DateTime)

    client = relationship("Client", back_populates="balance")
