"""
SQLAlchemy models for the storefront tables.

Column names follow the Supabase schema so rows read here and rows returned
by the REST API have the same keys.
"""
import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, JSON, Numeric, String, Text
from sqlalchemy.sql import func

from storefront.data.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class Product(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(Text, nullable=False)
    sku = Column(String(100), index=True)
    price = Column(Numeric(10, 2), nullable=False)
    sale_price = Column(Numeric(10, 2), nullable=True)
    stock_quantity = Column(Integer, default=0)
    category_id = Column(String(36), index=True)
    attributes = Column(JSON, nullable=True)      # attribute groups
    metadata_ = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class ProductVariant(Base):
    __tablename__ = "product_variants"

    id = Column(String(36), primary_key=True, default=_uuid)
    product_id = Column(String(36), ForeignKey("products.id", ondelete="CASCADE"), index=True, nullable=False)
    sku = Column(String(120), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    sale_price = Column(Numeric(10, 2), nullable=True)
    stock_quantity = Column(Integer, default=0)
    attributes = Column(JSON, nullable=False, default=dict)
    position = Column(Integer, nullable=False, default=0)  # generation order


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=_uuid)
    email = Column(Text, nullable=True)
    first_name = Column(Text, nullable=True)
    last_name = Column(Text, nullable=True)
    phone = Column(Text, nullable=True)
    user_identifier = Column(String(20), index=True)
    purchases_count = Column(Integer, default=0)
    login_attempts = Column(Integer, default=0)
    share_discount_key = Column(Boolean, default=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)


class DiscountKey(Base):
    __tablename__ = "discount_keys"

    code = Column(String(50), primary_key=True)
    type = Column(String(10), nullable=False)          # silver | bronze | gold
    percentage = Column(Integer, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)


class DiscountKeyUsage(Base):
    __tablename__ = "discount_keys_usage"

    id = Column(String(36), primary_key=True, default=_uuid)
    code = Column(String(8), nullable=False, unique=True)
    user_id = Column(String(36), nullable=True)
    partner_id = Column(String(36), nullable=True)
    discount_key_id = Column(String(50), ForeignKey("discount_keys.code"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), index=True)
    total_amount = Column(Numeric(10, 2), nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    shipping_address = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=_uuid)
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), index=True, nullable=False)
    product_name = Column(Text, nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    size = Column(String(20), nullable=True)
    color = Column(String(50), nullable=True)


class GiftCard(Base):
    __tablename__ = "gift_cards"

    id = Column(String(36), primary_key=True, default=_uuid)
    code = Column(String(20), unique=True, nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    recipient_email = Column(Text, nullable=False)
    sender_id = Column(String(36), nullable=True)
    message = Column(Text, nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    is_used = Column(Boolean, nullable=False, default=False)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=True)
    payment_metadata = Column(JSON, nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)


class GiftCardTransaction(Base):
    __tablename__ = "gift_card_transactions"

    id = Column(String(36), primary_key=True, default=_uuid)
    gift_card_id = Column(String(36), ForeignKey("gift_cards.id"), nullable=False)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False)
    amount_used = Column(Numeric(10, 2), nullable=False)
    created_by = Column(String(36), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
