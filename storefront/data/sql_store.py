"""
Store over a direct database connection (DATABASE_URL) with SQLAlchemy.

Outside transaction() every method runs in its own short session. Inside
transaction() all methods share one session, committed when the block exits
and rolled back if it raises, so checkout writes all or nothing.
"""
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy import DateTime, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from storefront.data.database import create_schema, make_engine, make_session_factory
from storefront.data.models import (
    DiscountKey,
    DiscountKeyUsage,
    GiftCard,
    GiftCardTransaction,
    Order,
    OrderItem,
    Product,
    ProductVariant,
    Profile,
)
from storefront.errors import RemoteCallError
from storefront.utils.logger import get_logger

logger = get_logger("data.sql_store")


def _to_row(obj) -> Dict[str, Any]:
    row = {}
    for column in obj.__table__.columns:
        value = getattr(obj, column.key)
        if isinstance(value, Decimal):
            value = float(value)
        row[column.name] = value
    return row


def _to_model(model, values: Dict[str, Any]):
    """Build a model instance from a row dict, parsing ISO datetimes and dropping unknown keys."""
    columns = {column.name: column for column in model.__table__.columns}
    kwargs = {}
    for name, value in values.items():
        column = columns.get(name)
        if column is None:
            logger.debug(f"sql_store: ignoring unknown column {model.__tablename__}.{name}")
            continue
        if isinstance(column.type, DateTime) and isinstance(value, str):
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        kwargs[column.key] = value
    return model(**kwargs)


class SQLStore:

    def __init__(self, session_factory: sessionmaker):
        self.Session = session_factory
        self._session: Optional[Session] = None

    @classmethod
    def from_url(cls, database_url: str, create_tables: bool = False) -> "SQLStore":
        engine = make_engine(database_url)
        if create_tables:
            create_schema(engine)
        return cls(make_session_factory(engine))

    @contextmanager
    def _use(self, operation: str) -> Iterator[Session]:
        """Current transaction's session, or a fresh one committed on exit."""
        if self._session is not None:
            try:
                yield self._session
                self._session.flush()
            except SQLAlchemyError as e:
                logger.error(f"sql_store: method={operation} result=error error={e}")
                raise RemoteCallError(operation, str(e)) from e
            return
        session = self.Session()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"sql_store: method={operation} result=error error={e}")
            raise RemoteCallError(operation, str(e)) from e
        finally:
            session.close()

    @contextmanager
    def transaction(self) -> Iterator["SQLStore"]:
        if self._session is not None:
            # Nested blocks join the outer transaction
            yield self
            return
        session = self.Session()
        self._session = session
        try:
            yield self
            session.commit()
            logger.info("sql_store: transaction=committed")
        except Exception:
            session.rollback()
            logger.error("sql_store: transaction=rolled_back")
            raise
        finally:
            self._session = None
            session.close()

    # Catalog

    def products_by_category(self, category_id: str) -> List[Dict[str, Any]]:
        with self._use("products_by_category") as s:
            rows = s.scalars(select(Product).where(Product.category_id == category_id)).all()
            return [_to_row(r) for r in rows]

    def variants_for_product(self, product_id: str) -> List[Dict[str, Any]]:
        with self._use("variants_for_product") as s:
            rows = s.scalars(
                select(ProductVariant).where(ProductVariant.product_id == product_id).order_by(ProductVariant.position)
            ).all()
            return [_to_row(r) for r in rows]

    def replace_variants(self, product_id: str, rows: List[Dict[str, Any]]) -> None:
        with self._use("replace_variants") as s:
            for existing in s.scalars(select(ProductVariant).where(ProductVariant.product_id == product_id)):
                s.delete(existing)
            s.flush()
            s.add_all(
                _to_model(ProductVariant, {**row, "product_id": product_id, "position": index})
                for index, row in enumerate(rows)
            )
        logger.info(f"sql_store: method=replace_variants product_id={product_id} count={len(rows)}")

    # Discount keys

    def discount_key_for_tier(self, tier: str) -> Optional[Dict[str, Any]]:
        with self._use("discount_key_for_tier") as s:
            key = s.scalars(
                select(DiscountKey).where(DiscountKey.type == tier, DiscountKey.is_active.is_(True)).limit(1)
            ).first()
            return _to_row(key) if key else None

    def discount_usage_exists(self, code: str) -> bool:
        with self._use("discount_usage_exists") as s:
            count = s.scalar(select(func.count()).select_from(DiscountKeyUsage).where(DiscountKeyUsage.code == code))
            return bool(count)

    def record_discount_usage(self, code: str, user_id: str, partner_id: str, discount_key_id: str) -> None:
        with self._use("record_discount_usage") as s:
            s.add(DiscountKeyUsage(code=code, user_id=user_id, partner_id=partner_id, discount_key_id=discount_key_id))

    # Profiles

    def get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        with self._use("get_profile") as s:
            profile = s.get(Profile, user_id)
            return _to_row(profile) if profile else None

    def find_partner_by_suffix(self, suffix: str) -> Optional[Dict[str, Any]]:
        with self._use("find_partner_by_suffix") as s:
            partner = s.scalars(
                select(Profile).where(Profile.user_identifier.ilike(f"%{suffix}")).limit(1)
            ).first()
            return _to_row(partner) if partner else None

    def increment_discount_attempts(self, user_id: str) -> int:
        with self._use("increment_discount_attempts") as s:
            profile = s.get(Profile, user_id)
            if profile is None:
                return 0
            profile.login_attempts = (profile.login_attempts or 0) + 1
            return profile.login_attempts

    def update_profile(self, user_id: str, values: Dict[str, Any]) -> None:
        with self._use("update_profile") as s:
            profile = s.get(Profile, user_id)
            if profile is None:
                return
            parsed = _to_model(Profile, values)
            for column in Profile.__table__.columns:
                if column.name in values:
                    setattr(profile, column.key, getattr(parsed, column.key))

    # Gift cards

    def find_gift_card(self, code: str) -> Optional[Dict[str, Any]]:
        with self._use("find_gift_card") as s:
            card = s.scalars(select(GiftCard).where(GiftCard.code == code)).first()
            return _to_row(card) if card else None

    def insert_gift_card(self, row: Dict[str, Any]) -> Dict[str, Any]:
        with self._use("insert_gift_card") as s:
            card = _to_model(GiftCard, row)
            s.add(card)
            s.flush()
            return _to_row(card)

    def mark_gift_card_used(self, card_id: str, order_id: str) -> None:
        with self._use("mark_gift_card_used") as s:
            card = s.get(GiftCard, card_id)
            if card is None:
                raise RemoteCallError("mark_gift_card_used", f"gift card {card_id} not found")
            card.is_used = True
            card.order_id = order_id
            card.updated_at = datetime.now(timezone.utc)

    def insert_gift_card_transaction(self, row: Dict[str, Any]) -> None:
        with self._use("insert_gift_card_transaction") as s:
            s.add(_to_model(GiftCardTransaction, row))

    # Orders

    def insert_order(self, row: Dict[str, Any]) -> Dict[str, Any]:
        with self._use("insert_order") as s:
            order = _to_model(Order, row)
            s.add(order)
            s.flush()
            logger.info(f"sql_store: method=insert_order order_id={order.id}")
            return _to_row(order)

    def insert_order_items(self, rows: List[Dict[str, Any]]) -> None:
        with self._use("insert_order_items") as s:
            s.add_all(_to_model(OrderItem, row) for row in rows)
