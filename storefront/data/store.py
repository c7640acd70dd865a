"""
Storefront data stores.

Every backend exposes the same row-level operations (plain dicts in, plain
dicts out) used by the catalog, discount key, gift card and checkout code:

    InMemoryStore   development and tests
    SupabaseStore   Supabase REST API (storefront.data.supabase_store)
    SQLStore        direct Postgres through SQLAlchemy (storefront.data.sql_store)

get_store() picks one from the environment: DATABASE_URL first, then
SUPABASE_URL + key, else in-memory.
"""
from contextlib import contextmanager
import copy
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional, Protocol
import uuid

from storefront.core.config import StorefrontConfig, get_config
from storefront.utils.logger import get_logger

logger = get_logger("data.store")


class StorefrontStore(Protocol):
    # Catalog
    def products_by_category(self, category_id: str) -> List[Dict[str, Any]]: ...
    def variants_for_product(self, product_id: str) -> List[Dict[str, Any]]: ...
    def replace_variants(self, product_id: str, rows: List[Dict[str, Any]]) -> None: ...

    # Discount keys
    def discount_key_for_tier(self, tier: str) -> Optional[Dict[str, Any]]: ...
    def discount_usage_exists(self, code: str) -> bool: ...
    def record_discount_usage(self, code: str, user_id: str, partner_id: str, discount_key_id: str) -> None: ...

    # Profiles
    def get_profile(self, user_id: str) -> Optional[Dict[str, Any]]: ...
    def find_partner_by_suffix(self, suffix: str) -> Optional[Dict[str, Any]]: ...
    def increment_discount_attempts(self, user_id: str) -> int: ...
    def update_profile(self, user_id: str, values: Dict[str, Any]) -> None: ...

    # Gift cards
    def find_gift_card(self, code: str) -> Optional[Dict[str, Any]]: ...
    def insert_gift_card(self, row: Dict[str, Any]) -> Dict[str, Any]: ...
    def mark_gift_card_used(self, card_id: str, order_id: str) -> None: ...
    def insert_gift_card_transaction(self, row: Dict[str, Any]) -> None: ...

    # Orders
    def insert_order(self, row: Dict[str, Any]) -> Dict[str, Any]: ...
    def insert_order_items(self, rows: List[Dict[str, Any]]) -> None: ...

    def transaction(self): ...


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class InMemoryStore:
    """
    Dict-backed store.

    Tables are plain lists of row dicts, public so tests and the dev server
    can seed them. Each write applies immediately; transaction() groups
    nothing and rolls nothing back, like the REST store.
    """

    def __init__(self):
        self.products: List[Dict[str, Any]] = []
        self.product_variants: List[Dict[str, Any]] = []
        self.profiles: List[Dict[str, Any]] = []
        self.discount_keys: List[Dict[str, Any]] = []
        self.discount_keys_usage: List[Dict[str, Any]] = []
        self.gift_cards: List[Dict[str, Any]] = []
        self.gift_card_transactions: List[Dict[str, Any]] = []
        self.orders: List[Dict[str, Any]] = []
        self.order_items: List[Dict[str, Any]] = []

    @contextmanager
    def transaction(self) -> Iterator["InMemoryStore"]:
        yield self

    def products_by_category(self, category_id: str) -> List[Dict[str, Any]]:
        return [copy.deepcopy(p) for p in self.products if p.get("category_id") == category_id]

    def variants_for_product(self, product_id: str) -> List[Dict[str, Any]]:
        return [copy.deepcopy(v) for v in self.product_variants if v.get("product_id") == product_id]

    def replace_variants(self, product_id: str, rows: List[Dict[str, Any]]) -> None:
        self.product_variants = [v for v in self.product_variants if v.get("product_id") != product_id]
        self.product_variants.extend(
            {**copy.deepcopy(row), "product_id": product_id, "position": index} for index, row in enumerate(rows)
        )
        logger.info(f"Stored {len(rows)} variants for product {product_id}")

    def discount_key_for_tier(self, tier: str) -> Optional[Dict[str, Any]]:
        return next((dict(k) for k in self.discount_keys if k.get("type") == tier and k.get("is_active", True)), None)

    def discount_usage_exists(self, code: str) -> bool:
        return any(u.get("code") == code for u in self.discount_keys_usage)

    def record_discount_usage(self, code: str, user_id: str, partner_id: str, discount_key_id: str) -> None:
        self.discount_keys_usage.append({
            "id": str(uuid.uuid4()),
            "code": code,
            "user_id": user_id,
            "partner_id": partner_id,
            "discount_key_id": discount_key_id,
            "created_at": _now_iso(),
        })

    def _profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        return next((p for p in self.profiles if p.get("id") == user_id), None)

    def get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        profile = self._profile(user_id)
        return dict(profile) if profile else None

    def find_partner_by_suffix(self, suffix: str) -> Optional[Dict[str, Any]]:
        suffix = suffix.lower()
        partner = next((p for p in self.profiles if (p.get("user_identifier") or "").lower().endswith(suffix)), None)
        return dict(partner) if partner else None

    def increment_discount_attempts(self, user_id: str) -> int:
        profile = self._profile(user_id)
        if profile is None:
            return 0
        profile["login_attempts"] = int(profile.get("login_attempts") or 0) + 1
        return profile["login_attempts"]

    def update_profile(self, user_id: str, values: Dict[str, Any]) -> None:
        profile = self._profile(user_id)
        if profile is not None:
            profile.update(values)

    def find_gift_card(self, code: str) -> Optional[Dict[str, Any]]:
        card = next((c for c in self.gift_cards if c.get("code") == code), None)
        return dict(card) if card else None

    def insert_gift_card(self, row: Dict[str, Any]) -> Dict[str, Any]:
        stored = {"id": str(uuid.uuid4()), "created_at": _now_iso(), **copy.deepcopy(row)}
        self.gift_cards.append(stored)
        return dict(stored)

    def mark_gift_card_used(self, card_id: str, order_id: str) -> None:
        for card in self.gift_cards:
            if card.get("id") == card_id:
                card.update({"is_used": True, "order_id": order_id, "updated_at": _now_iso()})

    def insert_gift_card_transaction(self, row: Dict[str, Any]) -> None:
        self.gift_card_transactions.append({"id": str(uuid.uuid4()), "created_at": _now_iso(), **row})

    def insert_order(self, row: Dict[str, Any]) -> Dict[str, Any]:
        stored = {"id": str(uuid.uuid4()), "created_at": _now_iso(), **copy.deepcopy(row)}
        self.orders.append(stored)
        return dict(stored)

    def insert_order_items(self, rows: List[Dict[str, Any]]) -> None:
        self.order_items.extend({"id": str(uuid.uuid4()), **row} for row in rows)


_store = None


def get_store(config: Optional[StorefrontConfig] = None):
    """Return the process-wide store, creating it on first use."""
    global _store
    if _store is not None:
        return _store
    config = config or get_config()
    if config.database_url:
        from storefront.data.sql_store import SQLStore
        _store = SQLStore.from_url(config.database_url)
        logger.info("Using SQL store via DATABASE_URL")
    elif config.supabase_url and config.supabase_key:
        from storefront.data.supabase_store import SupabaseStore
        _store = SupabaseStore.from_credentials(config.supabase_url, config.supabase_key)
        logger.info("Using Supabase REST store")
    else:
        _store = InMemoryStore()
        logger.info("No backend configured, using in-memory store")
    return _store


def set_store(store) -> None:
    """Override the process-wide store (tests, dev server)."""
    global _store
    _store = store
