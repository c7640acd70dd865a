"""
Store over the Supabase REST API.

Each method is one PostgREST request; there is no cross-request transaction,
so transaction() only logs the sequence boundaries. A failure part way
through checkout leaves the earlier writes in place.
"""
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional

from storefront.errors import RemoteCallError
from storefront.utils.logger import get_logger
from storefront.utils.supabase_client import SupabaseClient

logger = get_logger("data.supabase_store")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class SupabaseStore:

    def __init__(self, client: SupabaseClient):
        self.client = client

    @classmethod
    def from_credentials(cls, url: str, key: str) -> "SupabaseStore":
        return cls(SupabaseClient(url, key))

    @contextmanager
    def transaction(self) -> Iterator["SupabaseStore"]:
        logger.info("supabase_store: sequence=start")
        try:
            yield self
        except Exception:
            logger.error("supabase_store: sequence=aborted (earlier writes are kept)")
            raise
        logger.info("supabase_store: sequence=done")

    # Catalog

    def products_by_category(self, category_id: str) -> List[Dict[str, Any]]:
        return self.client.select("products", {"category_id": category_id}, order="created_at.desc")

    def variants_for_product(self, product_id: str) -> List[Dict[str, Any]]:
        return self.client.select("product_variants", {"product_id": product_id}, order="position.asc")

    def replace_variants(self, product_id: str, rows: List[Dict[str, Any]]) -> None:
        self.client.delete("product_variants", {"product_id": product_id})
        if rows:
            self.client.insert(
                "product_variants",
                [{**row, "product_id": product_id, "position": index} for index, row in enumerate(rows)],
            )
        logger.info(f"supabase_store: method=replace_variants product_id={product_id} count={len(rows)}")

    # Discount keys

    def discount_key_for_tier(self, tier: str) -> Optional[Dict[str, Any]]:
        return self.client.select_one("discount_keys", {"type": tier, "is_active": True})

    def discount_usage_exists(self, code: str) -> bool:
        return self.client.select_one("discount_keys_usage", {"code": code}, select="id") is not None

    def record_discount_usage(self, code: str, user_id: str, partner_id: str, discount_key_id: str) -> None:
        self.client.insert("discount_keys_usage", {
            "code": code,
            "user_id": user_id,
            "partner_id": partner_id,
            "discount_key_id": discount_key_id,
        })

    # Profiles

    def get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        return self.client.select_one("profiles", {"id": user_id})

    def find_partner_by_suffix(self, suffix: str) -> Optional[Dict[str, Any]]:
        return self.client.select_one(
            "profiles", {"user_identifier": f"ilike.*{suffix}"}, select="id,share_discount_key,user_identifier"
        )

    def increment_discount_attempts(self, user_id: str) -> int:
        profile = self.client.select_one("profiles", {"id": user_id}, select="login_attempts")
        attempts = int((profile or {}).get("login_attempts") or 0) + 1
        self.client.update("profiles", {"id": user_id}, {"login_attempts": attempts})
        return attempts

    def update_profile(self, user_id: str, values: Dict[str, Any]) -> None:
        self.client.update("profiles", {"id": user_id}, values)

    # Gift cards

    def find_gift_card(self, code: str) -> Optional[Dict[str, Any]]:
        return self.client.select_one("gift_cards", {"code": code})

    def insert_gift_card(self, row: Dict[str, Any]) -> Dict[str, Any]:
        stored = self.client.insert("gift_cards", row)
        return stored[0] if stored else row

    def mark_gift_card_used(self, card_id: str, order_id: str) -> None:
        self.client.update("gift_cards", {"id": card_id}, {
            "is_used": True,
            "order_id": order_id,
            "updated_at": _now_iso(),
        })

    def insert_gift_card_transaction(self, row: Dict[str, Any]) -> None:
        self.client.insert("gift_card_transactions", row)

    # Orders

    def insert_order(self, row: Dict[str, Any]) -> Dict[str, Any]:
        stored = self.client.insert("orders", row)
        if not stored:
            raise RemoteCallError("insert orders", "no row returned")
        logger.info(f"supabase_store: method=insert_order user_id={row.get('user_id')}")
        return stored[0]

    def insert_order_items(self, rows: List[Dict[str, Any]]) -> None:
        if rows:
            self.client.insert("order_items", rows)
