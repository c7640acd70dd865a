"""
Store backend tests: in-memory, SQL (SQLite in memory) and backend selection.
"""

from datetime import date, datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from sqlalchemy import func, select

from storefront.cart.discounts import DiscountKeyRedeemer
from storefront.catalog.attributes import AttributeGroup, ProductAttribute, make_value
from storefront.catalog.products import ProductDraft, ProductVariant
from storefront.catalog.variants import available_values, generate_variants
from storefront.checkout.flow import CheckoutStep
from storefront.checkout.service import CardDetails, CheckoutForm, CheckoutSession, ShippingAddress
from storefront.core.config import StorefrontConfig
from storefront.data.models import DiscountKey, GiftCard, GiftCardTransaction, Order, OrderItem, Profile
from storefront.data.sql_store import SQLStore
from storefront.data.store import InMemoryStore, get_store, set_store
from storefront.errors import RemoteCallError
from storefront.giftcards.cards import GiftCardPurchase, purchase_gift_card

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def sql_store():
    store = SQLStore.from_url("sqlite://", create_tables=True)
    session = store.Session()
    session.add_all([
        Profile(id="user-1", email="alice@example.com", user_identifier="12345678",
                purchases_count=2, login_attempts=0, share_discount_key=True),
        Profile(id="partner-1", email="bob@example.com", user_identifier="98764321",
                purchases_count=1, login_attempts=0, share_discount_key=True),
        DiscountKey(code="KEY-GOLD", type="gold", percentage=20, is_active=True),
        DiscountKey(code="KEY-SILVER", type="silver", percentage=5, is_active=False),
        GiftCard(id="gc-1", code="CHK-1111-2222", amount=50, recipient_email="alice@example.com",
                 expires_at=NOW + timedelta(days=200), is_used=False),
    ])
    session.commit()
    session.close()
    return store


def _count(store, model):
    session = store.Session()
    try:
        return session.scalar(select(func.count()).select_from(model))
    finally:
        session.close()


def _twelve_variant_rows():
    attribute = ProductAttribute(name="Taille", value=make_value("multiselect", [f"T{n}" for n in range(1, 13)]))
    draft = ProductDraft(sku="P", price=10.0, attribute_groups=(AttributeGroup(name="G", attributes=(attribute,)),))
    return [v.to_row() for v in generate_variants(draft, ["Taille"]).variants]


TWELVE_SKUS = [f"P-{n}" for n in range(1, 13)]


# ============================================================================
# In-memory store
# ============================================================================

class TestInMemoryStore:
    def test_replace_variants(self):
        store = InMemoryStore()
        store.replace_variants("p1", [{"sku": "A-1"}, {"sku": "A-2"}])
        store.replace_variants("p2", [{"sku": "B-1"}])
        store.replace_variants("p1", [{"sku": "A-9"}])
        assert [v["sku"] for v in store.variants_for_product("p1")] == ["A-9"]
        assert len(store.variants_for_product("p2")) == 1

    def test_variants_keep_generation_order(self):
        store = InMemoryStore()
        store.replace_variants("p1", _twelve_variant_rows())
        rows = store.variants_for_product("p1")
        assert [v["sku"] for v in rows] == TWELVE_SKUS
        assert [v["position"] for v in rows] == list(range(12))

    def test_reads_return_copies(self, store):
        profile = store.get_profile("user-1")
        profile["login_attempts"] = 99
        assert store.get_profile("user-1")["login_attempts"] == 0

    def test_partner_suffix_is_case_insensitive(self):
        store = InMemoryStore()
        store.profiles.append({"id": "p", "user_identifier": "ABCD12EF"})
        assert store.find_partner_by_suffix("12ef")["id"] == "p"

    def test_increment_unknown_profile(self, store):
        assert store.increment_discount_attempts("ghost") == 0

    def test_inactive_key_ignored(self, store):
        store.discount_keys[2]["is_active"] = False
        assert store.discount_key_for_tier("gold") is None

    def test_insert_order_assigns_id(self, store):
        order = store.insert_order({"user_id": "user-1", "total_amount": 10.0, "status": "completed"})
        assert order["id"]
        assert store.orders[0]["id"] == order["id"]


# ============================================================================
# SQL store
# ============================================================================

class TestSQLStore:
    def test_profile_and_attempts(self, sql_store):
        assert sql_store.get_profile("user-1")["email"] == "alice@example.com"
        assert sql_store.get_profile("ghost") is None
        assert sql_store.increment_discount_attempts("user-1") == 1
        assert sql_store.increment_discount_attempts("user-1") == 2
        assert sql_store.get_profile("user-1")["login_attempts"] == 2

    def test_update_profile_parses_timestamps(self, sql_store):
        sql_store.update_profile("user-1", {"first_name": "Alice", "updated_at": NOW.isoformat(), "unknown": 1})
        profile = sql_store.get_profile("user-1")
        assert profile["first_name"] == "Alice"
        assert profile["updated_at"] is not None

    def test_partner_lookup(self, sql_store):
        assert sql_store.find_partner_by_suffix("4321")["id"] == "partner-1"
        assert sql_store.find_partner_by_suffix("0000") is None

    def test_active_key_for_tier(self, sql_store):
        assert sql_store.discount_key_for_tier("gold")["code"] == "KEY-GOLD"
        assert sql_store.discount_key_for_tier("silver") is None

    def test_discount_key_redemption(self, sql_store):
        discount = DiscountKeyRedeemer(sql_store).redeem("user-1", "1234", "4321", "gold", "prod-A")
        assert discount.percentage == 20
        assert sql_store.discount_usage_exists("12344321")
        assert not sql_store.discount_usage_exists("12340000")

    def test_numeric_columns_come_back_as_float(self, sql_store):
        card = sql_store.find_gift_card("CHK-1111-2222")
        assert isinstance(card["amount"], float)
        assert card["amount"] == 50.0

    def test_variants_round_trip(self, sql_store):
        sql_store.replace_variants("p1", [
            {"sku": "ROBE01-2", "price": 49.9, "stock_quantity": 5, "attributes": {"Taille": "M"}},
            {"sku": "ROBE01-1", "price": 49.9, "stock_quantity": 5, "attributes": {"Taille": "S"}},
        ])
        sql_store.replace_variants("p1", [
            {"sku": "ROBE01-1", "price": 45.0, "stock_quantity": 2, "attributes": {"Taille": "S"}},
        ])
        rows = sql_store.variants_for_product("p1")
        assert len(rows) == 1
        assert rows[0]["price"] == 45.0
        assert rows[0]["attributes"] == {"Taille": "S"}

    def test_variants_keep_generation_order(self, sql_store):
        sql_store.replace_variants("p1", _twelve_variant_rows())
        rows = sql_store.variants_for_product("p1")
        assert [v["sku"] for v in rows] == TWELVE_SKUS
        variants = [ProductVariant.from_row(row) for row in rows]
        assert available_values(variants, "Taille") == [f"T{n}" for n in range(1, 13)]

    def test_gift_card_purchase_and_use(self, sql_store):
        card = purchase_gift_card(sql_store, "user-1", "alice@example.com",
                                  GiftCardPurchase(amount=100, recipient_email="bob@example.com"), now=NOW)
        row = sql_store.find_gift_card(card.code)
        assert row["payment_metadata"]["preset"] is True
        sql_store.mark_gift_card_used(card.id, "order-1")
        assert sql_store.find_gift_card(card.code)["is_used"] is True

    def test_mark_unknown_gift_card(self, sql_store):
        with pytest.raises(RemoteCallError):
            sql_store.mark_gift_card_used("nope", "order-1")

    def test_transaction_commits(self, sql_store):
        with sql_store.transaction():
            order = sql_store.insert_order({"user_id": "user-1", "total_amount": 12.5, "status": "completed"})
            sql_store.insert_order_items([{"order_id": order["id"], "product_name": "Top",
                                           "quantity": 1, "unit_price": 12.5}])
        assert _count(sql_store, Order) == 1
        assert _count(sql_store, OrderItem) == 1

    def test_transaction_rolls_back(self, sql_store):
        with pytest.raises(RemoteCallError):
            with sql_store.transaction():
                sql_store.insert_order({"user_id": "user-1", "total_amount": 12.5, "status": "completed"})
                sql_store.mark_gift_card_used("nope", "order-1")
        assert _count(sql_store, Order) == 0

    def test_constraint_violation_is_remote_error(self, sql_store):
        sql_store.record_discount_usage("12344321", "user-1", "partner-1", "KEY-GOLD")
        with pytest.raises(RemoteCallError):
            sql_store.record_discount_usage("12344321", "user-1", "partner-1", "KEY-GOLD")


class TestSQLCheckout:
    FORM = CheckoutForm(first_name="Alice", last_name="Martin", email="alice@example.com", phone="0612345678")
    ADDRESS = ShippingAddress(street="12 rue des Lilas", postal_code="75011", city="Paris")
    CARD = CardDetails(number="4242424242424242", holder="ALICE MARTIN", expiry="12/27", cvv="123")

    def _checkout(self, sql_store, sample_cart):
        checkout = CheckoutSession(store=sql_store, user_id="user-1", user_email="alice@example.com",
                                   cart=sample_cart)
        checkout.apply_gift_card("CHK-1111-2222", now=NOW)
        checkout.submit_form(self.FORM, self.ADDRESS)
        return checkout

    def test_order_written(self, sql_store, sample_cart):
        checkout = self._checkout(sql_store, sample_cart)
        flow = checkout.pay(self.CARD, today=date(2025, 6, 1))
        assert flow.step == CheckoutStep.CONFIRMATION
        assert _count(sql_store, Order) == 1
        assert _count(sql_store, OrderItem) == 2
        assert _count(sql_store, GiftCardTransaction) == 1
        card = sql_store.find_gift_card("CHK-1111-2222")
        assert card["is_used"] is True
        assert card["order_id"] == flow.order_id
        assert sql_store.get_profile("user-1")["last_name"] == "Martin"

    def test_failure_writes_nothing(self, sql_store, sample_cart):
        checkout = self._checkout(sql_store, sample_cart)
        with patch.object(sql_store, "insert_order_items",
                          side_effect=RemoteCallError("insert_order_items", "boom")):
            flow = checkout.pay(self.CARD, today=date(2025, 6, 1))
        assert flow.step == CheckoutStep.FORM
        assert _count(sql_store, Order) == 0
        assert _count(sql_store, GiftCardTransaction) == 0
        assert sql_store.find_gift_card("CHK-1111-2222")["is_used"] is False
        assert sql_store.get_profile("user-1")["last_name"] is None
        assert checkout.cart == sample_cart


# ============================================================================
# Backend selection
# ============================================================================

class TestGetStore:
    def test_defaults_to_memory(self):
        assert isinstance(get_store(StorefrontConfig()), InMemoryStore)

    def test_database_url_wins(self):
        config = StorefrontConfig(database_url="sqlite://", supabase_url="https://x.supabase.co", supabase_key="k")
        assert isinstance(get_store(config), SQLStore)

    def test_supabase_credentials(self):
        from storefront.data.supabase_store import SupabaseStore
        config = StorefrontConfig(supabase_url="https://x.supabase.co", supabase_key="k")
        assert isinstance(get_store(config), SupabaseStore)

    def test_url_without_key_falls_back(self):
        assert isinstance(get_store(StorefrontConfig(supabase_url="https://x.supabase.co")), InMemoryStore)

    def test_store_is_cached_until_reset(self):
        first = get_store(StorefrontConfig())
        assert get_store(StorefrontConfig(database_url="sqlite://")) is first
        set_store(None)
        assert isinstance(get_store(StorefrontConfig(database_url="sqlite://")), SQLStore)
