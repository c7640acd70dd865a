"""Pytest configuration for storefront tests."""

from datetime import datetime, timedelta, timezone

import pytest

from storefront.cart.session import ActiveDiscount, CartItem, CartState
from storefront.catalog.attributes import AttributeGroup, ProductAttribute, make_value
from storefront.catalog.products import ProductDraft
from storefront.core.config import StorefrontConfig, set_config
from storefront.data.store import InMemoryStore, set_store


NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Isolation: every test starts from default settings (no backend from the
# environment) and a fresh process-wide store.
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _isolate_config_and_store():
    set_config(StorefrontConfig())
    set_store(None)
    yield
    set_config(StorefrontConfig())
    set_store(None)


def attribute(name, kind, value, options=()):
    return ProductAttribute(name=name, value=make_value(kind, value), options=tuple(options))


@pytest.fixture
def dress_draft():
    """Clothing draft with Taille [S, M] and Couleur [Rouge, Bleu]."""
    common = AttributeGroup(
        name="Attributs communs",
        attributes=(
            attribute("Marque", "text", "Aquatiss"),
            attribute("Genre", "multiselect", ["Femme"]),
        ),
        sort_order=0,
    )
    specific = AttributeGroup(
        name="Attributs spécifiques",
        attributes=(
            attribute("Taille", "multiselect", ["S", "M"]),
            attribute("Couleur", "color", ["Rouge", "Bleu"]),
            attribute("Matière", "multiselect", ["Coton"]),
        ),
        sort_order=1,
    )
    return ProductDraft(
        name="Robe longue fleurie",
        sku="ROBE01",
        price=49.9,
        sale_price=39.9,
        stock_quantity=5,
        category_id="cat-robes",
        attribute_groups=(common, specific),
    )


@pytest.fixture
def sample_cart():
    """2 x 50.00 (gold discount 20%) + 1 x 30.00."""
    return CartState(
        items=(
            CartItem(product_id="A", name="Robe", price=50.0, quantity=2, size="M", color="Noir"),
            CartItem(product_id="B", name="Top", price=30.0, quantity=1, size="S", color="Blanc"),
        ),
        discounts=(ActiveDiscount(type="gold", percentage=20, code="12345678", product_id="A"),),
    )


@pytest.fixture
def store():
    """In-memory store seeded with a shopper, a partner, discount keys and gift cards."""
    s = InMemoryStore()
    s.profiles.extend([
        {
            "id": "user-1",
            "email": "alice@example.com",
            "user_identifier": "12345678",
            "purchases_count": 2,
            "login_attempts": 0,
            "share_discount_key": True,
        },
        {
            "id": "partner-1",
            "email": "bob@example.com",
            "user_identifier": "98764321",
            "purchases_count": 1,
            "login_attempts": 0,
            "share_discount_key": True,
        },
        {
            "id": "partner-2",
            "email": "carol@example.com",
            "user_identifier": "55559999",
            "purchases_count": 0,
            "login_attempts": 0,
            "share_discount_key": False,
        },
        {
            "id": "newbie",
            "email": "dan@example.com",
            "user_identifier": "11112222",
            "purchases_count": 0,
            "login_attempts": 0,
            "share_discount_key": False,
        },
    ])
    s.discount_keys.extend([
        {"code": "KEY-SILVER", "type": "silver", "percentage": 5, "is_active": True},
        {"code": "KEY-BRONZE", "type": "bronze", "percentage": 10, "is_active": True},
        {"code": "KEY-GOLD", "type": "gold", "percentage": 20, "is_active": True},
    ])
    s.gift_cards.extend([
        {
            "id": "gc-1",
            "code": "CHK-1111-2222",
            "amount": 50.0,
            "recipient_email": "alice@example.com",
            "expires_at": (NOW + timedelta(days=200)).isoformat(),
            "is_used": False,
        },
        {
            "id": "gc-2",
            "code": "CHK-3333-4444",
            "amount": 100.0,
            "recipient_email": "alice@example.com",
            "expires_at": (NOW + timedelta(days=30)).isoformat(),
            "is_used": False,
        },
        {
            "id": "gc-expired",
            "code": "CHK-5555-6666",
            "amount": 50.0,
            "recipient_email": "alice@example.com",
            "expires_at": (NOW - timedelta(days=1)).isoformat(),
            "is_used": False,
        },
        {
            "id": "gc-used",
            "code": "CHK-7777-8888",
            "amount": 50.0,
            "recipient_email": "alice@example.com",
            "expires_at": (NOW + timedelta(days=30)).isoformat(),
            "is_used": True,
        },
        {
            "id": "gc-bob",
            "code": "CHK-9999-1000",
            "amount": 150.0,
            "recipient_email": "bob@example.com",
            "expires_at": (NOW + timedelta(days=30)).isoformat(),
            "is_used": False,
        },
    ])
    return s
