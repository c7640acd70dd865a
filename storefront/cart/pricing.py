"""
Cart and checkout totals.

    subtotal       = sum(price * quantity)                 (before discounts)
    discount_total = sum(price * quantity * pct / 100)     (lines with a discount)
    tax            = subtotal * tax_rate                   (pre-discount base)
    total          = subtotal + tax - discount_total
    final_total    = max(0, total - sum(gift card amounts))

Amounts are accumulated unrounded; round only for display (CartTotals.rounded).
Nothing here mutates its inputs or keeps state between calls.
"""
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from storefront.cart.session import ActiveDiscount, CartItem, CartState
from storefront.core.config import get_config


@dataclass(frozen=True)
class CartTotals:
    subtotal: float
    tax: float
    discount_total: float
    total: float
    gift_card_total: float = 0.0
    final_total: float = 0.0

    def rounded(self) -> "CartTotals":
        return CartTotals(*(round(value, 2) for value in (
            self.subtotal, self.tax, self.discount_total, self.total, self.gift_card_total, self.final_total,
        )))

    def to_dict(self) -> dict:
        r = self.rounded()
        return {
            "subtotal": r.subtotal,
            "tax": r.tax,
            "discount_total": r.discount_total,
            "total": r.total,
            "gift_card_total": r.gift_card_total,
            "final_total": r.final_total,
        }


def format_amount(amount: float, currency: Optional[str] = None) -> str:
    """'12.50 €' style display string."""
    currency = currency or get_config().currency
    symbol = "€" if currency == "EUR" else currency
    return f"{amount:.2f} {symbol}"


def discount_for(item: CartItem, discounts: Sequence[ActiveDiscount]) -> Optional[ActiveDiscount]:
    """The first active discount for the item's product; later matches are ignored."""
    return next((d for d in discounts if d.product_id == item.product_id), None)


def item_total(item: CartItem, discounts: Sequence[ActiveDiscount] = ()) -> float:
    discount = discount_for(item, discounts)
    if discount:
        return item.price * (1 - discount.percentage / 100) * item.quantity
    return item.price * item.quantity


def subtotal(items: Iterable[CartItem]) -> float:
    return sum(item.price * item.quantity for item in items)


def discount_total(items: Iterable[CartItem], discounts: Sequence[ActiveDiscount]) -> float:
    total = 0.0
    for item in items:
        discount = discount_for(item, discounts)
        if discount:
            total += item.price * item.quantity * discount.percentage / 100
    return total


def tax(items: Iterable[CartItem], rate: Optional[float] = None) -> float:
    rate = get_config().tax_rate if rate is None else rate
    return subtotal(items) * rate


def total(items: Sequence[CartItem], discounts: Sequence[ActiveDiscount], rate: Optional[float] = None) -> float:
    return subtotal(items) + tax(items, rate) - discount_total(items, discounts)


def gift_card_total(gift_cards: Iterable) -> float:
    """Sum of applied gift card amounts (anything with an `amount`)."""
    return sum(card.amount for card in gift_cards)


def final_total(cart_total: float, gift_cards: Iterable) -> float:
    return max(0.0, cart_total - gift_card_total(gift_cards))


def compute_totals(state: CartState, gift_cards: Sequence = (), tax_rate: Optional[float] = None) -> CartTotals:
    """
    All cart and checkout amounts for a session.

    Args:
        state: Cart items and active discounts
        gift_cards: Gift cards applied at checkout
        tax_rate: Override of the configured rate

    Returns:
        Unrounded CartTotals
    """
    rate = get_config().tax_rate if tax_rate is None else tax_rate
    sub = subtotal(state.items)
    tax_amount = sub * rate
    discounts = discount_total(state.items, state.discounts)
    cart_total = sub + tax_amount - discounts
    cards = gift_card_total(gift_cards)
    return CartTotals(
        subtotal=sub,
        tax=tax_amount,
        discount_total=discounts,
        total=cart_total,
        gift_card_total=cards,
        final_total=max(0.0, cart_total - cards),
    )
