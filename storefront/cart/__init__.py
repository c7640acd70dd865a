"""
Cart session state, pricing and discount keys.
"""
from storefront.cart.session import ActiveDiscount, CartItem, CartState
from storefront.cart.pricing import CartTotals, compute_totals

__all__ = [
    "ActiveDiscount",
    "CartItem",
    "CartState",
    "CartTotals",
    "compute_totals",
]
