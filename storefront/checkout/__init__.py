from storefront.checkout.flow import CheckoutFlow, CheckoutStep
from storefront.checkout.service import (
    CardDetails,
    CheckoutForm,
    CheckoutSession,
    OrderConfirmation,
    ShippingAddress,
    simulate_payment,
)

__all__ = [
    "CardDetails",
    "CheckoutFlow",
    "CheckoutForm",
    "CheckoutSession",
    "CheckoutStep",
    "OrderConfirmation",
    "ShippingAddress",
    "simulate_payment",
]
