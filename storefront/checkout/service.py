"""
Checkout service.

Drives one shopper's checkout: contact form, shipping address, gift cards,
simulated card payment and the order write sequence.

Order write sequence (place_order), inside store.transaction():
    1. profiles        update first/last name and phone
    2. orders          insert (total = final total, status completed)
    3. gift_cards      per applied card: mark used, link the order
       gift_card_transactions  per applied card: amount used
    4. order_items     one row per cart line

Any failure sends the flow back to the form with the order error message key
and leaves the cart as it was. On success the cart is cleared.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
import re
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from storefront.cart.pricing import CartTotals, compute_totals
from storefront.cart.session import ActiveDiscount, CartItem, CartState, clear
from storefront.checkout.flow import CheckoutFlow, CheckoutStep
from storefront.core.config import get_config
from storefront.errors import (
    InvalidTransitionError,
    PaymentDeclinedError,
    StorefrontError,
    ValidationError,
)
from storefront.giftcards.cards import EMAIL_PATTERN, GiftCard, validate_gift_card
from storefront.utils.logger import get_logger

logger = get_logger("checkout.service")

_CARD_NUMBER = re.compile(r"^\d{16}$")
_EXPIRY = re.compile(r"^(\d{2})/(\d{2})$")
_CVV = re.compile(r"^\d{3}$")


class CheckoutForm(BaseModel):
    """Contact details entered on the checkout form."""
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""

    def validate_form(self) -> None:
        if not self.first_name.strip():
            raise ValidationError("error.first_name_required")
        if not EMAIL_PATTERN.match(self.email.strip()):
            raise ValidationError("error.invalid_email")
        if len(self.phone.strip()) < get_config().phone_min_length:
            raise ValidationError("error.invalid_phone")


class ShippingAddress(BaseModel):
    street: str = ""
    postal_code: str = ""
    city: str = ""
    country: str = Field(default="FR", description="ISO country code")

    def is_complete(self) -> bool:
        return bool(self.street.strip() and self.postal_code.strip() and self.city.strip())


class CardDetails(BaseModel):
    number: str = ""
    holder: str = ""
    expiry: str = Field(default="", description="MM/YY")
    cvv: str = ""


def simulate_payment(card: CardDetails, today: Optional[date] = None) -> str:
    """
    Simulated card payment.

    Format errors raise ValidationError. A well-formed card whose number ends
    in 0000 is declined; any other is accepted.

    Returns:
        Payment reference
    """
    number = card.number.replace(" ", "")
    if not _CARD_NUMBER.match(number):
        raise ValidationError("error.invalid_card_number")
    if not card.holder.strip():
        raise ValidationError("error.card_holder_required")

    match = _EXPIRY.match(card.expiry.strip())
    if not match:
        raise ValidationError("error.invalid_expiry")
    month, year = int(match.group(1)), 2000 + int(match.group(2))
    if not 1 <= month <= 12:
        raise ValidationError("error.invalid_month")
    today = today or date.today()
    # Valid through the last day of the expiry month
    if (year, month) < (today.year, today.month):
        raise ValidationError("error.card_expired")

    if not _CVV.match(card.cvv.strip()):
        raise ValidationError("error.invalid_cvv")

    if number.endswith("0000"):
        logger.info(f"Payment declined for card ending {number[-4:]}")
        raise PaymentDeclinedError()
    return f"pay_{number[-4:]}_{today.strftime('%Y%m%d')}"


@dataclass(frozen=True)
class OrderConfirmation:
    order_id: str
    items: Tuple[CartItem, ...]
    totals: CartTotals
    discounts: Tuple[ActiveDiscount, ...]
    shipping_address: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        totals = self.totals.to_dict()
        return {
            "order_id": self.order_id,
            "items": [
                {"name": i.name, "quantity": i.quantity, "price": i.price, "size": i.size, "color": i.color}
                for i in self.items
            ],
            "subtotal": totals["subtotal"],
            "tax": totals["tax"],
            "discounts": [{"type": d.type, "percentage": d.percentage, "product_id": d.product_id}
                          for d in self.discounts],
            "discount_total": totals["discount_total"],
            "gift_card_total": totals["gift_card_total"],
            "total": totals["final_total"],
            "shipping_address": self.shipping_address,
        }


@dataclass
class CheckoutSession:
    """
    One shopper's checkout in progress.

    The cart state is replaced (never mutated) by each step; a failed step
    leaves the session as it was, apart from the flow's error message.
    """
    store: Any
    user_id: str
    user_email: str
    cart: CartState = field(default_factory=CartState)
    form: CheckoutForm = field(default_factory=CheckoutForm)
    address: Optional[ShippingAddress] = None
    gift_cards: List[GiftCard] = field(default_factory=list)
    flow: CheckoutFlow = field(default_factory=CheckoutFlow)
    confirmation: Optional[OrderConfirmation] = None

    @property
    def step(self) -> CheckoutStep:
        return self.flow.step

    def totals(self) -> CartTotals:
        return compute_totals(self.cart, self.gift_cards)

    def apply_gift_card(self, code: str, now: Optional[datetime] = None) -> GiftCard:
        card = validate_gift_card(self.store, code, self.user_email, self.gift_cards, now=now)
        self.gift_cards = self.gift_cards + [card]
        return card

    def remove_gift_card(self, card_id: str) -> None:
        self.gift_cards = [card for card in self.gift_cards if card.id != card_id]

    def submit_form(self, form: CheckoutForm, address: Optional[ShippingAddress]) -> CheckoutFlow:
        """Validate the contact form and address, then move to payment."""
        if self.cart.is_empty:
            raise ValidationError("error.empty_cart")
        form.validate_form()
        if address is None or not address.is_complete():
            raise ValidationError("error.address_required")
        flow = self.flow.to_payment()
        self.form, self.address, self.flow = form, address, flow
        return flow

    def back(self) -> CheckoutFlow:
        self.flow = self.flow.back_to_form()
        return self.flow

    def pay(self, card: CardDetails, today: Optional[date] = None) -> CheckoutFlow:
        """
        Run the simulated payment and, when accepted, place the order.

        Card format errors and declines are raised with the flow left on the
        payment step. Failures while writing the order return the flow to
        the form with the order error message key.
        """
        self._require_payment_step()
        simulate_payment(card, today)
        return self.place_order()

    def _require_payment_step(self) -> None:
        if self.flow.step != CheckoutStep.PAYMENT:
            raise InvalidTransitionError(self.flow.step.value, CheckoutStep.CONFIRMATION.value)

    def _shipping_payload(self) -> Dict[str, Any]:
        return {
            "first_name": self.form.first_name,
            "last_name": self.form.last_name,
            "address": self.address.street,
            "postal_code": self.address.postal_code,
            "city": self.address.city,
            "country": self.address.country,
            "phone": self.form.phone,
        }

    def place_order(self) -> CheckoutFlow:
        """
        Write the order and move to confirmation.

        Only allowed on the payment step; nothing is written otherwise. A
        failed write returns the flow to the form carrying the
        ``error.order_failed`` message key, translated when the flow is
        rendered.
        """
        self._require_payment_step()
        totals = self.totals()
        shipping = self._shipping_payload()
        now = datetime.now(timezone.utc).isoformat()
        try:
            with self.store.transaction():
                self.store.update_profile(self.user_id, {
                    "first_name": self.form.first_name,
                    "last_name": self.form.last_name,
                    "phone": self.form.phone,
                    "updated_at": now,
                })
                order = self.store.insert_order({
                    "user_id": self.user_id,
                    "total_amount": round(totals.final_total, 2),
                    "status": "completed",
                    "shipping_address": shipping,
                })
                order_id = str(order["id"])
                for card in self.gift_cards:
                    self.store.mark_gift_card_used(card.id, order_id)
                    self.store.insert_gift_card_transaction({
                        "gift_card_id": card.id,
                        "order_id": order_id,
                        "amount_used": card.amount,
                        "created_by": self.user_id,
                    })
                self.store.insert_order_items([
                    {
                        "order_id": order_id,
                        "product_name": item.name,
                        "quantity": item.quantity,
                        "unit_price": item.price,
                        "size": item.size,
                        "color": item.color,
                    }
                    for item in self.cart.items
                ])
        except StorefrontError as e:
            logger.error(f"Order failed for user {self.user_id}: {e}")
            self.flow = self.flow.fail("error.order_failed")
            return self.flow

        self.confirmation = OrderConfirmation(
            order_id=order_id,
            items=self.cart.items,
            totals=totals,
            discounts=self.cart.discounts,
            shipping_address=shipping,
        )
        self.flow = self.flow.confirm(order_id)
        self.cart = clear(self.cart)
        self.gift_cards = []
        logger.info(f"Order {order_id} placed by {self.user_id}: {totals.final_total:.2f}")
        return self.flow
