"""
Checkout flow, payment simulation and order placement tests.
"""

from datetime import date, datetime, timezone
from unittest.mock import patch

import pytest

from storefront.checkout.flow import CheckoutFlow, CheckoutStep
from storefront.checkout.service import (
    CardDetails,
    CheckoutForm,
    CheckoutSession,
    ShippingAddress,
    simulate_payment,
)
from storefront.errors import (
    GiftCardRejectedError,
    InvalidTransitionError,
    PaymentDeclinedError,
    RemoteCallError,
    ValidationError,
)

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)
TODAY = date(2025, 6, 1)

FORM = CheckoutForm(first_name="Alice", last_name="Martin", email="alice@example.com", phone="0612345678")
ADDRESS = ShippingAddress(street="12 rue des Lilas", postal_code="75011", city="Paris")
CARD = CardDetails(number="4242 4242 4242 4242", holder="ALICE MARTIN", expiry="12/27", cvv="123")


@pytest.fixture
def checkout(store, sample_cart):
    return CheckoutSession(store=store, user_id="user-1", user_email="alice@example.com", cart=sample_cart)


# ============================================================================
# Step machine
# ============================================================================

class TestCheckoutFlow:
    def test_happy_path(self):
        flow = CheckoutFlow().to_payment().confirm("order-1")
        assert flow.step == CheckoutStep.CONFIRMATION
        assert flow.order_id == "order-1"
        assert flow.is_complete

    def test_back_to_form(self):
        flow = CheckoutFlow().to_payment().back_to_form()
        assert flow.step == CheckoutStep.FORM

    def test_to_payment_clears_error(self):
        flow = CheckoutFlow().fail("boom").to_payment()
        assert flow.error is None

    def test_fail_returns_to_form_with_message(self):
        flow = CheckoutFlow().to_payment().fail("Commande impossible")
        assert flow.step == CheckoutStep.FORM
        assert flow.error == "Commande impossible"

    @pytest.mark.parametrize("move", [
        lambda f: f.confirm("x"),
        lambda f: f.back_to_form(),
    ])
    def test_illegal_from_form(self, move):
        with pytest.raises(InvalidTransitionError) as exc:
            move(CheckoutFlow())
        assert exc.value.source == "form"

    def test_payment_cannot_go_to_payment(self):
        with pytest.raises(InvalidTransitionError):
            CheckoutFlow().to_payment().to_payment()

    @pytest.mark.parametrize("move", [
        lambda f: f.to_payment(),
        lambda f: f.back_to_form(),
        lambda f: f.confirm("y"),
        lambda f: f.fail("late"),
    ])
    def test_confirmation_is_terminal(self, move):
        done = CheckoutFlow().to_payment().confirm("x")
        with pytest.raises(InvalidTransitionError) as exc:
            move(done)
        assert exc.value.source == "confirmation"

    def test_flow_is_immutable(self):
        flow = CheckoutFlow()
        flow.to_payment()
        assert flow.step == CheckoutStep.FORM


# ============================================================================
# Payment simulation
# ============================================================================

class TestSimulatePayment:
    def test_accepted(self):
        assert simulate_payment(CARD, today=TODAY) == "pay_4242_20250601"

    def test_declined(self):
        card = CARD.model_copy(update={"number": "4242424242420000"})
        with pytest.raises(PaymentDeclinedError) as exc:
            simulate_payment(card, today=TODAY)
        assert exc.value.message_key == "payment.declined"

    @pytest.mark.parametrize("update,key", [
        ({"number": "4242"}, "error.invalid_card_number"),
        ({"number": "4242 4242 4242 424a"}, "error.invalid_card_number"),
        ({"holder": "  "}, "error.card_holder_required"),
        ({"expiry": "1227"}, "error.invalid_expiry"),
        ({"expiry": "13/27"}, "error.invalid_month"),
        ({"expiry": "00/27"}, "error.invalid_month"),
        ({"expiry": "05/25"}, "error.card_expired"),
        ({"cvv": "12"}, "error.invalid_cvv"),
    ])
    def test_format_errors(self, update, key):
        with pytest.raises(ValidationError) as exc:
            simulate_payment(CARD.model_copy(update=update), today=TODAY)
        assert exc.value.message_key == key

    def test_valid_through_expiry_month(self):
        assert simulate_payment(CARD.model_copy(update={"expiry": "06/25"}), today=TODAY)

    def test_format_checked_before_decline(self):
        card = CARD.model_copy(update={"number": "4242424242420000", "cvv": "1"})
        with pytest.raises(ValidationError):
            simulate_payment(card, today=TODAY)


# ============================================================================
# Checkout session
# ============================================================================

class TestSubmitForm:
    def test_moves_to_payment(self, checkout):
        checkout.submit_form(FORM, ADDRESS)
        assert checkout.step == CheckoutStep.PAYMENT
        assert checkout.form == FORM

    @pytest.mark.parametrize("update,key", [
        ({"first_name": " "}, "error.first_name_required"),
        ({"email": "alice"}, "error.invalid_email"),
        ({"phone": "06123"}, "error.invalid_phone"),
    ])
    def test_invalid_form_stays_on_form(self, checkout, update, key):
        with pytest.raises(ValidationError) as exc:
            checkout.submit_form(FORM.model_copy(update=update), ADDRESS)
        assert exc.value.message_key == key
        assert checkout.step == CheckoutStep.FORM

    def test_address_required(self, checkout):
        with pytest.raises(ValidationError) as exc:
            checkout.submit_form(FORM, ShippingAddress(street="12 rue des Lilas"))
        assert exc.value.message_key == "error.address_required"
        with pytest.raises(ValidationError):
            checkout.submit_form(FORM, None)

    def test_empty_cart(self, store):
        session = CheckoutSession(store=store, user_id="user-1", user_email="alice@example.com")
        with pytest.raises(ValidationError) as exc:
            session.submit_form(FORM, ADDRESS)
        assert exc.value.message_key == "error.empty_cart"

    def test_back(self, checkout):
        checkout.submit_form(FORM, ADDRESS)
        checkout.back()
        assert checkout.step == CheckoutStep.FORM


class TestGiftCardsAtCheckout:
    def test_apply_reduces_final_total(self, checkout):
        assert checkout.totals().final_total == pytest.approx(136.0)
        checkout.apply_gift_card("CHK-1111-2222", now=NOW)
        assert checkout.totals().final_total == pytest.approx(86.0)

    def test_same_card_twice(self, checkout):
        checkout.apply_gift_card("CHK-1111-2222", now=NOW)
        with pytest.raises(GiftCardRejectedError) as exc:
            checkout.apply_gift_card("CHK-1111-2222", now=NOW)
        assert exc.value.reason == "already_applied"
        assert len(checkout.gift_cards) == 1

    def test_remove(self, checkout):
        card = checkout.apply_gift_card("CHK-1111-2222", now=NOW)
        checkout.remove_gift_card(card.id)
        assert checkout.gift_cards == []


class TestPlaceOrder:
    def test_successful_order(self, checkout, store, sample_cart):
        checkout.apply_gift_card("CHK-1111-2222", now=NOW)
        checkout.submit_form(FORM, ADDRESS)
        flow = checkout.pay(CARD, today=TODAY)

        assert flow.step == CheckoutStep.CONFIRMATION
        order = store.orders[0]
        assert flow.order_id == order["id"]
        assert order["total_amount"] == 86.0
        assert order["status"] == "completed"
        assert order["shipping_address"]["city"] == "Paris"
        assert order["shipping_address"]["address"] == "12 rue des Lilas"

        profile = store.get_profile("user-1")
        assert profile["first_name"] == "Alice"
        assert profile["phone"] == "0612345678"

        card = store.find_gift_card("CHK-1111-2222")
        assert card["is_used"] is True
        assert card["order_id"] == order["id"]
        assert store.gift_card_transactions[0]["amount_used"] == 50.0
        assert store.gift_card_transactions[0]["created_by"] == "user-1"

        assert [(i["product_name"], i["quantity"], i["unit_price"]) for i in store.order_items] == [
            ("Robe", 2, 50.0),
            ("Top", 1, 30.0),
        ]
        assert all(i["order_id"] == order["id"] for i in store.order_items)

        assert checkout.cart.is_empty
        assert checkout.gift_cards == []
        confirmation = checkout.confirmation.to_dict()
        assert confirmation["total"] == 86.0
        assert confirmation["subtotal"] == 130.0
        assert confirmation["discount_total"] == 20.0
        assert len(confirmation["items"]) == 2
        assert checkout.confirmation.items == sample_cart.items

    def test_declined_payment_stays_on_payment(self, checkout, store):
        checkout.submit_form(FORM, ADDRESS)
        with pytest.raises(PaymentDeclinedError):
            checkout.pay(CARD.model_copy(update={"number": "4000000000000000"}), today=TODAY)
        assert checkout.step == CheckoutStep.PAYMENT
        assert store.orders == []
        assert not checkout.cart.is_empty

    def test_pay_requires_payment_step(self, checkout):
        with pytest.raises(InvalidTransitionError) as exc:
            checkout.pay(CARD, today=TODAY)
        assert exc.value.source == "form"
        assert exc.value.target == "confirmation"

    def test_place_order_off_payment_step_writes_nothing(self, checkout, store, sample_cart):
        checkout.apply_gift_card("CHK-1111-2222", now=NOW)
        checkout.submit_form(FORM, ADDRESS)
        checkout.back()
        with pytest.raises(InvalidTransitionError):
            checkout.place_order()
        assert store.orders == []
        assert store.order_items == []
        assert store.find_gift_card("CHK-1111-2222")["is_used"] is False
        assert checkout.step == CheckoutStep.FORM
        assert checkout.cart == sample_cart

        checkout.submit_form(FORM, ADDRESS)
        assert checkout.pay(CARD, today=TODAY).is_complete
        assert len(store.orders) == 1

    def test_write_failure_returns_to_form(self, checkout, store, sample_cart):
        checkout.submit_form(FORM, ADDRESS)
        with patch.object(store, "insert_order_items", side_effect=RemoteCallError("insert_order_items", "boom")):
            flow = checkout.pay(CARD, today=TODAY)
        assert flow.step == CheckoutStep.FORM
        assert flow.error == "error.order_failed"
        assert checkout.cart == sample_cart
        assert checkout.confirmation is None

    def test_retry_after_failure(self, checkout, store):
        checkout.submit_form(FORM, ADDRESS)
        with patch.object(store, "insert_order", side_effect=RemoteCallError("insert_order", "timeout")):
            checkout.pay(CARD, today=TODAY)
        checkout.submit_form(FORM, ADDRESS)
        assert checkout.pay(CARD, today=TODAY).is_complete
        assert len(store.orders) == 1
