"""
Checkout step machine.

    form --to_payment--> payment --confirm--> confirmation (terminal)
      ^                     |
      +----back_to_form-----+
      +-------fail----------+   (from form or payment, keeps an error message key)
"""
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from storefront.errors import InvalidTransitionError


class CheckoutStep(str, Enum):
    FORM = "form"
    PAYMENT = "payment"
    CONFIRMATION = "confirmation"


@dataclass(frozen=True)
class CheckoutFlow:
    step: CheckoutStep = CheckoutStep.FORM
    order_id: Optional[str] = None
    error: Optional[str] = None

    def _require(self, source: CheckoutStep, target: CheckoutStep) -> None:
        if self.step != source:
            raise InvalidTransitionError(self.step.value, target.value)

    def to_payment(self) -> "CheckoutFlow":
        self._require(CheckoutStep.FORM, CheckoutStep.PAYMENT)
        return replace(self, step=CheckoutStep.PAYMENT, error=None)

    def back_to_form(self) -> "CheckoutFlow":
        self._require(CheckoutStep.PAYMENT, CheckoutStep.FORM)
        return replace(self, step=CheckoutStep.FORM)

    def confirm(self, order_id: str) -> "CheckoutFlow":
        self._require(CheckoutStep.PAYMENT, CheckoutStep.CONFIRMATION)
        return CheckoutFlow(step=CheckoutStep.CONFIRMATION, order_id=order_id)

    def fail(self, message: str) -> "CheckoutFlow":
        """Return to the form with the message key of the error to display."""
        if self.step == CheckoutStep.CONFIRMATION:
            raise InvalidTransitionError(self.step.value, CheckoutStep.FORM.value)
        return CheckoutFlow(step=CheckoutStep.FORM, error=message)

    @property
    def is_complete(self) -> bool:
        return self.step == CheckoutStep.CONFIRMATION
