"""
Gift cards.

A gift card is bought for a recipient (by e-mail), is valid for one year and
can be applied once, by its recipient, at checkout. Its amount is consumed
in full when the order is placed (see storefront.checkout.service).
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
import random
import re
from typing import Any, Dict, Optional, Sequence
import uuid

from pydantic import BaseModel, Field

from storefront.core.config import get_config
from storefront.errors import GiftCardRejectedError, ValidationError
from storefront.utils.logger import get_logger

logger = get_logger("giftcards.cards")

EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if not isinstance(value, datetime):
        # PostgREST returns ISO strings, sometimes with a trailing Z
        value = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class GiftCard:
    code: str
    amount: float
    recipient_email: str
    expires_at: datetime
    is_used: bool = False
    sender_id: Optional[str] = None
    message: str = ""
    order_id: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def is_redeemable(self, now: Optional[datetime] = None) -> bool:
        return not self.is_used and self.expires_at > (now or _now())

    def to_row(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "code": self.code,
            "amount": self.amount,
            "recipient_email": self.recipient_email,
            "expires_at": self.expires_at.isoformat(),
            "is_used": self.is_used,
            "sender_id": self.sender_id,
            "message": self.message,
            "order_id": self.order_id,
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "GiftCard":
        return cls(
            id=str(row["id"]),
            code=row["code"],
            amount=float(row["amount"]),
            recipient_email=row.get("recipient_email") or "",
            expires_at=_parse_datetime(row.get("expires_at")),
            is_used=bool(row.get("is_used")),
            sender_id=row.get("sender_id"),
            message=row.get("message") or "",
            order_id=row.get("order_id"),
        )


class GiftCardPurchase(BaseModel):
    """A gift card order: preset or custom amount for one recipient."""
    amount: float = Field(description="Card amount in the store currency")
    recipient_email: str = Field(description="Only this address can use the card")
    message: str = Field(default="", description="Personal message for the recipient")

    def validate_purchase(self) -> None:
        if self.amount <= 0:
            raise ValidationError("error.invalid_amount")
        if not EMAIL_PATTERN.match(self.recipient_email.strip()):
            raise ValidationError("error.invalid_email")


def generate_gift_card_code(rng: Optional[random.Random] = None) -> str:
    """CHK-NNNN-NNNN, each group between 1000 and 9999."""
    rng = rng or random.Random()
    return f"CHK-{rng.randint(1000, 9999)}-{rng.randint(1000, 9999)}"


def purchase_gift_card(
    store,
    sender_id: str,
    sender_email: str,
    purchase: GiftCardPurchase,
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
) -> GiftCard:
    """
    Create and persist a gift card.

    Args:
        store: StorefrontStore
        sender_id: Buyer's user id
        sender_email: Buyer's e-mail, kept in the payment metadata
        purchase: Amount, recipient and message
        now: Purchase time (tests pin it)

    Returns:
        The stored GiftCard
    """
    purchase.validate_purchase()
    now = now or _now()
    card = GiftCard(
        code=generate_gift_card_code(rng),
        amount=float(purchase.amount),
        recipient_email=purchase.recipient_email.strip(),
        expires_at=now + timedelta(days=get_config().gift_card_validity_days),
        sender_id=sender_id,
        message=purchase.message,
    )
    row = card.to_row()
    row["payment_metadata"] = {
        "sender_email": sender_email,
        "purchased_at": now.isoformat(),
        "preset": float(purchase.amount) in [float(a) for a in get_config().gift_card_amounts],
    }
    store.insert_gift_card(row)
    logger.info(f"Gift card {card.code} ({card.amount}) purchased by {sender_id} for {card.recipient_email}")
    return card


def validate_gift_card(
    store,
    code: str,
    user_email: str,
    applied: Sequence[GiftCard] = (),
    now: Optional[datetime] = None,
) -> GiftCard:
    """
    Check that a gift card can be applied to the current checkout.

    Raises:
        ValidationError: blank code
        GiftCardRejectedError: invalid_or_expired, not_owner or already_applied
    """
    code = (code or "").strip()
    if not code:
        raise ValidationError("error.gift_card_code_required")

    row = store.find_gift_card(code)
    card = GiftCard.from_row(row) if row else None
    if card is None or not card.is_redeemable(now):
        raise GiftCardRejectedError("invalid_or_expired")
    if card.recipient_email.lower() != (user_email or "").strip().lower():
        raise GiftCardRejectedError("not_owner")
    if any(existing.id == card.id for existing in applied):
        raise GiftCardRejectedError("already_applied")

    logger.info(f"Gift card {card.code} accepted for {user_email}")
    return card
