"""
Discount keys.

A discount key is an 8-digit code made of two halves: the first 4 digits of
the shopper's own identifier and the last 4 digits of a partner's
identifier. Redeeming a key of a tier (silver, bronze, gold) activates a
fixed percentage off one product in the cart.

Rules, checked in order:
  1. each half is exactly 4 digits
  2. the shopper has a profile
  3. the shopper has attempts left (failed guesses are counted)
  4. the shopper has at least one past purchase
  5. the first half matches the shopper's identifier         (counts an attempt)
  6. a partner's identifier ends with the second half        (counts an attempt)
  7. the partner shares discount keys
  8. the combined code was never used
  9. an active key exists for the tier
"""
from enum import Enum
import re
from typing import Optional

from storefront.cart.session import ActiveDiscount
from storefront.core.config import StorefrontConfig, get_config
from storefront.errors import DiscountKeyRejectedError, ValidationError
from storefront.utils.logger import get_logger

logger = get_logger("cart.discounts")

_KEY_PART = re.compile(r"^\d{4}$")


class DiscountTier(str, Enum):
    SILVER = "silver"
    BRONZE = "bronze"
    GOLD = "gold"


def tier_percentage(tier, config: Optional[StorefrontConfig] = None) -> int:
    """Percentage granted by a tier."""
    config = config or get_config()
    return int(config.discount_tiers[DiscountTier(tier).value])


class DiscountKeyRedeemer:
    """Validates discount keys against the store and records their use."""

    def __init__(self, store, config: Optional[StorefrontConfig] = None):
        self.store = store
        self.config = config or get_config()

    def _reject_guess(self, user_id: str) -> None:
        attempts = self.store.increment_discount_attempts(user_id)
        reason = "max_attempts" if attempts >= self.config.max_discount_attempts else "invalid"
        logger.info(f"Discount key guess rejected for user {user_id}: attempts={attempts}")
        raise DiscountKeyRejectedError(reason)

    def redeem(self, user_id: str, first_part: str, second_part: str, tier, product_id: str) -> ActiveDiscount:
        """
        Redeem a discount key for one product.

        Args:
            user_id: Shopper redeeming the key
            first_part: First 4 digits (shopper's identifier prefix)
            second_part: Last 4 digits (partner's identifier suffix)
            tier: DiscountTier or its string value
            product_id: Product the discount applies to

        Returns:
            ActiveDiscount to add to the cart session

        Raises:
            ValidationError: malformed key
            DiscountKeyRejectedError: any rule above fails
        """
        if not _KEY_PART.match(first_part or "") or not _KEY_PART.match(second_part or ""):
            raise ValidationError("error.invalid_key_format")
        tier = DiscountTier(tier)

        profile = self.store.get_profile(user_id)
        if profile is None:
            raise DiscountKeyRejectedError("profile_not_found")
        if int(profile.get("login_attempts") or 0) >= self.config.max_discount_attempts:
            raise DiscountKeyRejectedError("max_attempts")
        if int(profile.get("purchases_count") or 0) < 1:
            raise DiscountKeyRejectedError("first_purchase_required")

        identifier = profile.get("user_identifier") or ""
        if first_part != identifier[:4]:
            self._reject_guess(user_id)

        partner = self.store.find_partner_by_suffix(second_part)
        if partner is None:
            self._reject_guess(user_id)
        if not partner.get("share_discount_key"):
            raise DiscountKeyRejectedError("partner_not_sharing")

        code = f"{first_part}{second_part}"
        if self.store.discount_usage_exists(code):
            raise DiscountKeyRejectedError("already_used")

        key = self.store.discount_key_for_tier(tier.value)
        if key is None:
            raise DiscountKeyRejectedError("key_not_found")

        self.store.record_discount_usage(
            code=code,
            user_id=user_id,
            partner_id=partner["id"],
            discount_key_id=key.get("id") or key.get("code"),
        )
        percentage = key.get("percentage") or tier_percentage(tier, self.config)
        logger.info(f"Discount key {tier.value} redeemed by {user_id} for product {product_id}")
        return ActiveDiscount(type=tier.value, percentage=float(percentage), code=code, product_id=product_id)
