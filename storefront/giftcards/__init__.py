from storefront.giftcards.cards import (
    GiftCard,
    GiftCardPurchase,
    generate_gift_card_code,
    purchase_gift_card,
    validate_gift_card,
)

__all__ = [
    "GiftCard",
    "GiftCardPurchase",
    "generate_gift_card_code",
    "purchase_gift_card",
    "validate_gift_card",
]
