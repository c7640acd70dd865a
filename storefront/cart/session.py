"""
Shopping cart session state.

The cart and its active discounts are held in an explicit, immutable
CartState. Every mutation takes a state and returns a new one; a failed
mutation raises and leaves the caller's state as it was.

Line identity is (product_id, size, color, product_code): adding the same
line again adds to its quantity.
"""
from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, Optional, Tuple

from storefront.errors import ValidationError
from storefront.utils.logger import get_logger

logger = get_logger("cart.session")


@dataclass(frozen=True)
class CartItem:
    product_id: str
    name: str
    price: float
    quantity: int = 1
    size: str = ""
    color: str = ""
    product_code: Optional[str] = None
    image: str = ""

    def __post_init__(self):
        if self.quantity < 1:
            raise ValidationError("error.invalid_quantity")

    @property
    def key(self) -> Tuple[str, str, str, Optional[str]]:
        return (self.product_id, self.size, self.color, self.product_code)


@dataclass(frozen=True)
class ActiveDiscount:
    type: str           # "silver" | "bronze" | "gold"
    percentage: float
    code: str
    product_id: str


@dataclass(frozen=True)
class CartState:
    items: Tuple[CartItem, ...] = ()
    discounts: Tuple[ActiveDiscount, ...] = ()

    @property
    def count(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items


def add_item(state: CartState, item: CartItem) -> CartState:
    """Add a line, or merge into the line with the same identity (price refreshed)."""
    for index, existing in enumerate(state.items):
        if existing.key == item.key:
            merged = replace(existing, quantity=existing.quantity + item.quantity, price=item.price)
            items = state.items[:index] + (merged,) + state.items[index + 1:]
            return replace(state, items=items)
    return replace(state, items=state.items + (item,))


def _first_line(state: CartState, product_id: str) -> int:
    return next((i for i, item in enumerate(state.items) if item.product_id == product_id), -1)


def remove_item(state: CartState, product_id: str, size: Optional[str] = None,
                color: Optional[str] = None) -> CartState:
    """
    Remove a product from the cart.

    With size and color, every line of that variant goes; otherwise only the
    first line of the product. Discounts on the product are dropped either way.
    """
    if size and color:
        items = tuple(
            item for item in state.items
            if not (item.product_id == product_id and item.size == size and item.color == color)
        )
    else:
        index = _first_line(state, product_id)
        items = state.items if index == -1 else state.items[:index] + state.items[index + 1:]
    discounts = tuple(d for d in state.discounts if d.product_id != product_id)
    return CartState(items=items, discounts=discounts)


def update_quantity(state: CartState, product_id: str, quantity: int, size: Optional[str] = None,
                    color: Optional[str] = None) -> CartState:
    """Set the quantity of matching lines; quantities below 1 are rejected."""
    if quantity < 1:
        raise ValidationError("error.invalid_quantity")
    if size and color:
        items = tuple(
            replace(item, quantity=quantity)
            if item.product_id == product_id and item.size == size and item.color == color else item
            for item in state.items
        )
    else:
        items = tuple(
            replace(item, quantity=quantity) if item.product_id == product_id else item
            for item in state.items
        )
    return replace(state, items=items)


def add_discount(state: CartState, discount: ActiveDiscount) -> CartState:
    """Activate a discount, replacing any discount already active on the same product."""
    if any(d.product_id == discount.product_id for d in state.discounts):
        discounts = tuple(discount if d.product_id == discount.product_id else d for d in state.discounts)
    else:
        discounts = state.discounts + (discount,)
    logger.info(f"Discount {discount.type} ({discount.percentage}%) active on product {discount.product_id}")
    return replace(state, discounts=discounts)


def remove_discount(state: CartState, code: str) -> CartState:
    return replace(state, discounts=tuple(d for d in state.discounts if d.code != code))


def clear(state: CartState) -> CartState:
    return CartState()


def to_dict(state: CartState) -> Dict[str, Any]:
    return {
        "items": [asdict(item) for item in state.items],
        "discounts": [asdict(discount) for discount in state.discounts],
    }


def from_dict(data: Dict[str, Any]) -> CartState:
    return CartState(
        items=tuple(CartItem(**item) for item in data.get("items", [])),
        discounts=tuple(ActiveDiscount(**d) for d in data.get("discounts", [])),
    )
