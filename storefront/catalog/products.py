"""
Product drafts and variants as edited in the admin back office.

A draft lives only for the editing session; it is persisted upstream when
the admin saves. Drafts are immutable, edits return a new draft.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
import uuid

from storefront.catalog.attributes import AttributeGroup, ProductAttribute, flatten


@dataclass(frozen=True)
class ProductVariant:
    """One purchasable combination of attribute values."""
    sku: str
    price: float
    sale_price: Optional[float] = None
    stock_quantity: int = 0
    attributes: Dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def to_row(self, product_id: Optional[str] = None) -> Dict[str, Any]:
        """Row for the product_variants table."""
        row = {
            "id": self.id,
            "sku": self.sku,
            "price": self.price,
            "sale_price": self.sale_price,
            "stock_quantity": self.stock_quantity,
            "attributes": dict(self.attributes),
        }
        if product_id is not None:
            row["product_id"] = product_id
        return row

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "ProductVariant":
        return cls(
            id=str(row.get("id") or uuid.uuid4()),
            sku=row["sku"],
            price=float(row.get("price") or 0),
            sale_price=float(row["sale_price"]) if row.get("sale_price") is not None else None,
            stock_quantity=int(row.get("stock_quantity") or 0),
            attributes=dict(row.get("attributes") or {}),
        )


@dataclass(frozen=True)
class ProductDraft:
    """Product being edited by an admin."""
    name: str = ""
    sku: str = ""
    price: float = 0.0
    sale_price: Optional[float] = None
    stock_quantity: int = 0
    category_id: str = ""
    attribute_groups: Tuple[AttributeGroup, ...] = ()
    variants: Tuple[ProductVariant, ...] = ()
    metadata: Dict[str, Any] = field(default_factory=dict)

    def all_attributes(self) -> List[ProductAttribute]:
        return flatten(self.attribute_groups)

    def variantable_attributes(self) -> List[ProductAttribute]:
        return [attr for attr in self.all_attributes() if attr.is_variantable]
