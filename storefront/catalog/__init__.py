"""
Catalog administration: typed attributes, attribute groups, variant
generation and product codes.
"""
from storefront.catalog.attributes import (
    AttributeDefinition,
    AttributeGroup,
    AttributeKind,
    ProductAttribute,
    make_value,
)
from storefront.catalog.products import ProductDraft, ProductVariant
from storefront.catalog.variants import generate_combinations, generate_variants
from storefront.catalog.codes import generate_unique_code, apply_unique_code

__all__ = [
    "AttributeDefinition",
    "AttributeGroup",
    "AttributeKind",
    "ProductAttribute",
    "make_value",
    "ProductDraft",
    "ProductVariant",
    "generate_combinations",
    "generate_variants",
    "generate_unique_code",
    "apply_unique_code",
]
