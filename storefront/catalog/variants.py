"""
Variant generation.

Turns the admin's selected variant-defining attributes (select, multiselect,
color) into one variant per combination of their values:

    Taille: [S, M] x Couleur: [Rouge, Bleu]
        -> SKU-1 (S, Rouge), SKU-2 (S, Bleu), SKU-3 (M, Rouge), SKU-4 (M, Bleu)

Combinations follow attribute order outer-to-inner and value order within
each attribute. Generating replaces the draft's whole variant list.
"""
from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence, Tuple

from storefront.catalog.attributes import ProductAttribute
from storefront.catalog.products import ProductDraft, ProductVariant
from storefront.errors import (
    DuplicateSelectionError,
    MissingSelectionError,
    NoAttributesSelectedError,
    UnknownAttributeError,
)
from storefront.utils.logger import get_logger

logger = get_logger("catalog.variants")

Combination = List[Tuple[str, Any]]


def generate_combinations(attributes: Sequence[ProductAttribute]) -> List[Combination]:
    """
    Cartesian product of the attributes' selected values.

    Args:
        attributes: Variant-defining attributes, in the order the admin picked them

    Returns:
        List of combinations, each a list of (attribute name, value) pairs

    Raises:
        NoAttributesSelectedError: no attribute given
        MissingSelectionError: an attribute has no selected value
        DuplicateSelectionError: the same attribute is given twice
    """
    if not attributes:
        raise NoAttributesSelectedError()

    # Check every value set first so a failure produces nothing
    value_sets = []
    for attribute in attributes:
        if any(name == attribute.name for name, _ in value_sets):
            raise DuplicateSelectionError(attribute.name)
        if not attribute.is_variantable:
            raise UnknownAttributeError(attribute.name, "error.not_variantable")
        values = attribute.value.selections()
        if not values:
            raise MissingSelectionError(attribute.name)
        value_sets.append((attribute.name, values))

    combinations: List[Combination] = [[]]
    for name, values in value_sets:
        combinations = [combo + [(name, value)] for combo in combinations for value in values]
    return combinations


def _resolve_selected(draft: ProductDraft, selected_names: Sequence[str]) -> List[ProductAttribute]:
    attributes = draft.all_attributes()
    resolved = []
    for name in selected_names:
        if any(attr.name == name for attr in resolved):
            raise DuplicateSelectionError(name)
        attribute = next((attr for attr in attributes if attr.name == name), None)
        if attribute is None:
            raise UnknownAttributeError(name)
        if not attribute.is_variantable:
            raise UnknownAttributeError(name, "error.not_variantable")
        resolved.append(attribute)
    return resolved


def generate_variants(draft: ProductDraft, selected_names: Sequence[str]) -> ProductDraft:
    """
    Regenerate the draft's variants from the selected attributes.

    Every variant copies the draft's price, sale price and stock; its SKU is
    the draft SKU with a 1-based sequence suffix. Previously existing variants
    are discarded.

    Args:
        draft: Product draft holding the attribute groups
        selected_names: Names of the variant-defining attributes, in order

    Returns:
        New draft with the generated variant list
    """
    if not selected_names:
        raise NoAttributesSelectedError()

    attributes = _resolve_selected(draft, selected_names)
    combinations = generate_combinations(attributes)

    variants = tuple(
        ProductVariant(
            sku=f"{draft.sku}-{index + 1}",
            price=draft.price,
            sale_price=draft.sale_price,
            stock_quantity=draft.stock_quantity,
            attributes=dict(combination),
        )
        for index, combination in enumerate(combinations)
    )

    if draft.variants:
        logger.info(f"Replacing {len(draft.variants)} existing variants of {draft.sku!r}")
    logger.info(f"Generated {len(variants)} variants for {draft.sku!r} from {list(selected_names)}")
    return replace(draft, variants=variants)


def remove_variant(draft: ProductDraft, variant_id: str) -> ProductDraft:
    return replace(draft, variants=tuple(v for v in draft.variants if v.id != variant_id))


def update_variant(draft: ProductDraft, variant: ProductVariant) -> ProductDraft:
    return replace(draft, variants=tuple(variant if v.id == variant.id else v for v in draft.variants))


def available_values(variants: Sequence[ProductVariant], attribute_name: str) -> List[Any]:
    """Distinct values of one attribute across variants, in first-seen order."""
    values: List[Any] = []
    for variant in variants:
        value = variant.attributes.get(attribute_name)
        if value is not None and value not in values:
            values.append(value)
    return values


def find_variant(variants: Sequence[ProductVariant], selection: Dict[str, Any]) -> Optional[ProductVariant]:
    """First variant whose attributes match every selected value."""
    for variant in variants:
        if all(variant.attributes.get(name) == value for name, value in selection.items()):
            return variant
    return None
