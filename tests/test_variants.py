"""
Variant generation tests.
"""

from math import prod

import pytest

from storefront.catalog.attributes import AttributeGroup, ProductAttribute, make_value
from storefront.catalog.products import ProductDraft, ProductVariant
from storefront.catalog.variants import (
    available_values,
    find_variant,
    generate_combinations,
    generate_variants,
    remove_variant,
    update_variant,
)
from storefront.errors import (
    DuplicateSelectionError,
    GenerationError,
    MissingSelectionError,
    NoAttributesSelectedError,
    UnknownAttributeError,
)


def _attr(name, kind, value):
    return ProductAttribute(name=name, value=make_value(kind, value))


class TestGenerateCombinations:
    def test_size_by_color_order(self):
        combos = generate_combinations([
            _attr("Size", "multiselect", ["S", "M"]),
            _attr("Color", "color", ["Red", "Blue"]),
        ])
        assert combos == [
            [("Size", "S"), ("Color", "Red")],
            [("Size", "S"), ("Color", "Blue")],
            [("Size", "M"), ("Color", "Red")],
            [("Size", "M"), ("Color", "Blue")],
        ]

    @pytest.mark.parametrize("sizes", [[1], [3], [2, 2], [3, 1, 2], [2, 3, 4]])
    def test_count_is_product_of_value_set_sizes(self, sizes):
        attributes = [
            _attr(f"A{i}", "multiselect", [f"v{j}" for j in range(n)])
            for i, n in enumerate(sizes)
        ]
        combos = generate_combinations(attributes)
        assert len(combos) == prod(sizes)
        assert len({tuple(c) for c in combos}) == len(combos)

    def test_single_select_counts_as_one_value(self):
        combos = generate_combinations([_attr("Fermeture", "select", "Zippée")])
        assert combos == [[("Fermeture", "Zippée")]]

    def test_no_attributes(self):
        with pytest.raises(NoAttributesSelectedError):
            generate_combinations([])

    def test_empty_value_set_fails(self):
        with pytest.raises(MissingSelectionError) as exc:
            generate_combinations([
                _attr("Size", "multiselect", ["S"]),
                _attr("Color", "color", []),
            ])
        assert exc.value.attribute_name == "Color"
        assert exc.value.message_key == "error.missing_selection"

    def test_non_variantable_kind_rejected(self):
        with pytest.raises(UnknownAttributeError) as exc:
            generate_combinations([_attr("Marque", "text", "Aquatiss")])
        assert exc.value.message_key == "error.not_variantable"

    def test_same_attribute_twice_rejected(self):
        size = _attr("Size", "multiselect", ["S", "M"])
        with pytest.raises(DuplicateSelectionError) as exc:
            generate_combinations([size, size])
        assert exc.value.params == {"name": "Size"}


class TestGenerateVariants:
    def test_two_by_two_skus_and_values(self, dress_draft):
        draft = generate_variants(dress_draft, ["Taille", "Couleur"])
        assert [v.sku for v in draft.variants] == ["ROBE01-1", "ROBE01-2", "ROBE01-3", "ROBE01-4"]
        assert [v.attributes for v in draft.variants] == [
            {"Taille": "S", "Couleur": "Rouge"},
            {"Taille": "S", "Couleur": "Bleu"},
            {"Taille": "M", "Couleur": "Rouge"},
            {"Taille": "M", "Couleur": "Bleu"},
        ]

    def test_variants_copy_price_and_stock(self, dress_draft):
        draft = generate_variants(dress_draft, ["Taille"])
        for variant in draft.variants:
            assert variant.price == 49.9
            assert variant.sale_price == 39.9
            assert variant.stock_quantity == 5

    def test_selection_order_drives_nesting(self, dress_draft):
        draft = generate_variants(dress_draft, ["Couleur", "Taille"])
        assert draft.variants[1].attributes == {"Couleur": "Rouge", "Taille": "M"}

    def test_regeneration_replaces_existing(self, dress_draft):
        first = generate_variants(dress_draft, ["Taille", "Couleur"])
        second = generate_variants(first, ["Taille"])
        assert len(second.variants) == 2
        assert [v.sku for v in second.variants] == ["ROBE01-1", "ROBE01-2"]

    def test_input_draft_untouched(self, dress_draft):
        generate_variants(dress_draft, ["Taille", "Couleur"])
        assert dress_draft.variants == ()

    def test_failure_leaves_existing_variants(self, dress_draft):
        draft = generate_variants(dress_draft, ["Taille"])
        with pytest.raises(GenerationError):
            generate_variants(draft, ["Taille", "Inconnu"])
        assert len(draft.variants) == 2

    def test_no_selection(self, dress_draft):
        with pytest.raises(NoAttributesSelectedError):
            generate_variants(dress_draft, [])

    def test_duplicate_selection_rejected(self, dress_draft):
        draft = generate_variants(dress_draft, ["Couleur"])
        with pytest.raises(DuplicateSelectionError) as exc:
            generate_variants(draft, ["Taille", "Couleur", "Taille"])
        assert exc.value.message_key == "error.duplicate_selection"
        assert exc.value.attribute_name == "Taille"
        assert [v.attributes for v in draft.variants] == [{"Couleur": "Rouge"}, {"Couleur": "Bleu"}]

    def test_unknown_attribute(self, dress_draft):
        with pytest.raises(UnknownAttributeError) as exc:
            generate_variants(dress_draft, ["Longueur"])
        assert exc.value.params == {"name": "Longueur"}

    def test_text_attribute_cannot_define_variants(self, dress_draft):
        with pytest.raises(UnknownAttributeError) as exc:
            generate_variants(dress_draft, ["Marque"])
        assert exc.value.message_key == "error.not_variantable"

    def test_empty_selection_on_draft(self):
        draft = ProductDraft(
            sku="TOP",
            attribute_groups=(AttributeGroup(name="G", attributes=(_attr("Taille", "multiselect", []),)),),
        )
        with pytest.raises(MissingSelectionError):
            generate_variants(draft, ["Taille"])


class TestVariantHelpers:
    def test_remove_and_update(self, dress_draft):
        draft = generate_variants(dress_draft, ["Taille", "Couleur"])
        target = draft.variants[0]
        updated = update_variant(draft, ProductVariant(
            id=target.id, sku=target.sku, price=59.0, stock_quantity=1, attributes=target.attributes,
        ))
        assert updated.variants[0].price == 59.0
        removed = remove_variant(updated, target.id)
        assert len(removed.variants) == 3
        assert target.id not in {v.id for v in removed.variants}

    def test_available_values_first_seen_order(self, dress_draft):
        draft = generate_variants(dress_draft, ["Taille", "Couleur"])
        assert available_values(draft.variants, "Couleur") == ["Rouge", "Bleu"]
        assert available_values(draft.variants, "Taille") == ["S", "M"]
        assert available_values(draft.variants, "Saison") == []

    def test_variantable_attributes(self, dress_draft):
        assert [a.name for a in dress_draft.variantable_attributes()] == ["Genre", "Taille", "Couleur", "Matière"]

    def test_find_variant(self, dress_draft):
        draft = generate_variants(dress_draft, ["Taille", "Couleur"])
        found = find_variant(draft.variants, {"Taille": "M", "Couleur": "Rouge"})
        assert found.sku == "ROBE01-3"
        assert find_variant(draft.variants, {"Taille": "XL"}) is None

    def test_variant_row_round_trip(self):
        variant = ProductVariant(sku="X-1", price=10.0, attributes={"Taille": "S"})
        row = variant.to_row(product_id="p1")
        assert row["product_id"] == "p1"
        assert ProductVariant.from_row(row) == variant
