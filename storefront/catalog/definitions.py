"""
Attribute reference data.

Common attributes apply to every category; the rest apply to the category
slugs listed in their `categories`. Names are in French, as shown to admins
and shoppers.
"""
from typing import Iterable, List

from storefront.catalog.attributes import (
    AttributeDefinition,
    AttributeGroup,
    AttributeKind,
    ProductAttribute,
)

CLOTHING = ("robes", "tops-tee-shirts", "chemises", "pantalons", "pulls-gilets-sweatshirts", "jeans")
BAGS = ("sacs-a-main", "sacs-bandouliere", "sacs-cabas", "sacs-a-dos")
JEWELLERY = ("boucles-oreilles", "bracelets", "bagues", "colliers", "pendentifs")

COMMON_GROUP_NAME = "Attributs communs"
SPECIFIC_GROUP_NAME = "Attributs spécifiques"

COMMON_ATTRIBUTES: List[AttributeDefinition] = [
    AttributeDefinition(
        name="Marque", kind=AttributeKind.TEXT, required=True,
        description="Marque du produit", default_value="Aquatiss",
    ),
    AttributeDefinition(
        name="Poids", kind=AttributeKind.NUMBER,
        description="Poids du produit en grammes", default_value=0,
    ),
    AttributeDefinition(
        name="Genre", kind=AttributeKind.MULTISELECT, options=("Homme", "Femme", "Mixte"), required=True,
        description="Genre pour lequel le produit est destiné", default_value=["Femme"],
    ),
]

CATEGORY_ATTRIBUTES: List[AttributeDefinition] = [
    # Clothing
    AttributeDefinition(
        name="Taille", kind=AttributeKind.MULTISELECT, options=("XS", "S", "M", "L", "XL"), required=True,
        description="Tailles disponibles pour ce vêtement", default_value=["M"], categories=CLOTHING,
    ),
    AttributeDefinition(
        name="Couleur", kind=AttributeKind.COLOR,
        options=("Noir", "Blanc", "Rouge", "Bleu", "Vert", "Jaune", "Rose", "Violet", "Gris", "Beige"),
        required=True, description="Couleurs disponibles pour ce vêtement", default_value=["Noir"],
        categories=CLOTHING,
    ),
    AttributeDefinition(
        name="Saison", kind=AttributeKind.MULTISELECT, options=("Printemps", "Été", "Automne", "Hiver"),
        required=True, description="Saisons pour lesquelles ce vêtement est adapté",
        default_value=["Printemps", "Été"], categories=CLOTHING,
    ),
    AttributeDefinition(
        name="Matière", kind=AttributeKind.MULTISELECT,
        options=("Coton", "Lin", "Soie", "Polyester", "Laine", "Viscose", "Élasthanne", "Cuir", "Denim"),
        description="Matière principale du vêtement", default_value=["Coton"], categories=CLOTHING,
    ),
    # Bags
    AttributeDefinition(
        name="Type de fermeture", kind=AttributeKind.SELECT,
        options=("Zippée", "Bouton pression", "Cordon", "Aimant", "Rabat"), required=True,
        description="Type de fermeture du sac", default_value="Zippée", categories=BAGS,
    ),
    AttributeDefinition(
        name="Dimensions", kind=AttributeKind.TEXT, required=True,
        description="Dimensions du sac (L x H x P en cm)", default_value="30 x 25 x 10 cm", categories=BAGS,
    ),
    AttributeDefinition(
        name="Bandoulière amovible", kind=AttributeKind.BOOLEAN,
        description="Le sac dispose-t-il d'une bandoulière amovible ?", default_value=False,
        categories=BAGS[:3],
    ),
    AttributeDefinition(
        name="Matière", kind=AttributeKind.SELECT,
        options=("Cuir", "Cuir synthétique", "Toile", "Nylon", "Coton", "Paille"), required=True,
        description="Matière principale du sac", default_value="Cuir", categories=BAGS,
    ),
    AttributeDefinition(
        name="Nombre de poches", kind=AttributeKind.NUMBER,
        description="Nombre de poches intérieures et extérieures", default_value=2, categories=BAGS,
    ),
    # Jewellery
    AttributeDefinition(
        name="Matière", kind=AttributeKind.SELECT,
        options=("Argent", "Or", "Acier inoxydable", "Plaqué or", "Laiton", "Alliage"), required=True,
        description="Matière principale du bijou", default_value="Argent", categories=JEWELLERY,
    ),
    AttributeDefinition(
        name="Type de pierre", kind=AttributeKind.TEXT,
        description="Type de pierre utilisée dans le bijou", default_value="", categories=JEWELLERY,
    ),
    AttributeDefinition(
        name="Couleur", kind=AttributeKind.COLOR, options=("Or", "Argent", "Rose", "Noir", "Blanc", "Multicolore"),
        required=True, description="Couleur principale du bijou", default_value=["Argent"], categories=JEWELLERY,
    ),
    AttributeDefinition(
        name="Hypoallergénique", kind=AttributeKind.BOOLEAN,
        description="Le bijou est-il hypoallergénique ?", default_value=False, categories=JEWELLERY,
    ),
]


def get_attributes_for_category(category_slug: str) -> List[AttributeDefinition]:
    """
    Attribute definitions available for a category.

    Common attributes come first, then category-specific ones in declaration
    order. Names are unique in the result; the first definition wins.
    """
    candidates = COMMON_ATTRIBUTES + [d for d in CATEGORY_ATTRIBUTES if d.applies_to(category_slug)]
    seen = set()
    unique = []
    for definition in candidates:
        if definition.name in seen:
            continue
        seen.add(definition.name)
        unique.append(definition)
    return unique


def create_default_groups(definitions: Iterable[AttributeDefinition]) -> List[AttributeGroup]:
    """Split definitions into the common group and the category-specific group."""
    definitions = list(definitions)
    common = [d for d in definitions if "all" in d.categories]
    specific = [d for d in definitions if "all" not in d.categories]
    return [
        AttributeGroup(
            name=COMMON_GROUP_NAME,
            attributes=tuple(ProductAttribute.from_definition(d, i) for i, d in enumerate(common)),
            sort_order=0,
        ),
        AttributeGroup(
            name=SPECIFIC_GROUP_NAME,
            attributes=tuple(ProductAttribute.from_definition(d, i) for i, d in enumerate(specific)),
            sort_order=1,
        ),
    ]


def find_definition(definitions: Iterable[AttributeDefinition], name: str):
    """First definition with this name, or None."""
    return next((d for d in definitions if d.name == name), None)
