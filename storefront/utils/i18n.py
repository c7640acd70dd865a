"""
Internationalization (i18n) Support for the storefront.

Supports multiple languages for user-facing messages:
- Validation and generation errors
- Gift card and discount key rejections
- Checkout outcomes

Currently supported languages:
- French (fr) - default, the shop's language
- English (en)

Usage:
    from storefront.utils.i18n import translate

    text = translate("gift_card.not_owner", lang="en")
    text = translate("error.missing_selection", name="Taille")
"""

from enum import Enum
from typing import Dict, Optional

from storefront.utils.logger import get_logger

logger = get_logger("utils.i18n")


class Language(Enum):
    """Supported languages."""
    FRENCH = "fr"
    ENGLISH = "en"


# Translation dictionary
TRANSLATIONS: Dict[str, Dict[str, str]] = {
    # Variant / code generation
    "error.no_attributes_selected": {
        "fr": "Veuillez sélectionner au moins un attribut pour générer des variantes",
        "en": "Select at least one attribute to generate variants",
    },
    "error.missing_selection": {
        "fr": "Aucune valeur sélectionnée pour l'attribut {name}",
        "en": "No value selected for attribute {name}",
    },
    "error.unknown_attribute": {
        "fr": "Attribut {name} non trouvé",
        "en": "Attribute {name} not found",
    },
    "error.not_variantable": {
        "fr": "L'attribut {name} ne peut pas servir à générer des variantes",
        "en": "Attribute {name} cannot be used to generate variants",
    },
    "error.duplicate_selection": {
        "fr": "L'attribut {name} est sélectionné plusieurs fois",
        "en": "Attribute {name} is selected more than once",
    },
    "error.code_prerequisites": {
        "fr": "Le nom du produit et la catégorie sont requis pour générer un code unique",
        "en": "Product name and category are required to generate a unique code",
    },

    # Attribute groups
    "error.duplicate_attribute": {
        "fr": "L'attribut {name} existe déjà dans ce groupe",
        "en": "Attribute {name} already exists in this group",
    },
    "error.attribute_not_found": {
        "fr": "Attribut introuvable",
        "en": "Attribute not found",
    },
    "error.invalid_number": {
        "fr": "Valeur numérique invalide",
        "en": "Invalid numeric value",
    },
    "error.invalid_position": {
        "fr": "Position invalide",
        "en": "Invalid position",
    },

    # Cart
    "error.invalid_quantity": {
        "fr": "La quantité doit être au moins égale à 1",
        "en": "Quantity must be at least 1",
    },
    "error.empty_cart": {
        "fr": "Votre panier est vide",
        "en": "Your cart is empty",
    },

    # Checkout form
    "error.first_name_required": {
        "fr": "Le prénom est requis",
        "en": "First name is required",
    },
    "error.invalid_email": {
        "fr": "Email invalide",
        "en": "Invalid email",
    },
    "error.invalid_phone": {
        "fr": "Numéro de téléphone invalide",
        "en": "Invalid phone number",
    },
    "error.address_required": {
        "fr": "Une adresse de livraison est requise",
        "en": "A shipping address is required",
    },

    # Simulated card payment
    "error.invalid_card_number": {
        "fr": "Numéro de carte invalide",
        "en": "Invalid card number",
    },
    "error.card_holder_required": {
        "fr": "Nom du titulaire requis",
        "en": "Card holder name is required",
    },
    "error.invalid_expiry": {
        "fr": "Date d'expiration invalide",
        "en": "Invalid expiry date",
    },
    "error.invalid_month": {
        "fr": "Mois invalide",
        "en": "Invalid month",
    },
    "error.card_expired": {
        "fr": "Carte expirée",
        "en": "Card expired",
    },
    "error.invalid_cvv": {
        "fr": "CVV invalide",
        "en": "Invalid CVV",
    },
    "payment.declined": {
        "fr": "Carte refusée. Veuillez utiliser une autre carte.",
        "en": "Card declined. Please use another card.",
    },

    # Gift cards
    "error.gift_card_code_required": {
        "fr": "Veuillez entrer un code de chèque cadeau",
        "en": "Enter a gift card code",
    },
    "error.invalid_amount": {
        "fr": "Le montant doit être supérieur à 0",
        "en": "Amount must be greater than 0",
    },
    "gift_card.invalid_or_expired": {
        "fr": "Code invalide, expiré ou déjà utilisé",
        "en": "Invalid, expired or already used code",
    },
    "gift_card.not_owner": {
        "fr": "Ce chèque cadeau ne vous appartient pas",
        "en": "This gift card does not belong to you",
    },
    "gift_card.already_applied": {
        "fr": "Ce chèque cadeau est déjà appliqué",
        "en": "This gift card is already applied",
    },
    "gift_card.applied": {
        "fr": "Chèque cadeau de {amount} € appliqué avec succès",
        "en": "Gift card of €{amount} applied",
    },

    # Discount keys
    "error.invalid_key_format": {
        "fr": "Chaque partie de la clé doit contenir 4 chiffres",
        "en": "Each part of the key must contain 4 digits",
    },
    "discount_key.max_attempts": {
        "fr": "Nombre maximum de tentatives atteint",
        "en": "Maximum number of attempts reached",
    },
    "discount_key.profile_not_found": {
        "fr": "Utilisateur non trouvé",
        "en": "User not found",
    },
    "discount_key.first_purchase_required": {
        "fr": "Effectuez votre premier achat pour profiter des clés de réduction !",
        "en": "Make your first purchase to unlock discount keys!",
    },
    "discount_key.invalid": {
        "fr": "Code invalide",
        "en": "Invalid code",
    },
    "discount_key.partner_not_sharing": {
        "fr": "Le partenaire ne partage pas encore de clés promo",
        "en": "The partner does not share discount keys yet",
    },
    "discount_key.already_used": {
        "fr": "Code déjà utilisé",
        "en": "Code already used",
    },
    "discount_key.key_not_found": {
        "fr": "Clé de réduction non trouvée",
        "en": "Discount key not found",
    },

    # Checkout flow
    "error.invalid_transition": {
        "fr": "Étape impossible : {source} vers {target}",
        "en": "Cannot move from {source} to {target}",
    },
    "error.order_failed": {
        "fr": "Une erreur est survenue lors du traitement de votre commande",
        "en": "An error occurred while processing your order",
    },

    # Generic
    "error.generic": {
        "fr": "Une erreur est survenue. Veuillez réessayer.",
        "en": "An error occurred. Please try again.",
    },
    "error.session_not_found": {
        "fr": "Session introuvable",
        "en": "Session not found",
    },
}


def get_language(lang: Optional[str] = None) -> Language:
    """Resolve a language code, falling back to the configured default."""
    if lang is None:
        from storefront.core.config import get_config
        lang = get_config().language
    try:
        return Language(lang.lower()[:2])
    except ValueError:
        return Language.FRENCH


def translate(key: str, lang: Optional[str] = None, **params) -> str:
    """
    Translate a message key.

    Args:
        key: Message key (e.g. "gift_card.not_owner")
        lang: Language code; defaults to the configured language
        **params: Values substituted into the message

    Returns:
        Translated text, the English text when the language is missing,
        or the key itself when the key is unknown.
    """
    entry = TRANSLATIONS.get(key)
    if entry is None:
        logger.warning(f"Missing translation key: {key}")
        return key
    language = get_language(lang)
    text = entry.get(language.value) or entry["en"]
    try:
        return text.format(**params)
    except (KeyError, IndexError):
        return text
