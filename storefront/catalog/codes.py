"""
Product code generator.

Builds a human-legible label from the product name, its key attributes and
a random base-36 suffix, e.g. ``ROBE-LONGU-Tai-S-M_Cou-Noir-4K2Z``. The
suffix can collide; the code is a label, not a primary key.
"""
from dataclasses import replace
import random
import re
import string
import unicodedata
from typing import Iterable, Optional, Sequence, Tuple

from storefront.catalog.attributes import ProductAttribute
from storefront.catalog.products import ProductDraft
from storefront.core.config import get_config
from storefront.errors import CodePrerequisiteError
from storefront.utils.logger import get_logger

logger = get_logger("catalog.codes")

BASE36_ALPHABET = string.digits + string.ascii_uppercase
CODE_METADATA_KEY = "uniqueCode"

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]+")


def normalize_name(name: str, length: Optional[int] = None) -> str:
    """Strip accents, collapse non-alphanumeric runs to '-', trim, truncate, upper-case."""
    length = length or get_config().code_name_length
    decomposed = unicodedata.normalize("NFD", name)
    ascii_name = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    slug = _NON_ALNUM.sub("-", ascii_name).strip("-")
    return slug[:length].upper()


def _value_text(attribute: ProductAttribute) -> str:
    raw = attribute.value.to_raw()
    if isinstance(raw, list):
        return "-".join(raw)
    return str(raw)


def attribute_fragment(attributes: Iterable[ProductAttribute], key_names: Optional[Sequence[str]] = None) -> str:
    """'Tai-S-M_Cou-Noir' style fragment from the allow-listed, non-empty attributes."""
    key_names = key_names if key_names is not None else get_config().code_attributes
    keys = [attr for attr in attributes if attr.name in key_names and not attr.value.is_empty()]
    return "_".join(f"{attr.name[:3]}-{_value_text(attr)}" for attr in keys)


def random_suffix(length: Optional[int] = None, rng: Optional[random.Random] = None) -> str:
    length = length or get_config().code_suffix_length
    rng = rng or random.Random()
    return "".join(rng.choice(BASE36_ALPHABET) for _ in range(length))


def generate_unique_code(
    name: str,
    category_id: str,
    attributes: Iterable[ProductAttribute],
    rng: Optional[random.Random] = None,
) -> str:
    """
    Generate a product code.

    Args:
        name: Product name
        category_id: Product category; required even though it is not part of the code
        attributes: Flattened product attributes
        rng: Random source for the suffix (tests pass a seeded one)

    Returns:
        NAME-FRAGMENT-SUFFIX, or NAME-SUFFIX when no key attribute is set

    Raises:
        CodePrerequisiteError: name or category missing
    """
    if not name or not name.strip() or not category_id:
        raise CodePrerequisiteError()

    parts = [normalize_name(name.strip())]
    fragment = attribute_fragment(attributes)
    if fragment:
        parts.append(fragment)
    parts.append(random_suffix(rng=rng))
    return "-".join(parts)


def apply_unique_code(draft: ProductDraft, rng: Optional[random.Random] = None) -> Tuple[ProductDraft, str]:
    """
    Regenerate the draft's code into metadata["uniqueCode"].

    Raises:
        CodePrerequisiteError: name or category missing. The error carries
            `draft`, a copy with the stale code removed.
    """
    try:
        code = generate_unique_code(draft.name, draft.category_id, draft.all_attributes(), rng=rng)
    except CodePrerequisiteError as e:
        metadata = {k: v for k, v in draft.metadata.items() if k != CODE_METADATA_KEY}
        e.draft = replace(draft, metadata=metadata)
        raise
    logger.debug(f"Generated product code {code}")
    return replace(draft, metadata={**draft.metadata, CODE_METADATA_KEY: code}), code
