"""
Storefront - business core of a fashion e-commerce site

- Attribute/variant combinator and product codes for the back office
- Cart session state and pricing (tax, discount keys, gift cards)
- Thin checkout state machine and order write sequence
- Supabase REST, SQL and in-memory data stores
"""

from storefront.core.config import StorefrontConfig, get_config, set_config

__all__ = [
    'StorefrontConfig',
    'get_config',
    'set_config',
]

__version__ = '0.1.0'
