"""
Configuration management for the storefront.

Loads settings from YAML config file and provides typed access.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional
import os
import yaml

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()


def _project_root() -> Path:
    """Return project root (parent of storefront package)."""
    return Path(__file__).resolve().parent.parent.parent


DEFAULT_CONFIG_PATH = _project_root() / "config" / "default.yaml"


@dataclass
class StorefrontConfig:
    """Configuration for the storefront."""

    # Store
    currency: str = "EUR"
    language: str = "fr"                # Language for user-facing messages
    log_level: str = "INFO"

    # Pricing
    tax_rate: float = 0.20              # Applied to the pre-discount subtotal

    # Discount keys
    max_discount_attempts: int = 5
    discount_tiers: Dict[str, int] = field(default_factory=lambda: {
        "silver": 5,
        "bronze": 10,
        "gold": 20,
    })

    # Gift cards
    gift_card_amounts: List[float] = field(default_factory=lambda: [50, 100, 150])
    gift_card_validity_days: int = 365

    # Catalog
    code_attributes: List[str] = field(default_factory=lambda: ["Taille", "Couleur", "Matière"])
    code_name_length: int = 10
    code_suffix_length: int = 4

    # Checkout
    phone_min_length: int = 10

    # Backend (from environment, never from YAML)
    database_url: str = ""
    supabase_url: str = ""
    supabase_key: str = ""

    @classmethod
    def from_yaml(cls, config_path: Optional[Path] = None) -> "StorefrontConfig":
        """Load configuration from YAML file."""
        path = config_path or DEFAULT_CONFIG_PATH
        env = cls._backend_from_env()
        if not path.exists():
            return cls(**env)

        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        store_config = data.get('store', {})
        pricing_config = data.get('pricing', {})
        keys_config = data.get('discount_keys', {})
        gift_config = data.get('gift_cards', {})
        catalog_config = data.get('catalog', {})
        checkout_config = data.get('checkout', {})

        defaults = cls()
        return cls(
            currency=store_config.get('currency', defaults.currency),
            language=store_config.get('language', defaults.language),
            log_level=store_config.get('log_level', defaults.log_level),
            tax_rate=float(pricing_config.get('tax_rate', defaults.tax_rate)),
            max_discount_attempts=keys_config.get('max_attempts', defaults.max_discount_attempts),
            discount_tiers=dict(keys_config.get('tiers', defaults.discount_tiers)),
            gift_card_amounts=list(gift_config.get('preset_amounts', defaults.gift_card_amounts)),
            gift_card_validity_days=gift_config.get('validity_days', defaults.gift_card_validity_days),
            code_attributes=list(catalog_config.get('code_attributes', defaults.code_attributes)),
            code_name_length=catalog_config.get('code_name_length', defaults.code_name_length),
            code_suffix_length=catalog_config.get('code_suffix_length', defaults.code_suffix_length),
            phone_min_length=checkout_config.get('phone_min_length', defaults.phone_min_length),
            **env,
        )

    @staticmethod
    def _backend_from_env() -> Dict[str, str]:
        return {
            "database_url": os.environ.get("DATABASE_URL", ""),
            "supabase_url": os.environ.get("SUPABASE_URL", ""),
            "supabase_key": os.environ.get("SUPABASE_SERVICE_ROLE_KEY") or os.environ.get("SUPABASE_KEY", ""),
        }


# Global config instance
_config: Optional[StorefrontConfig] = None


def get_config() -> StorefrontConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = StorefrontConfig.from_yaml()
    return _config


def set_config(config: StorefrontConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
