"""
Exception hierarchy for the storefront.

Every error carries a message key (see storefront.utils.i18n) and the
parameters needed to render it, so callers can show a localized message
without parsing exception text.

Categories:
- ValidationError: bad form input, attribute group invariants, quantities
- GenerationError: variant / product code generation preconditions
- RemoteCallError: failures talking to the backend (never retried)
- BusinessRuleError: gift card, discount key and payment rejections
- InvalidTransitionError: illegal checkout step change
"""
from typing import Any, Dict, Optional

from storefront.utils.i18n import translate


class StorefrontError(Exception):
    """Base class for all storefront errors."""

    message_key = "error.generic"

    def __init__(self, message_key: Optional[str] = None, **params: Any):
        self.message_key = message_key or self.message_key
        self.params: Dict[str, Any] = params
        super().__init__(self.message_key)

    def localized(self, lang: Optional[str] = None) -> str:
        return translate(self.message_key, lang, **self.params)

    def to_dict(self, lang: Optional[str] = None) -> Dict[str, Any]:
        return {
            "error": type(self).__name__,
            "code": self.message_key,
            "message": self.localized(lang),
            "params": {k: str(v) for k, v in self.params.items()},
        }


class ValidationError(StorefrontError, ValueError):
    """Invalid input; the operation is aborted before any state change."""


class GenerationError(StorefrontError, ValueError):
    """Precondition failure in variant or code generation; nothing is produced."""


class NoAttributesSelectedError(GenerationError):
    message_key = "error.no_attributes_selected"


class MissingSelectionError(GenerationError):
    message_key = "error.missing_selection"

    def __init__(self, attribute_name: str):
        self.attribute_name = attribute_name
        super().__init__(name=attribute_name)


class UnknownAttributeError(GenerationError):
    message_key = "error.unknown_attribute"

    def __init__(self, attribute_name: str, message_key: Optional[str] = None):
        self.attribute_name = attribute_name
        super().__init__(message_key, name=attribute_name)


class DuplicateSelectionError(GenerationError):
    message_key = "error.duplicate_selection"

    def __init__(self, attribute_name: str):
        self.attribute_name = attribute_name
        super().__init__(name=attribute_name)


class CodePrerequisiteError(GenerationError):
    message_key = "error.code_prerequisites"


class RemoteCallError(StorefrontError):
    """Backend call failed (network, auth, constraint violation)."""

    def __init__(self, operation: str, detail: str = "", message_key: Optional[str] = None):
        self.operation = operation
        self.detail = detail
        super().__init__(message_key)

    def __str__(self) -> str:
        return f"{self.operation} failed: {self.detail}"


class BusinessRuleError(StorefrontError):
    """A business rule rejected the request."""

    prefix = ""

    def __init__(self, reason: str, **params: Any):
        self.reason = reason
        super().__init__(f"{self.prefix}{reason}", **params)


class GiftCardRejectedError(BusinessRuleError):
    prefix = "gift_card."


class DiscountKeyRejectedError(BusinessRuleError):
    prefix = "discount_key."


class PaymentDeclinedError(BusinessRuleError):
    prefix = "payment."

    def __init__(self):
        super().__init__("declined")


class InvalidTransitionError(StorefrontError):
    message_key = "error.invalid_transition"

    def __init__(self, source: str, target: str):
        self.source = source
        self.target = target
        super().__init__(source=source, target=target)
