"""
Pydantic models for storefront API requests and responses.
"""
from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List

from storefront.checkout.service import CardDetails, CheckoutForm, ShippingAddress


class AttributeInput(BaseModel):
    """One product attribute as edited in the back office."""
    name: str
    kind: str = Field(description="text, number, boolean, select, multiselect or color")
    value: Any = Field(default=None, description="Scalar, or list for multiselect/color")
    options: List[str] = Field(default_factory=list)


class DraftInput(BaseModel):
    name: str = ""
    sku: str = ""
    price: float = 0.0
    sale_price: Optional[float] = None
    stock_quantity: int = 0
    category_id: str = ""
    attributes: List[AttributeInput] = Field(default_factory=list)


class GenerateVariantsRequest(BaseModel):
    draft: DraftInput
    selected: List[str] = Field(description="Variant-defining attribute names, outer to inner")


class VariantResponse(BaseModel):
    id: str
    sku: str
    price: float
    sale_price: Optional[float] = None
    stock_quantity: int
    attributes: Dict[str, Any]


class GenerateVariantsResponse(BaseModel):
    variants: List[VariantResponse]
    count: int


class ProductCodeRequest(BaseModel):
    draft: DraftInput


class ProductCodeResponse(BaseModel):
    code: str


class SessionRequest(BaseModel):
    """Start (or restart) a shopper session."""
    session_id: Optional[str] = None
    user_id: str = Field(default="", description="Signed-in user id")
    user_email: str = Field(default="", description="Signed-in user e-mail (gift card ownership)")


class SessionResponse(BaseModel):
    session_id: str
    status: str


class CartItemRequest(BaseModel):
    product_id: str
    name: str
    price: float
    quantity: int = 1
    size: str = ""
    color: str = ""
    product_code: Optional[str] = None
    image: str = ""


class QuantityRequest(BaseModel):
    quantity: int
    size: Optional[str] = None
    color: Optional[str] = None


class DiscountKeyRequest(BaseModel):
    first_part: str = Field(description="First 4 digits (own identifier)")
    second_part: str = Field(description="Last 4 digits (partner identifier)")
    tier: str = Field(description="silver, bronze or gold")
    product_id: str


class CartResponse(BaseModel):
    session_id: str
    items: List[Dict[str, Any]]
    discounts: List[Dict[str, Any]]
    count: int
    totals: Dict[str, float]


class GiftCardPurchaseRequest(BaseModel):
    sender_id: str
    sender_email: str
    amount: float
    recipient_email: str
    message: str = ""


class GiftCardResponse(BaseModel):
    id: str
    code: str
    amount: float
    recipient_email: str
    expires_at: str


class ApplyGiftCardRequest(BaseModel):
    code: str


class CheckoutFormRequest(BaseModel):
    form: CheckoutForm
    address: Optional[ShippingAddress] = None


class PaymentRequest(BaseModel):
    card: CardDetails


class CheckoutResponse(BaseModel):
    session_id: str
    step: str
    error: Optional[str] = None
    order_id: Optional[str] = None
    totals: Dict[str, float]
    gift_cards: List[Dict[str, Any]] = Field(default_factory=list)
    confirmation: Optional[Dict[str, Any]] = None


class HealthResponse(BaseModel):
    """Response model for health check."""
    status: str
    service: str
    version: str
    config: Dict[str, Any]
