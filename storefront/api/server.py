"""
FastAPI server for the storefront.

Provides REST API endpoints for the shop front end and the admin back office.

Usage:
    uvicorn storefront.api.server:app --reload --port 8000
"""
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from typing import Dict, List, Optional
import uuid

from storefront import __version__
from storefront.api.models import (
    ApplyGiftCardRequest,
    CartItemRequest,
    CartResponse,
    CheckoutFormRequest,
    CheckoutResponse,
    DiscountKeyRequest,
    DraftInput,
    GenerateVariantsRequest,
    GenerateVariantsResponse,
    GiftCardPurchaseRequest,
    GiftCardResponse,
    HealthResponse,
    PaymentRequest,
    ProductCodeRequest,
    ProductCodeResponse,
    QuantityRequest,
    SessionRequest,
    SessionResponse,
    VariantResponse,
)
from storefront.cart import session as cart_ops
from storefront.cart.discounts import DiscountKeyRedeemer
from storefront.catalog.attributes import AttributeGroup, ProductAttribute, make_value
from storefront.catalog.codes import apply_unique_code
from storefront.catalog.definitions import create_default_groups, get_attributes_for_category
from storefront.catalog.products import ProductDraft, ProductVariant
from storefront.catalog.variants import generate_variants
from storefront.checkout.service import CheckoutSession
from storefront.core.config import get_config
from storefront.data.store import get_store
from storefront.errors import (
    BusinessRuleError,
    GenerationError,
    InvalidTransitionError,
    PaymentDeclinedError,
    RemoteCallError,
    StorefrontError,
    ValidationError,
)
from storefront.giftcards.cards import GiftCardPurchase, purchase_gift_card
from storefront.utils.i18n import translate
from storefront.utils.logger import configure_logging, get_logger

logger = get_logger("api.server")
configure_logging(get_config().log_level)

app = FastAPI(
    title="Storefront API",
    description="Catalog administration, cart, gift cards and checkout",
    version=__version__,
)

# Enable CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Session storage: session_id -> CheckoutSession (cart + checkout state)
sessions: Dict[str, CheckoutSession] = {}


def _status_for(exc: StorefrontError) -> int:
    if isinstance(exc, (ValidationError, GenerationError)):
        return 400
    if isinstance(exc, PaymentDeclinedError):
        return 402
    if isinstance(exc, (BusinessRuleError, InvalidTransitionError)):
        return 409
    if isinstance(exc, RemoteCallError):
        return 502
    return 500


def _request_language(request: Request) -> Optional[str]:
    header = request.headers.get("accept-language", "")
    return header[:2].lower() or None


@app.exception_handler(StorefrontError)
async def storefront_error_handler(request: Request, exc: StorefrontError):
    """Localized JSON error body; remote failures hide their detail."""
    status = _status_for(exc)
    lang = _request_language(request)
    if isinstance(exc, RemoteCallError):
        logger.error(f"Remote call failed on {request.url.path}: {exc}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {status} {exc.message_key}")
    return JSONResponse(status_code=status, content=exc.to_dict(lang))


def get_session(session_id: str) -> CheckoutSession:
    if session_id not in sessions:
        raise HTTPException(status_code=404, detail=translate("error.session_not_found"))
    return sessions[session_id]


def _draft_from_input(data: DraftInput) -> ProductDraft:
    attributes = tuple(
        ProductAttribute(
            name=attr.name,
            value=make_value(attr.kind, attr.value),
            options=tuple(attr.options),
            sort_order=index,
        )
        for index, attr in enumerate(data.attributes)
    )
    return ProductDraft(
        name=data.name,
        sku=data.sku,
        price=data.price,
        sale_price=data.sale_price,
        stock_quantity=data.stock_quantity,
        category_id=data.category_id,
        attribute_groups=(AttributeGroup(name="Attributs", attributes=attributes),),
    )


def _variant_response(variant: ProductVariant) -> VariantResponse:
    return VariantResponse(**variant.to_row())


def _cart_response(session_id: str, session: CheckoutSession) -> CartResponse:
    data = cart_ops.to_dict(session.cart)
    totals = session.totals().to_dict()
    return CartResponse(
        session_id=session_id,
        items=data["items"],
        discounts=data["discounts"],
        count=session.cart.count,
        totals={k: totals[k] for k in ("subtotal", "tax", "discount_total", "total")},
    )


def _checkout_response(session_id: str, session: CheckoutSession, lang: Optional[str] = None) -> CheckoutResponse:
    return CheckoutResponse(
        session_id=session_id,
        step=session.step.value,
        error=translate(session.flow.error, lang) if session.flow.error else None,
        order_id=session.flow.order_id,
        totals=session.totals().to_dict(),
        gift_cards=[{"id": c.id, "code": c.code, "amount": c.amount} for c in session.gift_cards],
        confirmation=session.confirmation.to_dict() if session.confirmation else None,
    )


# API Endpoints

@app.get("/", response_model=HealthResponse)
async def root():
    """Health check endpoint."""
    config = get_config()
    return HealthResponse(
        status="online",
        service="Storefront API",
        version=__version__,
        config={
            "currency": config.currency,
            "language": config.language,
            "tax_rate": config.tax_rate,
            "backend": type(get_store()).__name__,
        },
    )


# Catalog administration

@app.get("/catalog/attributes/{category_slug}")
async def category_attributes(category_slug: str):
    """Attribute definitions for a category and the default groups built from them."""
    definitions = get_attributes_for_category(category_slug)
    groups = create_default_groups(definitions)
    return {
        "category": category_slug,
        "definitions": [
            {"name": d.name, "kind": d.kind.value, "options": list(d.options), "required": d.required}
            for d in definitions
        ],
        "groups": [
            {
                "name": g.name,
                "sort_order": g.sort_order,
                "attributes": [
                    {"name": a.name, "kind": a.kind.value, "value": a.value.to_raw(), "sort_order": a.sort_order}
                    for a in g.attributes
                ],
            }
            for g in groups
        ],
    }


@app.post("/catalog/variants/generate", response_model=GenerateVariantsResponse)
async def generate_product_variants(request: GenerateVariantsRequest):
    """Generate one variant per combination of the selected attributes' values."""
    draft = generate_variants(_draft_from_input(request.draft), request.selected)
    return GenerateVariantsResponse(
        variants=[_variant_response(v) for v in draft.variants],
        count=len(draft.variants),
    )


@app.put("/catalog/products/{product_id}/variants", response_model=GenerateVariantsResponse)
async def save_product_variants(product_id: str, request: GenerateVariantsRequest):
    """Regenerate and store a product's variants, replacing the stored ones."""
    draft = generate_variants(_draft_from_input(request.draft), request.selected)
    get_store().replace_variants(product_id, [v.to_row() for v in draft.variants])
    return GenerateVariantsResponse(
        variants=[_variant_response(v) for v in draft.variants],
        count=len(draft.variants),
    )


@app.get("/catalog/products/{product_id}/variants", response_model=List[VariantResponse])
async def list_product_variants(product_id: str):
    rows = get_store().variants_for_product(product_id)
    return [_variant_response(ProductVariant.from_row(row)) for row in rows]


@app.get("/catalog/categories/{category_id}/products")
async def list_category_products(category_id: str):
    return get_store().products_by_category(category_id)


@app.post("/catalog/products/code", response_model=ProductCodeResponse)
async def generate_product_code(request: ProductCodeRequest):
    _, code = apply_unique_code(_draft_from_input(request.draft))
    return ProductCodeResponse(code=code)


# Sessions and cart

@app.post("/session/reset", response_model=SessionResponse)
async def reset_session(request: SessionRequest):
    """Reset session or create new one."""
    session_id = request.session_id or str(uuid.uuid4())
    sessions[session_id] = CheckoutSession(store=get_store(), user_id=request.user_id, user_email=request.user_email)
    logger.info(f"Reset session: {session_id}")
    return SessionResponse(session_id=session_id, status="reset")


@app.delete("/session/{session_id}")
async def delete_session(session_id: str):
    """Delete a session."""
    if session_id in sessions:
        del sessions[session_id]
        logger.info(f"Deleted session: {session_id}")
        return {"status": "deleted", "session_id": session_id}
    raise HTTPException(status_code=404, detail=translate("error.session_not_found"))


@app.get("/cart/{session_id}", response_model=CartResponse)
async def get_cart(session_id: str):
    return _cart_response(session_id, get_session(session_id))


@app.post("/cart/{session_id}/items", response_model=CartResponse)
async def add_cart_item(session_id: str, request: CartItemRequest):
    session = get_session(session_id)
    session.cart = cart_ops.add_item(session.cart, cart_ops.CartItem(**request.model_dump()))
    return _cart_response(session_id, session)


@app.patch("/cart/{session_id}/items/{product_id}", response_model=CartResponse)
async def update_cart_item(session_id: str, product_id: str, request: QuantityRequest):
    session = get_session(session_id)
    session.cart = cart_ops.update_quantity(session.cart, product_id, request.quantity, request.size, request.color)
    return _cart_response(session_id, session)


@app.delete("/cart/{session_id}/items/{product_id}", response_model=CartResponse)
async def remove_cart_item(session_id: str, product_id: str, size: Optional[str] = None, color: Optional[str] = None):
    session = get_session(session_id)
    session.cart = cart_ops.remove_item(session.cart, product_id, size, color)
    return _cart_response(session_id, session)


@app.post("/cart/{session_id}/discount-keys", response_model=CartResponse)
async def redeem_discount_key(session_id: str, request: DiscountKeyRequest):
    """Redeem a discount key and activate its discount on one product."""
    session = get_session(session_id)
    discount = DiscountKeyRedeemer(session.store).redeem(
        session.user_id, request.first_part, request.second_part, request.tier, request.product_id
    )
    session.cart = cart_ops.add_discount(session.cart, discount)
    return _cart_response(session_id, session)


@app.delete("/cart/{session_id}/discounts/{code}", response_model=CartResponse)
async def remove_cart_discount(session_id: str, code: str):
    session = get_session(session_id)
    session.cart = cart_ops.remove_discount(session.cart, code)
    return _cart_response(session_id, session)


# Gift cards

@app.post("/gift-cards", response_model=GiftCardResponse)
async def buy_gift_card(request: GiftCardPurchaseRequest):
    purchase = GiftCardPurchase(
        amount=request.amount, recipient_email=request.recipient_email, message=request.message
    )
    card = purchase_gift_card(get_store(), request.sender_id, request.sender_email, purchase)
    return GiftCardResponse(
        id=card.id,
        code=card.code,
        amount=card.amount,
        recipient_email=card.recipient_email,
        expires_at=card.expires_at.isoformat(),
    )


# Checkout

@app.get("/checkout/{session_id}", response_model=CheckoutResponse)
async def get_checkout(session_id: str, lang: Optional[str] = Depends(_request_language)):
    return _checkout_response(session_id, get_session(session_id), lang)


@app.post("/checkout/{session_id}/gift-cards", response_model=CheckoutResponse)
async def apply_gift_card(session_id: str, request: ApplyGiftCardRequest, lang: Optional[str] = Depends(_request_language)):
    session = get_session(session_id)
    session.apply_gift_card(request.code)
    return _checkout_response(session_id, session, lang)


@app.delete("/checkout/{session_id}/gift-cards/{card_id}", response_model=CheckoutResponse)
async def remove_gift_card(session_id: str, card_id: str, lang: Optional[str] = Depends(_request_language)):
    session = get_session(session_id)
    session.remove_gift_card(card_id)
    return _checkout_response(session_id, session, lang)


@app.post("/checkout/{session_id}/form", response_model=CheckoutResponse)
async def submit_checkout_form(session_id: str, request: CheckoutFormRequest, lang: Optional[str] = Depends(_request_language)):
    session = get_session(session_id)
    session.submit_form(request.form, request.address)
    return _checkout_response(session_id, session, lang)


@app.post("/checkout/{session_id}/back", response_model=CheckoutResponse)
async def back_to_form(session_id: str, lang: Optional[str] = Depends(_request_language)):
    session = get_session(session_id)
    session.back()
    return _checkout_response(session_id, session, lang)


@app.post("/checkout/{session_id}/pay", response_model=CheckoutResponse)
async def pay(session_id: str, request: PaymentRequest, lang: Optional[str] = Depends(_request_language)):
    """Simulated payment; on success the order is written and the cart cleared."""
    session = get_session(session_id)
    session.pay(request.card)
    return _checkout_response(session_id, session, lang)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
