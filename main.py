import logging
import threading
from typing import Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

import cart as cart_ops
import ledger
import session
from assistant import GREETING, ShopAssistant
from catalog import search_products
from config import settings
from errors import NotFoundError, PersistenceError, StoreError, ValidationError
from gateway import StoreGateway, build_gateway
from schemas import (
    Cart,
    CartItem,
    ChatMessage,
    Document,
    Order,
    OrderStatus,
    PaymentMethod,
    Product,
    ProductCategory,
    User,
    UserRole,
)

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="MelodyMart API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

store: StoreGateway = build_gateway(settings)
assistant = ShopAssistant()

# Session carts live only as long as the process. An entry exists only while
# its cart has been added to and not yet checked out or logged out.
CARTS: Dict[str, Cart] = {}
CARTS_LOCK = threading.RLock()


def get_store() -> StoreGateway:
    return store


def get_assistant() -> ShopAssistant:
    return assistant


def get_cart(session_id: str) -> Cart:
    """Return the session's cart, registering it if needed. Call under CARTS_LOCK."""
    if session_id not in CARTS:
        CARTS[session_id] = Cart(session_id=session_id)
    return CARTS[session_id]


def peek_cart(session_id: str) -> Cart:
    """Return the session's cart, or an unregistered empty one. Call under CARTS_LOCK."""
    return CARTS.get(session_id) or Cart(session_id=session_id)


# Utilities

def to_http(exc: StoreError) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=422, detail=str(exc))
    if isinstance(exc, PersistenceError):
        logger.error("Store failure: %s", exc)
    return HTTPException(status_code=500, detail=str(exc))


def require_admin(db: StoreGateway) -> User:
    try:
        user = session.current_user(db)
    except StoreError as e:
        raise to_http(e)
    if not session.is_admin(user):
        raise HTTPException(status_code=403, detail="Admin access required")
    return user


def cart_view(c: Cart) -> dict:
    return {
        "sessionId": c.session_id,
        "items": c.items,
        "total": cart_ops.total(c),
        "count": cart_ops.count(c),
    }


@app.on_event("startup")
def seed_on_startup():
    try:
        store.seed()
    except StoreError as e:
        logger.warning("Catalog seed skipped: %s", e)


@app.get("/")
def read_root():
    return {"message": "MelodyMart backend is running"}


@app.get("/test")
def test_store(db: StoreGateway = Depends(get_store)):
    response = {
        "backend": "✅ Running",
        "store": "❌ Not Available",
        "details": None,
    }
    try:
        response["details"] = db.describe()
        response["store"] = "⚠️  Connected but Error" if "error" in response["details"] else "✅ Connected & Working"
    except Exception as e:
        response["store"] = f"❌ Error: {str(e)[:50]}"
    return response


# Seed the catalog if no products exist
@app.post("/seed")
def seed_products(db: StoreGateway = Depends(get_store)):
    try:
        return {"seeded": True, "count": db.seed()}
    except StoreError as e:
        raise to_http(e)


@app.get("/api/categories")
def list_categories():
    return [c.value for c in ProductCategory]


# Session

class LoginRequest(BaseModel):
    email: Optional[str] = None
    role: UserRole = UserRole.USER


@app.post("/api/login", response_model=User)
def login(payload: LoginRequest, db: StoreGateway = Depends(get_store)):
    try:
        return session.login(db, payload.role, payload.email)
    except StoreError as e:
        raise to_http(e)


@app.post("/api/logout")
def logout(session_id: Optional[str] = None, db: StoreGateway = Depends(get_store)):
    try:
        session.logout(db)
    except StoreError as e:
        raise to_http(e)
    if session_id:
        with CARTS_LOCK:
            CARTS.pop(session_id, None)
    return {"ok": True}


@app.get("/api/session")
def get_session(db: StoreGateway = Depends(get_store)):
    try:
        return {"user": session.current_user(db)}
    except StoreError as e:
        raise to_http(e)


# Products

class ProductIn(Document):
    id: Optional[str] = None
    name: str
    description: str = ""
    price: int = Field(..., ge=0)
    category: ProductCategory
    image: str = ""
    rating: float = Field(5.0, ge=0, le=5)
    stock: int = Field(10, ge=0)


@app.get("/api/products", response_model=List[Product])
def list_products(q: Optional[str] = None, category: Optional[str] = None, db: StoreGateway = Depends(get_store)):
    try:
        return search_products(db.list_products(), q=q, category=category)
    except StoreError as e:
        raise to_http(e)


@app.get("/api/products/{product_id}", response_model=Product)
def get_product(product_id: str, db: StoreGateway = Depends(get_store)):
    try:
        return db.get_product(product_id)
    except StoreError as e:
        raise to_http(e)


@app.post("/api/products", response_model=Product, status_code=201)
def create_product(payload: ProductIn, db: StoreGateway = Depends(get_store)):
    require_admin(db)
    try:
        product_id = payload.id
        if not product_id or product_id.startswith("temp"):
            product_id = db.new_id()
        product = Product(**payload.model_dump(exclude={"id"}), id=product_id)
        return db.put_product(product)
    except StoreError as e:
        raise to_http(e)


@app.put("/api/products/{product_id}", response_model=Product)
def update_product(product_id: str, payload: ProductIn, db: StoreGateway = Depends(get_store)):
    require_admin(db)
    try:
        existing = db.get_product(product_id)
        updated = existing.model_copy(update=payload.model_dump(exclude={"id"}, exclude_unset=True))
        return db.put_product(Product.model_validate(updated.model_dump()))
    except StoreError as e:
        raise to_http(e)


@app.delete("/api/products/{product_id}")
def delete_product(product_id: str, db: StoreGateway = Depends(get_store)):
    require_admin(db)
    try:
        db.delete_product(product_id)
        return {"message": "Product deleted"}
    except StoreError as e:
        raise to_http(e)


# Reviews

class ReviewIn(Document):
    user_id: str
    user_name: str
    rating: int
    comment: str


@app.post("/api/products/{product_id}/reviews", response_model=Product, status_code=201)
def post_review(product_id: str, payload: ReviewIn, db: StoreGateway = Depends(get_store)):
    try:
        return ledger.append_review(db, product_id, payload.user_id, payload.user_name, payload.rating, payload.comment)
    except StoreError as e:
        raise to_http(e)


# Cart (per session_id)

class AddToCartRequest(BaseModel):
    product_id: str
    session_id: str


class RemoveFromCartRequest(BaseModel):
    product_id: str
    session_id: str


class UpdateQuantityRequest(BaseModel):
    product_id: str
    session_id: str
    delta: int


@app.get("/api/cart")
def read_cart(session_id: str):
    with CARTS_LOCK:
        return cart_view(peek_cart(session_id))


@app.post("/api/cart/add")
def add_to_cart(payload: AddToCartRequest, db: StoreGateway = Depends(get_store)):
    try:
        product = db.get_product(payload.product_id)
    except StoreError as e:
        raise to_http(e)
    with CARTS_LOCK:
        return cart_view(cart_ops.add(get_cart(payload.session_id), product))


@app.post("/api/cart/remove")
def remove_from_cart(payload: RemoveFromCartRequest):
    with CARTS_LOCK:
        return cart_view(cart_ops.remove(peek_cart(payload.session_id), payload.product_id))


@app.post("/api/cart/quantity")
def update_cart_quantity(payload: UpdateQuantityRequest):
    with CARTS_LOCK:
        return cart_view(cart_ops.update_quantity(peek_cart(payload.session_id), payload.product_id, payload.delta))


class CheckoutRequest(BaseModel):
    session_id: str
    payment_method: PaymentMethod = PaymentMethod.COD


@app.post("/api/checkout")
def checkout(payload: CheckoutRequest, db: StoreGateway = Depends(get_store)):
    # Held across the order write so the cart cannot change mid-checkout.
    with CARTS_LOCK:
        c = peek_cart(payload.session_id)
        total = cart_ops.total(c)
        try:
            purchaser = session.current_user(db)
            orders = ledger.place_order(db, purchaser, c, payload.payment_method)
        except StoreError as e:
            raise to_http(e)
        CARTS.pop(payload.session_id, None)
    return {"ok": True, "total": total, "orders": orders}


# Orders

class OrderIn(Document):
    user_id: str = ledger.GUEST_ID
    customer_name: str = ledger.GUEST_NAME
    items: List[CartItem]
    payment_method: PaymentMethod


class StatusUpdate(BaseModel):
    status: OrderStatus


@app.get("/api/orders", response_model=List[Order])
def list_orders(db: StoreGateway = Depends(get_store)):
    try:
        return db.list_orders()
    except StoreError as e:
        raise to_http(e)


@app.post("/api/orders", response_model=List[Order], status_code=201)
def create_order(payload: OrderIn, db: StoreGateway = Depends(get_store)):
    purchaser = None
    if payload.user_id != ledger.GUEST_ID:
        purchaser = User(id=payload.user_id, name=payload.customer_name, email="", role=UserRole.USER)
    try:
        return ledger.place_order(db, purchaser, Cart(session_id="api", items=payload.items), payload.payment_method)
    except StoreError as e:
        raise to_http(e)


@app.patch("/api/orders/{order_id}/status", response_model=List[Order])
def update_order_status(order_id: str, payload: StatusUpdate, db: StoreGateway = Depends(get_store)):
    require_admin(db)
    try:
        return ledger.update_status(db, order_id, payload.status)
    except StoreError as e:
        raise to_http(e)


# Shop assistant

class ChatRequest(BaseModel):
    message: str
    history: List[ChatMessage] = []


class DescribeRequest(BaseModel):
    name: str
    category: ProductCategory


@app.get("/api/assistant/greeting")
def assistant_greeting():
    return ChatMessage(role="model", text=GREETING)


@app.post("/api/assistant/chat")
def assistant_chat(
    payload: ChatRequest,
    db: StoreGateway = Depends(get_store),
    bot: ShopAssistant = Depends(get_assistant),
):
    try:
        products = db.list_products()
    except StoreError as e:
        raise to_http(e)
    return ChatMessage(role="model", text=bot.chat(payload.message, payload.history, products))


@app.post("/api/assistant/describe")
def assistant_describe(payload: DescribeRequest, bot: ShopAssistant = Depends(get_assistant)):
    return {"description": bot.describe_product(payload.name, payload.category.value)}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
