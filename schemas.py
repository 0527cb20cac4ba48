"""
Database Schemas

Pydantic models for the MongoDB collections and the JSON bodies of the API.
Fields are snake_case in Python and camelCase on the wire and in stored
documents, so a stored order reads {"userId": ..., "totalAmount": ...}.

Collections:
- Product -> "products" (reviews are embedded)
- Order -> "orders"
- User -> "session" (a single slot holding the logged-in user)

Prices are integers in minor currency units (paise).
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Document(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserRole(str, Enum):
    GUEST = "guest"
    USER = "user"
    ADMIN = "admin"


class ProductCategory(str, Enum):
    GUITAR = "Guitar"
    DRUMS = "Drums"
    KEYS = "Keyboards"
    WIND = "Wind"
    ACCESSORIES = "Accessories"


class OrderStatus(str, Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class PaymentMethod(str, Enum):
    CARD = "card"
    COD = "cod"


class User(Document):
    """
    Session user
    Collection name: "session"
    """
    id: str = Field(..., description="User identifier")
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Email address")
    role: UserRole = Field(UserRole.USER, description="guest, user or admin")
    avatar: Optional[str] = Field(None, description="Avatar URL")


class Review(Document):
    """Embedded in Product.reviews; append-only."""
    id: str = Field(..., description="Unique within the product")
    user_id: str = Field(..., description="Author identifier")
    user_name: str = Field(..., description="Author display name")
    rating: int = Field(..., ge=1, le=5, description="Stars, 1-5")
    comment: str = Field(..., min_length=1, description="Review text")
    date: datetime = Field(default_factory=utcnow)


class Product(Document):
    """
    Products collection schema
    Collection name: "products"
    """
    id: str = Field(..., description="Product identifier")
    name: str = Field(..., description="Product name")
    description: str = Field("", description="Product description")
    price: int = Field(..., ge=0, description="Price in paise")
    category: ProductCategory = Field(..., description="Product category")
    image: str = Field("", description="Primary image URL")
    rating: float = Field(0.0, ge=0, le=5, description="Average rating")
    stock: int = Field(0, ge=0, description="Units in stock")
    reviews: List[Review] = Field(default_factory=list)


class CartItem(Document):
    """Product snapshot plus a quantity of at least one."""
    product_id: str
    name: str
    price: int = Field(..., ge=0)
    category: ProductCategory
    image: str = ""
    quantity: int = Field(1, ge=1)

    @property
    def subtotal(self) -> int:
        return self.price * self.quantity


class Cart(Document):
    session_id: str
    items: List[CartItem] = []


class Order(Document):
    """
    Orders collection schema
    Collection name: "orders"
    """
    id: str = Field(..., description="Order identifier")
    user_id: str = Field(..., description="Purchaser id or 'guest'")
    customer_name: str = Field(..., description="Purchaser display name")
    items: List[CartItem] = Field(..., description="Items frozen at order time")
    total_amount: int = Field(..., ge=0, description="Sum of item subtotals, paise")
    status: OrderStatus = Field(OrderStatus.PENDING)
    created_at: datetime = Field(default_factory=utcnow)
    payment_method: PaymentMethod = Field(..., description="card or cod")


class ChatMessage(BaseModel):
    role: Literal["user", "model"]
    text: str
