"""
Order & review ledger.

Turns a cart into an order, moves orders through their statuses and keeps
each product's rating equal to the mean of its reviews. All storage goes
through a StoreGateway; nothing here is retried.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, FrozenSet, List, Optional, Sequence, Union

import cart as cart_ops
from config import settings
from errors import NotFoundError, ValidationError
from gateway import StoreGateway
from schemas import Cart, Order, OrderStatus, PaymentMethod, Product, Review, User, UserRole, utcnow

logger = logging.getLogger(__name__)

GUEST_ID = "guest"
GUEST_NAME = "Guest Customer"

# Forward-only lifecycle, applied when strict transitions are enabled.
ALLOWED_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


def order_total(order: Order) -> int:
    return sum(item.price * item.quantity for item in order.items)


def average_rating(ratings: Sequence[int]) -> float:
    """Mean of all ratings rounded half-up to one decimal place."""
    mean = Decimal(sum(ratings)) / Decimal(len(ratings))
    return float(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def allowed_transition(current: OrderStatus, new: OrderStatus) -> bool:
    return current == new or new in ALLOWED_TRANSITIONS[current]


def _parse_status(status: Union[OrderStatus, str]) -> OrderStatus:
    try:
        return OrderStatus(status)
    except ValueError:
        raise ValidationError(f"Unknown order status: {status!r}")


def place_order(
    store: StoreGateway,
    purchaser: Optional[User],
    cart: Cart,
    payment_method: Union[PaymentMethod, str],
) -> List[Order]:
    """Record the cart as a new Pending order and return every order.

    Items are copied, so later catalog or cart changes leave the order alone.
    The cart itself is not cleared here; callers clear it once this returns.
    """
    if not cart.items:
        raise ValidationError("Cart is empty")
    try:
        method = PaymentMethod(payment_method)
    except ValueError:
        raise ValidationError(f"Unknown payment method: {payment_method!r}")

    if purchaser is None or purchaser.role == UserRole.GUEST:
        user_id, customer_name = GUEST_ID, GUEST_NAME
    else:
        user_id, customer_name = purchaser.id, purchaser.name

    order = Order(
        id=store.new_id(),
        user_id=user_id,
        customer_name=customer_name,
        items=[item.model_copy(deep=True) for item in cart.items],
        total_amount=cart_ops.total(cart),
        status=OrderStatus.PENDING,
        created_at=utcnow(),
        payment_method=method,
    )
    store.put_order(order)
    logger.info("Order %s placed by %s: %d items, total %d", order.id, user_id, cart_ops.count(cart), order.total_amount)
    return store.list_orders()


def update_status(
    store: StoreGateway,
    order_id: str,
    new_status: Union[OrderStatus, str],
    strict: Optional[bool] = None,
) -> List[Order]:
    status = _parse_status(new_status)
    if strict is None:
        strict = settings.strict_order_transitions
    if strict:
        current = next((o for o in store.list_orders() if o.id == order_id), None)
        if current is None:
            raise NotFoundError(f"Order {order_id} not found")
        if not allowed_transition(current.status, status):
            raise ValidationError(f"Cannot move order from {current.status.value} to {status.value}")
    store.patch_order_status(order_id, status)
    logger.info("Order %s status -> %s", order_id, status.value)
    return store.list_orders()


def append_review(
    store: StoreGateway,
    product_id: str,
    author_id: str,
    author_name: str,
    rating: int,
    comment: str,
) -> Product:
    if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        raise ValidationError("Rating must be an integer from 1 to 5")
    if not comment or not comment.strip():
        raise ValidationError("Comment must not be empty")
    if not author_id or not author_name:
        raise ValidationError("Review author is required")

    product = store.get_product(product_id)
    review = Review(
        id=store.new_id(),
        user_id=author_id,
        user_name=author_name,
        rating=rating,
        comment=comment,
        date=utcnow(),
    )
    reviews = product.reviews + [review]
    updated = product.model_copy(
        update={"reviews": reviews, "rating": average_rating([r.rating for r in reviews])}
    )
    saved = store.put_product(updated)
    logger.info("Review %s on product %s, rating now %.1f", review.id, product_id, saved.rating)
    return saved
