"""Cart aggregation: quantity-counted line items and their totals.

Every function takes the cart first and updates it in place; mutators also
return it so calls can be chained from request handlers.
"""

from typing import Optional

from schemas import Cart, CartItem, Product


def _find(cart: Cart, product_id: str) -> Optional[CartItem]:
    for item in cart.items:
        if item.product_id == product_id:
            return item
    return None


def add(cart: Cart, product: Product) -> Cart:
    existing = _find(cart, product.id)
    if existing:
        existing.quantity += 1
    else:
        cart.items.append(
            CartItem(
                product_id=product.id,
                name=product.name,
                price=product.price,
                category=product.category,
                image=product.image,
                quantity=1,
            )
        )
    return cart


def remove(cart: Cart, product_id: str) -> Cart:
    cart.items = [item for item in cart.items if item.product_id != product_id]
    return cart


def update_quantity(cart: Cart, product_id: str, delta: int) -> Cart:
    """Shift an item's quantity by delta.

    A result of zero or less leaves the item as it was; use remove() to drop it.
    """
    item = _find(cart, product_id)
    if item is not None:
        new_qty = item.quantity + delta
        if new_qty > 0:
            item.quantity = new_qty
    return cart


def clear(cart: Cart) -> Cart:
    cart.items = []
    return cart


def total(cart: Cart) -> int:
    return sum(item.price * item.quantity for item in cart.items)


def count(cart: Cart) -> int:
    return sum(item.quantity for item in cart.items)
