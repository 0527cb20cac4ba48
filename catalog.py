"""Seed catalog and placeholder users."""

from datetime import datetime, timezone
from typing import List, Optional

from schemas import Product, ProductCategory, Review, User, UserRole


def initial_products() -> List[Product]:
    return [
        Product(
            id="1",
            name="Fender Stratocaster Player Series",
            description="The inspiring sound of a Stratocaster is one of the foundations of Fender. "
            "Bell-like high end, punchy mids and robust low end, combined with crystal-clear articulation.",
            price=6500000,
            category=ProductCategory.GUITAR,
            image="https://images.unsplash.com/photo-1550291652-6ea9114a47b1?auto=format&fit=crop&q=80&w=500",
            rating=4.5,
            stock=12,
            reviews=[
                Review(
                    id="r1",
                    user_id="u2",
                    user_name="Alice Cooper",
                    rating=5,
                    comment="Absolutely love the tone! The neck feels amazing.",
                    date=datetime(2023, 10, 15, 10, 0, tzinfo=timezone.utc),
                ),
                Review(
                    id="r2",
                    user_id="u3",
                    user_name="Bob Dylan",
                    rating=4,
                    comment="Great guitar but needs a setup out of the box.",
                    date=datetime(2023, 11, 2, 14, 30, tzinfo=timezone.utc),
                ),
            ],
        ),
        Product(
            id="2",
            name="Gibson Les Paul Standard",
            description="The Les Paul Standard returns to the classic design that made it relevant, "
            "played, and loved, shaping sound across generations and genres of music.",
            price=18500000,
            category=ProductCategory.GUITAR,
            image="https://images.unsplash.com/photo-1564186763535-ebb21ef5277f?auto=format&fit=crop&q=80&w=500",
            rating=5.0,
            stock=5,
        ),
        Product(
            id="3",
            name="Yamaha P-125 Digital Piano",
            description="A compact digital piano that combines incredible piano performance "
            "with a user-friendly minimalist design.",
            price=5200000,
            category=ProductCategory.KEYS,
            image="https://images.unsplash.com/photo-1520523839897-bd0b52f945a0?auto=format&fit=crop&q=80&w=500",
            rating=4.6,
            stock=20,
        ),
        Product(
            id="4",
            name="Pearl Export EXX Drum Set",
            description="The best selling drum set of all time, with a high-end look and sound "
            "at an affordable price.",
            price=6200000,
            category=ProductCategory.DRUMS,
            image="https://images.unsplash.com/photo-1519892300165-cb5542fb47c7?auto=format&fit=crop&q=80&w=500",
            rating=4.7,
            stock=8,
        ),
        Product(
            id="5",
            name="Roland TD-17KVX V-Drums",
            description="An electronic drum kit with a TD-50-class sound engine and newly developed pads, "
            "authentically close to playing acoustic drums.",
            price=12000000,
            category=ProductCategory.DRUMS,
            image="https://images.unsplash.com/photo-1595168051636-2396e95c4794?auto=format&fit=crop&q=80&w=500",
            rating=4.9,
            stock=3,
        ),
        Product(
            id="6",
            name="Korg Minilogue XD",
            description="Next-generation polyphonic analog synthesizer with a focus on real-time control "
            "and deep sound design capabilities.",
            price=4800000,
            category=ProductCategory.KEYS,
            image="https://images.unsplash.com/photo-1621550697928-8636e2f11270?auto=format&fit=crop&q=80&w=500",
            rating=4.8,
            stock=15,
        ),
    ]


MOCK_ADMIN = User(
    id="admin-1",
    name="Admin User",
    email="admin@melodymart.com",
    role=UserRole.ADMIN,
    avatar="https://api.dicebear.com/7.x/avataaars/svg?seed=admin",
)

MOCK_USER = User(
    id="user-1",
    name="John Doe",
    email="john@example.com",
    role=UserRole.USER,
    avatar="https://api.dicebear.com/7.x/avataaars/svg?seed=john",
)


def search_products(products: List[Product], q: Optional[str] = None, category: Optional[str] = None) -> List[Product]:
    """Case-insensitive match on name or description; category "All" matches everything."""
    needle = (q or "").lower()
    result = []
    for p in products:
        if needle and needle not in p.name.lower() and needle not in p.description.lower():
            continue
        if category and category != "All" and p.category.value != category:
            continue
        result.append(p)
    return result


def format_inr(paise: int) -> str:
    """Render an amount in rupees with Indian digit grouping, e.g. 6500000 -> '₹65,000'."""
    rupees, rem = divmod(paise, 100)
    digits = str(rupees)
    if len(digits) > 3:
        head, tail = digits[:-3], digits[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        digits = ",".join(groups + [tail])
    if rem:
        return f"₹{digits}.{rem:02d}"
    return f"₹{digits}"
