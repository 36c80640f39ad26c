"""Demo shoes for the memory backend and the seed script."""
from datetime import datetime, timedelta, timezone
from typing import List, Optional
from uuid import NAMESPACE_DNS, UUID, uuid5

from .models import Listing

DEMO_SELLER_ID = "demo-seller"

_SHOES = [
    ("Air Max 270", "Nike", 150, 4.5, "https://images.unsplash.com/photo-1542291026-7eec264c27ff?w=300&h=300&fit=crop",
     {"category": "running", "color": "Black", "material": "Mesh", "style": "athletic", "featured": True, "views": 320}),
    ("Stan Smith", "Adidas", 85, 4.3, "https://images.unsplash.com/photo-1549298916-b41d501d3772?w=300&h=300&fit=crop",
     {"category": "sneakers", "color": "White", "material": "Leather", "style": "casual", "views": 210}),
    ("Chuck Taylor", "Converse", 65, 4.2, "https://images.unsplash.com/photo-1606107557195-0e29a4b5b4aa?w=300&h=300&fit=crop",
     {"category": "sneakers", "color": "Black", "material": "Canvas", "style": "vintage", "views": 150}),
    ("Air Jordan 1", "Nike", 170, 4.8, "https://images.unsplash.com/photo-1556906781-9a412961c28c?w=300&h=300&fit=crop",
     {"category": "basketball", "color": "Red", "material": "Leather", "style": "modern", "featured": True, "views": 540}),
    ("Ultraboost 22", "Adidas", 180, 4.6, "https://images.unsplash.com/photo-1571945153237-4929e783af4a?w=300&h=300&fit=crop",
     {"category": "running", "color": "Grey", "material": "Primeknit", "style": "athletic", "views": 260}),
    ("Old Skool", "Vans", 70, 4.4, "https://images.unsplash.com/photo-1525966222134-fcfa99b8ae77?w=300&h=300&fit=crop",
     {"category": "sneakers", "color": "Black/White", "material": "Suede", "style": "casual", "views": 190}),
]


def stable_id(name: str) -> UUID:
    return uuid5(NAMESPACE_DNS, f"solemarket-seed-{name}")


def demo_listings(now: Optional[datetime] = None) -> List[Listing]:
    now = now or datetime.now(timezone.utc)
    out = []
    for i, (name, brand, price, rating, image, extra) in enumerate(_SHOES):
        created = now - timedelta(days=i)
        out.append(
            Listing(
                id=str(stable_id(name)),
                name=name,
                brand=brand,
                price=price,
                original_price=price,
                rating=rating,
                rating_count=10 + i,
                image=image,
                description=f"{brand} {name}, lightly worn.",
                condition="like-new" if i % 2 else "new",
                target_gender="unisex",
                age_group="adult",
                season="all-season",
                sizes=[8, 8.5, 9, 9.5, 10, 11],
                tags=[brand.lower(), extra["category"]],
                in_stock=True,
                seller_id=DEMO_SELLER_ID,
                created_at=created,
                updated_at=created,
                **extra,
            )
        )
    return out
