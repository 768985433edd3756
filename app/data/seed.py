# app/data/seed.py
from decimal import Decimal

from app.data.database import SessionLocal, init_db
from app.data.models import ProductModel
from app.utils.logging import get_logger

logger = get_logger(__name__)

DEMO_PRODUCTS = [
    {"name": "Màn hình iPhone 13", "category": "phone", "price": Decimal("1850000"), "stock": 12},
    {"name": "Màn hình Samsung Galaxy S21", "category": "phone", "price": Decimal("2400000"), "stock": 8},
    {"name": "Màn hình Dell 24 inch", "category": "laptop", "price": Decimal("3200000"), "stock": 5},
    {"name": "Màn hình LG UltraGear 27", "category": "desktop", "price": Decimal("6900000"), "stock": 3},
]


def seed(db=None) -> int:
    # tylko gdy katalog jest pusty
    own_session = db is None
    db = db or SessionLocal()
    try:
        if db.query(ProductModel).first():
            return 0
        db.add_all(ProductModel(**p) for p in DEMO_PRODUCTS)
        db.commit()
        logger.info(f"Seeded {len(DEMO_PRODUCTS)} products")
        return len(DEMO_PRODUCTS)
    finally:
        if own_session:
            db.close()


if __name__ == "__main__":
    init_db()
    seed()
