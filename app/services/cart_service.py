from decimal import Decimal
from typing import Dict, Any
from sqlalchemy.orm import Session
from app.data.models.cart_item import CartItemModel
from app.repos.cart_repo import CartRepo
from app.repos.product_repo import ProductRepo
from app.utils.logging import get_logger

logger = get_logger(__name__)


def line_total(item: CartItemModel) -> Decimal:
    return Decimal(item.product.price) * item.quantity


class CartService:
    """
    Prosta implementacja cqrs dla koszyka
    commands (add, update, remove) modyfikuja stan
    query (get, count) tylko odczyt
    """

    def __init__(self, db: Session):
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)

    #query - odczyt
    def get_cart(self, user_id: str) -> Dict[str, Any]:
        items = self.repo.get_cart_items(user_id)
        total = sum((line_total(i) for i in items), Decimal("0.00"))

        #dict przyksztalcany w jsona
        return {
            "user_id": user_id,
            "items": [
                {
                    "id": i.id,
                    "product_id": i.product_id,
                    "name": i.product.name,
                    "price": i.product.price,
                    "quantity": i.quantity,
                    "line_total": line_total(i),
                }
                for i in items
            ],
            "total": total,
        }

    def count_items(self, user_id: str) -> int:
        return self.repo.count_items(user_id)

    #commands
    def add_product(self, user_id: str, product_id: int, quantity: int = 1) -> Dict[str, Any]:
        if quantity < 1:
            raise ValueError("Số lượng phải lớn hơn 0")

        if not self.products.get_product(product_id):
            raise LookupError("Không tìm thấy sản phẩm")

        # upsert po (user_id, product_id), baza serializuje rownolegle dodania
        logger.info(f"Dodaje produkt {product_id} x{quantity} do koszyka {user_id}")
        self.repo.upsert_cart_item(user_id, product_id, quantity)

        self.repo.commit()
        return self.get_cart(user_id)

    def _owned_item(self, user_id: str, item_id: int) -> CartItemModel:
        item = self.repo.get_cart_item(item_id)

        if not item:
            raise LookupError("Không tìm thấy sản phẩm trong giỏ hàng")

        if item.user_id != user_id:
            raise PermissionError("Brak dostępu do koszyka")

        return item

    def update_quantity(self, user_id: str, item_id: int, quantity: int) -> Dict[str, Any]:
        if quantity < 1:
            raise ValueError("Số lượng phải lớn hơn 0")

        item = self._owned_item(user_id, item_id)
        item.quantity = quantity
        self.repo.commit()

        logger.info(f"Pozycja {item_id} w koszyku {user_id}: ilosc {quantity}")
        return self.get_cart(user_id)

    def remove_item(self, user_id: str, item_id: int) -> Dict[str, Any]:
        item = self._owned_item(user_id, item_id)

        logger.info(f"Usuwanie pozycji {item_id} z koszyka {user_id}")
        self.repo.delete_cart_item(item)
        self.repo.commit()

        return self.get_cart(user_id)
