# app/repos/cart_repo.py
from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from app.data.models.cart_item import CartItemModel


class CartRepo:
    """
    Dostep do tabeli cart_items.
    Metody nie commituja, transakcja nalezy do serwisu.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_cart_items(self, user_id: str) -> list[CartItemModel]:
        stmt = (
            select(CartItemModel)
            .where(CartItemModel.user_id == user_id)
            .order_by(CartItemModel.id)
        )
        return list(self.db.execute(stmt).unique().scalars().all())

    def get_cart_item(self, item_id: int) -> CartItemModel | None:
        return self.db.get(CartItemModel, item_id)

    def count_items(self, user_id: str) -> int:
        stmt = select(func.coalesce(func.sum(CartItemModel.quantity), 0)).where(
            CartItemModel.user_id == user_id
        )
        return int(self.db.execute(stmt).scalar_one())

    def upsert_cart_item(self, user_id: str, product_id: int, quantity: int) -> None:
        # INSERT .. ON CONFLICT (user_id, product_id) DO UPDATE quantity = quantity + n
        insert = pg_insert if self.db.get_bind().dialect.name == "postgresql" else sqlite_insert
        stmt = insert(CartItemModel).values(
            user_id=user_id,
            product_id=product_id,
            quantity=quantity,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "product_id"],
            set_={"quantity": CartItemModel.quantity + stmt.excluded.quantity},
        )
        self.db.execute(stmt)
        # obiekty w sesji moga miec stara ilosc
        self.db.expire_all()

    def delete_cart_item(self, item: CartItemModel) -> None:
        self.db.delete(item)
        self.db.flush()

    def clear_cart(self, user_id: str) -> int:
        result = self.db.execute(
            delete(CartItemModel).where(CartItemModel.user_id == user_id)
        )
        return result.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
