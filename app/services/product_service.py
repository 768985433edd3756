from sqlalchemy.orm import Session

from app.data.models.product import ProductModel
from app.repos.product_repo import ProductRepo


class ProductService:
    def __init__(self, db: Session):
        self.repo = ProductRepo(db)

    def list_products(self, category: str | None = None) -> list[ProductModel]:
        return self.repo.list_products(category)

    def get_product(self, product_id: int) -> ProductModel:
        product = self.repo.get_product(product_id)
        if not product:
            raise LookupError("Không tìm thấy sản phẩm")
        return product
