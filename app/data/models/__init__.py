#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from app.data.models.product import ProductModel
from app.data.models.cart_item import CartItemModel
from app.data.models.order import OrderModel, ORDER_STATUSES
from app.data.models.order_item import OrderItemModel
from app.data.models.profile import ProfileModel, UserRoleModel

__all__ = [
    "ProductModel",
    "CartItemModel",
    "OrderModel",
    "OrderItemModel",
    "ProfileModel",
    "UserRoleModel",
    "ORDER_STATUSES",
]
