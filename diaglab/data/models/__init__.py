#import all models so SQLAlchemy registers them in Base.metadata

from diaglab.data.models.user import UserModel
from diaglab.data.models.session import SessionModel
from diaglab.data.models.product import ProductModel
from diaglab.data.models.cart_item import CartItemModel
from diaglab.data.models.order import OrderModel
from diaglab.data.models.order_item import OrderItemModel
from diaglab.data.models.order_sequence import OrderSequenceModel
from diaglab.data.models.appointment import AppointmentModel

__all__ = [
    "UserModel",
    "SessionModel",
    "ProductModel",
    "CartItemModel",
    "OrderModel",
    "OrderItemModel",
    "OrderSequenceModel",
    "AppointmentModel",
]
