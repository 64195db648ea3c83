from app.models.user import User
from app.models.product import Product
from app.models.order import Order
from app.models.order_detail import OrderDetail
from app.models.inventory import InventoryLog
from app.models.purchase_order import PurchaseOrder, PurchaseOrderItem

__all__ = [
    "User",
    "Product",
    "Order",
    "OrderDetail",
    "InventoryLog",
    "PurchaseOrder",
    "PurchaseOrderItem",
]
