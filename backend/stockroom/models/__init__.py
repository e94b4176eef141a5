from .auth import User, SessionToken
from .reference import StatusCategory, StatusType, TransactionType
from .parties import Customer, Supplier
from .inventory import Product, InventoryTransaction
from .orders import SalesOrder, SalesOrderLine, PurchaseOrder, PurchaseOrderLine
from .returns import SalesReturn, SalesReturnLine, PurchaseReturn, PurchaseReturnLine
from .notifications import AINotification

__all__ = [
    'User', 'SessionToken',
    'StatusCategory', 'StatusType', 'TransactionType',
    'Customer', 'Supplier',
    'Product', 'InventoryTransaction',
    'SalesOrder', 'SalesOrderLine', 'PurchaseOrder', 'PurchaseOrderLine',
    'SalesReturn', 'SalesReturnLine', 'PurchaseReturn', 'PurchaseReturnLine',
    'AINotification',
]
