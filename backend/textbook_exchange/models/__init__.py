from .users import User, PaymentMethod
from .catalog import Book, CartItem
from .submissions import SellSubmission, PriceNegotiation
from .orders import PurchaseOrder, OrderLineItem, Payment

__all__ = [
    'User', 'PaymentMethod',
    'Book', 'CartItem',
    'SellSubmission', 'PriceNegotiation',
    'PurchaseOrder', 'OrderLineItem', 'Payment',
]
