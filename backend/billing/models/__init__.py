from .inventory import Product
from .sales import Bill, BillItem
from .documents import Counter
from .customers import Contact

__all__ = [
    'Product',
    'Bill', 'BillItem',
    'Counter',
    'Contact',
]
