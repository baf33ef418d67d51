from .catalog import Product, Supplier, product_suppliers
from .stock import StockMovement

__all__ = [
    'Product', 'Supplier', 'product_suppliers',
    'StockMovement',
]
