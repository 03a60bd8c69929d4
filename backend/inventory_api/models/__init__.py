from .auth import User, SessionToken
from .inventory import Warehouse, Shelf, Category, Product
from .sales import Sale, SaleItem, InvoiceSequence, StockRestoration
from .audit import AuditEvent

__all__ = [
    'User', 'SessionToken',
    'Warehouse', 'Shelf', 'Category', 'Product',
    'Sale', 'SaleItem', 'InvoiceSequence', 'StockRestoration',
    'AuditEvent',
]
