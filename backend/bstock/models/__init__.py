from .tenancy import Organization, Plan, Subscription
from .auth import User, SessionToken
from .inventory import Vendor, Product, Variant
from .sales import Sale, SaleItem

__all__ = [
    'Organization', 'Plan', 'Subscription',
    'User', 'SessionToken',
    'Vendor', 'Product', 'Variant',
    'Sale', 'SaleItem',
]
