from .tenancy import Company, Category
from .auth import User, SessionToken, ROLE_ADMIN, ROLE_DIRECTOR, ROLE_USER, ROLES
from .inventory import Product, StockMovement, StockAlert, RestockRecord, UserInventory
from .orders import OrderRequest, OrderRequestItem
from .finance import Payment, Expense, CreditTransaction
from .customers import Customer, CustomerOrder, CustomerPayment
from .security import SecurityEvent

__all__ = [
    'Company', 'Category',
    'User', 'SessionToken', 'ROLE_ADMIN', 'ROLE_DIRECTOR', 'ROLE_USER', 'ROLES',
    'Product', 'StockMovement', 'StockAlert', 'RestockRecord', 'UserInventory',
    'OrderRequest', 'OrderRequestItem',
    'Payment', 'Expense', 'CreditTransaction',
    'Customer', 'CustomerOrder', 'CustomerPayment',
    'SecurityEvent',
]
