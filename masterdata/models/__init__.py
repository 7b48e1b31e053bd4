from .customer import Customer, NcfType
from .supplier import Supplier
from .product import Product
from .payment_method import PaymentMethod, ExpenseCategory
