from .base import LedgerDocument, LedgerLine, PaymentStatus
from .sales import NcfType, SalesInvoice, SalesInvoiceLine, Quote, QuoteLine
from .purchase import PurchaseOrder, PurchaseOrderLine, SupplierInvoice, SupplierInvoiceLine
from .expense import Expense, ExpenseLine

DOCUMENT_MODELS = (SalesInvoice, Quote, PurchaseOrder, SupplierInvoice, Expense)
