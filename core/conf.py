from django.conf import settings

DEFAULTS = {
    "ALLOCATION_MAX_RETRIES": 3,
    "PAYMENT_TOLERANCE": "0.01",
    "QUOTE_SERIES": "COT",
    "PURCHASE_ORDER_SERIES": "PO",
    "SUPPLIER_INVOICE_SERIES": "SI",
    "EXPENSE_SERIES": "EXP",
    "DEFAULT_PAYMENT_TERMS_DAYS": 30,
}


def ledger_setting(name):
    """Read settings.LEDGER[name], falling back to DEFAULTS."""
    overrides = getattr(settings, "LEDGER", {}) or {}
    if name in overrides:
        return overrides[name]
    return DEFAULTS[name]
