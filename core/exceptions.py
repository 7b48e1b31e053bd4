"""Errors raised by the ledger engine.

Every error derives from LedgerError and says whether retrying the same
request can succeed (`retryable`). Only allocation contention is retryable;
everything else needs different input or a different document state.
"""

from django.core.exceptions import ValidationError as DjangoValidationError


class LedgerError(Exception):
    retryable = False


class ValidationError(LedgerError, DjangoValidationError):
    """Bad input (line items, payment data). Nothing has been written."""


class InvalidTransition(LedgerError):
    def __init__(self, document, target, message=None):
        self.document = document
        self.target = target
        current = getattr(document, "status", None)
        super().__init__(
            message or f"{type(document).__name__} cannot go from {current!r} to {target!r}."
        )


class DocumentLocked(LedgerError):
    def __init__(self, document):
        self.document = document
        super().__init__(
            f"{type(document).__name__} {document.pk} is {document.status!r}; its items can no longer be edited."
        )


class DocumentNotPayable(InvalidTransition):
    def __init__(self, document):
        super().__init__(
            document,
            "payment",
            f"{type(document).__name__} {document.pk} in status {document.status!r} does not accept payments.",
        )


class OverpaymentError(LedgerError):
    def __init__(self, amount, outstanding):
        self.amount = amount
        self.outstanding = outstanding
        super().__init__(f"Payment of {amount} exceeds the outstanding balance of {outstanding}.")


class NumberingError(LedgerError):
    def __init__(self, series_code, message):
        self.series_code = series_code
        super().__init__(message)


class SeriesNotFound(NumberingError):
    def __init__(self, series_code):
        super().__init__(series_code, f"Number series {series_code!r} is not configured or not active.")


class SeriesExhausted(NumberingError):
    def __init__(self, series_code, limit):
        self.limit = limit
        super().__init__(series_code, f"Number series {series_code!r} is exhausted (limit {limit}).")


class SeriesExpired(NumberingError):
    def __init__(self, series_code, valid_until):
        self.valid_until = valid_until
        super().__init__(series_code, f"Number series {series_code!r} expired on {valid_until}.")


class AllocationContention(NumberingError):
    retryable = True

    def __init__(self, series_code, attempts):
        self.attempts = attempts
        super().__init__(
            series_code,
            f"Could not allocate from {series_code!r} after {attempts} attempts; try again.",
        )
