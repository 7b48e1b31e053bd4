"""Applying and reversing payments.

payment_status is never set by hand: after every change to a document's
payments it is derived again from the persisted rows (sync_payment_state).
The document row is locked first, so two concurrent payments cannot both
pass the overpayment check against the same stale balance.
"""

import logging
from decimal import Decimal

from django.db import transaction

from core.conf import ledger_setting
from core.exceptions import (
    DocumentNotPayable,
    InvalidTransition,
    OverpaymentError,
    ValidationError,
)
from core.services.money import CENT, ZERO, to_decimal
from documents.models import PaymentStatus
from ledger.models import Payment

logger = logging.getLogger(__name__)


def derive_payment_status(total, paid) -> str:
    """pending / partial / paid from the document total and the amount paid.

    Paid once the remaining balance is below PAYMENT_TOLERANCE (0.01), so a
    zero-total document is paid without any payment.
    """
    tolerance = Decimal(str(ledger_setting("PAYMENT_TOLERANCE")))
    if total - paid < tolerance:
        return PaymentStatus.PAID
    if paid <= ZERO:
        return PaymentStatus.PENDING
    return PaymentStatus.PARTIAL


def sync_payment_state(doc, *, by=None):
    """Recompute doc.payment_status from its payments and save on change.

    Families whose status follows the payment status (sales invoices) move
    through their payment-driven transitions here.
    """
    status = derive_payment_status(doc.total_amount, doc.paid_amount())
    if status == doc.payment_status:
        return doc

    previous = doc.payment_status
    doc.payment_status = status
    doc.on_payment_status_changed(by=by)
    doc.save()

    logger.info(
        "%s %s payment status %s -> %s", type(doc).__name__, doc.display_no, previous, status
    )
    return doc


def _validate_amount(amount) -> Decimal:
    amount = to_decimal(amount, "amount")
    if amount <= ZERO:
        raise ValidationError(f"Payment amount must be positive, got {amount}.")
    if amount != amount.quantize(CENT):
        raise ValidationError(f"Payment amount has more than two decimals: {amount}.")
    return amount


@transaction.atomic
def apply_payment(document, *, amount, method, payment_date=None, reference_number="", notes="", by=None):
    """Record a payment against `document`.

    Rules:
    - amount > 0 with at most two decimals
    - the method is active; its reference number is given when required
    - the document is in a payable status and not already paid
    - amount <= total_amount - sum(existing payments), no clamping

    Returns (document, payment), both freshly saved. Any error leaves no
    payment row and the document unchanged.
    """
    amount = _validate_amount(amount)

    if not method.is_active:
        raise ValidationError(f"Payment method {method} is not active.")

    reference_number = (reference_number or "").strip()
    if method.requires_reference and not reference_number:
        raise ValidationError(f"Payment method {method} requires a reference number.")

    model = type(document)
    doc = model.objects.select_for_update().get(pk=document.pk)

    if doc.payment_status == PaymentStatus.PAID:
        raise OverpaymentError(amount, doc.outstanding_amount())
    if not doc.accepts_payments:
        raise DocumentNotPayable(doc)

    outstanding = doc.outstanding_amount()
    if amount > outstanding:
        raise OverpaymentError(amount, outstanding)

    payment = Payment(
        method=method,
        amount=amount,
        reference_number=reference_number,
        notes=notes,
        created_by=by,
        **{Payment.field_for(doc): doc},
    )
    if payment_date is not None:
        payment.payment_date = payment_date
    if by is not None:
        payment._history_user = by
    payment.save()

    logger.info(
        "Payment %s of %s applied to %s %s (outstanding was %s)",
        payment.pk, amount, model.__name__, doc.display_no, outstanding,
    )

    doc = sync_payment_state(doc, by=by)
    return doc, payment


@transaction.atomic
def reverse_payment(payment, *, by=None, reason=""):
    """Delete a payment and derive the document's payment status again.

    Only while the document still accepts payments; a fully paid sales
    invoice is closed and raises InvalidTransition. The reason is kept in
    the payment's history. Returns the document.
    """
    document = payment.document
    if document is None:
        raise ValidationError(f"Payment {payment.pk} is not linked to a document.")

    model = type(document)
    doc = model.objects.select_for_update().get(pk=document.pk)
    payment = Payment.objects.select_for_update().get(pk=payment.pk)

    if not doc.accepts_payments:
        raise InvalidTransition(
            doc, "payment reversal",
            f"{model.__name__} {doc.display_no} is {doc.status!r}; its payments can no longer be reversed.",
        )

    payment_pk, amount = payment.pk, payment.amount
    payment._change_reason = reason
    if by is not None:
        payment._history_user = by
    payment.delete()

    logger.info(
        "Payment %s of %s reversed on %s %s: %s",
        payment_pk, amount, model.__name__, doc.display_no, reason or "no reason given",
    )

    return sync_payment_state(doc, by=by)
