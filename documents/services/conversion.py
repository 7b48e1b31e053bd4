"""Turning one document into the next one in the business flow.

quote (approved)          -> new draft SalesInvoice, quote -> converted
purchase order (confirmed) -> new pending SupplierInvoice, order -> received
"""

import logging

from django.db import transaction
from django.utils import timezone
from django_fsm import TransitionNotAllowed

from core.exceptions import InvalidTransition, OverpaymentError
from core.services.money import ZERO
from documents.models import PurchaseOrder, Quote, SalesInvoice, SupplierInvoice
from documents.services.lines import build_line
from ledger.models import Payment
from ledger.services.settlement import sync_payment_state

logger = logging.getLogger(__name__)


def _copy_lines(source, target):
    for line in source.lines.all():
        target.lines.model(
            document=target,
            line_no=line.line_no,
            product=line.product,
            description=line.description,
            quantity=line.quantity,
            unit_price=line.unit_price,
            tax_rate=line.tax_rate,
            discount_rate=line.discount_rate,
        ).save()


def _move_advances(order, invoice, *, by=None):
    """Re-point the order's payments at the supplier invoice."""
    advances = list(Payment.objects.select_for_update().filter(purchase_order=order))
    advanced = sum((p.amount for p in advances), ZERO)
    if advanced > invoice.total_amount:
        raise OverpaymentError(advanced, invoice.total_amount)

    for payment in advances:
        payment.purchase_order = None
        payment.supplier_invoice = invoice
        payment._change_reason = f"Advance on {order.display_no} applied to supplier invoice {invoice.pk}"
        if by is not None:
            payment._history_user = by
        payment.save()

    if advances:
        logger.info(
            "Moved %s advance(s) of %s from %s to supplier invoice %s",
            len(advances), advanced, order.display_no, invoice.pk,
        )


@transaction.atomic
def convert_quote_to_invoice(quote, *, by=None, ncf_type=None, issue_date=None):
    """Create a draft SalesInvoice from an approved quote.

    The invoice copies customer, notes and lines; the quote is marked
    converted and linked to the invoice. Returns the new invoice.
    """
    quote = Quote.objects.select_for_update().get(pk=quote.pk)
    if quote.status != Quote.Status.APPROVED:
        raise InvalidTransition(quote, Quote.Status.CONVERTED)

    invoice = SalesInvoice.objects.create(
        customer=quote.customer,
        quote=quote,
        ncf_type=ncf_type or "",
        issue_date=issue_date or timezone.localdate(),
        notes=quote.notes,
    )
    _copy_lines(quote, invoice)
    invoice.recalculate_totals()

    try:
        quote.mark_converted(by=by)
    except TransitionNotAllowed as exc:
        raise InvalidTransition(quote, Quote.Status.CONVERTED) from exc
    quote.save()

    logger.info("Quote %s converted to sales invoice %s", quote.display_no, invoice.pk)
    return invoice


@transaction.atomic
def receive_supplier_invoice(order, *, supplier_number, issue_date=None, due_date=None, items=None, by=None):
    """Record the supplier's invoice for a confirmed purchase order.

    Lines are copied from the order unless `items` is given (partial or
    corrected deliveries). Advance payments on the order move to the
    invoice; more advance than the invoice total raises OverpaymentError.
    The order moves to received; the invoice starts pending approval.
    Returns the new SupplierInvoice.
    """
    order = PurchaseOrder.objects.select_for_update().get(pk=order.pk)
    if order.status != PurchaseOrder.Status.CONFIRMED:
        raise InvalidTransition(order, PurchaseOrder.Status.RECEIVED)

    invoice = SupplierInvoice.objects.create(
        supplier=order.supplier,
        purchase_order=order,
        supplier_number=supplier_number,
        issue_date=issue_date or timezone.localdate(),
        due_date=due_date,
        notes=order.notes,
    )

    if items is None:
        _copy_lines(order, invoice)
    else:
        for position, item in enumerate(items, start=1):
            line = build_line(invoice, item)
            line.line_no = position * 10
            line.save()
    invoice.recalculate_totals()
    _move_advances(order, invoice, by=by)

    try:
        order.receive(by=by)
    except TransitionNotAllowed as exc:
        raise InvalidTransition(order, PurchaseOrder.Status.RECEIVED) from exc
    order.save()

    sync_payment_state(order, by=by)
    invoice = sync_payment_state(invoice, by=by)

    logger.info(
        "Purchase order %s received with supplier invoice %s (%s)", order.display_no, invoice.pk, supplier_number
    )
    return invoice
