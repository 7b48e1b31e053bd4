"""Requested status changes for every document family.

The allowed (source, target) pairs are the @transition decorators on each
model; this module only looks them up, runs the matching method inside a
transaction and saves. Transitions marked with custom["driven_by"] belong to
another service (payments, quote conversion) and are refused here.
"""

import logging

from django.db import transaction
from django_fsm import TransitionNotAllowed

from core.exceptions import InvalidTransition
from ledger.services.settlement import sync_payment_state

logger = logging.getLogger(__name__)


def _transitions(model):
    return model._meta.get_field("status").get_all_transitions(model)


def allowed_transitions(model, include_driven=False) -> dict:
    """Return {(source, target): method_name} for `model`.

    Example for SalesInvoice:
        {("draft", "issued"): "issue", ("draft", "voided"): "void", ...}
    """
    table = {}
    for t in _transitions(model):
        if not include_driven and t.custom.get("driven_by"):
            continue
        table[(str(t.source), str(t.target))] = t.name
    return table


def transition(document, target, *, by=None, reason=""):
    """Move `document` to `target` and return the saved, fresh instance.

    - Re-reads the document under a row lock; the caller's instance is
      left untouched
    - Closing targets (void/cancel/reject) pass `reason` to the method
    - Number allocation and the status change commit together; any error
      rolls both back and the stored document keeps its previous status
    - On reaching a payable status the payment status is derived again
    """
    model = type(document)

    with transaction.atomic():
        doc = model.objects.select_for_update().get(pk=document.pk)

        method_name = allowed_transitions(model).get((doc.status, str(target)))
        if method_name is None:
            raise InvalidTransition(doc, target)

        source = doc.status
        kwargs = {"by": by}
        if target in model.CLOSING_STATES:
            kwargs["reason"] = reason

        try:
            getattr(doc, method_name)(**kwargs)
        except TransitionNotAllowed as exc:
            raise InvalidTransition(doc, target) from exc

        doc.save()

        # a zero-total document is paid as soon as it becomes payable
        if doc.accepts_payments:
            doc = sync_payment_state(doc, by=by)

    logger.info(
        "%s %s: %s -> %s (%s)", model.__name__, doc.display_no, source, doc.status, getattr(by, "pk", "system")
    )
    return doc
