"""Line item editing.

Lines are owned by their document and replaced as a unit. Every line is
built and validated before the old ones are deleted, so a bad item leaves
the stored document exactly as it was.
"""

import logging

from django.db import transaction

from core.exceptions import DocumentLocked, ValidationError
from masterdata.services.catalog import current_price, default_tax_rate

logger = logging.getLogger(__name__)


def build_line(document, item: dict):
    """Build (not save) a line for `document` from a plain dict.

    Keys: product (required), quantity, unit_price, tax_rate,
    discount_rate, description. A missing unit_price or tax_rate is taken
    from the catalog.
    """
    product = item.get("product")
    if product is None:
        raise ValidationError("Every item needs a product.")

    unit_price = item.get("unit_price")
    if unit_price is None:
        unit_price = current_price(product, document.price_purpose)

    tax_rate = item.get("tax_rate")
    if tax_rate is None:
        tax_rate = default_tax_rate(product)

    line = document.lines.model(
        document=document,
        product=product,
        description=item.get("description") or "",
        quantity=item.get("quantity", 1),
        unit_price=unit_price,
        tax_rate=tax_rate,
        discount_rate=item.get("discount_rate") or 0,
    )
    line.apply_amounts()
    return line


def replace_items(document, items):
    """Replace all lines of `document` and recompute its totals.

    Raises DocumentLocked once the document has left its editable status,
    ValidationError for a bad item. Returns the saved document.
    """
    model = type(document)

    with transaction.atomic():
        doc = model.objects.select_for_update().get(pk=document.pk)
        if not doc.is_editable:
            raise DocumentLocked(doc)

        lines = [build_line(doc, item) for item in items]

        doc.lines.all().delete()
        for position, line in enumerate(lines, start=1):
            line.line_no = position * 10
            line.save()

        doc.recalculate_totals()

    logger.info("%s %s: %s line(s), total %s", model.__name__, doc.display_no, len(lines), doc.total_amount)
    return doc


def change_line_product(line, product):
    """Swap the product of a line; price, tax rate and description follow the catalog."""
    model = line._meta.get_field("document").related_model

    with transaction.atomic():
        document = model.objects.select_for_update().get(pk=line.document_id)
        if not document.is_editable:
            raise DocumentLocked(document)

        line.document = document
        line.product = product
        line.unit_price = current_price(product, document.price_purpose)
        line.tax_rate = default_tax_rate(product)
        line.description = ""
        line.save()

        document.recalculate_totals()
    return line
