"""Document number allocation.

allocate() hands out each number of a series to exactly one caller.

Step-by-step:
1) Start a DB transaction (atomic). Inside a document transition this is a
   savepoint of the caller's transaction, so the counter and the document
   commit (or roll back) together.
2) Lock the series row with select_for_update.
3) Read last_issued_sequence and check width / range / expiry.
4) UPDATE ... SET last_issued_sequence = n + 1 WHERE last_issued_sequence = n.
   On backends without row locks (SQLite) a concurrent writer can slip in
   between 3 and 4; the UPDATE then matches no row and we retry.
5) After ALLOCATION_MAX_RETRIES lost races, raise AllocationContention.
"""

import logging

from django.db import transaction
from django.utils import timezone

from core.conf import ledger_setting
from core.exceptions import (
    AllocationContention,
    SeriesExhausted,
    SeriesExpired,
    SeriesNotFound,
)
from core.models import NumberSeries

logger = logging.getLogger(__name__)


def _locked_series(series_code):
    return (
        NumberSeries.objects
        .select_for_update()
        .filter(code=series_code, is_active=True)
        .first()
    )


def _claim(series, sequence) -> bool:
    """Conditionally move the counter from sequence - 1 to sequence."""
    updated = (
        NumberSeries.objects
        .filter(pk=series.pk, last_issued_sequence=sequence - 1)
        .update(last_issued_sequence=sequence)
    )
    return updated == 1


def allocate(series_code: str) -> str:
    """Allocate the next number in `series_code` and return it formatted."""
    attempts = int(ledger_setting("ALLOCATION_MAX_RETRIES"))

    for attempt in range(1, attempts + 1):
        with transaction.atomic():
            series = _locked_series(series_code)
            if series is None:
                raise SeriesNotFound(series_code)

            if series.valid_until and series.valid_until < timezone.localdate():
                raise SeriesExpired(series_code, series.valid_until)

            sequence = series.last_issued_sequence + 1
            if sequence > series.max_sequence:
                raise SeriesExhausted(series_code, series.max_sequence)

            if _claim(series, sequence):
                number = series.format_number(sequence)
                logger.info("Allocated %s from series %s", number, series_code)
                return number

        logger.warning(
            "Lost allocation race on series %s (attempt %s/%s)", series_code, attempt, attempts
        )

    raise AllocationContention(series_code, attempts)
