# quote_dashboard/premium_recognition/allocator.py
"""
Premium recognition by month.

Distributes a deal's premium over the 12 months of a target year:

- Total (one-time) lines: full premium in the closing month, both modes.
- Recorrente lines: the first invoice is prorated by the days left in the
  effective month (início de vigência).
    FIRST_INVOICE_ONLY -> only that prorated invoice
    FULL_DISTRIBUTION  -> prorated invoice, then the full premium every
                          following month through December

Bad or missing data never raises: the deal contributes a zero vector.
"""

import calendar
import logging
from typing import Any, Optional, Union

import numpy as np
import pandas as pd

from .branch_classifier import get_recurrence_class
from .constants import MONTHS_IN_YEAR, AllocationMode, RecurrenceClass
from .records import Deal, to_amount, to_date

logger = logging.getLogger(__name__)


def _coerce_mode(mode: Union[AllocationMode, str]) -> AllocationMode:
    try:
        return AllocationMode(mode)
    except ValueError:
        raise ValueError(f"Unknown allocation mode: {mode!r}") from None


def _coerce_recurrence(value: Union[RecurrenceClass, str, None]) -> RecurrenceClass:
    try:
        return RecurrenceClass(value)
    except ValueError:
        return RecurrenceClass.ONE_TIME


def prorated_first_invoice(premium_amount: Any, effective_date: Any) -> float:
    """Premium billed for the remainder of the effective month."""
    premium = to_amount(premium_amount)
    start = to_date(effective_date)
    if premium == 0 or start is None:
        return 0.0

    days_in_month = calendar.monthrange(start.year, start.month)[1]
    days_remaining = days_in_month - start.day + 1
    return (premium / days_in_month) * days_remaining


def allocate_premium(
    premium_amount: Any,
    recurrence_class: Union[RecurrenceClass, str, None],
    target_year: int,
    mode: Union[AllocationMode, str] = AllocationMode.FULL_DISTRIBUTION,
    closing_date: Any = None,
    effective_date: Any = None,
) -> np.ndarray:
    """
    Monthly recognized premium for one deal in target_year.

    Returns:
        np.ndarray of 12 floats, index 0 = January
    """
    mode = _coerce_mode(mode)
    monthly = np.zeros(MONTHS_IN_YEAR, dtype=float)

    premium = to_amount(premium_amount)
    if premium == 0:
        return monthly

    if _coerce_recurrence(recurrence_class) == RecurrenceClass.ONE_TIME:
        closed_on = to_date(closing_date)
        if closed_on is None or closed_on.year != int(target_year):
            return monthly
        monthly[closed_on.month - 1] = premium
        return monthly

    start = to_date(effective_date)
    if start is None or start.year != int(target_year):
        return monthly

    first_month = start.month - 1
    monthly[first_month] = prorated_first_invoice(premium, start)

    if mode == AllocationMode.FULL_DISTRIBUTION:
        monthly[first_month + 1:] = premium

    return monthly


def allocate_deal(
    deal: Deal,
    target_year: int,
    mode: Union[AllocationMode, str],
    recurrence_class: Optional[Union[RecurrenceClass, str]] = None,
) -> np.ndarray:
    """Allocate a Deal; recurrence defaults to the branch classification."""
    if recurrence_class is None:
        recurrence_class = get_recurrence_class(deal.branch_label)

    return allocate_premium(
        deal.premium_amount,
        recurrence_class,
        target_year,
        mode,
        closing_date=deal.closing_date,
        effective_date=deal.effective_date,
    )


def allocate_frame(
    df: pd.DataFrame,
    target_year: int,
    mode: Union[AllocationMode, str],
) -> np.ndarray:
    """
    Sum of monthly allocations over a normalized deals frame.

    Args:
        df: Frame from normalize_deals (needs premium_amount, recurrence_class,
            closing_date, effective_date)
        target_year: Calendar year to allocate into
        mode: AllocationMode

    Returns:
        np.ndarray of 12 floats
    """
    mode = _coerce_mode(mode)
    total = np.zeros(MONTHS_IN_YEAR, dtype=float)

    if df is None or df.empty:
        return total

    for row in df.itertuples(index=False):
        total += allocate_premium(
            row.premium_amount,
            row.recurrence_class,
            target_year,
            mode,
            closing_date=row.closing_date,
            effective_date=row.effective_date,
        )

    logger.debug(f"Allocated {len(df)} deals into {target_year} ({mode.value}): total={total.sum():,.2f}")
    return total
