# quote_dashboard/premium_recognition/filters.py
"""
Deal filters for the aggregation pipeline.

Two stages, always in this order:
1. Attribute filters (producer, insurer, branch, segment, recurrence, status)
2. Status-aware date window:
   - Em cotação / Declinado         -> quote_date
   - Negócio fechado / congênere    -> closing_date
   Rows missing the date their status requires are left out of the window.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, List, Optional, Tuple

import pandas as pd

from .branch_classifier import normalize_label
from .constants import CLOSED_STATUSES, RecurrenceClass
from .records import to_date

logger = logging.getLogger(__name__)


@dataclass
class DealFilters:
    """
    Explicit filter set; empty lists mean "no restriction".

    Attributes:
        start / end: inclusive date window (status-aware)
        producers: producer ids
        insurers: insurer ids
        branches: raw branch labels
        branch_groups: canonical branch groups (e.g. "RCTR-C + RC-DC")
        segments: Transportes, Avulso, Ambiental, RC-V, Outros
        recurrence_class: "Recorrente" or "Total"
        statuses: raw status labels
    """
    start: Optional[date] = None
    end: Optional[date] = None
    producers: List[str] = field(default_factory=list)
    insurers: List[str] = field(default_factory=list)
    branches: List[str] = field(default_factory=list)
    branch_groups: List[str] = field(default_factory=list)
    segments: List[str] = field(default_factory=list)
    recurrence_class: Optional[str] = None
    statuses: List[str] = field(default_factory=list)

    def __repr__(self) -> str:
        window = f"{self.start} - {self.end}" if self.start or self.end else "all dates"
        active = [
            name for name in ('producers', 'insurers', 'branches', 'branch_groups', 'segments', 'statuses')
            if getattr(self, name)
        ]
        if self.recurrence_class:
            active.append('recurrence_class')
        return f"DealFilters({window}, active={active})"

    @classmethod
    def for_window(cls, start: date, end: date, **kwargs: Any) -> "DealFilters":
        return cls(start=start, end=end, **kwargs)

    def validate(self) -> Tuple[bool, Optional[str]]:
        """
        Validate filter values.

        Returns:
            Tuple of (is_valid, error_message)
        """
        if self.start and self.end and to_date(self.start) > to_date(self.end):
            return False, "Start date must be before end date"

        if self.recurrence_class is not None:
            try:
                RecurrenceClass(self.recurrence_class)
            except ValueError:
                return False, f"Unknown recurrence class: {self.recurrence_class}"

        return True, None


# =============================================================================
# ATTRIBUTE FILTERS
# =============================================================================

def apply_multiselect_filter(df: pd.DataFrame, column: str, selected: List[Any]) -> pd.DataFrame:
    """Keep rows whose column value is in selected; no-op when nothing is selected."""
    if df.empty or not selected:
        return df

    if column not in df.columns:
        logger.warning(f"Column '{column}' not found in DataFrame")
        return df

    values = [str(v) for v in selected]
    return df[df[column].astype(str).isin(values)]


def apply_label_filter(df: pd.DataFrame, column: str, selected: List[Any]) -> pd.DataFrame:
    """Like apply_multiselect_filter, but case-, space- and accent-insensitive."""
    if df.empty or not selected:
        return df

    if column not in df.columns:
        logger.warning(f"Column '{column}' not found in DataFrame")
        return df

    wanted = {normalize_label(v) for v in selected}
    return df[df[column].map(normalize_label).isin(wanted)]


def apply_attribute_filters(df: pd.DataFrame, filters: DealFilters) -> pd.DataFrame:
    df = apply_multiselect_filter(df, 'producer_id', filters.producers)
    df = apply_multiselect_filter(df, 'insurer_id', filters.insurers)
    df = apply_label_filter(df, 'branch_label', filters.branches)
    df = apply_label_filter(df, 'branch_group', filters.branch_groups)
    df = apply_multiselect_filter(df, 'segment', filters.segments)
    df = apply_multiselect_filter(df, 'status', filters.statuses)

    if filters.recurrence_class and not df.empty:
        df = df[df['recurrence_class'] == RecurrenceClass(filters.recurrence_class).value]

    return df


# =============================================================================
# STATUS-AWARE DATE WINDOW
# =============================================================================

def reference_dates(df: pd.DataFrame) -> pd.Series:
    """The date each row is bucketed by: closing date for closed rows, quote date otherwise."""
    if df.empty:
        return pd.Series([], index=df.index, dtype='datetime64[ns]')

    closed = df['status'].isin(CLOSED_STATUSES)
    return df['closing_date'].where(closed, df['quote_date'])


def apply_date_window(
    df: pd.DataFrame,
    start: Optional[date],
    end: Optional[date],
) -> pd.DataFrame:
    """
    Keep rows whose status-appropriate date falls in [start, end].

    With neither bound set, every row is kept (including rows with no date).
    """
    if df.empty or (start is None and end is None):
        return df

    ref = reference_dates(df)
    mask = ref.notna()

    start_date = to_date(start)
    end_date = to_date(end)
    if start_date is not None:
        mask &= ref >= pd.Timestamp(start_date)
    if end_date is not None:
        mask &= ref < pd.Timestamp(end_date) + pd.Timedelta(days=1)

    return df[mask]


def apply_filters(df: pd.DataFrame, filters: Optional[DealFilters] = None) -> pd.DataFrame:
    """Attribute filters, then the status-aware window."""
    if df is None or df.empty or filters is None:
        return df

    is_valid, error = filters.validate()
    if not is_valid:
        raise ValueError(error)

    filtered = apply_attribute_filters(df, filters)
    filtered = apply_date_window(filtered, filters.start, filters.end)

    logger.debug(f"{filters!r}: {len(df):,} -> {len(filtered):,} rows")
    return filtered
