# quote_dashboard/premium_recognition/periods.py
"""
Dashboard period presets.

Resolves a preset (as offered in the dashboard date filter) into the current
window and the previous comparable window. Dates are inclusive on both ends.
"today" is always an explicit argument so results are reproducible.
"""

import calendar
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional, Tuple

from .constants import DEFAULT_PERIOD

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Period:
    start: date
    end: date
    previous_start: date
    previous_end: date
    preset: str = DEFAULT_PERIOD

    @property
    def target_year(self) -> int:
        """Goal comparisons use the month/year of the period end."""
        return self.end.year

    @property
    def target_month(self) -> int:
        """1-12"""
        return self.end.month

    @property
    def target_month_index(self) -> int:
        """0-11, for indexing 12-slot arrays"""
        return self.end.month - 1


def shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    """(year, month) moved by delta months."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def _span_bounds(year: int, first_month: int, months: int) -> Tuple[date, date]:
    start, _ = month_bounds(year, first_month)
    end_year, end_month = shift_month(year, first_month, months - 1)
    _, end = month_bounds(end_year, end_month)
    return start, end


def _rolling(today: date, days: int) -> Tuple[date, date, date, date]:
    """Last `days` days ending today, and the `days` days before them."""
    start = today - timedelta(days=days - 1)
    previous_end = start - timedelta(days=1)
    previous_start = previous_end - timedelta(days=days - 1)
    return start, today, previous_start, previous_end


def resolve_period(
    preset: str = DEFAULT_PERIOD,
    today: Optional[date] = None,
    custom_start: Optional[date] = None,
    custom_end: Optional[date] = None,
) -> Period:
    """
    Calculate current and previous windows for a period preset.

    Args:
        preset: 'hoje', '7dias', '30dias', '90dias', 'mes_atual', 'mes_anterior',
                'trimestre_atual', 'semestre_atual', 'ano_atual' or 'personalizado'
        today: Reference date (defaults to date.today())
        custom_start: Start for 'personalizado'
        custom_end: End for 'personalizado' (defaults to custom_start)

    Returns:
        Period
    """
    today = today or date.today()
    year, month = today.year, today.month

    if preset == 'hoje':
        yesterday = today - timedelta(days=1)
        bounds = (today, today, yesterday, yesterday)

    elif preset == '7dias':
        bounds = _rolling(today, 7)

    elif preset == '30dias':
        bounds = _rolling(today, 30)

    elif preset == '90dias':
        bounds = _rolling(today, 90)

    elif preset == 'mes_anterior':
        start, end = month_bounds(*shift_month(year, month, -1))
        prev_start, prev_end = month_bounds(*shift_month(year, month, -2))
        bounds = (start, end, prev_start, prev_end)

    elif preset == 'trimestre_atual':
        quarter_first = ((month - 1) // 3) * 3 + 1
        start, end = _span_bounds(year, quarter_first, 3)
        prev_year, prev_first = shift_month(year, quarter_first, -3)
        prev_start, prev_end = _span_bounds(prev_year, prev_first, 3)
        bounds = (start, end, prev_start, prev_end)

    elif preset == 'semestre_atual':
        semester_first = 1 if month <= 6 else 7
        start, end = _span_bounds(year, semester_first, 6)
        prev_year, prev_first = shift_month(year, semester_first, -6)
        prev_start, prev_end = _span_bounds(prev_year, prev_first, 6)
        bounds = (start, end, prev_start, prev_end)

    elif preset == 'ano_atual':
        bounds = (date(year, 1, 1), date(year, 12, 31), date(year - 1, 1, 1), date(year - 1, 12, 31))

    elif preset in ('personalizado', 'personalizado_comparacao') and custom_start:
        start = custom_start
        end = custom_end or custom_start
        if end < start:
            start, end = end, start
        days_diff = (end - start).days
        prev_end = start - timedelta(days=1)
        prev_start = prev_end - timedelta(days=days_diff)
        bounds = (start, end, prev_start, prev_end)

    else:
        if preset not in ('mes_atual', 'personalizado', 'personalizado_comparacao'):
            logger.warning(f"Unknown period preset '{preset}', using current month")
        start, end = month_bounds(year, month)
        prev_start, prev_end = month_bounds(*shift_month(year, month, -1))
        bounds = (start, end, prev_start, prev_end)

    return Period(*bounds, preset=preset)


def last_n_months(as_of: date, months: int) -> list:
    """(year, month) tuples for the last n months ending at as_of, oldest first."""
    return [shift_month(as_of.year, as_of.month, -i) for i in range(months - 1, -1, -1)]
