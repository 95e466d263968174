# quote_dashboard/premium_recognition/goals.py
"""
Goal accumulation ("escadinha").

The accumulated goal is built in TWO passes:
    simple[i] = simple[i-1] + monthly[i]
    stair[i]  = stair[i-1]  + simple[i]

Each month's target compounds the prior cumulative target, so the goal to
beat grows faster than linearly. This is the business rule as configured by
managers and must not be collapsed into a single running sum.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np

from .constants import MONTH_ORDER, MONTHS_IN_YEAR
from .records import MonthlyGoal

logger = logging.getLogger(__name__)


def _as_monthly_array(monthly: Sequence[float]) -> np.ndarray:
    values = np.asarray(list(monthly), dtype=float)
    if values.shape != (MONTHS_IN_YEAR,):
        raise ValueError(f"Expected {MONTHS_IN_YEAR} monthly goal values, got {values.size}")
    return values


def simple_accumulation(monthly: Sequence[float]) -> np.ndarray:
    """Plain running sum of the monthly goals."""
    return np.cumsum(_as_monthly_array(monthly))


def staircase_accumulation(monthly: Sequence[float]) -> np.ndarray:
    """Running sum of the running sum (escadinha curve)."""
    return np.cumsum(simple_accumulation(monthly))


def staircase_rows(monthly: Sequence[float]) -> List[Dict]:
    """
    Escadinha table: row r repeats monthly[r] from month r through December.

    Returns:
        List of 12 dicts {'month', 'cells', 'row_total'} where cells has 12
        entries (None before month r)
    """
    values = _as_monthly_array(monthly)
    rows = []
    for r, label in enumerate(MONTH_ORDER):
        cells = [float(values[r]) if c >= r else None for c in range(MONTHS_IN_YEAR)]
        filled = MONTHS_IN_YEAR - r
        rows.append({
            'month': label,
            'cells': cells,
            'row_total': float(values[r]) * filled,
        })
    return rows


def staircase_insights(
    monthly: Sequence[float],
    thresholds: Iterable[float] = (100000, 250000, 500000),
) -> Dict:
    """
    Highlights of the staircase curve.

    Returns:
        Dict with:
        - annual_total: stair[11]
        - max_growth_from / max_growth_to: month labels of the largest jump
        - max_growth_value: size of that jump (0 when the curve is flat)
        - crossings: [{'threshold', 'month'}] first month reaching each threshold
    """
    stair = staircase_accumulation(monthly)

    max_growth = 0.0
    growth_from, growth_to = 0, 1
    for i in range(1, MONTHS_IN_YEAR):
        growth = float(stair[i] - stair[i - 1])
        if growth > max_growth:
            max_growth = growth
            growth_from, growth_to = i - 1, i

    crossings = []
    for threshold in thresholds:
        reached = np.nonzero(stair >= threshold)[0]
        if reached.size:
            crossings.append({'threshold': threshold, 'month': MONTH_ORDER[int(reached[0])]})

    return {
        'annual_total': float(stair[-1]),
        'max_growth_from': MONTH_ORDER[growth_from],
        'max_growth_to': MONTH_ORDER[growth_to],
        'max_growth_value': max_growth,
        'crossings': crossings,
    }


def combine_goals(
    goals: Iterable[MonthlyGoal],
    producer_id: Optional[str] = None,
    year: Optional[int] = None,
) -> Dict[str, np.ndarray]:
    """
    Monthly and staircase goal curves for one producer or for everyone.

    With no producer_id, the staircase is the sum of each producer's own
    staircase.

    Returns:
        {'monthly': np.ndarray(12), 'accumulated': np.ndarray(12)}
    """
    monthly_total = np.zeros(MONTHS_IN_YEAR, dtype=float)
    stair_total = np.zeros(MONTHS_IN_YEAR, dtype=float)

    selected = [
        g for g in goals
        if (producer_id is None or g.producer_id == str(producer_id))
        and (year is None or g.year == int(year))
    ]

    if producer_id is not None and len(selected) > 1:
        # a producer has one goal row per year
        selected = selected[:1]

    for goal in selected:
        monthly_total += _as_monthly_array(goal.monthly)
        stair_total += staircase_accumulation(goal.monthly)

    logger.debug(f"Combined {len(selected)} goal rows (producer={producer_id}, year={year})")
    return {'monthly': monthly_total, 'accumulated': stair_total}
