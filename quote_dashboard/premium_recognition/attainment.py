# quote_dashboard/premium_recognition/attainment.py
"""
Attainment vs goal and period-over-period comparison.

All functions are pure; divisions by zero resolve to 0.
"""

from typing import Dict, Optional

from ..config import EngineSettings
from .constants import COLORS, AttainmentTier


def calc_attainment(realized: float, goal: float) -> float:
    """Percentage of goal reached; 0 when there is no goal. Not clamped."""
    realized = realized or 0
    goal = goal or 0
    return (realized / goal) * 100 if goal > 0 else 0.0


def calc_comparison(current: float, previous: float) -> Dict[str, float]:
    """Absolute and relative change vs the previous comparable period."""
    current = current or 0
    previous = previous or 0
    delta = current - previous
    return {
        'delta': delta,
        'delta_percentage': (delta / previous) * 100 if previous > 0 else 0.0,
    }


def classify_attainment(
    percentage: float,
    settings: Optional[EngineSettings] = None,
) -> AttainmentTier:
    """≥100% on track, 80–99% warning, below that behind (presentation only)."""
    settings = settings or EngineSettings()
    if percentage >= settings.on_track_pct:
        return AttainmentTier.ON_TRACK
    elif percentage >= settings.warning_pct:
        return AttainmentTier.WARNING
    else:
        return AttainmentTier.BEHIND


def tier_color(tier: AttainmentTier) -> str:
    return COLORS[AttainmentTier(tier).value]


def build_kpi(
    realized: float,
    goal: float,
    previous_realized: float = 0.0,
    settings: Optional[EngineSettings] = None,
) -> Dict:
    """
    KPI card payload.

    Returns:
        Dict with realized, goal, percentage, delta, delta_percentage, tier
    """
    percentage = calc_attainment(realized, goal)
    comparison = calc_comparison(realized, previous_realized)
    tier = classify_attainment(percentage, settings)
    return {
        'realized': float(realized or 0),
        'goal': float(goal or 0),
        'percentage': percentage,
        'delta': comparison['delta'],
        'delta_percentage': comparison['delta_percentage'],
        'tier': tier.value,
    }
