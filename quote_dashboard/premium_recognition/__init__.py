# quote_dashboard/premium_recognition/__init__.py
"""
Premium Recognition & Goal Attainment Module

Calculation engine behind the quotes dashboard. Pure functions over
in-memory rows; fetching and rendering live outside this package.

Components:
- records: Deal / MonthlyGoal types and one-time normalization
- branch_classifier: Branch (ramo) -> segment, recurrence, branch group
- dedup: Distinct deal counting (tax id + branch group)
- allocator: Premium recognized per month (first invoice / full distribution)
- goals: Monthly goals and the staircase (escadinha) curve
- attainment: Attainment %, period comparison, tiers
- filters: DealFilters and the status-aware date window
- periods: Dashboard period presets
- pipeline: QuoteMetrics, every grouped view the dashboard needs

Usage:
    from quote_dashboard.premium_recognition import (
        QuoteMetrics,
        DealFilters,
        resolve_period,
        AllocationMode,
    )
"""

from .records import Deal, MonthlyGoal, normalize_deals, normalize_goals
from .branch_classifier import (
    BranchClassification,
    classify_branch,
    get_branch_group,
    get_recurrence_class,
    get_segment,
    is_recurrent,
)
from .dedup import count_distinct, count_distinct_by_status, dedup_key, group_deals
from .allocator import allocate_deal, allocate_frame, allocate_premium, prorated_first_invoice
from .goals import combine_goals, simple_accumulation, staircase_accumulation
from .attainment import build_kpi, calc_attainment, calc_comparison, classify_attainment
from .filters import DealFilters, apply_filters
from .periods import Period, resolve_period
from .pipeline import QuoteMetrics, to_chart_points

# Constants
from .constants import (
    COLORS,
    MONTH_ORDER,
    SEGMENTS,
    PERIOD_PRESETS,
    AllocationMode,
    AttainmentTier,
    DealStatus,
    RecurrenceClass,
)

__all__ = [
    # Classes
    'QuoteMetrics',
    'Deal',
    'MonthlyGoal',
    'DealFilters',
    'Period',
    'BranchClassification',

    # Functions
    'normalize_deals',
    'normalize_goals',
    'classify_branch',
    'get_branch_group',
    'get_recurrence_class',
    'get_segment',
    'is_recurrent',
    'dedup_key',
    'count_distinct',
    'count_distinct_by_status',
    'group_deals',
    'prorated_first_invoice',
    'allocate_premium',
    'allocate_deal',
    'allocate_frame',
    'simple_accumulation',
    'staircase_accumulation',
    'combine_goals',
    'calc_attainment',
    'calc_comparison',
    'classify_attainment',
    'build_kpi',
    'apply_filters',
    'resolve_period',
    'to_chart_points',

    # Constants
    'COLORS',
    'MONTH_ORDER',
    'SEGMENTS',
    'PERIOD_PRESETS',
    'AllocationMode',
    'AttainmentTier',
    'DealStatus',
    'RecurrenceClass',
]

__version__ = '1.0.0'
