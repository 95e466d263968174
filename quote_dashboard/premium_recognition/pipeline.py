# quote_dashboard/premium_recognition/pipeline.py
"""
Aggregation pipeline for the quotes dashboard.

Builds every grouped view from one normalized deals frame:
- Distinct deal counts by status, segment, branch group and recurrence class
- Current vs previous period KPIs
- Premium recognized per month (both allocation modes)
- Realized premium vs monthly / staircase goals
- Producer and insurer rankings, monthly trend

Every grouping key comes from the same classification and dedup rules, so
two views of the same rows always agree on totals. The class holds only its
inputs; every method is a pure read.
"""

import logging
from dataclasses import replace
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Union

import numpy as np
import pandas as pd

from ..config import EngineSettings, config
from .allocator import allocate_frame
from .attainment import build_kpi, calc_attainment, calc_comparison, classify_attainment
from .constants import (
    CLOSED_STATUSES,
    COLORS,
    MONTH_ORDER,
    MONTHS_IN_YEAR,
    SEGMENTS,
    STATUS_CATEGORIES,
    STATUS_CATEGORY_LABELS,
    UNINFORMED_LABEL,
    AllocationMode,
    DealStatus,
    RecurrenceClass,
)
from .dedup import count_distinct, count_distinct_by_status
from .filters import DealFilters, apply_attribute_filters, apply_filters
from .goals import combine_goals, staircase_insights, staircase_rows
from .periods import Period, last_n_months, month_bounds, shift_month
from .records import MonthlyGoal, normalize_deals, normalize_goals, to_date

logger = logging.getLogger(__name__)


def to_chart_points(labels: Iterable[Any], values: Iterable[Any]) -> List[Dict]:
    """Pair labels and values into chart points [{'label', 'value'}]."""
    return [
        {'label': str(label), 'value': float(value or 0)}
        for label, value in zip(labels, values)
    ]


def _days_between(end: pd.Series, start: pd.Series) -> pd.Series:
    """Whole days between two datetime columns, rounded half up."""
    days = (end - start).dt.total_seconds() / 86400
    return np.floor(days + 0.5)


class QuoteMetrics:
    """
    Dashboard metrics over quote rows.

    Usage:
        metrics = QuoteMetrics(deals, goals)

        period = resolve_period('mes_atual', today=date(2025, 3, 15))
        summary = metrics.period_summary(period)
        goals_view = metrics.goal_comparison(period.target_year, period.target_month)
        producers = metrics.producer_ranking(DealFilters(start=period.start, end=period.end))
    """

    def __init__(
        self,
        deals: Any,
        goals: Optional[Iterable[Union[MonthlyGoal, Dict]]] = None,
        settings: Optional[EngineSettings] = None,
    ):
        """
        Initialize with data.

        Args:
            deals: Raw quote rows (list of dicts / DataFrame) or a frame
                   already produced by normalize_deals
            goals: MonthlyGoal objects or metas_premio rows (optional)
            settings: EngineSettings (defaults to the loaded configuration)
        """
        if isinstance(deals, pd.DataFrame) and 'dedup_key' in deals.columns:
            self.deals_df = deals
        else:
            self.deals_df = normalize_deals(deals)

        self.goals = normalize_goals(goals) if goals is not None else []
        self.settings = settings or config.get_engine_settings()

    # =========================================================================
    # FILTERING
    # =========================================================================

    def filter_deals(self, filters: Optional[DealFilters] = None) -> pd.DataFrame:
        """Attribute filters, then the status-aware date window."""
        if filters is None:
            return self.deals_df
        return apply_filters(self.deals_df, filters)

    def _window(
        self,
        start: Optional[date],
        end: Optional[date],
        filters: Optional[DealFilters] = None,
    ) -> pd.DataFrame:
        base = filters or DealFilters()
        return self.filter_deals(replace(base, start=start, end=end))

    def _closed_in_year(self, year: int, producer_id: Optional[str] = None) -> pd.DataFrame:
        """Closed rows whose closing date falls in year."""
        df = self.deals_df
        if df.empty:
            return df

        mask = df['status'].isin(CLOSED_STATUSES) & (df['closing_date'].dt.year == int(year))
        if producer_id is not None:
            mask &= df['producer_id'].astype(str) == str(producer_id)
        return df[mask]

    # =========================================================================
    # STATUS COUNTS
    # =========================================================================

    def status_counts(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
        filters: Optional[DealFilters] = None,
    ) -> Dict[str, int]:
        """
        Distinct deal counts per status category.

        Returns:
            Dict with in_quote, closed, declined, total
        """
        df = self._window(start, end, filters)
        counts = {
            category: count_distinct_by_status(df, statuses)
            for category, statuses in STATUS_CATEGORIES.items()
        }
        counts['total'] = count_distinct(df)
        return counts

    def status_distribution(self, filters: Optional[DealFilters] = None) -> List[Dict]:
        """
        Status breakdown for the distribution chart.

        Returns:
            List of dicts: status, category, count (distinct deals),
            insured_count (distinct tax ids), percentage, color
        """
        df = self.filter_deals(filters)

        rows = []
        for category, statuses in STATUS_CATEGORIES.items():
            subset = df[df['status'].isin(statuses)] if not df.empty else df
            insured = subset.loc[subset['tax_id'] != '', 'tax_id'].nunique() if not subset.empty else 0
            label = STATUS_CATEGORY_LABELS[category]
            rows.append({
                'status': label,
                'category': category,
                'count': count_distinct(subset),
                'insured_count': int(insured),
                'color': COLORS.get(label),
            })

        total = sum(r['count'] for r in rows)
        for r in rows:
            r['percentage'] = (r['count'] / total) * 100 if total > 0 else 0.0

        return rows

    # =========================================================================
    # PERIOD SUMMARY
    # =========================================================================

    def _period_kpis(self, df: pd.DataFrame) -> Dict[str, float]:
        in_quote = count_distinct_by_status(df, STATUS_CATEGORIES['in_quote'])
        closed = count_distinct_by_status(df, STATUS_CATEGORIES['closed'])
        declined = count_distinct_by_status(df, STATUS_CATEGORIES['declined'])

        closed_rows = df[df['status'].isin(CLOSED_STATUSES)] if not df.empty else df
        total_premium = float(closed_rows['premium_amount'].sum()) if not closed_rows.empty else 0.0

        avg_days = 0.0
        if not closed_rows.empty:
            dated = closed_rows.dropna(subset=['closing_date', 'quote_date'])
            if not dated.empty:
                avg_days = float(_days_between(dated['closing_date'], dated['quote_date']).mean())

        decided = in_quote + closed + declined
        return {
            'in_quote': in_quote,
            'closed': closed,
            'declined': declined,
            'total_premium': total_premium,
            'average_ticket': total_premium / closed if closed > 0 else 0.0,
            'average_days_to_close': avg_days,
            'conversion_rate': (closed / decided) * 100 if decided > 0 else 0.0,
        }

    def period_summary(self, period: Period, filters: Optional[DealFilters] = None) -> Dict:
        """
        KPI cards for the selected period vs the previous comparable period.

        Args:
            period: Period from resolve_period
            filters: Attribute filters (the date window comes from period)

        Returns:
            Dict keyed by metric (in_quote, closed, declined, total_premium,
            average_ticket, average_days_to_close, conversion_rate), each
            {'current', 'previous', 'delta', 'delta_percentage'}, plus 'period'
        """
        current = self._period_kpis(self._window(period.start, period.end, filters))
        previous = self._period_kpis(self._window(period.previous_start, period.previous_end, filters))

        summary = {
            'period': {
                'start': period.start,
                'end': period.end,
                'previous_start': period.previous_start,
                'previous_end': period.previous_end,
            }
        }
        for metric, value in current.items():
            comparison = calc_comparison(value, previous[metric])
            summary[metric] = {
                'current': value,
                'previous': previous[metric],
                'delta': comparison['delta'],
                'delta_percentage': comparison['delta_percentage'],
            }

        logger.debug(
            f"Period summary {period.start} - {period.end}: "
            f"closed={current['closed']}, premium={current['total_premium']:,.2f}"
        )
        return summary

    # =========================================================================
    # PREMIUM & GOALS
    # =========================================================================

    def premium_by_month(
        self,
        target_year: int,
        mode: Union[AllocationMode, str] = AllocationMode.FULL_DISTRIBUTION,
        producer_id: Optional[str] = None,
    ) -> np.ndarray:
        """Recognized premium per month of target_year from closed deals."""
        return allocate_frame(self._closed_in_year(target_year, producer_id), target_year, mode)

    def goal_comparison(
        self,
        target_year: int,
        target_month: int,
        producer_id: Optional[str] = None,
    ) -> Dict:
        """
        Realized premium vs goals for a month of the year.

        - Monthly: first-invoice recognition vs the month's goal
        - Accumulated: running total of full recognition vs the staircase goal

        Args:
            target_year: Goal year
            target_month: 1-12
            producer_id: Restrict deals and goals to one producer (None = everyone)

        Returns:
            Dict with 'monthly' and 'accumulated' KPI dicts (compared to the
            previous month) and 'table' (12 rows)
        """
        target_month = int(target_month)
        if not 1 <= target_month <= MONTHS_IN_YEAR:
            raise ValueError(f"target_month must be 1-12, got {target_month}")

        deals = self._closed_in_year(target_year, producer_id)
        realized_monthly = allocate_frame(deals, target_year, AllocationMode.FIRST_INVOICE_ONLY)
        realized_accumulated = np.cumsum(allocate_frame(deals, target_year, AllocationMode.FULL_DISTRIBUTION))
        goal_curves = combine_goals(self.goals, producer_id=producer_id, year=target_year)

        idx = target_month - 1
        prev = idx - 1

        monthly_kpi = build_kpi(
            realized_monthly[idx],
            goal_curves['monthly'][idx],
            realized_monthly[prev] if prev >= 0 else 0.0,
            self.settings,
        )
        monthly_kpi['month'] = MONTH_ORDER[idx]

        accumulated_kpi = build_kpi(
            realized_accumulated[idx],
            goal_curves['accumulated'][idx],
            realized_accumulated[prev] if prev >= 0 else 0.0,
            self.settings,
        )
        accumulated_kpi['month'] = MONTH_ORDER[idx]

        table = []
        for i, label in enumerate(MONTH_ORDER):
            meta_mensal = float(goal_curves['monthly'][i])
            meta_acumulada = float(goal_curves['accumulated'][i])
            table.append({
                'mes': label,
                'meta_mensal': meta_mensal,
                'realizado_mensal': float(realized_monthly[i]),
                'percentual_mensal': calc_attainment(realized_monthly[i], meta_mensal),
                'meta_acumulada': meta_acumulada,
                'realizado_acumulado': float(realized_accumulated[i]),
                'percentual_acumulado': calc_attainment(realized_accumulated[i], meta_acumulada),
                'is_current': i == idx,
            })

        logger.info(
            f"📊 Goals {MONTH_ORDER[idx]}/{target_year} (producer={producer_id or 'all'}): "
            f"monthly {monthly_kpi['percentage']:.1f}%, accumulated {accumulated_kpi['percentage']:.1f}%"
        )

        return {
            'target_year': int(target_year),
            'target_month': target_month,
            'producer_id': producer_id,
            'monthly': monthly_kpi,
            'accumulated': accumulated_kpi,
            'table': table,
        }

    def goal_staircase(self, target_year: int, producer_id: Optional[str] = None) -> Dict:
        """
        Escadinha table and highlights for the goals of a year.

        Returns:
            Dict with 'rows' (see staircase_rows) and 'insights' (crossings
            use the configured staircase thresholds)
        """
        monthly = combine_goals(self.goals, producer_id=producer_id, year=target_year)['monthly']
        return {
            'rows': staircase_rows(monthly),
            'insights': staircase_insights(monthly, self.settings.staircase_thresholds),
        }

    # =========================================================================
    # RANKINGS
    # =========================================================================

    def producer_ranking(
        self,
        filters: Optional[DealFilters] = None,
        top_n: Optional[int] = None,
    ) -> List[Dict]:
        """
        Top producers by closed premium (row counts, not distinct deals).

        Sorted by total_premium, then closed, then total, descending.
        """
        top_n = top_n or self.settings.top_n
        df = self.filter_deals(filters)
        if df.empty:
            return []

        work = df.assign(producer=df['producer_name'].fillna(UNINFORMED_LABEL))
        is_closed = work['status'].isin(CLOSED_STATUSES)
        is_quote = work['status'] == DealStatus.IN_QUOTE.value

        work = work.assign(
            _closed=is_closed.astype(int),
            _in_quote=is_quote.astype(int),
            _declined=(work['status'] == DealStatus.DECLINED.value).astype(int),
            _premium=work['premium_amount'].where(is_closed, 0.0),
            _open=work['premium_amount'].where(is_quote, 0.0),
        )

        grouped = work.groupby('producer', sort=False).agg(
            total=('status', 'size'),
            closed=('_closed', 'sum'),
            in_quote=('_in_quote', 'sum'),
            declined=('_declined', 'sum'),
            total_premium=('_premium', 'sum'),
            open_premium=('_open', 'sum'),
        ).reset_index()

        grouped['average_ticket'] = np.where(
            grouped['closed'] > 0, grouped['total_premium'] / grouped['closed'].clip(lower=1), 0.0
        )
        grouped['conversion_rate'] = np.where(
            grouped['total'] > 0, grouped['closed'] / grouped['total'].clip(lower=1) * 100, 0.0
        )

        grouped = grouped.sort_values(
            ['total_premium', 'closed', 'total'], ascending=False, kind='mergesort'
        ).head(top_n)

        return [
            {
                'producer': row.producer,
                'total': int(row.total),
                'closed': int(row.closed),
                'in_quote': int(row.in_quote),
                'declined': int(row.declined),
                'total_premium': float(row.total_premium),
                'open_premium': float(row.open_premium),
                'average_ticket': float(row.average_ticket),
                'conversion_rate': float(row.conversion_rate),
            }
            for row in grouped.itertuples(index=False)
        ]

    def insurer_ranking(
        self,
        as_of: date,
        lookback_months: Optional[int] = None,
        top_n: Optional[int] = None,
        filters: Optional[DealFilters] = None,
    ) -> List[Dict]:
        """
        Top insurers by closed premium over the lookback window.

        Window starts on the first day of the month lookback_months before
        as_of and is bucketed by quote date. Only closed rows with a premium.
        Attribute filters (producer, branch, ...) apply; their date window
        does not.

        Returns:
            List of dicts: insurer, premium, count
        """
        lookback_months = lookback_months or self.settings.insurer_lookback_months
        top_n = top_n or self.settings.top_n
        df = self.deals_df
        if filters is not None and not df.empty:
            df = apply_attribute_filters(df, filters)
        if df.empty:
            return []

        as_of = to_date(as_of)
        start, _ = month_bounds(*shift_month(as_of.year, as_of.month, -lookback_months))

        mask = (
            df['status'].isin(CLOSED_STATUSES)
            & (df['premium_amount'] > 0)
            & (df['quote_date'] >= pd.Timestamp(start))
            & (df['quote_date'] < pd.Timestamp(as_of) + pd.Timedelta(days=1))
        )
        subset = df[mask]
        if subset.empty:
            return []

        grouped = (
            subset.assign(insurer=subset['insurer_name'].fillna(UNINFORMED_LABEL))
            .groupby('insurer', sort=False)
            .agg(premium=('premium_amount', 'sum'), deals=('premium_amount', 'size'))
            .reset_index()
            .sort_values('premium', ascending=False, kind='mergesort')
            .head(top_n)
        )

        return [
            {'insurer': row.insurer, 'premium': float(row.premium), 'count': int(row.deals)}
            for row in grouped.itertuples(index=False)
        ]

    # =========================================================================
    # TREND & BREAKDOWNS
    # =========================================================================

    def monthly_trend(
        self,
        as_of: date,
        months: Optional[int] = None,
        filters: Optional[DealFilters] = None,
    ) -> List[Dict]:
        """
        Row counts per month over the last n months, bucketed by quote date.

        Returns:
            List of dicts oldest first: month (e.g. 'Mar/25'), year,
            month_number, total, in_quote, closed
        """
        months = months or self.settings.trend_months
        df = self.deals_df
        if filters is not None and not df.empty:
            df = apply_attribute_filters(df, filters)

        as_of = to_date(as_of)
        trend = []
        for year, month in last_n_months(as_of, months):
            if df.empty:
                subset = df
            else:
                in_month = (df['quote_date'].dt.year == year) & (df['quote_date'].dt.month == month)
                subset = df[in_month]

            trend.append({
                'month': f"{MONTH_ORDER[month - 1]}/{str(year)[2:]}",
                'year': year,
                'month_number': month,
                'total': int(len(subset)),
                'in_quote': int((subset['status'] == DealStatus.IN_QUOTE.value).sum()) if not subset.empty else 0,
                'closed': int(subset['status'].isin(CLOSED_STATUSES).sum()) if not subset.empty else 0,
            })

        return trend

    def distinct_by_segment(
        self,
        filters: Optional[DealFilters] = None,
        category: Optional[str] = None,
    ) -> Dict[str, int]:
        """
        Distinct deal counts per segment.

        Args:
            filters: DealFilters
            category: 'in_quote', 'closed' or 'declined' (None = every status)
        """
        df = self.filter_deals(filters)
        if category is not None:
            if category not in STATUS_CATEGORIES:
                raise ValueError(f"Unknown status category: {category!r}")
            if not df.empty:
                df = df[df['status'].isin(STATUS_CATEGORIES[category])]

        if df.empty:
            return {segment: 0 for segment in SEGMENTS}

        return {segment: count_distinct(df[df['segment'] == segment]) for segment in SEGMENTS}

    def distinct_by_group(self, filters: Optional[DealFilters] = None) -> Dict:
        """
        Distinct deal counts per branch group and per recurrence class.

        Returns:
            Dict with by_branch_group, by_recurrence_class, total
        """
        df = self.filter_deals(filters)
        if df.empty:
            return {
                'by_branch_group': {},
                'by_recurrence_class': {rc.value: 0 for rc in RecurrenceClass},
                'total': 0,
            }

        by_group = (
            df.groupby('branch_group')['dedup_key'].nunique()
            .sort_values(ascending=False, kind='mergesort')
        )
        by_class = df.groupby('recurrence_class')['dedup_key'].nunique()

        return {
            'by_branch_group': {k: int(v) for k, v in by_group.items()},
            'by_recurrence_class': {rc.value: int(by_class.get(rc.value, 0)) for rc in RecurrenceClass},
            'total': count_distinct(df),
        }

    # =========================================================================
    # CHART HELPERS
    # =========================================================================

    @staticmethod
    def to_chart_points(labels: Iterable[Any], values: Iterable[Any]) -> List[Dict]:
        return to_chart_points(labels, values)

    def goal_chart_points(self, goal_view: Dict, accumulated: bool = False) -> Dict[str, List[Dict]]:
        """Realized and goal series from goal_comparison as chart points."""
        realized_key, goal_key = (
            ('realizado_acumulado', 'meta_acumulada') if accumulated
            else ('realizado_mensal', 'meta_mensal')
        )
        rows = goal_view['table']
        labels = [r['mes'] for r in rows]
        return {
            'realized': to_chart_points(labels, [r[realized_key] for r in rows]),
            'goal': to_chart_points(labels, [r[goal_key] for r in rows]),
            'tier_colors': [
                COLORS[classify_attainment(
                    r['percentual_acumulado' if accumulated else 'percentual_mensal'], self.settings
                ).value]
                for r in rows
            ],
        }
