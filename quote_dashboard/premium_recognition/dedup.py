# quote_dashboard/premium_recognition/dedup.py
"""
Distinct deal counting.

One deal (insured party + branch group) can appear as several quote rows,
one per competing insurer or per sub-line. Every "how many deals" figure on
the dashboard counts dedup keys, never rows.
"""

import logging
from typing import List, Optional

import pandas as pd

from .branch_classifier import classify_branch, get_branch_group
from .constants import CLOSED_STATUSES, UNINFORMED_LABEL

logger = logging.getLogger(__name__)


def build_dedup_key(tax_id: Optional[str], branch_group: str) -> str:
    tax = "" if tax_id is None or pd.isna(tax_id) else str(tax_id).strip()
    return f"{tax}_{branch_group}"


def dedup_key(tax_id: Optional[str], branch_label: Optional[str]) -> str:
    """Canonical deal identity: tax id + branch group."""
    return build_dedup_key(tax_id, get_branch_group(branch_label))


def _keys(df: pd.DataFrame) -> pd.Series:
    if 'dedup_key' in df.columns:
        return df['dedup_key']
    return pd.Series(
        [dedup_key(t, b) for t, b in zip(df['tax_id'], df['branch_label'])],
        index=df.index,
        dtype=object,
    )


def count_distinct(df: pd.DataFrame) -> int:
    """Number of distinct deals in a frame of quote rows."""
    if df is None or df.empty:
        return 0
    return int(_keys(df).nunique())


def count_distinct_by_status(df: pd.DataFrame, statuses: List[str]) -> int:
    """Filter rows to one status category first, then count distinct keys."""
    if df is None or df.empty:
        return 0
    return count_distinct(df[df['status'].isin(statuses)])


def group_deals(df: pd.DataFrame) -> pd.DataFrame:
    """
    Collapse quote rows into one row per distinct deal.

    Per dedup key:
    - insurers: distinct insurer names in row order
    - deal_ids: every underlying row id
    - final_status: a closed row wins over any other status; otherwise the
      first row's status
    - closing_date / days_to_close: taken from the first closed row when one
      exists, otherwise from the first row
    - quote_month: YYYY-MM of the first row's quote date
    """
    columns = [
        'dedup_key', 'tax_id', 'insured_name', 'branch_label', 'branch_group',
        'recurrence_class', 'producer_id', 'producer_name', 'insurers', 'deal_ids',
        'quote_month', 'final_status', 'quote_date', 'closing_date', 'days_to_close',
    ]
    if df is None or df.empty:
        return pd.DataFrame(columns=columns)

    work = df.copy()
    work['dedup_key'] = _keys(work)

    grouped = []
    for key, rows in work.groupby('dedup_key', sort=False):
        first = rows.iloc[0]
        closed = rows[rows['status'].isin(CLOSED_STATUSES)]
        decisive = closed.iloc[0] if not closed.empty else first

        insurers = []
        for name in rows['insurer_name']:
            if isinstance(name, str) and name and name not in insurers:
                insurers.append(name)

        days_to_close = None
        if pd.notna(decisive['closing_date']) and pd.notna(decisive['quote_date']):
            delta = pd.Timestamp(decisive['closing_date']) - pd.Timestamp(decisive['quote_date'])
            days_to_close = int(round(delta.total_seconds() / 86400))

        quote_month = None
        if pd.notna(first['quote_date']):
            quote_month = pd.Timestamp(first['quote_date']).strftime('%Y-%m')

        branch_label = first['branch_label'] if isinstance(first['branch_label'], str) else UNINFORMED_LABEL

        grouped.append({
            'dedup_key': key,
            'tax_id': first['tax_id'],
            'insured_name': first['insured_name'],
            'branch_label': branch_label,
            'branch_group': classify_branch(first['branch_label']).branch_group,
            'recurrence_class': classify_branch(first['branch_label']).recurrence_class.value,
            'producer_id': first['producer_id'],
            'producer_name': first['producer_name'] if isinstance(first['producer_name'], str) else UNINFORMED_LABEL,
            'insurers': insurers,
            'deal_ids': [d for d in rows['deal_id'] if d is not None and not pd.isna(d)],
            'quote_month': quote_month,
            'final_status': decisive['status'],
            'quote_date': decisive['quote_date'],
            'closing_date': decisive['closing_date'],
            'days_to_close': days_to_close,
        })

    return pd.DataFrame(grouped, columns=columns)
