# quote_dashboard/premium_recognition/records.py
"""
Record boundary for the engine.

Raw rows arrive from the data provider with loosely-typed, partly nested
shapes (Supabase joins). They are validated and normalized ONCE here into:
- Deal: one quote row
- MonthlyGoal: 12 monthly premium targets for a producer/year
- a normalized deals DataFrame carrying the derived classification columns

Nothing downstream touches raw records.
"""

import logging
from dataclasses import dataclass, field, asdict
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from .branch_classifier import classify_branch
from .constants import (
    CLOSED_STATUSES,
    GOAL_MONTH_COLUMNS,
    MONTHS_IN_YEAR,
    DealStatus,
)
from .dedup import build_dedup_key

logger = logging.getLogger(__name__)


# Column order of the normalized deals frame
DEAL_COLUMNS = [
    'deal_id', 'tax_id', 'insured_name', 'status', 'branch_label',
    'premium_amount', 'quote_date', 'closing_date', 'effective_date',
    'producer_id', 'producer_name', 'insurer_id', 'insurer_name',
]

DERIVED_COLUMNS = ['segment', 'recurrence_class', 'branch_group', 'dedup_key']

DATE_COLUMNS = ['quote_date', 'closing_date', 'effective_date']

# Engine field -> accepted source keys, first match wins
_FIELD_ALIASES = {
    'deal_id': ('deal_id', 'id'),
    'tax_id': ('tax_id', 'cpf_cnpj', 'cnpj'),
    'insured_name': ('insured_name', 'segurado'),
    'status': ('status',),
    'branch_label': ('branch_label', 'ramo_descricao'),
    'premium_amount': ('premium_amount', 'valor_premio'),
    'quote_date': ('quote_date', 'data_cotacao'),
    'closing_date': ('closing_date', 'data_fechamento'),
    'effective_date': ('effective_date', 'inicio_vigencia'),
    'producer_id': ('producer_id', 'produtor_cotador_id'),
    'producer_name': ('producer_name', 'produtor_cotador_nome'),
    'insurer_id': ('insurer_id', 'seguradora_id'),
    'insurer_name': ('insurer_name', 'seguradora_nome'),
}

# Engine field -> (nested relation key, attribute) for joined display fields
_NESTED_FIELDS = {
    'branch_label': ('ramo', 'descricao'),
    'producer_name': ('produtor_cotador', 'nome'),
    'insurer_name': ('seguradora', 'nome'),
}


# =====================================================================
# SCALAR COERCION
# =====================================================================

def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (list, tuple, dict, set)):
        return False
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def to_date(value: Any) -> Optional[date]:
    """
    Coerce a date-like value to a date.

    Accepts date, datetime, pd.Timestamp, numpy datetime64 and ISO strings.
    Anything missing or unparseable returns None.
    """
    if _is_missing(value):
        return None
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, np.datetime64):
        return pd.Timestamp(value).date()
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return pd.Timestamp(text).date()
        except (ValueError, TypeError, OverflowError):
            logger.debug(f"Unparseable date value: {value!r}")
            return None
    return None


def to_amount(value: Any) -> float:
    """Coerce a premium/goal amount; missing, invalid or negative -> 0.0."""
    if _is_missing(value):
        return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    if np.isnan(amount) or np.isinf(amount) or amount < 0:
        return 0.0
    return amount


def _to_text(value: Any) -> Optional[str]:
    if _is_missing(value):
        return None
    text = str(value).strip()
    return text or None


def _normalize_status(value: Any) -> str:
    text = _to_text(value) or ""
    for status in DealStatus:
        if text.lower() == status.value.lower():
            return status.value
    return text


def _pick(record: Dict[str, Any], field_name: str) -> Any:
    for key in _FIELD_ALIASES[field_name]:
        if key in record and not _is_missing(record[key]):
            return record[key]

    nested = _NESTED_FIELDS.get(field_name)
    if nested:
        relation = record.get(nested[0])
        if isinstance(relation, dict):
            return relation.get(nested[1])
    return None


# =====================================================================
# DEAL
# =====================================================================

@dataclass(frozen=True)
class Deal:
    """
    One quote row (cotação).

    closing_date is only meaningful for closed statuses; effective_date
    (início de vigência) is independent of it.
    """
    tax_id: str
    status: str
    branch_label: Optional[str] = None
    premium_amount: float = 0.0
    quote_date: Optional[date] = None
    closing_date: Optional[date] = None
    effective_date: Optional[date] = None
    producer_id: Optional[str] = None
    insurer_id: Optional[str] = None
    insured_name: Optional[str] = None
    producer_name: Optional[str] = None
    insurer_name: Optional[str] = None
    deal_id: Optional[str] = None

    @property
    def is_closed(self) -> bool:
        return self.status in CLOSED_STATUSES

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Deal":
        """Build a Deal from a raw provider row (engine or source field names)."""
        return cls(
            deal_id=_to_text(_pick(record, 'deal_id')),
            tax_id=_to_text(_pick(record, 'tax_id')) or "",
            insured_name=_to_text(_pick(record, 'insured_name')),
            status=_normalize_status(_pick(record, 'status')),
            branch_label=_to_text(_pick(record, 'branch_label')),
            premium_amount=to_amount(_pick(record, 'premium_amount')),
            quote_date=to_date(_pick(record, 'quote_date')),
            closing_date=to_date(_pick(record, 'closing_date')),
            effective_date=to_date(_pick(record, 'effective_date')),
            producer_id=_to_text(_pick(record, 'producer_id')),
            producer_name=_to_text(_pick(record, 'producer_name')),
            insurer_id=_to_text(_pick(record, 'insurer_id')),
            insurer_name=_to_text(_pick(record, 'insurer_name')),
        )

    def to_record(self) -> Dict[str, Any]:
        return asdict(self)


# =====================================================================
# MONTHLY GOAL
# =====================================================================

@dataclass(frozen=True)
class MonthlyGoal:
    """Premium targets of one producer for one year, January first."""
    producer_id: str
    year: int
    monthly: Tuple[float, ...] = field(default_factory=lambda: (0.0,) * MONTHS_IN_YEAR)
    producer_name: Optional[str] = None

    def __post_init__(self):
        if len(self.monthly) != MONTHS_IN_YEAR:
            raise ValueError(
                f"MonthlyGoal for producer {self.producer_id}/{self.year} "
                f"needs {MONTHS_IN_YEAR} monthly values, got {len(self.monthly)}"
            )

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "MonthlyGoal":
        """
        Build from a metas_premio row (produtor_id, ano, meta_jan..meta_dez)
        or an engine-shaped dict (producer_id, year, monthly).
        """
        producer_id = _to_text(record.get('producer_id', record.get('produtor_id')))
        year = record.get('year', record.get('ano'))
        if producer_id is None or _is_missing(year):
            raise ValueError(f"Goal record missing producer/year: {record!r}")

        if 'monthly' in record and record['monthly'] is not None:
            monthly = tuple(to_amount(v) for v in record['monthly'])
        else:
            missing = [c for c in GOAL_MONTH_COLUMNS if c not in record]
            if missing:
                raise ValueError(f"Goal record missing month columns: {missing}")
            monthly = tuple(to_amount(record[c]) for c in GOAL_MONTH_COLUMNS)

        producer_name = _to_text(record.get('producer_name'))
        if producer_name is None and isinstance(record.get('produtor'), dict):
            producer_name = _to_text(record['produtor'].get('nome'))

        return cls(
            producer_id=producer_id,
            year=int(year),
            monthly=monthly,
            producer_name=producer_name,
        )


# =====================================================================
# NORMALIZATION
# =====================================================================

RecordsInput = Union[pd.DataFrame, Iterable[Union[Dict[str, Any], Deal]], None]


def _iter_records(records: RecordsInput) -> List[Any]:
    if records is None:
        return []
    if isinstance(records, pd.DataFrame):
        return records.to_dict('records')
    return list(records)


def empty_deals_frame() -> pd.DataFrame:
    df = pd.DataFrame(columns=DEAL_COLUMNS + DERIVED_COLUMNS)
    for col in DATE_COLUMNS:
        df[col] = pd.to_datetime(df[col])
    df['premium_amount'] = df['premium_amount'].astype(float)
    return df


def normalize_deals(records: RecordsInput) -> pd.DataFrame:
    """
    Validate and normalize raw quote rows into the engine's deals frame.

    Output columns: DEAL_COLUMNS + segment, recurrence_class, branch_group,
    dedup_key. Date columns are datetime64 (NaT when missing), premium is a
    non-negative float.
    """
    rows = _iter_records(records)
    if not rows:
        return empty_deals_frame()

    deals = [row if isinstance(row, Deal) else Deal.from_record(row) for row in rows]
    df = pd.DataFrame([d.to_record() for d in deals], columns=DEAL_COLUMNS)

    for col in DATE_COLUMNS:
        df[col] = pd.to_datetime(df[col], errors='coerce')
    df['premium_amount'] = df['premium_amount'].astype(float)

    classes = [classify_branch(label) for label in df['branch_label']]
    df['segment'] = [c.segment for c in classes]
    df['recurrence_class'] = [c.recurrence_class.value for c in classes]
    df['branch_group'] = [c.branch_group for c in classes]
    df['dedup_key'] = [
        build_dedup_key(tax_id, c.branch_group)
        for tax_id, c in zip(df['tax_id'], classes)
    ]

    missing_quote = int(df['quote_date'].isna().sum())
    closed_mask = df['status'].isin(CLOSED_STATUSES)
    missing_closing = int((closed_mask & df['closing_date'].isna()).sum())
    if missing_quote or missing_closing:
        logger.debug(
            f"Normalized deals with missing dates: quote_date={missing_quote}, "
            f"closing_date(closed)={missing_closing}"
        )

    logger.info(f"Normalized {len(df):,} quote rows ({df['dedup_key'].nunique():,} distinct deals)")
    return df


def normalize_goals(records: Union[pd.DataFrame, Sequence[Any], None]) -> List[MonthlyGoal]:
    """Normalize goal rows into MonthlyGoal objects."""
    rows = _iter_records(records)
    return [row if isinstance(row, MonthlyGoal) else MonthlyGoal.from_record(row) for row in rows]
