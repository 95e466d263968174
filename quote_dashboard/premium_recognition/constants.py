# quote_dashboard/premium_recognition/constants.py
"""
Constants for Premium Recognition & Goal Attainment

Centralized configuration for:
- Quote statuses and status categories
- Branch (ramo) classification table
- Recurrence classes and allocation modes
- Month labels and goal columns
- Attainment tiers and colors
"""

from enum import Enum

# =====================================================================
# STATUS DEFINITIONS
# =====================================================================


class DealStatus(str, Enum):
    """Quote lifecycle status, valued with the labels stored in the database."""
    IN_QUOTE = "Em cotação"
    CLOSED = "Negócio fechado"
    CLOSED_VIA_PEER = "Fechamento congênere"
    DECLINED = "Declinado"


CLOSED_STATUSES = [DealStatus.CLOSED.value, DealStatus.CLOSED_VIA_PEER.value]

# Statuses bucketed by quote date; closed statuses are bucketed by closing date
QUOTE_DATED_STATUSES = [DealStatus.IN_QUOTE.value, DealStatus.DECLINED.value]

# Status categories used by the distinct counters.
# "Fechamento congênere" is always counted together with "Negócio fechado".
STATUS_CATEGORIES = {
    "in_quote": [DealStatus.IN_QUOTE.value],
    "closed": CLOSED_STATUSES,
    "declined": [DealStatus.DECLINED.value],
}

STATUS_CATEGORY_LABELS = {
    "in_quote": DealStatus.IN_QUOTE.value,
    "closed": DealStatus.CLOSED.value,
    "declined": DealStatus.DECLINED.value,
}

# =====================================================================
# RECURRENCE & ALLOCATION
# =====================================================================


class RecurrenceClass(str, Enum):
    RECURRENT = "Recorrente"
    ONE_TIME = "Total"


class AllocationMode(str, Enum):
    """
    FIRST_INVOICE_ONLY: only the prorated first invoice is recognized
        (used for "realized this month").
    FULL_DISTRIBUTION: prorated first invoice plus the full premium in every
        following month through December (used for year-to-date totals).
    """
    FIRST_INVOICE_ONLY = "first_invoice_only"
    FULL_DISTRIBUTION = "full_distribution"


# =====================================================================
# BRANCH CLASSIFICATION
# =====================================================================

SEGMENT_TRANSPORTES = "Transportes"
SEGMENT_AVULSO = "Avulso"
SEGMENT_AMBIENTAL = "Ambiental"
SEGMENT_RC_V = "RC-V"
SEGMENT_OTHER = "Outros"

SEGMENTS = [SEGMENT_TRANSPORTES, SEGMENT_AVULSO, SEGMENT_AMBIENTAL, SEGMENT_RC_V, SEGMENT_OTHER]

# Keys are normalized labels (upper-case, trimmed, accents folded)
BRANCH_RULES = {
    "RCTR-C": (SEGMENT_TRANSPORTES, RecurrenceClass.RECURRENT),
    "RC-DC": (SEGMENT_TRANSPORTES, RecurrenceClass.RECURRENT),
    "RCTR-C + RC-DC": (SEGMENT_TRANSPORTES, RecurrenceClass.RECURRENT),
    "NACIONAL": (SEGMENT_TRANSPORTES, RecurrenceClass.RECURRENT),
    "RC-V": (SEGMENT_RC_V, RecurrenceClass.RECURRENT),
    "IMPORTACAO": (SEGMENT_TRANSPORTES, RecurrenceClass.ONE_TIME),
    "EXPORTACAO": (SEGMENT_TRANSPORTES, RecurrenceClass.ONE_TIME),
    "RCTR-VI": (SEGMENT_TRANSPORTES, RecurrenceClass.ONE_TIME),
    "RCTA-C": (SEGMENT_TRANSPORTES, RecurrenceClass.ONE_TIME),
    "NACIONAL AVULSA": (SEGMENT_AVULSO, RecurrenceClass.ONE_TIME),
    "IMPORTACAO AVULSA": (SEGMENT_AVULSO, RecurrenceClass.ONE_TIME),
    "EXPORTACAO AVULSA": (SEGMENT_AVULSO, RecurrenceClass.ONE_TIME),
    "GARANTIA ADUANEIRA": (SEGMENT_AVULSO, RecurrenceClass.ONE_TIME),
    "AMBIENTAL": (SEGMENT_AMBIENTAL, RecurrenceClass.ONE_TIME),
}

# RCTR-C and RC-DC are sold together and count as one deal
GROUPED_BRANCHES = {"RCTR-C", "RC-DC"}
GROUPED_BRANCH_LABEL = "RCTR-C + RC-DC"

UNINFORMED_BRANCH_GROUP = "NAO INFORMADO"
UNINFORMED_LABEL = "Não informado"

# =====================================================================
# MONTHS & GOALS
# =====================================================================

MONTH_ORDER = [
    "Jan", "Fev", "Mar", "Abr", "Mai", "Jun",
    "Jul", "Ago", "Set", "Out", "Nov", "Dez"
]

# Monthly goal columns in the metas_premio table, January first
GOAL_MONTH_COLUMNS = [
    "meta_jan", "meta_fev", "meta_mar", "meta_abr", "meta_mai", "meta_jun",
    "meta_jul", "meta_ago", "meta_set", "meta_out", "meta_nov", "meta_dez"
]

MONTHS_IN_YEAR = 12

# =====================================================================
# ATTAINMENT
# =====================================================================


class AttainmentTier(str, Enum):
    ON_TRACK = "on_track"
    WARNING = "warning"
    BEHIND = "behind"


COLORS = {
    AttainmentTier.ON_TRACK.value: "#28a745",   # Green (≥100%)
    AttainmentTier.WARNING.value: "#f59e0b",    # Amber (80–99%)
    AttainmentTier.BEHIND.value: "#dc3545",     # Red (<80%)

    DealStatus.IN_QUOTE.value: "#FFA500",       # Orange
    DealStatus.CLOSED.value: "#28a745",         # Green
    DealStatus.DECLINED.value: "#dc3545",       # Red
}

# =====================================================================
# PERIOD PRESETS
# =====================================================================

PERIOD_PRESETS = [
    "hoje", "7dias", "30dias", "90dias",
    "mes_atual", "mes_anterior", "trimestre_atual", "semestre_atual",
    "ano_atual", "personalizado",
]

DEFAULT_PERIOD = "mes_atual"
