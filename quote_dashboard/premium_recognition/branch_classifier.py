# quote_dashboard/premium_recognition/branch_classifier.py
"""
Branch (ramo) classification.

Single source of truth for:
- segment of a line of business
- recurrence class (Recorrente vs Total)
- branch group used to deduplicate deals

Lookups are case-insensitive, trimmed and accent-insensitive.
"""

import logging
import unicodedata
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, List, Optional

import pandas as pd

from .constants import (
    BRANCH_RULES,
    GROUPED_BRANCHES,
    GROUPED_BRANCH_LABEL,
    SEGMENT_OTHER,
    UNINFORMED_BRANCH_GROUP,
    RecurrenceClass,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BranchClassification:
    segment: str
    recurrence_class: RecurrenceClass
    branch_group: str


def normalize_label(label: Optional[str]) -> str:
    """Upper-case, trim, collapse whitespace and fold accents ("Exportação" -> "EXPORTACAO")."""
    if label is None or pd.isna(label):
        return ""
    text = str(label).strip()
    if not text:
        return ""
    text = unicodedata.normalize("NFKD", text)
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    return " ".join(text.upper().split())


@lru_cache(maxsize=512)
def _classify_normalized(normalized: str) -> BranchClassification:
    if not normalized:
        return BranchClassification(SEGMENT_OTHER, RecurrenceClass.ONE_TIME, UNINFORMED_BRANCH_GROUP)

    group = GROUPED_BRANCH_LABEL if normalized in GROUPED_BRANCHES else normalized

    rule = BRANCH_RULES.get(normalized)
    if rule is None:
        logger.debug(f"Unmapped branch label '{normalized}', defaulting to {SEGMENT_OTHER}/Total")
        return BranchClassification(SEGMENT_OTHER, RecurrenceClass.ONE_TIME, group)

    segment, recurrence = rule
    return BranchClassification(segment, recurrence, group)


def classify_branch(label: Optional[str]) -> BranchClassification:
    """
    Classify a branch label.

    Unmapped or empty labels resolve to segment "Outros" and recurrence
    "Total" so recurring revenue is never over-counted.
    """
    return _classify_normalized(normalize_label(label))


def get_recurrence_class(label: Optional[str]) -> RecurrenceClass:
    return classify_branch(label).recurrence_class


def get_branch_group(label: Optional[str]) -> str:
    return classify_branch(label).branch_group


def get_segment(label: Optional[str]) -> str:
    return classify_branch(label).segment


def is_recurrent(label: Optional[str]) -> bool:
    return get_recurrence_class(label) == RecurrenceClass.RECURRENT


def list_branch_groups(labels: Iterable[Optional[str]]) -> List[str]:
    """Sorted unique branch groups for a set of labels (filter options)."""
    return sorted({get_branch_group(label) for label in labels})
