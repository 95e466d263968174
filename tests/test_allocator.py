from datetime import date

import numpy as np
import pytest

from quote_dashboard.premium_recognition.allocator import (
    allocate_deal,
    allocate_frame,
    allocate_premium,
    prorated_first_invoice,
)
from quote_dashboard.premium_recognition.constants import AllocationMode, RecurrenceClass
from quote_dashboard.premium_recognition.records import Deal, normalize_deals


def test_recurrent_first_invoice_only():
    # September has 30 days; effective on the 11th leaves 20 days
    monthly = allocate_premium(
        12000, RecurrenceClass.RECURRENT, 2025, AllocationMode.FIRST_INVOICE_ONLY,
        effective_date=date(2025, 9, 11),
    )
    expected = np.zeros(12)
    expected[8] = 8000
    assert monthly == pytest.approx(expected)


def test_recurrent_full_distribution():
    monthly = allocate_premium(
        12000, RecurrenceClass.RECURRENT, 2025, AllocationMode.FULL_DISTRIBUTION,
        effective_date=date(2025, 9, 11),
    )
    assert monthly.tolist() == pytest.approx([0, 0, 0, 0, 0, 0, 0, 0, 8000, 12000, 12000, 12000])


@pytest.mark.parametrize("mode", list(AllocationMode))
def test_one_time_lands_in_closing_month(mode):
    monthly = allocate_premium(5000, RecurrenceClass.ONE_TIME, 2025, mode, closing_date=date(2025, 3, 18))
    assert monthly.tolist() == [0, 0, 5000, 0, 0, 0, 0, 0, 0, 0, 0, 0]


@pytest.mark.parametrize("closing_date", [None, date(2024, 12, 31), "not a date"])
def test_one_time_outside_year_or_missing_date_is_zero(closing_date):
    monthly = allocate_premium(5000, RecurrenceClass.ONE_TIME, 2025, closing_date=closing_date)
    assert monthly.sum() == 0


def test_full_distribution_total_matches_formula():
    premium, start = 3100.0, date(2025, 5, 20)
    first = prorated_first_invoice(premium, start)
    monthly = allocate_premium(premium, RecurrenceClass.RECURRENT, 2025, effective_date=start)
    assert monthly.sum() == pytest.approx(first + premium * (11 - 4))


def test_first_invoice_only_total_is_prorated_invoice():
    start = date(2025, 2, 15)
    monthly = allocate_premium(
        2800, RecurrenceClass.RECURRENT, 2025, AllocationMode.FIRST_INVOICE_ONLY, effective_date=start,
    )
    assert monthly.sum() == pytest.approx(prorated_first_invoice(2800, start))
    assert np.count_nonzero(monthly) == 1


def test_effective_on_first_day_bills_full_month():
    assert prorated_first_invoice(6000, date(2025, 2, 1)) == pytest.approx(6000)


def test_recurrent_without_effective_date_is_zero():
    monthly = allocate_premium(
        12000, RecurrenceClass.RECURRENT, 2025, closing_date=date(2025, 3, 1), effective_date=None,
    )
    assert monthly.sum() == 0


@pytest.mark.parametrize("premium", [0, -100, None, "abc", float("nan")])
def test_non_positive_or_invalid_premium_is_zero(premium):
    monthly = allocate_premium(premium, RecurrenceClass.ONE_TIME, 2025, closing_date=date(2025, 1, 5))
    assert monthly.sum() == 0


def test_unknown_mode_raises():
    with pytest.raises(ValueError):
        allocate_premium(100, RecurrenceClass.ONE_TIME, 2025, mode="monthly")


def test_allocate_deal_uses_branch_classification():
    deal = Deal(
        tax_id="1", status="Negócio fechado", branch_label="RC-V", premium_amount=3000,
        closing_date=date(2025, 6, 1), effective_date=date(2025, 6, 1),
    )
    monthly = allocate_deal(deal, 2025, AllocationMode.FULL_DISTRIBUTION)
    assert monthly[:5].sum() == 0
    assert monthly[5:].tolist() == pytest.approx([3000] * 7)


def test_allocate_frame_sums_deals(deals_df):
    closed = deals_df[deals_df['status'].isin(["Negócio fechado", "Fechamento congênere"])]
    first = allocate_frame(closed, 2025, AllocationMode.FIRST_INVOICE_ONLY)
    full = allocate_frame(closed, 2025, AllocationMode.FULL_DISTRIBUTION)

    assert first.tolist() == pytest.approx([0, 6000, 5000, 8000, 0, 0, 0, 0, 0, 0, 0, 0])
    assert full.tolist() == pytest.approx(
        [0, 6000, 11000, 14000, 18000, 18000, 18000, 18000, 18000, 18000, 18000, 18000]
    )


def test_allocate_frame_empty():
    assert allocate_frame(normalize_deals([]), 2025, AllocationMode.FULL_DISTRIBUTION).tolist() == [0.0] * 12
