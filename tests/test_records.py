from datetime import date

import pandas as pd
import pytest

from quote_dashboard.premium_recognition.records import (
    DEAL_COLUMNS,
    DERIVED_COLUMNS,
    Deal,
    MonthlyGoal,
    normalize_deals,
    normalize_goals,
    to_amount,
    to_date,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2025-03-05", date(2025, 3, 5)),
        ("2025-03-05T13:45:00+00:00", date(2025, 3, 5)),
        (pd.Timestamp("2025-01-02 10:00"), date(2025, 1, 2)),
        (date(2024, 2, 29), date(2024, 2, 29)),
        (None, None),
        ("", None),
        ("31/31/2025", None),
        (pd.NaT, None),
    ],
)
def test_to_date(value, expected):
    assert to_date(value) == expected


@pytest.mark.parametrize("value, expected", [(100, 100.0), ("2500.5", 2500.5), (-3, 0.0), (None, 0.0), ("x", 0.0)])
def test_to_amount(value, expected):
    assert to_amount(value) == expected


def test_deal_from_provider_record(raw_quotes):
    deal = Deal.from_record(raw_quotes[0])
    assert deal.deal_id == "1"
    assert deal.tax_id == "11.111.111/0001-11"
    assert deal.branch_label == "RCTR-C"
    assert deal.producer_name == "Ana"
    assert deal.insurer_name == "Tokio Marine"
    assert deal.closing_date == date(2025, 3, 5)
    assert deal.effective_date == date(2025, 4, 11)
    assert deal.is_closed


def test_status_matching_is_case_insensitive():
    deal = Deal.from_record({"cpf_cnpj": "1", "status": "negócio FECHADO"})
    assert deal.status == "Negócio fechado"
    assert deal.is_closed


def test_normalize_deals_adds_derived_columns(deals_df):
    assert list(deals_df.columns) == DEAL_COLUMNS + DERIVED_COLUMNS
    assert pd.api.types.is_datetime64_any_dtype(deals_df['quote_date'])
    assert deals_df.loc[1, 'branch_group'] == "RCTR-C + RC-DC"
    assert deals_df.loc[2, 'segment'] == "Transportes"
    assert deals_df.loc[2, 'recurrence_class'] == "Total"
    assert pd.isna(deals_df.loc[1, 'closing_date'])


def test_normalize_deals_accepts_dataframe_and_deals(raw_quotes):
    from_frame = normalize_deals(pd.DataFrame(raw_quotes))
    from_deals = normalize_deals([Deal.from_record(r) for r in raw_quotes])
    assert from_frame['dedup_key'].tolist() == from_deals['dedup_key'].tolist()


def test_normalize_deals_empty():
    df = normalize_deals(None)
    assert df.empty
    assert 'dedup_key' in df.columns


def test_monthly_goal_from_metas_row(raw_goals):
    goal = MonthlyGoal.from_record(raw_goals[0])
    assert goal.producer_id == "p1"
    assert goal.year == 2025
    assert goal.monthly == (10000.0,) * 12
    assert goal.producer_name == "Ana"


def test_monthly_goal_requires_twelve_months():
    with pytest.raises(ValueError):
        MonthlyGoal(producer_id="p1", year=2025, monthly=(1.0,) * 11)

    with pytest.raises(ValueError):
        MonthlyGoal.from_record({"produtor_id": "p1", "ano": 2025, "meta_jan": 10})


def test_normalize_goals_accepts_engine_shape():
    goals = normalize_goals([{"producer_id": "p9", "year": 2026, "monthly": [1] * 12}])
    assert goals[0].monthly == (1.0,) * 12
