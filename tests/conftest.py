from datetime import date

import pytest

from quote_dashboard.config import EngineSettings
from quote_dashboard.premium_recognition.constants import GOAL_MONTH_COLUMNS
from quote_dashboard.premium_recognition.pipeline import QuoteMetrics
from quote_dashboard.premium_recognition.records import normalize_deals


def quote_row(
    row_id,
    tax_id,
    branch,
    status,
    premium,
    quote_date,
    closing_date=None,
    effective_date=None,
    producer=("p1", "Ana"),
    insurer=("s1", "Tokio Marine"),
):
    """A cotações row shaped like the data provider returns it (joined names nested)."""
    return {
        "id": row_id,
        "cpf_cnpj": tax_id,
        "segurado": f"Segurado {tax_id}",
        "status": status,
        "ramo": {"descricao": branch},
        "valor_premio": premium,
        "data_cotacao": quote_date,
        "data_fechamento": closing_date,
        "inicio_vigencia": effective_date,
        "produtor_cotador_id": producer[0],
        "produtor_cotador": {"nome": producer[1]},
        "seguradora_id": insurer[0],
        "seguradora": {"nome": insurer[1]},
    }


def goal_row(producer_id, year, monthly_value, name=None):
    row = {"produtor_id": producer_id, "ano": year}
    row.update({col: monthly_value for col in GOAL_MONTH_COLUMNS})
    if name:
        row["produtor"] = {"nome": name}
    return row


ANA = ("p1", "Ana")
BRUNO = ("p2", "Bruno")
TOKIO = ("s1", "Tokio Marine")
ALLIANZ = ("s2", "Allianz")


@pytest.fixture
def settings():
    return EngineSettings()


@pytest.fixture
def raw_quotes():
    return [
        # Same insured, RCTR-C and RC-DC quoted with two insurers: one deal
        quote_row("1", "11.111.111/0001-11", "RCTR-C", "Negócio fechado", 12000,
                  "2025-03-01", "2025-03-05", "2025-04-11", ANA, TOKIO),
        quote_row("2", "11.111.111/0001-11", "RC-DC", "Em cotação", 3000,
                  "2025-03-02", None, None, ANA, ALLIANZ),
        quote_row("3", "22.222.222/0001-22", "Exportação", "Negócio fechado", 5000,
                  "2025-02-20", "2025-03-10", None, BRUNO, TOKIO),
        quote_row("4", "33.333.333/0001-33", "Ambiental", "Declinado", 2000,
                  "2025-03-15", None, None, BRUNO, ALLIANZ),
        quote_row("5", "44.444.444/0001-44", "Nacional", "Fechamento congênere", 6000,
                  "2025-01-10", "2025-02-14", "2025-02-01", ANA, ALLIANZ),
        quote_row("6", "55.555.555/0001-55", "Importação", "Em cotação", 1000,
                  "2025-03-20", None, None, BRUNO, TOKIO),
    ]


@pytest.fixture
def raw_goals():
    return [
        goal_row("p1", 2025, 10000, "Ana"),
        goal_row("p2", 2025, 5000, "Bruno"),
        goal_row("p1", 2024, 99999, "Ana"),
    ]


@pytest.fixture
def deals_df(raw_quotes):
    return normalize_deals(raw_quotes)


@pytest.fixture
def metrics(deals_df, raw_goals, settings):
    return QuoteMetrics(deals_df, raw_goals, settings=settings)


@pytest.fixture
def march_2025():
    return date(2025, 3, 1), date(2025, 3, 31)


@pytest.fixture
def make_quote():
    return quote_row


@pytest.fixture
def make_goal():
    return goal_row
