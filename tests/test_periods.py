from datetime import date

import pytest

from quote_dashboard.premium_recognition.periods import last_n_months, resolve_period, shift_month


TODAY = date(2025, 3, 20)


def test_current_month():
    period = resolve_period('mes_atual', today=TODAY)
    assert (period.start, period.end) == (date(2025, 3, 1), date(2025, 3, 31))
    assert (period.previous_start, period.previous_end) == (date(2025, 2, 1), date(2025, 2, 28))
    assert (period.target_year, period.target_month, period.target_month_index) == (2025, 3, 2)


def test_today():
    period = resolve_period('hoje', today=TODAY)
    assert period.start == period.end == TODAY
    assert period.previous_start == period.previous_end == date(2025, 3, 19)


def test_rolling_seven_days():
    period = resolve_period('7dias', today=TODAY)
    assert (period.start, period.end) == (date(2025, 3, 14), TODAY)
    assert (period.previous_start, period.previous_end) == (date(2025, 3, 7), date(2025, 3, 13))


@pytest.mark.parametrize("preset, days", [('7dias', 7), ('30dias', 30), ('90dias', 90)])
def test_rolling_windows_have_equal_length(preset, days):
    period = resolve_period(preset, today=TODAY)
    assert (period.end - period.start).days + 1 == days
    assert (period.previous_end - period.previous_start).days + 1 == days
    assert (period.start - period.previous_end).days == 1


def test_previous_month_crosses_year():
    period = resolve_period('mes_anterior', today=date(2025, 1, 15))
    assert (period.start, period.end) == (date(2024, 12, 1), date(2024, 12, 31))
    assert (period.previous_start, period.previous_end) == (date(2024, 11, 1), date(2024, 11, 30))
    assert (period.target_year, period.target_month) == (2024, 12)


def test_quarter_and_previous_quarter():
    period = resolve_period('trimestre_atual', today=date(2025, 2, 10))
    assert (period.start, period.end) == (date(2025, 1, 1), date(2025, 3, 31))
    assert (period.previous_start, period.previous_end) == (date(2024, 10, 1), date(2024, 12, 31))


def test_semester():
    period = resolve_period('semestre_atual', today=date(2025, 8, 1))
    assert (period.start, period.end) == (date(2025, 7, 1), date(2025, 12, 31))
    assert (period.previous_start, period.previous_end) == (date(2025, 1, 1), date(2025, 6, 30))


def test_year():
    period = resolve_period('ano_atual', today=TODAY)
    assert (period.start, period.end) == (date(2025, 1, 1), date(2025, 12, 31))
    assert period.previous_start.year == period.previous_end.year == 2024


def test_custom_range_previous_window_has_same_length():
    period = resolve_period('personalizado', today=TODAY,
                            custom_start=date(2025, 3, 10), custom_end=date(2025, 3, 19))
    assert (period.previous_start, period.previous_end) == (date(2025, 2, 28), date(2025, 3, 9))
    assert (period.end - period.start) == (period.previous_end - period.previous_start)


@pytest.mark.parametrize("preset", ['whatever', 'personalizado'])
def test_unknown_or_incomplete_preset_falls_back_to_current_month(preset):
    period = resolve_period(preset, today=TODAY)
    assert (period.start, period.end) == (date(2025, 3, 1), date(2025, 3, 31))


def test_month_helpers():
    assert shift_month(2025, 1, -1) == (2024, 12)
    assert shift_month(2025, 11, 3) == (2026, 2)
    assert last_n_months(date(2025, 2, 5), 3) == [(2024, 12), (2025, 1), (2025, 2)]
