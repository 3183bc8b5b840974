"""Unit tests for monthly and per-category forecasting"""

import pytest
from datetime import date
from ledger_insights.domain.exceptions import InvalidForecastRequestError
from ledger_insights.domain.forecasting import (
    DECREASING,
    INCREASING,
    STABLE,
    calculate_historical_monthly_totals,
    generate_category_forecasts,
    generate_monthly_forecast,
    predict_recurring_for_month,
)
from ledger_insights.domain.models import EXPENSE, INCOME, TRANSFER, Category, RecurringPattern
from ledger_insights.domain.patterns import MONTHLY, WEEKLY, YEARLY, detect_recurring_transactions


def _monthly_history(make_transaction, income: list[float], expenses: list[float], year: int = 2024):
    """One salary and one shopping transaction per month starting in January"""
    transactions = []
    for month, amount in enumerate(income, start=1):
        transactions.append(
            make_transaction(date(year, month, 25), amount, description=f"Salary {month}", type=INCOME)
        )
    for month, amount in enumerate(expenses, start=1):
        transactions.append(
            make_transaction(date(year, month, 10 + month), amount, description=f"Shopping {month}")
        )
    return transactions


def _pattern(make_transaction, frequency: str, last: date, next_date: date | None, amount: float = 10.0,
             type: str = EXPENSE, confidence: float = 0.9) -> RecurringPattern:
    return RecurringPattern(
        payee="Service",
        category_id="cat_general",
        average_amount=amount,
        frequency=frequency,
        confidence_score=confidence,
        last_transaction_date=last,
        next_predicted_date=next_date,
        transactions=[make_transaction(last, amount, description="Service", type=type)],
    )


def test_flat_history_projects_flat(make_transaction):
    transactions = _monthly_history(make_transaction, [3000.0] * 8, [2000.0] * 8)

    forecasts = generate_monthly_forecast(transactions, [], 3, as_of=date(2024, 8, 28))

    assert [f.month for f in forecasts] == ["2024-09", "2024-10", "2024-11"]
    for forecast in forecasts:
        assert forecast.predicted_income == pytest.approx(3000.0)
        assert forecast.predicted_expenses == pytest.approx(2000.0)
        assert forecast.predicted_savings == pytest.approx(1000.0)


def test_confidence_combines_history_consistency_and_distance(make_transaction):
    transactions = _monthly_history(make_transaction, [3000.0] * 8, [2000.0] * 8)

    forecasts = generate_monthly_forecast(transactions, [], 3, as_of=date(2024, 8, 28))

    # 8/12 * 0.3 + 1.0 * 0.2 + 0 * 0.3 + (1 - 0.1 i) * 0.2
    assert [f.confidence_score for f in forecasts] == pytest.approx([0.58, 0.56, 0.54])


def test_confidence_stays_within_bounds(make_transaction):
    volatile = _monthly_history(make_transaction, [100.0, 9000.0, 50.0], [5000.0, 10.0, 7000.0])
    steady = _monthly_history(make_transaction, [3000.0] * 12, [2000.0] * 12, year=2023)
    strong_pattern = _pattern(make_transaction, MONTHLY, date(2023, 12, 1), date(2024, 1, 1), confidence=0.95)

    for transactions, patterns, horizon in ((volatile, [], 12), (steady, [strong_pattern], 2)):
        forecasts = generate_monthly_forecast(transactions, patterns, horizon, as_of=date(2024, 1, 5))
        assert len(forecasts) == horizon
        assert all(0.3 <= f.confidence_score <= 0.95 for f in forecasts)

    assert generate_monthly_forecast(volatile, [], 12, as_of=date(2024, 1, 5))[-1].confidence_score == 0.3
    assert generate_monthly_forecast(steady, [strong_pattern], 1, as_of=date(2024, 1, 5))[0].confidence_score == 0.95


def test_declining_trends_clamp_at_zero(make_transaction):
    transactions = _monthly_history(make_transaction, [3000.0, 2000.0, 1000.0], [1500.0, 1500.0, 1500.0])

    forecasts = generate_monthly_forecast(transactions, [], 3, as_of=date(2024, 3, 31))

    for forecast in forecasts:
        assert forecast.predicted_income == 0.0
        assert forecast.predicted_expenses == pytest.approx(1500.0)
        assert forecast.predicted_savings == pytest.approx(-1500.0)


def test_forecasts_never_negative(make_transaction):
    transactions = _monthly_history(make_transaction, [500.0, 100.0], [4000.0, 200.0])

    forecasts = generate_monthly_forecast(transactions, [], 6, as_of=date(2024, 2, 10))

    assert all(f.predicted_income >= 0 and f.predicted_expenses >= 0 for f in forecasts)


def test_single_month_history_uses_flat_zero_trend(make_transaction):
    transactions = _monthly_history(make_transaction, [3000.0], [2000.0])

    forecasts = generate_monthly_forecast(transactions, [], 2, as_of=date(2024, 1, 31))

    assert [(f.predicted_income, f.predicted_expenses) for f in forecasts] == [(0.0, 0.0), (0.0, 0.0)]


def test_recurring_subscription_adds_to_expense_trend(make_transaction):
    transactions = [
        make_transaction(date(2024, month, 1), 15.00, description="Netflix", category_id="cat_fun")
        for month in range(1, 5)
    ]
    patterns = detect_recurring_transactions(transactions)

    forecasts = generate_monthly_forecast(transactions, patterns, 3, as_of=date(2024, 4, 15))

    assert [f.month for f in forecasts] == ["2024-05", "2024-06", "2024-07"]
    for forecast in forecasts:
        assert forecast.predicted_expenses == pytest.approx(30.0)
        assert forecast.predicted_income == 0.0


def test_transfers_are_not_income_or_expense(make_transaction):
    transactions = [
        make_transaction(date(2024, 1, 3), 500.0, description="To savings", type=TRANSFER),
        make_transaction(date(2024, 1, 9), 80.0, description="Dinner"),
    ]

    history = calculate_historical_monthly_totals(transactions)

    assert len(history) == 1
    assert history[0].income == 0.0
    assert history[0].expenses == 80.0


def test_empty_and_zero_horizon(make_transaction):
    assert generate_monthly_forecast([], [], 3) == []
    transactions = _monthly_history(make_transaction, [3000.0], [2000.0])
    assert generate_monthly_forecast(transactions, [], 0) == []


def test_negative_horizon_is_a_contract_violation():
    with pytest.raises(InvalidForecastRequestError):
        generate_monthly_forecast([], [], -1)


def test_monthly_pattern_contribution(make_transaction):
    pattern = _pattern(make_transaction, MONTHLY, date(2024, 4, 1), date(2024, 5, 1))

    assert predict_recurring_for_month([pattern], date(2024, 5, 1), EXPENSE) == 10.0
    assert predict_recurring_for_month([pattern], date(2024, 8, 1), EXPENSE) == 10.0
    assert predict_recurring_for_month([pattern], date(2024, 4, 1), EXPENSE) == 0.0
    assert predict_recurring_for_month([pattern], date(2024, 5, 1), INCOME) == 0.0


def test_weekly_pattern_counts_occurrences(make_transaction):
    pattern = _pattern(make_transaction, WEEKLY, date(2024, 4, 26), date(2024, 5, 3))

    # May 3, 10, 17, 24, 31
    assert predict_recurring_for_month([pattern], date(2024, 5, 1), EXPENSE) == pytest.approx(50.0)
    # June 7, 14, 21, 28
    assert predict_recurring_for_month([pattern], date(2024, 6, 1), EXPENSE) == pytest.approx(40.0)


def test_yearly_pattern_lands_on_anniversary_month(make_transaction):
    pattern = _pattern(make_transaction, YEARLY, date(2023, 6, 10), date(2024, 6, 10), amount=120.0)

    assert predict_recurring_for_month([pattern], date(2024, 6, 1), EXPENSE) == 120.0
    assert predict_recurring_for_month([pattern], date(2024, 7, 1), EXPENSE) == 0.0


def test_low_confidence_and_undated_patterns_do_not_contribute(make_transaction):
    weak = _pattern(make_transaction, MONTHLY, date(2024, 4, 1), date(2024, 5, 1), confidence=0.65)
    undated = _pattern(make_transaction, MONTHLY, date(2024, 4, 1), None)

    assert predict_recurring_for_month([weak, undated], date(2024, 5, 1), EXPENSE) == 0.0


def test_income_pattern_feeds_income_channel(make_transaction):
    salary = _pattern(make_transaction, MONTHLY, date(2024, 4, 25), date(2024, 5, 25), amount=3000.0, type=INCOME)

    assert predict_recurring_for_month([salary], date(2024, 5, 1), INCOME) == 3000.0
    assert predict_recurring_for_month([salary], date(2024, 5, 1), EXPENSE) == 0.0


def _category_spend(make_transaction, category_id: str, totals: list[float], year: int = 2024):
    return [
        make_transaction(date(year, month, 12), amount, description="Store", category_id=category_id)
        for month, amount in enumerate(totals, start=1)
    ]


def test_category_increasing_trend(make_transaction):
    transactions = _category_spend(make_transaction, "cat_food", [100.0, 200.0, 300.0])

    forecasts = generate_category_forecasts(transactions, [Category("cat_food", "Food")])

    assert len(forecasts) == 1
    forecast = forecasts[0]
    assert forecast.category_name == "Food"
    assert forecast.trend == INCREASING
    assert forecast.current_month_prediction == pytest.approx(400.0)
    assert forecast.next_month_prediction == pytest.approx(500.0)
    # R² = 1, 3 months of history
    assert forecast.confidence_score == pytest.approx(0.85)


def test_category_decreasing_trend_clamps_predictions(make_transaction):
    transactions = _category_spend(make_transaction, "cat_fuel", [300.0, 200.0, 100.0])

    forecast = generate_category_forecasts(transactions, [Category("cat_fuel", "Fuel")])[0]

    assert forecast.trend == DECREASING
    assert forecast.current_month_prediction == pytest.approx(0.0)
    assert forecast.next_month_prediction == 0.0


def test_category_stable_trend_and_confidence_cap(make_transaction):
    transactions = _category_spend(make_transaction, "cat_net", [50.0] * 12)

    forecast = generate_category_forecasts(transactions, [Category("cat_net", "Internet")])[0]

    assert forecast.trend == STABLE
    assert forecast.current_month_prediction == pytest.approx(50.0)
    assert forecast.confidence_score == 0.95


def test_category_noisy_history_confidence_bounds(make_transaction):
    transactions = _category_spend(make_transaction, "cat_misc", [10.0, 400.0, 15.0, 380.0, 5.0])

    forecast = generate_category_forecasts(transactions, [Category("cat_misc", "Misc")])[0]

    assert 0.0 <= forecast.confidence_score <= 0.95


def test_category_with_two_transactions_is_skipped(make_transaction):
    transactions = _category_spend(make_transaction, "cat_food", [100.0, 200.0])
    assert generate_category_forecasts(transactions, [Category("cat_food", "Food")]) == []


def test_category_within_one_month_is_skipped(make_transaction):
    transactions = [
        make_transaction(date(2024, 3, day), 20.0, description="Cafe", category_id="cat_cafe")
        for day in (2, 9, 16)
    ]
    assert generate_category_forecasts(transactions, [Category("cat_cafe", "Cafe")]) == []


def test_category_ignores_income_and_unknown_categories(make_transaction):
    income = [
        make_transaction(date(2024, month, 1), 100.0, description="Refund", type=INCOME, category_id="cat_food")
        for month in range(1, 5)
    ]
    spend = _category_spend(make_transaction, "cat_other", [10.0, 20.0, 30.0])

    assert generate_category_forecasts(income + spend, [Category("cat_food", "Food")]) == []


def test_category_forecasts_empty_input():
    assert generate_category_forecasts([], [Category("cat_food", "Food")]) == []
    assert generate_category_forecasts([], []) == []
