"""Forecasting engine - monthly cash-flow and per-category spending projections"""

import logging
from collections import defaultdict
from datetime import date
from typing import Dict, List, Tuple

from ledger_insights.domain.exceptions import InvalidForecastRequestError
from ledger_insights.domain.models import (
    EXPENSE,
    INCOME,
    Category,
    CategoryForecast,
    MonthlyForecast,
    MonthlyTotals,
    RecurringPattern,
    Transaction,
)
from ledger_insights.domain.patterns import MONTHLY, WEEKLY, YEARLY
from ledger_insights.domain.statistics import (
    FLAT_TREND,
    LinearTrend,
    linear_trend,
    mean,
    r_squared,
    squared_coefficient_of_variation,
)
from ledger_insights.utils.date_utils import add_days, add_months, month_bounds, month_key, months_between

logger = logging.getLogger(__name__)

INCREASING = "increasing"
DECREASING = "decreasing"
STABLE = "stable"

# Monthly forecast confidence weights
HISTORY_WEIGHT = 0.3
CONSISTENCY_WEIGHT = 0.2
RECURRING_WEIGHT = 0.3
DISTANCE_WEIGHT = 0.2
FULL_HISTORY_MONTHS = 12
DISTANCE_PENALTY_PER_MONTH = 0.1
MONTHLY_CONFIDENCE_FLOOR = 0.3
MONTHLY_CONFIDENCE_CEILING = 0.95

# Patterns below this confidence do not contribute to forecasts
RECURRING_CONTRIBUTION_MIN_CONFIDENCE = 0.7

# Category forecasts
MIN_CATEGORY_TRANSACTIONS = 3
MIN_CATEGORY_MONTHS = 2
TREND_SLOPE_RATIO = 0.05
FIT_WEIGHT = 0.8
CATEGORY_HISTORY_WEIGHT = 0.2
CATEGORY_CONFIDENCE_CEILING = 0.95


def calculate_historical_monthly_totals(transactions: List[Transaction]) -> List[MonthlyTotals]:
    """Income and expense totals per month, ordered chronologically. Transfers are ignored."""
    monthly: Dict[str, MonthlyTotals] = {}
    for txn in transactions:
        key = month_key(txn.date)
        totals = monthly.setdefault(key, MonthlyTotals(month=key))
        if txn.type == INCOME:
            totals.income += txn.amount
        elif txn.type == EXPENSE:
            totals.expenses += txn.amount
    return [monthly[key] for key in sorted(monthly)]


def calculate_trend(history: List[MonthlyTotals]) -> Tuple[LinearTrend, LinearTrend]:
    """Independent OLS trends for income and expenses; flat zero with under 2 months"""
    if len(history) < 2:
        return FLAT_TREND, FLAT_TREND
    income_trend = linear_trend([m.income for m in history])
    expense_trend = linear_trend([m.expenses for m in history])
    return income_trend, expense_trend


def _pattern_type(pattern: RecurringPattern) -> str | None:
    return pattern.transactions[0].type if pattern.transactions else None


def predict_recurring_for_month(
    patterns: List[RecurringPattern],
    target_month: date,
    transaction_type: str,
) -> float:
    """
    Sum of recurring-pattern amounts expected to land in the month containing target_month.

    Patterns of the other transaction type, below 0.7 confidence, or without a predicted
    next date are skipped.
    """
    first_day, last_day = month_bounds(target_month)
    total = 0.0

    for pattern in patterns:
        if _pattern_type(pattern) != transaction_type:
            continue
        if pattern.confidence_score < RECURRING_CONTRIBUTION_MIN_CONFIDENCE:
            continue
        next_date = pattern.next_predicted_date
        if next_date is None:
            continue

        months_diff = months_between(pattern.last_transaction_date, target_month)

        if pattern.frequency == MONTHLY:
            if first_day <= next_date <= last_day or months_diff > 0:
                total += pattern.average_amount
        elif pattern.frequency == WEEKLY:
            occurrences = 0
            check_date = next_date
            while check_date <= last_day:
                if check_date >= first_day:
                    occurrences += 1
                check_date = add_days(check_date, 7)
            total += pattern.average_amount * occurrences
        elif pattern.frequency == YEARLY:
            if months_diff % 12 == 0:
                total += pattern.average_amount

    return total


def calculate_confidence_score(
    history: List[MonthlyTotals],
    forecast_distance: int,
    patterns: List[RecurringPattern],
) -> float:
    """
    Heuristic confidence for a monthly forecast, bounded to [0.3, 0.95].

    Weighted combination of:
    - 30%: months of history, saturating at one year
    - 20%: consistency (1 - mean squared coefficient of variation of income and expenses)
    - 30%: mean confidence of the recurring patterns
    - 20%: distance penalty, 10% per month ahead
    """
    history_score = min(1.0, len(history) / FULL_HISTORY_MONTHS)

    income_variation = squared_coefficient_of_variation([m.income for m in history])
    expense_variation = squared_coefficient_of_variation([m.expenses for m in history])
    consistency_score = max(0.0, 1 - (income_variation + expense_variation) / 2)

    recurring_score = mean([p.confidence_score for p in patterns])

    distance_score = max(0.0, 1 - forecast_distance * DISTANCE_PENALTY_PER_MONTH)

    score = (
        history_score * HISTORY_WEIGHT
        + consistency_score * CONSISTENCY_WEIGHT
        + recurring_score * RECURRING_WEIGHT
        + distance_score * DISTANCE_WEIGHT
    )
    return min(MONTHLY_CONFIDENCE_CEILING, max(MONTHLY_CONFIDENCE_FLOOR, score))


def generate_monthly_forecast(
    transactions: List[Transaction],
    patterns: List[RecurringPattern],
    months_to_forecast: int = 3,
    as_of: date | None = None,
) -> List[MonthlyForecast]:
    """
    Project income, expenses and savings for the months following as_of.

    Requirements:
    - Linear trend over historical monthly totals, evaluated at (history length + i)
    - Recurring pattern amounts added for the calendar month they fall in
    - Income and expenses clamped at zero; savings may be negative
    """
    if months_to_forecast < 0:
        raise InvalidForecastRequestError("months_to_forecast must not be negative")
    if not transactions:
        return []
    if as_of is None:
        as_of = date.today()

    history = calculate_historical_monthly_totals(transactions)
    income_trend, expense_trend = calculate_trend(history)
    anchor = as_of.replace(day=1)

    forecasts: List[MonthlyForecast] = []
    for i in range(1, months_to_forecast + 1):
        target_month = add_months(anchor, i)
        x = len(history) + i

        predicted_income = income_trend.predict(x) + predict_recurring_for_month(
            patterns, target_month, INCOME
        )
        predicted_expenses = expense_trend.predict(x) + predict_recurring_for_month(
            patterns, target_month, EXPENSE
        )

        predicted_income = max(0.0, predicted_income)
        predicted_expenses = max(0.0, predicted_expenses)

        forecasts.append(
            MonthlyForecast(
                month=month_key(target_month),
                predicted_income=predicted_income,
                predicted_expenses=predicted_expenses,
                predicted_savings=predicted_income - predicted_expenses,
                confidence_score=calculate_confidence_score(history, i, patterns),
            )
        )

    logger.debug("Generated %d monthly forecasts from %d months of history", len(forecasts), len(history))
    return forecasts


def _classify_trend(slope: float, monthly_mean: float) -> str:
    if slope > TREND_SLOPE_RATIO * monthly_mean:
        return INCREASING
    if slope < -TREND_SLOPE_RATIO * monthly_mean:
        return DECREASING
    return STABLE


def generate_category_forecasts(
    transactions: List[Transaction],
    categories: List[Category],
) -> List[CategoryForecast]:
    """
    Per-category expense projections for the current and next month.

    Categories need at least 3 expense transactions spread over at least 2 months.
    Confidence = R² * 0.8 + min(1, months / 12) * 0.2, capped to [0, 0.95].
    """
    expenses_by_category: Dict[str, List[Transaction]] = defaultdict(list)
    for txn in transactions:
        if txn.type == EXPENSE and txn.category_id is not None:
            expenses_by_category[txn.category_id].append(txn)

    forecasts: List[CategoryForecast] = []
    for category in categories:
        category_txns = expenses_by_category.get(category.category_id, [])
        if len(category_txns) < MIN_CATEGORY_TRANSACTIONS:
            continue

        monthly_totals: Dict[str, float] = defaultdict(float)
        for txn in category_txns:
            monthly_totals[month_key(txn.date)] += txn.amount

        if len(monthly_totals) < MIN_CATEGORY_MONTHS:
            continue

        totals = [monthly_totals[key] for key in sorted(monthly_totals)]
        trend = linear_trend(totals)
        month_count = len(totals)

        confidence = (
            r_squared(totals, trend) * FIT_WEIGHT
            + min(1.0, month_count / FULL_HISTORY_MONTHS) * CATEGORY_HISTORY_WEIGHT
        )

        forecasts.append(
            CategoryForecast(
                category_id=category.category_id,
                category_name=category.name,
                current_month_prediction=max(0.0, trend.predict(month_count)),
                next_month_prediction=max(0.0, trend.predict(month_count + 1)),
                trend=_classify_trend(trend.slope, mean(totals)),
                confidence_score=max(0.0, min(CATEGORY_CONFIDENCE_CEILING, confidence)),
            )
        )

    return forecasts
