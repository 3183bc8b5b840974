"""Human-readable insight sentences built from the analytics output"""

from typing import List

from ledger_insights.domain.forecasting import INCREASING
from ledger_insights.domain.models import (
    AnomalyDetection,
    CategoryForecast,
    MonthlyForecast,
    RecurringPattern,
    Transaction,
)
from ledger_insights.domain.patterns import HIGH, MONTHLY
from ledger_insights.domain.spending import categorized_spending

TOP_CATEGORY_COUNT = 3


def format_currency(amount: float, symbol: str = "$") -> str:
    """Render an amount with thousands separators and two decimals, e.g. -$1,234.50"""
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.2f}"


def generate_insights(
    transactions: List[Transaction],
    patterns: List[RecurringPattern],
    anomalies: List[AnomalyDetection],
    monthly_forecasts: List[MonthlyForecast],
    category_forecasts: List[CategoryForecast],
    currency_symbol: str = "$",
) -> List[str]:
    """
    Turn structured analytics into short sentences.

    Order: top categories, monthly subscriptions, high-severity anomalies,
    next month's savings outlook, fastest-growing category.
    """
    insights: List[str] = []

    spending = categorized_spending(transactions)
    top_categories = sorted(spending.items(), key=lambda item: item[1], reverse=True)[:TOP_CATEGORY_COUNT]
    if top_categories:
        listed = ", ".join(
            f"{name} ({format_currency(amount, currency_symbol)})" for name, amount in top_categories
        )
        insights.append(f"Your top spending categories are {listed}.")

    subscriptions = [p for p in patterns if p.frequency == MONTHLY]
    if subscriptions:
        total = sum(p.average_amount for p in subscriptions)
        insights.append(
            f"You have {len(subscriptions)} monthly subscriptions totaling approximately "
            f"{format_currency(total, currency_symbol)} per month."
        )

    high_severity = [a for a in anomalies if a.severity == HIGH]
    if high_severity:
        insights.append(
            f"We detected {len(high_severity)} unusual transactions that may require your attention."
        )

    if monthly_forecasts:
        savings = monthly_forecasts[0].predicted_savings
        if savings > 0:
            insights.append(
                f"Based on your patterns, we predict you'll save approximately "
                f"{format_currency(savings, currency_symbol)} next month."
            )
        else:
            insights.append(
                f"Your spending may exceed your income next month by approximately "
                f"{format_currency(abs(savings), currency_symbol)}."
            )

    increasing = [f for f in category_forecasts if f.trend == INCREASING]
    if increasing:
        top = max(increasing, key=lambda f: f.next_month_prediction)
        insights.append(
            f"Your spending in {top.category_name} is trending upward and could reach "
            f"{format_currency(top.next_month_prediction, currency_symbol)} next month."
        )

    return insights
