"""Basic spending summaries for the overview insights endpoint"""

from collections import defaultdict
from typing import Dict, List

from ledger_insights.domain.models import EXPENSE, INCOME, IncomeExpenseSummary, Transaction
from ledger_insights.utils.date_utils import month_key

UNCATEGORIZED_NAME = "Uncategorized"


def categorized_spending(transactions: List[Transaction]) -> Dict[str, float]:
    """Total expense amount per category name"""
    totals: Dict[str, float] = defaultdict(float)
    for txn in transactions:
        if txn.type == EXPENSE:
            totals[txn.category_name or UNCATEGORIZED_NAME] += txn.amount
    return dict(totals)


def monthly_spending_trend(transactions: List[Transaction]) -> Dict[str, float]:
    """Total expense amount per YYYY-MM month"""
    totals: Dict[str, float] = defaultdict(float)
    for txn in transactions:
        if txn.type == EXPENSE:
            totals[month_key(txn.date)] += txn.amount
    return dict(sorted(totals.items()))


def income_vs_expense(transactions: List[Transaction]) -> IncomeExpenseSummary:
    """Per-month income and expense totals side by side; transfers are excluded"""
    summary = IncomeExpenseSummary()
    for txn in transactions:
        month = month_key(txn.date)
        if txn.type == INCOME:
            summary.income[month] = summary.income.get(month, 0.0) + txn.amount
        elif txn.type == EXPENSE:
            summary.expense[month] = summary.expense.get(month, 0.0) + txn.amount
    return summary
