"""Domain models - pure Python dataclasses for the analytics engine inputs and outputs"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional

from ledger_insights.domain.exceptions import InvalidTransactionDataError

INCOME = "INCOME"
EXPENSE = "EXPENSE"
TRANSFER = "TRANSFER"
TRANSACTION_TYPES = (INCOME, EXPENSE, TRANSFER)

UNCATEGORIZED = "uncategorized"


@dataclass(frozen=True)
class Transaction:
    """Ledger transaction; amount is a magnitude, direction is carried by type"""

    transaction_id: str
    date: date
    amount: float
    type: str  # INCOME | EXPENSE | TRANSFER
    description: str
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    payee: Optional[str] = None

    def __post_init__(self) -> None:
        if self.type not in TRANSACTION_TYPES:
            raise InvalidTransactionDataError(
                f"Unknown transaction type {self.type!r} for {self.transaction_id}"
            )
        if not isinstance(self.date, date):
            raise InvalidTransactionDataError(
                f"Transaction {self.transaction_id} has no calendar date"
            )
        # Day granularity only
        if isinstance(self.date, datetime):
            object.__setattr__(self, "date", self.date.date())

    @property
    def merchant_key(self) -> str:
        """Identity used for recurrence grouping (payee, falling back to description)"""
        return self.payee or self.description


@dataclass(frozen=True)
class Category:
    """User-defined spending category"""

    category_id: str
    name: str


@dataclass
class RecurringPattern:
    """Group of transactions repeating with a near-constant period"""

    payee: str
    category_id: str
    average_amount: float
    frequency: str  # monthly | weekly | yearly | irregular
    confidence_score: float
    last_transaction_date: date
    next_predicted_date: Optional[date]
    transactions: List[Transaction] = field(default_factory=list)


@dataclass
class AnomalyDetection:
    """Transaction flagged as unusual in amount or timing"""

    transaction: Transaction
    reason: str
    severity: str  # low | medium | high
    amount_deviation: Optional[float] = None
    time_deviation: Optional[float] = None


@dataclass
class MonthlyForecast:
    """Projected totals for a single future month"""

    month: str  # YYYY-MM
    predicted_income: float
    predicted_expenses: float
    predicted_savings: float
    confidence_score: float


@dataclass
class CategoryForecast:
    """Projected spend and trend direction for one category"""

    category_id: str
    category_name: str
    current_month_prediction: float
    next_month_prediction: float
    trend: str  # increasing | decreasing | stable
    confidence_score: float


@dataclass
class MonthlyTotals:
    """Historical income and expense totals for one month"""

    month: str
    income: float = 0.0
    expenses: float = 0.0


@dataclass
class IncomeExpenseSummary:
    """Per-month income and expense totals"""

    income: Dict[str, float] = field(default_factory=dict)
    expense: Dict[str, float] = field(default_factory=dict)
