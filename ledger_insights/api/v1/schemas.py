"""Pydantic schemas for API responses (camelCase on the wire)"""

from datetime import date
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema serializing snake_case fields as camelCase"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TransactionSchema(CamelModel):
    """Transaction as referenced from patterns and anomalies"""

    id: str
    date: date
    amount: float
    type: str
    description: str
    payee: str
    category_id: Optional[str] = None
    category_name: Optional[str] = None


class RecurringPatternSchema(CamelModel):
    payee: str
    category_id: str
    average_amount: float
    frequency: str
    confidence_score: float
    last_transaction_date: date
    next_predicted_date: Optional[date] = None
    transactions: List[TransactionSchema]


class AnomalySchema(CamelModel):
    transaction: TransactionSchema
    reason: str
    severity: str
    amount_deviation: Optional[float] = None
    time_deviation: Optional[float] = None


class MonthlyForecastSchema(CamelModel):
    month: str
    predicted_income: float
    predicted_expenses: float
    predicted_savings: float
    confidence_score: float


class CategoryForecastSchema(CamelModel):
    category_id: str
    category_name: str
    current_month_prediction: float
    next_month_prediction: float
    trend: str
    confidence_score: float


class IncomeVsExpenseSchema(CamelModel):
    income: Dict[str, float]
    expense: Dict[str, float]


class InsightsResponse(CamelModel):
    """Response for GET /v1/insights"""

    categorized_spending: Dict[str, float]
    monthly_spending_trend: Dict[str, float]
    income_vs_expense: IncomeVsExpenseSchema


class AdvancedInsightsResponse(CamelModel):
    """Response for GET /v1/insights/advanced"""

    recurring_patterns: List[RecurringPatternSchema]
    anomalies: List[AnomalySchema]
    monthly_forecasts: List[MonthlyForecastSchema]
    category_forecasts: List[CategoryForecastSchema]
    insights: List[str]
