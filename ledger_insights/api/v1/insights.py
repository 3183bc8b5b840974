"""GET /v1/insights and /v1/insights/advanced - spending summaries, patterns and forecasts"""

import time
import logging
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from ledger_insights.api.v1.schemas import (
    AdvancedInsightsResponse,
    AnomalySchema,
    CategoryForecastSchema,
    IncomeVsExpenseSchema,
    InsightsResponse,
    MonthlyForecastSchema,
    RecurringPatternSchema,
    TransactionSchema,
)
from ledger_insights.api.dependencies import get_current_user_id, get_request_id
from ledger_insights.config import settings
from ledger_insights.domain.exceptions import DomainException
from ledger_insights.domain.forecasting import generate_category_forecasts, generate_monthly_forecast
from ledger_insights.domain.models import (
    AnomalyDetection,
    CategoryForecast,
    MonthlyForecast,
    RecurringPattern,
    Transaction,
)
from ledger_insights.domain.narrative import generate_insights
from ledger_insights.domain.patterns import detect_anomalies, detect_recurring_transactions
from ledger_insights.domain.spending import categorized_spending, income_vs_expense, monthly_spending_trend
from ledger_insights.infrastructure.database.session import get_db
from ledger_insights.infrastructure.database.repositories import CategoryRepository, TransactionRepository
from ledger_insights.infrastructure.observability.logging import log_insights_generated
from ledger_insights.infrastructure.observability.metrics import (
    analysis_duration_histogram,
    insights_request_counter,
    record_analysis,
)
from ledger_insights.utils.date_utils import lookback_start

router = APIRouter()


def _transaction_schema(txn: Transaction) -> TransactionSchema:
    return TransactionSchema(
        id=txn.transaction_id,
        date=txn.date,
        amount=txn.amount,
        type=txn.type,
        description=txn.description,
        payee=txn.merchant_key,
        category_id=txn.category_id,
        category_name=txn.category_name,
    )


def _pattern_schema(pattern: RecurringPattern) -> RecurringPatternSchema:
    return RecurringPatternSchema(
        payee=pattern.payee,
        category_id=pattern.category_id,
        average_amount=pattern.average_amount,
        frequency=pattern.frequency,
        confidence_score=pattern.confidence_score,
        last_transaction_date=pattern.last_transaction_date,
        next_predicted_date=pattern.next_predicted_date,
        transactions=[_transaction_schema(t) for t in pattern.transactions],
    )


def _anomaly_schema(anomaly: AnomalyDetection) -> AnomalySchema:
    return AnomalySchema(
        transaction=_transaction_schema(anomaly.transaction),
        reason=anomaly.reason,
        severity=anomaly.severity,
        amount_deviation=anomaly.amount_deviation,
        time_deviation=anomaly.time_deviation,
    )


def _monthly_forecast_schema(forecast: MonthlyForecast) -> MonthlyForecastSchema:
    return MonthlyForecastSchema(
        month=forecast.month,
        predicted_income=forecast.predicted_income,
        predicted_expenses=forecast.predicted_expenses,
        predicted_savings=forecast.predicted_savings,
        confidence_score=forecast.confidence_score,
    )


def _category_forecast_schema(forecast: CategoryForecast) -> CategoryForecastSchema:
    return CategoryForecastSchema(
        category_id=forecast.category_id,
        category_name=forecast.category_name,
        current_month_prediction=forecast.current_month_prediction,
        next_month_prediction=forecast.next_month_prediction,
        trend=forecast.trend,
        confidence_score=forecast.confidence_score,
    )


@router.get("/insights", response_model=InsightsResponse)
def get_insights(
    request: Request,
    months: int = Query(
        settings.basic_lookback_months, ge=1, le=settings.max_lookback_months, description="Lookback window in months"
    ),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Spending overview for the lookback window.

    Returns:
        Expense totals by category and by month, plus income vs expense per month
    """
    request_id = get_request_id(request)

    try:
        transactions = TransactionRepository(db).get_transactions_since(user_id, lookback_start(months))
        summary = income_vs_expense(transactions)

        response = InsightsResponse(
            categorized_spending=categorized_spending(transactions),
            monthly_spending_trend=monthly_spending_trend(transactions),
            income_vs_expense=IncomeVsExpenseSchema(income=summary.income, expense=summary.expense),
        )

    except DomainException as e:
        insights_request_counter.labels(endpoint="basic", outcome="error").inc()
        logging.warning(f"Invalid transaction data: {e}", extra={"request_id": request_id, "user_id": user_id})
        raise HTTPException(status_code=422, detail=str(e))

    except Exception as e:
        insights_request_counter.labels(endpoint="basic", outcome="error").inc()
        logging.error(f"Error generating insights: {e}", extra={"request_id": request_id, "user_id": user_id})
        raise HTTPException(status_code=500, detail="Failed to generate insights")

    insights_request_counter.labels(endpoint="basic", outcome="success").inc()
    return response


@router.get("/insights/advanced", response_model=AdvancedInsightsResponse)
def get_advanced_insights(
    request: Request,
    months: int = Query(
        settings.advanced_lookback_months,
        ge=1,
        le=settings.max_lookback_months,
        description="Lookback window in months",
    ),
    forecast_months: int = Query(
        settings.default_forecast_months,
        alias="forecastMonths",
        ge=1,
        le=settings.max_forecast_months,
        description="Number of future months to forecast",
    ),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Recurring patterns, anomalies and forecasts for the lookback window.

    Flow:
    1. Load transactions in the lookback window and the user's categories
    2. Detect recurring patterns, then anomalies against categories and patterns
    3. Forecast monthly cash flow and per-category spending
    4. Summarize the results as narrative insights
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        transactions = TransactionRepository(db).get_transactions_since(user_id, lookback_start(months))
        categories = CategoryRepository(db).get_categories_by_user(user_id)

        with analysis_duration_histogram.time():
            patterns = detect_recurring_transactions(transactions)
            anomalies = detect_anomalies(transactions, patterns)
            monthly_forecasts = generate_monthly_forecast(transactions, patterns, forecast_months)
            category_forecasts = generate_category_forecasts(transactions, categories)

        insights = generate_insights(
            transactions,
            patterns,
            anomalies,
            monthly_forecasts,
            category_forecasts,
            currency_symbol=settings.currency_symbol,
        )

    except DomainException as e:
        insights_request_counter.labels(endpoint="advanced", outcome="error").inc()
        logging.warning(f"Invalid transaction data: {e}", extra={"request_id": request_id, "user_id": user_id})
        raise HTTPException(status_code=422, detail=str(e))

    except Exception as e:
        insights_request_counter.labels(endpoint="advanced", outcome="error").inc()
        logging.error(f"Error generating advanced insights: {e}", extra={"request_id": request_id, "user_id": user_id})
        raise HTTPException(status_code=500, detail="Failed to generate insights")

    # Record metrics and logs
    duration_ms = (time.time() - start_time) * 1000
    insights_request_counter.labels(endpoint="advanced", outcome="success").inc()
    record_analysis([p.frequency for p in patterns], anomalies)
    log_insights_generated(
        request_id,
        user_id,
        transaction_count=len(transactions),
        pattern_count=len(patterns),
        anomaly_count=len(anomalies),
        forecast_months=forecast_months,
        duration_ms=duration_ms,
    )

    return AdvancedInsightsResponse(
        recurring_patterns=[_pattern_schema(p) for p in patterns],
        anomalies=[_anomaly_schema(a) for a in anomalies],
        monthly_forecasts=[_monthly_forecast_schema(f) for f in monthly_forecasts],
        category_forecasts=[_category_forecast_schema(f) for f in category_forecasts],
        insights=insights,
    )
