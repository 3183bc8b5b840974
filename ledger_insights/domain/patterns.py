"""Recurring pattern and anomaly detection over a user's transaction history"""

import logging
from collections import defaultdict
from datetime import date
from typing import Dict, List, Tuple

from ledger_insights.domain.models import (
    UNCATEGORIZED,
    AnomalyDetection,
    RecurringPattern,
    Transaction,
)
from ledger_insights.domain.statistics import is_zero, mean, population_std_dev
from ledger_insights.utils.date_utils import add_days, add_months, days_between

logger = logging.getLogger(__name__)

MONTHLY = "monthly"
WEEKLY = "weekly"
YEARLY = "yearly"
IRREGULAR = "irregular"

LOW = "low"
MEDIUM = "medium"
HIGH = "high"

# Recurrence detection
MIN_PATTERN_TRANSACTIONS = 2
REGULAR_GAP_STD_DEV_DAYS = 3
PATTERN_CONFIDENCE_THRESHOLD = 0.6
BAND_BASE_CONFIDENCE = 0.9
IRREGULAR_BASE_CONFIDENCE = 0.5

# (frequency, min mean gap, max mean gap, std dev divisor)
FREQUENCY_BANDS = (
    (MONTHLY, 25, 35, 30),
    (WEEKLY, 5, 9, 7),
    (YEARLY, 350, 380, 365),
)
IRREGULAR_STD_DEV_DIVISOR = 30

# Category-level outliers, in standard deviations from the category mean
MIN_CATEGORY_TRANSACTIONS = 5
CATEGORY_DEVIATION_THRESHOLDS = (2.0, 3.0, 4.0)

# Pattern-level outliers, as relative deviation from the pattern norm
RECENT_PATTERN_TRANSACTIONS = 3
PATTERN_AMOUNT_THRESHOLDS = (0.2, 0.5, 1.0)
PATTERN_TIMING_THRESHOLDS = (0.2, 0.4, 0.6)
TIMING_CHECK_MIN_CONFIDENCE = 0.8
EXPECTED_INTERVAL_DAYS = {WEEKLY: 7, YEARLY: 365}
DEFAULT_EXPECTED_INTERVAL_DAYS = 30


def classify_severity(score: float, thresholds: Tuple[float, float, float]) -> str | None:
    """
    Map a deviation score to a severity tier.

    thresholds is (flag, medium, high): scores above flag are low, above medium are
    medium, above high are high. Scores at or below flag are not anomalous (None).
    """
    flag_above, medium_above, high_above = thresholds
    if score > high_above:
        return HIGH
    if score > medium_above:
        return MEDIUM
    if score > flag_above:
        return LOW
    return None


def _classify_frequency(mean_gap: float, gap_std_dev: float) -> Tuple[str, float]:
    """Frequency band and confidence for a regular series of gaps"""
    for frequency, low, high, divisor in FREQUENCY_BANDS:
        if low <= mean_gap <= high:
            return frequency, BAND_BASE_CONFIDENCE - gap_std_dev / divisor
    return IRREGULAR, IRREGULAR_BASE_CONFIDENCE - gap_std_dev / IRREGULAR_STD_DEV_DIVISOR


def _predict_next_date(last_date: date, frequency: str, mean_gap: float) -> date:
    if frequency == MONTHLY:
        return add_months(last_date, 1)
    if frequency == WEEKLY:
        return add_days(last_date, 7)
    if frequency == YEARLY:
        return add_months(last_date, 12)
    return add_days(last_date, round(mean_gap))


def group_by_merchant(transactions: List[Transaction]) -> Dict[Tuple[str, str], List[Transaction]]:
    """Group transactions by (payee or description, category id or sentinel)"""
    grouped: Dict[Tuple[str, str], List[Transaction]] = defaultdict(list)
    for txn in transactions:
        grouped[(txn.merchant_key, txn.category_id or UNCATEGORIZED)].append(txn)
    return grouped


def detect_recurring_transactions(transactions: List[Transaction]) -> List[RecurringPattern]:
    """
    Detect recurring series such as subscriptions and bills.

    Requirements:
    - Group by merchant key and category; groups need at least 2 transactions
    - Gaps between consecutive transactions must have a std dev under 3 days
    - Mean gap selects the frequency band, std dev lowers confidence within the band
    - Only patterns with confidence above 0.6 are returned

    Grouping uses exact payee/description text, so merchants whose descriptions vary
    slightly are treated as different series.
    """
    patterns: List[RecurringPattern] = []

    for (payee, category_id), group in group_by_merchant(transactions).items():
        if len(group) < MIN_PATTERN_TRANSACTIONS:
            continue

        # Stable sort keeps original order for same-day transactions
        sorted_txns = sorted(group, key=lambda t: t.date)
        average_amount = mean([t.amount for t in sorted_txns])

        gaps = [
            days_between(previous.date, current.date)
            for previous, current in zip(sorted_txns, sorted_txns[1:])
        ]
        mean_gap = mean(gaps)
        gap_std_dev = population_std_dev(gaps)

        if gap_std_dev >= REGULAR_GAP_STD_DEV_DAYS:
            continue

        frequency, confidence = _classify_frequency(mean_gap, gap_std_dev)
        if confidence <= PATTERN_CONFIDENCE_THRESHOLD:
            continue

        last_date = sorted_txns[-1].date
        patterns.append(
            RecurringPattern(
                payee=payee,
                category_id=category_id,
                average_amount=average_amount,
                frequency=frequency,
                confidence_score=confidence,
                last_transaction_date=last_date,
                next_predicted_date=_predict_next_date(last_date, frequency, mean_gap),
                transactions=sorted_txns,
            )
        )

    logger.debug("Detected %d recurring patterns from %d transactions", len(patterns), len(transactions))
    return patterns


def _category_anomalies(transactions: List[Transaction]) -> List[AnomalyDetection]:
    by_category: Dict[str, List[Transaction]] = defaultdict(list)
    for txn in transactions:
        by_category[txn.category_id or UNCATEGORIZED].append(txn)

    anomalies: List[AnomalyDetection] = []
    for category_txns in by_category.values():
        if len(category_txns) < MIN_CATEGORY_TRANSACTIONS:
            continue

        amounts = [t.amount for t in category_txns]
        category_mean = mean(amounts)
        std_dev = population_std_dev(amounts)

        # A constant series has no outliers
        if is_zero(std_dev):
            continue

        for txn in category_txns:
            score = abs(txn.amount - category_mean) / std_dev
            severity = classify_severity(score, CATEGORY_DEVIATION_THRESHOLDS)
            if severity is None:
                continue
            anomalies.append(
                AnomalyDetection(
                    transaction=txn,
                    reason=f"Unusual amount for {txn.merchant_key} in this category",
                    severity=severity,
                    amount_deviation=score,
                )
            )

    return anomalies


def _pattern_anomalies(pattern: RecurringPattern) -> List[AnomalyDetection]:
    recent = sorted(
        pattern.transactions[-RECENT_PATTERN_TRANSACTIONS:],
        key=lambda t: t.date,
        reverse=True,
    )
    if not recent:
        return []

    anomalies: List[AnomalyDetection] = []
    latest = recent[0]

    # Zero average cannot serve as a relative denominator
    if not is_zero(pattern.average_amount):
        amount_deviation = abs(latest.amount - pattern.average_amount) / abs(pattern.average_amount)
        severity = classify_severity(amount_deviation, PATTERN_AMOUNT_THRESHOLDS)
        if severity is not None:
            anomalies.append(
                AnomalyDetection(
                    transaction=latest,
                    reason=f"Unusual amount for recurring {pattern.payee} payment",
                    severity=severity,
                    amount_deviation=amount_deviation,
                )
            )

    if pattern.confidence_score > TIMING_CHECK_MIN_CONFIDENCE and len(recent) > 1:
        actual_interval = days_between(recent[1].date, latest.date)
        expected_interval = EXPECTED_INTERVAL_DAYS.get(pattern.frequency, DEFAULT_EXPECTED_INTERVAL_DAYS)
        time_deviation = abs(actual_interval - expected_interval) / expected_interval
        severity = classify_severity(time_deviation, PATTERN_TIMING_THRESHOLDS)
        if severity is not None:
            anomalies.append(
                AnomalyDetection(
                    transaction=latest,
                    reason=f"Unusual timing for recurring {pattern.payee} payment",
                    severity=severity,
                    time_deviation=time_deviation,
                )
            )

    return anomalies


def detect_anomalies(
    transactions: List[Transaction],
    patterns: List[RecurringPattern],
) -> List[AnomalyDetection]:
    """
    Flag statistically unusual transactions.

    Two independent sources, concatenated (a transaction may be flagged more than once):
    - Category outliers: more than 2 std devs from the category mean (categories with 5+ transactions)
    - Pattern outliers: latest amount more than 20% off the pattern average, or latest
      interval more than 20% off the expected period for high-confidence patterns
    """
    anomalies = _category_anomalies(transactions)
    for pattern in patterns:
        anomalies.extend(_pattern_anomalies(pattern))

    logger.debug("Detected %d anomalies", len(anomalies))
    return anomalies
