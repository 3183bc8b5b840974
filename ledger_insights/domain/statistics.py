"""Shared statistical helpers - population statistics and closed-form OLS"""

import math
from dataclasses import dataclass
from typing import Sequence


@dataclass(frozen=True)
class LinearTrend:
    """Fitted line y = base + slope * x"""

    base: float
    slope: float

    def predict(self, x: float) -> float:
        return self.base + self.slope * x


FLAT_TREND = LinearTrend(base=0.0, slope=0.0)

# Float noise below this is treated as zero when guarding denominators
EPSILON = 1e-9


def is_zero(value: float) -> bool:
    return abs(value) < EPSILON


def mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def population_variance(values: Sequence[float]) -> float:
    """Variance over the whole population (divides by n, not n - 1)"""
    if not values:
        return 0.0
    avg = mean(values)
    return sum((v - avg) ** 2 for v in values) / len(values)


def population_std_dev(values: Sequence[float]) -> float:
    return math.sqrt(population_variance(values))


def squared_coefficient_of_variation(values: Sequence[float]) -> float:
    """
    Variance normalized by the squared mean.

    Returns 0.0 for fewer than two values or a zero mean, where the ratio is undefined.
    """
    if len(values) < 2:
        return 0.0
    avg = mean(values)
    if is_zero(avg):
        return 0.0
    return population_variance(values) / (avg * avg)


def linear_trend(ys: Sequence[float]) -> LinearTrend:
    """
    Ordinary least squares fit of ys against their index (x = 0..n-1).

    Fewer than two points give a flat zero trend.
    """
    n = len(ys)
    if n < 2:
        return FLAT_TREND

    xs = range(n)
    sum_x = sum(xs)
    sum_y = sum(ys)
    sum_xy = sum(x * y for x, y in zip(xs, ys))
    sum_xx = sum(x * x for x in xs)

    denominator = n * sum_xx - sum_x * sum_x
    if denominator == 0:
        return FLAT_TREND

    slope = (n * sum_xy - sum_x * sum_y) / denominator
    base = (sum_y - slope * sum_x) / n
    return LinearTrend(base=base, slope=slope)


def r_squared(ys: Sequence[float], trend: LinearTrend) -> float:
    """Coefficient of determination; a constant series counts as a perfect fit"""
    if not ys:
        return 0.0
    avg = mean(ys)
    total_sum_squares = sum((y - avg) ** 2 for y in ys)
    if is_zero(total_sum_squares):
        return 1.0
    residual_sum_squares = sum((y - trend.predict(x)) ** 2 for x, y in enumerate(ys))
    return 1 - residual_sum_squares / total_sum_squares
