"""Regression and calendar helpers shared by the analytics modules."""
from datetime import date

import numpy as np
from dateutil.relativedelta import relativedelta


def linear_fit(values):
    """
    Least-squares line through ``values`` at x = 1..n.

    Returns ``(slope, intercept)``. With fewer than two points there is no
    slope, so the line is flat at the mean.
    """
    y = np.asarray(values, dtype=float)
    n = len(y)
    if n == 0:
        return 0.0, 0.0
    if n < 2:
        return 0.0, float(y.mean())

    x = np.arange(1, n + 1, dtype=float)
    denominator = n * np.sum(x * x) - np.sum(x) ** 2
    if denominator == 0:
        return 0.0, float(y.mean())

    slope = (n * np.sum(x * y) - np.sum(x) * np.sum(y)) / denominator
    intercept = (np.sum(y) - slope * np.sum(x)) / n
    return float(slope), float(intercept)


def month_key(d):
    return d.strftime("%Y-%m")


def month_start(d):
    return date(d.year, d.month, 1)


def months_back(today, count):
    """First days of the last ``count`` months, oldest first, ending with today's month."""
    current = month_start(today)
    return [current - relativedelta(months=i) for i in range(count - 1, -1, -1)]


def months_ahead(today, count):
    """First days of the ``count`` months after today's month."""
    current = month_start(today)
    return [current + relativedelta(months=i) for i in range(1, count + 1)]


def mean(values, default=0.0):
    values = list(values)
    return sum(values) / len(values) if values else default


def trend(recent, older, up=1.05, down=0.95, labels=("increasing", "decreasing", "stable")):
    if recent > older * up:
        return labels[0]
    if recent < older * down:
        return labels[1]
    return labels[2]
