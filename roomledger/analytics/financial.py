"""
Financial analytics: revenue, expenses, ROI, profit/loss and cash flow.

Revenue only ever counts PAID payments. A payment belongs to the month of
its payment date, or of its due date when it has none.
"""
from collections import defaultdict
from datetime import date

from .forecasting import linear_fit, mean, month_key, months_ahead, months_back, trend

PAID = "PAID"
CAPITAL_CATEGORIES = ("PROPERTY_PURCHASE", "RENOVATION", "IMPROVEMENT")
# purchase and renovation are not operating spend
NON_OPERATING_CATEGORIES = ("PROPERTY_PURCHASE", "RENOVATION")
LIABILITY_CATEGORIES = ("UTILITIES", "MAINTENANCE", "INSURANCE")


def _revenue(payments):
    return sum(p.amount for p in payments if p.status == PAID)


def _spend(expenses, categories=None):
    return sum(e.amount for e in expenses if categories is None or e.category in categories)


def _revenue_by_month(payments):
    grouped = defaultdict(float)
    for p in payments:
        if p.status == PAID:
            grouped[p.month] += p.amount
    return dict(sorted(grouped.items()))


def _monthly(payments, expenses):
    revenue = _revenue_by_month(payments)
    spend = defaultdict(float)
    for e in expenses:
        spend[e.month] += e.amount
    months = sorted(set(revenue) | set(spend))
    return [(m, revenue.get(m, 0.0), spend.get(m, 0.0)) for m in months]


def calculate_financial_metrics(payments, expenses, prev_payments=None, prev_expenses=None):
    total_revenue = _revenue(payments)
    total_expenses = _spend(expenses)
    net_profit = total_revenue - total_expenses
    investment = _spend(expenses, CAPITAL_CATEGORIES)
    operating = sum(e.amount for e in expenses if e.category not in NON_OPERATING_CATEGORIES)

    revenue_growth = expense_growth = 0.0
    if prev_payments is not None and prev_expenses is not None:
        prev_revenue = _revenue(prev_payments)
        prev_spend = _spend(prev_expenses)
        revenue_growth = (total_revenue - prev_revenue) / prev_revenue * 100 if prev_revenue > 0 else 0.0
        expense_growth = (total_expenses - prev_spend) / prev_spend * 100 if prev_spend > 0 else 0.0

    return {
        "total_revenue": total_revenue,
        "total_expenses": total_expenses,
        "net_profit": net_profit,
        "profit_margin": net_profit / total_revenue * 100 if total_revenue > 0 else 0.0,
        "roi": net_profit / investment * 100 if investment > 0 else 0.0,
        "cash_flow": total_revenue - operating,
        "average_revenue": total_revenue / len(payments) if payments else 0.0,
        "average_expense": total_expenses / len(expenses) if expenses else 0.0,
        "revenue_growth": revenue_growth,
        "expense_growth": expense_growth,
    }


def _seasonal_factors(monthly):
    factors = [1.0] * 12
    if len(monthly) < 12:
        return factors

    overall = mean(monthly.values())
    by_month = defaultdict(list)
    for key, revenue in monthly.items():
        by_month[int(key[5:7]) - 1].append(revenue)
    for index, values in by_month.items():
        factors[index] = mean(values) / overall if overall > 0 else 1.0
    return factors


def _forecast_accuracy(revenues):
    if len(revenues) < 6:
        return 0.0
    recent = revenues[-3:]
    previous = revenues[-6:-3]
    error = sum(abs(r - p) for r, p in zip(recent, previous))
    actual = sum(recent)
    return max(0.0, 100 - error / actual * 100) if actual > 0 else 0.0


def generate_revenue_forecast(payments, forecast_months=12, today=None):
    """Linear trend over monthly revenue, scaled by month-of-year seasonality."""
    today = today or date.today()
    labels = [month_key(m) for m in months_ahead(today, forecast_months)]
    monthly = _revenue_by_month(payments)
    revenues = list(monthly.values())

    if len(revenues) < 3:
        return {
            "months": labels,
            "predicted_revenue": [0.0] * forecast_months,
            "confidence_interval": [{"lower": 0.0, "upper": 0.0} for _ in range(forecast_months)],
            "trend_direction": "stable",
            "seasonal_factors": [1.0] * 12,
            "forecast_accuracy": 0.0,
        }

    n = len(revenues)
    slope, intercept = linear_fit(revenues)
    seasonal = _seasonal_factors(monthly)

    predicted, interval = [], []
    for i in range(1, forecast_months + 1):
        value = (slope * (n + i) + intercept) * seasonal[(today.month - 1 + i - 1) % 12]
        margin = value * 0.2
        predicted.append(max(0.0, value))
        interval.append({"lower": max(0.0, value - margin), "upper": value + margin})

    return {
        "months": labels,
        "predicted_revenue": predicted,
        "confidence_interval": interval,
        "trend_direction": "up" if slope > 50 else "down" if slope < -50 else "stable",
        "seasonal_factors": seasonal,
        "forecast_accuracy": _forecast_accuracy(revenues),
    }


def analyze_roi(payments, expenses, properties, today=None):
    today = today or date.today()
    property_roi = []
    for prop in properties:
        revenue = _revenue(p for p in payments if p.property_id == prop.id)
        costs = _spend(e for e in expenses if e.property_id == prop.id)
        investment = prop.initial_investment or costs
        property_roi.append({
            "property_id": prop.id,
            "name": prop.name,
            "roi": (revenue - costs) / investment * 100 if investment > 0 else 0.0,
            "investment": investment,
            "revenue": revenue,
            "costs": costs,
            "returns": revenue - costs,
        })

    overall = mean(p["roi"] for p in property_roi)
    # max/min keep the first entry on ties
    best = max(property_roi, key=lambda p: p["roi"], default=None)
    worst = min(property_roi, key=lambda p: p["roi"], default=None)

    total_investment = sum(p["investment"] for p in property_roi)
    monthly = {m: rev - spend for m, rev, spend in _monthly(payments, expenses)}
    roi_trend = [
        {
            "month": month_key(m),
            "roi": monthly.get(month_key(m), 0.0) / total_investment * 100 if total_investment > 0 else 0.0,
        }
        for m in months_back(today, 12)
    ]

    return {
        "property_roi": property_roi,
        "overall_roi": overall,
        "best_performing_property": best["property_id"] if best else None,
        "worst_performing_property": worst["property_id"] if worst else None,
        "roi_trend": roi_trend,
    }


def analyze_profit_loss(payments, expenses):
    monthly = [
        {"month": m, "profit": rev, "loss": spend, "net": rev - spend}
        for m, rev, spend in _monthly(payments, expenses)
    ]

    yearly = defaultdict(lambda: {"profit": 0.0, "loss": 0.0})
    for row in monthly:
        year = int(row["month"][:4])
        yearly[year]["profit"] += row["profit"]
        yearly[year]["loss"] += row["loss"]
    yearly_comparison = [
        {"year": year, "profit": v["profit"], "loss": v["loss"], "net": v["profit"] - v["loss"]}
        for year, v in sorted(yearly.items())
    ]

    if monthly:
        recent = mean(m["net"] for m in monthly[-6:])
        older = mean((m["net"] for m in monthly[-12:-6]), default=recent)
        profit_trend = trend(recent, older)
    else:
        profit_trend = "stable"

    by_category = defaultdict(float)
    for e in expenses:
        by_category[e.category] += e.amount
    total = sum(by_category.values())
    loss_categories = [
        {"category": c, "amount": a, "percentage": a / total * 100 if total > 0 else 0.0}
        for c, a in by_category.items()
    ]

    return {
        "monthly_profit_loss": monthly,
        "yearly_comparison": yearly_comparison,
        "profit_trend": profit_trend,
        "loss_categories": loss_categories,
    }


def analyze_cash_flow(payments, expenses, today=None):
    today = today or date.today()
    monthly = [
        {"month": m, "inflow": rev, "outflow": spend, "net": rev - spend}
        for m, rev, spend in _monthly(payments, expenses)
    ]

    projected = mean(m["inflow"] for m in monthly) - mean(m["outflow"] for m in monthly)
    projection = [{"month": month_key(m), "projected": projected} for m in months_ahead(today, 6)]

    liabilities = _spend(expenses, LIABILITY_CATEGORIES)
    operating = sum(m["net"] for m in monthly)

    return {
        "monthly_cash_flow": monthly,
        "cash_flow_projection": projection,
        "liquidity_ratio": _revenue(payments) / liabilities if liabilities > 0 else 0.0,
        "operating_cash_flow": operating,
        "free_cash_flow": operating - _spend(expenses, CAPITAL_CATEGORIES),
    }
