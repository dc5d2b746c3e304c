"""Occupancy analytics over contracts and rooms."""
from collections import Counter
from datetime import date

from .forecasting import linear_fit, mean, month_key, months_ahead, months_back, trend

ACTIVE = "ACTIVE"
ENDED = ("TERMINATED", "EXPIRED")

DEFAULT_MARKET_OCCUPANCY = 85.0
DEFAULT_MARKET_RENT = 1200.0

DEMAND_MULTIPLIERS = [0.8, 0.9, 1.2, 1.3, 1.4, 1.1, 1.0, 1.1, 1.3, 1.2, 0.9, 0.8]

MARKET_FACTORS = [
    ["Post-holiday slowdown", "Winter weather"],
    ["Tax season", "Winter weather"],
    ["Spring market pickup", "College graduations"],
    ["Spring market peak", "Job relocations"],
    ["Peak moving season", "College graduations"],
    ["Summer relocations", "Family moves"],
    ["Summer peak", "Vacation season"],
    ["Back-to-school", "Student housing demand"],
    ["Fall market", "Job relocations"],
    ["Fall peak", "Holiday preparations"],
    ["Pre-holiday slowdown", "Weather concerns"],
    ["Holiday season", "Year-end moves"],
]

SEASONS = {
    "Spring": (3, 4, 5),
    "Summer": (6, 7, 8),
    "Fall": (9, 10, 11),
    "Winter": (12, 1, 2),
}

COMPETITORS = [
    {"competitor": "Property A", "occupancy_rate": 88, "avg_rent": 1150},
    {"competitor": "Property B", "occupancy_rate": 82, "avg_rent": 1300},
    {"competitor": "Property C", "occupancy_rate": 90, "avg_rent": 1100},
]


def _occupied_on(contracts, day):
    return sum(
        1 for c in contracts
        if c.start_date and c.start_date <= day and (c.end_date is None or c.end_date >= day)
    )


def _series(contracts, rooms, today, count):
    total = len(rooms)
    rows = []
    for start in months_back(today, count):
        occupied = _occupied_on(contracts, start)
        rows.append({
            "month": month_key(start),
            "occupancy_rate": occupied / total * 100 if total else 0.0,
            "units_occupied": occupied,
            "total_units": total,
        })
    return rows


def _active_contract(contracts, room_id):
    return next((c for c in contracts if c.room_id == room_id and c.status == ACTIVE), None)


def calculate_occupancy_metrics(contracts, rooms, today=None):
    today = today or date.today()
    total = len(rooms)
    occupied = sum(1 for c in contracts if c.status == ACTIVE and (c.end_date is None or c.end_date > today))
    current = occupied / total * 100 if total else 0.0

    history = [row["occupancy_rate"] for row in _series(contracts, rooms, today, 12)]
    recent = mean(history[-3:], default=current)
    older = mean(history[-6:-3], default=recent)

    ended = [c for c in contracts if c.status in ENDED or (c.end_date and c.end_date < today)]
    lease_lengths = [(c.end_date - c.start_date).days / 30 for c in ended if c.start_date and c.end_date]

    return {
        "current_occupancy_rate": current,
        "average_occupancy_rate": mean(history, default=current),
        "total_units": total,
        "occupied_units": occupied,
        "vacant_units": total - occupied,
        "occupancy_trend": trend(recent, older),
        "turnover_rate": len(ended) / total * 100 if total else 0.0,
        "average_lease_length": mean(lease_lengths, default=12.0),
    }


def analyze_seasonal_patterns(contracts, rooms, today=None):
    today = today or date.today()
    monthly = _series(contracts, rooms, today, 24)
    overall = mean(row["occupancy_rate"] for row in monthly)

    seasonal_trends = []
    for season, months in SEASONS.items():
        avg = mean(row["occupancy_rate"] for row in monthly if int(row["month"][5:7]) in months)
        if avg > overall * 1.1:
            label = "peak"
        elif avg < overall * 0.9:
            label = "low"
        else:
            label = "normal"
        seasonal_trends.append({"season": season, "avg_occupancy": avg, "trend": label})

    ranked = sorted(monthly, key=lambda row: row["occupancy_rate"], reverse=True)
    return {
        "monthly_occupancy": monthly,
        "seasonal_trends": seasonal_trends,
        "best_performing_months": [row["month"] for row in ranked[:3]],
        "worst_performing_months": [row["month"] for row in ranked[-3:]],
        "seasonal_factors": [row["occupancy_rate"] / overall if overall > 0 else 1.0 for row in monthly],
    }


def _predict_occupancy(history, forecast_months, today):
    labels = [month_key(m) for m in months_ahead(today, forecast_months)]
    if len(history) < 3:
        return [{"month": m, "predicted": 85.0, "confidence": 0.5} for m in labels]

    n = len(history)
    slope, intercept = linear_fit(history)
    return [
        {
            "month": m,
            "predicted": max(0.0, min(100.0, slope * (n + i + 1) + intercept)),
            "confidence": max(0.3, 1 - 0.1 * i),
        }
        for i, m in enumerate(labels)
    ]


def _predict_demand(contracts, forecast_months, today):
    move_ins = Counter(month_key(c.start_date) for c in contracts if c.start_date)
    avg = sum(move_ins.values()) / max(1, len(move_ins))
    return [
        {
            "month": month_key(m),
            "expected_demand": round(avg * DEMAND_MULTIPLIERS[m.month - 1]),
            "market_factors": MARKET_FACTORS[m.month - 1],
        }
        for m in months_ahead(today, forecast_months)
    ]


def _current_rent(contracts, room):
    contract = _active_contract(contracts, room.id)
    return contract.monthly_rent if contract else room.price


def _vacancy_risk(contracts, rooms, payments, market_rent, today):
    risks = []
    for room in rooms:
        contract = _active_contract(contracts, room.id)
        score = 0
        factors = []

        if contract is None:
            score += 50
            factors.append("Currently vacant")
        else:
            if contract.end_date:
                days = (contract.end_date - today).days
                if days < 30:
                    score += 40
                    factors.append("Lease expires soon")
                elif days < 90:
                    score += 20
                    factors.append("Lease expires in 3 months")

            overdue = sum(
                1 for p in payments
                if p.contract_id == contract.id
                and (p.status == "OVERDUE" or (p.status != "PAID" and p.due_date < today))
            )
            if overdue:
                score += min(20, 10 * overdue)
                factors.append("Payment concerns")

        if _current_rent(contracts, room) > market_rent:
            score += 15
            factors.append("Priced above market")

        risks.append({"room_id": room.id, "risk_score": min(100, score), "factors": factors})
    return risks


def _optimal_pricing(contracts, rooms, market_rent):
    pricing = []
    for room in rooms:
        current = _current_rent(contracts, room)
        if current > market_rent:
            impact = -10
        elif current < market_rent * 0.9:
            impact = 15
        else:
            impact = 0
        pricing.append({
            "room_id": room.id,
            "current_rent": current,
            "suggested_rent": round(market_rent * 0.95),
            "market_rate": market_rent,
            "occupancy_impact": impact,
        })
    return pricing


def generate_occupancy_forecast(contracts, rooms, payments=(), forecast_months=12, today=None,
                                market_rent=DEFAULT_MARKET_RENT):
    today = today or date.today()
    history = [row["occupancy_rate"] for row in _series(contracts, rooms, today, 24)]
    return {
        "predicted_occupancy": _predict_occupancy(history, forecast_months, today),
        "demand_prediction": _predict_demand(contracts, forecast_months, today),
        "vacancy_risk": _vacancy_risk(contracts, rooms, payments, market_rent, today),
        "optimal_pricing": _optimal_pricing(contracts, rooms, market_rent),
    }


def analyze_market_comparison(contracts, rooms, market_data=None, today=None):
    today = today or date.today()
    market_data = market_data or {}
    market_rate = market_data.get("occupancy_rate") or DEFAULT_MARKET_OCCUPANCY
    market_rent = market_data.get("avg_rent") or DEFAULT_MARKET_RENT
    current = calculate_occupancy_metrics(contracts, rooms, today)["current_occupancy_rate"]

    if current > market_rate * 1.05:
        position = "above_market"
    elif current < market_rate * 0.95:
        position = "below_market"
    else:
        position = "at_market"

    if current < market_rate * 0.9:
        advice = "Consider reducing rent to improve occupancy"
    elif current > market_rate * 1.1:
        advice = "Opportunity to increase rent"
    else:
        advice = "Maintain current pricing"

    recommendations = []
    for room in rooms:
        contract = _active_contract(contracts, room.id)
        recommendations.append({
            "room_id": room.id,
            "current_rent": contract.monthly_rent if contract else 0.0,
            "market_rent": market_rent,
            "recommendation": advice,
        })

    return {
        "current_occupancy_rate": current,
        "market_occupancy_rate": market_rate,
        "competitor_analysis": market_data.get("competitors") or COMPETITORS,
        "market_position": position,
        "pricing_recommendations": recommendations,
    }
