"""Maintenance analytics: workload, spending, vendors, prediction and efficiency."""
from collections import defaultdict
from datetime import date, datetime, time, timedelta

from dateutil.relativedelta import relativedelta

from .forecasting import mean, month_key, months_ahead, months_back, trend

CATEGORIES = ["PLUMBING", "ELECTRICAL", "HVAC", "APPLIANCES", "CLEANING", "REPAIRS", "OTHER"]
OPEN_STATUSES = ("SUBMITTED", "IN_PROGRESS")

TARGET_RESPONSE_HOURS = {"PLUMBING": 4, "ELECTRICAL": 2, "HVAC": 8, "APPLIANCES": 12}
DEFAULT_RESPONSE_HOURS = 24
BENCHMARK_COST = {"PLUMBING": 200, "ELECTRICAL": 150, "HVAC": 300, "APPLIANCES": 250}
DEFAULT_BENCHMARK_COST = 100

COMMON_COMPLAINTS = {
    "PLUMBING": ["Slow response", "Incomplete repairs", "Messy work area"],
    "ELECTRICAL": ["Safety concerns", "Multiple visits needed"],
    "HVAC": ["Temporary fixes", "Noisy repairs"],
    "APPLIANCES": ["Long wait times", "Wrong parts ordered"],
}
DEFAULT_COMPLAINTS = ["Poor communication", "Scheduling issues"]

# winter months see the most breakdowns
SEASONAL_MULTIPLIERS = [1.2, 1.1, 1.0, 0.9, 0.8, 0.9, 1.0, 1.0, 0.9, 1.0, 1.1, 1.3]

RISK_FACTORS = [
    ["Freezing temperatures", "Heating system stress"],
    ["Winter weather", "Pipe freeze risk"],
    ["Spring maintenance needs", "HVAC transition"],
    ["Spring cleaning", "System startups"],
    ["Increased usage", "AC preparation"],
    ["Peak AC usage", "High demand"],
    ["Summer heat stress", "AC overload"],
    ["Continued heat", "Equipment fatigue"],
    ["System transitions", "Fall maintenance"],
    ["Weather changes", "Heating preparation"],
    ["Pre-winter prep", "System checks"],
    ["Winter onset", "Heating demands"],
]

# equipment type: (lifespan in years, service interval in months, request category)
EQUIPMENT = {
    "HVAC": (15, 6, "HVAC"),
    "WATER_HEATER": (10, 12, "PLUMBING"),
    "APPLIANCES": (12, 12, "APPLIANCES"),
    "FLOORING": (20, 24, "REPAIRS"),
    "PLUMBING": (25, 12, "PLUMBING"),
}
DEFAULT_YEAR_BUILT = 2000


def _hours(start, end):
    return (end - start).total_seconds() / 3600


def _days(start, end):
    return (end - start).total_seconds() / 86400


def _maintenance(expenses):
    return [e for e in expenses if e.category == "MAINTENANCE"]


def _response_hours(requests):
    return [_hours(r.submitted_at, r.assigned_at) for r in requests if r.submitted_at and r.assigned_at]


def _resolution_days(requests):
    return [
        _days(r.submitted_at, r.completed_at)
        for r in requests
        if r.status == "COMPLETED" and r.submitted_at and r.completed_at
    ]


def calculate_maintenance_metrics(requests, expenses, today=None):
    today = today or date.today()
    midnight = datetime.combine(today, time.min)
    cut30, cut60 = midnight - timedelta(days=30), midnight - timedelta(days=60)

    costs = _maintenance(expenses)
    total_cost = sum(e.amount for e in costs)
    total = len(requests)

    recent_requests = sum(1 for r in requests if r.submitted_at > cut30)
    older_requests = sum(1 for r in requests if cut60 < r.submitted_at <= cut30)
    recent_cost = sum(e.amount for e in costs if e.date > cut30.date())
    older_cost = sum(e.amount for e in costs if cut60.date() < e.date <= cut30.date())

    return {
        "total_requests": total,
        "completed_requests": sum(1 for r in requests if r.status == "COMPLETED"),
        "pending_requests": sum(1 for r in requests if r.status in OPEN_STATUSES),
        "average_resolution_time": mean(_resolution_days(requests)),
        "total_maintenance_cost": total_cost,
        "average_cost_per_request": total_cost / total if total else 0.0,
        "request_trend": trend(recent_requests, older_requests, 1.1, 0.9),
        "cost_trend": trend(recent_cost, older_cost, 1.1, 0.9),
    }


def _monthly_spending(expenses):
    grouped = defaultdict(lambda: {"amount": 0.0, "expense_count": 0})
    for e in _maintenance(expenses):
        grouped[e.month]["amount"] += e.amount
        grouped[e.month]["expense_count"] += 1
    return [{"month": m, **v} for m, v in sorted(grouped.items())]


def _classify(description):
    text = (description or "").lower()
    return {
        "preventive": "preventive" in text or "scheduled" in text,
        "reactive": "preventive" not in text and "emergency" not in text,
        "emergency": "emergency" in text or "urgent" in text,
    }


def track_maintenance_costs(requests, expenses, properties, today=None):
    today = today or date.today()
    costs = _maintenance(expenses)
    total_cost = sum(e.amount for e in costs)

    breakdown = []
    for category in CATEGORIES:
        amount = sum(e.amount for e in costs if e.subcategory == category)
        breakdown.append({
            "category": category,
            "amount": amount,
            "percentage": amount / total_cost * 100 if total_cost > 0 else 0.0,
            "request_count": sum(1 for r in requests if r.category == category),
        })

    comparison = []
    for prop in properties:
        spent = sum(e.amount for e in costs if e.property_id == prop.id)
        comparison.append({
            "property_id": prop.id,
            "name": prop.name,
            "total_cost": spent,
            "avg_cost_per_unit": spent / max(prop.room_count, 1),
            "request_count": sum(1 for r in requests if r.property_id == prop.id),
        })

    cost_trends = []
    for start in months_back(today, 6):
        period = month_key(start)
        row = {"period": period, "preventive": 0.0, "reactive": 0.0, "emergency": 0.0}
        for e in costs:
            if e.month != period:
                continue
            for kind, matches in _classify(e.description).items():
                if matches:
                    row[kind] += e.amount
        cost_trends.append(row)

    return {
        "monthly_spending": _monthly_spending(expenses),
        "category_breakdown": breakdown,
        "property_comparison": comparison,
        "cost_trends": cost_trends,
    }


def analyze_vendor_performance(requests):
    groups = defaultdict(list)
    for r in requests:
        groups[r.vendor or "internal"].append(r)

    metrics = []
    for vendor, jobs in groups.items():
        total = len(jobs)
        completed = sum(1 for r in jobs if r.status == "COMPLETED")
        rating = mean(r.rating for r in jobs if r.rating)
        on_time = sum(1 for r in jobs if r.completed_at and r.due_date and r.completed_at <= r.due_date)
        on_time_pct = on_time / total * 100
        metrics.append({
            "vendor_id": vendor,
            "vendor_name": "Internal Team" if vendor == "internal" else vendor,
            "total_jobs": total,
            "completed_jobs": completed,
            "average_rating": rating,
            "average_response_time": mean(_response_hours(jobs)),
            "average_cost": mean(r.actual_cost for r in jobs if r.actual_cost is not None),
            "on_time_percentage": on_time_pct,
            "quality_score": rating * 20 + on_time_pct * 0.4 + completed / total * 40,
        })

    by_quality = sorted(metrics, key=lambda v: v["quality_score"], reverse=True)
    cost_efficiency = sorted(
        (
            {
                "vendor_id": v["vendor_id"],
                "cost_efficiency": v["quality_score"] / v["average_cost"] if v["average_cost"] > 0 else 0.0,
            }
            for v in metrics
        ),
        key=lambda v: v["cost_efficiency"],
        reverse=True,
    )
    reliability = sorted(
        (
            {"vendor_id": v["vendor_id"], "reliability": (v["on_time_percentage"] + v["average_rating"] * 20) / 2}
            for v in metrics
        ),
        key=lambda v: v["reliability"],
        reverse=True,
    )

    return {
        "vendor_metrics": metrics,
        "top_performers": [v["vendor_id"] for v in by_quality[:3]],
        "under_performers": [v["vendor_id"] for v in sorted(metrics, key=lambda v: v["quality_score"])[:3]],
        "cost_efficiency_ranking": cost_efficiency,
        "reliability_ranking": reliability,
    }


def _forecast(requests, expenses, today):
    avg_requests = len(requests) / 12
    avg_cost = mean(m["amount"] for m in _monthly_spending(expenses))
    forecast = []
    for i, start in enumerate(months_ahead(today, 6)):
        multiplier = SEASONAL_MULTIPLIERS[start.month - 1]
        forecast.append({
            "month": month_key(start),
            "predicted_requests": round(avg_requests * multiplier),
            "predicted_cost": round(avg_cost * multiplier),
            "confidence": max(0.5, 1 - 0.1 * i),
            "risk_factors": RISK_FACTORS[start.month - 1],
        })
    return forecast


def _next_replacement(year_built, lifespan, today):
    year = year_built + lifespan
    while date(year, 1, 1) <= today:
        year += lifespan
    return date(year, 1, 1)


def _equipment_lifecycle(requests, properties, today):
    lifecycle = []
    for equipment, (lifespan, interval, category) in EQUIPMENT.items():
        replacements, services = [], []
        for prop in properties:
            equipment_id = f"{equipment}_{prop.id}"
            replacements.append({
                "property_id": prop.id,
                "equipment_id": equipment_id,
                "expected_replacement": _next_replacement(
                    prop.year_built or DEFAULT_YEAR_BUILT, lifespan, today).isoformat(),
            })
            serviced = [
                r.submitted_at.date() for r in requests
                if r.property_id == prop.id and r.category == category and r.submitted_at
            ]
            base = max(serviced) if serviced else today
            services.append({
                "property_id": prop.id,
                "equipment_id": equipment_id,
                "next_maintenance": (base + relativedelta(months=interval)).isoformat(),
                "type": "Preventive",
            })
        lifecycle.append({
            "equipment_type": equipment,
            "average_lifespan": lifespan,
            "replacement_schedule": replacements,
            "maintenance_schedule": services,
        })
    return lifecycle


def _recommendations(requests, properties):
    result = []
    for prop in properties:
        own = [r for r in requests if r.property_id == prop.id]
        recs = []
        if sum(1 for r in own if r.category == "HVAC") > 2:
            recs.append({
                "type": "HVAC Maintenance",
                "priority": "high",
                "estimated_cost": 300,
                "potential_savings": 800,
                "description": "Schedule regular HVAC maintenance to prevent frequent repairs",
            })
        if sum(1 for r in own if r.category == "PLUMBING") > 1:
            recs.append({
                "type": "Plumbing Inspection",
                "priority": "medium",
                "estimated_cost": 150,
                "potential_savings": 500,
                "description": "Conduct comprehensive plumbing inspection to identify potential issues",
            })
        recs.append({
            "type": "Property Inspection",
            "priority": "low",
            "estimated_cost": 200,
            "potential_savings": 600,
            "description": "Annual comprehensive property inspection",
        })
        result.append({"property_id": prop.id, "recommendations": recs})
    return result


def _risk_assessment(requests, properties, today):
    six_months_ago = datetime.combine(today - relativedelta(months=6), time.min)
    assessment = []
    for prop in properties:
        own = [r for r in requests if r.property_id == prop.id]
        score, factors, actions = 0, [], []

        if today.year - (prop.year_built or DEFAULT_YEAR_BUILT) > 20:
            score += 30
            factors.append("Property age over 20 years")
            actions.append("Schedule comprehensive property inspection")
        if sum(1 for r in own if r.submitted_at > six_months_ago) > 5:
            score += 25
            factors.append("High maintenance request frequency")
            actions.append("Investigate recurring issues")
        if sum(1 for r in own if r.priority == "URGENT") > 2:
            score += 20
            factors.append("Multiple emergency requests")
            actions.append("Implement preventive maintenance program")
        if today.month in (12, 1, 2):
            score += 15
            factors.append("Winter weather risks")
            actions.append("Prepare for winter maintenance needs")

        assessment.append({
            "property_id": prop.id,
            "risk_score": min(100, score),
            "risk_factors": factors,
            "recommended_actions": actions,
        })
    return assessment


def generate_predictive_analytics(requests, expenses, properties, today=None):
    today = today or date.today()
    return {
        "maintenance_forecasting": _forecast(requests, expenses, today),
        "equipment_lifecycle": _equipment_lifecycle(requests, properties, today),
        "preventive_recommendations": _recommendations(requests, properties),
        "risk_assessment": _risk_assessment(requests, properties, today),
    }


def analyze_maintenance_efficiency(requests, expenses):
    costs = _maintenance(expenses)
    response, resolution, cost_efficiency, satisfaction = [], [], [], []

    for category in CATEGORIES:
        own = [r for r in requests if r.category == category]
        completed = [r for r in own if r.status == "COMPLETED"]

        avg_response = mean(_response_hours(own))
        target = TARGET_RESPONSE_HOURS.get(category, DEFAULT_RESPONSE_HOURS)
        if avg_response <= target * 0.8:
            performance = "excellent"
        elif avg_response <= target:
            performance = "good"
        else:
            performance = "needs_improvement"
        response.append({
            "category": category,
            "average_response_time": avg_response,
            "target_response_time": target,
            "performance": performance,
        })

        days = _resolution_days(own)
        resolution.append({
            "category": category,
            "average_resolution_time": mean(days),
            "first_time_fix_rate": sum(1 for d in days if d <= 7) / len(completed) * 100 if completed else 0.0,
            "escalation_rate": (
                sum(1 for r in own if r.priority in ("HIGH", "URGENT")) / len(own) * 100 if own else 0.0
            ),
        })

        avg_cost = mean(e.amount for e in costs if e.subcategory == category)
        benchmark = BENCHMARK_COST.get(category, DEFAULT_BENCHMARK_COST)
        if avg_cost <= benchmark * 0.9:
            efficiency = "above_benchmark"
        elif avg_cost <= benchmark * 1.1:
            efficiency = "at_benchmark"
        else:
            efficiency = "below_benchmark"
        cost_efficiency.append({
            "category": category,
            "average_cost": avg_cost,
            "benchmark_cost": benchmark,
            "efficiency": efficiency,
        })

        rated = [r for r in completed if r.rating]
        satisfaction.append({
            "category": category,
            "average_rating": mean(r.rating for r in rated),
            "response_rate": len(rated) / len(completed) * 100 if completed else 0.0,
            "common_complaints": COMMON_COMPLAINTS.get(category, DEFAULT_COMPLAINTS),
        })

    return {
        "response_time_metrics": response,
        "resolution_metrics": resolution,
        "cost_efficiency": cost_efficiency,
        "tenant_satisfaction": satisfaction,
    }
