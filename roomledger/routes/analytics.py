from datetime import date

from flask import Blueprint, current_app, request

from .. import analytics
from ..errors import ValidationError
from ..extensions import db
from ..models import Property
from ..security import admin_required
from ..services.analytics import load_dataset, load_previous_period
from ..utils.requests import ok

bp = Blueprint("analytics", __name__)


def _int_arg(name, default, low, high):
    try:
        value = int(request.args.get(name, default))
    except ValueError:
        raise ValidationError(f"{name} must be an integer")
    if value < low or value > high:
        raise ValidationError(f"{name} must be between {low} and {high}")
    return value


def _scope():
    """property_id and months from the query string, validated"""
    property_id = request.args.get("property_id", type=int)
    if property_id:
        db.get_or_404(Property, property_id)
    return property_id, _int_arg("months", 12, 1, 60)


def _dataset():
    property_id, months = _scope()
    return load_dataset(property_id, months)


def _market_rent():
    return float(current_app.config.get("MARKET_AVERAGE_RENT", 1200))


def _market_data():
    return {
        "occupancy_rate": float(current_app.config.get("MARKET_OCCUPANCY_RATE", 85)),
        "avg_rent": _market_rent(),
    }


def _with_period(data, ds):
    data["period"] = {"start": ds.start.isoformat(), "end": ds.end.isoformat()}
    return data


@bp.get("/analytics/financial")
@admin_required
def financial_metrics():
    property_id, months = _scope()
    ds = load_dataset(property_id, months)
    prev_payments, prev_expenses = load_previous_period(property_id, months)
    data = analytics.calculate_financial_metrics(ds.payments, ds.expenses, prev_payments, prev_expenses)
    return ok(_with_period(data, ds))


@bp.get("/analytics/financial/forecast")
@admin_required
def revenue_forecast():
    ds = _dataset()
    forecast_months = _int_arg("forecast_months", 12, 1, 24)
    return ok(analytics.generate_revenue_forecast(ds.payments, forecast_months, today=ds.end))


@bp.get("/analytics/financial/roi")
@admin_required
def roi():
    ds = _dataset()
    return ok(analytics.analyze_roi(ds.payments, ds.expenses, ds.properties, today=ds.end))


@bp.get("/analytics/financial/profit-loss")
@admin_required
def profit_loss():
    ds = _dataset()
    return ok(analytics.analyze_profit_loss(ds.payments, ds.expenses))


@bp.get("/analytics/financial/cash-flow")
@admin_required
def cash_flow():
    ds = _dataset()
    return ok(analytics.analyze_cash_flow(ds.payments, ds.expenses, today=ds.end))


@bp.get("/analytics/occupancy")
@admin_required
def occupancy_metrics():
    ds = _dataset()
    return ok(analytics.calculate_occupancy_metrics(ds.contracts, ds.rooms, today=ds.end))


@bp.get("/analytics/occupancy/seasonal")
@admin_required
def seasonal_patterns():
    ds = _dataset()
    return ok(analytics.analyze_seasonal_patterns(ds.contracts, ds.rooms, today=ds.end))


@bp.get("/analytics/occupancy/forecast")
@admin_required
def occupancy_forecast():
    ds = _dataset()
    forecast_months = _int_arg("forecast_months", 12, 1, 24)
    return ok(analytics.generate_occupancy_forecast(
        ds.contracts, ds.rooms, ds.payments, forecast_months, today=ds.end, market_rent=_market_rent(),
    ))


@bp.get("/analytics/occupancy/market")
@admin_required
def market_comparison():
    ds = _dataset()
    return ok(analytics.analyze_market_comparison(ds.contracts, ds.rooms, _market_data(), today=ds.end))


@bp.get("/analytics/maintenance")
@admin_required
def maintenance_metrics():
    ds = _dataset()
    return ok(analytics.calculate_maintenance_metrics(ds.requests, ds.expenses, today=ds.end))


@bp.get("/analytics/maintenance/costs")
@admin_required
def maintenance_costs():
    ds = _dataset()
    return ok(analytics.track_maintenance_costs(ds.requests, ds.expenses, ds.properties, today=ds.end))


@bp.get("/analytics/maintenance/vendors")
@admin_required
def vendor_performance():
    ds = _dataset()
    return ok(analytics.analyze_vendor_performance(ds.requests))


@bp.get("/analytics/maintenance/predictive")
@admin_required
def predictive():
    ds = _dataset()
    return ok(analytics.generate_predictive_analytics(ds.requests, ds.expenses, ds.properties, today=ds.end))


@bp.get("/analytics/maintenance/efficiency")
@admin_required
def efficiency():
    ds = _dataset()
    return ok(analytics.analyze_maintenance_efficiency(ds.requests, ds.expenses))


@bp.get("/analytics/dashboard")
@admin_required
def dashboard():
    """Headline numbers from all three areas in one call"""
    property_id, months = _scope()
    ds = load_dataset(property_id, months)
    prev_payments, prev_expenses = load_previous_period(property_id, months)
    today = date.today()

    return ok(_with_period({
        "financial": analytics.calculate_financial_metrics(ds.payments, ds.expenses, prev_payments, prev_expenses),
        "occupancy": analytics.calculate_occupancy_metrics(ds.contracts, ds.rooms, today=today),
        "maintenance": analytics.calculate_maintenance_metrics(ds.requests, ds.expenses, today=today),
        "revenue_trend": analytics.generate_revenue_forecast(ds.payments, 3, today=today)["trend_direction"],
    }, ds))
