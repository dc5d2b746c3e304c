from .financial import (
    analyze_cash_flow,
    analyze_profit_loss,
    analyze_roi,
    calculate_financial_metrics,
    generate_revenue_forecast,
)
from .forecasting import linear_fit
from .maintenance import (
    analyze_maintenance_efficiency,
    analyze_vendor_performance,
    calculate_maintenance_metrics,
    generate_predictive_analytics,
    track_maintenance_costs,
)
from .occupancy import (
    analyze_market_comparison,
    analyze_seasonal_patterns,
    calculate_occupancy_metrics,
    generate_occupancy_forecast,
)
from .records import (
    ContractRecord,
    ExpenseRecord,
    MaintenanceRecord,
    PaymentRecord,
    PropertyRecord,
    RoomRecord,
)

__all__ = [
    "ContractRecord",
    "ExpenseRecord",
    "MaintenanceRecord",
    "PaymentRecord",
    "PropertyRecord",
    "RoomRecord",
    "analyze_cash_flow",
    "analyze_maintenance_efficiency",
    "analyze_market_comparison",
    "analyze_profit_loss",
    "analyze_roi",
    "analyze_seasonal_patterns",
    "analyze_vendor_performance",
    "calculate_financial_metrics",
    "calculate_maintenance_metrics",
    "calculate_occupancy_metrics",
    "generate_occupancy_forecast",
    "generate_predictive_analytics",
    "generate_revenue_forecast",
    "linear_fit",
    "track_maintenance_costs",
]
