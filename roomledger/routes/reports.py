from datetime import date

from flask import Blueprint, Response, request

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import Property
from ..security import admin_required
from ..services import reports
from ..utils.requests import ok, parse_date

bp = Blueprint("reports", __name__)


def _filters():
    today = date.today()
    start = parse_date(request.args.get("start_date"), "start_date") or date(today.year, 1, 1)
    end = parse_date(request.args.get("end_date"), "end_date") or today
    if start > end:
        raise ValidationError("start_date must be on or before end_date")

    property_id = request.args.get("property_id", type=int)
    if property_id:
        db.get_or_404(Property, property_id)

    fmt = (request.args.get("format") or "json").lower()
    if fmt not in ("json", "csv"):
        raise ValidationError("format must be json or csv")
    return start, end, property_id, fmt


def _render(report_type):
    start, end, property_id, fmt = _filters()
    if fmt == "csv":
        filename = f"{report_type}-report-{start.isoformat()}-{end.isoformat()}.csv"
        return Response(
            reports.export_csv(report_type, start, end, property_id),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )
    return ok(reports.BUILDERS[report_type](start, end, property_id))


@bp.get("/reports/types")
@admin_required
def report_types():
    return ok(reports.REPORT_TYPES)


@bp.get("/reports/<report_type>")
@admin_required
def generate_report(report_type):
    if report_type not in reports.BUILDERS:
        raise NotFoundError(f"Unknown report type: {report_type}")
    return _render(report_type)
