"""Load database rows into analytics records for a property and time window."""
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import List

from dateutil.relativedelta import relativedelta

from ..analytics.records import (
    ContractRecord, ExpenseRecord, MaintenanceRecord, PaymentRecord, PropertyRecord, RoomRecord,
)
from ..models import Contract, Expense, MaintenanceRequest, Payment, Property, Room


@dataclass
class Dataset:
    start: date
    end: date
    payments: List[PaymentRecord] = field(default_factory=list)
    expenses: List[ExpenseRecord] = field(default_factory=list)
    contracts: List[ContractRecord] = field(default_factory=list)
    rooms: List[RoomRecord] = field(default_factory=list)
    properties: List[PropertyRecord] = field(default_factory=list)
    requests: List[MaintenanceRecord] = field(default_factory=list)


def _payments(property_id, start, end):
    query = Payment.query.join(Contract).join(Room).filter(Payment.due_date >= start, Payment.due_date <= end)
    if property_id:
        query = query.filter(Room.property_id == property_id)
    return [PaymentRecord.from_model(p) for p in query.all()]


def _expenses(property_id, start, end):
    query = Expense.query.filter(Expense.date >= start, Expense.date <= end)
    if property_id:
        query = query.filter(Expense.property_id == property_id)
    return [ExpenseRecord.from_model(e) for e in query.all()]


def load_dataset(property_id=None, months=12, today=None):
    """
    Records for the ``months`` months up to ``today``.

    Contracts, rooms and properties are loaded whole because occupancy
    history looks further back than the window.
    """
    today = today or date.today()
    start = today - relativedelta(months=months)

    rooms = Room.query
    properties = Property.query
    contracts = Contract.query.join(Room)
    requests = MaintenanceRequest.query.join(Room).filter(
        MaintenanceRequest.submitted_at >= datetime.combine(start, time.min))
    if property_id:
        rooms = rooms.filter(Room.property_id == property_id)
        properties = properties.filter(Property.id == property_id)
        contracts = contracts.filter(Room.property_id == property_id)
        requests = requests.filter(Room.property_id == property_id)

    return Dataset(
        start=start,
        end=today,
        payments=_payments(property_id, start, today),
        expenses=_expenses(property_id, start, today),
        contracts=[ContractRecord.from_model(c) for c in contracts.all()],
        rooms=[RoomRecord.from_model(r) for r in rooms.all()],
        properties=[PropertyRecord.from_model(p) for p in properties.all()],
        requests=[MaintenanceRecord.from_model(r) for r in requests.all()],
    )


def load_previous_period(property_id=None, months=12, today=None):
    """Payments and expenses for the window right before the current one."""
    today = today or date.today()
    # the current window starts on today - months, so this one ends the day before
    current_start = today - relativedelta(months=months)
    end = current_start - timedelta(days=1)
    start = current_start - relativedelta(months=months)
    return _payments(property_id, start, end), _expenses(property_id, start, end)
