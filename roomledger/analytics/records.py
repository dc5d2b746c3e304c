"""
Plain records the analytics functions work on.

They carry only the fields the calculations read, so the analytics can be
tested without a database. Each record has a ``from_model`` constructor for
the matching SQLAlchemy model.
"""
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional


def _f(value):
    return float(value) if value is not None else 0.0


@dataclass
class PaymentRecord:
    amount: float
    status: str
    due_date: date
    payment_date: Optional[date] = None
    contract_id: Optional[int] = None
    property_id: Optional[int] = None

    @property
    def month(self) -> str:
        return (self.payment_date or self.due_date).strftime("%Y-%m")

    @classmethod
    def from_model(cls, payment):
        room = payment.contract.room if payment.contract else None
        return cls(
            amount=_f(payment.amount),
            status=payment.status,
            due_date=payment.due_date,
            payment_date=payment.payment_date,
            contract_id=payment.contract_id,
            property_id=room.property_id if room else None,
        )


@dataclass
class ExpenseRecord:
    amount: float
    category: str
    date: date
    property_id: Optional[int] = None
    subcategory: Optional[str] = None
    description: str = ""
    vendor: Optional[str] = None

    @property
    def month(self) -> str:
        return self.date.strftime("%Y-%m")

    @classmethod
    def from_model(cls, expense):
        return cls(
            amount=_f(expense.amount),
            category=expense.category,
            date=expense.date,
            property_id=expense.property_id,
            subcategory=expense.subcategory,
            description=expense.description or "",
            vendor=expense.vendor,
        )


@dataclass
class ContractRecord:
    id: int
    room_id: int
    start_date: date
    end_date: Optional[date]
    status: str
    monthly_rent: float = 0.0

    @classmethod
    def from_model(cls, contract):
        return cls(
            id=contract.id,
            room_id=contract.room_id,
            start_date=contract.start_date,
            end_date=contract.end_date,
            status=contract.status,
            monthly_rent=_f(contract.monthly_rent),
        )


@dataclass
class RoomRecord:
    id: int
    property_id: int
    price: float = 0.0
    number: str = ""
    status: str = "AVAILABLE"

    @classmethod
    def from_model(cls, room):
        return cls(id=room.id, property_id=room.property_id, price=_f(room.price),
                   number=room.number, status=room.status)


@dataclass
class PropertyRecord:
    id: int
    name: str = ""
    initial_investment: Optional[float] = None
    year_built: Optional[int] = None
    room_count: int = 0

    @classmethod
    def from_model(cls, prop):
        return cls(
            id=prop.id,
            name=prop.name,
            initial_investment=float(prop.initial_investment) if prop.initial_investment is not None else None,
            year_built=prop.year_built,
            room_count=len(prop.rooms),
        )


@dataclass
class MaintenanceRecord:
    id: int
    category: str
    priority: str
    status: str
    submitted_at: datetime
    room_id: Optional[int] = None
    property_id: Optional[int] = None
    assigned_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    due_date: Optional[datetime] = None
    actual_cost: Optional[float] = None
    rating: Optional[int] = None
    vendor: Optional[str] = None

    @classmethod
    def from_model(cls, req):
        return cls(
            id=req.id,
            category=req.category,
            priority=req.priority,
            status=req.status,
            submitted_at=req.submitted_at or req.created_at,
            room_id=req.room_id,
            property_id=req.property_id,
            assigned_at=req.assigned_at,
            completed_at=req.completed_at,
            due_date=req.due_date,
            actual_cost=float(req.actual_cost) if req.actual_cost is not None else None,
            rating=req.rating,
            vendor=req.vendor,
        )
