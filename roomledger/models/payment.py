from datetime import date, datetime

from ..extensions import db
from ..utils.serialization import iso, money
from .enums import PaymentMethod, PaymentStatus


class Payment(db.Model):
    __tablename__ = "payments"

    id = db.Column(db.Integer, primary_key=True)
    contract_id = db.Column(db.Integer, db.ForeignKey("contracts.id"), nullable=False, index=True)

    amount = db.Column(db.Numeric(12, 2), nullable=False)
    due_date = db.Column(db.Date, nullable=False, index=True)
    payment_date = db.Column(db.Date, nullable=True)
    method = db.Column(db.String(20), default=PaymentMethod.CASH.value)
    status = db.Column(db.String(20), default=PaymentStatus.PENDING.value, index=True)
    notes = db.Column(db.Text, nullable=True)
    receipt_path = db.Column(db.String(500), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Payment {self.id}: {self.amount} - {self.status}>"

    def serialize(self, include_contract=True):
        data = {
            "id": self.id,
            "contract_id": self.contract_id,
            "amount": money(self.amount),
            "due_date": iso(self.due_date),
            "payment_date": iso(self.payment_date),
            "method": self.method,
            "status": self.status,
            "notes": self.notes,
            "receipt_path": self.receipt_path,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }
        if include_contract and self.contract:
            data["contract"] = self.contract.summary()
        return data

    @property
    def is_paid(self):
        return self.status == PaymentStatus.PAID.value

    def is_overdue(self, today=None):
        today = today or date.today()
        return self.status != PaymentStatus.PAID.value and self.due_date < today

    def record(self, payment_date=None, method=None, receipt_path=None, notes=None):
        """Mark the payment as paid"""
        self.status = PaymentStatus.PAID.value
        self.payment_date = payment_date or date.today()
        if method:
            self.method = method
        if receipt_path:
            self.receipt_path = receipt_path
        if notes:
            self.notes = notes
