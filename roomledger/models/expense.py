from datetime import datetime

from ..extensions import db
from ..utils.serialization import iso, money


class Expense(db.Model):
    __tablename__ = "expenses"

    id = db.Column(db.Integer, primary_key=True)
    property_id = db.Column(db.Integer, db.ForeignKey("properties.id"), nullable=False, index=True)
    category = db.Column(db.String(30), nullable=False, index=True)
    subcategory = db.Column(db.String(30), nullable=True)  # maintenance category for MAINTENANCE expenses
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    description = db.Column(db.String(500), nullable=False)
    date = db.Column(db.Date, nullable=False, index=True)
    vendor = db.Column(db.String(255), nullable=True)
    receipt_path = db.Column(db.String(500), nullable=True)
    is_recurring = db.Column(db.Boolean, default=False)
    recurring_frequency = db.Column(db.String(20), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Expense {self.id}: {self.category} {self.amount}>"

    def serialize(self):
        return {
            "id": self.id,
            "property_id": self.property_id,
            "category": self.category,
            "subcategory": self.subcategory,
            "amount": money(self.amount),
            "description": self.description,
            "date": iso(self.date),
            "vendor": self.vendor,
            "receipt_path": self.receipt_path,
            "is_recurring": self.is_recurring,
            "recurring_frequency": self.recurring_frequency,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
            "property": {
                "id": self.property.id,
                "name": self.property.name,
                "address": self.property.address,
            } if self.property else None,
        }
