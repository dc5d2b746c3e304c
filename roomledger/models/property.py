from datetime import datetime

from ..extensions import db
from ..utils.serialization import iso, money
from .enums import ContractStatus, RoomStatus


class Property(db.Model):
    __tablename__ = "properties"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    address = db.Column(db.String(512), nullable=False)
    # users -> renters -> rooms -> properties -> users forms a cycle
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id", use_alter=True, name="fk_properties_user_id"), nullable=True
    )

    # Used by ROI and maintenance-risk analytics
    year_built = db.Column(db.Integer, nullable=True)
    initial_investment = db.Column(db.Numeric(12, 2), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    rooms = db.relationship("Room", backref="property", lazy=True, cascade="all, delete-orphan")
    expenses = db.relationship("Expense", backref="property", lazy=True, cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Property {self.id}: {self.name}>"

    def has_active_contracts(self):
        return any(room.active_contract is not None for room in self.rooms)

    def serialize(self):
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "user_id": self.user_id,
            "year_built": self.year_built,
            "initial_investment": money(self.initial_investment),
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
            "_count": {"rooms": len(self.rooms)},
        }


class Room(db.Model):
    __tablename__ = "rooms"

    id = db.Column(db.Integer, primary_key=True)
    property_id = db.Column(db.Integer, db.ForeignKey("properties.id"), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    number = db.Column(db.String(50), nullable=False)
    floor = db.Column(db.Integer, default=1)
    size = db.Column(db.Float, nullable=True)
    description = db.Column(db.Text, nullable=True)
    type = db.Column(db.String(50), nullable=True)
    price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    status = db.Column(db.String(20), default=RoomStatus.AVAILABLE.value, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    contracts = db.relationship("Contract", backref="room", lazy=True)
    maintenance_requests = db.relationship("MaintenanceRequest", backref="room", lazy=True)

    __table_args__ = (db.UniqueConstraint("property_id", "number"),)

    def __repr__(self):
        return f"<Room {self.id}: {self.number} at Property {self.property_id}>"

    @property
    def active_contract(self):
        for contract in self.contracts:
            if contract.status == ContractStatus.ACTIVE.value:
                return contract
        return None

    def has_history(self):
        return bool(self.contracts or self.maintenance_requests)

    def serialize(self, include_property=False):
        data = {
            "id": self.id,
            "property_id": self.property_id,
            "name": self.name,
            "number": self.number,
            "floor": self.floor,
            "size": self.size,
            "description": self.description,
            "type": self.type,
            "price": money(self.price),
            "status": self.status,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }
        if include_property and self.property:
            data["property"] = {
                "id": self.property.id,
                "name": self.property.name,
                "address": self.property.address,
            }
        return data
