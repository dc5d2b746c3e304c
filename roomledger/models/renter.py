from datetime import datetime

from ..extensions import db
from ..utils.serialization import iso


class Renter(db.Model):
    __tablename__ = "renters"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=True, index=True)
    phone = db.Column(db.String(50), nullable=False)
    emergency_contact = db.Column(db.String(255), nullable=True)
    identity_number = db.Column(db.String(50), nullable=True)
    avatar = db.Column(db.String(500), nullable=True)
    room_id = db.Column(db.Integer, db.ForeignKey("rooms.id"), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    contracts = db.relationship("Contract", backref="renter", lazy=True)
    maintenance_requests = db.relationship("MaintenanceRequest", backref="renter", lazy=True)

    def __repr__(self):
        return f"<Renter {self.id}: {self.name}>"

    def summary(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "emergency_contact": self.emergency_contact,
        }

    def serialize(self):
        data = self.summary()
        data.update({
            "identity_number": self.identity_number,
            "avatar": self.avatar,
            "room_id": self.room_id,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        })
        return data
