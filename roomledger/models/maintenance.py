from datetime import datetime

from ..extensions import db
from ..utils.serialization import iso, money
from .enums import MaintenancePriority, MaintenanceStatus


class MaintenanceRequest(db.Model):
    __tablename__ = "maintenance_requests"

    id = db.Column(db.Integer, primary_key=True)

    # Request Information
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False, default="")
    category = db.Column(db.String(30), nullable=False, index=True)
    priority = db.Column(db.String(20), default=MaintenancePriority.MEDIUM.value, index=True)

    # Location / requester
    room_id = db.Column(db.Integer, db.ForeignKey("rooms.id"), nullable=False, index=True)
    renter_id = db.Column(db.Integer, db.ForeignKey("renters.id"), nullable=True, index=True)

    # Status and Assignment
    status = db.Column(db.String(20), default=MaintenanceStatus.SUBMITTED.value, index=True)
    assigned_to = db.Column(db.String(255), nullable=True)
    vendor = db.Column(db.String(100), nullable=True)
    assigned_at = db.Column(db.DateTime, nullable=True)
    due_date = db.Column(db.DateTime, nullable=True)
    estimated_completion = db.Column(db.DateTime, nullable=True)
    completed_at = db.Column(db.DateTime, nullable=True)

    actual_cost = db.Column(db.Numeric(12, 2), nullable=True)
    rating = db.Column(db.Integer, nullable=True)  # 1-5, given by the renter
    notes = db.Column(db.Text, nullable=True)
    images = db.Column(db.JSON, default=list)

    submitted_at = db.Column(db.DateTime, default=datetime.utcnow)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<MaintenanceRequest {self.id}: {self.title} - {self.status}>"

    @property
    def property_id(self):
        return self.room.property_id if self.room else None

    @property
    def is_closed(self):
        return self.status in (MaintenanceStatus.COMPLETED.value, MaintenanceStatus.CANCELLED.value)

    def serialize(self):
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "priority": self.priority,
            "status": self.status,
            "room_id": self.room_id,
            "renter_id": self.renter_id,
            "property_id": self.property_id,
            "assigned_to": self.assigned_to,
            "vendor": self.vendor,
            "assigned_at": iso(self.assigned_at),
            "due_date": iso(self.due_date),
            "estimated_completion": iso(self.estimated_completion),
            "completed_at": iso(self.completed_at),
            "actual_cost": money(self.actual_cost),
            "rating": self.rating,
            "notes": self.notes,
            "images": self.images or [],
            "submitted_at": iso(self.submitted_at),
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
            "renter": self.renter.summary() if self.renter else None,
            "room": self.room.serialize(include_property=True) if self.room else None,
        }

    def assign(self, assigned_to, estimated_completion=None, notes=None, vendor=None):
        """Assign the request and move it to IN_PROGRESS"""
        if self.is_closed:
            raise ValueError(f"Cannot assign a {self.status.lower()} request")
        self.assigned_to = assigned_to
        self.assigned_at = datetime.utcnow()
        self.status = MaintenanceStatus.IN_PROGRESS.value
        if vendor:
            self.vendor = vendor
        if estimated_completion:
            self.estimated_completion = estimated_completion
        if notes:
            self.notes = notes

    def complete(self, completion_notes=None, actual_cost=None, images=None):
        """Mark the request as completed"""
        if self.status == MaintenanceStatus.CANCELLED.value:
            raise ValueError("Cannot complete a cancelled request")
        self.status = MaintenanceStatus.COMPLETED.value
        self.completed_at = datetime.utcnow()
        if actual_cost is not None:
            self.actual_cost = actual_cost
        if completion_notes:
            self.notes = completion_notes
        if images:
            self.images = list(self.images or []) + list(images)
