from datetime import datetime

from ..extensions import db
from ..utils.serialization import iso
from .enums import NotificationPriority, NotificationStatus


class Notification(db.Model):
    __tablename__ = "notifications"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    type = db.Column(db.String(40), nullable=False, index=True)
    title = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text, nullable=False)
    status = db.Column(db.String(20), default=NotificationStatus.UNREAD.value, index=True)
    priority = db.Column(db.String(20), default=NotificationPriority.NORMAL.value)
    related_id = db.Column(db.Integer, nullable=True)
    related_type = db.Column(db.String(40), nullable=True)
    action_url = db.Column(db.String(500), nullable=True)
    read_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = db.relationship("User", backref=db.backref("notifications", lazy=True, cascade="all, delete-orphan"))

    def __repr__(self):
        return f"<Notification {self.id}: {self.type} -> user {self.user_id}>"

    def mark_read(self):
        self.status = NotificationStatus.READ.value
        self.read_at = datetime.utcnow()

    def serialize(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "type": self.type,
            "title": self.title,
            "message": self.message,
            "status": self.status,
            "priority": self.priority,
            "related_id": self.related_id,
            "related_type": self.related_type,
            "action_url": self.action_url,
            "read_at": iso(self.read_at),
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
            "user": {
                "id": self.user.id,
                "name": self.user.name,
                "email": self.user.email,
            } if self.user else None,
        }
