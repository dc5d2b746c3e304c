from datetime import datetime

from werkzeug.security import check_password_hash, generate_password_hash

from ..extensions import db
from .enums import UserRole


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    role = db.Column(db.String(20), nullable=False, default=UserRole.RENTER.value)
    avatar = db.Column(db.String(500), nullable=True)
    is_active = db.Column(db.Boolean, default=True)

    # Set for RENTER accounts that map onto a renter profile
    renter_id = db.Column(db.Integer, db.ForeignKey("renters.id"), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    renter = db.relationship("Renter", backref=db.backref("user", uselist=False))

    def __repr__(self):
        return f"<User {self.id}: {self.email} ({self.role})>"

    def set_password(self, raw):
        self.password_hash = generate_password_hash(raw)

    def check_password(self, raw):
        return check_password_hash(self.password_hash, raw)

    @property
    def is_admin(self):
        return self.role == UserRole.ADMIN.value

    def serialize(self):
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "avatar": self.avatar,
            "renter_id": self.renter_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
