from datetime import datetime

from ..extensions import db
from ..utils.serialization import iso


class Document(db.Model):
    """A stored file attached to a property, room, renter or contract."""

    __tablename__ = "documents"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    type = db.Column(db.String(20), nullable=False, index=True)
    path = db.Column(db.String(500), nullable=False)
    content_type = db.Column(db.String(100), nullable=True)
    size = db.Column(db.Integer, nullable=True)

    # Polymorphic owner: entity_type names the table, entity_id the row
    entity_type = db.Column(db.String(20), nullable=False)
    entity_id = db.Column(db.Integer, nullable=False)
    uploaded_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (db.Index("ix_documents_entity", "entity_type", "entity_id"),)

    def __repr__(self):
        return f"<Document {self.id}: {self.name} ({self.entity_type} {self.entity_id})>"

    def serialize(self):
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "path": self.path,
            "content_type": self.content_type,
            "size": self.size,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "uploaded_by": self.uploaded_by,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }
