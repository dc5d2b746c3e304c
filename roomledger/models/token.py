from datetime import datetime, timezone

from ..extensions import db


class RevokedToken(db.Model):
    __tablename__ = "revoked_tokens"

    id = db.Column(db.Integer, primary_key=True)
    jti = db.Column(db.String(64), unique=True, nullable=False, index=True)
    token_type = db.Column(db.String(10), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    # null when tokens are issued without an expiry
    expires_at = db.Column(db.DateTime, nullable=True, index=True)
    revoked_at = db.Column(db.DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<RevokedToken {self.token_type} {self.jti}>"

    @classmethod
    def is_revoked(cls, jti):
        return db.session.query(cls.id).filter_by(jti=jti).first() is not None

    @classmethod
    def revoke(cls, payload):
        """Record a decoded JWT payload; revoking the same token twice is a no-op."""
        if cls.is_revoked(payload["jti"]):
            return None
        token = cls(
            jti=payload["jti"],
            token_type=payload.get("type", "access"),
            user_id=int(payload["sub"]) if str(payload.get("sub", "")).isdigit() else None,
            expires_at=(
                datetime.fromtimestamp(payload["exp"], tz=timezone.utc).replace(tzinfo=None)
                if payload.get("exp") else None
            ),
        )
        db.session.add(token)
        return token

    @classmethod
    def prune(cls, now=None):
        """Drop entries whose token has expired anyway; returns how many were removed."""
        now = now or datetime.utcnow()
        return cls.query.filter(cls.expires_at < now).delete(synchronize_session=False)
