from datetime import date, datetime

from dateutil.relativedelta import relativedelta

from ..extensions import db
from ..utils.serialization import iso, money
from .enums import ContractStatus, ContractType, PaymentStatus, RoomStatus


class Contract(db.Model):
    __tablename__ = "contracts"

    id = db.Column(db.Integer, primary_key=True)
    renter_id = db.Column(db.Integer, db.ForeignKey("renters.id"), nullable=False, index=True)
    room_id = db.Column(db.Integer, db.ForeignKey("rooms.id"), nullable=False, index=True)

    # Contract Terms
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    monthly_rent = db.Column(db.Numeric(12, 2), nullable=False)
    security_deposit = db.Column(db.Numeric(12, 2), default=0)
    contract_type = db.Column(db.String(20), default=ContractType.LONG_TERM.value)
    terms = db.Column(db.Text, nullable=True)
    document_path = db.Column(db.String(500), nullable=True)

    # Status
    status = db.Column(db.String(20), default=ContractStatus.DRAFT.value, index=True)
    termination_reason = db.Column(db.String(500), nullable=True)
    termination_date = db.Column(db.Date, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    payments = db.relationship("Payment", backref="contract", lazy=True, cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Contract {self.id}: {self.start_date} to {self.end_date} ({self.status})>"

    def summary(self):
        return {
            "id": self.id,
            "monthly_rent": money(self.monthly_rent),
            "start_date": iso(self.start_date),
            "end_date": iso(self.end_date),
            "status": self.status,
            "terms": self.terms,
            "renter": self.renter.summary() if self.renter else None,
            "room": self.room.serialize(include_property=True) if self.room else None,
        }

    def serialize(self, include_payments=False):
        data = {
            "id": self.id,
            "renter_id": self.renter_id,
            "room_id": self.room_id,
            "start_date": iso(self.start_date),
            "end_date": iso(self.end_date),
            "monthly_rent": money(self.monthly_rent),
            "security_deposit": money(self.security_deposit),
            "status": self.status,
            "contract_type": self.contract_type,
            "terms": self.terms,
            "document_path": self.document_path,
            "termination_reason": self.termination_reason,
            "termination_date": iso(self.termination_date),
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
            "room": self.room.serialize(include_property=True) if self.room else None,
            "renter": self.renter.summary() if self.renter else None,
        }
        if include_payments:
            data["payments"] = [p.serialize(include_contract=False) for p in self.payments]
        return data

    @property
    def is_active(self):
        return self.status == ContractStatus.ACTIVE.value

    def days_until_expiration(self, today=None):
        today = today or date.today()
        return (self.end_date - today).days

    def overlaps(self, start_date, end_date):
        return self.start_date <= end_date and start_date <= self.end_date

    def activate(self):
        """Activate the contract and occupy its room"""
        self.status = ContractStatus.ACTIVE.value
        if self.room:
            self.room.status = RoomStatus.OCCUPIED.value
            if self.renter:
                self.renter.room_id = self.room.id

    def release_room(self):
        """
        Free the room and the renter's current-room link once no other
        ACTIVE contract still holds them.
        """
        others = [c for c in (self.room.contracts if self.room else []) if c is not self and c.is_active]
        if self.room and not others:
            self.room.status = RoomStatus.AVAILABLE.value

        renter = self.renter
        if renter and renter.room_id == self.room_id:
            if not any(c is not self and c.is_active and c.room_id == self.room_id for c in renter.contracts):
                renter.room_id = None

    def terminate(self, reason=None, termination_date=None):
        """Terminate the contract and free its room"""
        self.status = ContractStatus.TERMINATED.value
        self.termination_reason = reason
        self.termination_date = termination_date or date.today()
        self.release_room()

    def expire(self):
        self.status = ContractStatus.EXPIRED.value
        self.release_room()

    def renew(self, new_end_date, monthly_rent=None, terms=None):
        """Extend the contract; an expired contract becomes active again"""
        if new_end_date <= self.end_date:
            raise ValueError("New end date must be after the current end date")
        self.end_date = new_end_date
        if monthly_rent is not None:
            self.monthly_rent = monthly_rent
        if terms is not None:
            self.terms = terms
        if self.status == ContractStatus.EXPIRED.value:
            self.activate()

    def generate_recurring_payments(self, months=12):
        """Create PENDING monthly payments, skipping due dates that already exist"""
        from .payment import Payment

        existing = {p.due_date for p in self.payments}
        created = []

        for i in range(months):
            due_date = self.start_date + relativedelta(months=i)
            # Don't create payments past the contract end date
            if due_date > self.end_date:
                break
            if due_date in existing:
                continue

            payment = Payment(
                contract=self,
                amount=self.monthly_rent,
                due_date=due_date,
                status=PaymentStatus.PENDING.value,
            )
            db.session.add(payment)
            created.append(payment)

        return created
