"""Time-driven state transitions for contracts and payments."""
import logging
from datetime import date

from ..extensions import db
from ..models import Contract, Payment
from ..models.enums import ContractStatus, PaymentStatus

logger = logging.getLogger(__name__)


def expire_contracts(today=None):
    """Mark ACTIVE contracts whose end date has passed as EXPIRED and free their rooms."""
    today = today or date.today()
    contracts = Contract.query.filter(
        Contract.status == ContractStatus.ACTIVE.value,
        Contract.end_date < today,
    ).all()

    for contract in contracts:
        contract.expire()

    db.session.commit()
    if contracts:
        logger.info("Expired %d contracts", len(contracts))
    return contracts


def mark_overdue_payments(today=None):
    """Move PENDING and PARTIAL payments past their due date to OVERDUE."""
    today = today or date.today()
    payments = Payment.query.filter(
        Payment.status.in_([PaymentStatus.PENDING.value, PaymentStatus.PARTIAL.value]),
        Payment.due_date < today,
    ).all()

    for payment in payments:
        payment.status = PaymentStatus.OVERDUE.value

    db.session.commit()
    if payments:
        logger.info("Marked %d payments overdue", len(payments))
    return payments
