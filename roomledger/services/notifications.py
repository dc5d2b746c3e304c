"""
Notification generators.

Each generator writes Notification rows for the affected users and returns
them. The same (user, type, related_id, title) is never stored twice on one
day, so the generators are safe to run from a cron job as often as needed.
"""
import logging
from datetime import date, datetime, time, timedelta

from ..extensions import db
from ..models import Contract, Notification, Payment, User
from ..models.enums import (
    ContractStatus, MaintenancePriority, NotificationPriority, NotificationType, PaymentStatus,
    UserRole,
)

logger = logging.getLogger(__name__)

CONTRACT_WARNING_DAYS = 90
PAYMENT_DUE_DAYS = (7, 3, 1, 0)
PAYMENT_OVERDUE_DAYS = (1, 3, 7, 14, 30)


def _already_sent(user_id, type_, related_id, title):
    start = datetime.combine(datetime.utcnow().date(), time.min)
    return db.session.query(Notification.id).filter(
        Notification.user_id == user_id,
        Notification.type == type_,
        Notification.related_id == related_id,
        Notification.title == title,
        Notification.created_at >= start,
        Notification.created_at < start + timedelta(days=1),
    ).first() is not None


def notify(user_id, type_, title, message, priority=NotificationPriority.NORMAL.value,
           related_id=None, related_type=None, action_url=None):
    """Queue a notification unless an identical one went out today."""
    if _already_sent(user_id, type_, related_id, title):
        return None
    notification = Notification(
        user_id=user_id,
        type=type_,
        title=title,
        message=message,
        priority=priority,
        related_id=related_id,
        related_type=related_type,
        action_url=action_url,
    )
    db.session.add(notification)
    # flush so the duplicate check sees rows queued earlier in this run
    db.session.flush()
    return notification


def _admin_ids():
    return [u.id for u in User.query.filter_by(role=UserRole.ADMIN.value, is_active=True).all()]


def _renter_user_id(renter):
    if renter is not None and renter.user is not None:
        return renter.user.id
    return None


def _notify_many(user_ids, *args, **kwargs):
    created = []
    for user_id in user_ids:
        if user_id is None:
            continue
        notification = notify(user_id, *args, **kwargs)
        if notification is not None:
            created.append(notification)
    return created


def _where(contract):
    room = contract.room
    prop = room.property if room else None
    return f"room {room.number if room else '?'} ({prop.name if prop else 'unknown property'})"


def contract_expiry_notifications(today=None):
    today = today or date.today()
    contracts = Contract.query.filter(
        Contract.status == ContractStatus.ACTIVE.value,
        Contract.end_date > today,
        Contract.end_date <= today + timedelta(days=CONTRACT_WARNING_DAYS),
    ).all()

    created = []
    for contract in contracts:
        days = contract.days_until_expiration(today)
        if days <= 7:
            priority = NotificationPriority.URGENT.value
        elif days <= 30:
            priority = NotificationPriority.HIGH.value
        else:
            priority = NotificationPriority.NORMAL.value

        title = "Contract Expiring Soon" if days <= 7 else f"Contract Expiring in {days} days"
        renter_name = contract.renter.name if contract.renter else "renter"
        message = (
            f"Contract for {renter_name} in {_where(contract)} expires on {contract.end_date.isoformat()}. "
            + ("Immediate action required!" if days <= 7 else "Consider initiating renewal process.")
        )
        recipients = _admin_ids() + [_renter_user_id(contract.renter)]
        created += _notify_many(
            recipients, NotificationType.CONTRACT_EXPIRING.value, title, message, priority,
            related_id=contract.id, related_type="contract", action_url=f"/contracts/{contract.id}",
        )
    return created


def payment_due_notifications(today=None):
    today = today or date.today()
    due_dates = [today + timedelta(days=d) for d in PAYMENT_DUE_DAYS]
    payments = Payment.query.filter(
        Payment.status.in_([PaymentStatus.PENDING.value, PaymentStatus.PARTIAL.value]),
        Payment.due_date.in_(due_dates),
    ).all()

    created = []
    for payment in payments:
        days = (payment.due_date - today).days
        if days <= 1:
            priority = NotificationPriority.HIGH.value
        elif days <= 3:
            priority = NotificationPriority.NORMAL.value
        else:
            priority = NotificationPriority.LOW.value

        title = "Payment Due Today" if days <= 0 else f"Payment Due in {days} day{'s' if days > 1 else ''}"
        message = (
            f"Your rent payment of ${float(payment.amount):.2f} is due on {payment.due_date.isoformat()}. "
            "Please make your payment to avoid late fees."
        )
        created += _notify_many(
            [_renter_user_id(payment.contract.renter)], NotificationType.PAYMENT_DUE.value, title, message,
            priority, related_id=payment.id, related_type="payment", action_url=f"/payments/{payment.id}",
        )
    return created


def payment_overdue_notifications(today=None):
    today = today or date.today()
    due_dates = [today - timedelta(days=d) for d in PAYMENT_OVERDUE_DAYS]
    payments = Payment.query.filter(
        Payment.status != PaymentStatus.PAID.value,
        Payment.due_date.in_(due_dates),
    ).all()

    created = []
    for payment in payments:
        days = (today - payment.due_date).days
        plural = "s" if days > 1 else ""
        title = f"Payment Overdue - {days} day{plural}"
        message = (
            f"Rent payment of ${float(payment.amount):.2f} was due on {payment.due_date.isoformat()} "
            f"and is now {days} day{plural} overdue."
        )
        recipients = [_renter_user_id(payment.contract.renter)] + _admin_ids()
        created += _notify_many(
            recipients, NotificationType.PAYMENT_OVERDUE.value, title, message,
            NotificationPriority.URGENT.value,
            related_id=payment.id, related_type="payment", action_url=f"/payments/{payment.id}",
        )
    return created


def maintenance_request_created(request_obj):
    """Tell the admins about a new request; URGENT ones go out as emergencies."""
    room = request_obj.room
    where = f"Room {room.number} at {room.property.name}" if room and room.property else "an unknown room"
    who = request_obj.renter.name if request_obj.renter else "Management"

    if request_obj.priority == MaintenancePriority.URGENT.value:
        type_ = NotificationType.MAINTENANCE_EMERGENCY.value
        title = "Emergency Maintenance Request"
        message = f"URGENT: {who} has reported an emergency maintenance issue in {where}: \"{request_obj.title}\""
        priority = NotificationPriority.URGENT.value
    else:
        type_ = NotificationType.MAINTENANCE_REQUEST.value
        title = "New Maintenance Request"
        message = (
            f"{who} has submitted a {request_obj.priority.lower()} priority maintenance request "
            f"for {where}: \"{request_obj.title}\""
        )
        priority = (
            NotificationPriority.HIGH.value
            if request_obj.priority == MaintenancePriority.HIGH.value
            else NotificationPriority.NORMAL.value
        )

    return _notify_many(
        _admin_ids(), type_, title, message, priority,
        related_id=request_obj.id, related_type="maintenance", action_url=f"/maintenance/{request_obj.id}",
    )


def maintenance_request_completed(request_obj):
    message = f"Your maintenance request \"{request_obj.title}\" has been successfully completed"
    if request_obj.notes:
        message += f". Notes: {request_obj.notes}"
    return _notify_many(
        [_renter_user_id(request_obj.renter)], NotificationType.MAINTENANCE_COMPLETED.value,
        "Maintenance Request Completed", message, NotificationPriority.NORMAL.value,
        related_id=request_obj.id, related_type="maintenance", action_url=f"/maintenance/{request_obj.id}",
    )


def generate_all(today=None):
    """Run every scheduled generator and commit. Returns counts per generator."""
    today = today or date.today()
    counts = {
        "contract_expiring": len(contract_expiry_notifications(today)),
        "payment_due": len(payment_due_notifications(today)),
        "payment_overdue": len(payment_overdue_notifications(today)),
    }
    db.session.commit()
    logger.info("Generated notifications: %s", counts)
    return counts
