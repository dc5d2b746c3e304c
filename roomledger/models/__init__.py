from ..extensions import db

# Core Models
from .user import User
from .property import Property, Room
from .renter import Renter
from .contract import Contract
from .payment import Payment
from .expense import Expense
from .maintenance import MaintenanceRequest
from .notification import Notification
from .document import Document
from .token import RevokedToken

__all__ = [
    "db",
    "User",
    "Property",
    "Room",
    "Renter",
    "Contract",
    "Payment",
    "Expense",
    "MaintenanceRequest",
    "Notification",
    "Document",
    "RevokedToken",
]
