"""Shared pytest fixtures for the test suite.

Fixture overview
----------------
app             : application on in-memory sqlite, app context pushed
client          : Flask test client
seed            : one property with two rooms, a renter with an active
                  contract on room 101 and a renter login linked to it
admin_headers   : Authorization header for the admin user
renter_headers  : Authorization header for the renter user
"""

from datetime import date, timedelta
from types import SimpleNamespace

import pytest
from flask_jwt_extended import create_access_token

from roomledger import create_app
from roomledger.config import TestingConfig
from roomledger.extensions import db
from roomledger.models import Contract, Property, Renter, Room, User
from roomledger.models.enums import ContractStatus, RoomStatus, UserRole


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def _user(email, role, renter=None):
    user = User(email=email, name=email.split("@")[0].title(), role=role, renter=renter)
    user.set_password("secret123")
    db.session.add(user)
    return user


@pytest.fixture
def seed(app):
    today = date.today()

    admin = _user("admin@example.com", UserRole.ADMIN.value)
    db.session.flush()

    prop = Property(name="Sunrise House", address="12 Main St", user_id=admin.id, year_built=1995)
    room_a = Room(property=prop, name="Room A", number="101", floor=1, price=1000)
    room_b = Room(property=prop, name="Room B", number="102", floor=1, price=1300)
    db.session.add_all([prop, room_a, room_b])
    db.session.flush()

    renter = Renter(name="Linh Tran", phone="0900000001", email="linh@example.com", room_id=room_a.id)
    other_renter = Renter(name="Bao Nguyen", phone="0900000002", email="bao@example.com")
    db.session.add_all([renter, other_renter])

    contract = Contract(
        renter=renter,
        room=room_a,
        start_date=today - timedelta(days=60),
        end_date=today + timedelta(days=300),
        monthly_rent=1000,
        security_deposit=1000,
        status=ContractStatus.DRAFT.value,
    )
    db.session.add(contract)
    contract.activate()

    renter_user = _user("linh@example.com", UserRole.RENTER.value, renter=renter)
    db.session.commit()

    assert room_a.status == RoomStatus.OCCUPIED.value
    return SimpleNamespace(
        admin=admin,
        renter_user=renter_user,
        property=prop,
        room_a=room_a,
        room_b=room_b,
        renter=renter,
        other_renter=other_renter,
        contract=contract,
        today=today,
    )


def _headers(user):
    token = create_access_token(
        identity=str(user.id), additional_claims={"email": user.email, "role": user.role}
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(seed):
    return _headers(seed.admin)


@pytest.fixture
def renter_headers(seed):
    return _headers(seed.renter_user)
