"""
Tests for the contract lifecycle: creation, overlap checks, termination,
renewal and expiry.
"""

from datetime import timedelta

from roomledger.extensions import db
from roomledger.models import Contract
from roomledger.services.lifecycle import expire_contracts

API = "/api/v1"


def _new_contract(client, headers, renter_id, room_id, start, end, **extra):
    payload = {
        "renter_id": renter_id,
        "room_id": room_id,
        "start_date": start.isoformat(),
        "end_date": end.isoformat(),
        "monthly_rent": 1300,
    }
    payload.update(extra)
    return client.post(f"{API}/contracts", headers=headers, json=payload)


class TestCreateContract:
    def test_overlapping_active_contract_is_rejected(self, client, seed, admin_headers):
        resp = _new_contract(client, admin_headers, seed.other_renter.id, seed.room_a.id,
                             seed.today, seed.today + timedelta(days=365))

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "room_unavailable"

    def test_create_occupies_room(self, client, seed, admin_headers):
        resp = _new_contract(client, admin_headers, seed.other_renter.id, seed.room_b.id,
                             seed.today, seed.today + timedelta(days=365))

        assert resp.status_code == 201
        data = resp.get_json()["data"]
        assert data["status"] == "ACTIVE"
        assert data["room"]["status"] == "OCCUPIED"
        assert seed.other_renter.room_id == seed.room_b.id

    def test_end_before_start(self, client, seed, admin_headers):
        resp = _new_contract(client, admin_headers, seed.other_renter.id, seed.room_b.id,
                             seed.today, seed.today - timedelta(days=1))
        assert resp.status_code == 400

    def test_generate_payments_on_create(self, client, seed, admin_headers):
        resp = _new_contract(client, admin_headers, seed.other_renter.id, seed.room_b.id,
                             seed.today, seed.today + timedelta(days=365),
                             generate_payments=True, months=3)

        payments = resp.get_json()["data"]["payments"]
        assert len(payments) == 3
        assert payments[0]["due_date"] == seed.today.isoformat()
        assert all(p["status"] == "PENDING" for p in payments)

    def test_draft_does_not_occupy_room(self, client, seed, admin_headers):
        resp = _new_contract(client, admin_headers, seed.other_renter.id, seed.room_b.id,
                             seed.today, seed.today + timedelta(days=365), status="DRAFT")

        assert resp.status_code == 201
        assert resp.get_json()["data"]["room"]["status"] == "AVAILABLE"


class TestContractTransitions:
    def test_terminate_requires_reason(self, client, seed, admin_headers):
        resp = client.post(f"{API}/contracts/{seed.contract.id}/terminate", headers=admin_headers, json={})
        assert resp.status_code == 400

    def test_terminate_frees_room(self, client, seed, admin_headers):
        resp = client.post(f"{API}/contracts/{seed.contract.id}/terminate", headers=admin_headers,
                           json={"reason": "Moving abroad"})

        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["status"] == "TERMINATED"
        assert data["termination_reason"] == "Moving abroad"
        assert data["termination_date"] == seed.today.isoformat()

        room = client.get(f"{API}/rooms/{seed.room_a.id}", headers=admin_headers).get_json()["data"]
        assert room["status"] == "AVAILABLE"
        assert room["active_contract"] is None

    def test_terminate_twice(self, client, seed, admin_headers):
        url = f"{API}/contracts/{seed.contract.id}/terminate"
        client.post(url, headers=admin_headers, json={"reason": "first"})

        resp = client.post(url, headers=admin_headers, json={"reason": "again"})
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "invalid_state"

    def test_renew_extends_end_date(self, client, seed, admin_headers):
        new_end = seed.today + timedelta(days=700)
        resp = client.post(f"{API}/contracts/{seed.contract.id}/renew", headers=admin_headers,
                           json={"new_end_date": new_end.isoformat(), "monthly_rent": 1050})

        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["end_date"] == new_end.isoformat()
        assert data["monthly_rent"] == 1050.0

    def test_renew_must_move_end_date_forward(self, client, seed, admin_headers):
        resp = client.post(f"{API}/contracts/{seed.contract.id}/renew", headers=admin_headers,
                           json={"new_end_date": seed.today.isoformat()})
        assert resp.status_code == 400

    def test_expiring_window(self, client, seed, admin_headers):
        resp = client.get(f"{API}/contracts/expiring?days=365", headers=admin_headers)
        data = resp.get_json()["data"]
        assert [c["id"] for c in data] == [seed.contract.id]
        assert data[0]["days_until_expiration"] == 300

        assert client.get(f"{API}/contracts/expiring?days=30", headers=admin_headers).get_json()["data"] == []
        assert client.get(f"{API}/contracts/expiring?days=400", headers=admin_headers).status_code == 400

    def test_handle_expiration(self, client, seed, admin_headers):
        _new_contract(client, admin_headers, seed.other_renter.id, seed.room_b.id,
                      seed.today - timedelta(days=400), seed.today - timedelta(days=10))

        resp = client.post(f"{API}/contracts/handle-expiration", headers=admin_headers)

        assert resp.get_json()["data"]["expired_count"] == 1
        room = client.get(f"{API}/rooms/{seed.room_b.id}", headers=admin_headers).get_json()["data"]
        assert room["status"] == "AVAILABLE"

    def test_expire_contracts_leaves_current_ones(self, seed):
        expired = expire_contracts(today=seed.today)

        assert expired == []
        assert db.session.get(Contract, seed.contract.id).status == "ACTIVE"

    def test_delete_frees_room(self, client, seed, admin_headers):
        resp = client.delete(f"{API}/contracts/{seed.contract.id}", headers=admin_headers)

        assert resp.status_code == 200
        assert seed.room_a.status == "AVAILABLE"


class TestContractAccess:
    def test_renter_lists_only_own_contracts(self, client, seed, admin_headers, renter_headers):
        _new_contract(client, admin_headers, seed.other_renter.id, seed.room_b.id,
                      seed.today, seed.today + timedelta(days=365))

        resp = client.get(f"{API}/contracts", headers=renter_headers)
        assert [c["renter_id"] for c in resp.get_json()["data"]] == [seed.renter.id]

        everything = client.get(f"{API}/contracts", headers=admin_headers).get_json()
        assert everything["pagination"]["totalItems"] == 2

    def test_renter_cannot_read_other_contract(self, client, seed, admin_headers, renter_headers):
        other = _new_contract(client, admin_headers, seed.other_renter.id, seed.room_b.id,
                              seed.today, seed.today + timedelta(days=365)).get_json()["data"]

        resp = client.get(f"{API}/contracts/{other['id']}", headers=renter_headers)
        assert resp.status_code == 403

    def test_search_by_renter_name(self, client, seed, admin_headers):
        resp = client.get(f"{API}/contracts?search=linh", headers=admin_headers)
        assert resp.get_json()["pagination"]["totalItems"] == 1

    def test_renter_cannot_create(self, client, seed, renter_headers):
        resp = _new_contract(client, renter_headers, seed.renter.id, seed.room_b.id,
                             seed.today, seed.today + timedelta(days=30))
        assert resp.status_code == 403


class TestSharedRoom:
    """A room with one current contract and one queued after it."""

    def _queued(self, client, seed, admin_headers):
        start = seed.today + timedelta(days=301)
        resp = _new_contract(client, admin_headers, seed.other_renter.id, seed.room_a.id,
                             start, start + timedelta(days=365))
        assert resp.status_code == 201
        return resp.get_json()["data"]

    def test_renew_into_queued_contract_is_rejected(self, client, seed, admin_headers):
        self._queued(client, seed, admin_headers)
        original_end = seed.contract.end_date

        resp = client.post(f"{API}/contracts/{seed.contract.id}/renew", headers=admin_headers,
                           json={"new_end_date": (seed.today + timedelta(days=401)).isoformat()})

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "room_unavailable"
        assert db.session.get(Contract, seed.contract.id).end_date == original_end

    def test_terminating_one_keeps_room_occupied(self, client, seed, admin_headers):
        queued = self._queued(client, seed, admin_headers)

        resp = client.post(f"{API}/contracts/{queued['id']}/terminate", headers=admin_headers,
                           json={"reason": "Changed plans"})

        assert resp.status_code == 200
        room = client.get(f"{API}/rooms/{seed.room_a.id}", headers=admin_headers).get_json()["data"]
        assert room["status"] == "OCCUPIED"
        assert room["active_contract"]["id"] == seed.contract.id
        assert seed.other_renter.room_id is None
        assert seed.renter.room_id == seed.room_a.id

    def test_expiring_one_keeps_room_occupied(self, seed):
        stale = Contract(
            renter=seed.other_renter,
            room=seed.room_a,
            start_date=seed.today - timedelta(days=400),
            end_date=seed.today - timedelta(days=61),
            monthly_rent=900,
        )
        db.session.add(stale)
        stale.activate()
        db.session.commit()

        expired = expire_contracts(today=seed.today)

        assert [c.id for c in expired] == [stale.id]
        assert seed.room_a.status == "OCCUPIED"
        assert seed.other_renter.room_id is None
        assert seed.renter.room_id == seed.room_a.id


class TestRenterRoomLink:
    def test_terminate_clears_current_room(self, client, seed, admin_headers):
        client.post(f"{API}/contracts/{seed.contract.id}/terminate", headers=admin_headers,
                    json={"reason": "Moving abroad"})

        assert seed.renter.room_id is None

    def test_renewing_expired_contract_restores_room(self, client, seed, admin_headers):
        seed.contract.expire()
        db.session.commit()
        assert seed.renter.room_id is None

        resp = client.post(f"{API}/contracts/{seed.contract.id}/renew", headers=admin_headers,
                           json={"new_end_date": (seed.today + timedelta(days=500)).isoformat()})

        assert resp.status_code == 200
        assert resp.get_json()["data"]["status"] == "ACTIVE"
        assert seed.renter.room_id == seed.room_a.id
        assert seed.room_a.status == "OCCUPIED"
