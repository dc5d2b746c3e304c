"""
Tests for the property, room and renter resources.
"""

API = "/api/v1"


class TestProperties:
    def test_create_property(self, client, seed, admin_headers):
        resp = client.post(f"{API}/properties", headers=admin_headers, json={
            "name": "Riverside Lofts",
            "address": "8 River Rd",
            "year_built": 2010,
            "initial_investment": 250000,
        })

        assert resp.status_code == 201
        data = resp.get_json()["data"]
        assert data["user_id"] == seed.admin.id
        assert data["initial_investment"] == 250000.0
        assert data["_count"] == {"rooms": 0}

    def test_renter_cannot_create_property(self, client, renter_headers):
        resp = client.post(f"{API}/properties", headers=renter_headers, json={"name": "X", "address": "Y"})
        assert resp.status_code == 403

    def test_list_is_paginated_and_searchable(self, client, seed, renter_headers):
        resp = client.get(f"{API}/properties?search=sunrise", headers=renter_headers)

        body = resp.get_json()
        assert resp.status_code == 200
        assert [p["name"] for p in body["data"]] == ["Sunrise House"]
        assert body["pagination"] == {"currentPage": 1, "totalPages": 1, "totalItems": 1, "itemsPerPage": 10}

    def test_get_property_includes_rooms(self, client, seed, admin_headers):
        resp = client.get(f"{API}/properties/{seed.property.id}", headers=admin_headers)
        assert sorted(r["number"] for r in resp.get_json()["data"]["rooms"]) == ["101", "102"]

    def test_unknown_property(self, client, admin_headers):
        resp = client.get(f"{API}/properties/999", headers=admin_headers)
        assert resp.status_code == 404
        assert resp.get_json()["error"] == "not_found"

    def test_cannot_delete_with_active_contract(self, client, seed, admin_headers):
        resp = client.delete(f"{API}/properties/{seed.property.id}", headers=admin_headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "cannot_delete"

    def test_update_property(self, client, seed, admin_headers):
        resp = client.patch(f"{API}/properties/{seed.property.id}", headers=admin_headers,
                            json={"name": "Sunrise Residence"})
        assert resp.status_code == 200
        assert resp.get_json()["data"]["name"] == "Sunrise Residence"


class TestRooms:
    def test_duplicate_number_conflicts(self, client, seed, admin_headers):
        resp = client.post(f"{API}/rooms", headers=admin_headers, json={
            "property_id": seed.property.id, "name": "Dup", "number": "101", "price": 900,
        })
        assert resp.status_code == 409

    def test_create_room(self, client, seed, admin_headers):
        resp = client.post(f"{API}/rooms", headers=admin_headers, json={
            "property_id": seed.property.id, "name": "Room C", "number": "103", "price": 1100, "floor": 2,
        })

        assert resp.status_code == 201
        data = resp.get_json()["data"]
        assert data["status"] == "AVAILABLE"
        assert data["property"]["name"] == "Sunrise House"

    def test_room_shows_active_contract(self, client, seed, admin_headers):
        data = client.get(f"{API}/rooms/{seed.room_a.id}", headers=admin_headers).get_json()["data"]
        assert data["status"] == "OCCUPIED"
        assert data["active_contract"]["renter"]["name"] == "Linh Tran"

    def test_filter_by_status(self, client, seed, admin_headers):
        resp = client.get(f"{API}/rooms?status=available", headers=admin_headers)
        assert [r["number"] for r in resp.get_json()["data"]] == ["102"]

    def test_invalid_status_filter(self, client, seed, admin_headers):
        resp = client.get(f"{API}/rooms?status=haunted", headers=admin_headers)
        assert resp.status_code == 400

    def test_delete_rules(self, client, seed, admin_headers):
        assert client.delete(f"{API}/rooms/{seed.room_a.id}", headers=admin_headers).status_code == 400
        assert client.delete(f"{API}/rooms/{seed.room_b.id}", headers=admin_headers).status_code == 200


class TestRenters:
    def test_renter_sees_own_profile_only(self, client, seed, renter_headers):
        own = client.get(f"{API}/renters/{seed.renter.id}", headers=renter_headers)
        other = client.get(f"{API}/renters/{seed.other_renter.id}", headers=renter_headers)

        assert own.status_code == 200
        assert len(own.get_json()["data"]["contracts"]) == 1
        assert other.status_code == 403

    def test_list_requires_admin(self, client, renter_headers):
        assert client.get(f"{API}/renters", headers=renter_headers).status_code == 403

    def test_create_requires_name_and_phone(self, client, admin_headers):
        resp = client.post(f"{API}/renters", headers=admin_headers, json={"name": "No Phone"})
        assert resp.status_code == 400

    def test_delete_rules(self, client, seed, admin_headers):
        assert client.delete(f"{API}/renters/{seed.renter.id}", headers=admin_headers).status_code == 400
        assert client.delete(f"{API}/renters/{seed.other_renter.id}", headers=admin_headers).status_code == 200


class TestDeleteHistory:
    def _terminate(self, client, seed, admin_headers):
        client.post(f"{API}/contracts/{seed.contract.id}/terminate", headers=admin_headers,
                    json={"reason": "Moved out"})

    def test_room_with_past_contract_is_kept(self, client, seed, admin_headers):
        self._terminate(client, seed, admin_headers)

        resp = client.delete(f"{API}/rooms/{seed.room_a.id}", headers=admin_headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "cannot_delete"

    def test_property_with_past_contract_is_kept(self, client, seed, admin_headers):
        self._terminate(client, seed, admin_headers)

        resp = client.delete(f"{API}/properties/{seed.property.id}", headers=admin_headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "cannot_delete"

    def test_room_with_maintenance_history_is_kept(self, client, seed, admin_headers):
        client.post(f"{API}/maintenance", headers=admin_headers, json={
            "title": "Paint walls", "category": "REPAIRS", "room_id": seed.room_b.id,
        })

        resp = client.delete(f"{API}/rooms/{seed.room_b.id}", headers=admin_headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "cannot_delete"

    def test_property_without_history_is_deleted(self, client, seed, admin_headers):
        prop = client.post(f"{API}/properties", headers=admin_headers,
                           json={"name": "Harbor View", "address": "3 Dock St"}).get_json()["data"]
        client.post(f"{API}/rooms", headers=admin_headers, json={
            "property_id": prop["id"], "name": "Room 1", "number": "1", "price": 800,
        })

        resp = client.delete(f"{API}/properties/{prop['id']}", headers=admin_headers)

        assert resp.status_code == 200
        assert client.get(f"{API}/properties/{prop['id']}", headers=admin_headers).status_code == 404
