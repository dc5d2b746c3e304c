"""
Tests for document upload, listing, download and deletion, and for the
purge of stored files when their owner is deleted.
"""

import io
import os

import pytest

from roomledger.extensions import db
from roomledger.models import Contract, Document

API = "/api/v1"


@pytest.fixture(autouse=True)
def upload_folder(app, tmp_path):
    app.config["UPLOAD_FOLDER"] = str(tmp_path)
    return tmp_path


def _upload(client, headers, entity_type, entity_id, doc_type="OTHER", filename="lease.pdf",
            content=b"%PDF-1.4 test"):
    data = {"type": doc_type, "entityType": entity_type, "entityId": str(entity_id)}
    if filename is not None:
        data["file"] = (io.BytesIO(content), filename)
    return client.post(f"{API}/documents/upload", headers=headers, data=data, content_type="multipart/form-data")


class TestUpload:
    def test_contract_document_is_linked_to_contract(self, client, seed, admin_headers, upload_folder):
        resp = _upload(client, admin_headers, "CONTRACT", seed.contract.id, doc_type="CONTRACT")

        assert resp.status_code == 201
        data = resp.get_json()["data"]
        assert data["name"] == "lease.pdf"
        assert data["type"] == "CONTRACT"
        assert data["entity_type"] == "CONTRACT"
        assert data["size"] == len(b"%PDF-1.4 test")
        assert data["uploaded_by"] == seed.admin.id
        assert os.path.dirname(data["path"]) == str(upload_folder)
        assert db.session.get(Contract, seed.contract.id).document_path == data["path"]

    def test_list_by_entity(self, client, seed, admin_headers):
        _upload(client, admin_headers, "PROPERTY", seed.property.id)
        _upload(client, admin_headers, "ROOM", seed.room_a.id, filename="floorplan.png")

        resp = client.get(f"{API}/documents?entityType=ROOM&entityId={seed.room_a.id}", headers=admin_headers)

        body = resp.get_json()
        assert [d["name"] for d in body["data"]] == ["floorplan.png"]
        assert body["pagination"]["totalItems"] == 1

    def test_disallowed_extension(self, client, seed, admin_headers):
        resp = _upload(client, admin_headers, "RENTER", seed.renter.id, filename="script.exe")
        assert resp.status_code == 400
        assert "File type not allowed" in resp.get_json()["message"]

    def test_missing_file(self, client, seed, admin_headers):
        resp = _upload(client, admin_headers, "RENTER", seed.renter.id, filename=None)
        assert resp.status_code == 400

    def test_unknown_entity(self, client, seed, admin_headers):
        assert _upload(client, admin_headers, "ROOM", 999).status_code == 404

    def test_bad_entity_type(self, client, seed, admin_headers):
        resp = _upload(client, admin_headers, "CAR", seed.room_a.id)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "validation_error"


class TestRenterAccess:
    def test_renter_uploads_to_own_profile(self, client, seed, renter_headers):
        resp = _upload(client, renter_headers, "RENTER", seed.renter.id, doc_type="ID_CARD", filename="id.jpg")
        assert resp.status_code == 201
        assert resp.get_json()["data"]["uploaded_by"] == seed.renter_user.id

    def test_renter_cannot_upload_for_others(self, client, seed, renter_headers):
        assert _upload(client, renter_headers, "RENTER", seed.other_renter.id).status_code == 403
        assert _upload(client, renter_headers, "PROPERTY", seed.property.id).status_code == 403

    def test_renter_lists_only_own_documents(self, client, seed, admin_headers, renter_headers):
        _upload(client, admin_headers, "PROPERTY", seed.property.id, filename="deed.pdf")
        _upload(client, admin_headers, "RENTER", seed.other_renter.id, filename="other.pdf")
        _upload(client, admin_headers, "CONTRACT", seed.contract.id, filename="mine.pdf")

        resp = client.get(f"{API}/documents", headers=renter_headers)
        assert [d["name"] for d in resp.get_json()["data"]] == ["mine.pdf"]

        resp = client.get(f"{API}/documents?entity_type=PROPERTY&entity_id={seed.property.id}",
                          headers=renter_headers)
        assert resp.status_code == 403

    def test_renter_cannot_delete_admin_upload(self, client, seed, admin_headers, renter_headers):
        doc = _upload(client, admin_headers, "RENTER", seed.renter.id).get_json()["data"]

        assert client.get(f"{API}/documents/{doc['id']}", headers=renter_headers).status_code == 200
        assert client.delete(f"{API}/documents/{doc['id']}", headers=renter_headers).status_code == 403


class TestDownloadAndDelete:
    def test_download_returns_attachment(self, client, seed, admin_headers):
        doc = _upload(client, admin_headers, "ROOM", seed.room_a.id, content=b"room photo").get_json()["data"]

        resp = client.get(f"{API}/documents/{doc['id']}/download", headers=admin_headers)

        assert resp.status_code == 200
        assert resp.data == b"room photo"
        assert "attachment" in resp.headers["Content-Disposition"]
        assert "lease.pdf" in resp.headers["Content-Disposition"]
        resp.close()

    def test_download_of_missing_file(self, client, seed, admin_headers):
        doc = _upload(client, admin_headers, "ROOM", seed.room_a.id).get_json()["data"]
        os.remove(doc["path"])

        assert client.get(f"{API}/documents/{doc['id']}/download", headers=admin_headers).status_code == 404

    def test_delete_removes_file_and_contract_link(self, client, seed, admin_headers):
        doc = _upload(client, admin_headers, "CONTRACT", seed.contract.id, doc_type="CONTRACT").get_json()["data"]

        resp = client.delete(f"{API}/documents/{doc['id']}", headers=admin_headers)

        assert resp.status_code == 200
        assert not os.path.exists(doc["path"])
        assert db.session.get(Contract, seed.contract.id).document_path is None
        assert client.get(f"{API}/documents/{doc['id']}", headers=admin_headers).status_code == 404

    def test_deleting_renter_purges_documents(self, client, seed, admin_headers):
        doc = _upload(client, admin_headers, "RENTER", seed.other_renter.id).get_json()["data"]

        assert client.delete(f"{API}/renters/{seed.other_renter.id}", headers=admin_headers).status_code == 200

        assert Document.query.count() == 0
        assert not os.path.exists(doc["path"])
