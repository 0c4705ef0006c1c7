import pytest

from app.core.config import settings
from tests.conftest import auth_headers

VITALS = {
    "bloodPressure": {"systolic": 120, "diastolic": 80},
    "heartRate": 72,
    "temperature": {"value": 36.8, "unit": "celsius"},
    "weight": 70.5,
}

class TestHealthRecords:

    def test_doctor_creates_record(self, client, people, record):
        created = record(people["d"], people["p"], vitalSigns=VITALS)

        assert created["patient"]["id"] == people["p"].id
        assert created["recordedBy"]["id"] == people["d"].id
        assert created["recordType"] == "vital-signs"
        assert created["vitalSigns"]["bloodPressure"]["systolic"] == 120
        assert created["date"] is not None

    def test_patient_cannot_create(self, client, people):
        response = client.post(
            "/api/health-records",
            json={"patient": people["p"].id, "recordType": "other", "title": "Self report"},
            headers=auth_headers(people["p"]),
        )
        assert response.status_code == 403

    def test_vital_sign_bounds(self, client, people):
        response = client.post(
            "/api/health-records",
            json={
                "patient": people["p"].id,
                "recordType": "vital-signs",
                "title": "Bad reading",
                "vitalSigns": {"heartRate": 400},
            },
            headers=auth_headers(people["d"]),
        )
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "vitalSigns.heartRate"

    def test_blank_title_rejected(self, client, people):
        response = client.post(
            "/api/health-records",
            json={"patient": people["p"].id, "recordType": "other", "title": "   "},
            headers=auth_headers(people["d"]),
        )
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "title"

    def test_record_for_unknown_patient(self, client, people):
        response = client.post(
            "/api/health-records",
            json={"patient": 9999, "recordType": "other", "title": "Nobody"},
            headers=auth_headers(people["d"]),
        )
        assert response.status_code == 404

    def test_patient_lists_only_own(self, client, people, record):
        record(people["d"], people["p"])
        record(people["d"], people["q"])

        response = client.get("/api/health-records", headers=auth_headers(people["p"]))
        assert response.json()["count"] == 1
        assert response.json()["data"][0]["patient"]["id"] == people["p"].id

        response = client.get(
            f"/api/health-records?patient={people['q'].id}", headers=auth_headers(people["p"])
        )
        assert response.json()["count"] == 1
        assert response.json()["data"][0]["patient"]["id"] == people["p"].id

    def test_doctor_default_list_is_own_recordings(self, client, people, record):
        record(people["d"], people["p"])
        record(people["e"], people["p"])

        response = client.get("/api/health-records", headers=auth_headers(people["d"]))
        assert response.json()["count"] == 1

    def test_doctor_patient_filter_widens(self, client, people, record):
        record(people["d"], people["p"])
        record(people["e"], people["p"])

        response = client.get(
            f"/api/health-records?patient={people['p'].id}", headers=auth_headers(people["d"])
        )
        assert response.json()["count"] == 2

    def test_doctor_patient_filter_without_cross_access(self, client, people, record, monkeypatch):
        monkeypatch.setattr(settings, "DOCTOR_CROSS_PATIENT_ACCESS", False)
        record(people["d"], people["p"])
        other = record(people["e"], people["p"])

        response = client.get(
            f"/api/health-records?patient={people['p'].id}", headers=auth_headers(people["d"])
        )
        assert response.json()["count"] == 1

        response = client.get(f"/api/health-records/{other['id']}", headers=auth_headers(people["d"]))
        assert response.status_code == 403

    def test_record_type_filter(self, client, people, record):
        record(people["d"], people["p"], record_type="lab-result", labResults={"testName": "HbA1c"})
        record(people["d"], people["p"])

        response = client.get("/api/health-records?recordType=lab-result", headers=auth_headers(people["p"]))
        assert response.json()["count"] == 1
        assert response.json()["data"][0]["labResults"]["testName"] == "HbA1c"

    def test_any_doctor_reads_any_record(self, client, people, record):
        created = record(people["d"], people["p"])

        response = client.get(f"/api/health-records/{created['id']}", headers=auth_headers(people["e"]))
        assert response.status_code == 200

    def test_other_patient_forbidden(self, client, people, record):
        created = record(people["d"], people["p"])

        response = client.get(f"/api/health-records/{created['id']}", headers=auth_headers(people["q"]))
        assert response.status_code == 403
        assert response.json()["message"] == "Not authorized to view this health record"

    def test_only_recording_doctor_updates(self, client, people, record):
        created = record(people["d"], people["p"])

        response = client.put(
            f"/api/health-records/{created['id']}", json={"notes": "Stable"}, headers=auth_headers(people["e"])
        )
        assert response.status_code == 403

        response = client.put(
            f"/api/health-records/{created['id']}", json={"notes": "Stable"}, headers=auth_headers(people["d"])
        )
        assert response.status_code == 200
        assert response.json()["data"]["notes"] == "Stable"
        assert response.json()["data"]["title"] == created["title"]

    @pytest.mark.parametrize("role", ["p", "d"])
    def test_only_admin_deletes(self, client, people, record, role):
        created = record(people["d"], people["p"])

        response = client.delete(f"/api/health-records/{created['id']}", headers=auth_headers(people[role]))
        assert response.status_code == 403

    def test_patient_delete_of_missing_record_is_forbidden(self, client, people):
        # The role gate on the route runs before any lookup
        response = client.delete("/api/health-records/9999", headers=auth_headers(people["p"]))
        assert response.status_code == 403

    def test_admin_deletes(self, client, people, record):
        created = record(people["d"], people["p"])

        response = client.delete(f"/api/health-records/{created['id']}", headers=auth_headers(people["a"]))
        assert response.status_code == 200

        response = client.get(f"/api/health-records/{created['id']}", headers=auth_headers(people["a"]))
        assert response.status_code == 404
        assert response.json()["message"] == "Health record not found"
