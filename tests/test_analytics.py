from datetime import datetime, timedelta

import pytest

from app.core.config import settings
from app.models.health_record import HealthRecord, RecordType
from tests.conftest import auth_headers

def days_ago(days):
    return (datetime.utcnow() - timedelta(days=days)).isoformat()

@pytest.fixture
def clinic(client, people, book, record, care):
    """P sees D twice, Q sees E once, with records and care to match."""
    p, q, d, e = people["p"], people["q"], people["d"], people["e"]

    visit = book(p, d, days=2)
    book(p, d, days=4, type="checkup")
    book(q, e, days=1)
    client.put(f"/api/appointments/{visit['id']}", json={"status": "completed"}, headers=auth_headers(d))

    record(d, p, title="Recent vitals", vitalSigns={"heartRate": 70})
    record(d, p, title="Old vitals", date=days_ago(60), vitalSigns={"heartRate": 80})
    record(e, q, title="Other vitals", vitalSigns={"heartRate": 90})

    care(d, p, title="Missed screening", days=-5, care_type="screening")
    done = care(d, p, title="Flu vaccination", days=10)
    client.put(f"/api/preventive-care/{done['id']}", json={"status": "completed"}, headers=auth_headers(p))

def dashboard(client, user):
    response = client.get("/api/analytics/dashboard", headers=auth_headers(user))
    assert response.status_code == 200
    return response.json()["data"]

class TestDashboard:

    def test_patient_dashboard(self, client, people, clinic):
        data = dashboard(client, people["p"])

        assert data["appointments"] == {
            "total": 2,
            "upcoming": 1,
            "completed": 1,
            "byStatus": {"scheduled": 1, "completed": 1},
            "byType": {"consultation": 1, "checkup": 1},
        }
        assert data["healthRecords"] == {"total": 2, "recent": 1, "byType": {"vital-signs": 2}}
        assert data["preventiveCare"] == {
            "total": 2,
            "overdue": 1,
            "completed": 1,
            "byType": {"screening": 1, "vaccination": 1},
        }

    def test_doctor_dashboard_counts_own_records(self, client, people, clinic):
        data = dashboard(client, people["e"])

        assert data["appointments"]["total"] == 1
        assert data["healthRecords"]["total"] == 1
        assert data["preventiveCare"]["total"] == 0

    def test_admin_dashboard_counts_everything(self, client, people, clinic):
        data = dashboard(client, people["a"])

        assert data["appointments"]["total"] == 3
        assert data["healthRecords"]["total"] == 3
        assert data["preventiveCare"]["total"] == 2

    @pytest.mark.parametrize("role", ["p", "q", "d", "e", "a"])
    def test_dashboard_totals_match_list_counts(self, client, people, clinic, role):
        user = people[role]
        data = dashboard(client, user)

        for path, key in [
            ("/api/appointments", "appointments"),
            ("/api/health-records", "healthRecords"),
            ("/api/preventive-care", "preventiveCare"),
        ]:
            listed = client.get(path, headers=auth_headers(user)).json()["count"]
            assert data[key]["total"] == listed

    def test_recorded_vitals_show_on_patient_dashboard(self, client, people, record):
        record(people["d"], people["p"], vitalSigns={"heartRate": 64})

        data = dashboard(client, people["p"])
        assert data["healthRecords"]["total"] == 1
        assert data["healthRecords"]["byType"] == {"vital-signs": 1}

    def test_empty_dashboard(self, client, people):
        data = dashboard(client, people["q"])
        assert data["appointments"]["total"] == 0
        assert data["appointments"]["byStatus"] == {}

class TestHealthTrends:

    def test_trends_are_ascending_vital_signs_only(self, client, people, record):
        p, d = people["p"], people["d"]
        record(d, p, title="Second", date=days_ago(5), vitalSigns={
            "bloodPressure": {"systolic": 118, "diastolic": 76}, "heartRate": 66,
        })
        record(d, p, title="First", date=days_ago(10), vitalSigns={"heartRate": 72, "weight": 81.2})
        record(d, p, title="Panel", record_type="lab-result", labResults={"testName": "Lipids"})

        response = client.get("/api/analytics/health-trends", headers=auth_headers(p))
        assert response.status_code == 200

        data = response.json()["data"]
        assert [point["heartRate"] for point in data] == [72, 66]
        assert data[0]["weight"] == 81.2
        assert data[1]["bloodPressure"] == {"systolic": 118, "diastolic": 76}

    def test_trends_date_window(self, client, people, record):
        p, d = people["p"], people["d"]
        record(d, p, date=days_ago(40), vitalSigns={"heartRate": 60})
        record(d, p, date=days_ago(3), vitalSigns={"heartRate": 65})

        response = client.get(
            f"/api/analytics/health-trends?startDate={days_ago(7)}", headers=auth_headers(p)
        )
        assert [point["heartRate"] for point in response.json()["data"]] == [65]

    def test_trends_capped(self, client, people, db):
        p, d = people["p"], people["d"]
        start = datetime(2024, 1, 1)
        total = settings.HEALTH_TRENDS_MAX_SAMPLES + 5
        db.add_all([
            HealthRecord(
                patient_id=p.id,
                recorded_by_id=d.id,
                record_type=RecordType.VITAL_SIGNS,
                title=f"Reading {i}",
                date=start + timedelta(hours=i),
                vital_signs={"heartRate": 60 + i % 40},
                attachments=[],
            )
            for i in reversed(range(total))
        ])
        db.commit()

        response = client.get("/api/analytics/health-trends", headers=auth_headers(p))
        data = response.json()["data"]

        assert response.json()["count"] == settings.HEALTH_TRENDS_MAX_SAMPLES
        dates = [point["date"] for point in data]
        assert dates == sorted(dates)
        assert dates[0] == start.isoformat()

    def test_doctor_trends_for_named_patient(self, client, people, record):
        p, d, e = people["p"], people["d"], people["e"]
        record(d, p, vitalSigns={"heartRate": 70})
        record(e, p, vitalSigns={"heartRate": 75})

        response = client.get(f"/api/analytics/health-trends?patient={p.id}", headers=auth_headers(d))
        assert response.json()["count"] == 2

    def test_patient_cannot_see_others_trends(self, client, people, record):
        record(people["d"], people["q"], vitalSigns={"heartRate": 70})

        response = client.get(
            f"/api/analytics/health-trends?patient={people['q'].id}", headers=auth_headers(people["p"])
        )
        assert response.json()["count"] == 0
