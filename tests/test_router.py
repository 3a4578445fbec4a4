from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from tolkapp.auth import create_jwt_token
from tolkapp.domain.jobs.router import get_notification_service
from tolkapp.main import app
from tolkapp.services.notification_service import NotificationService


@pytest.fixture
def channels():
    return MagicMock()


@pytest.fixture
def client(db, channels):
    app.dependency_overrides[get_notification_service] = lambda: NotificationService(channels)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def auth(user) -> dict:
    return {"Authorization": f"Bearer {create_jwt_token({'sub': str(user.id)})}"}


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_customer_creates_booking(client, customer, language):
    due = datetime.now() + timedelta(days=10)
    response = client.post(
        "/jobs",
        headers=auth(customer),
        json={
            "from_language_id": language.id,
            "due_date": due.strftime("%m/%d/%Y"),
            "due_time": "14:30",
            "duration": 60,
            "customer_phone_type": "yes",
            "job_for": ["certified"],
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "success"
    assert body["job_for"] == ["certified"]


def test_translator_booking_attempt_is_forbidden(client, translator, language):
    response = client.post("/jobs", headers=auth(translator), json={"from_language_id": language.id})

    assert response.status_code == 403
    assert response.json()["error_type"] == "authorization"


def test_unknown_job_is_404(client, customer):
    response = client.get("/jobs/9999", headers=auth(customer))

    assert response.status_code == 404


def test_accept_dispatches_notifications_after_response(client, make_job, translator, customer, channels):
    job = make_job(due=datetime.now() + timedelta(days=5))

    response = client.post("/jobs/accept", headers=auth(translator), json={"job_id": job.id})

    assert response.status_code == 200
    assert response.json()["job"]["status"] == "assigned"
    channels.send_email.assert_called_once()
    assert channels.send_email.call_args.args[0] == customer.email
    channels.send_push.assert_called_once()


def test_admin_routes_require_admin(client, make_job, customer, admin):
    job = make_job()

    assert client.put(f"/jobs/{job.id}", headers=auth(customer), json={"admin_comments": "x"}).status_code == 403

    response = client.put(f"/jobs/{job.id}", headers=auth(admin), json={"admin_comments": "Noterat"})
    assert response.status_code == 200
    assert response.json()["message"] == "Updated"


def test_admin_report_listing(client, make_job, admin):
    job = make_job()

    response = client.post("/jobs/reports/list", headers=auth(admin), json={"status": ["pending"]})

    assert response.status_code == 200
    assert [j["id"] for j in response.json()["jobs"]] == [job.id]


def test_customer_sees_own_current_jobs(client, make_job, customer):
    job = make_job()

    body = client.get("/jobs", headers=auth(customer)).json()

    assert body["user_type"] == "customer"
    assert [j["id"] for j in body["normal_jobs"]] == [job.id]
    assert body["emergency_jobs"] == []
