"""Integration tests for API endpoints"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session
from fintrack.worker.loop import WorkerLoop


def _post_transaction(client: TestClient, **fields):
    body = {"user_id": "user_1", **fields}
    return client.post("/v1/transactions", json=body)


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    _post_transaction(client, amount=10)

    response = client.get("/metrics")
    assert response.status_code == 200
    assert "fintrack_transactions_scored_total" in response.text


def test_request_id_header(client: TestClient):
    """Test every response carries a request ID, echoing the caller's"""
    assert client.get("/health").headers["X-Request-ID"]

    response = client.get("/health", headers={"X-Request-ID": "trace-123"})
    assert response.headers["X-Request-ID"] == "trace-123"


def test_auth_echo_upserts_by_email(client: TestClient):
    """Test the same email returns the same user id"""
    first = client.post("/v1/auth/echo", json={"email": "Ana@Example.com"})
    second = client.post("/v1/auth/echo", json={"email": "ana@example.com"})

    assert first.status_code == 200
    assert first.json()["id"] == second.json()["id"]
    assert second.json()["email"] == "ana@example.com"


def test_auth_echo_rejects_bad_email(client: TestClient):
    """Test emails without @ are rejected"""
    response = client.post("/v1/auth/echo", json={"email": "not-an-email"})
    assert response.status_code == 400


def test_create_transaction_scores_and_stores(client: TestClient):
    """Test POST /v1/transactions returns the score and persists defaults"""
    response = _post_transaction(client, amountString="€1,000.00", timestamp="2024-01-03T12:00:00Z")

    assert response.status_code == 200
    data = response.json()
    assert data["risk_score"] == 27.73
    assert data["id"]

    listed = client.get("/v1/transactions", params={"user_id": "user_1"}).json()["transactions"]
    assert len(listed) == 1
    assert listed[0]["amount"] == 1000.0
    assert listed[0]["country"] == "Ireland"
    assert listed[0]["merchant"] == "unknown"
    assert listed[0]["timestamp"] == "2024-01-03T12:00:00+00:00"
    assert listed[0]["risk_score"] == 27.73


def test_create_transaction_numeric_amount_wins(client: TestClient):
    """Test a numeric amount is used ahead of amountString"""
    response = _post_transaction(
        client, amount=5, amountString="9999", country="Narnia", timestamp="2024-01-03T12:00:00Z"
    )

    assert response.status_code == 200
    assert response.json()["risk_score"] == 25.0


@pytest.mark.parametrize("user_id", [None, "", "bad user!"])
def test_create_transaction_invalid_user(client: TestClient, user_id):
    """Test missing or malformed user ids are rejected with 400"""
    response = client.post("/v1/transactions", json={"user_id": user_id, "amount": 5})
    assert response.status_code == 400


def test_create_transaction_unstorable_timestamp(client: TestClient):
    """Test an unparseable timestamp is rejected with 422"""
    response = _post_transaction(client, amount=5, timestamp="garbage")

    assert response.status_code == 422
    assert client.get("/v1/transactions", params={"user_id": "user_1"}).json()["transactions"] == []


def test_create_transaction_out_of_range_timestamp(client: TestClient):
    """Test a timestamp outside the representable UTC range is rejected with 422"""
    response = _post_transaction(client, amount=5, timestamp="0001-01-01T00:00:00+01:00")

    assert response.status_code == 422
    assert client.get("/v1/transactions", params={"user_id": "user_1"}).json()["transactions"] == []


def test_list_transactions_newest_first(client: TestClient):
    """Test listing returns the most recent transaction first"""
    _post_transaction(client, amount=1, merchant="first")
    _post_transaction(client, amount=2, merchant="second")

    listed = client.get("/v1/transactions", params={"user_id": "user_1"}).json()["transactions"]

    assert [tx["merchant"] for tx in listed] == ["second", "first"]


def test_list_transactions_invalid_user(client: TestClient):
    """Test listing validates the user id"""
    response = client.get("/v1/transactions", params={"user_id": "bad user"})
    assert response.status_code == 400


def test_upload_queues_job_and_worker_ingests(
    client: TestClient, db: Session, worker: WorkerLoop, bank_export_csv
):
    """Test upload -> pending job -> worker -> done with rows stored"""
    response = client.post(
        "/v1/transactions/upload",
        files={"file": ("export.csv", bank_export_csv, "text/csv")},
        data={"user_id": "user_1"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["uploaded"] is True
    assert data["file_locator"].endswith(".csv")

    job = client.get(f"/v1/jobs/{data['job_id']}").json()
    assert job["status"] == "pending"
    assert job["type"] == "parse_csv"

    worker.run_once()
    db.expire_all()

    assert client.get(f"/v1/jobs/{data['job_id']}").json()["status"] == "done"
    listed = client.get("/v1/transactions", params={"user_id": "user_1"}).json()["transactions"]
    assert sorted(tx["merchant"] for tx in listed) == ["Cafe Central", "Corner Shop", "ScamShop Ltd"]


def test_upload_rejects_other_extensions(client: TestClient):
    """Test only .csv and .txt uploads are accepted"""
    response = client.post(
        "/v1/transactions/upload",
        files={"file": ("export.xlsx", b"Amount\n1\n", "application/octet-stream")},
        data={"user_id": "user_1"},
    )
    assert response.status_code == 400


def test_upload_rejects_invalid_user(client: TestClient):
    """Test uploads validate the user id before storing anything"""
    response = client.post(
        "/v1/transactions/upload",
        files={"file": ("export.csv", b"Amount\n1\n", "text/csv")},
        data={"user_id": "bad user"},
    )
    assert response.status_code == 400


def test_upload_rejects_empty_file(client: TestClient):
    """Test empty uploads are rejected"""
    response = client.post(
        "/v1/transactions/upload",
        files={"file": ("export.txt", b"", "text/plain")},
        data={"user_id": "user_1"},
    )
    assert response.status_code == 400


def test_rescore_queues_job(client: TestClient, db: Session, worker: WorkerLoop):
    """Test POST /v1/rescore enqueues a job the worker completes"""
    _post_transaction(client, amount=1000, timestamp="2024-01-03T12:00:00Z")

    response = client.post("/v1/rescore", json={"user_id": "user_1"})
    assert response.status_code == 200
    job_id = response.json()["job_id"]

    worker.run_once()
    db.expire_all()

    assert client.get(f"/v1/jobs/{job_id}").json()["status"] == "done"
    listed = client.get("/v1/transactions", params={"user_id": "user_1"}).json()["transactions"]
    assert listed[0]["risk_score"] == 27.73


def test_rescore_requires_user(client: TestClient):
    """Test rescore without a user id is rejected"""
    assert client.post("/v1/rescore", json={}).status_code == 400


def test_job_not_found(client: TestClient):
    """Test polling an unknown job returns 404"""
    assert client.get("/v1/jobs/does-not-exist").status_code == 404


def test_score_endpoint_reports_signals(client: TestClient):
    """Test POST /v1/score returns the breakdown without storing anything"""
    response = client.post(
        "/v1/score",
        json={"amount": 1000, "country": "Narnia", "merchant": "ScamShop Ltd", "timestamp": "2024-01-03T03:00:00Z"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["risk_score"] == 87.73
    assert data["signals"] == {
        "large_amount": 27.73,
        "unusual_country": 25.0,
        "off_hours": 20.0,
        "blacklisted_merchant": 15.0,
    }


def test_dashboard(client: TestClient):
    """Test GET /v1/dashboard sums amounts by month"""
    _post_transaction(client, amount=10, timestamp="2024-01-03T12:00:00Z")
    _post_transaction(client, amount=5.5, timestamp="2024-01-20T12:00:00Z")
    _post_transaction(client, amountString="€100", timestamp="2024-02-01T12:00:00Z")

    response = client.get("/v1/dashboard", params={"user_id": "user_1"})

    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 3
    assert data["total"] == 115.5
    assert data["by_month"] == {"2024-01": 15.5, "2024-02": 100.0}


def test_dashboard_empty(client: TestClient):
    """Test the dashboard for a user without transactions"""
    data = client.get("/v1/dashboard", params={"user_id": "user_1"}).json()

    assert data == {"user_id": "user_1", "count": 0, "total": 0.0, "by_month": {}}
