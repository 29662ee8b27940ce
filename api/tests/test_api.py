import time

from fakes import FakeBrowser, FakePortal, NOT_FOUND, SequenceOtp
from entry_api.api.deps import get_orchestrator
from entry_api.main import app
from entry_api.services.runs import to_run_state
from listing_worker.models import AccountName, Item, Outcome, RunSnapshot, RunStatus
from listing_worker.orchestrator import BatchOrchestrator

JAN_RECORD = {"identifier": "4549957721409", "price": 11800, "stock": 5}


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_runs_require_token(client):
    response = client.get("/v1/entry-runs/current")
    assert response.status_code == 401
    assert response.json()["detail"]["code"] == "unauthorized"


def test_idle_state(client, admin_headers):
    response = client.get("/v1/entry-runs/current", headers=admin_headers)
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "idle"
    assert payload["progress"] == {"total": 0, "processed": 0}
    assert payload["results"] == []


def test_start_run(client, admin_headers, orchestrator):
    response = client.post(
        "/v1/entry-runs",
        json={"records": [JAN_RECORD], "account_name": "FIVES WORKWEAR", "show_browser": True},
        headers=admin_headers,
    )
    assert response.status_code == 202
    payload = response.json()
    assert payload["status"] == "running"
    assert payload["run_id"] == "run-1"
    assert payload["headless"] is False

    items, credentials, options = orchestrator.started[0]
    assert items[0].identifier == "4549957721409"
    assert credentials.email == "seller@example.com"
    assert options.account_name == AccountName.FIVES_WORKWEAR
    assert options.headless is False


def test_start_defaults_to_configured_account(client, admin_headers, orchestrator):
    client.post("/v1/entry-runs", json={"records": [JAN_RECORD]}, headers=admin_headers)

    _, _, options = orchestrator.started[0]
    assert options.account_name == AccountName.KEYPOINT
    assert options.headless is True


def test_second_start_conflicts(client, admin_headers):
    client.post("/v1/entry-runs", json={"records": [JAN_RECORD]}, headers=admin_headers)
    response = client.post("/v1/entry-runs", json={"records": [JAN_RECORD]}, headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "already_running"


def test_empty_batch_rejected(client, admin_headers, orchestrator):
    response = client.post("/v1/entry-runs", json={"records": []}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "empty_batch"
    assert orchestrator.started == []


def test_invalid_jan_lists_problem_rows(client, admin_headers, orchestrator):
    records = [JAN_RECORD, {"identifier": "12345", "price": 100, "stock": 1}]
    response = client.post("/v1/entry-runs", json={"records": records}, headers=admin_headers)
    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["code"] == "invalid_item"
    assert detail["details"] == {"1": "JAN must be 13 digits"}
    assert orchestrator.started == []


def test_asin_records_need_search_code(client, admin_headers):
    records = [{"identifier": "SKU-ABC123", "price": 100, "stock": 1}]
    response = client.post("/v1/entry-runs", json={"records": records, "search_type": "asin"}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["detail"]["details"] == {"0": "ASIN must be 10 alphanumeric characters"}


def test_unknown_account_rejected(client, admin_headers):
    response = client.post(
        "/v1/entry-runs", json={"records": [JAN_RECORD], "account_name": "Other Shop"}, headers=admin_headers
    )
    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "unknown_account"


def test_negative_price_is_validation_error(client, admin_headers):
    records = [{"identifier": "4549957721409", "price": -1, "stock": 5}]
    response = client.post("/v1/entry-runs", json={"records": records}, headers=admin_headers)
    assert response.status_code == 422
    assert response.json()["code"] == "validation_error"


def test_missing_credentials_is_unavailable(client, admin_headers, worker_settings):
    worker_settings.seller_password = ""
    response = client.post("/v1/entry-runs", json={"records": [JAN_RECORD]}, headers=admin_headers)
    assert response.status_code == 503
    assert response.json()["detail"]["code"] == "missing_credentials"


def test_cancel_without_run_conflicts(client, admin_headers):
    response = client.delete("/v1/entry-runs/current", headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "not_running"


def test_cancel_running_batch(client, admin_headers):
    client.post("/v1/entry-runs", json={"records": [JAN_RECORD, JAN_RECORD]}, headers=admin_headers)
    response = client.delete("/v1/entry-runs/current", headers=admin_headers)
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "aborted"
    assert payload["cancellation_requested"] is True
    assert payload["results"][0]["outcome_kind"] == "success"


def test_batch_runs_to_completion(client, admin_headers, worker_settings):
    portal = FakePortal(catalogue={"4974019907609": NOT_FOUND})
    orchestrator = BatchOrchestrator.from_settings(
        worker_settings, session_opener=FakeBrowser(portal).open, otp_generator=SequenceOtp(["123456"])
    )
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    records = [JAN_RECORD, {"identifier": "4974019907609", "price": 5980, "stock": 12}]

    response = client.post("/v1/entry-runs", json={"records": records}, headers=admin_headers)
    assert response.status_code == 202

    payload = response.json()
    for _ in range(100):
        payload = client.get("/v1/entry-runs/current", headers=admin_headers).json()
        if payload["status"] != "running":
            break
        time.sleep(0.01)

    assert payload["status"] == "completed"
    assert [row["outcome_kind"] for row in payload["results"]] == ["success", "not_found"]
    assert payload["result_csv"].splitlines()[0] == "identifier,price,stock,outcomeKind,message"


def test_run_state_follows_snapshot_summary():
    snapshot = RunSnapshot(
        status=RunStatus.ERROR,
        total=2,
        processed=2,
        results=(Outcome.success(Item("4549957721409", 11800, 5)), Outcome.error("4974019907609", "Layout changed")),
        error="Layout changed",
    )

    state = to_run_state(snapshot)

    assert state.progress.total == 2
    assert [row.outcome_kind for row in state.results] == ["success", "error"]
    assert state.results[1].message == "Layout changed"
    assert state.result_csv == snapshot.to_csv()
    assert to_run_state(RunSnapshot(status=RunStatus.RUNNING)).result_csv is None
