from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from entry_api.api.deps import get_orchestrator, get_worker_config
from entry_api.core.config import get_settings
from entry_api.main import app
from listing_worker.config import WorkerSettings
from listing_worker.models import Credentials, Item, Outcome, RunOptions, RunSnapshot, RunStatus
from listing_worker.orchestrator import Decision


class StubOrchestrator:
    """Accepts one batch at a time and reports it as running until cancelled."""

    def __init__(self) -> None:
        self.started: list[tuple[list[Item], Credentials, RunOptions]] = []
        self.snapshot = RunSnapshot()

    @property
    def is_running(self) -> bool:
        return self.snapshot.status == RunStatus.RUNNING

    def status(self) -> RunSnapshot:
        return self.snapshot

    def start(self, items, credentials, options=None) -> Decision:
        if not credentials.is_complete():
            return Decision(accepted=False, reason="missing_credentials", snapshot=self.snapshot)
        self.started.append((list(items), credentials, options))
        self.snapshot = RunSnapshot(
            status=RunStatus.RUNNING,
            total=len(items),
            run_id="run-1",
            account_name=options.account_name.value,
            headless=options.headless,
            started_at=datetime(2026, 10, 1, 9, 0, tzinfo=timezone.utc),
        )
        return Decision(accepted=True, snapshot=self.snapshot)

    def cancel(self) -> Decision:
        if not self.is_running:
            return Decision(accepted=False, reason="not_running", snapshot=self.snapshot)
        self.snapshot = RunSnapshot(
            status=RunStatus.ABORTED,
            total=self.snapshot.total,
            processed=1,
            results=(Outcome.success(self.started[-1][0][0]),),
            run_id=self.snapshot.run_id,
            cancellation_requested=True,
        )
        return Decision(accepted=True, snapshot=self.snapshot)


@pytest.fixture()
def worker_settings() -> WorkerSettings:
    return WorkerSettings(
        _env_file=None,
        seller_email="seller@example.com",
        seller_password="correct horse",
        otp_secret="JBSWY3DPEHPK3PXP",
        otp_retry_delay_ms=0,
        search_settle_ms=0,
        register_settle_ms=0,
    )


@pytest.fixture()
def orchestrator() -> StubOrchestrator:
    return StubOrchestrator()


@pytest.fixture()
def admin_headers() -> dict[str, str]:
    return {"X-Admin-Token": get_settings().admin_token}


@pytest.fixture()
def client(orchestrator: StubOrchestrator, worker_settings: WorkerSettings) -> TestClient:
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    app.dependency_overrides[get_worker_config] = lambda: worker_settings
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
