import pytest

from fakes import FakeBrowser, FakePortal, SequenceOtp
from listing_worker.config import WorkerSettings
from listing_worker.models import Credentials
from listing_worker.orchestrator import BatchOrchestrator


@pytest.fixture()
def settings() -> WorkerSettings:
    return WorkerSettings(
        _env_file=None,
        seller_email="seller@example.com",
        seller_password="secret-password",
        otp_secret="JBSWY3DPEHPK3PXP",
        otp_retry_delay_ms=0,
        search_settle_ms=0,
        register_settle_ms=0,
    )


@pytest.fixture()
def credentials(settings: WorkerSettings) -> Credentials:
    return settings.credentials()


@pytest.fixture()
def portal() -> FakePortal:
    return FakePortal()


@pytest.fixture()
def browser(portal: FakePortal) -> FakeBrowser:
    return FakeBrowser(portal)


@pytest.fixture()
def otp() -> SequenceOtp:
    return SequenceOtp(["123456"])


@pytest.fixture()
def orchestrator(settings: WorkerSettings, browser: FakeBrowser, otp: SequenceOtp) -> BatchOrchestrator:
    return BatchOrchestrator.from_settings(settings, session_opener=browser.open, otp_generator=otp)
