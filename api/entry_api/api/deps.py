from functools import lru_cache

from fastapi import Header

from entry_api.core.config import get_settings
from entry_api.core.errors import ApiError, AppHTTPException
from listing_worker.config import WorkerSettings
from listing_worker.config import get_settings as get_worker_settings
from listing_worker.orchestrator import BatchOrchestrator


def require_admin_token(x_admin_token: str | None = Header(default=None)) -> None:
    settings = get_settings()
    if x_admin_token != settings.admin_token:
        raise AppHTTPException(status_code=401, error=ApiError(code="unauthorized", message="Invalid admin token"))


@lru_cache
def get_orchestrator() -> BatchOrchestrator:
    return BatchOrchestrator.from_settings(get_worker_settings())


def get_worker_config() -> WorkerSettings:
    return get_worker_settings()
