from __future__ import annotations

from entry_api.core.errors import ApiError, AppHTTPException
from entry_api.schemas.runs import RunStateOut, StartRunRequest
from listing_worker.config import WorkerSettings
from listing_worker.models import AccountName, Item, RunOptions, RunSnapshot
from listing_worker.orchestrator import BatchOrchestrator
from listing_worker.records import validate_identifier


def to_run_state(snapshot: RunSnapshot) -> RunStateOut:
    return RunStateOut.model_validate(snapshot.to_dict())


def _resolve_account(account_name: str | None, settings: WorkerSettings) -> AccountName:
    requested = account_name or settings.account_name
    for account in AccountName:
        if account.value == requested:
            return account
    raise AppHTTPException(
        status_code=400,
        error=ApiError(code="unknown_account", message="Unknown seller account", details={"account_name": requested}),
    )


def _build_items(payload: StartRunRequest) -> list[Item]:
    if not payload.records:
        raise AppHTTPException.from_rejection("empty_batch")

    items: list[Item] = []
    problems: dict[str, str] = {}
    for index, record in enumerate(payload.records):
        identifier = record.identifier.strip()
        search_code = record.search_code.strip() if record.search_code else None
        problem = validate_identifier(identifier, payload.search_type, search_code)
        if problem:
            problems[str(index)] = problem
            continue
        items.append(Item(identifier=identifier, price=record.price, stock=record.stock, search_code=search_code))

    if problems:
        raise AppHTTPException(
            status_code=400,
            error=ApiError(code="invalid_item", message="Some records are not valid", details=problems),
        )
    return items


def start_run(orchestrator: BatchOrchestrator, settings: WorkerSettings, payload: StartRunRequest) -> RunStateOut:
    if orchestrator.is_running:
        raise AppHTTPException.from_rejection("already_running")

    options = RunOptions(
        account_name=_resolve_account(payload.account_name, settings),
        headless=not payload.show_browser,
    )
    decision = orchestrator.start(_build_items(payload), settings.credentials(), options)
    if not decision.accepted:
        raise AppHTTPException.from_rejection(decision.reason or "rejected")
    return to_run_state(decision.snapshot)


def cancel_run(orchestrator: BatchOrchestrator) -> RunStateOut:
    decision = orchestrator.cancel()
    if not decision.accepted:
        raise AppHTTPException.from_rejection(decision.reason or "not_running")
    return to_run_state(decision.snapshot)
