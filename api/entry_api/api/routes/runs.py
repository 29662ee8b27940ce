from fastapi import APIRouter, Depends

from entry_api.api.deps import get_orchestrator, get_worker_config, require_admin_token
from entry_api.schemas.runs import RunStateOut, StartRunRequest
from entry_api.services.runs import cancel_run, start_run, to_run_state
from listing_worker.config import WorkerSettings
from listing_worker.orchestrator import BatchOrchestrator

router = APIRouter(prefix="/v1/entry-runs", tags=["entry-runs"], dependencies=[Depends(require_admin_token)])


@router.post("", response_model=RunStateOut, status_code=202)
async def start(
    payload: StartRunRequest,
    orchestrator: BatchOrchestrator = Depends(get_orchestrator),
    settings: WorkerSettings = Depends(get_worker_config),
) -> RunStateOut:
    # async so the batch task is scheduled on the server's event loop
    return start_run(orchestrator, settings, payload)


@router.get("/current", response_model=RunStateOut)
def current(orchestrator: BatchOrchestrator = Depends(get_orchestrator)) -> RunStateOut:
    return to_run_state(orchestrator.status())


@router.delete("/current", response_model=RunStateOut)
def cancel(orchestrator: BatchOrchestrator = Depends(get_orchestrator)) -> RunStateOut:
    return cancel_run(orchestrator)
