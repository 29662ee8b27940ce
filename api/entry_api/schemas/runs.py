from datetime import datetime

from pydantic import BaseModel, Field

from listing_worker.models import SearchType


class EntryRecordIn(BaseModel):
    identifier: str = Field(min_length=1)
    search_code: str | None = None
    price: float = Field(ge=0, allow_inf_nan=False)
    stock: int = Field(ge=0)


class StartRunRequest(BaseModel):
    records: list[EntryRecordIn]
    account_name: str | None = None
    show_browser: bool = False
    search_type: SearchType = SearchType.JAN


class OutcomeOut(BaseModel):
    identifier: str
    price: float | None = None
    stock: int | None = None
    outcome_kind: str = Field(validation_alias="outcomeKind")
    message: str


class ProgressOut(BaseModel):
    total: int
    processed: int


class RunStateOut(BaseModel):
    status: str
    progress: ProgressOut
    results: list[OutcomeOut]
    run_id: str | None = None
    current_item_id: str | None = None
    last_message: str | None = None
    error: str | None = None
    account_name: str | None = None
    headless: bool | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None
    cancellation_requested: bool = False
    result_csv: str | None = None
