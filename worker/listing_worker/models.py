from __future__ import annotations

import csv
import io
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    BRAND_RESTRICTED = "brand_restricted"
    INVALID_INPUT = "invalid_input"
    TIMED_OUT = "timed_out"
    ERROR = "error"


class RunStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"
    ABORTED = "aborted"

    @property
    def is_terminal(self) -> bool:
        return self in {RunStatus.COMPLETED, RunStatus.ERROR, RunStatus.ABORTED}


class SearchType(str, Enum):
    JAN = "jan"
    ASIN = "asin"


class AccountName(str, Enum):
    FIVES_WORKWEAR = "FIVES WORKWEAR"
    KEYPOINT = "ワークウェアショップ KeyPoint"


DEFAULT_ACCOUNT = AccountName.KEYPOINT

OUTCOME_DESCRIPTIONS: dict[OutcomeKind, str] = {
    OutcomeKind.SUCCESS: "Listing registered.",
    OutcomeKind.NOT_FOUND: "No catalogue match; the product needs a new listing instead of an offer.",
    OutcomeKind.BRAND_RESTRICTED: "The brand requires listing approval; apply in the portal and retry.",
    OutcomeKind.INVALID_INPUT: "The form was rejected: duplicate SKU or invalid stock/price.",
    OutcomeKind.TIMED_OUT: "The portal did not respond in time.",
    OutcomeKind.ERROR: "Unexpected error; the batch was stopped.",
}

RESULT_COLUMNS = ("identifier", "price", "stock", "outcomeKind", "message")


def ensure_account_name(value: str | None) -> AccountName:
    """Return the requested account, or the default when missing or unknown."""
    for account in AccountName:
        if value == account.value:
            return account
    return DEFAULT_ACCOUNT


@dataclass(frozen=True)
class Item:
    identifier: str
    price: float
    stock: int
    search_code: str | None = None

    @property
    def search_term(self) -> str:
        return self.search_code or self.identifier

    @property
    def price_text(self) -> str:
        if float(self.price).is_integer():
            return str(int(self.price))
        return str(self.price)

    @property
    def stock_text(self) -> str:
        return str(int(self.stock))


@dataclass(frozen=True)
class Credentials:
    email: str
    password: str = field(repr=False)
    otp_secret: str = field(repr=False)

    def is_complete(self) -> bool:
        return all(value and value.strip() for value in (self.email, self.password, self.otp_secret))


@dataclass(frozen=True)
class RunOptions:
    account_name: AccountName = DEFAULT_ACCOUNT
    headless: bool = True


@dataclass(frozen=True)
class Outcome:
    kind: OutcomeKind
    identifier: str
    price: float | None = None
    stock: int | None = None
    message: str | None = None

    @classmethod
    def success(cls, item: Item) -> Outcome:
        return cls(OutcomeKind.SUCCESS, item.identifier, price=item.price, stock=item.stock)

    @classmethod
    def not_found(cls, identifier: str) -> Outcome:
        return cls(OutcomeKind.NOT_FOUND, identifier)

    @classmethod
    def brand_restricted(cls, identifier: str) -> Outcome:
        return cls(OutcomeKind.BRAND_RESTRICTED, identifier)

    @classmethod
    def invalid_input(cls, identifier: str) -> Outcome:
        return cls(OutcomeKind.INVALID_INPUT, identifier)

    @classmethod
    def timed_out(cls, identifier: str) -> Outcome:
        return cls(OutcomeKind.TIMED_OUT, identifier)

    @classmethod
    def error(cls, identifier: str, message: str) -> Outcome:
        return cls(OutcomeKind.ERROR, identifier, message=message)

    @property
    def description(self) -> str:
        return self.message or OUTCOME_DESCRIPTIONS[self.kind]

    def to_row(self) -> dict[str, object]:
        return {
            "identifier": self.identifier,
            "price": self.price,
            "stock": self.stock,
            "outcomeKind": self.kind.value,
            "message": self.description,
        }


@dataclass(frozen=True)
class RunSnapshot:
    """Read-only view of a batch run, safe to hand to any reader."""

    status: RunStatus = RunStatus.IDLE
    total: int = 0
    processed: int = 0
    results: tuple[Outcome, ...] = ()
    run_id: str | None = None
    current_item_id: str | None = None
    last_message: str | None = None
    error: str | None = None
    account_name: str | None = None
    headless: bool | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None
    cancellation_requested: bool = False

    def rows(self) -> list[dict[str, object]]:
        return [outcome.to_row() for outcome in self.results]

    def to_csv(self) -> str:
        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=RESULT_COLUMNS, lineterminator="\n")
        writer.writeheader()
        for row in self.rows():
            writer.writerow({key: "" if value is None else value for key, value in row.items()})
        return buffer.getvalue()

    def to_dict(self) -> dict[str, object]:
        payload = asdict(self)
        payload["status"] = self.status.value
        payload["progress"] = {"total": payload.pop("total"), "processed": payload.pop("processed")}
        payload["results"] = self.rows()
        payload["started_at"] = self.started_at.isoformat() if self.started_at else None
        payload["finished_at"] = self.finished_at.isoformat() if self.finished_at else None
        payload["result_csv"] = self.to_csv() if self.status.is_terminal else None
        return payload
