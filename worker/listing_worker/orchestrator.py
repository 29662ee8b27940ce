from __future__ import annotations

import asyncio
import itertools
import logging
import math
import time
from collections.abc import Callable, Sequence
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, field
from datetime import datetime, timezone

from listing_worker.auth import SessionAuthenticator
from listing_worker.classifier import ItemClassifier
from listing_worker.config import WorkerSettings
from listing_worker.errors import BatchRejected, DriverTimeoutError
from listing_worker.fetchers.base import BrowserSession, PageDriver
from listing_worker.models import Credentials, Item, Outcome, OutcomeKind, RunOptions, RunSnapshot, RunStatus
from listing_worker.otp import OtpGenerator
from listing_worker.submitter import ListingSubmitter

SessionOpener = Callable[[RunOptions], AbstractAsyncContextManager[BrowserSession]]
ProgressListener = Callable[[RunSnapshot], None]

logger = logging.getLogger(__name__)
_run_counter = itertools.count(1)


class CancellationToken:
    """Cooperative stop signal, checked before each item starts."""

    def __init__(self) -> None:
        self._requested = False

    def cancel(self) -> None:
        self._requested = True

    @property
    def requested(self) -> bool:
        return self._requested


@dataclass(frozen=True)
class Decision:
    accepted: bool
    snapshot: RunSnapshot
    reason: str | None = None


@dataclass
class _RunRecord:
    run_id: str
    total: int
    account_name: str
    headless: bool
    token: CancellationToken = field(default_factory=CancellationToken)
    status: RunStatus = RunStatus.RUNNING
    results: list[Outcome] = field(default_factory=list)
    current_item_id: str | None = None
    last_message: str | None = None
    error: str | None = None
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: datetime | None = None

    def snapshot(self) -> RunSnapshot:
        return RunSnapshot(
            status=self.status,
            total=self.total,
            processed=len(self.results),
            results=tuple(self.results),
            run_id=self.run_id,
            current_item_id=self.current_item_id,
            last_message=self.last_message,
            error=self.error,
            account_name=self.account_name,
            headless=self.headless,
            started_at=self.started_at,
            finished_at=self.finished_at,
            cancellation_requested=self.token.requested,
        )


def _non_negative_number(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value >= 0


def validate_batch(items: Sequence[Item], credentials: Credentials) -> str | None:
    if not items:
        return "empty_batch"
    for index, item in enumerate(items):
        if not item.identifier or not item.identifier.strip():
            return f"invalid_item:{index}"
        if not _non_negative_number(item.price) or not _non_negative_number(item.stock):
            return f"invalid_item:{index}"
    if not credentials.is_complete():
        return "missing_credentials"
    return None


class BatchOrchestrator:
    """Runs one listing batch at a time: sign in once, then search, classify
    and submit every item in order.

    The orchestrator is the only writer of the run record; callers read it
    through ``status()`` snapshots. Timeouts cost one item, any other error
    stops the batch.
    """

    def __init__(
        self,
        session_opener: SessionOpener,
        authenticator: SessionAuthenticator,
        classifier: ItemClassifier,
        submitter: ListingSubmitter,
        progress_listener: ProgressListener | None = None,
    ) -> None:
        self.session_opener = session_opener
        self.authenticator = authenticator
        self.classifier = classifier
        self.submitter = submitter
        self.progress_listener = progress_listener
        self._record: _RunRecord | None = None
        self._task: asyncio.Task[None] | None = None

    @classmethod
    def from_settings(
        cls,
        settings: WorkerSettings,
        session_opener: SessionOpener | None = None,
        otp_generator: OtpGenerator | None = None,
        progress_listener: ProgressListener | None = None,
    ) -> BatchOrchestrator:
        if session_opener is None:
            from listing_worker.fetchers.browser import browser_opener

            session_opener = browser_opener(settings)
        return cls(
            session_opener=session_opener,
            authenticator=SessionAuthenticator(
                sign_in_url=settings.sign_in_url,
                region_name=settings.region_name,
                otp_generator=otp_generator,
                otp_retry_delay_ms=settings.otp_retry_delay_ms,
            ),
            classifier=ItemClassifier(
                search_url=settings.product_search_url,
                probe_timeout_ms=settings.probe_timeout_ms,
                search_settle_ms=settings.search_settle_ms,
            ),
            submitter=ListingSubmitter(
                probe_timeout_ms=settings.probe_timeout_ms,
                register_settle_ms=settings.register_settle_ms,
            ),
            progress_listener=progress_listener,
        )

    @property
    def is_running(self) -> bool:
        return self._record is not None and self._record.status == RunStatus.RUNNING

    def status(self) -> RunSnapshot:
        if self._record is None:
            return RunSnapshot()
        return self._record.snapshot()

    def start(self, items: Sequence[Item], credentials: Credentials, options: RunOptions | None = None) -> Decision:
        """Schedule a batch on the running event loop, or say why not."""
        options = options or RunOptions()
        if self.is_running:
            return Decision(accepted=False, reason="already_running", snapshot=self.status())

        reason = validate_batch(items, credentials)
        if reason:
            logger.warning("Rejected batch of %d item(s): %s", len(items), reason)
            return Decision(accepted=False, reason=reason, snapshot=self.status())

        record = _RunRecord(
            run_id=f"{int(time.time() * 1000)}-{next(_run_counter)}",
            total=len(items),
            account_name=options.account_name.value,
            headless=options.headless,
        )
        self._record = record
        self._task = asyncio.get_running_loop().create_task(
            self._execute(record, tuple(items), credentials, options),
            name=f"listing-run-{record.run_id}",
        )
        logger.info("Started run %s with %d item(s)", record.run_id, record.total)
        return Decision(accepted=True, snapshot=record.snapshot())

    def cancel(self) -> Decision:
        if not self.is_running:
            return Decision(accepted=False, reason="not_running", snapshot=self.status())
        self._record.token.cancel()
        logger.info("Cancellation requested for run %s", self._record.run_id)
        return Decision(accepted=True, snapshot=self.status())

    async def wait(self) -> RunSnapshot:
        if self._task is not None:
            await asyncio.wait({self._task})
        return self.status()

    async def run(self, items: Sequence[Item], credentials: Credentials, options: RunOptions | None = None) -> RunSnapshot:
        decision = self.start(items, credentials, options)
        if not decision.accepted:
            raise BatchRejected(decision.reason or "rejected")
        return await self.wait()

    async def _execute(
        self,
        record: _RunRecord,
        items: tuple[Item, ...],
        credentials: Credentials,
        options: RunOptions,
    ) -> None:
        try:
            async with self.session_opener(options) as session:
                page = await session.new_page()
                await self.authenticator.sign_in(page, credentials, options.account_name.value)
                await self._process_items(record, page, items)
            if record.status == RunStatus.RUNNING:
                record.status = RunStatus.COMPLETED
        except asyncio.CancelledError:
            record.status = RunStatus.ABORTED
            record.last_message = "Run task cancelled"
            raise
        except Exception as exc:
            logger.exception("Run %s stopped by an unrecoverable error", record.run_id)
            record.status = RunStatus.ERROR
            record.error = str(exc) or type(exc).__name__
        finally:
            record.current_item_id = None
            record.finished_at = datetime.now(timezone.utc)
            logger.info(
                "Run %s finished status=%s processed=%d/%d",
                record.run_id,
                record.status.value,
                len(record.results),
                record.total,
            )
            self._notify(record)

    async def _process_items(self, record: _RunRecord, page: PageDriver, items: tuple[Item, ...]) -> None:
        for item in items:
            if record.token.requested:
                record.status = RunStatus.ABORTED
                record.last_message = f"Cancelled before {item.identifier}"
                return

            record.current_item_id = item.identifier
            try:
                outcome = await self._process_item(page, item)
            except DriverTimeoutError as exc:
                logger.warning("Timed out on %s: %s", item.identifier, exc)
                outcome = Outcome.timed_out(item.identifier)
            except Exception as exc:
                self._append(record, Outcome.error(item.identifier, str(exc) or type(exc).__name__))
                raise
            self._append(record, outcome)

    async def _process_item(self, page: PageDriver, item: Item) -> Outcome:
        classification = await self.classifier.classify(page, item.search_term)
        if classification.kind == OutcomeKind.NOT_FOUND:
            return Outcome.not_found(item.identifier)
        if classification.kind == OutcomeKind.BRAND_RESTRICTED:
            return Outcome.brand_restricted(item.identifier)

        submitted = await self.submitter.submit(classification.listing_page, item)
        if submitted == OutcomeKind.INVALID_INPUT:
            return Outcome.invalid_input(item.identifier)
        return Outcome.success(item)

    def _append(self, record: _RunRecord, outcome: Outcome) -> None:
        record.results.append(outcome)
        record.last_message = f"{outcome.identifier}: {outcome.kind.value}"
        logger.info("[%d/%d] %s -> %s", len(record.results), record.total, outcome.identifier, outcome.kind.value)
        self._notify(record)

    def _notify(self, record: _RunRecord) -> None:
        if self.progress_listener is not None:
            self.progress_listener(record.snapshot())
