from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from listing_worker.config import get_settings
from listing_worker.errors import BatchRejected
from listing_worker.models import AccountName, RunOptions, RunStatus, SearchType, ensure_account_name
from listing_worker.orchestrator import BatchOrchestrator
from listing_worker.records import load_items, validate_identifier, write_results


def run_once(
    input_path: Path,
    output_path: Path,
    account_name: str | None,
    search_type: SearchType,
    show_browser: bool,
) -> RunStatus:
    settings = get_settings()
    items = load_items(input_path, search_type)
    for item in items:
        problem = validate_identifier(item.identifier, search_type, item.search_code)
        if problem:
            raise ValueError(f"{item.identifier or '<blank>'}: {problem}")

    options = RunOptions(
        account_name=ensure_account_name(account_name or settings.account_name),
        headless=settings.headless and not show_browser,
    )
    orchestrator = BatchOrchestrator.from_settings(settings)
    snapshot = asyncio.run(orchestrator.run(items, settings.credentials(), options))
    write_results(output_path, snapshot)
    print(
        f"run={snapshot.run_id} status={snapshot.status.value} total={snapshot.total} "
        f"processed={snapshot.processed} output={output_path}"
    )
    if snapshot.error:
        print(f"error={snapshot.error}", file=sys.stderr)
    return snapshot.status


def main() -> None:
    parser = argparse.ArgumentParser(description="Seller portal listing-entry worker")
    parser.add_argument("--input", required=True, type=Path, help="CSV/TSV with identifier, price and stock columns")
    parser.add_argument("--output", default=Path("result.csv"), type=Path)
    parser.add_argument("--account", choices=[account.value for account in AccountName])
    parser.add_argument("--search-type", default=SearchType.JAN.value, choices=[kind.value for kind in SearchType])
    parser.add_argument("--show-browser", action="store_true", help="Run with a visible browser window")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])

    args = parser.parse_args()
    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        status = run_once(
            input_path=args.input,
            output_path=args.output,
            account_name=args.account,
            search_type=SearchType(args.search_type),
            show_browser=args.show_browser,
        )
    except (BatchRejected, ValueError) as exc:
        parser.exit(2, f"{exc}\n")
    if status != RunStatus.COMPLETED:
        sys.exit(1)


if __name__ == "__main__":
    main()
