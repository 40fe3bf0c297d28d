import argparse
import asyncio
import sys
from datetime import datetime, timedelta
from typing import Optional
from loguru import logger
from tqdm import tqdm

from places_enricher.batch_driver import BatchDriver
from places_enricher.clients import HttpClient, PlacesClient
from places_enricher.config import (
    INPUT_XLSX,
    LOG_LEVEL,
    NOT_FOUND_JSON,
    REQUEST_COUNTER_JSON,
    SHEET_CHOICES,
    last_processed_json_path,
    output_json_path,
)
from places_enricher.exceptions import PersistenceError
from places_enricher.models import RunReport, RunStatus
from places_enricher.sheet_reader import load_records_from_excel
from places_enricher.state import ProgressTracker, QuotaTracker, ResultStore

EXIT_CODES = {
    RunStatus.COMPLETED: 0,
    RunStatus.QUOTA_EXHAUSTED: 75,  # EX_TEMPFAIL: reschedule after the daily reset
    RunStatus.FAILED: 1,
}


def ask_for_sheet_number() -> int:
    """Prompt until the user enters one of SHEET_CHOICES."""
    low, high = min(SHEET_CHOICES), max(SHEET_CHOICES)
    while True:
        answer = input(f"What sheet number would you like to process ({low}-{high})? ")
        try:
            sheet_number = int(answer)
        except ValueError:
            sheet_number = None
        if sheet_number in SHEET_CHOICES:
            return sheet_number
        print(f"Invalid input. Please enter a number between {low} and {high}.")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Enrich spreadsheet locations with Google Places data")
    parser.add_argument("--sheet", type=int, choices=SHEET_CHOICES, help="Sheet number to process (prompted if omitted)")
    parser.add_argument("--input", default=INPUT_XLSX, help=f"Workbook path (default: {INPUT_XLSX})")
    return parser.parse_args(argv)


def quota_pause_message(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    resume = (now + timedelta(days=1)).replace(hour=0, minute=0, second=0, microsecond=0)
    return (
        f"Paused at {now:%Y-%m-%d %H:%M:%S}. Daily API limit reached. "
        f"Resuming after {resume:%Y-%m-%d %H:%M}."
    )


def summary_line(sheet_number: int, report: RunReport, quota: QuotaTracker, store: ResultStore) -> str:
    """One-line end-of-run summary: this run's counts, stored totals and today's remaining quota."""
    sheet_not_found = sum(1 for r in store.not_found() if r.get("sheetNumber") == sheet_number)
    return (
        f"Sheet {sheet_number}: {report.status.value} "
        f"(rows {report.start_index}->{report.next_index}, {report.matched} matched, "
        f"{report.not_found} not found this run; {len(store.matches())} matches and "
        f"{sheet_not_found} not found stored; {quota.remaining()} requests left today)"
    )


async def run_sheet(sheet_number: int, input_path: str) -> RunReport:
    """
    Process one sheet end to end.

    Args:
        sheet_number (int): Sheet to process; also names its progress and output files.
        input_path (str): Location workbook.

    Returns:
        RunReport: Outcome of the batch run.
    """
    client = PlacesClient()
    records = load_records_from_excel(input_path, sheet_number)
    progress = ProgressTracker(last_processed_json_path(sheet_number))
    bar = tqdm(
        total=len(records),
        initial=progress.load(),
        desc="Progress",
        ascii=" -#",
        dynamic_ncols=True,
    )

    def update_status(index: int, status: str) -> None:
        bar.n = index
        bar.set_postfix_str(f"Sheet:{sheet_number} | Status: {status}")

    quota = QuotaTracker(REQUEST_COUNTER_JSON)
    store = ResultStore(output_json_path(sheet_number), NOT_FOUND_JSON)
    driver = BatchDriver(
        partition_id=sheet_number,
        records=records,
        client=client,
        quota=quota,
        progress=progress,
        store=store,
        on_progress=update_status,
    )
    try:
        report = await driver.run()
    finally:
        # Cleanup: close the shared aiohttp session to prevent unclosed connector warnings
        await HttpClient().close()

    if report.status == RunStatus.QUOTA_EXHAUSTED:
        update_status(report.next_index, quota_pause_message())
    elif report.status == RunStatus.COMPLETED:
        update_status(len(records), "Processing completed.")
    else:
        update_status(report.next_index, f"Stopped at row {report.failed_indices[-1] + 1}")
    bar.close()
    logger.info(summary_line(sheet_number, report, quota, store))
    return report


async def main(argv=None) -> int:
    """
    Entry point: pick a sheet, run the enrichment loop, map the outcome to an exit code.
    """
    args = parse_args(argv)

    # Initialize logs; tqdm.write keeps log lines from breaking the progress bar
    logger.remove()
    logger.add(
        lambda msg: tqdm.write(msg, end=""),
        level=LOG_LEVEL,
        format="<green>{time:HH:mm:ss}</green> | <level>{message}</level>",
        colorize=True,
    )

    sheet_number = args.sheet if args.sheet is not None else ask_for_sheet_number()
    try:
        report = await run_sheet(sheet_number, args.input)
    except (PersistenceError, ValueError) as e:
        logger.error(f"Error processing locations: {e}")
        return 1

    return EXIT_CODES[report.status]


def cli() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
