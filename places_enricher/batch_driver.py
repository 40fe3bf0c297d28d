"""
Checkpointed, rate-limited enrichment loop over one sheet of records.

Records are processed strictly one at a time. For each complete record the
driver reserves one request from the daily quota, looks the business up, stores
the outcome, and only then commits progress, so an interrupted run loses at most
the record in flight. Quota exhaustion stops the run without sleeping; the caller
decides when to start again.
"""
import asyncio
import random
from typing import Awaitable, Callable, List, Optional
from loguru import logger

from places_enricher.config import PACE_BASE_SECONDS, PACE_JITTER_SECONDS, TRANSIENT_FAILURE_POLICY
from places_enricher.models import (
    InputRecord,
    LookupStatus,
    NotFoundRecord,
    RunReport,
    RunStatus,
)
from places_enricher.state import ProgressTracker, QuotaTracker, ResultStore

FAILURE_POLICIES = ("abort", "skip")

ProgressCallback = Callable[[int, str], None]


class BatchDriver:
    def __init__(
        self,
        partition_id: int,
        records: List[InputRecord],
        client,
        quota: QuotaTracker,
        progress: ProgressTracker,
        store: ResultStore,
        failure_policy: str = TRANSIENT_FAILURE_POLICY,
        pace_base: float = PACE_BASE_SECONDS,
        pace_jitter: float = PACE_JITTER_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: Optional[random.Random] = None,
        on_progress: Optional[ProgressCallback] = None,
    ):
        if failure_policy not in FAILURE_POLICIES:
            raise ValueError(f"failure_policy must be one of {FAILURE_POLICIES}, got '{failure_policy}'")
        self.partition_id = partition_id
        self.records = records
        self.client = client
        self.quota = quota
        self.progress = progress
        self.store = store
        self.failure_policy = failure_policy
        self.pace_base = pace_base
        self.pace_jitter = pace_jitter
        self._sleep = sleep
        self._rng = rng or random.Random()
        self._on_progress = on_progress
        self.status = RunStatus.IDLE

    def _notify(self, index: int, text: str) -> None:
        if self._on_progress is not None:
            self._on_progress(index, text)

    def _transition(self, report: RunReport, status: RunStatus) -> None:
        logger.debug(f"Sheet {self.partition_id}: {self.status.value} -> {status.value}")
        self.status = status
        report.status = status

    async def _pace(self) -> None:
        delay = self.pace_base + self._rng.uniform(0, self.pace_jitter)
        logger.debug(f"⏳ Waiting {delay:.2f}s before next request")
        await self._sleep(delay)

    async def run(self) -> RunReport:
        """
        Process records from the last committed index to the end of the sheet.

        Returns:
            RunReport: Final status (COMPLETED, QUOTA_EXHAUSTED or FAILED) with counters.

        Raises:
            PersistenceError: If any state or output file cannot be read or written.
        """
        start = self.progress.load()
        total = len(self.records)
        report = RunReport(partition_id=self.partition_id, start_index=start, next_index=start)
        self._transition(report, RunStatus.RUNNING)
        logger.info(f"Sheet {self.partition_id}: resuming at row {start}/{total}")

        for i in range(start, total):
            record = self.records[i]
            if not record.is_complete:
                logger.debug(f"Skipping row {i}: missing business name or address")
                report.skipped += 1
                continue

            self._notify(i, f"Processing row {i + 1}/{total}")
            decision = self.quota.try_consume()
            if not decision.permitted:
                logger.warning(
                    f"Sheet {self.partition_id}: daily quota exhausted at row {i} "
                    f"({decision.count} requests today)"
                )
                self._transition(report, RunStatus.QUOTA_EXHAUSTED)
                return report

            result = await self.client.lookup(record.business_name, record.address)

            if result.status == LookupStatus.MATCH:
                self.store.record_match(result.candidate)
                report.matched += 1
                logger.info(f"Row {i}: matched '{record.business_name}' (score {result.score:.2f})")
            elif result.status == LookupStatus.NOT_FOUND:
                self.store.record_not_found(
                    NotFoundRecord(record.business_name, record.address, self.partition_id)
                )
                report.not_found += 1
                logger.info(f"Row {i}: no Places result for '{record.business_name}'")
            else:
                report.failed_indices.append(i)
                if self.failure_policy == "abort":
                    logger.error(f"Row {i}: lookup failed ({result.reason}), stopping run")
                    self._transition(report, RunStatus.FAILED)
                    return report
                logger.error(f"Row {i}: lookup failed ({result.reason}), skipping row")
                if i < total - 1:
                    await self._pace()
                continue

            self.progress.commit(i + 1)
            report.next_index = i + 1
            self._notify(i + 1, f"Processed row {i + 1}/{total}")

            if i < total - 1:
                await self._pace()

        self._transition(report, RunStatus.COMPLETED)
        logger.info(
            f"Sheet {self.partition_id} - Processing completed: {report.matched} matched, "
            f"{report.not_found} not found, {report.skipped} skipped"
        )
        return report
