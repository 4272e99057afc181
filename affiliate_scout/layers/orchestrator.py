"""
Batch Orchestrator for Affiliate Scout.
Pulls pending subjects and drives concurrent discovery pipelines with
inter-batch pacing.

- Single batch: up to N pending subjects, processed in sub-batches of
  ``concurrency`` subjects with full fan-out; sub-batches run in order.
- Auto-continuation: repeat single batches, pausing between them, until
  the queue is empty or a stop is requested.

One subject's failure never aborts a batch.
"""
import asyncio
from typing import Awaitable, Callable, List, Optional, Protocol

from affiliate_scout.adapters.record_store import RecordStore
from affiliate_scout.config import clamp_batch_size, clamp_pause_seconds
from affiliate_scout.errors import RecordStoreError
from affiliate_scout.layers.prober import SubjectProber
from affiliate_scout.models.subject import (
    AutoRunSummary,
    BatchResult,
    PendingSubject,
    SubjectResult,
    SubjectStatus,
)
from affiliate_scout.utils.logger import LayerLogger, get_logger, set_trace_id


DEFAULT_CONCURRENCY = 5
COUNTDOWN_STEP_SECONDS = 10


class ProgressSink(Protocol):
    """Receives human-readable progress messages."""

    def report(self, event: str, message: str, **data) -> None:
        ...


class LogProgressSink:
    """Default sink: progress messages go to the structured log."""

    def __init__(self):
        self.logger = get_logger("progress")

    def report(self, event: str, message: str, **data) -> None:
        self.logger.info(event, message=message, **data)


class BatchOrchestrator:
    """
    Queue-driven scheduler for subject pipelines.

    Args:
        store: Record store (injected, shared with the prober)
        prober: Per-subject pipeline; built over ``store`` when omitted
        progress: Progress sink; structured log when omitted
        concurrency: Subjects processed together in one sub-batch
        sleep: Awaitable sleep used for the inter-batch pause
    """

    def __init__(
        self,
        store: RecordStore,
        prober: Optional[SubjectProber] = None,
        progress: Optional[ProgressSink] = None,
        concurrency: int = DEFAULT_CONCURRENCY,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.store = store
        self.prober = prober or SubjectProber(store)
        self.progress = progress or LogProgressSink()
        self.concurrency = max(1, concurrency)
        self.sleep = sleep
        self.logger = LayerLogger("batch_orchestrator")
        self._stop_requested = False
        self._running = False

    @property
    def is_running(self) -> bool:
        """True while an auto-continuation run is in progress."""
        return self._running

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested

    def request_stop(self) -> None:
        """Ask a running auto-continuation to stop before its next batch."""
        self._stop_requested = True
        self.logger.log_action("auto_continue", "stop_requested")

    # =========================================================================
    # SINGLE BATCH
    # =========================================================================

    async def run_batch(self, batch_size: Optional[int] = None) -> BatchResult:
        """
        Process one page of pending subjects.

        Raises:
            RecordStoreError: the pending page could not be read
        """
        limit = clamp_batch_size(batch_size)
        subjects = await self.store.fetch_pending(limit)

        if not subjects:
            self.progress.report("batch_empty", "No pending subjects to process")
            return BatchResult()

        return await self.process_subjects(subjects)

    async def process_subjects(self, subjects: List[PendingSubject]) -> BatchResult:
        """Fan out per sub-batch; sub-batches run one after another."""
        total = len(subjects)
        result = BatchResult(total=total)
        chunks = [subjects[i:i + self.concurrency] for i in range(0, total, self.concurrency)]

        self.progress.report(
            "batch_started",
            f"Processing {total} subjects in {len(chunks)} sub-batches of up to {self.concurrency}",
            total=total,
            sub_batches=len(chunks),
        )

        for index, chunk in enumerate(chunks, start=1):
            self.progress.report(
                "sub_batch_started",
                f"Sub-batch {index}/{len(chunks)} with {len(chunk)} subjects",
                sub_batch=index,
                size=len(chunk),
            )
            chunk_results = await asyncio.gather(*(self.process_subject(subject) for subject in chunk))

            for subject_result in chunk_results:
                result.results.append(subject_result)
                if subject_result.success:
                    result.successful += 1
                else:
                    result.failed += 1

            self.progress.report(
                "sub_batch_completed",
                f"Processed {len(result.results)}/{total} subjects "
                f"({result.successful} successful, {result.failed} failed)",
                processed=len(result.results),
                successful=result.successful,
                failed=result.failed,
            )

        self.progress.report(
            "batch_completed",
            f"Batch complete: {result.successful} successful, {result.failed} failed of {total}",
            total=total,
            successful=result.successful,
            failed=result.failed,
        )
        return result

    async def process_subject(self, subject: PendingSubject) -> SubjectResult:
        """
        Run one subject pipeline; every failure is contained here.

        On an unrecovered error the subject is marked Not Found with the
        error in its notes so it does not sit in the queue forever.
        """
        set_trace_id()
        self.progress.report(
            "subject_started",
            f"Processing {subject.tool_name} ({subject.website_url})",
            subject_id=subject.id,
        )

        try:
            outcome = await self.prober.process(subject)
        except Exception as e:
            error = str(e) or e.__class__.__name__
            self.logger.log_error(
                f"Subject pipeline failed: {error}",
                error_type=e.__class__.__name__,
                subject_id=subject.id,
            )
            await self._mark_failed(subject, error)
            self.progress.report(
                "subject_failed",
                f"Failed to process {subject.tool_name}: {error}",
                subject_id=subject.id,
            )
            return SubjectResult(
                subject_id=subject.id,
                tool_name=subject.tool_name,
                success=False,
                error=error,
            )

        self.progress.report(
            "subject_completed",
            f"Processed {subject.tool_name}: {outcome.status.value}",
            subject_id=subject.id,
            status=outcome.status.value,
        )
        return SubjectResult(
            subject_id=subject.id,
            tool_name=subject.tool_name,
            success=True,
            status=outcome.status,
        )

    async def _mark_failed(self, subject: PendingSubject, error: str) -> None:
        """Best-effort defensive write; its own failure is only logged."""
        try:
            await self.store.update_subject(subject.id, {
                "status": SubjectStatus.NOT_FOUND.value,
                "notes": f"Error: {error}",
            })
        except Exception as e:
            self.logger.log_error(
                f"Defensive status write failed: {str(e)}",
                error_type="defensive_write_failed",
                subject_id=subject.id,
            )

    # =========================================================================
    # AUTO-CONTINUATION
    # =========================================================================

    async def auto_continue(
        self,
        batch_size: Optional[int] = None,
        pause_seconds: Optional[float] = None,
    ) -> AutoRunSummary:
        """
        Run batches until no pending subjects remain or a stop is requested.

        The queue is re-counted once per iteration; the pause between
        batches is a global throttle across all target sites.
        """
        limit = clamp_batch_size(batch_size)
        pause = clamp_pause_seconds(pause_seconds)
        summary = AutoRunSummary()

        self._stop_requested = False
        self._running = True
        self.logger.log_action("auto_continue", "started", batch_size=limit, pause_seconds=pause)

        try:
            while True:
                if self._stop_requested:
                    summary.stopped_reason = "stop_requested"
                    break

                self.progress.report("auto_batch_started", f"Starting batch {summary.batches + 1}")
                try:
                    result = await self.run_batch(limit)
                except RecordStoreError as e:
                    self.logger.log_error(str(e), error_type="store_error")
                    summary.stopped_reason = "store_error"
                    break
                except Exception as e:
                    self.logger.log_error(str(e), error_type=e.__class__.__name__)
                    summary.stopped_reason = "error"
                    break

                if result.total == 0:
                    summary.stopped_reason = "no_pending"
                    break

                summary.batches += 1
                summary.total_processed += result.total
                summary.total_successful += result.successful
                summary.total_failed += result.failed

                self.progress.report(
                    "auto_batch_completed",
                    f"Batch {summary.batches} complete. Total: {summary.total_processed} subjects "
                    f"({summary.total_successful} successful, {summary.total_failed} failed)",
                    batches=summary.batches,
                )

                try:
                    remaining = await self.store.count_pending()
                except RecordStoreError as e:
                    self.logger.log_error(str(e), error_type="store_error")
                    summary.stopped_reason = "store_error"
                    break
                except Exception as e:
                    self.logger.log_error(str(e), error_type=e.__class__.__name__)
                    summary.stopped_reason = "error"
                    break

                if remaining == 0:
                    summary.stopped_reason = "no_pending"
                    break

                await self._pause(pause, remaining)
        finally:
            self._running = False

        self.progress.report(
            "auto_run_completed",
            f"Automated scraping complete! Processed {summary.total_processed} subjects "
            f"({summary.total_successful} successful, {summary.total_failed} failed)",
            **summary.model_dump(),
        )
        return summary

    async def _pause(self, seconds: float, remaining: int) -> None:
        """Sleep between batches, reporting a countdown; a stop request ends it early."""
        self.progress.report(
            "pause_started",
            f"Pausing for {seconds:g} seconds before next batch ({remaining} pending)",
            seconds=seconds,
            pending=remaining,
        )
        left = seconds
        while left > 0 and not self._stop_requested:
            step = min(COUNTDOWN_STEP_SECONDS, left)
            await self.sleep(step)
            left -= step
            if left > 0:
                self.progress.report("pause_countdown", f"Next batch in {left:g} seconds", seconds_left=left)
