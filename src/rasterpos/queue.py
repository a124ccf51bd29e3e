"""In-memory print queue with job expiry."""

import asyncio
import logging
from collections import defaultdict
from collections.abc import Callable

from rasterpos.models.job import JobKind, JobStatus, PrintJob
from rasterpos.printers.base import BasePrinter

logger = logging.getLogger(__name__)

OFFLINE_RETRY_SECONDS = 5.0


class PrintQueue:
    """In-memory print queue with per-printer queues and job expiry.

    Each printer gets its own worker task, so jobs for one printer run in
    submission order while different printers print concurrently.
    """

    def __init__(self, timeout_seconds: int = 300, offline_retry_seconds: float = OFFLINE_RETRY_SECONDS) -> None:
        self.timeout_seconds = timeout_seconds
        self.offline_retry_seconds = offline_retry_seconds
        self._queues: dict[str, asyncio.Queue[PrintJob]] = defaultdict(asyncio.Queue)
        self._jobs: dict[str, PrintJob] = {}  # job_id -> job for status tracking
        self._tasks: dict[str, asyncio.Task] = {}

    async def submit(self, job: PrintJob) -> None:
        """Submit a print job to the queue.

        Args:
            job: The print job to queue.
        """
        self._jobs[str(job.id)] = job
        await self._queues[job.printer_name].put(job)
        logger.info(f"Job {job.id} ({job.kind}) queued for printer {job.printer_name}")

    def get_job(self, job_id: str) -> PrintJob | None:
        """Get a job by ID."""
        return self._jobs.get(job_id)

    def get_queue_size(self, printer_name: str) -> int:
        """Get the number of jobs in a printer's queue."""
        return self._queues[printer_name].qsize()

    async def join(self, printer_name: str) -> None:
        """Wait until every job queued for ``printer_name`` has been processed."""
        await self._queues[printer_name].join()

    async def start_worker(
        self,
        printer: BasePrinter,
        on_status_change: Callable[[PrintJob], None] | None = None,
    ) -> None:
        """Start a background worker for a printer.

        Args:
            printer: The printer instance to process jobs for.
            on_status_change: Optional callback when job status changes.
        """
        if printer.name in self._tasks:
            logger.warning(f"Worker for {printer.name} already running")
            return

        task = asyncio.create_task(
            self._worker_loop(printer, on_status_change),
            name=f"printer-worker-{printer.name}",
        )
        self._tasks[printer.name] = task
        logger.info(f"Started worker for printer {printer.name}")

    async def stop_worker(self, printer_name: str) -> None:
        """Stop a printer's background worker."""
        if printer_name in self._tasks:
            self._tasks[printer_name].cancel()
            try:
                await self._tasks[printer_name]
            except asyncio.CancelledError:
                pass
            del self._tasks[printer_name]
            logger.info(f"Stopped worker for printer {printer_name}")

    async def stop_all(self) -> None:
        """Stop all printer workers."""
        for printer_name in list(self._tasks.keys()):
            await self.stop_worker(printer_name)

    @staticmethod
    async def _run_job(printer: BasePrinter, job: PrintJob) -> None:
        if job.kind == JobKind.RASTER and job.bitmap is not None:
            await printer.print_bitmap(job.bitmap)
        elif job.kind == JobKind.RAW and job.data:
            await printer.print_raw(job.data)
        elif job.kind == JobKind.CASH_DRAWER:
            await printer.open_cash_drawer()

    async def _worker_loop(
        self,
        printer: BasePrinter,
        on_status_change: Callable[[PrintJob], None] | None,
    ) -> None:
        """Background worker loop for processing print jobs."""
        queue = self._queues[printer.name]

        while True:
            job = await queue.get()
            try:
                # Check if job has expired
                if job.is_expired(self.timeout_seconds):
                    job.status = JobStatus.EXPIRED
                    logger.info(f"Job {job.id} expired")
                    if on_status_change:
                        on_status_change(job)
                    continue

                job.status = JobStatus.PRINTING
                if on_status_change:
                    on_status_change(job)

                try:
                    if not await printer.is_online():
                        # Re-queue the job and wait before retrying
                        job.status = JobStatus.PENDING
                        await queue.put(job)
                        logger.debug(f"Printer {printer.name} offline, job {job.id} re-queued")
                        await asyncio.sleep(self.offline_retry_seconds)
                        continue

                    await self._run_job(printer, job)
                    job.status = JobStatus.COMPLETED
                    logger.info(f"Job {job.id} completed")

                except Exception as e:
                    job.status = JobStatus.FAILED
                    job.error_message = str(e)
                    logger.error(f"Job {job.id} failed: {e}")

                if on_status_change:
                    on_status_change(job)

            except asyncio.CancelledError:
                logger.info(f"Worker for {printer.name} cancelled")
                raise
            finally:
                queue.task_done()
