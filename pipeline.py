"""Main processing pipeline.

One producer (the tree walker) feeds a bounded job queue consumed by a
fixed pool of worker threads. Each job is skipped if its destination
already exists; a failing job is reported and never stops the pool.
"""

import logging
import queue
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, List, Optional

from classifier import Classifier, Job, JobResult, Kind, Outcome
from config import Config
from copier import copy_file
from encoder import Encoder
from errors import JobError
from thumbnailer import Thumbnailer
from walker import TreeWalker

logger = logging.getLogger(__name__)

_CLOSED = object()


@dataclass
class RunStats:
    """Statistics for a processing run."""
    jobs: int = 0
    converted: int = 0
    copied: int = 0
    skipped: int = 0
    failed: int = 0
    covers: int = 0
    covers_failed: int = 0


class JobQueue:
    """Bounded FIFO channel between one producer and any number of consumers.

    put() blocks while the queue is full. After close(), consumers drain
    the remaining jobs and then stop; every job is delivered to exactly
    one consumer.
    """

    def __init__(self, maxsize: int):
        self._queue = queue.Queue(maxsize=max(1, maxsize))
        self._closed = False

    def put(self, job: Job) -> None:
        if self._closed:
            raise RuntimeError("put() on a closed JobQueue")
        self._queue.put(job)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put(_CLOSED)

    def __iter__(self) -> Iterator[Job]:
        while True:
            item = self._queue.get()
            if item is _CLOSED:
                # Pass the marker on; it is the only item left, so this never blocks.
                self._queue.put(_CLOSED)
                return
            yield item


def destination_exists(path: Path) -> bool:
    """Existence-only check; an earlier partial output counts as done."""
    try:
        path.stat()
    except FileNotFoundError:
        return False
    return True


class JobRunner:
    """Applies one job: skip, convert or copy."""

    def __init__(self, encoder: Encoder, copy: Callable[[Path, Path], None] = copy_file):
        self.encoder = encoder
        self.copy = copy

    def run(self, job: Job) -> JobResult:
        try:
            if destination_exists(job.destination):
                return JobResult(job, Outcome.SKIPPED)
        except OSError as e:
            return JobResult(job, Outcome.FAILED,
                             JobError(f"error checking file: {e}", job.source, job.destination))

        try:
            if job.kind is Kind.TRANSCODE_AUDIO:
                self.encoder.encode(job.source, job.destination, bitrate=job.bitrate)
                return JobResult(job, Outcome.CONVERTED)
            if job.kind is Kind.COPY_AUDIO:
                self.copy(job.source, job.destination)
                return JobResult(job, Outcome.COPIED)
            raise JobError(f"unsupported job kind: {job.kind.value}", job.source, job.destination)
        except JobError as e:
            return JobResult(job, Outcome.FAILED, e)


class WorkerPool:
    """Fixed number of worker threads consuming a JobQueue."""

    def __init__(self, jobs: JobQueue, handler: Callable[[Job], JobResult],
                 on_result: Callable[[JobResult], None], workers: int):
        self.jobs = jobs
        self.handler = handler
        self.on_result = on_result
        self.workers = workers
        self._threads: List[threading.Thread] = []

    def start(self) -> None:
        for i in range(self.workers):
            t = threading.Thread(
                target=self._worker,
                name=f"worker-{i + 1}",
                daemon=False
            )
            t.start()
            self._threads.append(t)
        logger.debug(f"Started {self.workers} worker thread(s)")

    def join(self) -> None:
        for t in self._threads:
            t.join()
        self._threads = []

    def _worker(self) -> None:
        for job in self.jobs:
            try:
                result = self.handler(job)
            except Exception as e:
                logger.exception(f"Unexpected error processing {job.source}")
                result = JobResult(job, Outcome.FAILED, e)
            try:
                self.on_result(result)
            except Exception:
                logger.exception(f"Failed to report result for {job.source}")


class ResultReporter:
    """Default result sink: one progress line per result plus run totals."""

    def __init__(self):
        self.stats = RunStats()
        self._lock = threading.Lock()

    def __call__(self, result: JobResult) -> None:
        job = result.job
        with self._lock:
            self._tally(result)

        if result.outcome is Outcome.SKIPPED:
            logger.info(f"Skipping (file already exists): {job.destination}")
        elif result.outcome is Outcome.CONVERTED:
            logger.info(f"Converted: {job.source} -> {job.destination}")
        elif result.outcome is Outcome.COPIED:
            logger.info(f"Copied: {job.source} -> {job.destination}")
        elif result.outcome is Outcome.THUMBNAILED:
            logger.info(f"Cover saved: {job.destination}")
        else:
            action = {
                Kind.TRANSCODE_AUDIO: "converting",
                Kind.COPY_AUDIO: "copying",
                Kind.COVER_IMAGE: "resizing cover",
            }.get(job.kind, "processing")
            logger.error(f"Error {action} {job.source}: {result.error}")

    def _tally(self, result: JobResult) -> None:
        if result.job.kind is Kind.COVER_IMAGE:
            if result.outcome is Outcome.THUMBNAILED:
                self.stats.covers += 1
            elif result.outcome is Outcome.FAILED:
                self.stats.covers_failed += 1
            else:
                self.stats.skipped += 1
            return

        self.stats.jobs += 1
        if result.outcome is Outcome.CONVERTED:
            self.stats.converted += 1
        elif result.outcome is Outcome.COPIED:
            self.stats.copied += 1
        elif result.outcome is Outcome.SKIPPED:
            self.stats.skipped += 1
        else:
            self.stats.failed += 1


class Pipeline:
    """Walk the source tree and mirror it with a pool of workers."""

    def __init__(self, config: Config, dry_run: bool = False,
                 encoder: Optional[Encoder] = None,
                 copy: Optional[Callable[[Path, Path], None]] = None,
                 thumbnailer: Optional[Thumbnailer] = None,
                 on_result: Optional[Callable[[JobResult], None]] = None):
        """Initialize pipeline.

        Args:
            config: Application configuration
            dry_run: If True, only walk and report without processing
            encoder: Encoder to use instead of the configured one
            copy: Copy function to use instead of copy_file
            thumbnailer: Thumbnailer to use instead of the configured one
            on_result: Extra sink called with every result after the reporter
        """
        self.config = config
        self.dry_run = dry_run

        self.classifier = Classifier(config)
        self.encoder = encoder or Encoder(config)
        self.copy = copy or copy_file
        if thumbnailer is None and config.cover.enabled:
            thumbnailer = Thumbnailer(config)
        self.thumbnailer = thumbnailer

        self.reporter = ResultReporter()
        self._extra_sink = on_result

    @property
    def stats(self) -> RunStats:
        return self.reporter.stats

    def run(self) -> RunStats:
        """Run the complete pipeline.

        Returns:
            Processing statistics

        Raises:
            WalkError: After all queued jobs have drained, if the walk failed
        """
        if self.dry_run:
            return self._run_dry()

        self.encoder.verify()

        workers = self.config.processing.workers
        jobs = JobQueue(self.config.processing.queue_size)
        pool = WorkerPool(jobs, JobRunner(self.encoder, self.copy).run, self._report, workers)
        walker = TreeWalker(self.config, self.classifier, self.thumbnailer, self._report)

        # Workers that did start are always released, even if a later one fails to start.
        try:
            pool.start()
            submitted = walker.walk(jobs.put)
            logger.info(f"Queued {submitted} file(s)")
        finally:
            jobs.close()
            pool.join()

        return self.stats

    def _run_dry(self) -> RunStats:
        walker = TreeWalker(self.config, self.classifier, self.thumbnailer, self._report,
                            dry_run=True)

        def plan(job: Job) -> None:
            verb = "convert" if job.kind is Kind.TRANSCODE_AUDIO else "copy"
            logger.info(f"Would {verb}: {job.source} -> {job.destination}")

        self.stats.jobs = walker.walk(plan)
        return self.stats

    def _report(self, result: JobResult) -> None:
        self.reporter(result)
        if self._extra_sink is not None:
            self._extra_sink(result)
