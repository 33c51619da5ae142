"""Source tree traversal.

Walks the source library once, thumbnails each album's cover in place
and hands audio jobs to the caller.
"""

import logging
import os
from pathlib import Path
from typing import Callable, Optional

from classifier import COVER_OUTPUT_NAME, Classifier, CoverTask, Job, JobResult, Outcome
from config import Config
from errors import ThumbnailFailed, WalkError
from thumbnailer import Thumbnailer

logger = logging.getLogger(__name__)


class TreeWalker:
    """Single-pass producer over the source tree."""

    def __init__(self, config: Config, classifier: Classifier,
                 thumbnailer: Optional[Thumbnailer],
                 on_result: Callable[[JobResult], None],
                 dry_run: bool = False):
        """Initialize walker.

        Args:
            config: Application configuration
            classifier: Maps source files to jobs
            thumbnailer: Cover thumbnailer, or None to skip covers entirely
            on_result: Sink for cover outcomes
            dry_run: If True, report covers without writing anything
        """
        self.src_dir = config.paths.src_dir
        self.classifier = classifier
        self.thumbnailer = thumbnailer
        self.on_result = on_result
        self.dry_run = dry_run

    def walk(self, submit: Callable[[Job], None]) -> int:
        """Visit every directory and file under the source root.

        Args:
            submit: Called with each audio job; may block

        Returns:
            Number of jobs submitted

        Raises:
            WalkError: If the tree cannot be traversed
        """
        if not self.src_dir.is_dir():
            raise WalkError(f"source directory does not exist: {self.src_dir}")

        logger.info(f"Scanning: {self.src_dir}")
        submitted = 0

        for dirpath, dirnames, filenames in os.walk(self.src_dir, onerror=self._raise):
            directory = Path(dirpath)
            dirnames.sort()

            # Cover first, so the album directory exists before its audio is queued.
            self._handle_cover(directory)

            for name in sorted(filenames):
                try:
                    job = self.classifier.job_for(directory / name)
                except ValueError as e:
                    raise WalkError(f"unable to determine relative path: {e}") from e
                if job is None:
                    continue
                submit(job)
                submitted += 1

        return submitted

    def _handle_cover(self, directory: Path) -> None:
        if self.thumbnailer is None:
            return

        cover = self.classifier.find_cover(directory)
        if cover is None:
            return

        try:
            dest_dir = self.classifier.mirror_path(directory)
        except ValueError as e:
            raise WalkError(f"unable to determine relative directory path: {e}") from e
        task = CoverTask(source=cover, destination=dest_dir / COVER_OUTPUT_NAME)

        if self.dry_run:
            logger.info(f"Would thumbnail: {cover} -> {task.destination}")
            return

        try:
            dest_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise WalkError(f"unable to create destination directory {dest_dir}: {e}") from e

        try:
            written = self.thumbnailer.make_thumbnail(cover, dest_dir)
        except ThumbnailFailed as e:
            self.on_result(JobResult(task, Outcome.FAILED, e))
            return

        self.on_result(JobResult(task, Outcome.THUMBNAILED if written else Outcome.SKIPPED))

    @staticmethod
    def _raise(error: OSError) -> None:
        raise WalkError(f"error visiting {error.filename}: {error.strerror or error}") from error
