"""File classification for the library mirror.

Decides what happens to each entry in the source tree and where its
output lands in the destination tree. No filesystem writes happen here.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from config import Config

# Checked in order; PNG wins when both exist.
COVER_NAMES = ("cover.png", "cover.jpg")
COVER_OUTPUT_NAME = "cover.jpg"


class Kind(Enum):
    TRANSCODE_AUDIO = "transcode"
    COPY_AUDIO = "copy"
    COVER_IMAGE = "cover"
    IGNORE = "ignore"


@dataclass(frozen=True)
class Job:
    """One unit of per-file work handed to exactly one worker."""
    source: Path
    destination: Path
    kind: Kind
    bitrate: Optional[int] = None

    def __post_init__(self):
        if self.kind not in (Kind.TRANSCODE_AUDIO, Kind.COPY_AUDIO):
            raise ValueError(f"not a queueable job kind: {self.kind}")


@dataclass(frozen=True)
class CoverTask:
    """A cover thumbnail the walker makes itself; never queued."""
    source: Path
    destination: Path

    @property
    def kind(self) -> Kind:
        return Kind.COVER_IMAGE


def classify(path: Path) -> Kind:
    """Classify a single file by name and lower-cased extension."""
    if path.name in COVER_NAMES:
        return Kind.COVER_IMAGE

    ext = path.suffix.lower()
    if ext == ".flac":
        return Kind.TRANSCODE_AUDIO
    if ext == ".mp3":
        return Kind.COPY_AUDIO
    return Kind.IGNORE


class Classifier:
    """Maps source files to jobs under the destination root."""

    def __init__(self, config: Config):
        self.src_dir = config.paths.src_dir
        self.dest_dir = config.paths.dest_dir
        self.output_ext = config.encoding.output_ext
        self.bitrate = config.encoding.bitrate

    def mirror_path(self, source_path: Path) -> Path:
        """Map a path under the source root to the same place under the destination root.

        Raises:
            ValueError: If source_path is not under the source root
        """
        return self.dest_dir / source_path.relative_to(self.src_dir)

    def destination_for(self, source_path: Path, kind: Kind) -> Path:
        dest = self.mirror_path(source_path)
        if kind is Kind.TRANSCODE_AUDIO:
            return dest.with_suffix(self.output_ext)
        return dest

    def job_for(self, source_path: Path) -> Optional[Job]:
        """Build the job for an audio file, or None if nothing is queued for it."""
        kind = classify(source_path)
        if kind is Kind.TRANSCODE_AUDIO:
            return Job(
                source=source_path,
                destination=self.destination_for(source_path, kind),
                kind=kind,
                bitrate=self.bitrate,
            )
        if kind is Kind.COPY_AUDIO:
            return Job(
                source=source_path,
                destination=self.destination_for(source_path, kind),
                kind=kind,
            )
        return None

    def find_cover(self, directory: Path) -> Optional[Path]:
        """Return the cover image of a source directory, if it has one."""
        for name in COVER_NAMES:
            candidate = directory / name
            if candidate.is_file():
                return candidate
        return None


class Outcome(Enum):
    CONVERTED = "converted"
    COPIED = "copied"
    THUMBNAILED = "thumbnailed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class JobResult:
    """What happened to a job or cover; handed to the result sink."""
    job: Union[Job, CoverTask]
    outcome: Outcome
    error: Optional[BaseException] = None
