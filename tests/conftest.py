import threading
from pathlib import Path

import pytest
from PIL import Image

from config import build_config
from encoder import Encoder
from errors import ConversionFailed


class FakeEncoder(Encoder):
    """Records encode calls and writes a placeholder output instead of running qaac/opusenc."""

    def __init__(self, config, fail_on=(), delay=None):
        super().__init__(config)
        self.calls = []
        self.fail_on = set(fail_on)
        self.delay = delay
        self._lock = threading.Lock()

    def verify(self):
        return True

    def encode(self, source, destination, codec=None, bitrate=None):
        with self._lock:
            self.calls.append((source, destination, bitrate))
        if self.delay is not None:
            self.delay()
        if source.name in self.fail_on:
            raise ConversionFailed("conversion failed: exit status 1", source, destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(b"ENCODED:" + source.read_bytes())


def write_image(path: Path, size=(800, 600), mode="RGB", color=(200, 30, 30)):
    path.parent.mkdir(parents=True, exist_ok=True)
    img = Image.new(mode, size, color)
    fmt = "PNG" if path.suffix == ".png" else "JPEG"
    img.save(path, fmt)
    return path


@pytest.fixture
def src_dir(tmp_path):
    root = tmp_path / "src"
    root.mkdir()
    return root


@pytest.fixture
def dest_dir(tmp_path):
    return tmp_path / "dest"


@pytest.fixture
def make_config(src_dir, dest_dir):
    def _make(**overrides):
        overrides.setdefault("src_dir", str(src_dir))
        overrides.setdefault("dest_dir", str(dest_dir))
        return build_config(None, **overrides)
    return _make


@pytest.fixture
def album(src_dir):
    """
    Creates the reference album:
    - album/track.flac
    - album/track.mp3
    - album/cover.png (800x600)
    - album/notes.txt (ignored)
    """
    album_dir = src_dir / "album"
    album_dir.mkdir()
    (album_dir / "track.flac").write_bytes(b"fLaC-FAKE-AUDIO")
    (album_dir / "track.mp3").write_bytes(b"ID3-FAKE-MP3-DATA" * 100)
    (album_dir / "notes.txt").write_text("liner notes")
    write_image(album_dir / "cover.png")
    return album_dir
