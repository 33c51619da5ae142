"""Cover thumbnail generation.

Resizes an album's cover image into a bounded JPEG next to the mirrored
audio.
"""

import logging
from pathlib import Path
from typing import Optional

from PIL import Image

from classifier import COVER_OUTPUT_NAME
from config import Config
from errors import ThumbnailFailed

logger = logging.getLogger(__name__)


class Thumbnailer:
    """Writes cover.jpg thumbnails for album directories."""

    def __init__(self, config: Config):
        """Initialize thumbnailer.

        Args:
            config: Application configuration
        """
        self.size = config.cover.size
        self.jpeg_quality = config.cover.jpeg_quality

    def make_thumbnail(self, cover_source: Path, dest_dir: Path) -> Optional[Path]:
        """Write dest_dir/cover.jpg from a cover image.

        Args:
            cover_source: Source cover image (PNG or JPEG)
            dest_dir: Mirrored destination album directory

        Returns:
            Path of the written thumbnail, or None if one already existed

        Raises:
            ThumbnailFailed: If the image cannot be decoded or saved
        """
        dest = dest_dir / COVER_OUTPUT_NAME
        if dest.exists():
            return None

        try:
            with Image.open(cover_source) as img:
                img = self._to_rgb(img)
                img.thumbnail((self.size, self.size), Image.Resampling.LANCZOS)
                dest_dir.mkdir(parents=True, exist_ok=True)
                img.save(dest, 'JPEG', quality=self.jpeg_quality)
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            raise ThumbnailFailed(f"failed to resize cover: {e}", cover_source, dest) from e

        return dest

    @staticmethod
    def _to_rgb(img: Image.Image) -> Image.Image:
        # JPEG has no alpha; flatten onto white.
        if img.mode in ('RGBA', 'LA', 'P'):
            if img.mode == 'P':
                img = img.convert('RGBA')
            background = Image.new('RGB', img.size, (255, 255, 255))
            background.paste(img, mask=img.split()[-1])
            return background
        if img.mode != 'RGB':
            return img.convert('RGB')
        return img
