"""Audio encoding module using qaac (AAC) and opusenc (Opus).

Handles FLAC conversion by launching the external encoder for one file.
"""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional

from config import Config, SUPPORTED_CODECS
from errors import ConversionFailed

logger = logging.getLogger(__name__)


class Encoder:
    """Wrapper around the external AAC and Opus encoders.

    A failed run may leave a partial output file behind; it is not
    removed here.
    """

    def __init__(self, config: Config):
        """Initialize encoder.

        Args:
            config: Application configuration
        """
        self.codec = config.encoding.codec
        self.bitrate = config.encoding.bitrate
        self.qaac_bin = config.paths.qaac_bin
        self.opusenc_bin = config.paths.opusenc_bin

    @property
    def binary(self) -> str:
        return self.qaac_bin if self.codec == "aac" else self.opusenc_bin

    def build_command(self, source: Path, destination: Path,
                      codec: Optional[str] = None, bitrate: Optional[int] = None) -> List[str]:
        """Build the encoder command line.

        Raises:
            ConversionFailed: If the codec is not supported
        """
        codec = codec or self.codec
        bitrate = bitrate or self.bitrate

        if codec == "aac":
            return [
                self.qaac_bin,
                '--cvbr', str(bitrate),
                '--ignorelength',
                '--copy-artwork',
                str(source),
                '-o', str(destination),
            ]
        if codec == "opus":
            return [
                self.opusenc_bin,
                '--bitrate', str(bitrate),
                str(source),
                str(destination),
            ]
        raise ConversionFailed(
            f"unsupported codec: {codec} (expected one of {', '.join(SUPPORTED_CODECS)})",
            source, destination,
        )

    def encode(self, source: Path, destination: Path,
               codec: Optional[str] = None, bitrate: Optional[int] = None) -> None:
        """Encode a FLAC file.

        Args:
            source: Input FLAC file path
            destination: Output .m4a or .opus file path
            codec: Codec override, defaults to the configured codec
            bitrate: Bitrate override, defaults to the configured bitrate

        Raises:
            ConversionFailed: If the encoder cannot be launched or fails
        """
        cmd = self.build_command(source, destination, codec, bitrate)

        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConversionFailed(
                f"unable to create destination directory: {e}", source, destination
            ) from e

        logger.debug(f"Command: {' '.join(cmd)}")

        try:
            subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                errors='replace',
                check=True
            )
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or "").strip()
            raise ConversionFailed(
                f"conversion failed: {cmd[0]} exited with status {e.returncode}"
                + (f": {stderr}" if stderr else ""),
                source, destination,
            ) from e
        except OSError as e:
            raise ConversionFailed(
                f"conversion failed: unable to launch {cmd[0]}: {e}", source, destination
            ) from e

    def verify(self) -> bool:
        """Check that the encoder for the configured codec is on PATH.

        Returns:
            True if the encoder binary was found
        """
        if shutil.which(self.binary) is None:
            logger.warning(
                f"Encoder not found: {self.binary}. FLAC conversions will fail."
            )
            return False
        return True
