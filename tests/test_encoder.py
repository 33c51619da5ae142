import subprocess
import sys
from pathlib import Path
from unittest import mock

import pytest

from encoder import Encoder
from errors import ConversionFailed


def test_aac_command(make_config):
    encoder = Encoder(make_config(codec="aac", bitrate=256))

    cmd = encoder.build_command(Path("in.flac"), Path("out.m4a"))

    assert cmd == [
        "qaac64", "--cvbr", "256", "--ignorelength", "--copy-artwork",
        "in.flac", "-o", "out.m4a",
    ]


def test_opus_command_uses_forced_bitrate(make_config):
    encoder = Encoder(make_config(codec="opus", bitrate=192))

    cmd = encoder.build_command(Path("in.flac"), Path("out.opus"))

    assert cmd == ["opusenc", "--bitrate", "160", "in.flac", "out.opus"]


def test_custom_binaries(make_config):
    encoder = Encoder(make_config(qaac_bin="/opt/qaac/qaac64.exe"))

    assert encoder.build_command(Path("a.flac"), Path("a.m4a"))[0] == "/opt/qaac/qaac64.exe"


def test_unknown_codec_is_rejected(make_config):
    encoder = Encoder(make_config())

    with pytest.raises(ConversionFailed, match="unsupported codec"):
        encoder.build_command(Path("a.flac"), Path("a.x"), codec="vorbis")


def test_encode_runs_command_and_creates_parent(make_config, tmp_path):
    encoder = Encoder(make_config())
    destination = tmp_path / "out" / "album" / "a.m4a"

    with mock.patch("encoder.subprocess.run") as run:
        encoder.encode(tmp_path / "a.flac", destination, bitrate=128)

    assert destination.parent.is_dir()
    cmd = run.call_args[0][0]
    assert cmd[:3] == ["qaac64", "--cvbr", "128"]
    assert cmd[-1] == str(destination)


@pytest.mark.skipif(sys.platform == "win32", reason="uses a shell script as the encoder")
def test_undecodable_encoder_output_is_not_a_failure(make_config, tmp_path):
    fake_qaac = tmp_path / "qaac64"
    fake_qaac.write_text(
        "#!/bin/sh\n"
        "printf 'Encoding \\377\\376 track\\n' >&2\n"
        "exit 0\n"
    )
    fake_qaac.chmod(0o755)
    encoder = Encoder(make_config(qaac_bin=str(fake_qaac)))

    encoder.encode(tmp_path / "a.flac", tmp_path / "out" / "a.m4a")


@pytest.mark.skipif(sys.platform == "win32", reason="uses a shell script as the encoder")
def test_undecodable_stderr_kept_in_failure_message(make_config, tmp_path):
    fake_qaac = tmp_path / "qaac64"
    fake_qaac.write_text(
        "#!/bin/sh\n"
        "printf 'cannot open \\377.flac\\n' >&2\n"
        "exit 3\n"
    )
    fake_qaac.chmod(0o755)
    encoder = Encoder(make_config(qaac_bin=str(fake_qaac)))

    with pytest.raises(ConversionFailed, match="status 3: cannot open"):
        encoder.encode(tmp_path / "a.flac", tmp_path / "out" / "a.m4a")


def test_non_zero_exit_wraps_stderr(make_config, tmp_path):
    encoder = Encoder(make_config())
    error = subprocess.CalledProcessError(2, ["qaac64"], stderr="bad header\n")

    with mock.patch("encoder.subprocess.run", side_effect=error):
        with pytest.raises(ConversionFailed) as exc_info:
            encoder.encode(tmp_path / "a.flac", tmp_path / "a.m4a")

    assert "status 2" in str(exc_info.value)
    assert "bad header" in str(exc_info.value)
    assert exc_info.value.__cause__ is error


def test_launch_failure_is_conversion_failed(make_config, tmp_path):
    encoder = Encoder(make_config(qaac_bin=str(tmp_path / "no-such-encoder")))

    with pytest.raises(ConversionFailed, match="unable to launch"):
        encoder.encode(tmp_path / "a.flac", tmp_path / "out" / "a.m4a")


def test_verify_reports_missing_binary(make_config, tmp_path):
    encoder = Encoder(make_config(codec="opus", opusenc_bin=str(tmp_path / "missing-opusenc")))

    assert encoder.verify() is False
