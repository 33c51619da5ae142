from pathlib import Path

import pytest

from classifier import Classifier, Kind, classify
from conftest import write_image


@pytest.mark.parametrize("name, expected", [
    ("track.flac", Kind.TRANSCODE_AUDIO),
    ("TRACK.FLAC", Kind.TRANSCODE_AUDIO),
    ("track.mp3", Kind.COPY_AUDIO),
    ("Track.Mp3", Kind.COPY_AUDIO),
    ("cover.png", Kind.COVER_IMAGE),
    ("cover.jpg", Kind.COVER_IMAGE),
    ("folder.jpg", Kind.IGNORE),
    ("track.wav", Kind.IGNORE),
    ("album.cue", Kind.IGNORE),
    ("README", Kind.IGNORE),
])
def test_classify_by_extension(name, expected):
    assert classify(Path("album") / name) is expected


@pytest.mark.parametrize("codec, ext", [("aac", ".m4a"), ("opus", ".opus")])
def test_flac_destination_extension_follows_codec(make_config, src_dir, codec, ext):
    config = make_config(codec=codec)
    classifier = Classifier(config)

    job = classifier.job_for(config.paths.src_dir / "Artist" / "Album" / "01 Intro.flac")

    assert job.kind is Kind.TRANSCODE_AUDIO
    assert job.destination == config.paths.dest_dir / "Artist" / "Album" / f"01 Intro{ext}"
    assert job.bitrate == config.encoding.bitrate


def test_mp3_destination_keeps_extension(make_config):
    config = make_config(codec="opus")
    classifier = Classifier(config)

    job = classifier.job_for(config.paths.src_dir / "a" / "song.MP3")

    assert job.kind is Kind.COPY_AUDIO
    assert job.destination == config.paths.dest_dir / "a" / "song.MP3"
    assert job.bitrate is None


def test_non_audio_files_produce_no_job(make_config):
    config = make_config()
    classifier = Classifier(config)

    assert classifier.job_for(config.paths.src_dir / "a" / "cover.png") is None
    assert classifier.job_for(config.paths.src_dir / "a" / "log.txt") is None


def test_distinct_sources_never_share_a_destination(make_config):
    config = make_config()
    classifier = Classifier(config)
    root = config.paths.src_dir

    a = classifier.job_for(root / "x" / "song.flac")
    b = classifier.job_for(root / "y" / "song.flac")

    assert a.destination != b.destination


def test_path_outside_source_root_is_rejected(make_config, tmp_path):
    classifier = Classifier(make_config())

    with pytest.raises(ValueError):
        classifier.mirror_path(tmp_path / "elsewhere" / "song.flac")


def test_find_cover_prefers_png(make_config, src_dir):
    classifier = Classifier(make_config())
    album = src_dir / "album"
    write_image(album / "cover.jpg")
    write_image(album / "cover.png")

    assert classifier.find_cover(album) == album / "cover.png"


def test_find_cover_falls_back_to_jpg(make_config, src_dir):
    classifier = Classifier(make_config())
    album = src_dir / "album"
    write_image(album / "cover.jpg")

    assert classifier.find_cover(album) == album / "cover.jpg"


def test_find_cover_ignores_directories_named_like_covers(make_config, src_dir):
    classifier = Classifier(make_config())
    album = src_dir / "album"
    (album / "cover.png").mkdir(parents=True)

    assert classifier.find_cover(album) is None
