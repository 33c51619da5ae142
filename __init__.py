"""flacmirror - Music Library Mirror

Mirrors a FLAC/MP3 music library into a portable copy: FLAC is
transcoded to AAC (qaac) or Opus (opusenc) by a pool of workers, MP3 is
copied unchanged and album covers are resized into cover.jpg thumbnails.
"""

__version__ = "1.0.0"
__license__ = "MIT"
