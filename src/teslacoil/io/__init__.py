"""Timeline export and video encoding."""

from teslacoil.io.encoder import encode_video
from teslacoil.io.exporter import TimelineExporter

__all__ = ["encode_video", "TimelineExporter"]
