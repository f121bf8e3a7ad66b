"""vconvert - catalog a video library and convert it to HEVC."""

__version__ = "0.1.0"
