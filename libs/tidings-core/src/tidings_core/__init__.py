"""Tidings Core — configuration and logging shared by every Tidings library."""

__version__ = "0.1.0"
