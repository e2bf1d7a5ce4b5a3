"""Driver companion service: route sequencing, navigation progress and backend access."""

__version__ = "0.1.0"
