"""Local pattern recognition and analytics engine for pain-tracking data."""

__version__ = "0.1.0"
