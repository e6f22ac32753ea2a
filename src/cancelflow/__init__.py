"""CancelFlow - subscription cancellation wizard and API."""

__version__ = "0.1.0"
