"""streambot -- chat bot that keeps an audio bridge open on platform calls."""

__version__ = "1.0.0"
