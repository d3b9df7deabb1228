"""Read-through cache service for Twitter user timelines."""

__version__ = "1.0.0"
