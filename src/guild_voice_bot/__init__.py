"""Discord voice bot with per-guild serialized track queues."""

__version__ = "0.1.0"
