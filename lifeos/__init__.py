"""LifeOS calendar optimization engine."""

__version__ = "0.1.0"
