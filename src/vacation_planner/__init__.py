"""Scheduled vacation-spot recommendation pipeline."""

__version__ = "0.1.0"
