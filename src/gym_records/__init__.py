"""Gym Records - data export, import, backup and offline change tracking."""

__version__ = "2.0.0"
