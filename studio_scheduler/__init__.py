"""Booking and scheduling engine for a dance studio."""

__version__ = "0.1.0"
