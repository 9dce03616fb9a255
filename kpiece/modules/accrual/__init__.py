"""Scheduled passive income."""

from .clock import AccrualClock, AccrualMetrics

__all__ = ["AccrualClock", "AccrualMetrics"]
