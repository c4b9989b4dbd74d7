"""
Concurrency-load visualizer for HTTP benchmarking.

This package fires sequences of HTTP requests from many concurrent workers,
tracks every individual request in a shared grid, and renders that grid live
as a colored window and/or console statistics.
"""

from .grid import GridSnapshot, RequestGrid, RequestSlot, RequestState
from .timing import TimingTracker

__all__ = [
    "GridSnapshot",
    "RequestGrid",
    "RequestSlot",
    "RequestState",
    "TimingTracker",
]
