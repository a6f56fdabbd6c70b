"""Scroll coordination module.

Auto-scroll policy, frame scheduling and transcript windowing. Nothing here
depends on a UI toolkit; the renderer feeds in viewport geometry and
receives scroll-to-end callbacks.
"""

from .coordinator import AT_BOTTOM_THRESHOLD, ScrollCoordinator
from .scheduler import FrameScheduler, LoopFrameScheduler, ScheduledHandle
from .windowing import VirtualItem, VirtualWindow

__all__ = [
    "AT_BOTTOM_THRESHOLD",
    "FrameScheduler",
    "LoopFrameScheduler",
    "ScheduledHandle",
    "ScrollCoordinator",
    "VirtualItem",
    "VirtualWindow",
]
