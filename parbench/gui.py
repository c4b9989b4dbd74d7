from __future__ import annotations

import logging

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.animation import FuncAnimation
from matplotlib.collections import PatchCollection
from matplotlib.patches import Rectangle

from .grid import GridSnapshot, RequestGrid, RequestSlot, RequestState
from .stats import status_class

LOGGER = logging.getLogger("parbench.gui")

FRAME_INTERVAL_MS = 100
DPI = 100

# (fill, outline) RGB pairs
COLORS: dict[str, tuple[tuple[int, int, int], tuple[int, int, int]]] = {
    "yellow": ((210, 210, 0), (255, 255, 0)),
    "dark-gray": ((105, 105, 105), (120, 120, 120)),
    "light-gray": ((220, 220, 220), (235, 235, 235)),
    "blue": ((120, 120, 255), (150, 150, 255)),
    "white": ((255, 255, 255), (240, 240, 240)),
    "red": ((255, 105, 105), (250, 120, 120)),
    "black": ((0, 0, 0), (255, 0, 0)),
}

STATE_COLORS = {
    RequestState.UNTRIED: "light-gray",
    RequestState.REQUESTED: "yellow",
    RequestState.FAILED: "black",
}

STATUS_CLASS_COLORS = {
    "2xx": "dark-gray",
    "3xx": "blue",
    "4xx": "white",
    "5xx": "red",
    "other": "black",
}


def color_name(slot: RequestSlot) -> str:
    if slot.state is RequestState.RESPONDED:
        return STATUS_CLASS_COLORS[status_class(slot.status)]
    return STATE_COLORS[slot.state]


def slot_colors(slot: RequestSlot) -> tuple[tuple[int, int, int], tuple[int, int, int]]:
    return COLORS[color_name(slot)]


def snapshot_colors(snapshot: GridSnapshot) -> tuple[np.ndarray, np.ndarray]:
    """Row-major (fill, outline) arrays of RGB floats in [0, 1]."""
    pairs = [slot_colors(slot) for slot in snapshot]
    fills = np.array([fill for fill, _ in pairs], dtype=float) / 255.0
    outlines = np.array([outline for _, outline in pairs], dtype=float) / 255.0
    return fills, outlines


class GridRenderer:
    """Draws one square per slot, colored by state and response class."""

    def __init__(self, grid: RequestGrid, scale: int, frame_interval_ms: int = FRAME_INTERVAL_MS) -> None:
        self._grid = grid
        self._scale = scale
        self._frame_interval_ms = frame_interval_ms
        self._animation: FuncAnimation | None = None

        self.width = scale * grid.requests
        self.height = scale * grid.concurrency
        self.figure = plt.figure(figsize=(self.width / DPI, self.height / DPI), dpi=DPI)
        if self.figure.canvas.manager is not None:
            self.figure.canvas.manager.set_window_title("Parbench")
        self.axes = self.figure.add_axes((0, 0, 1, 1))
        self.axes.set_xlim(0, self.width)
        # Row 0 at the top.
        self.axes.set_ylim(self.height, 0)
        self.axes.set_axis_off()

        squares = [
            Rectangle((scale * col, scale * row), scale, scale)
            for row in range(grid.concurrency)
            for col in range(grid.requests)
        ]
        self._squares = PatchCollection(squares, linewidths=1.0)
        self.axes.add_collection(self._squares)

    def draw_frame(self, _frame: int | None = None) -> tuple[PatchCollection]:
        snapshot = self._grid.snapshot()
        fills, outlines = snapshot_colors(snapshot)
        self._squares.set_facecolor(fills)
        self._squares.set_edgecolor(outlines)
        for slot in snapshot:
            if not slot.rendered:
                self._grid.mark_rendered(slot.row, slot.col)
        return (self._squares,)

    def animate(self) -> FuncAnimation:
        if self._animation is None:
            self._animation = FuncAnimation(
                self.figure,
                self.draw_frame,
                interval=self._frame_interval_ms,
                cache_frame_data=False,
            )
        return self._animation

    def show(self) -> None:
        LOGGER.info("Opening %dx%d grid window", self.width, self.height)
        self.animate()
        plt.show()

    def close(self) -> None:
        plt.close(self.figure)


__all__ = [
    "FRAME_INTERVAL_MS",
    "COLORS",
    "STATE_COLORS",
    "STATUS_CLASS_COLORS",
    "color_name",
    "slot_colors",
    "snapshot_colors",
    "GridRenderer",
]
