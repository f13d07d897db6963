import asyncio
import logging
from typing import Any, Callable, Coroutine, TypeVar

import numpy as np

from canvas_tools.surface import Surface

T = TypeVar("T")

logging.basicConfig(level=logging.DEBUG)


def run(coroutine: Coroutine[Any, Any, T]) -> T:
    return asyncio.run(coroutine)


def solid_surface(
    width: int, height: int, color: tuple[int, int, int, int] = (255, 0, 0, 255)
) -> Surface:
    data = np.empty((height, width, 4), dtype=np.uint8)
    data[:] = color
    return Surface.fromarray(data)


def indexed_surface(width: int, height: int) -> Surface:
    """Opaque surface whose pixels encode their own position in R and G."""
    ys, xs = np.mgrid[0:height, 0:width]
    data = np.zeros((height, width, 4), dtype=np.uint8)
    data[:, :, 0] = xs
    data[:, :, 1] = ys
    data[:, :, 3] = 255
    return Surface.fromarray(data)


def find_pixel(surface: Surface, x: int, y: int) -> tuple[int, int]:
    """Position in `surface` of the pixel encoding source position (x, y)."""
    data = surface.data
    match = (data[:, :, 0] == x) & (data[:, :, 1] == y) & (data[:, :, 3] == 255)
    rows, cols = np.nonzero(match)
    assert len(rows) == 1, "expected one match, got %d" % len(rows)
    return int(cols[0]), int(rows[0])


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class FakeHandle:
    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Frame scheduler collecting the requested callbacks."""

    def __init__(self) -> None:
        self.callbacks: list[Callable[[], None]] = []
        self.handles: list[FakeHandle] = []

    def __call__(self, callback: Callable[[], None]) -> FakeHandle:
        self.callbacks.append(callback)
        handle = FakeHandle()
        self.handles.append(handle)
        return handle

    def run_next(self) -> None:
        self.callbacks.pop(0)()


class FailingFontLoader:
    def __init__(self, error: Exception = OSError("cannot open resource")):
        self.error = error
        self.calls = 0

    async def load(self, font: str, size: float) -> Any:
        self.calls += 1
        raise self.error
