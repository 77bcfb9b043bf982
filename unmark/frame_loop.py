"""Frame loop driver: redraw and reconstruct the output surface while media plays.

The driver runs as a single asyncio task. Every tick it copies the media's
current frame into its `FrameSurface` and, unless the compare-original flag
is set, rebuilds every catalog region on that surface. Ticks keep being
scheduled while the media is paused or ended so playback resumes promptly;
only the draw and composite work is skipped.

`start()` hands back a `LoopHandle`. `stop()` invalidates it and cancels the
task, so a stopped loop can never draw again.
"""

import asyncio
from typing import Callable, List, Optional, Protocol

import cv2
import numpy as np

from .engine import ReconstructionEngine
from .utils import FrameArray, setup_logger

logger = setup_logger(__name__)

DEFAULT_REFRESH_HZ = 60.0


class MediaSource(Protocol):
    """What the driver needs from a playing video."""

    @property
    def is_playing(self) -> bool: ...

    def current_frame(self) -> Optional[FrameArray]: ...


class FrameSurface:
    """Mutable BGR pixel buffer matching the media's native size."""

    def __init__(self, width: int = 0, height: int = 0):
        self.pixels: FrameArray = np.zeros((height, width, 3), dtype=np.uint8)

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    def resize(self, width: int, height: int) -> bool:
        """Reallocate the buffer if the size changed. Returns True if it did."""
        if (width, height) == (self.width, self.height):
            return False
        self.pixels = np.zeros((height, width, 3), dtype=np.uint8)
        return True

    def draw(self, frame: FrameArray) -> None:
        """Copy a raw frame into the buffer, scaling it to the surface size."""
        if frame.ndim == 2:
            frame = cv2.cvtColor(frame, cv2.COLOR_GRAY2BGR)
        if frame.shape[:2] != self.pixels.shape[:2]:
            frame = cv2.resize(frame, (self.width, self.height))
        np.copyto(self.pixels, frame)

    def snapshot(self) -> FrameArray:
        return self.pixels.copy()


class LoopHandle:
    """Capability token for one run of the frame loop."""

    def __init__(self):
        self._active = True
        self.task: Optional[asyncio.Task] = None

    @property
    def active(self) -> bool:
        return self._active

    def invalidate(self) -> None:
        self._active = False


FrameListener = Callable[[FrameSurface], None]


class FrameLoopDriver:
    """Drives the reconstruction engine once per display refresh."""

    def __init__(
        self,
        engine: ReconstructionEngine,
        compare_original: Callable[[], bool] = lambda: False,
        refresh_hz: float = DEFAULT_REFRESH_HZ,
    ):
        if refresh_hz <= 0:
            raise ValueError(f"Refresh rate must be positive. Got: {refresh_hz}")
        self.engine = engine
        self.compare_original = compare_original
        self.refresh_hz = refresh_hz
        self.surface = FrameSurface()
        self.frames_rendered = 0
        self._media: Optional[MediaSource] = None
        self._handle: Optional[LoopHandle] = None
        self._listeners: List[FrameListener] = []

    @property
    def running(self) -> bool:
        return self._handle is not None and self._handle.active

    def add_listener(self, listener: FrameListener) -> None:
        """Call `listener(surface)` after every rendered tick."""
        self._listeners.append(listener)

    def start(self, media: MediaSource, surface: Optional[FrameSurface] = None) -> LoopHandle:
        """Begin ticking against `media`. Must be called inside a running event loop.

        Any previous run is stopped first.
        """
        if self._handle is not None:
            self.stop()
        self._media = media
        if surface is not None:
            self.surface = surface

        handle = LoopHandle()
        handle.task = asyncio.get_running_loop().create_task(self._run(handle))
        self._handle = handle
        logger.info(f"Frame loop started at {self.refresh_hz:.0f} Hz")
        return handle

    def stop(self) -> None:
        """Cancel the pending tick and invalidate the current handle."""
        handle, self._handle = self._handle, None
        if handle is None:
            return
        handle.invalidate()
        if handle.task is not None and not handle.task.done():
            handle.task.cancel()
        logger.info(f"Frame loop stopped after {self.frames_rendered} frames")

    def tick(self) -> bool:
        """Run one tick body. Returns True if a frame was drawn."""
        media = self._media
        if media is None or not media.is_playing:
            return False
        frame = media.current_frame()
        if frame is None:
            return False

        height, width = frame.shape[:2]
        if self.surface.resize(width, height):
            logger.info(f"Output surface resized to {width}×{height}")
        self.surface.draw(frame)

        # Compositing always follows the raw draw within a tick
        if not self.compare_original():
            self.engine.reconstruct(self.surface.pixels)

        self.frames_rendered += 1
        for listener in self._listeners:
            listener(self.surface)
        return True

    async def _run(self, handle: LoopHandle) -> None:
        interval = 1.0 / self.refresh_hz
        while handle.active:
            try:
                self.tick()
            except Exception as e:
                logger.exception(f"Frame tick failed: {e}")
            await asyncio.sleep(interval)
