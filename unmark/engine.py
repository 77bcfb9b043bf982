"""Reconstruction engine: runs the sampler and compositor over a catalog."""

from typing import List, Optional, Tuple

from .compositor import Compositor
from .regions import RegionCatalog, get_catalog
from .sampler import DEFAULT_GAP, region_rect, sample_source
from .utils import FrameArray, Rect, setup_logger

logger = setup_logger(__name__)


class ReconstructionEngine:
    """Rebuilds every catalog region of a frame, in catalog order."""

    def __init__(
        self,
        catalog: Optional[RegionCatalog] = None,
        compositor: Optional[Compositor] = None,
        gap: int = DEFAULT_GAP,
    ):
        self.catalog = catalog or get_catalog()
        self.compositor = compositor or Compositor()
        self.gap = gap
        logger.debug(f"Engine ready with {self.catalog!r}, gap={gap}px")

    def plan(self, frame_w: int, frame_h: int) -> List[Tuple[Rect, Rect]]:
        """Return (target, source) rectangles for each region at a frame size."""
        return [
            (region_rect(region, frame_w, frame_h),
             sample_source(region, frame_w, frame_h, gap=self.gap))
            for region in self.catalog.regions()
        ]

    def reconstruct(self, pixels: FrameArray) -> FrameArray:
        """Rebuild all regions of `pixels` in place and return it.

        Source rectangles are recomputed for the current frame size on every
        call. A region may sample pixels that an earlier region in the same
        call already rebuilt.
        """
        frame_h, frame_w = pixels.shape[:2]
        for target, source in self.plan(frame_w, frame_h):
            self.compositor.apply(pixels, target, source)
        return pixels
