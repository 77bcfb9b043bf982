"""Patch sampler: pick a clean source rectangle next to each region.

The sampler never looks at pixel content. It moves the region's own pixel
rectangle by its extent plus a fixed gap, away from the frame edge the region
sits against, and clamps the result back into the frame. The same region and
frame size always produce the same source rectangle.
"""

from typing import Tuple

from .regions import Direction, Region
from .utils import Rect, clamp_rect_to_frame

# Safe distance from the overlay edge, in pixels
DEFAULT_GAP = 35

# Literal (tie-break) step sign per hint, as (x_sign, y_sign)
_LITERAL_SIGNS = {
    Direction.LEFT: (-1, 0),
    Direction.RIGHT: (1, 0),
    Direction.TOP: (0, -1),
    Direction.BOTTOM: (0, 1),
    Direction.HORIZONTAL: (1, 0),
    Direction.VERTICAL: (0, -1),
    Direction.CORNER: (1, 1),
}

# Fractional slack when deciding whether a region is centred on an axis
_CENTER_TOLERANCE = 1e-6

def region_rect(region: Region, frame_w: int, frame_h: int) -> Rect:
    """Convert a fractional region into a pixel rectangle inside the frame.

    Args:
        region: Region to convert
        frame_w: Frame width in pixels
        frame_h: Frame height in pixels

    Returns:
        Rectangle as (x, y, width, height); at least 1×1 for a non-empty frame
    """
    if frame_w <= 0 or frame_h <= 0:
        return (0, 0, 0, 0)

    x = int(region.x_frac * frame_w)
    y = int(region.y_frac * frame_h)
    w = max(1, int(region.w_frac * frame_w))
    h = max(1, int(region.h_frac * frame_h))
    return clamp_rect_to_frame((x, y, w, h), (frame_h, frame_w))

def _away_sign(start: float, extent: float, literal: int) -> int:
    """Sign that moves a fractional span away from the frame edge it is closest to."""
    twice_center = 2.0 * start + extent
    if abs(twice_center - 1.0) <= _CENTER_TOLERANCE:
        return literal
    return 1 if twice_center < 1.0 else -1

def step_signs(region: Region) -> Tuple[int, int]:
    """Resolve a region's direction hint into per-axis step signs.

    The hint picks the axis; the region's position on that axis picks the
    sign. A region centred on the axis falls back to the hint's literal
    direction. Position is judged on the region's fractions so the choice
    does not depend on the frame size.
    """
    literal_x, literal_y = _LITERAL_SIGNS[region.hint]
    sign_x = sign_y = 0
    if region.hint in (Direction.LEFT, Direction.RIGHT, Direction.HORIZONTAL, Direction.CORNER):
        sign_x = _away_sign(region.x_frac, region.w_frac, literal_x)
    if region.hint in (Direction.TOP, Direction.BOTTOM, Direction.VERTICAL, Direction.CORNER):
        sign_y = _away_sign(region.y_frac, region.h_frac, literal_y)
    return sign_x, sign_y

def sample_source(region: Region, frame_w: int, frame_h: int, gap: int = DEFAULT_GAP) -> Rect:
    """Compute the source rectangle used to rebuild a region.

    Args:
        region: Region to rebuild
        frame_w: Frame width in pixels
        frame_h: Frame height in pixels
        gap: Extra offset beyond the region's own extent, in pixels

    Returns:
        Rectangle with the region's pixel size, fully inside the frame
    """
    x, y, w, h = rect = region_rect(region, frame_w, frame_h)
    if w == 0 or h == 0:
        return rect

    sign_x, sign_y = step_signs(region)
    sample_x = x + sign_x * (w + gap)
    sample_y = y + sign_y * (h + gap)

    # Boundary clamping keeps the size, shifting the rectangle back inside
    sample_x = max(0, min(frame_w - w, sample_x))
    sample_y = max(0, min(frame_h - h, sample_y))
    return (sample_x, sample_y, w, h)
