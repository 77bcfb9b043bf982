"""Multi-pass compositor that rebuilds a region from a neighbouring patch.

For each region the compositor snapshots the source patch once, then layers
a sequence of filtered copies of it over the region, clipped to a rounded
rectangle so no hard seam shows at the corners. The default recipe runs:

1. Base fill: heavy blur with a slight brightness lift and mild contrast boost, fully opaque
2. Texture pass: contrast up, saturation down, light blur at 60% opacity
3. Seam diffusion: very heavy blur at 30% opacity
4. Grain re-injection: sparse light and dark dots at 5% opacity

Blur radii follow CSS filter semantics (Gaussian standard deviation in px).
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

import cv2
import numpy as np

from .utils import FrameArray, MaskArray, Rect, rect_in_bounds, setup_logger

logger = setup_logger(__name__)


@dataclass(frozen=True)
class BlendPass:
    """One filtered copy of the source patch composited over the region."""

    alpha: float = 1.0
    blur: float = 0.0
    brightness: float = 1.0
    contrast: float = 1.0
    saturation: float = 1.0

    def __post_init__(self) -> None:
        if not 0.0 <= self.alpha <= 1.0:
            raise ValueError(f"Pass alpha must be within [0, 1]. Got: {self.alpha}")
        if self.blur < 0:
            raise ValueError(f"Pass blur must be non-negative. Got: {self.blur}")


@dataclass(frozen=True)
class GrainSpec:
    """Synthetic sensor noise scattered over a rebuilt region."""

    count: int = 60
    alpha: float = 0.05
    size: int = 1

    def __post_init__(self) -> None:
        if self.count < 0:
            raise ValueError(f"Grain count must be non-negative. Got: {self.count}")
        if not 0.0 <= self.alpha <= 1.0:
            raise ValueError(f"Grain alpha must be within [0, 1]. Got: {self.alpha}")
        if self.size < 1:
            raise ValueError(f"Grain size must be at least 1px. Got: {self.size}")


DEFAULT_PASSES: Tuple[BlendPass, ...] = (
    BlendPass(alpha=1.0, blur=12.0, brightness=1.02, contrast=1.05),
    BlendPass(alpha=0.6, blur=2.0, contrast=1.1, saturation=0.9),
    BlendPass(alpha=0.3, blur=30.0),
)


@dataclass(frozen=True)
class CompositeRecipe:
    """Ordered blend passes plus the mask and grain settings."""

    passes: Tuple[BlendPass, ...] = DEFAULT_PASSES
    corner_ratio: float = 0.12  # corner radius as a fraction of the short side
    grain: GrainSpec = field(default_factory=GrainSpec)


def rounded_rect_mask(width: int, height: int, radius: int) -> MaskArray:
    """Create a boolean rounded-rectangle mask filling a width×height box.

    Args:
        width: Mask width in pixels
        height: Mask height in pixels
        radius: Corner radius in pixels (capped at half the short side)

    Returns:
        H×W bool array, True inside the rounded rectangle
    """
    radius = max(0, min(radius, width // 2, height // 2))
    if radius == 0:
        return np.ones((height, width), dtype=bool)

    mask = np.zeros((height, width), dtype=np.uint8)
    right, bottom = width - 1, height - 1
    cv2.rectangle(mask, (radius, 0), (right - radius, bottom), 1, -1)
    cv2.rectangle(mask, (0, radius), (right, bottom - radius), 1, -1)
    for center in ((radius, radius), (right - radius, radius),
                   (radius, bottom - radius), (right - radius, bottom - radius)):
        cv2.circle(mask, center, radius, 1, -1)
    return mask.astype(bool)

def filter_patch(patch: np.ndarray, blend: BlendPass) -> np.ndarray:
    """Apply a pass's blur and tone adjustments to a float32 BGR patch."""
    out = patch
    if blend.blur > 0:
        out = cv2.GaussianBlur(out, (0, 0), sigmaX=blend.blur, sigmaY=blend.blur)
    if blend.brightness != 1.0:
        out = out * blend.brightness
    if blend.contrast != 1.0:
        out = (out - 127.5) * blend.contrast + 127.5
    if blend.saturation != 1.0 and out.ndim == 3 and out.shape[2] == 3:
        gray = cv2.cvtColor(out.astype(np.float32), cv2.COLOR_BGR2GRAY)[..., np.newaxis]
        out = gray + blend.saturation * (out - gray)
    return np.clip(out, 0.0, 255.0)


class Compositor:
    """Rebuilds target rectangles of a frame in place."""

    def __init__(
        self,
        recipe: Optional[CompositeRecipe] = None,
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None,
    ):
        self.recipe = recipe or CompositeRecipe()
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self._masks: Dict[Tuple[int, int], MaskArray] = {}

    def mask_for(self, width: int, height: int) -> MaskArray:
        """Rounded mask for a region size, cached per size."""
        key = (width, height)
        if key not in self._masks:
            radius = int(round(min(width, height) * self.recipe.corner_ratio))
            self._masks[key] = rounded_rect_mask(width, height, radius)
        return self._masks[key]

    def apply(self, surface: FrameArray, target: Rect, source: Rect) -> None:
        """Overwrite `target` with content synthesized from `source`.

        Only pixels inside the target's rounded mask are written. Invalid
        rectangles leave the surface untouched.

        Args:
            surface: H×W×3 uint8 frame, modified in place
            target: Region rectangle as (x, y, width, height)
            source: Source rectangle of the same size
        """
        frame_shape = surface.shape[:2]
        if not rect_in_bounds(target, frame_shape):
            logger.debug(f"Target {target} outside frame {frame_shape}; skipping")
            return
        if not rect_in_bounds(source, frame_shape) or source[2:] != target[2:]:
            logger.debug(f"Source {source} unusable for target {target}; skipping")
            return

        tx, ty, w, h = target
        sx, sy = source[0], source[1]
        try:
            patch = surface[sy:sy + h, sx:sx + w].astype(np.float32)
            view = surface[ty:ty + h, tx:tx + w]
            canvas = view.astype(np.float32)
            mask = self.mask_for(w, h)

            for blend in self.recipe.passes:
                layer = filter_patch(patch, blend)
                canvas[mask] = blend.alpha * layer[mask] + (1.0 - blend.alpha) * canvas[mask]

            self._inject_grain(canvas, mask)
            view[mask] = np.clip(np.rint(canvas[mask]), 0, 255).astype(surface.dtype)
        except cv2.error as e:
            logger.warning(f"Compositing failed for target {target}: {e}")

    def _inject_grain(self, canvas: np.ndarray, mask: MaskArray) -> None:
        """Scatter alternating light and dark dots inside the mask."""
        grain = self.recipe.grain
        if grain.count == 0 or grain.alpha == 0.0:
            return

        h, w = mask.shape
        xs = self.rng.integers(0, w, size=grain.count)
        ys = self.rng.integers(0, h, size=grain.count)
        for i, (x, y) in enumerate(zip(xs, ys)):
            value = 255.0 if i % 2 == 0 else 0.0
            dot = canvas[y:y + grain.size, x:x + grain.size]
            inside = mask[y:y + grain.size, x:x + grain.size]
            dot[inside] = grain.alpha * value + (1.0 - grain.alpha) * dot[inside]
