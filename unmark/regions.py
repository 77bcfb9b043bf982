"""Region catalog: fixed candidate watermark regions per engine profile.

Regions are expressed as fractions of the frame size so one catalog serves
every resolution. Each region carries a direction hint that tells the patch
sampler which way to look for clean pixels.

Region spec formats accepted by `parse_region`:
    - "x,y,w,h"        fractions in [0, 1], hint defaults to "corner"
    - "x,y,w,h,hint"   hint is one of the `Direction` values
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Tuple

from .errors import RegionError
from .utils import setup_logger

logger = setup_logger(__name__)


class Direction(str, Enum):
    """Which way the sampler moves from a region to find a clean patch."""

    LEFT = "left"
    RIGHT = "right"
    TOP = "top"
    BOTTOM = "bottom"
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"
    CORNER = "corner"  # both axes, away from the nearest edges


@dataclass(frozen=True)
class Region:
    """A fractional rectangle of the frame targeted for reconstruction."""

    x_frac: float
    y_frac: float
    w_frac: float
    h_frac: float
    hint: Direction = Direction.CORNER

    def __post_init__(self) -> None:
        for name in ("x_frac", "y_frac", "w_frac", "h_frac"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise RegionError(f"Region {name} must be within [0, 1]. Got: {value}")
        if not isinstance(self.hint, Direction):
            try:
                object.__setattr__(self, "hint", Direction(self.hint))
            except ValueError:
                raise RegionError(f"Unknown direction hint: {self.hint!r}")
        if self.x_frac + self.w_frac > 1.0 or self.y_frac + self.h_frac > 1.0:
            logger.warning(f"Region {self} extends past the frame edge and will be clamped")


class RegionCatalog:
    """An ordered, read-only set of regions for one engine profile."""

    def __init__(self, name: str, regions: Iterable[Region]):
        self.name = name
        self._regions: Tuple[Region, ...] = tuple(regions)

    def regions(self) -> Tuple[Region, ...]:
        """Return the regions in catalog order (later regions win on overlap)."""
        return self._regions

    def extended(self, extra: Iterable[Region], name: str = None) -> "RegionCatalog":
        """Return a new catalog with `extra` regions appended."""
        return RegionCatalog(name or self.name, self._regions + tuple(extra))

    def __len__(self) -> int:
        return len(self._regions)

    def __repr__(self) -> str:
        return f"RegionCatalog({self.name!r}, {len(self._regions)} regions)"


_CORNERS = (
    Region(0.01, 0.01, 0.20, 0.10, Direction.RIGHT),   # top left logo
    Region(0.79, 0.01, 0.20, 0.10, Direction.LEFT),    # top right logo
    Region(0.79, 0.86, 0.20, 0.12, Direction.LEFT),    # bottom right handle
    Region(0.01, 0.86, 0.20, 0.12, Direction.RIGHT),   # bottom left handle
)

# Covers the usual social and stock placements
_PRO = (
    Region(0.01, 0.01, 0.25, 0.12, Direction.CORNER),
    Region(0.74, 0.01, 0.25, 0.12, Direction.CORNER),
    Region(0.74, 0.82, 0.25, 0.16, Direction.CORNER),
    Region(0.01, 0.82, 0.25, 0.16, Direction.CORNER),
    Region(0.35, 0.88, 0.30, 0.09, Direction.VERTICAL),    # floating center bottom
    Region(0.10, 0.45, 0.80, 0.10, Direction.VERTICAL),    # stock horizontal band
    Region(0.45, 0.10, 0.10, 0.80, Direction.HORIZONTAL),  # stock vertical band
)

_STOCK = _PRO + (
    Region(0.00, 0.30, 1.00, 0.08, Direction.VERTICAL),    # full-width banner
)

CATALOGS: Dict[str, RegionCatalog] = {
    "standard": RegionCatalog("standard", _CORNERS),
    "pro": RegionCatalog("pro", _PRO),
    "stock": RegionCatalog("stock", _STOCK),
}

DEFAULT_PROFILE = "pro"

def available_profiles() -> List[str]:
    """List the built-in catalog profile names."""
    return sorted(CATALOGS)

def get_catalog(name: str = DEFAULT_PROFILE) -> RegionCatalog:
    """Look up a built-in catalog by profile name.

    Raises:
        RegionError: If the profile does not exist
    """
    try:
        return CATALOGS[name]
    except KeyError:
        raise RegionError(
            f"Unknown region profile: '{name}'. "
            f"Profiles: {', '.join(available_profiles())}"
        )

def parse_region(spec: str) -> Region:
    """Parse an "x,y,w,h[,hint]" string of frame fractions into a Region.

    Args:
        spec: Region specification string

    Returns:
        Parsed region

    Raises:
        RegionError: If the spec is invalid
    """
    parts = spec.replace(" ", "").split(",")
    if len(parts) not in (4, 5):
        raise RegionError(f"Region must be 'x,y,w,h' or 'x,y,w,h,hint'. Got: '{spec}'")
    try:
        x, y, w, h = (float(p) for p in parts[:4])
    except ValueError:
        raise RegionError(f"Region values must be numbers. Got: '{spec}'")

    hint = Direction.CORNER
    if len(parts) == 5:
        try:
            hint = Direction(parts[4].lower())
        except ValueError:
            raise RegionError(
                f"Unknown direction hint '{parts[4]}'. "
                f"Hints: {', '.join(d.value for d in Direction)}"
            )
    return Region(x, y, w, h, hint)
