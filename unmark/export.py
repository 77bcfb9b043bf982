"""Export helpers: still frames and the purified master file."""

import io
import shutil
import time
from pathlib import Path
from typing import Optional, Union

import cv2
from PIL import Image

from .media import PlayableMediaReference
from .utils import FrameArray, MediaPath, setup_logger

logger = setup_logger(__name__)

STILL_PREFIX = "Unmark_Clean"
MASTER_PREFIX = "Unmark_Purified_Master"

def timestamped_filename(prefix: str, suffix: str, timestamp_ms: Optional[int] = None) -> str:
    """Build a download name such as `Unmark_Clean_1718000000000.png`."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    if not suffix.startswith("."):
        suffix = f".{suffix}"
    return f"{prefix}_{timestamp_ms}{suffix}"

def encode_still_png(pixels: FrameArray) -> bytes:
    """Encode a BGR frame as lossless PNG bytes.

    Raises:
        ValueError: If the frame is empty
    """
    if pixels.size == 0:
        raise ValueError("Cannot encode an empty frame")
    rgb = cv2.cvtColor(pixels, cv2.COLOR_BGR2RGB)
    buf = io.BytesIO()
    Image.fromarray(rgb).save(buf, format="PNG")
    return buf.getvalue()

def save_still(pixels: FrameArray, output_dir: MediaPath) -> Path:
    """Write the current surface contents to a timestamped PNG."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / timestamped_filename(STILL_PREFIX, ".png")
    output_path.write_bytes(encode_still_png(pixels))
    logger.info(f"Saved still frame to: {output_path.name}")
    return output_path

def export_master(result: PlayableMediaReference, output_dir: MediaPath) -> Union[Path, str]:
    """Export the result video under a timestamped name.

    A local (transient) result is copied into `output_dir`. A remote result
    is returned unchanged since there is no local file to copy.

    Raises:
        ValueError: If the transient result has already been released
    """
    if not result.is_transient:
        logger.info(f"Remote result left in place: {result.location}")
        return result.location
    if result.released:
        raise ValueError(f"Result {result!r} was already released")

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    suffix = Path(result.name).suffix or ".mp4"
    output_path = output_dir / timestamped_filename(MASTER_PREFIX, suffix)
    shutil.copyfile(result.location, output_path)
    logger.info(f"Exported master to: {output_path.name}")
    return output_path
