"""Shared utilities and type definitions for unmark."""

import logging
from pathlib import Path
from typing import List, Tuple, Union

import numpy as np

# Type aliases for clarity
FrameArray = np.ndarray  # H×W×3 BGR uint8
MaskArray = np.ndarray   # H×W bool
Rect = Tuple[int, int, int, int]  # (x, y, width, height)
MediaPath = Union[str, Path]

# Containers OpenCV's FFmpeg backend reads reliably
VIDEO_EXTENSIONS = {'.mp4', '.mov', '.m4v', '.avi', '.mkv', '.webm'}

def setup_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """Set up a logger with consistent formatting.

    Args:
        name: Logger name
        level: Logging level

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if not logger.handlers:  # Avoid duplicate handlers
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.setLevel(level)
    return logger

def get_video_files(path: Path) -> List[Path]:
    """Get list of video files from path (file or directory).

    Args:
        path: Path to file or directory

    Returns:
        List of video file paths
    """
    if path.is_file():
        if path.suffix.lower() in VIDEO_EXTENSIONS:
            return [path]
        else:
            return []

    return sorted(f for f in path.glob("*") if f.suffix.lower() in VIDEO_EXTENSIONS)

def clamp_rect_to_frame(rect: Rect, frame_shape: Tuple[int, int]) -> Rect:
    """Clamp rectangle coordinates to stay within frame bounds.

    Args:
        rect: Rectangle as (x, y, width, height)
        frame_shape: Frame shape as (height, width)

    Returns:
        Clamped rectangle
    """
    x, y, w, h = rect
    frame_h, frame_w = frame_shape

    # Clamp coordinates
    x = max(0, min(x, frame_w - 1))
    y = max(0, min(y, frame_h - 1))

    # Adjust width and height to stay in bounds
    w = max(0, min(w, frame_w - x))
    h = max(0, min(h, frame_h - y))

    return (x, y, w, h)

def rect_in_bounds(rect: Rect, frame_shape: Tuple[int, int]) -> bool:
    """Check that a non-empty rectangle lies fully inside the frame.

    Args:
        rect: Rectangle as (x, y, width, height)
        frame_shape: Frame shape as (height, width)

    Returns:
        True if the rectangle is non-empty and fully contained
    """
    x, y, w, h = rect
    frame_h, frame_w = frame_shape
    return w > 0 and h > 0 and x >= 0 and y >= 0 and x + w <= frame_w and y + h <= frame_h
