"""Common test fixtures."""

from pathlib import Path
from typing import List, Optional

import cv2
import numpy as np
import pytest

from unmark.compositor import Compositor
from unmark.controller import SessionController, StageStep
from unmark.engine import ReconstructionEngine
from unmark.media import UploadedFile


def create_test_frame(size=(120, 160), seed=0):
    """Create a textured BGR test frame with a fake logo in the top left.

    Args:
        size: Frame size (height, width)
        seed: Seed for the background noise

    Returns:
        H×W×3 uint8 frame
    """
    height, width = size
    rng = np.random.default_rng(seed)
    frame = np.zeros((height, width, 3), dtype=np.uint8)
    frame[:, :, 0] = np.linspace(0, 255, width, dtype=np.uint8)  # B gradient
    frame[:, :, 1] = 128
    frame[:, :, 2] = np.linspace(255, 0, width, dtype=np.uint8)  # R inverse
    noise = rng.integers(-20, 20, size=frame.shape)
    frame = np.clip(frame.astype(np.int16) + noise, 0, 255).astype(np.uint8)

    # Bright watermark block
    cv2.putText(frame, "WM", (4, 14), cv2.FONT_HERSHEY_SIMPLEX, 0.4, (255, 255, 255), 1)
    return frame


def write_test_video(path: Path, frames: int = 10, size=(48, 64), fps: float = 10.0) -> Optional[Path]:
    """Write a small MJPG video whose frame i has brightness i*20.

    Returns:
        The path, or None if OpenCV cannot write or read it back
    """
    height, width = size
    writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*"MJPG"), fps, (width, height))
    if not writer.isOpened():
        return None
    for i in range(frames):
        writer.write(np.full((height, width, 3), i * 20, dtype=np.uint8))
    writer.release()

    capture = cv2.VideoCapture(str(path))
    readable = capture.isOpened() and capture.read()[0]
    capture.release()
    return path if readable else None


class FakeMedia:
    """Media source that always shows the same frame."""

    def __init__(self, frame, playing=True):
        self.frame = frame
        self.is_playing = playing
        self.reads = 0

    def current_frame(self):
        self.reads += 1
        return self.frame


class FakeCollaborator:
    """Description service double that records calls."""

    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.calls: List[tuple] = []

    async def describe(self, platform_guess, source_name):
        self.calls.append((platform_guess, source_name))
        if self.error is not None:
            raise self.error
        return "Overlays removed with bilateral patches."


@pytest.fixture
def frame():
    return create_test_frame()


@pytest.fixture
def engine():
    return ReconstructionEngine(compositor=Compositor(seed=0))


@pytest.fixture
def upload():
    return UploadedFile(name="tiktok_clip.mp4", data=b"\x00\x00\x00\x18ftypmp42fake-video")


@pytest.fixture
def controller(engine):
    controller = SessionController(engine=engine, delay_scale=0.0)
    yield controller
    controller.close()


@pytest.fixture
def slow_stages():
    return (
        StageStep(50, "Halfway", 0.05),
        StageStep(100, "Done", 0.05),
    )


@pytest.fixture
def test_video(tmp_path):
    path = write_test_video(tmp_path / "clip.avi")
    if path is None:
        pytest.skip("OpenCV cannot write MJPG video in this environment")
    return path
