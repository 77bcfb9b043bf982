"""Media handles and playback sources.

A session's source is either an uploaded file (bytes held in memory) or a
remote URL. Once processed, an upload becomes a `TransientMedia`: a
temporary file that the owning session must release. A `RemoteURL` is owned
elsewhere and releasing it does nothing.
"""

import tempfile
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, Union
from urllib.parse import urlparse

import cv2

from .utils import FrameArray, MediaPath, setup_logger

logger = setup_logger(__name__)

DEFAULT_FPS = 30.0


@dataclass(frozen=True)
class UploadedFile:
    """A video file selected by the user, held in memory."""

    name: str
    data: bytes = field(repr=False)

    @classmethod
    def from_path(cls, path: MediaPath) -> "UploadedFile":
        """Read a local file into an upload.

        Raises:
            ValueError: If the file does not exist
        """
        path = Path(path)
        if not path.is_file():
            raise ValueError(f"Video file not found: {path}")
        return cls(name=path.name, data=path.read_bytes())


@dataclass(frozen=True)
class RemoteURL:
    """An externally owned video reference. Never released."""

    url: str

    @property
    def name(self) -> str:
        return Path(urlparse(self.url).path).name or self.url

    @property
    def location(self) -> str:
        return self.url

    @property
    def is_transient(self) -> bool:
        return False

    @property
    def released(self) -> bool:
        return False

    def release(self) -> None:
        pass


class TransientMedia:
    """A temporary file backing an uploaded video while a session uses it."""

    def __init__(self, path: Path, name: str):
        self.path = Path(path)
        self.name = name
        self._released = False

    @classmethod
    def allocate(cls, upload: UploadedFile) -> "TransientMedia":
        """Write an upload to a temporary file and wrap it.

        A partially written file is removed before the error propagates.
        """
        suffix = Path(upload.name).suffix or ".mp4"
        handle = tempfile.NamedTemporaryFile(prefix="unmark_", suffix=suffix, delete=False)
        try:
            with handle:
                handle.write(upload.data)
        except Exception:
            Path(handle.name).unlink(missing_ok=True)
            raise
        logger.debug(f"Allocated transient media {handle.name} for {upload.name}")
        return cls(Path(handle.name), upload.name)

    @property
    def location(self) -> str:
        return str(self.path)

    @property
    def is_transient(self) -> bool:
        return True

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        """Delete the backing file. Safe to call more than once."""
        if self._released:
            return
        self.path.unlink(missing_ok=True)
        self._released = True
        logger.debug(f"Released transient media {self.path}")

    def __enter__(self) -> "TransientMedia":
        return self

    def __exit__(self, *exc_info) -> None:
        self.release()

    def __repr__(self) -> str:
        state = "released" if self._released else "live"
        return f"TransientMedia({self.name!r}, {state})"


SourceHandle = Union[UploadedFile, RemoteURL]
PlayableMediaReference = Union[TransientMedia, RemoteURL]


class VideoSource:
    """Plays a video through OpenCV against a wall clock.

    `current_frame()` returns the frame due at the current playback time,
    decoding forward as needed, the way a video element exposes whatever
    frame is on screen when it is drawn.
    """

    def __init__(
        self,
        location: str,
        loop: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.location = location
        self.loop = loop
        self._clock = clock
        self._capture = cv2.VideoCapture(location)
        if not self._capture.isOpened():
            raise ValueError(f"Cannot open video: {location}")

        fps = self._capture.get(cv2.CAP_PROP_FPS)
        self.fps = fps if fps and fps > 0 else DEFAULT_FPS
        self._playing = False
        self._ended = False
        self._position = 0.0
        self._started_at: Optional[float] = None
        self._frame_index = -1
        self._frame: Optional[FrameArray] = None
        logger.info(f"Opened video {location} at {self.fps:.1f} fps")

    @classmethod
    def open(cls, media: PlayableMediaReference, **kwargs) -> "VideoSource":
        return cls(media.location, **kwargs)

    @property
    def width(self) -> int:
        if self._frame is not None:
            return self._frame.shape[1]
        return int(self._capture.get(cv2.CAP_PROP_FRAME_WIDTH))

    @property
    def height(self) -> int:
        if self._frame is not None:
            return self._frame.shape[0]
        return int(self._capture.get(cv2.CAP_PROP_FRAME_HEIGHT))

    @property
    def is_playing(self) -> bool:
        return self._playing and not self._ended

    @property
    def ended(self) -> bool:
        return self._ended

    def play(self) -> None:
        if self._ended:
            self._rewind()
        if not self._playing:
            self._started_at = self._clock()
            self._playing = True

    def pause(self) -> None:
        if self._playing:
            self._position = self.media_time()
            self._started_at = None
            self._playing = False

    def media_time(self) -> float:
        """Seconds of media played so far."""
        if self._playing and self._started_at is not None:
            return self._position + (self._clock() - self._started_at)
        return self._position

    def current_frame(self) -> Optional[FrameArray]:
        """Decode up to the frame due now and return it."""
        due = int(self.media_time() * self.fps)
        while self._frame_index < due and not self._ended:
            ok, frame = self._capture.read()
            if not ok:
                if self.loop and self._frame_index >= 0:
                    self._rewind()
                    self._started_at = self._clock()
                    due = 0
                    continue
                self._position = self.media_time()
                self._ended = True
                self._playing = False
                logger.info(f"Reached end of {self.location}")
                break
            self._frame_index += 1
            self._frame = frame
        return self._frame

    def close(self) -> None:
        self._playing = False
        self._capture.release()

    def _rewind(self) -> None:
        self._capture.set(cv2.CAP_PROP_POS_FRAMES, 0)
        self._frame_index = -1
        self._position = 0.0
        self._ended = False
