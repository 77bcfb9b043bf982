"""Session controller: owns the session, its media handles and the frame loop.

The controller is the only place that creates or releases transient media.
After every transition it compares the old and new sessions and releases any
transient result the new session no longer references, so a new selection,
a reset and teardown all free the temporary file.

`process()` runs the staged sequence. The stages stand in for real work and
only advance progress and status text; the pixels are rebuilt at playback
time by the frame loop.
"""

import asyncio
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from .collaborator import DescriptionClient
from .engine import ReconstructionEngine
from .errors import CollaboratorUnavailable, ValidationError
from .export import export_master, save_still
from .frame_loop import DEFAULT_REFRESH_HZ, FrameLoopDriver, MediaSource
from .media import TransientMedia, UploadedFile, VideoSource
from .session import (
    CompareToggled, DetectionMetadata, Event, FileSelected, ProcessingCompleted,
    ProcessingFailed, ProcessingStarted, ResetRequested, Session, SourceSelected,
    StageReached, UrlEntered, ValidationFailed, guess_platform, transition,
)
from .utils import MediaPath, setup_logger

logger = setup_logger(__name__)


@dataclass(frozen=True)
class StageStep:
    percent: int
    message: str
    delay: float  # seconds


BOOT_MESSAGE = "Booting deep segmentation engine..."

STAGES: Tuple[StageStep, ...] = (
    StageStep(30, "Analyzing temporal consistency...", 1.2),
    StageStep(65, "Synthesizing bilateral patches...", 1.5),
    StageStep(90, "Applying zero-trace texture grain...", 1.0),
    StageStep(100, "Purification complete.", 0.8),
)

VALIDATION_MESSAGE = "Please provide a video file or URL to process."
PROCESSING_MESSAGE = "Processing failed. Please retry."

COLLABORATOR_TIMEOUT = 10.0

SessionListener = Callable[[Session], None]


class _Superseded(Exception):
    """The session was reset while the staged sequence was suspended."""


def validate_stages(stages: Sequence[StageStep]) -> None:
    """Check that stage percents climb monotonically to exactly 100.

    Raises:
        ValueError: If the stage table is unusable
    """
    if not stages:
        raise ValueError("At least one stage is required")
    previous = 0
    for step in stages:
        if step.percent < previous or step.percent > 100:
            raise ValueError(f"Stage percents must be non-decreasing within [0, 100]: {step}")
        if step.delay < 0:
            raise ValueError(f"Stage delay must be non-negative: {step}")
        previous = step.percent
    if previous != 100:
        raise ValueError(f"Final stage must reach 100%, got {previous}%")


class SessionController:
    """Drives one user session from source selection to playback."""

    def __init__(
        self,
        engine: Optional[ReconstructionEngine] = None,
        collaborator: Optional[DescriptionClient] = None,
        stages: Sequence[StageStep] = STAGES,
        delay_scale: float = 1.0,
        refresh_hz: float = DEFAULT_REFRESH_HZ,
    ):
        validate_stages(stages)
        self.session = Session()
        self.engine = engine or ReconstructionEngine()
        self.collaborator = collaborator
        self.stages = tuple(stages)
        self.delay_scale = delay_scale
        self.driver = FrameLoopDriver(
            self.engine,
            compare_original=lambda: self.session.compare_original,
            refresh_hz=refresh_hz,
        )
        self._listeners: List[SessionListener] = []
        self._generation = 0
        self._player: Optional[MediaSource] = None

    def add_listener(self, listener: SessionListener) -> None:
        """Call `listener(session)` after every state change."""
        self._listeners.append(listener)

    def remove_listener(self, listener: SessionListener) -> None:
        self._listeners.remove(listener)

    def dispatch(self, event: Event) -> Session:
        """Apply an event, release dropped handles and notify listeners."""
        previous = self.session
        current = transition(previous, event)
        if current is previous:
            return previous

        if previous.is_ready and not current.is_ready:
            self._stop_playback()
        if previous.result is not None and previous.result is not current.result:
            previous.result.release()

        self.session = current
        for listener in self._listeners:
            listener(current)
        return current

    # User actions

    def select_file(self, upload: UploadedFile) -> Session:
        return self.dispatch(FileSelected(upload))

    def enter_url(self, url: str) -> Session:
        return self.dispatch(UrlEntered(url))

    def toggle_compare(self) -> Session:
        return self.dispatch(CompareToggled())

    def reset(self) -> Session:
        """Drop everything and return to an empty session."""
        self._generation += 1
        self._stop_playback()
        return self.dispatch(ResetRequested())

    def close(self) -> None:
        """Teardown: stop the frame loop and release all transient media."""
        self.reset()
        logger.debug("Session controller closed")

    async def process(self) -> Session:
        """Run the staged sequence for the selected source.

        Validation and processing failures are recorded on the session
        rather than raised. The returned session is the final state.
        """
        generation = self._generation
        try:
            await self._run_stages(generation)
        except ValidationError as e:
            logger.warning(f"Validation failed: {e}")
            self.dispatch(ValidationFailed(str(e)))
        except _Superseded:
            logger.info("Session reset during processing; abandoning staged sequence")
        except Exception as e:
            logger.error(f"Processing failed: {e}")
            if generation == self._generation:
                self.dispatch(ProcessingFailed(PROCESSING_MESSAGE))
        return self.session

    def play(self, media: Optional[MediaSource] = None, loop: bool = True) -> MediaSource:
        """Start rendering the result through the frame loop.

        Must be called inside a running event loop once the session is Ready.
        Without `media`, the result is opened with OpenCV and played.

        Raises:
            RuntimeError: If the session is not Ready
        """
        if not self.session.is_ready:
            raise RuntimeError("Playback is only available once processing is complete")
        self._stop_playback()
        if media is None:
            player = VideoSource.open(self.session.result, loop=loop)
            player.play()
            media = player
        self._player = media
        self.driver.start(media)
        return media

    def save_frame(self, output_dir: MediaPath):
        """Save the current output surface as a PNG still."""
        return save_still(self.driver.surface.pixels, output_dir)

    def export(self, output_dir: MediaPath):
        """Export the result video. Remote results return their URL.

        Raises:
            RuntimeError: If the session is not Ready
        """
        if not self.session.is_ready:
            raise RuntimeError("Nothing to export before processing completes")
        return export_master(self.session.result, output_dir)

    # Internals

    def _check_current(self, generation: int) -> None:
        if generation != self._generation:
            raise _Superseded()

    async def _run_stages(self, generation: int) -> None:
        source = self.session.source
        if source is None:
            raise ValidationError(VALIDATION_MESSAGE)
        if not isinstance(self.session.stage, SourceSelected):
            logger.warning(f"Cannot start processing from {type(self.session.stage).__name__}")
            return

        self.dispatch(ProcessingStarted(BOOT_MESSAGE))
        platform = guess_platform(source.name)
        logger.info(f"Processing {source.name} (platform guess: {platform})")

        for index, step in enumerate(self.stages, 1):
            self._check_current(generation)
            self.dispatch(StageReached(index, step.percent, step.message))
            logger.info(f"[{step.percent:3d}%] {step.message}")
            if index == 1:
                await self._consult_collaborator(platform, source.name)
            await asyncio.sleep(step.delay * self.delay_scale)

        self._check_current(generation)
        result = TransientMedia.allocate(source) if isinstance(source, UploadedFile) else source
        self.dispatch(ProcessingCompleted(result, DetectionMetadata(platform)))

    async def _consult_collaborator(self, platform: str, source_name: str) -> None:
        if self.collaborator is None:
            return
        try:
            text = await asyncio.wait_for(
                self.collaborator.describe(platform, source_name),
                timeout=COLLABORATOR_TIMEOUT,
            )
            logger.info(f"Description service: {text}")
        except (CollaboratorUnavailable, asyncio.TimeoutError) as e:
            logger.warning(f"Description service unavailable: {e}")
        except Exception as e:
            # The stage sequence never depends on the description
            logger.warning(f"Description service failed unexpectedly: {e}")

    def _stop_playback(self) -> None:
        self.driver.stop()
        player, self._player = self._player, None
        if isinstance(player, VideoSource):
            player.close()
