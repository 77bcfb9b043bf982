"""Session record and its pure transition function.

A `Session` is immutable. Every user action or pipeline step is an event,
and `transition(session, event)` returns the next session without side
effects. Events that make no sense in the current stage return the same
session object unchanged. Releasing resources dropped by a transition is the
job of `SessionController`.

Stages::

    Empty -> SourceSelected -> Staged(index, percent, message) -> Ready
      ^                                                             |
      +---------------------------- reset --------------------------+
"""

from dataclasses import dataclass, field, replace
from typing import Callable, Dict, Optional, Type, Union

from .errors import ErrorKind, ProcessingError, ValidationError
from .media import PlayableMediaReference, RemoteURL, SourceHandle, UploadedFile
from .utils import setup_logger

logger = setup_logger(__name__)

RECONSTRUCTION_METHOD = "Deep Bilateral Inpainting"


@dataclass(frozen=True)
class Empty:
    pass


@dataclass(frozen=True)
class SourceSelected:
    pass


@dataclass(frozen=True)
class Staged:
    index: int
    percent: int
    message: str


@dataclass(frozen=True)
class Ready:
    pass


StageState = Union[Empty, SourceSelected, Staged, Ready]


@dataclass(frozen=True)
class DetectionMetadata:
    """Display-only description of the finished job."""

    platform: str
    method: str = RECONSTRUCTION_METHOD


@dataclass(frozen=True)
class Session:
    source: Optional[SourceHandle] = None
    result: Optional[PlayableMediaReference] = None
    stage: StageState = field(default_factory=Empty)
    progress: int = 0
    status_text: str = ""
    last_error: Optional[ErrorKind] = None
    error_message: Optional[str] = None
    compare_original: bool = False
    metadata: Optional[DetectionMetadata] = None

    @property
    def is_processing(self) -> bool:
        return isinstance(self.stage, Staged)

    @property
    def is_ready(self) -> bool:
        return isinstance(self.stage, Ready)

    def raise_for_error(self) -> None:
        """Raise the exception matching `last_error`, if any.

        Raises:
            ValidationError: If no source was provided
            ProcessingError: If the staged sequence failed
        """
        if self.last_error is ErrorKind.VALIDATION:
            raise ValidationError(self.error_message)
        if self.last_error is ErrorKind.PROCESSING:
            raise ProcessingError(self.error_message)


# Events

@dataclass(frozen=True)
class FileSelected:
    upload: UploadedFile


@dataclass(frozen=True)
class UrlEntered:
    url: str


@dataclass(frozen=True)
class ValidationFailed:
    message: str


@dataclass(frozen=True)
class ProcessingStarted:
    message: str


@dataclass(frozen=True)
class StageReached:
    index: int
    percent: int
    message: str


@dataclass(frozen=True)
class ProcessingCompleted:
    result: PlayableMediaReference
    metadata: DetectionMetadata


@dataclass(frozen=True)
class ProcessingFailed:
    message: str


@dataclass(frozen=True)
class CompareToggled:
    pass


@dataclass(frozen=True)
class ResetRequested:
    pass


Event = Union[
    FileSelected, UrlEntered, ValidationFailed, ProcessingStarted, StageReached,
    ProcessingCompleted, ProcessingFailed, CompareToggled, ResetRequested,
]

def guess_platform(identifier: str) -> str:
    """Guess the overlay style from a file name or URL."""
    identifier = identifier.lower()
    if "tiktok" in identifier:
        return "TikTok/IG Dynamic"
    if "getty" in identifier or "shutter" in identifier:
        return "Stock Full-Frame"
    if "sora" in identifier:
        return "AI-Gen Temporal"
    return "Pro-Inpaint Universal"

def _on_file_selected(session: Session, event: FileSelected) -> Session:
    if session.is_processing:
        return session
    return Session(source=event.upload, stage=SourceSelected())

def _on_url_entered(session: Session, event: UrlEntered) -> Session:
    if session.is_processing:
        return session
    url = event.url.strip()
    if not url:
        return Session()
    return Session(source=RemoteURL(url), stage=SourceSelected())

def _on_validation_failed(session: Session, event: ValidationFailed) -> Session:
    return replace(session, last_error=ErrorKind.VALIDATION, error_message=event.message)

def _on_processing_started(session: Session, event: ProcessingStarted) -> Session:
    if not isinstance(session.stage, SourceSelected) or session.source is None:
        return session
    return replace(
        session,
        stage=Staged(0, 0, event.message),
        progress=0,
        status_text=event.message,
        last_error=None,
        error_message=None,
    )

def _on_stage_reached(session: Session, event: StageReached) -> Session:
    stage = session.stage
    if not isinstance(stage, Staged):
        return session
    if event.index <= stage.index or event.percent < session.progress:
        logger.warning(f"Ignoring out-of-order stage {event.index} ({event.percent}%)")
        return session
    return replace(
        session,
        stage=Staged(event.index, event.percent, event.message),
        progress=event.percent,
        status_text=event.message,
    )

def _on_processing_completed(session: Session, event: ProcessingCompleted) -> Session:
    if not session.is_processing:
        return session
    return replace(
        session,
        stage=Ready(),
        result=event.result,
        metadata=event.metadata,
        progress=100,
    )

def _on_processing_failed(session: Session, event: ProcessingFailed) -> Session:
    if not session.is_processing:
        return session
    return replace(
        session,
        stage=SourceSelected(),
        progress=0,
        status_text="",
        last_error=ErrorKind.PROCESSING,
        error_message=event.message,
    )

def _on_compare_toggled(session: Session, event: CompareToggled) -> Session:
    if not session.is_ready:
        return session
    return replace(session, compare_original=not session.compare_original)

def _on_reset(session: Session, event: ResetRequested) -> Session:
    return Session()

_HANDLERS: Dict[Type, Callable[[Session, Event], Session]] = {
    FileSelected: _on_file_selected,
    UrlEntered: _on_url_entered,
    ValidationFailed: _on_validation_failed,
    ProcessingStarted: _on_processing_started,
    StageReached: _on_stage_reached,
    ProcessingCompleted: _on_processing_completed,
    ProcessingFailed: _on_processing_failed,
    CompareToggled: _on_compare_toggled,
    ResetRequested: _on_reset,
}

def transition(session: Session, event: Event) -> Session:
    """Return the session that follows `event`.

    Raises:
        TypeError: If `event` is not a known event type
    """
    try:
        handler = _HANDLERS[type(event)]
    except KeyError:
        raise TypeError(f"Unknown session event: {event!r}")
    next_session = handler(session, event)
    if next_session is session:
        logger.debug(f"{type(event).__name__} ignored in stage {type(session.stage).__name__}")
    return next_session
