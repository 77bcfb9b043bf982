"""Tests for the session record and its transitions."""

import pytest

from unmark.errors import ErrorKind, ProcessingError, ValidationError
from unmark.media import RemoteURL, TransientMedia, UploadedFile
from unmark.session import (
    CompareToggled, DetectionMetadata, Empty, FileSelected, ProcessingCompleted,
    ProcessingFailed, ProcessingStarted, Ready, ResetRequested, Session, SourceSelected,
    Staged, StageReached, UrlEntered, ValidationFailed, guess_platform, transition,
)

UPLOAD = UploadedFile(name="clip.mp4", data=b"video")


def run(session, *events):
    for event in events:
        session = transition(session, event)
    return session


def staged_session():
    return run(Session(), FileSelected(UPLOAD), ProcessingStarted("Booting..."))


def ready_session(tmp_path):
    result = TransientMedia(tmp_path / "result.mp4", "clip.mp4")
    return run(
        staged_session(),
        StageReached(1, 100, "Done"),
        ProcessingCompleted(result, DetectionMetadata("Pro-Inpaint Universal")),
    )


def test_initial_session():
    session = Session()
    assert isinstance(session.stage, Empty)
    assert session.source is None and session.result is None
    assert session.progress == 0
    assert session.last_error is None
    assert not session.compare_original


def test_file_selection():
    session = transition(Session(), FileSelected(UPLOAD))
    assert isinstance(session.stage, SourceSelected)
    assert session.source == UPLOAD
    assert session.result is None


def test_url_entry():
    session = transition(Session(), UrlEntered("  https://cdn.example.com/sora_demo.mp4 "))
    assert isinstance(session.stage, SourceSelected)
    assert session.source == RemoteURL("https://cdn.example.com/sora_demo.mp4")


def test_empty_url_clears_source():
    session = run(Session(), FileSelected(UPLOAD), UrlEntered("   "))
    assert session == Session()


def test_new_selection_replaces_everything(tmp_path):
    """Selecting a new source clears the result, error and compare flag."""
    ready = transition(ready_session(tmp_path), CompareToggled())
    other = UploadedFile(name="other.mov", data=b"x")

    session = transition(ready, FileSelected(other))

    assert isinstance(session.stage, SourceSelected)
    assert session.source == other
    assert session.result is None
    assert session.metadata is None
    assert not session.compare_original


def test_selection_ignored_while_processing():
    session = staged_session()
    assert transition(session, FileSelected(UPLOAD)) is session
    assert transition(session, UrlEntered("https://x/y.mp4")) is session


def test_validation_failure_keeps_stage():
    session = transition(Session(), ValidationFailed("Please provide a video"))
    assert isinstance(session.stage, Empty)
    assert session.last_error is ErrorKind.VALIDATION
    with pytest.raises(ValidationError):
        session.raise_for_error()


def test_processing_requires_source():
    session = Session()
    assert transition(session, ProcessingStarted("Booting...")) is session


def test_processing_start_clears_error():
    session = run(
        Session(), FileSelected(UPLOAD), ValidationFailed("oops"), ProcessingStarted("Booting...")
    )
    assert session.stage == Staged(0, 0, "Booting...")
    assert session.status_text == "Booting..."
    assert session.last_error is None
    assert session.is_processing


def test_stages_advance_monotonically():
    session = run(staged_session(), StageReached(1, 30, "a"), StageReached(2, 65, "b"))
    assert session.stage == Staged(2, 65, "b")
    assert session.progress == 65
    assert session.status_text == "b"


def test_out_of_order_stages_are_ignored():
    session = run(staged_session(), StageReached(2, 65, "b"))
    assert transition(session, StageReached(1, 30, "a")) is session
    assert transition(session, StageReached(3, 40, "c")) is session


def test_stage_outside_processing_is_ignored():
    session = transition(Session(), FileSelected(UPLOAD))
    assert transition(session, StageReached(1, 30, "a")) is session


def test_completion(tmp_path):
    session = ready_session(tmp_path)
    assert isinstance(session.stage, Ready)
    assert session.is_ready
    assert session.progress == 100
    assert session.result.name == "clip.mp4"
    assert session.metadata.method == "Deep Bilateral Inpainting"


def test_completion_outside_processing_is_ignored(tmp_path):
    session = transition(Session(), FileSelected(UPLOAD))
    result = TransientMedia(tmp_path / "r.mp4", "r.mp4")
    assert transition(session, ProcessingCompleted(result, DetectionMetadata("x"))) is session


def test_failure_returns_to_source_selected():
    session = run(staged_session(), StageReached(1, 30, "a"), ProcessingFailed("Processing failed."))
    assert isinstance(session.stage, SourceSelected)
    assert session.source == UPLOAD
    assert session.progress == 0
    assert session.last_error is ErrorKind.PROCESSING
    with pytest.raises(ProcessingError):
        session.raise_for_error()


def test_compare_toggle_only_when_ready(tmp_path):
    selected = transition(Session(), FileSelected(UPLOAD))
    assert transition(selected, CompareToggled()) is selected

    ready = ready_session(tmp_path)
    toggled = transition(ready, CompareToggled())
    assert toggled.compare_original
    assert not transition(toggled, CompareToggled()).compare_original


def test_reset_from_any_stage(tmp_path):
    for session in [Session(), staged_session(), ready_session(tmp_path)]:
        assert transition(session, ResetRequested()) == Session()


def test_sessions_are_immutable():
    session = Session()
    with pytest.raises(Exception):
        session.progress = 50


def test_unknown_event():
    with pytest.raises(TypeError):
        transition(Session(), object())


@pytest.mark.parametrize("name,expected", [
    ("my_tiktok_export.mp4", "TikTok/IG Dynamic"),
    ("https://media.gettyimages.com/clip.mp4", "Stock Full-Frame"),
    ("Shutterstock_123.mov", "Stock Full-Frame"),
    ("sora_city.mp4", "AI-Gen Temporal"),
    ("holiday.mp4", "Pro-Inpaint Universal"),
])
def test_guess_platform(name, expected):
    assert guess_platform(name) == expected
