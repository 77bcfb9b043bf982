"""Tests for media handles and OpenCV playback."""

import tempfile

import pytest

from unmark.media import RemoteURL, TransientMedia, UploadedFile, VideoSource


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_uploaded_file_from_path(tmp_path):
    path = tmp_path / "clip.mp4"
    path.write_bytes(b"abc")
    upload = UploadedFile.from_path(path)
    assert upload.name == "clip.mp4"
    assert upload.data == b"abc"
    assert "abc" not in repr(upload)


def test_uploaded_file_missing(tmp_path):
    with pytest.raises(ValueError):
        UploadedFile.from_path(tmp_path / "missing.mp4")


def test_transient_media_lifecycle(upload):
    """The temp file exists until released; release is idempotent."""
    media = TransientMedia.allocate(upload)
    assert media.is_transient
    assert media.path.exists()
    assert media.path.read_bytes() == upload.data
    assert media.path.suffix == ".mp4"
    assert media.name == upload.name
    assert "live" in repr(media)

    media.release()
    assert media.released
    assert not media.path.exists()
    media.release()
    assert "released" in repr(media)


def test_transient_media_context_manager(upload):
    with TransientMedia.allocate(upload) as media:
        path = media.path
        assert path.exists()
    assert not path.exists()


def test_transient_media_default_suffix():
    media = TransientMedia.allocate(UploadedFile(name="clip", data=b"x"))
    try:
        assert media.path.suffix == ".mp4"
    finally:
        media.release()


def test_transient_media_failed_write_leaves_no_file(tmp_path, monkeypatch, upload):
    """A write error removes the half-written temp file."""
    partial = tmp_path / "unmark_partial.mp4"

    class FullDisk:
        def __init__(self, **kwargs):
            self.name = str(partial)
            partial.write_bytes(b"")

        def __enter__(self):
            return self

        def __exit__(self, *exc_info):
            return False

        def write(self, data):
            raise OSError("No space left on device")

    monkeypatch.setattr(tempfile, "NamedTemporaryFile", FullDisk)
    with pytest.raises(OSError):
        TransientMedia.allocate(upload)
    assert not partial.exists()


def test_remote_url_is_never_released():
    url = RemoteURL("https://cdn.example.com/videos/demo.mp4?sig=1")
    assert url.name == "demo.mp4"
    assert url.location == url.url
    assert not url.is_transient
    url.release()
    assert not url.released


def test_video_source_rejects_missing_file(tmp_path):
    with pytest.raises(ValueError):
        VideoSource(str(tmp_path / "missing.avi"))


def test_video_source_follows_clock(test_video):
    """The frame returned is the one due at the current media time."""
    clock = FakeClock()
    source = VideoSource(str(test_video), clock=clock)
    try:
        assert source.fps == pytest.approx(10.0)
        assert (source.width, source.height) == (64, 48)
        assert not source.is_playing

        source.play()
        assert source.is_playing
        first = source.current_frame()
        assert first.shape == (48, 64, 3)
        assert abs(int(first.mean()) - 0) <= 10

        clock.now = 0.35
        third = source.current_frame()
        assert abs(int(third.mean()) - 60) <= 10
    finally:
        source.close()


def test_video_source_pause_holds_position(test_video):
    clock = FakeClock()
    source = VideoSource(str(test_video), clock=clock)
    try:
        source.play()
        clock.now = 0.25
        source.pause()
        assert not source.is_playing
        clock.now = 5.0
        assert source.media_time() == pytest.approx(0.25)
        source.play()
        clock.now = 5.1
        assert source.media_time() == pytest.approx(0.35)
    finally:
        source.close()


def test_video_source_ends(test_video):
    """Without looping, playback stops at the last frame."""
    clock = FakeClock()
    source = VideoSource(str(test_video), clock=clock)
    try:
        source.play()
        clock.now = 5.0
        last = source.current_frame()
        assert source.ended
        assert not source.is_playing
        assert abs(int(last.mean()) - 180) <= 10

        source.play()
        assert not source.ended
        assert source.is_playing
    finally:
        source.close()


def test_video_source_loops(test_video):
    """With looping, reading past the end rewinds to the start."""
    clock = FakeClock()
    source = VideoSource(str(test_video), loop=True, clock=clock)
    try:
        source.play()
        clock.now = 5.0
        frame = source.current_frame()
        assert not source.ended
        assert source.is_playing
        assert abs(int(frame.mean()) - 0) <= 10
    finally:
        source.close()


def test_video_source_open_media(test_video):
    media = TransientMedia(test_video, "clip.avi")
    source = VideoSource.open(media)
    try:
        assert source.location == str(test_video)
    finally:
        source.close()
