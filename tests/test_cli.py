"""Tests for the command-line interface."""

import sys

import pytest

from unmark.cli import build_engine, main, parse_args
from unmark.errors import RegionError
from unmark.regions import DEFAULT_PROFILE
from unmark.sampler import DEFAULT_GAP


def run_main(monkeypatch, *argv):
    monkeypatch.setattr(sys, "argv", ["unmark", *argv])
    main()


def test_parse_args_defaults():
    args = parse_args([])
    assert args.input is None and args.url is None
    assert args.output == "output"
    assert args.profile == DEFAULT_PROFILE
    assert args.gap == DEFAULT_GAP
    assert args.region is None
    assert args.duration == 10.0
    assert not args.fast and not args.offline and not args.compare_original


def test_parse_args_rejects_unknown_profile():
    with pytest.raises(SystemExit):
        parse_args(["-p", "ultra"])


def test_build_engine_with_custom_regions():
    args = parse_args(["-p", "standard", "-r", "0.8,0.9,0.18,0.08,left", "-r", "0.1,0.5,0.1,0.1"])
    engine = build_engine(args)
    assert engine.catalog.name == "standard+custom"
    assert len(engine.catalog) == 6
    assert engine.gap == DEFAULT_GAP


def test_build_engine_invalid_region():
    with pytest.raises(RegionError):
        build_engine(parse_args(["-r", "0.8,0.9"]))


def test_main_without_source_fails(monkeypatch, tmp_path):
    with pytest.raises(SystemExit) as exc_info:
        run_main(monkeypatch, "--fast", "--offline", "-o", str(tmp_path))
    assert exc_info.value.code == 1


def test_main_missing_input(monkeypatch, tmp_path):
    with pytest.raises(SystemExit) as exc_info:
        run_main(monkeypatch, "-i", str(tmp_path / "missing.mp4"), "--fast", "--offline")
    assert exc_info.value.code == 1


def test_main_rejects_non_video(monkeypatch, tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("not a video")
    with pytest.raises(SystemExit) as exc_info:
        run_main(monkeypatch, "-i", str(path), "--fast", "--offline")
    assert exc_info.value.code == 1


def test_main_invalid_region(monkeypatch, test_video):
    with pytest.raises(SystemExit) as exc_info:
        run_main(monkeypatch, "-i", str(test_video), "-r", "2,2,2,2", "--fast", "--offline")
    assert exc_info.value.code == 1


def test_main_full_run(monkeypatch, tmp_path, test_video):
    """A full run saves a reconstructed still and exports the master."""
    output = tmp_path / "out"
    run_main(
        monkeypatch,
        "-i", str(test_video), "-o", str(output),
        "--fast", "--offline", "--seed", "0", "-d", "0.5",
    )

    stills = list(output.glob("Unmark_Clean_*.png"))
    masters = list(output.glob("Unmark_Purified_Master_*.avi"))
    assert len(stills) == 1
    assert len(masters) == 1
    assert masters[0].read_bytes() == test_video.read_bytes()
