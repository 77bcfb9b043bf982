"""Unmark: playback-time watermark region reconstruction for video.

This package rebuilds fixed candidate watermark regions of each video frame
from neighbouring patches while the video plays, and drives the staged
session lifecycle around it.
"""

__version__ = "0.1.0"
__author__ = "Unmark Team"

# Reconstruction pipeline
from .regions import Direction, Region, RegionCatalog, get_catalog, parse_region
from .sampler import region_rect, sample_source
from .compositor import BlendPass, CompositeRecipe, Compositor, GrainSpec
from .engine import ReconstructionEngine
from .frame_loop import FrameLoopDriver, FrameSurface, LoopHandle

# Session lifecycle
from .media import RemoteURL, TransientMedia, UploadedFile, VideoSource
from .session import Session, transition
from .controller import SessionController
from .errors import CollaboratorUnavailable, ProcessingError, ValidationError
from .utils import setup_logger

# CLI entry point
from .cli import main

__all__ = [
    "Direction",
    "Region",
    "RegionCatalog",
    "get_catalog",
    "parse_region",
    "region_rect",
    "sample_source",
    "BlendPass",
    "CompositeRecipe",
    "Compositor",
    "GrainSpec",
    "ReconstructionEngine",
    "FrameLoopDriver",
    "FrameSurface",
    "LoopHandle",
    "RemoteURL",
    "TransientMedia",
    "UploadedFile",
    "VideoSource",
    "Session",
    "transition",
    "SessionController",
    "CollaboratorUnavailable",
    "ProcessingError",
    "ValidationError",
    "setup_logger",
    "main",
]
