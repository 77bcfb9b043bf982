"""Command-line interface for unmark.

Runs a video through the staged session pipeline, plays the result through
the frame loop so the watermark regions are rebuilt on every frame, then
saves a still of the last reconstructed frame and exports the master.
"""

import argparse
import asyncio
import logging
import sys
import time
from pathlib import Path

import cv2
from tqdm import tqdm

from .collaborator import DescriptionClient
from .compositor import Compositor
from .controller import SessionController
from .engine import ReconstructionEngine
from .errors import ProcessingError, RegionError, ValidationError
from .frame_loop import DEFAULT_REFRESH_HZ, FrameSurface
from .media import UploadedFile
from .regions import DEFAULT_PROFILE, available_profiles, get_catalog, parse_region
from .sampler import DEFAULT_GAP
from .session import Session
from .utils import get_video_files, setup_logger

logger = setup_logger(__name__)

PREVIEW_WINDOW = "unmark preview"

def _set_package_log_level(level: int) -> None:
    """Apply `level` to every unmark logger created so far."""
    for name in list(logging.root.manager.loggerDict):
        if name == "unmark" or name.startswith("unmark."):
            logging.getLogger(name).setLevel(level)

def _show_frame(surface: FrameSurface) -> None:
    cv2.imshow(PREVIEW_WINDOW, surface.pixels)
    cv2.waitKey(1)

def build_engine(args: argparse.Namespace) -> ReconstructionEngine:
    """Assemble the reconstruction engine from CLI options.

    Raises:
        RegionError: If the profile or a custom region is invalid
    """
    catalog = get_catalog(args.profile)
    if args.region:
        extra = [parse_region(spec) for spec in args.region]
        catalog = catalog.extended(extra, name=f"{catalog.name}+custom")
        logger.info(f"Added {len(extra)} custom region(s)")
    return ReconstructionEngine(catalog, Compositor(seed=args.seed), gap=args.gap)

async def run_session(controller: SessionController, args: argparse.Namespace) -> int:
    """Process, play and export one video. Returns the exit code."""
    if args.input:
        controller.select_file(UploadedFile.from_path(args.input))
    elif args.url:
        controller.enter_url(args.url)

    with tqdm(total=100, desc="Processing", unit="%") as bar:
        def on_change(session: Session) -> None:
            if session.progress > bar.n:
                bar.update(session.progress - bar.n)
            if session.status_text:
                bar.set_description(session.status_text)

        controller.add_listener(on_change)
        try:
            session = await controller.process()
        finally:
            controller.remove_listener(on_change)

    try:
        session.raise_for_error()
    except (ValidationError, ProcessingError) as e:
        logger.error(str(e))
        return 1
    logger.info(f"{session.metadata.platform} overlays targeted ({session.metadata.method})")

    output_dir = Path(args.output)
    try:
        if args.compare_original:
            controller.toggle_compare()
        if args.show:
            controller.driver.add_listener(_show_frame)

        try:
            media = controller.play(loop=False)
        except ValueError as e:
            logger.error(str(e))
            return 1

        start = time.monotonic()
        while media.is_playing and time.monotonic() - start < args.duration:
            await asyncio.sleep(0.1)
        controller.driver.stop()
        logger.info(f"Rendered {controller.driver.frames_rendered} frames")

        if controller.driver.frames_rendered:
            controller.save_frame(output_dir)
        master = controller.export(output_dir)
        logger.info(f"Result available at: {master}")
    finally:
        controller.close()
        if args.show:
            cv2.destroyAllWindows()
    return 0

def main() -> None:
    """Main entry point for the watermark removal tool."""
    args = parse_args()

    # Setup logging
    if args.verbose:
        _set_package_log_level(logging.DEBUG)
        logger.debug("Debug logging enabled")

    # Setup file logging if requested
    if args.logfile:
        log_path = Path(args.logfile)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, mode='w')
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))
        logging.getLogger().addHandler(file_handler)
        logger.info(f"Logging to file: {log_path}")

    # Validate input path
    if args.input:
        input_path = Path(args.input)
        if not input_path.is_file() or not get_video_files(input_path):
            logger.error(f"Input '{args.input}' is not a supported video file")
            sys.exit(1)

    try:
        engine = build_engine(args)
    except RegionError as e:
        logger.error(str(e))
        sys.exit(1)

    collaborator = None if args.offline else DescriptionClient()
    controller = SessionController(
        engine,
        collaborator=collaborator,
        delay_scale=0.0 if args.fast else 1.0,
        refresh_hz=args.refresh_hz,
    )

    exit_code = asyncio.run(run_session(controller, args))
    if exit_code:
        sys.exit(exit_code)

def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Remove watermark overlays from video by rebuilding fixed regions at playback time."
    )

    parser.add_argument(
        "-i", "--input",
        help="Path to input video file"
    )

    parser.add_argument(
        "-u", "--url",
        help="URL of a remote video (used when no input file is given)"
    )

    parser.add_argument(
        "-o", "--output",
        default="output",
        help="Directory for the still frame and exported master (default: output)"
    )

    parser.add_argument(
        "-p", "--profile",
        choices=available_profiles(),
        default=DEFAULT_PROFILE,
        help=f"Region catalog profile (default: {DEFAULT_PROFILE})"
    )

    parser.add_argument(
        "-r", "--region",
        action="append",
        help="Extra region as x,y,w,h[,hint] frame fractions (repeatable), "
             "e.g. 0.8,0.9,0.18,0.08,left"
    )

    parser.add_argument(
        "--gap",
        type=int,
        default=DEFAULT_GAP,
        help=f"Pixel gap between a region and its source patch (default: {DEFAULT_GAP})"
    )

    parser.add_argument(
        "--seed",
        type=int,
        help="Seed for grain placement (default: random)"
    )

    parser.add_argument(
        "--refresh-hz",
        type=float,
        default=DEFAULT_REFRESH_HZ,
        help=f"Frame loop rate (default: {DEFAULT_REFRESH_HZ:.0f})"
    )

    parser.add_argument(
        "-d", "--duration",
        type=float,
        default=10.0,
        help="Maximum seconds of playback to render (default: 10)"
    )

    parser.add_argument(
        "--compare-original",
        action="store_true",
        help="Render the raw frames without reconstruction"
    )

    parser.add_argument(
        "-s", "--show",
        action="store_true",
        help="Show the reconstructed frames in a preview window"
    )

    parser.add_argument(
        "--fast",
        action="store_true",
        help="Skip the simulated stage delays"
    )

    parser.add_argument(
        "--offline",
        action="store_true",
        help="Do not contact the description service"
    )

    parser.add_argument(
        "-l", "--logfile",
        help="Path to log file for detailed logging"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )

    return parser.parse_args(argv)

if __name__ == "__main__":
    main()
