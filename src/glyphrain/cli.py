import argparse
import logging
import sys
from pathlib import Path

import cv2
import numpy as np

from glyphrain.charsets import ASCII_RAIN, RAIN
from glyphrain.config import DEFAULT_CELL_SIZE, DEFAULT_TARGET_FPS, RenderConfig
from glyphrain.engine import Engine
from glyphrain.logging_config import configure_logging
from glyphrain.palette import GlyphPalette
from glyphrain.scheduler import TimerFrameRequester
from glyphrain.sources import CameraSource, StillSource

logger = logging.getLogger(__name__)

WINDOW_NAME = "glyphrain"
MIN_CELL_SIZE = 6
MAX_CELL_SIZE = 32
CHARSETS = {"rain": RAIN, "ascii": ASCII_RAIN}


class CaptureWriter:
    """Writes each captured still to a numbered JPEG file."""

    def __init__(self, directory: Path):
        self.directory = directory
        self.count = 0
        self.paths: list[Path] = []

    def __call__(self, blob: bytes) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        self.count += 1
        path = self.directory / f"capture-{self.count}.jpg"
        path.write_bytes(blob)
        self.paths.append(path)
        logger.info("Saved %s", path)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Render a video feed as digital rain")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--device", type=int, default=0, help="Camera index passed to OpenCV (default: 0)")
    source.add_argument("--image", default=None, help="Render a still image instead of a camera")
    parser.add_argument(
        "-s", "--cell-size", type=int, default=DEFAULT_CELL_SIZE, help=f"Glyph cell size in pixels (default: {DEFAULT_CELL_SIZE})"
    )
    parser.add_argument("--fps", type=int, default=DEFAULT_TARGET_FPS, help=f"Target frame rate (default: {DEFAULT_TARGET_FPS})")
    parser.add_argument("--mirror", action="store_true", default=False, help="Mirror the output horizontally")
    parser.add_argument("--width", type=int, default=960, help="Output width in logical pixels (default: 960)")
    parser.add_argument("--height", type=int, default=540, help="Output height in logical pixels (default: 540)")
    parser.add_argument("--scale", type=float, default=1.0, help="Device pixel ratio, capped at 2.0 (default: 1.0)")
    parser.add_argument("--charset", default="rain", choices=sorted(CHARSETS), help="Glyph set (default: rain)")
    parser.add_argument("--font", default=None, help="TrueType font for glyphs (default: system monospace)")
    parser.add_argument("--seed", type=int, default=None, help="Seed for glyph selection")
    parser.add_argument("--capture-dir", default="captures", help="Directory for captured stills (default: captures)")
    parser.add_argument("--frames", type=int, default=None, help="Render this many frames without a window, then exit")
    parser.add_argument("--output", default="glyphrain.jpg", help="Still written after --frames (default: glyphrain.jpg)")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args(argv)


def _open_source(args):
    if args.image is not None:
        image_path = Path(args.image)
        if not image_path.exists():
            print(f"File not found: {image_path}", file=sys.stderr)
            return None
        return StillSource(image_path)
    try:
        return CameraSource(args.device)
    except RuntimeError as exc:
        print(str(exc), file=sys.stderr)
        return None


def _poll(source) -> None:
    update = getattr(source, "update", None)
    if update is not None:
        update()


def run_headless(engine: Engine, requester: TimerFrameRequester, frames: int, output: Path) -> None:
    with engine.running():
        requester.run(until=lambda: engine.state.frames_drawn >= frames, before_frame=lambda: _poll(engine.source))
    output.write_bytes(engine.capture())
    logger.info("Wrote %s after %d frames", output, engine.state.frames_drawn)


def run_window(engine: Engine, requester: TimerFrameRequester) -> None:
    quit_requested = False
    captures = 0

    def before_frame():
        nonlocal quit_requested, captures
        _poll(engine.source)
        if engine.surface is not None:
            cv2.imshow(WINDOW_NAME, cv2.cvtColor(engine.surface, cv2.COLOR_RGB2BGR))
        key = cv2.waitKey(1) & 0xFF
        if key in (ord("q"), 27):
            quit_requested = True
        elif key == ord("m"):
            engine.configure(mirrored=not engine.config.mirrored)
        elif key in (ord("+"), ord("=")):
            engine.configure(cell_size=min(MAX_CELL_SIZE, engine.config.cell_size + 1))
        elif key == ord("-"):
            engine.configure(cell_size=max(MIN_CELL_SIZE, engine.config.cell_size - 1))
        elif key == ord("c"):
            captures += 1
            engine.set_capture_trigger(captures)

    print("Controls: q quit | m mirror | + - density | c capture", file=sys.stderr)
    try:
        with engine.running():
            requester.run(until=lambda: quit_requested, before_frame=before_frame)
    except KeyboardInterrupt:
        pass
    finally:
        cv2.destroyAllWindows()


def main(argv=None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level)

    source = _open_source(args)
    if source is None:
        return 1

    try:
        config = RenderConfig(cell_size=args.cell_size, mirrored=args.mirror, target_fps=args.fps)
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    requester = TimerFrameRequester()
    engine = Engine(
        source,
        config,
        palette=GlyphPalette(glyphs=CHARSETS[args.charset]),
        requester=requester,
        rng=np.random.default_rng(args.seed),
        font_path=args.font,
        on_capture=CaptureWriter(Path(args.capture_dir)),
    )
    engine.resize(args.width, args.height, args.scale)

    try:
        if args.frames is not None:
            run_headless(engine, requester, args.frames, Path(args.output))
        else:
            run_window(engine, requester)
    finally:
        engine.close()
        release = getattr(source, "release", None)
        if release is not None:
            release()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
