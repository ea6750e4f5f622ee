"""Command-line interface for GIF palette remapping."""
from __future__ import annotations

import argparse
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence, Tuple

from .color_keys import key_of, parse_color, rgb_to_hex, validate_hex
from .compositor import MAX_ZOOM, MIN_ZOOM, render_strip
from .palette_ops import find_color
from .session import RecolorSession, ViewOptions


logger = logging.getLogger(__name__)
DEBUG_LOG_PATH: Path | None = None
_LOGGING_CONFIGURED = False


def _setup_debug_logging() -> None:
    global DEBUG_LOG_PATH, _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return
    _LOGGING_CONFIGURED = True
    if not os.environ.get("GIF_RECOLOR_DEBUG"):
        logging.getLogger("gif_recolor").addHandler(logging.NullHandler())
        return
    log_path = Path(os.environ.get("GIF_RECOLOR_DEBUG_LOG", "gif_recolor_debug.log"))
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_path, mode="w", encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers = [h for h in root_logger.handlers if not isinstance(h, logging.FileHandler)]
    root_logger.addHandler(handler)
    DEBUG_LOG_PATH = log_path
    root_logger.info("gif-recolor debug logging enabled at %s", log_path)


@dataclass(slots=True)
class RenderOptions:
    input_path: Path
    output_dir: Path
    zoom: int = 1
    unrolled: bool = False


def _zoom_arg(value: str) -> int:
    try:
        zoom = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid zoom {value!r}") from exc
    if not MIN_ZOOM <= zoom <= MAX_ZOOM:
        raise argparse.ArgumentTypeError(f"zoom must be between {MIN_ZOOM} and {MAX_ZOOM}")
    return zoom


def parse_mapping(value: str) -> Tuple[str, str]:
    """Split ``SRC=DST`` into a color key and a normalized hex string."""

    source, sep, target = value.partition("=")
    if not sep:
        raise ValueError(f"Expected SRC=DST, got {value!r}")
    rgb = parse_color(source)
    if rgb is None:
        raise ValueError(f"Invalid source color {source!r}")
    target_hex = validate_hex(target.strip())
    if target_hex is None:
        raise ValueError(f"Invalid target hex {target!r}")
    return key_of(rgb), target_hex


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Remap GIF palette colors across every frame")
    parser.add_argument("input", type=Path, help="Input GIF file")
    parser.add_argument(
        "--map",
        dest="mappings",
        action="append",
        default=[],
        metavar="SRC=DST",
        help="Replace SRC (rgb(r,g,b) or hex) with DST hex; repeatable",
    )
    parser.add_argument(
        "--zoom",
        type=_zoom_arg,
        default=1,
        help=f"Nearest-neighbor zoom factor ({MIN_ZOOM}-{MAX_ZOOM})",
    )
    parser.add_argument(
        "--out",
        type=Path,
        default=None,
        help="Destination folder (defaults to <input dir>/out)",
    )
    parser.add_argument(
        "--list-palette",
        action="store_true",
        help="Print the palette with pixel counts and exit",
    )
    parser.add_argument(
        "--unrolled",
        action="store_true",
        help="Also write a strip with every frame side by side",
    )
    return parser


def apply_mappings(session: RecolorSession, mappings: Sequence[Tuple[str, str]]) -> List[str]:
    """Select and update each mapping; return the keys missing from the palette."""

    missing: List[str] = []
    for key, target in mappings:
        color = find_color(session.palette, key)
        if color is None:
            missing.append(key)
            continue
        session.select_color(color)
        session.update_mapping(key, target)
    return missing


def print_palette(session: RecolorSession) -> None:
    for entry in session.palette:
        marker = "*" if session.is_remapped(entry.color) else " "
        print(f"{marker} {rgb_to_hex(entry.rgb)} {entry.color:<18} {entry.count}")
    print(f"{len(session.palette)} color(s)")


def render_animation(session: RecolorSession, options: RenderOptions) -> List[Path]:
    options.output_dir.mkdir(parents=True, exist_ok=True)
    stem = options.input_path.stem
    written: List[Path] = []
    for index in range(len(session.frames)):
        for label, remapped in (("original", False), ("remapped", True)):
            bitmap = session.render(index, remapped=remapped)
            if bitmap is None:
                continue
            path = options.output_dir / f"{stem}_{label}_{index:04d}.png"
            bitmap.save(path)
            written.append(path)
    if options.unrolled:
        for label, frames in (("original", session.frames), ("remapped", session.remapped_frames)):
            path = options.output_dir / f"{stem}_{label}_strip.png"
            render_strip(frames, options.zoom).save(path)
            written.append(path)
    logger.debug("render_animation wrote %s file(s) to %s", len(written), options.output_dir)
    return written


def main(argv: list[str] | None = None) -> int:
    _setup_debug_logging()
    parser = build_parser()
    args = parser.parse_args(argv)

    mappings: List[Tuple[str, str]] = []
    for raw in args.mappings:
        try:
            mappings.append(parse_mapping(raw))
        except ValueError as exc:
            parser.error(str(exc))

    if not args.input.is_file():
        parser.error(f"Input path not found: {args.input}")

    session = RecolorSession(ViewOptions(zoom=args.zoom, autoplay=False))
    if not session.load_path(args.input):
        print(f"[FAIL] {args.input}: {session.error}")
        return 1

    for key in apply_mappings(session, mappings):
        print(f"[WARN] {key} does not occur in {args.input.name}; mapping skipped")

    if args.list_palette:
        print_palette(session)
        return 0

    options = RenderOptions(
        input_path=args.input,
        output_dir=args.out or (args.input.parent / "out"),
        zoom=args.zoom,
        unrolled=args.unrolled,
    )
    try:
        written = render_animation(session, options)
    except OSError as exc:
        print(f"[FAIL] {args.input}: {exc}")
        return 1
    print(f"[OK] {args.input.name} -> {options.output_dir} ({len(written)} file(s))")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
