"""Headless batch editor.

Usage:
    python -m photostack INPUT -o OUTPUT [--preset NAME] [--adjust FIELD=VALUE ...]
                         [--rotate DEG] [--flip {horizontal,vertical}]
                         [--crop X Y W H] [--config PATH] [-v]

Examples:
    python -m photostack photo.jpg -o out.png --preset vintage
    python -m photostack photo.jpg -o out.jpg --adjust brightness=20 --rotate 90
"""

import argparse
import logging
import os
import sys

from photostack.core.adjustments import FIELD_RANGES, PRESETS
from photostack.core.errors import DecodeFailure, EditorError
from photostack.core.logging import get_logger, setup_logging
from photostack.core.transform import FlipAxis


log = get_logger(__name__)


def _parse_adjustment(text: str) -> tuple[str, float]:
    field, sep, raw_value = text.partition("=")
    field = field.strip().lower()
    if not sep or field not in FIELD_RANGES:
        raise argparse.ArgumentTypeError(
            f"expected FIELD=VALUE with FIELD one of {', '.join(FIELD_RANGES)}"
        )
    try:
        return field, float(raw_value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {raw_value!r}") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="photostack",
        description="Apply adjustments and geometry edits to an image (headless).",
    )
    parser.add_argument("input_file", help="Image to edit.")
    parser.add_argument("-o", "--output", required=True, help="Where to write the result; format follows the extension.")
    parser.add_argument("--preset", choices=sorted(PRESETS), help="Adjustment preset, applied before --adjust.")
    parser.add_argument(
        "--adjust",
        action="append",
        default=[],
        type=_parse_adjustment,
        metavar="FIELD=VALUE",
        help="Set one adjustment field; may be repeated.",
    )
    parser.add_argument("--rotate", type=int, default=0, metavar="DEG", help="Clockwise rotation, a multiple of 90.")
    parser.add_argument("--flip", choices=[axis.value for axis in FlipAxis])
    parser.add_argument("--crop", type=int, nargs=4, metavar=("X", "Y", "W", "H"))
    parser.add_argument("--config", help="Settings file (default: settings.ini).")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging.")
    return parser


def _ensure_gui_application():
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
    from PySide6.QtGui import QGuiApplication

    return QGuiApplication.instance() or QGuiApplication([])


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)

    input_path = os.path.abspath(args.input_file)
    if not os.path.isfile(input_path):
        log.error("Input file not found: %s", input_path)
        return 1

    app = _ensure_gui_application()  # noqa: F841 - keeps the Qt application alive

    from photostack.core.document_controller import DocumentController
    from photostack.core.settings_controller import SettingsController

    controller = DocumentController(SettingsController(args.config))
    try:
        controller.document_service.open_image(input_path)
    except (OSError, DecodeFailure) as e:
        log.error("Could not load %s: %s", input_path, e)
        return 1

    try:
        if args.preset:
            controller.apply_preset(0, args.preset)
        for field, value in args.adjust:
            controller.set_adjustment(0, field, value)
        if args.rotate:
            controller.rotate(args.rotate)
        if args.flip:
            controller.flip(args.flip)
        if args.crop:
            controller.crop(*args.crop)
        written = controller.document_service.save_image(args.output)
    except (ValueError, EditorError) as e:
        log.error("%s", e)
        return 1
    except OSError as e:
        log.error("Could not write %s: %s", args.output, e)
        return 1

    log.info("Wrote %s", written)
    return 0


if __name__ == "__main__":
    sys.exit(main())
