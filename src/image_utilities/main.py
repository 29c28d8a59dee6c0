"""Main module for the image utilities CLI."""

import sys
import json
import argparse
from typing import Any, Dict, Optional

from . import __version__
from .core import PluginSettings, ScaleMode, get_logger, set_level
from .core.exceptions import ConfigurationError
from .core.factories import ImageUtilitiesFactory
from .dispatchers import SerialDispatcher
from .plugin import MethodCall


class ConsoleResult:
    """Prints a method call's outcome and remembers the exit code."""

    def __init__(self) -> None:
        self.exit_code = 1

    def success(self, value: Any) -> None:
        if isinstance(value, dict):
            print(json.dumps(value))
        else:
            print(value)
        self.exit_code = 0

    def error(self, code: str, message: str, details: Optional[Any] = None) -> None:
        print(f"Error [{code}]: {message}", file=sys.stderr)
        self.exit_code = 1

    def not_implemented(self) -> None:
        print("Error: method not implemented", file=sys.stderr)
        self.exit_code = 1


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser with its subcommands."""
    parser = argparse.ArgumentParser(
        prog="image-utilities",
        description="Image Utilities - save images as resized JPEGs that keep EXIF tags",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Fit inside 1920x1080 in either orientation, quality 85
  image-utilities save-as-jpeg photo.heic --max-width 1920 --max-height 1080 --quality 85

  # Scale to 1080 pixels high, allowing upscaling
  image-utilities save-as-jpeg small.png --max-height 1080 --can-scale-up

  # Show width, height and EXIF orientation
  image-utilities properties photo.jpg
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    save_parser = subparsers.add_parser(
        "save-as-jpeg", help="Save an image as a resized JPEG"
    )
    save_parser.add_argument("source", help="Source image file")
    save_parser.add_argument(
        "--destination",
        default=None,
        help="Destination file (default: timestamped file in the scratch directory)",
    )
    save_parser.add_argument(
        "--quality", type=int, default=None, help="JPEG quality 1-100 (default: 100)"
    )
    save_parser.add_argument("--max-width", type=int, default=None, help="Maximum width")
    save_parser.add_argument("--max-height", type=int, default=None, help="Maximum height")

    policy_group = save_parser.add_mutually_exclusive_group()
    policy_group.add_argument(
        "--scale-mode",
        type=str,
        default=None,
        choices=[mode.value for mode in ScaleMode],
        help="Directional scale mode (default: FitAnyDirectionKeepAspectRatio)",
    )
    policy_group.add_argument(
        "--can-scale-up",
        action="store_true",
        help="Use a single scale factor and allow upscaling",
    )
    save_parser.add_argument(
        "--scratch-dir", default=None, help="Directory for generated output files"
    )
    save_parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    properties_parser = subparsers.add_parser(
        "properties", help="Show width, height and EXIF orientation of an image"
    )
    properties_parser.add_argument("image", help="Image file")
    properties_parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )

    subparsers.add_parser("version", help="Show version information")

    return parser


def build_call(args: argparse.Namespace) -> MethodCall:
    """Translate parsed CLI arguments into a method call."""
    if args.command == "properties":
        return MethodCall("getImageProperties", {"imageFile": args.image})

    arguments: Dict[str, Any] = {
        "sourceFilePath": args.source,
        "destinationFilePath": args.destination,
        "quality": args.quality,
        "maxWidth": args.max_width,
        "maxHeight": args.max_height,
    }
    if args.can_scale_up:
        arguments["canScaleUp"] = True
    elif args.scale_mode:
        arguments["scaleMode"] = args.scale_mode
    return MethodCall("saveAsJpeg", arguments)


def main() -> None:
    """
    Entry point for the image utilities command-line interface (CLI).

    Runs the requested method call through the plugin on the current thread
    and exits with 0 on success or 1 on any failure.
    """
    parser = build_parser()
    args = parser.parse_args()

    if args.command == "version":
        print("Image Utilities CLI")
        print(f"Version {__version__}")
        print("Resize and re-encode images to JPEG while keeping EXIF tags")
        sys.exit(0)

    if args.command not in ("save-as-jpeg", "properties"):
        parser.print_help()
        sys.exit(1)

    logger = get_logger("cli")
    if args.debug:
        set_level("DEBUG")

    try:
        settings = PluginSettings.from_env()
        if args.command == "save-as-jpeg" and args.scratch_dir:
            settings = settings.model_copy(update={"scratch_dir": args.scratch_dir})
        if args.debug:
            settings = settings.model_copy(update={"log_level": "DEBUG"})
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    plugin = ImageUtilitiesFactory.create_plugin(
        settings=settings, dispatcher=SerialDispatcher()
    )
    result = ConsoleResult()
    plugin.on_method_call(build_call(args), result)
    sys.exit(result.exit_code)


if __name__ == "__main__":
    main()
