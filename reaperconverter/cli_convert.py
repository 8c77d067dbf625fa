"""Command line conversion.

Usage: python -m reaperconverter.cli_convert "path/to/song.rpp" "path/to/output"

Prints one JSON result line to stdout.
"""

import argparse
import json
import sys
from pathlib import Path

from reaperconverter.core.context import ConversionContext
from reaperconverter.core.conversion_task import ConversionTask
from reaperconverter.utils.config import DESTINATION_DAWPROJECT, DESTINATION_REAPER
from reaperconverter.utils.log_setup import configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="reaperconverter",
        description="Convert REAPER projects to DAWproject and back.",
    )
    parser.add_argument("source", type=Path, help=".rpp, .rpp-bak or .dawproject file")
    parser.add_argument("output_dir", type=Path, help="Folder for the converted project")
    parser.add_argument(
        "--to",
        choices=[DESTINATION_REAPER, DESTINATION_DAWPROJECT],
        default=None,
        help="Destination format (default: the other format of the source)",
    )
    parser.add_argument("--lenient-midi", action="store_true", help="Skip note-offs without a note-on")
    parser.add_argument(
        "--no-compress-audio",
        action="store_true",
        help="Reference audio files instead of storing them in the DAWproject",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    if not args.source.exists():
        print(json.dumps({"error": f"File not found: {args.source}"}))
        return 1

    context = ConversionContext(
        lenient_midi=args.lenient_midi,
        do_not_compress_audio=args.no_compress_audio,
    )
    result = ConversionTask(args.source, args.output_dir, args.to, context).run()
    print(json.dumps(result.to_dict(), ensure_ascii=False))
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
