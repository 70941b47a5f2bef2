"""Command line entry point.

Usage:
    beatgrid --file song.wav                  # analyze one file
    beatgrid --dir data/train --out out.json  # analyze every .wav in a folder
    beatgrid --dir data/train --workers 8 --verbose
"""

import argparse
import logging
import sys
from pathlib import Path

from beatgrid.analysis.errors import BeatgridError
from beatgrid.batch import find_audio_files, run_batch, to_document, write_document
from beatgrid.config import settings

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="beatgrid",
        description="Detect onsets, estimate tempo and track beats in audio files.",
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("-f", "--file", type=Path, help="Process a single .wav file")
    source.add_argument("-d", "--dir", type=Path, help="Process all .wav files in a directory")
    parser.add_argument("-o", "--out", type=Path, default=None, help="Write the JSON result document here")
    parser.add_argument("-w", "--workers", type=int, default=settings.max_workers, help="Worker threads for --dir")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger("numba").setLevel(logging.WARNING)
    logging.getLogger("matplotlib").setLevel(logging.WARNING)


def run(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    if args.file is not None:
        if not args.file.is_file():
            logger.error(f"No such file: {args.file}")
            return 1
        files = [args.file]
    else:
        if not args.dir.is_dir():
            logger.error(f"No such directory: {args.dir}")
            return 1
        files = find_audio_files(args.dir)
        if not files:
            logger.error(f"No .wav files in {args.dir}")
            return 1

    try:
        batch = run_batch(files, settings=settings, max_workers=args.workers, progress=args.dir is not None)
    except BeatgridError as e:
        logger.error(str(e))
        return 1

    if args.out is not None:
        write_document(batch, args.out)
    else:
        print(to_document(batch).model_dump_json(indent=2))

    return 1 if batch.errors and not batch.results else 0


if __name__ == "__main__":
    sys.exit(run())
