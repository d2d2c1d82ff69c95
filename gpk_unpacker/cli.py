#!/usr/bin/env python3
"""
Command-line interface for gpk_unpacker

Extracts one or more GPK archives into <output-dir>/<archive name>/.
"""

import argparse
import logging
import multiprocessing
import sys
import time
from pathlib import Path

from gpk_unpacker import __version__, constants, utils
from gpk_unpacker.errors import GpkError
from gpk_unpacker.extractor import GpkExtractor, archive_output_dir
from gpk_unpacker.parser import read_archive

logger = logging.getLogger("gpk_unpacker.cli")

# Print a progress line every this many entries
PROGRESS_EVERY = 100


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def pause():
    """Wait for Enter so a console window opened by drag-and-drop stays visible."""
    print("Press Enter to continue...", end="", flush=True)
    try:
        sys.stdin.readline()
    except (OSError, ValueError):
        pass


def print_progress(archive_name: str, done: int, total: int, entry_name: str):
    """Progress callback for GpkExtractor."""
    if done % PROGRESS_EVERY == 0 or done == total:
        print(f"  [{archive_name}] {done}/{total} {entry_name}")


def cmd_list(args) -> int:
    """Print the entry table of each archive."""
    status = 0
    for archive_path in args.files:
        try:
            data = utils.load_archive(archive_path)
            header, entries = read_archive(data, archive=str(archive_path))
        except GpkError as e:
            print(f"{utils.SYMBOL_ERROR} {e}", file=sys.stderr)
            if not args.keep_going:
                return 1
            status = 1
            continue

        print(f"{archive_path}: {header.entry_count} file(s)")
        for entry in entries:
            print(f"  {entry.size:>10}  {entry.offset:>10}  {entry.name}")
    return status


def cmd_extract(args) -> int:
    """Load every archive, then extract them in the order given."""
    started = time.monotonic()
    thread_count = args.threads if args.threads > 0 else multiprocessing.cpu_count()

    print("[1/2] Loading files...")
    loaded = []
    status = 0
    for archive_path in args.files:
        try:
            loaded.append((archive_path, utils.load_archive(archive_path)))
        except GpkError as e:
            print(f"{utils.SYMBOL_ERROR} {e}", file=sys.stderr)
            if not args.keep_going:
                return 1
            status = 1

    print(f"[2/2] Extracting {len(loaded)} files...")
    if thread_count > 1:
        print(f"Using {thread_count} threads for extraction")

    extractor = GpkExtractor(max_workers=thread_count, progress_callback=print_progress)
    while loaded:
        # Drop each buffer once its archive is done
        archive_path, data = loaded.pop(0)
        try:
            result = extractor.extract_buffer(data, archive_path, args.output_dir)
        except GpkError as e:
            print(f"{utils.SYMBOL_ERROR} {e}", file=sys.stderr)
            if not args.keep_going:
                return 1
            status = 1
            continue

        print(f"{utils.SYMBOL_CHECK} {archive_path.name}: {len(result.files)} file(s) -> "
              f"{archive_output_dir(args.output_dir, archive_path)}")

    print(f"Done in {utils.format_duration(time.monotonic() - started)}")
    return status


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gpk-unpacker",
        description="Extract files from GPK archives.\n\n"
                    "Each archive is extracted into <output-dir>/<archive name>/.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Examples:\n"
               "  gpk-unpacker data.gpk                 # extract to extracted/data/\n"
               "  gpk-unpacker -o out a.gpk b.gpk       # extract two archives to out/\n"
               "  gpk-unpacker --list data.gpk          # show the entry table\n"
    )
    parser.add_argument(
        "files",
        metavar="FILE",
        nargs="+",
        type=Path,
        help="GPK archive(s) to extract"
    )
    parser.add_argument(
        "-o", "--output-dir",
        type=Path,
        default=Path(constants.DEFAULT_OUTPUT_DIR),
        help=f"Output directory (default: {constants.DEFAULT_OUTPUT_DIR})"
    )
    parser.add_argument(
        "-j", "--threads",
        type=int,
        default=constants.DEFAULT_MAX_WORKERS,
        help="Write threads per archive, 0 = number of CPUs (default: 1)"
    )
    parser.add_argument(
        "--keep-going",
        action="store_true",
        help="Continue with the remaining archives when one fails"
    )
    parser.add_argument(
        "--list", "-l",
        action="store_true",
        help="List archive contents instead of extracting"
    )
    parser.add_argument(
        "--cli",
        action="store_true",
        help="Do not wait for Enter before exiting"
    )
    parser.add_argument(
        "--ascii",
        action="store_true",
        help="Use ASCII status symbols"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )
    return parser


def main(argv=None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.threads < 0:
        parser.error("--threads must be 0 or greater")

    setup_logging(args.verbose)
    utils.setup_symbols(force_ascii=args.ascii)

    try:
        if args.list:
            status = cmd_list(args)
        else:
            status = cmd_extract(args)
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        return 130
    except Exception as e:
        logger.exception("Unexpected error")
        print(f"\n{utils.SYMBOL_ERROR} Error: {e}", file=sys.stderr)
        status = 1

    if not args.cli and sys.stdin is not None and sys.stdin.isatty():
        pause()

    return status


if __name__ == "__main__":
    sys.exit(main())
