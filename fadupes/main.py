#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Main CLI entry point for fadupes, the audio duplicate finder.
"""

import argparse
import logging
import sys

from .commands.scan import ScanCommand
from .config import DEFAULT_CHECKPOINT_EVERY, DEFAULT_STATE_FILE, DEFAULT_WORKERS, ScanConfig
from .errors import ConfigurationError
from .jsonio import enable_json_logging


def setup_logging(verbose: bool):
    """Configure logging for the CLI tool."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)]
    )
    logging.debug("Verbose logging enabled (DEBUG level).")


def create_parser():
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        prog="fadupes",
        description="Find audio files with identical content, regardless of file format or metadata",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""Examples:
  # Scan two libraries, resuming from the default state file if present
  %(prog)s -i /mnt/samples ~/Music

  # Only look at files between 1 MB and 50 MB, skipping files with a unique size
  %(prog)s -i /mnt/samples --ignore-size 1MB..50MB --skip-unique-size

  # One-off scan without any resume state, machine readable output
  %(prog)s -i /mnt/samples --no-resume --json
        """
    )

    parser.add_argument("-i", "--input", nargs="+", required=True,
                        help="Directories to scan recursively")
    parser.add_argument("--nosym", action="store_true",
                        help="Do not follow symbolic links")
    parser.add_argument("--checkpoint", type=int, default=DEFAULT_CHECKPOINT_EVERY,
                        help=f"Save resume state every N processed files (default: {DEFAULT_CHECKPOINT_EVERY})")
    parser.add_argument("--skip-unique-size", action="store_true",
                        help="Skip files whose byte size no other discovered file shares")
    parser.add_argument("--ignore-size",
                        help="Only consider files matching this size filter: <N, >N or A..B "
                             "(units B, KB, MB, GB; binary multiples)")
    parser.add_argument("--state-file",
                        help=f"Resume state file, implies resume unless --no-resume is also given (default: {DEFAULT_STATE_FILE})")
    parser.add_argument("--no-resume", action="store_true",
                        help="Neither load nor save resume state; takes precedence over --state-file")
    parser.add_argument("--nolist", action="store_true",
                        help="Do not list every file as it is processed")
    parser.add_argument("-t", "--threads", type=int, default=DEFAULT_WORKERS,
                        help=f"Number of worker threads (default: {DEFAULT_WORKERS})")
    parser.add_argument("--log-dir", default=".",
                        help="Directory for identical_files.log and the error log (default: .)")
    parser.add_argument("--json", action="store_true",
                        help="Output the scan summary as JSON instead of human-readable text")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Enable verbose (DEBUG) output")

    return parser


def main(argv=None) -> int:
    """Main CLI entry point. Returns the process exit code."""
    parser = create_parser()
    args = parser.parse_args(argv)

    # Setup logging based on --verbose (but suppress if JSON output requested)
    if args.json:
        enable_json_logging(args.verbose)
    else:
        setup_logging(args.verbose)

    logging.debug("Parsed arguments: %s", args)

    try:
        config = ScanConfig.from_args(args)
        logging.info("Starting scan of %d input(s).", len(config.inputs))
        report = ScanCommand(config).execute()

        if report.interrupted:
            logging.warning("Scan interrupted by user.")
            if args.json:
                from .reporting import summary_dict
                from .jsonio import success
                return success(summary_dict(report), code=130)
            return 130

        logging.info("Scan completed.")
        if args.json:
            from .reporting import summary_dict
            from .jsonio import success
            return success(summary_dict(report))
        return 0

    except ConfigurationError as e:
        if args.json:
            from .jsonio import error
            return error(str(e), "configuration", code=2)
        logging.error("Configuration error: %s", e)
        return 2
    except KeyboardInterrupt:
        if args.json:
            from .jsonio import error
            return error("Operation interrupted by user", "interrupted", code=130)
        logging.warning("Operation interrupted by user.")
        return 130
    except Exception as e:
        if args.json:
            from .jsonio import error
            debug_info = {"exception_type": type(e).__name__} if args.verbose else None
            return error(str(e), "runtime", debug=debug_info, code=1)
        logging.error("Error occurred: %s", e, exc_info=args.verbose)
        return 1


if __name__ == "__main__":
    sys.exit(main())
