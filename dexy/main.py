"""CLI entry point — dispatches dexy subcommands."""
import argparse
import logging
import sys

from dexy.errors import FatalError

LOG_FORMAT = "%(asctime)s %(levelname)-5s [%(name)s] %(message)s"


def configure_logging(verbose: bool = False, debug: bool = False) -> None:
    level = logging.WARNING
    if verbose:
        level = logging.INFO
    if debug:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
        stream=sys.stderr,
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dexy",
        description="Recursively hash every file under a directory and index it by SHA-256",
    )
    parser.add_argument("--version", action="store_true", help="Print version and exit")
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    # dexy scan
    p_scan = sub.add_parser("scan", help="Scan directories and write a JSON hash index")
    p_scan.add_argument("start_directory", nargs="+", help="Directories to scan")
    p_scan.add_argument("-o", "--out", default=None,
                        help="Output directory (default: ./ or [output] dir)")
    p_scan.add_argument("-n", "--name", default=None,
                        help="Name of the scan; output is written to <out>/<name>.json (default: dexy)")
    p_scan.add_argument("-t", "--thread-count", dest="thread_count", type=int, default=None,
                        help="Number of traversal workers (default: number of cores)")
    p_scan.add_argument("--hash-threads", dest="hash_threads", type=int, default=None,
                        help="Number of hashing threads (default: same as --thread-count)")
    p_scan.add_argument("-i", "--ignore-empty", dest="ignore_empty", action="store_true",
                        help="Skip 0-byte files, which would otherwise all be 'duplicates'")
    p_scan.add_argument("--include-hidden", dest="include_hidden", action="store_true",
                        help="Include hidden files and folders (excluded by default)")
    p_scan.add_argument("-l", "--load-file-attributes", dest="load_file_attributes",
                        action="store_true",
                        help="Record size, timestamps and type for each file")
    p_scan.add_argument("--indent", type=int, default=None,
                        help="Pretty-print the JSON output with this indent")
    p_scan.add_argument("-e", "--exclude", action="append", default=[],
                        help="Not supported: rejected if given")
    p_scan.add_argument("-u", "--update-existing", dest="update_existing", action="store_true",
                        help="Not supported: rejected if given")
    p_scan.add_argument("--quiet", action="store_true",
                        help="Suppress progress output (still prints final summary)")
    p_scan.add_argument("--verbose", action="store_true",
                        help="Log skipped hidden entries and other informational messages")
    p_scan.add_argument("--debug", action="store_true", help="Debug logging")

    # dexy dupes
    p_dupes = sub.add_parser("dupes", help="List duplicate groups from a written index")
    p_dupes.add_argument("index", help="Path to a <name>.json index written by dexy scan")
    p_dupes.add_argument("--min-count", dest="min_count", type=int, default=2,
                         help="Only show groups with at least this many files (default: 2)")
    p_dupes.add_argument("--full-hash", dest="full_hash", action="store_true",
                         help="Show full SHA-256 hash instead of first 8 characters")

    return parser


def main(argv=None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        from dexy.commands import print_version
        print_version()
        sys.exit(0)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    configure_logging(
        verbose=getattr(args, "verbose", False),
        debug=getattr(args, "debug", False),
    )

    try:
        if args.command == "scan":
            from dexy.commands.scan import cmd_scan
            cmd_scan(args)
        elif args.command == "dupes":
            from dexy.commands.dupes import cmd_dupes
            cmd_dupes(args)
        else:
            parser.print_help()
            sys.exit(1)
    except FatalError as e:
        print(f"dexy: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        sys.stderr.write("\n")
        sys.exit(130)


if __name__ == "__main__":
    main()
