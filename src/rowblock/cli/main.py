"""Main CLI entry point for rowblock."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .. import __version__
from ..compression import available_codecs
from ..exceptions import RowBlockError
from ..utils.sizing import byte_string_as_bytes
from .inspect_block import inspect_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the rowblock CLI.

    Args:
        argv: Command-line arguments (default: sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = argparse.ArgumentParser(
        prog="rowblock",
        description="rowblock: Size-Limited Compressed Row Blocks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  rowblock --inspect block.bin                     Show rows in an lz4 block
  rowblock --inspect block.bin --codec zstd        Inspect a zstd block
  rowblock --inspect block.bin --max-bytes 512m    Enforce a decode size limit
  rowblock --version                               Show version
        """,
    )

    parser.add_argument(
        "--inspect",
        metavar="FILE",
        type=str,
        help="Decode a row block file and show row sizes",
    )

    parser.add_argument(
        "--codec",
        choices=available_codecs(),
        default="lz4",
        help="Compression codec the block was written with (default: lz4)",
    )

    parser.add_argument(
        "--num-fields",
        metavar="N",
        type=int,
        default=0,
        help="Field-count descriptor for decoded rows (default: 0)",
    )

    parser.add_argument(
        "--max-bytes",
        metavar="SIZE",
        type=str,
        default=None,
        help="Cumulative decoded size limit, e.g. 4096, 100k, 1g",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"rowblock {__version__}",
    )

    args = parser.parse_args(argv)

    # Handle --inspect
    if args.inspect:
        file_path = Path(args.inspect)
        if not file_path.exists():
            print(f"Error: File not found: {file_path}", file=sys.stderr)
            return 1

        try:
            max_bytes = byte_string_as_bytes(args.max_bytes) if args.max_bytes else None
            inspect_file(
                file_path, codec=args.codec, num_fields=args.num_fields, max_bytes=max_bytes
            )
            return 0
        except RowBlockError as e:
            print(f"Error inspecting block: {e}", file=sys.stderr)
            return 1

    # If no command specified, show help
    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
