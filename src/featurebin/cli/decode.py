"""
Decode command for the featurebin CLI.

Prints the records of a BIN file.
"""

from argparse import ArgumentParser, Namespace
from pathlib import Path
from datetime import datetime, timezone

from .base import CLICommand


class DecodeCommand(CLICommand):
    """Command to print BIN records."""

    @property
    def name(self) -> str:
        return "decode"

    @property
    def help(self) -> str:
        return "Print the records of a BIN file"

    @property
    def description(self) -> str:
        return """
Decode a BIN file and print one line per record. The record variant is not
stored in the file; pass --extended for 24-byte labelled records.

Examples:
  featurebin decode --input tracks.bin --limit 10
  featurebin decode --input labelled.bin --extended
        """

    def add_arguments(self, parser: ArgumentParser) -> None:
        """Add decode command arguments."""
        parser.add_argument(
            "--input", type=Path, required=True, metavar="PATH", help="BIN file"
        )
        parser.add_argument(
            "--extended", action="store_true", help="Records are 24 bytes with a label"
        )
        parser.add_argument(
            "--limit", type=int, default=None, metavar="N", help="Print at most N records"
        )

    def execute(self, args: Namespace) -> int:
        """Execute decode command."""
        from featurebin.bin import BinCodec

        if not self.validate_file_exists(args.input, "Input file"):
            return 1

        codec = BinCodec(extended=args.extended)
        try:
            records = codec.decode(args.input.read_bytes())
        except ValueError as e:
            return self.error(str(e))

        shown = records if args.limit is None else records[:args.limit]
        for record in shown:
            when = datetime.fromtimestamp(record.dtg / 1000, tz=timezone.utc).isoformat()
            line = f"{record.track_hash:>12} {when} {record.lat:>12.6f} {record.lon:>12.6f}"
            if record.label is not None:
                line += f" {record.label}"
            print(line)

        print(f"{len(records)} records ({codec.record_size} bytes each)")
        return 0
