"""
featurebin CLI - main entry point.

Routes commands to modular command implementations in featurebin.cli.
"""

import argparse
import sys
from typing import List, Optional

from featurebin import __version__
from featurebin.cli.decode import DecodeCommand
from featurebin.cli.encode import EncodeCommand
from featurebin.cli.spec import SpecCommand


def create_parser() -> argparse.ArgumentParser:
    """
    Create the main argument parser with subcommands.

    Returns:
        Configured ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog="featurebin",
        description="featurebin - feature type specs and BIN trajectory encoding",
        epilog="""
Examples:
  featurebin spec --spec "id:Integer,*geom:Point:srid=4326,dtg:Date"
  featurebin encode --config tracks.yaml --input tracks.jsonl --output tracks.bin --sort
  featurebin decode --input tracks.bin --limit 10

For more help on a specific command:
  featurebin <command> --help
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("--version", action="version", version=f"featurebin v{__version__}")

    subparsers = parser.add_subparsers(
        title="commands", description="Available commands", dest="command", required=True
    )

    commands = [
        SpecCommand(),
        EncodeCommand(),
        DecodeCommand(),
    ]

    for command in commands:
        cmd_parser = subparsers.add_parser(
            command.name,
            help=command.help,
            description=command.description,
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        command.add_arguments(cmd_parser)
        cmd_parser.set_defaults(command_handler=command)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        return args.command_handler.execute(args)
    except KeyboardInterrupt:
        print("\n\nInterrupted by user", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
