"""
Base command class for the featurebin CLI.

Provides abstract interface and shared functionality for CLI commands.
"""

from abc import ABC, abstractmethod
from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import Optional
import logging
import sys


class CLICommand(ABC):
    """
    Abstract base class for CLI commands.

    Subclasses implement specific commands (spec, encode, decode).
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Command name (e.g., 'encode')."""
        pass

    @property
    @abstractmethod
    def help(self) -> str:
        """Short help text for command."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Detailed command description."""
        pass

    @abstractmethod
    def add_arguments(self, parser: ArgumentParser) -> None:
        """
        Add command-specific arguments to parser.

        Args:
            parser: ArgumentParser for this command
        """
        pass

    @abstractmethod
    def execute(self, args: Namespace) -> int:
        """
        Execute the command.

        Args:
            args: Parsed command-line arguments

        Returns:
            Exit code (0 for success, non-zero for error)
        """
        pass

    def error(self, message: str, exit_code: int = 1) -> int:
        """Print error message and return exit code."""
        print(f"Error: {message}", file=sys.stderr)
        return exit_code

    def validate_file_exists(self, path: Path, description: str = "File") -> bool:
        """
        Validate that a file exists.

        Returns:
            True if file exists, False otherwise (with error printed)
        """
        if not path.exists():
            print(f"Error: {description} not found: {path}", file=sys.stderr)
            return False
        return True

    def configure_logging(self, verbose: bool) -> None:
        """Send INFO logging to stderr when --verbose is given."""
        if verbose:
            logging.basicConfig(
                level=logging.INFO,
                format="%(asctime)s %(levelname)s %(name)s: %(message)s",
                stream=sys.stderr,
            )


class FeatureTypeCommand(CLICommand):
    """Base class for commands that take a feature type as input."""

    def add_feature_type_arguments(self, parser: ArgumentParser, required: bool = True) -> None:
        source = parser.add_mutually_exclusive_group(required=required)
        source.add_argument(
            "--config", type=Path, metavar="PATH", help="YAML feature type definition"
        )
        source.add_argument(
            "--spec", type=str, metavar="TEXT", help="Spec string, e.g. 'id:Integer,*geom:Point,dtg:Date'"
        )
        parser.add_argument(
            "--name", type=str, default="features", metavar="NAME",
            help="Type name for --spec input, as namespace:name or name (default: features)"
        )

    def load_feature_type(self, args: Namespace) -> Optional[object]:
        """
        Build the FeatureType selected by --config or --spec.

        Returns:
            FeatureType or None on error (with error printed)
        """
        from featurebin.config import load_feature_type
        from featurebin.schema import create_type

        try:
            if args.config is not None:
                if not self.validate_file_exists(args.config, "Configuration file"):
                    return None
                return load_feature_type(args.config)
            return create_type(args.name, args.spec)
        except Exception as e:
            print(f"Error: Failed to build feature type: {e}", file=sys.stderr)
            return None
