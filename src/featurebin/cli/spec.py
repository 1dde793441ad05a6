"""
Spec command for the featurebin CLI.

Parses a feature type and prints its canonical spec and attributes.
"""

from argparse import ArgumentParser, Namespace
from pathlib import Path

from .base import FeatureTypeCommand


class SpecCommand(FeatureTypeCommand):
    """Command to validate and normalize a feature type."""

    @property
    def name(self) -> str:
        return "spec"

    @property
    def help(self) -> str:
        return "Validate a feature type and print its canonical spec"

    @property
    def description(self) -> str:
        return """
Build a feature type from a spec string or YAML definition, then print the
canonical spec string and a table of attributes.

Examples:
  # Normalize a spec string
  featurebin spec --name example:tracks --spec "id:Int,*geom:Point,dtg:Date"

  # Convert a spec string to a YAML definition
  featurebin spec --spec "id:Int,*geom:Point,dtg:Date" --to-yaml tracks.yaml
        """

    def add_arguments(self, parser: ArgumentParser) -> None:
        """Add spec command arguments."""
        self.add_feature_type_arguments(parser)
        parser.add_argument(
            "--to-yaml", type=Path, metavar="PATH", help="Also write the feature type as YAML"
        )
        parser.add_argument(
            "--quiet", "-q", action="store_true", help="Print only the canonical spec"
        )

    def execute(self, args: Namespace) -> int:
        """Execute spec command."""
        from featurebin.config import save_feature_type
        from featurebin.schema import encode_type

        sft = self.load_feature_type(args)
        if sft is None:
            return 1

        if args.quiet:
            print(encode_type(sft))
        else:
            self._print_feature_type(sft)

        if args.to_yaml is not None:
            save_feature_type(sft, args.to_yaml)
            if not args.quiet:
                print(f"\nWrote {args.to_yaml}")
        return 0

    def _print_feature_type(self, sft) -> None:
        from featurebin.schema import encode_type

        print("=" * 60)
        print(f"FEATURE TYPE: {sft.type_name}")
        print("=" * 60)
        print(f"\nSpec: {encode_type(sft)}")
        print("\nAttributes:")
        for attribute in sft.attributes:
            d = attribute.to_attribute()
            print(
                f"  {attribute.name:<20} {attribute.to_spec().split(':')[1]:<20} "
                f"index={d.index} index-value={str(d.index_value).lower()} cardinality={d.cardinality}"
            )
        geometry = sft.default_geometry.name if sft.default_geometry else "-"
        print(f"\nDefault geometry: {geometry}")
        print(f"Default date:     {sft.default_date or '-'}")
        for key, value in sft.user_data.items():
            print(f"User data:        {key} = {value}")
        print("=" * 60)
