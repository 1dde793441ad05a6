"""
Encode command for the featurebin CLI.

Encodes newline-delimited GeoJSON features to BIN records.
"""

from argparse import ArgumentParser, Namespace
from pathlib import Path
import sys

from .base import FeatureTypeCommand


class EncodeCommand(FeatureTypeCommand):
    """Command to encode features to a BIN file."""

    @property
    def name(self) -> str:
        return "encode"

    @property
    def help(self) -> str:
        return "Encode GeoJSON features to BIN records"

    @property
    def description(self) -> str:
        return """
Encode newline-delimited GeoJSON features to fixed-width BIN records
(16 bytes, or 24 bytes when --label is given).

Field roles come from the 'encoding' section of the --config file, and
command-line flags override them.

Examples:
  # Point tracks, sorted by time, using the feature id as track id
  featurebin encode --config tracks.yaml --input tracks.jsonl --output tracks.bin \\
      --dtg dtg --track id --sort

  # GeoJSON coordinates are (lon, lat)
  featurebin encode --spec "*geom:Point,dtg:Date,name:String" --input pts.jsonl \\
      --output pts.bin --dtg dtg --track name --lon-lat
        """

    def add_arguments(self, parser: ArgumentParser) -> None:
        """Add encode command arguments."""
        self.add_feature_type_arguments(parser)

        parser.add_argument(
            "--input", type=Path, required=True, metavar="PATH", help="GeoJSON lines input file"
        )
        parser.add_argument(
            "--output", type=Path, required=True, metavar="PATH", help="BIN output file"
        )

        roles = parser.add_argument_group("field roles")
        roles.add_argument("--dtg", type=str, metavar="FIELD", help="Date (or List[Date]) field")
        roles.add_argument("--track", type=str, metavar="FIELD", help="Track id field ('id' = feature id)")
        roles.add_argument("--label", type=str, metavar="FIELD", help="Label field (24-byte records)")
        roles.add_argument(
            "--lat-lon", nargs=2, metavar=("LAT", "LON"), help="Attribute fields to use as lat/lon"
        )
        roles.add_argument(
            "--lon-lat", action="store_true", help="Geometry coordinates are (lon, lat)"
        )

        execution = parser.add_argument_group("execution")
        execution.add_argument("--sort", action="store_true", help="Sort records by time")
        execution.add_argument("--threads", type=int, metavar="N", help="Worker threads")
        execution.add_argument(
            "--strict", action="store_true", help="Fail on line features with mismatched dates"
        )
        execution.add_argument("--verbose", "-v", action="store_true", help="Log progress")

    def execute(self, args: Namespace) -> int:
        """Execute encode command."""
        from featurebin.bin import BinEncodingOptions, PointExtractor, encode_feature_collection
        from featurebin.config import load_encoding_options
        from featurebin.errors import ValidationError
        from featurebin.features import read_geojson_lines

        self.configure_logging(args.verbose)

        sft = self.load_feature_type(args)
        if sft is None:
            return 1
        if not self.validate_file_exists(args.input, "Input file"):
            return 1

        overrides = {
            "dtg_field": args.dtg,
            "track_id_field": args.track,
            "label_field": args.label,
            "lat_lon": tuple(args.lat_lon) if args.lat_lon else None,
            "axis_order": "LON_LAT" if args.lon_lat else None,
            "sort": True if args.sort else None,
            "num_threads": args.threads,
            "strict": True if args.strict else None,
        }
        try:
            if args.config is not None:
                options = load_encoding_options(args.config, **overrides)
            else:
                options = BinEncodingOptions.model_validate(
                    {k: v for k, v in overrides.items() if v is not None}
                )
        except Exception as e:
            return self.error(f"Invalid encoding options: {e}")

        try:
            PointExtractor(sft, options).validate()
        except ValidationError as e:
            return self.error(str(e))

        collection = read_geojson_lines(args.input, sft)
        args.output.parent.mkdir(parents=True, exist_ok=True)
        with open(args.output, "wb") as sink:
            count = encode_feature_collection(collection, sink, options)

        print(f"Wrote {count} records to {args.output}", file=sys.stderr)
        return 0
