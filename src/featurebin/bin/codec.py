"""
Fixed-width BIN record codec.

Records are tag-free and little-endian; the reader must know which variant
is in use. Layouts are defined as numpy structured dtypes:

    Basic (16 bytes)
        0   int32    track id hash (Java String.hashCode, 0 when absent)
        4   int32    timestamp, epoch seconds
        8   float32  latitude
        12  float32  longitude

    Extended (24 bytes)
        0-15         basic fields
        16  int64    label

Encoding is lossy. Coordinates are stored as float32 and track ids as a
32-bit hash. Timestamps keep whole seconds only, and seconds outside the
int32 range wrap around (dates from 2038-01-19 on decode as negative).
"""

from typing import Iterable, List, NamedTuple, Optional

import numpy as np

from featurebin.errors import ValidationError

BASIC_DTYPE = np.dtype([
    ("track", "<i4"),
    ("dtg", "<i4"),
    ("lat", "<f4"),
    ("lon", "<f4"),
])

EXTENDED_DTYPE = np.dtype(BASIC_DTYPE.descr + [("label", "<i8")])

BASIC_RECORD_SIZE = BASIC_DTYPE.itemsize
EXTENDED_RECORD_SIZE = EXTENDED_DTYPE.itemsize

_INT32_MAX = (1 << 31) - 1


class PointTuple(NamedTuple):
    """One point of a trajectory, ready for encoding."""

    lat: float
    lon: float
    dtg: int  # epoch milliseconds
    track: Optional[str] = None
    label: Optional[int] = None


class BinRecord(NamedTuple):
    """A decoded record. ``dtg`` is in epoch milliseconds (second precision)."""

    track_hash: int
    dtg: int
    lat: float
    lon: float
    label: Optional[int] = None


def to_int32(value: int) -> int:
    """Two's complement truncation of an integer to 32 bits."""
    value &= 0xFFFFFFFF
    return value - (1 << 32) if value > _INT32_MAX else value


def track_hash(track: Optional[str]) -> int:
    """
    32-bit hash of a track id, identical to Java's ``String.hashCode``.

    Computed over UTF-16 code units so that existing BIN readers group
    tracks the same way. ``None`` hashes to 0.
    """
    if track is None:
        return 0
    h = 0
    data = track.encode("utf-16-le")
    for i in range(0, len(data), 2):
        h = (31 * h + (data[i] | (data[i + 1] << 8))) & 0xFFFFFFFF
    return to_int32(h)


def record_size(extended: bool) -> int:
    return EXTENDED_RECORD_SIZE if extended else BASIC_RECORD_SIZE


class BinCodec:
    """
    Encoder/decoder for one record variant.

    Args:
        extended: Use 24-byte records carrying a label

    Example:
        >>> codec = BinCodec(extended=False)
        >>> data = codec.encode(PointTuple(45.0, -75.5, 1_400_000_000_000, "track-1"))
        >>> len(data)
        16
        >>> codec.decode(data)[0].dtg
        1400000000000
    """

    def __init__(self, extended: bool = False):
        self.extended = extended
        self.dtype = EXTENDED_DTYPE if extended else BASIC_DTYPE

    @property
    def record_size(self) -> int:
        return self.dtype.itemsize

    def _to_array(self, points: List[PointTuple]) -> np.ndarray:
        records = np.zeros(len(points), dtype=self.dtype)
        for i, point in enumerate(points):
            records["track"][i] = track_hash(point.track)
            records["dtg"][i] = to_int32(point.dtg // 1000)
            records["lat"][i] = point.lat
            records["lon"][i] = point.lon
            if self.extended:
                records["label"][i] = point.label if point.label is not None else 0
        return records

    def encode(self, point: PointTuple) -> bytes:
        """Encode a single point as one record."""
        return self._to_array([point]).tobytes()

    def encode_many(self, points: Iterable[PointTuple]) -> bytes:
        """Encode points as consecutive records."""
        return self._to_array(list(points)).tobytes()

    def decode(self, data: bytes) -> List[BinRecord]:
        """
        Decode a buffer of consecutive records.

        Raises:
            ValidationError: If the buffer is not a whole number of records
        """
        if len(data) % self.record_size != 0:
            raise ValidationError(
                f"Buffer of {len(data)} bytes is not a multiple of the "
                f"{self.record_size}-byte record size"
            )
        records = np.frombuffer(data, dtype=self.dtype)
        return [
            BinRecord(
                track_hash=int(r["track"]),
                dtg=int(r["dtg"]) * 1000,
                lat=float(r["lat"]),
                lon=float(r["lon"]),
                label=int(r["label"]) if self.extended else None,
            )
            for r in records
        ]


def decode(data: bytes, extended: bool = False) -> List[BinRecord]:
    """Decode a buffer of basic (or extended) records."""
    return BinCodec(extended=extended).decode(data)
