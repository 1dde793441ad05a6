"""Tests for the fixed-width BIN record codec."""

import struct

import numpy as np
import pytest

from featurebin.bin import (
    BASIC_RECORD_SIZE,
    EXTENDED_RECORD_SIZE,
    BinCodec,
    PointTuple,
    decode,
    record_size,
    track_hash,
)
from featurebin.errors import ValidationError


class TestTrackHash:
    """Track ids hash like Java's String.hashCode."""

    @pytest.mark.parametrize("track,expected", [
        (None, 0),
        ("", 0),
        ("a", 97),
        ("ab", 3105),
        ("hello", 99162322),
        ("polygenelubricants", -(1 << 31)),
        ("é", 233),
        ("\U0001F600", 1772899),
    ])
    def test_known_values(self, track, expected):
        """Test hashes against values computed by the JVM."""
        assert track_hash(track) == expected

    def test_hash_fits_int32(self):
        """Test that long ids wrap into the signed 32-bit range."""
        h = track_hash("x" * 1000)
        assert -(1 << 31) <= h < (1 << 31)


class TestRecordLayout:
    """Record sizes and byte layout."""

    def test_sizes(self):
        """Test basic and extended record sizes."""
        assert BASIC_RECORD_SIZE == 16
        assert EXTENDED_RECORD_SIZE == 24
        assert record_size(False) == 16
        assert record_size(True) == 24
        assert BinCodec().record_size == 16
        assert BinCodec(extended=True).record_size == 24

    def test_basic_layout(self):
        """Test field order and little-endian encoding of a basic record."""
        data = BinCodec().encode(PointTuple(lat=1.5, lon=-2.25, dtg=1_000_000_999, track="a"))
        assert data == struct.pack("<iiff", 97, 1_000_000, 1.5, -2.25)

    def test_extended_layout(self):
        """Test that the label follows the basic fields as int64."""
        data = BinCodec(extended=True).encode(PointTuple(1.5, -2.25, 2000, None, -7))
        assert data == struct.pack("<iiffq", 0, 2, 1.5, -2.25, -7)

    def test_missing_label_encodes_zero(self):
        """Test that an absent label is written as 0."""
        record = BinCodec(extended=True).decode(BinCodec(extended=True).encode(PointTuple(0.0, 0.0, 0)))[0]
        assert record.label == 0

    def test_encode_many_concatenates(self):
        """Test that encode_many equals concatenated single encodes."""
        codec = BinCodec()
        points = [PointTuple(float(i), float(-i), i * 1000, f"t{i}") for i in range(5)]
        assert codec.encode_many(points) == b"".join(codec.encode(p) for p in points)
        assert codec.encode_many([]) == b""


class TestDecode:
    """Decoding buffers of records."""

    def test_decode_values(self):
        """Test decoded fields, including lossy conversions."""
        codec = BinCodec(extended=True)
        point = PointTuple(lat=45.1, lon=-75.7, dtg=1_400_000_000_123, track="vessel-1", label=(1 << 40) + 5)
        record = codec.decode(codec.encode(point))[0]
        assert record.track_hash == track_hash("vessel-1")
        assert record.dtg == 1_400_000_000_000
        assert record.lat == float(np.float32(45.1))
        assert record.lon == float(np.float32(-75.7))
        assert record.label == (1 << 40) + 5

    def test_decode_basic_has_no_label(self):
        """Test that basic records decode without a label."""
        codec = BinCodec()
        assert codec.decode(codec.encode(PointTuple(0.0, 0.0, 0)))[0].label is None

    def test_decode_empty(self):
        """Test that an empty buffer decodes to no records."""
        assert BinCodec().decode(b"") == []

    def test_partial_record(self):
        """Test that a truncated buffer is rejected."""
        with pytest.raises(ValidationError, match="not a multiple"):
            BinCodec().decode(b"\x00" * 17)

    @pytest.mark.parametrize("seconds,stored", [
        ((1 << 31) - 1, (1 << 31) - 1),
        (1 << 31, -(1 << 31)),
        (2_208_988_800, -2_085_978_496),
    ])
    def test_timestamp_wraps_to_int32(self, seconds, stored):
        """Test that seconds beyond the int32 range wrap like a 32-bit cast."""
        codec = BinCodec()
        data = codec.encode(PointTuple(0.0, 0.0, seconds * 1000 + 999))
        assert struct.unpack_from("<i", data, 4)[0] == stored
        assert codec.decode(data)[0].dtg == stored * 1000

    def test_pre_epoch_timestamp(self):
        """Test that negative timestamps floor to whole seconds."""
        codec = BinCodec()
        assert codec.decode(codec.encode(PointTuple(0.0, 0.0, -1500)))[0].dtg == -2000

    def test_module_decode(self):
        """Test the functional decoder for both variants."""
        point = PointTuple(1.0, 2.0, 3000, "t", 4)
        assert decode(BinCodec().encode(point))[0].dtg == 3000
        assert decode(BinCodec(extended=True).encode(point), extended=True)[0].label == 4
