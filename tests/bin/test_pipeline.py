"""Tests for the concurrent encoding pipeline and its worker pool."""

import io
import random
import threading
from collections import Counter
from datetime import datetime, timezone

import pytest

from featurebin.bin import (
    BinCodec,
    BinEncodingOptions,
    CountdownLatch,
    EncodingWorkerPool,
    encode_feature_collection,
    track_hash,
)
from featurebin.errors import FatalSinkError, SkippedRecordWarning, ValidationError
from featurebin.features import Feature, FeatureCollection
from featurebin.geometry import LineString, Point
from featurebin.schema import create_type

BASE_SECONDS = 1_600_000_000


def _date(seconds):
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def _encoder_threads():
    return [t for t in threading.enumerate() if t.name.startswith("featurebin-encoder")]


@pytest.fixture
def point_type():
    """Point track schema."""
    return create_type("test:tracks", "name:String,count:Long,dtg:Date,*geom:Point")


@pytest.fixture
def point_features():
    """Point features with shuffled, second-aligned timestamps."""
    rng = random.Random(42)
    features = []
    for i in range(500):
        seconds = BASE_SECONDS + rng.randrange(0, 100_000)
        features.append(Feature(
            f"f{i}",
            {"name": f"track-{i % 7}", "count": i, "dtg": _date(seconds)},
            Point(rng.uniform(-90, 90), rng.uniform(-180, 180)),
        ))
    return features


class FailingSink:
    """Binary sink that fails after a number of successful writes."""

    def __init__(self, fail_after):
        self.fail_after = fail_after
        self.writes = 0

    def write(self, data):
        if self.writes >= self.fail_after:
            raise OSError("disk full")
        self.writes += 1
        return len(data)


class ShortWriteSink:
    """Raw-style sink that accepts at most `chunk` bytes per write."""

    def __init__(self, chunk):
        self.chunk = chunk
        self.buffer = bytearray()

    def write(self, data):
        accepted = bytes(data[:self.chunk])
        self.buffer.extend(accepted)
        return len(accepted)


class TestPointEncoding:
    """Pooled encoding of point collections."""

    @pytest.mark.parametrize("num_threads", [1, 2, 8, 64])
    def test_sorted_output(self, point_type, point_features, num_threads):
        """Test that sorted output has every record in timestamp order."""
        sink = io.BytesIO()
        count = encode_feature_collection(
            FeatureCollection(point_type, point_features),
            sink,
            dtg_field="dtg",
            track_id_field="name",
            sort=True,
            num_threads=num_threads,
        )
        data = sink.getvalue()
        assert count == len(point_features)
        assert len(data) == 16 * len(point_features)

        dtgs = [r.dtg for r in BinCodec().decode(data)]
        assert dtgs == sorted(dtgs)
        assert _encoder_threads() == []

    def test_unsorted_output_is_complete(self, point_type, point_features):
        """Test that every feature is encoded exactly once without sorting."""
        sink = io.BytesIO()
        encode_feature_collection(
            FeatureCollection(point_type, point_features), sink,
            dtg_field="dtg", track_id_field="id", num_threads=4,
        )
        decoded = Counter((r.track_hash, r.dtg) for r in BinCodec().decode(sink.getvalue()))
        expected = Counter(
            (track_hash(f.id), int(f.get("dtg").timestamp()) * 1000) for f in point_features
        )
        assert decoded == expected

    def test_extended_records(self, point_type, point_features):
        """Test that a label field produces 24-byte labelled records."""
        sink = io.BytesIO()
        options = BinEncodingOptions(dtg_field="dtg", label_field="count", num_threads=3)
        count = encode_feature_collection(FeatureCollection(point_type, point_features[:50]), sink, options)
        assert len(sink.getvalue()) == 24 * count
        labels = sorted(r.label for r in BinCodec(extended=True).decode(sink.getvalue()))
        assert labels == list(range(50))

    def test_keyword_overrides(self, point_type, point_features):
        """Test that keyword arguments update a given options object."""
        sink = io.BytesIO()
        options = BinEncodingOptions(dtg_field="dtg", num_threads=2)
        encode_feature_collection(FeatureCollection(point_type, point_features), sink, options, sort=True)
        dtgs = [r.dtg for r in BinCodec().decode(sink.getvalue())]
        assert dtgs == sorted(dtgs)

    def test_empty_collection(self, point_type):
        """Test that no features write nothing."""
        sink = io.BytesIO()
        assert encode_feature_collection(FeatureCollection(point_type, []), sink, dtg_field="dtg") == 0
        assert sink.getvalue() == b""

    def test_invalid_roles_write_nothing(self, point_type, point_features):
        """Test that a wrong dtg type fails before any output."""
        sink = io.BytesIO()
        with pytest.raises(ValidationError, match="Invalid date field 'name'"):
            encode_feature_collection(FeatureCollection(point_type, point_features), sink, dtg_field="name")
        assert sink.getvalue() == b""

    def test_sink_failure(self, point_type, point_features):
        """Test that a failing sink aborts with the count of whole records."""
        sink = FailingSink(fail_after=10)
        with pytest.raises(FatalSinkError) as info:
            encode_feature_collection(
                FeatureCollection(point_type, point_features), sink, dtg_field="dtg", num_threads=4
            )
        assert info.value.records_written == 10
        assert isinstance(info.value.cause, OSError)
        assert _encoder_threads() == []

    def test_short_writes_complete_records(self, point_type, point_features):
        """Test that partial writes are continued until each record is whole."""
        expected = io.BytesIO()
        sink = ShortWriteSink(chunk=5)
        for target in (expected, sink):
            encode_feature_collection(
                FeatureCollection(point_type, point_features[:20]), target,
                dtg_field="dtg", track_id_field="name", sort=True, num_threads=1,
            )
        assert bytes(sink.buffer) == expected.getvalue()

    def test_sink_accepting_nothing(self, point_type, point_features):
        """Test that a sink that stops accepting bytes is fatal."""
        with pytest.raises(FatalSinkError, match="accepted 0") as info:
            encode_feature_collection(
                FeatureCollection(point_type, point_features), ShortWriteSink(chunk=0), dtg_field="dtg"
            )
        assert info.value.records_written == 0
        assert _encoder_threads() == []

    @pytest.mark.parametrize("num_threads", [1, 2])
    def test_dates_past_2038_encode(self, point_type, num_threads):
        """Test that late dates wrap to int32 seconds instead of aborting mid-stream."""
        features = [
            Feature(f"f{i}", {"dtg": _date(BASE_SECONDS + i)}, Point(0.0, 0.0)) for i in range(5)
        ]
        features.append(Feature("late", {"dtg": _date(2_208_988_800)}, Point(0.0, 0.0)))
        sink = io.BytesIO()
        count = encode_feature_collection(
            FeatureCollection(point_type, features), sink, dtg_field="dtg", sort=True, num_threads=num_threads
        )
        assert count == 6
        records = BinCodec().decode(sink.getvalue())
        assert [r.dtg // 1000 for r in records] == [BASE_SECONDS + i for i in range(5)] + [-2_085_978_496]

    def test_worker_error_propagates(self, point_type):
        """Test that an extraction failure in a worker reaches the caller."""
        features = [Feature(f"f{i}", {"dtg": _date(BASE_SECONDS)}, Point(0.0, 0.0)) for i in range(20)]
        features[7] = Feature("broken", {"dtg": _date(BASE_SECONDS)}, None)
        with pytest.raises(AttributeError):
            encode_feature_collection(
                FeatureCollection(point_type, features), io.BytesIO(), dtg_field="dtg", num_threads=4
            )
        assert _encoder_threads() == []


class TestLineEncoding:
    """Sequential expansion of line collections."""

    @pytest.fixture
    def line_type(self):
        """Line track schema with per-vertex dates."""
        return create_type("test:routes", "name:String,dates:List[Date],*geom:LineString")

    def test_mismatch_skipped_and_rest_encoded(self, line_type):
        """Test that a mismatched line is skipped and later lines are encoded."""
        features = [
            Feature("a", {"dates": [_date(30), _date(10), _date(20)]}, LineString(((0, 0), (1, 1), (2, 2)))),
            Feature("b", {"dates": [_date(5), _date(6)]}, LineString(((0, 0), (1, 1), (2, 2)))),
            Feature("c", {"dates": [_date(15), _date(25)]}, LineString(((3, 3), (4, 4)))),
        ]
        sink = io.BytesIO()
        with pytest.warns(SkippedRecordWarning, match="feature b"):
            count = encode_feature_collection(
                FeatureCollection(line_type, features), sink, dtg_field="dates", track_id_field="id"
            )
        assert count == 5
        records = BinCodec().decode(sink.getvalue())
        assert [r.dtg // 1000 for r in records] == [30, 10, 20, 15, 25]
        assert records[-1].track_hash == track_hash("c")

    def test_sorted_lines(self, line_type):
        """Test that line records are sorted across features."""
        features = [
            Feature("a", {"dates": [_date(30), _date(10)]}, LineString(((0, 0), (1, 1)))),
            Feature("b", {"dates": [_date(20), _date(5)]}, LineString(((0, 0), (1, 1)))),
        ]
        sink = io.BytesIO()
        encode_feature_collection(FeatureCollection(line_type, features), sink, dtg_field="dates", sort=True)
        assert [r.dtg // 1000 for r in BinCodec().decode(sink.getvalue())] == [5, 10, 20, 30]

    def test_strict_mismatch(self, line_type):
        """Test that strict mode aborts on a mismatched line."""
        features = [Feature("b", {"dates": [_date(5)]}, LineString(((0, 0), (1, 1))))]
        with pytest.raises(ValidationError):
            encode_feature_collection(
                FeatureCollection(line_type, features), io.BytesIO(), dtg_field="dates", strict=True
            )


class TestEncodingWorkerPool:
    """The worker pool in isolation."""

    def test_every_item_processed_once(self):
        """Test results carry submission indices and cover all items."""
        with EncodingWorkerPool(lambda x: x * 2, num_threads=5) as pool:
            for i in range(200):
                pool.submit(i)
            pool.close()
            results = sorted(pool.results())
        assert results == [(i, i * 2) for i in range(200)]
        assert not any(t.is_alive() for t in pool.threads)

    def test_bounded_queue(self):
        """Test that a bounded input queue still processes everything."""
        with EncodingWorkerPool(str, num_threads=2, max_queue_size=4) as pool:
            for i in range(50):
                pool.submit(i)
            pool.close()
            assert len(list(pool.results())) == 50

    def test_invalid_size(self):
        """Test that a pool needs at least one thread."""
        with pytest.raises(ValueError):
            EncodingWorkerPool(str, num_threads=0)

    def test_submit_after_close(self):
        """Test that a closed pool rejects input."""
        with EncodingWorkerPool(str, num_threads=1) as pool:
            pool.close()
            with pytest.raises(RuntimeError):
                pool.submit(1)

    def test_first_error_raised_after_drain(self):
        """Test that worker errors are re-raised once results are drained."""
        def fn(x):
            if x == 3:
                raise KeyError(x)
            return x

        with EncodingWorkerPool(fn, num_threads=2) as pool:
            for i in range(10):
                pool.submit(i)
            pool.close()
            with pytest.raises(KeyError):
                list(pool.results())
        assert pool.latch.count == 0


class TestCountdownLatch:
    """Latch used to await worker completion."""

    def test_wait(self):
        """Test that wait returns once the count reaches zero."""
        latch = CountdownLatch(2)
        assert latch.wait(timeout=0.01) is False
        latch.count_down()
        latch.count_down()
        assert latch.count == 0
        assert latch.wait(timeout=0.01) is True

    def test_released_from_other_threads(self):
        """Test counting down from worker threads."""
        latch = CountdownLatch(4)
        threads = [threading.Thread(target=latch.count_down) for _ in range(4)]
        for t in threads:
            t.start()
        assert latch.wait(timeout=5)
        for t in threads:
            t.join()
