"""
Concurrent BIN encoding pipeline.

Architecture:
    Orchestrating thread: validate field roles, enqueue features, drain
        results and write records to the sink (the sink's only writer)
    Worker threads: extract one PointTuple per feature

Point (and other non-line) collections use an EncodingWorkerPool; line
collections are expanded lazily on the orchestrating thread, since one
line can produce any number of tuples.

Usage:
    with open("tracks.bin", "wb") as sink:
        count = encode_feature_collection(
            collection, sink, dtg_field="dtg", track_id_field="id", sort=True
        )
"""

import logging
import queue
import threading
from typing import Any, BinaryIO, Callable, Iterator, List, Optional, Tuple

from featurebin.bin.codec import BinCodec, PointTuple
from featurebin.bin.extractor import PointExtractor
from featurebin.config.schema import BinEncodingOptions
from featurebin.errors import FatalSinkError
from featurebin.features import FeatureCollection

logger = logging.getLogger(__name__)

# End of input, one per worker
_SENTINEL = object()
# Posted by each worker after its last result
_WORKER_DONE = object()


class CountdownLatch:
    """Blocks waiters until ``count_down`` has been called ``count`` times."""

    def __init__(self, count: int):
        self._count = count
        self._condition = threading.Condition()

    @property
    def count(self) -> int:
        with self._condition:
            return self._count

    def count_down(self) -> None:
        with self._condition:
            self._count -= 1
            if self._count <= 0:
                self._condition.notify_all()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Wait for the count to reach zero. Returns False on timeout."""
        with self._condition:
            return self._condition.wait_for(lambda: self._count <= 0, timeout)


class EncodingWorkerPool:
    """
    Fixed pool of threads applying ``fn`` to submitted items.

    Results are ``(index, fn(item))`` pairs where ``index`` is the item's
    submission order. Every item is processed exactly once.

    Shutdown protocol:
        1. The producer submits all items, then calls ``close()``, which sets
           the done event and posts one sentinel per worker
        2. Each worker drains items until it takes a sentinel, then posts a
           done marker and counts down the latch
        3. ``results()`` yields until every worker's done marker is seen

    Use as a context manager: leaving the block closes the pool if needed
    and joins every worker, including when an exception is raised. After an
    exception, workers drain the remaining input without processing it.

    Args:
        fn: Function applied to each item (must be thread-safe)
        num_threads: Number of worker threads
        max_queue_size: Input queue bound (0 = unbounded); ``submit``
            blocks while the queue is full
    """

    def __init__(self, fn: Callable[[Any], Any], num_threads: int = 8, max_queue_size: int = 0):
        if num_threads < 1:
            raise ValueError(f"num_threads must be >= 1, got {num_threads}")
        self.fn = fn
        self.num_threads = num_threads

        # Work queues (thread-safe)
        self.input_queue: queue.Queue = queue.Queue(maxsize=max_queue_size)
        self.output_queue: queue.Queue = queue.Queue()

        # Completion state
        self.done = threading.Event()
        self.abort_event = threading.Event()
        self.latch = CountdownLatch(num_threads)
        self.threads: List[threading.Thread] = []
        self.error: Optional[BaseException] = None
        self._error_lock = threading.Lock()
        self._submitted = 0

    def start(self) -> "EncodingWorkerPool":
        if self.threads:
            raise RuntimeError("EncodingWorkerPool already started")
        for i in range(self.num_threads):
            thread = threading.Thread(
                target=self._worker_loop,
                daemon=True,
                name=f"featurebin-encoder-{i}",
            )
            thread.start()
            self.threads.append(thread)
        logger.debug(f"Started {self.num_threads} encoding workers")
        return self

    def submit(self, item: Any) -> None:
        if self.done.is_set():
            raise RuntimeError("Cannot submit to a closed EncodingWorkerPool")
        self.input_queue.put((self._submitted, item))
        self._submitted += 1

    def close(self) -> None:
        """Signal that no more input will be submitted."""
        if self.done.is_set():
            return
        self.done.set()
        for _ in self.threads:
            self.input_queue.put(_SENTINEL)

    def results(self) -> Iterator[Tuple[int, Any]]:
        """
        Yield ``(index, result)`` pairs in completion order.

        Terminates once every worker has finished. Re-raises the first
        worker exception after all results have been drained.
        """
        finished = 0
        while finished < self.num_threads:
            item = self.output_queue.get()
            if item is _WORKER_DONE:
                finished += 1
                continue
            yield item
        self.latch.wait()
        if self.error is not None:
            raise self.error

    def join(self) -> None:
        for thread in self.threads:
            thread.join()
        logger.debug(f"Joined {len(self.threads)} encoding workers")

    def _worker_loop(self) -> None:
        try:
            while True:
                item = self.input_queue.get()
                if item is _SENTINEL:
                    break
                if self.abort_event.is_set():
                    continue
                index, value = item
                try:
                    self.output_queue.put((index, self.fn(value)))
                except Exception as e:
                    with self._error_lock:
                        if self.error is None:
                            self.error = e
                    self.abort_event.set()
        finally:
            self.output_queue.put(_WORKER_DONE)
            self.latch.count_down()

    def __enter__(self) -> "EncodingWorkerPool":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.abort_event.set()
        self.close()
        self.join()


class RecordWriter:
    """
    Writes whole records to a binary sink.

    Each record is passed to ``sink.write`` as a single buffer; short writes
    from raw sinks are continued until the record is complete. Any failure,
    including a sink that accepts no bytes, is raised as FatalSinkError
    carrying the number of whole records written.
    """

    def __init__(self, sink: BinaryIO, codec: BinCodec):
        self.sink = sink
        self.codec = codec
        self.count = 0

    def write(self, point: PointTuple) -> None:
        remaining = memoryview(self.codec.encode(point))
        try:
            while remaining:
                written = self.sink.write(remaining)
                # sinks that do not report a count take the whole buffer
                if written is None:
                    break
                if written <= 0:
                    raise OSError(f"sink accepted 0 of {len(remaining)} remaining bytes")
                remaining = remaining[written:]
        except (OSError, ValueError) as e:
            raise FatalSinkError(
                f"Failed writing record {self.count} to output sink: {e}",
                records_written=self.count,
                cause=e,
            ) from e
        self.count += 1


def encode_feature_collection(
    collection: FeatureCollection,
    sink: BinaryIO,
    options: Optional[BinEncodingOptions] = None,
    **kwargs: Any,
) -> int:
    """
    Encode a feature collection to BIN records.

    Args:
        collection: Features and their FeatureType
        sink: Writable binary stream
        options: Encoding options; keyword arguments build or update them
            (e.g. ``dtg_field="dtg", sort=True``)

    Returns:
        Number of records written

    Raises:
        ValidationError: If field roles do not match the schema (nothing is
            written), or a line record is mismatched in strict mode
        FatalSinkError: If the sink fails; earlier records may be flushed
    """
    if options is None:
        options = BinEncodingOptions(**kwargs)
    elif kwargs:
        options = BinEncodingOptions.model_validate({**options.model_dump(), **kwargs})

    feature_type = collection.feature_type
    extractor = PointExtractor(feature_type, options)
    extractor.validate()

    codec = BinCodec(extended=options.extended)
    writer = RecordWriter(sink, codec)

    logger.info(
        f"Encoding '{feature_type.type_name}' to {codec.record_size}-byte records "
        f"(dtg={options.dtg_field}, track={options.track_id_field}, "
        f"label={options.label_field}, sort={options.sort})"
    )

    if extractor.is_line:
        points = extractor.extract_all(collection)
        if options.sort:
            points = iter(sorted(points, key=lambda p: p.dtg))
        for point in points:
            writer.write(point)
    else:
        _encode_pooled(collection, extractor, writer, options)

    if extractor.skipped:
        logger.warning(f"Skipped {extractor.skipped} mismatched line features")
    logger.info(f"Wrote {writer.count} records ({writer.count * codec.record_size} bytes)")
    return writer.count


def _encode_pooled(
    features: FeatureCollection,
    extractor: PointExtractor,
    writer: RecordWriter,
    options: BinEncodingOptions,
) -> None:
    with EncodingWorkerPool(extractor.extract, options.num_threads) as pool:
        for feature in features:
            pool.submit(feature)
        pool.close()

        results = pool.results()
        if options.sort:
            results = iter(sorted(results, key=lambda r: (r[1].dtg, r[0])))
        for _, point in results:
            writer.write(point)
