"""BIN trajectory encoding: point extraction, worker pool and record codec."""

from .codec import (
    BASIC_RECORD_SIZE,
    EXTENDED_RECORD_SIZE,
    BinCodec,
    BinRecord,
    decode,
    PointTuple,
    record_size,
    track_hash,
)
from .extractor import PointExtractor
from .pipeline import CountdownLatch, EncodingWorkerPool, encode_feature_collection
from featurebin.config.schema import AxisOrder, BinEncodingOptions

__all__ = [
    "BASIC_RECORD_SIZE",
    "EXTENDED_RECORD_SIZE",
    "BinCodec",
    "BinRecord",
    "decode",
    "PointTuple",
    "record_size",
    "track_hash",
    "PointExtractor",
    "CountdownLatch",
    "EncodingWorkerPool",
    "encode_feature_collection",
    "AxisOrder",
    "BinEncodingOptions",
]
