"""Object store backends package.

Provides the protocol the gateway engines depend on and the aioboto3
implementation used in production.
"""

from .protocol import (
    BucketInfo,
    ByteReader,
    ByteSource,
    DeleteError,
    DeleteOutcome,
    ListPage,
    ObjectHead,
    ObjectStoreBackend,
    ObjectStream,
    PutResult,
    StoredObject,
)
from .s3 import S3Backend

__all__ = [
    "BucketInfo",
    "ByteReader",
    "ByteSource",
    "DeleteError",
    "DeleteOutcome",
    "ListPage",
    "ObjectHead",
    "ObjectStoreBackend",
    "ObjectStream",
    "PutResult",
    "S3Backend",
    "StoredObject",
]
