"""S3-compatible backend built on aioboto3."""

from .backend import S3Backend

__all__ = ["S3Backend"]
