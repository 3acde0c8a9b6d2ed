"""Object storage feature.

HTTP endpoints over an S3-compatible store:
- Bucket listing
- Cursor-based object listing with post-filters
- Streaming upload, download (with byte ranges) and HEAD
- Single, batch and folder deletes
- Key search and presigned download URLs
"""

from .router import router

__all__ = ["router"]
