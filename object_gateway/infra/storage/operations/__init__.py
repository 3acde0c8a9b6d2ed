"""Storage operation modules.

Each module drives one request kind against an
:class:`~object_gateway.infra.storage.backends.protocol.ObjectStoreBackend`:
listing, streaming transfer, deletes, search and presigned URLs.
"""

from .batch import (
    BatchDeleteResult,
    FolderDeleteResult,
    delete_batch,
    delete_folder,
    delete_object,
    validate_batch_keys,
)
from .listing import ListFilters, ObjectListing, list_objects_page, object_to_dict
from .presigned import PresignedDownloadUrl, presign_download
from .search import SearchHit, SearchResult, classify_match, search_objects
from .transfer import (
    DownloadHandle,
    RequestBodyReader,
    UploadConfirmation,
    head_headers,
    head_object,
    open_download,
    parse_content_length,
    resolve_range,
    upload_stream,
)

__all__ = [
    # Deletes
    "BatchDeleteResult",
    "DownloadHandle",
    "FolderDeleteResult",
    # Listing
    "ListFilters",
    "ObjectListing",
    # Presigned URLs
    "PresignedDownloadUrl",
    # Transfer
    "RequestBodyReader",
    # Search
    "SearchHit",
    "SearchResult",
    "UploadConfirmation",
    "classify_match",
    "delete_batch",
    "delete_folder",
    "delete_object",
    "head_headers",
    "head_object",
    "list_objects_page",
    "object_to_dict",
    "open_download",
    "parse_content_length",
    "presign_download",
    "resolve_range",
    "search_objects",
    "upload_stream",
    "validate_batch_keys",
]
