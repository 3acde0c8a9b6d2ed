"""Object storage API endpoints.

Routes are registered in match order: the batch delete and presigned URL
routes come before the catch-all ``{key:path}`` routes, so a key literally
named ``batch`` cannot be deleted through the single-object route.
"""

import logging
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Query, Request, Response, status

from object_gateway.core.schemas.envelope import (
    ApiResponse,
    build_meta,
    success_envelope,
    utc_timestamp,
)
from object_gateway.infra.storage.operations import (
    ListFilters,
    RequestBodyReader,
    delete_batch,
    delete_folder,
    delete_object,
    head_headers,
    head_object,
    list_objects_page,
    open_download,
    parse_content_length,
    presign_download,
    resolve_range,
    search_objects,
    upload_stream,
)
from object_gateway.infra.storage.operations.search import DEFAULT_SEARCH_LIMIT
from object_gateway.infra.storage.operations.validation import MAX_PAGE_SIZE

from .dependencies import ObjectStore, StorageSettingsDep
from .responses import ObjectDownloadResponse
from .schemas import (
    BatchDeleteData,
    BatchDeleteRequest,
    BucketListData,
    BucketSummary,
    DeleteData,
    FolderDeleteData,
    ObjectListData,
    PresignedUrlData,
    SearchResponse,
    UploadData,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/buckets", tags=["storage"])


# ============================================================================
# Bucket Endpoints
# ============================================================================


@router.get(
    "",
    response_model=ApiResponse[BucketListData],
    summary="List buckets",
)
async def list_buckets(request: Request, store: ObjectStore) -> ApiResponse[BucketListData]:
    """List the buckets visible to the configured credentials."""
    buckets = await store.list_buckets()
    data = BucketListData(
        buckets=[
            BucketSummary(
                name=bucket.name,
                creation_date=utc_timestamp(bucket.creation_date) if bucket.creation_date else None,
            )
            for bucket in buckets
        ],
        count=len(buckets),
    )
    return success_envelope(request, data)


# ============================================================================
# Listing, Search and Folder Endpoints
# ============================================================================


@router.get(
    "/{bucket}/objects",
    response_model=ApiResponse[ObjectListData],
    summary="List objects",
    description=(
        "List one page of objects and folders under a prefix. Follow "
        "`nextContinuationToken` with the same prefix and delimiter to get the next page."
    ),
)
async def list_objects(
    request: Request,
    bucket: str,
    store: ObjectStore,
    prefix: Annotated[str | None, Query(description="Key prefix")] = None,
    delimiter: Annotated[str, Query(description="Folder delimiter, empty to disable")] = "/",
    max_keys: Annotated[int, Query(alias="maxKeys", description="Page size (1-1000)")] = MAX_PAGE_SIZE,
    continuation_token: Annotated[str | None, Query(alias="continuationToken")] = None,
    modified_after: Annotated[datetime | None, Query(alias="modifiedAfter")] = None,
    modified_before: Annotated[datetime | None, Query(alias="modifiedBefore")] = None,
    min_size: Annotated[int | None, Query(alias="minSize")] = None,
    max_size: Annotated[int | None, Query(alias="maxSize")] = None,
) -> ApiResponse[ObjectListData]:
    """List one page of objects."""
    listing = await list_objects_page(
        store,
        bucket,
        prefix=prefix,
        delimiter=delimiter,
        max_keys=max_keys,
        continuation_token=continuation_token,
        filters=ListFilters(
            modified_after=modified_after,
            modified_before=modified_before,
            min_size=min_size,
            max_size=max_size,
        ),
    )
    return success_envelope(request, ObjectListData.model_validate(listing.to_dict()))


@router.get(
    "/{bucket}/search",
    response_model=SearchResponse,
    summary="Search object keys",
    description="Case-insensitive substring search over one page of up to 1000 keys.",
)
async def search(
    request: Request,
    bucket: str,
    store: ObjectStore,
    q: Annotated[str | None, Query(description="Search text")] = None,
    prefix: Annotated[str | None, Query(description="Only scan keys under this prefix")] = None,
    max_keys: Annotated[int, Query(alias="maxKeys", description="Maximum hits (1-1000)")] = DEFAULT_SEARCH_LIMIT,
    continuation_token: Annotated[str | None, Query(alias="continuationToken")] = None,
) -> SearchResponse:
    """Search one page of keys."""
    result = await search_objects(
        store,
        bucket,
        q,
        prefix=prefix,
        max_keys=max_keys,
        continuation_token=continuation_token,
    )
    return SearchResponse.model_validate({**result.to_dict(), "meta": build_meta(request)})


@router.delete(
    "/{bucket}/folders",
    response_model=ApiResponse[FolderDeleteData],
    summary="Delete a folder",
    description="Delete every object under a prefix, 1000 keys per batch.",
)
async def remove_folder(
    request: Request,
    bucket: str,
    store: ObjectStore,
    prefix: Annotated[str | None, Query(description="Folder prefix to delete")] = None,
) -> ApiResponse[FolderDeleteData]:
    """Delete every object under a prefix."""
    result = await delete_folder(store, bucket, prefix)
    return success_envelope(request, FolderDeleteData.model_validate(result.to_dict()))


# ============================================================================
# Object Endpoints (fixed suffixes first)
# ============================================================================


@router.delete(
    "/{bucket}/objects/batch",
    response_model=ApiResponse[BatchDeleteData],
    response_model_exclude_none=True,
    summary="Delete objects in batch",
    description="Delete 1-1000 keys in one call. Partial failures are listed in `errors`.",
)
async def remove_objects(
    request: Request,
    bucket: str,
    body: BatchDeleteRequest,
    store: ObjectStore,
) -> ApiResponse[BatchDeleteData]:
    """Delete an explicit list of keys."""
    result = await delete_batch(store, bucket, body.keys)
    return success_envelope(request, BatchDeleteData.model_validate(result.to_dict()))


@router.get(
    "/{bucket}/objects/{key:path}/presigned-url",
    response_model=ApiResponse[PresignedUrlData],
    summary="Get a presigned download URL",
)
async def get_presigned_url(
    request: Request,
    bucket: str,
    key: str,
    store: ObjectStore,
    settings: StorageSettingsDep,
    expires_in: Annotated[
        int | None, Query(alias="expiresIn", description="Lifetime in seconds (1-604800)")
    ] = None,
) -> ApiResponse[PresignedUrlData]:
    """Issue a presigned GET URL."""
    presigned = await presign_download(
        store,
        bucket,
        key,
        expires_in,
        default_expiry=settings.presigned_url_expiry_seconds,
    )
    return success_envelope(request, PresignedUrlData.model_validate(presigned.to_dict()))


# ============================================================================
# Object Endpoints (catch-all key)
# ============================================================================


@router.head(
    "/{bucket}/objects/{key:path}",
    summary="Get object metadata",
    response_class=Response,
)
async def get_object_metadata(bucket: str, key: str, store: ObjectStore) -> Response:
    """Return object metadata as headers only."""
    head = await head_object(store, bucket, key)
    return Response(status_code=status.HTTP_200_OK, headers=head_headers(head))


@router.get(
    "/{bucket}/objects/{key:path}",
    summary="Download an object",
    description=(
        "Stream an object. A byte range may be given with the `range` query "
        "parameter or the `Range` header; the query parameter wins."
    ),
    response_class=ObjectDownloadResponse,
)
async def download_object(
    request: Request,
    bucket: str,
    key: str,
    store: ObjectStore,
    settings: StorageSettingsDep,
    range_param: Annotated[str | None, Query(alias="range", description="e.g. bytes=0-1023")] = None,
) -> ObjectDownloadResponse:
    """Stream an object to the client."""
    byte_range = resolve_range(range_param, request.headers.get("range"))
    handle = await open_download(store, bucket, key, byte_range=byte_range)
    return ObjectDownloadResponse(handle, settings.streaming_chunk_size)


@router.put(
    "/{bucket}/objects/{key:path}",
    response_model=ApiResponse[UploadData],
    status_code=status.HTTP_201_CREATED,
    summary="Upload an object",
    description="Stream the raw request body into the object. Chunked transfer is accepted.",
)
async def upload_object(
    request: Request,
    bucket: str,
    key: str,
    store: ObjectStore,
    settings: StorageSettingsDep,
) -> ApiResponse[UploadData]:
    """Stream the request body into an object."""
    confirmation = await upload_stream(
        store,
        bucket,
        key,
        RequestBodyReader(request.stream(), settings.streaming_chunk_size),
        content_type=request.headers.get("content-type"),
        content_length=parse_content_length(request.headers.get("content-length")),
    )
    return success_envelope(request, UploadData.model_validate(confirmation.to_dict()))


@router.delete(
    "/{bucket}/objects/{key:path}",
    response_model=ApiResponse[DeleteData],
    summary="Delete an object",
    description="Delete one object. Deleting a key that does not exist also succeeds.",
)
async def remove_object(
    request: Request,
    bucket: str,
    key: str,
    store: ObjectStore,
) -> ApiResponse[DeleteData]:
    """Delete one object."""
    result = await delete_object(store, bucket, key)
    return success_envelope(request, DeleteData.model_validate(result))
