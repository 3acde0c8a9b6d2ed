"""Error normalization for object store operations.

Every failure that reaches a client passes through :func:`normalize_error`,
a pure function mapping a provider error identifier plus bucket/key context
onto a closed set of gateway error codes and HTTP statuses. Provider error
text never leaves this module: only the classification and a safe message are
exposed, while the original identifier is kept in ``details`` for logging.

Example:
    ```python
    from botocore.exceptions import ClientError

    from object_gateway.infra.storage.exceptions import GatewayError

    try:
        await client.head_object(Bucket=bucket, Key=key)
    except ClientError as e:
        raise GatewayError.from_exception(e, bucket_name=bucket, object_key=key) from e
    ```
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any

from object_gateway.core.exceptions import AppException


class ErrorCode(StrEnum):
    """Closed taxonomy of client-facing error codes."""

    BUCKET_NOT_FOUND = "BUCKET_NOT_FOUND"
    OBJECT_NOT_FOUND = "OBJECT_NOT_FOUND"
    AUTH_INVALID_CREDENTIALS = "AUTH_INVALID_CREDENTIALS"
    AUTH_MISSING_CREDENTIALS = "AUTH_MISSING_CREDENTIALS"
    AUTH_PERMISSION_DENIED = "AUTH_PERMISSION_DENIED"
    VALIDATION_INVALID_KEY = "VALIDATION_INVALID_KEY"
    VALIDATION_MISSING_QUERY = "VALIDATION_MISSING_QUERY"
    VALIDATION_INVALID_RANGE = "VALIDATION_INVALID_RANGE"
    VALIDATION_INVALID_PARAM = "VALIDATION_INVALID_PARAM"
    VALIDATION_FILE_TOO_LARGE = "VALIDATION_FILE_TOO_LARGE"
    BUCKET_ALREADY_EXISTS = "BUCKET_ALREADY_EXISTS"
    STORE_SERVICE_ERROR = "STORE_SERVICE_ERROR"
    STORE_TIMEOUT = "STORE_TIMEOUT"
    STORE_RATE_LIMIT = "STORE_RATE_LIMIT"
    STORE_NETWORK_ERROR = "STORE_NETWORK_ERROR"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


@dataclass(frozen=True)
class NormalizedError:
    """Result of normalizing a provider error."""

    code: ErrorCode
    status_code: int
    message: str
    details: dict[str, Any] = field(default_factory=dict)
    # Provider identifier this was classified from; None for gateway-side errors
    identifier: str | None = field(default=None, compare=False)


def error_identifier(error: BaseException) -> str:
    """Extract the provider error identifier from an exception.

    botocore ``ClientError`` carries the service error code in its parsed
    response; everything else (credential, connection and timeout errors
    raised client-side) is identified by its class name.

    Args:
        error: Exception raised by the object store client.

    Returns:
        Error identifier such as ``"NoSuchKey"`` or ``"EndpointConnectionError"``.
    """
    response = getattr(error, "response", None)
    if isinstance(response, dict):
        code = response.get("Error", {}).get("Code")
        if code:
            return str(code)
        status = response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        if status:
            return str(status)
    return type(error).__name__


def normalize_error(
    error: BaseException | str,
    *,
    bucket_name: str | None = None,
    object_key: str | None = None,
) -> NormalizedError:
    """Map a provider error onto the gateway error taxonomy.

    Total over its input: unknown identifiers fall through to
    ``INTERNAL_SERVER_ERROR`` with a generic message. An already normalized
    ``GatewayError`` is returned as is, unless new context is given and it was
    classified from a provider identifier, in which case it is reclassified
    with that context.

    Args:
        error: Exception raised by the store client, or a bare identifier.
        bucket_name: Bucket the failing operation targeted.
        object_key: Object key the failing operation targeted.

    Returns:
        The normalized error.
    """
    if isinstance(error, GatewayError):
        normalized = error.normalized
        if normalized.identifier is None or (bucket_name is None and object_key is None):
            return normalized
        name = normalized.identifier
    else:
        name = error if isinstance(error, str) else error_identifier(error)

    return replace(_classify(name, bucket_name, object_key), identifier=name)


def _classify(name: str, bucket_name: str | None, object_key: str | None) -> NormalizedError:
    bucket_label = bucket_name or "unknown"

    match name:
        case "NoSuchBucket":
            return NormalizedError(
                ErrorCode.BUCKET_NOT_FOUND,
                404,
                f"Bucket '{bucket_label}' does not exist",
                _compact({"bucketName": bucket_name}),
            )
        case "NoSuchKey":
            return NormalizedError(
                ErrorCode.OBJECT_NOT_FOUND,
                404,
                f"Object '{object_key or 'unknown'}' does not exist in bucket '{bucket_label}'",
                _compact({"bucketName": bucket_name, "objectKey": object_key}),
            )
        case "NotFound" | "404":
            if object_key:
                return NormalizedError(
                    ErrorCode.OBJECT_NOT_FOUND,
                    404,
                    f"Object '{object_key}' does not exist",
                    _compact({"bucketName": bucket_name, "objectKey": object_key}),
                )
            return NormalizedError(
                ErrorCode.BUCKET_NOT_FOUND,
                404,
                f"Bucket '{bucket_label}' does not exist",
                _compact({"bucketName": bucket_name}),
            )
        case "InvalidAccessKeyId" | "SignatureDoesNotMatch" | "InvalidToken" | "ExpiredToken":
            return NormalizedError(
                ErrorCode.AUTH_INVALID_CREDENTIALS,
                401,
                "Invalid storage credentials. Please check your access key and secret.",
                {"errorName": name},
            )
        case (
            "MissingSecurityHeader"
            | "AuthorizationHeaderMalformed"
            | "NoCredentialsError"
            | "PartialCredentialsError"
        ):
            return NormalizedError(
                ErrorCode.AUTH_MISSING_CREDENTIALS,
                401,
                "Storage credentials are not properly configured",
                {"errorName": name},
            )
        case "AccessDenied" | "Forbidden" | "403":
            return NormalizedError(
                ErrorCode.AUTH_PERMISSION_DENIED,
                403,
                "Insufficient permissions for this operation",
                _compact({"errorName": name, "bucketName": bucket_name, "objectKey": object_key}),
            )
        case "InvalidBucketName":
            return NormalizedError(
                ErrorCode.VALIDATION_INVALID_PARAM,
                400,
                "Bucket name is invalid",
                _compact({"bucketName": bucket_name, "errorName": name}),
            )
        case "KeyTooLongError":
            return NormalizedError(
                ErrorCode.VALIDATION_INVALID_KEY,
                400,
                "Object key exceeds maximum length (1024 bytes)",
                _compact({"objectKey": object_key, "errorName": name}),
            )
        case "InvalidRange":
            return NormalizedError(
                ErrorCode.VALIDATION_INVALID_RANGE,
                416,
                "The requested range is not valid",
                {"errorName": name},
            )
        case "EntityTooLarge" | "EntityTooSmall":
            return NormalizedError(
                ErrorCode.VALIDATION_FILE_TOO_LARGE,
                413,
                "File size exceeds allowed limits",
                {"errorName": name},
            )
        case "BucketAlreadyExists" | "BucketAlreadyOwnedByYou":
            return NormalizedError(
                ErrorCode.BUCKET_ALREADY_EXISTS,
                409,
                f"Bucket '{bucket_label}' already exists",
                _compact({"bucketName": bucket_name, "errorName": name}),
            )
        case "ServiceUnavailable" | "SlowDown" | "InternalError":
            return NormalizedError(
                ErrorCode.STORE_SERVICE_ERROR,
                502,
                "Object storage service is temporarily unavailable",
                {"errorName": name, "retryAfter": "60s"},
            )
        case (
            "RequestTimeout"
            | "OperationAborted"
            | "ConnectTimeoutError"
            | "ReadTimeoutError"
            | "TimeoutError"
        ):
            return NormalizedError(
                ErrorCode.STORE_TIMEOUT,
                504,
                "Request to object storage timed out",
                {"errorName": name},
            )
        case "TooManyRequests" | "RequestLimitExceeded" | "Throttling":
            return NormalizedError(
                ErrorCode.STORE_RATE_LIMIT,
                429,
                "Rate limit exceeded. Please slow down your requests.",
                {"errorName": name, "retryAfter": "10s"},
            )
        case (
            "EndpointConnectionError"
            | "ConnectionClosedError"
            | "ProxyConnectionError"
            | "ConnectionError"
            | "ClientConnectorError"
        ):
            return NormalizedError(
                ErrorCode.STORE_NETWORK_ERROR,
                502,
                "Failed to connect to object storage service",
                {"errorName": name},
            )
        case _:
            return NormalizedError(
                ErrorCode.INTERNAL_SERVER_ERROR,
                500,
                "An unexpected error occurred while processing your request",
                _compact({"errorName": name, "bucketName": bucket_name, "objectKey": object_key}),
            )


def _compact(details: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in details.items() if v is not None}


class GatewayError(AppException):
    """Exception carrying a normalized, client-safe error.

    Raised by the storage adapter and the engines; rendered into the error
    envelope by the application exception handlers.
    """

    def __init__(self, normalized: NormalizedError) -> None:
        """Initialize from a normalized error.

        Args:
            normalized: Classification, status, safe message and details.
        """
        self.normalized = normalized
        super().__init__(
            status_code=normalized.status_code,
            detail=normalized.message,
            code=str(normalized.code),
            extra=dict(normalized.details),
        )

    @classmethod
    def from_exception(
        cls,
        error: BaseException,
        *,
        bucket_name: str | None = None,
        object_key: str | None = None,
    ) -> GatewayError:
        """Build a gateway error from a provider exception.

        Args:
            error: Exception raised by the store client.
            bucket_name: Bucket context for the message and details.
            object_key: Key context for the message and details.

        Returns:
            GatewayError wrapping the normalized classification.
        """
        return cls(normalize_error(error, bucket_name=bucket_name, object_key=object_key))


class StorageNotConfiguredError(GatewayError):
    """Raised when an endpoint is used before storage credentials are configured."""

    def __init__(self) -> None:
        super().__init__(
            NormalizedError(
                ErrorCode.AUTH_MISSING_CREDENTIALS,
                503,
                "Object storage is not configured",
                {"reason": "storage client is not initialized"},
            )
        )


# ============================================================================
# Gateway-side validation errors
# ============================================================================


def missing_param_error(parameter: str) -> GatewayError:
    """Error for a required parameter that is absent or blank."""
    return GatewayError(
        NormalizedError(
            ErrorCode.VALIDATION_INVALID_PARAM,
            400,
            f"Required parameter '{parameter}' is missing",
            {"parameter": parameter},
        )
    )


def invalid_param_error(
    parameter: str,
    expected_format: str,
    actual_value: Any = None,
) -> GatewayError:
    """Error for a parameter with an unacceptable value.

    Args:
        parameter: Parameter name.
        expected_format: Human-readable description of valid values.
        actual_value: Offending value, stringified into details when given.

    Returns:
        GatewayError with code ``VALIDATION_INVALID_PARAM``.
    """
    details: dict[str, Any] = {"parameter": parameter, "expectedFormat": expected_format}
    if actual_value is not None:
        details["actualValue"] = str(actual_value)
    return GatewayError(
        NormalizedError(
            ErrorCode.VALIDATION_INVALID_PARAM,
            400,
            f"Parameter '{parameter}' has invalid format. Expected: {expected_format}",
            details,
        )
    )


def invalid_key_error(key: str, reason: str) -> GatewayError:
    """Error for an object key that cannot be used."""
    return GatewayError(
        NormalizedError(
            ErrorCode.VALIDATION_INVALID_KEY,
            400,
            f"Object key is invalid: {reason}",
            {"objectKey": key, "reason": reason},
        )
    )


def invalid_range_error(value: str) -> GatewayError:
    """Error for a Range value that is not a ``bytes=`` range set."""
    return GatewayError(
        NormalizedError(
            ErrorCode.VALIDATION_INVALID_RANGE,
            416,
            "The requested range is not valid",
            {"range": value, "expectedFormat": "bytes=<start>-<end>"},
        )
    )


def missing_query_error(parameter: str = "q") -> GatewayError:
    """Error for a required query-string parameter that is absent."""
    if parameter == "q":
        message = "Search query parameter 'q' is required"
    else:
        message = f"Query parameter '{parameter}' is required"
    return GatewayError(
        NormalizedError(
            ErrorCode.VALIDATION_MISSING_QUERY,
            400,
            message,
            {"parameter": parameter},
        )
    )
