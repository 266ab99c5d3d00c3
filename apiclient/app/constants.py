"""Client-level constants shared across modules."""
from __future__ import annotations

DEFAULT_RETRIES = 3
DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_RETRY_INTERVAL_SECONDS = 0.25

# 408 Request Timeout, 429 Too Many Requests, 500 Internal Server Error,
# 502 Bad Gateway, 503 Service Unavailable, 504 Gateway Timeout
DEFAULT_TRANSIENT_STATUS_CODES: tuple[int, ...] = (408, 429, 500, 502, 503, 504)

DEFAULT_CONTENT_TYPE = "application/json"


class HTTP_STATUS:
    NOT_APPLICABLE = 0
    BAD_REQUEST = 400
    REQUEST_TIMEOUT = 408
    INTERNAL_SERVER_ERROR = 500


class CONTENT_TYPE:
    JSON = "application/json"
    TEXT_JSON = "text/json"
    TEXT_X_JSON = "text/x-json"
    XML = "application/xml"
    TEXT_XML = "text/xml"
    TEXT_X_XML = "text/x-xml"
    FORM = "application/x-www-form-urlencoded"
    OCTET_STREAM = "application/octet-stream"
    TEXT_PLAIN = "text/plain"


class ErrorKind:
    INVALID_REQUEST = "INVALID_REQUEST"
    CANCELLED = "CANCELLED"
    TIMEOUT = "TIMEOUT"
    TRANSIENT_SERVER_ERROR = "TRANSIENT_SERVER_ERROR"
    NON_TRANSIENT_SERVER_ERROR = "NON_TRANSIENT_SERVER_ERROR"
    DECODE_ERROR = "DECODE_ERROR"
    UNHANDLED_CONTENT_TYPE = "UNHANDLED_CONTENT_TYPE"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
