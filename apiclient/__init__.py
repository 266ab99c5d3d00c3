"""Resilient async HTTP client: retries, cancellation, content-type decoding, typed results."""
from apiclient.app.application.api_client import ApiClient
from apiclient.app.application.execution_engine import ExecutionEngine
from apiclient.app.application.response_decoder import ResponseDecoder
from apiclient.app.composition import create_api_client
from apiclient.app.config.settings import Settings
from apiclient.app.domain.cancellation import CancellationToken
from apiclient.app.domain.request import ApiRequest, RequestBody
from apiclient.app.domain.result import OpResult, OpStatus, ResultError
from apiclient.app.infrastructure.http.factory import HttpxTransportFactory, create_transport_factory
from apiclient.app.serialization.json_codec import JsonDecodeOptions

__all__ = [
    "ApiClient",
    "ApiRequest",
    "CancellationToken",
    "ExecutionEngine",
    "HttpxTransportFactory",
    "JsonDecodeOptions",
    "OpResult",
    "OpStatus",
    "RequestBody",
    "ResponseDecoder",
    "ResultError",
    "Settings",
    "create_api_client",
    "create_transport_factory",
]
