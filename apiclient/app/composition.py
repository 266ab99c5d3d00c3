"""
Composition root: single place where concrete implementations are wired.

Builds the transport factory and request logger from settings and hands them to
ApiClient. No DI container library; explicit wiring only. Caller owns the client's
lifecycle (aclose() or async with).
"""
from __future__ import annotations

from apiclient.app.application.api_client import ApiClient
from apiclient.app.config.settings import Settings
from apiclient.app.infrastructure.http.factory import create_transport_factory
from apiclient.app.infrastructure.logging.loguru_logger import LoguruRequestLogger
from apiclient.app.ports.http_transport import TransportFactory
from apiclient.app.ports.request_logger import NullRequestLogger, RequestLogger
from apiclient.app.serialization.json_codec import JsonDecodeOptions


def create_request_logger(settings: Settings) -> RequestLogger:
    if settings.logging_enabled:
        return LoguruRequestLogger()
    return NullRequestLogger()


def create_api_client(
    settings: Settings | None = None,
    *,
    transport_factory: TransportFactory | None = None,
) -> ApiClient:
    _settings = settings or Settings()
    factory = transport_factory or create_transport_factory(_settings)

    return ApiClient(
        factory,
        logger=create_request_logger(_settings),
        retries=_settings.retries,
        timeout=_settings.timeout_seconds,
        retry_interval=_settings.retry_interval_seconds,
        http_client_name=_settings.http_client_name or None,
        transient_status_codes=_settings.transient_status_codes,
        common_headers=_settings.common_headers,
        json_options=JsonDecodeOptions(case_insensitive=_settings.json_case_insensitive),
    )
