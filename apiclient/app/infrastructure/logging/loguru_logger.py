"""Request logger backed by loguru: every event is a bound record with structured fields."""
from __future__ import annotations

from typing import Any

from loguru import logger

from apiclient.app.core import SERVICE_NAME


class LoguruRequestLogger:
    """
    bind() attaches key-value context (event, service_name, url, ...) to the record for
    filtering in aggregators; the level method sets severity. The message body stays
    empty because the payload lives in the bound fields.
    """

    def __init__(self, service_name: str = SERVICE_NAME) -> None:
        self._service_name = service_name

    def _bound(self, event: str, fields: dict[str, Any]):
        return logger.bind(service_name=self._service_name, event=event, **fields)

    def debug(self, event: str, **fields: Any) -> None:
        self._bound(event, fields).debug("")

    def info(self, event: str, **fields: Any) -> None:
        self._bound(event, fields).info("")

    def warning(self, event: str, **fields: Any) -> None:
        self._bound(event, fields).warning("")

    def error(self, event: str, **fields: Any) -> None:
        self._bound(event, fields).error("")
