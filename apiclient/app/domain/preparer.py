"""Request preparer: turns an ApiRequest into a transport-ready PreparedMessage."""
from __future__ import annotations

from typing import Mapping
from urllib.parse import urlencode, urlsplit, urlunsplit

from apiclient.app.constants import ErrorKind
from apiclient.app.domain.prepared_message import MessageBody, PreparedMessage
from apiclient.app.domain.request import ApiRequest
from apiclient.app.domain.result import OpResult
from apiclient.app.ports.request_logger import NullRequestLogger, RequestLogger


class RequestPreparer:
    """
    Builds the final URL, merges headers and attaches the body. Pure and synchronous;
    any failure comes back as a Failed result and nothing is sent.

    Header values are not validated: bearer tokens and similar values carry characters
    a strict validator would reject.
    """

    def __init__(self, logger: RequestLogger | None = None) -> None:
        self._logger = logger or NullRequestLogger()

    def prepare(
        self,
        request: ApiRequest,
        common_headers: Mapping[str, str] | None = None,
    ) -> OpResult[PreparedMessage]:
        try:
            url = build_url(request.url, request.url_parameters)
            if request.url_parameters:
                self._logger.debug("request_url_built", url=url)

            headers = merge_headers(common_headers or {}, request.headers)

            body = None
            if request.content is not None:
                body = MessageBody(request.content.content, request.content.content_headers())

            message = PreparedMessage(request.method, url, headers, body)
        except Exception as exc:
            self._logger.error(
                "request_prepare_failed", kind=ErrorKind.INVALID_REQUEST, url=request.url, error=str(exc)
            )
            return OpResult.failed(exc, str(exc))

        self._logger.debug("request_prepared", url=url, header_count=len(headers))
        return OpResult.success(message)


def build_url(url: str, parameters: Mapping[str, str]) -> str:
    """Replace the query with form-encoded parameters; unchanged when there are none."""
    if not parameters:
        return url
    parts = urlsplit(url)
    query = urlencode([(str(k), str(v)) for k, v in parameters.items()])
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def merge_headers(common: Mapping[str, str], own: Mapping[str, str]) -> list[tuple[str, str]]:
    """Common headers the request does not set itself, then the request's own headers."""
    own_names = {name.lower() for name in own}
    merged = [(name, value) for name, value in common.items() if name.lower() not in own_names]
    merged.extend(own.items())
    return merged
