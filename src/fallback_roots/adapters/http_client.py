"""
HTTP adapter — downloads certdata.txt via httpx.

Adapter layer — implements the CertdataSource port with a single sync GET.

Checks, in order:
  1. transport failure              → NETWORK_ERROR
  2. status other than 200 OK       → UNEXPECTED_RESPONSE_ERROR (first 4 KiB of body attached)
  3. media type other than text/plain → CONTENT_TYPE_ERROR (a missing header is accepted)

No retries: a maintainer re-runs the tool after fixing the cause.
All HTTP errors are captured into Result failures — no exceptions
leak to the pipeline.
"""

from __future__ import annotations

import re
from typing import Any

import httpx
import structlog
from railway import ErrorCode
from railway.result import Result

log = structlog.get_logger()

ERROR_BODY_LIMIT = 4 << 10
EXPECTED_MEDIA_TYPE = "text/plain"

# RFC 7231 token "/" token
_MEDIA_TYPE = re.compile(r"^[!#$%&'*+.^_`|~0-9a-z-]+/[!#$%&'*+.^_`|~0-9a-z-]+$")


def parse_media_type(content_type: str) -> str:
    """
    Return the lowercased media type of a Content-Type value, parameters dropped.

    Raises ValueError when the value is not a well-formed type/subtype.
    """
    media_type = content_type.split(";", 1)[0].strip().lower()
    if not _MEDIA_TYPE.match(media_type):
        raise ValueError(f"malformed media type {media_type!r}")
    return media_type


def _read_prefix(response: httpx.Response, limit: int) -> bytes:
    """Read at most `limit` bytes of a streamed body."""
    collected = bytearray()
    for chunk in response.iter_bytes():
        collected.extend(chunk)
        if len(collected) >= limit:
            break
    return bytes(collected[:limit])


class HttpCertdataSource:
    """
    Download the trust store from a URL.

    Implements the CertdataSource port. `timeout=None` keeps httpx's own default.
    """

    def __init__(self, url: str, timeout: float | None = None) -> None:
        self._url = url
        self._timeout = timeout

    def fetch(self) -> Result[bytes]:
        """
        GET the configured URL and return the body.

        Returns Result[bytes] on success, or a failure with NETWORK_ERROR,
        UNEXPECTED_RESPONSE_ERROR or CONTENT_TYPE_ERROR.
        """
        try:
            with httpx.Client(**self._client_options()) as client:
                with client.stream("GET", self._url) as response:
                    return (
                        self._check_status(response)
                        .flat_map(self._check_content_type)
                        .flat_map(self._read_body)
                    )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            return Result.failure(ErrorCode.NETWORK_ERROR, f"failed to request {self._url!r}", e)

    def _client_options(self) -> dict[str, Any]:
        options: dict[str, Any] = {"follow_redirects": True}
        if self._timeout is not None:
            options["timeout"] = self._timeout
        return options

    def _check_status(self, response: httpx.Response) -> Result[httpx.Response]:
        if response.status_code == httpx.codes.OK:
            return Result.success(response)
        body = _read_prefix(response, ERROR_BODY_LIMIT)
        log.warning("source.unexpected_status", url=self._url, status=response.status_code)
        return Result.failure(
            ErrorCode.UNEXPECTED_RESPONSE_ERROR,
            f"got non-200 OK status code: {response.status_code} {response.reason_phrase} body: {body!r}",
        )

    def _check_content_type(self, response: httpx.Response) -> Result[httpx.Response]:
        content_type = response.headers.get("content-type", "").strip()
        if not content_type:
            return Result.success(response)
        try:
            media_type = parse_media_type(content_type)
        except ValueError as e:
            return Result.failure(
                ErrorCode.CONTENT_TYPE_ERROR, f"bad Content-Type header {content_type!r}", e
            )
        if media_type != EXPECTED_MEDIA_TYPE:
            return Result.failure(
                ErrorCode.CONTENT_TYPE_ERROR,
                f"got media type {media_type!r}, want {EXPECTED_MEDIA_TYPE!r}",
            )
        return Result.success(response)

    def _read_body(self, response: httpx.Response) -> Result[bytes]:
        data = response.read()
        log.info("source.fetched", url=self._url, size_bytes=len(data))
        return Result.success(data)
