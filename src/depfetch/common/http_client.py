"""Shared transport helpers used by every repository access.

Encapsulates timeout/retry handling so the resolver modules only deal with
"got bytes", "not there" or a raised :class:`TransportFailure`. ``file://``
URLs are served straight from disk so local directory repositories work
without a server.
"""
from __future__ import annotations

import logging
import os
import time
import urllib.parse
import urllib.request
from typing import Any, Optional, Tuple

import requests

from depfetch.constants import Constants
from depfetch.errors import AuthenticationFailure, TransportFailure
from depfetch.common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)

HTTP_NOT_FOUND = 404


def _fetch_file(url: str) -> Tuple[int, bytes]:
    """Serve a ``file://`` URL from the local filesystem."""
    parts = urllib.parse.urlsplit(url)
    path = urllib.request.url2pathname(parts.path)
    if not os.path.isfile(path):
        return HTTP_NOT_FOUND, b""
    try:
        with open(path, "rb") as handle:
            return 200, handle.read()
    except OSError as exc:
        raise TransportFailure(f"Could not read {path}", cause=exc) from exc


def fetch(
    url: str,
    *,
    auth: Optional[Tuple[str, str]] = None,
    context: str = "repository",
    **kwargs: Any,
) -> Tuple[int, bytes]:
    """GET ``url`` with timeout and bounded retries.

    Args:
        url: Target URL (``http``, ``https`` or ``file``).
        auth: Optional (username, password) for basic authentication.
        context: Human-readable source tag for logs (usually a repository id).
        **kwargs: Passed through to requests.get.

    Returns:
        Tuple of (status_code, body). Only 200 and 404 are returned.

    Raises:
        AuthenticationFailure: The server answered 401 or 403.
        TransportFailure: Any other error after retries are exhausted.
    """
    if url.startswith("file:"):
        return _fetch_file(url)

    safe_target = safe_url(url)
    last_error: Optional[BaseException] = None
    last_message = ""

    for attempt in range(Constants.HTTP_RETRY_MAX):
        if attempt:
            time.sleep(Constants.HTTP_RETRY_BASE_DELAY_SEC * (2 ** (attempt - 1)))
        with Timer() as t:
            if is_debug_enabled(logger):
                logger.debug(
                    "HTTP request",
                    extra=extra_context(
                        event="http_request",
                        component="http_client",
                        action="GET",
                        target=safe_target,
                        context=context,
                        attempt=attempt + 1,
                    ),
                )
            try:
                response = requests.get(
                    url,
                    auth=auth,
                    timeout=Constants.REQUEST_TIMEOUT,
                    headers={"User-Agent": Constants.USER_AGENT},
                    **kwargs,
                )
            except requests.Timeout as exc:
                last_error = exc
                last_message = f"{context}: request to {safe_target} timed out after {Constants.REQUEST_TIMEOUT} seconds"
                logger.debug("HTTP timeout", extra=extra_context(
                    event="http_exception", component="http_client", outcome="timeout",
                    attempt=attempt + 1, target=safe_target,
                ))
                continue
            except requests.RequestException as exc:  # includes ConnectionError
                last_error = exc
                last_message = f"{context}: connection error for {safe_target}"
                logger.debug("HTTP request exception", extra=extra_context(
                    event="http_exception", component="http_client", outcome="request_exception",
                    attempt=attempt + 1, target=safe_target,
                ))
                continue

        status = response.status_code
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP response",
                extra=extra_context(
                    event="http_response",
                    component="http_client",
                    status_code=status,
                    duration_ms=t.duration_ms(),
                    target=safe_target,
                    context=context,
                ),
            )
        if status == 200:
            return status, response.content
        if status == HTTP_NOT_FOUND:
            return status, b""
        if status in (401, 403):
            raise AuthenticationFailure(
                f"{context}: {safe_target} rejected the request with status {status} ({response.reason})"
            )
        if status >= 500:
            last_error = None
            last_message = f"{context}: {safe_target} answered {status} ({response.reason})"
            continue
        raise TransportFailure(f"{context}: {safe_target} answered {status} ({response.reason})")

    raise TransportFailure(
        last_message or f"{context}: request to {safe_target} failed",
        cause=last_error,
    )
