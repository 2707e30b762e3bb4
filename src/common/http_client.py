"""Shared HTTP helpers used by the registry clients.

Encapsulates request/timeout error handling and DEBUG tracing so callers only
deal with a status code and decoded JSON. Transport failures raise
:class:`HttpRequestError`; callers decide whether that aborts the operation or
just skips one registry.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional, Tuple

import requests

from common.errors import UigetError
from common.logging_utils import Timer, extra_context, is_debug_enabled, safe_url
from constants import Constants

logger = logging.getLogger(__name__)


class HttpRequestError(UigetError):
    """The request could not be completed (timeout, DNS, connection reset...)."""


def new_session(headers: Optional[Dict[str, str]] = None) -> requests.Session:
    """Create a session carrying the uiget User-Agent plus ``headers``."""
    session = requests.Session()
    session.headers["User-Agent"] = Constants.USER_AGENT
    if headers:
        session.headers.update(headers)
    return session


def safe_get(
    session: requests.Session,
    url: str,
    *,
    context: str,
    params: Optional[Dict[str, str]] = None,
) -> requests.Response:
    """Perform a GET request with consistent error handling and DEBUG traces.

    Raises:
        HttpRequestError: On timeout or any other transport failure.
    """
    safe_target = safe_url(url)
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
                ),
            )
        try:
            res = session.get(url, params=params or None, timeout=Constants.REQUEST_TIMEOUT)
        except requests.Timeout as exc:
            raise HttpRequestError(
                f"{context} request timed out after {Constants.REQUEST_TIMEOUT} seconds"
            ) from exc
        except requests.RequestException as exc:  # includes ConnectionError
            raise HttpRequestError(f"{context} connection error: {exc}") from exc
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP response",
                extra=extra_context(
                    event="http_response",
                    component="http_client",
                    action="GET",
                    status_code=res.status_code,
                    duration_ms=t.duration_ms(),
                    target=safe_target,
                    context=context,
                ),
            )
        return res


def get_json(
    session: requests.Session,
    url: str,
    *,
    context: str,
    params: Optional[Dict[str, str]] = None,
) -> Tuple[int, Optional[Any]]:
    """GET ``url`` and decode the body as JSON.

    Returns:
        Tuple of (status_code, parsed_json_or_none). The body is only decoded
        for 2xx responses; undecodable bodies yield None.
    """
    res = safe_get(session, url, context=context, params=params)
    if not 200 <= res.status_code < 300:
        return res.status_code, None
    try:
        return res.status_code, json.loads(res.text)
    except ValueError:
        if is_debug_enabled(logger):
            logger.debug(
                "JSON decode error",
                extra=extra_context(
                    event="parse",
                    component="http_client",
                    action="get_json",
                    outcome="json_decode_error",
                    status_code=res.status_code,
                    target=safe_url(url),
                ),
            )
        return res.status_code, None
