"""Shared JSON-over-HTTP helper for upstream service adapters."""

from __future__ import annotations

import logging
from typing import Any, Optional

import requests

from threadscope.core.exceptions import UpstreamServiceError

logger = logging.getLogger(__name__)


def post_json(
    session: requests.Session,
    url: str,
    payload: dict[str, Any],
    *,
    service: str,
    timeout: float,
    headers: Optional[dict[str, str]] = None,
) -> dict[str, Any]:
    """POST a JSON payload and return the decoded JSON object.

    Raises:
        UpstreamServiceError: On transport errors, non-2xx statuses or a
            body that isn't a JSON object
    """
    try:
        response = session.post(url, json=payload, headers=headers, timeout=timeout)
    except requests.Timeout as e:
        raise UpstreamServiceError(
            f"{service} request timed out after {timeout}s", service=service
        ) from e
    except requests.RequestException as e:
        raise UpstreamServiceError(
            f"{service} request failed: {e}", service=service
        ) from e

    if not response.ok:
        body = (response.text or "")[:500]
        raise UpstreamServiceError(
            f"{service} returned HTTP {response.status_code}: {body}",
            service=service,
            status_code=response.status_code,
        )

    try:
        data = response.json()
    except ValueError as e:
        raise UpstreamServiceError(
            f"{service} returned a non-JSON body",
            service=service,
            status_code=response.status_code,
        ) from e
    if not isinstance(data, dict):
        raise UpstreamServiceError(
            f"{service} returned {type(data).__name__}, expected an object",
            service=service,
            status_code=response.status_code,
        )
    return data
