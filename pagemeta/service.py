"""Request boundary: JSON in, ``(status, payload)`` out.

Framework-neutral so any HTTP layer can mount it::

    status, payload = handle_request("POST", request_body)
    return JSONResponse(payload, status_code=status)

Success returns ``200`` and the :class:`~pagemeta.items.ExtractionResult`
mapping.  Failures return ``{"error": message}`` with ``400`` (missing or
invalid URL, unreachable target), ``405`` (method other than POST) or
``500`` (unexpected failure).
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from pagemeta.errors import ErrorKind, MetadataError
from pagemeta.items import ExtractionRequest
from pagemeta.parser import MetadataParser

logger = logging.getLogger(__name__)

METHOD_NOT_ALLOWED = "Method not allowed. Use POST request with URL in body."
INTERNAL_ERROR = "Failed to extract metadata"


def _error(message: str, status: int) -> tuple[int, dict[str, Any]]:
    return status, {"error": message}


def _parse_body(body: bytes | str | dict | None) -> ExtractionRequest:
    if isinstance(body, (bytes, bytearray)):
        body = body.decode("utf-8")
    if isinstance(body, str):
        body = json.loads(body) if body.strip() else {}
    if body is None:
        body = {}
    if not isinstance(body, dict):
        raise ValueError("Request body must be a JSON object")
    return ExtractionRequest.model_validate(body)


def handle_request(
    method: str,
    body: bytes | str | dict | None = None,
    *,
    parser: MetadataParser | None = None,
) -> tuple[int, dict[str, Any]]:
    """Serve one extraction request.

    Args:
        method: HTTP method of the inbound request.
        body:   Raw JSON body (``bytes``/``str``) or an already-decoded dict.
        parser: Pipeline to use; a default :class:`MetadataParser` otherwise.

    Returns:
        ``(status_code, payload)``.  Never raises.
    """
    if method.upper() != "POST":
        return _error(METHOD_NOT_ALLOWED, 405)

    try:
        request = _parse_body(body)
    except (ValueError, ValidationError, UnicodeDecodeError) as exc:
        logger.info("Rejected malformed request body: %s", exc)
        return _error("Invalid request body", ErrorKind.INVALID_INPUT.http_status)

    parser = parser or MetadataParser()
    try:
        result = parser.fetch(request.url)
    except MetadataError as exc:
        if exc.kind is ErrorKind.EXTRACTION_FAILED:
            return _error(INTERNAL_ERROR, exc.http_status)
        return _error(str(exc), exc.http_status)
    except Exception:
        logger.exception("Error extracting metadata for %s", request.url)
        return _error(INTERNAL_ERROR, 500)

    return 200, result.to_dict()
