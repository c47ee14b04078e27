# services/status.py
"""
Read-only meeting status query served over plain HTTP.

``GET /api/meeting/<code>`` answers ``{"exists": bool, "isActive": bool}``.
There is no authentication and no rate limiting on this path.
"""
import json
import logging
from http import HTTPStatus
from typing import Optional
from urllib.parse import unquote, urlsplit

from meetrelay.constants import STATUS_PATH_PREFIX
from meetrelay.services.state import registry

logger = logging.getLogger(__name__)


def parse_status_path(path: str) -> Optional[str]:
    """
    Extract the meeting code from a status query path.

    Args:
        path (str): Request target, possibly with a query string.

    Returns:
        Optional[str]: The meeting code, or None if `path` is not a status query.
    """
    route = urlsplit(path).path
    if not route.startswith(STATUS_PATH_PREFIX):
        return None
    code = unquote(route[len(STATUS_PATH_PREFIX):])
    if not code or "/" in code:
        return None
    return code


def meeting_status(code: str, sessions=None) -> dict:
    """
    Report whether a meeting exists and is active.

    Args:
        code (str): Meeting code.
        sessions (SessionRegistry, optional): Registry to query. Defaults to the process-wide one.

    Returns:
        dict: ``{"exists": bool, "isActive": bool}``.
    """
    sessions = sessions if sessions is not None else registry
    return sessions.status(code)


def process_status_request(connection, request, sessions=None):
    """
    ``process_request`` hook for the WebSocket server.

    Answers status queries with a JSON response and lets every other request
    continue with the WebSocket handshake.

    Args:
        connection: The server connection performing the handshake.
        request: Parsed HTTP request.
        sessions (SessionRegistry, optional): Registry to query.

    Returns:
        Optional[Response]: A JSON response for status queries, else None.
    """
    code = parse_status_path(request.path)
    if code is None:
        return None

    status = meeting_status(code, sessions)
    logger.debug(f"Status query for {code}: {status}")
    response = connection.respond(HTTPStatus.OK, json.dumps(status))
    del response.headers["Content-Type"]
    response.headers["Content-Type"] = "application/json"
    return response
