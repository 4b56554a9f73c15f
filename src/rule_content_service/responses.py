"""
Uniform response envelopes for the JSON endpoints

Success: {"status": "ok", <extra keys>}
Error:   {"status": "error", "details": "<message>"}
"""

import logging
from typing import Any, Dict

from fastapi.responses import JSONResponse, Response

from .errors import ResponseWriteError

logger = logging.getLogger(__name__)

STATUS_OK = "ok"
STATUS_ERROR = "error"
OCTET_STREAM = "application/octet-stream"
SERVER_ERROR_DETAILS = "Internal Server Error"


def build_ok_response() -> Dict[str, Any]:
    """Minimal success envelope without payload"""
    return {"status": STATUS_OK}


def build_ok_response_with_data(key: str, value: Any) -> Dict[str, Any]:
    """Success envelope carrying a single named field"""
    if key == "status":
        raise ValueError("'status' is reserved for the envelope marker")
    envelope = build_ok_response()
    envelope[key] = value
    return envelope


def build_error_response(details: str) -> Dict[str, Any]:
    return {"status": STATUS_ERROR, "details": details}


def send(status_code: int, body: Any, media_type: str = OCTET_STREAM) -> Response:
    """
    Write a raw body with the given status code.

    Raises:
        ResponseWriteError: the body could not be rendered
    """
    try:
        return Response(content=body, status_code=status_code, media_type=media_type)
    except (TypeError, ValueError, AttributeError) as e:
        raise ResponseWriteError(f"Cannot write response body: {e}") from e


def send_json(status_code: int, envelope: Dict[str, Any]) -> JSONResponse:
    """
    Serialize an envelope as JSON and write it with the given status code.

    Raises:
        ResponseWriteError: the envelope could not be serialized
    """
    try:
        return JSONResponse(content=envelope, status_code=status_code)
    except (TypeError, ValueError, OverflowError) as e:
        raise ResponseWriteError(f"Cannot serialize response envelope: {e}") from e


def send_ok(envelope: Dict[str, Any]) -> JSONResponse:
    return send_json(200, envelope)


def handle_server_error(error: BaseException) -> JSONResponse:
    """Report a request failure to the client as a generic 500 error"""
    logger.error(f"Server error while handling request: {type(error).__name__}: {error}")
    return JSONResponse(content=build_error_response(SERVER_ERROR_DETAILS), status_code=500)
