from __future__ import annotations

import logging
from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response


log = logging.getLogger(__name__)


CORS_ALLOW_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
CORS_ALLOW_HEADERS = ["Content-Type", "Authorization", "X-Amz-Date", "X-Api-Key", "X-Amz-Security-Token"]

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": ", ".join(CORS_ALLOW_METHODS),
    "Access-Control-Allow-Headers": ", ".join(CORS_ALLOW_HEADERS),
    "Access-Control-Allow-Credentials": "true",
}


def success_response(data: Any, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=int(status_code),
        content={"success": True, "data": jsonable_encoder(data)},
        headers=dict(CORS_HEADERS),
    )


def error_response(message: str, status_code: int = 500, error: BaseException | None = None) -> JSONResponse:
    # Only the message goes on the wire; the cause stays in the log.
    if error is not None:
        log.error("error response status=%s message=%s cause=%r", status_code, message, error)
    return JSONResponse(
        status_code=int(status_code),
        content={"success": False, "error": str(message)},
        headers=dict(CORS_HEADERS),
    )


def validation_error_response(message: str, field: str | None = None) -> JSONResponse:
    payload: dict[str, Any] = {"success": False, "error": str(message)}
    if field:
        payload["field"] = field
    return JSONResponse(status_code=400, content=payload, headers=dict(CORS_HEADERS))


def empty_response(status_code: int = 204) -> Response:
    return Response(status_code=int(status_code), headers=dict(CORS_HEADERS))
