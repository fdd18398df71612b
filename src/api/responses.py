from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def envelope(status_code: int, data: Any, message: str) -> dict:
    """Uniform body for every response: ``{status, data, message, success}``."""
    return {
        "status": status_code,
        "data": jsonable_encoder(data),
        "message": message,
        "success": status_code < 400,
    }


def api_response(status_code: int, data: Any, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=envelope(status_code, data, message),
        headers=headers,
    )
