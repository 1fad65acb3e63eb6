from typing import Any, Optional
from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def success_response(
    status_code: int = status.HTTP_200_OK,
    message: Optional[str] = None,
    data: Any = None,
    **payload: Any,
) -> JSONResponse:
    """
    Build the standard success envelope.

    Extra keyword arguments become top-level keys next to ``success`` and
    ``message`` (``token``, ``user``, ``pagination`` ...).
    """
    content: dict[str, Any] = {"success": True, "status_code": status_code}
    if message is not None:
        content["message"] = message
    content.update(payload)
    if data is not None:
        content["data"] = data

    return JSONResponse(status_code=status_code, content=jsonable_encoder(content))
