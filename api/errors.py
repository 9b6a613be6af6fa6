"""Exception handlers for the FastAPI app"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from core.errors import BlobApiError

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(BlobApiError)
    async def blob_api_error_handler(
        request: Request, exc: BlobApiError
    ) -> JSONResponse:
        logger.warning(
            "%s %s -> %d: %s",
            request.method, request.url.path, exc.status_code, exc.message,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_response_body(),
            headers=exc.headers,
        )
