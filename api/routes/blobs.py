"""Blob endpoint: one path, dispatched by HTTP method"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from fastapi import APIRouter, Depends, Request
from fastapi.routing import APIRoute
from pydantic import BaseModel
from starlette.datastructures import QueryParams
from starlette.routing import Match
from starlette.types import Receive, Scope, Send

from core import blob_service
from core.config import settings
from core.errors import MethodNotSupportedError, UpstreamError
from core.kv_store import KVStore
from core.models import (
    BlobListResponse,
    BlobResponse,
    CountResponse,
    GetAction,
    MessageResponse,
)
from core.pool import ClientPool

logger = logging.getLogger(__name__)


class AnyMethodRoute(APIRoute):
    """Route that accepts every HTTP method, including TRACE and custom verbs.

    Method checking is left to the endpoint so unknown methods still go
    through the pool checkout and get the blob API's own 405.
    """

    def matches(self, scope: Scope) -> tuple[Match, Scope]:
        match, child_scope = super().matches(scope)
        if match is Match.PARTIAL:
            match = Match.FULL
        return match, child_scope

    async def handle(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self.app(scope, receive, send)


router = APIRouter(tags=["blobs"], route_class=AnyMethodRoute)

ROUTED_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"]

Handler = Callable[[KVStore, QueryParams], Awaitable[BaseModel]]


def get_pool(request: Request) -> ClientPool:
    return request.app.state.pool


async def handle_get(store: KVStore, params: QueryParams) -> BaseModel:
    raw_action = params.get("action", "")
    logger.info("Action: %r", raw_action)
    action = GetAction.parse(raw_action)

    if action is GetAction.count:
        return CountResponse(count=await blob_service.count_blobs(store))
    if action is GetAction.all:
        return BlobListResponse(blobs=await blob_service.list_blobs(store))
    return BlobResponse(blob=await blob_service.random_blob(store))


async def handle_post(store: KVStore, params: QueryParams) -> BaseModel:
    blob = await blob_service.create_blob(store, params.get("blob"))
    return BlobResponse(blob=blob)


async def handle_put(store: KVStore, params: QueryParams) -> BaseModel:
    blob = await blob_service.update_blob(
        store, params.get("oldBlob"), params.get("newBlob")
    )
    return BlobResponse(blob=blob)


async def handle_delete(store: KVStore, params: QueryParams) -> BaseModel:
    await blob_service.delete_blob(store, params.get("blob"))
    return MessageResponse(message="Blob deleted successfully")


HANDLERS: dict[str, Handler] = {
    "GET": handle_get,
    "POST": handle_post,
    "PUT": handle_put,
    "DELETE": handle_delete,
}


@router.api_route("/", methods=ROUTED_METHODS, response_model=None)
async def blobs_endpoint(
    request: Request,
    pool: ClientPool = Depends(get_pool),
) -> BaseModel:
    # The handle is checked out before the method is looked at, so an
    # exhausted pool answers 500 even for unsupported methods.
    async with pool.checkout() as store:
        handler = HANDLERS.get(request.method)
        if handler is None:
            raise MethodNotSupportedError(
                "Invalid request method",
                headers={"Allow": ", ".join(HANDLERS)},
            )
        try:
            async with asyncio.timeout(settings.REQUEST_TIMEOUT_SECONDS):
                return await handler(store, request.query_params)
        except TimeoutError as exc:
            raise UpstreamError("Storage request timed out") from exc
