"""Entrypoint for the FastAPI blob service"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from api.errors import register_error_handlers
from api.routes import blobs
from core.config import settings
from core.kv_store import open_store_factory
from core.log_setup import init_logger
from core.models import HealthResponse
from core.pool import ClientPool
from worker.monitor import BlobCountMonitor


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = init_logger()
    pool = await ClientPool.create(
        open_store_factory(settings), settings.CLIENT_POOL_SIZE
    )
    monitor = BlobCountMonitor(pool, interval=settings.MONITOR_INTERVAL_SECONDS)
    app.state.pool = pool
    app.state.monitor = monitor
    monitor.start()
    logger.info("Blob API started (backend=%s)", settings.STORE_BACKEND)
    try:
        yield
    finally:
        await monitor.stop()
        await pool.close()
        logger.info("Blob API stopped")


app = FastAPI(
    title="Blob API",
    version="0.1.0",
    description="HTTP facade for storing, updating and deleting blobs in a TiKV cluster",
    lifespan=lifespan,
)

register_error_handlers(app)


@app.get("/health")
async def health(request: Request) -> HealthResponse:
    pool: ClientPool | None = getattr(request.app.state, "pool", None)
    return HealthResponse(
        status="ok",
        pool_size=pool.size if pool else 0,
        pool_available=pool.available if pool else 0,
    )


app.include_router(blobs.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
