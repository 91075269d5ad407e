import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fulfillment.core.logging import setup_logging
from fulfillment.core.broker import broker
from fulfillment.core.config import settings
from fulfillment.core.database import engine, async_session_maker
from fulfillment.core.exceptions import FulfillmentError
from fulfillment.models import Base
from fulfillment.api.orders import router as orders_router
from fulfillment.api.customers import router as customers_router
from fulfillment.api.health import router as health_router
from fulfillment.services.outbox_processor import OutboxProcessor

logger = logging.getLogger(__name__)

outbox_processor = OutboxProcessor(
    async_session_maker,
    poll_interval=settings.outbox_poll_interval,
    batch_size=settings.outbox_batch_size,
    max_retries=settings.outbox_max_retries,
    purge_every=settings.outbox_purge_every,
    retention_hours=settings.outbox_retention_hours
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    if settings.rabbitmq_url:
        await broker.connect()
        await outbox_processor.start()
    else:
        logger.info("RabbitMQ URL not set, order events stay in the outbox")

    yield

    if settings.rabbitmq_url:
        await outbox_processor.stop()
        await broker.close()
    await engine.dispose()


app = FastAPI(
    title="Fulfillment Service",
    description="Order fulfillment: stock reservation, pricing and order lifecycle",
    version="0.1.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(FulfillmentError)
async def fulfillment_error_handler(request: Request, exc: FulfillmentError) -> JSONResponse:
    if exc.http_status >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=exc.http_status,
        content={"detail": exc.message, "code": exc.code}
    )


app.include_router(health_router)
app.include_router(orders_router)
app.include_router(customers_router)
