from contextlib import asynccontextmanager

from fastapi import FastAPI

from cantina.app.core.config import settings
from cantina.app.core.logging_config import configure_logging, log_requests
from cantina.app.core.redis_client import close_redis, init_redis
import cantina.app.routers.admin as admin
import cantina.app.routers.agent as agent
import cantina.app.routers.availability as availability
import cantina.app.routers.bookings as bookings
import cantina.app.routers.catalog as catalog
import cantina.app.routers.drafts as drafts
import cantina.app.routers.health as health


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    await init_redis()
    try:
        yield
    finally:
        await close_redis()


app = FastAPI(
    title="Cantina Table Reservations API",
    lifespan=lifespan,
)

app.middleware("http")(log_requests)

app.include_router(health.router, prefix=settings.API_PREFIX)
app.include_router(catalog.router, prefix=settings.API_PREFIX)
app.include_router(availability.router, prefix=settings.API_PREFIX)
app.include_router(bookings.router, prefix=settings.API_PREFIX)
app.include_router(drafts.router, prefix=settings.API_PREFIX)
app.include_router(admin.router, prefix=settings.API_PREFIX)
app.include_router(agent.router, prefix=settings.API_PREFIX)
