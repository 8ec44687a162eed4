import logging

from fastapi import FastAPI

from cafe_sync.api import health
from cafe_sync.api.routes.menu_items import router as menu_items_router
from cafe_sync.api.routes.orders import router as orders_router
from cafe_sync.api.routes.users import router as users_router
from cafe_sync.db.session import engine
from cafe_sync.logging import setup_logging
from cafe_sync.realtime.publisher import publisher

logger = logging.getLogger(__name__)

app = FastAPI(title="Cafe Sync")

app.include_router(health.router)
app.include_router(orders_router)
app.include_router(menu_items_router)
app.include_router(users_router)


@app.on_event("startup")
async def on_startup():
    setup_logging()
    logger.info("Application started")


@app.on_event("shutdown")
async def on_shutdown():
    await publisher.close()
    await engine.dispose()
    logger.info("Application stopped")
