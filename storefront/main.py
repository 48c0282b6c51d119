# storefront/main.py
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from storefront.api import register_error_handlers
from storefront.api.routers import health, users, products, inventory, cart, orders, discounts, reviews, wishlists
from storefront.data.database import Base, engine
from storefront.utils.logging import get_logger

# modele (i listenery) musza byc zaimportowane przed create_all
import storefront.data.models  # noqa: F401

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Initializing database, tables: {sorted(Base.metadata.tables.keys())}")
    try:
        Base.metadata.create_all(bind=engine)
    except Exception as e:
        logger.error(f"Failed to create tables: {e}")
        raise
    yield


def create_app() -> FastAPI:
    app = FastAPI(
        title="Storefront Service",
        version="1.0.0",
        lifespan=lifespan,
    )

    register_error_handlers(app)

    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(products.router)
    app.include_router(inventory.router)
    app.include_router(cart.router)
    app.include_router(orders.router)
    app.include_router(discounts.router)
    app.include_router(reviews.router)
    app.include_router(wishlists.router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
