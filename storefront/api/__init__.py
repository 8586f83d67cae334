# storefront/api/__init__.py
from fastapi import FastAPI

from storefront.api.routers import carts, health, orders


def create_app(lifespan=None) -> FastAPI:
    app = FastAPI(title="Storefront Order Service", version="1.0.0", lifespan=lifespan)
    app.include_router(health.router)
    app.include_router(carts.router)
    app.include_router(orders.router)
    return app
