import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import config
from db import create_db_and_tables
from enums.order_store_backend import OrderStoreBackend
from processing.processing import processing_router
from repositories.order import OrderRepository, InMemoryOrderRepository, SqlOrderRepository
from utils.error_handler import install_exception_handlers
from web.admin_router import admin_router
from web.checkout_router import checkout_router
from web.distribution_router import distribution_router
from web.order_router import order_router
from web.pricing_router import pricing_router
from web.shipping_router import shipping_router

logger = logging.getLogger(__name__)


def build_order_repository(backend: OrderStoreBackend) -> OrderRepository:
    match backend:
        case OrderStoreBackend.DATABASE:
            return SqlOrderRepository()
        case OrderStoreBackend.MEMORY:
            return InMemoryOrderRepository()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown."""
    # Startup
    await create_db_and_tables()
    app.state.order_repository = build_order_repository(config.ORDER_STORE)
    logger.info(f"[Startup] Database ready, order store: {config.ORDER_STORE.value}")

    yield

    # Shutdown
    logger.warning('Shutting down..')


def create_app() -> FastAPI:
    app = FastAPI(title="Force Dowels Storefront", lifespan=lifespan)

    if config.CORS_ALLOWED_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.CORS_ALLOWED_ORIGINS,
            allow_credentials=False,
            allow_methods=["GET", "POST"],
            allow_headers=["Content-Type", "X-Session-Data", "X-Admin-Token"],
        )
        logger.info(f"[Startup] CORS middleware enabled for origins: {config.CORS_ALLOWED_ORIGINS}")
    else:
        logger.debug("[Startup] CORS middleware disabled (no allowed origins configured)")

    install_exception_handlers(app)

    app.include_router(processing_router)
    app.include_router(order_router)
    app.include_router(checkout_router)
    app.include_router(shipping_router)
    app.include_router(pricing_router)
    app.include_router(distribution_router)
    app.include_router(admin_router)

    # Health check endpoint (for Docker container monitoring)
    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "order_store": config.ORDER_STORE.value}

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(status_code=500, content={"success": False, "error": "Internal server error"})

    return app


app = create_app()


def main() -> None:
    # log_config=None keeps the handlers installed by setup_logging()
    uvicorn.run(app, host=config.WEBAPP_HOST, port=config.WEBAPP_PORT, log_config=None)
