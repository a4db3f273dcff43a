from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from . import __version__, config
from .database import health_check, make_engine, make_session_factory
from .exceptions import (
    CategoryNotFound,
    DuplicateCategory,
    InsufficientStock,
    InvalidCatalogEntry,
    InvalidOrder,
    OrderNotFound,
    ProductNotFound,
    ShopError,
    StoreUnavailable,
    TransactionAborted,
)
from .logger import logger, setup_service_logger
from .models import Base
from .order_engine import OrderEngine
from .routers import catalog_router, order_router

ERROR_STATUS = {
    InvalidOrder: 400,
    InvalidCatalogEntry: 400,
    ProductNotFound: 404,
    CategoryNotFound: 404,
    OrderNotFound: 404,
    InsufficientStock: 409,
    DuplicateCategory: 409,
    TransactionAborted: 500,
    StoreUnavailable: 503,
}


def _status_for(exc: ShopError) -> int:
    for exc_type in type(exc).__mro__:
        if exc_type in ERROR_STATUS:
            return ERROR_STATUS[exc_type]
    return 500


async def shop_error_handler(request: Request, exc: ShopError) -> JSONResponse:
    return JSONResponse(status_code=_status_for(exc), content=exc.to_dict())


async def store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Store error on {} {}: {}", request.method, request.url.path, exc)
    error = StoreUnavailable(f"database error: {type(exc).__name__}")
    return JSONResponse(status_code=503, content=error.to_dict())


def create_app(engine: Optional[Engine] = None) -> FastAPI:
    """Build the application.

    Args:
        engine: Database engine to serve from. When omitted one is created from
            DATABASE_URL at startup and disposed at shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log = setup_service_logger(config.SERVICE_NAME, config.LOG_LEVEL, config.LOG_FILE)
        owns_engine = engine is None
        db_engine = make_engine() if owns_engine else engine

        # Create database tables
        Base.metadata.create_all(bind=db_engine)

        session_factory = make_session_factory(db_engine)
        app.state.db_engine = db_engine
        app.state.session_factory = session_factory
        app.state.order_engine = OrderEngine(session_factory)
        log.info("Service started on {}", db_engine.dialect.name)
        yield
        if owns_engine:
            db_engine.dispose()
        log.info("Service stopped")

    app = FastAPI(
        title="Shop Service",
        description="Catalog reads and atomic order placement",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ShopError, shop_error_handler)
    app.add_exception_handler(SQLAlchemyError, store_error_handler)

    app.include_router(catalog_router.router)
    app.include_router(order_router.router)

    @app.get("/")
    def root():
        return {
            "service": config.SERVICE_NAME,
            "status": "running",
            "version": __version__,
        }

    @app.get("/health")
    def health(request: Request):
        db_ok = health_check(request.app.state.db_engine)
        return JSONResponse(
            status_code=200 if db_ok else 503,
            content={"status": "healthy" if db_ok else "unhealthy", "database": db_ok},
        )

    return app


app = create_app()
