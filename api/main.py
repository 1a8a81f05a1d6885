import os
import sys
from contextlib import asynccontextmanager
from typing import Optional

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware

from api.exceptions.listing_exceptions import ListingException
from api.jwt_handler import JWTHandler
from api.response import Response
from api.router import Router
from tools.config import Config
from tools.database import Database, StoreOperationError
from tools.logger import Logger

logger = Logger()


def register_exception_handlers(app: FastAPI):
    """Єдиний обробник помилок: всі винятки з ендпоінтів потрапляють сюди."""

    @app.exception_handler(ListingException)
    async def listing_exception_handler(request: Request, exc: ListingException):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path}: {exc.message}")
        return Response.error(exc=exc)

    @app.exception_handler(StoreOperationError)
    async def store_exception_handler(request: Request, exc: StoreOperationError):
        logger.error(f"{request.method} {request.url.path}: {exc}")
        return Response.error(
            message="Помилка бази даних",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details={"code": "OPERATION_FAILED"}
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(f"{request.method} {request.url.path}: unhandled {type(exc).__name__}: {exc}")
        return Response.error(
            message="Внутрішня помилка сервера",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )


def create_app(db: Optional[Database] = None, jwt_handler: Optional[JWTHandler] = None) -> FastAPI:
    database = db or Database()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Управління життєвим циклом додатка"""
        logger.info("🚀 Запуск API сервера...")
        await database.setup_indexes()
        try:
            yield
        finally:
            logger.info("🛑 Зупинка API сервера...")
            await database.close()

    app = FastAPI(
        title="Estate Listings API",
        description="API для оголошень нерухомості та обраних об'єктів",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,
    )

    register_exception_handlers(app)
    Router(app, database, jwt_handler).initialize()
    return app


if __name__ == "__main__":
    import uvicorn

    config = Config()
    print(f"🚀 Запуск Estate API сервера на http://{config.API_HOST}:{config.API_PORT}/docs")
    uvicorn.run(
        "api.main:create_app",
        factory=True,
        host=config.API_HOST,
        port=config.API_PORT,
        reload=True,
        log_level="info"
    )
