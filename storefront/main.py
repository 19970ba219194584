import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from storefront.config import Settings, settings as default_settings
from storefront.database import create_db_and_tables
from storefront.errors import AppError, DependencyError
from storefront.routes import (
    addresses,
    auth,
    cart,
    categories,
    health,
    orders,
    products,
    refunds,
)
from storefront.utils.token import TokenService

logger = logging.getLogger("storefront")


def register_exception_handlers(app: FastAPI):
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"detail": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(SQLAlchemyError)
    async def store_error_handler(request: Request, exc: SQLAlchemyError):
        logger.exception(f"Database error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=DependencyError.status_code,
            content={"detail": DependencyError.detail},
        )


def create_app(settings: Settings = default_settings) -> FastAPI:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Run DB creation ONLY in local
        if settings.env == "local":
            create_db_and_tables()
        yield

    app = FastAPI(title="Storefront API", lifespan=lifespan)

    # signing secret is read once here and never changes for this process
    app.state.token_service = TokenService.from_settings(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
    app.include_router(products.router, prefix="/products", tags=["Products"])
    app.include_router(categories.router, prefix="/categories", tags=["Categories"])
    app.include_router(cart.router, prefix="/cart", tags=["Cart"])
    app.include_router(orders.router, prefix="/orders", tags=["Orders"])
    app.include_router(addresses.router, prefix="/addresses", tags=["Addresses"])
    app.include_router(refunds.router, prefix="/refunds", tags=["Refunds"])
    app.include_router(health.router, prefix="/health", tags=["Health"])

    @app.get("/")
    def root():
        return {
            "auth_endpoints": [
                "/auth/register", "/auth/login", "/auth/google",
                "/auth/verify", "/auth/user", "/auth/logout"
            ],
            "catalog": [
                "/products", "/products/{product_id}",
                "/categories", "/categories/{category_id}"
            ],
            "cart": [
                "/cart", "/cart/items", "/cart/items/{item_id}"
            ],
            "orders": [
                "/orders", "/orders/{order_id}", "/orders/{order_id}/status"
            ],
            "addresses": [
                "/addresses", "/addresses/{address_id}"
            ],
            "refunds": ["/refunds"],
        }

    return app


app = create_app()
