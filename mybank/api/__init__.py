"""
mybank API Application Factory
"""

import uuid
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import MyBankConfig, get_config
from ..errors import AccountNotFoundError, BankError
from ..logging_config import correlation_id_var, get_logger, log_action, setup_logging
from ..storage import AccountStore
from .dependencies import BankingSystem
from .accounts import router as accounts_router
from .transactions import router as transactions_router
from .branches import router as branches_router


def create_app(config: Optional[MyBankConfig] = None,
               storage: Optional[AccountStore] = None) -> FastAPI:
    """
    Create and configure the FastAPI application

    Args:
        config: Settings to use instead of the environment-loaded ones
        storage: Pre-opened store; the caller keeps ownership and closes it.
            Without one, the configured store is opened at startup and
            closed at shutdown.
    """
    config = config or get_config()
    setup_logging(config.log_level, config.log_format, config.log_file)
    logger = get_logger("mybank.api")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = None
        if getattr(app.state, "banking_system", None) is None:
            owned = BankingSystem.from_config(config)
            app.state.banking_system = owned
            logger.info(f"Opened {config.storage_backend} store")
        try:
            yield
        finally:
            if owned is not None:
                owned.close()
                app.state.banking_system = None
                logger.info("Store closed")

    app = FastAPI(
        title="mybank Accounts API",
        description="Branch accounts: balances, deposits, withdrawals, transfers and branch statistics",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )
    app.state.banking_system = BankingSystem(storage, config) if storage is not None else None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[origin.strip() for origin in config.cors_origins.split(",")],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next):
        correlation_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        token = correlation_id_var.set(correlation_id)
        try:
            response = await call_next(request)
        finally:
            correlation_id_var.reset(token)
        response.headers["X-Request-ID"] = correlation_id
        return response

    @app.exception_handler(BankError)
    async def bank_error_handler(request: Request, exc: BankError):
        not_found = isinstance(exc, AccountNotFoundError)
        status_code = 404 if not_found else 500
        log_action(
            logger, "warning" if not_found else "error", str(exc),
            action="request_failed", resource=f"{request.method} {request.url.path}",
            extra={"error_type": type(exc).__name__, "status_code": status_code}
        )
        return JSONResponse(status_code=status_code, content={"error": str(exc)})

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    app.include_router(accounts_router, tags=["Accounts"])
    app.include_router(transactions_router, tags=["Transactions"])
    app.include_router(branches_router, tags=["Branches"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "mybank",
            "version": __version__
        }

    return app


def run_server(host: Optional[str] = None, port: Optional[int] = None, debug: bool = False):
    """Run the FastAPI server"""
    config = get_config()
    uvicorn.run(
        "mybank.api:create_app",
        factory=True,
        host=host or config.api_host,
        port=port or config.api_port,
        reload=debug,
        log_level=config.log_level.lower()
    )
