"""
Bank Ledger API Application Factory
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .customers import router as customers_router
from .accounts import router as accounts_router
from .transactions import router as transactions_router
from .. import __version__
from ..errors import (
    ConcurrencyConflict, CustomerHasAccounts, DuplicateAccountNumber,
    InsufficientFunds, LedgerError, NonZeroBalance, NotFound, PersistenceFailure
)


CONFLICT_ERRORS = (
    InsufficientFunds, NonZeroBalance, DuplicateAccountNumber,
    CustomerHasAccounts, ConcurrencyConflict
)


def status_for(error: LedgerError) -> int:
    """HTTP status for a ledger error; anything unlisted is a bad request"""
    if isinstance(error, NotFound):
        return 404
    if isinstance(error, CONFLICT_ERRORS):
        return 409
    if isinstance(error, PersistenceFailure):
        return 503
    return 400


def create_app() -> FastAPI:
    """Create and configure the FastAPI application"""
    app = FastAPI(
        title="Bank Ledger API",
        description="Customer accounts with fixed-point balances and transaction history",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    @app.exception_handler(LedgerError)
    async def ledger_error_handler(request: Request, exc: LedgerError):
        return JSONResponse(status_code=status_for(exc), content=exc.to_dict())

    # Include routers
    app.include_router(customers_router, prefix="/customers", tags=["Customers"])
    app.include_router(accounts_router, prefix="/accounts", tags=["Accounts"])
    app.include_router(transactions_router, prefix="/transactions", tags=["Transactions"])

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "bank_ledger_api",
            "version": __version__
        }

    return app
