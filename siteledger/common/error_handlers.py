from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from siteledger.common.exceptions import (
    DuplicateLedgerDate,
    InsufficientSupplierBalance,
    LedgerError,
    LedgerTransactionTimeout,
    LedgerValidationError,
    NotFound,
)
from siteledger.logger_config import logger

# Most specific class first
STATUS_CODES = (
    (NotFound, status.HTTP_404_NOT_FOUND),
    (DuplicateLedgerDate, status.HTTP_409_CONFLICT),
    (InsufficientSupplierBalance, status.HTTP_409_CONFLICT),
    (LedgerValidationError, status.HTTP_400_BAD_REQUEST),
    (LedgerTransactionTimeout, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def status_code_for(error: LedgerError) -> int:
    for error_class, code in STATUS_CODES:
        if isinstance(error, error_class):
            return code
    return status.HTTP_400_BAD_REQUEST


def register_error_handlers(app: FastAPI):
    @app.exception_handler(LedgerError)
    async def handle_ledger_error(request: Request, e: LedgerError):
        code = status_code_for(e)
        logger.warning(f"{request.method} {request.url.path} -> {code} [{e.error_code}] {e.message}")

        headers = {"Retry-After": "1"} if e.retryable else None
        return JSONResponse(status_code=code, content=e.to_dict(), headers=headers)

    @app.exception_handler(Exception)
    async def handle_exception(request: Request, e: Exception):
        # Log the exception with traceback
        logger.exception(f"Unhandled exception on {request.method} {request.url.path}")

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "success": False,
                "message": "Internal Server Error",
                "error_code": "INTERNAL_ERROR",
            },
        )
