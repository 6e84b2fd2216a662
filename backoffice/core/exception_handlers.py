from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from backoffice.services.errors import CustomerDomainError

logger = logging.getLogger(__name__)


async def customer_domain_error_handler(request: Request, exc: CustomerDomainError) -> JSONResponse:
    logger.info(
        "request rejected: %s",
        exc.message,
        extra={"endpoint": request.url.path, "method": request.method, "status_code": exc.status_code},
    )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CustomerDomainError, customer_domain_error_handler)
