# storefront/api/__init__.py
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from storefront.domain.errors import StorefrontError
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


async def storefront_error_handler(request: Request, exc: StorefrontError):
    """Bledy biznesowe -> {"detail": message} z kodem z klasy bledu."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def register_error_handlers(app: FastAPI):
    app.add_exception_handler(StorefrontError, storefront_error_handler)
