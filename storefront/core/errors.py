# storefront/core/errors.py
from typing import Any, Callable

from fastapi import FastAPI, status
from fastapi.requests import Request
from fastapi.responses import JSONResponse

from storefront.domain.cart import InvalidProductSnapshot, InvalidQuantity
from storefront.repositories.cart_repo import StaleCartError


def create_exception_handler(
    status_code: int, error_code: str
) -> Callable[[Request, Exception], Any]:
    """
    Build a handler that turns a domain exception into a JSON error body:

        {"detail": "<exception message>", "error_code": "<error_code>"}
    """

    async def exception_handler(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(
            status_code=status_code,
            content={"detail": str(exc) or error_code, "error_code": error_code},
        )

    return exception_handler


def register_all_errors(app: FastAPI) -> None:
    app.add_exception_handler(
        InvalidQuantity,
        create_exception_handler(status.HTTP_400_BAD_REQUEST, "invalid_quantity"),
    )
    app.add_exception_handler(
        InvalidProductSnapshot,
        create_exception_handler(status.HTTP_400_BAD_REQUEST, "invalid_product"),
    )
    app.add_exception_handler(
        StaleCartError,
        create_exception_handler(status.HTTP_409_CONFLICT, "cart_conflict"),
    )
