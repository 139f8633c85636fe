"""
Error taxonomy and the JSON envelope helpers.

Handlers raise a ShopError subclass; the app turns it into
{"success": false, "message": ...} with the matching status code.
"""
from typing import Any, Optional

from fastapi.responses import JSONResponse


class ShopError(Exception):
    status_code = 500
    default_message = "Some error occurred!"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ShopError):
    status_code = 400
    default_message = "Invalid data provided!"


class Conflict(ShopError):
    status_code = 400
    default_message = "Resource already exists"


class InsufficientStock(ShopError):
    status_code = 400

    def __init__(self, product_title: str, available: int = 0, required: int = 0):
        self.product_title = product_title
        self.available = available
        self.required = required
        super().__init__(f"Not enough stock for product {product_title}")


class Unauthorized(ShopError):
    status_code = 401
    default_message = "Unauthorized user!"


class Forbidden(ShopError):
    status_code = 403
    default_message = "Forbidden"


class NotFound(ShopError):
    status_code = 404
    default_message = "Not found"


class PaymentGatewayError(ShopError):
    status_code = 500
    default_message = "Error while processing PayPal payment"


class InternalError(ShopError):
    status_code = 500
    default_message = "Internal Server Error"


def envelope(data: Any = None, message: Optional[str] = None, status_code: int = 200, **extra) -> JSONResponse:
    content = {"success": True}
    if message is not None:
        content["message"] = message
    if data is not None:
        content["data"] = data
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content)


def error_envelope(status_code: int, message: str, **extra) -> JSONResponse:
    content = {"success": False, "message": message}
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content)
