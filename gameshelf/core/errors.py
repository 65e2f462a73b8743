from __future__ import annotations

import functools
import logging
from typing import Any, Callable, TypeVar

from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ServiceError(Exception):
    """Base for every error kind that maps onto an HTTP status."""

    status_code = 500
    message = "Internal server error"

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class AuthenticationRequired(ServiceError):
    status_code = 401
    message = "Authentication required"


class InvalidCredentials(ServiceError):
    status_code = 401
    message = "Invalid username or password"


class SessionExpired(ServiceError):
    # Also raised for tokens that never existed.
    status_code = 401
    message = "Session expired"


class UserNotFound(ServiceError):
    status_code = 401
    message = "User not found"


class Forbidden(ServiceError):
    status_code = 403
    message = "Admin access required"


class UsernameExists(ServiceError):
    status_code = 400
    message = "Username already exists"


class NotFound(ServiceError):
    status_code = 404
    message = "Not found"

    def __init__(self, entity: str | None = None):
        super().__init__(f"{entity} not found" if entity else None)


class ProviderError(ServiceError):
    status_code = 502
    message = "Catalog provider request failed"


class InternalError(ServiceError):
    status_code = 500
    message = "Internal server error"


def coerce_store_errors(func: Callable[..., T]) -> Callable[..., T]:
    """Turn any store failure into InternalError; service errors pass through."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> T:
        try:
            return func(*args, **kwargs)
        except ServiceError:
            raise
        except SQLAlchemyError:
            logger.exception("Store call %s failed", func.__qualname__)
            raise InternalError()

    return wrapper
