"""
Error taxonomy shared by the GraphQL resolvers and the REST routes.

``StoreError`` subclasses carry a client-safe message. Anything else that
escapes a service call is logged and replaced by a generic "Failed to ..."
message so infrastructure details never reach the client.
"""

import functools

import structlog
from pydantic import ValidationError

logger = structlog.get_logger(__name__)


class StoreError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailed(StoreError):
    status_code = 400


class AuthenticationRequired(StoreError):
    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class AdminRequired(StoreError):
    status_code = 403

    def __init__(self, message: str = "Admin access required"):
        super().__init__(message)


class Forbidden(StoreError):
    status_code = 403


class NotFound(StoreError):
    status_code = 404


class Conflict(StoreError):
    status_code = 409


def describe_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{location}: {err.get('msg')}" if location else err.get("msg", ""))
    return "Invalid input: " + "; ".join(parts)


def guarded(failure_message: str):
    """Re-raise unexpected errors from a service call as ``StoreError(failure_message)``."""
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except StoreError:
                raise
            except ValidationError as exc:
                raise ValidationFailed(describe_validation_error(exc))
            except Exception:
                logger.exception("operation failed", operation=func.__name__)
                raise StoreError(failure_message)
        return wrapper
    return decorator
