"""Error handling for the Contract Archive system.

Provides the exception taxonomy shared by the store, the API and the client,
plus a decorator that converts unexpected failures into archive errors.
"""

from functools import wraps
from typing import Any, Callable, Type
from loguru import logger


# Custom Exception Classes

class ArchiveError(Exception):
    """Base exception for all Contract Archive errors."""
    status_code: int = 500


class InvalidTableError(ArchiveError):
    """Raised when a collection name is not in the allow-list."""
    status_code = 400

    def __init__(self, table: str):
        super().__init__("Invalid table")
        self.table = table


class PayloadError(ArchiveError):
    """Raised when a request body cannot be stored."""
    status_code = 400


class PayloadTooLargeError(PayloadError):
    """Raised when a request body exceeds the configured limit."""
    status_code = 413


class ContractNotFoundError(ArchiveError):
    """Raised when a contract id has no stored document."""
    status_code = 404

    def __init__(self, contract_id: int):
        super().__init__("Not found")
        self.contract_id = contract_id


class StoreError(ArchiveError):
    """Raised when the database connection or a query fails."""
    pass


def handle_errors(error_type: Type[ArchiveError]) -> Callable:
    """Wrap unexpected failures of a store method in ``error_type``.

    Archive errors pass through unchanged; anything else is logged and
    re-raised as ``error_type`` chained to the original exception.

    Args:
        error_type: Archive exception type to raise

    Returns:
        Decorated function with error handling
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            try:
                return func(*args, **kwargs)

            except ArchiveError:
                # Already a custom exception, just reraise
                raise

            except Exception as e:
                logger.error(
                    f"Error in {func.__name__}",
                    error=str(e),
                    error_type=type(e).__name__
                )

                raise error_type(f"Error in {func.__name__}: {e}") from e

        return wrapper
    return decorator
