import asyncio
import logging
from typing import Awaitable, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from todo_api.core.errors import Internal, Timeout

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_with_deadline(operation: Awaitable[T], seconds: float) -> T:
    """
    Await a store operation, bounded by ``seconds``.

    Exceeding the deadline cancels the operation and raises ``Timeout``.
    Database failures are logged with their traceback and re-raised as an
    opaque ``Internal`` error. Domain errors raised by the operation pass
    through untouched.
    """
    try:
        return await asyncio.wait_for(operation, timeout=seconds)
    except asyncio.TimeoutError as e:
        logger.warning("Store operation exceeded %.1fs deadline", seconds)
        raise Timeout() from e
    except SQLAlchemyError as e:
        logger.exception("Database operation failed")
        raise Internal("Database error") from e
