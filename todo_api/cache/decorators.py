import logging
from functools import wraps
from typing import Callable, Optional, Type

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)


def todo_key(owner_id: int, todo_id: int) -> str:
    # owner is part of the key so a hit can never cross tenants
    return f"todo:{owner_id}:{todo_id}"


def async_cached(
    key_builder: Callable[..., str],
    model: Type[BaseModel],
    ttl: Optional[int] = None,
):
    """
    Read-through caching for async service methods returning a pydantic model.

    The decorated method must live on an object exposing ``self.cache``.
    key_builder receives the method's args/kwargs (without ``self``).
    Example:
      @async_cached(lambda owner_id, todo_id, **kw: todo_key(owner_id, todo_id), TodoRead)
      async def get_todo(self, owner_id, todo_id): ...
    """

    def decorator(fn: Callable):
        @wraps(fn)
        async def wrapper(self, *args, **kwargs):
            key = key_builder(*args, **kwargs)

            cached = await self.cache.get(key)
            if cached is not None:
                try:
                    return model.model_validate(cached)
                except ValidationError:
                    logger.warning(f"Cached payload for {key} no longer validates")

            value = await fn(self, *args, **kwargs)
            await self.cache.set(key, value.model_dump(mode="json"), ttl=ttl)
            return value

        return wrapper

    return decorator


def async_cached_expire(key_builder: Callable[..., str]):
    """
    Invalidate a key once the decorated write has completed.

    The delete runs strictly after the wrapped call returns. A failed write
    raises before the delete and leaves the entry untouched.
    """

    def decorator(fn: Callable):
        @wraps(fn)
        async def wrapper(self, *args, **kwargs):
            result = await fn(self, *args, **kwargs)
            await self.cache.delete(key_builder(*args, **kwargs))
            return result

        return wrapper

    return decorator
