from typing import Any, Callable, Coroutine

from fastapi import Depends, Request, Response
from fastapi.routing import APIRoute
from sqlmodel.ext.asyncio.session import AsyncSession
from typing_extensions import Annotated

from todo_api.cache.layer import CacheLayer
from todo_api.core.config import Settings
from todo_api.core.errors import Unauthorized, ValidationError
from todo_api.core.security import TokenError, TokenService
from todo_api.database import get_db
from todo_api.services.todo_service import TodoService
from todo_api.services.user_service import UserService

BEARER_PREFIX = "Bearer "


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_tokens(request: Request) -> TokenService:
    return request.app.state.tokens


def get_cache(request: Request) -> CacheLayer:
    return request.app.state.cache


def require_user(request: Request) -> int:
    """
    Authentication gate for every todo route.

    Reads the ``Authorization: Bearer <token>`` header, verifies the token and
    returns the user id it was issued for. Handlers receive that id as their
    ``CurrentUser`` parameter and must scope every store call with it.
    """
    tokens = get_tokens(request)
    header = request.headers.get("Authorization")
    if not header:
        raise Unauthorized("Authorization header required")

    if not header.startswith(BEARER_PREFIX):
        raise Unauthorized("Authorization header must use the Bearer scheme")

    try:
        return tokens.verify(header[len(BEARER_PREFIX):])
    except TokenError as e:
        raise Unauthorized(f"Unauthorized: {e}") from e


class AuthenticatedRoute(APIRoute):
    """
    Route class that runs ``require_user`` before FastAPI reads the path
    parameters or the body, so an unauthenticated request is always a 401.
    """

    def get_route_handler(self) -> Callable[[Request], Coroutine[Any, Any, Response]]:
        handler = super().get_route_handler()

        async def gated_handler(request: Request) -> Response:
            require_user(request)
            return await handler(request)

        return gated_handler


AppSettings = Annotated[Settings, Depends(get_app_settings)]
CurrentUser = Annotated[int, Depends(require_user)]
DbSession = Annotated[AsyncSession, Depends(get_db)]


def parse_todo_id(todo_id: str) -> int:
    try:
        return int(todo_id)
    except ValueError:
        raise ValidationError("Invalid Todo ID") from None


TodoId = Annotated[int, Depends(parse_todo_id)]


def get_todo_service(
    settings: AppSettings, db: DbSession, cache: CacheLayer = Depends(get_cache)
) -> TodoService:
    return TodoService(db, cache, timeout=settings.task_timeout_seconds)


def get_user_service(
    db: DbSession, tokens: TokenService = Depends(get_tokens)
) -> UserService:
    return UserService(db, tokens)


TodoServiceDep = Annotated[TodoService, Depends(get_todo_service)]
UserServiceDep = Annotated[UserService, Depends(get_user_service)]
