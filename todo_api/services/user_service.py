import logging

from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from starlette.concurrency import run_in_threadpool

from todo_api.core.deadline import run_with_deadline
from todo_api.core.errors import Conflict, Unauthorized, ValidationError
from todo_api.core.security import TokenService, get_password_hash, verify_password
from todo_api.models import User

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db: AsyncSession, tokens: TokenService):
        self.db = db
        self.tokens = tokens

    async def register(self, username: str, password: str, timeout: float) -> User:
        """
        Create a user. A taken username raises ``Conflict``.
        """
        if not username or not password:
            raise ValidationError("Username and Password are mandatory")

        async def insert():
            password_hash = await run_in_threadpool(get_password_hash, password)
            user = User(username=username, password_hash=password_hash)
            self.db.add(user)
            try:
                await self.db.commit()
            except IntegrityError as e:
                await self.db.rollback()
                logger.info(f"Registration rejected, username taken: {username}")
                raise Conflict() from e
            await self.db.refresh(user)
            return user

        user = await run_with_deadline(insert(), timeout)
        logger.info(f"User registered with id {user.id}")
        return user

    async def authenticate(self, username: str, password: str, timeout: float) -> str:
        """
        Check credentials and return a freshly issued bearer token.
        """

        async def lookup():
            result = await self.db.exec(select(User).where(User.username == username))
            user = result.first()
            if user is None:
                return None
            if not await run_in_threadpool(verify_password, password, user.password_hash):
                return None
            return user

        user = await run_with_deadline(lookup(), timeout)
        if user is None:
            logger.info(f"Failed login for {username}")
            raise Unauthorized("Invalid username or password")

        return self.tokens.issue(user.id)
