from datetime import datetime, timedelta, timezone

import jwt
from passlib.context import CryptContext

ALGORITHM = "HS256"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


BCRYPT_MAX_BYTES = 72


def _bcrypt_secret(password: str) -> bytes:
    # bcrypt only looks at the first 72 bytes of the UTF-8 encoding
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verifies a plain-text password against a hashed password.
    """
    return pwd_context.verify(_bcrypt_secret(plain_password), hashed_password)


def get_password_hash(password: str) -> str:
    """
    Hashes a plain-text password.
    """
    return pwd_context.hash(_bcrypt_secret(password))


class TokenError(Exception):
    """Raised by ``TokenService.verify`` for any token that must be rejected."""


class InvalidSignature(TokenError):
    pass


class TokenExpired(TokenError):
    pass


class MalformedToken(TokenError):
    pass


class TokenService:
    """
    Issues and verifies stateless HS256 bearer tokens.

    A token carries the user id as ``sub`` and an ``exp`` of issue time plus
    ``ttl``. Nothing is stored server side; a token is valid while its
    signature matches and the current time is before ``exp``.
    """

    def __init__(self, secret: str, ttl: timedelta = timedelta(minutes=15)):
        if not secret:
            raise ValueError("Token signing secret must not be empty")
        self._secret = secret
        self.ttl = ttl

    def issue(self, user_id: int, now: datetime | None = None) -> str:
        issued_at = now or datetime.now(timezone.utc)
        claims = {
            "sub": str(user_id),
            "iat": issued_at,
            "exp": issued_at + self.ttl,
        }
        return jwt.encode(claims, self._secret, algorithm=ALGORITHM)

    def verify(self, token: str) -> int:
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpired("token has expired") from e
        except jwt.InvalidSignatureError as e:
            raise InvalidSignature("token signature is invalid") from e
        except jwt.InvalidTokenError as e:
            raise MalformedToken(f"token is malformed: {e}") from e

        try:
            return int(claims["sub"])
        except (TypeError, ValueError) as e:
            raise MalformedToken("token subject is not a user id") from e
