from fastapi import APIRouter, status

from todo_api.dependencies import AppSettings, UserServiceDep
from todo_api.models import Credentials, RegisterResponse, TokenResponse

router = APIRouter(tags=["auth"])


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(creds: Credentials, users: UserServiceDep, settings: AppSettings):
    """Register a new user"""
    user = await users.register(
        creds.username, creds.password, timeout=settings.task_timeout_seconds
    )
    return RegisterResponse(
        id=user.id, message=f"user created successfully with ID: {user.id}"
    )


@router.post("/login", response_model=TokenResponse)
async def login(creds: Credentials, users: UserServiceDep, settings: AppSettings):
    """Exchange username and password for a bearer token"""
    token = await users.authenticate(
        creds.username, creds.password, timeout=settings.login_timeout_seconds
    )
    return TokenResponse(token=token)
