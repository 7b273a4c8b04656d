from sqlmodel import Field, SQLModel


class User(SQLModel, table=True):
    """Registered account. ``password_hash`` never leaves the service."""

    __tablename__ = "users"

    id: int | None = Field(default=None, primary_key=True)
    username: str = Field(unique=True, index=True, nullable=False)
    password_hash: str = Field(nullable=False)


class TodoBase(SQLModel):
    """Base model with shared fields"""

    task: str
    completed: bool = Field(default=False)


class Todo(TodoBase, table=True):
    """Database model"""

    __tablename__ = "todos"

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True, nullable=False)


class TodoCreate(TodoBase):
    """Schema for creating a todo"""

    pass


class TodoUpdate(TodoBase):
    """Schema for replacing a todo's task and completion state"""

    pass


class TodoRead(TodoBase):
    """Schema for todo responses, also the cached snapshot"""

    id: int

    model_config = {"from_attributes": True}


class Credentials(SQLModel):
    username: str = ""
    password: str = ""


class RegisterResponse(SQLModel):
    id: int
    message: str


class TokenResponse(SQLModel):
    token: str
