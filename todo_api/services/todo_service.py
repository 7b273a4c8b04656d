from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from todo_api.cache.decorators import async_cached, async_cached_expire, todo_key
from todo_api.cache.layer import CacheLayer
from todo_api.core.deadline import run_with_deadline
from todo_api.core.errors import NotFound, ValidationError
from todo_api.models import Todo, TodoCreate, TodoRead, TodoUpdate


def _require_task(task: str) -> None:
    if not task:
        raise ValidationError("The 'task' field is required")


class TodoService:
    """
    Todo operations for a single request, always scoped to one owner.

    Every query filters on both the todo id and ``owner_id``, so a todo that
    belongs to someone else behaves exactly like one that does not exist.
    """

    def __init__(self, db: AsyncSession, cache: CacheLayer, timeout: float):
        self.db = db
        self.cache = cache
        self.timeout = timeout

    async def _owned(self, owner_id: int, todo_id: int) -> Todo:
        result = await self.db.exec(
            select(Todo).where(Todo.id == todo_id, Todo.user_id == owner_id)
        )
        todo = result.first()
        if todo is None:
            raise NotFound()
        return todo

    async def list_todos(self, owner_id: int) -> list[TodoRead]:
        async def query():
            result = await self.db.exec(select(Todo).where(Todo.user_id == owner_id))
            return [TodoRead.model_validate(t) for t in result.all()]

        return await run_with_deadline(query(), self.timeout)

    async def create_todo(self, owner_id: int, data: TodoCreate) -> TodoRead:
        _require_task(data.task)

        async def insert():
            todo = Todo(task=data.task, completed=data.completed, user_id=owner_id)
            self.db.add(todo)
            await self.db.commit()
            await self.db.refresh(todo)
            return TodoRead.model_validate(todo)

        return await run_with_deadline(insert(), self.timeout)

    @async_cached(
        lambda owner_id, todo_id, *_, **__: todo_key(owner_id, todo_id), TodoRead
    )
    async def get_todo(self, owner_id: int, todo_id: int) -> TodoRead:
        async def fetch():
            return TodoRead.model_validate(await self._owned(owner_id, todo_id))

        return await run_with_deadline(fetch(), self.timeout)

    @async_cached_expire(lambda owner_id, todo_id, *_, **__: todo_key(owner_id, todo_id))
    async def update_todo(self, owner_id: int, todo_id: int, data: TodoUpdate) -> TodoRead:
        _require_task(data.task)

        async def replace():
            todo = await self._owned(owner_id, todo_id)
            todo.task = data.task
            todo.completed = data.completed
            self.db.add(todo)
            await self.db.commit()
            await self.db.refresh(todo)
            return TodoRead.model_validate(todo)

        return await run_with_deadline(replace(), self.timeout)

    @async_cached_expire(lambda owner_id, todo_id, *_, **__: todo_key(owner_id, todo_id))
    async def delete_todo(self, owner_id: int, todo_id: int) -> None:
        async def remove():
            todo = await self._owned(owner_id, todo_id)
            await self.db.delete(todo)
            await self.db.commit()

        await run_with_deadline(remove(), self.timeout)
