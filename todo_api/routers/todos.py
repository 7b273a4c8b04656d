from fastapi import APIRouter, Response, status

from todo_api.dependencies import AuthenticatedRoute, CurrentUser, TodoId, TodoServiceDep
from todo_api.models import TodoCreate, TodoRead, TodoUpdate

router = APIRouter(
    prefix="/todos",
    tags=["todos"],
    route_class=AuthenticatedRoute,
)


@router.get("/", response_model=list[TodoRead])
async def get_todos(user_id: CurrentUser, todos: TodoServiceDep):
    """List the current user's todos"""
    return await todos.list_todos(user_id)


@router.post("/", response_model=TodoRead, status_code=status.HTTP_201_CREATED)
async def create_todo(user_id: CurrentUser, todo_data: TodoCreate, todos: TodoServiceDep):
    """Create a new todo"""
    return await todos.create_todo(user_id, todo_data)


@router.get("/{todo_id}", response_model=TodoRead)
async def get_todo(user_id: CurrentUser, todo_id: TodoId, todos: TodoServiceDep):
    """Get a specific todo by ID"""
    return await todos.get_todo(user_id, todo_id)


@router.put("/{todo_id}", response_model=TodoRead)
async def update_todo(
    user_id: CurrentUser, todo_id: TodoId, todo_data: TodoUpdate, todos: TodoServiceDep
):
    return await todos.update_todo(user_id, todo_id, todo_data)


@router.delete("/{todo_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_todo(user_id: CurrentUser, todo_id: TodoId, todos: TodoServiceDep):
    """Delete a todo"""
    await todos.delete_todo(user_id, todo_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
