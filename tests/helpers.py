from __future__ import annotations

from fastapi.testclient import TestClient


def create_todo_for(client: TestClient, user: dict, task: str, completed: bool = False) -> dict:
    """
    Helper function to create a todo as ``user``.
    """
    response = client.post(
        "/todos/", json={"task": task, "completed": completed}, headers=user["headers"]
    )
    assert response.status_code == 201, response.text
    return response.json()


def cache_key(owner_id: int, todo_id: int) -> str:
    return f"todo-api:todo:{owner_id}:{todo_id}"
