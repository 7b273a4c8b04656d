import asyncio
from collections import Counter

from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from todo_api.services import user_service
from todo_api.services.todo_service import TodoService

from .helpers import create_todo_for


def test_create_todo(client: TestClient, alice: dict):
    response = client.post(
        "/todos/", json={"task": "buy milk", "completed": False}, headers=alice["headers"]
    )
    assert response.status_code == 201
    data = response.json()
    assert data["task"] == "buy milk"
    assert data["completed"] is False
    assert data["id"] > 0
    assert set(data) == {"id", "task", "completed"}


def test_create_todo_completed_defaults_to_false(client: TestClient, alice: dict):
    response = client.post("/todos/", json={"task": "no flag"}, headers=alice["headers"])
    assert response.status_code == 201
    assert response.json()["completed"] is False


def test_create_todo_requires_task(client: TestClient, alice: dict):
    response = client.post(
        "/todos/", json={"task": "", "completed": True}, headers=alice["headers"]
    )
    assert response.status_code == 400
    assert response.json() == {"detail": "The 'task' field is required"}


def test_create_todo_rejects_bad_body(client: TestClient, alice: dict):
    response = client.post(
        "/todos/", json={"completed": "not a bool"}, headers=alice["headers"]
    )
    assert response.status_code == 400
    assert response.json() == {"detail": "Invalid request body"}


def test_create_then_get(client: TestClient, alice: dict):
    created = create_todo_for(client, alice, "write report", completed=True)

    response = client.get(f"/todos/{created['id']}", headers=alice["headers"])
    assert response.status_code == 200
    assert response.json() == created


def test_list_todos(client: TestClient, alice: dict, bob: dict):
    create_todo_for(client, alice, "Task 1")
    create_todo_for(client, alice, "Task 2")
    create_todo_for(client, alice, "Task 2", completed=True)
    create_todo_for(client, bob, "Bob's task")

    response = client.get("/todos/", headers=alice["headers"])
    assert response.status_code == 200
    tasks = response.json()
    assert Counter((t["task"], t["completed"]) for t in tasks) == Counter(
        [("Task 1", False), ("Task 2", False), ("Task 2", True)]
    )


def test_list_todos_empty(client: TestClient, alice: dict):
    response = client.get("/todos/", headers=alice["headers"])
    assert response.status_code == 200
    assert response.json() == []


def test_invalid_todo_id(client: TestClient, alice: dict):
    for method in ("get", "put", "delete"):
        response = client.request(
            method, "/todos/abc", json={"task": "x"}, headers=alice["headers"]
        )
        assert response.status_code == 400
        assert response.json() == {"detail": "Invalid Todo ID"}


def test_get_todo_not_found(client: TestClient, alice: dict):
    response = client.get("/todos/999999", headers=alice["headers"])
    assert response.status_code == 404
    assert response.json() == {"detail": "Todo not found"}


def test_other_users_todo_is_invisible(client: TestClient, alice: dict, bob: dict):
    todo = create_todo_for(client, alice, "Alice's secret")

    response = client.get(f"/todos/{todo['id']}", headers=bob["headers"])
    assert response.status_code == 404
    assert response.json() == {"detail": "Todo not found"}

    response = client.get("/todos/", headers=bob["headers"])
    assert response.json() == []


def test_update_todo(client: TestClient, alice: dict):
    todo = create_todo_for(client, alice, "draft")

    response = client.put(
        f"/todos/{todo['id']}",
        json={"task": "final", "completed": True},
        headers=alice["headers"],
    )
    assert response.status_code == 200
    assert response.json() == {"id": todo["id"], "task": "final", "completed": True}

    response = client.get(f"/todos/{todo['id']}", headers=alice["headers"])
    assert response.json() == {"id": todo["id"], "task": "final", "completed": True}


def test_update_todo_requires_task(client: TestClient, alice: dict):
    todo = create_todo_for(client, alice, "keep me")

    response = client.put(
        f"/todos/{todo['id']}", json={"task": "", "completed": True}, headers=alice["headers"]
    )
    assert response.status_code == 400

    response = client.get(f"/todos/{todo['id']}", headers=alice["headers"])
    assert response.json()["task"] == "keep me"


def test_update_todo_not_found(client: TestClient, alice: dict):
    response = client.put(
        "/todos/999999", json={"task": "ghost", "completed": False}, headers=alice["headers"]
    )
    assert response.status_code == 404


def test_update_other_users_todo(client: TestClient, alice: dict, bob: dict):
    todo = create_todo_for(client, alice, "Alice's task")

    response = client.put(
        f"/todos/{todo['id']}",
        json={"task": "hijacked", "completed": True},
        headers=bob["headers"],
    )
    assert response.status_code == 404

    response = client.get(f"/todos/{todo['id']}", headers=alice["headers"])
    assert response.json() == todo


def test_delete_todo(client: TestClient, alice: dict):
    todo = create_todo_for(client, alice, "short lived")

    response = client.delete(f"/todos/{todo['id']}", headers=alice["headers"])
    assert response.status_code == 204
    assert response.content == b""

    response = client.get(f"/todos/{todo['id']}", headers=alice["headers"])
    assert response.status_code == 404

    response = client.delete(f"/todos/{todo['id']}", headers=alice["headers"])
    assert response.status_code == 404


def test_delete_other_users_todo(client: TestClient, alice: dict, bob: dict):
    todo = create_todo_for(client, alice, "Alice's task")

    response = client.delete(f"/todos/{todo['id']}", headers=bob["headers"])
    assert response.status_code == 404

    response = client.get(f"/todos/{todo['id']}", headers=alice["headers"])
    assert response.status_code == 200


def test_slow_store_times_out(client: TestClient, app: FastAPI, alice: dict, monkeypatch):
    todo = create_todo_for(client, alice, "slow")
    app.state.settings = app.state.settings.model_copy(
        update={"task_timeout_seconds": 0.05}
    )

    async def hang(self, owner_id, todo_id):
        await asyncio.sleep(5)

    monkeypatch.setattr(TodoService, "_owned", hang)

    for method in ("get", "put", "delete"):
        response = client.request(
            method,
            f"/todos/{todo['id']}",
            json={"task": "x", "completed": False},
            headers=alice["headers"],
        )
        assert response.status_code == 504
        assert response.json() == {"detail": "Request timed out"}


def test_database_failure_is_an_opaque_500(client: TestClient, alice: dict, monkeypatch):
    todo = create_todo_for(client, alice, "unlucky")

    async def broken(self, owner_id, todo_id):
        raise OperationalError("SELECT todos", {}, Exception("connection reset"))

    monkeypatch.setattr(TodoService, "_owned", broken)

    for method in ("get", "put", "delete"):
        response = client.request(
            method,
            f"/todos/{todo['id']}",
            json={"task": "x", "completed": False},
            headers=alice["headers"],
        )
        assert response.status_code == 500
        assert response.json() == {"detail": "Database error"}
        assert "connection reset" not in response.text


def test_slow_login_times_out(client: TestClient, app: FastAPI, alice: dict, monkeypatch):
    app.state.settings = app.state.settings.model_copy(
        update={"login_timeout_seconds": 0.05}
    )

    async def slow_threadpool(fn, *args):
        await asyncio.sleep(1)
        return fn(*args)

    monkeypatch.setattr(user_service, "run_in_threadpool", slow_threadpool)

    response = client.post("/login", json={"username": "alice", "password": "correct-horse"})
    assert response.status_code == 504
    assert response.json() == {"detail": "Request timed out"}
