"""Integration tests for the health endpoint and the ``users import`` CLI."""

from __future__ import annotations

import json

from foodapp.repositories.user import UserRepository
from tests.factories.user import UserFactory


def test_health(client) -> None:
    resp = client.get("/api/v1/health")
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "ok"
    assert resp.get_json()["db"] == "ok"


def _write(tmp_path, document) -> str:
    path = tmp_path / "users.json"
    path.write_text(json.dumps(document), encoding="utf-8")
    return str(path)


def _users(n: int):
    return [
        {
            "first_name": "Alice",
            "last_name": "Smith",
            "email": f"cli{i}@example.com",
            "password": "Passw0rd!",
        }
        for i in range(n)
    ]


def test_import_registers_every_user(app, sql_store, session, tmp_path) -> None:
    result = app.test_cli_runner().invoke(
        args=["users", "import", _write(tmp_path, _users(3)), "--workers", "2"]
    )

    assert result.exit_code == 0, result.output
    assert "succeeded=3" in result.output
    repo = UserRepository(session=session)
    assert all(repo.exists_by_email(f"cli{i}@example.com") for i in range(3))


def test_import_reports_failures(app, sql_store, session, tmp_path) -> None:
    UserFactory(email="cli1@example.com")
    session.commit()

    result = app.test_cli_runner().invoke(
        args=["users", "import", _write(tmp_path, {"users": _users(3)})]
    )

    assert result.exit_code == 1
    assert "cli1@example.com: persistence_failure" in result.output
    assert "1 of 3 registrations failed" in result.output


def test_import_rejects_invalid_file(app, sql_store, tmp_path) -> None:
    result = app.test_cli_runner().invoke(
        args=["users", "import", _write(tmp_path, [{"email": "x@example.com"}])]
    )
    assert result.exit_code == 1
    assert "Invalid users" in result.output
